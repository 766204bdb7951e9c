import logging
from typing import Any

import pytest

from dailytype.progress import PersistenceError, ProgressStore
from dailytype.records import (
    MAX_RECORDS,
    Record,
    RecordBook,
    RecordSaveError,
    RecordStore,
    dump_store,
    normalize_store,
    record_attempt,
    stats_key,
)


class FailingStore:
    def __init__(self, initial: Any = None) -> None:
        self.value = initial

    def get(self, key: str) -> Any:
        return self.value

    def set(self, key: str, value: Any) -> None:
        raise PersistenceError("disk full")

    def remove(self, key: str) -> None:
        raise PersistenceError("disk full")

    def keys(self, prefix: str = "") -> list[str]:
        return []


def test_stats_key() -> None:
    assert stats_key("en") == "typingStats_en"


def test_record_attempt_is_pure_and_counts_plays() -> None:
    empty = RecordStore()
    updated = record_attempt(empty, 42.5, 30.0, 55.0, timestamp=1000)
    assert empty == RecordStore()
    assert updated.play_count == 1
    assert updated.records == (
        Record(play_index=1, percentile=30.0, wpm=55.0, duration_seconds=42.5, timestamp=1000),
    )


def test_records_sorted_and_truncated_after_six_attempts() -> None:
    store = RecordStore()
    percentiles = [40.0, 12.0, 75.0, 3.5, 60.0, 20.0]
    for value in percentiles:
        store = record_attempt(store, 30.0, value, 50.0)

    assert store.play_count == 6
    assert len(store.records) == MAX_RECORDS
    kept = [item.percentile for item in store.records]
    assert kept == sorted(kept) == [3.5, 12.0, 20.0, 40.0, 60.0]
    evicted = 75.0
    assert all(value <= evicted for value in kept)
    assert store.best_percentile == 3.5


def test_play_count_grows_even_when_attempt_is_evicted() -> None:
    store = RecordStore()
    for _ in range(MAX_RECORDS):
        store = record_attempt(store, 10.0, 1.0, 90.0)
    store = record_attempt(store, 99.0, 99.0, 5.0)
    assert store.play_count == 6
    assert all(item.play_index <= 5 for item in store.records)


def test_ties_keep_earlier_attempts_first() -> None:
    store = RecordStore()
    for _ in range(MAX_RECORDS + 1):
        store = record_attempt(store, 10.0, 5.0, 60.0)
    assert [item.play_index for item in store.records] == [1, 2, 3, 4, 5]


@pytest.mark.parametrize("raw", [None, [], "junk", 5, {"records": "nope"}, {}])
def test_normalize_degenerate_values(raw: object) -> None:
    assert normalize_store(raw) == RecordStore()


def test_normalize_web_shape_with_missing_and_bad_fields() -> None:
    raw = {
        "playCount": "7",
        "records": [
            {"playIndex": 3, "percentile": 44.1, "wpm": 35.2, "duration": 61.5, "timestamp": 1700000000000},
            {"playIndex": 5, "percentile": 9.9, "durationSeconds": 33.0},
            {"percentile": "oops"},
            "garbage",
            {"playIndex": 6, "percentile": 80.0, "wpm": "NaN", "duration": -3},
        ],
    }
    store = normalize_store(raw)
    assert store.play_count == 7
    assert [item.percentile for item in store.records] == [9.9, 44.1, 80.0]
    assert store.records[0].duration_seconds == 33.0
    assert store.records[0].wpm is None
    assert store.records[1].timestamp == 1700000000000
    assert store.records[2].wpm is None
    assert store.records[2].duration_seconds is None


def test_normalize_missing_play_count_defaults_to_zero() -> None:
    store = normalize_store({"records": [{"percentile": 10.0}]})
    assert store.play_count == 0
    assert len(store.records) == 1


def test_normalize_legacy_best_percentile() -> None:
    store = normalize_store({"playCount": 4, "bestPercentile": 17.5})
    assert store.play_count == 4
    assert store.records == (
        Record(play_index=4, percentile=17.5, wpm=None, duration_seconds=None, timestamp=0),
    )


def test_normalize_enforces_order_and_limit() -> None:
    raw = {"playCount": 9, "records": [{"percentile": float(value)} for value in (9, 1, 8, 2, 7, 3, 6)]}
    store = normalize_store(raw)
    assert [item.percentile for item in store.records] == [1.0, 2.0, 3.0, 6.0, 7.0]


def test_malformed_entries_are_logged(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.WARNING, logger="dailytype.records"):
        normalize_store({"records": [42]})
    assert any("malformed record" in message for message in caplog.messages)


def test_dump_then_normalize_preserves_store() -> None:
    store = record_attempt(record_attempt(RecordStore(), 20.0, 15.0, 70.0), 25.0, 45.0, 42.0)
    payload = dump_store(store)
    assert payload["schemaVersion"] == 2
    assert payload["records"][0]["duration"] == 20.0
    assert normalize_store(payload) == store


def test_record_book_round_trip() -> None:
    book = RecordBook(ProgressStore(":memory:"))
    assert book.load("en") == RecordStore()
    first = book.record("en", 50.0, 33.3, 48.0)
    second = book.record("en", 40.0, 20.0, 55.0)
    assert first.play_count == 1
    assert second.play_count == 2
    assert book.load("en") == second
    assert book.load("ko") == RecordStore()


def test_record_book_clear_one_and_all() -> None:
    kv = ProgressStore(":memory:")
    kv.set("typingLanguage", "en")
    book = RecordBook(kv)
    book.record("en", 50.0, 33.3, 48.0)
    book.record("ko", 50.0, 33.3, 48.0)
    book.record("ja", 50.0, 33.3, 48.0)

    book.clear("en")
    assert book.load("en") == RecordStore()
    assert book.load("ko").play_count == 1

    removed = book.clear_all()
    assert removed == ["typingStats_ja", "typingStats_ko"]
    assert book.load("ja") == RecordStore()
    assert kv.get("typingLanguage") == "en"


def test_failed_write_raises_with_unsaved_store() -> None:
    existing = dump_store(record_attempt(RecordStore(), 30.0, 40.0, 45.0, timestamp=1))
    kv = FailingStore(existing)
    book = RecordBook(kv)
    before = book.load("en")

    with pytest.raises(PersistenceError) as excinfo:
        book.record("en", 20.0, 10.0, 70.0)

    assert isinstance(excinfo.value, RecordSaveError)
    assert excinfo.value.store.play_count == 2
    assert excinfo.value.store.best_percentile == 10.0
    assert before.play_count == 1
    assert book.load("en") == before
