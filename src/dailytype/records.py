"""Per-language leaderboard of a player's best attempts."""

from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass
from typing import Any, cast

from .progress import KeyValueStore, PersistenceError

logger = logging.getLogger(__name__)

MAX_RECORDS = 5
STORE_SCHEMA_VERSION = 2
STATS_KEY_PREFIX = "typingStats_"


@dataclass(frozen=True)
class Record:
    """One leaderboard entry.

    ``wpm`` and ``duration_seconds`` are None only for entries recovered from
    stores written before those fields existed.
    """

    play_index: int
    percentile: float
    wpm: float | None
    duration_seconds: float | None
    timestamp: int


@dataclass(frozen=True)
class RecordStore:
    """Play counter plus the best records, best (lowest percentile) first."""

    play_count: int = 0
    records: tuple[Record, ...] = ()

    @property
    def best_percentile(self) -> float | None:
        return self.records[0].percentile if self.records else None


def stats_key(language: str) -> str:
    """Storage key holding one language's records."""
    return f"{STATS_KEY_PREFIX}{language}"


def _rank(records: list[Record]) -> tuple[Record, ...]:
    records.sort(key=lambda item: item.percentile)
    return tuple(records[:MAX_RECORDS])


def record_attempt(
    store: RecordStore,
    duration_seconds: float,
    percentile: float,
    wpm: float,
    *,
    timestamp: int | None = None,
) -> RecordStore:
    """Return a new store with one more play and the attempt ranked in."""
    if timestamp is None:
        timestamp = int(time.time() * 1000)
    play_count = store.play_count + 1
    entry = Record(
        play_index=play_count,
        percentile=percentile,
        wpm=wpm,
        duration_seconds=duration_seconds,
        timestamp=timestamp,
    )
    return RecordStore(play_count=play_count, records=_rank([*store.records, entry]))


def normalize_store(raw: object) -> RecordStore:
    """Read any persisted shape into the current store shape.

    Accepted inputs:
    - current shape: ``{"schemaVersion": 2, "playCount", "records": [...]}``.
    - web shape: same fields without ``schemaVersion``; records carry ``duration``.
    - first shape: ``{"playCount", "bestPercentile"}`` with no record list.
    - anything else (None, lists, strings) becomes an empty store.
    """
    if not isinstance(raw, dict):
        if raw is not None:
            logger.warning("Discarding record store of unexpected type %s.", type(raw).__name__)
        return RecordStore()
    data = cast(dict[str, object], raw)

    play_count = max(0, _coerce_int(data.get("playCount"), default=0) or 0)

    records: list[Record] = []
    raw_records = data.get("records")
    if isinstance(raw_records, list):
        for item in cast(list[object], raw_records):
            entry = _record_from_raw(item)
            if entry is None:
                logger.warning("Dropping malformed record entry: %r", item)
                continue
            records.append(entry)
    elif raw_records is not None:
        logger.warning("Ignoring non-list records field of type %s.", type(raw_records).__name__)

    if not records:
        best = _coerce_float(data.get("bestPercentile"))
        if best is not None and math.isfinite(best):
            records.append(
                Record(
                    play_index=max(play_count, 1),
                    percentile=best,
                    wpm=None,
                    duration_seconds=None,
                    timestamp=0,
                )
            )

    return RecordStore(play_count=play_count, records=_rank(records))


def dump_store(store: RecordStore) -> dict[str, Any]:
    """Serialize a store to its persisted JSON shape."""
    return {
        "schemaVersion": STORE_SCHEMA_VERSION,
        "playCount": store.play_count,
        "records": [
            {
                "playIndex": item.play_index,
                "percentile": item.percentile,
                "wpm": item.wpm,
                "duration": item.duration_seconds,
                "timestamp": item.timestamp,
            }
            for item in store.records
        ],
    }


def _record_from_raw(raw: object) -> Record | None:
    if not isinstance(raw, dict):
        return None
    row = cast(dict[str, object], raw)
    percentile = _coerce_float(row.get("percentile"))
    if percentile is None or not math.isfinite(percentile):
        return None
    duration_value = row.get("duration", row.get("durationSeconds"))
    duration = _coerce_float(duration_value)
    if duration is not None and (not math.isfinite(duration) or duration <= 0):
        duration = None
    wpm = _coerce_float(row.get("wpm"))
    if wpm is not None and not math.isfinite(wpm):
        wpm = None
    return Record(
        play_index=max(0, _coerce_int(row.get("playIndex"), default=0) or 0),
        percentile=percentile,
        wpm=wpm,
        duration_seconds=duration,
        timestamp=max(0, _coerce_int(row.get("timestamp"), default=0) or 0),
    )


class RecordSaveError(PersistenceError):
    """Write failure that still carries the store the player should see."""

    def __init__(self, message: str, store: RecordStore) -> None:
        super().__init__(message)
        self.store = store


class RecordBook:
    """Loads and updates record stores through a key-value store."""

    def __init__(self, kv: KeyValueStore) -> None:
        self.kv = kv

    def load(self, language: str) -> RecordStore:
        """Return the language's store, or an empty one."""
        return normalize_store(self.kv.get(stats_key(language)))

    def record(self, language: str, duration_seconds: float, percentile: float, wpm: float) -> RecordStore:
        """Add one completed attempt and persist the result with a single write.

        Raises PersistenceError (carrying the unsaved store) if the write fails.
        """
        updated = record_attempt(self.load(language), duration_seconds, percentile, wpm)
        try:
            self.kv.set(stats_key(language), dump_store(updated))
        except PersistenceError as exc:
            logger.error("Could not save records for %s: %s", language, exc)
            raise RecordSaveError(str(exc), updated) from exc
        return updated

    def clear(self, language: str) -> None:
        """Remove one language's records."""
        self.kv.remove(stats_key(language))

    def clear_all(self) -> list[str]:
        """Remove every language's records and return the removed keys."""
        removed = self.kv.keys(STATS_KEY_PREFIX)
        for key in removed:
            self.kv.remove(key)
        return removed


def _coerce_int(value: object, default: int | None = None) -> int | None:
    """Coerce a stored value to int."""
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else default
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return default
    return default


def _coerce_float(value: object, default: float | None = None) -> float | None:
    """Coerce a stored value to float."""
    if isinstance(value, bool):
        return default
    if isinstance(value, int | float):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return default
    return default
