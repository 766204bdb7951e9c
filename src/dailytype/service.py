"""Application service for daily sessions, scoring, and local records."""

from __future__ import annotations

import logging
import os
import re
import time
from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass
from datetime import date
from pathlib import Path

from .content_loader import LANGUAGES, load_quote_pools
from .models import Attempt, DailySelection
from .progress import ProgressStore
from .records import RecordBook, RecordStore
from .scheduler import daily_selection, today_in_zone
from .skill import DEFAULT_MODEL, SkillModel

logger = logging.getLogger(__name__)

LANGUAGE_KEY = "typingLanguage"
DEFAULT_LANGUAGE = "en"
_LOCALE_ENV_VARS = ("LANGUAGE", "LC_ALL", "LC_MESSAGES", "LANG")

Clock = Callable[[], float]
TodayFn = Callable[[], date]


@dataclass
class Session:
    """State of one play-through of today's passages."""

    language: str
    selection: DailySelection
    stage: int = 0
    started_at: float | None = None
    chars_typed: int = 0
    finished: bool = False
    attempt: Attempt | None = None

    @property
    def total_stages(self) -> int:
        return len(self.selection.passages)

    @property
    def current_passage(self) -> str | None:
        if self.finished:
            return None
        return self.selection.passages[self.stage]


@dataclass(frozen=True)
class AttemptOutcome:
    """Score of a finished attempt plus the leaderboard after recording it."""

    attempt: Attempt
    store: RecordStore


@dataclass(frozen=True)
class SubmitResult:
    """Result of submitting one stage's text."""

    correct: bool
    finished: bool
    outcome: AttemptOutcome | None = None


class DailyTypeService:
    """Coordinates the daily schedule, timing, scoring, and records."""

    def __init__(
        self,
        db_path: Path | str,
        *,
        pools: Mapping[str, Sequence[str]] | None = None,
        clock: Clock = time.monotonic,
        today_fn: TodayFn = today_in_zone,
        model: SkillModel = DEFAULT_MODEL,
    ) -> None:
        """Initialize service with database path and optional overrides."""
        self.pools: dict[str, tuple[str, ...]] = (
            {language: tuple(pool) for language, pool in pools.items()} if pools is not None else load_quote_pools()
        )
        self.progress = ProgressStore(db_path)
        self.book = RecordBook(self.progress)
        self.clock = clock
        self.today_fn = today_fn
        self.model = model

    def list_languages(self) -> list[str]:
        """Return supported language codes in display order."""
        known = [code for code in LANGUAGES if code in self.pools]
        extra = sorted(code for code in self.pools if code not in LANGUAGES)
        return known + extra

    def preferred_language(self, locales: Iterable[str] | None = None) -> str:
        """Return the saved language, else guess from locale names."""
        stored = self.progress.get(LANGUAGE_KEY)
        if isinstance(stored, str) and stored in self.pools:
            return stored
        candidates = list(locales) if locales is not None else _environment_locales()
        if any(re.search("ko", item, re.IGNORECASE) for item in candidates):
            return "ko"
        return DEFAULT_LANGUAGE

    def set_preferred_language(self, language: str) -> None:
        """Persist the language choice."""
        if language not in self.pools:
            raise ValueError(f"Unknown language: {language}")
        self.progress.set(LANGUAGE_KEY, language)

    def selection_for(self, language: str, day: date | None = None) -> DailySelection:
        """Return the passages for ``language`` on ``day`` (default: today)."""
        if language not in self.pools:
            raise ValueError(f"Unknown language: {language}")
        target = day if day is not None else self.today_fn()
        return daily_selection(self.pools[language], language, target)

    def start_session(self, language: str) -> Session:
        """Begin (or restart) today's session for a language."""
        session = Session(language=language, selection=self.selection_for(language))
        logger.debug("Started %s session for %s.", language, session.selection.day.isoformat())
        return session

    def start_timer(self, session: Session) -> None:
        """Start the stopwatch if it is not already running."""
        if session.started_at is None:
            session.started_at = self.clock()

    def submit(self, session: Session, text: str) -> SubmitResult:
        """Check one stage's text and advance, finishing after the last stage.

        The text must match the passage exactly. On the final stage the
        session is marked finished before scoring. DomainError from scoring
        leaves ``session.attempt`` as None. PersistenceError from saving is
        raised after ``session.attempt`` is set.
        """
        if session.finished:
            raise RuntimeError("Session already finished; start a new session.")
        self.start_timer(session)
        if text != session.current_passage:
            return SubmitResult(correct=False, finished=False)

        session.chars_typed += len(text)
        session.stage += 1
        if session.stage < session.total_stages:
            return SubmitResult(correct=True, finished=False)

        session.finished = True
        started_at = session.started_at if session.started_at is not None else self.clock()
        elapsed = self.clock() - started_at
        session.attempt = self.score(session.chars_typed, elapsed)
        store = self.book.record(
            session.language, elapsed, session.attempt.percentile, session.attempt.wpm
        )
        return SubmitResult(
            correct=True,
            finished=True,
            outcome=AttemptOutcome(attempt=session.attempt, store=store),
        )

    def score(self, chars_typed: int, elapsed_seconds: float) -> Attempt:
        """Compute speed and percentile for a finished run."""
        wpm = self.model.words_per_minute(chars_typed, elapsed_seconds)
        percentile = self.model.percentile_for_wpm(wpm)
        return Attempt(chars_typed=chars_typed, elapsed_seconds=elapsed_seconds, wpm=wpm, percentile=percentile)

    def report_attempt(self, language: str, chars_typed: int, elapsed_seconds: float) -> AttemptOutcome:
        """Score a completed run and record it in the language's leaderboard."""
        attempt = self.score(chars_typed, elapsed_seconds)
        store = self.book.record(language, elapsed_seconds, attempt.percentile, attempt.wpm)
        return AttemptOutcome(attempt=attempt, store=store)

    def records(self, language: str) -> RecordStore:
        """Return one language's leaderboard."""
        return self.book.load(language)

    def reset_records(self, language: str) -> None:
        """Delete one language's leaderboard."""
        self.book.clear(language)

    def reset_all_records(self) -> list[str]:
        """Delete every language's leaderboard."""
        return self.book.clear_all()

    def close(self) -> None:
        """Close resources."""
        self.progress.close()

    def __del__(self) -> None:  # pragma: no cover
        """Best-effort cleanup for test/process teardown."""
        try:
            self.close()
        except Exception:
            pass


def _environment_locales() -> list[str]:
    """Locale names from the usual POSIX environment variables."""
    values: list[str] = []
    for name in _LOCALE_ENV_VARS:
        raw = os.environ.get(name, "")
        values.extend(part for part in raw.split(":") if part)
    return values
