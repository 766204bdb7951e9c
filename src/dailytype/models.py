"""Value types shared by the scheduler, skill model, and session service."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date


@dataclass(frozen=True)
class DailySelection:
    """The passages every player of one language sees on one day."""

    day: date
    language: str
    day_index: int
    global_start_index: int
    passages: tuple[str, ...]


@dataclass(frozen=True)
class Attempt:
    """One completed three-stage run."""

    chars_typed: int
    elapsed_seconds: float
    wpm: float
    percentile: float
