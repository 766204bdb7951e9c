"""Deterministic daily passage schedule.

The pool is treated as an endless stream consumed three passages per day
since a fixed epoch. Each full pass over the pool (a deck) is a fresh
permutation seeded by language and deck number, so the schedule is the same
for every player and never needs to be stored.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import UTC, date, datetime
from zoneinfo import ZoneInfo

from .models import DailySelection
from .prng import SeededRandom

logger = logging.getLogger(__name__)

EPOCH = date(2025, 1, 1)
PASSAGES_PER_DAY = 3
REFERENCE_TIMEZONE = "Asia/Seoul"
PLACEHOLDER_PASSAGE = "No quotes available."

DayLike = date | datetime | str


def shuffle_indices(pool_size: int, seed: str) -> list[int]:
    """Return a seeded Fisher-Yates permutation of ``range(pool_size)``."""
    if pool_size < 0:
        raise ValueError(f"Pool size must be non-negative, got {pool_size}.")
    indices = list(range(pool_size))
    if pool_size <= 1:
        return indices

    rng = SeededRandom(seed)
    for i in range(pool_size - 1, 0, -1):
        j = int(rng.random() * (i + 1))
        indices[i], indices[j] = indices[j], indices[i]
    return indices


def deck_seed(language: str, deck_index: int) -> str:
    """Seed string for one pass over a language's pool."""
    return f"{language}_deck_{deck_index}"


def _as_date(value: DayLike) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(value.strip())


def days_since_epoch(today: DayLike, epoch: date = EPOCH) -> int:
    """Whole days from ``epoch`` to ``today``; days before the epoch count as day 0."""
    days = (_as_date(today) - epoch).days
    return days if days >= 0 else 0


def passage_at(pool: Sequence[str], language: str, global_index: int) -> str:
    """Return the passage at one position of the endless deck stream."""
    total = len(pool)
    if total == 0:
        return PLACEHOLDER_PASSAGE
    if global_index < 0:
        raise ValueError(f"Global index must be non-negative, got {global_index}.")
    deck_index, local_index = divmod(global_index, total)
    permutation = shuffle_indices(total, deck_seed(language, deck_index))
    return pool[permutation[local_index]]


def select_daily_passages(pool: Sequence[str], language: str, today: DayLike) -> tuple[str, str, str]:
    """Return the ordered three passages for ``language`` on ``today``."""
    if not pool:
        logger.warning("Quote pool for %r is empty; using placeholder passages.", language)
        return (PLACEHOLDER_PASSAGE, PLACEHOLDER_PASSAGE, PLACEHOLDER_PASSAGE)
    start = days_since_epoch(today) * PASSAGES_PER_DAY
    first, second, third = (passage_at(pool, language, start + offset) for offset in range(PASSAGES_PER_DAY))
    return (first, second, third)


def daily_selection(pool: Sequence[str], language: str, today: DayLike) -> DailySelection:
    """Compute today's selection along with its position in the stream."""
    day = _as_date(today)
    day_index = days_since_epoch(day)
    passages = select_daily_passages(pool, language, day)
    logger.debug(
        "Selected passages for %s on %s (day %d, stream index %d, pool size %d).",
        language,
        day.isoformat(),
        day_index,
        day_index * PASSAGES_PER_DAY,
        len(pool),
    )
    return DailySelection(
        day=day,
        language=language,
        day_index=day_index,
        global_start_index=day_index * PASSAGES_PER_DAY,
        passages=passages,
    )


def today_in_zone(zone: str = REFERENCE_TIMEZONE, now: datetime | None = None) -> date:
    """Return the wall-clock date in ``zone``; naive ``now`` values are read as UTC."""
    tz = ZoneInfo(zone)
    if now is None:
        return datetime.now(tz).date()
    if now.tzinfo is None:
        now = now.replace(tzinfo=UTC)
    return now.astimezone(tz).date()
