"""Words-per-minute and "top N%" ranking from a fixed normal model."""

from __future__ import annotations

import math
from dataclasses import dataclass

# Abramowitz & Stegun 7.1.26
_A1 = 0.254829592
_A2 = -0.284496736
_A3 = 1.421413741
_A4 = -1.453152027
_A5 = 1.061405429
_P = 0.3275911


class DomainError(ValueError):
    """Raised when inputs cannot produce a finite speed or percentile."""


def erf(x: float) -> float:
    """Approximate the error function (max absolute error about 1.5e-7)."""
    if x == 0:
        return 0.0
    sign = 1.0 if x > 0 else -1.0
    x = abs(x)
    t = 1.0 / (1.0 + _P * x)
    y = 1.0 - (((((_A5 * t + _A4) * t) + _A3) * t + _A2) * t + _A1) * t * math.exp(-x * x)
    return sign * y


def normal_cdf(x: float, mean: float, stddev: float) -> float:
    """Probability that a normal(mean, stddev) sample is below ``x``."""
    return 0.5 * (1.0 + erf((x - mean) / (stddev * math.sqrt(2.0))))


@dataclass(frozen=True)
class SkillModel:
    """Calibration of the typing-speed distribution.

    The defaults are a provisional guess at a population average, not a
    measured one; pass a different model to recalibrate.
    """

    mean_wpm: float = 40.0
    stddev_wpm: float = 15.0
    chars_per_word: int = 5
    floor: float = 0.01
    ceiling: float = 99.9

    def __post_init__(self) -> None:
        if not self.stddev_wpm > 0:
            raise ValueError("stddev_wpm must be positive.")
        if self.chars_per_word <= 0:
            raise ValueError("chars_per_word must be positive.")
        if not 0 <= self.floor <= self.ceiling <= 100:
            raise ValueError("Percentile bounds must satisfy 0 <= floor <= ceiling <= 100.")

    def words_per_minute(self, chars_typed: int, elapsed_seconds: float) -> float:
        """Convert characters over time into words per minute."""
        if isinstance(chars_typed, bool) or not isinstance(chars_typed, int):
            raise DomainError(f"Character count must be an integer, got {chars_typed!r}.")
        if chars_typed < 0:
            raise DomainError(f"Character count must be non-negative, got {chars_typed}.")
        if not math.isfinite(elapsed_seconds) or elapsed_seconds <= 0:
            raise DomainError(f"Elapsed time must be a positive finite number, got {elapsed_seconds!r}.")
        return (chars_typed / self.chars_per_word) / (elapsed_seconds / 60.0)

    def percentile_for_wpm(self, wpm: float) -> float:
        """Return the "top N%" figure for a speed; faster means a smaller number."""
        if not math.isfinite(wpm):
            raise DomainError(f"Words per minute must be finite, got {wpm!r}.")
        cdf = normal_cdf(wpm, self.mean_wpm, self.stddev_wpm)
        top_percent = (1.0 - cdf) * 100.0
        return min(max(top_percent, self.floor), self.ceiling)

    def percentile_for(self, chars_typed: int, elapsed_seconds: float) -> float:
        """Rank one attempt from its raw character count and duration."""
        return self.percentile_for_wpm(self.words_per_minute(chars_typed, elapsed_seconds))


DEFAULT_MODEL = SkillModel()


def words_per_minute(chars_typed: int, elapsed_seconds: float) -> float:
    """Words per minute under the default model."""
    return DEFAULT_MODEL.words_per_minute(chars_typed, elapsed_seconds)


def percentile_for_wpm(wpm: float) -> float:
    """Percentile for a speed under the default model."""
    return DEFAULT_MODEL.percentile_for_wpm(wpm)


def percentile_for(chars_typed: int, elapsed_seconds: float) -> float:
    """Percentile for one attempt under the default model."""
    return DEFAULT_MODEL.percentile_for(chars_typed, elapsed_seconds)
