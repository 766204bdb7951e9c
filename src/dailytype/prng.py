"""String-seeded Mulberry32 generator shared by every client of the daily schedule."""

from __future__ import annotations

from collections.abc import Callable, Iterator

UINT32_MASK = 0xFFFFFFFF
UINT32_SCALE = 4294967296.0
SEED_BASIS = 0xDEADBEEF
SEED_MULTIPLIER = 2654435761
MULBERRY_INCREMENT = 0x6D2B79F5


def _imul(a: int, b: int) -> int:
    """Multiply two 32-bit values with wraparound, returning the unsigned result."""
    return (a * b) & UINT32_MASK


def hash_seed(seed: str) -> int:
    """Fold a seed string into a 32-bit generator state."""
    state = SEED_BASIS
    for char in seed:
        state = _imul(state ^ ord(char), SEED_MULTIPLIER)
    return state


class SeededRandom:
    """Deterministic stream of floats in [0, 1) derived from a string seed.

    Each instance owns its state; build a new instance to restart the stream.
    """

    def __init__(self, seed: str) -> None:
        self.seed = seed
        self._state = hash_seed(seed)

    @property
    def state(self) -> int:
        return self._state

    def random(self) -> float:
        """Advance one step and return the next value."""
        self._state = (self._state + MULBERRY_INCREMENT) & UINT32_MASK
        h = self._state
        t = _imul(h ^ (h >> 15), 1 | h)
        t = ((t + _imul(t ^ (t >> 7), 61 | t)) & UINT32_MASK) ^ t
        return ((t ^ (t >> 14)) & UINT32_MASK) / UINT32_SCALE

    def __iter__(self) -> Iterator[float]:
        return self

    def __next__(self) -> float:
        return self.random()


def make_generator(seed: str) -> Callable[[], float]:
    """Return a zero-argument callable producing the seed's stream."""
    return SeededRandom(seed).random
