"""Seeded pseudo-random number generator for synthetic school data.

The generator is a small 32-bit integer mixer (a mulberry32 variant whose
state is carried through the mix).  It is chosen for speed and for producing
the same stream on every host, not for unpredictability.  Every helper
consumes draws from the same stream, so the order in which generators call
it is part of the output contract.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TypeVar

T = TypeVar("T")

_MASK32 = 0xFFFFFFFF
_GOLDEN = 0x6D2B79F5
_TWO_32 = 4294967296.0

DEFAULT_SEED = 100000


def _imul(a: int, b: int) -> int:
    """32-bit integer multiply, wrapping like C ``uint32_t``."""
    return (a * b) & _MASK32


def seed_from_urn(urn: str | None, fallback: int | None = None) -> int:
    """Derive the integer seed for a school.

    The URN is used when it is purely numeric; otherwise *fallback* (the
    record's sequential id) is used, and :data:`DEFAULT_SEED` as a last resort.
    """
    if urn is not None:
        digits = urn.strip()
        if digits.isdigit():
            return int(digits)
    if fallback is not None:
        return fallback
    return DEFAULT_SEED


class SeededRandom:
    """Deterministic random stream keyed by an integer seed.

    Parameters
    ----------
    seed:
        Integer key, normally the school's URN.
    """

    def __init__(self, seed: int) -> None:
        self.seed = seed
        self._state = ((seed & _MASK32) + _GOLDEN) & _MASK32
        self.draws = 0

    def next(self) -> float:
        """Return the next float in ``[0, 1)``."""
        t = self._state
        t = _imul(t ^ (t >> 15), t | 1)
        t ^= (t + _imul(t ^ (t >> 7), t | 61)) & _MASK32
        self._state = t
        self.draws += 1
        return ((t ^ (t >> 14)) & _MASK32) / _TWO_32

    def next_int(self, lo: int, hi: int) -> int:
        """Return an integer in ``[lo, hi]`` (both inclusive)."""
        return int(self.next() * (hi - lo + 1)) + lo

    def next_float(self, lo: float, hi: float, decimals: int = 1) -> float:
        """Return a float between *lo* and *hi* rounded to *decimals* places."""
        return round(self.next() * (hi - lo) + lo, decimals)

    def pick(self, items: Sequence[T]) -> T:
        """Return a uniformly chosen element of *items*."""
        return items[int(self.next() * len(items))]

    def weighted_pick(self, items: Sequence[T], weights: Sequence[float]) -> T:
        """Return an element of *items* chosen with the given relative *weights*.

        Consumes exactly one draw.
        """
        if len(items) != len(weights):
            raise ValueError("items and weights must be the same length")
        target = self.next() * sum(weights)
        cumulative = 0.0
        for item, weight in zip(items, weights):
            cumulative += weight
            if target < cumulative:
                return item
        return items[-1]

    def __repr__(self) -> str:
        return f"<SeededRandom(seed={self.seed}, draws={self.draws})>"
