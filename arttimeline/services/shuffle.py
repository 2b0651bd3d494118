# arttimeline/services/shuffle.py
"""
Date-seeded deterministic shuffle.

The same day always yields the same permutation, in any process, so repeated
page loads reuse cached artworks while content still rotates daily. The
generator is a fixed linear congruential generator; ``random`` is not used
because its output is not part of a stable contract.
"""
from __future__ import annotations

from datetime import date
from typing import Sequence, TypeVar

T = TypeVar("T")

LCG_MULTIPLIER = 9301
LCG_INCREMENT = 49297
LCG_MODULUS = 233280


def seed_for_date(day: date) -> int:
    """Proleptic Gregorian ordinal of the day: distinct for every calendar date."""
    return day.toordinal()


def lcg_next(state: int) -> int:
    return (state * LCG_MULTIPLIER + LCG_INCREMENT) % LCG_MODULUS


def deterministic_shuffle(items: Sequence[T], seed: int) -> list[T]:
    """Fisher-Yates from the end, each swap index drawn from the LCG."""
    shuffled = list(items)
    state = seed
    for i in range(len(shuffled) - 1, 0, -1):
        state = lcg_next(state)
        j = (state * (i + 1)) // LCG_MODULUS
        shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
    return shuffled
