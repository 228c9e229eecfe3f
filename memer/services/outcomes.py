# memer/services/outcomes.py
from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Callable, Optional, Sequence, Tuple, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class Outcome:
    label: str
    coins: Tuple[int, int]
    xp: int
    weight: float
    item_rarity: Optional[str] = None


def weighted_pick(
    rng: random.Random,
    entries: Sequence[T],
    weight: Callable[[T], float] = lambda e: e.weight,
) -> T:
    """Pick the entry whose cumulative weight boundary first exceeds the draw."""
    total = sum(weight(e) for e in entries)
    if total <= 0:
        raise ValueError("weighted_pick needs a positive total weight")
    point = rng.random() * total
    cumulative = 0.0
    for entry in entries:
        cumulative += weight(entry)
        if point < cumulative:
            return entry
    return entries[-1]


def roll_coins(rng: random.Random, coins: Tuple[int, int]) -> int:
    low, high = coins
    if high <= low:
        return low
    return rng.randint(low, high)
