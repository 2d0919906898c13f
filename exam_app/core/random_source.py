"""Seedable randomness used for question sampling and id generation."""

from __future__ import annotations

import random
from typing import TypeVar

T = TypeVar("T")


class RandomSource:
    """Wraps a `random.Random` so tests can fix shuffles and ids.

    Without a seed the operating system's generator is used, which keeps
    question ids unguessable in production.
    """

    def __init__(self, seed: int | None = None) -> None:
        self._rng: random.Random = random.SystemRandom() if seed is None else random.Random(seed)

    def shuffled(self, items: list[T]) -> list[T]:
        """Return a uniformly shuffled copy of `items`."""
        copy = list(items)
        self._rng.shuffle(copy)
        return copy

    def token_hex(self, nbytes: int) -> str:
        value = self._rng.getrandbits(nbytes * 8)
        return f"{value:0{nbytes * 2}x}"
