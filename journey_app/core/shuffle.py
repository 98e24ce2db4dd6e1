"""Fisher-Yates shuffling helpers."""

from __future__ import annotations

from collections.abc import Iterable, MutableSequence
import random
from typing import TypeVar

T = TypeVar("T")

_default_rng = random.Random()


def shuffle_in_place(items: MutableSequence[T], rng: random.Random | None = None) -> MutableSequence[T]:
    """Permute ``items`` in place so every ordering is equally likely.

    Walks from the last index down to 1, swapping each element with one drawn
    uniformly from the not-yet-visited prefix (inclusive). Returns ``items``
    for chaining.
    """
    source = rng or _default_rng
    for i in range(len(items) - 1, 0, -1):
        j = source.randint(0, i)
        items[i], items[j] = items[j], items[i]
    return items


def shuffled(items: Iterable[T], rng: random.Random | None = None) -> list[T]:
    """Return a shuffled copy, leaving the caller's sequence untouched."""
    copy = list(items)
    shuffle_in_place(copy, rng)
    return copy
