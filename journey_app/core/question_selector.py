"""Draws a quiz-sized subset of questions and shuffles their options."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import replace
import random

from journey_app.core.models import Question
from journey_app.core.shuffle import shuffled


class InsufficientPoolError(ValueError):
    """Raised when the pool cannot supply the requested number of questions."""


def shuffle_question_options(question: Question, rng: random.Random | None = None) -> Question:
    """Return a copy of ``question`` with its options in a new random order.

    The correct option is stored by value, so it stays valid whatever position
    it lands in.
    """
    return replace(question, options=tuple(shuffled(question.options, rng)))


def select_questions(
    pool: Sequence[Question],
    count: int,
    rng: random.Random | None = None,
) -> list[Question]:
    """Pick ``count`` distinct questions from ``pool`` with shuffled options."""
    if count < 0:
        raise ValueError("Question count must not be negative.")
    if not pool:
        raise InsufficientPoolError("Question pool is empty.")
    if count > len(pool):
        raise InsufficientPoolError(
            f"Requested {count} questions but the pool only holds {len(pool)}."
        )

    for question in pool:
        question.validate()

    selected = shuffled(pool, rng)[:count]
    return [shuffle_question_options(question, rng) for question in selected]
