from __future__ import annotations

import random

import pytest

from journey_app.core.models import PlayerRegistration, Question
from journey_app.core.quiz_manager import QuizManager
from journey_app.core.services.question_pool import QuestionPool
from journey_app.core.services.session_store import InMemorySessionStore


def make_question(question_id: int, correct_index: int = 2) -> Question:
    options = tuple(f"Option {question_id}-{letter}" for letter in "ABCD")
    return Question(
        id=question_id,
        level=question_id,
        event=f"Event {question_id}",
        question_text=f"Question number {question_id}?",
        options=options,
        correct_option=options[correct_index],
        reference=f"Matthew {question_id}:1",
        explanation=f"Explanation {question_id}",
    )


@pytest.fixture
def question_pool() -> list[Question]:
    return [make_question(i) for i in range(1, 21)]


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1234)


@pytest.fixture
def registration() -> PlayerRegistration:
    return PlayerRegistration(
        player_name="Mary Magdalene",
        player_location="Kerala",
        security_code="123456",
    )


@pytest.fixture
def store() -> InMemorySessionStore:
    return InMemorySessionStore()


@pytest.fixture
def manager(question_pool, store, rng) -> QuizManager:
    return QuizManager(pool=QuestionPool(question_pool), store=store, rng=rng)
