"""Read-only store of the questions every session draws from."""

from __future__ import annotations

from collections.abc import Iterable
import logging
from pathlib import Path

from journey_app.core.models import Question
from journey_app.core.question_importer import load_question_pool

logger = logging.getLogger(__name__)


class QuestionPool:
    """Validated, immutable collection of questions shared by all sessions."""

    def __init__(self, questions: Iterable[Question]) -> None:
        prepared = tuple(questions)
        if not prepared:
            raise ValueError("Question pool must contain at least one question.")
        by_id: dict[int, Question] = {}
        for question in prepared:
            question.validate()
            if question.id in by_id:
                raise ValueError(f"Duplicate question ID {question.id} in pool.")
            by_id[question.id] = question
        self._questions = prepared
        self._by_id = by_id

    @classmethod
    def from_file(cls, file_path: Path | None = None) -> "QuestionPool":
        pool = cls(load_question_pool(file_path))
        logger.info("Loaded %d questions into the pool", len(pool))
        return pool

    def get_questions(self) -> list[Question]:
        """Return a copy of all questions in file order."""
        return list(self._questions)

    def get_question(self, question_id: int) -> Question:
        try:
            return self._by_id[question_id]
        except KeyError:
            raise KeyError(f"Unknown question ID {question_id}") from None

    def __len__(self) -> int:
        return len(self._questions)
