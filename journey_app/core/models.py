"""Domain models for the quiz service."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone


def utcnow() -> datetime:
    """Return the current UTC time with timezone info."""
    return datetime.now(timezone.utc)


class InvalidQuestionError(ValueError):
    """Raised when a question record violates the pool invariants."""


@dataclass(frozen=True, slots=True)
class Question:
    """Multiple-choice question whose correct answer is tracked by value."""

    id: int
    level: int
    event: str
    question_text: str
    options: tuple[str, ...]
    correct_option: str
    reference: str
    explanation: str = ""

    def validate(self) -> None:
        """Raise ``InvalidQuestionError`` if the record is malformed."""
        if not self.question_text.strip():
            raise InvalidQuestionError(f"Question {self.id} has no prompt text.")
        if len(self.options) < 2:
            raise InvalidQuestionError(f"Question {self.id} needs at least two options.")
        if any(not option.strip() for option in self.options):
            raise InvalidQuestionError(f"Question {self.id} has an empty option.")
        if len(set(self.options)) != len(self.options):
            raise InvalidQuestionError(f"Question {self.id} has duplicate options.")
        if self.correct_option not in self.options:
            raise InvalidQuestionError(
                f"Question {self.id}: correct option '{self.correct_option}' is not among its options."
            )

    def is_correct(self, selected_option: str | None) -> bool:
        return selected_option is not None and selected_option == self.correct_option


@dataclass(frozen=True, slots=True)
class QuestionAnswer:
    """One answered (or timed out) question. ``selected_option`` is None on timeout."""

    question_id: int
    selected_option: str | None
    is_correct: bool
    time_spent_seconds: int


@dataclass(frozen=True, slots=True)
class ScoreBreakdown:
    """Raw output of the score calculator."""

    accuracy_score: int
    time_bonus_score: int
    final_score: float


@dataclass(frozen=True, slots=True)
class ScoreResult:
    """Score breakdown enriched with display data for a completed session."""

    accuracy_points: int
    time_bonus_points: int
    total_score: float
    accuracy_percentage: float
    completion_timestamp: datetime


@dataclass(frozen=True, slots=True)
class GameSession:
    """Persisted record of a finished quiz. Never mutated after creation."""

    player_name: str
    player_location: str
    security_code: str
    questions_answered: tuple[QuestionAnswer, ...]
    accuracy_score: int
    time_bonus_score: int
    final_score: float
    completion_timestamp: datetime
    total_time_seconds: int


@dataclass(frozen=True, slots=True)
class LeaderboardEntry:
    """Leaderboard row. The rank only exists once a list has been ordered."""

    player_name: str
    player_location: str
    final_score: float
    accuracy_score: int
    time_bonus_score: int
    completion_timestamp: datetime
    rank: int | None = None

    @classmethod
    def from_session(cls, session: GameSession) -> "LeaderboardEntry":
        return cls(
            player_name=session.player_name,
            player_location=session.player_location,
            final_score=session.final_score,
            accuracy_score=session.accuracy_score,
            time_bonus_score=session.time_bonus_score,
            completion_timestamp=session.completion_timestamp,
        )


@dataclass(slots=True)
class PlayerRegistration:
    """Validated player identity handed out at registration."""

    player_name: str
    player_location: str
    security_code: str
    registered_at: datetime = field(default_factory=utcnow)
