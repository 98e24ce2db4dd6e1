"""Score calculation for completed quizzes.

Scoring formula:

- Accuracy: ``round(correct / denominator * 1000)``. The denominator is the
  fixed quiz length by default; ``AccuracyDenominator.ANSWERS_RECORDED``
  switches it to the number of answers actually supplied.
- Time bonus: every question is worth up to 500 points, decreasing linearly
  from the full amount at 0 seconds to nothing at the 30 second limit.
- Final score: accuracy plus the *unrounded* time bonus, rounded to two
  decimals, so fractional bonus still separates close results before the
  completion timestamp has to.

All rounding is half-up.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
import math

from journey_app.constants.quiz_constants import (
    MAX_ACCURACY_POINTS,
    MAX_TIME_BONUS_PER_QUESTION,
    QUESTION_TIME_LIMIT_SECONDS,
    QUIZ_LENGTH,
)
from journey_app.core.models import QuestionAnswer, ScoreBreakdown, ScoreResult


class AccuracyDenominator(Enum):
    """Which count the accuracy ratio divides by."""

    QUIZ_LENGTH = "quiz_length"
    ANSWERS_RECORDED = "answers_recorded"


@dataclass(frozen=True, slots=True)
class ScoringConfig:
    quiz_length: int = QUIZ_LENGTH
    time_limit_seconds: int = QUESTION_TIME_LIMIT_SECONDS
    max_accuracy_points: int = MAX_ACCURACY_POINTS
    max_bonus_per_question: int = MAX_TIME_BONUS_PER_QUESTION
    accuracy_denominator: AccuracyDenominator = AccuracyDenominator.QUIZ_LENGTH

    def __post_init__(self) -> None:
        if self.quiz_length <= 0:
            raise ValueError("Quiz length must be a positive integer.")
        if self.time_limit_seconds <= 0:
            raise ValueError("Time limit must be a positive integer.")

    @property
    def bonus_rate(self) -> float:
        """Points earned per second left on the clock."""
        return self.max_bonus_per_question / self.time_limit_seconds


DEFAULT_SCORING_CONFIG = ScoringConfig()


def round_half_up(value: float, digits: int = 0) -> float:
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def time_bonus_for(time_spent: float, config: ScoringConfig = DEFAULT_SCORING_CONFIG) -> float:
    """Unrounded bonus for a single question."""
    limit = config.time_limit_seconds
    time_left = min(max(limit - time_spent, 0), limit)
    return time_left * config.bonus_rate


def calculate_scores(
    answers: Sequence[QuestionAnswer],
    question_times: Sequence[float],
    config: ScoringConfig = DEFAULT_SCORING_CONFIG,
) -> ScoreBreakdown:
    """Compute accuracy, time bonus and final score for one session."""
    processed_answers = list(answers)[: config.quiz_length]
    processed_times = list(question_times)[: config.quiz_length]

    correct_answers = sum(1 for answer in processed_answers if answer.is_correct)
    if config.accuracy_denominator is AccuracyDenominator.QUIZ_LENGTH:
        denominator = config.quiz_length
    else:
        denominator = len(processed_answers)

    accuracy_score = 0
    if denominator:
        accuracy_score = int(
            round_half_up(correct_answers / denominator * config.max_accuracy_points)
        )

    raw_time_bonus = sum(time_bonus_for(spent, config) for spent in processed_times)
    final_score = round_half_up(accuracy_score + raw_time_bonus, 2)

    return ScoreBreakdown(
        accuracy_score=accuracy_score,
        time_bonus_score=int(round_half_up(raw_time_bonus)),
        final_score=final_score,
    )


def accuracy_percentage(answers: Sequence[QuestionAnswer]) -> float:
    """Share of supplied answers that were correct, 0-100 with two decimals."""
    if not answers:
        return 0.0
    correct = sum(1 for answer in answers if answer.is_correct)
    return round_half_up(correct / len(answers) * 100, 2)


def build_score_result(
    breakdown: ScoreBreakdown,
    answers: Sequence[QuestionAnswer],
    completion_timestamp: datetime,
) -> ScoreResult:
    return ScoreResult(
        accuracy_points=breakdown.accuracy_score,
        time_bonus_points=breakdown.time_bonus_score,
        total_score=breakdown.final_score,
        accuracy_percentage=accuracy_percentage(answers),
        completion_timestamp=completion_timestamp,
    )


def format_score_breakdown(result: ScoreResult) -> dict[str, str]:
    return {
        "accuracy": f"{result.accuracy_points:.2f}",
        "time_bonus": f"{result.time_bonus_points:.2f}",
        "total": f"{result.total_score:.2f}",
        "accuracy_percentage": f"{result.accuracy_percentage:.1f}%",
    }
