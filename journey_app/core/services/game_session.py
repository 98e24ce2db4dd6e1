"""Service for managing one player's quiz from registration to results."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum, auto
import logging
import random
from uuid import uuid4

from journey_app.constants.quiz_constants import (
    MAX_VERIFICATION_ATTEMPTS,
    PENANCE_PRAYER_COUNT,
    SECURITY_CODE_LENGTH,
)
from journey_app.core.models import (
    GameSession,
    PlayerRegistration,
    Question,
    QuestionAnswer,
    ScoreBreakdown,
    ScoreResult,
    utcnow,
)
from journey_app.core.question_selector import select_questions
from journey_app.core.scoring import (
    DEFAULT_SCORING_CONFIG,
    ScoringConfig,
    build_score_result,
    calculate_scores,
)
from journey_app.core.services.session_store import SaveResult

logger = logging.getLogger(__name__)


class SessionStateError(RuntimeError):
    """Raised when an operation does not fit the session's current stage."""


class SessionStage(Enum):
    IN_PROGRESS = auto()
    AWAITING_VERIFICATION = auto()
    LOCKED_OUT = auto()
    UNLOCKED = auto()


class VerificationStatus(Enum):
    VERIFIED = "verified"
    RETRY = "retry"
    LOCKED_OUT = "locked_out"


@dataclass(frozen=True, slots=True)
class VerificationOutcome:
    status: VerificationStatus
    attempts_remaining: int


class GameSessionContext:
    """Single-owner state for one player's run through the quiz.

    Holds the player's private shuffled question subset and answer list.
    Nothing here is shared with other sessions.
    """

    def __init__(
        self,
        registration: PlayerRegistration,
        questions: Sequence[Question],
        config: ScoringConfig = DEFAULT_SCORING_CONFIG,
    ) -> None:
        if not questions:
            raise ValueError("A session needs at least one question.")
        self.session_id: str = uuid4().hex
        self._registration = registration
        self._questions: list[Question] = list(questions)
        self._config = config
        self._answers: list[QuestionAnswer] = []
        self._question_times: list[int] = []
        self._stage = SessionStage.IN_PROGRESS

        self._failed_attempts: int = 0
        self._code_verified: bool = False
        self._prayers: list[bool] = [False] * PENANCE_PRAYER_COUNT
        self._penance_completed: bool = False

        self._record: GameSession | None = None
        self._save_in_progress: bool = False
        self._save_result: SaveResult | None = None

    @classmethod
    def start_session(
        cls,
        registration: PlayerRegistration,
        pool: Sequence[Question],
        config: ScoringConfig = DEFAULT_SCORING_CONFIG,
        rng: random.Random | None = None,
    ) -> "GameSessionContext":
        """Draw this player's questions from ``pool`` and open the session."""
        questions = select_questions(pool, config.quiz_length, rng)
        session = cls(registration, questions, config)
        logger.info(
            "Session %s started for %s (%s)",
            session.session_id,
            registration.player_name,
            registration.player_location,
        )
        return session

    # --- Quiz progress ---

    @property
    def registration(self) -> PlayerRegistration:
        return self._registration

    @property
    def stage(self) -> SessionStage:
        return self._stage

    def get_questions(self) -> list[Question]:
        return list(self._questions)

    def get_question_times(self) -> list[int]:
        return list(self._question_times)

    def get_current_index(self) -> int:
        return len(self._answers)

    def get_question_count(self) -> int:
        return len(self._questions)

    def get_current_question(self) -> Question | None:
        index = self.get_current_index()
        if index < len(self._questions):
            return self._questions[index]
        return None

    def is_quiz_complete(self) -> bool:
        return len(self._answers) >= len(self._questions)

    def record_answer(self, selected_option: str | None, time_spent_seconds: int) -> QuestionAnswer:
        """Record the answer to the current question.

        ``None`` means the timer ran out, which always counts as the full limit.
        """
        question = self.get_current_question()
        if self._stage is not SessionStage.IN_PROGRESS or question is None:
            raise SessionStateError("All questions have already been answered.")
        if selected_option is not None and selected_option not in question.options:
            raise ValueError(f"'{selected_option}' is not an option of question {question.id}.")

        limit = self._config.time_limit_seconds
        if selected_option is None:
            time_spent = limit
        else:
            time_spent = min(max(int(time_spent_seconds), 0), limit)
        answer = QuestionAnswer(
            question_id=question.id,
            selected_option=selected_option,
            is_correct=question.is_correct(selected_option),
            time_spent_seconds=time_spent,
        )
        self._answers.append(answer)
        self._question_times.append(time_spent)

        if self.is_quiz_complete():
            self._stage = SessionStage.AWAITING_VERIFICATION
        return answer

    # --- Verification gate ---

    def get_attempts_remaining(self) -> int:
        return max(0, MAX_VERIFICATION_ATTEMPTS - self._failed_attempts)

    def verify_code(self, entered_code: str) -> VerificationOutcome:
        if self._stage is SessionStage.IN_PROGRESS:
            raise SessionStateError("Finish the quiz before verifying your code.")
        if self._stage is SessionStage.LOCKED_OUT:
            raise SessionStateError("No verification attempts left; complete the penance instead.")
        if self._stage is SessionStage.UNLOCKED:
            return VerificationOutcome(VerificationStatus.VERIFIED, self.get_attempts_remaining())

        code = entered_code.strip()
        if len(code) != SECURITY_CODE_LENGTH or not code.isdigit():
            raise ValueError(f"Please enter a {SECURITY_CODE_LENGTH}-digit code")

        if code == self._registration.security_code:
            self._code_verified = True
            self._stage = SessionStage.UNLOCKED
            return VerificationOutcome(VerificationStatus.VERIFIED, self.get_attempts_remaining())

        self._failed_attempts += 1
        if self.get_attempts_remaining() == 0:
            self._stage = SessionStage.LOCKED_OUT
            logger.info("Session %s locked out after %d failed attempts", self.session_id, self._failed_attempts)
            return VerificationOutcome(VerificationStatus.LOCKED_OUT, 0)
        return VerificationOutcome(VerificationStatus.RETRY, self.get_attempts_remaining())

    # --- Penance flow ---

    def get_prayers(self) -> list[bool]:
        return list(self._prayers)

    def acknowledge_prayer(self, index: int) -> list[bool]:
        """Toggle the checkbox for prayer ``index`` and return all states."""
        if self._stage not in (SessionStage.AWAITING_VERIFICATION, SessionStage.LOCKED_OUT):
            raise SessionStateError("Penance is only available while the results are locked.")
        if not 0 <= index < len(self._prayers):
            raise ValueError(f"Prayer index must be between 0 and {len(self._prayers) - 1}.")
        self._prayers[index] = not self._prayers[index]
        return self.get_prayers()

    def complete_penance(self) -> None:
        if self._stage not in (SessionStage.AWAITING_VERIFICATION, SessionStage.LOCKED_OUT):
            raise SessionStateError("Penance is only available while the results are locked.")
        if not all(self._prayers):
            remaining = self._prayers.count(False)
            raise SessionStateError(f"{remaining} prayer(s) still to complete.")
        self._penance_completed = True
        self._stage = SessionStage.UNLOCKED

    def can_view_results(self) -> bool:
        return self._stage is SessionStage.UNLOCKED and (self._code_verified or self._penance_completed)

    # --- Completion ---

    def complete_session(self, completed_at: datetime | None = None) -> GameSession:
        """Score the quiz and freeze it into a ``GameSession`` record.

        The record is built once; later calls return the same object.
        """
        if self._record is not None:
            return self._record
        if not self.can_view_results():
            raise SessionStateError("Verify your security code or complete the penance first.")

        if completed_at is None:
            completed_at = utcnow()
        elif completed_at.tzinfo is None:
            # Leaderboard sorting compares timestamps, so they must all be aware.
            completed_at = completed_at.replace(tzinfo=timezone.utc)

        breakdown = calculate_scores(self._answers, self._question_times, self._config)
        self._record = GameSession(
            player_name=self._registration.player_name,
            player_location=self._registration.player_location,
            security_code=self._registration.security_code,
            questions_answered=tuple(self._answers),
            accuracy_score=breakdown.accuracy_score,
            time_bonus_score=breakdown.time_bonus_score,
            final_score=breakdown.final_score,
            completion_timestamp=completed_at,
            total_time_seconds=sum(self._question_times),
        )
        logger.info(
            "Session %s completed by %s with final score %.2f",
            self.session_id,
            self._registration.player_name,
            breakdown.final_score,
        )
        return self._record

    def get_score_result(self) -> ScoreResult:
        record = self.complete_session()
        breakdown = ScoreBreakdown(
            accuracy_score=record.accuracy_score,
            time_bonus_score=record.time_bonus_score,
            final_score=record.final_score,
        )
        return build_score_result(breakdown, self._answers, record.completion_timestamp)

    # --- Persistence bookkeeping ---

    def claim_save(self) -> bool:
        """Return True if the caller should persist the record now.

        A successful save is never repeated; a failed one may be retried.
        """
        if self._record is None:
            raise SessionStateError("Session has not been completed yet.")
        if self._save_in_progress:
            return False
        if self._save_result is not None and self._save_result.success:
            return False
        self._save_in_progress = True
        return True

    def finish_save(self, result: SaveResult) -> None:
        self._save_in_progress = False
        self._save_result = result

    def get_save_result(self) -> SaveResult | None:
        return self._save_result
