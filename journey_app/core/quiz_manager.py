"""Business logic for running quiz sessions shared by the API layer."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
import logging
import random
from threading import Lock

from journey_app.constants.quiz_constants import LEADERBOARD_DEFAULT_LIMIT, SESSION_MAX_AGE_MINUTES
from journey_app.core.models import GameSession, Question, QuestionAnswer, ScoreResult, utcnow
from journey_app.core.registration import register_player
from journey_app.core.scoring import DEFAULT_SCORING_CONFIG, ScoringConfig
from journey_app.core.services.game_session import (
    GameSessionContext,
    VerificationOutcome,
)
from journey_app.core.services.question_pool import QuestionPool
from journey_app.core.services.session_store import (
    InMemorySessionStore,
    LeaderboardResult,
    SaveResult,
    SessionStore,
    fetch_leaderboard,
    save_game_session,
)

logger = logging.getLogger(__name__)


class UnknownSessionError(KeyError):
    """Raised when a session id does not refer to an active session."""


@dataclass(frozen=True, slots=True)
class SessionProgress:
    question: Question | None
    question_index: int
    question_count: int

    @property
    def quiz_complete(self) -> bool:
        return self.question is None


@dataclass(frozen=True, slots=True)
class AnswerFeedback:
    answer: QuestionAnswer
    question: Question
    quiz_complete: bool


@dataclass(frozen=True, slots=True)
class SessionResults:
    record: GameSession
    score: ScoreResult
    save: SaveResult | None


class QuizManager:
    """Facade over the question pool, active sessions and the session store.

    A session is dropped once its record has been saved. Sessions that are
    never finished are dropped when they outlive ``max_session_age``.
    """

    def __init__(
        self,
        pool: QuestionPool,
        store: SessionStore | None = None,
        config: ScoringConfig = DEFAULT_SCORING_CONFIG,
        rng: random.Random | None = None,
        max_session_age: timedelta = timedelta(minutes=SESSION_MAX_AGE_MINUTES),
    ) -> None:
        self._lock = Lock()
        self._pool = pool
        self._store: SessionStore = store if store is not None else InMemorySessionStore()
        self._config = config
        self._rng = rng or random.Random()
        self._max_session_age = max_session_age
        self._sessions: dict[str, GameSessionContext] = {}

    @property
    def config(self) -> ScoringConfig:
        return self._config

    # --- Session lifecycle ---

    def start_session(self, player_name: str, player_location: str) -> GameSessionContext:
        with self._lock:
            self._drop_expired_sessions()
            registration = register_player(player_name, player_location, self._rng)
            session = GameSessionContext.start_session(
                registration,
                self._pool.get_questions(),
                self._config,
                self._rng,
            )
            self._sessions[session.session_id] = session
            return session

    def get_session(self, session_id: str) -> GameSessionContext:
        with self._lock:
            return self._get_session(session_id)

    def reset_session(self, session_id: str) -> None:
        with self._lock:
            self._get_session(session_id)
            del self._sessions[session_id]

    def get_active_session_count(self) -> int:
        with self._lock:
            return len(self._sessions)

    # --- Quiz progress ---

    def get_current_question(self, session_id: str) -> Question | None:
        with self._lock:
            return self._get_session(session_id).get_current_question()

    def get_progress(self, session_id: str) -> SessionProgress:
        with self._lock:
            session = self._get_session(session_id)
            return SessionProgress(
                question=session.get_current_question(),
                question_index=session.get_current_index(),
                question_count=session.get_question_count(),
            )

    def submit_answer(
        self,
        session_id: str,
        selected_option: str | None,
        time_spent_seconds: int,
    ) -> AnswerFeedback:
        """Record an answer and return it with the question it belongs to."""
        with self._lock:
            session = self._get_session(session_id)
            question = session.get_current_question()
            answer = session.record_answer(selected_option, time_spent_seconds)
            return AnswerFeedback(
                answer=answer,
                question=question,
                quiz_complete=session.is_quiz_complete(),
            )

    # --- Verification & penance ---

    def verify_code(self, session_id: str, entered_code: str) -> VerificationOutcome:
        with self._lock:
            return self._get_session(session_id).verify_code(entered_code)

    def acknowledge_prayer(self, session_id: str, index: int) -> list[bool]:
        with self._lock:
            return self._get_session(session_id).acknowledge_prayer(index)

    def complete_penance(self, session_id: str) -> None:
        with self._lock:
            self._get_session(session_id).complete_penance()

    # --- Results & leaderboard ---

    async def finish_session(self, session_id: str) -> SessionResults:
        """Score the session and persist it once.

        A failed save does not raise; it is reported in ``SessionResults.save``
        and a later call retries it. After a successful save the session is
        released, so its id no longer resolves.
        """
        with self._lock:
            session = self._get_session(session_id)
            record = session.complete_session()
            score = session.get_score_result()
            should_save = session.claim_save()

        if not should_save:
            return SessionResults(record=record, score=score, save=session.get_save_result())

        result = await save_game_session(self._store, record)
        with self._lock:
            session.finish_save(result)
            if result.success:
                self._sessions.pop(session_id, None)
        if not result.success:
            logger.warning("Session %s could not be saved: %s", session_id, result.error)
        return SessionResults(record=record, score=score, save=result)

    async def get_leaderboard(self, limit: int = LEADERBOARD_DEFAULT_LIMIT) -> LeaderboardResult:
        return await fetch_leaderboard(self._store, limit)

    def _drop_expired_sessions(self) -> None:
        cutoff = utcnow() - self._max_session_age
        expired = [
            session_id
            for session_id, session in self._sessions.items()
            if session.registration.registered_at < cutoff
        ]
        for session_id in expired:
            del self._sessions[session_id]
        if expired:
            logger.info("Dropped %d expired session(s)", len(expired))

    def _get_session(self, session_id: str) -> GameSessionContext:
        session = self._sessions.get(session_id)
        if session is None:
            raise UnknownSessionError(session_id)
        return session
