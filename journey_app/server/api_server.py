"""FastAPI server that exposes the game flow to the browser front end."""

from __future__ import annotations

from datetime import datetime, timezone

from fastapi import Depends, FastAPI, HTTPException
from pydantic import BaseModel, Field
import uvicorn

from journey_app.constants.about import APP_ABOUT_TEXT, APP_LICENSE, APP_NAME, APP_VERSION
from journey_app.constants.network_constants import DEFAULT_HOST, DEFAULT_PORT
from journey_app.constants.quiz_constants import (
    LEADERBOARD_DEFAULT_LIMIT,
    LOCATIONS,
    PENANCE_PRAYER_COUNT,
    PENANCE_PRAYER_TEXT,
)
from journey_app.core.models import LeaderboardEntry
from journey_app.core.quiz_manager import QuizManager, UnknownSessionError
from journey_app.core.registration import RegistrationError
from journey_app.core.scoring import format_score_breakdown
from journey_app.core.services.game_session import SessionStateError


class RegisterPayload(BaseModel):
    """Payload schema for player registration."""

    player_name: str
    player_location: str


class AnswerPayload(BaseModel):
    """Payload schema for submitted answers. A null option means time ran out."""

    selected_option: str | None = None
    time_spent_seconds: int = Field(ge=0)


class VerifyPayload(BaseModel):
    code: str


class PrayerPayload(BaseModel):
    prayer_index: int


def _isoformat(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat()


def _serialize_entry(entry: LeaderboardEntry) -> dict[str, object]:
    return {
        "rank": entry.rank,
        "player_name": entry.player_name,
        "player_location": entry.player_location,
        "final_score": entry.final_score,
        "accuracy_score": entry.accuracy_score,
        "time_bonus_score": entry.time_bonus_score,
        "completion_timestamp": _isoformat(entry.completion_timestamp),
    }


def _get_quiz_manager_dependency(quiz_manager: QuizManager):
    def dependency() -> QuizManager:
        return quiz_manager

    return dependency


def _raise_http(exc: Exception) -> None:
    if isinstance(exc, UnknownSessionError):
        raise HTTPException(status_code=404, detail="Session not found") from exc
    if isinstance(exc, SessionStateError):
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    if isinstance(exc, ValueError):
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    raise exc


def create_api_app(quiz_manager: QuizManager) -> FastAPI:
    """Create a FastAPI application wired to the provided quiz manager."""
    app = FastAPI(
        title=f"{APP_NAME} API",
        version=APP_VERSION,
        description=APP_ABOUT_TEXT,
        license_info={"name": APP_LICENSE},
    )
    quiz_manager_dep = _get_quiz_manager_dependency(quiz_manager)

    @app.get("/locations")
    def get_locations() -> dict[str, object]:
        return {"locations": list(LOCATIONS)}

    @app.post("/register", status_code=201)
    def register(
        payload: RegisterPayload,
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        # A pool too small for the quiz is a server fault and surfaces as 500.
        try:
            session = manager.start_session(payload.player_name, payload.player_location)
        except RegistrationError as exc:
            _raise_http(exc)
        registration = session.registration
        return {
            "session_id": session.session_id,
            "player_name": registration.player_name,
            "player_location": registration.player_location,
            "security_code": registration.security_code,
            "question_count": session.get_question_count(),
        }

    @app.get("/sessions/{session_id}/question")
    def get_question(
        session_id: str,
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        try:
            progress = manager.get_progress(session_id)
        except UnknownSessionError as exc:
            _raise_http(exc)
        question = progress.question
        if question is None:
            return {
                "quiz_complete": True,
                "question_index": progress.question_count,
                "question_count": progress.question_count,
            }
        # The correct option is only revealed after answering.
        return {
            "quiz_complete": False,
            "question_index": progress.question_index,
            "question_count": progress.question_count,
            "question_id": question.id,
            "level": question.level,
            "event": question.event,
            "question": question.question_text,
            "options": list(question.options),
            "reference": question.reference,
            "time_limit_seconds": manager.config.time_limit_seconds,
        }

    @app.post("/sessions/{session_id}/answer")
    def submit_answer(
        session_id: str,
        payload: AnswerPayload,
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        try:
            feedback = manager.submit_answer(
                session_id,
                payload.selected_option,
                payload.time_spent_seconds,
            )
        except (UnknownSessionError, SessionStateError, ValueError) as exc:
            _raise_http(exc)
        answer = feedback.answer
        question = feedback.question
        return {
            "question_id": answer.question_id,
            "is_correct": answer.is_correct,
            "time_spent_seconds": answer.time_spent_seconds,
            "correct_option": question.correct_option,
            "explanation": question.explanation,
            "reference": question.reference,
            "quiz_complete": feedback.quiz_complete,
        }

    @app.post("/sessions/{session_id}/verify")
    def verify_code(
        session_id: str,
        payload: VerifyPayload,
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        try:
            outcome = manager.verify_code(session_id, payload.code)
        except (UnknownSessionError, SessionStateError, ValueError) as exc:
            _raise_http(exc)
        return {
            "status": outcome.status.value,
            "attempts_remaining": outcome.attempts_remaining,
        }

    @app.get("/penance")
    def get_penance() -> dict[str, object]:
        return {"prayer_count": PENANCE_PRAYER_COUNT, "prayer_text": PENANCE_PRAYER_TEXT}

    @app.post("/sessions/{session_id}/penance")
    def acknowledge_prayer(
        session_id: str,
        payload: PrayerPayload,
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        try:
            prayers = manager.acknowledge_prayer(session_id, payload.prayer_index)
        except (UnknownSessionError, SessionStateError, ValueError) as exc:
            _raise_http(exc)
        return {"prayers": prayers, "completed": sum(prayers), "total": len(prayers)}

    @app.post("/sessions/{session_id}/penance/complete")
    def complete_penance(
        session_id: str,
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        try:
            manager.complete_penance(session_id)
        except (UnknownSessionError, SessionStateError) as exc:
            _raise_http(exc)
        return {"results_unlocked": True}

    @app.post("/sessions/{session_id}/results")
    async def get_results(
        session_id: str,
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        try:
            results = await manager.finish_session(session_id)
        except (UnknownSessionError, SessionStateError) as exc:
            _raise_http(exc)
        score = results.score
        save = results.save
        correct = sum(1 for answer in results.record.questions_answered if answer.is_correct)
        return {
            "player_name": results.record.player_name,
            "accuracy_score": score.accuracy_points,
            "time_bonus_score": score.time_bonus_points,
            "final_score": score.total_score,
            "accuracy_percentage": score.accuracy_percentage,
            "correct_answers": correct,
            "total_answers": len(results.record.questions_answered),
            "total_time_seconds": results.record.total_time_seconds,
            "completion_timestamp": _isoformat(score.completion_timestamp),
            "display": format_score_breakdown(score),
            "saved": None if save is None else save.success,
            "save_error": None if save is None else save.error,
        }

    @app.delete("/sessions/{session_id}", status_code=204)
    def reset_session(
        session_id: str,
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> None:
        try:
            manager.reset_session(session_id)
        except UnknownSessionError as exc:
            _raise_http(exc)

    @app.get("/leaderboard")
    async def get_leaderboard(
        limit: int = LEADERBOARD_DEFAULT_LIMIT,
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        if limit < 0:
            raise HTTPException(status_code=422, detail="Leaderboard limit must not be negative.")
        result = await manager.get_leaderboard(limit)
        return {
            "entries": [_serialize_entry(entry) for entry in result.entries],
            "error": result.error,
        }

    return app


def run_api_server(
    quiz_manager: QuizManager,
    host: str = DEFAULT_HOST,
    port: int = DEFAULT_PORT,
) -> None:
    """Serve the API with uvicorn until interrupted."""
    app = create_api_app(quiz_manager)
    config = uvicorn.Config(app=app, host=host, port=port, log_level="info")
    server = uvicorn.Server(config)
    server.run()
