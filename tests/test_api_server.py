from __future__ import annotations

from fastapi.testclient import TestClient
import pytest

from journey_app.core.quiz_manager import QuizManager
from journey_app.core.services.question_pool import QuestionPool
from journey_app.server.api_server import create_api_app
from tests.test_session_store import FailingStore


@pytest.fixture
def client(manager) -> TestClient:
    return TestClient(create_api_app(manager))


def register(client: TestClient, name: str = "Mary Magdalene") -> dict:
    response = client.post("/register", json={"player_name": name, "player_location": "Kerala"})
    assert response.status_code == 201
    return response.json()


def answer_everything(client: TestClient, session_id: str, manager: QuizManager) -> None:
    session = manager.get_session(session_id)
    while True:
        payload = client.get(f"/sessions/{session_id}/question").json()
        if payload["quiz_complete"]:
            break
        assert "correct_option" not in payload
        correct = session.get_current_question().correct_option
        response = client.post(
            f"/sessions/{session_id}/answer",
            json={"selected_option": correct, "time_spent_seconds": 0},
        )
        assert response.status_code == 200
        assert response.json()["is_correct"]


def test_locations(client):
    locations = client.get("/locations").json()["locations"]
    assert "Kerala" in locations


def test_register_returns_code(client):
    body = register(client)
    assert len(body["security_code"]) == 6
    assert body["question_count"] == 15


def test_register_rejects_bad_name(client):
    response = client.post("/register", json={"player_name": "R2D2", "player_location": "Kerala"})
    assert response.status_code == 422


def test_question_hides_answer(client):
    body = register(client)
    payload = client.get(f"/sessions/{body['session_id']}/question").json()
    assert payload["quiz_complete"] is False
    assert payload["question_index"] == 0
    assert len(payload["options"]) == 4
    assert payload["time_limit_seconds"] == 30
    assert "correct_option" not in payload


def test_answer_feedback_reveals_explanation(client):
    body = register(client)
    response = client.post(
        f"/sessions/{body['session_id']}/answer",
        json={"selected_option": None, "time_spent_seconds": 30},
    )
    assert response.status_code == 200
    feedback = response.json()
    assert feedback["is_correct"] is False
    assert feedback["correct_option"]
    assert feedback["explanation"]
    assert feedback["quiz_complete"] is False


def test_answer_with_unknown_option_is_rejected(client):
    body = register(client)
    response = client.post(
        f"/sessions/{body['session_id']}/answer",
        json={"selected_option": "not an option", "time_spent_seconds": 3},
    )
    assert response.status_code == 422


def test_unknown_session_is_404(client):
    assert client.get("/sessions/nope/question").status_code == 404


def test_full_flow_with_verification_and_leaderboard(client, manager):
    body = register(client)
    session_id = body["session_id"]
    answer_everything(client, session_id, manager)

    locked = client.post(f"/sessions/{session_id}/results")
    assert locked.status_code == 409

    verify = client.post(f"/sessions/{session_id}/verify", json={"code": body["security_code"]})
    assert verify.json() == {"status": "verified", "attempts_remaining": 2}

    results = client.post(f"/sessions/{session_id}/results").json()
    assert results["final_score"] == 8500
    assert results["accuracy_score"] == 1000
    assert results["time_bonus_score"] == 7500
    assert results["correct_answers"] == 15
    assert results["saved"] is True
    assert results["display"]["accuracy_percentage"] == "100.0%"

    leaderboard = client.get("/leaderboard").json()
    assert leaderboard["error"] is None
    assert leaderboard["entries"][0]["rank"] == 1
    assert leaderboard["entries"][0]["player_name"] == "Mary Magdalene"


def test_lockout_then_penance(client, manager):
    body = register(client)
    session_id = body["session_id"]
    answer_everything(client, session_id, manager)
    wrong = "100000" if body["security_code"] != "100000" else "100001"

    first = client.post(f"/sessions/{session_id}/verify", json={"code": wrong}).json()
    assert first == {"status": "retry", "attempts_remaining": 1}
    second = client.post(f"/sessions/{session_id}/verify", json={"code": wrong}).json()
    assert second == {"status": "locked_out", "attempts_remaining": 0}
    assert client.post(f"/sessions/{session_id}/verify", json={"code": wrong}).status_code == 409

    assert client.post(f"/sessions/{session_id}/penance/complete").status_code == 409
    for index in range(5):
        progress = client.post(f"/sessions/{session_id}/penance", json={"prayer_index": index}).json()
    assert progress["completed"] == 5
    assert client.post(f"/sessions/{session_id}/penance/complete").status_code == 200
    assert client.post(f"/sessions/{session_id}/results").status_code == 200


def test_malformed_code_is_422(client, manager):
    body = register(client)
    answer_everything(client, body["session_id"], manager)
    response = client.post(f"/sessions/{body['session_id']}/verify", json={"code": "12"})
    assert response.status_code == 422


def test_reset_session(client):
    body = register(client)
    assert client.delete(f"/sessions/{body['session_id']}").status_code == 204
    assert client.get(f"/sessions/{body['session_id']}/question").status_code == 404


def test_save_failure_is_non_fatal(question_pool, rng):
    manager = QuizManager(pool=QuestionPool(question_pool), store=FailingStore(), rng=rng)
    client = TestClient(create_api_app(manager))
    body = register(client)
    answer_everything(client, body["session_id"], manager)
    client.post(f"/sessions/{body['session_id']}/verify", json={"code": body["security_code"]})

    results = client.post(f"/sessions/{body['session_id']}/results")
    assert results.status_code == 200
    assert results.json()["saved"] is False
    assert results.json()["save_error"] == "database unavailable"

    leaderboard = client.get("/leaderboard").json()
    assert leaderboard["entries"] == []
    assert leaderboard["error"] == "database unavailable"


def test_negative_leaderboard_limit(client):
    assert client.get("/leaderboard?limit=-1").status_code == 422


def test_penance_text(client):
    payload = client.get("/penance").json()
    assert payload["prayer_count"] == 5
    assert payload["prayer_text"].startswith("Hail Mary")


def test_results_are_released_after_saving(client, manager):
    body = register(client)
    session_id = body["session_id"]
    answer_everything(client, session_id, manager)
    client.post(f"/sessions/{session_id}/verify", json={"code": body["security_code"]})

    assert client.post(f"/sessions/{session_id}/results").status_code == 200
    assert manager.get_active_session_count() == 0
    assert client.post(f"/sessions/{session_id}/results").status_code == 404


def test_undersized_pool_is_a_server_error(question_pool, rng):
    manager = QuizManager(pool=QuestionPool(question_pool[:5]), rng=rng)
    client = TestClient(create_api_app(manager), raise_server_exceptions=False)
    response = client.post("/register", json={"player_name": "Mary", "player_location": "Kerala"})
    assert response.status_code == 500


def test_openapi_describes_the_game(client):
    info = client.get("/openapi.json").json()["info"]
    assert info["title"] == "Journey Through Matthew API"
    assert info["license"]["name"] == "MIT License"
    assert "leaderboard" in info["description"]
