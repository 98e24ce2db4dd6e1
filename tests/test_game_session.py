from __future__ import annotations

from datetime import datetime, timezone

import pytest

from journey_app.core.scoring import ScoringConfig
from journey_app.core.services.game_session import (
    GameSessionContext,
    SessionStage,
    SessionStateError,
    VerificationStatus,
)
from journey_app.core.services.session_store import SaveResult


def start(registration, question_pool, rng, **config) -> GameSessionContext:
    return GameSessionContext.start_session(
        registration, question_pool, ScoringConfig(**config), rng
    )


def answer_all(session: GameSessionContext, correct: bool = True, time_spent: int = 0) -> None:
    while not session.is_quiz_complete():
        question = session.get_current_question()
        if correct:
            choice = question.correct_option
        else:
            choice = next(option for option in question.options if option != question.correct_option)
        session.record_answer(choice, time_spent)


def test_start_session_draws_private_question_subset(registration, question_pool, rng):
    first = start(registration, question_pool, rng)
    second = start(registration, question_pool, rng)
    assert first.get_question_count() == 15
    assert first.session_id != second.session_id
    assert len({q.id for q in first.get_questions()}) == 15
    assert first.stage is SessionStage.IN_PROGRESS
    assert first.get_current_index() == 0


def test_record_answer_tracks_correctness_by_value(registration, question_pool, rng):
    session = start(registration, question_pool, rng)
    question = session.get_current_question()
    first = session.record_answer(question.correct_option, 4)

    following = session.get_current_question()
    wrong = next(option for option in following.options if option != following.correct_option)
    second = session.record_answer(wrong, 8)

    assert first.is_correct and first.question_id == question.id
    assert not second.is_correct and second.question_id == following.id
    assert session.get_question_times() == [4, 8]
    assert session.get_current_index() == 2


def test_timeout_is_recorded_as_incorrect(registration, question_pool, rng):
    session = start(registration, question_pool, rng)
    answer = session.record_answer(None, 30)
    assert answer.selected_option is None
    assert not answer.is_correct


def test_time_spent_is_clamped_to_limit(registration, question_pool, rng):
    session = start(registration, question_pool, rng)
    assert session.record_answer(session.get_current_question().correct_option, 95).time_spent_seconds == 30
    assert session.record_answer(session.get_current_question().correct_option, -3).time_spent_seconds == 0


def test_timeout_always_uses_full_time_limit(registration, question_pool, rng):
    session = start(registration, question_pool, rng)
    assert session.record_answer(None, 0).time_spent_seconds == 30

    while not session.is_quiz_complete():
        session.record_answer(None, 0)
    session.verify_code("123456")
    record = session.complete_session()

    assert record.time_bonus_score == 0
    assert record.final_score == 0
    assert record.total_time_seconds == 450


def test_unknown_option_is_rejected(registration, question_pool, rng):
    session = start(registration, question_pool, rng)
    with pytest.raises(ValueError):
        session.record_answer("Not on the list", 3)
    assert session.get_current_index() == 0


def test_no_answers_after_last_question(registration, question_pool, rng):
    session = start(registration, question_pool, rng)
    answer_all(session)
    assert session.is_quiz_complete()
    assert session.stage is SessionStage.AWAITING_VERIFICATION
    with pytest.raises(SessionStateError):
        session.record_answer(None, 1)


def test_verify_before_finishing_is_refused(registration, question_pool, rng):
    session = start(registration, question_pool, rng)
    with pytest.raises(SessionStateError):
        session.verify_code("123456")


def test_correct_code_unlocks_results(registration, question_pool, rng):
    session = start(registration, question_pool, rng)
    answer_all(session)
    outcome = session.verify_code("123456")
    assert outcome.status is VerificationStatus.VERIFIED
    assert outcome.attempts_remaining == 2
    assert session.can_view_results()


@pytest.mark.parametrize("code", ["12345", "1234567", "abcdef", ""])
def test_malformed_code_does_not_consume_attempt(registration, question_pool, rng, code):
    session = start(registration, question_pool, rng)
    answer_all(session)
    with pytest.raises(ValueError):
        session.verify_code(code)
    assert session.get_attempts_remaining() == 2


def test_two_wrong_codes_lock_out(registration, question_pool, rng):
    session = start(registration, question_pool, rng)
    answer_all(session)

    first = session.verify_code("000001")
    assert first.status is VerificationStatus.RETRY
    assert first.attempts_remaining == 1

    second = session.verify_code("000002")
    assert second.status is VerificationStatus.LOCKED_OUT
    assert session.stage is SessionStage.LOCKED_OUT
    assert not session.can_view_results()

    with pytest.raises(SessionStateError):
        session.verify_code("123456")


def test_penance_unlocks_results_after_lockout(registration, question_pool, rng):
    session = start(registration, question_pool, rng)
    answer_all(session)
    session.verify_code("000001")
    session.verify_code("000002")

    for index in range(4):
        session.acknowledge_prayer(index)
    with pytest.raises(SessionStateError):
        session.complete_penance()

    assert session.acknowledge_prayer(4) == [True] * 5
    session.complete_penance()
    assert session.can_view_results()


def test_prayer_checkbox_toggles(registration, question_pool, rng):
    session = start(registration, question_pool, rng)
    answer_all(session)
    assert session.acknowledge_prayer(2) == [False, False, True, False, False]
    assert session.acknowledge_prayer(2) == [False] * 5
    with pytest.raises(ValueError):
        session.acknowledge_prayer(5)


def test_penance_not_available_during_quiz(registration, question_pool, rng):
    session = start(registration, question_pool, rng)
    with pytest.raises(SessionStateError):
        session.acknowledge_prayer(0)


def test_complete_session_requires_gate(registration, question_pool, rng):
    session = start(registration, question_pool, rng)
    answer_all(session)
    with pytest.raises(SessionStateError):
        session.complete_session()


def test_complete_session_builds_immutable_record(registration, question_pool, rng):
    session = start(registration, question_pool, rng)
    answer_all(session, correct=True, time_spent=0)
    session.verify_code("123456")
    finished = datetime(2025, 5, 1, 9, 30, tzinfo=timezone.utc)

    record = session.complete_session(finished)

    assert record.player_name == "Mary Magdalene"
    assert record.security_code == "123456"
    assert record.accuracy_score == 1000
    assert record.time_bonus_score == 7500
    assert record.final_score == 8500
    assert record.total_time_seconds == 0
    assert record.completion_timestamp == finished
    assert len(record.questions_answered) == 15
    assert session.complete_session() is record

    score = session.get_score_result()
    assert score.total_score == 8500
    assert score.accuracy_percentage == 100.0


def test_naive_completion_time_is_treated_as_utc(registration, question_pool, rng):
    session = start(registration, question_pool, rng)
    answer_all(session)
    session.verify_code("123456")

    record = session.complete_session(datetime(2025, 5, 1, 9, 30))

    assert record.completion_timestamp == datetime(2025, 5, 1, 9, 30, tzinfo=timezone.utc)


def test_wrong_answers_with_full_time_score_zero(registration, question_pool, rng):
    session = start(registration, question_pool, rng)
    answer_all(session, correct=False, time_spent=30)
    session.verify_code("123456")
    record = session.complete_session()
    assert (record.accuracy_score, record.time_bonus_score, record.final_score) == (0, 0, 0)
    assert record.total_time_seconds == 450


def test_save_is_claimed_once_unless_it_failed(registration, question_pool, rng):
    session = start(registration, question_pool, rng)
    answer_all(session)
    with pytest.raises(SessionStateError):
        session.claim_save()
    session.verify_code("123456")
    session.complete_session()

    assert session.claim_save()
    assert not session.claim_save()
    session.finish_save(SaveResult(success=False, error="offline"))
    assert session.claim_save()
    session.finish_save(SaveResult(success=True))
    assert not session.claim_save()
    assert session.get_save_result().success


def test_custom_quiz_length(registration, question_pool, rng):
    session = start(registration, question_pool, rng, quiz_length=5)
    assert session.get_question_count() == 5
