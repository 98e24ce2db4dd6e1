"""Application entry point for the Journey Through Matthew quiz service."""

from __future__ import annotations

import os

from journey_app.constants.network_constants import DEFAULT_HOST, DEFAULT_PORT
from journey_app.core.quiz_manager import QuizManager
from journey_app.core.scoring import AccuracyDenominator, ScoringConfig
from journey_app.core.services.question_pool import QuestionPool
from journey_app.server.api_server import run_api_server
from journey_app.utils.logging_config import configure_logging


def _scoring_config_from_env() -> ScoringConfig:
    raw_policy = os.environ.get("JOURNEY_ACCURACY_DENOMINATOR", AccuracyDenominator.QUIZ_LENGTH.value)
    try:
        policy = AccuracyDenominator(raw_policy.strip().lower())
    except ValueError as exc:
        choices = ", ".join(member.value for member in AccuracyDenominator)
        raise SystemExit(f"JOURNEY_ACCURACY_DENOMINATOR must be one of: {choices}") from exc
    return ScoringConfig(accuracy_denominator=policy)


def main() -> None:
    """Initialize logging, load the question pool, and serve the API."""
    logger = configure_logging()
    logger.info("Starting Journey Through Matthew…")

    host = os.environ.get("JOURNEY_HOST", DEFAULT_HOST)
    port = int(os.environ.get("JOURNEY_PORT", DEFAULT_PORT))

    quiz_manager = QuizManager(
        pool=QuestionPool.from_file(),
        config=_scoring_config_from_env(),
    )
    logger.info("Serving API on http://%s:%d/", host, port)
    run_api_server(quiz_manager=quiz_manager, host=host, port=port)


if __name__ == "__main__":
    main()
