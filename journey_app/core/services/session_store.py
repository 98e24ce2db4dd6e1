"""Persistence boundary for completed game sessions."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
import logging
from typing import Protocol

from journey_app.constants.quiz_constants import LEADERBOARD_DEFAULT_LIMIT
from journey_app.core.models import GameSession, LeaderboardEntry
from journey_app.core.services.leaderboard import assign_ranks, leaderboard_sort_key

logger = logging.getLogger(__name__)


class SessionStore(Protocol):
    """Append-only store of finished sessions.

    ``list_top`` returns sessions ordered by final score descending, then
    completion timestamp ascending. Both methods raise on failure.
    """

    async def save(self, session: GameSession) -> None: ...

    async def list_top(self, limit: int) -> list[GameSession]: ...


class InMemorySessionStore:
    """Process-local ``SessionStore`` used by the API and the tests."""

    def __init__(self) -> None:
        self._sessions: list[GameSession] = []
        self._lock = asyncio.Lock()

    async def save(self, session: GameSession) -> None:
        async with self._lock:
            self._sessions.append(session)

    async def list_top(self, limit: int) -> list[GameSession]:
        if limit < 0:
            raise ValueError("Leaderboard limit must not be negative.")
        async with self._lock:
            ordered = sorted(self._sessions, key=leaderboard_sort_key)
        return ordered[:limit]

    def __len__(self) -> int:
        return len(self._sessions)


@dataclass(slots=True)
class SaveResult:
    success: bool
    error: str | None = None


@dataclass(slots=True)
class LeaderboardResult:
    entries: list[LeaderboardEntry] = field(default_factory=list)
    error: str | None = None


async def save_game_session(store: SessionStore, session: GameSession) -> SaveResult:
    """Persist ``session``; failures come back as a result instead of raising."""
    try:
        await store.save(session)
    except Exception as exc:
        logger.exception("Error saving game session for %s", session.player_name)
        return SaveResult(success=False, error=str(exc) or "Unknown error")
    return SaveResult(success=True)


async def fetch_leaderboard(
    store: SessionStore,
    limit: int = LEADERBOARD_DEFAULT_LIMIT,
) -> LeaderboardResult:
    """Read the top sessions and annotate them with their rank."""
    try:
        sessions = await store.list_top(limit)
    except Exception as exc:
        logger.exception("Error fetching leaderboard")
        return LeaderboardResult(error=str(exc) or "Unknown error")
    return LeaderboardResult(
        entries=assign_ranks(LeaderboardEntry.from_session(session) for session in sessions)
    )
