"""Service for ordering completed sessions into a ranked leaderboard."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import replace

from journey_app.core.models import GameSession, LeaderboardEntry


def leaderboard_sort_key(entry: LeaderboardEntry | GameSession) -> tuple:
    """Higher final score first; earlier completion wins a tie."""
    return (-entry.final_score, entry.completion_timestamp)


def compare_entries(first: LeaderboardEntry, second: LeaderboardEntry) -> int:
    """Negative if ``first`` ranks above ``second``, positive if below, 0 if tied."""
    first_key = leaderboard_sort_key(first)
    second_key = leaderboard_sort_key(second)
    if first_key < second_key:
        return -1
    if first_key > second_key:
        return 1
    return 0


def assign_ranks(entries: Iterable[LeaderboardEntry]) -> list[LeaderboardEntry]:
    """Number an already ordered sequence starting at 1."""
    return [replace(entry, rank=index) for index, entry in enumerate(entries, start=1)]


def rank_entries(entries: Iterable[LeaderboardEntry]) -> list[LeaderboardEntry]:
    """Sort entries into leaderboard order and assign 1-based ranks.

    ``sorted`` is stable, so rows tied on both score and timestamp keep their
    input order and receive adjacent ranks.
    """
    return assign_ranks(sorted(entries, key=leaderboard_sort_key))

