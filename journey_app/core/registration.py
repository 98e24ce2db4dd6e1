"""Player registration: name and location checks plus security code issue."""

from __future__ import annotations

import random
import re

from journey_app.constants.quiz_constants import (
    LOCATIONS,
    PLAYER_NAME_MAX_LENGTH,
    PLAYER_NAME_MIN_LENGTH,
    SECURITY_CODE_LENGTH,
)
from journey_app.core.models import PlayerRegistration

_NAME_PATTERN = re.compile(r"^[A-Za-z\s'-]+$")


class RegistrationError(ValueError):
    """Raised when a player's name or location is not acceptable."""


def validate_player_name(name: str) -> str:
    cleaned = name.strip()
    if not PLAYER_NAME_MIN_LENGTH <= len(cleaned) <= PLAYER_NAME_MAX_LENGTH:
        raise RegistrationError(
            f"Name must be between {PLAYER_NAME_MIN_LENGTH} and {PLAYER_NAME_MAX_LENGTH} characters"
        )
    if not _NAME_PATTERN.match(cleaned):
        raise RegistrationError("Name can only contain letters, spaces, hyphens, and apostrophes")
    return cleaned


def validate_location(location: str, allowed: tuple[str, ...] = LOCATIONS) -> str:
    cleaned = location.strip()
    if cleaned not in allowed:
        raise RegistrationError("Please select your location")
    return cleaned


def generate_security_code(rng: random.Random | None = None) -> str:
    """Return a random code with exactly ``SECURITY_CODE_LENGTH`` digits (no leading zero)."""
    source = rng or random.Random()
    lower = 10 ** (SECURITY_CODE_LENGTH - 1)
    return str(source.randint(lower, 10 * lower - 1))


def register_player(
    name: str,
    location: str,
    rng: random.Random | None = None,
) -> PlayerRegistration:
    return PlayerRegistration(
        player_name=validate_player_name(name),
        player_location=validate_location(location),
        security_code=generate_security_code(rng),
    )
