"""Minimum role composition per debate format."""

from collections import Counter
from typing import Any, Dict, Iterable

from voxarena_backend.services.errors import PayloadValidationError

# format -> {role: minimum count}
ROLE_REQUIREMENTS: Dict[str, Dict[str, int]] = {
    "structured": {"MODERATOR": 1, "DEBATER": 2},
    "podcast": {"HOST": 1, "GUEST": 1},
}

ROLE_MESSAGES = {
    "structured": "structured debate requires 1 moderator and at least 2 debaters",
    "podcast": "podcast debate requires 1 host and at least 1 guest",
}


def count_roles(participants: Iterable[Dict[str, Any]]) -> Counter:
    return Counter(p["role"] for p in participants)


def validate_participants(debate_format: str, participants) -> None:
    """
    Raise ``PayloadValidationError`` if ``participants`` can't run ``debate_format``.

    An empty list is not validated: callers only send participants when the
    roster is being replaced.
    """
    if not participants:
        return

    requirements = ROLE_REQUIREMENTS.get(debate_format)
    if requirements is None:
        raise PayloadValidationError(f"Unknown debate format: {debate_format}")

    counts = count_roles(participants)
    for role, minimum in requirements.items():
        if counts.get(role, 0) < minimum:
            raise PayloadValidationError(ROLE_MESSAGES[debate_format])
