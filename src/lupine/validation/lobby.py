"""Lobby checks: role configuration edits and game start.

Rules:
- Role counts change one step at a time.
- A game starts only with at least one player and a role configuration
  whose counts sum to the number of players.
"""

from lupine.models.roles import RoleName
from .exceptions import InvalidStart, MalformedIntent


def parse_role(role_id: str) -> RoleName:
    try:
        return RoleName(role_id)
    except ValueError as exc:
        raise MalformedIntent(f"Unknown role: {role_id}") from exc


def validate_role_delta(delta: int) -> None:
    if delta not in (1, -1):
        raise MalformedIntent(f"Role count delta must be +1 or -1, got {delta}")


def validate_start(player_count: int, counts: dict[RoleName, int]) -> None:
    """Raise InvalidStart unless the configuration fits the players."""
    if player_count == 0:
        raise InvalidStart("Cannot start a game with no players")
    total = sum(counts.values())
    if total != player_count:
        raise InvalidStart(
            f"Role count ({total}) must match player count ({player_count})"
        )


__all__ = ["parse_role", "validate_role_delta", "validate_start"]
