"""Models package for the role catalogue."""

from lupine.models.roles import (
    Team,
    RoleName,
    RoleSpec,
    ROLE_CATALOGUE,
    get_role,
    team_of,
    is_werewolf_team,
    display_name,
    can_perform,
    night_duties,
    Shuffle,
    secure_shuffle,
    build_role_pool,
    assign_roles,
)

__all__ = [
    "Team",
    "RoleName",
    "RoleSpec",
    "ROLE_CATALOGUE",
    "get_role",
    "team_of",
    "is_werewolf_team",
    "display_name",
    "can_perform",
    "night_duties",
    "Shuffle",
    "secure_shuffle",
    "build_role_pool",
    "assign_roles",
]
