"""Role catalogue.

Roles are data, not types: each entry names its team, the action types it may
submit and the action it owes every night (if any). The night resolver and the
intent validators both read this table, so adding a role means adding a row.
"""

import secrets
from enum import Enum
from typing import Callable, Iterable, Optional
from pydantic import BaseModel, ConfigDict

from lupine.events.actions import ActionType


class Team(str, Enum):
    """Team affiliation for victory conditions."""

    VILLAGER = "villager"
    WEREWOLF = "werewolf"


class RoleName(str, Enum):
    """Role identifiers (catalogue slugs)."""

    VILLAGER = "villager"
    WEREWOLF = "werewolf"
    SEER = "seer"
    DOCTOR = "doctor"
    WITCH = "witch"
    HUNTER = "hunter"
    CUPID = "cupid"
    GUARD = "guard"
    MASON = "mason"
    WOLF_CUB = "wolf_cub"


class RoleSpec(BaseModel):
    """Catalogue entry for one role."""

    model_config = ConfigDict(frozen=True)

    name: RoleName
    display_name: str
    team: Team
    description: str
    actions: frozenset[ActionType] = frozenset()
    night_duty: Optional[ActionType] = None


_WOLF_ACTIONS = frozenset({ActionType.WEREWOLF_KILL, ActionType.WEREWOLF_KILL2})

ROLE_CATALOGUE: dict[RoleName, RoleSpec] = {
    spec.name: spec
    for spec in [
        RoleSpec(
            name=RoleName.VILLAGER,
            display_name="Villager",
            team=Team.VILLAGER,
            description="No special powers, relies on deduction and discussion.",
        ),
        RoleSpec(
            name=RoleName.WEREWOLF,
            display_name="Werewolf",
            team=Team.WEREWOLF,
            description="Knows other werewolves, votes to kill villagers at night.",
            actions=_WOLF_ACTIONS,
            night_duty=ActionType.WEREWOLF_KILL,
        ),
        RoleSpec(
            name=RoleName.SEER,
            display_name="Seer",
            team=Team.VILLAGER,
            description="Can investigate one player per night to learn if they are a werewolf.",
            actions=frozenset({ActionType.SEER_INVESTIGATE}),
            night_duty=ActionType.SEER_INVESTIGATE,
        ),
        RoleSpec(
            name=RoleName.DOCTOR,
            display_name="Doctor",
            team=Team.VILLAGER,
            description="Can protect one player from werewolf attack each night.",
            actions=frozenset({ActionType.DOCTOR_PROTECT}),
            night_duty=ActionType.DOCTOR_PROTECT,
        ),
        RoleSpec(
            name=RoleName.WITCH,
            display_name="Witch",
            team=Team.VILLAGER,
            description="Has one heal potion and one poison potion to use during the game.",
            actions=frozenset({
                ActionType.WITCH_HEAL,
                ActionType.WITCH_KILL,
                ActionType.WITCH_PASS,
            }),
            night_duty=ActionType.WITCH_PASS,
        ),
        RoleSpec(
            name=RoleName.HUNTER,
            display_name="Hunter",
            team=Team.VILLAGER,
            description="When eliminated, can immediately kill one player.",
            actions=frozenset({ActionType.HUNTER_REVENGE}),
        ),
        RoleSpec(
            name=RoleName.CUPID,
            display_name="Cupid",
            team=Team.VILLAGER,
            description="On night 1, chooses two players to become lovers.",
            actions=frozenset({ActionType.CUPID_LINK}),
        ),
        RoleSpec(
            name=RoleName.GUARD,
            display_name="Guard",
            team=Team.VILLAGER,
            description="Protects one player per night, but not the same player twice in a row.",
            actions=frozenset({ActionType.GUARD_PROTECT}),
            night_duty=ActionType.GUARD_PROTECT,
        ),
        RoleSpec(
            name=RoleName.MASON,
            display_name="Mason",
            team=Team.VILLAGER,
            description="Knows other masons, providing confirmed villagers.",
        ),
        RoleSpec(
            name=RoleName.WOLF_CUB,
            display_name="Wolf Cub",
            team=Team.WEREWOLF,
            description="If eliminated, werewolves kill two victims the next night.",
            actions=_WOLF_ACTIONS,
            night_duty=ActionType.WEREWOLF_KILL,
        ),
    ]
}


def get_role(name: str) -> RoleSpec:
    """Look up a role by slug.

    Raises:
        KeyError: If the slug is not in the catalogue.
    """
    try:
        return ROLE_CATALOGUE[RoleName(name)]
    except ValueError as exc:
        raise KeyError(name) from exc


def team_of(role: Optional[str]) -> Optional[Team]:
    """Team for a role slug, or None for an unassigned role."""
    if role is None:
        return None
    return get_role(role).team


def is_werewolf_team(role: Optional[str]) -> bool:
    return team_of(role) == Team.WEREWOLF


def display_name(role: Optional[str]) -> str:
    if role is None:
        return "Unassigned"
    return get_role(role).display_name


def can_perform(role: Optional[str], action_type: ActionType) -> bool:
    """Whether a role is permitted to submit an action type."""
    if role is None:
        return False
    return action_type in get_role(role).actions


def night_duties() -> list[tuple[RoleName, ActionType]]:
    """Roles that owe a night action other than the werewolf vote, with that action."""
    return [
        (spec.name, spec.night_duty)
        for spec in ROLE_CATALOGUE.values()
        if spec.night_duty is not None and spec.night_duty not in _WOLF_ACTIONS
    ]


# Shuffle signature: permutes the list in place.
Shuffle = Callable[[list[RoleName]], None]


def secure_shuffle(pool: list[RoleName], randbelow: Callable[[int], int] = secrets.randbelow) -> None:
    """Fisher-Yates shuffle driven by a CSPRNG.

    Args:
        pool: Role list, permuted in place.
        randbelow: Source of uniform integers in [0, n). Defaults to
            `secrets.randbelow`; tests pass a seeded `random.Random().randrange`.
    """
    for i in range(len(pool) - 1, 0, -1):
        j = randbelow(i + 1)
        pool[i], pool[j] = pool[j], pool[i]


def build_role_pool(counts: dict[RoleName, int]) -> list[RoleName]:
    """Expand a role -> count mapping into a multiset list in catalogue order."""
    pool: list[RoleName] = []
    for role in ROLE_CATALOGUE:
        pool.extend([role] * counts.get(role, 0))
    return pool


def assign_roles(
    player_ids: Iterable[int],
    counts: dict[RoleName, int],
    shuffle: Shuffle = secure_shuffle,
) -> list[tuple[int, RoleName]]:
    """Create shuffled role assignments for a game.

    Args:
        player_ids: Players in join order.
        counts: Role configuration; must sum to the number of players.
        shuffle: In-place permutation applied to the role pool.

    Returns:
        List of (player_id, RoleName) tuples in join order.
    """
    ids = list(player_ids)
    pool = build_role_pool(counts)
    if len(pool) != len(ids):
        raise ValueError(f"role pool has {len(pool)} roles for {len(ids)} players")
    shuffle(pool)
    return list(zip(ids, pool))
