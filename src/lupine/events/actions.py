"""Action types and records for the game's action log."""

from enum import Enum
from typing import Optional
from pydantic import BaseModel, ConfigDict


class GameStatus(str, Enum):
    """Lifecycle status of a game."""

    LOBBY = "lobby"
    NIGHT = "night"
    DAY = "day"
    FINISHED = "finished"


class Phase(str, Enum):
    """Phase an action was recorded in."""

    NIGHT = "night"
    DAY = "day"

    @property
    def label(self) -> str:
        """Capitalised label used in history descriptions ("Night", "Day")."""
        return self.value.capitalize()


class ActionType(str, Enum):
    """Types of rows stored in the action log."""

    # Player-submitted
    DAY_VOTE = "day_vote"
    HUNTER_REVENGE = "hunter_revenge"
    WEREWOLF_KILL = "werewolf_kill"
    WEREWOLF_KILL2 = "werewolf_kill2"  # Wolf Cub revenge kill
    SEER_INVESTIGATE = "seer_investigate"
    DOCTOR_PROTECT = "doctor_protect"
    GUARD_PROTECT = "guard_protect"
    WITCH_HEAL = "witch_heal"
    WITCH_KILL = "witch_kill"
    WITCH_PASS = "witch_pass"
    CUPID_LINK = "cupid_link"

    # Derived by resolvers
    ELIMINATION = "elimination"
    NIGHT_KILL = "night_kill"
    LOVER_HEARTBREAK = "lover_heartbreak"
    STORY = "story"


# Rows written by resolvers (or the storyteller) rather than by a player intent.
DERIVED_ACTIONS = frozenset({
    ActionType.ELIMINATION,
    ActionType.NIGHT_KILL,
    ActionType.LOVER_HEARTBREAK,
    ActionType.STORY,
})


class Visibility(str, Enum):
    """Who may read an action's description."""

    PUBLIC = "public"
    TEAM_WEREWOLF = "team_werewolf"
    ACTOR = "actor"


class DeathCause(str, Enum):
    """Cause of death stored on the game player."""

    WEREWOLF_KILL = "werewolf_kill"
    WOLF_CUB_REVENGE = "wolf_cub_revenge"
    WITCH_POISON = "witch_poison"
    ELIMINATION = "elimination"
    HUNTER_REVENGE = "hunter_revenge"
    HEARTBREAK = "heartbreak"


# A Wolf Cub dying by one of these grants the werewolves a second kill next night.
WOLF_CUB_TRIGGER_CAUSES = frozenset({
    DeathCause.WEREWOLF_KILL,
    DeathCause.ELIMINATION,
    DeathCause.HUNTER_REVENGE,
    DeathCause.WITCH_POISON,
})


class Action(BaseModel):
    """One immutable row of the action log.

    `ordinal` is the store's monotonic row id; it gives a total order for
    audit and replay. `target` is None for passes.
    """

    model_config = ConfigDict(frozen=True, from_attributes=True)

    ordinal: int
    game_id: int
    round: int
    phase: Phase
    actor: int
    action_type: ActionType
    target: Optional[int] = None
    visibility: Visibility = Visibility.PUBLIC
    description: str = ""

    @property
    def is_pass(self) -> bool:
        return self.target is None

    def __str__(self) -> str:
        target_str = f", target={self.target}" if self.target is not None else ""
        return (
            f"{self.action_type.value}(#{self.ordinal}, {self.phase.value} {self.round}, "
            f"actor={self.actor}{target_str})"
        )
