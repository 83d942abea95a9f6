"""Events package: action log records and visibility rules."""

from lupine.events.actions import (
    GameStatus,
    Phase,
    ActionType,
    DERIVED_ACTIONS,
    Visibility,
    DeathCause,
    WOLF_CUB_TRIGGER_CAUSES,
    Action,
)
from lupine.events.visibility import (
    can_see,
    visible_history,
    public_descriptions,
)

__all__ = [
    "GameStatus",
    "Phase",
    "ActionType",
    "DERIVED_ACTIONS",
    "Visibility",
    "DeathCause",
    "WOLF_CUB_TRIGGER_CAUSES",
    "Action",
    "can_see",
    "visible_history",
    "public_descriptions",
]
