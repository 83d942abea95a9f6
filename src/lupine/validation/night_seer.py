"""Seer and Doctor checks: one living target, once per night."""

from lupine.events.actions import ActionType
from lupine.store.schema import GamePlayerRow, GameRow
from lupine.store.state_store import GameSession
from .common import night_actor, require_not_acted, require_target


def validate_seer_action(
    gs: GameSession, game: GameRow, actor_id: int, target_id: int
) -> tuple[GamePlayerRow, GamePlayerRow]:
    actor = night_actor(
        gs, game, actor_id, ActionType.SEER_INVESTIGATE,
        "Can only investigate during night phase",
        "Only the Seer can investigate",
    )
    require_not_acted(
        gs, game, actor_id, ActionType.SEER_INVESTIGATE,
        "You have already investigated this night",
    )
    target = require_target(gs, game, target_id, "Cannot investigate a dead player")
    return actor, target


def validate_doctor_action(
    gs: GameSession, game: GameRow, actor_id: int, target_id: int
) -> tuple[GamePlayerRow, GamePlayerRow]:
    """The Doctor may protect anyone alive, including themselves."""
    actor = night_actor(
        gs, game, actor_id, ActionType.DOCTOR_PROTECT,
        "Can only protect during night phase",
        "Only the Doctor can protect players",
    )
    require_not_acted(
        gs, game, actor_id, ActionType.DOCTOR_PROTECT,
        "You have already protected someone this night",
    )
    target = require_target(gs, game, target_id, "Cannot protect a dead player")
    return actor, target


__all__ = ["validate_seer_action", "validate_doctor_action"]
