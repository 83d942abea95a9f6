"""Guard action checks.

Rules:
- The Guard protects one living player per night.
- The Guard cannot protect themselves.
- The Guard cannot protect the same player on consecutive nights.
"""

from lupine.events.actions import ActionType, Phase
from lupine.store.schema import GamePlayerRow, GameRow
from lupine.store.state_store import GameSession
from .common import night_actor, require_not_acted, require_target
from .exceptions import InvalidTarget


def validate_guard_action(
    gs: GameSession, game: GameRow, actor_id: int, target_id: int
) -> tuple[GamePlayerRow, GamePlayerRow]:
    actor = night_actor(
        gs, game, actor_id, ActionType.GUARD_PROTECT,
        "Can only protect during night phase",
        "Only the Guard can protect players",
    )
    require_not_acted(
        gs, game, actor_id, ActionType.GUARD_PROTECT,
        "You have already protected someone this night",
    )
    if target_id is not None and target_id == actor_id:
        raise InvalidTarget("Guard cannot protect themselves")
    target = require_target(gs, game, target_id, "Cannot protect a dead player")

    previous = gs.actions(game.id).find(
        game.round - 1, Phase.NIGHT, actor_id, ActionType.GUARD_PROTECT
    )
    if previous is not None and previous.target == target_id:
        raise InvalidTarget("Cannot protect the same player two nights in a row")
    return actor, target


__all__ = ["validate_guard_action"]
