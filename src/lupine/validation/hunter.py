"""Hunter revenge checks.

Rules:
- Only a dead Hunter shoots, during the day.
- The shot is available only in the round the Hunter died.
- One shot per Hunter per game, at a living player.
"""

from lupine.events.actions import ActionType, GameStatus
from lupine.store.schema import GamePlayerRow, GameRow
from lupine.store.state_store import GameSession
from .common import require_dead, require_member, require_role, require_target
from .exceptions import AlreadyActed, PhaseMismatch


def validate_hunter_revenge(
    gs: GameSession, game: GameRow, actor_id: int, target_id: int
) -> tuple[GamePlayerRow, GamePlayerRow]:
    if game.status != GameStatus.DAY.value:
        raise PhaseMismatch("Hunter revenge not active")
    actor = require_member(gs, game, actor_id)
    require_role(actor, ActionType.HUNTER_REVENGE, "Only the Hunter can take a revenge shot")
    require_dead(actor, "Hunter revenge is only available when eliminated")
    if gs.actions(game.id).by_actor(actor_id, ActionType.HUNTER_REVENGE):
        raise AlreadyActed("You have already taken your revenge shot")
    if actor.death_round != game.round:
        raise PhaseMismatch("Hunter revenge window has closed")
    target = require_target(gs, game, target_id, "Cannot shoot a dead player")
    return actor, target


__all__ = ["validate_hunter_revenge"]
