"""Witch action checks.

Rules:
- The heal potion and the poison potion are each usable once per game.
- Heal only a current werewolf victim (victim1, or victim2 during Wolf Cub
  revenge), and never the Witch herself.
- Poison any living player; it ignores every protection.
- Passing ends the Witch's night: no potion may follow it.
"""

from lupine.events.actions import ActionType
from lupine.store.schema import GamePlayerRow, GameRow
from lupine.store.state_store import GameSession
from .common import night_actor, require_not_acted, require_target
from .exceptions import AlreadyActed, InvalidTarget


def _witch(
    gs: GameSession, game: GameRow, actor_id: int, action_type: ActionType, verb: str
) -> GamePlayerRow:
    actor = night_actor(
        gs, game, actor_id, action_type,
        f"Can only {verb} during night phase",
        f"Only the Witch can {verb}",
    )
    require_not_acted(
        gs, game, actor_id, ActionType.WITCH_PASS,
        "You have already passed for this night",
    )
    return actor


def _potion_used(gs: GameSession, game: GameRow, actor_id: int, action_type: ActionType) -> bool:
    return bool(gs.actions(game.id).by_actor(actor_id, action_type))


def validate_witch_heal(
    gs: GameSession,
    game: GameRow,
    actor_id: int,
    target_id: int,
    victims: set[int],
) -> tuple[GamePlayerRow, GamePlayerRow]:
    """Validate a heal.

    Args:
        victims: Players the werewolves currently hold a majority on.
    """
    actor = _witch(gs, game, actor_id, ActionType.WITCH_HEAL, "heal")
    if _potion_used(gs, game, actor_id, ActionType.WITCH_HEAL):
        raise AlreadyActed("You have already used your heal potion")
    target = require_target(gs, game, target_id)
    if not victims:
        raise InvalidTarget("Werewolves have not reached a majority yet")
    if target_id not in victims:
        raise InvalidTarget("Can only heal a werewolf target")
    if target_id == actor_id:
        raise InvalidTarget("You cannot heal yourself")
    return actor, target


def validate_witch_poison(
    gs: GameSession, game: GameRow, actor_id: int, target_id: int
) -> tuple[GamePlayerRow, GamePlayerRow]:
    actor = _witch(gs, game, actor_id, ActionType.WITCH_KILL, "poison")
    if _potion_used(gs, game, actor_id, ActionType.WITCH_KILL):
        raise AlreadyActed("You have already used your poison potion")
    target = require_target(gs, game, target_id, "Cannot poison a dead player")
    return actor, target


def validate_witch_pass(gs: GameSession, game: GameRow, actor_id: int) -> GamePlayerRow:
    return _witch(gs, game, actor_id, ActionType.WITCH_PASS, "pass")


__all__ = ["validate_witch_heal", "validate_witch_poison", "validate_witch_pass"]
