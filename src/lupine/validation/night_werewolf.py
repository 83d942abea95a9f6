"""Werewolf vote checks.

Rules:
- Only living Werewolves and Wolf Cubs vote, and only at night.
- The second kill vote is open only while Wolf Cub revenge is active.
- Votes may be changed until the night resolves; the target must be alive.
"""

from lupine.events.actions import ActionType
from lupine.store.schema import GamePlayerRow, GameRow
from lupine.store.state_store import GameSession
from .common import night_actor, require_target
from .exceptions import PhaseMismatch


def validate_werewolf_vote(
    gs: GameSession,
    game: GameRow,
    actor_id: int,
    target_id: int,
    second: bool = False,
    revenge_active: bool = False,
) -> tuple[GamePlayerRow, GamePlayerRow]:
    """Validate a werewolf kill vote.

    Args:
        gs: Open store transaction.
        game: Current game.
        actor_id: Voting player.
        target_id: Player voted for.
        second: True for the Wolf Cub revenge vote.
        revenge_active: Whether Wolf Cub revenge is active this night.

    Returns:
        (actor, target) rows.
    """
    actor = night_actor(
        gs, game, actor_id,
        ActionType.WEREWOLF_KILL2 if second else ActionType.WEREWOLF_KILL,
        "Voting only allowed during night phase",
        "Only werewolves can vote at night",
    )
    if second and not revenge_active:
        raise PhaseMismatch("Wolf Cub double kill not active")
    target = require_target(gs, game, target_id)
    return actor, target


__all__ = ["validate_werewolf_vote"]
