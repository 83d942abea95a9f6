"""Cupid checks.

Rules:
- Cupid acts on night 1 only, in two steps: a replaceable first choice,
  then a distinct second choice that links the pair.
- Once the pair is linked it is frozen.
"""

from typing import Optional

from lupine.events.actions import ActionType, GameStatus, Phase
from lupine.store.schema import GamePlayerRow, GameRow
from lupine.store.state_store import GameSession
from .common import require_alive, require_member, require_role, require_target
from .exceptions import AlreadyActed, InvalidTarget, PhaseMismatch


def first_choice(gs: GameSession, game: GameRow, actor_id: int) -> Optional[int]:
    """Cupid's tentative first lover, if one is recorded."""
    row = gs.actions(game.id).find(1, Phase.NIGHT, actor_id, ActionType.CUPID_LINK)
    return row.target if row is not None else None


def validate_cupid_choice(
    gs: GameSession, game: GameRow, actor_id: int, target_id: int
) -> tuple[GamePlayerRow, GamePlayerRow, Optional[int]]:
    """Validate a Cupid choice.

    Returns:
        (actor, target, first) where `first` is the earlier choice when this
        call completes the pair, else None.
    """
    if game.status != GameStatus.NIGHT.value or game.round != 1:
        raise PhaseMismatch("Cupid can only act on Night 1")
    actor = require_member(gs, game, actor_id)
    require_role(actor, ActionType.CUPID_LINK, "Only the living Cupid can link lovers")
    require_alive(actor, "Only the living Cupid can link lovers")
    if gs.has_lovers(game.id):
        raise AlreadyActed("You have already linked the lovers")
    target = require_target(gs, game, target_id, "Invalid target")

    first = first_choice(gs, game, actor_id)
    if first is not None and first == target_id:
        raise InvalidTarget("The two lovers must be different players")
    return actor, target, first


__all__ = ["first_choice", "validate_cupid_choice"]
