"""Day vote checks.

Rules:
- Only living players vote, and only during the day.
- A vote names a living player; a pass names nobody.
- Votes close once the village has eliminated someone this round.
"""

from typing import Optional

from lupine.events.actions import ActionType, GameStatus
from lupine.store.schema import GamePlayerRow, GameRow
from lupine.store.state_store import GameSession
from .common import require_alive, require_member, require_status, require_target
from .exceptions import PhaseMismatch


def validate_day_voter(gs: GameSession, game: GameRow, actor_id: int) -> GamePlayerRow:
    require_status(game, GameStatus.DAY, "Voting only allowed during day phase")
    actor = require_member(gs, game, actor_id)
    require_alive(actor, "Dead players cannot vote")
    if gs.actions(game.id).exists(ActionType.ELIMINATION, round=game.round):
        raise PhaseMismatch("Voting is closed for today")
    return actor


def validate_day_vote(
    gs: GameSession, game: GameRow, actor_id: int, target_id: Optional[int]
) -> tuple[GamePlayerRow, GamePlayerRow]:
    actor = validate_day_voter(gs, game, actor_id)
    target = require_target(gs, game, target_id, "Cannot vote for a dead player")
    return actor, target


__all__ = ["validate_day_voter", "validate_day_vote"]
