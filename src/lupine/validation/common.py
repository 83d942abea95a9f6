"""Checks shared by every intent: game, phase, membership, liveness, role, target."""

from typing import Optional

from lupine.events.actions import ActionType, GameStatus, Phase
from lupine.models.roles import can_perform
from lupine.store.schema import GamePlayerRow, GameRow
from lupine.store.state_store import GameSession
from .exceptions import (
    AlreadyActed,
    DeadActor,
    InvalidTarget,
    NotInGame,
    PhaseMismatch,
    WrongRole,
)


def require_game(game: Optional[GameRow]) -> GameRow:
    if game is None:
        raise PhaseMismatch("No game in progress")
    return game


def require_status(game: GameRow, status: GameStatus, message: str) -> None:
    if game.status != status.value:
        raise PhaseMismatch(message)


def require_member(gs: GameSession, game: GameRow, player_id: int) -> GamePlayerRow:
    player = gs.get_player(game.id, player_id)
    if player is None:
        raise NotInGame("You are not in this game")
    return player


def require_alive(player: GamePlayerRow, message: str = "Dead players cannot act") -> None:
    if not player.is_alive:
        raise DeadActor(message)


def require_dead(player: GamePlayerRow, message: str) -> None:
    if player.is_alive:
        raise DeadActor(message)


def require_role(player: GamePlayerRow, action_type: ActionType, message: str) -> None:
    """The catalogue decides which roles may submit an action type."""
    if not can_perform(player.role, action_type):
        raise WrongRole(message)


def require_target(
    gs: GameSession,
    game: GameRow,
    target_id: Optional[int],
    dead_message: str = "Cannot target a dead player",
) -> GamePlayerRow:
    """Resolve a target id to a living player of the game."""
    if target_id is None:
        raise InvalidTarget("Invalid target")
    target = gs.get_player(game.id, target_id)
    if target is None:
        raise InvalidTarget("Target not found")
    if not target.is_alive:
        raise InvalidTarget(dead_message)
    return target


def require_not_acted(
    gs: GameSession,
    game: GameRow,
    actor_id: int,
    action_type: ActionType,
    message: str,
    phase: Phase = Phase.NIGHT,
) -> None:
    """Reject a second action of the same type from the same actor this phase."""
    if gs.actions(game.id).find(game.round, phase, actor_id, action_type) is not None:
        raise AlreadyActed(message)


def night_actor(
    gs: GameSession,
    game: GameRow,
    player_id: int,
    action_type: ActionType,
    phase_message: str,
    role_message: str,
) -> GamePlayerRow:
    """Validate a night intent's actor: night phase, member, role, alive."""
    require_status(game, GameStatus.NIGHT, phase_message)
    player = require_member(gs, game, player_id)
    require_role(player, action_type, role_message)
    require_alive(player)
    return player


__all__ = [
    "require_game",
    "require_status",
    "require_member",
    "require_alive",
    "require_dead",
    "require_role",
    "require_target",
    "require_not_acted",
    "night_actor",
]
