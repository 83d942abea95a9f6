"""Replay a recorded game from its action log.

The replay rebuilds the game in a fresh in-memory store: same persons (same
ids), same join order, a role configuration equal to the assigned roles, and
the recorded assignment as the shuffle. Every player-submitted action is then
re-issued as the matching intent in log order. Derived rows (eliminations,
night deaths, heartbreaks, stories) are regenerated by the resolvers rather
than replayed.
"""

import asyncio
import logging
from pydantic import BaseModel

from lupine.engine.controller import GameController
from lupine.events.actions import DERIVED_ACTIONS, Action, ActionType
from lupine.models.roles import RoleName
from lupine.store.state_store import StateStore
from lupine.validation.exceptions import IntentError

logger = logging.getLogger(__name__)


class ReplayResult(BaseModel):
    """Final liveness and status of a game and of its replay."""

    game_id: int
    source_alive: dict[int, bool]
    replay_alive: dict[int, bool]
    source_status: str
    replay_status: str
    source_round: int
    replay_round: int
    replayed_actions: int = 0
    errors: list[str] = []

    @property
    def matches(self) -> bool:
        return (
            self.source_alive == self.replay_alive
            and self.source_status == self.replay_status
        )


class _SourceGame(BaseModel):
    persons: list[tuple[int, str]]
    roles: list[RoleName]
    actions: list[Action]
    lovers: dict[int, int]
    alive: dict[int, bool]
    status: str
    round: int


def _load_source(store: StateStore, game_id: int) -> _SourceGame:
    with store.transaction() as gs:
        game = gs.get_game(game_id)
        if game is None:
            raise KeyError(f"game {game_id} not found")
        players = gs.players(game_id)
        if any(p.role is None for p in players):
            raise ValueError(f"game {game_id} has not started")
        names = gs.person_names([p.player_id for p in players])
        lovers = {}
        for p in players:
            partner = gs.lover_partner(game_id, p.player_id)
            if partner is not None:
                lovers[p.player_id] = partner
        return _SourceGame(
            persons=[(p.player_id, names[p.player_id]) for p in players],
            roles=[RoleName(p.role) for p in players],
            actions=gs.actions(game_id).all(),
            lovers=lovers,
            alive={p.player_id: p.is_alive for p in players},
            status=game.status,
            round=game.round,
        )


async def _reissue(controller: GameController, action: Action, source: _SourceGame) -> None:
    """Re-issue one logged action as the intent that produced it."""
    actor, target = action.actor, action.target
    kind = action.action_type

    if kind == ActionType.WEREWOLF_KILL:
        await controller.werewolf_vote(actor, target)
    elif kind == ActionType.WEREWOLF_KILL2:
        await controller.werewolf_vote2(actor, target)
    elif kind == ActionType.SEER_INVESTIGATE:
        await controller.seer_investigate(actor, target)
    elif kind == ActionType.DOCTOR_PROTECT:
        await controller.doctor_protect(actor, target)
    elif kind == ActionType.GUARD_PROTECT:
        await controller.guard_protect(actor, target)
    elif kind == ActionType.WITCH_HEAL:
        await controller.witch_heal(actor, target)
    elif kind == ActionType.WITCH_KILL:
        await controller.witch_kill(actor, target)
    elif kind == ActionType.WITCH_PASS:
        await controller.witch_pass(actor)
    elif kind == ActionType.CUPID_LINK:
        # The Cupid's own row holds the first choice; the partner comes from the pair.
        await controller.cupid_choose(actor, target)
        partner = source.lovers.get(target)
        if partner is not None:
            await controller.cupid_choose(actor, partner)
    elif kind == ActionType.DAY_VOTE:
        if target is None:
            await controller.day_pass(actor)
        else:
            await controller.day_vote(actor, target)
    elif kind == ActionType.HUNTER_REVENGE:
        await controller.hunter_revenge(actor, target)
    else:
        raise ValueError(f"cannot replay {kind.value}")


async def replay_game_async(store: StateStore, game_id: int) -> ReplayResult:
    """Replay a game and compare the result with the source."""
    source = _load_source(store, game_id)
    role_by_player = dict(zip((pid for pid, _ in source.persons), source.roles))

    fresh = StateStore("sqlite://")
    try:
        def recorded_shuffle(pool: list[RoleName]) -> None:
            pool[:] = source.roles

        controller = GameController(fresh, shuffle=recorded_shuffle)
        with fresh.transaction() as gs:
            for player_id, name in source.persons:
                gs.register_person(name, player_id=player_id)

        for player_id, _ in source.persons:
            await controller.join_lobby(player_id)
        for role in source.roles:
            await controller.set_role_count(None, role.value, 1)
        await controller.start_game()

        errors: list[str] = []
        replayed = 0
        for action in source.actions:
            if action.action_type in DERIVED_ACTIONS:
                continue
            if (
                action.action_type == ActionType.CUPID_LINK
                and role_by_player.get(action.actor) != RoleName.CUPID
            ):
                continue
            try:
                await _reissue(controller, action, source)
            except IntentError as exc:
                logger.warning("Replay of game %d diverged at %s: %s", game_id, action, exc)
                errors.append(f"{action}: {exc}")
            replayed += 1

        with fresh.transaction() as gs:
            game = gs.current_game()
            replay_alive = {p.player_id: p.is_alive for p in gs.players(game.id)}
            replay_status, replay_round = game.status, game.round
    finally:
        fresh.dispose()

    return ReplayResult(
        game_id=game_id,
        source_alive=source.alive,
        replay_alive=replay_alive,
        source_status=source.status,
        replay_status=replay_status,
        source_round=source.round,
        replay_round=replay_round,
        replayed_actions=replayed,
        errors=errors,
    )


def replay_game(store: StateStore, game_id: int) -> ReplayResult:
    """Synchronous wrapper around `replay_game_async`."""
    return asyncio.run(replay_game_async(store, game_id))
