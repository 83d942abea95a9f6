"""GameController - receives player intents and drives the game state machine.

Every intent runs under one asyncio lock and inside one store transaction:
the recorded action, resolver reads, deaths, chain and transition commit
together or not at all. Broadcasts, toasts and the storyteller run after
the commit.
"""

import asyncio
import logging
from typing import Callable, Optional, TYPE_CHECKING
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError

from lupine.broadcast.broadcaster import Broadcaster, NullBroadcaster
from lupine.engine import narration, transitions
from lupine.engine.day_resolver import DayOutcome, DayResolver
from lupine.engine.night_resolver import (
    NightOutcome,
    NightResolver,
    current_victims,
    wolf_cub_revenge_active,
)
from lupine.events.actions import ActionType, GameStatus, Phase, Visibility
from lupine.models.roles import (
    Shuffle,
    Team,
    assign_roles,
    secure_shuffle,
    team_of,
)
from lupine.store.schema import GameRow
from lupine.store.state_store import GameSession, StateStore, StoreIntegrityError
from lupine.validation import (
    MalformedIntent,
    parse_role,
    require_game,
    require_status,
    validate_cupid_choice,
    validate_day_vote,
    validate_day_voter,
    validate_doctor_action,
    validate_guard_action,
    validate_hunter_revenge,
    validate_role_delta,
    validate_seer_action,
    validate_start,
    validate_werewolf_vote,
    validate_witch_heal,
    validate_witch_pass,
    validate_witch_poison,
)

if TYPE_CHECKING:
    from lupine.storyteller import Narrator

logger = logging.getLogger(__name__)


class Toast(BaseModel):
    player_id: int
    level: str = "info"
    message: str


class IntentResult(BaseModel):
    """What an intent did, for callers and for post-commit work."""

    game_id: Optional[int] = None
    changed: bool = True
    phase: Optional[Phase] = None
    round: int = 0
    deaths: list[int] = []
    night: Optional[NightOutcome] = None
    day: Optional[DayOutcome] = None
    toasts: list[Toast] = []
    team: Optional[Team] = None  # Seer investigation result


class GameController:
    """Validates intents, records actions and invokes the resolvers.

    Intent bodies run the synchronous SQLAlchemy session directly on the event
    loop while the lock is held. That is fine for in-memory and local SQLite;
    a remote database would stall every other coroutine for the length of
    each transaction.

    Args:
        store: The state store.
        broadcaster: Receives a `game_changed` tick after every successful intent.
        narrator: Optional storyteller orchestration, run after death-producing
            resolutions.
        shuffle: In-place role permutation used by `start_game`.
    """

    def __init__(
        self,
        store: StateStore,
        broadcaster: Optional[Broadcaster] = None,
        narrator: Optional["Narrator"] = None,
        shuffle: Shuffle = secure_shuffle,
    ):
        self.store = store
        self.broadcaster = broadcaster or NullBroadcaster()
        self.narrator = narrator
        self.shuffle = shuffle
        self._lock = asyncio.Lock()
        self._story_tasks: set[asyncio.Task] = set()

    # Critical section

    async def _run(
        self,
        name: str,
        player_id: Optional[int],
        body: Callable[[GameSession], IntentResult],
    ) -> IntentResult:
        async with self._lock:
            try:
                with self.store.transaction() as gs:
                    result = body(gs)
            except (SQLAlchemyError, StoreIntegrityError) as exc:
                logger.error("Store error in %s from player %s: %s", name, player_id, exc)
                raise MalformedIntent("Internal error, please retry") from exc

        if result.changed and result.game_id is not None:
            await self.broadcaster.game_changed(result.game_id)
        for toast in result.toasts:
            await self.broadcaster.toast(toast.player_id, toast.level, toast.message)
        if result.deaths and self.narrator is not None:
            self._schedule_story(result)
        return result

    def _schedule_story(self, result: IntentResult) -> None:
        task = asyncio.create_task(
            self.narrator.narrate(result.game_id, result.round, result.phase, result.deaths[0])
        )
        self._story_tasks.add(task)
        task.add_done_callback(self._story_tasks.discard)

    async def drain(self) -> None:
        """Wait for outstanding storyteller tasks."""
        while self._story_tasks:
            await asyncio.gather(*list(self._story_tasks))

    # Helpers

    @staticmethod
    def _game(gs: GameSession) -> GameRow:
        return require_game(gs.current_game())

    @staticmethod
    def _name(gs: GameSession, player_id: int) -> str:
        return gs.person_name(player_id)

    def _after_night(self, gs: GameSession, game: GameRow, result: IntentResult) -> IntentResult:
        round_ = game.round
        outcome = NightResolver(gs, game).resolve()
        result.night = outcome
        if outcome.resolved:
            result.deaths = outcome.all_deaths
            result.phase = Phase.NIGHT
            result.round = round_
        return result

    def _apply_day(self, result: IntentResult, outcome: DayOutcome, round_: int) -> IntentResult:
        result.day = outcome
        deaths = [pid for pid in (outcome.shot, outcome.elected) if pid is not None]
        if outcome.resolved and (deaths or outcome.heartbreaks):
            result.deaths = deaths + outcome.heartbreaks
            result.phase = Phase.DAY
            result.round = round_
        return result

    # Lobby

    async def join_lobby(self, player_id: int) -> IntentResult:
        """Add a player to the lobby. Outside the lobby this does nothing."""
        def body(gs: GameSession) -> IntentResult:
            game = gs.get_or_create_lobby()
            if game.status != GameStatus.LOBBY.value:
                return IntentResult(game_id=game.id, changed=False)
            if gs.add_player(game.id, player_id):
                logger.info("Game %d: player %d joined", game.id, player_id)
            return IntentResult(game_id=game.id)

        return await self._run("join_lobby", player_id, body)

    async def leave_lobby(self, player_id: int) -> IntentResult:
        def body(gs: GameSession) -> IntentResult:
            game = self._game(gs)
            require_status(game, GameStatus.LOBBY, "Can only leave while in the lobby")
            if gs.remove_player(game.id, player_id):
                logger.info("Game %d: player %d left", game.id, player_id)
            return IntentResult(game_id=game.id)

        return await self._run("leave_lobby", player_id, body)

    async def set_role_count(self, player_id: Optional[int], role_id: str, delta: int) -> IntentResult:
        """Adjust the role configuration by one."""
        def body(gs: GameSession) -> IntentResult:
            game = self._game(gs)
            require_status(game, GameStatus.LOBBY, "Cannot update roles: game already started")
            role = parse_role(role_id)
            validate_role_delta(delta)
            count = gs.adjust_role_count(game.id, role, delta)
            logger.debug("Game %d: %s count now %d", game.id, role.value, count)
            return IntentResult(game_id=game.id)

        return await self._run("set_role_count", player_id, body)

    async def start_game(self, player_id: Optional[int] = None) -> IntentResult:
        """Assign shuffled roles and move to night 1."""
        def body(gs: GameSession) -> IntentResult:
            game = self._game(gs)
            require_status(game, GameStatus.LOBBY, "Game already started")
            players = gs.players(game.id)
            counts = gs.role_counts(game.id)
            validate_start(len(players), counts)

            by_id = {p.player_id: p for p in players}
            for pid, role in assign_roles(list(by_id), counts, self.shuffle):
                by_id[pid].role = role.value
            transitions.start(game)
            logger.info("Game %d started with %d players", game.id, len(players))
            return IntentResult(game_id=game.id)

        return await self._run("start_game", player_id, body)

    # Night

    async def werewolf_vote(self, player_id: int, target_id: int) -> IntentResult:
        return await self._werewolf_vote(player_id, target_id, second=False)

    async def werewolf_vote2(self, player_id: int, target_id: int) -> IntentResult:
        """Second kill vote, open while Wolf Cub revenge is active."""
        return await self._werewolf_vote(player_id, target_id, second=True)

    async def _werewolf_vote(self, player_id: int, target_id: int, second: bool) -> IntentResult:
        action_type = ActionType.WEREWOLF_KILL2 if second else ActionType.WEREWOLF_KILL

        def body(gs: GameSession) -> IntentResult:
            game = self._game(gs)
            revenge = game.status == GameStatus.NIGHT.value and wolf_cub_revenge_active(gs, game)
            validate_werewolf_vote(gs, game, player_id, target_id, second, revenge)
            gs.actions(game.id).record(
                round=game.round,
                phase=Phase.NIGHT,
                actor=player_id,
                action_type=action_type,
                target=target_id,
                visibility=Visibility.TEAM_WEREWOLF,
                description=narration.werewolf_vote(
                    game.round, self._name(gs, player_id), self._name(gs, target_id), second
                ),
            )
            return self._after_night(gs, game, IntentResult(game_id=game.id))

        return await self._run(action_type.value, player_id, body)

    async def seer_investigate(self, player_id: int, target_id: int) -> IntentResult:
        """Investigate a player. The result carries the target's team."""
        def body(gs: GameSession) -> IntentResult:
            game = self._game(gs)
            _, target = validate_seer_action(gs, game, player_id, target_id)
            team = team_of(target.role)
            target_name = self._name(gs, target_id)
            gs.actions(game.id).record(
                round=game.round,
                phase=Phase.NIGHT,
                actor=player_id,
                action_type=ActionType.SEER_INVESTIGATE,
                target=target_id,
                visibility=Visibility.ACTOR,
                description=narration.seer_result(game.round, target_name, team == Team.WEREWOLF),
            )
            verdict = "is a werewolf!" if team == Team.WEREWOLF else "is not a werewolf."
            result = IntentResult(
                game_id=game.id,
                team=team,
                toasts=[Toast(player_id=player_id, message=f"{target_name} {verdict}")],
            )
            return self._after_night(gs, game, result)

        return await self._run("seer_investigate", player_id, body)

    async def doctor_protect(self, player_id: int, target_id: int) -> IntentResult:
        def body(gs: GameSession) -> IntentResult:
            game = self._game(gs)
            validate_doctor_action(gs, game, player_id, target_id)
            gs.actions(game.id).record(
                round=game.round,
                phase=Phase.NIGHT,
                actor=player_id,
                action_type=ActionType.DOCTOR_PROTECT,
                target=target_id,
                visibility=Visibility.ACTOR,
                description=narration.doctor_protect(game.round, self._name(gs, target_id)),
            )
            return self._after_night(gs, game, IntentResult(game_id=game.id))

        return await self._run("doctor_protect", player_id, body)

    async def guard_protect(self, player_id: int, target_id: int) -> IntentResult:
        def body(gs: GameSession) -> IntentResult:
            game = self._game(gs)
            validate_guard_action(gs, game, player_id, target_id)
            gs.actions(game.id).record(
                round=game.round,
                phase=Phase.NIGHT,
                actor=player_id,
                action_type=ActionType.GUARD_PROTECT,
                target=target_id,
                visibility=Visibility.ACTOR,
                description=narration.guard_protect(game.round, self._name(gs, target_id)),
            )
            return self._after_night(gs, game, IntentResult(game_id=game.id))

        return await self._run("guard_protect", player_id, body)

    async def witch_heal(self, player_id: int, target_id: int) -> IntentResult:
        def body(gs: GameSession) -> IntentResult:
            game = self._game(gs)
            victims = current_victims(gs, game) if game.status == GameStatus.NIGHT.value else set()
            validate_witch_heal(gs, game, player_id, target_id, victims)
            gs.actions(game.id).record(
                round=game.round,
                phase=Phase.NIGHT,
                actor=player_id,
                action_type=ActionType.WITCH_HEAL,
                target=target_id,
                visibility=Visibility.ACTOR,
                description=narration.witch_heal(game.round, self._name(gs, target_id)),
            )
            return self._after_night(gs, game, IntentResult(game_id=game.id))

        return await self._run("witch_heal", player_id, body)

    async def witch_kill(self, player_id: int, target_id: int) -> IntentResult:
        def body(gs: GameSession) -> IntentResult:
            game = self._game(gs)
            validate_witch_poison(gs, game, player_id, target_id)
            gs.actions(game.id).record(
                round=game.round,
                phase=Phase.NIGHT,
                actor=player_id,
                action_type=ActionType.WITCH_KILL,
                target=target_id,
                visibility=Visibility.ACTOR,
                description=narration.witch_kill(game.round, self._name(gs, target_id)),
            )
            return self._after_night(gs, game, IntentResult(game_id=game.id))

        return await self._run("witch_kill", player_id, body)

    async def witch_pass(self, player_id: int) -> IntentResult:
        """End the Witch's turn for this night."""
        def body(gs: GameSession) -> IntentResult:
            game = self._game(gs)
            validate_witch_pass(gs, game, player_id)
            gs.actions(game.id).record(
                round=game.round,
                phase=Phase.NIGHT,
                actor=player_id,
                action_type=ActionType.WITCH_PASS,
                visibility=Visibility.ACTOR,
                description=narration.witch_pass(game.round),
            )
            return self._after_night(gs, game, IntentResult(game_id=game.id))

        return await self._run("witch_pass", player_id, body)

    async def cupid_choose(self, player_id: int, target_id: int) -> IntentResult:
        """Record Cupid's first lover, or link the pair on the second distinct choice."""
        def body(gs: GameSession) -> IntentResult:
            game = self._game(gs)
            _, _, first = validate_cupid_choice(gs, game, player_id, target_id)
            log = gs.actions(game.id)
            if first is None:
                # Tentative choice: no description, so it stays out of history.
                log.record(
                    round=1,
                    phase=Phase.NIGHT,
                    actor=player_id,
                    action_type=ActionType.CUPID_LINK,
                    target=target_id,
                    visibility=Visibility.ACTOR,
                )
                return IntentResult(game_id=game.id)

            gs.link_lovers(game.id, first, target_id)
            first_name = self._name(gs, first)
            second_name = self._name(gs, target_id)
            log.record(
                round=1,
                phase=Phase.NIGHT,
                actor=player_id,
                action_type=ActionType.CUPID_LINK,
                target=first,
                visibility=Visibility.ACTOR,
                description=narration.cupid_link(1, first_name, second_name),
            )
            toasts = []
            for lover, partner, partner_name in (
                (first, target_id, second_name),
                (target_id, first, first_name),
            ):
                if lover != player_id:
                    log.record(
                        round=1,
                        phase=Phase.NIGHT,
                        actor=lover,
                        action_type=ActionType.CUPID_LINK,
                        target=partner,
                        visibility=Visibility.ACTOR,
                        description=f"Night 1: Your lover is {partner_name}",
                    )
                toasts.append(Toast(
                    player_id=lover,
                    message=f"Cupid has linked you! Your lover is {partner_name}.",
                ))
            logger.info("Game %d: cupid linked %d and %d", game.id, first, target_id)
            return self._after_night(gs, game, IntentResult(game_id=game.id, toasts=toasts))

        return await self._run("cupid_choose", player_id, body)

    # Day

    async def day_vote(self, player_id: int, target_id: int) -> IntentResult:
        def body(gs: GameSession) -> IntentResult:
            game = self._game(gs)
            validate_day_vote(gs, game, player_id, target_id)
            gs.actions(game.id).record(
                round=game.round,
                phase=Phase.DAY,
                actor=player_id,
                action_type=ActionType.DAY_VOTE,
                target=target_id,
                visibility=Visibility.PUBLIC,
                description=narration.day_vote(
                    game.round, self._name(gs, player_id), self._name(gs, target_id)
                ),
            )
            round_ = game.round
            return self._apply_day(IntentResult(game_id=game.id), DayResolver(gs, game).resolve(), round_)

        return await self._run("day_vote", player_id, body)

    async def day_pass(self, player_id: int) -> IntentResult:
        """Abstain from the day vote (a vote with no target)."""
        def body(gs: GameSession) -> IntentResult:
            game = self._game(gs)
            validate_day_voter(gs, game, player_id)
            gs.actions(game.id).record(
                round=game.round,
                phase=Phase.DAY,
                actor=player_id,
                action_type=ActionType.DAY_VOTE,
                target=None,
                visibility=Visibility.PUBLIC,
                description=narration.day_pass(game.round, self._name(gs, player_id)),
            )
            round_ = game.round
            return self._apply_day(IntentResult(game_id=game.id), DayResolver(gs, game).resolve(), round_)

        return await self._run("day_pass", player_id, body)

    async def day_end_vote(self, player_id: int) -> IntentResult:
        """Ask for the day to resolve. Does nothing until everyone has voted."""
        def body(gs: GameSession) -> IntentResult:
            game = self._game(gs)
            validate_day_voter(gs, game, player_id)
            round_ = game.round
            outcome = DayResolver(gs, game).resolve()
            return self._apply_day(IntentResult(game_id=game.id), outcome, round_)

        return await self._run("day_end_vote", player_id, body)

    async def hunter_revenge(self, player_id: int, target_id: int) -> IntentResult:
        """A dead Hunter's one revenge shot."""
        def body(gs: GameSession) -> IntentResult:
            game = self._game(gs)
            validate_hunter_revenge(gs, game, player_id, target_id)
            round_ = game.round
            outcome = DayResolver(gs, game).revenge(player_id, target_id)
            return self._apply_day(IntentResult(game_id=game.id), outcome, round_)

        return await self._run("hunter_revenge", player_id, body)
