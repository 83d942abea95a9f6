"""Random-game simulation harness.

Drives a `GameController` with random legal intents until the game ends.
Used by the property tests and by `lupine simulate`; it is not a bot
opponent for live games.

Each step reads a snapshot of the store, lists the intents still owed by
living players (werewolf votes, night duties, Cupid's link, day votes,
Hunter shots) and submits one of them at random. Werewolves mostly follow
the first wolf's choice and villagers mostly join the leading day vote, so
majorities form and games finish.
"""

import logging
import random
from collections import Counter
from typing import Awaitable, Callable, Optional
from pydantic import BaseModel

from lupine.engine.controller import GameController
from lupine.engine.day_resolver import pending_hunters, votes_closed
from lupine.engine.night_resolver import current_victims, wolf_cub_revenge_active
from lupine.events.actions import ActionType, GameStatus, Phase
from lupine.models.roles import RoleName, is_werewolf_team
from lupine.store.state_store import StateStore
from lupine.validation.exceptions import IntentError

logger = logging.getLogger(__name__)

MIN_PLAYERS = 4
MAX_PLAYERS = 15
DEFAULT_MAX_ROUNDS = 40

_SPECIAL_VILLAGERS = [
    RoleName.SEER,
    RoleName.DOCTOR,
    RoleName.WITCH,
    RoleName.HUNTER,
    RoleName.CUPID,
    RoleName.GUARD,
    RoleName.MASON,
]

Intent = Callable[[], Awaitable[object]]


class SimulationResult(BaseModel):
    """Summary of one simulated game."""

    game_id: int
    players: int
    roles: dict[str, int]
    status: str
    winner: Optional[str] = None
    rounds: int
    steps: int
    rejected: int = 0

    @property
    def finished(self) -> bool:
        return self.status == GameStatus.FINISHED.value


def random_role_config(rng: random.Random, n: int) -> dict[RoleName, int]:
    """Random role composition for `n` players.

    At least one werewolf-team role and one villager-team role, werewolves
    never a majority, and at most one Cupid.
    """
    if not MIN_PLAYERS <= n <= MAX_PLAYERS:
        raise ValueError(f"player count must be between {MIN_PLAYERS} and {MAX_PLAYERS}, got {n}")

    wolves = rng.randint(1, max(1, (n - 1) // 3))
    counts: Counter = Counter()
    if wolves > 1 and rng.random() < 0.5:
        counts[RoleName.WOLF_CUB] += 1
        wolves -= 1
    counts[RoleName.WEREWOLF] += wolves

    villagers = n - sum(counts.values())
    specials = rng.sample(_SPECIAL_VILLAGERS, k=rng.randint(0, min(villagers, len(_SPECIAL_VILLAGERS))))
    for role in specials:
        counts[role] += 1
    if counts[RoleName.MASON] and villagers - len(specials) > 0 and rng.random() < 0.5:
        counts[RoleName.MASON] += 1
    counts[RoleName.VILLAGER] += n - sum(counts.values())
    return {role: count for role, count in counts.items() if count > 0}


class _Snapshot(BaseModel):
    status: str
    round: int
    roles: dict[int, str]
    alive: list[int]
    acted: dict[str, list[int]]
    wolf_votes: dict[str, dict[int, int]]
    revenge_active: bool = False
    has_lovers: bool = False
    cupid_first: dict[int, int] = {}
    last_guard: dict[int, int] = {}
    victims: list[int] = []
    used_heal: list[int] = []
    used_poison: list[int] = []
    hunters: list[int] = []
    votes_closed: bool = False
    day_votes: dict[int, Optional[int]] = {}


def _snapshot(store: StateStore, game_id: int) -> _Snapshot:
    with store.transaction() as gs:
        game = gs.get_game(game_id)
        players = gs.players(game_id)
        log = gs.actions(game_id)
        night = log.for_round(game.round, Phase.NIGHT)
        acted: dict[str, list[int]] = {}
        wolf_votes: dict[str, dict[int, int]] = {
            ActionType.WEREWOLF_KILL.value: {},
            ActionType.WEREWOLF_KILL2.value: {},
        }
        cupid_first = {}
        for action in night:
            acted.setdefault(action.action_type.value, []).append(action.actor)
            if action.action_type.value in wolf_votes:
                wolf_votes[action.action_type.value][action.actor] = action.target
            if action.action_type == ActionType.CUPID_LINK:
                cupid_first[action.actor] = action.target

        is_night = game.status == GameStatus.NIGHT.value
        is_day = game.status == GameStatus.DAY.value
        return _Snapshot(
            status=game.status,
            round=game.round,
            roles={p.player_id: p.role for p in players},
            alive=[p.player_id for p in players if p.is_alive],
            acted=acted,
            wolf_votes=wolf_votes,
            revenge_active=is_night and wolf_cub_revenge_active(gs, game),
            has_lovers=gs.has_lovers(game_id),
            cupid_first=cupid_first,
            last_guard={
                a.actor: a.target
                for a in log.for_round(game.round - 1, Phase.NIGHT, ActionType.GUARD_PROTECT)
            },
            victims=sorted(current_victims(gs, game)) if is_night else [],
            used_heal=[a.actor for a in log.all() if a.action_type == ActionType.WITCH_HEAL],
            used_poison=[a.actor for a in log.all() if a.action_type == ActionType.WITCH_KILL],
            hunters=[p.player_id for p in pending_hunters(gs, game)] if is_day else [],
            votes_closed=is_day and votes_closed(gs, game),
            day_votes={
                a.actor: a.target
                for a in log.for_round(game.round, Phase.DAY, ActionType.DAY_VOTE)
            },
        )


class RandomDriver:
    """Chooses random legal intents for every player who still owes one."""

    def __init__(self, controller: GameController, rng: random.Random):
        self.controller = controller
        self.rng = rng

    def _pick(self, candidates: list[int]) -> Optional[int]:
        return self.rng.choice(candidates) if candidates else None

    def _wolf_intents(self, snap: _Snapshot, action_type: ActionType) -> list[Intent]:
        c = self.controller
        vote = c.werewolf_vote2 if action_type == ActionType.WEREWOLF_KILL2 else c.werewolf_vote
        wolves = [pid for pid in snap.alive if is_werewolf_team(snap.roles[pid])]
        votes = snap.wolf_votes[action_type.value]
        prey = [pid for pid in snap.alive if not is_werewolf_team(snap.roles[pid])] or snap.alive
        intents: list[Intent] = []

        leader = Counter(t for w, t in votes.items() if w in wolves).most_common(1)
        for wolf in wolves:
            if wolf in votes:
                continue
            if leader and self.rng.random() < 0.85:
                target = leader[0][0]
            else:
                target = self._pick(prey)
            intents.append(lambda w=wolf, t=target: vote(w, t))

        if not intents and wolves:
            # Everyone voted without a majority: a dissenter joins the leader.
            top = leader[0][0]
            dissenters = [w for w in wolves if votes.get(w) != top]
            if dissenters and leader[0][1] <= len(wolves) // 2:
                wolf = self._pick(dissenters)
                intents.append(lambda w=wolf, t=top: vote(w, t))
        return intents

    def night_intents(self, snap: _Snapshot) -> list[Intent]:
        c = self.controller
        intents = self._wolf_intents(snap, ActionType.WEREWOLF_KILL)
        if snap.revenge_active:
            intents += self._wolf_intents(snap, ActionType.WEREWOLF_KILL2)

        def acted(action_type: ActionType) -> list[int]:
            return snap.acted.get(action_type.value, [])

        for pid in snap.alive:
            role = snap.roles[pid]
            others = [t for t in snap.alive if t != pid]
            if role == RoleName.CUPID.value and snap.round == 1 and not snap.has_lovers:
                first = snap.cupid_first.get(pid)
                choices = [t for t in snap.alive if t != first]
                target = self._pick(choices)
                if target is not None:
                    intents.append(lambda p=pid, t=target: c.cupid_choose(p, t))
            elif role == RoleName.SEER.value and pid not in acted(ActionType.SEER_INVESTIGATE):
                target = self._pick(others)
                if target is not None:
                    intents.append(lambda p=pid, t=target: c.seer_investigate(p, t))
            elif role == RoleName.DOCTOR.value and pid not in acted(ActionType.DOCTOR_PROTECT):
                target = self._pick(snap.alive)
                intents.append(lambda p=pid, t=target: c.doctor_protect(p, t))
            elif role == RoleName.GUARD.value and pid not in acted(ActionType.GUARD_PROTECT):
                target = self._pick([t for t in others if t != snap.last_guard.get(pid)])
                if target is not None:
                    intents.append(lambda p=pid, t=target: c.guard_protect(p, t))
            elif role == RoleName.WITCH.value and pid not in acted(ActionType.WITCH_PASS):
                intents.append(self._witch_intent(snap, pid, acted))
        return intents

    def _witch_intent(
        self,
        snap: _Snapshot,
        pid: int,
        acted: Callable[[ActionType], list[int]],
    ) -> Intent:
        c = self.controller
        healable = [v for v in snap.victims if v != pid]
        if (
            healable
            and pid not in snap.used_heal
            and pid not in acted(ActionType.WITCH_HEAL)
            and self.rng.random() < 0.3
        ):
            target = self._pick(healable)
            return lambda: c.witch_heal(pid, target)
        if (
            pid not in snap.used_poison
            and pid not in acted(ActionType.WITCH_KILL)
            and self.rng.random() < 0.15
        ):
            target = self._pick(snap.alive)
            return lambda: c.witch_kill(pid, target)
        return lambda: c.witch_pass(pid)

    def day_intents(self, snap: _Snapshot) -> list[Intent]:
        c = self.controller
        intents: list[Intent] = []
        for hunter in snap.hunters:
            target = self._pick(snap.alive)
            if target is not None:
                intents.append(lambda h=hunter, t=target: c.hunter_revenge(h, t))
        if snap.votes_closed:
            return intents

        leader = Counter(
            t for v, t in snap.day_votes.items() if t is not None and v in snap.alive
        ).most_common(1)
        for pid in snap.alive:
            if pid in snap.day_votes:
                continue
            roll = self.rng.random()
            if roll < 0.1:
                intents.append(lambda p=pid: c.day_pass(p))
                continue
            if leader and roll < 0.7 and leader[0][0] != pid:
                target = leader[0][0]
            else:
                target = self._pick([t for t in snap.alive if t != pid] or snap.alive)
            intents.append(lambda p=pid, t=target: c.day_vote(p, t))
        return intents

    def intents(self, snap: _Snapshot) -> list[Intent]:
        if snap.status == GameStatus.NIGHT.value:
            return self.night_intents(snap)
        if snap.status == GameStatus.DAY.value:
            return self.day_intents(snap)
        return []


async def setup_game(
    controller: GameController,
    store: StateStore,
    counts: dict[RoleName, int],
    name_prefix: str = "player",
) -> int:
    """Register persons, join them, configure roles and start. Returns the game id.

    A game left unfinished by an earlier run is abandoned in favour of a new lobby.
    """
    n = sum(counts.values())
    with store.transaction() as gs:
        game = gs.current_game()
        if game is None or game.status != GameStatus.LOBBY.value:
            game = gs.create_lobby()
        game_id = game.id
        ids = [gs.register_person(f"{name_prefix}-{game_id}-{i}") for i in range(n)]
    for pid in ids:
        await controller.join_lobby(pid)
    for role, count in counts.items():
        for _ in range(count):
            await controller.set_role_count(ids[0], role.value, 1)
    await controller.start_game(ids[0])
    return game_id


async def play_random_game(
    controller: GameController,
    store: StateStore,
    rng: random.Random,
    n: Optional[int] = None,
    counts: Optional[dict[RoleName, int]] = None,
    max_rounds: int = DEFAULT_MAX_ROUNDS,
    on_step: Optional[Callable[[int], None]] = None,
) -> SimulationResult:
    """Play one random game to completion (or until `max_rounds`).

    Args:
        controller: Controller bound to `store`.
        store: State store.
        rng: Source of every random choice.
        n: Player count (random in 4-15 when omitted and `counts` is None).
        counts: Explicit role configuration; overrides `n`.
        max_rounds: Stop once the round counter passes this.
        on_step: Called with the game id after every submitted intent.
    """
    if counts is None:
        n = n if n is not None else rng.randint(MIN_PLAYERS, MAX_PLAYERS)
        counts = random_role_config(rng, n)
    game_id = await setup_game(controller, store, counts)
    driver = RandomDriver(controller, rng)

    steps = 0
    rejected = 0
    while True:
        snap = _snapshot(store, game_id)
        if snap.status == GameStatus.FINISHED.value or snap.round > max_rounds:
            break
        intents = driver.intents(snap)
        if not intents:
            logger.warning("Game %d stalled in %s %d", game_id, snap.status, snap.round)
            break
        try:
            await rng.choice(intents)()
        except IntentError as exc:
            rejected += 1
            logger.debug("Game %d: simulated intent rejected: %s", game_id, exc)
            if rejected > 1000:
                break
        steps += 1
        if on_step is not None:
            on_step(game_id)

    with store.transaction() as gs:
        game = gs.get_game(game_id)
        return SimulationResult(
            game_id=game_id,
            players=sum(counts.values()),
            roles={role.value: count for role, count in counts.items()},
            status=game.status,
            winner=game.winner,
            rounds=game.round,
            steps=steps,
            rejected=rejected,
        )

