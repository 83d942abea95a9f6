"""Night resolution - decides whether the night is complete and applies its deaths.

The resolver reads only the action log of the current round, so the outcome
does not depend on the order in which night actions arrived.

Gates (all must hold before anything changes):
1. Every living werewolf-team player voted `werewolf_kill` and the top target
   holds a strict majority of living werewolves.
2. If Wolf Cub revenge is active, the same holds for `werewolf_kill2`.
3. On night 1 with a living Cupid, the lovers are linked.
4. Every living Seer, Doctor and Guard has acted, and every living Witch
   has passed.

Resolution order:
a. victim1 / victim2 are the majority targets of the two kill votes.
b. victim1 is spared by any doctor, guard or witch-heal on them.
c. Otherwise victim1 dies.
d. Witch poison targets die.
e. victim2 goes through the same protection check.
f-j. Status moves to day, heartbreak chain, victory check.
"""

import logging
from typing import Optional
from pydantic import BaseModel

from lupine.engine import narration, transitions
from lupine.engine.chain_processor import process_chain
from lupine.engine.tally import majority_target
from lupine.engine.win_evaluator import check_victory
from lupine.events.actions import (
    WOLF_CUB_TRIGGER_CAUSES,
    ActionType,
    DeathCause,
    Phase,
    Visibility,
)
from lupine.models.roles import RoleName, Team, is_werewolf_team, night_duties
from lupine.store.schema import GamePlayerRow, GameRow
from lupine.store.state_store import GameSession

logger = logging.getLogger(__name__)

_PROTECTIONS = (ActionType.DOCTOR_PROTECT, ActionType.GUARD_PROTECT, ActionType.WITCH_HEAL)


class NightOutcome(BaseModel):
    """Result of one night resolver invocation."""

    resolved: bool = False
    victim1: Optional[int] = None
    victim2: Optional[int] = None
    saved: list[int] = []
    deaths: list[int] = []
    heartbreaks: list[int] = []
    hunters: list[int] = []  # Hunters who died and may now take revenge
    winner: Optional[Team] = None

    @property
    def all_deaths(self) -> list[int]:
        return self.deaths + self.heartbreaks


def living_werewolves(gs: GameSession, game: GameRow) -> list[GamePlayerRow]:
    return [p for p in gs.alive_players(game.id) if is_werewolf_team(p.role)]


def wolf_cub_revenge_active(gs: GameSession, game: GameRow) -> bool:
    """True if a Wolf Cub died last round by a triggering cause."""
    trigger_causes = {cause.value for cause in WOLF_CUB_TRIGGER_CAUSES}
    return any(
        p.role == RoleName.WOLF_CUB.value
        and not p.is_alive
        and p.death_round == game.round - 1
        and p.death_cause in trigger_causes
        for p in gs.players(game.id)
    )


def werewolf_majority(gs: GameSession, game: GameRow, action_type: ActionType) -> Optional[int]:
    """Current majority target of a werewolf kill vote, counting living voters only."""
    wolves = {p.player_id for p in living_werewolves(gs, game)}
    votes = [
        a.target
        for a in gs.actions(game.id).for_round(game.round, Phase.NIGHT, action_type)
        if a.actor in wolves
    ]
    return majority_target(votes, len(wolves))


def current_victims(gs: GameSession, game: GameRow) -> set[int]:
    """Players the werewolves currently hold a majority on (for the Witch's heal)."""
    victims = {werewolf_majority(gs, game, ActionType.WEREWOLF_KILL)}
    if wolf_cub_revenge_active(gs, game):
        victims.add(werewolf_majority(gs, game, ActionType.WEREWOLF_KILL2))
    victims.discard(None)
    return victims


class NightResolver:
    """Resolves the current night once every gate is met."""

    def __init__(self, gs: GameSession, game: GameRow):
        self.gs = gs
        self.game = game
        self.log = gs.actions(game.id)

    def _acted(self, action_type: ActionType) -> set[int]:
        return {a.actor for a in self.log.for_round(self.game.round, Phase.NIGHT, action_type)}

    def _kill_vote_ready(self, action_type: ActionType, wolves: set[int]) -> tuple[bool, Optional[int]]:
        voted = self._acted(action_type) & wolves
        if voted != wolves:
            logger.debug(
                "Game %d: waiting for %s votes %d/%d",
                self.game.id, action_type.value, len(voted), len(wolves),
            )
            return False, None
        target = werewolf_majority(self.gs, self.game, action_type)
        if wolves and target is None:
            logger.debug("Game %d: no %s majority yet", self.game.id, action_type.value)
            return False, None
        return True, target

    def gates_met(self) -> tuple[bool, Optional[int], Optional[int]]:
        """Check every gate. Returns (met, victim1, victim2)."""
        alive = self.gs.alive_players(self.game.id)
        wolves = {p.player_id for p in alive if is_werewolf_team(p.role)}

        ready, victim1 = self._kill_vote_ready(ActionType.WEREWOLF_KILL, wolves)
        if not ready:
            return False, None, None

        victim2 = None
        if wolf_cub_revenge_active(self.gs, self.game):
            ready, victim2 = self._kill_vote_ready(ActionType.WEREWOLF_KILL2, wolves)
            if not ready:
                return False, None, None

        if self.game.round == 1:
            cupid_alive = any(p.role == RoleName.CUPID.value for p in alive)
            if cupid_alive and not self.gs.has_lovers(self.game.id):
                logger.debug("Game %d: waiting for cupid", self.game.id)
                return False, None, None

        for role, action_type in night_duties():
            holders = {p.player_id for p in alive if p.role == role.value}
            done = self._acted(action_type) & holders
            if done != holders:
                logger.debug(
                    "Game %d: waiting for %ss %d/%d",
                    self.game.id, role.value, len(done), len(holders),
                )
                return False, None, None

        return True, victim1, victim2

    def _protected(self, player_id: int) -> bool:
        """Doctor, guard and witch heal all spare a werewolf victim."""
        for action_type in _PROTECTIONS:
            for action in self.log.for_round(self.game.round, Phase.NIGHT, action_type):
                if action.target == player_id:
                    return True
        return False

    def _kill(self, player_id: int, cause: DeathCause, deaths: list[int]) -> None:
        player = self.gs.get_player(self.game.id, player_id)
        if player is None or not player.is_alive:
            return
        self.gs.mark_dead(player, cause, self.game.round)
        deaths.append(player_id)
        logger.info("Game %d: player %d died (%s)", self.game.id, player_id, cause.value)

    def resolve(self) -> NightOutcome:
        """Resolve the night if complete; otherwise return an unresolved outcome."""
        met, victim1, victim2 = self.gates_met()
        if not met:
            return NightOutcome()

        outcome = NightOutcome(resolved=True, victim1=victim1, victim2=victim2)
        deaths: list[int] = []

        if victim1 is not None:
            if self._protected(victim1):
                outcome.saved.append(victim1)
            else:
                self._kill(victim1, DeathCause.WEREWOLF_KILL, deaths)

        for poison in self.log.for_round(self.game.round, Phase.NIGHT, ActionType.WITCH_KILL):
            if poison.target is not None:
                self._kill(poison.target, DeathCause.WITCH_POISON, deaths)

        if victim2 is not None:
            if self._protected(victim2):
                if victim2 not in outcome.saved:
                    outcome.saved.append(victim2)
            else:
                self._kill(victim2, DeathCause.WOLF_CUB_REVENGE, deaths)

        outcome.deaths = deaths
        for victim_id in deaths:
            victim = self.gs.get_player(self.game.id, victim_id)
            self.log.record(
                round=self.game.round,
                phase=Phase.NIGHT,
                actor=victim_id,
                action_type=ActionType.NIGHT_KILL,
                target=victim_id,
                visibility=Visibility.PUBLIC,
                description=narration.night_death(
                    self.game.round, narration.who(self.gs.person_name(victim_id), victim.role)
                ),
            )

        transitions.to_day(self.game)
        logger.info(
            "Game %d: night %d resolved, deaths=%s saved=%s",
            self.game.id, self.game.round, deaths, outcome.saved,
        )

        outcome.heartbreaks = process_chain(self.gs, self.game, deaths, Phase.NIGHT)
        outcome.hunters = [
            pid for pid in outcome.all_deaths
            if self.gs.get_player(self.game.id, pid).role == RoleName.HUNTER.value
        ]
        outcome.winner = check_victory(self.gs, self.game)
        return outcome
