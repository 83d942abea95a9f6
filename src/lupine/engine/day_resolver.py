"""Day resolution - village vote, elimination, and the Hunter revenge flow."""

import logging
from typing import Optional
from pydantic import BaseModel

from lupine.engine import narration, transitions
from lupine.engine.chain_processor import process_chain
from lupine.engine.tally import majority_target
from lupine.engine.win_evaluator import check_victory
from lupine.events.actions import ActionType, DeathCause, Phase, Visibility
from lupine.models.roles import RoleName, Team
from lupine.store.schema import GamePlayerRow, GameRow
from lupine.store.state_store import GameSession

logger = logging.getLogger(__name__)

_DAY_DEATHS = (ActionType.ELIMINATION, ActionType.HUNTER_REVENGE, ActionType.LOVER_HEARTBREAK)


class DayOutcome(BaseModel):
    """Result of a day resolver invocation."""

    resolved: bool = False
    elected: Optional[int] = None
    shot: Optional[int] = None
    heartbreaks: list[int] = []
    paused_for_hunter: bool = False
    to_night: bool = False
    winner: Optional[Team] = None


def pending_hunters(gs: GameSession, game: GameRow) -> list[GamePlayerRow]:
    """Hunters who died this round and have not fired their shot yet."""
    log = gs.actions(game.id)
    return [
        p for p in gs.players(game.id)
        if p.role == RoleName.HUNTER.value
        and not p.is_alive
        and p.death_round == game.round
        and not log.by_actor(p.player_id, ActionType.HUNTER_REVENGE)
    ]


def votes_closed(gs: GameSession, game: GameRow) -> bool:
    """Votes close once the village has eliminated someone this round."""
    return gs.actions(game.id).exists(ActionType.ELIMINATION, round=game.round)


class DayResolver:
    """Resolves the village vote and the Hunter revenge that may follow it."""

    def __init__(self, gs: GameSession, game: GameRow):
        self.gs = gs
        self.game = game
        self.log = gs.actions(game.id)

    def _hunters_among(self, player_ids: list[int]) -> list[int]:
        return [
            pid for pid in player_ids
            if self.gs.get_player(self.game.id, pid).role == RoleName.HUNTER.value
        ]

    def _anyone_alive(self) -> bool:
        return bool(self.gs.alive_players(self.game.id))

    def _day_hunters_pending(self) -> bool:
        """Whether a Hunter killed during today's vote or its chain has yet to shoot."""
        day_deaths = {
            a.target for a in self.log.for_round(self.game.round, Phase.DAY)
            if a.action_type in _DAY_DEATHS
        }
        return any(p.player_id in day_deaths for p in pending_hunters(self.gs, self.game))

    def all_voted(self) -> bool:
        alive = {p.player_id for p in self.gs.alive_players(self.game.id)}
        voters = {
            a.actor for a in self.log.for_round(self.game.round, Phase.DAY, ActionType.DAY_VOTE)
        }
        missing = alive - voters
        if missing:
            logger.debug(
                "Game %d: waiting for day votes %d/%d",
                self.game.id, len(alive) - len(missing), len(alive),
            )
        return not missing

    def resolve(self) -> DayOutcome:
        """Resolve the day vote once every living player has voted or passed."""
        if votes_closed(self.gs, self.game) or not self.all_voted():
            return DayOutcome()

        alive = {p.player_id for p in self.gs.alive_players(self.game.id)}
        votes = [
            a for a in self.log.for_round(self.game.round, Phase.DAY, ActionType.DAY_VOTE)
            if a.actor in alive
        ]
        real = [a.target for a in votes if a.target is not None]
        pass_count = len(votes) - len(real)
        population = len(alive)
        logger.debug(
            "Game %d: day %d tally real=%d passes=%d alive=%d",
            self.game.id, self.game.round, len(real), pass_count, population,
        )

        elected = None
        if pass_count <= population // 2:
            elected = majority_target([t for t in real if t in alive], population)

        if elected is None:
            logger.info("Game %d: day %d ended with no elimination", self.game.id, self.game.round)
            transitions.to_night(self.game)
            return DayOutcome(resolved=True, to_night=True)

        victim = self.gs.get_player(self.game.id, elected)
        self.gs.mark_dead(victim, DeathCause.ELIMINATION, self.game.round)
        self.log.record(
            round=self.game.round,
            phase=Phase.DAY,
            actor=elected,
            action_type=ActionType.ELIMINATION,
            target=elected,
            visibility=Visibility.PUBLIC,
            description=narration.elimination(
                self.game.round, narration.who(self.gs.person_name(elected), victim.role)
            ),
        )
        logger.info("Game %d: player %d eliminated on day %d", self.game.id, elected, self.game.round)

        heartbreaks = process_chain(self.gs, self.game, [elected], Phase.DAY)
        outcome = DayOutcome(resolved=True, elected=elected, heartbreaks=heartbreaks)

        if self._hunters_among([elected] + heartbreaks) and self._anyone_alive():
            logger.info("Game %d: paused for hunter revenge", self.game.id)
            outcome.paused_for_hunter = True
            return outcome

        outcome.winner = check_victory(self.gs, self.game)
        if outcome.winner is None:
            transitions.to_night(self.game)
            outcome.to_night = True
        return outcome

    def revenge(self, hunter_id: int, target_id: int) -> DayOutcome:
        """Apply a Hunter's shot and decide what happens next.

        The caller has already validated the shot. If the chain kills another
        Hunter the game stays paused for them. Otherwise victory is checked.
        After a day elimination the day closes once every Hunter killed by the
        vote or its chain has shot; Hunters killed the night before are not
        waited for. A revenge that followed a night death returns the village
        to its vote.
        """
        target = self.gs.get_player(self.game.id, target_id)
        self.gs.mark_dead(target, DeathCause.HUNTER_REVENGE, self.game.round)
        self.log.record(
            round=self.game.round,
            phase=Phase.DAY,
            actor=hunter_id,
            action_type=ActionType.HUNTER_REVENGE,
            target=target_id,
            visibility=Visibility.PUBLIC,
            description=narration.hunter_shot(
                self.game.round,
                self.gs.person_name(hunter_id),
                narration.who(self.gs.person_name(target_id), target.role),
            ),
        )
        logger.info("Game %d: hunter %d shot %d", self.game.id, hunter_id, target_id)

        heartbreaks = process_chain(self.gs, self.game, [target_id], Phase.DAY)
        outcome = DayOutcome(resolved=True, shot=target_id, heartbreaks=heartbreaks)

        if self._hunters_among([target_id] + heartbreaks) and self._anyone_alive():
            outcome.paused_for_hunter = True
            return outcome

        outcome.winner = check_victory(self.gs, self.game)
        if outcome.winner is not None:
            return outcome

        if votes_closed(self.gs, self.game):
            # Hunters who died last night do not hold the day open.
            if self._day_hunters_pending():
                outcome.paused_for_hunter = True
            else:
                transitions.to_night(self.game)
                outcome.to_night = True
            return outcome

        # Night-originated chain: the village keeps voting. The shot may have
        # removed the last player who had not voted yet.
        after_vote = self.resolve()
        if after_vote.resolved:
            after_vote.shot = target_id
            after_vote.heartbreaks = heartbreaks + after_vote.heartbreaks
            return after_vote
        return outcome
