"""Chained deaths: heartbreak between lovers, iterated to a fixpoint."""

import logging

from lupine.engine import narration
from lupine.events.actions import ActionType, DeathCause, Phase, Visibility
from lupine.store.schema import GameRow
from lupine.store.state_store import GameSession

logger = logging.getLogger(__name__)


def process_chain(gs: GameSession, game: GameRow, killed: list[int], phase: Phase) -> list[int]:
    """Propagate heartbreak deaths from a batch of fresh deaths.

    Each killed player's living lover dies too, and their death is fed back
    into the worklist. Terminates after at most one step per player.

    Args:
        gs: Open store transaction.
        game: The current game.
        killed: Player ids that just died, in death order.
        phase: Phase label used for the heartbreak records.

    Returns:
        Players killed by heartbreak, in worklist order.
    """
    log = gs.actions(game.id)
    heartbroken: list[int] = []
    worklist = list(killed)

    while worklist:
        next_worklist: list[int] = []
        for killed_id in worklist:
            partner_id = gs.lover_partner(game.id, killed_id)
            if partner_id is None:
                continue
            partner = gs.get_player(game.id, partner_id)
            if partner is None or not partner.is_alive:
                continue

            gs.mark_dead(partner, DeathCause.HEARTBREAK, game.round)
            log.record(
                round=game.round,
                phase=phase,
                actor=killed_id,
                action_type=ActionType.LOVER_HEARTBREAK,
                target=partner_id,
                visibility=Visibility.PUBLIC,
                description=narration.heartbreak(
                    phase,
                    game.round,
                    narration.who(gs.person_name(partner_id), partner.role),
                    gs.person_name(killed_id),
                ),
            )
            logger.info(
                "Game %d: player %d died of heartbreak after %d", game.id, partner_id, killed_id
            )
            heartbroken.append(partner_id)
            next_worklist.append(partner_id)
        worklist = next_worklist

    return heartbroken
