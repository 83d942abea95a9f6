"""Phase transitions. These are the only writers of `game.status`."""

import logging

from lupine.events.actions import GameStatus
from lupine.models.roles import Team
from lupine.store.schema import GameRow

logger = logging.getLogger(__name__)


def start(game: GameRow) -> None:
    """Lobby -> night 1."""
    game.status = GameStatus.NIGHT.value
    game.round = 1


def to_day(game: GameRow) -> None:
    """Night -> day. The round is unchanged."""
    game.status = GameStatus.DAY.value
    logger.info("Game %d: day %d begins", game.id, game.round)


def to_night(game: GameRow) -> None:
    """Day -> night of the next round."""
    game.status = GameStatus.NIGHT.value
    game.round += 1
    logger.info("Game %d: night %d begins", game.id, game.round)


def finish(game: GameRow, winner: Team) -> None:
    game.status = GameStatus.FINISHED.value
    game.winner = winner.value
    logger.info("Game %d finished: %s team wins", game.id, winner.value)
