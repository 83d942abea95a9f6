"""Victory detection."""

from typing import Iterable, Optional

from lupine.engine import transitions
from lupine.models.roles import Team, team_of
from lupine.store.schema import GamePlayerRow, GameRow
from lupine.store.state_store import GameSession


def winning_team(players: Iterable[GamePlayerRow]) -> Optional[Team]:
    """Return the winning team for a set of players, or None if the game goes on.

    No living werewolves means the villagers win; no living villagers means
    the werewolves win. The werewolf check runs first, so an empty board is
    a villager win. A mixed-team lover pair never wins as a third faction.
    """
    werewolves = 0
    villagers = 0
    for player in players:
        if not player.is_alive:
            continue
        team = team_of(player.role)
        if team == Team.WEREWOLF:
            werewolves += 1
        elif team == Team.VILLAGER:
            villagers += 1

    if werewolves == 0:
        return Team.VILLAGER
    if villagers == 0:
        return Team.WEREWOLF
    return None


def check_victory(gs: GameSession, game: GameRow) -> Optional[Team]:
    """Evaluate victory and finish the game if a team has won."""
    winner = winning_team(gs.players(game.id))
    if winner is not None:
        transitions.finish(game, winner)
    return winner
