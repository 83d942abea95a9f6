"""Per-player view snapshots built from the state store.

A view carries only what its viewer may know: their own role, teammates
(werewolves see werewolves, Masons see Masons), their lover, and the
history rows their visibility allows.
"""

from typing import Optional
from pydantic import BaseModel

from lupine.engine.day_resolver import pending_hunters, votes_closed
from lupine.events.actions import Action, GameStatus
from lupine.events.visibility import visible_history
from lupine.models.roles import RoleName, display_name, is_werewolf_team, team_of
from lupine.store.schema import GameRow
from lupine.store.state_store import GameSession


class PlayerSummary(BaseModel):
    player_id: int
    name: str
    is_alive: bool
    role: Optional[str] = None  # Only when the viewer may know it


class PlayerView(BaseModel):
    """Everything one player's client renders for the current game."""

    game_id: int
    viewer_id: int
    status: GameStatus
    round: int
    role: Optional[str] = None
    role_display: str = "Unassigned"
    team: Optional[str] = None
    is_alive: bool = True
    players: list[PlayerSummary] = []
    teammates: list[int] = []
    lover: Optional[int] = None
    hunter_pending: bool = False
    votes_closed: bool = False
    role_config: dict[str, int] = {}
    winner: Optional[str] = None
    history: list[Action] = []


def teammates(gs: GameSession, game: GameRow, player_id: int) -> list[int]:
    """Players whose role this player knows."""
    me = gs.get_player(game.id, player_id)
    if me is None or me.role is None:
        return []
    others = [p for p in gs.players(game.id) if p.player_id != player_id]
    if is_werewolf_team(me.role):
        return [p.player_id for p in others if is_werewolf_team(p.role)]
    if me.role == RoleName.MASON.value:
        return [p.player_id for p in others if p.role == RoleName.MASON.value]
    return []


def build_player_view(gs: GameSession, game: GameRow, viewer_id: int) -> PlayerView:
    """Build the view of `game` for one player."""
    me = gs.get_player(game.id, viewer_id)
    role = me.role if me is not None else None
    team = team_of(role)
    known = set(teammates(gs, game, viewer_id)) | {viewer_id}
    finished = game.status == GameStatus.FINISHED.value

    players = gs.players(game.id)
    names = gs.person_names([p.player_id for p in players])
    summaries = [
        PlayerSummary(
            player_id=p.player_id,
            name=names.get(p.player_id, f"Player {p.player_id}"),
            is_alive=p.is_alive,
            role=p.role if (finished or p.player_id in known) else None,
        )
        for p in players
    ]

    day = game.status == GameStatus.DAY.value
    pending = {p.player_id for p in pending_hunters(gs, game)} if day else set()
    history = visible_history(
        gs.actions(game.id).all(),
        viewer_id,
        team.value if team is not None else None,
    )

    return PlayerView(
        game_id=game.id,
        viewer_id=viewer_id,
        status=GameStatus(game.status),
        round=game.round,
        role=role,
        role_display=display_name(role),
        team=team.value if team is not None else None,
        is_alive=me.is_alive if me is not None else False,
        players=summaries,
        teammates=sorted(known - {viewer_id}),
        lover=gs.lover_partner(game.id, viewer_id),
        hunter_pending=viewer_id in pending,
        votes_closed=day and votes_closed(gs, game),
        role_config={r.value: c for r, c in gs.role_counts(game.id).items()},
        winner=game.winner,
        history=history,
    )
