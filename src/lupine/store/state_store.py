"""Transactional state store backed by SQLAlchemy.

The store is the single shared resource of the server. Every controller
intent runs inside one `StateStore.transaction()`; the transaction commits
when the block exits normally and rolls back on any exception.
"""

import logging
from contextlib import contextmanager
from typing import Iterator, Optional

from sqlalchemy import create_engine, delete, select
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from lupine.events.actions import DeathCause, GameStatus
from lupine.models.roles import RoleName
from lupine.store.action_log import ActionLog
from lupine.store.schema import (
    Base,
    GamePlayerRow,
    GameRow,
    LoverPairRow,
    PersonRow,
    RoleConfigRow,
)

logger = logging.getLogger(__name__)

_MEMORY_URLS = ("sqlite://", "sqlite:///:memory:")


class StoreIntegrityError(Exception):
    """Raised when a write would break a store invariant (e.g. reviving a player)."""


class GameSession:
    """Queries and writes over one open store transaction."""

    def __init__(self, session: Session):
        self.session = session

    # Games

    def current_game(self) -> Optional[GameRow]:
        """The most recent game, or None if no game was ever created."""
        stmt = select(GameRow).order_by(GameRow.id.desc()).limit(1)
        return self.session.scalars(stmt).first()

    def get_game(self, game_id: int) -> Optional[GameRow]:
        return self.session.get(GameRow, game_id)

    def create_lobby(self) -> GameRow:
        """Open a new lobby; it becomes the current game."""
        game = GameRow(status=GameStatus.LOBBY.value, round=0)
        self.session.add(game)
        self.session.flush()
        logger.info("Created game %d", game.id)
        return game

    def get_or_create_lobby(self) -> GameRow:
        """Return the current game, creating a lobby if none is active."""
        game = self.current_game()
        if game is None or game.status == GameStatus.FINISHED.value:
            game = self.create_lobby()
        return game

    # Persons

    def register_person(self, name: str, player_id: Optional[int] = None) -> int:
        """Return the id of the person with this name, creating them if needed.

        `player_id` pins the id of a newly created person (used by replay).
        """
        person = self.session.scalars(
            select(PersonRow).where(PersonRow.name == name)
        ).one_or_none()
        if person is None:
            person = PersonRow(id=player_id, name=name)
            self.session.add(person)
            self.session.flush()
        return person.id

    def person_name(self, player_id: int) -> str:
        person = self.session.get(PersonRow, player_id)
        return person.name if person is not None else f"Player {player_id}"

    def person_names(self, player_ids: list[int]) -> dict[int, str]:
        if not player_ids:
            return {}
        rows = self.session.scalars(select(PersonRow).where(PersonRow.id.in_(player_ids)))
        return {row.id: row.name for row in rows}

    # Game players

    def players(self, game_id: int) -> list[GamePlayerRow]:
        """Players of a game in join order."""
        stmt = (
            select(GamePlayerRow)
            .where(GamePlayerRow.game_id == game_id)
            .order_by(GamePlayerRow.id)
        )
        return list(self.session.scalars(stmt))

    def alive_players(self, game_id: int) -> list[GamePlayerRow]:
        return [p for p in self.players(game_id) if p.is_alive]

    def get_player(self, game_id: int, player_id: int) -> Optional[GamePlayerRow]:
        stmt = select(GamePlayerRow).where(
            GamePlayerRow.game_id == game_id,
            GamePlayerRow.player_id == player_id,
        )
        return self.session.scalars(stmt).one_or_none()

    def add_player(self, game_id: int, player_id: int) -> bool:
        """Add a player to a game. Returns False if already present."""
        if self.get_player(game_id, player_id) is not None:
            return False
        self.session.add(GamePlayerRow(game_id=game_id, player_id=player_id))
        self.session.flush()
        return True

    def remove_player(self, game_id: int, player_id: int) -> bool:
        result = self.session.execute(
            delete(GamePlayerRow).where(
                GamePlayerRow.game_id == game_id,
                GamePlayerRow.player_id == player_id,
            )
        )
        return result.rowcount > 0

    def mark_dead(self, player: GamePlayerRow, cause: DeathCause, round: int) -> None:
        """Kill a player, recording when and how.

        Raises:
            StoreIntegrityError: If the player is already dead.
        """
        if not player.is_alive:
            raise StoreIntegrityError(
                f"player {player.player_id} of game {player.game_id} is already dead"
            )
        player.is_alive = False
        player.death_round = round
        player.death_cause = cause.value
        self.session.flush()

    # Role configuration

    def role_counts(self, game_id: int) -> dict[RoleName, int]:
        rows = self.session.scalars(
            select(RoleConfigRow).where(RoleConfigRow.game_id == game_id)
        )
        return {RoleName(row.role): row.count for row in rows}

    def adjust_role_count(self, game_id: int, role: RoleName, delta: int) -> int:
        """Apply a count delta, clamping at zero. Zero rows are removed.

        Returns:
            The new count.
        """
        row = self.session.scalars(
            select(RoleConfigRow).where(
                RoleConfigRow.game_id == game_id,
                RoleConfigRow.role == role.value,
            )
        ).one_or_none()
        current = row.count if row is not None else 0
        new_count = max(0, current + delta)
        if row is None and new_count > 0:
            self.session.add(RoleConfigRow(game_id=game_id, role=role.value, count=new_count))
        elif row is not None and new_count == 0:
            self.session.delete(row)
        elif row is not None:
            row.count = new_count
        self.session.flush()
        return new_count

    # Lovers

    def lover_partner(self, game_id: int, player_id: int) -> Optional[int]:
        stmt = select(LoverPairRow.player_b).where(
            LoverPairRow.game_id == game_id,
            LoverPairRow.player_a == player_id,
        )
        return self.session.scalars(stmt).first()

    def has_lovers(self, game_id: int) -> bool:
        stmt = select(LoverPairRow.id).where(LoverPairRow.game_id == game_id).limit(1)
        return self.session.scalars(stmt).first() is not None

    def link_lovers(self, game_id: int, a: int, b: int) -> None:
        """Store the pair in both directions."""
        if self.has_lovers(game_id):
            raise StoreIntegrityError(f"game {game_id} already has a lover pair")
        self.session.add_all([
            LoverPairRow(game_id=game_id, player_a=a, player_b=b),
            LoverPairRow(game_id=game_id, player_a=b, player_b=a),
        ])
        self.session.flush()

    # Actions

    def actions(self, game_id: int) -> ActionLog:
        return ActionLog(self.session, game_id)


class StateStore:
    """Owns the engine and hands out transactions.

    Args:
        url: SQLAlchemy database URL. In-memory SQLite shares one connection
            so every transaction sees the same database.
        echo: Log emitted SQL.
    """

    def __init__(self, url: str = "sqlite://", echo: bool = False):
        self.url = url
        kwargs = {}
        if url in _MEMORY_URLS:
            kwargs = {"connect_args": {"check_same_thread": False}, "poolclass": StaticPool}
        self.engine = create_engine(url, echo=echo, **kwargs)
        Base.metadata.create_all(self.engine)
        self._sessionmaker = sessionmaker(self.engine, expire_on_commit=False)

    @contextmanager
    def transaction(self) -> Iterator[GameSession]:
        """Open a transaction; commit on success, roll back on exception."""
        with self._sessionmaker.begin() as session:
            yield GameSession(session)

    def dispose(self) -> None:
        self.engine.dispose()
