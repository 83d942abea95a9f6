"""Relational schema for the state store (SQLAlchemy declarative models)."""

from typing import Optional

from sqlalchemy import ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


class PersonRow(Base):
    """A person who can join games. Persons outlive games."""

    __tablename__ = "player"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(64), unique=True)


class GameRow(Base):
    __tablename__ = "game"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    status: Mapped[str] = mapped_column(String(16), default="lobby")
    round: Mapped[int] = mapped_column(Integer, default=0)
    winner: Mapped[Optional[str]] = mapped_column(String(16), nullable=True)


class GamePlayerRow(Base):
    __tablename__ = "game_player"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    game_id: Mapped[int] = mapped_column(ForeignKey("game.id"), index=True)
    player_id: Mapped[int] = mapped_column(ForeignKey("player.id"))
    role: Mapped[Optional[str]] = mapped_column(String(16), nullable=True)
    is_alive: Mapped[bool] = mapped_column(default=True)
    death_round: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    death_cause: Mapped[Optional[str]] = mapped_column(String(24), nullable=True)

    __table_args__ = (
        UniqueConstraint("game_id", "player_id", name="uq_game_player"),
    )


class RoleConfigRow(Base):
    __tablename__ = "role_config"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    game_id: Mapped[int] = mapped_column(ForeignKey("game.id"), index=True)
    role: Mapped[str] = mapped_column(String(16))
    count: Mapped[int] = mapped_column(Integer, default=1)

    __table_args__ = (
        UniqueConstraint("game_id", "role", name="uq_role_config"),
    )


class LoverPairRow(Base):
    """One direction of a lover pair; both orderings are stored."""

    __tablename__ = "lovers"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    game_id: Mapped[int] = mapped_column(ForeignKey("game.id"), index=True)
    player_a: Mapped[int] = mapped_column(ForeignKey("player.id"))
    player_b: Mapped[int] = mapped_column(ForeignKey("player.id"))

    __table_args__ = (
        UniqueConstraint("game_id", "player_a", "player_b", name="uq_lovers"),
    )


class ActionRow(Base):
    """Action log row. `ordinal` is the monotonic log position."""

    __tablename__ = "action"

    ordinal: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    game_id: Mapped[int] = mapped_column(ForeignKey("game.id"), index=True)
    round: Mapped[int] = mapped_column(Integer)
    phase: Mapped[str] = mapped_column(String(8))
    actor: Mapped[int] = mapped_column(ForeignKey("player.id"))
    action_type: Mapped[str] = mapped_column(String(24))
    target: Mapped[Optional[int]] = mapped_column(ForeignKey("player.id"), nullable=True)
    visibility: Mapped[str] = mapped_column(String(16), default="public")
    description: Mapped[str] = mapped_column(String(512), default="")

    __table_args__ = (
        UniqueConstraint(
            "game_id", "round", "phase", "actor", "action_type",
            name="uq_action_once_per_phase",
        ),
    )
