"""Action log: append/upsert of typed action rows for one game."""

from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from lupine.events.actions import Action, ActionType, Phase, Visibility
from lupine.store.schema import ActionRow


class ActionLog:
    """Typed access to the action rows of a single game.

    Rows are keyed by (game, round, phase, actor, action_type). Recording a
    key that already exists replaces its target and description in place,
    keeping the original ordinal.
    """

    def __init__(self, session: Session, game_id: int):
        self.session = session
        self.game_id = game_id

    def _find_row(
        self,
        round: int,
        phase: Phase,
        actor: int,
        action_type: ActionType,
    ) -> Optional[ActionRow]:
        stmt = select(ActionRow).where(
            ActionRow.game_id == self.game_id,
            ActionRow.round == round,
            ActionRow.phase == phase.value,
            ActionRow.actor == actor,
            ActionRow.action_type == action_type.value,
        )
        return self.session.scalars(stmt).one_or_none()

    def record(
        self,
        round: int,
        phase: Phase,
        actor: int,
        action_type: ActionType,
        target: Optional[int] = None,
        visibility: Visibility = Visibility.PUBLIC,
        description: str = "",
    ) -> Action:
        """Insert or upsert an action row and return it."""
        row = self._find_row(round, phase, actor, action_type)
        if row is None:
            row = ActionRow(
                game_id=self.game_id,
                round=round,
                phase=phase.value,
                actor=actor,
                action_type=action_type.value,
                target=target,
                visibility=visibility.value,
                description=description,
            )
            self.session.add(row)
        else:
            row.target = target
            row.visibility = visibility.value
            row.description = description
        self.session.flush()
        return Action.model_validate(row)

    def find(
        self,
        round: int,
        phase: Phase,
        actor: int,
        action_type: ActionType,
    ) -> Optional[Action]:
        row = self._find_row(round, phase, actor, action_type)
        return Action.model_validate(row) if row is not None else None

    def for_round(
        self,
        round: int,
        phase: Optional[Phase] = None,
        action_type: Optional[ActionType] = None,
    ) -> list[Action]:
        """Actions of one round, optionally narrowed to a phase and type."""
        stmt = select(ActionRow).where(
            ActionRow.game_id == self.game_id,
            ActionRow.round == round,
        )
        if phase is not None:
            stmt = stmt.where(ActionRow.phase == phase.value)
        if action_type is not None:
            stmt = stmt.where(ActionRow.action_type == action_type.value)
        stmt = stmt.order_by(ActionRow.ordinal)
        return [Action.model_validate(row) for row in self.session.scalars(stmt)]

    def by_actor(self, actor: int, action_type: Optional[ActionType] = None) -> list[Action]:
        """All actions of one actor across the game."""
        stmt = select(ActionRow).where(
            ActionRow.game_id == self.game_id,
            ActionRow.actor == actor,
        )
        if action_type is not None:
            stmt = stmt.where(ActionRow.action_type == action_type.value)
        stmt = stmt.order_by(ActionRow.ordinal)
        return [Action.model_validate(row) for row in self.session.scalars(stmt)]

    def count(self, action_type: ActionType, round: Optional[int] = None) -> int:
        stmt = select(func.count()).select_from(ActionRow).where(
            ActionRow.game_id == self.game_id,
            ActionRow.action_type == action_type.value,
        )
        if round is not None:
            stmt = stmt.where(ActionRow.round == round)
        return self.session.scalar(stmt) or 0

    def exists(self, action_type: ActionType, round: Optional[int] = None) -> bool:
        return self.count(action_type, round) > 0

    def all(self) -> list[Action]:
        """The whole log in ordinal order."""
        stmt = (
            select(ActionRow)
            .where(ActionRow.game_id == self.game_id)
            .order_by(ActionRow.ordinal)
        )
        return [Action.model_validate(row) for row in self.session.scalars(stmt)]
