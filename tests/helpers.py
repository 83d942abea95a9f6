"""Shared helpers for building games in tests."""

from typing import Optional

from lupine.engine.controller import GameController
from lupine.events.actions import Action, ActionType, GameStatus
from lupine.models.roles import RoleName
from lupine.store.schema import GamePlayerRow
from lupine.store.state_store import StateStore


class RecordingBroadcaster:
    """Broadcaster that remembers every call."""

    def __init__(self):
        self.changed: list[int] = []
        self.toasts: list[tuple[int, str, str]] = []

    async def game_changed(self, game_id: int) -> None:
        self.changed.append(game_id)

    async def toast(self, player_id: int, level: str, message: str) -> None:
        self.toasts.append((player_id, level, message))


def fixed_shuffle(order: list[RoleName]):
    """A shuffle that assigns roles in exactly this order."""
    def shuffle(pool: list[RoleName]) -> None:
        assert sorted(pool) == sorted(order)
        pool[:] = order
    return shuffle


class GameTable:
    """A started game plus lookups by player name."""

    def __init__(
        self,
        controller: GameController,
        store: StateStore,
        ids: dict[str, int],
        broadcaster: RecordingBroadcaster,
    ):
        self.controller = controller
        self.store = store
        self.ids = ids
        self.broadcaster = broadcaster

    def __getitem__(self, name: str) -> int:
        return self.ids[name]

    def game(self) -> tuple[str, int]:
        with self.store.transaction() as gs:
            game = gs.current_game()
            return game.status, game.round

    @property
    def status(self) -> str:
        return self.game()[0]

    @property
    def round(self) -> int:
        return self.game()[1]

    def winner(self) -> Optional[str]:
        with self.store.transaction() as gs:
            return gs.current_game().winner

    def player(self, name: str) -> GamePlayerRow:
        with self.store.transaction() as gs:
            return gs.get_player(gs.current_game().id, self.ids[name])

    def alive(self, name: str) -> bool:
        return self.player(name).is_alive

    def alive_names(self) -> set[str]:
        return {name for name in self.ids if self.alive(name)}

    def actions(self, action_type: Optional[ActionType] = None) -> list[Action]:
        with self.store.transaction() as gs:
            log = gs.actions(gs.current_game().id).all()
        if action_type is None:
            return log
        return [a for a in log if a.action_type == action_type]

    def lover_of(self, name: str) -> Optional[int]:
        with self.store.transaction() as gs:
            return gs.lover_partner(gs.current_game().id, self.ids[name])

    def force_status(self, status: GameStatus, round: Optional[int] = None) -> None:
        """Move the game to a status directly (skipping the phases in between)."""
        with self.store.transaction() as gs:
            game = gs.current_game()
            game.status = status.value
            if round is not None:
                game.round = round

    async def all_pass(self) -> None:
        for name in sorted(self.alive_names()):
            await self.controller.day_pass(self[name])


async def start_game(seating: list[tuple[str, RoleName]], **controller_kwargs) -> GameTable:
    """Create a store, seat the named players with fixed roles, and start.

    Args:
        seating: (name, role) pairs in join order.
    """
    store = StateStore("sqlite://")
    broadcaster = RecordingBroadcaster()
    roles = [role for _, role in seating]
    controller = GameController(
        store,
        broadcaster=broadcaster,
        shuffle=fixed_shuffle(roles),
        **controller_kwargs,
    )
    with store.transaction() as gs:
        ids = {name: gs.register_person(name) for name, _ in seating}
    for name, _ in seating:
        await controller.join_lobby(ids[name])
    for role in roles:
        await controller.set_role_count(ids[seating[0][0]], role.value, 1)
    await controller.start_game(ids[seating[0][0]])
    return GameTable(controller, store, ids, broadcaster)
