"""Broadcaster interface used by the controller to signal state changes."""

from typing import Protocol


class Broadcaster(Protocol):
    """Anything that can push updates to connected players.

    The transport is external; the controller only signals that a game
    changed (after commit) and sends toasts to single players.
    """

    async def game_changed(self, game_id: int) -> None:
        """Re-render and push per-player views of a game."""
        ...

    async def toast(self, player_id: int, level: str, message: str) -> None:
        """Send a short notification to one player ("info", "error")."""
        ...


class NullBroadcaster:
    """Broadcaster that drops every update."""

    async def game_changed(self, game_id: int) -> None:
        pass

    async def toast(self, player_id: int, level: str, message: str) -> None:
        pass
