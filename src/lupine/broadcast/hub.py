"""In-memory push hub: one outbound queue per connected player.

The hub implements the Broadcaster interface. On every `game_changed` tick
it re-reads the store, builds a view per connected player and enqueues it.
A network transport drains the queues; that transport lives elsewhere.
"""

import asyncio
import logging
from typing import Optional
from pydantic import BaseModel

from lupine.broadcast.views import PlayerView, build_player_view
from lupine.store.state_store import StateStore

logger = logging.getLogger(__name__)


class ToastMessage(BaseModel):
    level: str
    message: str


class OutboundMessage(BaseModel):
    """One message queued for a player: a view or a toast."""

    kind: str  # "view" or "toast"
    view: Optional[PlayerView] = None
    toast: Optional[ToastMessage] = None


class Hub:
    """Per-player message queues fed from the store."""

    def __init__(self, store: StateStore, maxsize: int = 0):
        self.store = store
        self.maxsize = maxsize
        self._queues: dict[int, asyncio.Queue] = {}

    def connect(self, player_id: int) -> asyncio.Queue:
        """Register a player and return their queue (reused on reconnect)."""
        if player_id not in self._queues:
            self._queues[player_id] = asyncio.Queue(maxsize=self.maxsize)
            logger.debug("Player %d connected to hub", player_id)
        return self._queues[player_id]

    def disconnect(self, player_id: int) -> None:
        if self._queues.pop(player_id, None) is not None:
            logger.debug("Player %d disconnected from hub", player_id)

    @property
    def connected(self) -> list[int]:
        return list(self._queues)

    def _put(self, player_id: int, message: OutboundMessage) -> None:
        queue = self._queues.get(player_id)
        if queue is None:
            return
        if queue.full():
            # Views are snapshots; a newer one supersedes the oldest pending one.
            queue.get_nowait()
        queue.put_nowait(message)

    async def game_changed(self, game_id: int) -> None:
        with self.store.transaction() as gs:
            game = gs.get_game(game_id)
            if game is None:
                return
            views = [
                build_player_view(gs, game, player_id)
                for player_id in self._queues
                if gs.get_player(game_id, player_id) is not None
            ]
        for view in views:
            self._put(view.viewer_id, OutboundMessage(kind="view", view=view))

    async def toast(self, player_id: int, level: str, message: str) -> None:
        self._put(
            player_id,
            OutboundMessage(kind="toast", toast=ToastMessage(level=level, message=message)),
        )

    def drain(self, player_id: int) -> list[OutboundMessage]:
        """Pop every queued message for a player (used by tests and transports)."""
        queue = self._queues.get(player_id)
        messages: list[OutboundMessage] = []
        while queue is not None and not queue.empty():
            messages.append(queue.get_nowait())
        return messages
