"""Storyteller - best-effort flavour text after deaths.

A storyteller turns the public history into a short gothic story. It runs
after the intent that caused the deaths has committed, never holds the
controller's lock, and writes only its own public `story` row. A slow or
failing storyteller drops the story; game state is never affected.
"""

import asyncio
import logging
from typing import Callable, Optional, Protocol, Sequence

from lupine.broadcast.broadcaster import Broadcaster, NullBroadcaster
from lupine.events.actions import ActionType, Phase, Visibility
from lupine.events.visibility import public_descriptions
from lupine.store.state_store import StateStore

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a dramatic storyteller for a medieval werewolf game. When players are "
    "killed, you tell a short atmospheric story about their fate. Keep it to 2-3 "
    "sentences. Be gothic and dramatic, fitting for a village plagued by werewolves."
)

DEFAULT_TIMEOUT = 30.0


def build_prompt(history: Sequence[str]) -> str:
    """User prompt sent to a language-model storyteller."""
    return (
        "Game history so far:\n" + "\n".join(history)
        + "\n\nTell a short dramatic story (2-3 sentences) about what just happened to the victim."
    )


class Storyteller(Protocol):
    """Protocol for storyteller providers."""

    async def tell(self, history: Sequence[str], on_chunk: Callable[[str], None]) -> str:
        """Tell a story about the latest deaths.

        Args:
            history: Public action descriptions, oldest first.
            on_chunk: Called with each piece of text as it is produced.

        Returns:
            The final story text.
        """
        ...


class StubStoryteller:
    """A storyteller that needs no language model.

    Builds a canned line from the last history entry. Useful for tests and
    for running the server without a provider.
    """

    def __init__(self, delay: float = 0.0):
        self.delay = delay

    async def tell(self, history: Sequence[str], on_chunk: Callable[[str], None]) -> str:
        if self.delay:
            await asyncio.sleep(self.delay)
        latest = history[-1] if history else "The night passed in silence"
        parts = [
            "The bells of the old chapel tolled. ",
            f"{latest}. ",
            "The village will not forget.",
        ]
        for part in parts:
            on_chunk(part)
        return "".join(parts)


class Narrator:
    """Runs a storyteller after commit and stores the result.

    Args:
        store: State store; the story row is written in its own transaction.
        storyteller: Provider that writes the text.
        timeout: Seconds before the story is abandoned.
        broadcaster: Notified when a story is stored.
    """

    def __init__(
        self,
        store: StateStore,
        storyteller: Storyteller,
        timeout: float = DEFAULT_TIMEOUT,
        broadcaster: Optional[Broadcaster] = None,
    ):
        self.store = store
        self.storyteller = storyteller
        self.timeout = timeout
        self.broadcaster = broadcaster or NullBroadcaster()

    async def narrate(self, game_id: int, round: int, phase: Phase, actor: int) -> Optional[str]:
        """Tell and store one story. Returns the text, or None if it was dropped."""
        with self.store.transaction() as gs:
            history = public_descriptions(gs.actions(game_id).all())

        chunks: list[str] = []
        try:
            text = await asyncio.wait_for(
                self.storyteller.tell(history, chunks.append), timeout=self.timeout
            )
        except asyncio.TimeoutError:
            logger.warning(
                "Storyteller timed out after %.1fs for game %d %s %d",
                self.timeout, game_id, phase.value, round,
            )
            return None
        except Exception:
            logger.exception("Storyteller failed for game %d %s %d", game_id, phase.value, round)
            return None

        text = (text or "".join(chunks)).strip()
        if not text:
            return None

        with self.store.transaction() as gs:
            gs.actions(game_id).record(
                round=round,
                phase=phase,
                actor=actor,
                action_type=ActionType.STORY,
                visibility=Visibility.PUBLIC,
                description=text,
            )
        logger.info("Storyteller: stored story for game %d %s %d", game_id, phase.value, round)
        await self.broadcaster.game_changed(game_id)
        return text
