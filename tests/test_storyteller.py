"""Tests for the storyteller and its orchestration after deaths."""

import asyncio
import logging

import pytest

from lupine.events.actions import ActionType, Phase, Visibility
from lupine.models.roles import RoleName
from lupine.storyteller import Narrator, StubStoryteller, SYSTEM_PROMPT, build_prompt

from helpers import RecordingBroadcaster, start_game


R = RoleName


class FailingStoryteller:
    async def tell(self, history, on_chunk):
        raise RuntimeError("provider unavailable")


class ChunkOnlyStoryteller:
    """Streams chunks and returns an empty final text."""

    async def tell(self, history, on_chunk):
        on_chunk("The wind ")
        on_chunk("howled.")
        return ""


async def night_kill_table(narrator_factory=None):
    """A game whose first night kills A, with an optional narrator attached."""
    table = await start_game([("W", R.WEREWOLF), ("A", R.VILLAGER), ("B", R.VILLAGER)])
    if narrator_factory is not None:
        table.controller.narrator = narrator_factory(table.store)
    await table.controller.werewolf_vote(table["W"], table["A"])
    await table.controller.drain()
    return table


class TestPrompt:

    def test_prompt_includes_history(self):
        prompt = build_prompt(["Night 1: A (Villager) was found dead"])
        assert "Game history so far:\nNight 1: A (Villager) was found dead" in prompt
        assert "2-3 sentences" in prompt
        assert "werewolf" in SYSTEM_PROMPT


class TestStubStoryteller:

    @pytest.mark.asyncio
    async def test_streams_chunks(self):
        chunks = []
        text = await StubStoryteller().tell(["Night 1: A (Villager) was found dead"], chunks.append)
        assert len(chunks) == 3
        assert "".join(chunks) == text
        assert "A (Villager) was found dead" in text


class TestNarrator:
    """Tests for story storage, timeouts and failures."""

    @pytest.mark.asyncio
    async def test_story_recorded_after_death(self):
        table = await night_kill_table(lambda store: Narrator(store, StubStoryteller()))

        [story] = table.actions(ActionType.STORY)
        assert story.visibility == Visibility.PUBLIC
        assert story.round == 1
        assert story.phase == Phase.NIGHT
        assert "A (Villager) was found dead" in story.description

    @pytest.mark.asyncio
    async def test_no_story_without_deaths(self):
        table = await start_game([
            ("W", R.WEREWOLF), ("D", R.DOCTOR), ("A", R.VILLAGER), ("B", R.VILLAGER),
        ])
        table.controller.narrator = Narrator(table.store, StubStoryteller())
        await table.controller.werewolf_vote(table["W"], table["A"])
        await table.controller.doctor_protect(table["D"], table["A"])
        await table.controller.drain()
        assert table.actions(ActionType.STORY) == []

    @pytest.mark.asyncio
    async def test_timeout_drops_story(self, caplog):
        with caplog.at_level(logging.WARNING, logger="lupine.storyteller"):
            table = await night_kill_table(
                lambda store: Narrator(store, StubStoryteller(delay=1.0), timeout=0.01)
            )
        assert table.actions(ActionType.STORY) == []
        assert "timed out" in caplog.text
        # The game went on regardless.
        assert table.status == "day"

    @pytest.mark.asyncio
    async def test_failure_drops_story(self, caplog):
        with caplog.at_level(logging.ERROR, logger="lupine.storyteller"):
            table = await night_kill_table(lambda store: Narrator(store, FailingStoryteller()))
        assert table.actions(ActionType.STORY) == []
        assert "Storyteller failed" in caplog.text

    @pytest.mark.asyncio
    async def test_chunks_used_when_text_empty(self):
        table = await night_kill_table(lambda store: Narrator(store, ChunkOnlyStoryteller()))
        [story] = table.actions(ActionType.STORY)
        assert story.description == "The wind howled."

    @pytest.mark.asyncio
    async def test_story_broadcast(self):
        table = await start_game([("W", R.WEREWOLF), ("A", R.VILLAGER), ("B", R.VILLAGER)])
        broadcaster = RecordingBroadcaster()
        narrator = Narrator(table.store, StubStoryteller(), broadcaster=broadcaster)
        with table.store.transaction() as gs:
            game_id = gs.current_game().id

        text = await narrator.narrate(game_id, 1, Phase.NIGHT, table["A"])
        assert text is not None
        assert broadcaster.changed == [game_id]

    @pytest.mark.asyncio
    async def test_intent_not_blocked_by_storyteller(self):
        """The controller returns before a slow story finishes."""
        table = await start_game([("W", R.WEREWOLF), ("A", R.VILLAGER), ("B", R.VILLAGER)])
        table.controller.narrator = Narrator(table.store, StubStoryteller(delay=0.2))
        await asyncio.wait_for(
            table.controller.werewolf_vote(table["W"], table["A"]), timeout=0.1
        )
        assert table.actions(ActionType.STORY) == []
        await table.controller.drain()
        assert len(table.actions(ActionType.STORY)) == 1
