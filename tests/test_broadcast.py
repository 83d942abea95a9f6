"""Tests for player views, the push hub and the intent router."""

import json

import pytest

from lupine.broadcast import Hub, IntentRouter, build_player_view, parse_intent
from lupine.engine.controller import GameController
from lupine.events.actions import GameStatus
from lupine.models.roles import RoleName
from lupine.store.state_store import StateStore
from lupine.validation import MalformedIntent

from helpers import RecordingBroadcaster, start_game


R = RoleName


def intent(action, **fields):
    return json.dumps({"action": action, **fields})


class TestPlayerView:
    """Tests for what each player may see."""

    @pytest.mark.asyncio
    async def test_werewolves_know_each_other(self):
        table = await start_game([
            ("W1", R.WEREWOLF), ("W2", R.WOLF_CUB), ("A", R.VILLAGER), ("B", R.SEER),
        ])
        with table.store.transaction() as gs:
            game = gs.current_game()
            wolf = build_player_view(gs, game, table["W1"])
            seer = build_player_view(gs, game, table["B"])

        assert wolf.role == "werewolf"
        assert wolf.role_display == "Werewolf"
        assert wolf.teammates == [table["W2"]]
        roles = {p.player_id: p.role for p in wolf.players}
        assert roles[table["W2"]] == "wolf_cub"
        assert roles[table["A"]] is None

        assert seer.teammates == []
        assert {p.player_id: p.role for p in seer.players}[table["W1"]] is None

    @pytest.mark.asyncio
    async def test_masons_know_each_other(self):
        table = await start_game([
            ("W", R.WEREWOLF), ("M1", R.MASON), ("M2", R.MASON), ("A", R.VILLAGER),
        ])
        with table.store.transaction() as gs:
            view = build_player_view(gs, gs.current_game(), table["M1"])
        assert view.teammates == [table["M2"]]

    @pytest.mark.asyncio
    async def test_history_respects_visibility(self):
        table = await start_game([
            ("W", R.WEREWOLF), ("S", R.SEER), ("A", R.VILLAGER), ("B", R.VILLAGER),
        ])
        await table.controller.werewolf_vote(table["W"], table["A"])
        with table.store.transaction() as gs:
            game = gs.current_game()
            wolf = build_player_view(gs, game, table["W"])
            villager = build_player_view(gs, game, table["B"])

        assert [a.description for a in wolf.history] == ["Night 1: W voted to kill A"]
        assert villager.history == []

    @pytest.mark.asyncio
    async def test_lover_is_shown(self):
        table = await start_game([
            ("Cu", R.CUPID), ("W", R.WEREWOLF), ("A", R.VILLAGER), ("B", R.VILLAGER),
        ])
        await table.controller.cupid_choose(table["Cu"], table["A"])
        await table.controller.cupid_choose(table["Cu"], table["B"])
        with table.store.transaction() as gs:
            view = build_player_view(gs, gs.current_game(), table["A"])
        assert view.lover == table["B"]
        assert [a.description for a in view.history] == ["Night 1: Your lover is B"]

    @pytest.mark.asyncio
    async def test_roles_revealed_when_finished(self):
        table = await start_game([("W", R.WEREWOLF), ("A", R.VILLAGER)])
        await table.controller.werewolf_vote(table["W"], table["A"])
        with table.store.transaction() as gs:
            view = build_player_view(gs, gs.current_game(), table["A"])
        assert view.status == GameStatus.FINISHED
        assert view.winner == "werewolf"
        assert not view.is_alive
        assert {p.name: p.role for p in view.players} == {"W": "werewolf", "A": "villager"}


class TestHub:
    """Tests for per-player queues."""

    @pytest.mark.asyncio
    async def test_views_pushed_on_change(self):
        store = StateStore("sqlite://")
        hub = Hub(store)
        controller = GameController(store, broadcaster=hub)
        with store.transaction() as gs:
            a = gs.register_person("A")
            b = gs.register_person("B")
        hub.connect(a)

        await controller.join_lobby(a)
        await controller.join_lobby(b)

        messages = hub.drain(a)
        assert [m.kind for m in messages] == ["view", "view"]
        assert [p.name for p in messages[-1].view.players] == ["A", "B"]
        assert hub.drain(a) == []

    @pytest.mark.asyncio
    async def test_toast_only_to_target(self):
        store = StateStore("sqlite://")
        hub = Hub(store)
        hub.connect(1)
        hub.connect(2)
        await hub.toast(1, "error", "Invalid target")

        [message] = hub.drain(1)
        assert message.kind == "toast"
        assert message.toast.message == "Invalid target"
        assert hub.drain(2) == []

    @pytest.mark.asyncio
    async def test_full_queue_drops_oldest(self):
        hub = Hub(StateStore("sqlite://"), maxsize=2)
        hub.connect(1)
        for i in range(3):
            await hub.toast(1, "info", f"m{i}")
        assert [m.toast.message for m in hub.drain(1)] == ["m1", "m2"]

    @pytest.mark.asyncio
    async def test_disconnected_player_gets_nothing(self):
        hub = Hub(StateStore("sqlite://"))
        hub.connect(1)
        hub.disconnect(1)
        await hub.toast(1, "info", "hello")
        assert hub.connected == []
        assert hub.drain(1) == []

    @pytest.mark.asyncio
    async def test_non_members_get_no_view(self):
        store = StateStore("sqlite://")
        hub = Hub(store)
        controller = GameController(store, broadcaster=hub)
        with store.transaction() as gs:
            a = gs.register_person("A")
            b = gs.register_person("B")
        hub.connect(b)
        await controller.join_lobby(a)
        assert hub.drain(b) == []


class TestIntentRouter:
    """Tests for JSON intent parsing and dispatch."""

    def test_parse_coerces_strings(self):
        msg = parse_intent(intent("day_vote", target_player_id="7"))
        assert msg.target_player_id == 7
        msg = parse_intent(intent("set_role_count", role_id="seer", delta="-1"))
        assert msg.delta == -1

    def test_parse_rejects_garbage(self):
        with pytest.raises(MalformedIntent):
            parse_intent("{not json")
        with pytest.raises(MalformedIntent):
            parse_intent(json.dumps({"target_player_id": 3}))

    def test_every_intent_routed(self):
        router = IntentRouter(GameController(StateStore("sqlite://")))
        assert set(router.actions) >= {
            "join_lobby", "leave_lobby", "set_role_count", "start_game",
            "werewolf_vote", "werewolf_vote2", "seer_investigate", "doctor_protect",
            "guard_protect", "witch_heal", "witch_kill", "witch_pass", "cupid_choose",
            "day_vote", "day_pass", "day_end_vote", "hunter_revenge",
        }

    @pytest.mark.asyncio
    async def test_lobby_through_router(self):
        store = StateStore("sqlite://")
        broadcaster = RecordingBroadcaster()
        router = IntentRouter(GameController(store, broadcaster=broadcaster))
        with store.transaction() as gs:
            a = gs.register_person("A")

        assert await router.dispatch(a, intent("join_lobby"))
        assert await router.dispatch(a, intent("set_role_count", role_id="werewolf", delta="1"))
        assert await router.dispatch(a, intent("update_role", role_id="werewolf", delta=-1))
        with store.transaction() as gs:
            assert gs.role_counts(gs.current_game().id) == {}

    @pytest.mark.asyncio
    async def test_rejection_toasts_sender(self):
        table = await start_game([("W", R.WEREWOLF), ("A", R.VILLAGER), ("B", R.VILLAGER)])
        router = IntentRouter(table.controller)

        ok = await router.dispatch(
            table["A"], intent("werewolf_vote", target_player_id=str(table["B"]))
        )
        assert not ok
        assert table.broadcaster.toasts[-1] == (
            table["A"], "error", "Only werewolves can vote at night",
        )

    @pytest.mark.asyncio
    async def test_unknown_action(self):
        table = await start_game([("W", R.WEREWOLF), ("A", R.VILLAGER)])
        router = IntentRouter(table.controller)
        assert not await router.dispatch(table["A"], intent("fly_away"))
        assert table.broadcaster.toasts[-1][2] == "Unknown action: fly_away"

    @pytest.mark.asyncio
    async def test_missing_target(self):
        table = await start_game([("W", R.WEREWOLF), ("A", R.VILLAGER)])
        router = IntentRouter(table.controller)
        with pytest.raises(MalformedIntent, match="requires target_player_id"):
            await router.handle(table["W"], intent("werewolf_vote"))

    @pytest.mark.asyncio
    async def test_vote_through_router(self):
        table = await start_game([("W", R.WEREWOLF), ("A", R.VILLAGER), ("B", R.VILLAGER)])
        router = IntentRouter(table.controller)
        assert await router.dispatch(
            table["W"], intent("werewolf_vote", target_player_id=str(table["A"]))
        )
        assert not table.alive("A")
        assert table.status == GameStatus.DAY.value
