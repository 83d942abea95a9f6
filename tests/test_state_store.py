"""Tests for the SQLAlchemy state store and action log."""

import pytest

from lupine.events.actions import ActionType, DeathCause, GameStatus, Phase, Visibility
from lupine.models.roles import RoleName
from lupine.store import StateStore, StoreIntegrityError


def make_game(names=("A", "B", "C")):
    """Create a store with a lobby holding the named players."""
    store = StateStore("sqlite://")
    with store.transaction() as gs:
        game = gs.get_or_create_lobby()
        ids = [gs.register_person(name) for name in names]
        for pid in ids:
            gs.add_player(game.id, pid)
        game_id = game.id
    return store, game_id, ids


class TestGameSession:
    """Tests for game, person and player queries."""

    def test_lobby_is_reused_until_finished(self):
        store = StateStore("sqlite://")
        with store.transaction() as gs:
            first = gs.get_or_create_lobby().id
            assert gs.get_or_create_lobby().id == first
            gs.current_game().status = GameStatus.FINISHED.value
        with store.transaction() as gs:
            second = gs.get_or_create_lobby().id
        assert second != first

    def test_register_person_is_idempotent(self):
        store = StateStore("sqlite://")
        with store.transaction() as gs:
            a = gs.register_person("Alice")
            assert gs.register_person("Alice") == a
            assert gs.person_name(a) == "Alice"

    def test_register_person_with_pinned_id(self):
        store = StateStore("sqlite://")
        with store.transaction() as gs:
            assert gs.register_person("Bob", player_id=42) == 42
            assert gs.person_names([42]) == {42: "Bob"}

    def test_players_in_join_order(self):
        store, game_id, ids = make_game(("C", "A", "B"))
        with store.transaction() as gs:
            assert [p.player_id for p in gs.players(game_id)] == ids

    def test_add_player_twice(self):
        store, game_id, ids = make_game()
        with store.transaction() as gs:
            assert not gs.add_player(game_id, ids[0])
            assert len(gs.players(game_id)) == 3

    def test_remove_player(self):
        store, game_id, ids = make_game()
        with store.transaction() as gs:
            assert gs.remove_player(game_id, ids[1])
            assert not gs.remove_player(game_id, ids[1])
            assert [p.player_id for p in gs.players(game_id)] == [ids[0], ids[2]]

    def test_mark_dead(self):
        store, game_id, ids = make_game()
        with store.transaction() as gs:
            player = gs.get_player(game_id, ids[0])
            gs.mark_dead(player, DeathCause.WITCH_POISON, 2)
        with store.transaction() as gs:
            player = gs.get_player(game_id, ids[0])
            assert not player.is_alive
            assert player.death_round == 2
            assert player.death_cause == "witch_poison"
            assert [p.player_id for p in gs.alive_players(game_id)] == ids[1:]

    def test_dead_players_cannot_die_again(self):
        store, game_id, ids = make_game()
        with store.transaction() as gs:
            player = gs.get_player(game_id, ids[0])
            gs.mark_dead(player, DeathCause.ELIMINATION, 1)
            with pytest.raises(StoreIntegrityError):
                gs.mark_dead(player, DeathCause.HEARTBREAK, 1)

    def test_role_counts(self):
        store, game_id, _ = make_game()
        with store.transaction() as gs:
            assert gs.adjust_role_count(game_id, RoleName.SEER, 1) == 1
            assert gs.adjust_role_count(game_id, RoleName.SEER, 1) == 2
            assert gs.adjust_role_count(game_id, RoleName.WEREWOLF, 1) == 1
            assert gs.role_counts(game_id) == {RoleName.SEER: 2, RoleName.WEREWOLF: 1}
            assert gs.adjust_role_count(game_id, RoleName.WEREWOLF, -1) == 0
            assert gs.adjust_role_count(game_id, RoleName.WEREWOLF, -1) == 0
            assert gs.role_counts(game_id) == {RoleName.SEER: 2}

    def test_lovers_are_symmetric(self):
        store, game_id, ids = make_game()
        with store.transaction() as gs:
            assert not gs.has_lovers(game_id)
            gs.link_lovers(game_id, ids[0], ids[2])
        with store.transaction() as gs:
            assert gs.has_lovers(game_id)
            assert gs.lover_partner(game_id, ids[0]) == ids[2]
            assert gs.lover_partner(game_id, ids[2]) == ids[0]
            assert gs.lover_partner(game_id, ids[1]) is None

    def test_lovers_link_once(self):
        store, game_id, ids = make_game()
        with store.transaction() as gs:
            gs.link_lovers(game_id, ids[0], ids[1])
            with pytest.raises(StoreIntegrityError):
                gs.link_lovers(game_id, ids[1], ids[2])

    def test_transaction_rolls_back_on_error(self):
        store, game_id, ids = make_game()
        with pytest.raises(RuntimeError):
            with store.transaction() as gs:
                gs.mark_dead(gs.get_player(game_id, ids[0]), DeathCause.ELIMINATION, 1)
                raise RuntimeError("boom")
        with store.transaction() as gs:
            assert gs.get_player(game_id, ids[0]).is_alive


class TestActionLog:
    """Tests for the upserting action log."""

    def test_record_and_find(self):
        store, game_id, ids = make_game()
        with store.transaction() as gs:
            log = gs.actions(game_id)
            action = log.record(
                round=1, phase=Phase.NIGHT, actor=ids[0],
                action_type=ActionType.WEREWOLF_KILL, target=ids[1],
                visibility=Visibility.TEAM_WEREWOLF, description="Night 1: A voted to kill B",
            )
            assert action.ordinal > 0
            found = log.find(1, Phase.NIGHT, ids[0], ActionType.WEREWOLF_KILL)
            assert found == action
            assert log.find(1, Phase.NIGHT, ids[1], ActionType.WEREWOLF_KILL) is None

    def test_record_replaces_same_key(self):
        """A second action with the same key overwrites the target and keeps the ordinal."""
        store, game_id, ids = make_game()
        with store.transaction() as gs:
            log = gs.actions(game_id)
            first = log.record(1, Phase.NIGHT, ids[0], ActionType.WEREWOLF_KILL, target=ids[1])
            log.record(1, Phase.NIGHT, ids[2], ActionType.WEREWOLF_KILL, target=ids[1])
            second = log.record(1, Phase.NIGHT, ids[0], ActionType.WEREWOLF_KILL, target=ids[2])
            assert second.ordinal == first.ordinal
            assert second.target == ids[2]
            assert log.count(ActionType.WEREWOLF_KILL, round=1) == 2

    def test_same_actor_other_round_is_new_row(self):
        store, game_id, ids = make_game()
        with store.transaction() as gs:
            log = gs.actions(game_id)
            log.record(1, Phase.NIGHT, ids[0], ActionType.GUARD_PROTECT, target=ids[1])
            log.record(2, Phase.NIGHT, ids[0], ActionType.GUARD_PROTECT, target=ids[2])
            assert len(log.by_actor(ids[0], ActionType.GUARD_PROTECT)) == 2
            assert [a.target for a in log.for_round(2)] == [ids[2]]

    def test_for_round_filters(self):
        store, game_id, ids = make_game()
        with store.transaction() as gs:
            log = gs.actions(game_id)
            log.record(1, Phase.NIGHT, ids[0], ActionType.WEREWOLF_KILL, target=ids[1])
            log.record(1, Phase.DAY, ids[1], ActionType.DAY_VOTE, target=ids[0])
            log.record(1, Phase.DAY, ids[2], ActionType.DAY_VOTE)
            assert len(log.for_round(1)) == 3
            assert len(log.for_round(1, Phase.DAY)) == 2
            votes = log.for_round(1, Phase.DAY, ActionType.DAY_VOTE)
            assert [a.is_pass for a in votes] == [False, True]
            assert not log.exists(ActionType.ELIMINATION, round=1)

    def test_log_is_ordered(self):
        store, game_id, ids = make_game()
        with store.transaction() as gs:
            log = gs.actions(game_id)
            for pid in reversed(ids):
                log.record(1, Phase.DAY, pid, ActionType.DAY_VOTE)
            assert [a.actor for a in log.all()] == list(reversed(ids))
            ordinals = [a.ordinal for a in log.all()]
            assert ordinals == sorted(ordinals)

    def test_logs_are_per_game(self):
        store, game_id, ids = make_game()
        with store.transaction() as gs:
            gs.actions(game_id).record(1, Phase.DAY, ids[0], ActionType.DAY_VOTE)
            other = gs.create_lobby()
            assert gs.actions(other.id).all() == []


class TestFileDatabase:

    def test_state_survives_new_store(self, tmp_path):
        url = f"sqlite:///{tmp_path / 'lupine.db'}"
        store = StateStore(url)
        with store.transaction() as gs:
            game_id = gs.get_or_create_lobby().id
            gs.register_person("Alice")
        store.dispose()

        reopened = StateStore(url)
        with reopened.transaction() as gs:
            assert gs.current_game().id == game_id
            assert gs.person_names([1]) == {1: "Alice"}
        reopened.dispose()
