"""Tests for the command-line entry point."""

import pytest

from lupine.cli import build_parser, main


def write_config(tmp_path, database_url):
    path = tmp_path / "lupine.yaml"
    path.write_text(f"database_url: {database_url}\nlog_level: WARNING\n", encoding="utf-8")
    return str(path)


class TestCli:
    """Tests for the simulate, init-db and replay commands."""

    def test_parser_requires_command(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])

    def test_simulate_defaults(self):
        args = build_parser().parse_args(["simulate"])
        assert args.games == 10
        assert args.database is None

    def test_simulate_runs(self, monkeypatch):
        monkeypatch.delenv("LUPINE_DATABASE_URL", raising=False)
        assert main(["--log-level", "WARNING", "simulate", "--games", "2", "--seed", "3"]) == 0

    def test_simulate_rejects_bad_player_counts(self):
        assert main(["--log-level", "WARNING", "simulate", "--min-players", "9", "--max-players", "5"]) == 2

    def test_init_db(self, tmp_path):
        db = tmp_path / "lupine.db"
        config = write_config(tmp_path, f"sqlite:///{db}")
        assert main(["--config", config, "init-db"]) == 0
        assert db.exists()

    def test_replay_recorded_game(self, tmp_path):
        url = f"sqlite:///{tmp_path / 'games.db'}"
        config = write_config(tmp_path, url)
        assert main([
            "--config", config, "simulate", "--games", "1", "--seed", "9", "--database", url,
        ]) == 0
        assert main(["--config", config, "replay", "1"]) == 0

    def test_replay_unknown_game(self, tmp_path):
        config = write_config(tmp_path, f"sqlite:///{tmp_path / 'empty.db'}")
        assert main(["--config", config, "replay", "7"]) == 1
