"""Tests for configuration loading."""

import pytest
from pydantic import ValidationError

from lupine.config import AppConfig, load_config


class TestLoadConfig:
    """Tests for YAML plus environment configuration."""

    def test_defaults(self):
        config = load_config(environ={})
        assert config == AppConfig()
        assert config.database_url == "sqlite:///lupine.db"
        assert not config.storyteller_enabled

    def test_yaml_file(self, tmp_path):
        path = tmp_path / "lupine.yaml"
        path.write_text(
            "database_url: sqlite:///games.db\n"
            "storyteller_enabled: true\n"
            "storyteller_timeout: 5\n",
            encoding="utf-8",
        )
        config = load_config(path, environ={})
        assert config.database_url == "sqlite:///games.db"
        assert config.storyteller_enabled
        assert config.storyteller_timeout == 5.0

    def test_environment_overrides_file(self, tmp_path):
        path = tmp_path / "lupine.yaml"
        path.write_text("log_level: INFO\n", encoding="utf-8")
        config = load_config(path, environ={"LUPINE_LOG_LEVEL": "DEBUG", "LUPINE_ECHO_SQL": "1"})
        assert config.log_level == "DEBUG"
        assert config.echo_sql is True

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("", encoding="utf-8")
        assert load_config(path, environ={}) == AppConfig()

    def test_unknown_key_rejected(self, tmp_path):
        path = tmp_path / "lupine.yaml"
        path.write_text("databse_url: oops\n", encoding="utf-8")
        with pytest.raises(ValidationError):
            load_config(path, environ={})

    def test_non_mapping_rejected(self, tmp_path):
        path = tmp_path / "lupine.yaml"
        path.write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(ValueError, match="expected a mapping"):
            load_config(path, environ={})

    def test_timeout_must_be_positive(self):
        with pytest.raises(ValidationError):
            load_config(environ={"LUPINE_STORYTELLER_TIMEOUT": "0"})

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "nope.yaml", environ={})
