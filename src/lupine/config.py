"""Application configuration: optional YAML file plus LUPINE_* environment overrides."""

import os
from pathlib import Path
from typing import Any, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field

ENV_PREFIX = "LUPINE_"


class AppConfig(BaseModel):
    """Settings read by the CLI and whatever wires the engine together."""

    model_config = ConfigDict(extra="forbid")

    database_url: str = "sqlite:///lupine.db"
    log_level: str = "INFO"
    storyteller_enabled: bool = False
    storyteller_timeout: float = Field(default=30.0, gt=0)
    echo_sql: bool = False


def _env_overrides(environ: dict[str, str]) -> dict[str, Any]:
    overrides: dict[str, Any] = {}
    for field in AppConfig.model_fields:
        key = ENV_PREFIX + field.upper()
        if key in environ:
            overrides[field] = environ[key]
    return overrides


def load_config(
    path: Optional[Union[str, Path]] = None,
    environ: Optional[dict[str, str]] = None,
) -> AppConfig:
    """Load configuration.

    Args:
        path: Optional YAML file with AppConfig keys.
        environ: Environment mapping (defaults to os.environ). LUPINE_<FIELD>
            variables override file values.

    Raises:
        pydantic.ValidationError: If a value has the wrong type.
        FileNotFoundError: If `path` is given but missing.
    """
    data: dict[str, Any] = {}
    if path is not None:
        with open(path, "r", encoding="utf-8") as f:
            loaded = yaml.safe_load(f)
        if loaded is not None and not isinstance(loaded, dict):
            raise ValueError(f"{path}: expected a mapping of settings")
        data.update(loaded or {})

    data.update(_env_overrides(dict(os.environ) if environ is None else environ))
    return AppConfig.model_validate(data)
