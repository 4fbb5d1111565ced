"""Configuration loader with per-environment overrides."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from orchid_watchdog.config.errors import ConfigFileNotFoundError, ConfigValidationError
from orchid_watchdog.config.models import AppSettings

DEFAULT_CONFIG_DIR = Path("config")
DEFAULT_BASE_FILE = "appsettings.json"
ENV_VAR_NAME = "ORCHID_WATCHDOG_ENV"
DEFAULT_ENV = "development"


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep merge two dictionaries. Override values take precedence.

    Lists are replaced wholesale, so an environment file that sets
    ``watchdog.checks`` supersedes the base check list.
    """
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value

    return result


def load_json_file(path: Path) -> dict[str, Any]:
    """Load and parse a JSON configuration file.

    Raises:
        ConfigFileNotFoundError: If the file does not exist.
    """
    if not path.exists():
        raise ConfigFileNotFoundError(str(path))

    with path.open(encoding="utf-8") as f:
        return json.load(f)


def load_config(
    *,
    config_dir: Path | str | None = None,
    env: str | None = None,
) -> AppSettings:
    """Load ``appsettings.json`` merged with ``appsettings.<env>.json``.

    Args:
        config_dir: Directory containing configuration files. Defaults to "config".
        env: Environment name. Defaults to ORCHID_WATCHDOG_ENV or "development".

    Raises:
        ConfigFileNotFoundError: If the base configuration file is not found.
        ConfigValidationError: If configuration validation fails.
    """
    resolved_dir = DEFAULT_CONFIG_DIR if config_dir is None else Path(config_dir)
    resolved_env = os.environ.get(ENV_VAR_NAME, DEFAULT_ENV) if env is None else env

    config = load_json_file(resolved_dir / DEFAULT_BASE_FILE)

    env_path = resolved_dir / f"appsettings.{resolved_env}.json"
    if env_path.exists():
        config = deep_merge(config, load_json_file(env_path))

    try:
        return AppSettings.model_validate(config)
    except ValidationError as e:
        errors = [
            {"loc": " -> ".join(str(loc) for loc in err["loc"]), "msg": err["msg"]}
            for err in e.errors()
        ]
        raise ConfigValidationError(errors) from e
