"""Configuration loading and validation module."""

from orchid_watchdog.config.errors import (
    ConfigError,
    ConfigFileNotFoundError,
    ConfigValidationError,
)
from orchid_watchdog.config.loader import deep_merge, load_config
from orchid_watchdog.config.models import (
    AppSettings,
    CheckSettings,
    LoggingSettings,
    ServiceSettings,
    WatchdogSettings,
)

__all__ = [
    "AppSettings",
    "CheckSettings",
    "ConfigError",
    "ConfigFileNotFoundError",
    "ConfigValidationError",
    "LoggingSettings",
    "ServiceSettings",
    "WatchdogSettings",
    "deep_merge",
    "load_config",
]
