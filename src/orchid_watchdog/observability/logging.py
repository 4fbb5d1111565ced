"""Log output for watchdog processes.

The supervisor logs through ``logging.getLogger("orchid_watchdog.supervisor")``
and attaches its details as ``extra`` fields: ``period_seconds`` and ``checks``
when supervision starts, ``expired`` when it fails. The formatters here render
those fields as first-class output so a log consumer can read the expired
service names without parsing the message text.
"""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Sequence
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any, TextIO

if TYPE_CHECKING:
    from orchid_watchdog.config.models import AppSettings

WATCHDOG_LOGGER = "orchid_watchdog"

# Extra fields set by the supervisor, in output order.
WATCHDOG_FIELDS = ("period_seconds", "checks", "expired")


def watchdog_fields(record: logging.LogRecord) -> dict[str, Any]:
    """Return the supervisor fields present on ``record``."""
    return {key: getattr(record, key) for key in WATCHDOG_FIELDS if hasattr(record, key)}


class JsonFormatter(logging.Formatter):
    """One JSON object per record, watchdog fields under ``"watchdog"``."""

    def __init__(self, *, service: str, env: str) -> None:
        super().__init__()
        self._service = service
        self._env = env

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC)
            .isoformat(timespec="milliseconds")
            .replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "service": self._service,
            "env": self._env,
        }
        fields = watchdog_fields(record)
        if fields:
            payload["watchdog"] = fields
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str, ensure_ascii=True)


class TextFormatter(logging.Formatter):
    """Single-line text with ``key=value`` watchdog fields appended."""

    def __init__(self, *, service: str, env: str) -> None:
        super().__init__("%(asctime)s %(levelname)s %(name)s %(message)s")
        self._service = service
        self._env = env

    def format(self, record: logging.LogRecord) -> str:
        parts = [super().format(record), f"service={self._service}", f"env={self._env}"]
        for key, value in watchdog_fields(record).items():
            if isinstance(value, Sequence) and not isinstance(value, str):
                value = ",".join(str(item) for item in value)
            parts.append(f"{key}={value}")
        return " ".join(parts)


def bootstrap_logging(
    *,
    service: str,
    env: str | None = None,
    level: str = "INFO",
    log_format: str = "json",
    logger: logging.Logger | None = None,
    stream: TextIO | None = None,
    force: bool = True,
) -> logging.Logger:
    """Attach a formatted stream handler to the ``orchid_watchdog`` logger.

    Pass ``logger`` to format a different logger, e.g. the root logger of the
    host application.
    """
    resolved_env = env if env is not None else os.getenv("ORCHID_WATCHDOG_ENV", "development")
    target_logger = logger or logging.getLogger(WATCHDOG_LOGGER)

    if force:
        for handler in list(target_logger.handlers):
            target_logger.removeHandler(handler)

    formatter: logging.Formatter
    if log_format == "text":
        formatter = TextFormatter(service=service, env=resolved_env)
    else:
        formatter = JsonFormatter(service=service, env=resolved_env)
    handler = logging.StreamHandler(stream)
    handler.setFormatter(formatter)

    target_logger.addHandler(handler)
    target_logger.setLevel(level.upper())
    if target_logger is not logging.getLogger():
        target_logger.propagate = False
    return target_logger


def bootstrap_logging_from_app_settings(
    app_settings: AppSettings,
    *,
    env: str | None = None,
    logger: logging.Logger | None = None,
    stream: TextIO | None = None,
    force: bool = True,
) -> logging.Logger:
    """Bootstrap logging using values from typed appsettings."""
    return bootstrap_logging(
        service=app_settings.service.name,
        env=env,
        level=app_settings.logging.level,
        log_format=app_settings.logging.format,
        logger=logger,
        stream=stream,
        force=force,
    )
