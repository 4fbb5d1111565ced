"""Custom exceptions for orchid watchdog."""

from __future__ import annotations

from collections.abc import Iterable


class WatchdogError(Exception):
    """Base exception for this package."""


class MissingDependencyError(WatchdogError):
    """Raised when an optional dependency is required but not installed."""


class InvalidConfigurationError(WatchdogError, ValueError):
    """Raised when a check or supervisor is built with malformed parameters."""


class CheckNotFoundError(WatchdogError, KeyError):
    """Raised when requesting an unknown check from the registry."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Liveness check not found: {name}")

    def __str__(self) -> str:
        return str(self.args[0])


class WatchdogStateError(WatchdogError, RuntimeError):
    """Raised when a supervisor is asked to watch while already watching."""


class AggregateFailureError(WatchdogError):
    """Raised when one or more liveness checks have expired.

    ``names`` holds every expired check, sorted, not just the first one found.
    """

    def __init__(self, names: Iterable[str]) -> None:
        self.names = tuple(sorted(names))
        joined = ", ".join(self.names)
        super().__init__(f"watchdog timed out on the following services: {joined}")
