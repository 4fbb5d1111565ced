"""Liveness check primitives."""

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

from orchid_watchdog.errors import InvalidConfigurationError

Clock = Callable[[], float]


@runtime_checkable
class LivenessCheck(Protocol):
    """Contract for anything the supervisor can watch.

    ``expired()`` returning ``True`` means the monitored component is
    unresponsive. Implementations must not re-arm themselves from
    ``expired()``.
    """

    @property
    def name(self) -> str:
        """Registry key for this check."""
        ...

    def reset(self) -> None:
        """Prove liveness, re-arming the check."""
        ...

    def expired(self) -> bool:
        """Return whether the check has gone silent."""
        ...


@dataclass(slots=True, frozen=True)
class LivenessStatus:
    """Point-in-time state of a single liveness check."""

    expired: bool
    remaining_seconds: float | None = None

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-serializable representation."""
        payload: dict[str, Any] = {"expired": self.expired}
        if self.remaining_seconds is not None:
            payload["remaining_seconds"] = max(0.0, float(self.remaining_seconds))
        return payload


class TimedLivenessCheck:
    """Liveness check that expires a fixed duration after its last reset.

    Example usage::

        check = TimedLivenessCheck("db", duration_seconds=5.0)
        supervisor.add(check)

        # from the monitored component, at least every 5 seconds
        check.reset()
    """

    __slots__ = ("_clock", "_deadline", "_duration", "_lock", "_name")

    def __init__(
        self,
        name: str,
        duration_seconds: float,
        *,
        clock: Clock = time.monotonic,
    ) -> None:
        if not name:
            raise InvalidConfigurationError("liveness check name must not be empty")
        if duration_seconds < 0:
            raise InvalidConfigurationError(
                f"duration_seconds for '{name}' must be >= 0, got {duration_seconds}"
            )

        self._name = name
        self._duration = float(duration_seconds)
        self._clock = clock
        self._lock = threading.Lock()
        self._deadline = 0.0
        self.reset()

    def __repr__(self) -> str:
        return f"TimedLivenessCheck(name={self._name!r}, duration_seconds={self._duration!r})"

    @property
    def name(self) -> str:
        return self._name

    @property
    def duration_seconds(self) -> float:
        return self._duration

    @property
    def deadline(self) -> float:
        """Clock reading after which the check counts as expired."""
        with self._lock:
            return self._deadline

    def reset(self) -> None:
        deadline = self._clock() + self._duration
        with self._lock:
            self._deadline = deadline

    def expired(self) -> bool:
        now = self._clock()
        with self._lock:
            return now > self._deadline

    def remaining(self) -> float:
        """Seconds left before expiry, clamped at zero."""
        now = self._clock()
        with self._lock:
            return max(0.0, self._deadline - now)


def liveness_status(check: LivenessCheck) -> LivenessStatus:
    """Snapshot a check, including its remaining window when it exposes one."""
    remaining = getattr(check, "remaining", None)
    return LivenessStatus(
        expired=check.expired(),
        remaining_seconds=float(remaining()) if callable(remaining) else None,
    )
