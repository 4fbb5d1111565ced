"""Concurrency-safe registry of named liveness checks."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from time import perf_counter
from typing import Any, Literal

from orchid_watchdog.checks import LivenessCheck, LivenessStatus, liveness_status
from orchid_watchdog.errors import AggregateFailureError, CheckNotFoundError
from orchid_watchdog.observability.metrics import MetricsRecorder, get_metrics_recorder


@dataclass(slots=True, frozen=True)
class LivenessSummary:
    """Summary counters for a liveness report."""

    total: int
    alive: int
    expired: int

    def to_dict(self) -> dict[str, int]:
        return {
            "total": self.total,
            "alive": self.alive,
            "expired": self.expired,
        }


@dataclass(slots=True)
class LivenessReport:
    """Aggregated view across every registered check."""

    status: Literal["ok", "degraded", "down"]
    healthy: bool
    checks: dict[str, LivenessStatus]
    summary: LivenessSummary

    @property
    def expired_names(self) -> list[str]:
        return sorted(name for name, status in self.checks.items() if status.expired)

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-serializable payload."""
        return {
            "status": self.status,
            "healthy": self.healthy,
            "summary": self.summary.to_dict(),
            "checks": {name: status.to_dict() for name, status in sorted(self.checks.items())},
        }


@dataclass(slots=True)
class LivenessRegistry:
    """Stores liveness checks by name and evaluates them together.

    Structural changes and snapshots share one lock. Checks are evaluated on
    a snapshot taken under that lock, so a slow ``expired()`` never blocks
    ``add`` or ``remove``, and monitored components resetting their own check
    never touch it.

    Example usage::

        registry = LivenessRegistry()
        registry.add(TimedLivenessCheck("db", 5.0))
        registry.check_all()  # raises AggregateFailureError when "db" goes silent
    """

    _checks: dict[str, LivenessCheck] = field(default_factory=dict)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)
    _metrics: MetricsRecorder | None = None

    def add(self, check: LivenessCheck) -> None:
        """Register a check, replacing any previous check with the same name."""
        with self._lock:
            self._checks[check.name] = check
            count = len(self._checks)
        self._metrics_recorder().observe_registered(count=count)

    def remove(self, name: str) -> None:
        """Deregister a check by name. Unknown names are ignored."""
        with self._lock:
            self._checks.pop(name, None)
            count = len(self._checks)
        self._metrics_recorder().observe_registered(count=count)

    def has(self, name: str) -> bool:
        with self._lock:
            return name in self._checks

    def get(self, name: str) -> LivenessCheck:
        """Retrieve a registered check by name."""
        with self._lock:
            try:
                return self._checks[name]
            except KeyError:
                raise CheckNotFoundError(name) from None

    def names(self) -> list[str]:
        with self._lock:
            return sorted(self._checks)

    def __len__(self) -> int:
        with self._lock:
            return len(self._checks)

    def expired_names(self) -> list[str]:
        """Return the sorted names of every check that has expired."""
        return sorted(name for name, check in self._snapshot() if check.expired())

    def check_all(self) -> None:
        """Evaluate every check once.

        Raises:
            AggregateFailureError: naming all expired checks.
        """
        started = perf_counter()
        expired = self.expired_names()
        recorder = self._metrics_recorder()
        recorder.observe_check(duration_seconds=perf_counter() - started, success=not expired)
        if expired:
            for name in expired:
                recorder.observe_expired(check=name)
            raise AggregateFailureError(expired)

    def report(self) -> LivenessReport:
        """Build a per-check report without raising on expiry."""
        statuses = {name: liveness_status(check) for name, check in self._snapshot()}

        total = len(statuses)
        expired_count = sum(1 for status in statuses.values() if status.expired)
        alive_count = total - expired_count
        aggregate_status: Literal["ok", "degraded", "down"]
        if expired_count == 0:
            aggregate_status = "ok"
        elif alive_count > 0:
            aggregate_status = "degraded"
        else:
            aggregate_status = "down"

        return LivenessReport(
            status=aggregate_status,
            healthy=expired_count == 0,
            checks=statuses,
            summary=LivenessSummary(total=total, alive=alive_count, expired=expired_count),
        )

    def _snapshot(self) -> list[tuple[str, LivenessCheck]]:
        with self._lock:
            return list(self._checks.items())

    def _metrics_recorder(self) -> MetricsRecorder:
        return get_metrics_recorder() if self._metrics is None else self._metrics
