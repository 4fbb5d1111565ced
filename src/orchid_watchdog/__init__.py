"""Liveness watchdog: named heartbeat checks under a periodic supervisor."""

from orchid_watchdog.checks import (
    LivenessCheck,
    LivenessStatus,
    TimedLivenessCheck,
    liveness_status,
)
from orchid_watchdog.errors import (
    AggregateFailureError,
    CheckNotFoundError,
    InvalidConfigurationError,
    MissingDependencyError,
    WatchdogError,
    WatchdogStateError,
)
from orchid_watchdog.registry import LivenessRegistry, LivenessReport, LivenessSummary
from orchid_watchdog.supervisor import Supervisor, SupervisorState

__version__ = "0.1.0"

__all__ = [
    "AggregateFailureError",
    "CheckNotFoundError",
    "InvalidConfigurationError",
    "LivenessCheck",
    "LivenessRegistry",
    "LivenessReport",
    "LivenessStatus",
    "LivenessSummary",
    "MissingDependencyError",
    "Supervisor",
    "SupervisorState",
    "TimedLivenessCheck",
    "WatchdogError",
    "WatchdogStateError",
    "liveness_status",
]
