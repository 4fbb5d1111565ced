"""Periodic supervision of a liveness registry."""

from __future__ import annotations

import asyncio
import logging
import threading
from typing import TYPE_CHECKING, Literal

from orchid_watchdog.checks import LivenessCheck, TimedLivenessCheck
from orchid_watchdog.errors import (
    AggregateFailureError,
    InvalidConfigurationError,
    WatchdogStateError,
)
from orchid_watchdog.registry import LivenessRegistry, LivenessReport

if TYPE_CHECKING:
    from orchid_watchdog.config.models import WatchdogSettings
    from orchid_watchdog.observability.metrics import MetricsRecorder

logger = logging.getLogger(__name__)

SupervisorState = Literal["idle", "watching", "stopped", "failed"]


class Supervisor:
    """Runs ``check_all`` on a fixed period until terminated or a check expires.

    ``watch`` blocks the calling thread; run it on a dedicated thread via
    ``start`` or from asyncio via ``watch_async``. ``terminate`` may be called
    from any thread and interrupts the wait between passes immediately.

    Example usage::

        supervisor = Supervisor()
        supervisor.add(TimedLivenessCheck("db", 5.0))
        supervisor.start(1.0)
        ...
        supervisor.terminate()
        supervisor.wait()
    """

    def __init__(
        self,
        registry: LivenessRegistry | None = None,
        *,
        metrics: MetricsRecorder | None = None,
    ) -> None:
        self._registry = LivenessRegistry(_metrics=metrics) if registry is None else registry
        self._stop = threading.Event()
        self._state_lock = threading.Lock()
        self._state: SupervisorState = "idle"
        self._thread_lock = threading.Lock()
        self._thread: threading.Thread | None = None
        self._failure: BaseException | None = None

    @classmethod
    def from_settings(
        cls,
        settings: WatchdogSettings,
        *,
        metrics: MetricsRecorder | None = None,
    ) -> Supervisor:
        """Build a supervisor with one timed check per configured entry."""
        supervisor = cls(metrics=metrics)
        for check in settings.checks:
            supervisor.add(TimedLivenessCheck(check.name, check.duration_seconds))
        return supervisor

    @property
    def registry(self) -> LivenessRegistry:
        return self._registry

    @property
    def state(self) -> SupervisorState:
        with self._state_lock:
            return self._state

    @property
    def terminated(self) -> bool:
        return self._stop.is_set()

    def add(self, check: LivenessCheck) -> None:
        self._registry.add(check)

    def remove(self, name: str) -> None:
        self._registry.remove(name)

    def check_all(self) -> None:
        self._registry.check_all()

    def report(self) -> LivenessReport:
        return self._registry.report()

    def watch(self, period_seconds: float) -> None:
        """Check every ``period_seconds`` until terminated.

        Returns once ``terminate`` has been observed. A supervisor that was
        terminated before ``watch`` returns without checking anything.

        Raises:
            InvalidConfigurationError: If ``period_seconds`` is not positive.
            WatchdogStateError: If this supervisor is already watching.
            AggregateFailureError: On the first pass with expired checks.
        """
        if period_seconds <= 0:
            raise InvalidConfigurationError(f"period_seconds must be > 0, got {period_seconds}")

        with self._state_lock:
            if self._state == "watching":
                raise WatchdogStateError("supervisor is already watching")
            if self._stop.is_set():
                self._state = "stopped"
                return
            self._state = "watching"

        logger.info(
            "Watchdog supervision started",
            extra={"period_seconds": period_seconds, "checks": self._registry.names()},
        )
        try:
            while not self._stop.is_set():
                self._registry.check_all()
                if self._stop.wait(period_seconds):
                    break
        except AggregateFailureError as exc:
            self._set_state("failed")
            logger.warning(str(exc), extra={"expired": list(exc.names)})
            raise
        except BaseException:
            self._set_state("failed")
            logger.exception("Watchdog supervision crashed")
            raise

        self._set_state("stopped")
        logger.info("Watchdog supervision stopped")

    async def watch_async(self, period_seconds: float) -> None:
        """Run ``watch`` on a worker thread without blocking the event loop.

        Cancelling the awaiting task terminates the supervisor.
        """
        try:
            await asyncio.to_thread(self.watch, period_seconds)
        except asyncio.CancelledError:
            self.terminate()
            raise

    def start(self, period_seconds: float) -> threading.Thread:
        """Run ``watch`` on a daemon thread. Use ``wait`` to collect the outcome."""
        if period_seconds <= 0:
            raise InvalidConfigurationError(f"period_seconds must be > 0, got {period_seconds}")
        with self._thread_lock:
            if self._thread is not None and self._thread.is_alive():
                raise WatchdogStateError("supervisor is already running in the background")

            self._failure = None
            thread = threading.Thread(
                target=self._run_in_background,
                args=(period_seconds,),
                name="orchid-watchdog",
                daemon=True,
            )
            self._thread = thread
            thread.start()
        return thread

    def wait(self, timeout: float | None = None) -> bool:
        """Join the background thread started by ``start``.

        Returns whether the thread has finished.

        Raises:
            AggregateFailureError: If background supervision ended on a failure.
            Exception: Whatever else ended background supervision, such as a
                check whose ``expired()`` raised.
        """
        with self._thread_lock:
            thread = self._thread
        if thread is None:
            return True
        thread.join(timeout)
        if thread.is_alive():
            return False
        if self._failure is not None:
            raise self._failure
        return True

    def terminate(self) -> None:
        """Ask ``watch`` to return. Safe to call repeatedly and from any thread."""
        self._stop.set()

    def _run_in_background(self, period_seconds: float) -> None:
        try:
            self.watch(period_seconds)
        except BaseException as exc:
            self._failure = exc

    def _set_state(self, state: SupervisorState) -> None:
        with self._state_lock:
            self._state = state
