"""Tests for Supervisor watch loop and termination."""

from __future__ import annotations

import asyncio
import logging
import threading
import time

import pytest

from orchid_watchdog import (
    AggregateFailureError,
    InvalidConfigurationError,
    LivenessRegistry,
    Supervisor,
    TimedLivenessCheck,
    WatchdogStateError,
)
from orchid_watchdog.config import CheckSettings, WatchdogSettings


class CountingCheck:
    """Never expires, counts how often it was evaluated."""

    def __init__(self, name: str = "counting") -> None:
        self.name = name
        self.calls = 0

    def reset(self) -> None:
        pass

    def expired(self) -> bool:
        self.calls += 1
        return False


class BrokenCheck:
    """Raises instead of answering, like a check whose inspection fails."""

    name = "broken"

    def reset(self) -> None:
        pass

    def expired(self) -> bool:
        raise RuntimeError("inspection failed")


def _wait_for_state(supervisor: Supervisor, state: str, timeout: float = 2.0) -> None:
    deadline = time.monotonic() + timeout
    while supervisor.state != state:
        if time.monotonic() > deadline:
            raise AssertionError(f"supervisor never reached {state!r}, got {supervisor.state!r}")
        time.sleep(0.005)


class TestSupervisorDelegation:
    def test_add_remove_and_check_all(self, clock) -> None:
        supervisor = Supervisor()
        supervisor.add(TimedLivenessCheck("db", 1.0, clock=clock))

        supervisor.check_all()
        clock.advance(2.0)
        with pytest.raises(AggregateFailureError):
            supervisor.check_all()

        supervisor.remove("db")
        supervisor.check_all()

    def test_wraps_given_registry(self) -> None:
        registry = LivenessRegistry()
        supervisor = Supervisor(registry)

        supervisor.add(TimedLivenessCheck("db", 1.0))

        assert supervisor.registry is registry
        assert registry.has("db")

    def test_report_delegates_to_registry(self, clock) -> None:
        supervisor = Supervisor()
        supervisor.add(TimedLivenessCheck("db", 1.0, clock=clock))
        clock.advance(2.0)

        assert supervisor.report().status == "down"

    def test_from_settings_registers_timed_checks(self) -> None:
        settings = WatchdogSettings(
            period_seconds=0.5,
            checks=[
                CheckSettings(name="db", duration_seconds=5.0),
                CheckSettings(name="api", duration_seconds=2.0),
            ],
        )

        supervisor = Supervisor.from_settings(settings)

        assert supervisor.registry.names() == ["api", "db"]
        assert supervisor.state == "idle"


class TestSupervisorWatch:
    def test_terminate_before_watch_skips_checks(self) -> None:
        supervisor = Supervisor()
        check = CountingCheck()
        supervisor.add(check)

        supervisor.terminate()
        supervisor.terminate()
        supervisor.watch(0.01)

        assert check.calls == 0
        assert supervisor.state == "stopped"
        assert supervisor.terminated

    def test_watch_rejects_non_positive_period(self) -> None:
        supervisor = Supervisor()

        with pytest.raises(InvalidConfigurationError):
            supervisor.watch(0)
        with pytest.raises(InvalidConfigurationError):
            supervisor.watch(-1.0)
        assert supervisor.state == "idle"

    def test_watch_fails_fast_naming_only_expired_check(self) -> None:
        supervisor = Supervisor()
        supervisor.add(TimedLivenessCheck("short", 0.01))
        supervisor.add(TimedLivenessCheck("long", 10.0))

        started = time.monotonic()
        with pytest.raises(AggregateFailureError) as exc_info:
            supervisor.watch(0.005)
        elapsed = time.monotonic() - started

        assert exc_info.value.names == ("short",)
        assert elapsed < 1.0
        assert supervisor.state == "failed"

    def test_watch_can_be_reinvoked_after_failure(self, clock) -> None:
        supervisor = Supervisor()
        check = TimedLivenessCheck("db", 1.0, clock=clock)
        supervisor.add(check)
        clock.advance(2.0)

        with pytest.raises(AggregateFailureError):
            supervisor.watch(0.01)

        check.reset()
        supervisor.start(0.01)
        _wait_for_state(supervisor, "watching")
        supervisor.terminate()

        assert supervisor.wait(timeout=2.0)
        assert supervisor.state == "stopped"

    def test_terminate_interrupts_long_period(self) -> None:
        supervisor = Supervisor()
        check = CountingCheck()
        supervisor.add(check)

        supervisor.start(30.0)
        _wait_for_state(supervisor, "watching")
        started = time.monotonic()
        supervisor.terminate()

        assert supervisor.wait(timeout=2.0)
        assert time.monotonic() - started < 1.0
        assert check.calls <= 1
        assert supervisor.state == "stopped"

    def test_repeated_terminate_from_many_threads(self) -> None:
        supervisor = Supervisor()
        supervisor.add(CountingCheck())
        supervisor.start(0.01)
        _wait_for_state(supervisor, "watching")

        threads = [threading.Thread(target=supervisor.terminate) for _ in range(10)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert supervisor.wait(timeout=2.0)
        assert supervisor.state == "stopped"

    def test_background_failure_is_reraised_by_wait(self) -> None:
        supervisor = Supervisor()
        supervisor.add(TimedLivenessCheck("db", 0.01))

        supervisor.start(0.005)

        with pytest.raises(AggregateFailureError) as exc_info:
            supervisor.wait(timeout=2.0)
        assert exc_info.value.names == ("db",)
        assert supervisor.state == "failed"

    def test_background_crash_is_reraised_by_wait(self) -> None:
        supervisor = Supervisor()
        supervisor.add(BrokenCheck())

        supervisor.start(0.01)

        with pytest.raises(RuntimeError, match="inspection failed"):
            supervisor.wait(timeout=2.0)
        assert supervisor.state == "failed"
        assert not supervisor.terminated

    def test_crash_in_watch_marks_supervisor_failed(self) -> None:
        supervisor = Supervisor()
        supervisor.add(BrokenCheck())

        with pytest.raises(RuntimeError, match="inspection failed"):
            supervisor.watch(0.01)

        assert supervisor.state == "failed"

    def test_racing_starts_spawn_a_single_worker(self) -> None:
        supervisor = Supervisor()
        supervisor.add(CountingCheck())
        barrier = threading.Barrier(8)
        started: list[threading.Thread] = []
        rejected: list[WatchdogStateError] = []

        def _start() -> None:
            barrier.wait()
            try:
                started.append(supervisor.start(10.0))
            except WatchdogStateError as exc:
                rejected.append(exc)

        callers = [threading.Thread(target=_start) for _ in range(8)]
        for caller in callers:
            caller.start()
        for caller in callers:
            caller.join(timeout=5)
        try:
            assert len(started) == 1
            assert len(rejected) == 7
        finally:
            supervisor.terminate()

        assert supervisor.wait(timeout=2.0)
        assert supervisor.state == "stopped"

    def test_wait_without_start_returns_immediately(self) -> None:
        assert Supervisor().wait(timeout=0.1)

    def test_wait_times_out_while_running(self) -> None:
        supervisor = Supervisor()
        supervisor.add(CountingCheck())
        supervisor.start(10.0)
        try:
            assert supervisor.wait(timeout=0.05) is False
        finally:
            supervisor.terminate()
            supervisor.wait(timeout=2.0)

    def test_concurrent_watch_is_rejected(self) -> None:
        supervisor = Supervisor()
        supervisor.add(CountingCheck())
        supervisor.start(10.0)
        _wait_for_state(supervisor, "watching")
        try:
            with pytest.raises(WatchdogStateError):
                supervisor.watch(1.0)
            with pytest.raises(WatchdogStateError):
                supervisor.start(1.0)
        finally:
            supervisor.terminate()
            supervisor.wait(timeout=2.0)

    def test_checks_added_while_watching_are_picked_up(self) -> None:
        supervisor = Supervisor()
        supervisor.add(CountingCheck("steady"))
        supervisor.start(0.005)
        _wait_for_state(supervisor, "watching")

        supervisor.add(TimedLivenessCheck("late", 0.0))

        with pytest.raises(AggregateFailureError) as exc_info:
            supervisor.wait(timeout=2.0)
        assert exc_info.value.names == ("late",)

    def test_failure_is_logged_with_expired_names(self, caplog: pytest.LogCaptureFixture) -> None:
        supervisor = Supervisor()
        supervisor.add(TimedLivenessCheck("db", 0.0))
        time.sleep(0.001)

        with caplog.at_level(logging.WARNING, logger="orchid_watchdog.supervisor"):
            with pytest.raises(AggregateFailureError):
                supervisor.watch(0.01)

        [record] = [r for r in caplog.records if r.levelno == logging.WARNING]
        assert record.getMessage() == "watchdog timed out on the following services: db"
        assert record.expired == ["db"]


class TestSupervisorAsync:
    async def test_watch_async_stops_on_terminate(self) -> None:
        supervisor = Supervisor()
        supervisor.add(CountingCheck())

        task = asyncio.create_task(supervisor.watch_async(10.0))
        await asyncio.sleep(0.05)
        supervisor.terminate()
        await asyncio.wait_for(task, timeout=2.0)

        assert supervisor.state == "stopped"

    async def test_watch_async_raises_aggregate_failure(self) -> None:
        supervisor = Supervisor()
        supervisor.add(TimedLivenessCheck("db", 0.01))

        with pytest.raises(AggregateFailureError):
            await asyncio.wait_for(supervisor.watch_async(0.005), timeout=2.0)

    async def test_cancelling_watch_async_terminates(self) -> None:
        supervisor = Supervisor()
        supervisor.add(CountingCheck())

        task = asyncio.create_task(supervisor.watch_async(10.0))
        await asyncio.sleep(0.05)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        assert supervisor.terminated
