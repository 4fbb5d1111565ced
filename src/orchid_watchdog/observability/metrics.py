"""Prometheus metrics primitives for the watchdog registry and supervisor."""

from __future__ import annotations

import re
from typing import Any, Protocol

from orchid_watchdog.errors import MissingDependencyError

_LABEL_NORMALIZER = re.compile(r"[^a-zA-Z0-9_]+")


def _import_prometheus_client() -> Any:
    try:
        import prometheus_client
    except ImportError as exc:  # pragma: no cover - depends on optional extras
        raise MissingDependencyError(
            "Prometheus metrics require optional dependency 'prometheus-client'. "
            "Install with: uv sync --extra observability"
        ) from exc
    return prometheus_client


def _sanitize_label(value: str, *, default: str = "unknown") -> str:
    normalized = _LABEL_NORMALIZER.sub("_", value.strip().lower()).strip("_")
    return normalized or default


def _collector_or_create(registry: Any, name: str, factory: Any) -> Any:
    names_to_collectors = getattr(registry, "_names_to_collectors", None)
    if isinstance(names_to_collectors, dict):
        collector = names_to_collectors.get(name)
        if collector is not None:
            return collector
    return factory()


class MetricsRecorder(Protocol):
    """Observer contract for watchdog metrics."""

    def observe_check(self, *, duration_seconds: float, success: bool) -> None:
        """Record one aggregate check pass."""
        ...

    def observe_expired(self, *, check: str) -> None:
        """Record a check found expired during a pass."""
        ...

    def observe_registered(self, *, count: int) -> None:
        """Record the number of checks currently registered."""
        ...


class NoopMetricsRecorder:
    """No-op recorder used when metrics are not configured."""

    def observe_check(self, *, duration_seconds: float, success: bool) -> None:
        del duration_seconds, success

    def observe_expired(self, *, check: str) -> None:
        del check

    def observe_registered(self, *, count: int) -> None:
        del count


class PrometheusMetricsRecorder:
    """Prometheus-backed recorder with standard orchid_watchdog_* naming."""

    def __init__(
        self,
        *,
        registry: Any | None = None,
        prefix: str = "orchid_watchdog",
    ) -> None:
        prometheus_client = _import_prometheus_client()
        self._registry = prometheus_client.REGISTRY if registry is None else registry
        self._prefix = _sanitize_label(prefix, default="orchid_watchdog")
        self._latency = _collector_or_create(
            self._registry,
            f"{self._prefix}_check_latency_seconds",
            lambda: prometheus_client.Histogram(
                f"{self._prefix}_check_latency_seconds",
                "Aggregate liveness check latency in seconds.",
                labelnames=("status",),
                registry=self._registry,
                buckets=(0.0001, 0.0005, 0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0),
            ),
        )
        self._checks = _collector_or_create(
            self._registry,
            f"{self._prefix}_checks_total",
            lambda: prometheus_client.Counter(
                f"{self._prefix}_checks_total",
                "Aggregate liveness check passes.",
                labelnames=("status",),
                registry=self._registry,
            ),
        )
        self._expired = _collector_or_create(
            self._registry,
            f"{self._prefix}_expired_total",
            lambda: prometheus_client.Counter(
                f"{self._prefix}_expired_total",
                "Liveness checks found expired.",
                labelnames=("check",),
                registry=self._registry,
            ),
        )
        self._registered = _collector_or_create(
            self._registry,
            f"{self._prefix}_registered_checks",
            lambda: prometheus_client.Gauge(
                f"{self._prefix}_registered_checks",
                "Liveness checks currently registered.",
                registry=self._registry,
            ),
        )

    def observe_check(self, *, duration_seconds: float, success: bool) -> None:
        status_label = "success" if success else "expired"
        self._latency.labels(status=status_label).observe(max(0.0, duration_seconds))
        self._checks.labels(status=status_label).inc()

    def observe_expired(self, *, check: str) -> None:
        self._expired.labels(check=_sanitize_label(check)).inc()

    def observe_registered(self, *, count: int) -> None:
        self._registered.set(max(0.0, float(count)))


_NOOP_RECORDER = NoopMetricsRecorder()
_DEFAULT_RECORDER: MetricsRecorder = _NOOP_RECORDER


def get_metrics_recorder() -> MetricsRecorder:
    """Return the process-level metrics recorder."""
    return _DEFAULT_RECORDER


def set_metrics_recorder(recorder: MetricsRecorder | None) -> MetricsRecorder:
    """Set process-level recorder. `None` switches back to no-op."""
    global _DEFAULT_RECORDER
    _DEFAULT_RECORDER = _NOOP_RECORDER if recorder is None else recorder
    return _DEFAULT_RECORDER


def configure_prometheus_metrics(
    *,
    registry: Any | None = None,
    prefix: str = "orchid_watchdog",
    set_default: bool = True,
) -> PrometheusMetricsRecorder:
    """Build a Prometheus recorder and optionally set it as default."""
    recorder = PrometheusMetricsRecorder(registry=registry, prefix=prefix)
    if set_default:
        set_metrics_recorder(recorder)
    return recorder


def render_prometheus_metrics(*, registry: Any | None = None) -> bytes:
    """Render current Prometheus metrics in exposition text format."""
    prometheus_client = _import_prometheus_client()
    resolved_registry = prometheus_client.REGISTRY if registry is None else registry
    return bytes(prometheus_client.generate_latest(resolved_registry))
