"""Logging and metrics helpers for watchdog processes."""

from orchid_watchdog.observability.logging import (
    JsonFormatter,
    TextFormatter,
    bootstrap_logging,
    bootstrap_logging_from_app_settings,
    watchdog_fields,
)
from orchid_watchdog.observability.metrics import (
    MetricsRecorder,
    NoopMetricsRecorder,
    PrometheusMetricsRecorder,
    configure_prometheus_metrics,
    get_metrics_recorder,
    render_prometheus_metrics,
    set_metrics_recorder,
)

__all__ = [
    "JsonFormatter",
    "MetricsRecorder",
    "NoopMetricsRecorder",
    "PrometheusMetricsRecorder",
    "TextFormatter",
    "bootstrap_logging",
    "bootstrap_logging_from_app_settings",
    "configure_prometheus_metrics",
    "get_metrics_recorder",
    "render_prometheus_metrics",
    "set_metrics_recorder",
    "watchdog_fields",
]
