"""Telemetry module for logging, metrics, and reporting."""

from dexarb.telemetry.logger import AsyncLogger, JsonFormatter, log_banner, setup_logging
from dexarb.telemetry.metrics import MetricsCollector
from dexarb.telemetry.reporter import StatusReporter


__all__ = [
    "AsyncLogger",
    "JsonFormatter",
    "MetricsCollector",
    "StatusReporter",
    "log_banner",
    "setup_logging",
]
