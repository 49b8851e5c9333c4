"""Utility functions for the arbitrage engine."""

from dexarb.utils.locks import ReadWriteLock
from dexarb.utils.time import (
    LatencyTimer,
    block_latency_us,
    format_duration_us,
    format_timestamp_us,
    get_timestamp_us,
)


__all__ = [
    "LatencyTimer",
    "ReadWriteLock",
    "block_latency_us",
    "format_duration_us",
    "format_timestamp_us",
    "get_timestamp_us",
]
