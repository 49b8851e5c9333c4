"""
Microsecond time utilities.

Latency is measured in whole microseconds end to end: block timestamps
are converted up, wall-clock readings down.
"""

import time
from datetime import UTC, datetime


def get_timestamp_us() -> int:
    """
    Get current Unix timestamp in microseconds.

    Uses time.time_ns() for maximum precision, then converts to microseconds.
    """
    return time.time_ns() // 1000


def block_latency_us(block_timestamp: int, now_us: int | None = None) -> int:
    """
    Delay between a block's timestamp and now.

    Args:
        block_timestamp: Block timestamp in Unix seconds.
        now_us: Current time in microseconds (default: now).

    Returns:
        Elapsed time in microseconds. Can be negative with clock skew.
    """
    if now_us is None:
        now_us = get_timestamp_us()
    return now_us - block_timestamp * 1_000_000


def format_timestamp_us(timestamp_us: int, include_date: bool = False) -> str:
    """
    Format microsecond timestamp for logging.

    Example:
        >>> format_timestamp_us(1704067200123456)
        '00:00:00.123456'
        >>> format_timestamp_us(1704067200123456, include_date=True)
        '2024-01-01 00:00:00.123456'
    """
    seconds = timestamp_us // 1_000_000
    microseconds = timestamp_us % 1_000_000

    dt = datetime.fromtimestamp(seconds, tz=UTC)

    if include_date:
        return f"{dt.strftime('%Y-%m-%d %H:%M:%S')}.{microseconds:06d}"
    return f"{dt.strftime('%H:%M:%S')}.{microseconds:06d}"


class LatencyTimer:
    """
    Context manager for measuring operation latency.

    Example:
        >>> with LatencyTimer() as timer:
        ...     detector.scan(tokens, quotes)
        >>> timer.latency_us
    """

    __slots__ = ("start_us", "end_us", "latency_us")

    def __init__(self) -> None:
        self.start_us: int = 0
        self.end_us: int = 0
        self.latency_us: int = 0

    def __enter__(self) -> "LatencyTimer":
        self.start_us = get_timestamp_us()
        return self

    def __exit__(self, *args: object) -> None:
        self.end_us = get_timestamp_us()
        self.latency_us = self.end_us - self.start_us


def format_duration_us(duration_us: int) -> str:
    """
    Format a duration in microseconds for human-readable display.

    Examples:
        >>> format_duration_us(500)
        '500μs'
        >>> format_duration_us(1500)
        '1.50ms'
        >>> format_duration_us(1500000)
        '1.50s'
    """
    if abs(duration_us) < 1000:
        return f"{duration_us}μs"
    elif abs(duration_us) < 1_000_000:
        return f"{duration_us / 1000:.2f}ms"
    else:
        return f"{duration_us / 1_000_000:.2f}s"
