"""
Metrics collection for pipeline monitoring.

Tracks latencies, counters and opportunity statistics with in-memory
storage. Written only from the engine's event loop.
"""

import time
from collections import deque
from dataclasses import dataclass, field
from decimal import Decimal


# Counter names
EVENTS_RECEIVED = "events_received"
EVENTS_DISCARDED = "events_discarded"
TRIPLES_EVALUATED = "triples_evaluated"
OPPORTUNITIES_FOUND = "opportunities_found"

# Latency names
EVENT_LATENCY = "event_latency"
SCAN_LATENCY = "scan"


@dataclass
class LatencyStats:
    """Aggregated latency statistics."""

    min_us: int = 0
    max_us: int = 0
    avg_us: float = 0.0
    p50_us: int = 0
    p95_us: int = 0
    p99_us: int = 0
    count: int = 0


@dataclass
class OpportunityTotals:
    """Reported opportunity statistics."""

    opportunities_found: int = 0
    best_multiplier: Decimal = field(default_factory=lambda: Decimal(0))
    best_cycle: str | None = None

    @property
    def best_profit_pct(self) -> Decimal:
        """Best round-trip profit seen, as a percentage."""
        if self.best_cycle is None:
            return Decimal(0)
        return (self.best_multiplier - 1) * 100


class MetricsCollector:
    """
    Collects and aggregates pipeline metrics.

    Features:
    - Rolling window latency tracking
    - Counter-based event tracking
    - Best-opportunity tracking
    - Events-per-second over a sliding window
    """

    def __init__(
        self,
        latency_window_size: int = 1000,
        rate_window_seconds: float = 60.0,
    ) -> None:
        """
        Initialize metrics collector.

        Args:
            latency_window_size: Number of samples to keep for latency stats.
            rate_window_seconds: Window for the event rate.
        """
        self._window_size = latency_window_size
        self._latencies: dict[str, deque[int]] = {}
        self._counters: dict[str, int] = {}
        self._opportunities = OpportunityTotals()
        self._event_window = SlidingWindowCounter(rate_window_seconds)
        self._start_time = time.time()

    def record_latency(self, name: str, latency_us: int) -> None:
        """
        Record a latency measurement.

        Args:
            name: Metric name (e.g., "event_latency", "scan").
            latency_us: Latency in microseconds.
        """
        if name not in self._latencies:
            self._latencies[name] = deque(maxlen=self._window_size)

        self._latencies[name].append(latency_us)

    def increment_counter(self, name: str, value: int = 1) -> None:
        """
        Increment a counter.

        Args:
            name: Counter name.
            value: Amount to increment.
        """
        self._counters[name] = self._counters.get(name, 0) + value

    def get_counter(self, name: str) -> int:
        """Get counter value."""
        return self._counters.get(name, 0)

    def record_event(self, latency_us: int) -> None:
        """Record a received event and its block-to-arrival latency."""
        self.increment_counter(EVENTS_RECEIVED)
        self.record_latency(EVENT_LATENCY, latency_us)
        self._event_window.increment()

    def record_opportunity(self, cycle: str, multiplier: Decimal) -> None:
        """
        Record a reported opportunity.

        Args:
            cycle: Cycle identifier, e.g. "USDC-WETH-WPOL".
            multiplier: Round-trip multiplier.
        """
        self.increment_counter(OPPORTUNITIES_FOUND)
        self._opportunities.opportunities_found += 1

        if multiplier > self._opportunities.best_multiplier:
            self._opportunities.best_multiplier = multiplier
            self._opportunities.best_cycle = cycle

    def get_latency_stats(self, name: str) -> LatencyStats:
        """
        Get latency statistics for a metric.

        Args:
            name: Metric name.

        Returns:
            LatencyStats with aggregated values.
        """
        samples = self._latencies.get(name)
        if not samples:
            return LatencyStats()

        sorted_samples = sorted(samples)
        n = len(sorted_samples)

        return LatencyStats(
            min_us=sorted_samples[0],
            max_us=sorted_samples[-1],
            avg_us=sum(sorted_samples) / n,
            p50_us=sorted_samples[n // 2],
            p95_us=sorted_samples[int(n * 0.95)],
            p99_us=sorted_samples[int(n * 0.99)] if n > 1 else sorted_samples[-1],
            count=n,
        )

    def get_all_latency_stats(self) -> dict[str, LatencyStats]:
        """Get latency stats for all metrics."""
        return {name: self.get_latency_stats(name) for name in self._latencies}

    @property
    def opportunities(self) -> OpportunityTotals:
        """Get opportunity statistics."""
        return self._opportunities

    @property
    def events_per_second(self) -> float:
        """Event rate over the sliding window."""
        return self._event_window.rate_per_second()

    @property
    def uptime_seconds(self) -> float:
        """Get uptime in seconds."""
        return time.time() - self._start_time

    def get_rates(self) -> dict[str, float]:
        """
        Calculate per-minute rates for counters.

        Returns:
            Dict of counter -> rate per minute.
        """
        minutes = self.uptime_seconds / 60
        if minutes == 0:
            return {}

        return {f"{name}_per_min": count / minutes for name, count in self._counters.items()}

    def to_dict(self) -> dict[str, object]:
        """
        Export all metrics as a dict.

        Returns:
            Dict representation of all metrics.
        """
        return {
            "uptime_seconds": self.uptime_seconds,
            "counters": dict(self._counters),
            "latencies": {
                name: {
                    "min": stats.min_us,
                    "max": stats.max_us,
                    "avg": stats.avg_us,
                    "p50": stats.p50_us,
                    "p99": stats.p99_us,
                    "count": stats.count,
                }
                for name, stats in self.get_all_latency_stats().items()
            },
            "opportunities": {
                "found": self._opportunities.opportunities_found,
                "best_cycle": self._opportunities.best_cycle,
                "best_multiplier": str(self._opportunities.best_multiplier),
            },
        }

    def reset(self) -> None:
        """Reset all metrics."""
        self._latencies.clear()
        self._counters.clear()
        self._opportunities = OpportunityTotals()
        self._event_window = SlidingWindowCounter(self._event_window.window_seconds)
        self._start_time = time.time()


class SlidingWindowCounter:
    """
    Counter with sliding time window.

    Tracks counts over a rolling time period.
    """

    def __init__(self, window_seconds: float = 60.0) -> None:
        """
        Initialize sliding window counter.

        Args:
            window_seconds: Size of the time window.
        """
        self._window_seconds = window_seconds
        self._events: deque[float] = deque()

    @property
    def window_seconds(self) -> float:
        """Size of the time window."""
        return self._window_seconds

    def increment(self) -> None:
        """Record an event at current time."""
        now = time.time()
        self._events.append(now)
        self._prune(now)

    def _prune(self, now: float) -> None:
        """Remove events outside the window."""
        cutoff = now - self._window_seconds
        while self._events and self._events[0] < cutoff:
            self._events.popleft()

    def count(self) -> int:
        """Get count of events in window."""
        self._prune(time.time())
        return len(self._events)

    def rate_per_second(self) -> float:
        """Get rate per second."""
        return self.count() / self._window_seconds
