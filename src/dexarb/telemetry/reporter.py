"""
Periodic status reporter.

Outputs status summaries as log messages while the engine runs and a
session summary on shutdown.
"""

import asyncio
import logging
from datetime import timedelta

from dexarb.telemetry.metrics import (
    EVENT_LATENCY,
    EVENTS_DISCARDED,
    EVENTS_RECEIVED,
    SCAN_LATENCY,
    TRIPLES_EVALUATED,
    MetricsCollector,
)
from dexarb.utils.time import format_duration_us


logger = logging.getLogger(__name__)


class StatusReporter:
    """
    Logs a one-line status summary at a fixed interval.

    Summary covers event throughput, latencies and opportunity counts.
    """

    def __init__(self, metrics: MetricsCollector) -> None:
        """
        Initialize status reporter.

        Args:
            metrics: Metrics collector instance.
        """
        self._metrics = metrics
        self._running = False
        self._task: asyncio.Task[None] | None = None

        # Additional state
        self._pool_count = 0
        self._token_count = 0

    def set_state(self, pool_count: int = 0, token_count: int = 0) -> None:
        """Update reported market size."""
        self._pool_count = pool_count
        self._token_count = token_count

    @staticmethod
    def _format_uptime(seconds: float) -> str:
        """Format uptime as HH:MM:SS."""
        td = timedelta(seconds=int(seconds))
        hours, remainder = divmod(int(td.total_seconds()), 3600)
        minutes, secs = divmod(remainder, 60)
        return f"{hours:02d}:{minutes:02d}:{secs:02d}"

    def get_status_line(self) -> str:
        """Get a single-line status update."""
        m = self._metrics
        event_latency = m.get_latency_stats(EVENT_LATENCY)
        scan = m.get_latency_stats(SCAN_LATENCY)

        event_avg = format_duration_us(int(event_latency.avg_us)) if event_latency.count else "---"
        scan_avg = format_duration_us(int(scan.avg_us)) if scan.count else "---"

        return (
            f"Up: {self._format_uptime(m.uptime_seconds)} | "
            f"Events: {m.get_counter(EVENTS_RECEIVED)} "
            f"({m.events_per_second:.2f}/s, {m.get_counter(EVENTS_DISCARDED)} discarded) | "
            f"Opp: {m.opportunities.opportunities_found} | "
            f"Latency: {event_avg} | "
            f"Scan: {scan_avg}"
        )

    def report(self) -> None:
        """Log one status line."""
        logger.info(self.get_status_line(), extra={"fields": self._metrics.to_dict()})

    async def run(self, interval: float) -> None:
        """
        Report continuously until stopped.

        Args:
            interval: Seconds between reports.
        """
        self._running = True

        while self._running:
            await asyncio.sleep(interval)
            self.report()

    def start(self, interval: float) -> asyncio.Task[None]:
        """Start the reporter as a background task."""
        self._task = asyncio.create_task(self.run(interval), name="status-reporter")
        return self._task

    async def stop(self) -> None:
        """Stop the reporter and wait for its task."""
        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

    def log_summary(self) -> None:
        """Log a final session summary."""
        m = self._metrics
        totals = m.opportunities

        logger.info("=" * 50)
        logger.info("  SESSION SUMMARY")
        logger.info("=" * 50)
        logger.info(f"  Uptime: {self._format_uptime(m.uptime_seconds)}")
        logger.info(f"  Tokens: {self._token_count}  Pools: {self._pool_count}")
        logger.info(f"  Events received:   {m.get_counter(EVENTS_RECEIVED):,}")
        logger.info(f"  Events discarded:  {m.get_counter(EVENTS_DISCARDED):,}")
        logger.info(f"  Triples evaluated: {m.get_counter(TRIPLES_EVALUATED):,}")
        logger.info(f"  Opportunities:     {totals.opportunities_found:,}")
        if totals.best_cycle is not None:
            logger.info(
                f"  Best cycle: {totals.best_cycle} "
                f"x{totals.best_multiplier:.6f} ({totals.best_profit_pct:+.4f}%)"
            )
        logger.info("=" * 50)
