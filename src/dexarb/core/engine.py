"""
Arbitrage engine.

Single consumer of the aggregation channel. For each normalized event it
writes the pool's new amounts, then re-scans every token triple against
a fresh snapshot of both registries. The scan for one event completes
before the next event is taken from the channel.
"""

import logging
from collections.abc import Callable

from dexarb.core.channel import AggregationChannel
from dexarb.core.errors import NotFoundError
from dexarb.core.types import ArbitrageOpportunity, NormalizedEvent
from dexarb.market.pools import PoolRegistry
from dexarb.market.tokens import TokenRegistry
from dexarb.strategy.opportunity import OpportunityDetector
from dexarb.telemetry.metrics import (
    EVENTS_DISCARDED,
    SCAN_LATENCY,
    TRIPLES_EVALUATED,
    MetricsCollector,
)
from dexarb.utils.time import LatencyTimer


logger = logging.getLogger(__name__)


# Type alias for opportunity sinks
OpportunitySink = Callable[[ArbitrageOpportunity], None]


class ArbitrageEngine:
    """
    Event consumer and triangular scanner.

    Owns no state of its own beyond counters: pool rates live in the
    PoolRegistry, tokens in the TokenRegistry.
    """

    def __init__(
        self,
        tokens: TokenRegistry,
        pools: PoolRegistry,
        channel: AggregationChannel[NormalizedEvent],
        detector: OpportunityDetector | None = None,
        metrics: MetricsCollector | None = None,
    ) -> None:
        """
        Initialize the engine.

        Args:
            tokens: Token registry scanned for triples.
            pools: Pool registry updated by events.
            channel: Channel the adapters publish to.
            detector: Cycle detector (default: report multipliers above 1).
            metrics: Metrics collector.
        """
        self._tokens = tokens
        self._pools = pools
        self._channel = channel
        self._detector = detector or OpportunityDetector()
        self._metrics = metrics or MetricsCollector()
        self._sinks: list[OpportunitySink] = []
        self._running = False
        self._events_processed = 0

    def add_sink(self, sink: OpportunitySink) -> None:
        """Register a callable receiving every reported opportunity."""
        self._sinks.append(sink)

    async def run(self) -> None:
        """
        Consume events until the channel is closed and drained.

        Events are processed strictly one at a time.
        """
        self._running = True
        logger.info("Arbitrage engine started")

        try:
            async for event in self._channel:
                self.handle_event(event)
        finally:
            self._running = False
            logger.info(f"Arbitrage engine stopped after {self._events_processed} events")

    def handle_event(self, event: NormalizedEvent) -> list[ArbitrageOpportunity]:
        """
        Apply one event and scan for opportunities.

        Returns:
            Opportunities found by the scan (empty if the event was discarded).
        """
        self._metrics.record_event(event.latency_us)

        try:
            self._pools.update_amounts(
                event.pool_address,
                event.amount_out_forward,
                event.amount_out_backward,
            )
        except NotFoundError as e:
            self._metrics.increment_counter(EVENTS_DISCARDED)
            logger.error(f"Discarding event for unknown pool: {e}")
            return []

        self._events_processed += 1
        logger.info(
            f"New swap event: {event.venue.value} {event.token0_symbol}/{event.token1_symbol} "
            f"block={event.block_number} latency={event.latency_us}μs",
            extra={"fields": event.to_dict()},
        )

        opportunities = self.scan()

        for opportunity in opportunities:
            self._report(opportunity)

        return opportunities

    def scan(self) -> list[ArbitrageOpportunity]:
        """Search every ordered token triple against current snapshots."""
        evaluated_before = self._detector.stats.triples_evaluated

        with LatencyTimer() as timer:
            opportunities = self._detector.scan(
                self._tokens.list_all(),
                self._pools.best_quotes(),
            )

        self._metrics.record_latency(SCAN_LATENCY, timer.latency_us)
        self._metrics.increment_counter(
            TRIPLES_EVALUATED,
            self._detector.stats.triples_evaluated - evaluated_before,
        )
        return opportunities

    def _report(self, opportunity: ArbitrageOpportunity) -> None:
        """Log an opportunity and hand it to every sink."""
        self._metrics.record_opportunity(opportunity.id, opportunity.multiplier)

        logger.warning(
            f"Arbitrage opportunity: {opportunity.id} "
            f"multiplier={opportunity.multiplier:.10f} "
            f"pools={opportunity.pool_ab.address},{opportunity.pool_bc.address},"
            f"{opportunity.pool_ca.address}",
            extra={"fields": opportunity.to_dict()},
        )

        for sink in self._sinks:
            try:
                sink(opportunity)
            except Exception as e:
                logger.error(f"Opportunity sink error: {e}")

    @property
    def is_running(self) -> bool:
        """Check if the consume loop is active."""
        return self._running

    @property
    def events_processed(self) -> int:
        """Events applied to the pool registry."""
        return self._events_processed

    @property
    def detector(self) -> OpportunityDetector:
        """Get the cycle detector."""
        return self._detector

    @property
    def metrics(self) -> MetricsCollector:
        """Get metrics collector."""
        return self._metrics
