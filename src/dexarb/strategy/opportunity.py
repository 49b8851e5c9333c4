"""
Opportunity detection.

Evaluates every ordered triple of distinct tokens against the current
best quote per directed pair and reports cycles returning more than one
unit of the starting token.
"""

import itertools
import logging
from collections.abc import Callable, Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from decimal import Decimal

from dexarb.core.types import ArbitrageOpportunity, LegQuote, Token
from dexarb.strategy.pricing import PRICE_CONTEXT
from dexarb.utils.time import get_timestamp_us


logger = logging.getLogger(__name__)


# Type alias for opportunity callbacks
OpportunityCallback = Callable[[ArbitrageOpportunity], None]

ONE = Decimal(1)


def iter_triples(symbols: Iterable[str]) -> Iterator[tuple[str, str, str]]:
    """
    Yield every ordered triple of distinct symbols.

    Rotations of one cycle are distinct triples: (A, B, C), (B, C, A)
    and (C, A, B) are all produced.

    Example:
        >>> len(list(iter_triples(["A", "B", "C"])))
        6
    """
    return itertools.permutations(dict.fromkeys(symbols), 3)


@dataclass
class OpportunityStats:
    """Statistics for opportunity detection."""

    total_scans: int = 0
    triples_evaluated: int = 0
    triples_skipped: int = 0
    opportunities_found: int = 0
    best_multiplier: Decimal = field(default_factory=lambda: Decimal(0))
    last_opportunity_us: int = 0

    def record_opportunity(self, opportunity: ArbitrageOpportunity) -> None:
        """Record a reported opportunity."""
        self.opportunities_found += 1
        self.last_opportunity_us = opportunity.timestamp_us
        if opportunity.multiplier > self.best_multiplier:
            self.best_multiplier = opportunity.multiplier


class OpportunityDetector:
    """
    Triangular cycle search over best-quote snapshots.

    Features:
    - Full O(T^3) scan per call, O(1) leg lookup through the snapshot
    - Legs without an eligible pool skip the triple
    - Callback-based notification
    - No suppression of repeats: a cycle still profitable on the next
      scan is reported again
    """

    def __init__(self, min_multiplier: Decimal = ONE) -> None:
        """
        Initialize opportunity detector.

        Args:
            min_multiplier: A cycle is reported when its multiplier is
                strictly greater than this value.
        """
        self._min_multiplier = min_multiplier
        self._callbacks: list[OpportunityCallback] = []
        self._stats = OpportunityStats()

    def register_callback(self, callback: OpportunityCallback) -> None:
        """Register callback for opportunity notifications."""
        self._callbacks.append(callback)

    def unregister_callback(self, callback: OpportunityCallback) -> None:
        """Unregister a callback."""
        if callback in self._callbacks:
            self._callbacks.remove(callback)

    def _notify_callbacks(self, opportunity: ArbitrageOpportunity) -> None:
        """Notify all registered callbacks."""
        for callback in self._callbacks:
            try:
                callback(opportunity)
            except Exception as e:
                logger.error(f"Callback error: {e}")

    def evaluate(
        self,
        tokens: tuple[Token, Token, Token],
        quotes: Mapping[tuple[str, str], LegQuote],
    ) -> ArbitrageOpportunity | None:
        """
        Price one A -> B -> C -> A cycle.

        Returns:
            The opportunity if the multiplier clears the threshold, else None.
            None is also returned when any leg lacks an eligible pool.
        """
        token_a, token_b, token_c = tokens
        a, b, c = token_a.symbol, token_b.symbol, token_c.symbol

        leg_ab = quotes.get((a, b))
        leg_bc = quotes.get((b, c))
        leg_ca = quotes.get((c, a))
        if leg_ab is None or leg_bc is None or leg_ca is None:
            self._stats.triples_skipped += 1
            return None

        self._stats.triples_evaluated += 1
        multiplier = PRICE_CONTEXT.multiply(
            PRICE_CONTEXT.multiply(leg_ab.amount_out, leg_bc.amount_out),
            leg_ca.amount_out,
        )

        if multiplier <= self._min_multiplier:
            return None

        return ArbitrageOpportunity(
            token_a=token_a,
            token_b=token_b,
            token_c=token_c,
            pool_ab=leg_ab.pool,
            pool_bc=leg_bc.pool,
            pool_ca=leg_ca.pool,
            multiplier=multiplier,
            amounts=(leg_ab.amount_out, leg_bc.amount_out, leg_ca.amount_out),
            timestamp_us=get_timestamp_us(),
        )

    def scan(
        self,
        tokens: Iterable[Token],
        quotes: Mapping[tuple[str, str], LegQuote],
    ) -> list[ArbitrageOpportunity]:
        """
        Scan every ordered triple of distinct tokens.

        Args:
            tokens: Token snapshot from the TokenRegistry.
            quotes: Best quote per directed pair from the PoolRegistry.

        Returns:
            Opportunities in scan order.
        """
        self._stats.total_scans += 1
        by_symbol = {token.symbol: token for token in tokens}
        opportunities: list[ArbitrageOpportunity] = []

        for a, b, c in iter_triples(by_symbol):
            opportunity = self.evaluate((by_symbol[a], by_symbol[b], by_symbol[c]), quotes)
            if opportunity is None:
                continue

            opportunities.append(opportunity)
            self._stats.record_opportunity(opportunity)
            self._notify_callbacks(opportunity)

        return opportunities

    @property
    def stats(self) -> OpportunityStats:
        """Get detection statistics."""
        return self._stats

    @property
    def min_multiplier(self) -> Decimal:
        """Get the reporting threshold."""
        return self._min_multiplier

    def reset_stats(self) -> None:
        """Reset detection statistics."""
        self._stats = OpportunityStats()
