"""Strategy module for price normalization and cycle detection."""

from dexarb.strategy.graph import BestPoolIndex
from dexarb.strategy.opportunity import OpportunityDetector, iter_triples
from dexarb.strategy.pricing import normalize_price


__all__ = [
    "BestPoolIndex",
    "OpportunityDetector",
    "iter_triples",
    "normalize_price",
]
