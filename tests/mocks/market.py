"""
Synthetic A/B/C market for testing.

Three tokens and one pool per pair, enough to close a single triangle.
"""

from decimal import Decimal

from dexarb.core.types import Pool
from dexarb.market.pools import PoolRegistry


ADDR_A = "0x" + "a" * 40
ADDR_B = "0x" + "b" * 40
ADDR_C = "0x" + "c" * 40
POOL_AB = "0x" + "1" * 40
POOL_BC = "0x" + "2" * 40
POOL_CA = "0x" + "3" * 40


def set_amounts(pools: PoolRegistry, address: str, forward: str, backward: str) -> Pool:
    """Write both directions of a pool."""
    return pools.update_amounts(address, Decimal(forward), Decimal(backward))
