"""Market state: token and pool registries."""

from dexarb.market.pools import PoolRegistry
from dexarb.market.tokens import TokenRegistry


__all__ = [
    "PoolRegistry",
    "TokenRegistry",
]
