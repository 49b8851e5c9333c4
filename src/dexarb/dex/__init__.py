"""Venue adapters."""

from dexarb.core.errors import UnknownVenueError
from dexarb.core.types import NodeClient, Venue
from dexarb.dex.base import DexAdapter, WatchState
from dexarb.dex.events import SWAP_TOPIC, decode_swap_log, event_topic
from dexarb.dex.quickswap_v3 import QuickswapV3Adapter
from dexarb.dex.uniswap_v3 import UniswapV3Adapter


# Sushiswap V3 pools are Uniswap V3 deployments
ADAPTERS: dict[Venue, type[DexAdapter]] = {
    Venue.UNISWAP_V3: UniswapV3Adapter,
    Venue.SUSHISWAP_V3: UniswapV3Adapter,
    Venue.QUICKSWAP_V3: QuickswapV3Adapter,
}


def create_adapter(venue: Venue, node: NodeClient) -> DexAdapter:
    """
    Build the adapter for a venue.

    Raises:
        UnknownVenueError: If the venue has no adapter.
    """
    try:
        adapter_cls = ADAPTERS[venue]
    except KeyError:
        raise UnknownVenueError(f"no adapter for venue {venue!r}") from None
    return adapter_cls(node, venue)


__all__ = [
    "ADAPTERS",
    "DexAdapter",
    "QuickswapV3Adapter",
    "SWAP_TOPIC",
    "UniswapV3Adapter",
    "UnknownVenueError",
    "WatchState",
    "create_adapter",
    "decode_swap_log",
    "event_topic",
]
