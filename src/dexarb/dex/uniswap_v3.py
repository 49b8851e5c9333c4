"""
Uniswap V3 adapter.

Also serves Sushiswap V3, which deploys unmodified Uniswap V3 pool
contracts; the adapter is then constructed with the Sushiswap venue tag.
"""

from typing import Any

from dexarb.core.types import SwapNotification, Venue
from dexarb.dex.base import DexAdapter
from dexarb.dex.events import decode_swap_log


class UniswapV3Adapter(DexAdapter):
    """
    Adapter for Uniswap V3 pools.

    Swap(sender, recipient, amount0, amount1, sqrtPriceX96, liquidity, tick)
    with the fee fixed per pool in hundredths of a basis point.
    """

    default_venue = Venue.UNISWAP_V3

    def decode_swap(self, log: dict[str, Any]) -> SwapNotification:
        return decode_swap_log(log, self.swap_topic)
