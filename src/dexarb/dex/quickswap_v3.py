"""
Quickswap V3 adapter.

Quickswap V3 runs Algebra pools. Their Swap event carries `price` where
Uniswap has `sqrtPriceX96`; the value is the same Q64.96 square root.
"""

from typing import Any

from dexarb.core.errors import SwapDecodeError
from dexarb.core.types import SwapNotification, Venue
from dexarb.dex.base import DexAdapter
from dexarb.dex.events import decode_swap_log


class QuickswapV3Adapter(DexAdapter):
    """
    Adapter for Quickswap V3 (Algebra) pools.

    Algebra fees are dynamic on-chain; the configured fee is used as a
    fixed approximation.
    """

    default_venue = Venue.QUICKSWAP_V3

    def decode_swap(self, log: dict[str, Any]) -> SwapNotification:
        notification = decode_swap_log(log, self.swap_topic)

        # Algebra reports the post-swap price; a zero price means a broken pool
        if notification.raw_sqrt_price == 0:
            raise SwapDecodeError(f"zero price in swap of {notification.pool_address}")

        return notification
