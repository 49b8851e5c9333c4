"""
In-memory node for testing.

Provides a controllable node client and log subscriptions so adapters
can be driven without network connections.
"""

import asyncio
import time
from collections.abc import AsyncIterator
from typing import Any

from eth_abi import encode as abi_encode

from dexarb.config.constants import SWAP_EVENT_DATA_TYPES
from dexarb.core.errors import BlockFetchError, SubscriptionError
from dexarb.dex.events import SWAP_TOPIC


ZERO_TOPIC = "0x" + "00" * 32


def make_swap_log(
    pool_address: str,
    sqrt_price: int,
    block_number: int = 1,
    amount0: int = 1_000,
    amount1: int = -990,
    liquidity: int = 10**18,
    tick: int = 0,
    removed: bool = False,
    topic: str = SWAP_TOPIC,
) -> dict[str, Any]:
    """Build a raw Swap log as delivered by eth_subscribe."""
    data = abi_encode(
        list(SWAP_EVENT_DATA_TYPES),
        [amount0, amount1, sqrt_price, liquidity, tick],
    )
    return {
        "address": pool_address,
        "topics": [topic, ZERO_TOPIC, ZERO_TOPIC],
        "data": "0x" + data.hex(),
        "blockNumber": hex(block_number),
        "transactionHash": "0x" + "ab" * 32,
        "logIndex": "0x0",
        "removed": removed,
    }


class FakeLogSubscription:
    """
    Controllable log subscription.

    Logs pushed with `push` are yielded in order; `fail` ends iteration
    with a SubscriptionError.
    """

    def __init__(self, subscription_id: str, address: str) -> None:
        self._id = subscription_id
        self.address = address
        self._queue: asyncio.Queue[dict[str, Any] | BaseException | None] = asyncio.Queue()
        self.unsubscribed = False

    @property
    def id(self) -> str:
        return self._id

    def push(self, log: dict[str, Any]) -> None:
        """Deliver a log."""
        self._queue.put_nowait(log)

    def fail(self, error: BaseException | None = None) -> None:
        """Lose the subscription."""
        self._queue.put_nowait(error or SubscriptionError(f"subscription {self._id} lost"))

    def __aiter__(self) -> AsyncIterator[dict[str, Any]]:
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[dict[str, Any]]:
        while True:
            item = await self._queue.get()
            if item is None:
                return
            if isinstance(item, BaseException):
                raise item
            yield item

    async def unsubscribe(self) -> None:
        self.unsubscribed = True
        self._queue.put_nowait(None)


class FakeNodeClient:
    """
    In-memory node client.

    Features:
    - Records subscribe calls in order
    - Per-address subscription failures
    - Per-block header failures
    - Fixed block timestamps (default: current time)
    """

    def __init__(self) -> None:
        self.subscriptions: dict[str, FakeLogSubscription] = {}
        self.subscribe_calls: list[tuple[str, list[str]]] = []
        self.block_timestamps: dict[int, int] = {}
        self.failing_addresses: set[str] = set()
        self.failing_blocks: set[int] = set()
        self.closed = False
        self._subscribed = asyncio.Event()

    async def subscribe_logs(self, address: str, topics: list[str]) -> FakeLogSubscription:
        self.subscribe_calls.append((address, topics))

        if address.lower() in self.failing_addresses:
            raise SubscriptionError(f"failed to subscribe to {address}")

        subscription = FakeLogSubscription(f"0x{len(self.subscriptions) + 1:x}", address)
        self.subscriptions[address.lower()] = subscription
        self._subscribed.set()
        return subscription

    async def get_block_timestamp(self, block_number: int) -> int:
        if block_number in self.failing_blocks:
            raise BlockFetchError(f"block {block_number} not found")
        return self.block_timestamps.get(block_number, int(time.time()))

    async def close(self) -> None:
        self.closed = True
        for subscription in self.subscriptions.values():
            subscription.fail(SubscriptionError("node closed"))

    def subscription_for(self, address: str) -> FakeLogSubscription:
        """Get the subscription opened for a pool."""
        return self.subscriptions[address.lower()]

    async def wait_for_subscriptions(self, count: int, timeout: float = 2.0) -> None:
        """Wait until `count` subscriptions are open."""

        async def _wait() -> None:
            while len(self.subscriptions) < count:
                self._subscribed.clear()
                await self._subscribed.wait()

        await asyncio.wait_for(_wait(), timeout)
