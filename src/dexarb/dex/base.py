"""
Venue adapter contract.

An adapter watches a pool's Swap notifications, normalizes each one into
a NormalizedEvent and hands it to the aggregation channel. Adapters never
touch the registries; applying updates is the engine's job.
"""

import logging
from abc import ABC, abstractmethod
from enum import Enum, auto
from typing import Any, ClassVar

from dexarb.config.constants import FEE_UNITS_DENOMINATOR
from dexarb.core.channel import AggregationChannel
from dexarb.core.errors import (
    BlockFetchError,
    ChannelClosedError,
    InvalidPriceError,
    SubscriptionError,
    SwapDecodeError,
)
from dexarb.core.types import (
    LogSubscription,
    NodeClient,
    NormalizedEvent,
    Pool,
    SwapNotification,
    Venue,
)
from dexarb.dex.events import SWAP_TOPIC
from dexarb.strategy.pricing import normalize_price
from dexarb.utils.time import block_latency_us


logger = logging.getLogger(__name__)


class WatchState(Enum):
    """Lifecycle of one pool watch."""

    SUBSCRIBING = auto()
    WATCHING = auto()
    TERMINATED = auto()


class DexAdapter(ABC):
    """
    Base class for venue adapters.

    One instance serves every pool of its venue; per-pool progress is
    tracked in `states`.
    """

    default_venue: ClassVar[Venue]
    swap_topic: ClassVar[str] = SWAP_TOPIC
    fee_denominator: ClassVar[int] = FEE_UNITS_DENOMINATOR

    def __init__(self, node: NodeClient, venue: Venue | None = None) -> None:
        """
        Initialize adapter.

        Args:
            node: Node collaborator for subscriptions and block headers.
            venue: Tag to publish under (forks reuse an adapter class).
        """
        self._node = node
        self._venue = venue or self.default_venue
        self._states: dict[str, WatchState] = {}
        self._events_emitted = 0
        self._events_dropped = 0

    @property
    def venue(self) -> Venue:
        """Venue tag stamped on emitted events."""
        return self._venue

    @property
    def states(self) -> dict[str, WatchState]:
        """Watch state per pool address."""
        return dict(self._states)

    @property
    def events_emitted(self) -> int:
        """Events handed to the channel."""
        return self._events_emitted

    @property
    def events_dropped(self) -> int:
        """Notifications discarded on transient errors."""
        return self._events_dropped

    @abstractmethod
    def decode_swap(self, log: dict[str, Any]) -> SwapNotification:
        """
        Decode a raw log into a SwapNotification.

        Raises:
            SwapDecodeError: If the payload is not a Swap event.
        """

    async def subscribe(self, pool: Pool) -> LogSubscription:
        """
        Open the Swap subscription for a pool.

        Raises:
            SubscriptionError: If the node refuses the subscription.
        """
        self._states[pool.address.lower()] = WatchState.SUBSCRIBING

        try:
            subscription = await self._node.subscribe_logs(pool.address, [self.swap_topic])
        except SubscriptionError:
            self._states[pool.address.lower()] = WatchState.TERMINATED
            raise

        logger.info(
            f"[{self._venue.value}] Subscribed to Swap events "
            f"({pool.token0.symbol}/{pool.token1.symbol}) "
            f"(pool: {pool.address}) (fee: {pool.fee_units})"
        )
        return subscription

    async def normalize(self, pool: Pool, notification: SwapNotification) -> NormalizedEvent:
        """
        Turn a Swap notification into a NormalizedEvent.

        Raises:
            BlockFetchError: If the block header lookup fails.
            InvalidPriceError: If the price cannot be normalized.
        """
        block_timestamp = await self._node.get_block_timestamp(notification.block_number)
        latency_us = block_latency_us(block_timestamp)

        forward_out, backward_out = normalize_price(
            notification.raw_sqrt_price,
            pool.fee_units,
            pool.token0.decimals,
            pool.token1.decimals,
            self.fee_denominator,
        )

        return NormalizedEvent(
            venue=self._venue,
            pool_address=pool.address,
            block_number=notification.block_number,
            latency_us=latency_us,
            fee_units=pool.fee_units,
            token0_symbol=pool.token0.symbol,
            token1_symbol=pool.token1.symbol,
            amount_out_forward=forward_out,
            amount_out_backward=backward_out,
        )

    async def consume(
        self,
        pool: Pool,
        subscription: LogSubscription,
        channel: AggregationChannel[NormalizedEvent],
    ) -> None:
        """
        Forward a subscription's swaps until it ends or the task is cancelled.

        Per-event failures are logged and the event dropped. A lost
        subscription or a closed channel ends the watch; it is not restarted.
        """
        key = pool.address.lower()
        tag = f"[{self._venue.value} {pool.token0.symbol}/{pool.token1.symbol}]"
        self._states[key] = WatchState.WATCHING

        try:
            async for log in subscription:
                if log.get("removed"):
                    logger.info(f"{tag} Ignoring log removed by reorg")
                    continue

                try:
                    notification = self.decode_swap(log)
                    event = await self.normalize(pool, notification)
                except SwapDecodeError as e:
                    self._events_dropped += 1
                    logger.warning(f"{tag} Failed to decode swap: {e}")
                    continue
                except BlockFetchError as e:
                    self._events_dropped += 1
                    logger.warning(f"{tag} Failed to fetch block header: {e}")
                    continue
                except InvalidPriceError as e:
                    self._events_dropped += 1
                    logger.warning(f"{tag} Error calculating price: {e}")
                    continue

                await channel.send(event)
                self._events_emitted += 1

        except SubscriptionError as e:
            logger.error(f"{tag} Subscription error, watch terminated: {e}")

        except ChannelClosedError:
            logger.info(f"{tag} Channel closed, watch stopped")

        finally:
            self._states[key] = WatchState.TERMINATED
            await subscription.unsubscribe()

    async def watch(self, pool: Pool, channel: AggregationChannel[NormalizedEvent]) -> None:
        """
        Subscribe to a pool and forward its swaps indefinitely.

        Raises:
            SubscriptionError: If the initial subscription fails.
        """
        subscription = await self.subscribe(pool)
        await self.consume(pool, subscription, channel)
