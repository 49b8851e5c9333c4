"""
Adapter supervision.

Starts one watch task per configured pool and stops them all on
shutdown. Watches that end on their own are not restarted.
"""

import asyncio
import logging

from dexarb.config.constants import DEFAULT_SUBSCRIBE_INTERVAL
from dexarb.core.channel import AggregationChannel
from dexarb.core.types import NodeClient, NormalizedEvent, Pool, Venue
from dexarb.dex import DexAdapter, create_adapter


logger = logging.getLogger(__name__)


class AdapterSupervisor:
    """
    Owns the adapter instances and their per-pool tasks.

    One adapter per venue serves all of that venue's pools.
    """

    def __init__(
        self,
        node: NodeClient,
        channel: AggregationChannel[NormalizedEvent],
        subscribe_interval: float = DEFAULT_SUBSCRIBE_INTERVAL,
    ) -> None:
        """
        Initialize supervisor.

        Args:
            node: Node collaborator handed to every adapter.
            channel: Channel the adapters publish to.
            subscribe_interval: Pause between pool subscriptions (seconds).
        """
        self._node = node
        self._channel = channel
        self._subscribe_interval = subscribe_interval
        self._adapters: dict[Venue, DexAdapter] = {}
        self._tasks: dict[str, asyncio.Task[None]] = {}

    def adapter_for(self, venue: Venue) -> DexAdapter:
        """
        Get (or build) the adapter for a venue.

        Raises:
            UnknownVenueError: If no adapter serves the venue.
        """
        adapter = self._adapters.get(venue)
        if adapter is None:
            adapter = create_adapter(venue, self._node)
            self._adapters[venue] = adapter
        return adapter

    async def start(self, pools: list[Pool]) -> None:
        """
        Subscribe every pool in order and start its watch task.

        Subscriptions are paced by `subscribe_interval` to avoid bursting
        the node.

        Raises:
            UnknownVenueError: If a pool's venue has no adapter.
            SubscriptionError: If any initial subscription fails.
        """
        # Resolve every adapter first so a bad venue fails before any subscription
        for pool in pools:
            self.adapter_for(pool.venue)

        for i, pool in enumerate(pools):
            if i > 0 and self._subscribe_interval > 0:
                await asyncio.sleep(self._subscribe_interval)

            adapter = self.adapter_for(pool.venue)
            subscription = await adapter.subscribe(pool)

            self._tasks[pool.address.lower()] = asyncio.create_task(
                adapter.consume(pool, subscription, self._channel),
                name=f"watch-{pool.venue.value}-{pool.address}",
            )

        logger.info(f"Watching {len(self._tasks)} pools on {len(self._adapters)} venues")

    async def stop(self) -> None:
        """Cancel every watch task and wait for its subscription to close."""
        tasks = list(self._tasks.values())
        for task in tasks:
            task.cancel()

        results = await asyncio.gather(*tasks, return_exceptions=True)

        for task, result in zip(tasks, results):
            if isinstance(result, Exception):
                logger.error(f"Watch {task.get_name()} failed: {result}")

        self._tasks.clear()
        logger.info("All pool watches stopped")

    @property
    def active_count(self) -> int:
        """Watches still running."""
        return sum(1 for task in self._tasks.values() if not task.done())

    @property
    def adapters(self) -> dict[Venue, DexAdapter]:
        """Adapters by venue."""
        return dict(self._adapters)
