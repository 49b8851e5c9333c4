"""
Aggregation channel between venue adapters and the engine.

Multi-producer, single-consumer, rendezvous style: `send` returns only
once the consumer has taken the item, so a slow consumer throttles every
producer. Each producer's items are received in the order it sent them.
"""

import asyncio
import logging
from collections import deque
from collections.abc import AsyncIterator
from typing import Generic, TypeVar

from dexarb.core.errors import ChannelClosedError


logger = logging.getLogger(__name__)

T = TypeVar("T")


class AggregationChannel(Generic[T]):
    """
    Unbuffered async channel.

    A pending send is an item parked in the hand-off queue together with
    a future the sender awaits; `receive` pops the item and releases the
    sender. A sender cancelled while parked leaves its item in place, so
    `close()` followed by draining still delivers every item that was
    offered before the close.
    """

    def __init__(self) -> None:
        """Initialize open channel."""
        self._pending: deque[tuple[T, asyncio.Future[None]]] = deque()
        self._cond = asyncio.Condition()
        self._closed = False
        self._sent = 0
        self._received = 0

    async def send(self, item: T) -> None:
        """
        Offer an item and wait until the consumer takes it.

        Raises:
            ChannelClosedError: If the channel was closed before the send.
        """
        taken: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        async with self._cond:
            if self._closed:
                raise ChannelClosedError("channel is closed")
            self._pending.append((item, taken))
            self._sent += 1
            self._cond.notify_all()

        await taken

    async def receive(self) -> T:
        """
        Take the next item, waiting for a producer if none is pending.

        Raises:
            ChannelClosedError: If the channel is closed and fully drained.
        """
        async with self._cond:
            await self._cond.wait_for(lambda: bool(self._pending) or self._closed)
            if not self._pending:
                raise ChannelClosedError("channel is closed")
            item, taken = self._pending.popleft()
            self._received += 1

        if not taken.done():
            taken.set_result(None)
        return item

    async def close(self) -> None:
        """Stop accepting sends; pending items can still be received."""
        async with self._cond:
            self._closed = True
            self._cond.notify_all()

        if self._pending:
            logger.info(f"Channel closed with {len(self._pending)} pending events to drain")

    def __aiter__(self) -> AsyncIterator[T]:
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[T]:
        while True:
            try:
                yield await self.receive()
            except ChannelClosedError:
                return

    @property
    def is_closed(self) -> bool:
        """Check if the channel stopped accepting sends."""
        return self._closed

    @property
    def pending(self) -> int:
        """Number of offered items not yet received."""
        return len(self._pending)

    @property
    def sent_count(self) -> int:
        """Total items offered."""
        return self._sent

    @property
    def received_count(self) -> int:
        """Total items received."""
        return self._received
