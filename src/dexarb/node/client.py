"""
WebSocket JSON-RPC client for the blockchain node.

Provides the two node capabilities the adapters rely on:
- log subscriptions (eth_subscribe "logs"), fanned out per subscription
- block timestamp lookup (eth_getBlockByNumber)

One connection carries every request and subscription. There is no
reconnection: losing the socket ends every open subscription with a
SubscriptionError.
"""

import asyncio
import itertools
import logging
from collections import deque
from collections.abc import AsyncIterator
from enum import Enum, auto
from typing import Any

import aiohttp
import orjson

from dexarb.config.constants import (
    DEFAULT_REQUEST_TIMEOUT,
    ORPHAN_SUBSCRIPTION_LIMIT,
    SUBSCRIPTION_QUEUE_SIZE,
    WS_CLOSE_TIMEOUT,
    WS_HEARTBEAT_INTERVAL,
    WS_MAX_MESSAGE_SIZE,
)
from dexarb.core.errors import (
    BlockFetchError,
    NodeConnectionError,
    RpcError,
    SubscriptionError,
)


logger = logging.getLogger(__name__)


class ConnectionState(Enum):
    """WebSocket connection state."""

    DISCONNECTED = auto()
    CONNECTING = auto()
    CONNECTED = auto()
    CLOSED = auto()


# Queue item marking a cleanly ended subscription
_END = None


class LogStream:
    """
    Notifications of one node subscription.

    Iterating yields raw log objects; iteration stops after unsubscribe
    and raises SubscriptionError if the connection was lost.
    """

    def __init__(self, client: "JsonRpcWebSocketClient", subscription_id: str) -> None:
        self._client = client
        self._id = subscription_id
        self._queue: asyncio.Queue[dict[str, Any] | BaseException | None] = asyncio.Queue(
            maxsize=SUBSCRIPTION_QUEUE_SIZE
        )
        self._active = True
        self._dropped = 0

    @property
    def id(self) -> str:
        """Node-assigned subscription id."""
        return self._id

    @property
    def dropped_count(self) -> int:
        """Notifications discarded because the backlog was full."""
        return self._dropped

    def push(self, log: dict[str, Any]) -> None:
        """Queue a notification without blocking the reader."""
        try:
            self._queue.put_nowait(log)
        except asyncio.QueueFull:
            self._dropped += 1
            logger.warning(f"[sub {self._id}] Backlog full, dropped notification")

    def end(self, error: BaseException | None = None) -> None:
        """Terminate the stream, optionally with an error."""
        if not self._active:
            return
        self._active = False
        # The terminal marker must get through even when the backlog is full
        while True:
            try:
                self._queue.put_nowait(error if error is not None else _END)
                return
            except asyncio.QueueFull:
                self._queue.get_nowait()

    def __aiter__(self) -> AsyncIterator[dict[str, Any]]:
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[dict[str, Any]]:
        while True:
            item = await self._queue.get()
            if item is _END:
                return
            if isinstance(item, BaseException):
                raise SubscriptionError(f"subscription {self._id} lost: {item}") from item
            yield item

    async def unsubscribe(self) -> None:
        """Cancel the subscription on the node and end the stream."""
        if not self._active:
            return
        try:
            await self._client.unsubscribe(self._id)
        finally:
            self.end()


class JsonRpcWebSocketClient:
    """
    Async JSON-RPC client over a single WebSocket.

    Features:
    - Request/response correlation by id
    - Subscription notification routing
    - Per-request timeout
    - Failure propagation to all waiters on disconnect
    """

    def __init__(
        self,
        url: str,
        request_timeout: float = DEFAULT_REQUEST_TIMEOUT,
        name: str = "node",
    ) -> None:
        """
        Initialize client.

        Args:
            url: ws:// or wss:// endpoint.
            request_timeout: Seconds to wait for a response.
            name: Label used in logs.
        """
        self._url = url
        self._request_timeout = request_timeout
        self._name = name

        self._session: aiohttp.ClientSession | None = None
        self._ws: aiohttp.ClientWebSocketResponse | None = None
        self._reader_task: asyncio.Task[None] | None = None
        self._state = ConnectionState.DISCONNECTED

        self._ids = itertools.count(1)
        self._pending: dict[int, asyncio.Future[Any]] = {}
        self._streams: dict[str, LogStream] = {}
        # Notifications that overtook their eth_subscribe response
        self._orphans: dict[str, deque[dict[str, Any]]] = {}
        # Ids unsubscribed by this client; late notifications for them are dropped
        self._unsubscribed: set[str] = set()
        self._orphans_dropped = 0
        self._message_count = 0

    @property
    def state(self) -> ConnectionState:
        """Get current connection state."""
        return self._state

    @property
    def message_count(self) -> int:
        """Get total messages received."""
        return self._message_count

    @property
    def orphans_dropped(self) -> int:
        """Get notifications discarded because no stream could claim them."""
        return self._orphans_dropped

    async def connect(self) -> None:
        """
        Open the WebSocket and start the reader.

        Raises:
            NodeConnectionError: If the node cannot be reached.
        """
        if self._state == ConnectionState.CONNECTED:
            return

        self._state = ConnectionState.CONNECTING

        try:
            if self._session is None or self._session.closed:
                self._session = aiohttp.ClientSession()

            logger.info(f"[{self._name}] Connecting to node")

            self._ws = await self._session.ws_connect(
                self._url,
                heartbeat=WS_HEARTBEAT_INTERVAL,
                max_msg_size=WS_MAX_MESSAGE_SIZE,
            )

        except (aiohttp.ClientError, OSError, asyncio.TimeoutError) as e:
            self._state = ConnectionState.DISCONNECTED
            if self._session and not self._session.closed:
                await self._session.close()
            raise NodeConnectionError(f"failed to connect to {self._name}: {e}") from e

        self._state = ConnectionState.CONNECTED
        self._reader_task = asyncio.create_task(self._read_loop(), name=f"{self._name}-reader")
        logger.info(f"[{self._name}] Connected")

    async def request(self, method: str, params: list[Any]) -> Any:
        """
        Send a JSON-RPC request and wait for its result.

        Raises:
            NodeConnectionError: If not connected or the connection drops.
            RpcError: If the node returns an error object.
            TimeoutError: If no response arrives in time.
        """
        if self._state != ConnectionState.CONNECTED or self._ws is None:
            raise NodeConnectionError(f"{self._name} is not connected")

        request_id = next(self._ids)
        future: asyncio.Future[Any] = asyncio.get_running_loop().create_future()
        self._pending[request_id] = future

        payload = {"jsonrpc": "2.0", "id": request_id, "method": method, "params": params}

        try:
            await self._ws.send_str(orjson.dumps(payload).decode())
            response = await asyncio.wait_for(future, timeout=self._request_timeout)
        except ConnectionResetError as e:
            raise NodeConnectionError(f"{self._name} connection lost: {e}") from e
        finally:
            self._pending.pop(request_id, None)

        if "error" in response:
            error = response["error"] or {}
            raise RpcError(method, int(error.get("code", 0)), str(error.get("message", "")))

        return response.get("result")

    async def subscribe_logs(self, address: str, topics: list[str]) -> LogStream:
        """
        Subscribe to logs of one contract.

        Raises:
            SubscriptionError: If the node refuses or the request fails.
        """
        try:
            subscription_id = await self.request(
                "eth_subscribe",
                ["logs", {"address": address, "topics": topics}],
            )
        except (NodeConnectionError, RpcError, TimeoutError) as e:
            raise SubscriptionError(f"failed to subscribe to {address}: {e}") from e

        stream = LogStream(self, str(subscription_id))
        self._streams[stream.id] = stream

        for log in self._orphans.pop(stream.id, []):
            stream.push(log)

        return stream

    async def unsubscribe(self, subscription_id: str) -> None:
        """Cancel a subscription; errors are logged, not raised."""
        self._streams.pop(subscription_id, None)
        self._orphans.pop(subscription_id, None)
        self._unsubscribed.add(subscription_id)

        if self._state != ConnectionState.CONNECTED:
            return

        try:
            await self.request("eth_unsubscribe", [subscription_id])
        except (NodeConnectionError, RpcError, TimeoutError) as e:
            logger.warning(f"[{self._name}] Unsubscribe {subscription_id} failed: {e}")

    async def get_block_timestamp(self, block_number: int) -> int:
        """
        Get a block's timestamp in Unix seconds.

        Raises:
            BlockFetchError: If the header cannot be fetched.
        """
        try:
            block = await self.request("eth_getBlockByNumber", [hex(block_number), False])
        except (NodeConnectionError, RpcError, TimeoutError) as e:
            raise BlockFetchError(f"block {block_number}: {e}") from e

        if not block or "timestamp" not in block:
            raise BlockFetchError(f"block {block_number} not found")

        return int(block["timestamp"], 16)

    async def _read_loop(self) -> None:
        """Route incoming frames until the socket closes."""
        assert self._ws is not None
        error: BaseException | None = None

        try:
            async for msg in self._ws:
                if msg.type == aiohttp.WSMsgType.TEXT:
                    self._handle_message(msg.data)

                elif msg.type == aiohttp.WSMsgType.ERROR:
                    error = self._ws.exception() or ConnectionError("websocket error")
                    logger.error(f"[{self._name}] Error: {error}")
                    break

                elif msg.type in (aiohttp.WSMsgType.CLOSE, aiohttp.WSMsgType.CLOSED):
                    break

        except asyncio.CancelledError:
            raise
        except Exception as e:
            error = e
            logger.error(f"[{self._name}] Error in message loop: {e}")

        finally:
            if self._state != ConnectionState.CLOSED:
                logger.warning(f"[{self._name}] Connection closed by node")
                self._state = ConnectionState.DISCONNECTED
                self._fail_all(error or ConnectionError("connection closed by node"))

    def _handle_message(self, raw: str | bytes) -> None:
        """Dispatch one JSON-RPC frame."""
        try:
            data = orjson.loads(raw)
        except orjson.JSONDecodeError as e:
            logger.warning(f"[{self._name}] Invalid JSON: {e}")
            return

        self._message_count += 1

        if data.get("method") == "eth_subscription":
            params = data.get("params") or {}
            subscription_id = params.get("subscription")
            result = params.get("result")
            if subscription_id is None or result is None:
                logger.warning(f"[{self._name}] Malformed notification: {data}")
                return

            stream = self._streams.get(subscription_id)
            if stream is not None:
                stream.push(result)
            else:
                self._buffer_orphan(subscription_id, result)
            return

        future = self._pending.get(data.get("id"))
        if future is not None and not future.done():
            future.set_result(data)

    def _buffer_orphan(self, subscription_id: str, log: dict[str, Any]) -> None:
        """Hold a notification until its subscription is registered."""
        if subscription_id in self._unsubscribed:
            self._orphans_dropped += 1
            return

        backlog = self._orphans.get(subscription_id)
        if backlog is None:
            if len(self._orphans) >= ORPHAN_SUBSCRIPTION_LIMIT:
                self._orphans_dropped += 1
                logger.warning(
                    f"[{self._name}] Unknown subscription {subscription_id}, dropped notification"
                )
                return
            backlog = self._orphans[subscription_id] = deque(maxlen=SUBSCRIPTION_QUEUE_SIZE)

        if len(backlog) == backlog.maxlen:
            self._orphans_dropped += 1
        backlog.append(log)

    def _fail_all(self, error: BaseException) -> None:
        """Wake every waiter with the connection failure."""
        for future in self._pending.values():
            if not future.done():
                future.set_exception(NodeConnectionError(f"{self._name} disconnected: {error}"))
        self._pending.clear()

        for stream in self._streams.values():
            stream.end(error)
        self._streams.clear()
        self._orphans.clear()

    async def close(self) -> None:
        """Close the socket and end every subscription."""
        self._state = ConnectionState.CLOSED

        for stream in list(self._streams.values()):
            stream.end()
        self._streams.clear()

        if self._ws and not self._ws.closed:
            await self._ws.close()

        if self._reader_task:
            self._reader_task.cancel()
            try:
                await asyncio.wait_for(self._reader_task, timeout=WS_CLOSE_TIMEOUT)
            except (TimeoutError, asyncio.CancelledError):
                pass

        self._fail_all(ConnectionError("client closed"))

        if self._session and not self._session.closed:
            await self._session.close()

        self._ws = None
        self._session = None
        logger.info(f"[{self._name}] Connection closed")

    async def __aenter__(self) -> "JsonRpcWebSocketClient":
        """Async context manager entry."""
        await self.connect()
        return self

    async def __aexit__(self, *args: object) -> None:
        """Async context manager exit."""
        await self.close()
