"""
Application orchestrator.

Wires settings, markets, the node connection, adapters, channel and
engine together, and owns the startup and shutdown sequence.
"""

import asyncio
import logging
import signal
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from dexarb import __version__
from dexarb.config.markets import build_registries, load_markets
from dexarb.config.settings import Settings
from dexarb.core.channel import AggregationChannel
from dexarb.core.engine import ArbitrageEngine
from dexarb.core.supervisor import AdapterSupervisor
from dexarb.core.types import NodeClient, NormalizedEvent
from dexarb.market.pools import PoolRegistry
from dexarb.market.tokens import TokenRegistry
from dexarb.node.client import JsonRpcWebSocketClient
from dexarb.strategy.opportunity import OpportunityDetector
from dexarb.telemetry.logger import AsyncLogger, log_banner, setup_logging
from dexarb.telemetry.metrics import MetricsCollector
from dexarb.telemetry.reporter import StatusReporter


logger = logging.getLogger(__name__)


class ArbitrageRunner:
    """
    Main application orchestrator.

    Manages the complete lifecycle of:
    - Logging and telemetry
    - Market registries
    - Node connectivity
    - Pool watches
    - The consuming engine
    """

    def __init__(self, settings: Settings, node: NodeClient | None = None) -> None:
        """
        Initialize the runner.

        Args:
            settings: Application settings.
            node: Node collaborator (default: WebSocket client on settings.node_url).
        """
        self._settings = settings
        self._node = node
        self._owns_node = node is None
        self._running = False
        self._shutdown_event = asyncio.Event()
        self._shut_down = False

        # Components (initialized in setup)
        self._tokens: TokenRegistry | None = None
        self._pools: PoolRegistry | None = None
        self._channel: AggregationChannel[NormalizedEvent] | None = None
        self._engine: ArbitrageEngine | None = None
        self._supervisor: AdapterSupervisor | None = None
        self._engine_task: asyncio.Task[None] | None = None

        # Infrastructure
        self._metrics = MetricsCollector()
        self._reporter = StatusReporter(self._metrics)
        self._async_logger: AsyncLogger | None = None

    async def setup(self) -> None:
        """
        Initialize all components.

        Raises:
            ValueError: If the markets file is invalid.
            DuplicateKeyError: If the markets repeat a token or pool.
            NodeConnectionError: If the node cannot be reached.
        """
        settings = self._settings

        self._async_logger = setup_logging(
            level=settings.log_level,
            log_dir=settings.log_dir,
            json_format=settings.log_format == "json",
        )
        log_banner(
            logger,
            f"DEX TRIANGULAR ARBITRAGE ENGINE v{__version__}",
            [
                f"Node: {settings.node_name}",
                f"Markets: {settings.markets_file or 'built-in Polygon list'}",
                f"Log file: {self._async_logger.log_file or 'disabled'}",
            ],
        )

        markets = load_markets(settings.markets_file)
        self._tokens, self._pools = build_registries(markets)
        logger.info(f"Loaded {len(self._tokens)} tokens and {len(self._pools)} pools")

        if self._node is None:
            client = JsonRpcWebSocketClient(
                settings.node_url,
                request_timeout=settings.request_timeout,
                name=settings.node_name,
            )
            await client.connect()
            self._node = client
        logger.info(f"Connected to {settings.node_name} node")

        self._channel = AggregationChannel()
        self._engine = ArbitrageEngine(
            self._tokens,
            self._pools,
            self._channel,
            detector=OpportunityDetector(),
            metrics=self._metrics,
        )
        self._supervisor = AdapterSupervisor(
            self._node,
            self._channel,
            subscribe_interval=settings.subscribe_interval,
        )
        self._reporter.set_state(pool_count=len(self._pools), token_count=len(self._tokens))

        logger.info("Initialization complete")

    async def run(self) -> None:
        """
        Start watching pools and consume events until shutdown.

        Raises:
            UnknownVenueError: If a configured venue has no adapter.
            SubscriptionError: If an initial subscription fails.
        """
        assert self._engine is not None and self._supervisor is not None
        assert self._pools is not None

        self._running = True

        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, self._handle_shutdown)

        try:
            # The engine must be consuming before the first adapter publishes
            self._engine_task = asyncio.create_task(self._engine.run(), name="engine")

            await self._supervisor.start(self._pools.list_all())
            self._reporter.start(self._settings.report_interval)

            logger.info("All pools subscribed, processing events")

            waiter = asyncio.create_task(self._shutdown_event.wait())
            done, _ = await asyncio.wait(
                {waiter, self._engine_task},
                return_when=asyncio.FIRST_COMPLETED,
            )
            waiter.cancel()

            if self._engine_task in done and not self._engine_task.cancelled():
                self._engine_task.result()

        finally:
            for sig in (signal.SIGINT, signal.SIGTERM):
                loop.remove_signal_handler(sig)
            await self.shutdown()

    def _handle_shutdown(self) -> None:
        """Handle shutdown signal."""
        logger.info("Shutdown signal received")
        self._running = False
        self._shutdown_event.set()

    def request_shutdown(self) -> None:
        """Ask a running `run()` to return."""
        self._shutdown_event.set()

    async def shutdown(self) -> None:
        """
        Gracefully shut down.

        Order: stop accepting events, stop adapters, drain the engine,
        close the node, then stop reporting and logging.
        """
        if self._shut_down:
            return
        self._shut_down = True
        self._running = False

        logger.info("Shutting down...")

        if self._channel:
            await self._channel.close()

        if self._supervisor:
            await self._supervisor.stop()

        if self._engine_task:
            try:
                await self._engine_task
            except asyncio.CancelledError:
                pass
            except Exception as e:
                logger.error(f"Engine error: {e}")

        if self._node is not None and self._owns_node:
            await self._node.close()

        await self._reporter.stop()
        self._reporter.log_summary()

        logger.info("Shutdown complete")

        if self._async_logger:
            self._async_logger.stop()

    @property
    def is_running(self) -> bool:
        """Check if the runner is processing events."""
        return self._running

    @property
    def engine(self) -> ArbitrageEngine | None:
        """Get the engine (after setup)."""
        return self._engine

    @property
    def pools(self) -> PoolRegistry | None:
        """Get the pool registry (after setup)."""
        return self._pools

    @property
    def tokens(self) -> TokenRegistry | None:
        """Get the token registry (after setup)."""
        return self._tokens

    @property
    def metrics(self) -> MetricsCollector:
        """Get metrics collector."""
        return self._metrics


@asynccontextmanager
async def create_runner(
    settings: Settings,
    node: NodeClient | None = None,
) -> AsyncIterator[ArbitrageRunner]:
    """
    Create and manage runner lifecycle.

    Usage:
        async with create_runner(settings) as runner:
            await runner.run()
    """
    runner = ArbitrageRunner(settings, node)

    try:
        await runner.setup()
        yield runner
    finally:
        await runner.shutdown()
