"""
Integration tests for the application runner.

Drives startup, event processing and shutdown against the in-memory node.
"""

import asyncio
from pathlib import Path

import orjson
import pytest

from dexarb.config.constants import Q96
from dexarb.config.settings import Settings
from dexarb.core.runner import ArbitrageRunner, create_runner
from tests.mocks.market import ADDR_A, ADDR_B, ADDR_C, POOL_AB, POOL_BC, POOL_CA
from tests.mocks.node import FakeNodeClient, make_swap_log


def _write_markets(path: Path) -> Path:
    path.write_bytes(
        orjson.dumps(
            {
                "tokens": [
                    {"symbol": "A", "address": ADDR_A, "decimals": 6},
                    {"symbol": "B", "address": ADDR_B, "decimals": 18},
                    {"symbol": "C", "address": ADDR_C, "decimals": 18},
                ],
                "pools": [
                    {"address": POOL_AB, "venue": "UniswapV3", "fee": 500, "token0": "A", "token1": "B"},
                    {"address": POOL_BC, "venue": "SushiswapV3", "fee": 3000, "token0": "B", "token1": "C"},
                    {"address": POOL_CA, "venue": "QuickswapV3", "fee": 888, "token0": "C", "token1": "A"},
                ],
            }
        )
    )
    return path


class TestArbitrageRunner:
    """Tests for ArbitrageRunner."""

    @pytest.fixture
    def settings(self, tmp_path: Path) -> Settings:
        """Settings pointing at a temporary markets file, console logging only."""
        return Settings(
            node_url="ws://localhost:8546",
            markets_file=_write_markets(tmp_path / "markets.json"),
            log_dir=None,
            subscribe_interval=0,
            report_interval=60.0,
        )

    @pytest.mark.asyncio
    async def test_setup_builds_registries(
        self, settings: Settings, fake_node: FakeNodeClient
    ) -> None:
        """Test that setup loads markets without touching the node."""
        async with create_runner(settings, node=fake_node) as runner:
            assert runner.tokens is not None and len(runner.tokens) == 3
            assert runner.pools is not None and len(runner.pools) == 3
            assert fake_node.subscribe_calls == []

        # An injected node belongs to the caller
        assert not fake_node.closed

    @pytest.mark.asyncio
    async def test_run_until_shutdown(self, settings: Settings, fake_node: FakeNodeClient) -> None:
        """Test the full lifecycle from subscription to graceful shutdown."""
        runner = ArbitrageRunner(settings, node=fake_node)
        await runner.setup()

        run_task = asyncio.create_task(runner.run())
        await fake_node.wait_for_subscriptions(3)

        fake_node.subscription_for(POOL_AB).push(make_swap_log(POOL_AB, Q96))
        fake_node.subscription_for(POOL_BC).push(make_swap_log(POOL_BC, Q96))
        fake_node.subscription_for(POOL_CA).push(make_swap_log(POOL_CA, 2 * Q96))

        async def _processed() -> None:
            while runner.engine is None or runner.engine.events_processed < 3:
                await asyncio.sleep(0.01)

        await asyncio.wait_for(_processed(), timeout=2.0)
        assert runner.is_running

        runner.request_shutdown()
        await asyncio.wait_for(run_task, timeout=2.0)

        assert not runner.is_running
        assert runner.metrics.opportunities.opportunities_found == 3
        assert all(sub.unsubscribed for sub in fake_node.subscriptions.values())
        assert not fake_node.closed

    @pytest.mark.asyncio
    async def test_shutdown_is_idempotent(
        self, settings: Settings, fake_node: FakeNodeClient
    ) -> None:
        """Test that repeated shutdown calls are harmless."""
        runner = ArbitrageRunner(settings, node=fake_node)
        await runner.setup()

        await runner.shutdown()
        await runner.shutdown()

        assert not runner.is_running

    @pytest.mark.asyncio
    async def test_invalid_markets_file(self, tmp_path: Path, fake_node: FakeNodeClient) -> None:
        """Test that a broken markets file fails setup."""
        broken = tmp_path / "markets.json"
        broken.write_text("[]")
        settings = Settings(node_url="ws://localhost:8546", markets_file=broken, log_dir=None)

        runner = ArbitrageRunner(settings, node=fake_node)
        with pytest.raises(ValueError):
            await runner.setup()
        await runner.shutdown()
