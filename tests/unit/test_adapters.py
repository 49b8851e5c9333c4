"""
Unit tests for the venue adapters.

Tests Swap log decoding, normalization and the watch lifecycle against
the in-memory node.
"""

import asyncio
import time
from decimal import Decimal

import pytest

from dexarb.config.constants import Q96
from dexarb.core.channel import AggregationChannel
from dexarb.core.errors import SubscriptionError, SwapDecodeError, UnknownVenueError
from dexarb.core.types import NormalizedEvent, Pool, Venue
from dexarb.dex import (
    QuickswapV3Adapter,
    UniswapV3Adapter,
    WatchState,
    create_adapter,
    decode_swap_log,
    event_topic,
)
from tests.mocks.market import POOL_AB, POOL_CA
from tests.mocks.node import ZERO_TOPIC, FakeNodeClient, make_swap_log


async def _start_watch(
    adapter: UniswapV3Adapter | QuickswapV3Adapter,
    pool: Pool,
    channel: AggregationChannel[NormalizedEvent],
) -> asyncio.Task[None]:
    subscription = await adapter.subscribe(pool)
    return asyncio.create_task(adapter.consume(pool, subscription, channel))


async def _receive(channel: AggregationChannel[NormalizedEvent]) -> NormalizedEvent:
    return await asyncio.wait_for(channel.receive(), timeout=1.0)


class TestDecodeSwapLog:
    """Tests for decode_swap_log."""

    def test_transfer_topic(self) -> None:
        """Test topic hashing against the well-known ERC-20 Transfer topic."""
        assert event_topic("Transfer(address,address,uint256)") == (
            "0xddf252ad1be2c89b69c2b068fc378daa952ba7f163c4a11628f55a4df523b3ef"
        )

    def test_decode(self) -> None:
        """Test that every data field is decoded."""
        log = make_swap_log(
            POOL_AB.upper().replace("0X", "0x"),
            Q96 * 2,
            block_number=1234,
            amount0=-5,
            amount1=7,
            liquidity=99,
            tick=-20,
        )

        notification = decode_swap_log(log)

        assert notification.pool_address == POOL_AB
        assert notification.block_number == 1234
        assert notification.raw_sqrt_price == Q96 * 2
        assert notification.amount0 == -5
        assert notification.amount1 == 7
        assert notification.liquidity == 99
        assert notification.tick == -20

    def test_wrong_topic(self) -> None:
        """Test that non-Swap logs are rejected."""
        with pytest.raises(SwapDecodeError):
            decode_swap_log(make_swap_log(POOL_AB, Q96, topic=ZERO_TOPIC))

    def test_truncated_data(self) -> None:
        """Test that short payloads are rejected."""
        log = make_swap_log(POOL_AB, Q96)
        log["data"] = "0x1234"

        with pytest.raises(SwapDecodeError):
            decode_swap_log(log)

    def test_missing_field(self) -> None:
        """Test that incomplete logs are rejected."""
        log = make_swap_log(POOL_AB, Q96)
        del log["blockNumber"]

        with pytest.raises(SwapDecodeError):
            decode_swap_log(log)

    def test_quickswap_zero_price(self, fake_node: FakeNodeClient) -> None:
        """Test that Algebra pools reject a zero price at decode time."""
        adapter = QuickswapV3Adapter(fake_node)

        with pytest.raises(SwapDecodeError):
            adapter.decode_swap(make_swap_log(POOL_CA, 0))


class TestAdapterWatch:
    """Tests for the subscribe/consume lifecycle."""

    @pytest.mark.asyncio
    async def test_swap_becomes_normalized_event(
        self,
        fake_node: FakeNodeClient,
        channel: AggregationChannel[NormalizedEvent],
        pool_ab: Pool,
    ) -> None:
        """Test the full decode and normalize path."""
        fake_node.block_timestamps[42] = int(time.time()) - 2
        adapter = UniswapV3Adapter(fake_node)
        task = await _start_watch(adapter, pool_ab, channel)

        fake_node.subscription_for(POOL_AB).push(make_swap_log(POOL_AB, Q96, block_number=42))
        event = await _receive(channel)

        assert event.venue == Venue.UNISWAP_V3
        assert event.pool_address == POOL_AB
        assert event.block_number == 42
        assert event.token0_symbol == "A"
        assert event.token1_symbol == "B"
        assert event.fee_units == 500
        assert event.amount_out_forward == Decimal("9.995E-13")
        assert event.amount_out_backward == Decimal("9.995E+11")
        assert event.latency_us >= 2_000_000

        assert fake_node.subscribe_calls == [(POOL_AB, [adapter.swap_topic])]
        assert adapter.states[POOL_AB] == WatchState.WATCHING

        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        assert adapter.states[POOL_AB] == WatchState.TERMINATED
        assert fake_node.subscription_for(POOL_AB).unsubscribed

    @pytest.mark.asyncio
    async def test_events_in_arrival_order(
        self,
        fake_node: FakeNodeClient,
        channel: AggregationChannel[NormalizedEvent],
        pool_ab: Pool,
    ) -> None:
        """Test that one pool's events keep their order."""
        adapter = UniswapV3Adapter(fake_node)
        task = await _start_watch(adapter, pool_ab, channel)

        subscription = fake_node.subscription_for(POOL_AB)
        for block in (10, 11, 12):
            subscription.push(make_swap_log(POOL_AB, Q96, block_number=block))

        blocks = [(await _receive(channel)).block_number for _ in range(3)]

        assert blocks == [10, 11, 12]
        assert adapter.events_emitted == 3

        subscription.fail()
        await asyncio.wait_for(task, timeout=1.0)

    @pytest.mark.asyncio
    async def test_removed_log_skipped(
        self,
        fake_node: FakeNodeClient,
        channel: AggregationChannel[NormalizedEvent],
        pool_ab: Pool,
    ) -> None:
        """Test that logs retracted by a reorg are not forwarded."""
        adapter = UniswapV3Adapter(fake_node)
        task = await _start_watch(adapter, pool_ab, channel)

        subscription = fake_node.subscription_for(POOL_AB)
        subscription.push(make_swap_log(POOL_AB, Q96, block_number=5, removed=True))
        subscription.push(make_swap_log(POOL_AB, Q96, block_number=6))

        assert (await _receive(channel)).block_number == 6

        subscription.fail()
        await asyncio.wait_for(task, timeout=1.0)

    @pytest.mark.asyncio
    async def test_transient_errors_drop_event(
        self,
        fake_node: FakeNodeClient,
        channel: AggregationChannel[NormalizedEvent],
        pool_ab: Pool,
    ) -> None:
        """Test that header, price and decode failures only drop that event."""
        fake_node.failing_blocks.add(5)
        adapter = UniswapV3Adapter(fake_node)
        task = await _start_watch(adapter, pool_ab, channel)

        subscription = fake_node.subscription_for(POOL_AB)
        subscription.push(make_swap_log(POOL_AB, Q96, block_number=5))
        subscription.push(make_swap_log(POOL_AB, 0, block_number=6))
        subscription.push(make_swap_log(POOL_AB, Q96, block_number=7, topic=ZERO_TOPIC))
        subscription.push(make_swap_log(POOL_AB, Q96, block_number=8))

        assert (await _receive(channel)).block_number == 8
        assert adapter.events_dropped == 3
        assert adapter.events_emitted == 1

        subscription.fail()
        await asyncio.wait_for(task, timeout=1.0)

    @pytest.mark.asyncio
    async def test_lost_subscription_terminates_watch(
        self,
        fake_node: FakeNodeClient,
        channel: AggregationChannel[NormalizedEvent],
        pool_ab: Pool,
    ) -> None:
        """Test that a subscription error ends the watch without raising."""
        adapter = UniswapV3Adapter(fake_node)
        task = await _start_watch(adapter, pool_ab, channel)

        subscription = fake_node.subscription_for(POOL_AB)
        subscription.fail()
        await asyncio.wait_for(task, timeout=1.0)

        assert adapter.states[POOL_AB] == WatchState.TERMINATED
        assert subscription.unsubscribed

    @pytest.mark.asyncio
    async def test_closed_channel_stops_watch(
        self,
        fake_node: FakeNodeClient,
        channel: AggregationChannel[NormalizedEvent],
        pool_ab: Pool,
    ) -> None:
        """Test that a send into a closed channel ends the watch."""
        adapter = UniswapV3Adapter(fake_node)
        task = await _start_watch(adapter, pool_ab, channel)
        await channel.close()

        fake_node.subscription_for(POOL_AB).push(make_swap_log(POOL_AB, Q96))
        await asyncio.wait_for(task, timeout=1.0)

        assert adapter.states[POOL_AB] == WatchState.TERMINATED
        assert adapter.events_emitted == 0

    @pytest.mark.asyncio
    async def test_subscribe_failure_raises(
        self, fake_node: FakeNodeClient, pool_ab: Pool
    ) -> None:
        """Test that an initial subscription failure propagates."""
        fake_node.failing_addresses.add(POOL_AB)
        adapter = UniswapV3Adapter(fake_node)

        with pytest.raises(SubscriptionError):
            await adapter.subscribe(pool_ab)

        assert adapter.states[POOL_AB] == WatchState.TERMINATED

    @pytest.mark.asyncio
    async def test_quickswap_pool(
        self,
        fake_node: FakeNodeClient,
        channel: AggregationChannel[NormalizedEvent],
        pool_ca: Pool,
    ) -> None:
        """Test that Quickswap events carry the Quickswap tag."""
        adapter = QuickswapV3Adapter(fake_node)
        task = await _start_watch(adapter, pool_ca, channel)

        fake_node.subscription_for(POOL_CA).push(make_swap_log(POOL_CA, Q96))
        event = await _receive(channel)

        assert event.venue == Venue.QUICKSWAP_V3
        assert (event.token0_symbol, event.token1_symbol) == ("C", "A")

        fake_node.subscription_for(POOL_CA).fail()
        await asyncio.wait_for(task, timeout=1.0)


class TestCreateAdapter:
    """Tests for create_adapter."""

    def test_known_venues(self, fake_node: FakeNodeClient) -> None:
        """Test venue to adapter mapping."""
        assert isinstance(create_adapter(Venue.UNISWAP_V3, fake_node), UniswapV3Adapter)
        assert isinstance(create_adapter(Venue.QUICKSWAP_V3, fake_node), QuickswapV3Adapter)

    def test_sushiswap_reuses_uniswap(self, fake_node: FakeNodeClient) -> None:
        """Test that the fork keeps its own venue tag."""
        adapter = create_adapter(Venue.SUSHISWAP_V3, fake_node)

        assert isinstance(adapter, UniswapV3Adapter)
        assert adapter.venue == Venue.SUSHISWAP_V3

    def test_unknown_venue(self, fake_node: FakeNodeClient) -> None:
        """Test that unmapped venues are rejected."""
        with pytest.raises(UnknownVenueError):
            create_adapter("CurveV2", fake_node)  # type: ignore[arg-type]
