"""
Pytest configuration and shared fixtures.

Provides reusable test fixtures for all test modules.
"""

from decimal import Decimal

import pytest

from dexarb.core.channel import AggregationChannel
from dexarb.core.types import NormalizedEvent, Pool, Token, Venue
from dexarb.market.pools import PoolRegistry
from dexarb.market.tokens import TokenRegistry
from tests.mocks.market import ADDR_A, ADDR_B, ADDR_C, POOL_AB, POOL_BC, POOL_CA
from tests.mocks.node import FakeNodeClient


# =============================================================================
# Token Fixtures
# =============================================================================


@pytest.fixture
def token_a() -> Token:
    """Token A (6 decimals)."""
    return Token(symbol="A", address=ADDR_A, decimals=6)


@pytest.fixture
def token_b() -> Token:
    """Token B (18 decimals)."""
    return Token(symbol="B", address=ADDR_B, decimals=18)


@pytest.fixture
def token_c() -> Token:
    """Token C (18 decimals)."""
    return Token(symbol="C", address=ADDR_C, decimals=18)


@pytest.fixture
def token_registry(token_a: Token, token_b: Token, token_c: Token) -> TokenRegistry:
    """Registry holding A, B and C."""
    return TokenRegistry.from_tokens([token_a, token_b, token_c])


# =============================================================================
# Pool Fixtures
# =============================================================================


@pytest.fixture
def pool_ab(token_registry: TokenRegistry) -> Pool:
    """A/B pool, fee 0.05%."""
    return Pool(
        address=POOL_AB,
        venue=Venue.UNISWAP_V3,
        fee_units=500,
        token0=token_registry.lookup_by_symbol("A"),
        token1=token_registry.lookup_by_symbol("B"),
    )


@pytest.fixture
def pool_bc(token_registry: TokenRegistry) -> Pool:
    """B/C pool, fee 0.3%."""
    return Pool(
        address=POOL_BC,
        venue=Venue.UNISWAP_V3,
        fee_units=3000,
        token0=token_registry.lookup_by_symbol("B"),
        token1=token_registry.lookup_by_symbol("C"),
    )


@pytest.fixture
def pool_ca(token_registry: TokenRegistry) -> Pool:
    """C/A pool on Quickswap."""
    return Pool(
        address=POOL_CA,
        venue=Venue.QUICKSWAP_V3,
        fee_units=888,
        token0=token_registry.lookup_by_symbol("C"),
        token1=token_registry.lookup_by_symbol("A"),
    )


@pytest.fixture
def pool_registry(
    token_registry: TokenRegistry,
    pool_ab: Pool,
    pool_bc: Pool,
    pool_ca: Pool,
) -> PoolRegistry:
    """Registry holding the A/B, B/C and C/A pools, no quotes yet."""
    return PoolRegistry.from_pools(token_registry, [pool_ab, pool_bc, pool_ca])


# =============================================================================
# Event Fixtures
# =============================================================================


@pytest.fixture
def make_event():
    """Factory for normalized events."""

    def _make(
        pool: Pool,
        forward: str,
        backward: str,
        block_number: int = 100,
        latency_us: int = 1_500,
    ) -> NormalizedEvent:
        return NormalizedEvent(
            venue=pool.venue,
            pool_address=pool.address,
            block_number=block_number,
            latency_us=latency_us,
            fee_units=pool.fee_units,
            token0_symbol=pool.token0.symbol,
            token1_symbol=pool.token1.symbol,
            amount_out_forward=Decimal(forward),
            amount_out_backward=Decimal(backward),
        )

    return _make


# =============================================================================
# Infrastructure Fixtures
# =============================================================================


@pytest.fixture
def channel() -> AggregationChannel[NormalizedEvent]:
    """Open aggregation channel."""
    return AggregationChannel()


@pytest.fixture
def fake_node() -> FakeNodeClient:
    """In-memory node client."""
    return FakeNodeClient()
