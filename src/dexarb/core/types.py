"""
Type definitions for the arbitrage engine.

This module contains the dataclasses, enums and Protocol definitions used
throughout the application. Tokens and pools compare by identity: a pool
holds references to the registry's own token objects, never copies.
"""

from collections.abc import AsyncIterator
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any, Protocol


# =============================================================================
# Enums
# =============================================================================


class Venue(str, Enum):
    """Supported DEX protocol variants."""

    UNISWAP_V3 = "UniswapV3"
    SUSHISWAP_V3 = "SushiswapV3"
    QUICKSWAP_V3 = "QuickswapV3"


# =============================================================================
# Market Entities
# =============================================================================


@dataclass(slots=True, eq=False)
class Token:
    """
    ERC-20 token known to the engine.

    Only `gas_fee_estimate` changes after startup, and only through
    TokenRegistry.update_gas_fee.
    """

    symbol: str
    address: str
    decimals: int
    holdable: bool = False
    gas_fee_estimate: Decimal | None = None

    def __repr__(self) -> str:
        return f"Token({self.symbol})"


@dataclass(slots=True, eq=False)
class Pool:
    """
    Liquidity pool pairing two registry tokens on one venue.

    Amounts are unit-input outputs net of the venue fee and stay None
    until the first swap event for this pool has been processed.
    """

    address: str
    venue: Venue
    fee_units: int
    token0: Token
    token1: Token
    router_address: str | None = None
    amount_out_forward: Decimal | None = None  # token0 -> token1
    amount_out_backward: Decimal | None = None  # token1 -> token0

    @property
    def has_quotes(self) -> bool:
        """Check if both directions have been populated."""
        return self.amount_out_forward is not None and self.amount_out_backward is not None

    @property
    def pair(self) -> tuple[str, str]:
        """Token symbols in pool order."""
        return self.token0.symbol, self.token1.symbol

    def trades(self, symbol_a: str, symbol_b: str) -> bool:
        """Check if this pool trades the unordered pair (a, b)."""
        return {symbol_a, symbol_b} == {self.token0.symbol, self.token1.symbol}

    def amount_out_from(self, symbol: str) -> Decimal | None:
        """
        Get the unit-input output when selling `symbol` into this pool.

        Raises:
            ValueError: If the token is not part of the pool.
        """
        if symbol == self.token0.symbol:
            return self.amount_out_forward
        if symbol == self.token1.symbol:
            return self.amount_out_backward
        raise ValueError(f"token {symbol} not found in pool {self.address}")

    def amount_out_to(self, symbol: str) -> Decimal | None:
        """
        Get the unit-input output when buying `symbol` from this pool.

        Raises:
            ValueError: If the token is not part of the pool.
        """
        if symbol == self.token0.symbol:
            return self.amount_out_backward
        if symbol == self.token1.symbol:
            return self.amount_out_forward
        raise ValueError(f"token {symbol} not found in pool {self.address}")

    def __repr__(self) -> str:
        return (
            f"Pool({self.venue.value} {self.token0.symbol}/{self.token1.symbol} "
            f"{self.address} fee={self.fee_units})"
        )


# =============================================================================
# Event Types
# =============================================================================


@dataclass(slots=True, frozen=True)
class SwapNotification:
    """Decoded Swap log as delivered by a venue subscription."""

    pool_address: str
    block_number: int
    transaction_hash: str
    amount0: int
    amount1: int
    raw_sqrt_price: int
    liquidity: int
    tick: int


@dataclass(slots=True, frozen=True)
class NormalizedEvent:
    """
    Venue-agnostic price update for one pool.

    Produced once per observed swap, consumed once by the engine.
    """

    venue: Venue
    pool_address: str
    block_number: int
    latency_us: int
    fee_units: int
    token0_symbol: str
    token1_symbol: str
    amount_out_forward: Decimal
    amount_out_backward: Decimal

    def to_dict(self) -> dict[str, Any]:
        """Convert to a log-friendly dict."""
        return {
            "venue": self.venue.value,
            "pool": self.pool_address,
            "block": self.block_number,
            "latency_us": self.latency_us,
            "fee": self.fee_units,
            "token0": self.token0_symbol,
            "token1": self.token1_symbol,
            "forward": str(self.amount_out_forward),
            "backward": str(self.amount_out_backward),
        }


# =============================================================================
# Opportunity Types
# =============================================================================


@dataclass(slots=True, frozen=True)
class LegQuote:
    """Best available pool for one directed token pair."""

    pool: Pool
    from_symbol: str
    to_symbol: str
    amount_out: Decimal


@dataclass(slots=True, frozen=True)
class ArbitrageOpportunity:
    """
    Profitable A -> B -> C -> A cycle.

    The multiplier is the amount of token A returned for one unit of A.
    """

    token_a: Token
    token_b: Token
    token_c: Token
    pool_ab: Pool
    pool_bc: Pool
    pool_ca: Pool
    multiplier: Decimal
    amounts: tuple[Decimal, Decimal, Decimal]
    timestamp_us: int

    @property
    def symbols(self) -> tuple[str, str, str]:
        """Token symbols in cycle order."""
        return self.token_a.symbol, self.token_b.symbol, self.token_c.symbol

    @property
    def id(self) -> str:
        """Cycle identifier, e.g. "USDC-WETH-WPOL"."""
        return "-".join(self.symbols)

    @property
    def profit_pct(self) -> Decimal:
        """Round-trip profit as a percentage."""
        return (self.multiplier - 1) * 100

    def to_dict(self) -> dict[str, Any]:
        """Convert to a log-friendly dict."""
        return {
            "cycle": self.id,
            "multiplier": str(self.multiplier),
            "legs": [
                {
                    "from": pool_from,
                    "to": pool_to,
                    "pool": pool.address,
                    "venue": pool.venue.value,
                    "amount_out": str(amount),
                }
                for (pool_from, pool_to), pool, amount in zip(
                    (
                        (self.token_a.symbol, self.token_b.symbol),
                        (self.token_b.symbol, self.token_c.symbol),
                        (self.token_c.symbol, self.token_a.symbol),
                    ),
                    (self.pool_ab, self.pool_bc, self.pool_ca),
                    self.amounts,
                )
            ],
            "timestamp_us": self.timestamp_us,
        }


# =============================================================================
# Protocols (Interfaces)
# =============================================================================


class LogSubscription(Protocol):
    """An open log subscription on the node."""

    @property
    def id(self) -> str:
        """Node-assigned subscription id."""
        ...

    def __aiter__(self) -> AsyncIterator[dict[str, Any]]:
        """Iterate raw log objects as they arrive."""
        ...

    async def unsubscribe(self) -> None:
        """Cancel the subscription on the node."""
        ...


class NodeClient(Protocol):
    """Blockchain node collaborator used by the venue adapters."""

    async def subscribe_logs(self, address: str, topics: list[str]) -> LogSubscription:
        """Subscribe to logs emitted by `address` matching `topics`."""
        ...

    async def get_block_timestamp(self, block_number: int) -> int:
        """Get a block's timestamp in Unix seconds."""
        ...

    async def close(self) -> None:
        """Release the connection."""
        ...
