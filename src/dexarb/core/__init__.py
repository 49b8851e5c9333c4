"""Core module containing the channel, errors, and type definitions."""

from dexarb.core.channel import AggregationChannel
from dexarb.core.errors import (
    BlockFetchError,
    ChannelClosedError,
    DexArbError,
    DuplicateKeyError,
    InvalidPriceError,
    NodeConnectionError,
    NotFoundError,
    RpcError,
    SubscriptionError,
    SwapDecodeError,
    UnknownVenueError,
)
from dexarb.core.types import (
    ArbitrageOpportunity,
    LegQuote,
    LogSubscription,
    NodeClient,
    NormalizedEvent,
    Pool,
    SwapNotification,
    Token,
    Venue,
)


__all__ = [
    "AggregationChannel",
    "ArbitrageOpportunity",
    "BlockFetchError",
    "ChannelClosedError",
    "DexArbError",
    "DuplicateKeyError",
    "InvalidPriceError",
    "LegQuote",
    "LogSubscription",
    "NodeClient",
    "NodeConnectionError",
    "NormalizedEvent",
    "NotFoundError",
    "Pool",
    "RpcError",
    "SubscriptionError",
    "SwapDecodeError",
    "SwapNotification",
    "Token",
    "UnknownVenueError",
    "Venue",
]
