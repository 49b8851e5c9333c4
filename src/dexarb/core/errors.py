"""
Exception hierarchy for the arbitrage engine.

Errors fall into three groups:
- fatal: abort startup (NodeConnectionError, SubscriptionError at subscribe
  time, DuplicateKeyError while populating registries)
- transient: drop the current event and keep going (BlockFetchError,
  InvalidPriceError, SwapDecodeError)
- logic: a registry miss returned to the caller (NotFoundError)
"""


class DexArbError(Exception):
    """Base class for all engine errors."""


class DuplicateKeyError(DexArbError):
    """A registry already holds an entity with the same key."""

    def __init__(self, kind: str, field: str, value: str) -> None:
        super().__init__(f"{kind} with {field} {value!r} already exists")
        self.kind = kind
        self.field = field
        self.value = value


class NotFoundError(DexArbError):
    """A registry has no entity for the requested key."""

    def __init__(self, kind: str, field: str, value: str) -> None:
        super().__init__(f"no {kind} found with {field} {value!r}")
        self.kind = kind
        self.field = field
        self.value = value


class InvalidPriceError(DexArbError):
    """A raw venue price could not be turned into usable amounts."""


class SwapDecodeError(DexArbError):
    """A log payload is not a decodable Swap event."""


class NodeConnectionError(DexArbError):
    """The blockchain node could not be reached."""


class RpcError(DexArbError):
    """The node answered a JSON-RPC request with an error object."""

    def __init__(self, method: str, code: int, message: str) -> None:
        super().__init__(f"{method} failed ({code}): {message}")
        self.method = method
        self.code = code


class SubscriptionError(DexArbError):
    """A log subscription could not be created or was lost."""


class BlockFetchError(DexArbError):
    """A block header lookup failed."""


class ChannelClosedError(DexArbError):
    """The aggregation channel no longer accepts or yields events."""


class UnknownVenueError(DexArbError):
    """No adapter is registered for a venue."""
