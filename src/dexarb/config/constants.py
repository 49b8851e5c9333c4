"""
Protocol constants and configuration defaults.

This module contains all hardcoded values used throughout the engine.
Values are organized by category for easy maintenance and auditing.
"""

from typing import Final


# =============================================================================
# Price Encoding
# =============================================================================

# Square-root prices are Q64.96 fixed point values
Q96: Final[int] = 2**96

# Venue fees are expressed in hundredths of a basis point (500 = 0.05%)
FEE_UNITS_DENOMINATOR: Final[int] = 1_000_000

# Significant digits used for all price arithmetic
DECIMAL_PRECISION: Final[int] = 64


# =============================================================================
# Swap Events
# =============================================================================

# Both venues emit the same ABI shape; Algebra names the price field `price`
SWAP_EVENT_SIGNATURE: Final[str] = "Swap(address,address,int256,int256,uint160,uint128,int24)"

# Non-indexed Swap fields: amount0, amount1, sqrtPrice, liquidity, tick
SWAP_EVENT_DATA_TYPES: Final[tuple[str, ...]] = (
    "int256",
    "int256",
    "uint160",
    "uint128",
    "int24",
)


# =============================================================================
# Node Connection
# =============================================================================

DEFAULT_NODE_NAME: Final[str] = "polygon"

# Pause between pool subscriptions at startup (seconds)
DEFAULT_SUBSCRIBE_INTERVAL: Final[float] = 0.5

# JSON-RPC request timeout (seconds)
DEFAULT_REQUEST_TIMEOUT: Final[float] = 10.0

WS_HEARTBEAT_INTERVAL: Final[float] = 20.0  # seconds
WS_MAX_MESSAGE_SIZE: Final[int] = 10 * 1024 * 1024  # 10MB
WS_CLOSE_TIMEOUT: Final[float] = 5.0  # seconds

# Per-subscription notification backlog; further notifications are dropped
SUBSCRIPTION_QUEUE_SIZE: Final[int] = 1_000

# Unclaimed subscription ids buffered while waiting for their eth_subscribe response
ORPHAN_SUBSCRIPTION_LIMIT: Final[int] = 64


# =============================================================================
# Logging & Telemetry
# =============================================================================

LOG_FORMAT: Final[str] = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOG_DATE_FORMAT: Final[str] = "%Y-%m-%d %H:%M:%S"
LOG_FILE_TIME_FORMAT: Final[str] = "%Y%m%d_%H%M%S"
DEFAULT_LOG_DIR: Final[str] = "logs"

# Status summary interval (seconds)
DEFAULT_REPORT_INTERVAL: Final[float] = 30.0

# Maximum log queue size
MAX_LOG_QUEUE_SIZE: Final[int] = 10_000
