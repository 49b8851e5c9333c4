"""
Swap log decoding.

V3-style pools (Uniswap and its Sushiswap fork, Algebra/Quickswap) emit
Swap events with the same ABI layout, so one decoder serves every venue.
"""

from typing import Any

from eth_abi import decode as abi_decode
from eth_abi.exceptions import DecodingError
from eth_utils import decode_hex, encode_hex, keccak

from dexarb.config.constants import SWAP_EVENT_DATA_TYPES, SWAP_EVENT_SIGNATURE
from dexarb.core.errors import SwapDecodeError
from dexarb.core.types import SwapNotification


def event_topic(signature: str) -> str:
    """
    Compute topic0 for an event signature.

    Example:
        >>> event_topic("Transfer(address,address,uint256)")[:10]
        '0xddf252ad'
    """
    return encode_hex(keccak(text=signature))


SWAP_TOPIC = event_topic(SWAP_EVENT_SIGNATURE)


def _to_int(value: Any) -> int:
    """Node quantities arrive hex-encoded; fakes may pass ints."""
    if isinstance(value, int):
        return value
    return int(value, 16)


def decode_swap_log(log: dict[str, Any], topic: str = SWAP_TOPIC) -> SwapNotification:
    """
    Decode a raw eth_subscription log into a SwapNotification.

    Raises:
        SwapDecodeError: If the log is not a well-formed Swap event.
    """
    try:
        topics = log["topics"]
        if not topics or topics[0].lower() != topic:
            raise SwapDecodeError(f"unexpected topic {topics[0] if topics else None}")

        amount0, amount1, sqrt_price, liquidity, tick = abi_decode(
            list(SWAP_EVENT_DATA_TYPES), decode_hex(log["data"])
        )

        return SwapNotification(
            pool_address=log["address"].lower(),
            block_number=_to_int(log["blockNumber"]),
            transaction_hash=log.get("transactionHash") or "",
            amount0=amount0,
            amount1=amount1,
            raw_sqrt_price=sqrt_price,
            liquidity=liquidity,
            tick=tick,
        )

    except SwapDecodeError:
        raise
    except (KeyError, TypeError, ValueError, DecodingError) as e:
        raise SwapDecodeError(f"undecodable swap log: {e}") from e
