"""
Price normalization for square-root-price AMM pools.

Turns a venue's Q64.96 square-root price, pool fee and token decimals into
the unit-input output amounts for both swap directions.

All arithmetic is done in Decimal under a private 64-digit context:
decimal differences of up to 18 make binary floats lose the low digits
of the smaller side.
"""

from decimal import Context, Decimal, localcontext

from dexarb.config.constants import DECIMAL_PRECISION, FEE_UNITS_DENOMINATOR, Q96
from dexarb.core.errors import InvalidPriceError


PRICE_CONTEXT = Context(prec=DECIMAL_PRECISION)


def sqrt_price_to_ratio(raw_sqrt_price: int) -> Decimal:
    """
    Undo the square-root fixed-point encoding.

    Example:
        >>> sqrt_price_to_ratio(2**96)
        Decimal('1')
    """
    with localcontext(PRICE_CONTEXT):
        sqrt_price = Decimal(raw_sqrt_price) / Decimal(Q96)
        return sqrt_price * sqrt_price


def adjust_for_decimals(ratio: Decimal, decimals0: int, decimals1: int) -> Decimal:
    """Scale a raw token1/token0 ratio to whole-token units."""
    with localcontext(PRICE_CONTEXT):
        return ratio.scaleb(decimals0 - decimals1)


def fee_units_to_fraction(
    fee_units: int,
    fee_denominator: int = FEE_UNITS_DENOMINATOR,
) -> Decimal:
    """
    Convert a venue-native fee to a fraction of the input.

    Example:
        >>> fee_units_to_fraction(500)
        Decimal('0.0005')
    """
    with localcontext(PRICE_CONTEXT):
        return Decimal(fee_units) / Decimal(fee_denominator)


def normalize_price(
    raw_sqrt_price: int,
    fee_units: int,
    decimals0: int,
    decimals1: int,
    fee_denominator: int = FEE_UNITS_DENOMINATOR,
) -> tuple[Decimal, Decimal]:
    """
    Compute unit-input outputs for both directions of a pool.

    Args:
        raw_sqrt_price: Q64.96 square-root price (sqrtPriceX96 / Algebra price).
        fee_units: Pool fee in venue-native units.
        decimals0: Decimals of token0.
        decimals1: Decimals of token1.
        fee_denominator: Fee units per whole input (1e6 for V3-style pools).

    Returns:
        (forward_out, backward_out): token1 received for 1 token0, and
        token0 received for 1 token1, both net of the fee.

    Raises:
        InvalidPriceError: If the price is non-positive or non-finite, or
            the fee consumes the whole input.
    """
    if raw_sqrt_price <= 0:
        raise InvalidPriceError(f"non-positive sqrt price {raw_sqrt_price}")
    if not 0 <= fee_units < fee_denominator:
        raise InvalidPriceError(f"fee {fee_units} outside [0, {fee_denominator})")

    with localcontext(PRICE_CONTEXT):
        ratio = sqrt_price_to_ratio(raw_sqrt_price)
        adjusted_price = adjust_for_decimals(ratio, decimals0, decimals1)

        if not adjusted_price.is_finite() or adjusted_price <= 0:
            raise InvalidPriceError(f"unusable adjusted price {adjusted_price}")

        net_input = 1 - fee_units_to_fraction(fee_units, fee_denominator)

        forward_out = net_input * adjusted_price
        backward_out = net_input * (1 / adjusted_price)

    return forward_out, backward_out
