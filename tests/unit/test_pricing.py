"""
Unit tests for price normalization.

Tests the square-root price decoding, decimal adjustment, fee handling
and rejection of unusable inputs.
"""

from decimal import ROUND_FLOOR, Decimal, localcontext

import pytest

from dexarb.config.constants import DECIMAL_PRECISION, Q96
from dexarb.core.errors import InvalidPriceError
from dexarb.strategy.pricing import (
    PRICE_CONTEXT,
    adjust_for_decimals,
    fee_units_to_fraction,
    normalize_price,
    sqrt_price_to_ratio,
)


class TestHelpers:
    """Tests for the normalization building blocks."""

    def test_unit_sqrt_price(self) -> None:
        """Test that 2^96 encodes a ratio of exactly 1."""
        assert sqrt_price_to_ratio(Q96) == Decimal(1)

    def test_double_sqrt_price(self) -> None:
        """Test that doubling the square root quadruples the ratio."""
        assert sqrt_price_to_ratio(2 * Q96) == Decimal(4)

    def test_decimal_adjustment(self) -> None:
        """Test scaling by the decimals difference."""
        assert adjust_for_decimals(Decimal(1), 6, 18) == Decimal("1E-12")
        assert adjust_for_decimals(Decimal(1), 18, 6) == Decimal("1E+12")
        assert adjust_for_decimals(Decimal(3), 18, 18) == Decimal(3)

    def test_fee_fraction(self) -> None:
        """Test fee unit conversion."""
        assert fee_units_to_fraction(500) == Decimal("0.0005")
        assert fee_units_to_fraction(3000) == Decimal("0.003")
        assert fee_units_to_fraction(30, 10_000) == Decimal("0.003")


class TestNormalizePrice:
    """Tests for normalize_price."""

    def test_hand_computed_case(self) -> None:
        """Test fee 0.05%, decimals 6/18, raw price 1:1."""
        forward, backward = normalize_price(Q96, 500, 6, 18)

        assert forward == Decimal("9.995E-13")
        assert backward == Decimal("9.995E+11")

    def test_equal_decimals_no_fee(self) -> None:
        """Test that a 1:1 pool without fee returns exactly 1 both ways."""
        forward, backward = normalize_price(Q96, 0, 18, 18)

        assert forward == Decimal(1)
        assert backward == Decimal(1)

    @pytest.mark.parametrize(
        ("raw", "fee", "d0", "d1"),
        [
            (Q96, 500, 6, 18),
            (Q96 * 3, 3000, 18, 18),
            (Q96 // 7, 1081, 8, 6),
            (79_228_162_514_264_337_593_543_950_336_000, 888, 6, 18),
        ],
    )
    def test_product_equals_net_squared(self, raw: int, fee: int, d0: int, d1: int) -> None:
        """Test forward * backward == (1 - fee)^2 within working precision."""
        forward, backward = normalize_price(raw, fee, d0, d1)

        net = 1 - fee_units_to_fraction(fee)
        product = PRICE_CONTEXT.multiply(forward, backward)
        expected = PRICE_CONTEXT.multiply(net, net)

        assert abs(product - expected) < Decimal("1E-50")

    def test_fee_reduces_both_directions(self) -> None:
        """Test that outputs are strictly lower with a fee."""
        no_fee = normalize_price(Q96 * 2, 0, 18, 18)
        with_fee = normalize_price(Q96 * 2, 500, 18, 18)

        assert with_fee[0] < no_fee[0]
        assert with_fee[1] < no_fee[1]

    def test_high_precision_kept(self) -> None:
        """Test that an 18-decimal gap does not lose significant digits."""
        forward, backward = normalize_price(Q96 + 1, 0, 0, 18)

        assert forward > Decimal("1E-18")
        assert backward < Decimal("1E+18")

    @pytest.mark.parametrize("raw", [0, -1, -Q96])
    def test_non_positive_price_rejected(self, raw: int) -> None:
        """Test that zero and negative prices are rejected."""
        with pytest.raises(InvalidPriceError):
            normalize_price(raw, 500, 18, 18)

    @pytest.mark.parametrize("fee", [-1, 1_000_000, 2_000_000])
    def test_fee_out_of_range_rejected(self, fee: int) -> None:
        """Test that fees outside [0, denominator) are rejected."""
        with pytest.raises(InvalidPriceError):
            normalize_price(Q96, fee, 18, 18)

    def test_custom_denominator(self) -> None:
        """Test a basis-point fee denominator."""
        forward, _ = normalize_price(Q96, 30, 18, 18, fee_denominator=10_000)

        assert forward == Decimal("0.997")

    def test_repeated_calls_identical(self) -> None:
        """Test that the same inputs always give the same pair."""
        inputs = (Q96 * 3 // 7, 888, 6, 18)
        first = normalize_price(*inputs)

        for _ in range(20):
            assert normalize_price(*inputs) == first

    def test_ambient_context_ignored(self) -> None:
        """Test that the caller's decimal context does not leak into the math."""
        inputs = (Q96 * 3 // 7, 888, 6, 18)
        baseline = normalize_price(*inputs)

        with localcontext() as ctx:
            ctx.prec = 5
            ctx.rounding = ROUND_FLOOR
            assert normalize_price(*inputs) == baseline

        assert normalize_price(*inputs) == baseline
        assert PRICE_CONTEXT.prec == DECIMAL_PRECISION
