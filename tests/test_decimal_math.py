"""
Tests for Decimal Math Utilities.

Tests verify:
1. Conversion to Decimal preserves float representation
2. Rounding is half-up, not banker's rounding
3. Percentages and pro-rating round the same way every time
4. Money formatting
"""

from decimal import Decimal, InvalidOperation

import pytest

from calculator.decimal_math import (
    divide,
    format_money,
    percent_of,
    prorate,
    round_half_up,
    to_decimal,
)


class TestDecimalConversion:
    """Tests for value conversion to Decimal."""

    def test_to_decimal_from_float(self):
        """Test converting float to Decimal preserves representation."""
        assert to_decimal(100.50) == Decimal("100.5")

    def test_to_decimal_from_decimal(self):
        """Test Decimal passes through unchanged."""
        original = Decimal("100.50")
        assert to_decimal(original) is original


class TestDivision:
    def test_divide(self):
        assert divide(1, 4) == Decimal("0.25")

    def test_divide_by_zero_with_default(self):
        assert divide(10, 0, default=0) == Decimal("0")

    def test_divide_by_zero_raises(self):
        with pytest.raises(InvalidOperation):
            divide(10, 0)


class TestHalfUpRounding:
    """Tests for whole-number rounding."""

    @pytest.mark.parametrize("value,expected", [
        (0.5, 1),
        (2.5, 3),
        (91.49, 91),
        (Decimal("63076.71"), 63077),
    ])
    def test_round_half_up(self, value, expected):
        """Test halves round up where round() would go to even."""
        assert round_half_up(value) == expected

    def test_percent_of(self):
        """Test 165 of 183 is 90.16%, which rounds to 90."""
        assert percent_of(165, 183) == 90
        assert percent_of(128, 183) == 70

    def test_percent_of_zero_whole(self):
        assert percent_of(10, 0) == 0

    def test_prorate(self):
        """Test the 2024 FEIE limit over 182 of 365 days."""
        assert prorate(126500, 182, 365) == 63077
        assert prorate(126500, 0, 365) == 0


class TestMoneyFormatting:
    def test_whole_amount(self):
        assert format_money(126500) == "$126,500"
        assert format_money(23500.0) == "$23,500"

    def test_cents(self):
        assert format_money(1234.5) == "$1,234.50"
