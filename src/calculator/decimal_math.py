"""
Decimal Math Utilities for Residency and FEIE Calculations.

Provides precise decimal arithmetic so that day ratios and pro-rated
exclusion amounts round the same way on every platform.

Why Decimal?
- Float: round(0.5) == 0 and round(2.5) == 2 (banker's rounding)
- Decimal with ROUND_HALF_UP: 0.5 rounds to 1, 2.5 rounds to 3, matching
  published worksheets

All whole-number rounding in the calculators goes through round_half_up().
"""

from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Union, Optional
import logging

logger = logging.getLogger(__name__)

# Type alias for values that can be converted to Decimal
Numeric = Union[int, float, str, Decimal]

WHOLE = Decimal("1")
MONEY_PLACES = Decimal("0.01")


def to_decimal(value: Numeric) -> Decimal:
    """
    Convert a numeric value to Decimal.

    Examples:
        >>> to_decimal(100)
        Decimal('100')
        >>> to_decimal(100.50)
        Decimal('100.5')
    """
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        # Convert float to string first to preserve representation
        return Decimal(str(value))
    return Decimal(value)


def divide(a: Numeric, b: Numeric, default: Optional[Numeric] = None) -> Decimal:
    """
    Divide a by b with Decimal precision.

    Args:
        a: Dividend
        b: Divisor
        default: Value to return if division by zero (None raises error)

    Raises:
        InvalidOperation: If b is zero and no default provided
    """
    b_dec = to_decimal(b)
    if b_dec == 0:
        if default is not None:
            return to_decimal(default)
        raise InvalidOperation("Division by zero")
    return to_decimal(a) / b_dec


def round_half_up(value: Numeric) -> int:
    """
    Round to the nearest whole number, halves away from zero for positives.

    Examples:
        >>> round_half_up(91.5)
        92
        >>> round_half_up(63076.71)
        63077
    """
    return int(to_decimal(value).quantize(WHOLE, rounding=ROUND_HALF_UP))


def percent_of(part: Numeric, whole: Numeric) -> int:
    """
    Whole-number percentage that part is of whole.

    Returns 0 when whole is zero.

    Examples:
        >>> percent_of(165, 183)
        90
    """
    return round_half_up(divide(to_decimal(part) * 100, whole, default=0))


def prorate(amount: Numeric, numerator: Numeric, denominator: Numeric) -> int:
    """Scale amount by numerator/denominator and round to whole dollars."""
    return round_half_up(divide(to_decimal(amount) * to_decimal(numerator), denominator, default=0))


def format_money(value: Numeric) -> str:
    """
    Format value as a dollar string with thousands separators.

    Whole amounts are shown without cents.

    Examples:
        >>> format_money(126500)
        '$126,500'
        >>> format_money(1234.5)
        '$1,234.50'
    """
    d = to_decimal(value)
    if d == d.to_integral_value():
        return f"${int(d):,}"
    return f"${d.quantize(MONEY_PLACES, rounding=ROUND_HALF_UP):,.2f}"
