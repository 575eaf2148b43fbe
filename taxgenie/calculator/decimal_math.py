"""
Decimal helpers for rupee arithmetic.

Every amount in the engine is a Decimal. Tax, surcharge and cess are rounded to
the nearest rupee (half-up) as soon as each is produced, so later steps always
operate on whole rupees and the same input gives the same output everywhere.
"""
from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Union

Numeric = Union[int, float, str, Decimal]

RUPEE = Decimal("1")
RATE_PLACES = Decimal("0.0001")
ZERO = Decimal("0")


def to_decimal(value: Numeric) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        # str() first so 0.1 stays 0.1
        return Decimal(str(value))
    return Decimal(value)


def rupees(value: Numeric) -> Decimal:
    """
    Round to the nearest whole rupee, half-up.

    >>> rupees("2700.5")
    Decimal('2701')
    >>> rupees("2700.49")
    Decimal('2700')
    """
    return to_decimal(value).quantize(RUPEE, rounding=ROUND_HALF_UP)


def rate(value: Numeric) -> Decimal:
    """Round a ratio to 4 decimal places (effective tax rate)."""
    return to_decimal(value).quantize(RATE_PLACES, rounding=ROUND_HALF_UP)


def non_negative(value: Decimal) -> Decimal:
    return value if value > ZERO else ZERO


def safe_ratio(numerator: Decimal, denominator: Decimal) -> Decimal:
    """numerator / denominator, or 0 when denominator is 0."""
    if denominator == ZERO:
        return ZERO
    return numerator / denominator
