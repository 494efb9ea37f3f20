"""Rounding utilities for the billing engine.

Meter time is rounded to tenths of an hour and money to cents, both
half-up. All arithmetic stays in Decimal.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Union

TENTH = Decimal("0.1")
CENT = Decimal("0.01")

Number = Union[Decimal, int, str]


def round_hours(value: Number) -> Decimal:
    """Round a duration in hours to 1 decimal place, half-up.

    Example:
        >>> round_hours(Decimal("1.25"))
        Decimal('1.3')
        >>> round_hours(Decimal("0.04"))
        Decimal('0.0')
    """
    return Decimal(value).quantize(TENTH, rounding=ROUND_HALF_UP)


def round_currency(value: Number) -> Decimal:
    """Round a monetary amount to cents, half-up.

    Example:
        >>> round_currency(Decimal("33.745"))
        Decimal('33.75')
    """
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def meter_delta(start: Decimal, end: Decimal) -> Decimal:
    """Difference between two meter readings, rounded to tenths.

    Example:
        >>> meter_delta(Decimal("100.0"), Decimal("101.5"))
        Decimal('1.5')
    """
    return round_hours(end - start)

