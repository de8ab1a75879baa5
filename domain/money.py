"""
Domain: monetary helpers (pure).

Every monetary value on a Sale (unit prices, item totals, sale totals) goes
through `round2`. Rounding is half-away-from-zero at two decimal places, which
is `ROUND_HALF_UP` in the `decimal` module. Banker's rounding (the default for
`round()` and `Decimal.quantize`) gives different results on ties.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Union

CENTS = Decimal("0.01")
ZERO = Decimal("0.00")

MoneyInput = Union[Decimal, int, str, float]


def to_decimal(value: MoneyInput) -> Decimal:
    """Convert a numeric input to Decimal; floats go through str() first."""

    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def round2(value: MoneyInput) -> Decimal:
    """
    Round to two decimals, ties away from zero.

    Example:
        round2(Decimal("0.125"))   # Decimal('0.13')
        round2(Decimal("-0.125"))  # Decimal('-0.13')
    """

    return to_decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)


__all__ = ["CENTS", "ZERO", "MoneyInput", "round2", "to_decimal"]
