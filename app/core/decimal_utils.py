"""
DailyThree — Decimal Utilities
Rounding helpers for expense amounts. Never use float near monetary values.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Union


def monetary(value: Union[str, int, float, Decimal, None]) -> Decimal:
    """
    Convert a numeric value (including SQL aggregate results) to a Decimal.
    None becomes zero; floats go through str() to avoid binary noise.
    """
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    if isinstance(value, (int, str)):
        return Decimal(value)
    raise TypeError(f"Cannot convert {type(value).__name__} to Decimal monetary value")


def display_round(amount: Union[str, int, float, Decimal, None], places: int = 2) -> Decimal:
    """Round to `places` decimal places for display/reporting."""
    quantizer = Decimal(10) ** -places
    return monetary(amount).quantize(quantizer, rounding=ROUND_HALF_UP)
