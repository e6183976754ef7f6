# -*- coding: utf-8 -*-
"""
Money helpers.

Amounts are stored unrounded; rounding to two decimals (half-up) happens
only when values are aggregated or presented.
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Union

CENT = Decimal("0.01")
ZERO = Decimal("0")

Number = Union[Decimal, int, float, str]


def to_decimal(value: Number) -> Decimal:
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        # repr() keeps the shortest round-tripping form (50.005, not 50.00499...)
        return Decimal(repr(value))
    return Decimal(str(value))


def quantize(value: Number) -> Decimal:
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def money(value: Number) -> float:
    """Round half-up to cents and return a JSON-friendly number."""
    return float(quantize(value))


def total(values: Iterable[Number]) -> Decimal:
    return sum((to_decimal(v) for v in values), ZERO)


def format_cop(value: Number) -> str:
    """Format a whole-peso amount with es-CO thousands separators (1.234.567)."""
    whole = int(to_decimal(value).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    return f"{whole:,}".replace(",", ".")
