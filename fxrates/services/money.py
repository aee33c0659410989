"""Money / rounding helpers.

Centralized so conversion results and displayed rates use identical
rounding semantics.
"""

from __future__ import annotations
from decimal import Decimal, ROUND_HALF_UP, localcontext
from typing import Iterable

from fxrates.models.constants import CURRENCY_SCALES, DEFAULT_SCALE


def to_decimal(value: float) -> Decimal:
    # str() keeps the shortest repr, so 0.9 stays 0.9 rather than 0.90000000000000002
    return Decimal(str(value))


def product(values: Iterable[float]) -> Decimal:
    total = Decimal(1)
    for v in values:
        total *= to_decimal(v)
    return total


def quantize(value: Decimal, places: int) -> float:
    exp = Decimal(1).scaleb(-places)
    with localcontext() as ctx:
        # quantize needs every integer digit plus the scale within precision
        ctx.prec = max(ctx.prec, value.adjusted() + places + 2)
        return float(value.quantize(exp, rounding=ROUND_HALF_UP))


def scale_for(currency: str) -> int:
    return CURRENCY_SCALES.get(currency.upper(), DEFAULT_SCALE)


def round_amount(value: Decimal, currency: str) -> float:
    return quantize(value, scale_for(currency))
