"""Pydantic models for the exchange rate service."""

from .constants import CURRENCY_SCALES, DEFAULT_SCALE  # re-export
from .rates import (
    ConversionOut,
    ExchangeRate,
    ExchangeRateIn,
    ExchangeRateList,
    ExchangeRateUpdateIn,
    PaginationMeta,
)

__all__ = [
    "CURRENCY_SCALES",
    "DEFAULT_SCALE",
    "ConversionOut",
    "ExchangeRate",
    "ExchangeRateIn",
    "ExchangeRateList",
    "ExchangeRateUpdateIn",
    "PaginationMeta",
]
