from __future__ import annotations

import math
from datetime import datetime
from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .constants import CURRENCY_CODE_RE, MAX_SOURCE_LENGTH

SAME_CURRENCY_ERROR = "Source and target currencies cannot be the same"
INVALID_RATE_ERROR = "Exchange rate must be greater than 0"


def canonical_currency(value: str) -> str:
    """Strip and upper-case a currency code; ValueError if it is not a valid code."""
    if not isinstance(value, str):
        raise ValueError("currency code must be a string")
    code = value.strip().upper()
    if not code:
        raise ValueError("currency code is required")
    if not CURRENCY_CODE_RE.match(code):
        raise ValueError(f"Unsupported currency code: {value}")
    return code


def check_rate(value: float) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(INVALID_RATE_ERROR)
    value = float(value)
    if not math.isfinite(value) or value <= 0:
        raise ValueError(INVALID_RATE_ERROR)
    return value


class ExchangeRate(BaseModel):
    """Stored directional rate for one ordered currency pair."""

    model_config = ConfigDict(frozen=True)

    id: int
    from_currency: str
    to_currency: str
    rate: float
    source: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    @property
    def pair(self) -> Tuple[str, str]:
        return (self.from_currency, self.to_currency)


class ExchangeRateIn(BaseModel):
    from_currency: str = Field(..., description="Source currency code", examples=["USD"])
    to_currency: str = Field(..., description="Target currency code", examples=["TWD"])
    rate: float = Field(..., gt=0, allow_inf_nan=False, description="Units of to_currency per 1 from_currency")
    source: Optional[str] = Field(None, max_length=MAX_SOURCE_LENGTH, examples=["Central Bank"])

    @field_validator("from_currency", "to_currency")
    @classmethod
    def valid_currency(cls, v: str) -> str:
        return canonical_currency(v)

    @model_validator(mode="after")
    def not_same(self) -> "ExchangeRateIn":
        if self.from_currency == self.to_currency:
            raise ValueError(SAME_CURRENCY_ERROR)
        return self


class ExchangeRateUpdateIn(BaseModel):
    rate: float = Field(..., gt=0, allow_inf_nan=False)
    source: Optional[str] = Field(None, max_length=MAX_SOURCE_LENGTH)


class PaginationMeta(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int


class ExchangeRateList(BaseModel):
    data: List[ExchangeRate]
    pagination: PaginationMeta


class ConversionOut(BaseModel):
    from_currency: str
    from_amount: float
    to_currency: str
    to_amount: float
    rate: float
    path: List[str]
    conversion_path: str
