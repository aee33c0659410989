from __future__ import annotations

"""Persistence backend contract for the rate store.

Backends only move rows in and out; validation, normalization, per-pair
locking and timestamp policy live in ``RateStore``.
"""
from datetime import datetime
from typing import List, Optional, Protocol

from fxrates.models.rates import ExchangeRate


class RateBackend(Protocol):
    def get(self, from_currency: str, to_currency: str) -> Optional[ExchangeRate]: ...

    def insert(
        self,
        from_currency: str,
        to_currency: str,
        rate: float,
        source: Optional[str],
        now: datetime,
    ) -> ExchangeRate:
        """Store a new row; raise ``Conflict`` if the pair already exists."""
        ...

    def update(
        self,
        from_currency: str,
        to_currency: str,
        rate: float,
        source: Optional[str],
        now: datetime,
    ) -> Optional[ExchangeRate]:
        """Apply the change and return the new row, or None if the pair is absent.

        ``source=None`` keeps the stored source.
        """
        ...

    def delete(self, from_currency: str, to_currency: str) -> bool: ...

    def list(
        self, from_currency: Optional[str] = None, to_currency: Optional[str] = None
    ) -> List[ExchangeRate]:
        """Return matching rows ordered by id ascending."""
        ...

    def count(self) -> int: ...
