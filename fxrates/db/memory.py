"""In-process rate backend.

Rows live in a dict keyed by the ordered (from, to) pair. Ids come from a
counter so they keep increasing even after deletes, matching the SQLite
AUTOINCREMENT behaviour.
"""

from __future__ import annotations

import itertools
import threading
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from fxrates.core.errors import Conflict
from fxrates.models.rates import ExchangeRate

Pair = Tuple[str, str]


class MemoryRateBackend:
    def __init__(self) -> None:
        self._rows: Dict[Pair, ExchangeRate] = {}
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    def get(self, from_currency: str, to_currency: str) -> Optional[ExchangeRate]:
        return self._rows.get((from_currency, to_currency))

    def insert(
        self,
        from_currency: str,
        to_currency: str,
        rate: float,
        source: Optional[str],
        now: datetime,
    ) -> ExchangeRate:
        key = (from_currency, to_currency)
        with self._lock:
            if key in self._rows:
                raise Conflict(
                    f"Exchange rate already exists for {from_currency}/{to_currency}"
                )
            row = ExchangeRate(
                id=next(self._ids),
                from_currency=from_currency,
                to_currency=to_currency,
                rate=rate,
                source=source,
                created_at=now,
                updated_at=now,
            )
            self._rows[key] = row
            return row

    def update(
        self,
        from_currency: str,
        to_currency: str,
        rate: float,
        source: Optional[str],
        now: datetime,
    ) -> Optional[ExchangeRate]:
        key = (from_currency, to_currency)
        with self._lock:
            current = self._rows.get(key)
            if current is None:
                return None
            changes = {"rate": rate, "updated_at": now}
            if source is not None:
                changes["source"] = source
            row = current.model_copy(update=changes)
            self._rows[key] = row
            return row

    def delete(self, from_currency: str, to_currency: str) -> bool:
        with self._lock:
            return self._rows.pop((from_currency, to_currency), None) is not None

    def list(
        self, from_currency: Optional[str] = None, to_currency: Optional[str] = None
    ) -> List[ExchangeRate]:
        with self._lock:
            rows = list(self._rows.values())
        if from_currency:
            rows = [r for r in rows if r.from_currency == from_currency]
        if to_currency:
            rows = [r for r in rows if r.to_currency == to_currency]
        return sorted(rows, key=lambda r: r.id)

    def count(self) -> int:
        return len(self._rows)
