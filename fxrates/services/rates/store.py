from __future__ import annotations

"""Rate store: validated, per-pair serialized access to directional rates.

Design:
    - Wraps an injected ``RateBackend`` (memory dict for tests, SQLite for
      production); one store instance per application.
    - Currency codes are normalized (strip + upper) before every lookup so
      ``usd``/``USD`` address the same row.
    - Mutations on the same ordered pair take the same lock; different pairs
      never contend. Reads go straight to the backend and see every committed
      write.
    - ``updated_at`` never moves backwards even if the clock does.
"""
import logging
import threading
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional, Tuple

from fxrates.core.errors import NotFound, ValidationError
from fxrates.models.rates import (
    SAME_CURRENCY_ERROR,
    ExchangeRate,
    canonical_currency,
    check_rate,
)
from .base import RateBackend

logger = logging.getLogger("fxrates.store")

Pair = Tuple[str, str]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def normalize_currency(value: str) -> str:
    try:
        return canonical_currency(value)
    except ValueError as e:
        raise ValidationError(str(e)) from e


def _normalize_rate(value: float) -> float:
    try:
        return check_rate(value)
    except ValueError as e:
        raise ValidationError(str(e)) from e


class RateStore:
    def __init__(self, backend: RateBackend, clock: Callable[[], datetime] = utc_now):
        self._backend = backend
        self._clock = clock
        self._locks: Dict[Pair, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    # Internal --------------------------------------------------
    def _pair(self, from_currency: str, to_currency: str) -> Pair:
        return normalize_currency(from_currency), normalize_currency(to_currency)

    def _lock_for(self, pair: Pair) -> threading.Lock:
        with self._locks_guard:
            lock = self._locks.get(pair)
            if lock is None:
                lock = self._locks[pair] = threading.Lock()
            return lock

    @staticmethod
    def _not_found(pair: Pair) -> NotFound:
        return NotFound(f"Exchange rate not found for {pair[0]}/{pair[1]}")

    # Public API -----------------------------------------------
    def create(
        self,
        from_currency: str,
        to_currency: str,
        rate: float,
        source: Optional[str] = None,
    ) -> ExchangeRate:
        pair = self._pair(from_currency, to_currency)
        if pair[0] == pair[1]:
            raise ValidationError(SAME_CURRENCY_ERROR)
        rate = _normalize_rate(rate)
        with self._lock_for(pair):
            # Backend raises Conflict on a duplicate pair
            created = self._backend.insert(pair[0], pair[1], rate, source, self._clock())
        logger.info(
            "created rate %s->%s rate=%s id=%s", pair[0], pair[1], rate, created.id
        )
        return created

    def update(
        self,
        from_currency: str,
        to_currency: str,
        rate: float,
        source: Optional[str] = None,
    ) -> ExchangeRate:
        pair = self._pair(from_currency, to_currency)
        rate = _normalize_rate(rate)
        with self._lock_for(pair):
            current = self._backend.get(*pair)
            if current is None:
                raise self._not_found(pair)
            now = max(self._clock(), current.updated_at)
            updated = self._backend.update(pair[0], pair[1], rate, source, now)
        if updated is None:
            raise self._not_found(pair)
        logger.info("updated rate %s->%s rate=%s", pair[0], pair[1], rate)
        return updated

    def delete(self, from_currency: str, to_currency: str) -> None:
        pair = self._pair(from_currency, to_currency)
        with self._lock_for(pair):
            removed = self._backend.delete(*pair)
        if not removed:
            raise self._not_found(pair)
        logger.info("deleted rate %s->%s", pair[0], pair[1])

    def find(self, from_currency: str, to_currency: str) -> ExchangeRate:
        pair = self._pair(from_currency, to_currency)
        found = self._backend.get(*pair)
        if found is None:
            raise self._not_found(pair)
        return found

    def list(
        self, from_currency: Optional[str] = None, to_currency: Optional[str] = None
    ) -> List[ExchangeRate]:
        """All rates matching the optional filters, ordered by id ascending."""
        return self._backend.list(
            normalize_currency(from_currency) if from_currency else None,
            normalize_currency(to_currency) if to_currency else None,
        )

    def count(self) -> int:
        return self._backend.count()
