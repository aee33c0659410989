"""Seeding helpers for starter exchange rates.

``seed_rates`` inserts a baseline set of directional rates. Pairs that
already exist are left untouched so this can be safely re-run.
"""

from __future__ import annotations
from typing import Iterable, Tuple

from fxrates.core.errors import Conflict
from fxrates.services.rates.store import RateStore

DEFAULT_SOURCE = "Central Bank"

DEFAULT_RATES: Tuple[Tuple[str, str, float], ...] = (
    ("USD", "EUR", 0.92),
    ("USD", "GBP", 0.79),
    ("USD", "JPY", 149.50),
    ("EUR", "USD", 1.09),
    ("EUR", "GBP", 0.86),
    ("GBP", "USD", 1.27),
    ("USD", "CNY", 7.24),
    ("USD", "CHF", 0.88),
)


def seed_rates(
    store: RateStore,
    rates: Iterable[Tuple[str, str, float]] = DEFAULT_RATES,
    source: str = DEFAULT_SOURCE,
) -> int:
    """Insert missing rates and return how many were added."""
    added = 0
    for from_currency, to_currency, rate in rates:
        try:
            store.create(from_currency, to_currency, rate, source=source)
        except Conflict:
            # Existing rows are operator-controlled
            continue
        added += 1
    return added
