"""Currency conversion over stored directional rates.

Resolution order:
    1. Same currency -> identity, one-node path.
    2. Direct (from, to) rate.
    3. Breadth-first search over a snapshot of all rates, at most ``max_hops``
       edges. Edges leave each currency in store order (id ascending) and the
       first path found at the shallowest depth is used.

Rates may change between the direct lookup and the snapshot; the result is
computed from whatever each read returned.
"""

from __future__ import annotations

import logging
import math
from collections import deque
from dataclasses import dataclass
from typing import Deque, Dict, List, Optional, Protocol, Tuple

from fxrates.core.errors import InvalidAmount, NotConvertible, NotFound
from fxrates.models.constants import RATE_SCALE
from fxrates.models.rates import ExchangeRate
from fxrates.services.money import product, quantize, round_amount, to_decimal
from .store import normalize_currency


PATH_SEPARATOR = "→"


class SupportsRateLookup(Protocol):
    def find(self, from_currency: str, to_currency: str) -> ExchangeRate: ...

    def list(
        self, from_currency: Optional[str] = None, to_currency: Optional[str] = None
    ) -> List[ExchangeRate]: ...


@dataclass(frozen=True)
class ConversionResult:
    from_currency: str
    to_currency: str
    from_amount: float
    to_amount: float
    rate: float
    path: Tuple[str, ...]

    @property
    def conversion_path(self) -> str:
        return PATH_SEPARATOR.join(self.path)

    @property
    def hops(self) -> int:
        return len(self.path) - 1


class ConversionResolver:
    def __init__(self, store: SupportsRateLookup, max_hops: int = 2):
        if max_hops < 1:
            raise ValueError("max_hops must be at least 1")
        self._store = store
        self.max_hops = max_hops
        self._logger = logging.getLogger("fxrates.conversion")

    def convert(self, from_currency: str, to_currency: str, amount: float) -> ConversionResult:
        if isinstance(amount, bool) or not isinstance(amount, (int, float)):
            raise InvalidAmount("Amount must be a number")
        if not math.isfinite(amount) or amount <= 0:
            raise InvalidAmount("Amount must be greater than 0")
        source = normalize_currency(from_currency)
        target = normalize_currency(to_currency)

        if source == target:
            return self._result(source, target, amount, [], (source,))

        try:
            direct = self._store.find(source, target)
        except NotFound:
            direct = None
        if direct is not None:
            return self._result(source, target, amount, [direct.rate], (source, target))

        found = self._search(source, target)
        if found is None:
            self._logger.info("no conversion path %s->%s", source, target)
            raise NotConvertible(
                f"No exchange rate path from {source} to {target} "
                f"within {self.max_hops} hops"
            )
        rates, path = found
        return self._result(source, target, amount, rates, path)

    # Internal --------------------------------------------------
    def _search(
        self, source: str, target: str
    ) -> Optional[Tuple[List[float], Tuple[str, ...]]]:
        edges: Dict[str, List[ExchangeRate]] = {}
        for r in self._store.list():
            edges.setdefault(r.from_currency, []).append(r)

        visited = {source}
        queue: Deque[Tuple[str, Tuple[str, ...], List[float]]] = deque(
            [(source, (source,), [])]
        )
        while queue:
            node, path, rates = queue.popleft()
            if len(path) - 1 >= self.max_hops:
                continue
            for edge in edges.get(node, ()):
                nxt = edge.to_currency
                if nxt in visited:
                    continue
                next_path = path + (nxt,)
                next_rates = rates + [edge.rate]
                if nxt == target:
                    return next_rates, next_path
                visited.add(nxt)
                queue.append((nxt, next_path, next_rates))
        return None

    def _result(
        self,
        source: str,
        target: str,
        amount: float,
        rates: List[float],
        path: Tuple[str, ...],
    ) -> ConversionResult:
        composed = product(rates)
        to_amount = round_amount(to_decimal(amount) * composed, target)
        rate = quantize(composed, RATE_SCALE)
        if not (math.isfinite(to_amount) and math.isfinite(rate)):
            raise InvalidAmount("Converted amount is out of range")
        self._logger.debug("converted %s %s via %s", amount, source, PATH_SEPARATOR.join(path))
        return ConversionResult(
            from_currency=source,
            to_currency=target,
            from_amount=float(amount),
            to_amount=to_amount,
            rate=rate,
            path=path,
        )
