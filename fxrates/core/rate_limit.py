"""Per-client sliding-window request limiter.

Each client gets a window that opens on its first request and lasts
``window_seconds``. Up to ``max_requests`` requests are admitted inside the
window; further ones are rejected until the window elapses. A rejected
request still counts but never moves the window start.

Elapsed windows are dropped at most once per window length, so idle clients
do not accumulate.
"""

from __future__ import annotations

import logging
import math
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

logger = logging.getLogger("fxrates.rate_limit")


@dataclass
class _Window:
    count: int
    started_at: float


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    limit: int
    remaining: int
    reset_after: float  # seconds until the current window closes
    retry_after: float = 0.0

    def headers(self) -> Dict[str, str]:
        return {
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": str(self.remaining),
            "X-RateLimit-Reset": str(max(0, math.ceil(self.reset_after))),
        }


class RateLimiter:
    def __init__(
        self,
        max_requests: int = 100,
        window_seconds: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        if max_requests < 1:
            raise ValueError("max_requests must be at least 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")
        self.max_requests = max_requests
        self.window_seconds = float(window_seconds)
        self._clock = clock
        self._windows: Dict[str, _Window] = {}
        self._last_purge: Optional[float] = None
        self._lock = threading.Lock()

    def admit(self, client_id: str) -> RateLimitDecision:
        with self._lock:
            now = self._clock()
            if self._last_purge is None or now - self._last_purge >= self.window_seconds:
                self._purge(now)
            window = self._windows.get(client_id)
            if window is None or now >= window.started_at + self.window_seconds:
                window = _Window(count=1, started_at=now)
                self._windows[client_id] = window
            else:
                window.count += 1
            reset_after = window.started_at + self.window_seconds - now
            if window.count <= self.max_requests:
                return RateLimitDecision(
                    allowed=True,
                    limit=self.max_requests,
                    remaining=self.max_requests - window.count,
                    reset_after=reset_after,
                )
        logger.warning("rate limit exceeded for client=%s", client_id)
        return RateLimitDecision(
            allowed=False,
            limit=self.max_requests,
            remaining=0,
            reset_after=reset_after,
            retry_after=reset_after,
        )

    def _purge(self, now: float) -> None:
        expired = [
            key
            for key, window in self._windows.items()
            if now >= window.started_at + self.window_seconds
        ]
        for key in expired:
            del self._windows[key]
        self._last_purge = now

    def reset(self) -> None:
        with self._lock:
            self._windows.clear()
            self._last_purge = None

    def __len__(self) -> int:
        return len(self._windows)
