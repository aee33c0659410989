"""Shared request dependencies.

Every route runs ``require(operation)``: authenticate once, authorize the
operation (401/403), then charge the caller against the rate limiter (429).
Collaborators are taken from ``app.state`` so each app instance owns its own
store, limiter and credential validator.
"""

from __future__ import annotations

import hashlib
from typing import Callable, Optional

from fastapi import Depends, Header, Request, Response

from fxrates.core.errors import RateLimitExceeded
from fxrates.core.rate_limit import RateLimiter
from fxrates.core.security import AuthContext, Operation, authenticate, authorize
from fxrates.services.rates.conversion import ConversionResolver
from fxrates.services.rates.store import RateStore


def get_store(request: Request) -> RateStore:
    return request.app.state.rate_store


def get_resolver(request: Request) -> ConversionResolver:
    return request.app.state.conversion_resolver


def get_auth_context(
    request: Request,
    authorization: Optional[str] = Header(None, description="Bearer credential"),
) -> AuthContext:
    return authenticate(authorization, request.app.state.credential_validator)


def client_identity(request: Request, ctx: AuthContext) -> str:
    if ctx.subject:
        # Never keep raw tokens as limiter keys (they show up in logs)
        digest = hashlib.sha256(ctx.subject.encode("utf-8")).hexdigest()[:16]
        return f"token:{digest}"
    host = request.client.host if request.client else "unknown"
    return f"ip:{host}"


def require(operation: Operation) -> Callable[..., AuthContext]:
    def dependency(
        request: Request,
        response: Response,
        ctx: AuthContext = Depends(get_auth_context),
    ) -> AuthContext:
        authorize(ctx, operation)
        limiter: Optional[RateLimiter] = request.app.state.rate_limiter
        if limiter is not None:
            decision = limiter.admit(client_identity(request, ctx))
            # error handlers copy the X-RateLimit-* headers from here
            request.state.rate_limit = decision
            if not decision.allowed:
                raise RateLimitExceeded(
                    "Too many requests, retry later",
                    retry_after=decision.retry_after,
                    limit_headers=decision.headers(),
                )
            response.headers.update(decision.headers())
        return ctx

    return dependency
