"""Service error taxonomy and FastAPI exception handlers.

Domain code raises ``ServiceError`` subclasses; the handlers below turn them
into ``{"error": kind, "detail": message}`` JSON bodies with the matching
status code. Anything else becomes a generic 500.
"""

from __future__ import annotations

import logging
import math
from typing import Any, Dict, Optional

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette import status
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger("fxrates.errors")


class ServiceError(Exception):
    kind = "service_error"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def body(self) -> Dict[str, Any]:
        return {"error": self.kind, "detail": self.message}

    def headers(self) -> Optional[Dict[str, str]]:
        return None


class ValidationError(ServiceError):
    kind = "validation_error"
    status_code = status.HTTP_400_BAD_REQUEST


class InvalidAmount(ValidationError):
    kind = "invalid_amount"


class InvalidPagination(ValidationError):
    kind = "invalid_pagination"


class Unauthenticated(ServiceError):
    kind = "unauthenticated"
    status_code = status.HTTP_401_UNAUTHORIZED

    def headers(self) -> Optional[Dict[str, str]]:
        return {"WWW-Authenticate": "Bearer"}


class Forbidden(ServiceError):
    kind = "forbidden"
    status_code = status.HTTP_403_FORBIDDEN


class NotFound(ServiceError):
    kind = "not_found"
    status_code = status.HTTP_404_NOT_FOUND


class Conflict(ServiceError):
    kind = "conflict"
    status_code = status.HTTP_409_CONFLICT


class NotConvertible(ServiceError):
    kind = "not_convertible"
    status_code = 422


class RateLimitExceeded(ServiceError):
    kind = "rate_limit_exceeded"
    status_code = status.HTTP_429_TOO_MANY_REQUESTS

    def __init__(
        self, message: str, retry_after: float, limit_headers: Dict[str, str] | None = None
    ):
        super().__init__(message)
        self.retry_after = retry_after
        self.limit_headers = dict(limit_headers or {})

    @property
    def retry_after_seconds(self) -> int:
        return max(1, math.ceil(self.retry_after))

    def body(self) -> Dict[str, Any]:
        base = super().body()
        base["retry_after"] = self.retry_after_seconds
        return base

    def headers(self) -> Optional[Dict[str, str]]:
        headers = dict(self.limit_headers)
        headers["Retry-After"] = str(self.retry_after_seconds)
        return headers


def _response_headers(
    request: Request, own: Optional[Dict[str, str]] = None
) -> Optional[Dict[str, str]]:
    """Limiter headers for the request (if it was admitted) overlaid with ``own``."""
    decision = getattr(request.state, "rate_limit", None)
    if decision is None:
        return own
    headers = decision.headers()
    headers.update(own or {})
    return headers


def service_error_handler(request: Request, exc: ServiceError):  # type: ignore
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.body(),
        headers=_response_headers(request, exc.headers()),
    )


def http_error_handler(request: Request, exc: StarletteHTTPException):  # type: ignore
    if exc.status_code == status.HTTP_404_NOT_FOUND:
        content = {
            "error": "not_found",
            "detail": f"No route for {request.method} {request.url.path}",
        }
    else:
        content = {"error": "http_error", "detail": exc.detail}
    return JSONResponse(
        status_code=exc.status_code,
        content=content,
        headers=_response_headers(request, getattr(exc, "headers", None)),
    )


def validation_error_handler(request: Request, exc: RequestValidationError):  # type: ignore
    errors = [
        {"loc": list(e.get("loc", ())), "msg": e.get("msg"), "type": e.get("type")}
        for e in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": "validation_error", "detail": errors},
        headers=_response_headers(request),
    )


def server_error_handler(request: Request, exc: Exception):  # type: ignore
    logger.exception("unhandled exception")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "internal_error",
            "detail": "An unexpected error occurred.",
        },
    )
