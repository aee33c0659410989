"""Access control: credential -> AuthContext -> authorization decision.

The bearer token is resolved to a ``Role`` exactly once per request by a
``CredentialValidator``; routes then authorize an ``Operation`` against the
resulting ``AuthContext`` instead of re-inspecting the raw header.

Token issuance is handled elsewhere; ``StaticTokenValidator`` only knows the
tokens listed in settings.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, Optional, Protocol

from .errors import Forbidden, Unauthenticated

logger = logging.getLogger("fxrates.security")


class Role(str, Enum):
    ANONYMOUS = "anonymous"
    USER = "user"
    ADMIN = "admin"


class Operation(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    READ = "read"
    CONVERT = "convert"


# Operations absent from this map are open to every role.
REQUIRED_ROLE: Dict[Operation, Role] = {
    Operation.CREATE: Role.ADMIN,
    Operation.UPDATE: Role.ADMIN,
    Operation.DELETE: Role.ADMIN,
}


@dataclass(frozen=True)
class AuthContext:
    role: Role = Role.ANONYMOUS
    subject: Optional[str] = None
    credential_present: bool = False

    @property
    def is_authenticated(self) -> bool:
        return self.role is not Role.ANONYMOUS


ANONYMOUS = AuthContext()


class CredentialValidator(Protocol):
    def resolve(self, token: str) -> Optional[Role]: ...


class StaticTokenValidator:
    """Resolve tokens against fixed admin / user token sets."""

    def __init__(self, admin_tokens: Iterable[str] = (), user_tokens: Iterable[str] = ()):
        self._roles: Dict[str, Role] = {t: Role.USER for t in user_tokens if t}
        # Admin wins if a token is listed in both sets
        self._roles.update({t: Role.ADMIN for t in admin_tokens if t})

    def resolve(self, token: str) -> Optional[Role]:
        return self._roles.get(token)


def parse_bearer(header: Optional[str]) -> Optional[str]:
    """Return the token of an ``Authorization: Bearer <token>`` header, else None."""
    if not header:
        return None
    parts = header.strip().split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        return None
    return parts[1]


def authenticate(header: Optional[str], validator: CredentialValidator) -> AuthContext:
    token = parse_bearer(header)
    if token is None:
        return AuthContext(credential_present=bool(header))
    role = validator.resolve(token)
    if role is None or role is Role.ANONYMOUS:
        logger.debug("unrecognised bearer credential")
        return AuthContext(credential_present=True)
    return AuthContext(role=role, subject=token, credential_present=True)


def authorize(ctx: AuthContext, operation: Operation) -> Role:
    required = REQUIRED_ROLE.get(operation)
    if required is None or ctx.role is required:
        return ctx.role
    if not ctx.is_authenticated:
        logger.warning("unauthenticated %s attempt", operation.value)
        if ctx.credential_present:
            raise Unauthenticated("Invalid or expired credential")
        raise Unauthenticated("Authentication required")
    logger.warning("forbidden %s attempt by role=%s", operation.value, ctx.role.value)
    raise Forbidden("Insufficient permissions")
