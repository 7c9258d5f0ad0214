"""
Authentication dependencies for FastAPI route protection.

``require_identity`` is attached as a router-level dependency on every
protected router. It runs before any handler of that router, rejects the
request with 401 unless it carries a valid bearer token, and otherwise binds
an ``Identity`` to ``request.state.identity``. Handlers read it back through
``get_identity``; FastAPI caches the dependency per request, so both calls
see the same object.
"""

import uuid
from dataclasses import dataclass, field
from typing import Any

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.dependencies.services import get_token_service
from app.errors import UNAUTHENTICATED, AppError
from app.services.token_service import NAME_CLAIM, TokenService
from app.utils.logger import setup_logger

logger = setup_logger("dependencies.auth")

# auto_error=False so a missing header gets the same 401 as a bad token.
security = HTTPBearer(auto_error=False)

BEARER_CHALLENGE = {"WWW-Authenticate": "Bearer"}


@dataclass(frozen=True)
class Identity:
    user_id: uuid.UUID
    username: str
    # Claims of the token that was validated for this request.
    claims: dict[str, Any] = field(default_factory=dict, compare=False)


def _unauthenticated() -> AppError:
    return AppError(UNAUTHENTICATED, headers=BEARER_CHALLENGE)


async def require_identity(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    token_service: TokenService = Depends(get_token_service),
) -> Identity:
    """
    Dependency resolving the acting user from ``Authorization: Bearer <token>``.

    The scheme is matched case-insensitively. Missing, malformed or invalid
    credentials raise ``AppError(UNAUTHENTICATED)``.
    """
    if credentials is None or not credentials.credentials:
        logger.debug(f"No bearer token on {request.method} {request.url.path}")
        raise _unauthenticated()

    claims = token_service.claims_of(credentials.credentials.strip())
    if claims is None:
        logger.info(f"Rejected bearer token on {request.method} {request.url.path}")
        raise _unauthenticated()

    try:
        user_id = uuid.UUID(str(claims["sub"]))
    except (KeyError, ValueError):
        raise _unauthenticated() from None

    identity = Identity(
        user_id=user_id,
        username=str(claims.get(NAME_CLAIM) or ""),
        claims=claims,
    )
    request.state.identity = identity
    return identity


async def get_identity(identity: Identity = Depends(require_identity)) -> Identity:
    """The identity bound by ``require_identity`` for this request."""
    return identity
