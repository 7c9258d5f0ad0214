"""
Signed access tokens (JWT, HS256) carrying the user id and display name.

Tokens are stateless: nothing is stored server side, and expiry is the only
way a token stops working. Validation fails closed, so every error while
parsing or checking a token is reported as "invalid" and never raised.
"""

from __future__ import annotations

import base64
import binascii
import uuid
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

from jose import JWTError, jwt

from app.config import MIN_SECRET_LENGTH, Settings
from app.errors import ConfigurationError
from app.utils.logger import setup_logger

logger = setup_logger("token_service")

ALGORITHM = "HS256"
NAME_CLAIM = "name"
REQUIRED_CLAIMS = ("sub", "iss", "aud", "iat", "exp")


@dataclass(frozen=True)
class IssuedToken:
    token: str
    expires_at: datetime


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _has_canonical_signature(token: str) -> bool:
    """
    Check that the signature segment is strict, unpadded base64url.

    Lenient decoders ignore the spare low bits of the last character, which
    would let an altered token verify.
    """
    parts = token.split(".")
    if len(parts) != 3 or not parts[2]:
        return False
    segment = parts[2]
    try:
        raw = base64.b64decode(
            segment + "=" * (-len(segment) % 4), altchars=b"-_", validate=True
        )
    except (binascii.Error, ValueError):
        return False
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii") == segment


class TokenService:
    """Issues and validates access tokens. Holds only immutable configuration."""

    def __init__(
        self,
        secret_key: str,
        issuer: str,
        audience: str,
        lifetime_minutes: int,
        clock_skew_seconds: int = 0,
        clock: Callable[[], datetime] | None = None,
    ):
        if not secret_key or len(secret_key) < MIN_SECRET_LENGTH:
            raise ConfigurationError(
                f"Token signing secret must be at least {MIN_SECRET_LENGTH} characters long"
            )
        if not issuer or not issuer.strip():
            raise ConfigurationError("Token issuer must not be blank")
        if not audience or not audience.strip():
            raise ConfigurationError("Token audience must not be blank")
        if lifetime_minutes <= 0:
            raise ConfigurationError("Token lifetime must be a positive number of minutes")
        if clock_skew_seconds < 0:
            raise ConfigurationError("Token clock skew cannot be negative")

        self._secret_key = secret_key
        self.issuer = issuer
        self.audience = audience
        self.lifetime = timedelta(minutes=lifetime_minutes)
        self.clock_skew_seconds = clock_skew_seconds
        self._clock = clock or _utcnow

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs) -> TokenService:
        return cls(
            secret_key=settings.jwt_secret_key,
            issuer=settings.jwt_issuer,
            audience=settings.jwt_audience,
            lifetime_minutes=settings.jwt_expiration_minutes,
            clock_skew_seconds=settings.token_clock_skew_seconds,
            **kwargs,
        )

    def issue_token(self, user_id: uuid.UUID | str, username: str) -> IssuedToken:
        """Sign a token for ``user_id`` valid for the configured lifetime."""
        issued_at = self._clock().replace(microsecond=0)
        expires_at = issued_at + self.lifetime
        claims = {
            "sub": str(user_id),
            NAME_CLAIM: username,
            "iss": self.issuer,
            "aud": self.audience,
            "iat": int(issued_at.timestamp()),
            "exp": int(expires_at.timestamp()),
        }
        token = jwt.encode(claims, self._secret_key, algorithm=ALGORITHM)
        return IssuedToken(token=token, expires_at=expires_at)

    def issue(self, user_id: uuid.UUID | str, username: str) -> str:
        return self.issue_token(user_id, username).token

    def claims_of(self, token: str | None) -> dict[str, Any] | None:
        """Return the claims of a fully validated token, else None."""
        if not token or not isinstance(token, str) or not token.strip():
            return None
        if not _has_canonical_signature(token):
            logger.debug("Token rejected: malformed signature segment")
            return None
        try:
            claims = jwt.decode(
                token,
                self._secret_key,
                algorithms=[ALGORITHM],
                audience=self.audience,
                issuer=self.issuer,
                options={
                    "leeway": self.clock_skew_seconds,
                    "require_sub": True,
                    "require_iat": True,
                    "require_exp": True,
                    "require_iss": True,
                    "require_aud": True,
                },
            )
        except JWTError as e:
            logger.debug(f"Token rejected: {type(e).__name__}")
            return None
        except Exception as e:
            logger.warning(f"Token rejected by unexpected error: {type(e).__name__}")
            return None

        if any(claim not in claims for claim in REQUIRED_CLAIMS):
            return None
        try:
            expires = int(claims["exp"])
        except (TypeError, ValueError):
            return None
        # Expiry is checked again against our own clock so tests and callers
        # with an injected clock see the same rule: valid only while now < exp.
        if self._clock().timestamp() >= expires + self.clock_skew_seconds:
            logger.debug("Token rejected: expired")
            return None
        return claims

    def validate(self, token: str | None) -> bool:
        return self.claims_of(token) is not None

    def subject_of(self, token: str | None) -> uuid.UUID | None:
        """User id of a fully validated token; None if invalid or malformed."""
        claims = self.claims_of(token)
        if claims is None:
            return None
        try:
            return uuid.UUID(str(claims["sub"]))
        except (KeyError, ValueError, TypeError):
            return None
