"""
Login and registration.

Both operations return a ``ServiceResult``; expected failures are one of the
``ServiceError`` constants below and are never raised. An unknown username and
a wrong password produce the very same ``INVALID_CREDENTIALS`` error so the
response does not reveal which usernames exist.
"""

from __future__ import annotations

import asyncio
import uuid
from dataclasses import dataclass
from datetime import datetime

from app.errors import ErrorKind, ServiceError, ServiceResult
from app.services.password_hasher import MAX_PASSWORD_BYTES, PasswordHasher
from app.services.stores import DuplicateUsernameError, UserStore
from app.services.token_service import TokenService
from app.utils.logger import setup_logger

logger = setup_logger("auth_service")

MIN_PASSWORD_LENGTH = 6
MAX_USERNAME_LENGTH = 100

MISSING_USERNAME = ServiceError(
    ErrorKind.VALIDATION, "missing_username", "Username is required."
)
MISSING_PASSWORD = ServiceError(
    ErrorKind.VALIDATION, "missing_password", "Password is required."
)
USERNAME_TOO_LONG = ServiceError(
    ErrorKind.VALIDATION,
    "username_too_long",
    f"Username cannot be longer than {MAX_USERNAME_LENGTH} characters.",
)
PASSWORD_TOO_SHORT = ServiceError(
    ErrorKind.VALIDATION,
    "password_too_short",
    f"Password must be at least {MIN_PASSWORD_LENGTH} characters long.",
)
PASSWORD_TOO_LONG = ServiceError(
    ErrorKind.VALIDATION,
    "password_too_long",
    f"Password cannot be longer than {MAX_PASSWORD_BYTES} bytes.",
)
USERNAME_TAKEN = ServiceError(
    ErrorKind.VALIDATION, "username_taken", "Username already exists."
)
INVALID_CREDENTIALS = ServiceError(
    ErrorKind.AUTHENTICATION, "invalid_credentials", "Invalid username or password."
)


@dataclass(frozen=True)
class LoginSuccess:
    token: str
    user_id: uuid.UUID
    username: str
    expires_at: datetime


def _is_blank(value: str | None) -> bool:
    return value is None or not value.strip()


class AuthService:
    def __init__(
        self,
        user_store: UserStore,
        hasher: PasswordHasher,
        token_service: TokenService,
    ):
        self.user_store = user_store
        self.hasher = hasher
        self.token_service = token_service

    async def login(
        self, username: str | None, password: str | None
    ) -> ServiceResult[LoginSuccess]:
        """Check credentials and issue a token."""
        if _is_blank(username):
            return ServiceResult.failure(MISSING_USERNAME)
        if _is_blank(password):
            return ServiceResult.failure(MISSING_PASSWORD)

        user = await self.user_store.find_by_username(username)
        if user is None:
            # Spend the same bcrypt work as a real check.
            await asyncio.to_thread(
                lambda: self.hasher.verify(password, self.hasher.dummy_hash)
            )
            logger.info("Login failed: unknown user")
            return ServiceResult.failure(INVALID_CREDENTIALS)

        # bcrypt is slow on purpose; keep it off the event loop.
        matches = await asyncio.to_thread(
            self.hasher.verify, password, user.hashed_password
        )
        if not matches:
            logger.info(f"Login failed for user {user.id}: wrong password")
            return ServiceResult.failure(INVALID_CREDENTIALS)

        logger.info(f"User {user.id} logged in")
        return ServiceResult.success(self._grant(user.id, user.username))

    async def register(
        self, username: str | None, password: str | None
    ) -> ServiceResult[LoginSuccess]:
        """
        Create an account and log it in.

        Password rules are checked before the store is touched. The username
        is checked for existence first, and the store's own uniqueness
        constraint settles the race when two registrations collide.
        """
        if _is_blank(username):
            return ServiceResult.failure(MISSING_USERNAME)
        if _is_blank(password):
            return ServiceResult.failure(MISSING_PASSWORD)
        if len(username) > MAX_USERNAME_LENGTH:
            return ServiceResult.failure(USERNAME_TOO_LONG)
        if len(password) < MIN_PASSWORD_LENGTH:
            return ServiceResult.failure(PASSWORD_TOO_SHORT)
        if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
            return ServiceResult.failure(PASSWORD_TOO_LONG)

        if await self.user_store.exists_by_username(username):
            return ServiceResult.failure(USERNAME_TAKEN)

        hashed_password = await asyncio.to_thread(self.hasher.hash, password)
        try:
            user = await self.user_store.create_user(username, hashed_password)
        except DuplicateUsernameError:
            return ServiceResult.failure(USERNAME_TAKEN)

        logger.info(f"Registered user {user.id}")
        return ServiceResult.success(self._grant(user.id, user.username))

    def _grant(self, user_id: uuid.UUID, username: str) -> LoginSuccess:
        issued = self.token_service.issue_token(user_id, username)
        return LoginSuccess(
            token=issued.token,
            user_id=user_id,
            username=username,
            expires_at=issued.expires_at,
        )
