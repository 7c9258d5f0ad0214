"""
Password hashing and verification with bcrypt.

Hashes are self-describing (``$2b$<cost>$<salt><digest>``) and salted freshly
on every call, so hashing the same password twice yields two different
values. Verification goes through ``bcrypt.checkpw``, which compares in
constant time.
"""

from __future__ import annotations

import secrets
from functools import cached_property

import bcrypt

from app.config import MAX_HASH_ROUNDS, MIN_HASH_ROUNDS
from app.errors import ConfigurationError, InvalidInputError

# bcrypt only looks at the first 72 bytes of its input.
MAX_PASSWORD_BYTES = 72
DEFAULT_ROUNDS = 12


class PasswordHasher:
    """bcrypt hasher with a fixed cost factor. Thread-safe."""

    def __init__(self, rounds: int = DEFAULT_ROUNDS):
        if not isinstance(rounds, int) or not MIN_HASH_ROUNDS <= rounds <= MAX_HASH_ROUNDS:
            raise ConfigurationError(
                f"bcrypt rounds must be between {MIN_HASH_ROUNDS} and {MAX_HASH_ROUNDS}"
            )
        self.rounds = rounds

    @cached_property
    def dummy_hash(self) -> str:
        """A hash of a random secret at this cost, for checks with no stored hash."""
        return self.hash(secrets.token_urlsafe(32))

    def hash(self, plaintext: str) -> str:
        """
        Hash a password.

        Raises ``InvalidInputError`` for empty or whitespace-only input and
        for input longer than bcrypt can take without silently truncating.
        """
        if plaintext is None or not plaintext.strip():
            raise InvalidInputError("Password cannot be empty.")
        encoded = plaintext.encode("utf-8")
        if len(encoded) > MAX_PASSWORD_BYTES:
            raise InvalidInputError(
                f"Password cannot be longer than {MAX_PASSWORD_BYTES} bytes."
            )
        return bcrypt.hashpw(encoded, bcrypt.gensalt(rounds=self.rounds)).decode("utf-8")

    def verify(self, plaintext: str, hash_value: str) -> bool:
        """Return True only for a matching password; never raises."""
        if not plaintext or not plaintext.strip():
            return False
        if not hash_value or not hash_value.strip():
            return False
        try:
            encoded = plaintext.encode("utf-8")
            if len(encoded) > MAX_PASSWORD_BYTES:
                return False
            return bcrypt.checkpw(encoded, hash_value.encode("utf-8"))
        except (ValueError, TypeError, AttributeError, UnicodeError):
            return False
