"""
Error types shared by the service layer and the HTTP boundary.

Services never raise for expected failures. They return a ``ServiceResult``
whose ``error`` is one of a small set of ``ServiceError`` constants, and the
API layer maps ``ErrorKind`` to an HTTP status. Only unexpected faults travel
as exceptions and are caught once by the application-level handler.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from http import HTTPStatus
from typing import Generic, TypeVar

T = TypeVar("T")


class ErrorKind(str, Enum):
    VALIDATION = "validation_error"
    AUTHENTICATION = "authentication_error"
    # Ownership mismatches and true absence share this kind.
    NOT_FOUND = "not_found"
    UNEXPECTED = "unexpected_error"

    @property
    def status(self) -> HTTPStatus:
        return _KIND_STATUS[self]


_KIND_STATUS = {
    ErrorKind.VALIDATION: HTTPStatus.BAD_REQUEST,
    ErrorKind.AUTHENTICATION: HTTPStatus.UNAUTHORIZED,
    ErrorKind.NOT_FOUND: HTTPStatus.NOT_FOUND,
    ErrorKind.UNEXPECTED: HTTPStatus.INTERNAL_SERVER_ERROR,
}


@dataclass(frozen=True, slots=True)
class ServiceError:
    kind: ErrorKind
    code: str
    message: str

    @property
    def status(self) -> HTTPStatus:
        return self.kind.status


@dataclass(frozen=True)
class ServiceResult(Generic[T]):
    value: T | None = None
    error: ServiceError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T) -> ServiceResult[T]:
        return cls(value=value)

    @classmethod
    def failure(cls, error: ServiceError) -> ServiceResult[T]:
        return cls(error=error)


UNAUTHENTICATED = ServiceError(
    ErrorKind.AUTHENTICATION,
    "unauthenticated",
    "Authentication is required to access this resource.",
)

INTERNAL_ERROR = ServiceError(
    ErrorKind.UNEXPECTED,
    "internal_error",
    "An internal server error occurred.",
)


class AppError(Exception):
    """Carries a ``ServiceError`` from a route handler to the exception handler."""

    def __init__(self, error: ServiceError, headers: dict[str, str] | None = None):
        super().__init__(error.code)
        self.error = error
        self.headers = headers


class ConfigurationError(RuntimeError):
    """Fatal start-up problem: missing or weak security configuration."""


class InvalidInputError(ValueError):
    """Input rejected by a component before any work is done."""


__all__ = [
    "AppError",
    "ConfigurationError",
    "ErrorKind",
    "INTERNAL_ERROR",
    "InvalidInputError",
    "ServiceError",
    "ServiceResult",
    "UNAUTHENTICATED",
]
