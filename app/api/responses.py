"""
Turning service results into HTTP responses.
"""

from typing import TypeVar

from app.dependencies.auth import BEARER_CHALLENGE
from app.errors import AppError, ErrorKind, ServiceResult
from app.schemas import ErrorResponse

T = TypeVar("T")

# Documented failure bodies for the OpenAPI schema.
ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Validation failed"},
    401: {"model": ErrorResponse, "description": "Missing or invalid credentials"},
}
NOT_FOUND_RESPONSE = {404: {"model": ErrorResponse, "description": "Task not found"}}


def raise_for_result(result: ServiceResult[T]) -> T:
    """Return the value of a successful result, else raise ``AppError`` for its error."""
    if result.ok:
        return result.value
    error = result.error
    match error.kind:
        case ErrorKind.AUTHENTICATION:
            raise AppError(error, headers=BEARER_CHALLENGE)
        case _:
            raise AppError(error)
