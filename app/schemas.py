import uuid
from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from app.models.task import TaskStatus


class ApiModel(BaseModel):
    # camelCase on the wire, snake_case accepted on input
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, from_attributes=True
    )


def _parse_status(v: Any) -> Any:
    if v is None or isinstance(v, TaskStatus):
        return v
    parsed = TaskStatus.parse(v) if isinstance(v, str) else None
    if parsed is None:
        allowed = ", ".join(s.value for s in TaskStatus)
        raise ValueError(f"Status must be one of: {allowed}")
    return parsed


# --- Authentication ---
class LoginRequest(ApiModel):
    # Presence and length rules are enforced by AuthService so that they
    # come back as its error codes rather than generic validation errors.
    username: str | None = Field(None, description="Username for login")
    password: str | None = Field(None, description="Password for login")


class RegisterRequest(ApiModel):
    username: str | None = Field(None, description="Username for the new account")
    password: str | None = Field(None, description="Password for the new account")


class AuthResponse(ApiModel):
    token: str = Field(..., description="Signed bearer token")
    user_id: uuid.UUID
    username: str
    expires_at: datetime = Field(..., description="Token expiry (UTC)")


class UserInfo(ApiModel):
    id: uuid.UUID = Field(..., description="User unique identifier")
    username: str = Field(..., description="Username")


class MessageResponse(ApiModel):
    message: str = Field(..., description="Response message")


class ProbeResponse(ApiModel):
    message: str
    user_id: uuid.UUID | None = None
    username: str | None = None
    claims: dict[str, Any] | None = None


# --- Tasks ---
class TaskCreate(ApiModel):
    """
    Body of ``POST /api/tasks``.

    There is deliberately no owner field: unknown keys such as ``ownerId``
    are ignored and the owner always comes from the authenticated identity.
    """

    title: str | None = Field(None, description="Task title (required)")
    description: str | None = Field(None, description="Optional details")
    status: TaskStatus | None = Field(None, description="Initial status, ToDo by default")

    @field_validator("status", mode="before")
    @classmethod
    def normalize_status(cls, v: Any) -> Any:
        return _parse_status(v)


class TaskUpdate(ApiModel):
    """Body of ``PUT /api/tasks/{id}``; replaces title and description."""

    title: str | None = None
    description: str | None = None
    # Left unchanged when omitted.
    status: TaskStatus | None = None

    @field_validator("status", mode="before")
    @classmethod
    def normalize_status(cls, v: Any) -> Any:
        return _parse_status(v)


class TaskStatusUpdate(ApiModel):
    status: TaskStatus = Field(..., description="New status: ToDo|InProgress|Completed")

    @field_validator("status", mode="before")
    @classmethod
    def normalize_status(cls, v: Any) -> Any:
        if v is None:
            raise ValueError("Status is required")
        return _parse_status(v)


class TaskResponse(ApiModel):
    id: uuid.UUID
    title: str
    description: str | None = None
    status: TaskStatus
    owner_id: uuid.UUID
    created_at: datetime
    updated_at: datetime


# --- Errors ---
class ValidationErrorItem(ApiModel):
    field: str | None = None
    message: str


class ErrorResponse(ApiModel):
    success: bool = False
    error: str = Field(..., description="Stable machine-readable error code")
    message: str
    errors: list[ValidationErrorItem] = Field(default_factory=list)
    trace_id: str | None = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
