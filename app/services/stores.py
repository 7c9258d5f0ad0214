"""
Contracts of the persistence collaborators used by the auth and task services.

The services depend on these protocols only. ``UserDBHandler`` and
``TaskDBHandler`` implement them on top of SQLAlchemy; the test suite provides
in-memory implementations.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any, Protocol, runtime_checkable

from app.models.task import TaskStatus


class DuplicateUsernameError(Exception):
    """Raised by a user store when the username is already taken."""

    def __init__(self, username: str):
        super().__init__("username already exists")
        self.username = username


class CredentialRecord(Protocol):
    id: uuid.UUID
    username: str
    hashed_password: str
    created_at: datetime


class OwnedTaskRecord(Protocol):
    id: uuid.UUID
    title: str
    description: str | None
    status: TaskStatus
    owner_id: uuid.UUID
    created_at: datetime
    updated_at: datetime


@runtime_checkable
class UserStore(Protocol):
    async def find_by_username(self, username: str) -> CredentialRecord | None: ...

    async def exists_by_username(self, username: str) -> bool: ...

    async def create_user(
        self, username: str, hashed_password: str
    ) -> CredentialRecord:
        """Persist a new user; raises ``DuplicateUsernameError`` on conflict."""
        ...


@runtime_checkable
class TaskStore(Protocol):
    """Single-record operations are always keyed by ``(task_id, owner_id)``."""

    async def create(
        self, values: dict[str, Any], owner_id: uuid.UUID
    ) -> OwnedTaskRecord: ...

    async def get_owned(
        self, task_id: uuid.UUID, owner_id: uuid.UUID
    ) -> OwnedTaskRecord | None: ...

    async def update_owned(
        self, task_id: uuid.UUID, owner_id: uuid.UUID, values: dict[str, Any]
    ) -> OwnedTaskRecord | None: ...

    async def delete_owned(self, task_id: uuid.UUID, owner_id: uuid.UUID) -> bool: ...

    async def list_owned(
        self, owner_id: uuid.UUID, status: TaskStatus | None = None
    ) -> list[OwnedTaskRecord]: ...
