"""
Task operations scoped to the acting user.

Every method takes the owner id as a mandatory argument and hands it to the
store together with the task id, so a task is only ever read, changed or
deleted in a single owner-filtered call. A task that does not exist and a task
that belongs to someone else are indistinguishable to the caller: both come
back as ``TASK_NOT_FOUND``.
"""

from __future__ import annotations

import uuid
from typing import Any

from app.errors import ErrorKind, ServiceError, ServiceResult
from app.models.task import DESCRIPTION_MAX_LENGTH, TITLE_MAX_LENGTH, TaskStatus
from app.schemas import TaskCreate, TaskUpdate
from app.services.stores import OwnedTaskRecord, TaskStore
from app.utils.logger import setup_logger

logger = setup_logger("task_service")

TITLE_REQUIRED = ServiceError(ErrorKind.VALIDATION, "title_required", "Title is required.")
TITLE_TOO_LONG = ServiceError(
    ErrorKind.VALIDATION,
    "title_too_long",
    f"Title cannot be longer than {TITLE_MAX_LENGTH} characters.",
)
DESCRIPTION_TOO_LONG = ServiceError(
    ErrorKind.VALIDATION,
    "description_too_long",
    f"Description cannot be longer than {DESCRIPTION_MAX_LENGTH} characters.",
)
INVALID_STATUS = ServiceError(
    ErrorKind.VALIDATION,
    "invalid_status",
    "Status must be one of: " + ", ".join(s.value for s in TaskStatus) + ".",
)
TASK_NOT_FOUND = ServiceError(ErrorKind.NOT_FOUND, "task_not_found", "Task not found.")


def _as_uuid(value: uuid.UUID | str | None) -> uuid.UUID | None:
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError):
        return None


def _clean_text(
    title: str | None, description: str | None
) -> tuple[dict[str, Any] | None, ServiceError | None]:
    """Trim and check title and description before any store access."""
    title = (title or "").strip()
    if not title:
        return None, TITLE_REQUIRED
    if len(title) > TITLE_MAX_LENGTH:
        return None, TITLE_TOO_LONG
    description = (description or "").strip() or None
    if description is not None and len(description) > DESCRIPTION_MAX_LENGTH:
        return None, DESCRIPTION_TOO_LONG
    return {"title": title, "description": description}, None


class TaskService:
    def __init__(self, task_store: TaskStore):
        self.task_store = task_store

    async def create(
        self, payload: TaskCreate, owner_id: uuid.UUID
    ) -> ServiceResult[OwnedTaskRecord]:
        values, error = _clean_text(payload.title, payload.description)
        if error:
            return ServiceResult.failure(error)
        values["status"] = payload.status or TaskStatus.TODO

        task = await self.task_store.create(values, owner_id)
        logger.info(f"User {owner_id} created task {task.id}")
        return ServiceResult.success(task)

    async def get_by_id(
        self, task_id: uuid.UUID | str, owner_id: uuid.UUID
    ) -> ServiceResult[OwnedTaskRecord]:
        task_uuid = _as_uuid(task_id)
        if task_uuid is None:
            return ServiceResult.failure(TASK_NOT_FOUND)
        task = await self.task_store.get_owned(task_uuid, owner_id)
        if task is None:
            return ServiceResult.failure(TASK_NOT_FOUND)
        return ServiceResult.success(task)

    async def update(
        self, task_id: uuid.UUID | str, payload: TaskUpdate, owner_id: uuid.UUID
    ) -> ServiceResult[OwnedTaskRecord]:
        """Replace title and description, and the status when one is given."""
        values, error = _clean_text(payload.title, payload.description)
        if error:
            return ServiceResult.failure(error)
        if payload.status is not None:
            values["status"] = payload.status
        return await self._apply(task_id, owner_id, values)

    async def update_status(
        self, task_id: uuid.UUID | str, status: TaskStatus, owner_id: uuid.UUID
    ) -> ServiceResult[OwnedTaskRecord]:
        return await self._apply(task_id, owner_id, {"status": status})

    async def delete(
        self, task_id: uuid.UUID | str, owner_id: uuid.UUID
    ) -> ServiceResult[bool]:
        task_uuid = _as_uuid(task_id)
        if task_uuid is None:
            return ServiceResult.failure(TASK_NOT_FOUND)
        if not await self.task_store.delete_owned(task_uuid, owner_id):
            return ServiceResult.failure(TASK_NOT_FOUND)
        logger.info(f"User {owner_id} deleted task {task_uuid}")
        return ServiceResult.success(True)

    async def list_by_owner(
        self, owner_id: uuid.UUID, status: TaskStatus | str | None = None
    ) -> ServiceResult[list[OwnedTaskRecord]]:
        """All of the owner's tasks, newest first, optionally by status."""
        if isinstance(status, str) and not isinstance(status, TaskStatus):
            status = TaskStatus.parse(status)
            if status is None:
                return ServiceResult.failure(INVALID_STATUS)
        tasks = await self.task_store.list_owned(owner_id, status)
        return ServiceResult.success(list(tasks))

    async def _apply(
        self, task_id: uuid.UUID | str, owner_id: uuid.UUID, values: dict[str, Any]
    ) -> ServiceResult[OwnedTaskRecord]:
        task_uuid = _as_uuid(task_id)
        if task_uuid is None:
            return ServiceResult.failure(TASK_NOT_FOUND)
        task = await self.task_store.update_owned(task_uuid, owner_id, values)
        if task is None:
            return ServiceResult.failure(TASK_NOT_FOUND)
        logger.info(f"User {owner_id} updated task {task_uuid}")
        return ServiceResult.success(task)
