"""
Owner-scoped persistence for tasks.

Every statement that reads, changes or removes a task is built from
``owned_task_clause`` so the ``owner_id`` predicate cannot be forgotten, and
each operation is a single statement so the ownership check and the action
happen atomically.
"""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import and_, delete, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.db_handlers.base import BaseDBHandler, check_local_db
from app.models.task import Task, TaskStatus
from app.utils.logger import setup_logger

logger = setup_logger("task_db_handler")

# Columns a caller may set; owner_id and id are never taken from input.
WRITABLE_COLUMNS = frozenset({"title", "description", "status"})


def owned_task_clause(task_id: uuid.UUID, owner_id: uuid.UUID):
    return and_(Task.id == task_id, Task.owner_id == owner_id)


def select_owned_task(task_id: uuid.UUID, owner_id: uuid.UUID):
    return select(Task).where(owned_task_clause(task_id, owner_id))


def select_tasks_for_owner(owner_id: uuid.UUID, status: TaskStatus | None = None):
    stmt = select(Task).where(Task.owner_id == owner_id)
    if status is not None:
        stmt = stmt.where(Task.status == status)
    return stmt.order_by(Task.created_at.desc())


def update_owned_task(task_id: uuid.UUID, owner_id: uuid.UUID, values: dict[str, Any]):
    return (
        update(Task)
        .where(owned_task_clause(task_id, owner_id))
        .values(**values, updated_at=datetime.now(UTC))
        .returning(Task)
        .execution_options(synchronize_session=False)
    )


def delete_owned_task(task_id: uuid.UUID, owner_id: uuid.UUID):
    return (
        delete(Task)
        .where(owned_task_clause(task_id, owner_id))
        .execution_options(synchronize_session=False)
    )


def _writable(values: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in values.items() if key in WRITABLE_COLUMNS}


class TaskDBHandler(BaseDBHandler[Task]):
    def __init__(self):
        super().__init__(Task)

    @check_local_db
    async def create(
        self,
        values: dict[str, Any],
        owner_id: uuid.UUID,
        *,
        db: AsyncSession = None,
    ) -> Task:
        """Create a task owned by ``owner_id``."""
        obj_dict = _writable(values)
        obj_dict["owner_id"] = owner_id
        return await super().create(obj_dict, db=db)

    @check_local_db
    async def get_owned(
        self, task_id: uuid.UUID, owner_id: uuid.UUID, *, db: AsyncSession = None
    ) -> Task | None:
        """Get a task by id only if it belongs to ``owner_id``."""
        try:
            result = await db.execute(select_owned_task(task_id, owner_id))
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error(f"Error retrieving task {task_id} for user {owner_id}: {e}")
            raise

    @check_local_db
    async def update_owned(
        self,
        task_id: uuid.UUID,
        owner_id: uuid.UUID,
        values: dict[str, Any],
        *,
        db: AsyncSession = None,
    ) -> Task | None:
        """Apply ``values`` to the owner's task; None when no such task."""
        changes = _writable(values)
        if not changes:
            return await self.get_owned(task_id, owner_id, db=db)
        try:
            result = await db.execute(update_owned_task(task_id, owner_id, changes))
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error(f"Error updating task {task_id} for user {owner_id}: {e}")
            raise

    @check_local_db
    async def delete_owned(
        self, task_id: uuid.UUID, owner_id: uuid.UUID, *, db: AsyncSession = None
    ) -> bool:
        """Delete the owner's task; False when nothing matched."""
        try:
            result = await db.execute(delete_owned_task(task_id, owner_id))
            return result.rowcount > 0
        except SQLAlchemyError as e:
            logger.error(f"Error deleting task {task_id} for user {owner_id}: {e}")
            raise

    @check_local_db
    async def list_owned(
        self,
        owner_id: uuid.UUID,
        status: TaskStatus | None = None,
        *,
        db: AsyncSession = None,
    ) -> list[Task]:
        """List the owner's tasks, newest first, optionally by status."""
        try:
            result = await db.execute(select_tasks_for_owner(owner_id, status))
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error(f"Error listing tasks for user {owner_id}: {e}")
            raise
