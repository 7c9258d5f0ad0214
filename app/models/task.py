"""
Task model for personal to-do items owned by a single user.

Every task carries the id of its owner, stamped at creation from the
authenticated identity and never changed afterwards. All reads and writes go
through ``TaskDBHandler``, which always filters on ``owner_id``.

Lifecycle:
    ToDo → InProgress → Completed (any transition is allowed)
"""

import enum

from sqlalchemy import Column, Enum, ForeignKey, Index, String, Text
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import relationship

from app.models.base import Base, TimestampMixin, UUIDMixin

TITLE_MAX_LENGTH = 200
DESCRIPTION_MAX_LENGTH = 1000


class TaskStatus(str, enum.Enum):
    TODO = "ToDo"
    IN_PROGRESS = "InProgress"
    COMPLETED = "Completed"

    @classmethod
    def parse(cls, value: str) -> "TaskStatus | None":
        """Case-insensitive lookup by value; None for unknown input."""
        for status in cls:
            if status.value.lower() == (value or "").strip().lower():
                return status
        return None


class Task(Base, UUIDMixin, TimestampMixin):
    """
    A personal task. The owner is fixed for the lifetime of the record.
    """

    __tablename__ = "tasks"
    __table_args__ = (
        Index("ix_tasks_owner_id", "owner_id"),
        Index("ix_tasks_owner_id_status", "owner_id", "status"),
    )

    title = Column(
        String(TITLE_MAX_LENGTH),
        nullable=False,
        comment="Short task title",
    )

    description = Column(
        Text,
        nullable=True,
        comment="Optional free-form details",
    )

    status = Column(
        Enum(
            TaskStatus,
            name="task_status",
            values_callable=lambda statuses: [s.value for s in statuses],
            native_enum=False,
            length=20,
        ),
        nullable=False,
        default=TaskStatus.TODO,
        comment="Current status: ToDo/InProgress/Completed",
    )

    owner_id = Column(
        PG_UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        comment="User who owns this task; immutable after creation",
    )

    owner = relationship(
        "User",
        back_populates="tasks",
        doc="User who owns this task",
    )

    def __repr__(self):
        return (
            f"<Task(id={self.id}, "
            f"status='{self.status}', "
            f"owner_id={self.owner_id})>"
        )
