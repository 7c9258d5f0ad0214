"""
Database models for Taskkeeper.

Architecture: User → Task ownership pattern.
"""

from app.models.task import Task, TaskStatus
from app.models.user import User

__all__ = [
    "User",
    "Task",
    "TaskStatus",
]
