"""
The SQL built for tasks always filters on the owner.

Statements are compiled against the PostgreSQL dialect without a database.
"""

import inspect
import uuid

from sqlalchemy.dialects import postgresql

from app.db_handlers.task import (
    TaskDBHandler,
    _writable,
    delete_owned_task,
    select_owned_task,
    select_tasks_for_owner,
    update_owned_task,
)
from app.models.task import TaskStatus

TASK_ID = uuid.uuid4()
OWNER_ID = uuid.uuid4()


def _sql(stmt) -> str:
    return str(stmt.compile(dialect=postgresql.dialect()))


def test_select_filters_on_id_and_owner():
    sql = _sql(select_owned_task(TASK_ID, OWNER_ID))
    assert "tasks.id = " in sql
    assert "tasks.owner_id = " in sql


def test_list_filters_on_owner_and_orders_newest_first():
    sql = _sql(select_tasks_for_owner(OWNER_ID))
    assert "tasks.owner_id = " in sql
    assert "ORDER BY tasks.created_at DESC" in sql
    assert "tasks.status" not in sql.split("WHERE", 1)[1]


def test_list_with_status_adds_status_filter():
    sql = _sql(select_tasks_for_owner(OWNER_ID, TaskStatus.COMPLETED))
    where = sql.split("WHERE", 1)[1]
    assert "tasks.owner_id = " in where
    assert "tasks.status = " in where


def test_update_is_owner_scoped_and_returns_row():
    sql = _sql(update_owned_task(TASK_ID, OWNER_ID, {"title": "x"}))
    where = sql.split("WHERE", 1)[1]
    assert "tasks.id = " in where
    assert "tasks.owner_id = " in where
    assert "RETURNING" in sql
    assert "updated_at=" in sql.replace(" ", "")


def test_delete_is_owner_scoped():
    sql = _sql(delete_owned_task(TASK_ID, OWNER_ID))
    assert sql.startswith("DELETE FROM tasks")
    assert "tasks.owner_id = " in sql


def test_owner_and_id_are_never_writable():
    values = {"title": "t", "owner_id": uuid.uuid4(), "id": uuid.uuid4(), "status": "ToDo"}
    assert set(_writable(values)) == {"title", "status"}


def test_single_task_operations_require_owner():
    for name in ("get_owned", "update_owned", "delete_owned"):
        params = inspect.signature(getattr(TaskDBHandler, name)).parameters
        assert "task_id" in params
        assert "owner_id" in params


def test_every_public_task_handler_method_takes_owner():
    public = [
        name
        for name, member in inspect.getmembers(TaskDBHandler, inspect.isfunction)
        if not name.startswith("_")
    ]

    assert public
    for name in public:
        params = inspect.signature(getattr(TaskDBHandler, name)).parameters
        assert "owner_id" in params, f"TaskDBHandler.{name} is not owner-scoped"
