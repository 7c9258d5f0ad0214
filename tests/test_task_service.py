"""
Ownership-scoped task operations against the in-memory store.
"""

import uuid

import pytest

from app.errors import ErrorKind
from app.models.task import TaskStatus
from app.schemas import TaskCreate, TaskUpdate
from app.services.task_service import (
    DESCRIPTION_TOO_LONG,
    INVALID_STATUS,
    TASK_NOT_FOUND,
    TITLE_REQUIRED,
    TITLE_TOO_LONG,
    TaskService,
)

ALICE = uuid.uuid4()
BOB = uuid.uuid4()


@pytest.fixture
def task_service(task_store) -> TaskService:
    return TaskService(task_store)


async def _create(
    service: TaskService, owner: uuid.UUID, title: str = "Buy milk", **fields
):
    result = await service.create(TaskCreate(title=title, **fields), owner)
    assert result.ok, result.error
    return result.value


@pytest.mark.asyncio
async def test_create_stamps_owner_and_defaults(task_service):
    task = await _create(
        task_service, ALICE, title="  Buy milk  ", description="  2 liters "
    )

    assert task.owner_id == ALICE
    assert task.title == "Buy milk"
    assert task.description == "2 liters"
    assert task.status is TaskStatus.TODO


@pytest.mark.asyncio
async def test_create_keeps_requested_status(task_service):
    task = await _create(task_service, ALICE, status=TaskStatus.IN_PROGRESS)
    assert task.status is TaskStatus.IN_PROGRESS


@pytest.mark.asyncio
async def test_blank_description_is_stored_as_none(task_service):
    task = await _create(task_service, ALICE, description="   ")
    assert task.description is None


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "title,description,expected",
    [
        (None, None, TITLE_REQUIRED),
        ("   ", None, TITLE_REQUIRED),
        ("t" * 201, None, TITLE_TOO_LONG),
        ("ok", "d" * 1001, DESCRIPTION_TOO_LONG),
    ],
)
async def test_create_validates_before_store_access(
    task_service, task_store, title, description, expected
):
    result = await task_service.create(
        TaskCreate(title=title, description=description), ALICE
    )

    assert result.error is expected
    assert result.error.kind is ErrorKind.VALIDATION
    assert task_store.calls == []


@pytest.mark.asyncio
async def test_title_and_description_limits_are_inclusive(task_service):
    task = await _create(task_service, ALICE, title="t" * 200, description="d" * 1000)
    assert len(task.title) == 200


@pytest.mark.asyncio
async def test_owner_reads_own_task(task_service):
    task = await _create(task_service, ALICE)

    result = await task_service.get_by_id(task.id, ALICE)

    assert result.ok
    assert result.value.id == task.id


@pytest.mark.asyncio
async def test_foreign_and_missing_tasks_are_indistinguishable(task_service):
    task = await _create(task_service, ALICE)

    foreign = await task_service.get_by_id(task.id, BOB)
    missing = await task_service.get_by_id(uuid.uuid4(), BOB)
    malformed = await task_service.get_by_id("not-a-uuid", BOB)

    assert foreign.error is TASK_NOT_FOUND
    assert missing.error is TASK_NOT_FOUND
    assert malformed.error is TASK_NOT_FOUND
    assert foreign.error.kind is ErrorKind.NOT_FOUND


@pytest.mark.asyncio
async def test_update_replaces_fields_for_owner(task_service):
    task = await _create(task_service, ALICE, description="old")

    result = await task_service.update(
        task.id, TaskUpdate(title="New title", status=TaskStatus.COMPLETED), ALICE
    )

    assert result.ok
    assert result.value.title == "New title"
    assert result.value.description is None
    assert result.value.status is TaskStatus.COMPLETED


@pytest.mark.asyncio
async def test_update_without_status_leaves_it_unchanged(task_service):
    task = await _create(task_service, ALICE, status=TaskStatus.IN_PROGRESS)

    result = await task_service.update(task.id, TaskUpdate(title="Renamed"), ALICE)

    assert result.value.status is TaskStatus.IN_PROGRESS


@pytest.mark.asyncio
async def test_other_user_cannot_modify_or_delete(task_service, task_store):
    task = await _create(task_service, ALICE, title="Alice's task")

    update = await task_service.update(task.id, TaskUpdate(title="Hijacked"), BOB)
    status = await task_service.update_status(task.id, TaskStatus.COMPLETED, BOB)
    delete = await task_service.delete(task.id, BOB)

    assert update.error is TASK_NOT_FOUND
    assert status.error is TASK_NOT_FOUND
    assert delete.error is TASK_NOT_FOUND

    untouched = task_store.tasks[task.id]
    assert untouched.title == "Alice's task"
    assert untouched.status is TaskStatus.TODO
    assert untouched.owner_id == ALICE


@pytest.mark.asyncio
async def test_update_validates_title(task_service, task_store):
    task = await _create(task_service, ALICE)
    task_store.calls.clear()

    result = await task_service.update(task.id, TaskUpdate(title=" "), ALICE)

    assert result.error is TITLE_REQUIRED
    assert task_store.calls == []


@pytest.mark.asyncio
async def test_update_status(task_service):
    task = await _create(task_service, ALICE)

    result = await task_service.update_status(task.id, TaskStatus.COMPLETED, ALICE)

    assert result.value.status is TaskStatus.COMPLETED


@pytest.mark.asyncio
async def test_delete_then_get_is_not_found(task_service):
    task = await _create(task_service, ALICE)

    assert (await task_service.delete(task.id, ALICE)).ok
    assert (await task_service.get_by_id(task.id, ALICE)).error is TASK_NOT_FOUND
    assert (await task_service.delete(task.id, ALICE)).error is TASK_NOT_FOUND


@pytest.mark.asyncio
async def test_list_is_scoped_to_owner_and_newest_first(task_service):
    first = await _create(task_service, ALICE, title="first")
    second = await _create(task_service, ALICE, title="second")
    await _create(task_service, BOB, title="bob's")

    alice_tasks = (await task_service.list_by_owner(ALICE)).value
    bob_tasks = (await task_service.list_by_owner(BOB)).value

    assert [t.id for t in alice_tasks] == [second.id, first.id]
    assert [t.title for t in bob_tasks] == ["bob's"]


@pytest.mark.asyncio
async def test_list_filters_by_status(task_service):
    await _create(task_service, ALICE, title="todo")
    done = await _create(task_service, ALICE, title="done", status=TaskStatus.COMPLETED)

    by_enum = (await task_service.list_by_owner(ALICE, TaskStatus.COMPLETED)).value
    by_text = (await task_service.list_by_owner(ALICE, "completed")).value

    assert [t.id for t in by_enum] == [done.id]
    assert [t.id for t in by_text] == [done.id]


@pytest.mark.asyncio
async def test_list_rejects_unknown_status(task_service, task_store):
    result = await task_service.list_by_owner(ALICE, "Archived")

    assert result.error is INVALID_STATUS
    assert task_store.calls == []
