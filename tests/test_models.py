import uuid

import pytest

from app.models import Task, TaskStatus, User

FAKE_HASH = "$2b$04$" + "a" * 53


def test_user_serialization_leaves_out_password_hash():
    user = User(id=uuid.uuid4(), username="alice", hashed_password=FAKE_HASH)

    data = user.to_dict()

    assert data["username"] == "alice"
    assert data["id"] == str(user.id)
    assert "hashed_password" not in data
    assert FAKE_HASH not in repr(user)


def test_task_serialization_uses_status_value():
    task = Task(
        id=uuid.uuid4(),
        title="Write report",
        status=TaskStatus.IN_PROGRESS,
        owner_id=uuid.uuid4(),
    )

    data = task.to_dict()

    assert data["status"] == "InProgress"
    assert data["owner_id"] == str(task.owner_id)


@pytest.mark.parametrize(
    "text,expected",
    [
        ("ToDo", TaskStatus.TODO),
        ("todo", TaskStatus.TODO),
        (" inprogress ", TaskStatus.IN_PROGRESS),
        ("COMPLETED", TaskStatus.COMPLETED),
        ("Archived", None),
        ("", None),
        (None, None),
    ],
)
def test_status_parsing_is_case_insensitive(text, expected):
    assert TaskStatus.parse(text) is expected
