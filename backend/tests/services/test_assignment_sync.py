"""Assignment Sync — verifies assignee resolution and pendingTasks side effects.

Invariants:
    - "" / None unassign without touching the store
    - malformed id → InvalidAssigneeIdError, unknown id → AssigneeNotFoundError
    - sync_pending_tasks writes nothing when the assignee is unchanged
"""

from datetime import datetime, timezone
from uuid import uuid4

import pytest

from app.core.domain_types import UNASSIGNED
from app.core.errors import AssigneeNotFoundError, InvalidAssigneeIdError
from app.models.task import Task
from app.models.user import User
from app.services.assignment_sync import apply_assignment, sync_pending_tasks


def _task():
    return Task(
        name="T", deadline=datetime(2024, 1, 1, tzinfo=timezone.utc),
        assigned_user=uuid4(), assigned_user_name="Someone",
    )


async def _user(users, name="Alice"):
    user = User(name=name, email=f"{name.lower()}@example.com")
    await users.insert(user)
    return await users.find_by_id(user.id)


@pytest.mark.parametrize("raw", ["", None])
async def test_empty_assignee_unassigns(users, raw):
    task = _task()
    assert await apply_assignment(task, raw, users) is None
    assert task.assigned_user is None
    assert task.assigned_user_name == UNASSIGNED


@pytest.mark.parametrize("raw", ["abc", 42, ["x"]])
async def test_malformed_assignee_rejected(users, raw):
    with pytest.raises(InvalidAssigneeIdError):
        await apply_assignment(_task(), raw, users)


async def test_unknown_assignee_rejected(users):
    with pytest.raises(AssigneeNotFoundError) as exc:
        await apply_assignment(_task(), str(uuid4()), users)
    assert exc.value.http_status == 400


async def test_known_assignee_copies_id_and_name(users):
    user = await _user(users, "Bob")
    task = _task()

    assert await apply_assignment(task, str(user.id), users) == user.id
    assert task.assigned_user == user.id
    assert task.assigned_user_name == "Bob"


async def test_sync_moves_task_between_users(users):
    alice = await _user(users, "Alice")
    bob = await _user(users, "Bob")
    task_id = uuid4()
    await sync_pending_tasks(users, task_id, None, alice.id)

    updates = await sync_pending_tasks(users, task_id, alice.id, bob.id)

    assert len(updates) == 2
    assert (await users.find_by_id(alice.id)).pending_task_ids == []
    assert (await users.find_by_id(bob.id)).pending_task_ids == [task_id]


async def test_sync_unchanged_assignee_writes_nothing(users):
    alice = await _user(users)
    calls = []
    original = users.update_one

    async def spy(predicate, patch):
        calls.append(patch)
        return await original(predicate, patch)

    users.update_one = spy
    assert await sync_pending_tasks(users, uuid4(), alice.id, alice.id) == []
    assert calls == []


async def test_sync_is_idempotent(users):
    alice = await _user(users)
    task_id = uuid4()
    await sync_pending_tasks(users, task_id, None, alice.id)
    await sync_pending_tasks(users, task_id, None, alice.id)
    assert (await users.find_by_id(alice.id)).pending_task_ids == [task_id]
