"""Assignment Sync — resolves a Task's assignee and applies the pendingTasks side effects.

Invariants:
    - apply_assignment only mutates the in-memory Task; it never writes
    - "" and None mean explicit unassignment (assigned_user_name = "unassigned")
    - Malformed id → InvalidAssigneeIdError; well-formed but missing → AssigneeNotFoundError
    - sync_pending_tasks runs AFTER the Task write; every patch it sends is idempotent
    - A failing User-side write propagates; the already-persisted Task is NOT rolled back

Design Decisions:
    - Sequencing owned by callers (create/replace/delete differ); this module offers the
      building blocks, task_records.py and user_records.py compose them
    - Task.assignedUser is authoritative, pendingTasks is a derived index: a crash between
      the two writes is a tolerated window, re-driving the request repairs it
      (ensure_listed re-adds an entry whose $addToSet never landed)
"""

import logging

from app.core.assignment_plan import PendingTaskUpdate, plan_reassignment
from app.core.domain_types import (
    UNASSIGNED, PendingTaskAction, TaskId, UserId, parse_id,
)
from app.core.errors import AssigneeNotFoundError, InvalidAssigneeIdError
from app.core.repository_protocols import RecordStore, TaskLike

logger = logging.getLogger(__name__)


def unassign(task: TaskLike) -> None:
    task.assigned_user = None
    task.assigned_user_name = UNASSIGNED


def assign(task: TaskLike, user_id: UserId, user_name: str) -> None:
    task.assigned_user = user_id
    task.assigned_user_name = user_name


async def apply_assignment(
    task: TaskLike, raw_assignee: object, users: RecordStore,
) -> UserId | None:
    """Validate raw_assignee and copy its id/name onto task. Returns the assignee id."""
    if raw_assignee is None or raw_assignee == "":
        unassign(task)
        return None

    user_id = parse_id(raw_assignee)
    if user_id is None:
        raise InvalidAssigneeIdError(raw_assignee)

    user = await users.find_by_id(user_id)
    if user is None:
        raise AssigneeNotFoundError(str(user_id))

    assign(task, UserId(user.id), user.name)
    return UserId(user.id)


async def apply_pending_update(users: RecordStore, update: PendingTaskUpdate) -> int:
    """Run one planned $addToSet/$pull against the User store."""
    matched = await users.update_one({"_id": update.user_id}, update.to_patch())
    logger.info(
        f"pendingTasks {update.action.value} applied",
        extra={"user_id": update.user_id, "task_id": update.task_id, "count": matched},
    )
    return matched


async def sync_pending_tasks(
    users: RecordStore, task_id: TaskId,
    previous: UserId | None, current: UserId | None,
) -> list[PendingTaskUpdate]:
    """Bring pendingTasks in line after task_id moved from previous to current."""
    updates = plan_reassignment(task_id, previous, current)
    for update in updates:
        await apply_pending_update(users, update)
    return updates


async def ensure_listed(
    users: RecordStore, task_id: TaskId, user_id: UserId,
) -> list[PendingTaskUpdate]:
    """Re-add task_id to user_id's pendingTasks if an earlier sync never landed.

    Read-only when the index already agrees. Otherwise the sync was cut short before
    its $addToSet, possibly before its $pull too: stale entries on other Users are
    pulled first, then the missing entry is added.
    """
    if await users.count_documents({"_id": user_id, "pendingTasks": task_id}):
        return []
    await users.update_many(
        {"pendingTasks": task_id, "_id": {"$ne": user_id}},
        {"$pull": {"pendingTasks": task_id}},
    )
    update = PendingTaskUpdate(user_id, task_id, PendingTaskAction.ADD)
    logger.warning(
        "pendingTasks missing an assigned Task, re-adding",
        extra={"user_id": user_id, "task_id": task_id},
    )
    await apply_pending_update(users, update)
    return [update]
