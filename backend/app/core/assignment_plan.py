"""Assignment Plan — pure computation of the writes that keep Task.assignedUser and
User.pendingTasks consistent.

Invariants:
    - plan_reassignment returns NO updates when previous == current
    - REMOVE for the previous assignee always precedes ADD for the new one
    - diff_pending_tasks preserves request order and never yields duplicates
    - Task.assignedUser is authoritative; pendingTasks is a derived index

Design Decisions:
    - Pure planning, shell execution: services/assignment_sync.py turns each
      PendingTaskUpdate into an idempotent $pull/$addToSet (ADR: impureim sandwich)
    - Task write first, User writes after: a crash in between leaves a stale
      index entry, never a Task pointing at nothing it did not choose
"""

from dataclasses import dataclass
from uuid import UUID

from app.core.domain_types import PendingTaskAction, TaskId, UserId


@dataclass(frozen=True)
class PendingTaskUpdate:
    """One User-side mutation of pendingTasks."""
    user_id: UserId
    task_id: TaskId
    action: PendingTaskAction

    def to_patch(self) -> dict:
        """Render as an idempotent store patch."""
        op = "$addToSet" if self.action is PendingTaskAction.ADD else "$pull"
        return {op: {"pendingTasks": self.task_id}}


@dataclass(frozen=True)
class PendingTasksDiff:
    """Task ids leaving and joining a User's pendingTasks."""
    removed: list[TaskId]
    added: list[TaskId]


def plan_reassignment(
    task_id: TaskId, previous: UserId | None, current: UserId | None,
) -> list[PendingTaskUpdate]:
    """User-side updates after a Task moved from previous to current."""
    if previous == current:
        return []
    updates = []
    if previous is not None:
        updates.append(
            PendingTaskUpdate(previous, task_id, PendingTaskAction.REMOVE),
        )
    if current is not None:
        updates.append(
            PendingTaskUpdate(current, task_id, PendingTaskAction.ADD),
        )
    return updates


def dedupe_ids(ids: list[UUID]) -> list[UUID]:
    """Drop repeats, keep first occurrence order."""
    return list(dict.fromkeys(ids))


def diff_pending_tasks(
    previous: list[TaskId], requested: list[TaskId],
) -> PendingTasksDiff:
    """Compare a User's stored pendingTasks with a replacement list."""
    previous_set = set(previous)
    requested = dedupe_ids(requested)
    requested_set = set(requested)
    return PendingTasksDiff(
        removed=[t for t in previous if t not in requested_set],
        added=[t for t in requested if t not in previous_set],
    )
