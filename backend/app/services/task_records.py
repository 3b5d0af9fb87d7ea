"""Task Records — create/read/replace/delete for Tasks with assignment sync.

Invariants:
    - Task write ALWAYS precedes the dependent User writes
    - Body coercion (deadline, completed) and assignee validation happen before any write
    - replace is a full replace: omitted description → "", completed → False,
      assignedUser → unassigned
    - No User write when the assignee is unchanged and already lists the Task

Design Decisions:
    - Previous assignee captured from the stored Task before mutation, so the pull
      targets whoever the index currently credits
    - An unchanged assignee is checked (read-only) against pendingTasks: re-driving a
      request whose User-side write failed converges instead of staying stale
"""

import logging

from app.core.domain_types import Resource, TaskId, UserId, require_id
from app.core.errors import ResourceNotFoundError
from app.core.query_parser import QueryDescriptor
from app.core.repository_protocols import RecordStore
from app.core.value_coercion import coerce_completed, coerce_deadline
from app.models.task import Task
from app.schemas.task import TaskBody, task_document
from app.services.assignment_sync import (
    apply_assignment, ensure_listed, sync_pending_tasks,
)
from app.services.query_runner import run_query

logger = logging.getLogger(__name__)


class TaskRecords:
    """Task operations over injected Task and User stores."""

    def __init__(self, tasks: RecordStore, users: RecordStore):
        self.tasks = tasks
        self.users = users

    async def query(self, query: QueryDescriptor) -> list[dict] | dict:
        return await run_query(self.tasks, query, task_document)

    async def get(self, raw_id: object) -> Task:
        task_id = TaskId(require_id(raw_id, Resource.TASK))
        task = await self.tasks.find_by_id(task_id)
        if task is None:
            raise ResourceNotFoundError(Resource.TASK.value, str(task_id))
        return task

    async def create(self, body: TaskBody) -> Task:
        """Persist the Task, then add it to its assignee's pendingTasks."""
        task = Task(
            name=body.name,
            description=body.description if body.description is not None else "",
            deadline=coerce_deadline(body.deadline),
            completed=coerce_completed(body.completed, False),
        )
        assignee = await apply_assignment(task, body.assigned_user, self.users)

        await self.tasks.insert(task)
        logger.info("Task created", extra={"task_id": task.id, "user_id": assignee})

        await sync_pending_tasks(self.users, TaskId(task.id), None, assignee)
        return task

    async def replace(self, raw_id: object, body: TaskBody) -> Task:
        """Full replace; moves the Task between pendingTasks lists if reassigned."""
        task = await self.get(raw_id)
        previous = _assignee(task)

        task.name = body.name
        task.description = body.description if body.description is not None else ""
        task.deadline = coerce_deadline(body.deadline)
        task.completed = coerce_completed(body.completed, False)
        current = await apply_assignment(task, body.assigned_user, self.users)

        await self.tasks.save(task)
        task_id = TaskId(task.id)
        updates = await sync_pending_tasks(self.users, task_id, previous, current)
        if not updates and current is not None:
            updates = await ensure_listed(self.users, task_id, current)
        logger.info(
            "Task replaced",
            extra={"task_id": task.id, "user_id": current, "count": len(updates)},
        )
        return task

    async def delete(self, raw_id: object) -> None:
        """Delete the Task, then pull it from its former assignee's pendingTasks."""
        task = await self.get(raw_id)
        task_id, assignee = TaskId(task.id), _assignee(task)

        await self.tasks.delete_one(task)
        logger.info("Task deleted", extra={"task_id": task_id, "user_id": assignee})

        await sync_pending_tasks(self.users, task_id, assignee, None)


def _assignee(task: Task) -> UserId | None:
    return UserId(task.assigned_user) if task.assigned_user is not None else None
