"""User Records — create/read/replace/delete for Users, keeping Tasks in step.

Invariants:
    - Emails are unique: checked before the write, unique index as the backstop
    - User write precedes the Task writes it implies
    - Claiming a Task (listing it in pendingTasks) is last-write-wins: the Task is
      reassigned and pulled from its previous assignee's list; missing ids are skipped
    - Deleting a User unassigns its Tasks in ONE bulk update before the User row goes

Design Decisions:
    - pendingTasks written as part of the User's own commit ($set inside update_one,
      arrays= on insert): the list and the row never disagree with each other
    - Rename refreshes assignedUserName on every Task of the User
"""

import logging

from app.core.assignment_plan import (
    PendingTaskUpdate, dedupe_ids, diff_pending_tasks,
)
from app.core.domain_types import (
    UNASSIGNED, PendingTaskAction, Resource, TaskId, UserId,
    parse_id_list, require_id,
)
from app.core.errors import (
    DuplicateEmailError, RecordConflictError, ResourceNotFoundError,
)
from app.core.query_parser import QueryDescriptor
from app.core.repository_protocols import RecordStore
from app.models.user import User
from app.schemas.user import UserBody, user_document
from app.services.assignment_sync import apply_pending_update, assign
from app.services.query_runner import run_query

logger = logging.getLogger(__name__)


class UserRecords:
    """User operations over injected User and Task stores."""

    def __init__(self, users: RecordStore, tasks: RecordStore):
        self.users = users
        self.tasks = tasks

    async def query(self, query: QueryDescriptor) -> list[dict] | dict:
        return await run_query(self.users, query, user_document)

    async def get(self, raw_id: object) -> User:
        user_id = UserId(require_id(raw_id, Resource.USER))
        user = await self.users.find_by_id(user_id)
        if user is None:
            raise ResourceNotFoundError(Resource.USER.value, str(user_id))
        return user

    async def create(self, body: UserBody) -> User:
        """Persist the User with its list, then claim the listed Tasks."""
        pending = _pending_ids(body)
        await self._ensure_email_free(body.email)

        user = User(name=body.name, email=body.email)
        try:
            await self.users.insert(user, arrays={"pendingTasks": pending})
        except RecordConflictError:
            raise DuplicateEmailError(body.email)
        logger.info("User created", extra={"user_id": user.id, "count": len(pending)})

        await self._claim_tasks(UserId(user.id), user.name, pending)
        return await self.get(user.id)

    async def replace(self, raw_id: object, body: UserBody) -> User:
        """Full replace; unassigns dropped Tasks and claims added ones."""
        user = await self.get(raw_id)
        pending = _pending_ids(body)
        await self._ensure_email_free(body.email, exclude=UserId(user.id))

        diff = diff_pending_tasks(user.pending_task_ids, pending)
        renamed = user.name != body.name
        try:
            await self.users.update_one(
                {"_id": user.id},
                {"$set": {
                    "name": body.name, "email": body.email, "pendingTasks": pending,
                }},
            )
        except RecordConflictError:
            raise DuplicateEmailError(body.email)

        if diff.removed:
            await self.tasks.update_many(
                {"_id": {"$in": diff.removed}, "assignedUser": user.id},
                {"$set": {"assignedUser": None, "assignedUserName": UNASSIGNED}},
            )
        await self._claim_tasks(UserId(user.id), body.name, diff.added)
        if renamed:
            await self.tasks.update_many(
                {"assignedUser": user.id}, {"$set": {"assignedUserName": body.name}},
            )
        logger.info(
            "User replaced",
            extra={"user_id": user.id, "count": len(diff.added) + len(diff.removed)},
        )
        return await self.get(user.id)

    async def delete(self, raw_id: object) -> None:
        """Unassign every Task of the User, then delete the User."""
        user = await self.get(raw_id)
        user_id = user.id
        released = await self.tasks.update_many(
            {"assignedUser": user_id},
            {"$set": {"assignedUser": None, "assignedUserName": UNASSIGNED}},
        )
        await self.users.delete_one(user)
        logger.info("User deleted", extra={"user_id": user_id, "count": released})

    async def _ensure_email_free(self, email: str, exclude: UserId | None = None) -> None:
        predicate: dict = {"email": email}
        if exclude is not None:
            predicate["_id"] = {"$ne": exclude}
        if await self.users.find_one(predicate) is not None:
            raise DuplicateEmailError(email)

    async def _claim_tasks(
        self, user_id: UserId, user_name: str, task_ids: list[TaskId],
    ) -> None:
        """Point each existing Task at the User; missing ids are skipped."""
        if not task_ids:
            return
        for task in await self.tasks.find({"_id": {"$in": task_ids}}):
            previous = task.assigned_user
            assign(task, user_id, user_name)
            await self.tasks.save(task)
            if previous is not None and previous != user_id:
                await apply_pending_update(
                    self.users,
                    PendingTaskUpdate(
                        UserId(previous), TaskId(task.id), PendingTaskAction.REMOVE,
                    ),
                )



def _pending_ids(body: UserBody) -> list[TaskId]:
    """Body pendingTasks → distinct TaskIds in request order."""
    ids = parse_id_list(body.pending_tasks, Resource.TASK)
    return [TaskId(t) for t in dedupe_ids(ids)]
