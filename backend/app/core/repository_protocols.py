"""Boundary Protocols — contracts between core and shell.

Invariants:
    - Core NEVER imports from shell — dependency arrows point inward only
    - All IO operations accessed through Protocol types
    - Predicates and patches are plain dicts in the document filter/update language
      (field names as clients see them: _id, assignedUser, pendingTasks, ...)

Design Decisions:
    - Protocol over ABC: structural subtyping, no inheritance hierarchy
    - One generic RecordStore for both resources: the cross-entity protocol only
      needs find/update/delete, never resource-specific queries
    - Every write commits on its own: single-document atomicity, no cross-record
      transaction (the consistency window is documented in assignment_plan)
"""

from typing import Protocol, TypeVar
from uuid import UUID


RecordT = TypeVar("RecordT")


class TaskLike(Protocol):
    """Structural contract for Task records mutated by assignment sync."""
    id: UUID
    name: str
    assigned_user: UUID | None
    assigned_user_name: str


class RecordStore(Protocol[RecordT]):
    """Contract for document-style persistence — implemented by shell."""
    async def find(
        self,
        predicate: dict | None = None,
        *,
        sort: dict | None = None,
        skip: int = 0,
        limit: int = 0,
    ) -> list[RecordT]: ...
    async def find_one(self, predicate: dict) -> RecordT | None: ...
    async def find_by_id(self, record_id: UUID) -> RecordT | None: ...
    async def count_documents(self, predicate: dict | None = None) -> int: ...
    async def insert(
        self, record: RecordT, *, arrays: dict[str, list] | None = None,
    ) -> RecordT: ...
    async def save(self, record: RecordT) -> RecordT: ...
    async def update_one(self, predicate: dict, patch: dict) -> int: ...
    async def update_many(self, predicate: dict, patch: dict) -> int: ...
    async def delete_one(self, record: RecordT) -> None: ...
