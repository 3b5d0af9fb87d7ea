"""Document Mappings — client-facing field names → ORM columns, per resource.

Invariants:
    - Every field a client may filter, sort or patch is listed here; anything else is rejected
    - "_id" always maps to the primary key
    - Array fields are backed by an association model (owner FK + value column)

Design Decisions:
    - Explicit mapping over ORM introspection: the document vocabulary (camelCase,
      _id) is a public contract, column names are not
"""

from dataclasses import dataclass, field

from sqlalchemy.orm import InstrumentedAttribute

from app.models.pending_task import PendingTask
from app.models.task import Task
from app.models.user import User


@dataclass(frozen=True)
class ArrayField:
    """Ordered list field stored as association rows."""
    model: type
    owner: InstrumentedAttribute
    value: InstrumentedAttribute


@dataclass(frozen=True)
class DocumentMapping:
    """How one resource's documents map onto its table."""
    resource: str
    model: type
    fields: dict[str, InstrumentedAttribute]
    arrays: dict[str, ArrayField] = field(default_factory=dict)
    natural_order: InstrumentedAttribute | None = None

    @property
    def id_column(self) -> InstrumentedAttribute:
        return self.fields["_id"]


USER_DOCUMENT = DocumentMapping(
    resource="User",
    model=User,
    fields={
        "_id": User.id,
        "name": User.name,
        "email": User.email,
        "dateCreated": User.date_created,
    },
    arrays={
        "pendingTasks": ArrayField(
            PendingTask, PendingTask.user_id, PendingTask.task_id,
        ),
    },
    natural_order=User.date_created,
)

TASK_DOCUMENT = DocumentMapping(
    resource="Task",
    model=Task,
    fields={
        "_id": Task.id,
        "name": Task.name,
        "description": Task.description,
        "deadline": Task.deadline,
        "completed": Task.completed,
        "assignedUser": Task.assigned_user,
        "assignedUserName": Task.assigned_user_name,
        "dateCreated": Task.date_created,
    },
    natural_order=Task.date_created,
)
