"""Task Schemas — request body and response document for /api/tasks.

Invariants:
    - TaskBody.name: stripped, non-empty
    - TaskBody.deadline: required and non-null; its format is checked by coerce_deadline
    - completed and assignedUser stay loosely typed here: coercion rules live in core/
    - TaskDocument serializes with the public field names (_id, assignedUser, ...)

Design Decisions:
    - Any for deadline/completed/assignedUser: clients send epoch numbers, ISO text,
      "true"/"false" text; rejecting them in Pydantic would bypass the typed core errors
"""

from datetime import datetime, timezone
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator


class TaskBody(BaseModel):
    """Task create/replace body (PUT is a full replace)."""
    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(min_length=1, max_length=500)
    description: str | None = None
    deadline: Any
    completed: Any = None
    assigned_user: Any = Field(None, alias="assignedUser")

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name cannot be empty or whitespace")
        return v

    @field_validator("deadline")
    @classmethod
    def require_deadline(cls, v: Any) -> Any:
        if v is None:
            raise ValueError("deadline is required")
        return v


class TaskDocument(BaseModel):
    """Task as returned to clients."""
    model_config = ConfigDict(from_attributes=True)

    id: UUID = Field(serialization_alias="_id")
    name: str
    description: str
    deadline: datetime
    completed: bool
    assigned_user: UUID | None = Field(serialization_alias="assignedUser")
    assigned_user_name: str = Field(serialization_alias="assignedUserName")
    date_created: datetime = Field(serialization_alias="dateCreated")

    @field_validator("deadline", "date_created")
    @classmethod
    def assume_utc(cls, v: datetime) -> datetime:
        """SQLite hands back naive datetimes; everything is stored in UTC."""
        return v if v.tzinfo else v.replace(tzinfo=timezone.utc)


def task_document(task: object) -> dict:
    """ORM Task → JSON-ready dict with public field names."""
    return TaskDocument.model_validate(task).model_dump(mode="json", by_alias=True)
