"""User Schemas — request body and response document for /api/users.

Invariants:
    - UserBody.name: stripped, non-empty
    - UserBody.email: stripped, lowercased, non-empty
    - pendingTasks is validated by the service (ids → InvalidIdError), not here
"""

from datetime import datetime, timezone
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator


class UserBody(BaseModel):
    """User create/replace body (PUT is a full replace)."""
    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(min_length=1, max_length=500)
    email: str = Field(min_length=1, max_length=320)
    pending_tasks: Any = Field(None, alias="pendingTasks")

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name cannot be empty or whitespace")
        return v

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        v = v.strip().lower()
        if not v:
            raise ValueError("email cannot be empty or whitespace")
        return v


class UserDocument(BaseModel):
    """User as returned to clients."""
    model_config = ConfigDict(from_attributes=True)

    id: UUID = Field(serialization_alias="_id")
    name: str
    email: str
    pending_tasks: list[UUID] = Field(
        validation_alias="pending_task_ids", serialization_alias="pendingTasks",
    )
    date_created: datetime = Field(serialization_alias="dateCreated")

    @field_validator("date_created")
    @classmethod
    def assume_utc(cls, v: datetime) -> datetime:
        return v if v.tzinfo else v.replace(tzinfo=timezone.utc)


def user_document(user: object) -> dict:
    """ORM User → JSON-ready dict with public field names."""
    return UserDocument.model_validate(user).model_dump(mode="json", by_alias=True)
