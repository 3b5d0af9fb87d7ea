"""User ORM — a person who can be assigned Tasks.

Invariants:
    - id is UUID primary key (client-side default)
    - email is stored trimmed and lowercased; unique index backs the pre-write check
    - pending_tasks is ordered by insertion (PendingTask.id), no duplicate task ids

Design Decisions:
    - pendingTasks as an association table, not a JSON column: membership predicates
      and idempotent add/remove become plain SQL (ADR: portable across SQLite/PostgreSQL)
    - viewonly relationship: every list write goes through SqlRecordStore patches,
      the ORM only reads (no unit-of-work cascade racing the bulk statements)
    - lazy="selectin": the list is always serialized with the User
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, DateTime, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base
from app.models.pending_task import PendingTask


class User(Base):
    """User entity — owns the denormalized pendingTasks index."""
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4,
    )
    name: Mapped[str] = mapped_column(String(500), nullable=False)
    email: Mapped[str] = mapped_column(
        String(320), nullable=False, unique=True, index=True,
    )
    date_created: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    # Relationships
    pending_tasks: Mapped[list["PendingTask"]] = relationship(
        "PendingTask", order_by=PendingTask.id,
        viewonly=True, lazy="selectin",
    )

    @property
    def pending_task_ids(self) -> list[uuid.UUID]:
        return [entry.task_id for entry in self.pending_tasks]
