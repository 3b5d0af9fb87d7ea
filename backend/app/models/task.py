"""Task ORM — a unit of work with an optional assignee.

Invariants:
    - id is UUID primary key (client-side default)
    - name and deadline are non-nullable
    - assigned_user_name == "unassigned" iff assigned_user is NULL
    - date_created set once at insert

Design Decisions:
    - assigned_user carries NO foreign key: User deletion unassigns through an explicit
      bulk update, mirroring the pendingTasks side (ADR: one protocol for both sides)
    - assigned_user_name denormalized: lists render without a join
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, Text, Boolean, DateTime, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.core.domain_types import UNASSIGNED
from app.db.base import Base


class Task(Base):
    """Task entity — authoritative side of the assignment relation."""
    __tablename__ = "tasks"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4,
    )
    name: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    deadline: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False,
    )
    completed: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False,
    )
    assigned_user: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, nullable=True, default=None, index=True,
    )
    assigned_user_name: Mapped[str] = mapped_column(
        String(500), nullable=False, default=UNASSIGNED,
    )
    date_created: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
