"""PendingTask ORM — one entry of a User's pendingTasks list.

Invariants:
    - (user_id, task_id) is unique: the list never holds a task twice
    - task_id has NO foreign key: the list is a derived index, dangling ids tolerated
    - Rows are deleted with their User (ON DELETE CASCADE)

Design Decisions:
    - Integer autoincrement id doubles as list position
"""

import uuid

from sqlalchemy import Integer, ForeignKey, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base


class PendingTask(Base):
    """Association row — a Task id listed on a User."""
    __tablename__ = "user_pending_tasks"
    __table_args__ = (
        UniqueConstraint("user_id", "task_id", name="uq_user_pending_task"),
    )

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False,
        index=True,
    )
    task_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)
