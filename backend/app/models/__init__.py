"""ORM Models — SQLAlchemy declarative models for Users, Tasks and the pendingTasks index.

Invariants:
    - All models inherit from Base (db/base.py)
    - Task.assigned_user is authoritative; user_pending_tasks is derived from it

Design Decisions:
    - One file per entity for locality
    - All models imported here so SQLAlchemy resolves string-based relationship()
      references before any query runs
"""

from app.models.pending_task import PendingTask  # noqa: F401
from app.models.user import User  # noqa: F401
from app.models.task import Task  # noqa: F401
