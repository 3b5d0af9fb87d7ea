"""Initial schema — users, user_pending_tasks, tasks.

Revision ID: 001_initial
Revises: None
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("name", sa.String(500), nullable=False),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("date_created", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "user_pending_tasks",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "user_id", sa.Uuid,
            sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("task_id", sa.Uuid, nullable=False),
        sa.UniqueConstraint("user_id", "task_id", name="uq_user_pending_task"),
    )
    op.create_index("ix_user_pending_tasks_user_id", "user_pending_tasks", ["user_id"])
    op.create_index("ix_user_pending_tasks_task_id", "user_pending_tasks", ["task_id"])

    op.create_table(
        "tasks",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("name", sa.String(500), nullable=False),
        sa.Column("description", sa.Text, nullable=False, server_default=""),
        sa.Column("deadline", sa.DateTime(timezone=True), nullable=False),
        sa.Column("completed", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("assigned_user", sa.Uuid, nullable=True),
        sa.Column("assigned_user_name", sa.String(500), nullable=False, server_default="unassigned"),
        sa.Column("date_created", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_tasks_assigned_user", "tasks", ["assigned_user"])


def downgrade() -> None:
    op.drop_index("ix_tasks_assigned_user", table_name="tasks")
    op.drop_table("tasks")
    op.drop_index("ix_user_pending_tasks_task_id", table_name="user_pending_tasks")
    op.drop_index("ix_user_pending_tasks_user_id", table_name="user_pending_tasks")
    op.drop_table("user_pending_tasks")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
