"""Create tasks table

Revision ID: a1b2c3d4e5f6
Revises:
Create Date: 2026-10-19 10:00:00.000000

"""

from collections.abc import Sequence
from typing import Union

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "a1b2c3d4e5f6"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

task_status = sa.Enum("TODO", "IN_PROGRESS", "DONE", name="taskstatus")
task_severity = sa.Enum("LOW", "MEDIUM", "HIGH", "CRITICAL", name="taskseverity")


def upgrade() -> None:
    op.create_table(
        "tasks",
        sa.Column("pk", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("id", sa.String(length=64), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("assigned_to", sa.String(length=255), nullable=True),
        sa.Column("status", task_status, nullable=False),
        sa.Column("severity", task_severity, nullable=False),
        sa.PrimaryKeyConstraint("pk"),
    )
    op.create_index(op.f("ix_tasks_id"), "tasks", ["id"], unique=True)
    op.create_index(op.f("ix_tasks_title"), "tasks", ["title"], unique=False)
    op.create_index(op.f("ix_tasks_assigned_to"), "tasks", ["assigned_to"], unique=False)
    op.create_index("idx_tasks_status_severity", "tasks", ["status", "severity"], unique=False)


def downgrade() -> None:
    op.drop_index("idx_tasks_status_severity", table_name="tasks")
    op.drop_index(op.f("ix_tasks_assigned_to"), table_name="tasks")
    op.drop_index(op.f("ix_tasks_title"), table_name="tasks")
    op.drop_index(op.f("ix_tasks_id"), table_name="tasks")
    op.drop_table("tasks")
    task_severity.drop(op.get_bind(), checkfirst=True)
    task_status.drop(op.get_bind(), checkfirst=True)
