"""create scheduler table"""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa

revision = "0001_create_scheduler"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "scheduler",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("date", sa.String(length=8), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("comment", sa.Text(), nullable=False, server_default=""),
        sa.Column("repeat", sa.String(length=128), nullable=False, server_default=""),
        sa.CheckConstraint("length(repeat) <= 128", name="ck_scheduler_repeat_length"),
    )
    op.create_index("ix_scheduler_date", "scheduler", ["date"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_scheduler_date", table_name="scheduler")
    op.drop_table("scheduler")
