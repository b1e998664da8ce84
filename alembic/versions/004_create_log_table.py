"""Create log table

Revision ID: 004
Revises: 003
Create Date: 2026-10-19

"""

from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

revision: str = "004"
down_revision: str | None = "003"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "log",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("project_id", sa.String(length=128), nullable=True),
        sa.Column("card_id", sa.String(length=128), nullable=True),
        sa.Column("score", sa.Float(), nullable=True),
        sa.Column("score_type", sa.String(length=128), nullable=True),
        sa.Column("note", sa.Text(), nullable=True),
        sa.Column("success", sa.Boolean(), nullable=False, server_default="0"),
        sa.Column("new_card", sa.Boolean(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_log_project_id"), "log", ["project_id"], unique=False)
    op.create_index(op.f("ix_log_card_id"), "log", ["card_id"], unique=False)
    op.create_index(op.f("ix_log_created_at"), "log", ["created_at"], unique=False)


def downgrade() -> None:
    op.drop_index(op.f("ix_log_created_at"), table_name="log")
    op.drop_index(op.f("ix_log_card_id"), table_name="log")
    op.drop_index(op.f("ix_log_project_id"), table_name="log")
    op.drop_table("log")
