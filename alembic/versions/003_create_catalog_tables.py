"""Create project, lock and card tables

Revision ID: 003
Revises: 002
Create Date: 2026-10-19

"""

from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

revision: str = "003"
down_revision: str | None = "002"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "project",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("uid", sa.String(length=128), nullable=False),
        sa.Column("name", sa.String(length=256), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("picture", sa.String(length=512), nullable=True),
        sa.Column("materials", sa.Text(), nullable=False, server_default=""),
        sa.Column("tools", sa.Text(), nullable=False, server_default=""),
        sa.Column("steps", sa.JSON(), nullable=False),
        sa.Column("tips", sa.Text(), nullable=False, server_default=""),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_project_uid"), "project", ["uid"], unique=True)

    op.create_table(
        "lock",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("uid", sa.String(length=128), nullable=False),
        sa.Column("name", sa.String(length=256), nullable=False, server_default=""),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_lock_uid"), "lock", ["uid"], unique=True)

    op.create_table(
        "card",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("uid", sa.String(length=128), nullable=False),
        sa.Column("name", sa.String(length=256), nullable=False, server_default=""),
        sa.Column("idcard", sa.String(length=128), nullable=False, server_default=""),
        sa.Column("mobile", sa.String(length=64), nullable=False, server_default=""),
        sa.Column("qq", sa.String(length=64), nullable=False, server_default=""),
        sa.Column("memberid", sa.String(length=128), nullable=False, server_default=""),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("profield", sa.String(length=256), nullable=False, server_default=""),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_card_uid"), "card", ["uid"], unique=True)

    op.create_table(
        "card_lock",
        sa.Column("card_id", sa.Integer(), nullable=False),
        sa.Column("lock_id", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["card_id"], ["card.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["lock_id"], ["lock.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("card_id", "lock_id"),
    )


def downgrade() -> None:
    op.drop_table("card_lock")
    op.drop_index(op.f("ix_card_uid"), table_name="card")
    op.drop_table("card")
    op.drop_index(op.f("ix_lock_uid"), table_name="lock")
    op.drop_table("lock")
    op.drop_index(op.f("ix_project_uid"), table_name="project")
    op.drop_table("project")
