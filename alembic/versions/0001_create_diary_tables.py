"""Create "Diary" and "Diary-Like" tables.

Revision ID: 0001
Revises:
Create Date: 2026-10-18
"""

import sqlalchemy as sa
from alembic import op

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "Diary",
        sa.Column("diaryId", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("userId", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(length=100), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("imageUrl", sa.String(length=500), nullable=True),
        sa.Column("likes", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column(
            "createdAt",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column("updatedAt", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_diary_user_id_created_at", "Diary", ["userId", "createdAt"])

    op.create_table(
        "Diary-Like",
        sa.Column(
            "diaryId",
            sa.Integer(),
            sa.ForeignKey("Diary.diaryId"),
            primary_key=True,
        ),
        sa.Column("userId", sa.Integer(), primary_key=True),
        sa.Column(
            "createdAt",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    )


def downgrade() -> None:
    op.drop_table("Diary-Like")
    op.drop_index("ix_diary_user_id_created_at", table_name="Diary")
    op.drop_table("Diary")
