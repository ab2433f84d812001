"""Initial schema

Revision ID: 0001
Revises:
Create Date: 2026-10-18

"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

JSONType = sa.JSON().with_variant(postgresql.JSONB(), "postgresql")


def upgrade() -> None:
    # Blueprints table
    op.create_table(
        "habit_blueprints",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("user_id", sa.String(255), nullable=False),
        sa.Column("goal", sa.Text(), nullable=False),
        sa.Column("content_source", sa.Text(), nullable=False),
        sa.Column("content_type", sa.String(20), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("ai_output", JSONType, nullable=True),
        sa.Column("title", sa.String(255), nullable=True),
        sa.Column("source_payload", JSONType, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), onupdate=sa.func.now()),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_habit_blueprints_user_id", "habit_blueprints", ["user_id"])
    op.create_index("ix_habit_blueprints_status", "habit_blueprints", ["status"])

    # Retry jobs table
    op.create_table(
        "blueprint_retry_jobs",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("blueprint_id", sa.UUID(), nullable=False),
        sa.Column("request_data", JSONType, nullable=False),
        sa.Column("retry_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("next_retry_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("error_type", sa.String(100), nullable=True),
        sa.Column("last_error", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["blueprint_id"], ["habit_blueprints.id"], ondelete="CASCADE"),
    )
    op.create_index(
        "ix_blueprint_retry_jobs_next_retry_at", "blueprint_retry_jobs", ["next_retry_at"]
    )
    op.create_index(
        "ix_blueprint_retry_jobs_blueprint_id", "blueprint_retry_jobs", ["blueprint_id"]
    )


def downgrade() -> None:
    op.drop_index("ix_blueprint_retry_jobs_blueprint_id", table_name="blueprint_retry_jobs")
    op.drop_index("ix_blueprint_retry_jobs_next_retry_at", table_name="blueprint_retry_jobs")
    op.drop_table("blueprint_retry_jobs")

    op.drop_index("ix_habit_blueprints_status", table_name="habit_blueprints")
    op.drop_index("ix_habit_blueprints_user_id", table_name="habit_blueprints")
    op.drop_table("habit_blueprints")
