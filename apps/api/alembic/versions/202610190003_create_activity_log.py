"""create activity log

Revision ID: 202610190003
Revises: 202610190002
Create Date: 2026-10-19 00:03:00
"""

from collections.abc import Sequence

from alembic import op
import sqlalchemy as sa


revision: str = "202610190003"
down_revision: str | None = "202610190002"
branch_labels: Sequence[str] | None = None
depends_on: Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "activity_log",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("uuid", sa.Uuid(), nullable=False),
        sa.Column("actor_id", sa.String(length=64), nullable=True),
        sa.Column("entity_kind", sa.String(length=32), nullable=False),
        sa.Column("entity_id", sa.Uuid(), nullable=False),
        sa.Column("action", sa.String(length=32), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("old_data", sa.JSON(), nullable=True),
        sa.Column("new_data", sa.JSON(), nullable=True),
        sa.Column("correlation_id", sa.String(length=128), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("uuid", name="uq_activity_log_uuid"),
    )
    op.create_index("ix_activity_log_entity", "activity_log", ["entity_kind", "entity_id"], unique=False)
    op.create_index("ix_activity_log_actor_created", "activity_log", ["actor_id", "created_at"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_activity_log_actor_created", table_name="activity_log")
    op.drop_index("ix_activity_log_entity", table_name="activity_log")
    op.drop_table("activity_log")
