"""create history tables

Revision ID: 202610190002
Revises: 202610190001
Create Date: 2026-10-19 00:02:00
"""

from collections.abc import Sequence

from alembic import op
import sqlalchemy as sa


revision: str = "202610190002"
down_revision: str | None = "202610190001"
branch_labels: Sequence[str] | None = None
depends_on: Sequence[str] | None = None


_HISTORY_TABLES = (
    ("brief_assign_history", "brief_id", "brief"),
    ("lead_assign_history", "lead_id", "lead"),
    ("planner_history", "planner_id", "planner"),
)


def _common_columns() -> list[sa.Column]:
    return [
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("uuid", sa.Uuid(), nullable=False),
        sa.Column("actor_id", sa.String(length=64), nullable=True),
        sa.Column("assign_to_id", sa.String(length=64), nullable=True),
        sa.Column("status", sa.String(length=64), nullable=True),
        sa.Column("status_changed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("note", sa.Text(), nullable=True),
        sa.Column("changes", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
    ]


def _extra_columns(table_name: str) -> list[sa.Column]:
    if table_name == "brief_assign_history":
        return [sa.Column("submission_date", sa.DateTime(timezone=True), nullable=True)]
    if table_name == "lead_assign_history":
        return [
            sa.Column("priority", sa.String(length=32), nullable=True),
            sa.Column("call_status", sa.String(length=64), nullable=True),
        ]
    return [
        sa.Column("submitted_plan", sa.JSON(), nullable=False),
        sa.Column("backup_plan", sa.Text(), nullable=True),
    ]


def upgrade() -> None:
    for table_name, fk_column, parent_table in _HISTORY_TABLES:
        op.create_table(
            table_name,
            *_common_columns(),
            sa.Column(fk_column, sa.Uuid(), nullable=False),
            *_extra_columns(table_name),
            sa.ForeignKeyConstraint([fk_column], [f"{parent_table}.id"], ondelete="CASCADE"),
            sa.UniqueConstraint("uuid", name=f"uq_{table_name}_uuid"),
        )
        op.create_index(f"ix_{table_name}_{fk_column}", table_name, [fk_column], unique=False)
        op.create_index(f"ix_{table_name}_actor_id", table_name, ["actor_id"], unique=False)
        op.create_index(f"ix_{table_name}_assign_to_id", table_name, ["assign_to_id"], unique=False)
        op.create_index(f"ix_{table_name}_created_at", table_name, ["created_at"], unique=False)


def downgrade() -> None:
    for table_name, fk_column, _ in reversed(_HISTORY_TABLES):
        op.drop_index(f"ix_{table_name}_created_at", table_name=table_name)
        op.drop_index(f"ix_{table_name}_assign_to_id", table_name=table_name)
        op.drop_index(f"ix_{table_name}_actor_id", table_name=table_name)
        op.drop_index(f"ix_{table_name}_{fk_column}", table_name=table_name)
        op.drop_table(table_name)
