"""create workflow entities

Revision ID: 202610190001
Revises:
Create Date: 2026-10-19 00:01:00
"""

from collections.abc import Sequence

from alembic import op
import sqlalchemy as sa


revision: str = "202610190001"
down_revision: str | None = None
branch_labels: Sequence[str] | None = None
depends_on: Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "lead",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("mobile_numbers", sa.JSON(), nullable=False),
        sa.Column("profile_url", sa.Text(), nullable=True),
        sa.Column("lead_type", sa.String(length=32), nullable=True),
        sa.Column("brand_id", sa.String(length=64), nullable=True),
        sa.Column("agency_id", sa.String(length=64), nullable=True),
        sa.Column("current_assign_user", sa.String(length=64), nullable=True),
        sa.Column("lead_status", sa.String(length=64), nullable=True),
        sa.Column("call_status", sa.String(length=64), nullable=True),
        sa.Column("priority", sa.String(length=32), nullable=True),
        sa.Column("call_attempt", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("comment", sa.Text(), nullable=True),
        sa.Column("created_by", sa.String(length=64), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_lead_owner_scope", "lead", ["created_by", "current_assign_user"], unique=False)
    op.create_index("ix_lead_email", "lead", ["email"], unique=False)

    op.create_table(
        "brief",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("product_name", sa.Text(), nullable=True),
        sa.Column("brand_id", sa.String(length=64), nullable=True),
        sa.Column("agency_id", sa.String(length=64), nullable=True),
        sa.Column("contact_person_id", sa.Uuid(), nullable=True),
        sa.Column("mode_of_campaign", sa.String(length=32), nullable=True),
        sa.Column("media_type", sa.String(length=32), nullable=True),
        sa.Column("budget", sa.Numeric(14, 2), nullable=True),
        sa.Column("assign_user_id", sa.String(length=64), nullable=True),
        sa.Column("brief_status", sa.String(length=64), nullable=True),
        sa.Column("priority", sa.String(length=32), nullable=True),
        sa.Column("comment", sa.Text(), nullable=True),
        sa.Column("submission_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_by", sa.String(length=64), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["contact_person_id"], ["lead.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_brief_owner_scope", "brief", ["created_by", "assign_user_id"], unique=False)

    op.create_table(
        "planner",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("brief_id", sa.Uuid(), nullable=False),
        sa.Column("planner_status", sa.String(length=64), nullable=True),
        sa.Column("submitted_plan", sa.JSON(), nullable=False),
        sa.Column("backup_plan", sa.Text(), nullable=True),
        sa.Column("comment", sa.Text(), nullable=True),
        sa.Column("created_by", sa.String(length=64), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["brief_id"], ["brief.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_planner_brief_id", "planner", ["brief_id"], unique=False)
    op.create_index("ix_planner_created_by", "planner", ["created_by"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_planner_created_by", table_name="planner")
    op.drop_index("ix_planner_brief_id", table_name="planner")
    op.drop_table("planner")
    op.drop_index("ix_brief_owner_scope", table_name="brief")
    op.drop_table("brief")
    op.drop_index("ix_lead_email", table_name="lead")
    op.drop_index("ix_lead_owner_scope", table_name="lead")
    op.drop_table("lead")
