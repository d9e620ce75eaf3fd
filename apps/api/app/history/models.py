from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import JSON, DateTime, ForeignKey, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base
from app.workflow.models import utcnow


class HistoryEntryMixin:
    """Columns shared by every per-kind history table.

    ``assign_to_id`` and ``status`` hold the entity's values right after the update;
    ``changes`` holds ``{field: {"old": ..., "new": ...}}`` for the tracked fields that
    changed. Rows are written once and never updated except for the admin tombstone.
    """

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    uuid: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), nullable=False, unique=True, default=uuid4)
    actor_id: Mapped[str | None] = mapped_column(String(64), nullable=True, index=True)
    assign_to_id: Mapped[str | None] = mapped_column(String(64), nullable=True, index=True)
    status: Mapped[str | None] = mapped_column(String(64), nullable=True)
    status_changed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    note: Mapped[str | None] = mapped_column(Text, nullable=True)
    changes: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


class BriefAssignHistory(HistoryEntryMixin, Base):
    __tablename__ = "brief_assign_history"

    entity_id: Mapped[UUID] = mapped_column(
        "brief_id",
        Uuid(as_uuid=True),
        ForeignKey("brief.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    submission_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


class LeadAssignHistory(HistoryEntryMixin, Base):
    __tablename__ = "lead_assign_history"

    entity_id: Mapped[UUID] = mapped_column(
        "lead_id",
        Uuid(as_uuid=True),
        ForeignKey("lead.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    priority: Mapped[str | None] = mapped_column(String(32), nullable=True)
    call_status: Mapped[str | None] = mapped_column(String(64), nullable=True)


class PlannerHistory(HistoryEntryMixin, Base):
    __tablename__ = "planner_history"

    entity_id: Mapped[UUID] = mapped_column(
        "planner_id",
        Uuid(as_uuid=True),
        ForeignKey("planner.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    submitted_plan: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    backup_plan: Mapped[str | None] = mapped_column(Text, nullable=True)
