from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class HistoryRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    uuid: UUID
    entity_id: UUID
    actor_id: str | None
    assign_to_id: str | None
    status: str | None
    status_changed_at: datetime | None
    note: str | None
    changes: dict[str, Any]
    created_at: datetime
    deleted_at: datetime | None


class BriefHistoryRead(HistoryRead):
    submission_date: datetime | None


class LeadHistoryRead(HistoryRead):
    priority: str | None
    call_status: str | None


class PlannerHistoryRead(HistoryRead):
    submitted_plan: list[str]
    backup_plan: str | None
