from __future__ import annotations

from datetime import datetime
from typing import Any, Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict


ActivityAction = Literal["created", "updated", "deleted", "restored", "force_deleted"]


class ActivityLogRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    uuid: UUID
    actor_id: str | None
    entity_kind: str
    entity_id: UUID
    action: ActivityAction
    description: str | None
    old_data: dict[str, Any] | None
    new_data: dict[str, Any] | None
    correlation_id: str | None
    created_at: datetime
