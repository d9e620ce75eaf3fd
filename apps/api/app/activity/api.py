from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.activity.schemas import ActivityAction, ActivityLogRead
from app.activity.service import activity_log_service
from app.core.auth import get_current_actor
from app.core.database import get_db
from app.core.pagination import Page
from app.history.tracking import EntityKind
from app.platform.security.context import ActorUser


router = APIRouter(prefix="/api/activity-logs", tags=["activity"])


@router.get("", response_model=Page[ActivityLogRead])
def list_activity_logs(
    kind: EntityKind | None = Query(default=None),
    entity_id: uuid.UUID | None = Query(default=None),
    actor_id: str | None = Query(default=None),
    action: ActivityAction | None = Query(default=None),
    date_from: datetime | None = Query(default=None),
    date_to: datetime | None = Query(default=None),
    page: int = Query(default=1, ge=1),
    per_page: int | None = Query(default=None),
    db: Session = Depends(get_db),
    actor_user: ActorUser | None = Depends(get_current_actor),
) -> Any:
    return activity_log_service.list_logs(
        db,
        actor_user,
        kind=kind,
        entity_id=entity_id,
        actor_id=actor_id,
        action=action,
        date_from=date_from,
        date_to=date_to,
        page=page,
        per_page=per_page,
    )


@router.get("/{kind}/{entity_id}", response_model=Page[ActivityLogRead])
def list_entity_activity_logs(
    kind: EntityKind,
    entity_id: uuid.UUID,
    page: int = Query(default=1, ge=1),
    per_page: int | None = Query(default=None),
    db: Session = Depends(get_db),
    actor_user: ActorUser | None = Depends(get_current_actor),
) -> Any:
    return activity_log_service.list_logs(
        db,
        actor_user,
        kind=kind,
        entity_id=entity_id,
        page=page,
        per_page=per_page,
    )
