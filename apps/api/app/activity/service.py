from __future__ import annotations

import logging
from datetime import datetime
from typing import Any
from uuid import UUID

from fastapi.encoders import jsonable_encoder
from sqlalchemy import Select, and_, false, or_, select
from sqlalchemy.orm import Session

from app.activity.models import ActivityLog
from app.activity.schemas import ActivityLogRead
from app.context import get_correlation_id
from app.core.config import get_settings
from app.core.pagination import Page, PageMeta, clamp_per_page, paginate
from app.history.registry import TRACKED_ENTITIES
from app.history.tracking import EntityKind
from app.metrics import observe_activity_write
from app.platform.security.context import ActorUser
from app.platform.security.visibility import visible_ids_query


logger = logging.getLogger("app.activity")


class ActivityLogService:
    def record(
        self,
        session: Session,
        *,
        actor_id: str | None,
        kind: EntityKind,
        entity_id: UUID,
        action: str,
        old_data: dict[str, Any] | None = None,
        new_data: dict[str, Any] | None = None,
    ) -> ActivityLog | None:
        """Best-effort write: failures are rolled back and logged, never raised."""

        description = f"{kind.value} {action.replace('_', ' ')} by {actor_id or 'system'}"
        try:
            entry = ActivityLog(
                actor_id=actor_id,
                entity_kind=kind.value,
                entity_id=entity_id,
                action=action,
                description=description,
                old_data=jsonable_encoder(old_data) if old_data is not None else None,
                new_data=jsonable_encoder(new_data) if new_data is not None else None,
                correlation_id=get_correlation_id(),
            )
            session.add(entry)
            session.commit()
        except Exception as exc:
            session.rollback()
            observe_activity_write(kind.value, action, "failed")
            logger.exception(
                "activity.write_failed",
                extra={
                    "entity_kind": kind.value,
                    "entity_id": str(entity_id),
                    "actor_id": actor_id,
                    "action": action,
                    "error": str(exc),
                },
            )
            return None

        observe_activity_write(kind.value, action, "recorded")
        return entry

    def list_logs(
        self,
        session: Session,
        actor: ActorUser | None,
        *,
        kind: EntityKind | None = None,
        entity_id: UUID | None = None,
        actor_id: str | None = None,
        action: str | None = None,
        date_from: datetime | None = None,
        date_to: datetime | None = None,
        page: int = 1,
        per_page: int | None = None,
    ) -> Page[ActivityLogRead]:
        settings = get_settings()
        resolved_per_page = clamp_per_page(
            per_page,
            default=settings.activity_default_per_page,
            maximum=settings.activity_max_per_page,
        )

        query = self._scoped_query(actor, kind)
        if kind is not None:
            query = query.where(ActivityLog.entity_kind == kind.value)
        if entity_id is not None:
            query = query.where(ActivityLog.entity_id == entity_id)
        if actor_id is not None:
            query = query.where(ActivityLog.actor_id == actor_id)
        if action is not None:
            query = query.where(ActivityLog.action == action)
        if date_from is not None:
            query = query.where(ActivityLog.created_at >= date_from)
        if date_to is not None:
            query = query.where(ActivityLog.created_at <= date_to)
        query = query.order_by(ActivityLog.created_at.desc(), ActivityLog.id.desc())

        items, meta = paginate(session, query, page=page, per_page=resolved_per_page)
        return Page[ActivityLogRead](
            data=[ActivityLogRead.model_validate(item) for item in items],
            meta=PageMeta(pagination=meta),
        )

    @staticmethod
    def _scoped_query(actor: ActorUser | None, kind: EntityKind | None) -> Select[Any]:
        query = select(ActivityLog)
        if actor is None:
            return query.where(false())
        if actor.is_super_admin:
            return query

        kinds = [kind] if kind is not None else list(TRACKED_ENTITIES)
        clauses = [
            and_(
                ActivityLog.entity_kind == item.value,
                ActivityLog.entity_id.in_(visible_ids_query(TRACKED_ENTITIES[item].scope, actor)),
            )
            for item in kinds
        ]
        return query.where(or_(*clauses))


activity_log_service = ActivityLogService()
