from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any
from uuid import UUID

from fastapi import HTTPException, status
from pydantic import BaseModel
from sqlalchemy import Select, select
from sqlalchemy.orm import Session

from app.core.config import get_settings
from app.core.pagination import Page, PageMeta, clamp_per_page, paginate
from app.history.repository import HistoryRepository, TrashedMode
from app.history.tracking import TrackedEntity
from app.platform.security.context import ActorUser
from app.platform.security.visibility import apply_visibility_scope, has_full_visibility
from app.workflow.models import utcnow


logger = logging.getLogger("app.history")


@dataclass(frozen=True, slots=True)
class HistoryFilters:
    entity_id: UUID | None = None
    actor_id: str | None = None
    assign_to_id: str | None = None
    status: str | None = None
    date_from: datetime | None = None
    date_to: datetime | None = None
    with_trashed: bool = False
    only_trashed: bool = False
    exclude_deleted_entities: bool = False

    @property
    def trashed(self) -> TrashedMode:
        if self.only_trashed:
            return "only"
        if self.with_trashed:
            return "with"
        return "exclude"


@dataclass(slots=True)
class HistoryQueryService:
    """Scoped read access to one entity kind's history, plus admin tombstone handling."""

    tracked: TrackedEntity
    repository: HistoryRepository = field(default_factory=HistoryRepository)

    @property
    def not_found_detail(self) -> str:
        return f"{self.tracked.label} history entry not found"

    def list_entries(
        self,
        session: Session,
        actor: ActorUser | None,
        filters: HistoryFilters,
        *,
        page: int = 1,
        per_page: int | None = None,
    ) -> Page[Any]:
        settings = get_settings()
        resolved_per_page = clamp_per_page(
            per_page,
            default=settings.history_default_per_page,
            maximum=settings.history_max_per_page,
        )
        query = self._ordered(self._filtered_query(actor, filters))
        items, meta = paginate(session, query, page=page, per_page=resolved_per_page)
        return Page[self.tracked.history_schema](
            data=[self._to_read(item) for item in items],
            meta=PageMeta(pagination=meta),
        )

    def recent(self, session: Session, actor: ActorUser | None, limit: int | None = None) -> list[Any]:
        settings = get_settings()
        resolved_limit = clamp_per_page(
            limit,
            default=settings.history_recent_default,
            maximum=settings.history_max_per_page,
        )
        query = self._ordered(self.repository.scoped_query(self.tracked, actor)).limit(resolved_limit)
        return [self._to_read(item) for item in session.scalars(query)]

    def list_for_entity(
        self,
        session: Session,
        actor: ActorUser | None,
        entity_id: UUID,
        *,
        page: int = 1,
        per_page: int | None = None,
    ) -> Page[Any]:
        model = self.tracked.model
        parent = session.scalar(apply_visibility_scope(select(model.id).where(model.id == entity_id), self.tracked.scope, actor))
        if parent is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"{self.tracked.label} not found")
        return self.list_entries(session, actor, HistoryFilters(entity_id=entity_id), page=page, per_page=per_page)

    def assigned_by(
        self,
        session: Session,
        actor: ActorUser | None,
        user_id: str,
        *,
        page: int = 1,
        per_page: int | None = None,
    ) -> Page[Any]:
        return self.list_entries(session, actor, HistoryFilters(actor_id=user_id), page=page, per_page=per_page)

    def assigned_to(
        self,
        session: Session,
        actor: ActorUser | None,
        user_id: str,
        *,
        page: int = 1,
        per_page: int | None = None,
    ) -> Page[Any]:
        return self.list_entries(session, actor, HistoryFilters(assign_to_id=user_id), page=page, per_page=per_page)

    def get(self, session: Session, actor: ActorUser | None, history_id: int) -> Any:
        entry = self.repository.get(session, self.tracked, actor, history_id)
        if entry is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=self.not_found_detail)
        return self._to_read(entry)

    def get_by_uuid(self, session: Session, actor: ActorUser | None, entry_uuid: UUID) -> Any:
        entry = self.repository.get_by_uuid(session, self.tracked, actor, entry_uuid)
        if entry is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=self.not_found_detail)
        return self._to_read(entry)

    def delete(self, session: Session, actor: ActorUser | None, history_id: int) -> None:
        entry = self._get_for_admin(session, actor, history_id, trashed="exclude")
        entry.deleted_at = utcnow()
        session.commit()
        self._log_admin_action("history.tombstoned", actor, entry)

    def restore(self, session: Session, actor: ActorUser | None, history_id: int) -> Any:
        entry = self._get_for_admin(session, actor, history_id, trashed="only")
        entry.deleted_at = None
        session.commit()
        session.refresh(entry)
        self._log_admin_action("history.restored", actor, entry)
        return self._to_read(entry)

    def force_delete(self, session: Session, actor: ActorUser | None, history_id: int) -> None:
        entry = self._get_for_admin(session, actor, history_id, trashed="with")
        self._log_admin_action("history.purged", actor, entry)
        session.delete(entry)
        session.commit()

    def _get_for_admin(
        self,
        session: Session,
        actor: ActorUser | None,
        history_id: int,
        *,
        trashed: TrashedMode,
    ) -> Any:
        if actor is None:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="authentication required")
        if not has_full_visibility(actor):
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="history maintenance requires super admin")
        entry = self.repository.get(session, self.tracked, actor, history_id, trashed=trashed)
        if entry is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=self.not_found_detail)
        return entry

    def _filtered_query(self, actor: ActorUser | None, filters: HistoryFilters) -> Select[Any]:
        history_model = self.tracked.history_model
        query = self.repository.scoped_query(self.tracked, actor, trashed=filters.trashed)
        if filters.entity_id is not None:
            query = query.where(history_model.entity_id == filters.entity_id)
        if filters.actor_id is not None:
            query = query.where(history_model.actor_id == filters.actor_id)
        if filters.assign_to_id is not None:
            query = query.where(history_model.assign_to_id == filters.assign_to_id)
        if filters.status is not None:
            query = query.where(history_model.status == filters.status)
        if filters.date_from is not None:
            query = query.where(history_model.created_at >= filters.date_from)
        if filters.date_to is not None:
            query = query.where(history_model.created_at <= filters.date_to)
        if filters.exclude_deleted_entities:
            model = self.tracked.model
            live_ids = select(model.id).where(model.deleted_at.is_(None))
            query = query.where(history_model.entity_id.in_(live_ids))
        return query

    def _ordered(self, query: Select[Any]) -> Select[Any]:
        history_model = self.tracked.history_model
        return query.order_by(history_model.created_at.desc(), history_model.id.desc())

    def _to_read(self, entry: Any) -> BaseModel:
        return self.tracked.history_schema.model_validate(entry)

    def _log_admin_action(self, message: str, actor: ActorUser | None, entry: Any) -> None:
        logger.info(
            message,
            extra={
                "entity_kind": self.tracked.label,
                "entity_id": str(entry.entity_id),
                "actor_id": actor.user_id if actor is not None else None,
            },
        )
