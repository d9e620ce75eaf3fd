from __future__ import annotations

import logging
import uuid
from collections.abc import Mapping
from typing import Any

from fastapi import HTTPException, status
from pydantic import BaseModel
from sqlalchemy import Select, delete, inspect, or_, select, update
from sqlalchemy.orm import Session

from app.activity.service import ActivityLogService, activity_log_service
from app.core.config import get_settings
from app.core.pagination import Page, PageMeta, clamp_per_page, paginate
from app.history.models import PlannerHistory
from app.history.recorder import HistoryRecorder, history_recorder
from app.history.registry import BRIEFS, LEADS, PLANNERS
from app.history.repository import TrashedMode
from app.history.tracking import TrackedEntity, detect_changes, snapshot
from app.platform.security.context import ActorUser
from app.platform.security.visibility import apply_visibility_scope, has_full_visibility, is_owner
from app.workflow.models import Brief, Lead, Planner, utcnow
from app.workflow.schemas import BriefRead, LeadRead, PlannerRead, media_type_allowed


logger = logging.getLogger("app.workflow")

_UNAUDITED_COLUMNS = {"created_at", "updated_at", "deleted_at"}


class WorkflowEntityService:
    """Create/read/update/delete lifecycle shared by briefs, leads and planners.

    Every read is scoped by the kind's ownership rule. ``update`` commits the row first
    and then hands the before/after snapshots to the history recorder and the activity
    log, both of which swallow their own failures.
    """

    tracked: TrackedEntity
    read_schema: type[BaseModel]
    filter_fields: tuple[str, ...] = ()
    search_fields: tuple[str, ...] = ()

    def __init__(
        self,
        recorder: HistoryRecorder | None = None,
        activity: ActivityLogService | None = None,
    ) -> None:
        self.recorder = recorder or history_recorder
        self.activity = activity or activity_log_service

    @property
    def label(self) -> str:
        return self.tracked.label

    def create(self, session: Session, actor_user: ActorUser, dto: BaseModel) -> BaseModel:
        payload = dto.model_dump()
        self.prepare_create(session, actor_user, payload)

        entity = self.tracked.model(**payload, created_by=actor_user.user_id)
        session.add(entity)
        session.commit()
        session.refresh(entity)

        logger.info(
            "workflow.created",
            extra={"entity_kind": self.label, "entity_id": str(entity.id), "actor_id": actor_user.user_id},
        )
        self.activity.record(
            session,
            actor_id=actor_user.user_id,
            kind=self.tracked.kind,
            entity_id=entity.id,
            action="created",
            new_data=snapshot(entity, self._audit_fields()),
        )
        return self._to_read(entity)

    def list_entities(
        self,
        session: Session,
        actor_user: ActorUser | None,
        *,
        filters: Mapping[str, Any] | None = None,
        q: str | None = None,
        trashed: TrashedMode = "exclude",
        page: int = 1,
        per_page: int | None = None,
    ) -> Page[Any]:
        settings = get_settings()
        resolved_per_page = clamp_per_page(
            per_page,
            default=settings.entity_default_per_page,
            maximum=settings.entity_max_per_page,
        )
        model = self.tracked.model
        query = self._scoped_query(actor_user, trashed=trashed)
        for name in self.filter_fields:
            value = (filters or {}).get(name)
            if value is not None:
                query = query.where(getattr(model, name) == value)
        if q and self.search_fields:
            pattern = f"%{q.strip()}%"
            query = query.where(or_(*(getattr(model, name).ilike(pattern) for name in self.search_fields)))
        query = query.order_by(model.created_at.desc(), model.id.desc())

        items, meta = paginate(session, query, page=page, per_page=resolved_per_page)
        return Page[self.read_schema](
            data=[self._to_read(item) for item in items],
            meta=PageMeta(pagination=meta),
        )

    def get(self, session: Session, actor_user: ActorUser | None, entity_id: uuid.UUID) -> BaseModel:
        return self._to_read(self._get_visible(session, actor_user, entity_id))

    def update(self, session: Session, actor_user: ActorUser, entity_id: uuid.UUID, dto: BaseModel) -> BaseModel:
        entity = self._get_visible(session, actor_user, entity_id)
        payload = dto.model_dump(exclude_unset=True)
        note = payload.pop("note", None)
        columns = inspect(self.tracked.model).columns
        for name, value in payload.items():
            if value is None and not columns[name].nullable:
                raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=f"{name} cannot be null")
        self.prepare_update(session, actor_user, entity, payload)
        if not payload:
            return self._to_read(entity)

        audit_fields = self._audit_fields()
        before = snapshot(entity, audit_fields)
        for name, value in payload.items():
            setattr(entity, name, value)
        session.commit()
        session.refresh(entity)
        after = snapshot(entity, audit_fields)

        diff = detect_changes(before, after, self.tracked.tracked_fields)
        self.recorder.record_change(
            session,
            self.tracked,
            entity,
            diff,
            actor_id=actor_user.user_id,
            note=note,
            fallback_note=after.get("comment"),
        )

        column_changes = detect_changes(before, after, audit_fields)
        if column_changes:
            self.activity.record(
                session,
                actor_id=actor_user.user_id,
                kind=self.tracked.kind,
                entity_id=entity_id,
                action="updated",
                old_data={name: change.old for name, change in column_changes.items()},
                new_data={name: change.new for name, change in column_changes.items()},
            )
        return self._to_read(entity)

    def soft_delete(self, session: Session, actor_user: ActorUser, entity_id: uuid.UUID) -> None:
        entity = self._get_visible(session, actor_user, entity_id)
        self._ensure_can_manage(actor_user, entity)
        entity.deleted_at = utcnow()
        session.commit()
        self.activity.record(
            session,
            actor_id=actor_user.user_id,
            kind=self.tracked.kind,
            entity_id=entity_id,
            action="deleted",
        )

    def restore(self, session: Session, actor_user: ActorUser, entity_id: uuid.UUID) -> BaseModel:
        entity = self._get_visible(session, actor_user, entity_id, trashed="only")
        self._ensure_can_manage(actor_user, entity)
        entity.deleted_at = None
        session.commit()
        session.refresh(entity)
        self.activity.record(
            session,
            actor_id=actor_user.user_id,
            kind=self.tracked.kind,
            entity_id=entity_id,
            action="restored",
        )
        return self._to_read(entity)

    def force_delete(self, session: Session, actor_user: ActorUser, entity_id: uuid.UUID) -> None:
        entity = self._get_visible(session, actor_user, entity_id, trashed="with")
        self._ensure_can_manage(actor_user, entity)
        old_data = snapshot(entity, self._audit_fields())

        self.before_purge(session, entity)
        history_model = self.tracked.history_model
        session.execute(delete(history_model).where(history_model.entity_id == entity_id))
        session.delete(entity)
        session.commit()

        logger.info(
            "workflow.purged",
            extra={"entity_kind": self.label, "entity_id": str(entity_id), "actor_id": actor_user.user_id},
        )
        self.activity.record(
            session,
            actor_id=actor_user.user_id,
            kind=self.tracked.kind,
            entity_id=entity_id,
            action="force_deleted",
            old_data=old_data,
        )

    def prepare_create(self, session: Session, actor_user: ActorUser, payload: dict[str, Any]) -> None:
        return None

    def prepare_update(self, session: Session, actor_user: ActorUser, entity: Any, payload: dict[str, Any]) -> None:
        return None

    def before_purge(self, session: Session, entity: Any) -> None:
        return None

    def _scoped_query(self, actor_user: ActorUser | None, *, trashed: TrashedMode = "exclude") -> Select[Any]:
        model = self.tracked.model
        query = select(model)
        if trashed == "exclude":
            query = query.where(model.deleted_at.is_(None))
        elif trashed == "only":
            query = query.where(model.deleted_at.is_not(None))
        return apply_visibility_scope(query, self.tracked.scope, actor_user)

    def _get_visible(
        self,
        session: Session,
        actor_user: ActorUser | None,
        entity_id: uuid.UUID,
        *,
        trashed: TrashedMode = "exclude",
    ) -> Any:
        model = self.tracked.model
        query = (
            self._scoped_query(actor_user, trashed=trashed)
            .where(model.id == entity_id)
            .execution_options(populate_existing=True)
        )
        entity = session.scalar(query)
        if entity is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"{self.label} not found")
        return entity

    def _ensure_can_manage(self, actor_user: ActorUser, entity: Any) -> None:
        if has_full_visibility(actor_user) or is_owner(entity, self.tracked.scope, actor_user):
            return
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"only the creator of this {self.label} can delete or restore it",
        )

    def _audit_fields(self) -> tuple[str, ...]:
        return tuple(
            column.key
            for column in inspect(self.tracked.model).column_attrs
            if column.key not in _UNAUDITED_COLUMNS
        )

    def _to_read(self, entity: Any) -> BaseModel:
        return self.read_schema.model_validate(entity)


class BriefService(WorkflowEntityService):
    tracked = BRIEFS
    read_schema = BriefRead
    filter_fields = (
        "brief_status",
        "assign_user_id",
        "created_by",
        "priority",
        "mode_of_campaign",
        "brand_id",
        "agency_id",
    )
    search_fields = ("name", "product_name")

    def prepare_create(self, session: Session, actor_user: ActorUser, payload: dict[str, Any]) -> None:
        self._ensure_contact_exists(session, payload.get("contact_person_id"))

    def prepare_update(self, session: Session, actor_user: ActorUser, entity: Any, payload: dict[str, Any]) -> None:
        mode = payload.get("mode_of_campaign", entity.mode_of_campaign)
        media_type = payload.get("media_type", entity.media_type)
        if not media_type_allowed(mode, media_type):
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail=f"media_type '{media_type}' is not available for {mode} campaigns",
            )
        if "contact_person_id" in payload:
            self._ensure_contact_exists(session, payload["contact_person_id"])

    def before_purge(self, session: Session, entity: Any) -> None:
        planner_ids = select(Planner.id).where(Planner.brief_id == entity.id)
        session.execute(delete(PlannerHistory).where(PlannerHistory.entity_id.in_(planner_ids)))
        session.execute(delete(Planner).where(Planner.brief_id == entity.id))

    @staticmethod
    def _ensure_contact_exists(session: Session, contact_person_id: uuid.UUID | None) -> None:
        if contact_person_id is None:
            return
        contact = session.scalar(select(Lead.id).where(Lead.id == contact_person_id, Lead.deleted_at.is_(None)))
        if contact is None:
            raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="contact person not found")


class LeadService(WorkflowEntityService):
    tracked = LEADS
    read_schema = LeadRead
    filter_fields = (
        "lead_status",
        "call_status",
        "priority",
        "current_assign_user",
        "created_by",
        "lead_type",
        "brand_id",
        "agency_id",
    )
    search_fields = ("name", "email")

    def before_purge(self, session: Session, entity: Any) -> None:
        session.execute(update(Brief).where(Brief.contact_person_id == entity.id).values(contact_person_id=None))


class PlannerService(WorkflowEntityService):
    tracked = PLANNERS
    read_schema = PlannerRead
    filter_fields = ("brief_id", "planner_status", "created_by")

    def prepare_create(self, session: Session, actor_user: ActorUser, payload: dict[str, Any]) -> None:
        query = select(Brief.id).where(Brief.id == payload["brief_id"], Brief.deleted_at.is_(None))
        if session.scalar(apply_visibility_scope(query, BRIEFS.scope, actor_user)) is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="brief not found")


brief_service = BriefService()
lead_service = LeadService()
planner_service = PlannerService()
