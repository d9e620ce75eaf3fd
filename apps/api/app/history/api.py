from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from app.core.auth import get_current_actor
from app.core.database import get_db
from app.core.errors import error_response
from app.core.pagination import Page
from app.history.registry import BRIEFS, LEADS, PLANNERS
from app.history.service import HistoryFilters, HistoryQueryService
from app.history.tracking import TrackedEntity
from app.platform.security.context import ActorUser


def _failed(request: Request, exc: HTTPException, code: str) -> JSONResponse:
    return error_response(
        request,
        status_code=exc.status_code,
        code=code,
        message=str(exc.detail),
        details=exc.detail,
    )


def build_history_router(tracked: TrackedEntity, *, collection: str, entity_history_segment: str) -> APIRouter:
    """Routes for one kind's history.

    ``collection`` is the history resource (``brief-assign-histories``) and
    ``entity_history_segment`` the sub-resource under the entity
    (``/api/briefs/{id}/assign-histories``).
    """

    label = tracked.label
    service = HistoryQueryService(tracked=tracked)
    schema = tracked.history_schema
    router = APIRouter(prefix="/api", tags=[f"{label}.history"])

    @router.get(f"/{collection}", response_model=Page[schema])
    def list_history(
        request: Request,
        entity_id: uuid.UUID | None = Query(default=None, alias=f"{label}_id"),
        assign_by_id: str | None = Query(default=None),
        assign_to_id: str | None = Query(default=None),
        status_filter: str | None = Query(default=None, alias="status"),
        date_from: datetime | None = Query(default=None),
        date_to: datetime | None = Query(default=None),
        with_trashed: bool = Query(default=False),
        only_trashed: bool = Query(default=False),
        exclude_deleted_entities: bool = Query(default=False),
        page: int = Query(default=1, ge=1),
        per_page: int | None = Query(default=None),
        db: Session = Depends(get_db),
        actor_user: ActorUser | None = Depends(get_current_actor),
    ) -> Any:
        filters = HistoryFilters(
            entity_id=entity_id,
            actor_id=assign_by_id,
            assign_to_id=assign_to_id,
            status=status_filter,
            date_from=date_from,
            date_to=date_to,
            with_trashed=with_trashed,
            only_trashed=only_trashed,
            exclude_deleted_entities=exclude_deleted_entities,
        )
        try:
            return service.list_entries(db, actor_user, filters, page=page, per_page=per_page)
        except HTTPException as exc:
            return _failed(request, exc, f"{label}_history_list_failed")

    @router.get(f"/{collection}/recent", response_model=list[schema])
    def recent_history(
        limit: int | None = Query(default=None),
        db: Session = Depends(get_db),
        actor_user: ActorUser | None = Depends(get_current_actor),
    ) -> Any:
        return service.recent(db, actor_user, limit)

    @router.get(f"/{collection}/uuid/{{entry_uuid}}", response_model=schema)
    def get_history_by_uuid(
        request: Request,
        entry_uuid: uuid.UUID,
        db: Session = Depends(get_db),
        actor_user: ActorUser | None = Depends(get_current_actor),
    ) -> Any:
        try:
            return service.get_by_uuid(db, actor_user, entry_uuid)
        except HTTPException as exc:
            return _failed(request, exc, f"{label}_history_get_failed")

    @router.get(f"/{collection}/{{history_id}}", response_model=schema)
    def get_history(
        request: Request,
        history_id: int,
        db: Session = Depends(get_db),
        actor_user: ActorUser | None = Depends(get_current_actor),
    ) -> Any:
        try:
            return service.get(db, actor_user, history_id)
        except HTTPException as exc:
            return _failed(request, exc, f"{label}_history_get_failed")

    @router.delete(f"/{collection}/{{history_id}}", response_model=None, status_code=status.HTTP_200_OK)
    def delete_history(
        request: Request,
        history_id: int,
        db: Session = Depends(get_db),
        actor_user: ActorUser | None = Depends(get_current_actor),
    ) -> Any:
        try:
            service.delete(db, actor_user, history_id)
            return {"status": "deleted"}
        except HTTPException as exc:
            return _failed(request, exc, f"{label}_history_delete_failed")

    @router.post(f"/{collection}/{{history_id}}/restore", response_model=schema)
    def restore_history(
        request: Request,
        history_id: int,
        db: Session = Depends(get_db),
        actor_user: ActorUser | None = Depends(get_current_actor),
    ) -> Any:
        try:
            return service.restore(db, actor_user, history_id)
        except HTTPException as exc:
            return _failed(request, exc, f"{label}_history_restore_failed")

    @router.delete(f"/{collection}/{{history_id}}/force", response_model=None, status_code=status.HTTP_200_OK)
    def force_delete_history(
        request: Request,
        history_id: int,
        db: Session = Depends(get_db),
        actor_user: ActorUser | None = Depends(get_current_actor),
    ) -> Any:
        try:
            service.force_delete(db, actor_user, history_id)
            return {"status": "purged"}
        except HTTPException as exc:
            return _failed(request, exc, f"{label}_history_force_delete_failed")

    @router.get(f"/{label}s/{{entity_id}}/{entity_history_segment}", response_model=Page[schema])
    def list_entity_history(
        request: Request,
        entity_id: uuid.UUID,
        page: int = Query(default=1, ge=1),
        per_page: int | None = Query(default=None),
        db: Session = Depends(get_db),
        actor_user: ActorUser | None = Depends(get_current_actor),
    ) -> Any:
        try:
            return service.list_for_entity(db, actor_user, entity_id, page=page, per_page=per_page)
        except HTTPException as exc:
            return _failed(request, exc, f"{label}_history_list_failed")

    @router.get(f"/users/{{user_id}}/{collection}/assigned-by", response_model=Page[schema])
    def list_assigned_by(
        user_id: str,
        page: int = Query(default=1, ge=1),
        per_page: int | None = Query(default=None),
        db: Session = Depends(get_db),
        actor_user: ActorUser | None = Depends(get_current_actor),
    ) -> Any:
        return service.assigned_by(db, actor_user, user_id, page=page, per_page=per_page)

    @router.get(f"/users/{{user_id}}/{collection}/assigned-to", response_model=Page[schema])
    def list_assigned_to(
        user_id: str,
        page: int = Query(default=1, ge=1),
        per_page: int | None = Query(default=None),
        db: Session = Depends(get_db),
        actor_user: ActorUser | None = Depends(get_current_actor),
    ) -> Any:
        return service.assigned_to(db, actor_user, user_id, page=page, per_page=per_page)

    return router


brief_history_router = build_history_router(
    BRIEFS,
    collection="brief-assign-histories",
    entity_history_segment="assign-histories",
)
lead_history_router = build_history_router(
    LEADS,
    collection="lead-assign-histories",
    entity_history_segment="assign-histories",
)
planner_history_router = build_history_router(
    PLANNERS,
    collection="planner-histories",
    entity_history_segment="histories",
)
