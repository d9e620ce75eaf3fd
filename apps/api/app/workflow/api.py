from __future__ import annotations

import uuid
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from app.core.auth import get_current_actor, require_actor
from app.core.database import get_db
from app.core.errors import error_response
from app.core.pagination import Page
from app.history.repository import TrashedMode
from app.platform.security.context import ActorUser
from app.workflow.schemas import (
    BriefCreate,
    BriefRead,
    BriefUpdate,
    LeadCreate,
    LeadRead,
    LeadUpdate,
    PlannerCreate,
    PlannerRead,
    PlannerUpdate,
)
from app.workflow.service import brief_service, lead_service, planner_service


briefs_router = APIRouter(prefix="/api/briefs", tags=["briefs"])
leads_router = APIRouter(prefix="/api/leads", tags=["leads"])
planners_router = APIRouter(prefix="/api/planners", tags=["planners"])


def _trashed_mode(with_trashed: bool, only_trashed: bool) -> TrashedMode:
    if only_trashed:
        return "only"
    if with_trashed:
        return "with"
    return "exclude"


def _failed(request: Request, exc: HTTPException, code: str) -> JSONResponse:
    return error_response(
        request,
        status_code=exc.status_code,
        code=code,
        message=str(exc.detail),
        details=exc.detail,
    )


@briefs_router.post("", response_model=BriefRead, status_code=status.HTTP_201_CREATED)
def create_brief(
    request: Request,
    dto: BriefCreate,
    db: Session = Depends(get_db),
    actor_user: ActorUser | None = Depends(get_current_actor),
) -> Any:
    try:
        return brief_service.create(db, require_actor(actor_user), dto)
    except HTTPException as exc:
        return _failed(request, exc, "brief_create_failed")


@briefs_router.get("", response_model=Page[BriefRead])
def list_briefs(
    request: Request,
    brief_status: str | None = Query(default=None),
    assign_user_id: str | None = Query(default=None),
    created_by: str | None = Query(default=None),
    priority: str | None = Query(default=None),
    mode_of_campaign: str | None = Query(default=None),
    brand_id: str | None = Query(default=None),
    agency_id: str | None = Query(default=None),
    q: str | None = Query(default=None),
    with_trashed: bool = Query(default=False),
    only_trashed: bool = Query(default=False),
    page: int = Query(default=1, ge=1),
    per_page: int | None = Query(default=None),
    db: Session = Depends(get_db),
    actor_user: ActorUser | None = Depends(get_current_actor),
) -> Any:
    try:
        return brief_service.list_entities(
            db,
            actor_user,
            filters={
                "brief_status": brief_status,
                "assign_user_id": assign_user_id,
                "created_by": created_by,
                "priority": priority,
                "mode_of_campaign": mode_of_campaign,
                "brand_id": brand_id,
                "agency_id": agency_id,
            },
            q=q,
            trashed=_trashed_mode(with_trashed, only_trashed),
            page=page,
            per_page=per_page,
        )
    except HTTPException as exc:
        return _failed(request, exc, "brief_list_failed")


@briefs_router.get("/{brief_id}", response_model=BriefRead)
def get_brief(
    request: Request,
    brief_id: uuid.UUID,
    db: Session = Depends(get_db),
    actor_user: ActorUser | None = Depends(get_current_actor),
) -> Any:
    try:
        return brief_service.get(db, actor_user, brief_id)
    except HTTPException as exc:
        return _failed(request, exc, "brief_get_failed")


@briefs_router.put("/{brief_id}", response_model=BriefRead)
@briefs_router.patch("/{brief_id}", response_model=BriefRead)
def update_brief(
    request: Request,
    brief_id: uuid.UUID,
    dto: BriefUpdate,
    db: Session = Depends(get_db),
    actor_user: ActorUser | None = Depends(get_current_actor),
) -> Any:
    try:
        return brief_service.update(db, require_actor(actor_user), brief_id, dto)
    except HTTPException as exc:
        return _failed(request, exc, "brief_update_failed")


@briefs_router.delete("/{brief_id}", response_model=None, status_code=status.HTTP_200_OK)
def delete_brief(
    request: Request,
    brief_id: uuid.UUID,
    db: Session = Depends(get_db),
    actor_user: ActorUser | None = Depends(get_current_actor),
) -> Any:
    try:
        brief_service.soft_delete(db, require_actor(actor_user), brief_id)
        return {"status": "deleted"}
    except HTTPException as exc:
        return _failed(request, exc, "brief_delete_failed")


@briefs_router.post("/{brief_id}/restore", response_model=BriefRead)
def restore_brief(
    request: Request,
    brief_id: uuid.UUID,
    db: Session = Depends(get_db),
    actor_user: ActorUser | None = Depends(get_current_actor),
) -> Any:
    try:
        return brief_service.restore(db, require_actor(actor_user), brief_id)
    except HTTPException as exc:
        return _failed(request, exc, "brief_restore_failed")


@briefs_router.delete("/{brief_id}/force", response_model=None, status_code=status.HTTP_200_OK)
def force_delete_brief(
    request: Request,
    brief_id: uuid.UUID,
    db: Session = Depends(get_db),
    actor_user: ActorUser | None = Depends(get_current_actor),
) -> Any:
    try:
        brief_service.force_delete(db, require_actor(actor_user), brief_id)
        return {"status": "purged"}
    except HTTPException as exc:
        return _failed(request, exc, "brief_force_delete_failed")


@leads_router.post("", response_model=LeadRead, status_code=status.HTTP_201_CREATED)
def create_lead(
    request: Request,
    dto: LeadCreate,
    db: Session = Depends(get_db),
    actor_user: ActorUser | None = Depends(get_current_actor),
) -> Any:
    try:
        return lead_service.create(db, require_actor(actor_user), dto)
    except HTTPException as exc:
        return _failed(request, exc, "lead_create_failed")


@leads_router.get("", response_model=Page[LeadRead])
def list_leads(
    request: Request,
    lead_status: str | None = Query(default=None),
    call_status: str | None = Query(default=None),
    priority: str | None = Query(default=None),
    current_assign_user: str | None = Query(default=None),
    created_by: str | None = Query(default=None),
    lead_type: str | None = Query(default=None),
    brand_id: str | None = Query(default=None),
    agency_id: str | None = Query(default=None),
    q: str | None = Query(default=None),
    with_trashed: bool = Query(default=False),
    only_trashed: bool = Query(default=False),
    page: int = Query(default=1, ge=1),
    per_page: int | None = Query(default=None),
    db: Session = Depends(get_db),
    actor_user: ActorUser | None = Depends(get_current_actor),
) -> Any:
    try:
        return lead_service.list_entities(
            db,
            actor_user,
            filters={
                "lead_status": lead_status,
                "call_status": call_status,
                "priority": priority,
                "current_assign_user": current_assign_user,
                "created_by": created_by,
                "lead_type": lead_type,
                "brand_id": brand_id,
                "agency_id": agency_id,
            },
            q=q,
            trashed=_trashed_mode(with_trashed, only_trashed),
            page=page,
            per_page=per_page,
        )
    except HTTPException as exc:
        return _failed(request, exc, "lead_list_failed")


@leads_router.get("/{lead_id}", response_model=LeadRead)
def get_lead(
    request: Request,
    lead_id: uuid.UUID,
    db: Session = Depends(get_db),
    actor_user: ActorUser | None = Depends(get_current_actor),
) -> Any:
    try:
        return lead_service.get(db, actor_user, lead_id)
    except HTTPException as exc:
        return _failed(request, exc, "lead_get_failed")


@leads_router.put("/{lead_id}", response_model=LeadRead)
@leads_router.patch("/{lead_id}", response_model=LeadRead)
def update_lead(
    request: Request,
    lead_id: uuid.UUID,
    dto: LeadUpdate,
    db: Session = Depends(get_db),
    actor_user: ActorUser | None = Depends(get_current_actor),
) -> Any:
    try:
        return lead_service.update(db, require_actor(actor_user), lead_id, dto)
    except HTTPException as exc:
        return _failed(request, exc, "lead_update_failed")


@leads_router.delete("/{lead_id}", response_model=None, status_code=status.HTTP_200_OK)
def delete_lead(
    request: Request,
    lead_id: uuid.UUID,
    db: Session = Depends(get_db),
    actor_user: ActorUser | None = Depends(get_current_actor),
) -> Any:
    try:
        lead_service.soft_delete(db, require_actor(actor_user), lead_id)
        return {"status": "deleted"}
    except HTTPException as exc:
        return _failed(request, exc, "lead_delete_failed")


@leads_router.post("/{lead_id}/restore", response_model=LeadRead)
def restore_lead(
    request: Request,
    lead_id: uuid.UUID,
    db: Session = Depends(get_db),
    actor_user: ActorUser | None = Depends(get_current_actor),
) -> Any:
    try:
        return lead_service.restore(db, require_actor(actor_user), lead_id)
    except HTTPException as exc:
        return _failed(request, exc, "lead_restore_failed")


@leads_router.delete("/{lead_id}/force", response_model=None, status_code=status.HTTP_200_OK)
def force_delete_lead(
    request: Request,
    lead_id: uuid.UUID,
    db: Session = Depends(get_db),
    actor_user: ActorUser | None = Depends(get_current_actor),
) -> Any:
    try:
        lead_service.force_delete(db, require_actor(actor_user), lead_id)
        return {"status": "purged"}
    except HTTPException as exc:
        return _failed(request, exc, "lead_force_delete_failed")


@planners_router.post("", response_model=PlannerRead, status_code=status.HTTP_201_CREATED)
def create_planner(
    request: Request,
    dto: PlannerCreate,
    db: Session = Depends(get_db),
    actor_user: ActorUser | None = Depends(get_current_actor),
) -> Any:
    try:
        return planner_service.create(db, require_actor(actor_user), dto)
    except HTTPException as exc:
        return _failed(request, exc, "planner_create_failed")


@planners_router.get("", response_model=Page[PlannerRead])
def list_planners(
    request: Request,
    brief_id: uuid.UUID | None = Query(default=None),
    planner_status: str | None = Query(default=None),
    created_by: str | None = Query(default=None),
    with_trashed: bool = Query(default=False),
    only_trashed: bool = Query(default=False),
    page: int = Query(default=1, ge=1),
    per_page: int | None = Query(default=None),
    db: Session = Depends(get_db),
    actor_user: ActorUser | None = Depends(get_current_actor),
) -> Any:
    try:
        return planner_service.list_entities(
            db,
            actor_user,
            filters={"brief_id": brief_id, "planner_status": planner_status, "created_by": created_by},
            trashed=_trashed_mode(with_trashed, only_trashed),
            page=page,
            per_page=per_page,
        )
    except HTTPException as exc:
        return _failed(request, exc, "planner_list_failed")


@planners_router.get("/{planner_id}", response_model=PlannerRead)
def get_planner(
    request: Request,
    planner_id: uuid.UUID,
    db: Session = Depends(get_db),
    actor_user: ActorUser | None = Depends(get_current_actor),
) -> Any:
    try:
        return planner_service.get(db, actor_user, planner_id)
    except HTTPException as exc:
        return _failed(request, exc, "planner_get_failed")


@planners_router.put("/{planner_id}", response_model=PlannerRead)
@planners_router.patch("/{planner_id}", response_model=PlannerRead)
def update_planner(
    request: Request,
    planner_id: uuid.UUID,
    dto: PlannerUpdate,
    db: Session = Depends(get_db),
    actor_user: ActorUser | None = Depends(get_current_actor),
) -> Any:
    try:
        return planner_service.update(db, require_actor(actor_user), planner_id, dto)
    except HTTPException as exc:
        return _failed(request, exc, "planner_update_failed")


@planners_router.delete("/{planner_id}", response_model=None, status_code=status.HTTP_200_OK)
def delete_planner(
    request: Request,
    planner_id: uuid.UUID,
    db: Session = Depends(get_db),
    actor_user: ActorUser | None = Depends(get_current_actor),
) -> Any:
    try:
        planner_service.soft_delete(db, require_actor(actor_user), planner_id)
        return {"status": "deleted"}
    except HTTPException as exc:
        return _failed(request, exc, "planner_delete_failed")


@planners_router.post("/{planner_id}/restore", response_model=PlannerRead)
def restore_planner(
    request: Request,
    planner_id: uuid.UUID,
    db: Session = Depends(get_db),
    actor_user: ActorUser | None = Depends(get_current_actor),
) -> Any:
    try:
        return planner_service.restore(db, require_actor(actor_user), planner_id)
    except HTTPException as exc:
        return _failed(request, exc, "planner_restore_failed")


@planners_router.delete("/{planner_id}/force", response_model=None, status_code=status.HTTP_200_OK)
def force_delete_planner(
    request: Request,
    planner_id: uuid.UUID,
    db: Session = Depends(get_db),
    actor_user: ActorUser | None = Depends(get_current_actor),
) -> Any:
    try:
        planner_service.force_delete(db, require_actor(actor_user), planner_id)
        return {"status": "purged"}
    except HTTPException as exc:
        return _failed(request, exc, "planner_force_delete_failed")
