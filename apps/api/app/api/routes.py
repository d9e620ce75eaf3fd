from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import Response

from app.activity.api import router as activity_router
from app.core.auth import AuthUser, get_current_user
from app.core.config import get_settings
from app.history.api import brief_history_router, lead_history_router, planner_history_router
from app.metrics import generate_metrics_payload, metrics_content_type
from app.workflow.api import briefs_router, leads_router, planners_router

router = APIRouter()
router.include_router(briefs_router)
router.include_router(leads_router)
router.include_router(planners_router)
router.include_router(brief_history_router)
router.include_router(lead_history_router)
router.include_router(planner_history_router)
router.include_router(activity_router)


@router.get("/health", tags=["system"])
def health() -> dict[str, str]:
    settings = get_settings()
    return {
        "status": "ok",
        "service": settings.app_name,
        "environment": settings.app_env,
    }


@router.get("/me", tags=["auth"])
async def me(user: AuthUser = Depends(get_current_user)) -> dict[str, str | bool | list[str]]:
    settings = get_settings()
    return {
        "sub": user.sub,
        "roles": user.roles,
        "is_super_admin": settings.super_admin_role.lower() in {role.lower() for role in user.roles},
    }


@router.get("/metrics", tags=["system"])
def metrics(user: AuthUser = Depends(get_current_user)) -> Response:
    settings = get_settings()
    if not settings.metrics_enabled:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="not found")
    if "system.metrics.read" not in user.roles:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Missing permission: system.metrics.read")
    return Response(content=generate_metrics_payload(), media_type=metrics_content_type())
