from __future__ import annotations

from app.history.models import BriefAssignHistory, LeadAssignHistory, PlannerHistory
from app.history.schemas import BriefHistoryRead, LeadHistoryRead, PlannerHistoryRead
from app.history.tracking import EntityKind, TrackedEntity
from app.platform.security.visibility import OwnershipScope
from app.workflow.models import Brief, Lead, Planner


BRIEFS = TrackedEntity(
    kind=EntityKind.BRIEF,
    model=Brief,
    history_model=BriefAssignHistory,
    history_schema=BriefHistoryRead,
    scope=OwnershipScope(
        resource="brief",
        id_column=Brief.id,
        creator_column=Brief.created_by,
        assignee_column=Brief.assign_user_id,
    ),
    tracked_fields=("assign_user_id", "brief_status", "submission_date"),
    status_field="brief_status",
    assignee_field="assign_user_id",
    history_extra_fields=("submission_date",),
)

LEADS = TrackedEntity(
    kind=EntityKind.LEAD,
    model=Lead,
    history_model=LeadAssignHistory,
    history_schema=LeadHistoryRead,
    scope=OwnershipScope(
        resource="lead",
        id_column=Lead.id,
        creator_column=Lead.created_by,
        assignee_column=Lead.current_assign_user,
    ),
    tracked_fields=("current_assign_user", "lead_status", "call_status", "priority"),
    status_field="lead_status",
    assignee_field="current_assign_user",
    history_extra_fields=("priority", "call_status"),
)

# Planners have no assignee; only the creator (or a super admin) sees them.
PLANNERS = TrackedEntity(
    kind=EntityKind.PLANNER,
    model=Planner,
    history_model=PlannerHistory,
    history_schema=PlannerHistoryRead,
    scope=OwnershipScope(
        resource="planner",
        id_column=Planner.id,
        creator_column=Planner.created_by,
    ),
    tracked_fields=("planner_status", "submitted_plan", "backup_plan"),
    status_field="planner_status",
    history_extra_fields=("submitted_plan", "backup_plan"),
)

TRACKED_ENTITIES: dict[EntityKind, TrackedEntity] = {
    EntityKind.BRIEF: BRIEFS,
    EntityKind.LEAD: LEADS,
    EntityKind.PLANNER: PLANNERS,
}


def get_tracked_entity(kind: EntityKind | str) -> TrackedEntity:
    return TRACKED_ENTITIES[EntityKind(kind)]
