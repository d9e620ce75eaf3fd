from __future__ import annotations

from datetime import datetime, timezone
from types import SimpleNamespace

from app.history.registry import BRIEFS, LEADS, PLANNERS, get_tracked_entity
from app.history.tracking import EntityKind, FieldChange, detect_changes, snapshot


def test_detect_changes_reports_only_tracked_fields_that_differ() -> None:
    before = {"assign_user_id": "U1", "brief_status": "S1", "name": "Old", "submission_date": None}
    after = {"assign_user_id": "U5", "brief_status": "S1", "name": "New", "submission_date": None}

    changes = detect_changes(before, after, BRIEFS.tracked_fields)

    assert changes == {"assign_user_id": FieldChange(old="U1", new="U5")}


def test_detect_changes_is_empty_when_values_are_equal() -> None:
    state = {"assign_user_id": "U1", "brief_status": "S1", "submission_date": None}

    assert detect_changes(state, dict(state), BRIEFS.tracked_fields) == {}


def test_detect_changes_treats_missing_keys_as_none() -> None:
    changes = detect_changes({}, {"lead_status": "hot"}, LEADS.tracked_fields)

    assert changes == {"lead_status": FieldChange(old=None, new="hot")}


def test_snapshot_copies_mutable_values() -> None:
    planner = SimpleNamespace(submitted_plan=["a.pdf"], planner_status="draft", backup_plan=None)

    before = snapshot(planner, PLANNERS.tracked_fields)
    planner.submitted_plan.append("b.pdf")
    after = snapshot(planner, PLANNERS.tracked_fields)

    changes = detect_changes(before, after, PLANNERS.tracked_fields)
    assert changes == {"submitted_plan": FieldChange(old=["a.pdf"], new=["a.pdf", "b.pdf"])}


def test_field_change_serializes_datetimes() -> None:
    moment = datetime(2026, 10, 19, 9, 30, tzinfo=timezone.utc)

    assert FieldChange(old=None, new=moment).as_dict() == {"old": None, "new": "2026-10-19T09:30:00+00:00"}


def test_registry_lookup_by_kind() -> None:
    assert get_tracked_entity("lead") is LEADS
    assert get_tracked_entity(EntityKind.PLANNER) is PLANNERS
    assert BRIEFS.creator_field == "created_by"
    assert PLANNERS.assignee_field is None
