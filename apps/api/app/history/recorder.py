from __future__ import annotations

import logging
import time
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode
from sqlalchemy.orm import Session

from app.context import get_correlation_id
from app.history.repository import HistoryRepository
from app.history.tracking import FieldChange, TrackedEntity, snapshot
from app.metrics import observe_history_write
from app.workflow.models import utcnow


logger = logging.getLogger("app.history")
tracer = trace.get_tracer("app.history")


@dataclass(slots=True)
class HistoryRecorder:
    """Writes one history entry per update that changed tracked fields.

    Runs after the entity update has been committed. A failing insert is rolled back,
    logged and counted; it never reaches the caller of the update.
    """

    repository: HistoryRepository = field(default_factory=HistoryRepository)

    def record_change(
        self,
        session: Session,
        tracked: TrackedEntity,
        entity: Any,
        diff: Mapping[str, FieldChange],
        *,
        actor_id: str | None,
        note: str | None = None,
        fallback_note: str | None = None,
    ) -> Any | None:
        if not diff:
            return None

        entity_id = entity.id
        resolved_actor_id = actor_id or getattr(entity, tracked.creator_field)
        changes = {name: change.as_dict() for name, change in diff.items()}
        values: dict[str, Any] = snapshot(entity, tracked.history_extra_fields)
        values["assign_to_id"] = getattr(entity, tracked.assignee_field) if tracked.assignee_field else None
        values["status"] = getattr(entity, tracked.status_field)
        values["status_changed_at"] = utcnow() if tracked.status_field in diff else None
        log_fields = {
            "entity_kind": tracked.label,
            "entity_id": str(entity_id),
            "actor_id": resolved_actor_id,
            "changes": changes,
        }

        started = time.perf_counter()
        with tracer.start_as_current_span("history.record") as span:
            span.set_attribute("entity_kind", tracked.label)
            span.set_attribute("entity_id", str(entity_id))
            span.set_attribute("changed_fields", list(diff))
            correlation_id = get_correlation_id()
            if correlation_id:
                span.set_attribute("correlation_id", correlation_id)
            try:
                entry = self.repository.add(
                    session,
                    tracked.history_model(
                        entity_id=entity_id,
                        actor_id=resolved_actor_id,
                        note=note or fallback_note,
                        changes=changes,
                        **values,
                    ),
                )
                session.commit()
            except Exception as exc:
                session.rollback()
                span.record_exception(exc)
                span.set_status(Status(StatusCode.ERROR, "history write failed"))
                observe_history_write(tracked.label, "failed")
                logger.exception("history.write_failed", extra={**log_fields, "error": str(exc)})
                return None

        observe_history_write(tracked.label, "recorded", time.perf_counter() - started)
        logger.info("history.recorded", extra=log_fields)
        return entry


history_recorder = HistoryRecorder()
