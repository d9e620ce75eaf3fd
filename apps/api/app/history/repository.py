from __future__ import annotations

from typing import Any, Literal
from uuid import UUID

from sqlalchemy import Select, select
from sqlalchemy.orm import Session

from app.history.tracking import TrackedEntity
from app.platform.security.context import ActorUser
from app.platform.security.visibility import apply_related_visibility


TrashedMode = Literal["exclude", "with", "only"]


class HistoryRepository:
    def add(self, session: Session, entry: Any) -> Any:
        session.add(entry)
        session.flush()
        return entry

    def scoped_query(
        self,
        tracked: TrackedEntity,
        actor: ActorUser | None,
        *,
        trashed: TrashedMode = "exclude",
    ) -> Select[Any]:
        history_model = tracked.history_model
        query = select(history_model)
        if trashed == "exclude":
            query = query.where(history_model.deleted_at.is_(None))
        elif trashed == "only":
            query = query.where(history_model.deleted_at.is_not(None))
        return apply_related_visibility(query, history_model.entity_id, tracked.scope, actor)

    def get(
        self,
        session: Session,
        tracked: TrackedEntity,
        actor: ActorUser | None,
        history_id: int,
        *,
        trashed: TrashedMode = "exclude",
    ) -> Any | None:
        query = self.scoped_query(tracked, actor, trashed=trashed).where(tracked.history_model.id == history_id)
        return session.scalar(query)

    def get_by_uuid(
        self,
        session: Session,
        tracked: TrackedEntity,
        actor: ActorUser | None,
        entry_uuid: UUID,
    ) -> Any | None:
        query = self.scoped_query(tracked, actor).where(tracked.history_model.uuid == entry_uuid)
        return session.scalar(query)
