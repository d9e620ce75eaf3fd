from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from sqlalchemy import false, or_, select
from sqlalchemy.orm import InstrumentedAttribute
from sqlalchemy.sql import ColumnElement, Select

from app.metrics import observe_visibility_fail_closed
from app.platform.security.context import ActorUser


@dataclass(frozen=True, slots=True)
class OwnershipScope:
    """Creator/assignee columns that decide who may read rows of one entity kind."""

    resource: str
    id_column: InstrumentedAttribute[Any]
    creator_column: InstrumentedAttribute[Any]
    assignee_column: InstrumentedAttribute[Any] | None = None

    def ownership_predicate(self, user_id: str) -> ColumnElement[bool]:
        clauses = [self.creator_column == user_id]
        if self.assignee_column is not None:
            clauses.append(self.assignee_column == user_id)
        return or_(*clauses)


def has_full_visibility(actor: ActorUser | None) -> bool:
    return actor is not None and actor.is_super_admin


def apply_visibility_scope(query: Select[Any], scope: OwnershipScope, actor: ActorUser | None) -> Select[Any]:
    """Narrow ``query`` to rows the actor created or is assigned to.

    Super admins get the query back unchanged. Without an actor the query matches nothing.
    """

    if actor is None:
        observe_visibility_fail_closed(scope.resource)
        return query.where(false())
    if actor.is_super_admin:
        return query
    return query.where(scope.ownership_predicate(actor.user_id))


def visible_ids_query(scope: OwnershipScope, actor: ActorUser | None) -> Select[Any]:
    return apply_visibility_scope(select(scope.id_column), scope, actor)


def apply_related_visibility(
    query: Select[Any],
    foreign_key_column: InstrumentedAttribute[Any],
    scope: OwnershipScope,
    actor: ActorUser | None,
) -> Select[Any]:
    """Scope rows that point at a workflow entity (history, activity) by the parent's visibility."""

    if actor is None:
        observe_visibility_fail_closed(scope.resource)
        return query.where(false())
    if actor.is_super_admin:
        return query
    return query.where(foreign_key_column.in_(visible_ids_query(scope, actor)))


def is_owner(row: Any, scope: OwnershipScope, actor: ActorUser) -> bool:
    return getattr(row, scope.creator_column.key) == actor.user_id
