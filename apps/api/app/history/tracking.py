from __future__ import annotations

import copy
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel

from app.platform.security.visibility import OwnershipScope


class EntityKind(str, Enum):
    BRIEF = "brief"
    LEAD = "lead"
    PLANNER = "planner"


@dataclass(frozen=True, slots=True)
class FieldChange:
    old: Any
    new: Any

    def as_dict(self) -> dict[str, Any]:
        return {"old": jsonable_encoder(self.old), "new": jsonable_encoder(self.new)}


@dataclass(frozen=True, slots=True)
class TrackedEntity:
    """Everything the history subsystem needs to know about one workflow entity kind.

    ``tracked_fields`` is the allowlist watched for changes. ``status_field`` and
    ``assignee_field`` are copied onto every history entry, together with
    ``history_extra_fields`` which exist on both the entity and its history table.
    """

    kind: EntityKind
    model: type[Any]
    history_model: type[Any]
    history_schema: type[BaseModel]
    scope: OwnershipScope
    tracked_fields: tuple[str, ...]
    status_field: str
    assignee_field: str | None = None
    history_extra_fields: tuple[str, ...] = ()

    @property
    def creator_field(self) -> str:
        return self.scope.creator_column.key

    @property
    def label(self) -> str:
        return self.kind.value


def snapshot(entity: Any, fields: Iterable[str]) -> dict[str, Any]:
    return {name: copy.deepcopy(getattr(entity, name)) for name in fields}


def detect_changes(
    original: Mapping[str, Any],
    current: Mapping[str, Any],
    tracked_fields: Iterable[str],
) -> dict[str, FieldChange]:
    """Return the tracked fields whose values differ between two snapshots of one row.

    Fields outside ``tracked_fields`` are never looked at.
    """

    changes: dict[str, FieldChange] = {}
    for name in tracked_fields:
        old = original.get(name)
        new = current.get(name)
        if old != new:
            changes[name] = FieldChange(old=old, new=new)
    return changes

