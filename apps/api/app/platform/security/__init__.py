from app.platform.security.context import ActorUser
from app.platform.security.visibility import (
    OwnershipScope,
    apply_related_visibility,
    apply_visibility_scope,
    has_full_visibility,
    is_owner,
    visible_ids_query,
)

__all__ = [
    "ActorUser",
    "OwnershipScope",
    "apply_related_visibility",
    "apply_visibility_scope",
    "has_full_visibility",
    "is_owner",
    "visible_ids_query",
]
