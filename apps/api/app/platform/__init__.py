from app.platform.security import ActorUser, OwnershipScope, apply_visibility_scope

__all__ = ["ActorUser", "OwnershipScope", "apply_visibility_scope"]
