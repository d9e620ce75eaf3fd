from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(slots=True)
class ActorUser:
    """Authenticated caller as seen by visibility scoping and lifecycle checks.

    ``is_super_admin`` is resolved once from the configured super admin role when the
    actor is built; nothing downstream inspects role names.
    """

    user_id: str
    roles: list[str] = field(default_factory=list)
    is_super_admin: bool = False
    correlation_id: str | None = None
