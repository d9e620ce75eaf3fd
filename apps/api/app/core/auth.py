from dataclasses import dataclass

from fastapi import Depends, HTTPException, status
from jose import JWTError, jwt
from starlette.requests import Request

from app.context import get_correlation_id
from app.core.config import get_settings
from app.platform.security.context import ActorUser


ANONYMOUS_SUBJECT = "anonymous"


@dataclass
class AuthUser:
    sub: str
    roles: list[str]

    @property
    def is_anonymous(self) -> bool:
        return self.sub == ANONYMOUS_SUBJECT


async def get_current_user(request: Request) -> AuthUser:
    auth_header = request.headers.get("authorization", "")
    token = auth_header.replace("Bearer ", "") if auth_header.startswith("Bearer ") else ""

    if not token:
        return AuthUser(sub=ANONYMOUS_SUBJECT, roles=["guest"])

    settings = get_settings()
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except JWTError:
        return AuthUser(sub=ANONYMOUS_SUBJECT, roles=["guest"])

    subject = str(payload.get("sub") or ANONYMOUS_SUBJECT)
    roles = payload.get("roles", ["user"])
    if not isinstance(roles, list):
        roles = ["user"]
    context = getattr(request.state, "context", None)
    if context is not None and subject != ANONYMOUS_SUBJECT:
        context.user_id = subject
    return AuthUser(sub=subject, roles=[str(role) for role in roles])


def get_current_actor(request: Request, auth_user: AuthUser = Depends(get_current_user)) -> ActorUser | None:
    """Resolve the caller for scoped reads and writes; anonymous callers resolve to ``None``."""

    if auth_user.is_anonymous:
        return None

    correlation_id = get_correlation_id() or getattr(getattr(request.state, "context", None), "request_id", None)
    normalized_roles = [role.lower() for role in auth_user.roles]
    return ActorUser(
        user_id=auth_user.sub,
        roles=normalized_roles,
        is_super_admin=get_settings().super_admin_role.lower() in normalized_roles,
        correlation_id=correlation_id,
    )


def require_actor(actor: ActorUser | None) -> ActorUser:
    if actor is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="authentication required")
    return actor
