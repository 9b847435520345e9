"""Authentication context extraction and access guard utilities."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from uuid import UUID

from fastapi import Depends, Header, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.config import get_settings
from app.core.security import FULL_ACCESS, InvalidTokenError, decode_access_token, hash_api_key
from app.db.dependencies import get_db_session
from app.models.entities import ApiKey, Member, MemberRole, User

logger = logging.getLogger(__name__)

ADMIN_ROLES = frozenset({MemberRole.FOUNDER.value, MemberRole.CEO.value, MemberRole.CTO.value, MemberRole.CFO.value})

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class RequestUserContext:
    """Authenticated request actor resolved from a session token or an API key."""

    user_id: UUID | None
    email: str | None
    member_id: UUID | None
    member_roles: tuple[str, ...] = ()
    member_status: str | None = None
    api_key_id: UUID | None = None
    api_key_permissions: tuple[str, ...] = ()
    api_key_internal_project_id: UUID | None = None

    @property
    def is_api_key(self) -> bool:
        return self.api_key_id is not None

    @property
    def has_admin_access(self) -> bool:
        """Whether the linked member holds a founder or C-level role."""

        return any(role in ADMIN_ROLES for role in self.member_roles)


def naive_utc(value: datetime) -> datetime:
    """Normalize DB timestamps (aware on PostgreSQL, naive on SQLite) to naive UTC."""

    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


def _context_for_user(db: Session, user: User) -> RequestUserContext:
    member = db.get(Member, user.member_id) if user.member_id is not None else None
    return RequestUserContext(
        user_id=user.id,
        email=user.email,
        member_id=member.id if member is not None else None,
        member_roles=tuple(member.roles or []) if member is not None else (),
        member_status=member.status.value if member is not None else None,
    )


def _resolve_api_key(db: Session, raw_key: str) -> RequestUserContext:
    api_key = db.scalar(select(ApiKey).where(ApiKey.key_hash == hash_api_key(raw_key)))
    if api_key is None or not api_key.is_active:
        logger.warning("Rejected unknown or inactive API key")
        raise _unauthorized("Invalid API key.")

    now = datetime.utcnow()
    if api_key.expires_at is not None and naive_utc(api_key.expires_at) <= now:
        logger.warning("Rejected expired API key id=%s", api_key.id)
        raise _unauthorized("API key expired.")

    api_key.last_used_at = now
    db.commit()

    return RequestUserContext(
        user_id=None,
        email=None,
        member_id=api_key.created_by_id,
        api_key_id=api_key.id,
        api_key_permissions=tuple(api_key.permissions or []),
        api_key_internal_project_id=api_key.internal_project_id,
    )


def _resolve_token(db: Session, token: str) -> RequestUserContext:
    try:
        payload = decode_access_token(token)
        user_id = UUID(str(payload["sub"]))
    except (InvalidTokenError, ValueError):
        logger.warning("Rejected invalid session token")
        raise _unauthorized("Invalid or expired token.")

    user = db.get(User, user_id)
    if user is None:
        logger.warning("Session token references missing user id=%s", user_id)
        raise _unauthorized("User not found.")
    return _context_for_user(db, user)


def get_current_user_context(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    x_api_key: str | None = Header(default=None, alias="X-API-Key"),
    db: Session = Depends(get_db_session),
) -> RequestUserContext:
    """Resolve the request actor.

    Credential sources, first match wins:
    - ``X-API-Key`` header (external integrations);
    - ``Authorization: Bearer <jwt>`` header;
    - the HTTP-only session cookie set at login.
    """

    if x_api_key:
        return _resolve_api_key(db, x_api_key.strip())

    token = credentials.credentials if credentials is not None else None
    if not token:
        token = request.cookies.get(get_settings().auth_cookie_name)
    if not token:
        raise _unauthorized("Not authenticated.")
    return _resolve_token(db, token)


def has_permission(context: RequestUserContext, permission: str) -> bool:
    """Session users hold every permission; API keys only the ones granted."""

    if not context.is_api_key:
        return True
    return permission in context.api_key_permissions or FULL_ACCESS in context.api_key_permissions


def ensure_internal_project_scope(context: RequestUserContext, internal_project_id: UUID) -> None:
    """Reject API keys scoped to a different internal project."""

    scope = context.api_key_internal_project_id
    if context.is_api_key and scope is not None and scope != internal_project_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="API key is not scoped to this internal project.",
        )


def require_permission(permission: str):
    """Dependency factory requiring an API-key permission (session users always pass)."""

    def dependency(context: RequestUserContext = Depends(get_current_user_context)) -> RequestUserContext:
        if not has_permission(context, permission):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"API key lacks permission: {permission}.",
            )
        return context

    return dependency


def get_session_context(context: RequestUserContext = Depends(get_current_user_context)) -> RequestUserContext:
    """Require a logged-in user; API keys cannot reach these endpoints."""

    if context.is_api_key:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="API keys cannot access this resource.",
        )
    return context


def require_member(context: RequestUserContext = Depends(get_session_context)) -> RequestUserContext:
    """Require a logged-in user linked to a team member."""

    if context.member_id is None:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User is not linked to a team member.",
        )
    return context


def require_admin(context: RequestUserContext = Depends(require_member)) -> RequestUserContext:
    """Require a member with administrative roles."""

    if not context.has_admin_access:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Administrative access required.",
        )
    return context
