"""Application service for user accounts, login and API keys."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from app.core.auth import RequestUserContext, naive_utc
from app.core.config import get_settings
from app.core.security import (
    API_KEY_EXPIRY_OPTIONS,
    DEFAULT_API_PERMISSIONS,
    api_key_expiry,
    create_access_token,
    generate_api_key,
    hash_password,
    is_valid_permission,
    verify_password,
)
from app.models.entities import ApiKey, Member, MemberStatus, User
from app.repositories.people_repository import PeopleRepository
from app.repositories.project_repository import ProjectRepository
from app.services.common import bad_request, commit_or_conflict, conflict, ensure_found, iso

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class RegisterData:
    email: str
    password: str
    member_id: UUID | None = None


@dataclass(slots=True)
class ApiKeyCreateData:
    name: str
    permissions: list[str] = field(default_factory=lambda: list(DEFAULT_API_PERMISSIONS))
    internal_project_id: UUID | None = None
    expires_in: str = "never"


@dataclass(slots=True)
class ApiKeyUpdateData:
    name: str | None = None
    permissions: list[str] | None = None
    is_active: bool | None = None
    expires_in: str | None = None
    internal_project_id: UUID | None = None
    # True when internal_project_id was sent, even as null
    set_scope: bool = False


class AuthService:
    """Service implementing account lifecycle and credential management."""

    def __init__(self, db: Session) -> None:
        self.db = db
        self.repo = PeopleRepository(db)
        self.settings = get_settings()

    # ---------- Serialization ----------
    @staticmethod
    def serialize_member_summary(member: Member | None) -> dict[str, object] | None:
        if member is None:
            return None
        return {
            "id": str(member.id),
            "name": member.name,
            "role": member.role.value,
            "roles": list(member.roles or []),
            "status": member.status.value,
            "avatar": member.avatar,
        }

    def serialize_user(self, user: User) -> dict[str, object]:
        member = self.repo.get_member(user.member_id) if user.member_id else None
        return {
            "id": str(user.id),
            "email": user.email,
            "member_id": str(user.member_id) if user.member_id else None,
            "member": self.serialize_member_summary(member),
            "last_login_at": iso(user.last_login_at),
        }

    @staticmethod
    def serialize_api_key(api_key: ApiKey) -> dict[str, object]:
        return {
            "id": str(api_key.id),
            "name": api_key.name,
            "prefix": api_key.prefix,
            "permissions": list(api_key.permissions or []),
            "internal_project_id": str(api_key.internal_project_id) if api_key.internal_project_id else None,
            "last_used_at": iso(api_key.last_used_at),
            "expires_at": iso(api_key.expires_at),
            "is_active": api_key.is_active,
            "is_expired": api_key.expires_at is not None and naive_utc(api_key.expires_at) <= datetime.utcnow(),
            "created_by_id": str(api_key.created_by_id) if api_key.created_by_id else None,
            "created_at": api_key.created_at.isoformat(),
        }

    def _ensure_password_length(self, password: str) -> None:
        if len(password) < self.settings.password_min_length:
            raise bad_request(f"Password must have at least {self.settings.password_min_length} characters.")

    # ---------- Accounts ----------
    def register(self, data: RegisterData) -> dict[str, object]:
        email = data.email.strip().lower()
        if not email or not data.password:
            raise bad_request("Email and password are required.")
        self._ensure_password_length(data.password)

        if self.repo.get_user_by_email(email) is not None:
            raise conflict("This email is already registered.")

        if data.member_id is not None:
            ensure_found(self.repo.get_member(data.member_id), "Member not found.")
            if self.repo.get_user_by_member(data.member_id) is not None:
                raise conflict("This member already has a user account.")

        now = datetime.utcnow()
        user = User(
            email=email,
            password_hash=hash_password(data.password),
            member_id=data.member_id,
            created_at=now,
            updated_at=now,
        )
        self.repo.add_user(user)
        commit_or_conflict(self.db, "This email is already registered.")
        self.db.refresh(user)
        logger.info("User registered id=%s email=%s", user.id, user.email)
        return self.serialize_user(user)

    def login(self, *, email: str, password: str) -> tuple[dict[str, object], str]:
        """Verify credentials; returns the serialized user and a signed token."""

        user = self.repo.get_user_by_email(email)
        if user is None or not verify_password(user.password_hash, password):
            logger.warning("Failed login attempt for email=%s", email.strip().lower())
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid email or password.")

        member = self.repo.get_member(user.member_id) if user.member_id else None
        if member is not None and member.status != MemberStatus.ACTIVE:
            logger.warning("Login blocked for inactive member id=%s", member.id)
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Your account is inactive. Contact an administrator.",
            )

        user.last_login_at = datetime.utcnow()
        self.db.commit()

        token = create_access_token(
            {
                "sub": str(user.id),
                "email": user.email,
                "member_id": str(user.member_id) if user.member_id else None,
            }
        )
        logger.info("User logged in id=%s", user.id)
        return self.serialize_user(user), token

    def me(self, *, context: RequestUserContext) -> dict[str, object]:
        user = ensure_found(self.repo.get_user(context.user_id), "User not found.")
        return self.serialize_user(user)

    def change_password(self, *, context: RequestUserContext, current_password: str, new_password: str) -> None:
        user = ensure_found(self.repo.get_user(context.user_id), "User not found.")
        self._ensure_password_length(new_password)
        if not verify_password(user.password_hash, current_password):
            logger.warning("Password change rejected for user id=%s", user.id)
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Current password is incorrect.")

        user.password_hash = hash_password(new_password)
        user.updated_at = datetime.utcnow()
        self.db.commit()
        logger.info("Password changed for user id=%s", user.id)

    # ---------- API keys ----------
    def _validate_permissions(self, permissions: list[str]) -> list[str]:
        if not permissions:
            raise bad_request("At least one permission is required.")
        invalid = [permission for permission in permissions if not is_valid_permission(permission)]
        if invalid:
            raise bad_request(f"Invalid permissions: {', '.join(invalid)}.")
        return list(dict.fromkeys(permissions))

    def list_api_keys(self) -> list[dict[str, object]]:
        return [self.serialize_api_key(api_key) for api_key in self.repo.list_api_keys()]

    def get_api_key(self, api_key_id: UUID) -> dict[str, object]:
        return self.serialize_api_key(ensure_found(self.repo.get_api_key(api_key_id), "API key not found."))

    def create_api_key(self, *, context: RequestUserContext, data: ApiKeyCreateData) -> dict[str, object]:
        """Create a key; the raw value is returned once and never stored."""

        name = data.name.strip()
        if not name:
            raise bad_request("API key name is required.")
        permissions = self._validate_permissions(data.permissions)
        if data.expires_in not in API_KEY_EXPIRY_OPTIONS:
            raise bad_request(f"expires_in must be one of: {', '.join(API_KEY_EXPIRY_OPTIONS)}.")
        if data.internal_project_id is not None:
            ensure_found(
                ProjectRepository(self.db).get_internal_project(data.internal_project_id),
                "Internal project not found.",
            )

        raw_key, key_hash, prefix = generate_api_key()
        now = datetime.utcnow()
        api_key = ApiKey(
            name=name,
            key_hash=key_hash,
            prefix=prefix,
            permissions=permissions,
            internal_project_id=data.internal_project_id,
            expires_at=api_key_expiry(data.expires_in, now=now),
            is_active=True,
            created_by_id=context.member_id,
            created_at=now,
        )
        self.repo.add_api_key(api_key)
        commit_or_conflict(self.db, "API key could not be created.")
        self.db.refresh(api_key)
        logger.info("API key created id=%s prefix=%s", api_key.id, api_key.prefix)

        payload = self.serialize_api_key(api_key)
        payload["key"] = raw_key
        return payload

    def update_api_key(self, api_key_id: UUID, data: ApiKeyUpdateData) -> dict[str, object]:
        api_key = ensure_found(self.repo.get_api_key(api_key_id), "API key not found.")
        if data.name is not None:
            name = data.name.strip()
            if not name:
                raise bad_request("API key name is required.")
            api_key.name = name
        if data.permissions is not None:
            api_key.permissions = self._validate_permissions(data.permissions)
        if data.is_active is not None:
            api_key.is_active = data.is_active
        if data.expires_in is not None:
            if data.expires_in not in API_KEY_EXPIRY_OPTIONS:
                raise bad_request(f"expires_in must be one of: {', '.join(API_KEY_EXPIRY_OPTIONS)}.")
            api_key.expires_at = api_key_expiry(data.expires_in, now=datetime.utcnow())
        if data.set_scope:
            if data.internal_project_id is not None:
                ensure_found(
                    ProjectRepository(self.db).get_internal_project(data.internal_project_id),
                    "Internal project not found.",
                )
            api_key.internal_project_id = data.internal_project_id
        self.db.commit()
        logger.info("API key updated id=%s", api_key.id)
        return self.serialize_api_key(api_key)

    def delete_api_key(self, api_key_id: UUID) -> None:
        api_key = ensure_found(self.repo.get_api_key(api_key_id), "API key not found.")
        self.repo.delete_api_key(api_key)
        self.db.commit()
        logger.info("API key deleted id=%s", api_key_id)
