"""API key management for external integrations (administrators only)."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from app.core.auth import RequestUserContext, require_admin
from app.core.security import API_KEY_EXPIRY_OPTIONS, API_PERMISSIONS, DEFAULT_API_PERMISSIONS
from app.db.dependencies import get_db_session
from app.services.auth_service import ApiKeyCreateData, ApiKeyUpdateData, AuthService

router = APIRouter(prefix="/api-keys", tags=["api-keys"])


class ApiKeyCreatePayload(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    permissions: list[str] = Field(default_factory=lambda: list(DEFAULT_API_PERMISSIONS))
    internal_project_id: UUID | None = None
    expires_in: str = "never"


class ApiKeyUpdatePayload(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    permissions: list[str] | None = None
    is_active: bool | None = None
    expires_in: str | None = None
    internal_project_id: UUID | None = None


def _auth_service(db: Session) -> AuthService:
    return AuthService(db)


@router.get("")
def list_api_keys(
    _: RequestUserContext = Depends(require_admin),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _auth_service(db)
    return {
        "items": service.list_api_keys(),
        "available_permissions": API_PERMISSIONS,
        "expiry_options": list(API_KEY_EXPIRY_OPTIONS),
    }


@router.post("", status_code=status.HTTP_201_CREATED)
def create_api_key(
    payload: ApiKeyCreatePayload,
    context: RequestUserContext = Depends(require_admin),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _auth_service(db)
    return service.create_api_key(
        context=context,
        data=ApiKeyCreateData(
            name=payload.name,
            permissions=payload.permissions,
            internal_project_id=payload.internal_project_id,
            expires_in=payload.expires_in,
        ),
    )


@router.get("/{api_key_id}")
def get_api_key(
    api_key_id: UUID,
    _: RequestUserContext = Depends(require_admin),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    return _auth_service(db).get_api_key(api_key_id)


@router.put("/{api_key_id}")
def update_api_key(
    api_key_id: UUID,
    payload: ApiKeyUpdatePayload,
    _: RequestUserContext = Depends(require_admin),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _auth_service(db)
    return service.update_api_key(
        api_key_id,
        ApiKeyUpdateData(
            name=payload.name,
            permissions=payload.permissions,
            is_active=payload.is_active,
            expires_in=payload.expires_in,
            internal_project_id=payload.internal_project_id,
            set_scope="internal_project_id" in payload.model_fields_set,
        ),
    )


@router.delete("/{api_key_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_api_key(
    api_key_id: UUID,
    _: RequestUserContext = Depends(require_admin),
    db: Session = Depends(get_db_session),
) -> Response:
    _auth_service(db).delete_api_key(api_key_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
