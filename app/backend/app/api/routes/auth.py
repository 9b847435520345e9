"""Session endpoints: registration, login/logout and the current user."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from app.core.auth import RequestUserContext, get_session_context
from app.core.config import get_settings
from app.db.dependencies import get_db_session
from app.services.auth_service import AuthService, RegisterData

router = APIRouter(prefix="/auth", tags=["auth"])


class RegisterPayload(BaseModel):
    email: str = Field(min_length=3, max_length=320)
    password: str = Field(min_length=1, max_length=256)
    member_id: UUID | None = None


class LoginPayload(BaseModel):
    email: str = Field(min_length=1, max_length=320)
    password: str = Field(min_length=1, max_length=256)


class ChangePasswordPayload(BaseModel):
    current_password: str = Field(min_length=1, max_length=256)
    new_password: str = Field(min_length=1, max_length=256)


def _auth_service(db: Session) -> AuthService:
    return AuthService(db)


@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(payload: RegisterPayload, db: Session = Depends(get_db_session)) -> dict[str, object]:
    service = _auth_service(db)
    return service.register(
        RegisterData(email=payload.email, password=payload.password, member_id=payload.member_id)
    )


@router.post("/login")
def login(
    payload: LoginPayload,
    response: Response,
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    settings = get_settings()
    service = _auth_service(db)
    user, token = service.login(email=payload.email, password=payload.password)
    response.set_cookie(
        key=settings.auth_cookie_name,
        value=token,
        max_age=settings.access_token_expire_minutes * 60,
        httponly=True,
        secure=settings.auth_cookie_secure,
        samesite="lax",
        path="/",
    )
    return {"user": user, "token": token}


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
def logout() -> Response:
    response = Response(status_code=status.HTTP_204_NO_CONTENT)
    response.delete_cookie(key=get_settings().auth_cookie_name, path="/")
    return response


@router.get("/me")
def me(
    context: RequestUserContext = Depends(get_session_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _auth_service(db)
    return service.me(context=context)


@router.post("/change-password", status_code=status.HTTP_204_NO_CONTENT)
def change_password(
    payload: ChangePasswordPayload,
    context: RequestUserContext = Depends(get_session_context),
    db: Session = Depends(get_db_session),
) -> Response:
    service = _auth_service(db)
    service.change_password(
        context=context,
        current_password=payload.current_password,
        new_password=payload.new_password,
    )
    return Response(status_code=status.HTTP_204_NO_CONTENT)
