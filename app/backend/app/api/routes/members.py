"""Team member and team endpoints."""

from __future__ import annotations

from datetime import date
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from app.core.auth import RequestUserContext, get_session_context, require_admin
from app.db.dependencies import get_db_session
from app.models.entities import MemberRole, MemberStatus
from app.services.people_service import (
    MemberCreateData,
    MemberUpdateData,
    PeopleService,
    TeamCreateData,
    TeamUpdateData,
)

router = APIRouter(tags=["people"])


class MemberCreatePayload(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    email: str = Field(min_length=3, max_length=320)
    role: MemberRole
    roles: list[MemberRole] = Field(default_factory=list)
    phone: str | None = Field(default=None, max_length=64)
    status: MemberStatus = MemberStatus.ACTIVE
    department: str | None = Field(default=None, max_length=255)
    hire_date: date | None = None
    avatar: str | None = Field(default=None, max_length=1024)
    bio: str | None = None
    skills: str | None = None
    notes: str | None = None
    team_ids: list[UUID] = Field(default_factory=list)


class MemberUpdatePayload(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    email: str | None = Field(default=None, min_length=3, max_length=320)
    role: MemberRole | None = None
    roles: list[MemberRole] | None = None
    phone: str | None = Field(default=None, max_length=64)
    status: MemberStatus | None = None
    department: str | None = Field(default=None, max_length=255)
    hire_date: date | None = None
    avatar: str | None = Field(default=None, max_length=1024)
    bio: str | None = None
    skills: str | None = None
    notes: str | None = None
    team_ids: list[UUID] | None = None


class TeamCreatePayload(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    description: str | None = None
    lead_id: UUID | None = None
    member_ids: list[UUID] = Field(default_factory=list)


class TeamUpdatePayload(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    lead_id: UUID | None = None
    member_ids: list[UUID] | None = None


def _people_service(db: Session) -> PeopleService:
    return PeopleService(db)


# ---------- Members ----------
@router.get("/membros")
def list_members(
    status_filter: MemberStatus | None = Query(default=None, alias="status"),
    _: RequestUserContext = Depends(get_session_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    return {"items": _people_service(db).list_members(status=status_filter)}


@router.post("/membros", status_code=status.HTTP_201_CREATED)
def create_member(
    payload: MemberCreatePayload,
    _: RequestUserContext = Depends(get_session_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _people_service(db)
    return service.create_member(MemberCreateData(**payload.model_dump()))


@router.get("/membros/{member_id}")
def get_member(
    member_id: UUID,
    _: RequestUserContext = Depends(get_session_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    return _people_service(db).get_member(member_id)


@router.put("/membros/{member_id}")
def update_member(
    member_id: UUID,
    payload: MemberUpdatePayload,
    _: RequestUserContext = Depends(get_session_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _people_service(db)
    return service.update_member(member_id, MemberUpdateData(**payload.model_dump()))


@router.delete("/membros/{member_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_member(
    member_id: UUID,
    _: RequestUserContext = Depends(require_admin),
    db: Session = Depends(get_db_session),
) -> Response:
    _people_service(db).delete_member(member_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ---------- Teams ----------
@router.get("/times")
def list_teams(
    _: RequestUserContext = Depends(get_session_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    return {"items": _people_service(db).list_teams()}


@router.post("/times", status_code=status.HTTP_201_CREATED)
def create_team(
    payload: TeamCreatePayload,
    _: RequestUserContext = Depends(get_session_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _people_service(db)
    return service.create_team(TeamCreateData(**payload.model_dump()))


@router.get("/times/{team_id}")
def get_team(
    team_id: UUID,
    _: RequestUserContext = Depends(get_session_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    return _people_service(db).get_team(team_id)


@router.put("/times/{team_id}")
def update_team(
    team_id: UUID,
    payload: TeamUpdatePayload,
    _: RequestUserContext = Depends(get_session_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _people_service(db)
    return service.update_team(team_id, TeamUpdateData(**payload.model_dump()))


@router.delete("/times/{team_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_team(
    team_id: UUID,
    _: RequestUserContext = Depends(get_session_context),
    db: Session = Depends(get_db_session),
) -> Response:
    _people_service(db).delete_team(team_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
