"""Commercial pipeline endpoints: clients, leads and meetings."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from app.core.auth import RequestUserContext, get_session_context
from app.db.dependencies import get_db_session
from app.models.entities import ClientStatus, LeadSource, LeadStatus, MeetingStatus
from app.services.crm_service import (
    ClientData,
    CrmService,
    LeadData,
    MeetingCreateData,
    MeetingUpdateData,
)

router = APIRouter(tags=["crm"])


class ClientCreatePayload(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    email: str | None = Field(default=None, max_length=320)
    phone: str | None = Field(default=None, max_length=64)
    company: str | None = Field(default=None, max_length=255)
    position: str | None = Field(default=None, max_length=255)
    status: ClientStatus = ClientStatus.ACTIVE
    cnpj: str | None = Field(default=None, max_length=32)
    address: str | None = Field(default=None, max_length=500)
    website: str | None = Field(default=None, max_length=500)
    notes: str | None = None


class ClientUpdatePayload(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    email: str | None = Field(default=None, max_length=320)
    phone: str | None = Field(default=None, max_length=64)
    company: str | None = Field(default=None, max_length=255)
    position: str | None = Field(default=None, max_length=255)
    status: ClientStatus | None = None
    cnpj: str | None = Field(default=None, max_length=32)
    address: str | None = Field(default=None, max_length=500)
    website: str | None = Field(default=None, max_length=500)
    notes: str | None = None


class LeadCreatePayload(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    email: str | None = Field(default=None, max_length=320)
    phone: str | None = Field(default=None, max_length=64)
    company: str | None = Field(default=None, max_length=255)
    position: str | None = Field(default=None, max_length=255)
    status: LeadStatus = LeadStatus.NEW
    source: LeadSource = LeadSource.OTHER
    notes: str | None = None
    estimated_value: Decimal | None = Field(default=None, ge=0)


class LeadUpdatePayload(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    email: str | None = Field(default=None, max_length=320)
    phone: str | None = Field(default=None, max_length=64)
    company: str | None = Field(default=None, max_length=255)
    position: str | None = Field(default=None, max_length=255)
    status: LeadStatus | None = None
    source: LeadSource | None = None
    notes: str | None = None
    estimated_value: Decimal | None = Field(default=None, ge=0)


class MeetingCreatePayload(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    start_at: datetime
    description: str | None = None
    end_at: datetime | None = None
    location: str | None = Field(default=None, max_length=500)
    lead_id: UUID | None = None
    client_id: UUID | None = None
    tags: list[str] = Field(default_factory=list)
    notes: str | None = None
    status: MeetingStatus = MeetingStatus.SCHEDULED
    member_ids: list[UUID] = Field(default_factory=list)
    team_ids: list[UUID] = Field(default_factory=list)


class MeetingUpdatePayload(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=255)
    start_at: datetime | None = None
    description: str | None = None
    end_at: datetime | None = None
    location: str | None = Field(default=None, max_length=500)
    lead_id: UUID | None = None
    client_id: UUID | None = None
    tags: list[str] | None = None
    notes: str | None = None
    status: MeetingStatus | None = None
    member_ids: list[UUID] | None = None
    team_ids: list[UUID] | None = None


def _crm_service(db: Session) -> CrmService:
    return CrmService(db)


# ---------- Clients ----------
@router.get("/clientes")
def list_clients(
    status_filter: ClientStatus | None = Query(default=None, alias="status"),
    _: RequestUserContext = Depends(get_session_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    return {"items": _crm_service(db).list_clients(status=status_filter)}


@router.post("/clientes", status_code=status.HTTP_201_CREATED)
def create_client(
    payload: ClientCreatePayload,
    _: RequestUserContext = Depends(get_session_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    return _crm_service(db).create_client(ClientData(**payload.model_dump()))


@router.get("/clientes/{client_id}")
def get_client(
    client_id: UUID,
    _: RequestUserContext = Depends(get_session_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    return _crm_service(db).get_client(client_id)


@router.put("/clientes/{client_id}")
def update_client(
    client_id: UUID,
    payload: ClientUpdatePayload,
    _: RequestUserContext = Depends(get_session_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    return _crm_service(db).update_client(client_id, ClientData(**payload.model_dump()))


@router.delete("/clientes/{client_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_client(
    client_id: UUID,
    _: RequestUserContext = Depends(get_session_context),
    db: Session = Depends(get_db_session),
) -> Response:
    _crm_service(db).delete_client(client_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ---------- Leads ----------
@router.get("/leads")
def list_leads(
    status_filter: LeadStatus | None = Query(default=None, alias="status"),
    _: RequestUserContext = Depends(get_session_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    return {"items": _crm_service(db).list_leads(status=status_filter)}


@router.post("/leads", status_code=status.HTTP_201_CREATED)
def create_lead(
    payload: LeadCreatePayload,
    _: RequestUserContext = Depends(get_session_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    return _crm_service(db).create_lead(LeadData(**payload.model_dump()))


@router.get("/leads/{lead_id}")
def get_lead(
    lead_id: UUID,
    _: RequestUserContext = Depends(get_session_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    return _crm_service(db).get_lead(lead_id)


@router.put("/leads/{lead_id}")
def update_lead(
    lead_id: UUID,
    payload: LeadUpdatePayload,
    _: RequestUserContext = Depends(get_session_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    return _crm_service(db).update_lead(lead_id, LeadData(**payload.model_dump()))


@router.delete("/leads/{lead_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_lead(
    lead_id: UUID,
    _: RequestUserContext = Depends(get_session_context),
    db: Session = Depends(get_db_session),
) -> Response:
    _crm_service(db).delete_lead(lead_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/leads/{lead_id}/convert", status_code=status.HTTP_201_CREATED)
def convert_lead(
    lead_id: UUID,
    _: RequestUserContext = Depends(get_session_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    return _crm_service(db).convert_lead(lead_id)


# ---------- Meetings ----------
@router.get("/reunioes")
def list_meetings(
    status_filter: MeetingStatus | None = Query(default=None, alias="status"),
    upcoming: bool = False,
    _: RequestUserContext = Depends(get_session_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    return {"items": _crm_service(db).list_meetings(status=status_filter, upcoming=upcoming)}


@router.post("/reunioes", status_code=status.HTTP_201_CREATED)
def create_meeting(
    payload: MeetingCreatePayload,
    _: RequestUserContext = Depends(get_session_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    return _crm_service(db).create_meeting(MeetingCreateData(**payload.model_dump()))


@router.get("/reunioes/{meeting_id}")
def get_meeting(
    meeting_id: UUID,
    _: RequestUserContext = Depends(get_session_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    return _crm_service(db).get_meeting(meeting_id)


@router.put("/reunioes/{meeting_id}")
def update_meeting(
    meeting_id: UUID,
    payload: MeetingUpdatePayload,
    _: RequestUserContext = Depends(get_session_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    return _crm_service(db).update_meeting(meeting_id, MeetingUpdateData(**payload.model_dump()))


@router.delete("/reunioes/{meeting_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_meeting(
    meeting_id: UUID,
    _: RequestUserContext = Depends(get_session_context),
    db: Session = Depends(get_db_session),
) -> Response:
    _crm_service(db).delete_meeting(meeting_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
