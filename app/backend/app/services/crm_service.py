"""Application service for clients, leads and meetings."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy.orm import Session

from app.core.auth import naive_utc
from app.core.config import get_settings
from app.models.entities import (
    Client,
    ClientStatus,
    Lead,
    LeadSource,
    LeadStatus,
    Meeting,
    MeetingStatus,
)
from app.repositories.crm_repository import CrmRepository
from app.repositories.people_repository import PeopleRepository
from app.services.common import (
    bad_request,
    clean_text,
    commit_or_conflict,
    conflict,
    ensure_date_range,
    ensure_found,
    ids,
    iso,
    money,
)

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ClientData:
    name: str | None = None
    email: str | None = None
    phone: str | None = None
    company: str | None = None
    position: str | None = None
    status: ClientStatus | None = None
    cnpj: str | None = None
    address: str | None = None
    website: str | None = None
    notes: str | None = None


@dataclass(slots=True)
class LeadData:
    name: str | None = None
    email: str | None = None
    phone: str | None = None
    company: str | None = None
    position: str | None = None
    status: LeadStatus | None = None
    source: LeadSource | None = None
    notes: str | None = None
    estimated_value: Decimal | None = None


@dataclass(slots=True)
class MeetingCreateData:
    title: str
    start_at: datetime
    description: str | None = None
    end_at: datetime | None = None
    location: str | None = None
    lead_id: UUID | None = None
    client_id: UUID | None = None
    tags: list[str] = field(default_factory=list)
    notes: str | None = None
    status: MeetingStatus = MeetingStatus.SCHEDULED
    member_ids: list[UUID] = field(default_factory=list)
    team_ids: list[UUID] = field(default_factory=list)


@dataclass(slots=True)
class MeetingUpdateData:
    title: str | None = None
    start_at: datetime | None = None
    description: str | None = None
    end_at: datetime | None = None
    location: str | None = None
    lead_id: UUID | None = None
    client_id: UUID | None = None
    tags: list[str] | None = None
    notes: str | None = None
    status: MeetingStatus | None = None
    member_ids: list[UUID] | None = None
    team_ids: list[UUID] | None = None


_CONTACT_TEXT_FIELDS = ("phone", "company", "position", "notes")


def normalize_tags(tags: list[str] | None) -> list[str]:
    return [tag.strip() for tag in dict.fromkeys(tags or []) if tag and tag.strip()]


class CrmService:
    """Service implementing the commercial pipeline: clients, leads, meetings."""

    def __init__(self, db: Session) -> None:
        self.db = db
        self.repo = CrmRepository(db)
        self.people = PeopleRepository(db)
        self.settings = get_settings()

    # ---------- Serialization ----------
    @staticmethod
    def serialize_client(client: Client) -> dict[str, object]:
        return {
            "id": str(client.id),
            "name": client.name,
            "email": client.email,
            "phone": client.phone,
            "company": client.company,
            "position": client.position,
            "status": client.status.value,
            "cnpj": client.cnpj,
            "address": client.address,
            "website": client.website,
            "notes": client.notes,
            "created_at": client.created_at.isoformat(),
            "updated_at": client.updated_at.isoformat(),
        }

    @staticmethod
    def serialize_lead(lead: Lead) -> dict[str, object]:
        return {
            "id": str(lead.id),
            "name": lead.name,
            "email": lead.email,
            "phone": lead.phone,
            "company": lead.company,
            "position": lead.position,
            "status": lead.status.value,
            "source": lead.source.value,
            "notes": lead.notes,
            "estimated_value": money(lead.estimated_value),
            "converted_to_client_id": str(lead.converted_to_client_id) if lead.converted_to_client_id else None,
            "converted_at": iso(lead.converted_at),
            "created_at": lead.created_at.isoformat(),
            "updated_at": lead.updated_at.isoformat(),
        }

    @staticmethod
    def serialize_meeting(
        meeting: Meeting,
        *,
        member_ids: list[UUID] | None = None,
        team_ids: list[UUID] | None = None,
    ) -> dict[str, object]:
        return {
            "id": str(meeting.id),
            "title": meeting.title,
            "description": meeting.description,
            "start_at": meeting.start_at.isoformat(),
            "end_at": iso(meeting.end_at),
            "location": meeting.location,
            "lead_id": str(meeting.lead_id) if meeting.lead_id else None,
            "client_id": str(meeting.client_id) if meeting.client_id else None,
            "tags": list(meeting.tags or []),
            "notes": meeting.notes,
            "status": meeting.status.value,
            "member_ids": ids(member_ids or []),
            "team_ids": ids(team_ids or []),
            "created_at": meeting.created_at.isoformat(),
            "updated_at": meeting.updated_at.isoformat(),
        }

    # ---------- Clients ----------
    def _ensure_client_unique(self, *, email: str | None, cnpj: str | None, client_id: UUID | None = None) -> None:
        if email:
            existing = self.repo.get_client_by_email(email)
            if existing is not None and existing.id != client_id:
                raise conflict("A client with this email already exists.")
        if cnpj:
            existing = self.repo.get_client_by_cnpj(cnpj)
            if existing is not None and existing.id != client_id:
                raise conflict("A client with this CNPJ already exists.")

    def list_clients(self, *, status: ClientStatus | None = None) -> list[dict[str, object]]:
        return [self.serialize_client(client) for client in self.repo.list_clients(status=status)]

    def get_client(self, client_id: UUID) -> dict[str, object]:
        return self.serialize_client(ensure_found(self.repo.get_client(client_id), "Client not found."))

    def create_client(self, data: ClientData) -> dict[str, object]:
        name = clean_text(data.name)
        if not name:
            raise bad_request("Client name is required.")
        email = clean_text(data.email)
        email = email.lower() if email else None
        cnpj = clean_text(data.cnpj)
        self._ensure_client_unique(email=email, cnpj=cnpj)

        now = datetime.utcnow()
        client = Client(
            name=name,
            email=email,
            phone=clean_text(data.phone),
            company=clean_text(data.company),
            position=clean_text(data.position),
            status=data.status or ClientStatus.ACTIVE,
            cnpj=cnpj,
            address=clean_text(data.address),
            website=clean_text(data.website),
            notes=clean_text(data.notes),
            created_at=now,
            updated_at=now,
        )
        self.repo.add_client(client)
        commit_or_conflict(self.db, "A client with this email or CNPJ already exists.")
        self.db.refresh(client)
        logger.info("Client created id=%s name=%s", client.id, client.name)
        return self.serialize_client(client)

    def update_client(self, client_id: UUID, data: ClientData) -> dict[str, object]:
        client = ensure_found(self.repo.get_client(client_id), "Client not found.")

        email = clean_text(data.email)
        email = email.lower() if email else None
        cnpj = clean_text(data.cnpj)
        self._ensure_client_unique(email=email, cnpj=cnpj, client_id=client.id)

        if data.name is not None:
            name = clean_text(data.name)
            if not name:
                raise bad_request("Client name is required.")
            client.name = name
        if data.email is not None:
            client.email = email
        if data.cnpj is not None:
            client.cnpj = cnpj
        if data.status is not None:
            client.status = data.status
        for attribute in (*_CONTACT_TEXT_FIELDS, "address", "website"):
            value = getattr(data, attribute)
            if value is not None:
                setattr(client, attribute, clean_text(value))

        client.updated_at = datetime.utcnow()
        commit_or_conflict(self.db, "A client with this email or CNPJ already exists.")
        logger.info("Client updated id=%s", client.id)
        return self.serialize_client(client)

    def delete_client(self, client_id: UUID) -> None:
        client = ensure_found(self.repo.get_client(client_id), "Client not found.")
        dependents = self.repo.count_client_dependents(client.id)
        if dependents["projects"]:
            raise conflict("Client has projects and cannot be deleted.")
        if dependents["contracts"]:
            raise conflict("Client has contracts and cannot be deleted.")
        self.repo.delete_client(client)
        self.db.commit()
        logger.info("Client deleted id=%s", client_id)

    # ---------- Leads ----------
    def _ensure_lead_email_available(self, email: str | None, *, lead_id: UUID | None = None) -> None:
        if not email:
            return
        existing = self.repo.get_lead_by_email(email)
        if existing is not None and existing.id != lead_id:
            raise conflict("A lead with this email already exists.")

    def list_leads(self, *, status: LeadStatus | None = None) -> list[dict[str, object]]:
        return [self.serialize_lead(lead) for lead in self.repo.list_leads(status=status)]

    def get_lead(self, lead_id: UUID) -> dict[str, object]:
        return self.serialize_lead(ensure_found(self.repo.get_lead(lead_id), "Lead not found."))

    def create_lead(self, data: LeadData) -> dict[str, object]:
        name = clean_text(data.name)
        if not name:
            raise bad_request("Lead name is required.")
        if data.estimated_value is not None and data.estimated_value < 0:
            raise bad_request("estimated_value must not be negative.")
        email = clean_text(data.email)
        email = email.lower() if email else None
        self._ensure_lead_email_available(email)

        now = datetime.utcnow()
        lead = Lead(
            name=name,
            email=email,
            phone=clean_text(data.phone),
            company=clean_text(data.company),
            position=clean_text(data.position),
            status=data.status or LeadStatus.NEW,
            source=data.source or LeadSource.OTHER,
            notes=clean_text(data.notes),
            estimated_value=data.estimated_value,
            created_at=now,
            updated_at=now,
        )
        self.repo.add_lead(lead)
        commit_or_conflict(self.db, "A lead with this email already exists.")
        self.db.refresh(lead)
        logger.info("Lead created id=%s name=%s", lead.id, lead.name)
        return self.serialize_lead(lead)

    def update_lead(self, lead_id: UUID, data: LeadData) -> dict[str, object]:
        lead = ensure_found(self.repo.get_lead(lead_id), "Lead not found.")

        if data.name is not None:
            name = clean_text(data.name)
            if not name:
                raise bad_request("Lead name is required.")
            lead.name = name
        if data.email is not None:
            email = clean_text(data.email)
            email = email.lower() if email else None
            self._ensure_lead_email_available(email, lead_id=lead.id)
            lead.email = email
        if data.status is not None:
            lead.status = data.status
        if data.source is not None:
            lead.source = data.source
        if data.estimated_value is not None:
            if data.estimated_value < 0:
                raise bad_request("estimated_value must not be negative.")
            lead.estimated_value = data.estimated_value
        for attribute in _CONTACT_TEXT_FIELDS:
            value = getattr(data, attribute)
            if value is not None:
                setattr(lead, attribute, clean_text(value))

        lead.updated_at = datetime.utcnow()
        commit_or_conflict(self.db, "A lead with this email already exists.")
        logger.info("Lead updated id=%s", lead.id)
        return self.serialize_lead(lead)

    def delete_lead(self, lead_id: UUID) -> None:
        lead = ensure_found(self.repo.get_lead(lead_id), "Lead not found.")
        self.repo.delete_lead(lead)
        self.db.commit()
        logger.info("Lead deleted id=%s", lead_id)

    def convert_lead(self, lead_id: UUID) -> dict[str, object]:
        """Create a client from the lead's contact data and mark the lead WON."""

        lead = ensure_found(self.repo.get_lead(lead_id), "Lead not found.")
        if lead.converted_to_client_id is not None:
            raise bad_request("Lead was already converted into a client.")
        if lead.email:
            self._ensure_client_unique(email=lead.email, cnpj=None)

        now = datetime.utcnow()
        client = Client(
            name=lead.name,
            email=lead.email,
            phone=lead.phone,
            company=lead.company,
            position=lead.position,
            notes=lead.notes,
            status=ClientStatus.ACTIVE,
            created_at=now,
            updated_at=now,
        )
        self.repo.add_client(client)

        lead.converted_to_client_id = client.id
        lead.converted_at = now
        lead.status = LeadStatus.WON
        lead.updated_at = now
        commit_or_conflict(self.db, "A client with this email already exists.")
        self.db.refresh(client)
        logger.info("Lead converted id=%s client_id=%s", lead.id, client.id)
        return self.serialize_client(client)

    # ---------- Meetings ----------
    def _validate_meeting_links(
        self,
        *,
        lead_id: UUID | None,
        client_id: UUID | None,
        member_ids: list[UUID] | None,
        team_ids: list[UUID] | None,
    ) -> None:
        if lead_id is not None:
            ensure_found(self.repo.get_lead(lead_id), "Lead not found.")
        if client_id is not None:
            ensure_found(self.repo.get_client(client_id), "Client not found.")
        if member_ids:
            unique_ids = list(dict.fromkeys(member_ids))
            if self.people.count_existing_members(unique_ids) != len(unique_ids):
                raise bad_request("One or more members do not exist.")
        if team_ids:
            unique_ids = list(dict.fromkeys(team_ids))
            if self.people.count_existing_teams(unique_ids) != len(unique_ids):
                raise bad_request("One or more teams do not exist.")

    def _meeting_payload(self, meeting: Meeting) -> dict[str, object]:
        return self.serialize_meeting(
            meeting,
            member_ids=self.repo.meeting_member_ids(meeting.id),
            team_ids=self.repo.meeting_team_ids(meeting.id),
        )

    def list_meetings(self, *, status: MeetingStatus | None = None, upcoming: bool = False) -> list[dict[str, object]]:
        if upcoming:
            meetings = self.repo.list_meetings(
                status=status or MeetingStatus.SCHEDULED,
                starting_after=datetime.utcnow(),
            )
        else:
            meetings = self.repo.list_meetings(status=status)
        meeting_ids = [meeting.id for meeting in meetings]
        member_ids = self.repo.meeting_member_ids_by_meeting(meeting_ids)
        team_ids = self.repo.meeting_team_ids_by_meeting(meeting_ids)
        return [
            self.serialize_meeting(
                meeting,
                member_ids=member_ids.get(meeting.id, []),
                team_ids=team_ids.get(meeting.id, []),
            )
            for meeting in meetings
        ]

    def get_meeting(self, meeting_id: UUID) -> dict[str, object]:
        return self._meeting_payload(ensure_found(self.repo.get_meeting(meeting_id), "Meeting not found."))

    def create_meeting(self, data: MeetingCreateData) -> dict[str, object]:
        title = clean_text(data.title)
        if not title:
            raise bad_request("Meeting title is required.")
        start_at = naive_utc(data.start_at)
        end_at = naive_utc(data.end_at) if data.end_at is not None else None
        ensure_date_range(start_at, end_at, label="end_at")
        self._validate_meeting_links(
            lead_id=data.lead_id,
            client_id=data.client_id,
            member_ids=data.member_ids,
            team_ids=data.team_ids,
        )

        now = datetime.utcnow()
        meeting = Meeting(
            title=title,
            description=clean_text(data.description),
            start_at=start_at,
            end_at=end_at,
            location=clean_text(data.location),
            lead_id=data.lead_id,
            client_id=data.client_id,
            tags=normalize_tags(data.tags),
            notes=clean_text(data.notes),
            status=data.status,
            created_at=now,
            updated_at=now,
        )
        self.repo.add_meeting(meeting)
        self.repo.set_meeting_members(meeting.id, data.member_ids)
        self.repo.set_meeting_teams(meeting.id, data.team_ids)
        commit_or_conflict(self.db, "Meeting could not be saved.")
        self.db.refresh(meeting)
        logger.info("Meeting created id=%s start_at=%s", meeting.id, meeting.start_at.isoformat())
        return self._meeting_payload(meeting)

    def update_meeting(self, meeting_id: UUID, data: MeetingUpdateData) -> dict[str, object]:
        meeting = ensure_found(self.repo.get_meeting(meeting_id), "Meeting not found.")
        self._validate_meeting_links(
            lead_id=data.lead_id,
            client_id=data.client_id,
            member_ids=data.member_ids,
            team_ids=data.team_ids,
        )

        start_at = naive_utc(data.start_at) if data.start_at is not None else naive_utc(meeting.start_at)
        end_at = meeting.end_at
        if data.end_at is not None:
            end_at = naive_utc(data.end_at)
        ensure_date_range(start_at, naive_utc(end_at) if end_at is not None else None, label="end_at")

        if data.title is not None:
            title = clean_text(data.title)
            if not title:
                raise bad_request("Meeting title is required.")
            meeting.title = title
        meeting.start_at = start_at
        meeting.end_at = end_at
        if data.lead_id is not None:
            meeting.lead_id = data.lead_id
        if data.client_id is not None:
            meeting.client_id = data.client_id
        if data.tags is not None:
            meeting.tags = normalize_tags(data.tags)
        if data.status is not None:
            meeting.status = data.status
        for attribute in ("description", "location", "notes"):
            value = getattr(data, attribute)
            if value is not None:
                setattr(meeting, attribute, clean_text(value))
        if data.member_ids is not None:
            self.repo.set_meeting_members(meeting.id, data.member_ids)
        if data.team_ids is not None:
            self.repo.set_meeting_teams(meeting.id, data.team_ids)

        meeting.updated_at = datetime.utcnow()
        commit_or_conflict(self.db, "Meeting could not be saved.")
        logger.info("Meeting updated id=%s", meeting.id)
        return self._meeting_payload(meeting)

    def delete_meeting(self, meeting_id: UUID) -> None:
        meeting = ensure_found(self.repo.get_meeting(meeting_id), "Meeting not found.")
        self.repo.delete_meeting(meeting)
        self.db.commit()
        logger.info("Meeting deleted id=%s", meeting_id)
