"""Repository helpers for clients, leads and meetings."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from app.models.entities import (
    Client,
    ClientStatus,
    Contract,
    Lead,
    LeadStatus,
    Meeting,
    MeetingMember,
    MeetingStatus,
    MeetingTeam,
    Project,
    Transaction,
)
from app.repositories.common import delete_links, link_ids_by_owner, list_link_ids, replace_links


class CrmRepository:
    """Persistence operations for the commercial pipeline."""

    def __init__(self, db: Session) -> None:
        self.db = db

    # ---------- Clients ----------
    def list_clients(self, *, status: ClientStatus | None = None) -> list[Client]:
        stmt = select(Client)
        if status is not None:
            stmt = stmt.where(Client.status == status)
        return self.db.scalars(stmt.order_by(Client.created_at.desc(), Client.name.asc())).all()

    def get_client(self, client_id: UUID) -> Client | None:
        return self.db.scalar(select(Client).where(Client.id == client_id))

    def get_client_by_email(self, email: str) -> Client | None:
        return self.db.scalar(select(Client).where(func.lower(Client.email) == email.lower()))

    def get_client_by_cnpj(self, cnpj: str) -> Client | None:
        return self.db.scalar(select(Client).where(Client.cnpj == cnpj))

    def add_client(self, client: Client) -> Client:
        self.db.add(client)
        self.db.flush()
        return client

    def count_client_dependents(self, client_id: UUID) -> dict[str, int]:
        return {
            "projects": int(self.db.scalar(select(func.count(Project.id)).where(Project.client_id == client_id)) or 0),
            "contracts": int(
                self.db.scalar(select(func.count(Contract.id)).where(Contract.client_id == client_id)) or 0
            ),
        }

    def delete_client(self, client: Client) -> None:
        self.db.execute(update(Lead).where(Lead.converted_to_client_id == client.id).values(converted_to_client_id=None))
        self.db.execute(update(Meeting).where(Meeting.client_id == client.id).values(client_id=None))
        self.db.execute(update(Transaction).where(Transaction.client_id == client.id).values(client_id=None))
        self.db.delete(client)
        self.db.flush()

    def count_clients(self, *, status: ClientStatus | None = None) -> int:
        stmt = select(func.count(Client.id))
        if status is not None:
            stmt = stmt.where(Client.status == status)
        return int(self.db.scalar(stmt) or 0)

    # ---------- Leads ----------
    def list_leads(self, *, status: LeadStatus | None = None) -> list[Lead]:
        stmt = select(Lead)
        if status is not None:
            stmt = stmt.where(Lead.status == status)
        return self.db.scalars(stmt.order_by(Lead.created_at.desc(), Lead.name.asc())).all()

    def get_lead(self, lead_id: UUID) -> Lead | None:
        return self.db.scalar(select(Lead).where(Lead.id == lead_id))

    def get_lead_by_email(self, email: str) -> Lead | None:
        return self.db.scalar(select(Lead).where(func.lower(Lead.email) == email.lower()))

    def add_lead(self, lead: Lead) -> Lead:
        self.db.add(lead)
        self.db.flush()
        return lead

    def delete_lead(self, lead: Lead) -> None:
        self.db.execute(update(Meeting).where(Meeting.lead_id == lead.id).values(lead_id=None))
        self.db.delete(lead)
        self.db.flush()

    def count_leads_by_status(self) -> dict[LeadStatus, int]:
        rows = self.db.execute(select(Lead.status, func.count(Lead.id)).group_by(Lead.status)).all()
        return {status: int(count) for status, count in rows}

    # ---------- Meetings ----------
    def list_meetings(
        self,
        *,
        status: MeetingStatus | None = None,
        starting_after: datetime | None = None,
    ) -> list[Meeting]:
        stmt = select(Meeting)
        if status is not None:
            stmt = stmt.where(Meeting.status == status)
        if starting_after is not None:
            stmt = stmt.where(Meeting.start_at >= starting_after).order_by(Meeting.start_at.asc())
        else:
            stmt = stmt.order_by(Meeting.start_at.desc())
        return self.db.scalars(stmt.order_by(Meeting.title.asc())).all()

    def get_meeting(self, meeting_id: UUID) -> Meeting | None:
        return self.db.scalar(select(Meeting).where(Meeting.id == meeting_id))

    def add_meeting(self, meeting: Meeting) -> Meeting:
        self.db.add(meeting)
        self.db.flush()
        return meeting

    def delete_meeting(self, meeting: Meeting) -> None:
        delete_links(self.db, MeetingMember, "meeting_id", meeting.id)
        delete_links(self.db, MeetingTeam, "meeting_id", meeting.id)
        self.db.delete(meeting)
        self.db.flush()

    def meeting_member_ids(self, meeting_id: UUID) -> list[UUID]:
        return list_link_ids(self.db, MeetingMember, "meeting_id", meeting_id, "member_id")

    def meeting_team_ids(self, meeting_id: UUID) -> list[UUID]:
        return list_link_ids(self.db, MeetingTeam, "meeting_id", meeting_id, "team_id")

    def meeting_member_ids_by_meeting(self, meeting_ids: list[UUID]) -> dict[UUID, list[UUID]]:
        return link_ids_by_owner(self.db, MeetingMember, "meeting_id", meeting_ids, "member_id")

    def meeting_team_ids_by_meeting(self, meeting_ids: list[UUID]) -> dict[UUID, list[UUID]]:
        return link_ids_by_owner(self.db, MeetingTeam, "meeting_id", meeting_ids, "team_id")

    def set_meeting_members(self, meeting_id: UUID, member_ids: list[UUID]) -> None:
        replace_links(self.db, MeetingMember, "meeting_id", meeting_id, "member_id", member_ids)

    def set_meeting_teams(self, meeting_id: UUID, team_ids: list[UUID]) -> None:
        replace_links(self.db, MeetingTeam, "meeting_id", meeting_id, "team_id", team_ids)
