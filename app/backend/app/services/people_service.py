"""Application service for team members and teams."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from uuid import UUID

from sqlalchemy.orm import Session

from app.core.auth import ADMIN_ROLES
from app.core.config import get_settings
from app.models.entities import Member, MemberRole, MemberStatus, Team
from app.repositories.people_repository import PeopleRepository
from app.services.common import (
    bad_request,
    clean_text,
    commit_or_conflict,
    conflict,
    ensure_found,
    ids,
    iso,
)

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class MemberCreateData:
    name: str
    email: str
    role: MemberRole
    roles: list[MemberRole] = field(default_factory=list)
    phone: str | None = None
    status: MemberStatus = MemberStatus.ACTIVE
    department: str | None = None
    hire_date: date | None = None
    avatar: str | None = None
    bio: str | None = None
    skills: str | None = None
    notes: str | None = None
    team_ids: list[UUID] = field(default_factory=list)


@dataclass(slots=True)
class MemberUpdateData:
    name: str | None = None
    email: str | None = None
    role: MemberRole | None = None
    roles: list[MemberRole] | None = None
    phone: str | None = None
    status: MemberStatus | None = None
    department: str | None = None
    hire_date: date | None = None
    avatar: str | None = None
    bio: str | None = None
    skills: str | None = None
    notes: str | None = None
    team_ids: list[UUID] | None = None


@dataclass(slots=True)
class TeamCreateData:
    name: str
    description: str | None = None
    lead_id: UUID | None = None
    member_ids: list[UUID] = field(default_factory=list)


@dataclass(slots=True)
class TeamUpdateData:
    name: str | None = None
    description: str | None = None
    lead_id: UUID | None = None
    member_ids: list[UUID] | None = None


def normalize_roles(primary: MemberRole, roles: list[MemberRole] | None) -> list[str]:
    """Role list with duplicates removed and the primary role always present."""

    ordered = [primary.value]
    for role in roles or []:
        if role.value not in ordered:
            ordered.append(role.value)
    return ordered


class PeopleService:
    """Service implementing member and team management."""

    def __init__(self, db: Session) -> None:
        self.db = db
        self.repo = PeopleRepository(db)
        self.settings = get_settings()

    # ---------- Serialization ----------
    @staticmethod
    def serialize_member(member: Member, *, team_ids: list[UUID] | None = None) -> dict[str, object]:
        roles = list(member.roles or [])
        return {
            "id": str(member.id),
            "name": member.name,
            "email": member.email,
            "phone": member.phone,
            "role": member.role.value,
            "roles": roles,
            "has_admin_access": any(role in ADMIN_ROLES for role in roles),
            "status": member.status.value,
            "department": member.department,
            "hire_date": iso(member.hire_date),
            "avatar": member.avatar,
            "bio": member.bio,
            "skills": member.skills,
            "notes": member.notes,
            "team_ids": ids(team_ids or []),
            "created_at": member.created_at.isoformat(),
            "updated_at": member.updated_at.isoformat(),
        }

    @staticmethod
    def serialize_team(team: Team, *, member_ids: list[UUID] | None = None) -> dict[str, object]:
        return {
            "id": str(team.id),
            "name": team.name,
            "description": team.description,
            "lead_id": str(team.lead_id) if team.lead_id else None,
            "member_ids": ids(member_ids or []),
            "created_at": team.created_at.isoformat(),
            "updated_at": team.updated_at.isoformat(),
        }

    # ---------- Validation ----------
    def _ensure_members_exist(self, member_ids: list[UUID]) -> None:
        unique_ids = list(dict.fromkeys(member_ids))
        if self.repo.count_existing_members(unique_ids) != len(unique_ids):
            raise bad_request("One or more members do not exist.")

    def _ensure_teams_exist(self, team_ids: list[UUID]) -> None:
        unique_ids = list(dict.fromkeys(team_ids))
        if self.repo.count_existing_teams(unique_ids) != len(unique_ids):
            raise bad_request("One or more teams do not exist.")

    def _ensure_email_available(self, email: str, *, member_id: UUID | None = None) -> None:
        existing = self.repo.get_member_by_email(email)
        if existing is not None and existing.id != member_id:
            raise conflict("A member with this email already exists.")

    # ---------- Members ----------
    def list_members(self, *, status: MemberStatus | None = None) -> list[dict[str, object]]:
        members = self.repo.list_members(status=status)
        return [
            self.serialize_member(member, team_ids=self.repo.team_ids_for_member(member.id)) for member in members
        ]

    def get_member(self, member_id: UUID) -> dict[str, object]:
        member = ensure_found(self.repo.get_member(member_id), "Member not found.")
        return self.serialize_member(member, team_ids=self.repo.team_ids_for_member(member.id))

    def create_member(self, data: MemberCreateData) -> dict[str, object]:
        email = data.email.strip().lower()
        self._ensure_email_available(email)
        self._ensure_teams_exist(data.team_ids)

        now = datetime.utcnow()
        member = Member(
            name=data.name.strip(),
            email=email,
            phone=clean_text(data.phone),
            role=data.role,
            roles=normalize_roles(data.role, data.roles),
            status=data.status,
            department=clean_text(data.department),
            hire_date=data.hire_date,
            avatar=clean_text(data.avatar),
            bio=clean_text(data.bio),
            skills=clean_text(data.skills),
            notes=clean_text(data.notes),
            created_at=now,
            updated_at=now,
        )
        self.repo.add_member(member)
        if data.team_ids:
            for team_id in dict.fromkeys(data.team_ids):
                self.repo.set_team_members(team_id, [*self.repo.team_member_ids(team_id), member.id])
        commit_or_conflict(self.db, "A member with this email already exists.")
        self.db.refresh(member)
        logger.info("Member created id=%s email=%s", member.id, member.email)
        return self.get_member(member.id)

    def update_member(self, member_id: UUID, data: MemberUpdateData) -> dict[str, object]:
        member = ensure_found(self.repo.get_member(member_id), "Member not found.")

        if data.email is not None:
            email = data.email.strip().lower()
            self._ensure_email_available(email, member_id=member.id)
            member.email = email
        if data.name is not None:
            member.name = data.name.strip()
        if data.role is not None or data.roles is not None:
            primary = data.role or member.role
            current = [MemberRole(role) for role in member.roles or []]
            member.role = primary
            member.roles = normalize_roles(primary, data.roles if data.roles is not None else current)
        if data.status is not None:
            member.status = data.status
        if data.hire_date is not None:
            member.hire_date = data.hire_date
        for attribute in ("phone", "department", "avatar", "bio", "skills", "notes"):
            value = getattr(data, attribute)
            if value is not None:
                setattr(member, attribute, clean_text(value))

        if data.team_ids is not None:
            self._ensure_teams_exist(data.team_ids)
            current_team_ids = set(self.repo.team_ids_for_member(member.id))
            wanted = set(data.team_ids)
            for team_id in current_team_ids - wanted:
                remaining = [mid for mid in self.repo.team_member_ids(team_id) if mid != member.id]
                self.repo.set_team_members(team_id, remaining)
            for team_id in wanted - current_team_ids:
                self.repo.set_team_members(team_id, [*self.repo.team_member_ids(team_id), member.id])

        member.updated_at = datetime.utcnow()
        commit_or_conflict(self.db, "A member with this email already exists.")
        logger.info("Member updated id=%s", member.id)
        return self.get_member(member.id)

    def delete_member(self, member_id: UUID) -> None:
        member = ensure_found(self.repo.get_member(member_id), "Member not found.")
        if self.repo.count_authored_records(member.id):
            raise conflict("Member authored suggestions or comments and cannot be deleted.")
        self.repo.delete_member(member)
        self.db.commit()
        logger.info("Member deleted id=%s", member_id)

    # ---------- Teams ----------
    def list_teams(self) -> list[dict[str, object]]:
        teams = self.repo.list_teams()
        member_ids = self.repo.team_member_ids_by_team([team.id for team in teams])
        return [self.serialize_team(team, member_ids=member_ids.get(team.id, [])) for team in teams]

    def get_team(self, team_id: UUID) -> dict[str, object]:
        team = ensure_found(self.repo.get_team(team_id), "Team not found.")
        return self.serialize_team(team, member_ids=self.repo.team_member_ids(team.id))

    def create_team(self, data: TeamCreateData) -> dict[str, object]:
        if data.lead_id is not None:
            self._ensure_members_exist([data.lead_id])
        self._ensure_members_exist(data.member_ids)

        now = datetime.utcnow()
        team = Team(
            name=data.name.strip(),
            description=clean_text(data.description),
            lead_id=data.lead_id,
            created_at=now,
            updated_at=now,
        )
        self.repo.add_team(team)
        self.repo.set_team_members(team.id, data.member_ids)
        commit_or_conflict(self.db, "Team could not be saved.")
        self.db.refresh(team)
        logger.info("Team created id=%s name=%s", team.id, team.name)
        return self.get_team(team.id)

    def update_team(self, team_id: UUID, data: TeamUpdateData) -> dict[str, object]:
        team = ensure_found(self.repo.get_team(team_id), "Team not found.")

        if data.name is not None:
            team.name = data.name.strip()
        if data.description is not None:
            team.description = clean_text(data.description)
        if data.lead_id is not None:
            self._ensure_members_exist([data.lead_id])
            team.lead_id = data.lead_id
        if data.member_ids is not None:
            self._ensure_members_exist(data.member_ids)
            self.repo.set_team_members(team.id, data.member_ids)

        team.updated_at = datetime.utcnow()
        commit_or_conflict(self.db, "Team could not be saved.")
        logger.info("Team updated id=%s", team.id)
        return self.get_team(team.id)

    def delete_team(self, team_id: UUID) -> None:
        team = ensure_found(self.repo.get_team(team_id), "Team not found.")
        self.repo.delete_team(team)
        self.db.commit()
        logger.info("Team deleted id=%s", team_id)
