"""Repository helpers for members, users, teams and API keys."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from app.models.entities import (
    ApiKey,
    MeetingMember,
    MeetingTeam,
    Member,
    MemberStatus,
    ProjectMember,
    ProjectTeam,
    StoryMember,
    Suggestion,
    SuggestionComment,
    SuggestionVote,
    TaskMember,
    TaskTeam,
    Team,
    TeamMembership,
    User,
)
from app.repositories.common import delete_links, link_ids_by_owner, list_link_ids, replace_links


class PeopleRepository:
    """Persistence operations for people and credentials."""

    def __init__(self, db: Session) -> None:
        self.db = db

    # ---------- Members ----------
    def list_members(self, *, status: MemberStatus | None = None) -> list[Member]:
        stmt = select(Member)
        if status is not None:
            stmt = stmt.where(Member.status == status)
        return self.db.scalars(stmt.order_by(Member.name.asc())).all()

    def get_member(self, member_id: UUID) -> Member | None:
        return self.db.scalar(select(Member).where(Member.id == member_id))

    def get_member_by_email(self, email: str) -> Member | None:
        return self.db.scalar(select(Member).where(func.lower(Member.email) == email.lower()))

    def list_members_by_ids(self, member_ids: list[UUID]) -> list[Member]:
        if not member_ids:
            return []
        return self.db.scalars(select(Member).where(Member.id.in_(member_ids)).order_by(Member.name.asc())).all()

    def add_member(self, member: Member) -> Member:
        self.db.add(member)
        self.db.flush()
        return member

    def count_authored_records(self, member_id: UUID) -> int:
        suggestions = self.db.scalar(select(func.count(Suggestion.id)).where(Suggestion.author_id == member_id)) or 0
        comments = (
            self.db.scalar(select(func.count(SuggestionComment.id)).where(SuggestionComment.author_id == member_id))
            or 0
        )
        return int(suggestions) + int(comments)

    def delete_member(self, member: Member) -> None:
        for model in (TeamMembership, ProjectMember, StoryMember, TaskMember, MeetingMember, SuggestionVote):
            delete_links(self.db, model, "member_id", member.id)
        self.db.execute(update(User).where(User.member_id == member.id).values(member_id=None))
        self.db.execute(update(Team).where(Team.lead_id == member.id).values(lead_id=None))
        self.db.execute(update(ApiKey).where(ApiKey.created_by_id == member.id).values(created_by_id=None))
        self.db.delete(member)
        self.db.flush()

    def team_ids_for_member(self, member_id: UUID) -> list[UUID]:
        return list_link_ids(self.db, TeamMembership, "member_id", member_id, "team_id")

    # ---------- Users ----------
    def get_user(self, user_id: UUID) -> User | None:
        return self.db.scalar(select(User).where(User.id == user_id))

    def get_user_by_email(self, email: str) -> User | None:
        return self.db.scalar(select(User).where(User.email == email.strip().lower()))

    def get_user_by_member(self, member_id: UUID) -> User | None:
        return self.db.scalar(select(User).where(User.member_id == member_id))

    def add_user(self, user: User) -> User:
        self.db.add(user)
        self.db.flush()
        return user

    # ---------- Teams ----------
    def list_teams(self) -> list[Team]:
        return self.db.scalars(select(Team).order_by(Team.name.asc())).all()

    def get_team(self, team_id: UUID) -> Team | None:
        return self.db.scalar(select(Team).where(Team.id == team_id))

    def count_existing_teams(self, team_ids: list[UUID]) -> int:
        if not team_ids:
            return 0
        return int(self.db.scalar(select(func.count(Team.id)).where(Team.id.in_(set(team_ids)))) or 0)

    def count_existing_members(self, member_ids: list[UUID]) -> int:
        if not member_ids:
            return 0
        return int(self.db.scalar(select(func.count(Member.id)).where(Member.id.in_(set(member_ids)))) or 0)

    def add_team(self, team: Team) -> Team:
        self.db.add(team)
        self.db.flush()
        return team

    def delete_team(self, team: Team) -> None:
        for model in (TeamMembership, ProjectTeam, TaskTeam, MeetingTeam):
            delete_links(self.db, model, "team_id", team.id)
        self.db.delete(team)
        self.db.flush()

    def team_member_ids(self, team_id: UUID) -> list[UUID]:
        return list_link_ids(self.db, TeamMembership, "team_id", team_id, "member_id")

    def team_member_ids_by_team(self, team_ids: list[UUID]) -> dict[UUID, list[UUID]]:
        return link_ids_by_owner(self.db, TeamMembership, "team_id", team_ids, "member_id")

    def set_team_members(self, team_id: UUID, member_ids: list[UUID]) -> None:
        replace_links(self.db, TeamMembership, "team_id", team_id, "member_id", member_ids)

    # ---------- API keys ----------
    def list_api_keys(self) -> list[ApiKey]:
        return self.db.scalars(select(ApiKey).order_by(ApiKey.created_at.desc())).all()

    def get_api_key(self, api_key_id: UUID) -> ApiKey | None:
        return self.db.scalar(select(ApiKey).where(ApiKey.id == api_key_id))

    def add_api_key(self, api_key: ApiKey) -> ApiKey:
        self.db.add(api_key)
        self.db.flush()
        return api_key

    def delete_api_key(self, api_key: ApiKey) -> None:
        self.db.delete(api_key)
        self.db.flush()
