"""Application service for the internal suggestions board."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from app.core.auth import RequestUserContext
from app.core.config import get_settings
from app.models.entities import (
    Member,
    Suggestion,
    SuggestionCategory,
    SuggestionComment,
    SuggestionStatus,
    SuggestionVote,
)
from app.repositories.people_repository import PeopleRepository
from app.repositories.suggestion_repository import SuggestionRepository
from app.services.common import bad_request, clean_text, commit_or_conflict, ensure_found

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class SuggestionCreateData:
    title: str
    description: str
    category: SuggestionCategory


@dataclass(slots=True)
class SuggestionUpdateData:
    title: str | None = None
    description: str | None = None
    category: SuggestionCategory | None = None
    status: SuggestionStatus | None = None


def _forbidden(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


class SuggestionService:
    """Service implementing suggestions, votes and comments."""

    def __init__(self, db: Session) -> None:
        self.db = db
        self.repo = SuggestionRepository(db)
        self.people = PeopleRepository(db)
        self.settings = get_settings()

    # ---------- Serialization ----------
    @staticmethod
    def serialize_author(member: Member | None) -> dict[str, object] | None:
        if member is None:
            return None
        return {"id": str(member.id), "name": member.name, "avatar": member.avatar, "role": member.role.value}

    def serialize_suggestion(
        self,
        suggestion: Suggestion,
        *,
        vote_count: int,
        comment_count: int,
        has_voted: bool,
        authors: dict[UUID, Member],
    ) -> dict[str, object]:
        return {
            "id": str(suggestion.id),
            "title": suggestion.title,
            "description": suggestion.description,
            "category": suggestion.category.value,
            "status": suggestion.status.value,
            "author_id": str(suggestion.author_id),
            "author": self.serialize_author(authors.get(suggestion.author_id)),
            "vote_count": vote_count,
            "comment_count": comment_count,
            "has_voted": has_voted,
            "created_at": suggestion.created_at.isoformat(),
            "updated_at": suggestion.updated_at.isoformat(),
        }

    def serialize_comment(self, comment: SuggestionComment, *, authors: dict[UUID, Member]) -> dict[str, object]:
        return {
            "id": str(comment.id),
            "suggestion_id": str(comment.suggestion_id),
            "author_id": str(comment.author_id),
            "author": self.serialize_author(authors.get(comment.author_id)),
            "content": comment.content,
            "created_at": comment.created_at.isoformat(),
        }

    def _authors(self, author_ids: list[UUID]) -> dict[UUID, Member]:
        return {member.id: member for member in self.people.list_members_by_ids(list(set(author_ids)))}

    def _payloads(self, suggestions: list[Suggestion], *, member_id: UUID) -> list[dict[str, object]]:
        suggestion_ids = [suggestion.id for suggestion in suggestions]
        votes = self.repo.count_votes(suggestion_ids)
        comments = self.repo.count_comments(suggestion_ids)
        voted = self.repo.voted_suggestion_ids(suggestion_ids, member_id)
        authors = self._authors([suggestion.author_id for suggestion in suggestions])
        return [
            self.serialize_suggestion(
                suggestion,
                vote_count=votes.get(suggestion.id, 0),
                comment_count=comments.get(suggestion.id, 0),
                has_voted=suggestion.id in voted,
                authors=authors,
            )
            for suggestion in suggestions
        ]

    def _get_suggestion(self, suggestion_id: UUID) -> Suggestion:
        return ensure_found(self.repo.get_suggestion(suggestion_id), "Suggestion not found.")

    # ---------- Suggestions ----------
    def list_suggestions(
        self,
        *,
        context: RequestUserContext,
        category: SuggestionCategory | None = None,
        status_filter: SuggestionStatus | None = None,
    ) -> list[dict[str, object]]:
        suggestions = self.repo.list_suggestions(category=category, status=status_filter)
        return self._payloads(suggestions, member_id=context.member_id)

    def get_suggestion(self, *, context: RequestUserContext, suggestion_id: UUID) -> dict[str, object]:
        suggestion = self._get_suggestion(suggestion_id)
        payload = self._payloads([suggestion], member_id=context.member_id)[0]
        payload["comments"] = self.list_comments(suggestion.id)
        return payload

    def create_suggestion(self, *, context: RequestUserContext, data: SuggestionCreateData) -> dict[str, object]:
        title = clean_text(data.title)
        description = clean_text(data.description)
        if not title or not description:
            raise bad_request("Title and description are required.")

        now = datetime.utcnow()
        suggestion = Suggestion(
            title=title,
            description=description,
            category=data.category,
            status=SuggestionStatus.ABERTA,
            author_id=context.member_id,
            created_at=now,
            updated_at=now,
        )
        self.repo.add_suggestion(suggestion)
        commit_or_conflict(self.db, "Suggestion could not be saved.")
        self.db.refresh(suggestion)
        logger.info("Suggestion created id=%s author_id=%s", suggestion.id, suggestion.author_id)
        return self._payloads([suggestion], member_id=context.member_id)[0]

    def update_suggestion(
        self,
        *,
        context: RequestUserContext,
        suggestion_id: UUID,
        data: SuggestionUpdateData,
    ) -> dict[str, object]:
        """Authors edit content; administrators move the status."""

        suggestion = self._get_suggestion(suggestion_id)
        edits_content = data.title is not None or data.description is not None or data.category is not None
        if edits_content and suggestion.author_id != context.member_id:
            raise _forbidden("Only the author can edit this suggestion.")
        if data.status is not None and data.status != suggestion.status and not context.has_admin_access:
            raise _forbidden("Only administrators can change the suggestion status.")

        if data.title is not None:
            title = clean_text(data.title)
            if not title:
                raise bad_request("Title is required.")
            suggestion.title = title
        if data.description is not None:
            description = clean_text(data.description)
            if not description:
                raise bad_request("Description is required.")
            suggestion.description = description
        if data.category is not None:
            suggestion.category = data.category
        if data.status is not None:
            suggestion.status = data.status

        suggestion.updated_at = datetime.utcnow()
        commit_or_conflict(self.db, "Suggestion could not be saved.")
        logger.info("Suggestion updated id=%s status=%s", suggestion.id, suggestion.status.value)
        return self._payloads([suggestion], member_id=context.member_id)[0]

    def delete_suggestion(self, *, context: RequestUserContext, suggestion_id: UUID) -> None:
        suggestion = self._get_suggestion(suggestion_id)
        if suggestion.author_id != context.member_id:
            raise _forbidden("You can only delete your own suggestions.")
        self.repo.delete_suggestion(suggestion)
        self.db.commit()
        logger.info("Suggestion deleted id=%s", suggestion_id)

    # ---------- Votes ----------
    def toggle_vote(self, *, context: RequestUserContext, suggestion_id: UUID) -> dict[str, object]:
        """Add the member's vote, or remove it when already present."""

        suggestion = self._get_suggestion(suggestion_id)
        existing = self.repo.get_vote(suggestion.id, context.member_id)
        if existing is not None:
            self.repo.delete_vote(existing)
            voted = False
        else:
            self.repo.add_vote(
                SuggestionVote(
                    suggestion_id=suggestion.id,
                    member_id=context.member_id,
                    created_at=datetime.utcnow(),
                )
            )
            voted = True
        commit_or_conflict(self.db, "Vote already registered.")

        vote_count = self.repo.count_votes([suggestion.id]).get(suggestion.id, 0)
        logger.info("Vote toggled suggestion_id=%s member_id=%s voted=%s", suggestion.id, context.member_id, voted)
        return {"voted": voted, "vote_count": vote_count}

    # ---------- Comments ----------
    def list_comments(self, suggestion_id: UUID) -> list[dict[str, object]]:
        self._get_suggestion(suggestion_id)
        comments = self.repo.list_comments(suggestion_id)
        authors = self._authors([comment.author_id for comment in comments])
        return [self.serialize_comment(comment, authors=authors) for comment in comments]

    def add_comment(self, *, context: RequestUserContext, suggestion_id: UUID, content: str) -> dict[str, object]:
        suggestion = self._get_suggestion(suggestion_id)
        text = clean_text(content)
        if not text:
            raise bad_request("Comment content is required.")

        comment = SuggestionComment(
            suggestion_id=suggestion.id,
            author_id=context.member_id,
            content=text,
            created_at=datetime.utcnow(),
        )
        self.repo.add_comment(comment)
        commit_or_conflict(self.db, "Comment could not be saved.")
        self.db.refresh(comment)
        logger.info("Comment added id=%s suggestion_id=%s", comment.id, suggestion.id)
        return self.serialize_comment(comment, authors=self._authors([comment.author_id]))
