"""Repository helpers for the suggestions board."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import and_, delete, func, select
from sqlalchemy.orm import Session

from app.models.entities import (
    Suggestion,
    SuggestionCategory,
    SuggestionComment,
    SuggestionStatus,
    SuggestionVote,
)


class SuggestionRepository:
    """Persistence operations for suggestions, votes and comments."""

    def __init__(self, db: Session) -> None:
        self.db = db

    # ---------- Suggestions ----------
    def list_suggestions(
        self,
        *,
        category: SuggestionCategory | None = None,
        status: SuggestionStatus | None = None,
    ) -> list[Suggestion]:
        stmt = select(Suggestion)
        if category is not None:
            stmt = stmt.where(Suggestion.category == category)
        if status is not None:
            stmt = stmt.where(Suggestion.status == status)
        return self.db.scalars(stmt.order_by(Suggestion.created_at.desc())).all()

    def get_suggestion(self, suggestion_id: UUID) -> Suggestion | None:
        return self.db.scalar(select(Suggestion).where(Suggestion.id == suggestion_id))

    def add_suggestion(self, suggestion: Suggestion) -> Suggestion:
        self.db.add(suggestion)
        self.db.flush()
        return suggestion

    def delete_suggestion(self, suggestion: Suggestion) -> None:
        self.db.execute(delete(SuggestionVote).where(SuggestionVote.suggestion_id == suggestion.id))
        self.db.execute(delete(SuggestionComment).where(SuggestionComment.suggestion_id == suggestion.id))
        self.db.delete(suggestion)
        self.db.flush()

    # ---------- Votes ----------
    def get_vote(self, suggestion_id: UUID, member_id: UUID) -> SuggestionVote | None:
        return self.db.scalar(
            select(SuggestionVote).where(
                and_(SuggestionVote.suggestion_id == suggestion_id, SuggestionVote.member_id == member_id)
            )
        )

    def add_vote(self, vote: SuggestionVote) -> SuggestionVote:
        self.db.add(vote)
        self.db.flush()
        return vote

    def delete_vote(self, vote: SuggestionVote) -> None:
        self.db.delete(vote)
        self.db.flush()

    def count_votes(self, suggestion_ids: list[UUID]) -> dict[UUID, int]:
        if not suggestion_ids:
            return {}
        rows = self.db.execute(
            select(SuggestionVote.suggestion_id, func.count(SuggestionVote.id))
            .where(SuggestionVote.suggestion_id.in_(suggestion_ids))
            .group_by(SuggestionVote.suggestion_id)
        ).all()
        return {suggestion_id: int(count) for suggestion_id, count in rows}

    def voted_suggestion_ids(self, suggestion_ids: list[UUID], member_id: UUID) -> set[UUID]:
        if not suggestion_ids:
            return set()
        return set(
            self.db.scalars(
                select(SuggestionVote.suggestion_id).where(
                    and_(
                        SuggestionVote.suggestion_id.in_(suggestion_ids),
                        SuggestionVote.member_id == member_id,
                    )
                )
            ).all()
        )

    # ---------- Comments ----------
    def list_comments(self, suggestion_id: UUID) -> list[SuggestionComment]:
        return self.db.scalars(
            select(SuggestionComment)
            .where(SuggestionComment.suggestion_id == suggestion_id)
            .order_by(SuggestionComment.created_at.asc())
        ).all()

    def count_comments(self, suggestion_ids: list[UUID]) -> dict[UUID, int]:
        if not suggestion_ids:
            return {}
        rows = self.db.execute(
            select(SuggestionComment.suggestion_id, func.count(SuggestionComment.id))
            .where(SuggestionComment.suggestion_id.in_(suggestion_ids))
            .group_by(SuggestionComment.suggestion_id)
        ).all()
        return {suggestion_id: int(count) for suggestion_id, count in rows}

    def add_comment(self, comment: SuggestionComment) -> SuggestionComment:
        self.db.add(comment)
        self.db.flush()
        return comment
