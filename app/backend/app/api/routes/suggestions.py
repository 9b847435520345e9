"""Internal suggestions board: proposals, votes and comments."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from app.core.auth import RequestUserContext, require_member
from app.db.dependencies import get_db_session
from app.models.entities import SuggestionCategory, SuggestionStatus
from app.services.suggestion_service import SuggestionCreateData, SuggestionService, SuggestionUpdateData

router = APIRouter(prefix="/sugestoes", tags=["suggestions"])


class SuggestionCreatePayload(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    description: str = Field(min_length=1)
    category: SuggestionCategory


class SuggestionUpdatePayload(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = Field(default=None, min_length=1)
    category: SuggestionCategory | None = None
    status: SuggestionStatus | None = None


class CommentCreatePayload(BaseModel):
    content: str = Field(min_length=1, max_length=5000)


def _suggestion_service(db: Session) -> SuggestionService:
    return SuggestionService(db)


@router.get("")
def list_suggestions(
    category: SuggestionCategory | None = Query(default=None),
    status_filter: SuggestionStatus | None = Query(default=None, alias="status"),
    context: RequestUserContext = Depends(require_member),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _suggestion_service(db)
    return {"items": service.list_suggestions(context=context, category=category, status_filter=status_filter)}


@router.post("", status_code=status.HTTP_201_CREATED)
def create_suggestion(
    payload: SuggestionCreatePayload,
    context: RequestUserContext = Depends(require_member),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _suggestion_service(db)
    return service.create_suggestion(context=context, data=SuggestionCreateData(**payload.model_dump()))


@router.get("/{suggestion_id}")
def get_suggestion(
    suggestion_id: UUID,
    context: RequestUserContext = Depends(require_member),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    return _suggestion_service(db).get_suggestion(context=context, suggestion_id=suggestion_id)


@router.put("/{suggestion_id}")
def update_suggestion(
    suggestion_id: UUID,
    payload: SuggestionUpdatePayload,
    context: RequestUserContext = Depends(require_member),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _suggestion_service(db)
    return service.update_suggestion(
        context=context,
        suggestion_id=suggestion_id,
        data=SuggestionUpdateData(**payload.model_dump()),
    )


@router.delete("/{suggestion_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_suggestion(
    suggestion_id: UUID,
    context: RequestUserContext = Depends(require_member),
    db: Session = Depends(get_db_session),
) -> Response:
    _suggestion_service(db).delete_suggestion(context=context, suggestion_id=suggestion_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{suggestion_id}/votos")
def toggle_vote(
    suggestion_id: UUID,
    context: RequestUserContext = Depends(require_member),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    return _suggestion_service(db).toggle_vote(context=context, suggestion_id=suggestion_id)


@router.get("/{suggestion_id}/comentarios")
def list_comments(
    suggestion_id: UUID,
    _: RequestUserContext = Depends(require_member),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    return {"items": _suggestion_service(db).list_comments(suggestion_id)}


@router.post("/{suggestion_id}/comentarios", status_code=status.HTTP_201_CREATED)
def add_comment(
    suggestion_id: UUID,
    payload: CommentCreatePayload,
    context: RequestUserContext = Depends(require_member),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _suggestion_service(db)
    return service.add_comment(context=context, suggestion_id=suggestion_id, content=payload.content)
