"""Internal project endpoints, reachable by session users and API keys."""

from __future__ import annotations

import datetime as dt
from decimal import Decimal
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from app.core.auth import RequestUserContext, require_permission
from app.db.dependencies import get_db_session
from app.models.entities import (
    InternalProjectStatus,
    Priority,
    TransactionCategory,
    TransactionType,
    WorkStatus,
)
from app.services.finance_service import FinanceService, TransactionData, TransactionFilters
from app.services.internal_project_service import InternalProjectData, InternalProjectService, InternalStoryData
from app.services.project_service import ReorderData, TaskData

router = APIRouter(prefix="/projetos-internos", tags=["internal-projects"])


class InternalProjectCreatePayload(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    description: str | None = None
    status: InternalProjectStatus = InternalProjectStatus.ACTIVE
    icon: str | None = Field(default=None, max_length=64)
    color: str | None = Field(default=None, max_length=32)


class InternalProjectUpdatePayload(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    status: InternalProjectStatus | None = None
    icon: str | None = Field(default=None, max_length=64)
    color: str | None = Field(default=None, max_length=32)


class InternalTaskPayload(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    status: WorkStatus | None = None
    priority: Priority | None = None
    due_date: dt.date | None = None
    estimated_hours: Decimal | None = Field(default=None, ge=0)
    actual_hours: Decimal | None = Field(default=None, ge=0)
    tags: list[str] | None = None
    story_id: UUID | None = None


class InternalTaskReorderPayload(BaseModel):
    task_id: UUID
    new_status: WorkStatus
    new_order: int = Field(ge=0)


class InternalStoryPayload(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    status: WorkStatus | None = None
    priority: Priority | None = None
    points: int | None = Field(default=None, ge=0)


class InternalStoryReorderPayload(BaseModel):
    story_id: UUID
    new_status: WorkStatus
    new_order: int = Field(ge=0)


class InternalTransactionPayload(BaseModel):
    type: TransactionType
    category: TransactionCategory
    amount: Decimal = Field(gt=0)
    description: str = Field(min_length=1, max_length=500)
    date: dt.date
    invoice_number: str | None = Field(default=None, max_length=128)
    payment_method: str | None = Field(default=None, max_length=64)
    notes: str | None = None


def _internal_project_service(db: Session) -> InternalProjectService:
    return InternalProjectService(db)


# ---------- Internal projects ----------
@router.get("")
def list_internal_projects(
    status_filter: InternalProjectStatus | None = Query(default=None, alias="status"),
    context: RequestUserContext = Depends(require_permission("internal-projects:read")),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _internal_project_service(db)
    return {"items": service.list_internal_projects(context=context, status_filter=status_filter)}


@router.post("", status_code=status.HTTP_201_CREATED)
def create_internal_project(
    payload: InternalProjectCreatePayload,
    context: RequestUserContext = Depends(require_permission("internal-projects:write")),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _internal_project_service(db)
    return service.create_internal_project(context=context, data=InternalProjectData(**payload.model_dump()))


@router.get("/{internal_project_id}")
def get_internal_project(
    internal_project_id: UUID,
    context: RequestUserContext = Depends(require_permission("internal-projects:read")),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _internal_project_service(db)
    return service.get_internal_project(context=context, internal_project_id=internal_project_id)


@router.put("/{internal_project_id}")
def update_internal_project(
    internal_project_id: UUID,
    payload: InternalProjectUpdatePayload,
    context: RequestUserContext = Depends(require_permission("internal-projects:write")),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _internal_project_service(db)
    return service.update_internal_project(
        context=context,
        internal_project_id=internal_project_id,
        data=InternalProjectData(**payload.model_dump()),
    )


@router.delete("/{internal_project_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_internal_project(
    internal_project_id: UUID,
    context: RequestUserContext = Depends(require_permission("internal-projects:write")),
    db: Session = Depends(get_db_session),
) -> Response:
    service = _internal_project_service(db)
    service.delete_internal_project(context=context, internal_project_id=internal_project_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ---------- Internal stories ----------
@router.get("/{internal_project_id}/stories")
def list_internal_stories(
    internal_project_id: UUID,
    context: RequestUserContext = Depends(require_permission("tasks:read")),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _internal_project_service(db)
    return {"items": service.list_stories(context=context, internal_project_id=internal_project_id)}


@router.post("/{internal_project_id}/stories", status_code=status.HTTP_201_CREATED)
def create_internal_story(
    internal_project_id: UUID,
    payload: InternalStoryPayload,
    context: RequestUserContext = Depends(require_permission("tasks:write")),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _internal_project_service(db)
    return service.create_story(
        context=context,
        internal_project_id=internal_project_id,
        data=InternalStoryData(**payload.model_dump()),
    )


@router.put("/{internal_project_id}/stories/reorder")
def reorder_internal_stories(
    internal_project_id: UUID,
    payload: InternalStoryReorderPayload,
    context: RequestUserContext = Depends(require_permission("tasks:write")),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _internal_project_service(db)
    items = service.reorder_stories(
        context=context,
        internal_project_id=internal_project_id,
        data=ReorderData(card_id=payload.story_id, new_status=payload.new_status, new_order=payload.new_order),
    )
    return {"items": items}


@router.put("/{internal_project_id}/stories/{story_id}")
def update_internal_story(
    internal_project_id: UUID,
    story_id: UUID,
    payload: InternalStoryPayload,
    context: RequestUserContext = Depends(require_permission("tasks:write")),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _internal_project_service(db)
    return service.update_story(
        context=context,
        internal_project_id=internal_project_id,
        story_id=story_id,
        data=InternalStoryData(**payload.model_dump()),
    )


@router.delete("/{internal_project_id}/stories/{story_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_internal_story(
    internal_project_id: UUID,
    story_id: UUID,
    context: RequestUserContext = Depends(require_permission("tasks:delete")),
    db: Session = Depends(get_db_session),
) -> Response:
    _internal_project_service(db).delete_story(
        context=context,
        internal_project_id=internal_project_id,
        story_id=story_id,
    )
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ---------- Internal tasks ----------
@router.get("/{internal_project_id}/tasks")
def list_internal_tasks(
    internal_project_id: UUID,
    context: RequestUserContext = Depends(require_permission("tasks:read")),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _internal_project_service(db)
    return {"items": service.list_tasks(context=context, internal_project_id=internal_project_id)}


@router.post("/{internal_project_id}/tasks", status_code=status.HTTP_201_CREATED)
def create_internal_task(
    internal_project_id: UUID,
    payload: InternalTaskPayload,
    context: RequestUserContext = Depends(require_permission("tasks:write")),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _internal_project_service(db)
    return service.create_task(
        context=context,
        internal_project_id=internal_project_id,
        data=TaskData(**payload.model_dump()),
    )


@router.put("/{internal_project_id}/tasks/reorder")
def reorder_internal_tasks(
    internal_project_id: UUID,
    payload: InternalTaskReorderPayload,
    context: RequestUserContext = Depends(require_permission("tasks:write")),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _internal_project_service(db)
    items = service.reorder_tasks(
        context=context,
        internal_project_id=internal_project_id,
        data=ReorderData(card_id=payload.task_id, new_status=payload.new_status, new_order=payload.new_order),
    )
    return {"items": items}


@router.get("/{internal_project_id}/tasks/{task_id}")
def get_internal_task(
    internal_project_id: UUID,
    task_id: UUID,
    context: RequestUserContext = Depends(require_permission("tasks:read")),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _internal_project_service(db)
    return service.get_task(context=context, internal_project_id=internal_project_id, task_id=task_id)


@router.put("/{internal_project_id}/tasks/{task_id}")
def update_internal_task(
    internal_project_id: UUID,
    task_id: UUID,
    payload: InternalTaskPayload,
    context: RequestUserContext = Depends(require_permission("tasks:write")),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _internal_project_service(db)
    return service.update_task(
        context=context,
        internal_project_id=internal_project_id,
        task_id=task_id,
        data=TaskData(**payload.model_dump()),
    )


@router.delete("/{internal_project_id}/tasks/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_internal_task(
    internal_project_id: UUID,
    task_id: UUID,
    context: RequestUserContext = Depends(require_permission("tasks:delete")),
    db: Session = Depends(get_db_session),
) -> Response:
    service = _internal_project_service(db)
    service.delete_task(context=context, internal_project_id=internal_project_id, task_id=task_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ---------- Internal project ledger ----------
@router.get("/{internal_project_id}/transactions")
def list_internal_transactions(
    internal_project_id: UUID,
    context: RequestUserContext = Depends(require_permission("transactions:read")),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    _internal_project_service(db).get_internal_project(context=context, internal_project_id=internal_project_id)
    service = FinanceService(db)
    items = service.list_transactions(
        context=context,
        filters=TransactionFilters(internal_project_id=internal_project_id),
    )
    return {"items": items}


@router.post("/{internal_project_id}/transactions", status_code=status.HTTP_201_CREATED)
def create_internal_transaction(
    internal_project_id: UUID,
    payload: InternalTransactionPayload,
    context: RequestUserContext = Depends(require_permission("transactions:write")),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    _internal_project_service(db).get_internal_project(context=context, internal_project_id=internal_project_id)
    service = FinanceService(db)
    return service.create_transaction(
        context=context,
        data=TransactionData(internal_project_id=internal_project_id, **payload.model_dump()),
    )
