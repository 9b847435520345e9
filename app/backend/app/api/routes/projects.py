"""Client project endpoints: projects, epics, the story board and the task board."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from app.core.auth import RequestUserContext, get_session_context, require_permission
from app.db.dependencies import get_db_session
from app.models.entities import BillingType, Priority, ProjectStatus, WorkStatus
from app.services.project_service import (
    EpicData,
    ProjectCreateData,
    ProjectService,
    ProjectUpdateData,
    ReorderData,
    StoryData,
    TaskData,
)

router = APIRouter(tags=["projects"])


class ProjectCreatePayload(BaseModel):
    client_id: UUID
    name: str = Field(min_length=1, max_length=255)
    description: str | None = None
    status: ProjectStatus = ProjectStatus.PLANNING
    priority: Priority = Priority.MEDIUM
    billing_type: BillingType = BillingType.FIXED_PRICE
    project_value: Decimal = Field(default=Decimal("0.00"), ge=0)
    hourly_rate: Decimal | None = Field(default=None, ge=0)
    budget: Decimal | None = Field(default=None, ge=0)
    start_date: date | None = None
    end_date: date | None = None
    deadline: date | None = None
    notes: str | None = None
    member_ids: list[UUID] = Field(default_factory=list)
    team_ids: list[UUID] = Field(default_factory=list)


class ProjectUpdatePayload(BaseModel):
    client_id: UUID | None = None
    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    status: ProjectStatus | None = None
    priority: Priority | None = None
    billing_type: BillingType | None = None
    project_value: Decimal | None = Field(default=None, ge=0)
    hourly_rate: Decimal | None = Field(default=None, ge=0)
    budget: Decimal | None = Field(default=None, ge=0)
    start_date: date | None = None
    end_date: date | None = None
    deadline: date | None = None
    notes: str | None = None
    member_ids: list[UUID] | None = None
    team_ids: list[UUID] | None = None


class EpicPayload(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    status: WorkStatus | None = None
    priority: Priority | None = None
    start_date: date | None = None
    end_date: date | None = None


class StoryPayload(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    epic_id: UUID | None = None
    status: WorkStatus | None = None
    priority: Priority | None = None
    points: int | None = Field(default=None, ge=0)
    member_ids: list[UUID] | None = None


class TaskPayload(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    status: WorkStatus | None = None
    priority: Priority | None = None
    due_date: date | None = None
    estimated_hours: Decimal | None = Field(default=None, ge=0)
    actual_hours: Decimal | None = Field(default=None, ge=0)
    tags: list[str] | None = None
    story_id: UUID | None = None
    member_ids: list[UUID] | None = None
    team_ids: list[UUID] | None = None


class StoryReorderPayload(BaseModel):
    story_id: UUID
    new_status: WorkStatus
    new_order: int = Field(ge=0)


class TaskReorderPayload(BaseModel):
    task_id: UUID
    new_status: WorkStatus
    new_order: int = Field(ge=0)


def _project_service(db: Session) -> ProjectService:
    return ProjectService(db)


# ---------- Projects ----------
@router.get("/projetos")
def list_projects(
    status_filter: ProjectStatus | None = Query(default=None, alias="status"),
    client_id: UUID | None = Query(default=None),
    _: RequestUserContext = Depends(get_session_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _project_service(db)
    return {"items": service.list_projects(status_filter=status_filter, client_id=client_id)}


@router.post("/projetos", status_code=status.HTTP_201_CREATED)
def create_project(
    payload: ProjectCreatePayload,
    _: RequestUserContext = Depends(get_session_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    return _project_service(db).create_project(ProjectCreateData(**payload.model_dump()))


@router.get("/projetos/{project_id}")
def get_project(
    project_id: UUID,
    _: RequestUserContext = Depends(get_session_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    return _project_service(db).get_project(project_id)


@router.put("/projetos/{project_id}")
def update_project(
    project_id: UUID,
    payload: ProjectUpdatePayload,
    _: RequestUserContext = Depends(get_session_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    return _project_service(db).update_project(project_id, ProjectUpdateData(**payload.model_dump()))


@router.delete("/projetos/{project_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_project(
    project_id: UUID,
    _: RequestUserContext = Depends(get_session_context),
    db: Session = Depends(get_db_session),
) -> Response:
    _project_service(db).delete_project(project_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ---------- Epics ----------
@router.get("/projetos/{project_id}/epics")
def list_epics(
    project_id: UUID,
    _: RequestUserContext = Depends(get_session_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    return {"items": _project_service(db).list_epics(project_id)}


@router.post("/projetos/{project_id}/epics", status_code=status.HTTP_201_CREATED)
def create_epic(
    project_id: UUID,
    payload: EpicPayload,
    _: RequestUserContext = Depends(get_session_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    return _project_service(db).create_epic(project_id, EpicData(**payload.model_dump()))


@router.put("/projetos/{project_id}/epics/{epic_id}")
def update_epic(
    project_id: UUID,
    epic_id: UUID,
    payload: EpicPayload,
    _: RequestUserContext = Depends(get_session_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    return _project_service(db).update_epic(project_id, epic_id, EpicData(**payload.model_dump()))


@router.delete("/projetos/{project_id}/epics/{epic_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_epic(
    project_id: UUID,
    epic_id: UUID,
    _: RequestUserContext = Depends(get_session_context),
    db: Session = Depends(get_db_session),
) -> Response:
    _project_service(db).delete_epic(project_id, epic_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ---------- Stories ----------
@router.get("/projetos/{project_id}/stories")
def list_stories(
    project_id: UUID,
    _: RequestUserContext = Depends(get_session_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    return {"items": _project_service(db).list_stories(project_id)}


@router.post("/projetos/{project_id}/stories", status_code=status.HTTP_201_CREATED)
def create_story(
    project_id: UUID,
    payload: StoryPayload,
    _: RequestUserContext = Depends(get_session_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    return _project_service(db).create_story(project_id, StoryData(**payload.model_dump()))


@router.put("/projetos/{project_id}/stories/reorder")
def reorder_stories(
    project_id: UUID,
    payload: StoryReorderPayload,
    _: RequestUserContext = Depends(get_session_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _project_service(db)
    items = service.reorder_stories(
        project_id,
        ReorderData(card_id=payload.story_id, new_status=payload.new_status, new_order=payload.new_order),
    )
    return {"items": items}


@router.put("/stories/{story_id}")
def update_story(
    story_id: UUID,
    payload: StoryPayload,
    _: RequestUserContext = Depends(get_session_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    return _project_service(db).update_story(story_id, StoryData(**payload.model_dump()))


@router.delete("/stories/{story_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_story(
    story_id: UUID,
    _: RequestUserContext = Depends(get_session_context),
    db: Session = Depends(get_db_session),
) -> Response:
    _project_service(db).delete_story(story_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ---------- Tasks ----------
@router.get("/projetos/{project_id}/tasks")
def list_tasks(
    project_id: UUID,
    context: RequestUserContext = Depends(require_permission("tasks:read")),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    ProjectService.ensure_board_access(context)
    return {"items": _project_service(db).list_tasks(project_id)}


@router.post("/projetos/{project_id}/tasks", status_code=status.HTTP_201_CREATED)
def create_task(
    project_id: UUID,
    payload: TaskPayload,
    context: RequestUserContext = Depends(require_permission("tasks:write")),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    ProjectService.ensure_board_access(context)
    return _project_service(db).create_task(project_id, TaskData(**payload.model_dump()))


@router.put("/projetos/{project_id}/tasks/reorder")
def reorder_tasks(
    project_id: UUID,
    payload: TaskReorderPayload,
    context: RequestUserContext = Depends(require_permission("tasks:write")),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    ProjectService.ensure_board_access(context)
    service = _project_service(db)
    items = service.reorder_tasks(
        project_id,
        ReorderData(card_id=payload.task_id, new_status=payload.new_status, new_order=payload.new_order),
    )
    return {"items": items}


@router.get("/projetos/{project_id}/tasks/{task_id}")
def get_task(
    project_id: UUID,
    task_id: UUID,
    context: RequestUserContext = Depends(require_permission("tasks:read")),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    ProjectService.ensure_board_access(context)
    return _project_service(db).get_task(project_id, task_id)


@router.put("/projetos/{project_id}/tasks/{task_id}")
def update_task(
    project_id: UUID,
    task_id: UUID,
    payload: TaskPayload,
    context: RequestUserContext = Depends(require_permission("tasks:write")),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    ProjectService.ensure_board_access(context)
    return _project_service(db).update_task(project_id, task_id, TaskData(**payload.model_dump()))


@router.delete("/projetos/{project_id}/tasks/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_task(
    project_id: UUID,
    task_id: UUID,
    context: RequestUserContext = Depends(require_permission("tasks:delete")),
    db: Session = Depends(get_db_session),
) -> Response:
    ProjectService.ensure_board_access(context)
    _project_service(db).delete_task(project_id, task_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
