"""Application service for internal projects, their story and task boards and ledger view."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from app.core.auth import RequestUserContext, ensure_internal_project_scope
from app.core.config import get_settings
from app.models.entities import (
    InternalProject,
    InternalProjectStatus,
    InternalStory,
    InternalTask,
    Priority,
    WorkStatus,
)
from app.repositories.finance_repository import FinanceRepository
from app.repositories.project_repository import ProjectRepository
from app.services import board_ordering, financials
from app.services.common import bad_request, clean_text, commit_or_conflict, conflict, ensure_found, iso
from app.services.project_service import (
    ReorderData,
    TaskData,
    apply_task_fields,
    move_to_column_end,
    serialize_task_fields,
)

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class InternalProjectData:
    name: str | None = None
    description: str | None = None
    status: InternalProjectStatus | None = None
    icon: str | None = None
    color: str | None = None


@dataclass(slots=True)
class InternalStoryData:
    title: str | None = None
    description: str | None = None
    status: WorkStatus | None = None
    priority: Priority | None = None
    points: int | None = None


class InternalProjectService:
    """Service implementing internal projects (company initiatives without a client)."""

    def __init__(self, db: Session) -> None:
        self.db = db
        self.repo = ProjectRepository(db)
        self.finance = FinanceRepository(db)
        self.settings = get_settings()

    # ---------- Serialization ----------
    @staticmethod
    def serialize_internal_project(
        internal_project: InternalProject,
        *,
        transactions: list,
        task_count: int,
    ) -> dict[str, object]:
        totals = financials.ledger_totals(transactions)
        return {
            "id": str(internal_project.id),
            "name": internal_project.name,
            "description": internal_project.description,
            "status": internal_project.status.value,
            "icon": internal_project.icon,
            "color": internal_project.color,
            "task_count": task_count,
            "financials": totals.as_dict(),
            "created_at": internal_project.created_at.isoformat(),
            "updated_at": internal_project.updated_at.isoformat(),
        }

    @staticmethod
    def serialize_internal_task(task: InternalTask) -> dict[str, object]:
        payload = serialize_task_fields(task)
        payload["internal_project_id"] = str(task.internal_project_id)
        payload["story_id"] = str(task.story_id) if task.story_id else None
        return payload

    @classmethod
    def serialize_internal_story(cls, story: InternalStory, *, tasks: list[InternalTask]) -> dict[str, object]:
        return {
            "id": str(story.id),
            "internal_project_id": str(story.internal_project_id),
            "title": story.title,
            "description": story.description,
            "status": story.status.value,
            "priority": story.priority.value,
            "points": story.points,
            "order": story.order,
            "completed_at": iso(story.completed_at),
            "tasks": [cls.serialize_internal_task(task) for task in tasks],
            "created_at": story.created_at.isoformat(),
            "updated_at": story.updated_at.isoformat(),
        }

    # ---------- Access ----------
    def _get_internal_project(self, context: RequestUserContext, internal_project_id: UUID) -> InternalProject:
        internal_project = ensure_found(
            self.repo.get_internal_project(internal_project_id),
            "Internal project not found.",
        )
        ensure_internal_project_scope(context, internal_project.id)
        return internal_project

    def _payload(self, internal_project: InternalProject) -> dict[str, object]:
        return self.serialize_internal_project(
            internal_project,
            transactions=self.finance.list_transactions(internal_project_id=internal_project.id),
            task_count=len(self.repo.list_internal_tasks(internal_project.id)),
        )

    # ---------- Internal projects ----------
    def list_internal_projects(
        self,
        *,
        context: RequestUserContext,
        status_filter: InternalProjectStatus | None = None,
    ) -> list[dict[str, object]]:
        rows = self.repo.list_internal_projects(status=status_filter)
        if context.api_key_internal_project_id is not None:
            rows = [row for row in rows if row.id == context.api_key_internal_project_id]

        row_ids = [row.id for row in rows]
        transactions_by_project: dict[UUID, list] = {row_id: [] for row_id in row_ids}
        for transaction in self.finance.list_transactions_for_internal_projects(row_ids):
            transactions_by_project[transaction.internal_project_id].append(transaction)
        task_counts = self.repo.count_internal_tasks_by_project(row_ids)

        return [
            self.serialize_internal_project(
                row,
                transactions=transactions_by_project[row.id],
                task_count=task_counts.get(row.id, 0),
            )
            for row in rows
        ]

    def get_internal_project(self, *, context: RequestUserContext, internal_project_id: UUID) -> dict[str, object]:
        return self._payload(self._get_internal_project(context, internal_project_id))

    def create_internal_project(self, *, context: RequestUserContext, data: InternalProjectData) -> dict[str, object]:
        if context.api_key_internal_project_id is not None:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="API key is scoped to an internal project.",
            )
        name = clean_text(data.name)
        if not name:
            raise bad_request("Internal project name is required.")

        now = datetime.utcnow()
        internal_project = InternalProject(
            name=name,
            description=clean_text(data.description),
            status=data.status or InternalProjectStatus.ACTIVE,
            icon=clean_text(data.icon),
            color=clean_text(data.color),
            created_at=now,
            updated_at=now,
        )
        self.repo.add_internal_project(internal_project)
        commit_or_conflict(self.db, "Internal project could not be saved.")
        self.db.refresh(internal_project)
        logger.info("Internal project created id=%s name=%s", internal_project.id, internal_project.name)
        return self._payload(internal_project)

    def update_internal_project(
        self,
        *,
        context: RequestUserContext,
        internal_project_id: UUID,
        data: InternalProjectData,
    ) -> dict[str, object]:
        internal_project = self._get_internal_project(context, internal_project_id)
        if data.name is not None:
            name = clean_text(data.name)
            if not name:
                raise bad_request("Internal project name is required.")
            internal_project.name = name
        if data.status is not None:
            internal_project.status = data.status
        for attribute in ("description", "icon", "color"):
            value = getattr(data, attribute)
            if value is not None:
                setattr(internal_project, attribute, clean_text(value))

        internal_project.updated_at = datetime.utcnow()
        commit_or_conflict(self.db, "Internal project could not be saved.")
        logger.info("Internal project updated id=%s", internal_project.id)
        return self._payload(internal_project)

    def delete_internal_project(self, *, context: RequestUserContext, internal_project_id: UUID) -> None:
        internal_project = self._get_internal_project(context, internal_project_id)
        if self.repo.count_internal_project_transactions(internal_project.id):
            raise conflict("Internal project has ledger transactions and cannot be deleted.")
        self.repo.delete_internal_project(internal_project)
        self.db.commit()
        logger.info("Internal project deleted id=%s", internal_project_id)

    # ---------- Internal stories ----------
    def _get_story(self, internal_project_id: UUID, story_id: UUID) -> InternalStory:
        story = self.repo.get_internal_story(story_id)
        if story is None or story.internal_project_id != internal_project_id:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Story not found.")
        return story

    def _serialize_stories(self, internal_project_id: UUID, stories: list[InternalStory]) -> list[dict[str, object]]:
        tasks_by_story: dict[UUID, list[InternalTask]] = {story.id: [] for story in stories}
        for task in self.repo.list_internal_tasks(internal_project_id):
            if task.story_id in tasks_by_story:
                tasks_by_story[task.story_id].append(task)
        return [self.serialize_internal_story(story, tasks=tasks_by_story[story.id]) for story in stories]

    def _story_payload(self, story: InternalStory) -> dict[str, object]:
        tasks = [task for task in self.repo.list_internal_tasks(story.internal_project_id) if task.story_id == story.id]
        return self.serialize_internal_story(story, tasks=tasks)

    def list_stories(self, *, context: RequestUserContext, internal_project_id: UUID) -> list[dict[str, object]]:
        self._get_internal_project(context, internal_project_id)
        stories = board_ordering.sort_board(self.repo.list_internal_stories(internal_project_id))
        return self._serialize_stories(internal_project_id, stories)

    def create_story(
        self,
        *,
        context: RequestUserContext,
        internal_project_id: UUID,
        data: InternalStoryData,
    ) -> dict[str, object]:
        self._get_internal_project(context, internal_project_id)
        title = clean_text(data.title)
        if not title:
            raise bad_request("Story title is required.")
        if data.points is not None and data.points < 0:
            raise bad_request("points must not be negative.")

        column = data.status or WorkStatus.TODO
        now = datetime.utcnow()
        story = InternalStory(
            internal_project_id=internal_project_id,
            title=title,
            description=clean_text(data.description),
            status=column,
            priority=data.priority or Priority.MEDIUM,
            points=data.points or 0,
            order=board_ordering.append_position(self.repo.list_internal_stories(internal_project_id), column),
            completed_at=now if column == WorkStatus.DONE else None,
            created_at=now,
            updated_at=now,
        )
        self.repo.add_internal_story(story)
        commit_or_conflict(self.db, "Story could not be saved.")
        self.db.refresh(story)
        logger.info("Internal story created id=%s internal_project_id=%s", story.id, internal_project_id)
        return self.serialize_internal_story(story, tasks=[])

    def update_story(
        self,
        *,
        context: RequestUserContext,
        internal_project_id: UUID,
        story_id: UUID,
        data: InternalStoryData,
    ) -> dict[str, object]:
        self._get_internal_project(context, internal_project_id)
        story = self._get_story(internal_project_id, story_id)
        if data.points is not None and data.points < 0:
            raise bad_request("points must not be negative.")

        now = datetime.utcnow()
        if data.title is not None:
            title = clean_text(data.title)
            if not title:
                raise bad_request("Story title is required.")
            story.title = title
        if data.description is not None:
            story.description = clean_text(data.description)
        if data.priority is not None:
            story.priority = data.priority
        if data.points is not None:
            story.points = data.points
        if data.status is not None:
            move_to_column_end(self.repo.list_internal_stories(internal_project_id), story, data.status, now)

        story.updated_at = now
        commit_or_conflict(self.db, "Story could not be saved.")
        logger.info("Internal story updated id=%s", story.id)
        return self._story_payload(story)

    def delete_story(self, *, context: RequestUserContext, internal_project_id: UUID, story_id: UUID) -> None:
        self._get_internal_project(context, internal_project_id)
        story = self._get_story(internal_project_id, story_id)
        column = story.status
        self.repo.delete_internal_story(story)
        board_ordering.compact(self.repo.list_internal_stories(internal_project_id), column)
        self.db.commit()
        logger.info("Internal story deleted id=%s", story_id)

    def reorder_stories(
        self,
        *,
        context: RequestUserContext,
        internal_project_id: UUID,
        data: ReorderData,
    ) -> list[dict[str, object]]:
        self._get_internal_project(context, internal_project_id)
        stories = self.repo.list_internal_stories(internal_project_id)
        now = datetime.utcnow()
        try:
            changed = board_ordering.move_card(stories, data.card_id, data.new_status, data.new_order, now=now)
        except board_ordering.CardNotFoundError as exc:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Story not found.") from exc
        for story in changed:
            story.updated_at = now
        self.db.commit()
        logger.info("Internal story moved id=%s status=%s order=%s", data.card_id, data.new_status.value, data.new_order)
        return self._serialize_stories(internal_project_id, board_ordering.sort_board(stories))

    # ---------- Internal tasks ----------
    def _validate_story(self, internal_project_id: UUID, story_id: UUID | None) -> None:
        if story_id is None:
            return
        story = self.repo.get_internal_story(story_id)
        if story is None or story.internal_project_id != internal_project_id:
            raise bad_request("Story does not belong to this internal project.")

    def _get_task(self, internal_project_id: UUID, task_id: UUID) -> InternalTask:
        task = self.repo.get_internal_task(task_id)
        if task is None or task.internal_project_id != internal_project_id:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Task not found.")
        return task

    def list_tasks(self, *, context: RequestUserContext, internal_project_id: UUID) -> list[dict[str, object]]:
        self._get_internal_project(context, internal_project_id)
        tasks = board_ordering.sort_board(self.repo.list_internal_tasks(internal_project_id))
        return [self.serialize_internal_task(task) for task in tasks]

    def get_task(self, *, context: RequestUserContext, internal_project_id: UUID, task_id: UUID) -> dict[str, object]:
        self._get_internal_project(context, internal_project_id)
        return self.serialize_internal_task(self._get_task(internal_project_id, task_id))

    def create_task(
        self,
        *,
        context: RequestUserContext,
        internal_project_id: UUID,
        data: TaskData,
    ) -> dict[str, object]:
        self._get_internal_project(context, internal_project_id)
        if not clean_text(data.title):
            raise bad_request("Task title is required.")
        self._validate_story(internal_project_id, data.story_id)

        column = data.status or WorkStatus.TODO
        now = datetime.utcnow()
        task = InternalTask(
            internal_project_id=internal_project_id,
            story_id=data.story_id,
            status=column,
            priority=Priority.MEDIUM,
            tags=[],
            order=board_ordering.append_position(self.repo.list_internal_tasks(internal_project_id), column),
            completed_at=now if column == WorkStatus.DONE else None,
            created_at=now,
            updated_at=now,
        )
        apply_task_fields(task, data)
        self.repo.add_internal_task(task)
        commit_or_conflict(self.db, "Task could not be saved.")
        self.db.refresh(task)
        logger.info("Internal task created id=%s internal_project_id=%s", task.id, internal_project_id)
        return self.serialize_internal_task(task)

    def update_task(
        self,
        *,
        context: RequestUserContext,
        internal_project_id: UUID,
        task_id: UUID,
        data: TaskData,
    ) -> dict[str, object]:
        self._get_internal_project(context, internal_project_id)
        task = self._get_task(internal_project_id, task_id)
        self._validate_story(internal_project_id, data.story_id)

        now = datetime.utcnow()
        apply_task_fields(task, data)
        if data.story_id is not None:
            task.story_id = data.story_id
        if data.status is not None:
            move_to_column_end(self.repo.list_internal_tasks(internal_project_id), task, data.status, now)
        task.updated_at = now
        commit_or_conflict(self.db, "Task could not be saved.")
        logger.info("Internal task updated id=%s", task.id)
        return self.serialize_internal_task(task)

    def delete_task(self, *, context: RequestUserContext, internal_project_id: UUID, task_id: UUID) -> None:
        self._get_internal_project(context, internal_project_id)
        task = self._get_task(internal_project_id, task_id)
        column = task.status
        self.repo.delete_internal_task(task)
        board_ordering.compact(self.repo.list_internal_tasks(internal_project_id), column)
        self.db.commit()
        logger.info("Internal task deleted id=%s", task_id)

    def reorder_tasks(
        self,
        *,
        context: RequestUserContext,
        internal_project_id: UUID,
        data: ReorderData,
    ) -> list[dict[str, object]]:
        self._get_internal_project(context, internal_project_id)
        tasks = self.repo.list_internal_tasks(internal_project_id)
        now = datetime.utcnow()
        try:
            changed = board_ordering.move_card(tasks, data.card_id, data.new_status, data.new_order, now=now)
        except board_ordering.CardNotFoundError as exc:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Task not found.") from exc
        for task in changed:
            task.updated_at = now
        self.db.commit()
        logger.info(
            "Internal task moved id=%s status=%s order=%s",
            data.card_id,
            data.new_status.value,
            data.new_order,
        )
        return [self.serialize_internal_task(task) for task in board_ordering.sort_board(tasks)]
