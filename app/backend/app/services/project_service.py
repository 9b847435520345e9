"""Application service for client projects, epics, stories and the task board."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from app.core.auth import RequestUserContext
from app.core.config import get_settings
from app.models.entities import (
    BillingType,
    Epic,
    Priority,
    Project,
    ProjectStatus,
    Story,
    Task,
    WorkStatus,
)
from app.repositories.crm_repository import CrmRepository
from app.repositories.finance_repository import FinanceRepository
from app.repositories.people_repository import PeopleRepository
from app.repositories.project_repository import ProjectRepository
from app.services import board_ordering, financials
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

ZERO = Decimal("0.00")


@dataclass(slots=True)
class ProjectCreateData:
    client_id: UUID
    name: str
    description: str | None = None
    status: ProjectStatus = ProjectStatus.PLANNING
    priority: Priority = Priority.MEDIUM
    billing_type: BillingType = BillingType.FIXED_PRICE
    project_value: Decimal = ZERO
    hourly_rate: Decimal | None = None
    budget: Decimal | None = None
    start_date: date | None = None
    end_date: date | None = None
    deadline: date | None = None
    notes: str | None = None
    member_ids: list[UUID] = field(default_factory=list)
    team_ids: list[UUID] = field(default_factory=list)


@dataclass(slots=True)
class ProjectUpdateData:
    client_id: UUID | None = None
    name: str | None = None
    description: str | None = None
    status: ProjectStatus | None = None
    priority: Priority | None = None
    billing_type: BillingType | None = None
    project_value: Decimal | None = None
    hourly_rate: Decimal | None = None
    budget: Decimal | None = None
    start_date: date | None = None
    end_date: date | None = None
    deadline: date | None = None
    notes: str | None = None
    member_ids: list[UUID] | None = None
    team_ids: list[UUID] | None = None


@dataclass(slots=True)
class EpicData:
    title: str | None = None
    description: str | None = None
    status: WorkStatus | None = None
    priority: Priority | None = None
    start_date: date | None = None
    end_date: date | None = None


@dataclass(slots=True)
class StoryData:
    title: str | None = None
    description: str | None = None
    epic_id: UUID | None = None
    status: WorkStatus | None = None
    priority: Priority | None = None
    points: int | None = None
    member_ids: list[UUID] | None = None


@dataclass(slots=True)
class TaskData:
    """Task fields shared by project and internal boards; ``None`` leaves a field unchanged."""

    title: str | None = None
    description: str | None = None
    status: WorkStatus | None = None
    priority: Priority | None = None
    due_date: date | None = None
    estimated_hours: Decimal | None = None
    actual_hours: Decimal | None = None
    tags: list[str] | None = None
    story_id: UUID | None = None
    member_ids: list[UUID] | None = None
    team_ids: list[UUID] | None = None


@dataclass(slots=True)
class ReorderData:
    card_id: UUID
    new_status: WorkStatus
    new_order: int


def _non_negative(value: Decimal | None, label: str) -> None:
    if value is not None and value < 0:
        raise bad_request(f"{label} must not be negative.")


def normalize_tags(tags: list[str] | None) -> list[str]:
    return [tag.strip() for tag in dict.fromkeys(tags or []) if tag and tag.strip()]


def apply_task_fields(task, data: TaskData) -> None:
    """Copy scalar task fields onto a project or internal task row."""

    if data.title is not None:
        title = clean_text(data.title)
        if not title:
            raise bad_request("Task title is required.")
        task.title = title
    _non_negative(data.estimated_hours, "estimated_hours")
    _non_negative(data.actual_hours, "actual_hours")
    if data.description is not None:
        task.description = clean_text(data.description)
    if data.priority is not None:
        task.priority = data.priority
    if data.due_date is not None:
        task.due_date = data.due_date
    if data.estimated_hours is not None:
        task.estimated_hours = data.estimated_hours
    if data.actual_hours is not None:
        task.actual_hours = data.actual_hours
    if data.tags is not None:
        task.tags = normalize_tags(data.tags)


def move_to_column_end(cards: list, card, new_status: WorkStatus, now: datetime) -> list:
    """Status change outside drag-and-drop: append to the new column, compact the old one."""

    if card.status == new_status:
        return []
    return board_ordering.move_card(cards, card.id, new_status, len(cards), now=now)


def serialize_task_fields(task) -> dict[str, object]:
    return {
        "id": str(task.id),
        "title": task.title,
        "description": task.description,
        "status": task.status.value,
        "priority": task.priority.value,
        "due_date": iso(task.due_date),
        "estimated_hours": money(task.estimated_hours),
        "actual_hours": money(task.actual_hours),
        "tags": list(task.tags or []),
        "order": task.order,
        "completed_at": iso(task.completed_at),
        "created_at": task.created_at.isoformat(),
        "updated_at": task.updated_at.isoformat(),
    }


class ProjectService:
    """Service implementing client projects and their boards."""

    def __init__(self, db: Session) -> None:
        self.db = db
        self.repo = ProjectRepository(db)
        self.finance = FinanceRepository(db)
        self.people = PeopleRepository(db)
        self.settings = get_settings()

    # ---------- Access ----------
    @staticmethod
    def ensure_board_access(context: RequestUserContext) -> None:
        """API keys scoped to an internal project cannot reach client project boards."""

        if context.is_api_key and context.api_key_internal_project_id is not None:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="API key is scoped to an internal project.",
            )

    # ---------- Serialization ----------
    @staticmethod
    def serialize_project(
        project: Project,
        *,
        tasks: list[Task],
        transactions: list,
        member_ids: list[UUID] | None = None,
        team_ids: list[UUID] | None = None,
    ) -> dict[str, object]:
        hours = financials.hours_metrics(project.billing_type, project.project_value, project.hourly_rate, tasks)
        totals = financials.project_financials(hours.calculated_value, transactions)
        task_counts = {column.value: 0 for column in board_ordering.COLUMN_ORDER}
        for task in tasks:
            task_counts[task.status.value] += 1

        return {
            "id": str(project.id),
            "client_id": str(project.client_id),
            "name": project.name,
            "description": project.description,
            "status": project.status.value,
            "priority": project.priority.value,
            "billing_type": project.billing_type.value,
            "project_value": money(project.project_value),
            "hourly_rate": money(project.hourly_rate),
            "budget": money(project.budget),
            "start_date": iso(project.start_date),
            "end_date": iso(project.end_date),
            "deadline": iso(project.deadline),
            "notes": project.notes,
            "member_ids": ids(member_ids or []),
            "team_ids": ids(team_ids or []),
            "task_counts": task_counts,
            "financials": {**hours.as_dict(), **totals.as_dict()},
            "created_at": project.created_at.isoformat(),
            "updated_at": project.updated_at.isoformat(),
        }

    @staticmethod
    def serialize_epic(epic: Epic) -> dict[str, object]:
        return {
            "id": str(epic.id),
            "project_id": str(epic.project_id),
            "title": epic.title,
            "description": epic.description,
            "status": epic.status.value,
            "priority": epic.priority.value,
            "start_date": iso(epic.start_date),
            "end_date": iso(epic.end_date),
            "created_at": epic.created_at.isoformat(),
        }

    @staticmethod
    def serialize_story(story: Story, *, member_ids: list[UUID] | None = None) -> dict[str, object]:
        return {
            "id": str(story.id),
            "project_id": str(story.project_id),
            "epic_id": str(story.epic_id) if story.epic_id else None,
            "title": story.title,
            "description": story.description,
            "status": story.status.value,
            "priority": story.priority.value,
            "points": story.points,
            "order": story.order,
            "completed_at": iso(story.completed_at),
            "member_ids": ids(member_ids or []),
            "created_at": story.created_at.isoformat(),
            "updated_at": story.updated_at.isoformat(),
        }

    @staticmethod
    def serialize_task(
        task: Task,
        *,
        member_ids: list[UUID] | None = None,
        team_ids: list[UUID] | None = None,
    ) -> dict[str, object]:
        payload = serialize_task_fields(task)
        payload.update(
            {
                "project_id": str(task.project_id),
                "story_id": str(task.story_id) if task.story_id else None,
                "member_ids": ids(member_ids or []),
                "team_ids": ids(team_ids or []),
            }
        )
        return payload

    # ---------- Validation ----------
    def _ensure_members_exist(self, member_ids: list[UUID] | None) -> None:
        if not member_ids:
            return
        unique_ids = list(dict.fromkeys(member_ids))
        if self.people.count_existing_members(unique_ids) != len(unique_ids):
            raise bad_request("One or more members do not exist.")

    def _ensure_teams_exist(self, team_ids: list[UUID] | None) -> None:
        if not team_ids:
            return
        unique_ids = list(dict.fromkeys(team_ids))
        if self.people.count_existing_teams(unique_ids) != len(unique_ids):
            raise bad_request("One or more teams do not exist.")

    def _get_project(self, project_id: UUID) -> Project:
        return ensure_found(self.repo.get_project(project_id), "Project not found.")

    # ---------- Projects ----------
    def _project_payload(self, project: Project) -> dict[str, object]:
        return self.serialize_project(
            project,
            tasks=self.repo.list_tasks(project.id),
            transactions=self.finance.list_transactions(project_id=project.id),
            member_ids=self.repo.project_member_ids(project.id),
            team_ids=self.repo.project_team_ids(project.id),
        )

    def list_projects(
        self,
        *,
        status_filter: ProjectStatus | None = None,
        client_id: UUID | None = None,
    ) -> list[dict[str, object]]:
        projects = self.repo.list_projects(status=status_filter, client_id=client_id)
        project_ids = [project.id for project in projects]

        tasks_by_project: dict[UUID, list[Task]] = {project_id: [] for project_id in project_ids}
        for task in self.repo.list_tasks_for_projects(project_ids):
            tasks_by_project[task.project_id].append(task)
        transactions_by_project: dict[UUID, list] = {project_id: [] for project_id in project_ids}
        for row in self.finance.list_transactions_for_projects(project_ids):
            transactions_by_project[row.project_id].append(row)
        member_ids = self.repo.project_member_ids_by_project(project_ids)
        team_ids = self.repo.project_team_ids_by_project(project_ids)

        return [
            self.serialize_project(
                project,
                tasks=tasks_by_project[project.id],
                transactions=transactions_by_project[project.id],
                member_ids=member_ids.get(project.id, []),
                team_ids=team_ids.get(project.id, []),
            )
            for project in projects
        ]

    def get_project(self, project_id: UUID) -> dict[str, object]:
        return self._project_payload(self._get_project(project_id))

    def create_project(self, data: ProjectCreateData) -> dict[str, object]:
        name = clean_text(data.name)
        if not name:
            raise bad_request("Project name is required.")
        ensure_found(CrmRepository(self.db).get_client(data.client_id), "Client not found.")
        _non_negative(data.project_value, "project_value")
        _non_negative(data.hourly_rate, "hourly_rate")
        _non_negative(data.budget, "budget")
        ensure_date_range(data.start_date, data.end_date)
        self._ensure_members_exist(data.member_ids)
        self._ensure_teams_exist(data.team_ids)

        now = datetime.utcnow()
        project = Project(
            client_id=data.client_id,
            name=name,
            description=clean_text(data.description),
            status=data.status,
            priority=data.priority,
            billing_type=data.billing_type,
            project_value=data.project_value,
            hourly_rate=data.hourly_rate,
            budget=data.budget,
            start_date=data.start_date,
            end_date=data.end_date,
            deadline=data.deadline,
            notes=clean_text(data.notes),
            created_at=now,
            updated_at=now,
        )
        self.repo.add_project(project)
        self.repo.set_project_members(project.id, data.member_ids)
        self.repo.set_project_teams(project.id, data.team_ids)
        commit_or_conflict(self.db, "Project could not be saved.")
        self.db.refresh(project)
        logger.info("Project created id=%s name=%s", project.id, project.name)
        return self._project_payload(project)

    def update_project(self, project_id: UUID, data: ProjectUpdateData) -> dict[str, object]:
        project = self._get_project(project_id)

        if data.client_id is not None:
            ensure_found(CrmRepository(self.db).get_client(data.client_id), "Client not found.")
            project.client_id = data.client_id
        if data.name is not None:
            name = clean_text(data.name)
            if not name:
                raise bad_request("Project name is required.")
            project.name = name
        _non_negative(data.project_value, "project_value")
        _non_negative(data.hourly_rate, "hourly_rate")
        _non_negative(data.budget, "budget")
        ensure_date_range(
            data.start_date if data.start_date is not None else project.start_date,
            data.end_date if data.end_date is not None else project.end_date,
        )
        self._ensure_members_exist(data.member_ids)
        self._ensure_teams_exist(data.team_ids)

        for attribute in (
            "status",
            "priority",
            "billing_type",
            "project_value",
            "hourly_rate",
            "budget",
            "start_date",
            "end_date",
            "deadline",
        ):
            value = getattr(data, attribute)
            if value is not None:
                setattr(project, attribute, value)
        if data.description is not None:
            project.description = clean_text(data.description)
        if data.notes is not None:
            project.notes = clean_text(data.notes)
        if data.member_ids is not None:
            self.repo.set_project_members(project.id, data.member_ids)
        if data.team_ids is not None:
            self.repo.set_project_teams(project.id, data.team_ids)

        project.updated_at = datetime.utcnow()
        commit_or_conflict(self.db, "Project could not be saved.")
        logger.info("Project updated id=%s", project.id)
        return self._project_payload(project)

    def delete_project(self, project_id: UUID) -> None:
        project = self._get_project(project_id)
        dependents = self.repo.count_project_dependents(project.id)
        if dependents["transactions"]:
            raise conflict("Project has ledger transactions and cannot be deleted.")
        if dependents["contracts"]:
            raise conflict("Project is linked to contracts and cannot be deleted.")
        self.repo.delete_project(project)
        self.db.commit()
        logger.info("Project deleted id=%s", project_id)

    # ---------- Epics ----------
    def list_epics(self, project_id: UUID) -> list[dict[str, object]]:
        self._get_project(project_id)
        return [self.serialize_epic(epic) for epic in self.repo.list_epics(project_id)]

    def _get_epic(self, project_id: UUID, epic_id: UUID) -> Epic:
        epic = self.repo.get_epic(epic_id)
        if epic is None or epic.project_id != project_id:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Epic not found.")
        return epic

    def create_epic(self, project_id: UUID, data: EpicData) -> dict[str, object]:
        self._get_project(project_id)
        title = clean_text(data.title)
        if not title:
            raise bad_request("Epic title is required.")
        ensure_date_range(data.start_date, data.end_date)

        epic = Epic(
            project_id=project_id,
            title=title,
            description=clean_text(data.description),
            status=data.status or WorkStatus.TODO,
            priority=data.priority or Priority.MEDIUM,
            start_date=data.start_date,
            end_date=data.end_date,
            created_at=datetime.utcnow(),
        )
        self.repo.add_epic(epic)
        commit_or_conflict(self.db, "Epic could not be saved.")
        self.db.refresh(epic)
        logger.info("Epic created id=%s project_id=%s", epic.id, project_id)
        return self.serialize_epic(epic)

    def update_epic(self, project_id: UUID, epic_id: UUID, data: EpicData) -> dict[str, object]:
        epic = self._get_epic(project_id, epic_id)
        ensure_date_range(
            data.start_date if data.start_date is not None else epic.start_date,
            data.end_date if data.end_date is not None else epic.end_date,
        )
        if data.title is not None:
            title = clean_text(data.title)
            if not title:
                raise bad_request("Epic title is required.")
            epic.title = title
        if data.description is not None:
            epic.description = clean_text(data.description)
        for attribute in ("status", "priority", "start_date", "end_date"):
            value = getattr(data, attribute)
            if value is not None:
                setattr(epic, attribute, value)
        commit_or_conflict(self.db, "Epic could not be saved.")
        logger.info("Epic updated id=%s", epic.id)
        return self.serialize_epic(epic)

    def delete_epic(self, project_id: UUID, epic_id: UUID) -> None:
        epic = self._get_epic(project_id, epic_id)
        self.repo.delete_epic(epic)
        self.db.commit()
        logger.info("Epic deleted id=%s", epic_id)

    # ---------- Stories ----------
    def _serialize_stories(self, stories: list[Story]) -> list[dict[str, object]]:
        member_ids = self.repo.story_member_ids_by_story([story.id for story in stories])
        return [self.serialize_story(story, member_ids=member_ids.get(story.id, [])) for story in stories]

    def list_stories(self, project_id: UUID) -> list[dict[str, object]]:
        self._get_project(project_id)
        return self._serialize_stories(board_ordering.sort_board(self.repo.list_stories(project_id)))

    def _validate_epic(self, project_id: UUID, epic_id: UUID | None) -> None:
        if epic_id is None:
            return
        epic = self.repo.get_epic(epic_id)
        if epic is None or epic.project_id != project_id:
            raise bad_request("Epic does not belong to this project.")

    def create_story(self, project_id: UUID, data: StoryData) -> dict[str, object]:
        self._get_project(project_id)
        title = clean_text(data.title)
        if not title:
            raise bad_request("Story title is required.")
        if data.points is not None and data.points < 0:
            raise bad_request("points must not be negative.")
        self._validate_epic(project_id, data.epic_id)
        self._ensure_members_exist(data.member_ids)

        column = data.status or WorkStatus.TODO
        now = datetime.utcnow()
        story = Story(
            project_id=project_id,
            epic_id=data.epic_id,
            title=title,
            description=clean_text(data.description),
            status=column,
            priority=data.priority or Priority.MEDIUM,
            points=data.points or 0,
            order=board_ordering.append_position(self.repo.list_stories(project_id), column),
            completed_at=now if column == WorkStatus.DONE else None,
            created_at=now,
            updated_at=now,
        )
        self.repo.add_story(story)
        self.repo.set_story_members(story.id, data.member_ids or [])
        commit_or_conflict(self.db, "Story could not be saved.")
        self.db.refresh(story)
        logger.info("Story created id=%s project_id=%s", story.id, project_id)
        return self.serialize_story(story, member_ids=self.repo.story_member_ids(story.id))

    def update_story(self, story_id: UUID, data: StoryData) -> dict[str, object]:
        story = ensure_found(self.repo.get_story(story_id), "Story not found.")
        if data.points is not None and data.points < 0:
            raise bad_request("points must not be negative.")
        self._validate_epic(story.project_id, data.epic_id)
        self._ensure_members_exist(data.member_ids)

        now = datetime.utcnow()
        if data.title is not None:
            title = clean_text(data.title)
            if not title:
                raise bad_request("Story title is required.")
            story.title = title
        if data.description is not None:
            story.description = clean_text(data.description)
        if data.epic_id is not None:
            story.epic_id = data.epic_id
        if data.priority is not None:
            story.priority = data.priority
        if data.points is not None:
            story.points = data.points
        if data.status is not None:
            move_to_column_end(self.repo.list_stories(story.project_id), story, data.status, now)
        if data.member_ids is not None:
            self.repo.set_story_members(story.id, data.member_ids)

        story.updated_at = now
        commit_or_conflict(self.db, "Story could not be saved.")
        logger.info("Story updated id=%s", story.id)
        return self.serialize_story(story, member_ids=self.repo.story_member_ids(story.id))

    def delete_story(self, story_id: UUID) -> None:
        story = ensure_found(self.repo.get_story(story_id), "Story not found.")
        project_id, column = story.project_id, story.status
        self.repo.delete_story(story)
        board_ordering.compact(self.repo.list_stories(project_id), column)
        self.db.commit()
        logger.info("Story deleted id=%s", story_id)

    def reorder_stories(self, project_id: UUID, data: ReorderData) -> list[dict[str, object]]:
        self._get_project(project_id)
        stories = self.repo.list_stories(project_id)
        now = datetime.utcnow()
        try:
            changed = board_ordering.move_card(stories, data.card_id, data.new_status, data.new_order, now=now)
        except board_ordering.CardNotFoundError as exc:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Story not found.") from exc
        for story in changed:
            story.updated_at = now
        self.db.commit()
        logger.info(
            "Story moved id=%s status=%s order=%s (%s cards renumbered)",
            data.card_id,
            data.new_status.value,
            data.new_order,
            len(changed),
        )
        return self._serialize_stories(board_ordering.sort_board(stories))

    # ---------- Tasks ----------
    def _serialize_tasks(self, tasks: list[Task]) -> list[dict[str, object]]:
        task_ids = [task.id for task in tasks]
        member_ids = self.repo.task_member_ids_by_task(task_ids)
        team_ids = self.repo.task_team_ids_by_task(task_ids)
        return [
            self.serialize_task(task, member_ids=member_ids.get(task.id, []), team_ids=team_ids.get(task.id, []))
            for task in tasks
        ]

    def _task_payload(self, task: Task) -> dict[str, object]:
        return self.serialize_task(
            task,
            member_ids=self.repo.task_member_ids(task.id),
            team_ids=self.repo.task_team_ids(task.id),
        )

    def _get_task(self, project_id: UUID, task_id: UUID) -> Task:
        task = self.repo.get_task(task_id)
        if task is None or task.project_id != project_id:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Task not found.")
        return task

    def _validate_story(self, project_id: UUID, story_id: UUID | None) -> None:
        if story_id is None:
            return
        story = self.repo.get_story(story_id)
        if story is None or story.project_id != project_id:
            raise bad_request("Story does not belong to this project.")

    def list_tasks(self, project_id: UUID) -> list[dict[str, object]]:
        self._get_project(project_id)
        return self._serialize_tasks(board_ordering.sort_board(self.repo.list_tasks(project_id)))

    def get_task(self, project_id: UUID, task_id: UUID) -> dict[str, object]:
        self._get_project(project_id)
        return self._task_payload(self._get_task(project_id, task_id))

    def create_task(self, project_id: UUID, data: TaskData) -> dict[str, object]:
        self._get_project(project_id)
        if not clean_text(data.title):
            raise bad_request("Task title is required.")
        self._validate_story(project_id, data.story_id)
        self._ensure_members_exist(data.member_ids)
        self._ensure_teams_exist(data.team_ids)

        column = data.status or WorkStatus.TODO
        now = datetime.utcnow()
        task = Task(
            project_id=project_id,
            story_id=data.story_id,
            status=column,
            priority=Priority.MEDIUM,
            tags=[],
            order=board_ordering.append_position(self.repo.list_tasks(project_id), column),
            completed_at=now if column == WorkStatus.DONE else None,
            created_at=now,
            updated_at=now,
        )
        apply_task_fields(task, data)
        self.repo.add_task(task)
        self.repo.set_task_members(task.id, data.member_ids or [])
        self.repo.set_task_teams(task.id, data.team_ids or [])
        commit_or_conflict(self.db, "Task could not be saved.")
        self.db.refresh(task)
        logger.info("Task created id=%s project_id=%s status=%s", task.id, project_id, column.value)
        return self._task_payload(task)

    def update_task(self, project_id: UUID, task_id: UUID, data: TaskData) -> dict[str, object]:
        self._get_project(project_id)
        task = self._get_task(project_id, task_id)
        self._validate_story(project_id, data.story_id)
        self._ensure_members_exist(data.member_ids)
        self._ensure_teams_exist(data.team_ids)

        now = datetime.utcnow()
        apply_task_fields(task, data)
        if data.story_id is not None:
            task.story_id = data.story_id
        if data.status is not None:
            move_to_column_end(self.repo.list_tasks(project_id), task, data.status, now)
        if data.member_ids is not None:
            self.repo.set_task_members(task.id, data.member_ids)
        if data.team_ids is not None:
            self.repo.set_task_teams(task.id, data.team_ids)

        task.updated_at = now
        commit_or_conflict(self.db, "Task could not be saved.")
        logger.info("Task updated id=%s", task.id)
        return self._task_payload(task)

    def delete_task(self, project_id: UUID, task_id: UUID) -> None:
        self._get_project(project_id)
        task = self._get_task(project_id, task_id)
        column = task.status
        self.repo.delete_task(task)
        board_ordering.compact(self.repo.list_tasks(project_id), column)
        self.db.commit()
        logger.info("Task deleted id=%s", task_id)

    def reorder_tasks(self, project_id: UUID, data: ReorderData) -> list[dict[str, object]]:
        """Apply a drag-and-drop move and return the whole, freshly ordered board."""

        self._get_project(project_id)
        tasks = self.repo.list_tasks(project_id)
        now = datetime.utcnow()
        try:
            changed = board_ordering.move_card(tasks, data.card_id, data.new_status, data.new_order, now=now)
        except board_ordering.CardNotFoundError as exc:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Task not found.") from exc
        for task in changed:
            task.updated_at = now
        self.db.commit()
        logger.info(
            "Task moved id=%s status=%s order=%s (%s cards renumbered)",
            data.card_id,
            data.new_status.value,
            data.new_order,
            len(changed),
        )
        return self._serialize_tasks(board_ordering.sort_board(tasks))
