"""Repository helpers for client projects, internal projects and their boards."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import delete, func, select, update
from sqlalchemy.orm import Session

from app.models.entities import (
    ApiKey,
    ContractProject,
    Epic,
    InternalProject,
    InternalProjectStatus,
    InternalStory,
    InternalTask,
    Project,
    ProjectMember,
    ProjectStatus,
    ProjectTeam,
    Story,
    StoryMember,
    Task,
    TaskMember,
    TaskTeam,
    Transaction,
)
from app.repositories.common import delete_links, link_ids_by_owner, list_link_ids, replace_links


class ProjectRepository:
    """Persistence operations used by project, board and internal project services."""

    def __init__(self, db: Session) -> None:
        self.db = db

    # ---------- Projects ----------
    def list_projects(
        self,
        *,
        status: ProjectStatus | None = None,
        client_id: UUID | None = None,
        limit: int | None = None,
    ) -> list[Project]:
        stmt = select(Project)
        if status is not None:
            stmt = stmt.where(Project.status == status)
        if client_id is not None:
            stmt = stmt.where(Project.client_id == client_id)
        stmt = stmt.order_by(Project.created_at.desc(), Project.name.asc())
        if limit is not None:
            stmt = stmt.limit(limit)
        return self.db.scalars(stmt).all()

    def get_project(self, project_id: UUID) -> Project | None:
        return self.db.scalar(select(Project).where(Project.id == project_id))

    def add_project(self, project: Project) -> Project:
        self.db.add(project)
        self.db.flush()
        return project

    def count_project_dependents(self, project_id: UUID) -> dict[str, int]:
        return {
            "transactions": int(
                self.db.scalar(select(func.count(Transaction.id)).where(Transaction.project_id == project_id)) or 0
            ),
            "contracts": int(
                self.db.scalar(select(func.count(ContractProject.id)).where(ContractProject.project_id == project_id))
                or 0
            ),
        }

    def delete_project(self, project: Project) -> None:
        task_ids = self.db.scalars(select(Task.id).where(Task.project_id == project.id)).all()
        story_ids = self.db.scalars(select(Story.id).where(Story.project_id == project.id)).all()
        if task_ids:
            self.db.execute(delete(TaskMember).where(TaskMember.task_id.in_(task_ids)))
            self.db.execute(delete(TaskTeam).where(TaskTeam.task_id.in_(task_ids)))
        if story_ids:
            self.db.execute(delete(StoryMember).where(StoryMember.story_id.in_(story_ids)))
        self.db.execute(delete(Task).where(Task.project_id == project.id))
        self.db.execute(delete(Story).where(Story.project_id == project.id))
        self.db.execute(delete(Epic).where(Epic.project_id == project.id))
        delete_links(self.db, ProjectMember, "project_id", project.id)
        delete_links(self.db, ProjectTeam, "project_id", project.id)
        self.db.delete(project)
        self.db.flush()

    def count_projects(self, *, status: ProjectStatus | None = None) -> int:
        stmt = select(func.count(Project.id))
        if status is not None:
            stmt = stmt.where(Project.status == status)
        return int(self.db.scalar(stmt) or 0)

    def project_member_ids(self, project_id: UUID) -> list[UUID]:
        return list_link_ids(self.db, ProjectMember, "project_id", project_id, "member_id")

    def project_team_ids(self, project_id: UUID) -> list[UUID]:
        return list_link_ids(self.db, ProjectTeam, "project_id", project_id, "team_id")

    def project_member_ids_by_project(self, project_ids: list[UUID]) -> dict[UUID, list[UUID]]:
        return link_ids_by_owner(self.db, ProjectMember, "project_id", project_ids, "member_id")

    def project_team_ids_by_project(self, project_ids: list[UUID]) -> dict[UUID, list[UUID]]:
        return link_ids_by_owner(self.db, ProjectTeam, "project_id", project_ids, "team_id")

    def set_project_members(self, project_id: UUID, member_ids: list[UUID]) -> None:
        replace_links(self.db, ProjectMember, "project_id", project_id, "member_id", member_ids)

    def set_project_teams(self, project_id: UUID, team_ids: list[UUID]) -> None:
        replace_links(self.db, ProjectTeam, "project_id", project_id, "team_id", team_ids)

    # ---------- Epics ----------
    def list_epics(self, project_id: UUID) -> list[Epic]:
        return self.db.scalars(
            select(Epic).where(Epic.project_id == project_id).order_by(Epic.created_at.asc(), Epic.title.asc())
        ).all()

    def get_epic(self, epic_id: UUID) -> Epic | None:
        return self.db.scalar(select(Epic).where(Epic.id == epic_id))

    def add_epic(self, epic: Epic) -> Epic:
        self.db.add(epic)
        self.db.flush()
        return epic

    def delete_epic(self, epic: Epic) -> None:
        self.db.execute(update(Story).where(Story.epic_id == epic.id).values(epic_id=None))
        self.db.delete(epic)
        self.db.flush()

    # ---------- Stories ----------
    def list_stories(self, project_id: UUID) -> list[Story]:
        return self.db.scalars(
            select(Story).where(Story.project_id == project_id).order_by(Story.order.asc(), Story.created_at.asc())
        ).all()

    def get_story(self, story_id: UUID) -> Story | None:
        return self.db.scalar(select(Story).where(Story.id == story_id))

    def add_story(self, story: Story) -> Story:
        self.db.add(story)
        self.db.flush()
        return story

    def delete_story(self, story: Story) -> None:
        self.db.execute(update(Task).where(Task.story_id == story.id).values(story_id=None))
        delete_links(self.db, StoryMember, "story_id", story.id)
        self.db.delete(story)
        self.db.flush()

    def story_member_ids(self, story_id: UUID) -> list[UUID]:
        return list_link_ids(self.db, StoryMember, "story_id", story_id, "member_id")

    def story_member_ids_by_story(self, story_ids: list[UUID]) -> dict[UUID, list[UUID]]:
        return link_ids_by_owner(self.db, StoryMember, "story_id", story_ids, "member_id")

    def set_story_members(self, story_id: UUID, member_ids: list[UUID]) -> None:
        replace_links(self.db, StoryMember, "story_id", story_id, "member_id", member_ids)

    # ---------- Tasks ----------
    def list_tasks(self, project_id: UUID) -> list[Task]:
        return self.db.scalars(
            select(Task).where(Task.project_id == project_id).order_by(Task.order.asc(), Task.created_at.asc())
        ).all()

    def list_tasks_for_projects(self, project_ids: list[UUID]) -> list[Task]:
        if not project_ids:
            return []
        return self.db.scalars(select(Task).where(Task.project_id.in_(project_ids))).all()

    def get_task(self, task_id: UUID) -> Task | None:
        return self.db.scalar(select(Task).where(Task.id == task_id))

    def add_task(self, task: Task) -> Task:
        self.db.add(task)
        self.db.flush()
        return task

    def delete_task(self, task: Task) -> None:
        delete_links(self.db, TaskMember, "task_id", task.id)
        delete_links(self.db, TaskTeam, "task_id", task.id)
        self.db.delete(task)
        self.db.flush()

    def task_member_ids(self, task_id: UUID) -> list[UUID]:
        return list_link_ids(self.db, TaskMember, "task_id", task_id, "member_id")

    def task_team_ids(self, task_id: UUID) -> list[UUID]:
        return list_link_ids(self.db, TaskTeam, "task_id", task_id, "team_id")

    def task_member_ids_by_task(self, task_ids: list[UUID]) -> dict[UUID, list[UUID]]:
        return link_ids_by_owner(self.db, TaskMember, "task_id", task_ids, "member_id")

    def task_team_ids_by_task(self, task_ids: list[UUID]) -> dict[UUID, list[UUID]]:
        return link_ids_by_owner(self.db, TaskTeam, "task_id", task_ids, "team_id")

    def set_task_members(self, task_id: UUID, member_ids: list[UUID]) -> None:
        replace_links(self.db, TaskMember, "task_id", task_id, "member_id", member_ids)

    def set_task_teams(self, task_id: UUID, team_ids: list[UUID]) -> None:
        replace_links(self.db, TaskTeam, "task_id", task_id, "team_id", team_ids)

    # ---------- Internal projects ----------
    def list_internal_projects(self, *, status: InternalProjectStatus | None = None) -> list[InternalProject]:
        stmt = select(InternalProject)
        if status is not None:
            stmt = stmt.where(InternalProject.status == status)
        return self.db.scalars(stmt.order_by(InternalProject.created_at.desc(), InternalProject.name.asc())).all()

    def get_internal_project(self, internal_project_id: UUID) -> InternalProject | None:
        return self.db.scalar(select(InternalProject).where(InternalProject.id == internal_project_id))

    def add_internal_project(self, internal_project: InternalProject) -> InternalProject:
        self.db.add(internal_project)
        self.db.flush()
        return internal_project

    def count_internal_project_transactions(self, internal_project_id: UUID) -> int:
        return int(
            self.db.scalar(
                select(func.count(Transaction.id)).where(Transaction.internal_project_id == internal_project_id)
            )
            or 0
        )

    def delete_internal_project(self, internal_project: InternalProject) -> None:
        self.db.execute(delete(InternalTask).where(InternalTask.internal_project_id == internal_project.id))
        self.db.execute(delete(InternalStory).where(InternalStory.internal_project_id == internal_project.id))
        self.db.execute(delete(ApiKey).where(ApiKey.internal_project_id == internal_project.id))
        self.db.delete(internal_project)
        self.db.flush()

    # ---------- Internal stories ----------
    def list_internal_stories(self, internal_project_id: UUID) -> list[InternalStory]:
        return self.db.scalars(
            select(InternalStory)
            .where(InternalStory.internal_project_id == internal_project_id)
            .order_by(InternalStory.order.asc(), InternalStory.created_at.asc())
        ).all()

    def get_internal_story(self, story_id: UUID) -> InternalStory | None:
        return self.db.scalar(select(InternalStory).where(InternalStory.id == story_id))

    def add_internal_story(self, story: InternalStory) -> InternalStory:
        self.db.add(story)
        self.db.flush()
        return story

    def delete_internal_story(self, story: InternalStory) -> None:
        self.db.execute(update(InternalTask).where(InternalTask.story_id == story.id).values(story_id=None))
        self.db.delete(story)
        self.db.flush()

    # ---------- Internal tasks ----------
    def list_internal_tasks(self, internal_project_id: UUID) -> list[InternalTask]:
        return self.db.scalars(
            select(InternalTask)
            .where(InternalTask.internal_project_id == internal_project_id)
            .order_by(InternalTask.order.asc(), InternalTask.created_at.asc())
        ).all()

    def count_internal_tasks_by_project(self, internal_project_ids: list[UUID]) -> dict[UUID, int]:
        if not internal_project_ids:
            return {}
        rows = self.db.execute(
            select(InternalTask.internal_project_id, func.count(InternalTask.id))
            .where(InternalTask.internal_project_id.in_(internal_project_ids))
            .group_by(InternalTask.internal_project_id)
        ).all()
        return {project_id: int(count) for project_id, count in rows}

    def get_internal_task(self, task_id: UUID) -> InternalTask | None:
        return self.db.scalar(select(InternalTask).where(InternalTask.id == task_id))

    def add_internal_task(self, task: InternalTask) -> InternalTask:
        self.db.add(task)
        self.db.flush()
        return task

    def delete_internal_task(self, task: InternalTask) -> None:
        self.db.delete(task)
        self.db.flush()
