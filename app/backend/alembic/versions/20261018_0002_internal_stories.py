"""internal project stories

Revision ID: 20261018_0002
Revises: 20261018_0001
Create Date: 2026-10-18
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision = "20261018_0002"
down_revision = "20261018_0001"
branch_labels = None
depends_on = None


work_status = postgresql.ENUM(name="work_status", create_type=False)
priority = postgresql.ENUM(name="priority", create_type=False)


def upgrade() -> None:
    op.create_table(
        "internal_stories",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column(
            "internal_project_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("internal_projects.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("status", work_status, nullable=False),
        sa.Column("priority", priority, nullable=False),
        sa.Column("points", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("order", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("points >= 0", name="ck_internal_stories_points_non_negative"),
    )
    op.create_index(
        "ix_internal_stories_project_status_order",
        "internal_stories",
        ["internal_project_id", "status", "order"],
    )

    op.add_column("internal_tasks", sa.Column("story_id", postgresql.UUID(as_uuid=True), nullable=True))
    op.create_foreign_key(
        "fk_internal_tasks_story_id",
        "internal_tasks",
        "internal_stories",
        ["story_id"],
        ["id"],
        ondelete="SET NULL",
    )


def downgrade() -> None:
    op.drop_constraint("fk_internal_tasks_story_id", "internal_tasks", type_="foreignkey")
    op.drop_column("internal_tasks", "story_id")
    op.drop_index("ix_internal_stories_project_status_order", table_name="internal_stories")
    op.drop_table("internal_stories")
