"""initial schema

Revision ID: 20261018_0001
Revises:
Create Date: 2026-10-18
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "20261018_0001"
down_revision = None
branch_labels = None
depends_on = None


client_status = postgresql.ENUM("ACTIVE", "INACTIVE", "CHURNED", name="client_status", create_type=False)
lead_status = postgresql.ENUM(
    "NEW",
    "CONTACTED",
    "QUALIFIED",
    "PROPOSAL_SENT",
    "NEGOTIATION",
    "WON",
    "LOST",
    name="lead_status",
    create_type=False,
)
lead_source = postgresql.ENUM(
    "WEBSITE", "REFERRAL", "SOCIAL_MEDIA", "ZEROS_A_DIREITA", "EVENT", "OTHER", name="lead_source", create_type=False
)
project_status = postgresql.ENUM(
    "PLANNING", "IN_PROGRESS", "ON_HOLD", "COMPLETED", "CANCELLED", name="project_status", create_type=False
)
priority = postgresql.ENUM("LOW", "MEDIUM", "HIGH", "URGENT", name="priority", create_type=False)
billing_type = postgresql.ENUM("FIXED_PRICE", "HOURLY_RATE", name="billing_type", create_type=False)
work_status = postgresql.ENUM("TODO", "IN_PROGRESS", "IN_REVIEW", "DONE", name="work_status", create_type=False)
internal_project_status = postgresql.ENUM(
    "ACTIVE", "PAUSED", "ARCHIVED", name="internal_project_status", create_type=False
)
transaction_type = postgresql.ENUM("INCOME", "EXPENSE", name="transaction_type", create_type=False)
transaction_category = postgresql.ENUM(
    "PROJECT_PAYMENT",
    "CONSULTING",
    "LICENSE",
    "SUBSCRIPTION",
    "OTHER_INCOME",
    "SALARIES",
    "INFRASTRUCTURE",
    "SOFTWARE",
    "MARKETING",
    "OFFICE",
    "TAXES",
    "OTHER_EXPENSE",
    name="transaction_category",
    create_type=False,
)
contract_status = postgresql.ENUM(
    "DRAFT", "ACTIVE", "COMPLETED", "CANCELLED", "SUSPENDED", name="contract_status", create_type=False
)
payment_status = postgresql.ENUM("PENDING", "PAID", "OVERDUE", "CANCELLED", name="payment_status", create_type=False)
meeting_status = postgresql.ENUM(
    "SCHEDULED", "IN_PROGRESS", "COMPLETED", "CANCELLED", name="meeting_status", create_type=False
)
member_role = postgresql.ENUM(
    "DEVELOPER",
    "DESIGNER",
    "PROJECT_MANAGER",
    "PRODUCT_MANAGER",
    "QA_ENGINEER",
    "DEVOPS",
    "DATA_SCIENTIST",
    "BUSINESS_ANALYST",
    "FOUNDER",
    "CEO",
    "CTO",
    "CFO",
    "OTHER",
    name="member_role",
    create_type=False,
)
member_status = postgresql.ENUM("ACTIVE", "INACTIVE", "ON_LEAVE", name="member_status", create_type=False)
suggestion_category = postgresql.ENUM(
    "FINANCEIRO",
    "GESTAO",
    "PROJETOS",
    "EQUIPE",
    "PROCESSOS",
    "TECNOLOGIA",
    "OUTRO",
    name="suggestion_category",
    create_type=False,
)
suggestion_status = postgresql.ENUM(
    "ABERTA", "EM_ANALISE", "APROVADA", "IMPLEMENTADA", "REJEITADA", name="suggestion_status", create_type=False
)

ENUM_TYPES = (
    client_status,
    lead_status,
    lead_source,
    project_status,
    priority,
    billing_type,
    work_status,
    internal_project_status,
    transaction_type,
    transaction_category,
    contract_status,
    payment_status,
    meeting_status,
    member_role,
    member_status,
    suggestion_category,
    suggestion_status,
)


def _link_table(name: str, owner: tuple[str, str], target: tuple[str, str], constraint: str) -> None:
    owner_column, owner_table = owner
    target_column, target_table = target
    op.create_table(
        name,
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column(
            owner_column,
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey(f"{owner_table}.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            target_column,
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey(f"{target_table}.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.UniqueConstraint(owner_column, target_column, name=constraint),
    )


def upgrade() -> None:
    for enum_type in ENUM_TYPES:
        enum_type.create(op.get_bind(), checkfirst=True)

    op.create_table(
        "members",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("email", sa.String(length=320), nullable=False, unique=True),
        sa.Column("phone", sa.String(length=64), nullable=True),
        sa.Column("role", member_role, nullable=False),
        sa.Column("roles", sa.JSON(), nullable=False),
        sa.Column("status", member_status, nullable=False),
        sa.Column("department", sa.String(length=255), nullable=True),
        sa.Column("hire_date", sa.Date(), nullable=True),
        sa.Column("avatar", sa.String(length=1024), nullable=True),
        sa.Column("bio", sa.Text(), nullable=True),
        sa.Column("skills", sa.Text(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )

    op.create_table(
        "users",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("email", sa.String(length=320), nullable=False, unique=True),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column(
            "member_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("members.id", ondelete="SET NULL"),
            nullable=True,
            unique=True,
        ),
        sa.Column("last_login_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )

    op.create_table(
        "teams",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column(
            "lead_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("members.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )
    _link_table("team_memberships", ("team_id", "teams"), ("member_id", "members"), "uq_team_memberships")
    op.create_index("ix_team_memberships_member_id", "team_memberships", ["member_id"])

    op.create_table(
        "clients",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("email", sa.String(length=320), nullable=True, unique=True),
        sa.Column("phone", sa.String(length=64), nullable=True),
        sa.Column("company", sa.String(length=255), nullable=True),
        sa.Column("position", sa.String(length=255), nullable=True),
        sa.Column("status", client_status, nullable=False),
        sa.Column("cnpj", sa.String(length=32), nullable=True, unique=True),
        sa.Column("address", sa.String(length=500), nullable=True),
        sa.Column("website", sa.String(length=500), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )

    op.create_table(
        "leads",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("email", sa.String(length=320), nullable=True, unique=True),
        sa.Column("phone", sa.String(length=64), nullable=True),
        sa.Column("company", sa.String(length=255), nullable=True),
        sa.Column("position", sa.String(length=255), nullable=True),
        sa.Column("status", lead_status, nullable=False),
        sa.Column("source", lead_source, nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("estimated_value", sa.Numeric(14, 2), nullable=True),
        sa.Column(
            "converted_to_client_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("clients.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("converted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_leads_status", "leads", ["status"])

    op.create_table(
        "meetings",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("start_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("location", sa.String(length=500), nullable=True),
        sa.Column("lead_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("leads.id", ondelete="SET NULL"), nullable=True),
        sa.Column(
            "client_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("clients.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("tags", sa.JSON(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("status", meeting_status, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_meetings_start_at", "meetings", ["start_at"])
    _link_table("meeting_members", ("meeting_id", "meetings"), ("member_id", "members"), "uq_meeting_members")
    _link_table("meeting_teams", ("meeting_id", "meetings"), ("team_id", "teams"), "uq_meeting_teams")

    op.create_table(
        "projects",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("client_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("clients.id"), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("status", project_status, nullable=False),
        sa.Column("priority", priority, nullable=False),
        sa.Column("billing_type", billing_type, nullable=False),
        sa.Column("project_value", sa.Numeric(14, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("hourly_rate", sa.Numeric(12, 2), nullable=True),
        sa.Column("budget", sa.Numeric(14, 2), nullable=True),
        sa.Column("start_date", sa.Date(), nullable=True),
        sa.Column("end_date", sa.Date(), nullable=True),
        sa.Column("deadline", sa.Date(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("project_value >= 0", name="ck_projects_project_value_non_negative"),
    )
    op.create_index("ix_projects_client_id", "projects", ["client_id"])
    op.create_index("ix_projects_status", "projects", ["status"])
    _link_table("project_members", ("project_id", "projects"), ("member_id", "members"), "uq_project_members")
    _link_table("project_teams", ("project_id", "projects"), ("team_id", "teams"), "uq_project_teams")

    op.create_table(
        "epics",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column(
            "project_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("projects.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("status", work_status, nullable=False),
        sa.Column("priority", priority, nullable=False),
        sa.Column("start_date", sa.Date(), nullable=True),
        sa.Column("end_date", sa.Date(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_epics_project_id", "epics", ["project_id"])

    op.create_table(
        "stories",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column(
            "project_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("projects.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("epic_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("epics.id", ondelete="SET NULL"), nullable=True),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("status", work_status, nullable=False),
        sa.Column("priority", priority, nullable=False),
        sa.Column("points", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("order", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("points >= 0", name="ck_stories_points_non_negative"),
    )
    op.create_index("ix_stories_project_status_order", "stories", ["project_id", "status", "order"])
    _link_table("story_members", ("story_id", "stories"), ("member_id", "members"), "uq_story_members")

    op.create_table(
        "tasks",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column(
            "project_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("projects.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "story_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("stories.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("status", work_status, nullable=False),
        sa.Column("priority", priority, nullable=False),
        sa.Column("due_date", sa.Date(), nullable=True),
        sa.Column("estimated_hours", sa.Numeric(10, 2), nullable=True),
        sa.Column("actual_hours", sa.Numeric(10, 2), nullable=True),
        sa.Column("tags", sa.JSON(), nullable=False),
        sa.Column("order", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("estimated_hours IS NULL OR estimated_hours >= 0", name="ck_tasks_estimated_non_negative"),
        sa.CheckConstraint("actual_hours IS NULL OR actual_hours >= 0", name="ck_tasks_actual_non_negative"),
    )
    op.create_index("ix_tasks_project_status_order", "tasks", ["project_id", "status", "order"])
    _link_table("task_members", ("task_id", "tasks"), ("member_id", "members"), "uq_task_members")
    _link_table("task_teams", ("task_id", "tasks"), ("team_id", "teams"), "uq_task_teams")

    op.create_table(
        "internal_projects",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("status", internal_project_status, nullable=False),
        sa.Column("icon", sa.String(length=64), nullable=True),
        sa.Column("color", sa.String(length=32), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )

    op.create_table(
        "internal_tasks",
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
        sa.Column("due_date", sa.Date(), nullable=True),
        sa.Column("estimated_hours", sa.Numeric(10, 2), nullable=True),
        sa.Column("actual_hours", sa.Numeric(10, 2), nullable=True),
        sa.Column("tags", sa.JSON(), nullable=False),
        sa.Column("order", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index(
        "ix_internal_tasks_project_status_order",
        "internal_tasks",
        ["internal_project_id", "status", "order"],
    )

    op.create_table(
        "api_keys",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("key_hash", sa.String(length=64), nullable=False, unique=True),
        sa.Column("prefix", sa.String(length=32), nullable=False),
        sa.Column("permissions", sa.JSON(), nullable=False),
        sa.Column(
            "internal_project_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("internal_projects.id", ondelete="CASCADE"),
            nullable=True,
        ),
        sa.Column("last_used_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column(
            "created_by_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("members.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )

    op.create_table(
        "transactions",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("type", transaction_type, nullable=False),
        sa.Column("category", transaction_category, nullable=False),
        sa.Column("amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("description", sa.String(length=500), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("project_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("projects.id"), nullable=True),
        sa.Column("client_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("clients.id"), nullable=True),
        sa.Column(
            "internal_project_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("internal_projects.id"),
            nullable=True,
        ),
        sa.Column("invoice_number", sa.String(length=128), nullable=True),
        sa.Column("payment_method", sa.String(length=64), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("amount > 0", name="ck_transactions_amount_positive"),
    )
    op.create_index("ix_transactions_date", "transactions", ["date"])
    op.create_index("ix_transactions_project_id", "transactions", ["project_id"])
    op.create_index("ix_transactions_internal_project_id", "transactions", ["internal_project_id"])

    op.create_table(
        "contracts",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("contract_number", sa.String(length=32), nullable=False, unique=True),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("client_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("clients.id"), nullable=False),
        sa.Column("total_value", sa.Numeric(14, 2), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("signed_date", sa.Date(), nullable=True),
        sa.Column("status", contract_status, nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("total_value >= 0", name="ck_contracts_total_value_non_negative"),
    )
    op.create_index("ix_contracts_client_id", "contracts", ["client_id"])
    _link_table("contract_projects", ("contract_id", "contracts"), ("project_id", "projects"), "uq_contract_projects")

    op.create_table(
        "contract_payments",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column(
            "contract_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("contracts.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("installment_number", sa.Integer(), nullable=False),
        sa.Column("amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("due_date", sa.Date(), nullable=False),
        sa.Column("payment_date", sa.Date(), nullable=True),
        sa.Column("status", payment_status, nullable=False),
        sa.Column("payment_method", sa.String(length=64), nullable=True),
        sa.Column(
            "transaction_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("transactions.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("invoice_number", sa.String(length=128), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.CheckConstraint("amount >= 0", name="ck_contract_payments_amount_non_negative"),
        sa.UniqueConstraint("contract_id", "installment_number", name="uq_contract_payments_installment"),
    )

    op.create_table(
        "suggestions",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("category", suggestion_category, nullable=False),
        sa.Column("status", suggestion_status, nullable=False),
        sa.Column("author_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("members.id"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )

    op.create_table(
        "suggestion_votes",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column(
            "suggestion_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("suggestions.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "member_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("members.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("suggestion_id", "member_id", name="uq_suggestion_votes_member"),
    )

    op.create_table(
        "suggestion_comments",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column(
            "suggestion_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("suggestions.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("author_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("members.id"), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_suggestion_comments_suggestion_id", "suggestion_comments", ["suggestion_id"])


def downgrade() -> None:
    op.drop_index("ix_suggestion_comments_suggestion_id", table_name="suggestion_comments")
    op.drop_table("suggestion_comments")
    op.drop_table("suggestion_votes")
    op.drop_table("suggestions")

    op.drop_table("contract_payments")
    op.drop_table("contract_projects")
    op.drop_index("ix_contracts_client_id", table_name="contracts")
    op.drop_table("contracts")

    op.drop_index("ix_transactions_internal_project_id", table_name="transactions")
    op.drop_index("ix_transactions_project_id", table_name="transactions")
    op.drop_index("ix_transactions_date", table_name="transactions")
    op.drop_table("transactions")

    op.drop_table("api_keys")
    op.drop_index("ix_internal_tasks_project_status_order", table_name="internal_tasks")
    op.drop_table("internal_tasks")
    op.drop_table("internal_projects")

    op.drop_table("task_teams")
    op.drop_table("task_members")
    op.drop_index("ix_tasks_project_status_order", table_name="tasks")
    op.drop_table("tasks")
    op.drop_table("story_members")
    op.drop_index("ix_stories_project_status_order", table_name="stories")
    op.drop_table("stories")
    op.drop_index("ix_epics_project_id", table_name="epics")
    op.drop_table("epics")
    op.drop_table("project_teams")
    op.drop_table("project_members")
    op.drop_index("ix_projects_status", table_name="projects")
    op.drop_index("ix_projects_client_id", table_name="projects")
    op.drop_table("projects")

    op.drop_table("meeting_teams")
    op.drop_table("meeting_members")
    op.drop_index("ix_meetings_start_at", table_name="meetings")
    op.drop_table("meetings")
    op.drop_index("ix_leads_status", table_name="leads")
    op.drop_table("leads")
    op.drop_table("clients")

    op.drop_index("ix_team_memberships_member_id", table_name="team_memberships")
    op.drop_table("team_memberships")
    op.drop_table("teams")
    op.drop_table("users")
    op.drop_table("members")

    for enum_type in reversed(ENUM_TYPES):
        enum_type.drop(op.get_bind(), checkfirst=True)
