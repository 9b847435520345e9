"""Application service for the income/expense ledger, summaries and dashboard metrics."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from app.core.auth import RequestUserContext
from app.core.config import get_settings
from app.models.entities import (
    EXPENSE_CATEGORIES,
    ClientStatus,
    INCOME_CATEGORIES,
    LeadStatus,
    ProjectStatus,
    Transaction,
    TransactionCategory,
    TransactionType,
)
from app.repositories.crm_repository import CrmRepository
from app.repositories.finance_repository import FinanceRepository
from app.repositories.project_repository import ProjectRepository
from app.services import financials
from app.services.common import bad_request, clean_text, commit_or_conflict, ensure_found, iso, money

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class TransactionData:
    type: TransactionType | None = None
    category: TransactionCategory | None = None
    amount: Decimal | None = None
    description: str | None = None
    date: date | None = None
    project_id: UUID | None = None
    client_id: UUID | None = None
    internal_project_id: UUID | None = None
    invoice_number: str | None = None
    payment_method: str | None = None
    notes: str | None = None


@dataclass(slots=True)
class TransactionFilters:
    type: TransactionType | None = None
    category: TransactionCategory | None = None
    start_date: date | None = None
    end_date: date | None = None
    project_id: UUID | None = None
    client_id: UUID | None = None
    internal_project_id: UUID | None = None


def ensure_category_matches(type_: TransactionType, category: TransactionCategory) -> None:
    allowed = INCOME_CATEGORIES if type_ == TransactionType.INCOME else EXPENSE_CATEGORIES
    if category not in allowed:
        raise bad_request(f"Category {category.value} is not valid for {type_.value} transactions.")


def parse_month(value: str) -> tuple[date, date]:
    """``YYYY-MM`` into the first and last day of that month."""

    try:
        start = datetime.strptime(value, "%Y-%m").date()
    except ValueError as exc:
        raise bad_request("month must use the YYYY-MM format.") from exc
    if start.month == 12:
        next_month = date(start.year + 1, 1, 1)
    else:
        next_month = date(start.year, start.month + 1, 1)
    return start, date.fromordinal(next_month.toordinal() - 1)


class FinanceService:
    """Service implementing ledger CRUD and financial reporting."""

    def __init__(self, db: Session) -> None:
        self.db = db
        self.repo = FinanceRepository(db)
        self.projects = ProjectRepository(db)
        self.crm = CrmRepository(db)
        self.settings = get_settings()

    # ---------- Serialization ----------
    @staticmethod
    def serialize_transaction(transaction: Transaction) -> dict[str, object]:
        return {
            "id": str(transaction.id),
            "type": transaction.type.value,
            "category": transaction.category.value,
            "amount": money(transaction.amount),
            "description": transaction.description,
            "date": transaction.date.isoformat(),
            "project_id": str(transaction.project_id) if transaction.project_id else None,
            "client_id": str(transaction.client_id) if transaction.client_id else None,
            "internal_project_id": str(transaction.internal_project_id) if transaction.internal_project_id else None,
            "invoice_number": transaction.invoice_number,
            "payment_method": transaction.payment_method,
            "notes": transaction.notes,
            "created_at": iso(transaction.created_at),
            "updated_at": iso(transaction.updated_at),
        }

    # ---------- Access ----------
    @staticmethod
    def _scoped_internal_project(context: RequestUserContext, requested: UUID | None) -> UUID | None:
        """Force API keys bound to one internal project onto that project."""

        scope = context.api_key_internal_project_id
        if scope is None:
            return requested
        if requested is not None and requested != scope:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="API key is not scoped to this internal project.",
            )
        return scope

    def _get_transaction(self, context: RequestUserContext, transaction_id: UUID) -> Transaction:
        transaction = ensure_found(self.repo.get_transaction(transaction_id), "Transaction not found.")
        scope = context.api_key_internal_project_id
        if scope is not None and transaction.internal_project_id != scope:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Transaction not found.")
        return transaction

    def _validate_links(self, *, project_id: UUID | None, client_id: UUID | None, internal_project_id: UUID | None):
        project = None
        if project_id is not None:
            project = ensure_found(self.projects.get_project(project_id), "Project not found.")
        if client_id is not None:
            ensure_found(self.crm.get_client(client_id), "Client not found.")
        if internal_project_id is not None:
            ensure_found(self.projects.get_internal_project(internal_project_id), "Internal project not found.")
        if project is not None and client_id is not None and project.client_id != client_id:
            raise bad_request("Project does not belong to the given client.")
        return project

    # ---------- Ledger ----------
    def list_transactions(self, *, context: RequestUserContext, filters: TransactionFilters) -> list[dict[str, object]]:
        rows = self.repo.list_transactions(
            type_=filters.type,
            category=filters.category,
            start_date=filters.start_date,
            end_date=filters.end_date,
            project_id=filters.project_id,
            client_id=filters.client_id,
            internal_project_id=self._scoped_internal_project(context, filters.internal_project_id),
        )
        return [self.serialize_transaction(row) for row in rows]

    def get_transaction(self, *, context: RequestUserContext, transaction_id: UUID) -> dict[str, object]:
        return self.serialize_transaction(self._get_transaction(context, transaction_id))

    def create_transaction(self, *, context: RequestUserContext, data: TransactionData) -> dict[str, object]:
        if data.type is None or data.category is None or data.amount is None or data.date is None:
            raise bad_request("type, category, amount and date are required.")
        description = clean_text(data.description)
        if not description:
            raise bad_request("Transaction description is required.")
        if data.amount <= 0:
            raise bad_request("amount must be greater than zero.")
        ensure_category_matches(data.type, data.category)

        internal_project_id = self._scoped_internal_project(context, data.internal_project_id)
        project = self._validate_links(
            project_id=data.project_id,
            client_id=data.client_id,
            internal_project_id=internal_project_id,
        )
        client_id = data.client_id
        if client_id is None and project is not None:
            client_id = project.client_id

        now = datetime.utcnow()
        transaction = Transaction(
            type=data.type,
            category=data.category,
            amount=data.amount,
            description=description,
            date=data.date,
            project_id=data.project_id,
            client_id=client_id,
            internal_project_id=internal_project_id,
            invoice_number=clean_text(data.invoice_number),
            payment_method=clean_text(data.payment_method),
            notes=clean_text(data.notes),
            created_at=now,
            updated_at=now,
        )
        self.repo.add_transaction(transaction)
        commit_or_conflict(self.db, "Transaction could not be saved.")
        self.db.refresh(transaction)
        logger.info(
            "Transaction created id=%s type=%s amount=%s",
            transaction.id,
            transaction.type.value,
            money(transaction.amount),
        )
        return self.serialize_transaction(transaction)

    def update_transaction(
        self,
        *,
        context: RequestUserContext,
        transaction_id: UUID,
        data: TransactionData,
    ) -> dict[str, object]:
        transaction = self._get_transaction(context, transaction_id)

        type_ = data.type or transaction.type
        category = data.category or transaction.category
        ensure_category_matches(type_, category)
        if data.amount is not None and data.amount <= 0:
            raise bad_request("amount must be greater than zero.")
        if data.internal_project_id is not None:
            self._scoped_internal_project(context, data.internal_project_id)
        client_id = data.client_id
        if client_id is None and data.project_id is None:
            client_id = transaction.client_id
        project = self._validate_links(
            project_id=data.project_id or transaction.project_id,
            client_id=client_id,
            internal_project_id=data.internal_project_id,
        )
        if client_id is None and project is not None:
            client_id = project.client_id

        transaction.type = type_
        transaction.client_id = client_id
        transaction.category = category
        if data.description is not None:
            description = clean_text(data.description)
            if not description:
                raise bad_request("Transaction description is required.")
            transaction.description = description
        for attribute in ("amount", "date", "project_id", "internal_project_id"):
            value = getattr(data, attribute)
            if value is not None:
                setattr(transaction, attribute, value)
        for attribute in ("invoice_number", "payment_method", "notes"):
            value = getattr(data, attribute)
            if value is not None:
                setattr(transaction, attribute, clean_text(value))

        transaction.updated_at = datetime.utcnow()
        commit_or_conflict(self.db, "Transaction could not be saved.")
        logger.info("Transaction updated id=%s", transaction.id)
        return self.serialize_transaction(transaction)

    def delete_transaction(self, *, context: RequestUserContext, transaction_id: UUID) -> None:
        transaction = self._get_transaction(context, transaction_id)
        self.repo.delete_transaction(transaction)
        self.db.commit()
        logger.info("Transaction deleted id=%s", transaction_id)

    # ---------- Reporting ----------
    def summary(
        self,
        *,
        context: RequestUserContext,
        month: str | None = None,
        today: date | None = None,
    ) -> dict[str, object]:
        """Totals and category breakdown for a month (or all time) plus a monthly trend."""

        today = today or date.today()
        internal_project_id = self._scoped_internal_project(context, None)
        start_date = end_date = None
        anchor = today
        if month:
            start_date, end_date = parse_month(month)
            anchor = start_date

        period_rows = self.repo.list_transactions(
            start_date=start_date,
            end_date=end_date,
            internal_project_id=internal_project_id,
        )
        months = financials.last_month_keys(anchor, self.settings.dashboard_month_window)
        trend_start, _ = parse_month(months[0])
        _, trend_end = parse_month(months[-1])
        trend_rows = self.repo.list_transactions(
            start_date=trend_start,
            end_date=trend_end,
            internal_project_id=internal_project_id,
        )

        return {
            "period": {"month": month, "start_date": iso(start_date), "end_date": iso(end_date)},
            "totals": financials.ledger_totals(period_rows).as_dict(),
            "by_category": financials.category_breakdown(period_rows),
            "monthly": financials.monthly_series(trend_rows, months),
        }

    def dashboard_metrics(self, *, today: date | None = None) -> dict[str, object]:
        """Headline numbers for the home dashboard."""

        today = today or date.today()
        year_rows = self.repo.list_transactions(start_date=date(today.year, 1, 1), end_date=today)
        year_totals = financials.ledger_totals(year_rows)

        months = financials.last_month_keys(today, self.settings.dashboard_month_window)
        window_start, _ = parse_month(months[0])
        window_rows = self.repo.list_transactions(start_date=window_start, end_date=today)

        leads_by_status = self.crm.count_leads_by_status()
        recent = self.projects.list_projects(limit=self.settings.dashboard_recent_projects)
        client_names = {
            project.client_id: client.name
            for project in recent
            if (client := self.crm.get_client(project.client_id)) is not None
        }

        return {
            "counts": {
                "leads": sum(leads_by_status.values()),
                "clients": self.crm.count_clients(),
                "active_clients": self.crm.count_clients(status=ClientStatus.ACTIVE),
                "projects": self.projects.count_projects(),
                "active_projects": self.projects.count_projects(status=ProjectStatus.IN_PROGRESS),
            },
            "financial": {
                "year": today.year,
                "total_income": str(year_totals.income),
                "total_expense": str(year_totals.expense),
                "profit": str(year_totals.profit),
            },
            "leads_by_status": [
                {"status": lead_status.value, "count": leads_by_status.get(lead_status, 0)}
                for lead_status in LeadStatus
            ],
            "monthly_revenue": financials.monthly_series(window_rows, months),
            "recent_projects": [
                {
                    "id": str(project.id),
                    "name": project.name,
                    "status": project.status.value,
                    "client_id": str(project.client_id),
                    "client_name": client_names.get(project.client_id),
                    "project_value": money(project.project_value),
                    "created_at": project.created_at.isoformat(),
                }
                for project in recent
            ],
        }
