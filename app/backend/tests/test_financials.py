from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from app.models.entities import BillingType, PaymentStatus, TransactionCategory, TransactionType
from app.services import financials


@dataclass
class Row:
    type: TransactionType
    amount: Decimal
    date: date = date(2026, 3, 10)
    category: TransactionCategory = TransactionCategory.OTHER_INCOME


@dataclass
class TaskHours:
    actual_hours: Decimal | None
    estimated_hours: Decimal | None


@dataclass
class Installment:
    amount: Decimal
    due_date: date
    status: PaymentStatus


def test_ledger_totals_sum_income_and_expense() -> None:
    rows = [
        Row(TransactionType.INCOME, Decimal("1000.50")),
        Row(TransactionType.INCOME, Decimal("499.50")),
        Row(TransactionType.EXPENSE, Decimal("300"), category=TransactionCategory.SOFTWARE),
    ]

    totals = financials.ledger_totals(rows)

    assert totals.as_dict() == {
        "total_income": "1500.00",
        "total_expense": "300.00",
        "profit": "1200.00",
        "transaction_count": 3,
    }


def test_hours_metrics_for_hourly_project_use_worked_hours() -> None:
    tasks = [TaskHours(Decimal("10"), Decimal("8")), TaskHours(Decimal("5.5"), None), TaskHours(None, Decimal("2"))]

    metrics = financials.hours_metrics(BillingType.HOURLY_RATE, Decimal("0"), Decimal("100"), tasks)

    assert metrics.worked_hours == Decimal("15.50")
    assert metrics.estimated_hours == Decimal("10.00")
    assert metrics.calculated_value == Decimal("1550.00")
    assert metrics.effective_hourly_rate == Decimal("100.00")


def test_hours_metrics_for_fixed_price_without_hours_has_zero_rate() -> None:
    metrics = financials.hours_metrics(BillingType.FIXED_PRICE, Decimal("5000"), Decimal("120"), [])

    assert metrics.calculated_value == Decimal("5000.00")
    assert metrics.effective_hourly_rate == Decimal("0.00")


def test_project_financials_progress_and_remaining() -> None:
    rows = [
        Row(TransactionType.INCOME, Decimal("2500")),
        Row(TransactionType.EXPENSE, Decimal("400"), category=TransactionCategory.INFRASTRUCTURE),
    ]

    result = financials.project_financials(Decimal("10000"), rows)

    assert result.as_dict() == {
        "total_received": "2500.00",
        "total_cost": "400.00",
        "profit": "2100.00",
        "remaining_value": "7500.00",
        "payment_progress": "25.00",
    }


def test_project_financials_never_report_negative_remaining() -> None:
    result = financials.project_financials(Decimal("100"), [Row(TransactionType.INCOME, Decimal("150"))])

    assert result.remaining == Decimal("0.00")
    assert result.payment_progress == Decimal("150.00")


def test_contract_payment_summary_flags_late_pending_installments() -> None:
    today = date(2026, 5, 1)
    payments = [
        Installment(Decimal("1000"), date(2026, 3, 1), PaymentStatus.PAID),
        Installment(Decimal("1000"), date(2026, 4, 1), PaymentStatus.PENDING),
        Installment(Decimal("1000"), date(2026, 6, 1), PaymentStatus.PENDING),
        Installment(Decimal("500"), date(2026, 6, 1), PaymentStatus.CANCELLED),
    ]

    summary = financials.contract_payment_summary(Decimal("4000"), payments, today=today)

    assert summary.as_dict() == {
        "total_paid": "1000.00",
        "total_pending": "1000.00",
        "total_overdue": "1000.00",
        "overdue_count": 1,
        "payment_progress": "25.00",
    }
    assert financials.is_payment_overdue(payments[1], today) is True
    assert financials.is_payment_overdue(payments[2], today) is False


def test_last_month_keys_cross_year_boundary() -> None:
    assert financials.last_month_keys(date(2026, 2, 15), 4) == ["2025-11", "2025-12", "2026-01", "2026-02"]


def test_monthly_series_fills_empty_months() -> None:
    rows = [
        Row(TransactionType.INCOME, Decimal("200"), date=date(2026, 1, 5)),
        Row(TransactionType.EXPENSE, Decimal("50"), date=date(2026, 1, 20), category=TransactionCategory.OFFICE),
        Row(TransactionType.INCOME, Decimal("999"), date=date(2025, 6, 1)),
    ]

    series = financials.monthly_series(rows, ["2025-12", "2026-01"])

    assert series == [
        {"month": "2025-12", "income": "0.00", "expense": "0.00", "profit": "0.00"},
        {"month": "2026-01", "income": "200.00", "expense": "50.00", "profit": "150.00"},
    ]


def test_category_breakdown_is_sorted_by_total() -> None:
    rows = [
        Row(TransactionType.EXPENSE, Decimal("10"), category=TransactionCategory.SOFTWARE),
        Row(TransactionType.EXPENSE, Decimal("15"), category=TransactionCategory.SOFTWARE),
        Row(TransactionType.INCOME, Decimal("100"), category=TransactionCategory.CONSULTING),
    ]

    breakdown = financials.category_breakdown(rows)

    assert breakdown == [
        {"type": "INCOME", "category": "CONSULTING", "total": "100.00", "count": 1},
        {"type": "EXPENSE", "category": "SOFTWARE", "total": "25.00", "count": 2},
    ]
