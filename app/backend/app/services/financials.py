"""Financial aggregation over ledger transactions, tasks and installments.

Pure functions: callers load rows through repositories and pass them in.
All amounts are quantized to two decimals and divisions by zero yield zero.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any

from app.models.entities import BillingType, PaymentStatus, TransactionType

ZERO = Decimal("0.00")
Q2 = Decimal("0.01")
HUNDRED = Decimal("100")


def _q2(value: Decimal) -> Decimal:
    return value.quantize(Q2)


def _safe_div(numerator: Decimal, denominator: Decimal) -> Decimal:
    if denominator == ZERO:
        return ZERO
    return (numerator / denominator).quantize(Q2)


def _dec(value: Any) -> Decimal:
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def month_key(value: date) -> str:
    return f"{value.year:04d}-{value.month:02d}"


def last_month_keys(today: date, count: int) -> list[str]:
    """``count`` month keys ending with the month of ``today``, oldest first."""

    keys: list[str] = []
    year, month = today.year, today.month
    for _ in range(count):
        keys.append(f"{year:04d}-{month:02d}")
        month -= 1
        if month == 0:
            year -= 1
            month = 12
    return list(reversed(keys))


@dataclass(slots=True)
class LedgerTotals:
    income: Decimal
    expense: Decimal
    profit: Decimal
    count: int

    def as_dict(self) -> dict[str, object]:
        return {
            "total_income": str(self.income),
            "total_expense": str(self.expense),
            "profit": str(self.profit),
            "transaction_count": self.count,
        }


@dataclass(slots=True)
class HoursMetrics:
    worked_hours: Decimal
    estimated_hours: Decimal
    calculated_value: Decimal
    effective_hourly_rate: Decimal

    def as_dict(self) -> dict[str, object]:
        return {
            "total_hours_worked": str(self.worked_hours),
            "total_estimated_hours": str(self.estimated_hours),
            "calculated_value": str(self.calculated_value),
            "effective_hourly_rate": str(self.effective_hourly_rate),
        }


@dataclass(slots=True)
class ProjectFinancials:
    total_received: Decimal
    total_cost: Decimal
    profit: Decimal
    remaining: Decimal
    payment_progress: Decimal

    def as_dict(self) -> dict[str, object]:
        return {
            "total_received": str(self.total_received),
            "total_cost": str(self.total_cost),
            "profit": str(self.profit),
            "remaining_value": str(self.remaining),
            "payment_progress": str(self.payment_progress),
        }


@dataclass(slots=True)
class PaymentSummary:
    total_paid: Decimal
    total_pending: Decimal
    total_overdue: Decimal
    overdue_count: int
    payment_progress: Decimal

    def as_dict(self) -> dict[str, object]:
        return {
            "total_paid": str(self.total_paid),
            "total_pending": str(self.total_pending),
            "total_overdue": str(self.total_overdue),
            "overdue_count": self.overdue_count,
            "payment_progress": str(self.payment_progress),
        }


def ledger_totals(transactions: Iterable[Any]) -> LedgerTotals:
    income = ZERO
    expense = ZERO
    count = 0
    for row in transactions:
        count += 1
        if row.type == TransactionType.INCOME:
            income += _dec(row.amount)
        else:
            expense += _dec(row.amount)
    return LedgerTotals(income=_q2(income), expense=_q2(expense), profit=_q2(income - expense), count=count)


def hours_metrics(
    billing_type: BillingType,
    project_value: Decimal | None,
    hourly_rate: Decimal | None,
    tasks: Iterable[Any],
) -> HoursMetrics:
    """Worked hours and value of a project.

    Hourly projects with a rate are worth ``rate * worked hours``; every other
    project is worth its agreed value.
    """

    worked = ZERO
    estimated = ZERO
    for task in tasks:
        worked += _dec(task.actual_hours)
        estimated += _dec(task.estimated_hours)

    if billing_type == BillingType.HOURLY_RATE and hourly_rate is not None and _dec(hourly_rate) > ZERO:
        value = _dec(hourly_rate) * worked
    else:
        value = _dec(project_value)

    return HoursMetrics(
        worked_hours=_q2(worked),
        estimated_hours=_q2(estimated),
        calculated_value=_q2(value),
        effective_hourly_rate=_safe_div(value, worked),
    )


def project_financials(calculated_value: Decimal, transactions: Iterable[Any]) -> ProjectFinancials:
    totals = ledger_totals(transactions)
    value = _dec(calculated_value)
    remaining = value - totals.income
    return ProjectFinancials(
        total_received=totals.income,
        total_cost=totals.expense,
        profit=totals.profit,
        remaining=_q2(remaining if remaining > ZERO else ZERO),
        payment_progress=_safe_div(totals.income * HUNDRED, value),
    )


def is_payment_overdue(payment: Any, today: date) -> bool:
    if payment.status == PaymentStatus.OVERDUE:
        return True
    return payment.status == PaymentStatus.PENDING and payment.due_date < today


def contract_payment_summary(total_value: Decimal, payments: Iterable[Any], *, today: date) -> PaymentSummary:
    paid = ZERO
    pending = ZERO
    overdue = ZERO
    overdue_count = 0
    for payment in payments:
        amount = _dec(payment.amount)
        if payment.status == PaymentStatus.PAID:
            paid += amount
        elif is_payment_overdue(payment, today):
            overdue += amount
            overdue_count += 1
        elif payment.status == PaymentStatus.PENDING:
            pending += amount

    return PaymentSummary(
        total_paid=_q2(paid),
        total_pending=_q2(pending),
        total_overdue=_q2(overdue),
        overdue_count=overdue_count,
        payment_progress=_safe_div(paid * HUNDRED, _dec(total_value)),
    )


def category_breakdown(transactions: Iterable[Any]) -> list[dict[str, object]]:
    """Totals per (type, category), largest first."""

    buckets: dict[tuple[str, str], list[Decimal | int]] = {}
    for row in transactions:
        key = (row.type.value, row.category.value)
        bucket = buckets.setdefault(key, [ZERO, 0])
        bucket[0] += _dec(row.amount)
        bucket[1] += 1

    items = [
        {"type": type_, "category": category, "total": _q2(total), "count": count}
        for (type_, category), (total, count) in buckets.items()
    ]
    items.sort(key=lambda item: (-item["total"], item["type"], item["category"]))
    for item in items:
        item["total"] = str(item["total"])
    return items


def monthly_series(transactions: Iterable[Any], months: list[str]) -> list[dict[str, object]]:
    """Income, expense and profit per ``YYYY-MM`` key; months without rows are zero."""

    income = {key: ZERO for key in months}
    expense = {key: ZERO for key in months}
    for row in transactions:
        key = month_key(row.date)
        if key not in income:
            continue
        if row.type == TransactionType.INCOME:
            income[key] += _dec(row.amount)
        else:
            expense[key] += _dec(row.amount)

    return [
        {
            "month": key,
            "income": str(_q2(income[key])),
            "expense": str(_q2(expense[key])),
            "profit": str(_q2(income[key] - expense[key])),
        }
        for key in months
    ]
