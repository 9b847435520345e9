"""Ledger endpoints: income/expense transactions and the financial summary."""

from __future__ import annotations

import datetime as dt
from decimal import Decimal
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from app.core.auth import RequestUserContext, get_session_context, require_permission
from app.db.dependencies import get_db_session
from app.models.entities import TransactionCategory, TransactionType
from app.services.common import ensure_date_range
from app.services.finance_service import FinanceService, TransactionData, TransactionFilters

router = APIRouter(tags=["finance"])


class TransactionCreatePayload(BaseModel):
    type: TransactionType
    category: TransactionCategory
    amount: Decimal = Field(gt=0)
    description: str = Field(min_length=1, max_length=500)
    date: dt.date
    project_id: UUID | None = None
    client_id: UUID | None = None
    internal_project_id: UUID | None = None
    invoice_number: str | None = Field(default=None, max_length=128)
    payment_method: str | None = Field(default=None, max_length=64)
    notes: str | None = None


class TransactionUpdatePayload(BaseModel):
    type: TransactionType | None = None
    category: TransactionCategory | None = None
    amount: Decimal | None = Field(default=None, gt=0)
    description: str | None = Field(default=None, min_length=1, max_length=500)
    date: dt.date | None = None
    project_id: UUID | None = None
    client_id: UUID | None = None
    internal_project_id: UUID | None = None
    invoice_number: str | None = Field(default=None, max_length=128)
    payment_method: str | None = Field(default=None, max_length=64)
    notes: str | None = None


def _finance_service(db: Session) -> FinanceService:
    return FinanceService(db)


@router.get("/financeiro")
def list_transactions(
    type_filter: TransactionType | None = Query(default=None, alias="type"),
    category: TransactionCategory | None = Query(default=None),
    start_date: dt.date | None = Query(default=None),
    end_date: dt.date | None = Query(default=None),
    project_id: UUID | None = Query(default=None),
    client_id: UUID | None = Query(default=None),
    internal_project_id: UUID | None = Query(default=None),
    context: RequestUserContext = Depends(require_permission("transactions:read")),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    ensure_date_range(start_date, end_date, label="end_date")
    service = _finance_service(db)
    items = service.list_transactions(
        context=context,
        filters=TransactionFilters(
            type=type_filter,
            category=category,
            start_date=start_date,
            end_date=end_date,
            project_id=project_id,
            client_id=client_id,
            internal_project_id=internal_project_id,
        ),
    )
    return {"items": items}


@router.post("/financeiro", status_code=status.HTTP_201_CREATED)
def create_transaction(
    payload: TransactionCreatePayload,
    context: RequestUserContext = Depends(require_permission("transactions:write")),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _finance_service(db)
    return service.create_transaction(context=context, data=TransactionData(**payload.model_dump()))


@router.get("/financeiro/summary")
def get_summary(
    month: str | None = Query(default=None, description="YYYY-MM"),
    context: RequestUserContext = Depends(require_permission("transactions:read")),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    return _finance_service(db).summary(context=context, month=month)


@router.get("/financeiro/{transaction_id}")
def get_transaction(
    transaction_id: UUID,
    context: RequestUserContext = Depends(require_permission("transactions:read")),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    return _finance_service(db).get_transaction(context=context, transaction_id=transaction_id)


@router.put("/financeiro/{transaction_id}")
def update_transaction(
    transaction_id: UUID,
    payload: TransactionUpdatePayload,
    context: RequestUserContext = Depends(require_permission("transactions:write")),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _finance_service(db)
    return service.update_transaction(
        context=context,
        transaction_id=transaction_id,
        data=TransactionData(**payload.model_dump()),
    )


@router.delete("/financeiro/{transaction_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_transaction(
    transaction_id: UUID,
    context: RequestUserContext = Depends(require_permission("transactions:delete")),
    db: Session = Depends(get_db_session),
) -> Response:
    _finance_service(db).delete_transaction(context=context, transaction_id=transaction_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/dashboard/metrics", tags=["dashboard"])
def dashboard_metrics(
    _: RequestUserContext = Depends(get_session_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    return _finance_service(db).dashboard_metrics()
