"""Contract and installment endpoints."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from app.core.auth import RequestUserContext, get_session_context
from app.db.dependencies import get_db_session
from app.models.entities import ContractStatus, PaymentStatus
from app.services.contract_service import (
    ContractCreateData,
    ContractService,
    ContractUpdateData,
    PaymentData,
)

router = APIRouter(prefix="/contratos", tags=["contracts"])


class PaymentCreatePayload(BaseModel):
    installment_number: int = Field(ge=1)
    amount: Decimal = Field(ge=0)
    due_date: date
    payment_date: date | None = None
    status: PaymentStatus = PaymentStatus.PENDING
    payment_method: str | None = Field(default=None, max_length=64)
    transaction_id: UUID | None = None
    invoice_number: str | None = Field(default=None, max_length=128)
    notes: str | None = None


class PaymentUpdatePayload(BaseModel):
    installment_number: int | None = Field(default=None, ge=1)
    amount: Decimal | None = Field(default=None, ge=0)
    due_date: date | None = None
    payment_date: date | None = None
    status: PaymentStatus | None = None
    payment_method: str | None = Field(default=None, max_length=64)
    transaction_id: UUID | None = None
    invoice_number: str | None = Field(default=None, max_length=128)
    notes: str | None = None


class ContractCreatePayload(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    client_id: UUID
    total_value: Decimal = Field(ge=0)
    start_date: date
    end_date: date
    description: str | None = None
    signed_date: date | None = None
    status: ContractStatus = ContractStatus.DRAFT
    notes: str | None = None
    project_ids: list[UUID] = Field(default_factory=list)
    payments: list[PaymentCreatePayload] = Field(default_factory=list)


class ContractUpdatePayload(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=255)
    client_id: UUID | None = None
    total_value: Decimal | None = Field(default=None, ge=0)
    start_date: date | None = None
    end_date: date | None = None
    description: str | None = None
    signed_date: date | None = None
    status: ContractStatus | None = None
    notes: str | None = None
    project_ids: list[UUID] | None = None


def _contract_service(db: Session) -> ContractService:
    return ContractService(db)


# ---------- Contracts ----------
@router.get("")
def list_contracts(
    status_filter: ContractStatus | None = Query(default=None, alias="status"),
    client_id: UUID | None = Query(default=None),
    _: RequestUserContext = Depends(get_session_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _contract_service(db)
    return {"items": service.list_contracts(status_filter=status_filter, client_id=client_id)}


@router.post("", status_code=status.HTTP_201_CREATED)
def create_contract(
    payload: ContractCreatePayload,
    _: RequestUserContext = Depends(get_session_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    fields = payload.model_dump(exclude={"payments"})
    data = ContractCreateData(
        **fields,
        payments=[PaymentData(**payment.model_dump()) for payment in payload.payments],
    )
    return _contract_service(db).create_contract(data)


@router.get("/{contract_id}")
def get_contract(
    contract_id: UUID,
    _: RequestUserContext = Depends(get_session_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    return _contract_service(db).get_contract(contract_id)


@router.put("/{contract_id}")
def update_contract(
    contract_id: UUID,
    payload: ContractUpdatePayload,
    _: RequestUserContext = Depends(get_session_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    return _contract_service(db).update_contract(contract_id, ContractUpdateData(**payload.model_dump()))


@router.delete("/{contract_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_contract(
    contract_id: UUID,
    _: RequestUserContext = Depends(get_session_context),
    db: Session = Depends(get_db_session),
) -> Response:
    _contract_service(db).delete_contract(contract_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ---------- Payments ----------
@router.get("/{contract_id}/payments")
def list_payments(
    contract_id: UUID,
    _: RequestUserContext = Depends(get_session_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    return {"items": _contract_service(db).list_payments(contract_id)}


@router.post("/{contract_id}/payments", status_code=status.HTTP_201_CREATED)
def create_payment(
    contract_id: UUID,
    payload: PaymentCreatePayload,
    _: RequestUserContext = Depends(get_session_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    return _contract_service(db).create_payment(contract_id, PaymentData(**payload.model_dump()))


@router.put("/{contract_id}/payments/{payment_id}")
def update_payment(
    contract_id: UUID,
    payment_id: UUID,
    payload: PaymentUpdatePayload,
    _: RequestUserContext = Depends(get_session_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _contract_service(db)
    return service.update_payment(contract_id, payment_id, PaymentData(**payload.model_dump()))


@router.delete("/{contract_id}/payments/{payment_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_payment(
    contract_id: UUID,
    payment_id: UUID,
    _: RequestUserContext = Depends(get_session_context),
    db: Session = Depends(get_db_session),
) -> Response:
    _contract_service(db).delete_payment(contract_id, payment_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
