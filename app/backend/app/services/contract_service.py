"""Application service for contracts and their payment installments."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from app.core.config import get_settings
from app.models.entities import Contract, ContractPayment, ContractStatus, PaymentStatus
from app.repositories.crm_repository import CrmRepository
from app.repositories.finance_repository import FinanceRepository
from app.repositories.project_repository import ProjectRepository
from app.services import financials
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

CONTRACT_NUMBER_PREFIX = "CONT"


@dataclass(slots=True)
class PaymentData:
    installment_number: int | None = None
    amount: Decimal | None = None
    due_date: date | None = None
    payment_date: date | None = None
    status: PaymentStatus | None = None
    payment_method: str | None = None
    transaction_id: UUID | None = None
    invoice_number: str | None = None
    notes: str | None = None


@dataclass(slots=True)
class ContractCreateData:
    title: str
    client_id: UUID
    total_value: Decimal
    start_date: date
    end_date: date
    description: str | None = None
    signed_date: date | None = None
    status: ContractStatus = ContractStatus.DRAFT
    notes: str | None = None
    project_ids: list[UUID] = field(default_factory=list)
    payments: list[PaymentData] = field(default_factory=list)


@dataclass(slots=True)
class ContractUpdateData:
    title: str | None = None
    client_id: UUID | None = None
    total_value: Decimal | None = None
    start_date: date | None = None
    end_date: date | None = None
    description: str | None = None
    signed_date: date | None = None
    status: ContractStatus | None = None
    notes: str | None = None
    project_ids: list[UUID] | None = None


def next_contract_number(existing_numbers: list[str], *, today: date) -> str:
    """``CONT-YYYYMM-NNN`` with NNN one past the highest sequence of the month."""

    prefix = f"{CONTRACT_NUMBER_PREFIX}-{today.year:04d}{today.month:02d}-"
    sequence = 0
    for number in existing_numbers:
        if not number.startswith(prefix):
            continue
        try:
            sequence = max(sequence, int(number[len(prefix):]))
        except ValueError:
            continue
    return f"{prefix}{sequence + 1:03d}"


class ContractService:
    """Service implementing contracts, installments and payment tracking."""

    def __init__(self, db: Session) -> None:
        self.db = db
        self.repo = FinanceRepository(db)
        self.crm = CrmRepository(db)
        self.projects = ProjectRepository(db)
        self.settings = get_settings()

    # ---------- Serialization ----------
    @staticmethod
    def serialize_payment(payment: ContractPayment, *, today: date) -> dict[str, object]:
        return {
            "id": str(payment.id),
            "contract_id": str(payment.contract_id),
            "installment_number": payment.installment_number,
            "amount": money(payment.amount),
            "due_date": payment.due_date.isoformat(),
            "payment_date": iso(payment.payment_date),
            "status": payment.status.value,
            "is_overdue": financials.is_payment_overdue(payment, today),
            "payment_method": payment.payment_method,
            "transaction_id": str(payment.transaction_id) if payment.transaction_id else None,
            "invoice_number": payment.invoice_number,
            "notes": payment.notes,
        }

    def serialize_contract(
        self,
        contract: Contract,
        *,
        payments: list[ContractPayment],
        project_ids: list[UUID],
        today: date,
    ) -> dict[str, object]:
        summary = financials.contract_payment_summary(contract.total_value, payments, today=today)
        return {
            "id": str(contract.id),
            "contract_number": contract.contract_number,
            "title": contract.title,
            "description": contract.description,
            "client_id": str(contract.client_id),
            "total_value": money(contract.total_value),
            "start_date": contract.start_date.isoformat(),
            "end_date": contract.end_date.isoformat(),
            "signed_date": iso(contract.signed_date),
            "status": contract.status.value,
            "notes": contract.notes,
            "project_ids": ids(project_ids),
            "payments": [self.serialize_payment(payment, today=today) for payment in payments],
            "payment_summary": summary.as_dict(),
            "created_at": contract.created_at.isoformat(),
            "updated_at": contract.updated_at.isoformat(),
        }

    # ---------- Validation ----------
    def _get_contract(self, contract_id: UUID) -> Contract:
        return ensure_found(self.repo.get_contract(contract_id), "Contract not found.")

    def _validate_projects(self, client_id: UUID, project_ids: list[UUID]) -> None:
        for project_id in dict.fromkeys(project_ids):
            project = self.projects.get_project(project_id)
            if project is None:
                raise bad_request("One or more projects do not exist.")
            if project.client_id != client_id:
                raise bad_request("Contract projects must belong to the contract client.")

    def _validate_payment_values(self, data: PaymentData) -> None:
        if data.installment_number is not None and data.installment_number < 1:
            raise bad_request("installment_number must be at least 1.")
        if data.amount is not None and data.amount <= 0:
            raise bad_request("amount must be greater than zero.")
        if data.transaction_id is not None:
            ensure_found(self.repo.get_transaction(data.transaction_id), "Transaction not found.")

    def _contract_payload(self, contract: Contract, *, today: date | None = None) -> dict[str, object]:
        return self.serialize_contract(
            contract,
            payments=self.repo.list_payments(contract.id),
            project_ids=self.repo.contract_project_ids(contract.id),
            today=today or date.today(),
        )

    @staticmethod
    def _apply_paid_date(payment: ContractPayment, *, today: date) -> None:
        if payment.status == PaymentStatus.PAID and payment.payment_date is None:
            payment.payment_date = today

    # ---------- Contracts ----------
    def list_contracts(
        self,
        *,
        status_filter: ContractStatus | None = None,
        client_id: UUID | None = None,
    ) -> list[dict[str, object]]:
        contracts = self.repo.list_contracts(status=status_filter, client_id=client_id)
        contract_ids = [contract.id for contract in contracts]
        payments_by_contract: dict[UUID, list[ContractPayment]] = {contract_id: [] for contract_id in contract_ids}
        for payment in self.repo.list_payments_for_contracts(contract_ids):
            payments_by_contract[payment.contract_id].append(payment)
        project_ids = self.repo.contract_project_ids_by_contract(contract_ids)

        today = date.today()
        return [
            self.serialize_contract(
                contract,
                payments=payments_by_contract[contract.id],
                project_ids=project_ids.get(contract.id, []),
                today=today,
            )
            for contract in contracts
        ]

    def get_contract(self, contract_id: UUID) -> dict[str, object]:
        return self._contract_payload(self._get_contract(contract_id))

    def create_contract(self, data: ContractCreateData, *, today: date | None = None) -> dict[str, object]:
        today = today or date.today()
        title = clean_text(data.title)
        if not title:
            raise bad_request("Contract title is required.")
        if data.total_value < 0:
            raise bad_request("total_value must not be negative.")
        ensure_date_range(data.start_date, data.end_date)
        ensure_found(self.crm.get_client(data.client_id), "Client not found.")
        self._validate_projects(data.client_id, data.project_ids)

        installments = [payment.installment_number for payment in data.payments]
        if len(set(installments)) != len(installments):
            raise bad_request("Installment numbers must be unique within a contract.")
        for payment_data in data.payments:
            if payment_data.installment_number is None or payment_data.amount is None or payment_data.due_date is None:
                raise bad_request("Each installment needs installment_number, amount and due_date.")
            self._validate_payment_values(payment_data)

        now = datetime.utcnow()
        contract = Contract(
            contract_number=next_contract_number(
                self.repo.list_contract_numbers_with_prefix(f"{CONTRACT_NUMBER_PREFIX}-{today:%Y%m}-"),
                today=today,
            ),
            title=title,
            description=clean_text(data.description),
            client_id=data.client_id,
            total_value=data.total_value,
            start_date=data.start_date,
            end_date=data.end_date,
            signed_date=data.signed_date,
            status=data.status,
            notes=clean_text(data.notes),
            created_at=now,
            updated_at=now,
        )
        self.repo.add_contract(contract)
        self.repo.set_contract_projects(contract.id, data.project_ids)
        for payment_data in data.payments:
            payment = ContractPayment(
                contract_id=contract.id,
                installment_number=payment_data.installment_number,
                amount=payment_data.amount,
                due_date=payment_data.due_date,
                payment_date=payment_data.payment_date,
                status=payment_data.status or PaymentStatus.PENDING,
                payment_method=clean_text(payment_data.payment_method),
                transaction_id=payment_data.transaction_id,
                invoice_number=clean_text(payment_data.invoice_number),
                notes=clean_text(payment_data.notes),
            )
            self._apply_paid_date(payment, today=today)
            self.repo.add_payment(payment)

        commit_or_conflict(self.db, "Contract number already exists; retry the request.")
        self.db.refresh(contract)
        logger.info("Contract created id=%s number=%s", contract.id, contract.contract_number)
        return self._contract_payload(contract, today=today)

    def update_contract(self, contract_id: UUID, data: ContractUpdateData) -> dict[str, object]:
        contract = self._get_contract(contract_id)

        client_id = data.client_id or contract.client_id
        if data.client_id is not None:
            ensure_found(self.crm.get_client(data.client_id), "Client not found.")
        if data.total_value is not None and data.total_value < 0:
            raise bad_request("total_value must not be negative.")
        ensure_date_range(
            data.start_date if data.start_date is not None else contract.start_date,
            data.end_date if data.end_date is not None else contract.end_date,
        )
        project_ids = data.project_ids if data.project_ids is not None else self.repo.contract_project_ids(contract.id)
        self._validate_projects(client_id, project_ids)

        if data.title is not None:
            title = clean_text(data.title)
            if not title:
                raise bad_request("Contract title is required.")
            contract.title = title
        contract.client_id = client_id
        for attribute in ("total_value", "start_date", "end_date", "signed_date", "status"):
            value = getattr(data, attribute)
            if value is not None:
                setattr(contract, attribute, value)
        if data.description is not None:
            contract.description = clean_text(data.description)
        if data.notes is not None:
            contract.notes = clean_text(data.notes)
        if data.project_ids is not None:
            self.repo.set_contract_projects(contract.id, data.project_ids)

        contract.updated_at = datetime.utcnow()
        commit_or_conflict(self.db, "Contract could not be saved.")
        logger.info("Contract updated id=%s", contract.id)
        return self._contract_payload(contract)

    def delete_contract(self, contract_id: UUID) -> None:
        contract = self._get_contract(contract_id)
        self.repo.delete_contract(contract)
        self.db.commit()
        logger.info("Contract deleted id=%s", contract_id)

    # ---------- Payments ----------
    def _get_payment(self, contract_id: UUID, payment_id: UUID) -> ContractPayment:
        payment = self.repo.get_payment(payment_id)
        if payment is None or payment.contract_id != contract_id:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Payment not found.")
        return payment

    def _ensure_installment_available(self, contract_id: UUID, installment_number: int, payment_id: UUID | None = None):
        existing = self.repo.get_payment_by_installment(contract_id, installment_number)
        if existing is not None and existing.id != payment_id:
            raise conflict(f"Installment {installment_number} already exists for this contract.")

    def list_payments(self, contract_id: UUID) -> list[dict[str, object]]:
        self._get_contract(contract_id)
        today = date.today()
        return [self.serialize_payment(payment, today=today) for payment in self.repo.list_payments(contract_id)]

    def create_payment(self, contract_id: UUID, data: PaymentData, *, today: date | None = None) -> dict[str, object]:
        today = today or date.today()
        self._get_contract(contract_id)
        if data.installment_number is None or data.amount is None or data.due_date is None:
            raise bad_request("installment_number, amount and due_date are required.")
        self._validate_payment_values(data)
        self._ensure_installment_available(contract_id, data.installment_number)

        payment = ContractPayment(
            contract_id=contract_id,
            installment_number=data.installment_number,
            amount=data.amount,
            due_date=data.due_date,
            payment_date=data.payment_date,
            status=data.status or PaymentStatus.PENDING,
            payment_method=clean_text(data.payment_method),
            transaction_id=data.transaction_id,
            invoice_number=clean_text(data.invoice_number),
            notes=clean_text(data.notes),
        )
        self._apply_paid_date(payment, today=today)
        self.repo.add_payment(payment)
        commit_or_conflict(self.db, f"Installment {data.installment_number} already exists for this contract.")
        self.db.refresh(payment)
        logger.info("Payment created id=%s contract_id=%s installment=%s", payment.id, contract_id, payment.installment_number)
        return self.serialize_payment(payment, today=today)

    def update_payment(
        self,
        contract_id: UUID,
        payment_id: UUID,
        data: PaymentData,
        *,
        today: date | None = None,
    ) -> dict[str, object]:
        today = today or date.today()
        self._get_contract(contract_id)
        payment = self._get_payment(contract_id, payment_id)
        self._validate_payment_values(data)
        if data.installment_number is not None:
            self._ensure_installment_available(contract_id, data.installment_number, payment.id)

        for attribute in ("installment_number", "amount", "due_date", "payment_date", "status", "transaction_id"):
            value = getattr(data, attribute)
            if value is not None:
                setattr(payment, attribute, value)
        for attribute in ("payment_method", "invoice_number", "notes"):
            value = getattr(data, attribute)
            if value is not None:
                setattr(payment, attribute, clean_text(value))
        self._apply_paid_date(payment, today=today)

        commit_or_conflict(self.db, "Installment number already exists for this contract.")
        logger.info("Payment updated id=%s status=%s", payment.id, payment.status.value)
        return self.serialize_payment(payment, today=today)

    def delete_payment(self, contract_id: UUID, payment_id: UUID) -> None:
        self._get_contract(contract_id)
        payment = self._get_payment(contract_id, payment_id)
        self.repo.delete_payment(payment)
        self.db.commit()
        logger.info("Payment deleted id=%s", payment_id)
