"""Repository helpers for the ledger and contracts."""

from __future__ import annotations

from datetime import date
from uuid import UUID

from sqlalchemy import and_, delete, select, update
from sqlalchemy.orm import Session

from app.models.entities import (
    Contract,
    ContractPayment,
    ContractProject,
    ContractStatus,
    Transaction,
    TransactionCategory,
    TransactionType,
)
from app.repositories.common import link_ids_by_owner, list_link_ids, replace_links


class FinanceRepository:
    """Persistence operations for transactions, contracts and installments."""

    def __init__(self, db: Session) -> None:
        self.db = db

    # ---------- Transactions ----------
    def list_transactions(
        self,
        *,
        type_: TransactionType | None = None,
        category: TransactionCategory | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
        project_id: UUID | None = None,
        client_id: UUID | None = None,
        internal_project_id: UUID | None = None,
    ) -> list[Transaction]:
        conditions = []
        if type_ is not None:
            conditions.append(Transaction.type == type_)
        if category is not None:
            conditions.append(Transaction.category == category)
        if start_date is not None:
            conditions.append(Transaction.date >= start_date)
        if end_date is not None:
            conditions.append(Transaction.date <= end_date)
        if project_id is not None:
            conditions.append(Transaction.project_id == project_id)
        if client_id is not None:
            conditions.append(Transaction.client_id == client_id)
        if internal_project_id is not None:
            conditions.append(Transaction.internal_project_id == internal_project_id)

        stmt = select(Transaction)
        if conditions:
            stmt = stmt.where(and_(*conditions))
        return self.db.scalars(stmt.order_by(Transaction.date.desc(), Transaction.created_at.desc())).all()

    def list_transactions_for_projects(self, project_ids: list[UUID]) -> list[Transaction]:
        if not project_ids:
            return []
        return self.db.scalars(select(Transaction).where(Transaction.project_id.in_(project_ids))).all()

    def list_transactions_for_internal_projects(self, internal_project_ids: list[UUID]) -> list[Transaction]:
        if not internal_project_ids:
            return []
        return self.db.scalars(
            select(Transaction).where(Transaction.internal_project_id.in_(internal_project_ids))
        ).all()

    def get_transaction(self, transaction_id: UUID) -> Transaction | None:
        return self.db.scalar(select(Transaction).where(Transaction.id == transaction_id))

    def add_transaction(self, transaction: Transaction) -> Transaction:
        self.db.add(transaction)
        self.db.flush()
        return transaction

    def delete_transaction(self, transaction: Transaction) -> None:
        self.db.execute(
            update(ContractPayment)
            .where(ContractPayment.transaction_id == transaction.id)
            .values(transaction_id=None)
        )
        self.db.delete(transaction)
        self.db.flush()

    # ---------- Contracts ----------
    def list_contracts(
        self,
        *,
        status: ContractStatus | None = None,
        client_id: UUID | None = None,
    ) -> list[Contract]:
        stmt = select(Contract)
        if status is not None:
            stmt = stmt.where(Contract.status == status)
        if client_id is not None:
            stmt = stmt.where(Contract.client_id == client_id)
        return self.db.scalars(stmt.order_by(Contract.created_at.desc(), Contract.contract_number.desc())).all()

    def get_contract(self, contract_id: UUID) -> Contract | None:
        return self.db.scalar(select(Contract).where(Contract.id == contract_id))

    def list_contract_numbers_with_prefix(self, prefix: str) -> list[str]:
        return self.db.scalars(
            select(Contract.contract_number).where(Contract.contract_number.like(f"{prefix}%"))
        ).all()

    def add_contract(self, contract: Contract) -> Contract:
        self.db.add(contract)
        self.db.flush()
        return contract

    def delete_contract(self, contract: Contract) -> None:
        self.db.execute(delete(ContractPayment).where(ContractPayment.contract_id == contract.id))
        self.db.execute(delete(ContractProject).where(ContractProject.contract_id == contract.id))
        self.db.delete(contract)
        self.db.flush()

    def contract_project_ids(self, contract_id: UUID) -> list[UUID]:
        return list_link_ids(self.db, ContractProject, "contract_id", contract_id, "project_id")

    def contract_project_ids_by_contract(self, contract_ids: list[UUID]) -> dict[UUID, list[UUID]]:
        return link_ids_by_owner(self.db, ContractProject, "contract_id", contract_ids, "project_id")

    def set_contract_projects(self, contract_id: UUID, project_ids: list[UUID]) -> None:
        replace_links(self.db, ContractProject, "contract_id", contract_id, "project_id", project_ids)

    # ---------- Contract payments ----------
    def list_payments(self, contract_id: UUID) -> list[ContractPayment]:
        return self.db.scalars(
            select(ContractPayment)
            .where(ContractPayment.contract_id == contract_id)
            .order_by(ContractPayment.installment_number.asc())
        ).all()

    def list_payments_for_contracts(self, contract_ids: list[UUID]) -> list[ContractPayment]:
        if not contract_ids:
            return []
        return self.db.scalars(
            select(ContractPayment)
            .where(ContractPayment.contract_id.in_(contract_ids))
            .order_by(ContractPayment.installment_number.asc())
        ).all()

    def get_payment(self, payment_id: UUID) -> ContractPayment | None:
        return self.db.scalar(select(ContractPayment).where(ContractPayment.id == payment_id))

    def get_payment_by_installment(self, contract_id: UUID, installment_number: int) -> ContractPayment | None:
        return self.db.scalar(
            select(ContractPayment).where(
                and_(
                    ContractPayment.contract_id == contract_id,
                    ContractPayment.installment_number == installment_number,
                )
            )
        )

    def add_payment(self, payment: ContractPayment) -> ContractPayment:
        self.db.add(payment)
        self.db.flush()
        return payment

    def delete_payment(self, payment: ContractPayment) -> None:
        self.db.delete(payment)
        self.db.flush()
