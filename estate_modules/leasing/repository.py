"""
Lease Repository (``estate_modules.leasing.repository``).

Responsibility
--------------
The only persistence seam of the leasing module.  ``LeaseRepository``
declares what the lifecycle service needs from storage;
``SqlAlchemyLeaseRepository`` implements it over a SQLAlchemy ``Session``.

Architecture position
---------------------
**Modules layer** -- imperative shell.  Returns frozen DTOs from
``estate_modules.leasing.models``, never ORM instances.  Write methods
flush within the active transaction; ``transaction()`` owns commit and
rollback.

Invariants enforced
-------------------
* Transactions are append-only: there is no update or delete method.
* Installment updates are compare-and-swap on ``version``:
  ``UPDATE ... WHERE id = :id AND version = :expected``.  Zero matched rows
  means another writer got there first.
* ``lock_installment`` / ``lock_lease`` issue ``SELECT ... FOR UPDATE`` and
  refresh the identity map so the caller sees committed state.

Failure modes
-------------
* ``LeaseNotFoundError`` / ``InstallmentNotFoundError`` on unknown ids.
* ``ConcurrencyConflictError`` when a version check fails.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from contextlib import contextmanager
from dataclasses import replace
from typing import Generator, Iterable, Sequence
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from estate_kernel.exceptions import (
    ConcurrencyConflictError,
    InstallmentNotFoundError,
    LeaseNotFoundError,
)
from estate_kernel.logging_config import get_logger
from estate_modules.leasing.models import Installment, Lease, Transaction
from estate_modules.leasing.orm import InstallmentModel, LeaseModel, TransactionModel

logger = get_logger("modules.leasing.repository")


class LeaseRepository(ABC):
    """
    Storage contract for leases, installments and transactions.

    Contract:
        Reads return frozen DTOs.  Writes become durable only when the
        enclosing ``transaction()`` block exits normally.
    """

    # -- leases ---------------------------------------------------------------

    @abstractmethod
    def get_lease(self, lease_id: UUID) -> Lease: ...

    @abstractmethod
    def lock_lease(self, lease_id: UUID) -> Lease: ...

    @abstractmethod
    def add_lease(self, lease: Lease) -> None: ...

    @abstractmethod
    def save_lease(self, lease: Lease) -> None: ...

    # -- installments ---------------------------------------------------------

    @abstractmethod
    def get_installment(self, installment_id: UUID) -> Installment: ...

    @abstractmethod
    def lock_installment(self, installment_id: UUID) -> Installment: ...

    @abstractmethod
    def list_installments(self, lease_id: UUID) -> tuple[Installment, ...]: ...

    @abstractmethod
    def add_installments(self, installments: Iterable[Installment]) -> None: ...

    @abstractmethod
    def update_installment(
        self, installment: Installment, expected_version: int,
    ) -> Installment:
        """Compare-and-swap write; returns the installment at its new version."""

    def reassign_installment(
        self, installment: Installment, expected_version: int,
    ) -> Installment:
        """Persist a parent-lease change made by ``renewal.reassign``."""
        return self.update_installment(installment, expected_version)

    # -- transactions ---------------------------------------------------------

    @abstractmethod
    def append_transaction(self, transaction: Transaction) -> None: ...

    @abstractmethod
    def list_transactions(self, installment_id: UUID) -> tuple[Transaction, ...]: ...

    def transactions_for(
        self, installments: Sequence[Installment],
    ) -> dict[UUID, tuple[Transaction, ...]]:
        """Transactions of each installment, keyed by installment id."""
        return {inst.id: self.list_transactions(inst.id) for inst in installments}

    # -- unit of work ---------------------------------------------------------

    @abstractmethod
    def commit(self) -> None: ...

    @abstractmethod
    def rollback(self) -> None: ...

    @contextmanager
    def transaction(self) -> Generator[LeaseRepository, None, None]:
        """
        Transactional scope: commit on normal exit, rollback and re-raise
        on any exception.
        """
        try:
            yield self
            self.commit()
        except Exception:
            self.rollback()
            raise


class SqlAlchemyLeaseRepository(LeaseRepository):
    """
    ``LeaseRepository`` over a SQLAlchemy session.

    Guarantees:
        - Never commits outside ``commit()`` / ``transaction()``.
        - Row locks are real on PostgreSQL and a no-op on SQLite; the
          version check holds on both.
    """

    def __init__(self, session: Session):
        self.session = session

    # -- leases ---------------------------------------------------------------

    def _lease_row(self, lease_id: UUID, lock: bool = False) -> LeaseModel:
        stmt = select(LeaseModel).where(LeaseModel.id == lease_id)
        if lock:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        row = self.session.execute(stmt).scalar_one_or_none()
        if row is None:
            raise LeaseNotFoundError(str(lease_id))
        return row

    def get_lease(self, lease_id: UUID) -> Lease:
        return self._lease_row(lease_id).to_dto()

    def lock_lease(self, lease_id: UUID) -> Lease:
        return self._lease_row(lease_id, lock=True).to_dto()

    def add_lease(self, lease: Lease) -> None:
        self.session.add(LeaseModel.from_dto(lease))
        self.session.flush()

    def save_lease(self, lease: Lease) -> None:
        row = self._lease_row(lease.id)
        row.status = lease.status.value
        row.end_date = lease.end_date
        row.predecessor_lease_id = lease.predecessor_lease_id
        row.successor_lease_id = lease.successor_lease_id
        row.renewal_increase_percentage = lease.renewal_increase_percentage
        row.tenant_since = lease.tenant_since
        self.session.flush()

    # -- installments ---------------------------------------------------------

    def _installment_row(self, installment_id: UUID, lock: bool = False) -> InstallmentModel:
        stmt = select(InstallmentModel).where(InstallmentModel.id == installment_id)
        if lock:
            stmt = stmt.with_for_update()
        row = self.session.execute(
            stmt.execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if row is None:
            raise InstallmentNotFoundError(str(installment_id))
        return row

    def get_installment(self, installment_id: UUID) -> Installment:
        return self._installment_row(installment_id).to_dto()

    def lock_installment(self, installment_id: UUID) -> Installment:
        return self._installment_row(installment_id, lock=True).to_dto()

    def list_installments(self, lease_id: UUID) -> tuple[Installment, ...]:
        rows = self.session.execute(
            select(InstallmentModel)
            .where(InstallmentModel.lease_id == lease_id)
            .order_by(InstallmentModel.due_date, InstallmentModel.sequence)
            .execution_options(populate_existing=True)
        ).scalars().all()
        return tuple(row.to_dto() for row in rows)

    def add_installments(self, installments: Iterable[Installment]) -> None:
        self.session.add_all(InstallmentModel.from_dto(i) for i in installments)
        self.session.flush()

    def update_installment(
        self, installment: Installment, expected_version: int,
    ) -> Installment:
        new_version = expected_version + 1
        # Bypasses the identity map; installment reads use populate_existing.
        result = self.session.execute(
            update(InstallmentModel)
            .where(
                InstallmentModel.id == installment.id,
                InstallmentModel.version == expected_version,
            )
            .values(
                lease_id=installment.lease_id,
                description=installment.description,
                extension_requested=installment.extension_requested,
                requested_due_date=installment.requested_due_date,
                extension_status=installment.extension_status.value,
                extension_reason=installment.extension_reason,
                manager_notes=installment.manager_notes,
                version=new_version,
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            logger.warning("installment_version_conflict", extra={
                "installment_id": str(installment.id),
                "expected_version": expected_version,
            })
            raise ConcurrencyConflictError(
                "Installment", str(installment.id), expected_version,
            )
        return replace(installment, version=new_version)

    # -- transactions ---------------------------------------------------------

    def append_transaction(self, transaction: Transaction) -> None:
        self.session.add(TransactionModel.from_dto(transaction))
        self.session.flush()

    def list_transactions(self, installment_id: UUID) -> tuple[Transaction, ...]:
        rows = self.session.execute(
            select(TransactionModel)
            .where(TransactionModel.installment_id == installment_id)
            .order_by(TransactionModel.payment_date, TransactionModel.created_at)
        ).scalars().all()
        return tuple(row.to_dto() for row in rows)

    # -- unit of work ---------------------------------------------------------

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()
