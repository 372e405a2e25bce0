"""
Lease Lifecycle Service (``estate_modules.leasing.service``).

Responsibility
--------------
Orchestrates the lease and payment lifecycle -- lease creation and
scheduling, payment recording, due-date extensions, renewal, closure and
expiry -- by delegating pure logic to the ledger, extension, renewal and
calculation components and persistence to a ``LeaseRepository``.

Architecture position
---------------------
**Modules layer** -- thin glue.  ``LeaseLifecycleService`` is the sole
public entry point for leasing operations.

Invariants enforced
-------------------
* Each public write method owns the transaction boundary (``commit`` on
  success, ``rollback`` and re-raise on any exception).  A rejected
  operation leaves no trace in storage.
* Payments lock the installment row and bump its version, so two
  concurrent payments cannot both pass the balance check.
* Extension writes and renewal reassignments are version-checked.
* Installment status is derived on every read, never stored.
* All monetary calculations use ``Decimal`` -- NEVER ``float``.

Failure modes
-------------
* Domain rule violations -> typed ``EstateKernelError`` subclasses from
  the component that detected them; session rolled back.
* Lost version race (compare-and-swap on ``version`` matched no row) ->
  ``ConcurrencyConflictError`` (retryable).
"""

from __future__ import annotations

from contextlib import contextmanager
from datetime import date
from decimal import Decimal
from typing import Generator
from uuid import UUID, uuid4

from sqlalchemy.orm import Session

from estate_engines.installment_status import InstallmentView
from estate_engines.scheduler import RemainderSlot
from estate_engines.tax import PaymentTaxBreakdown, output_vat_for_payment
from estate_kernel.domain.clock import Clock, SystemClock
from estate_kernel.exceptions import (
    ConcurrencyConflictError,
    InvalidLeaseTransitionError,
)
from estate_kernel.logging_config import LogContext, get_logger
from estate_modules.leasing import extensions, ledger
from estate_modules.leasing.calculations import (
    build_installments,
    next_due,
    resolve_tax_rate,
    summarize_lease,
)
from estate_modules.leasing.config import LeasingConfig
from estate_modules.leasing.lifecycle import completion_status, transition_lease
from estate_modules.leasing.models import (
    ExtensionDecision,
    ExtensionStatus,
    Installment,
    InstallmentWithView,
    Lease,
    LeaseStatus,
    LeaseSummary,
    LeaseTerms,
    RenewalResult,
    Transaction,
)
from estate_modules.leasing.renewal import plan_renewal
from estate_modules.leasing.repository import LeaseRepository, SqlAlchemyLeaseRepository

logger = get_logger("modules.leasing.service")


class LeaseLifecycleService:
    """
    Orchestrates the lease and payment lifecycle through pure components
    and the repository.

    Guarantees
    ----------
    * Session is committed only when the whole operation succeeded.
    * Clock is injectable for deterministic testing.

    Non-goals
    ---------
    * Does NOT render receipts, send notifications or manage units and
      tenants; unit and tenant ids are opaque references.
    """

    def __init__(
        self,
        session: Session | None = None,
        clock: Clock | None = None,
        config: LeasingConfig | None = None,
        repository: LeaseRepository | None = None,
    ):
        if repository is None:
            if session is None:
                raise ValueError("Either a session or a repository is required")
            repository = SqlAlchemyLeaseRepository(session)
        self._repository = repository
        self._clock = clock or SystemClock()
        self._config = config or LeasingConfig.with_defaults()

    @property
    def repository(self) -> LeaseRepository:
        return self._repository

    @contextmanager
    def _unit_of_work(self, operation: str) -> Generator[LeaseRepository, None, None]:
        logger.debug("operation_started", extra={"operation": operation})
        try:
            with self._repository.transaction() as repo:
                yield repo
        except Exception as exc:
            logger.info("operation_rolled_back", extra={
                "operation": operation,
                "error_code": getattr(exc, "code", type(exc).__name__),
            })
            raise

    def _views(
        self, installments: tuple[Installment, ...], as_of: date,
    ) -> list[tuple[Installment, InstallmentView]]:
        txs = self._repository.transactions_for(installments)
        return [
            (inst, ledger.derive_status(inst, txs[inst.id], as_of))
            for inst in installments
        ]

    # =========================================================================
    # Scheduling
    # =========================================================================

    def schedule_lease(
        self,
        terms: LeaseTerms,
        lease_id: UUID | None = None,
        remainder: RemainderSlot | None = None,
    ) -> tuple[Installment, ...]:
        """
        Generate the installment plan for ``terms``.

        Pure calculation -- nothing is persisted.
        """
        return build_installments(
            lease_id or uuid4(),
            terms,
            self._config,
            remainder or self._config.fresh_remainder_slot,
        )

    def create_lease(
        self,
        unit_id: UUID,
        tenant_id: UUID,
        terms: LeaseTerms,
    ) -> tuple[Lease, tuple[Installment, ...]]:
        """Assign a tenant to a unit: persist an Active lease and its schedule."""
        lease_id = uuid4()
        installments = self.schedule_lease(terms, lease_id=lease_id)
        lease = Lease(
            id=lease_id,
            unit_id=unit_id,
            tenant_id=tenant_id,
            start_date=terms.start_date,
            end_date=terms.end_date,
            total_lease_amount=terms.total_lease_amount,
            number_of_payments=terms.number_of_payments,
            status=LeaseStatus.ACTIVE,
            taxed_amount=terms.taxed_amount,
            tax_rate=resolve_tax_rate(terms, self._config),
            renewal_increase_percentage=terms.renewal_increase_percentage,
            rent_payment_amount=terms.rent_payment_amount,
            tenant_since=terms.start_date,
        )
        with LogContext.bind(lease_id=lease_id), self._unit_of_work("create_lease") as repo:
            repo.add_lease(lease)
            repo.add_installments(installments)
            logger.info("lease_created", extra={
                "unit_id": str(unit_id),
                "tenant_id": str(tenant_id),
                "total_lease_amount": str(lease.total_lease_amount),
                "number_of_payments": lease.number_of_payments,
            })
        return lease, installments

    # =========================================================================
    # Payments
    # =========================================================================

    def record_payment(
        self,
        installment_id: UUID,
        amount_paid: Decimal,
        payment_date: date | None = None,
        payment_method: str | None = None,
        notes: str | None = None,
        document_url: str | None = None,
    ) -> Transaction:
        """
        Record a payment against an installment.

        Raises:
            InstallmentNotFoundError: Unknown installment.
            InvalidAmountError: amount_paid <= 0.
            OverpaymentError: amount_paid exceeds the remaining balance.
        """
        with LogContext.bind(installment_id=installment_id), \
                self._unit_of_work("record_payment") as repo:
            installment = repo.lock_installment(installment_id)
            existing = repo.list_transactions(installment_id)
            transaction = ledger.record_payment(
                installment,
                existing,
                amount_paid,
                payment_date or self._clock.today(),
                payment_method=payment_method,
                notes=notes,
                document_url=document_url,
            )
            repo.append_transaction(transaction)
            repo.update_installment(installment, installment.version)
            logger.info("payment_recorded", extra={
                "lease_id": str(installment.lease_id),
                "transaction_id": str(transaction.id),
                "amount_paid": str(transaction.amount_paid),
                "payment_date": transaction.payment_date,
                "payment_method": payment_method,
            })
        return transaction

    def get_installment_view(
        self, installment_id: UUID, as_of: date | None = None,
    ) -> InstallmentView:
        """Derived status, paid amount, balance and progress of one installment."""
        installment = self._repository.get_installment(installment_id)
        return ledger.derive_status(
            installment,
            self._repository.list_transactions(installment_id),
            as_of or self._clock.today(),
        )

    def list_installment_views(
        self, lease_id: UUID, as_of: date | None = None,
    ) -> tuple[InstallmentWithView, ...]:
        """Every installment of a lease with its derived view, in due order."""
        self._repository.get_lease(lease_id)
        views = self._views(
            self._repository.list_installments(lease_id), as_of or self._clock.today(),
        )
        return tuple(InstallmentWithView(inst, view) for inst, view in views)

    def payment_tax_breakdown(
        self, lease_id: UUID,
    ) -> tuple[tuple[Transaction, PaymentTaxBreakdown], ...]:
        """Output VAT carried by each payment on the lease's installments."""
        lease = self._repository.get_lease(lease_id)
        rows = []
        for inst in self._repository.list_installments(lease_id):
            paid_before = Decimal("0")
            for tx in self._repository.list_transactions(inst.id):
                rows.append((tx, output_vat_for_payment(
                    tx.amount_paid,
                    inst.total_amount,
                    inst.tax_amount,
                    taxed_amount=lease.taxed_amount,
                    total_lease_amount=lease.total_lease_amount,
                    previously_paid=paid_before,
                )))
                paid_before += tx.amount_paid
        rows.sort(key=lambda row: row[0].payment_date)
        return tuple(rows)

    # =========================================================================
    # Extensions
    # =========================================================================

    @staticmethod
    def _check_version(installment: Installment, expected_version: int | None) -> None:
        if expected_version is not None and installment.version != expected_version:
            raise ConcurrencyConflictError(
                "Installment", str(installment.id), expected_version,
            )

    def request_extension(
        self,
        installment_id: UUID,
        requested_due_date: date,
        reason: str | None = None,
        expected_version: int | None = None,
    ) -> Installment:
        """
        Tenant asks to move an installment's due date.

        Raises:
            InvalidExtensionError: Wrong state, already paid, or past date.
            ConcurrencyConflictError: The installment changed since the
                caller read ``expected_version``.
        """
        with LogContext.bind(installment_id=installment_id), \
                self._unit_of_work("request_extension") as repo:
            installment = repo.get_installment(installment_id)
            self._check_version(installment, expected_version)
            updated = extensions.request_extension(
                installment,
                repo.list_transactions(installment_id),
                requested_due_date,
                reason,
                self._clock.today(),
            )
            saved = repo.update_installment(updated, installment.version)
            logger.info("extension_requested", extra={
                "lease_id": str(installment.lease_id),
                "requested_due_date": requested_due_date,
                "version": saved.version,
            })
        return saved

    def decide_extension(
        self,
        installment_id: UUID,
        decision: ExtensionDecision,
        manager_notes: str | None = None,
        expected_version: int | None = None,
    ) -> Installment:
        """
        Manager approves or rejects a pending extension.

        Raises:
            InvalidExtensionError: Nothing pending, or rejection without notes.
            ConcurrencyConflictError: The installment changed since the
                caller read ``expected_version``.
        """
        with LogContext.bind(installment_id=installment_id), \
                self._unit_of_work("decide_extension") as repo:
            installment = repo.get_installment(installment_id)
            self._check_version(installment, expected_version)
            updated = extensions.decide_extension(installment, decision, manager_notes)
            saved = repo.update_installment(updated, installment.version)
            logger.info("extension_decided", extra={
                "lease_id": str(installment.lease_id),
                "decision": ExtensionDecision(decision).value,
                "effective_due_date": saved.effective_due_date,
                "version": saved.version,
            })
        return saved

    def pending_extensions(self, lease_id: UUID) -> tuple[Installment, ...]:
        """Installments of a lease awaiting a manager decision."""
        self._repository.get_lease(lease_id)
        return tuple(
            inst for inst in self._repository.list_installments(lease_id)
            if inst.extension_status is ExtensionStatus.PENDING
        )

    # =========================================================================
    # Lease lifecycle
    # =========================================================================

    def renew_lease(self, old_lease_id: UUID, new_terms: LeaseTerms) -> RenewalResult:
        """
        Close a lease and open its successor, carrying unpaid installments.

        All or nothing: any failure rolls back every change.

        Raises:
            LeaseNotFoundError: Unknown lease.
            RenewalError: Lease not Active or invalid new terms.
            ConcurrencyConflictError: An installment changed mid-renewal.
        """
        with LogContext.bind(lease_id=old_lease_id), \
                self._unit_of_work("renew_lease") as repo:
            old_lease = repo.lock_lease(old_lease_id)
            installments = repo.list_installments(old_lease_id)
            plan = plan_renewal(
                old_lease,
                installments,
                repo.transactions_for(installments),
                new_terms,
                as_of=self._clock.today(),
                config=self._config,
            )
            repo.add_lease(plan.new_lease)
            repo.save_lease(plan.closed_lease)
            reassigned = tuple(
                repo.reassign_installment(inst, inst.version) for inst in plan.reassigned
            )
            repo.add_installments(plan.new_installments)
            result = RenewalResult(
                closed_lease=plan.closed_lease,
                new_lease=plan.new_lease,
                reassigned=reassigned,
                new_installments=plan.new_installments,
            )
            logger.info("lease_renewed", extra={
                "new_lease_id": str(result.new_lease.id),
                "closed_status": result.closed_lease.status.value,
                "reassigned_count": len(reassigned),
                "carried_forward_total": str(result.carried_forward_total),
                "new_total_lease_amount": str(result.new_lease.total_lease_amount),
            })
        return result

    def close_lease(self, lease_id: UUID) -> Lease:
        """
        End a tenancy without renewal (tenant removed from the unit).

        The lease becomes Completed, or Completed with Dues when any
        installment is not fully paid.
        """
        with LogContext.bind(lease_id=lease_id), self._unit_of_work("close_lease") as repo:
            lease = repo.lock_lease(lease_id)
            views = self._views(repo.list_installments(lease_id), self._clock.today())
            has_outstanding = any(not view.is_settled for _, view in views)
            closed = transition_lease(lease, completion_status(has_outstanding))
            repo.save_lease(closed)
            logger.info("lease_closed", extra={
                "status": closed.status.value,
                "outstanding_count": sum(1 for _, view in views if not view.is_settled),
            })
        return closed

    def expire_lease(self, lease_id: UUID) -> Lease:
        """
        Mark an Active lease Expired once its end date has passed.

        Raises:
            InvalidLeaseTransitionError: Not Active, or end date not passed.
        """
        with LogContext.bind(lease_id=lease_id), self._unit_of_work("expire_lease") as repo:
            lease = repo.lock_lease(lease_id)
            if lease.end_date >= self._clock.today():
                raise InvalidLeaseTransitionError(
                    str(lease_id), lease.status.value, LeaseStatus.EXPIRED.value,
                )
            expired = transition_lease(lease, LeaseStatus.EXPIRED)
            repo.save_lease(expired)
            logger.info("lease_expired", extra={"end_date": lease.end_date})
        return expired

    # =========================================================================
    # Read models
    # =========================================================================

    def get_lease(self, lease_id: UUID) -> Lease:
        return self._repository.get_lease(lease_id)

    def get_lease_summary(self, lease_id: UUID, as_of: date | None = None) -> LeaseSummary:
        """Totals, per-status counts and next due date for a lease."""
        lease = self._repository.get_lease(lease_id)
        views = self._views(
            self._repository.list_installments(lease_id), as_of or self._clock.today(),
        )
        return summarize_lease(lease, views)

    def next_due_installment(
        self, lease_id: UUID, as_of: date | None = None,
    ) -> Installment | None:
        """Earliest installment that is not fully paid, by effective due date."""
        self._repository.get_lease(lease_id)
        views = self._views(
            self._repository.list_installments(lease_id), as_of or self._clock.today(),
        )
        return next_due(views)
