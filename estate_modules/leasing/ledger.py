"""
Payment Ledger (``estate_modules.leasing.ledger``).

Responsibility
--------------
Validates and builds immutable payment transactions against an installment
and derives the installment's live status from its transaction history.

Architecture position
---------------------
**Modules layer** -- pure domain logic, ZERO I/O.  Persistence, row locking
and the transaction boundary belong to ``LeaseLifecycleService``.

Invariants enforced
-------------------
* ``paid_amount <= total_amount`` -- a payment may never exceed the
  remaining balance, so the balance is never negative.
* Transactions are never mutated; corrections are new transactions.
* Status is derived on every call and never read back from storage.

Failure modes
-------------
* ``InvalidAmountError`` -- amount_paid <= 0.
* ``OverpaymentError``   -- amount_paid > remaining balance.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Iterable, Sequence
from uuid import UUID, uuid4

from estate_engines.installment_status import InstallmentView, compute_status
from estate_kernel.domain.money import to_decimal
from estate_kernel.exceptions import InvalidAmountError, OverpaymentError
from estate_kernel.logging_config import get_logger
from estate_modules.leasing.models import Installment, Transaction

logger = get_logger("modules.leasing.ledger")

ZERO = Decimal("0")


def _own_transactions(
    installment: Installment,
    transactions: Iterable[Transaction],
) -> list[Transaction]:
    own = list(transactions)
    for t in own:
        if t.installment_id != installment.id:
            raise ValueError(
                f"Transaction {t.id} belongs to installment {t.installment_id}, "
                f"not {installment.id}"
            )
    return own


def paid_amount(transactions: Iterable[Transaction]) -> Decimal:
    """Sum of ``amount_paid`` over the given transactions."""
    return sum((t.amount_paid for t in transactions), ZERO)


def derive_status(
    installment: Installment,
    transactions: Iterable[Transaction],
    as_of: date,
) -> InstallmentView:
    """
    Derive status, paid amount, balance and progress for an installment.

    Uses the installment's effective due date (the requested date once an
    extension is approved).
    """
    own = _own_transactions(installment, transactions)
    return compute_status(
        total_amount=installment.total_amount,
        effective_due_date=installment.effective_due_date,
        amounts_paid=(t.amount_paid for t in own),
        as_of=as_of,
    )


def record_payment(
    installment: Installment,
    transactions: Sequence[Transaction],
    amount_paid: Decimal,
    payment_date: date,
    payment_method: str | None = None,
    notes: str | None = None,
    document_url: str | None = None,
    transaction_id: UUID | None = None,
) -> Transaction:
    """
    Build a new payment transaction after checking it against the balance.

    The installment itself is not modified; the caller appends the returned
    transaction to its store.

    Raises:
        InvalidAmountError: If amount_paid <= 0.
        OverpaymentError: If amount_paid exceeds the remaining balance.
    """
    amount = to_decimal(amount_paid)
    own = _own_transactions(installment, transactions)

    if amount <= ZERO:
        raise InvalidAmountError(str(installment.id), amount)

    balance = installment.total_amount - paid_amount(own)
    if amount > balance:
        logger.warning("payment_rejected_overpayment", extra={
            "installment_id": str(installment.id),
            "amount_paid": str(amount),
            "balance": str(balance),
        })
        raise OverpaymentError(str(installment.id), amount, balance)

    transaction = Transaction(
        id=transaction_id or uuid4(),
        installment_id=installment.id,
        amount_paid=amount,
        payment_date=payment_date,
        payment_method=payment_method,
        notes=notes,
        document_url=document_url,
    )
    logger.info("payment_accepted", extra={
        "installment_id": str(installment.id),
        "transaction_id": str(transaction.id),
        "amount_paid": str(amount),
        "balance_after": str(balance - amount),
    })
    return transaction
