"""
Installment Status Engine - derive live payment status from transactions.

Pure functions with no I/O.  Status is NEVER stored: every read re-derives
it from the transaction history so that displayed state cannot drift from
the ledger.

Precedence (first match wins):
    1. OVERDUE        -- nothing paid, effective due date passed, balance > 0
    2. PAID           -- paid >= total
    3. PARTIALLY_PAID -- paid > 0
    4. PENDING
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Iterable

from estate_kernel.domain.money import round_money, to_decimal

ZERO = Decimal("0")
HUNDRED = Decimal("100")


class InstallmentStatus(str, Enum):
    """Derived payment status of an installment."""

    PENDING = "Pending"
    PARTIALLY_PAID = "Partially Paid"
    PAID = "Paid"
    OVERDUE = "Overdue"


@dataclass(frozen=True)
class InstallmentView:
    """Read model for one installment, derived as of a given date."""

    status: InstallmentStatus
    paid_amount: Decimal
    balance: Decimal
    progress_percent: Decimal
    effective_due_date: date

    @property
    def is_settled(self) -> bool:
        return self.status is InstallmentStatus.PAID


def progress_percent(paid_amount: Decimal, total_amount: Decimal) -> Decimal:
    """Paid share of the total as a percentage clamped to [0, 100]; 0 when total is 0."""
    if total_amount <= ZERO:
        return round_money(ZERO)
    pct = paid_amount / total_amount * HUNDRED
    return round_money(min(max(pct, ZERO), HUNDRED))


def compute_status(
    total_amount: Decimal,
    effective_due_date: date,
    amounts_paid: Iterable[Decimal],
    as_of: date,
) -> InstallmentView:
    """
    Derive status, paid amount, balance and progress for one installment.

    Args:
        total_amount: Tax-inclusive amount due.
        effective_due_date: Due date after any approved extension.
        amounts_paid: Amounts of every recorded transaction.
        as_of: Reference date for overdue checks.
    """
    total = to_decimal(total_amount)
    paid = sum((to_decimal(a) for a in amounts_paid), ZERO)
    balance = total - paid

    if paid == ZERO and effective_due_date < as_of and balance > ZERO:
        status = InstallmentStatus.OVERDUE
    elif paid >= total:
        status = InstallmentStatus.PAID
    elif paid > ZERO:
        status = InstallmentStatus.PARTIALLY_PAID
    else:
        status = InstallmentStatus.PENDING

    return InstallmentView(
        status=status,
        paid_amount=paid,
        balance=balance,
        progress_percent=progress_percent(paid, total),
        effective_due_date=effective_due_date,
    )
