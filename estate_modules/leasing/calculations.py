"""
Leasing Pure Calculation Functions.

Domain math the engines don't cover:
- Turning a scheduler plan into lease installments
- Renewal terms from an increase percentage
- Lease-level roll-ups (totals, next due installment)
"""

from collections import Counter
from datetime import date
from decimal import Decimal
from typing import Sequence
from uuid import UUID, uuid4

from estate_engines.installment_status import InstallmentStatus, InstallmentView
from estate_engines.scheduler import RemainderSlot, schedule_installments
from estate_kernel.domain.money import round_money, to_decimal
from estate_modules.leasing.config import LeasingConfig
from estate_modules.leasing.models import (
    ExtensionStatus,
    Installment,
    Lease,
    LeaseSummary,
    LeaseTerms,
)

ZERO = Decimal("0")
HUNDRED = Decimal("100")


def resolve_tax_rate(terms: LeaseTerms, config: LeasingConfig) -> Decimal:
    """Tax rate from the terms, falling back to the configured default."""
    if terms.tax_rate is None:
        return config.default_tax_rate
    return to_decimal(terms.tax_rate)


def build_installments(
    lease_id: UUID,
    terms: LeaseTerms,
    config: LeasingConfig,
    remainder: RemainderSlot,
) -> tuple[Installment, ...]:
    """
    Schedule ``terms`` and wrap each slot as an installment of ``lease_id``.

    Raises:
        InvalidScheduleError: On invalid terms.
    """
    plan = schedule_installments(
        total_lease_amount=terms.total_lease_amount,
        number_of_payments=terms.number_of_payments,
        start_date=terms.start_date,
        end_date=terms.end_date,
        taxed_amount=terms.taxed_amount,
        tax_rate=resolve_tax_rate(terms, config),
        remainder=remainder,
        description_template=config.installment_description,
    )
    return tuple(
        Installment(
            id=uuid4(),
            lease_id=lease_id,
            due_date=slot.due_date,
            amount=slot.amount,
            tax_amount=slot.tax_amount,
            total_amount=slot.total_amount,
            description=slot.description,
            sequence=slot.sequence,
            extension_status=ExtensionStatus.NONE,
        )
        for slot in plan
    )


def compute_renewal_terms(
    old_lease: Lease,
    increase_percentage: Decimal,
    new_start: date,
    new_end: date,
    number_of_payments: int,
) -> LeaseTerms:
    """
    Terms for a renewal with the rent raised by ``increase_percentage``.

    The taxed amount scales by the same factor and is capped at the new total.
    """
    pct = to_decimal(increase_percentage)
    factor = (HUNDRED + pct) / HUNDRED
    new_total = round_money(old_lease.total_lease_amount * factor)
    new_taxed = min(round_money(old_lease.taxed_amount * factor), new_total)
    rent = (
        round_money(old_lease.rent_payment_amount * factor)
        if old_lease.rent_payment_amount is not None
        else None
    )
    return LeaseTerms(
        total_lease_amount=new_total,
        number_of_payments=number_of_payments,
        start_date=new_start,
        end_date=new_end,
        taxed_amount=new_taxed,
        tax_rate=old_lease.tax_rate,
        renewal_increase_percentage=pct,
        rent_payment_amount=rent,
    )


def next_due(
    views: Sequence[tuple[Installment, InstallmentView]],
) -> Installment | None:
    """Earliest non-paid installment by effective due date, then sequence."""
    open_items = [
        (view.effective_due_date, inst.sequence, inst)
        for inst, view in views
        if not view.is_settled
    ]
    if not open_items:
        return None
    return min(open_items, key=lambda item: (item[0], item[1]))[2]


def summarize_lease(
    lease: Lease,
    views: Sequence[tuple[Installment, InstallmentView]],
) -> LeaseSummary:
    """Totals, per-status counts and next due date for a lease's installments."""
    total_due = sum((inst.total_amount for inst, _ in views), ZERO)
    total_paid = sum((view.paid_amount for _, view in views), ZERO)
    counts: Counter = Counter(view.status for _, view in views)
    upcoming = next_due(views)
    return LeaseSummary(
        lease_id=lease.id,
        status=lease.status,
        installment_count=len(views),
        total_due=total_due,
        total_paid=total_paid,
        outstanding=total_due - total_paid,
        status_counts={s: counts.get(s, 0) for s in InstallmentStatus},
        next_due_date=upcoming.effective_due_date if upcoming is not None else None,
        pending_extension_count=sum(
            1 for inst, _ in views if inst.extension_status is ExtensionStatus.PENDING
        ),
    )
