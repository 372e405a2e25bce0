"""
Installment Scheduler - split a lease's contracted totals into installments.

Pure functions with no I/O.  The schedule always reconciles to the cent:

    sum(slot.amount)     == total_lease_amount
    sum(slot.tax_amount) == tax_on(taxed_amount, tax_rate)

Usage:
    from datetime import date
    from decimal import Decimal
    from estate_engines.scheduler import RemainderSlot, schedule_installments

    slots = schedule_installments(
        total_lease_amount=Decimal("12000"),
        taxed_amount=Decimal("10000"),
        number_of_payments=12,
        start_date=date(2024, 1, 1),
        end_date=date(2024, 12, 31),
        tax_rate=Decimal("0.05"),
    )
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal
from enum import Enum

from estate_engines.tax import split_tax, tax_on
from estate_kernel.domain.money import floor_money, to_decimal
from estate_kernel.exceptions import InvalidScheduleError
from estate_kernel.logging_config import get_logger

logger = get_logger("engines.scheduler")

ZERO = Decimal("0")


class RemainderSlot(str, Enum):
    """Which installment absorbs the rounding remainder."""

    FIRST = "first"  # renewals
    LAST = "last"  # fresh leases


@dataclass(frozen=True)
class ScheduledInstallment:
    """One slot of a generated payment plan."""

    sequence: int  # 1-based position in the plan
    due_date: date
    amount: Decimal  # pre-tax base
    taxed_base: Decimal  # portion of ``amount`` subject to VAT
    tax_amount: Decimal
    total_amount: Decimal
    description: str


def _validate(
    total: Decimal,
    taxed: Decimal,
    number_of_payments: int,
    start_date: date,
    end_date: date,
    tax_rate: Decimal,
) -> None:
    if isinstance(number_of_payments, bool) or not isinstance(number_of_payments, int):
        raise InvalidScheduleError("number of payments must be an integer", field="number_of_payments")
    if number_of_payments < 1:
        raise InvalidScheduleError(
            f"number of payments must be at least 1, got {number_of_payments}",
            field="number_of_payments",
        )
    if total < ZERO:
        raise InvalidScheduleError("total lease amount cannot be negative", field="total_lease_amount")
    if taxed < ZERO:
        raise InvalidScheduleError("taxed amount cannot be negative", field="taxed_amount")
    if taxed > total:
        raise InvalidScheduleError(
            f"taxed amount {taxed} exceeds total lease amount {total}",
            field="taxed_amount",
        )
    if tax_rate < ZERO:
        raise InvalidScheduleError("tax rate cannot be negative", field="tax_rate")
    if end_date < start_date:
        raise InvalidScheduleError(
            f"end date {end_date} is before start date {start_date}",
            field="end_date",
        )


def split_evenly(amount: Decimal, parts: int, remainder: RemainderSlot) -> list[Decimal]:
    """
    Split ``amount`` into ``parts`` cent-floored slices.

    Every slice is ``floor(amount / parts, 2)`` except the remainder slot,
    which receives whatever makes the slices sum exactly to ``amount``.
    """
    per_slot = floor_money(amount / parts)
    rest = amount - per_slot * (parts - 1)
    slices = [per_slot] * parts
    slices[0 if remainder is RemainderSlot.FIRST else -1] = rest
    return slices


def _distribute_taxes(
    taxed_slices: list[Decimal],
    tax_rate: Decimal,
    total_tax: Decimal,
    remainder: RemainderSlot,
) -> list[Decimal]:
    """Per-slot tax via the tax calculator, with the residue on the remainder slot."""
    taxes = [split_tax(base, tax_rate).tax_amount for base in taxed_slices]
    residue = total_tax - sum(taxes, ZERO)
    order = list(range(len(taxes)))
    if remainder is RemainderSlot.LAST:
        order.reverse()

    if residue >= ZERO:
        taxes[order[0]] += residue
        return taxes

    # Per-slot rounding overshot the lease-level tax: take cents back,
    # remainder slot first, never below zero.
    owed = -residue
    for idx in order:
        if owed <= ZERO:
            break
        take = min(taxes[idx], owed)
        taxes[idx] -= take
        owed -= take
    return taxes


def due_dates(start_date: date, end_date: date, number_of_payments: int) -> list[date]:
    """Evenly spaced due dates, truncated to whole days; the first is start_date."""
    span_days = (end_date - start_date).days
    return [
        start_date + timedelta(days=(i * span_days) // number_of_payments)
        for i in range(number_of_payments)
    ]


def schedule_installments(
    *,
    total_lease_amount: Decimal,
    number_of_payments: int,
    start_date: date,
    end_date: date,
    taxed_amount: Decimal | None = None,
    tax_rate: Decimal = ZERO,
    remainder: RemainderSlot = RemainderSlot.LAST,
    description_template: str = "Rent Installment {number} of {count}",
) -> tuple[ScheduledInstallment, ...]:
    """
    Produce the ordered payment plan for a lease.

    Args:
        total_lease_amount: Contracted pre-tax total.
        number_of_payments: Number of installments (>= 1).
        start_date: First due date.
        end_date: Lease end; due dates are spread over [start, end).
        taxed_amount: Part of the total subject to VAT (default 0).
        tax_rate: VAT rate as a decimal fraction (0.05 for 5%).
        remainder: Slot that absorbs the cent remainder.
        description_template: ``str.format`` template with ``number`` and ``count``.

    Raises:
        InvalidScheduleError: On invalid terms.
    """
    total = to_decimal(total_lease_amount)
    taxed = to_decimal(taxed_amount) if taxed_amount is not None else ZERO
    rate = to_decimal(tax_rate)
    _validate(total, taxed, number_of_payments, start_date, end_date, rate)

    amounts = split_evenly(total, number_of_payments, remainder)
    taxed_slices = split_evenly(taxed, number_of_payments, remainder)
    taxes = _distribute_taxes(taxed_slices, rate, tax_on(taxed, rate), remainder)
    dates = due_dates(start_date, end_date, number_of_payments)

    plan = tuple(
        ScheduledInstallment(
            sequence=i + 1,
            due_date=dates[i],
            amount=amounts[i],
            taxed_base=taxed_slices[i],
            tax_amount=taxes[i],
            total_amount=amounts[i] + taxes[i],
            description=description_template.format(number=i + 1, count=number_of_payments),
        )
        for i in range(number_of_payments)
    )

    logger.info("installments_scheduled", extra={
        "total_lease_amount": str(total),
        "taxed_amount": str(taxed),
        "number_of_payments": number_of_payments,
        "remainder_slot": remainder.value,
        "first_due_date": dates[0],
    })
    return plan
