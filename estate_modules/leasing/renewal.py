"""
Renewal Engine (``estate_modules.leasing.renewal``).

Responsibility
--------------
Closes an active lease and opens its successor.  Every installment that is
not fully paid is carried into the new lease; paid installments stay behind
as history.

Architecture position
---------------------
**Modules layer** -- pure planning, ZERO I/O.  ``LeaseLifecycleService``
persists the plan inside a single transaction so a renewal is all or
nothing.

Invariants enforced
-------------------
* Money is preserved: outstanding balances before renewal equal the
  carried-forward balances after it.
* ``reassign`` is the only function that changes an installment's parent;
  transactions, extension state and manager notes travel unchanged.
* The old lease closes as ``Completed`` when nothing is outstanding,
  otherwise ``Completed with Dues``; predecessor and successor ids are
  linked both ways.
* The new schedule puts its rounding remainder in the FIRST slot.

Failure modes
-------------
* ``RenewalError`` -- old lease not active, fewer than one payment, or any
  other invalid new terms (chained from ``InvalidScheduleError``).
"""

from __future__ import annotations

import re
from dataclasses import replace
from datetime import date
from string import Formatter
from typing import Mapping, Sequence
from uuid import UUID, uuid4

from estate_engines.installment_status import InstallmentStatus
from estate_kernel.exceptions import InvalidScheduleError, RenewalError
from estate_kernel.logging_config import get_logger
from estate_modules.leasing.calculations import build_installments, resolve_tax_rate
from estate_modules.leasing.config import LeasingConfig
from estate_modules.leasing.ledger import derive_status
from estate_modules.leasing.lifecycle import completion_status, transition_lease
from estate_modules.leasing.models import (
    Installment,
    Lease,
    LeaseStatus,
    LeaseTerms,
    RenewalResult,
    Transaction,
)

logger = get_logger("modules.leasing.renewal")


def reassign(
    installment: Installment,
    new_lease_id: UUID,
    description: str | None = None,
) -> Installment:
    """Move an installment to another lease, optionally relabelling it."""
    return replace(
        installment,
        lease_id=new_lease_id,
        description=installment.description if description is None else description,
    )


def _label_pattern(template: str) -> re.Pattern[str]:
    """Regex matching any description rendered from an arrears ``template``."""
    parts = []
    for literal, field_name, _, _ in Formatter().parse(template):
        parts.append(re.escape(literal))
        if field_name == "year":
            parts.append(r"\d{4}")
        elif field_name is not None:
            parts.append(".*")
    return re.compile("".join(parts), re.DOTALL)


def is_arrears_labelled(description: str, config: LeasingConfig) -> bool:
    """True when ``description`` already carries an arrears label."""
    return any(
        _label_pattern(template).fullmatch(description)
        for template in (config.arrears_label, config.arrears_label_blank)
    )


def arrears_description(installment: Installment, old_lease: Lease, config: LeasingConfig) -> str:
    """
    Description for an installment carried forward from ``old_lease``.

    Installments already labelled by an earlier renewal keep their
    description, so the label names the lease the debt first fell due on.
    """
    description = installment.description.strip()
    if not config.label_carried_arrears or is_arrears_labelled(description, config):
        return installment.description
    year = old_lease.end_date.year
    if not description:
        return config.arrears_label_blank.format(year=year)
    return config.arrears_label.format(year=year, description=description)


def plan_renewal(
    old_lease: Lease,
    installments: Sequence[Installment],
    transactions_by_installment: Mapping[UUID, Sequence[Transaction]],
    new_terms: LeaseTerms,
    as_of: date,
    config: LeasingConfig | None = None,
    new_lease_id: UUID | None = None,
) -> RenewalResult:
    """
    Plan the renewal of ``old_lease`` under ``new_terms``.

    Args:
        old_lease: Lease being renewed; must be Active.
        installments: Every installment currently on ``old_lease``.
        transactions_by_installment: Transactions keyed by installment id.
        new_terms: Terms of the successor lease (amount already increased).
        as_of: Reference date for status derivation.
        config: Leasing configuration (defaults when omitted).
        new_lease_id: Id for the successor lease (generated when omitted).

    Raises:
        RenewalError: If the lease cannot be renewed under these terms.
    """
    config = config or LeasingConfig.with_defaults()

    if not old_lease.is_active:
        raise RenewalError(str(old_lease.id), f"lease is {old_lease.status.value}, not Active")
    if new_terms.number_of_payments < 1:
        raise RenewalError(
            str(old_lease.id),
            f"number of payments must be at least 1, got {new_terms.number_of_payments}",
        )

    new_id = new_lease_id or uuid4()
    try:
        new_installments = build_installments(
            new_id, new_terms, config, config.renewal_remainder_slot,
        )
    except InvalidScheduleError as exc:
        raise RenewalError(str(old_lease.id), exc.reason) from exc

    outstanding = [
        inst for inst in installments
        if derive_status(inst, transactions_by_installment.get(inst.id, ()), as_of).status
        is not InstallmentStatus.PAID
    ]

    closed = transition_lease(
        old_lease,
        completion_status(bool(outstanding)),
        successor_lease_id=new_id,
    )
    new_lease = Lease(
        id=new_id,
        unit_id=old_lease.unit_id,
        tenant_id=old_lease.tenant_id,
        start_date=new_terms.start_date,
        end_date=new_terms.end_date,
        total_lease_amount=new_terms.total_lease_amount,
        number_of_payments=new_terms.number_of_payments,
        status=LeaseStatus.ACTIVE,
        taxed_amount=new_terms.taxed_amount,
        tax_rate=resolve_tax_rate(new_terms, config),
        renewal_increase_percentage=new_terms.renewal_increase_percentage,
        rent_payment_amount=new_terms.rent_payment_amount,
        predecessor_lease_id=old_lease.id,
        tenant_since=old_lease.tenant_since or old_lease.start_date,
    )
    reassigned = tuple(
        reassign(inst, new_id, arrears_description(inst, old_lease, config))
        for inst in outstanding
    )

    logger.info("renewal_planned", extra={
        "old_lease_id": str(old_lease.id),
        "new_lease_id": str(new_id),
        "closed_status": closed.status.value,
        "reassigned_count": len(reassigned),
        "paid_count": len(installments) - len(reassigned),
        "new_installment_count": len(new_installments),
    })
    return RenewalResult(
        closed_lease=closed,
        new_lease=new_lease,
        reassigned=reassigned,
        new_installments=new_installments,
    )
