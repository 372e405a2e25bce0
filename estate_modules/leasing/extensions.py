"""
Extension Workflow (``estate_modules.leasing.extensions``).

Responsibility
--------------
Arbitrates tenant-requested due-date extensions on a single installment.
Every state change is looked up in ``EXTENSION_WORKFLOW``; an action with no
declared transition out of the current state is rejected.

Architecture position
---------------------
**Modules layer** -- pure domain logic, ZERO I/O.  Callers persist the
returned installment through the repository's version-checked update.

Invariants enforced
-------------------
* ``Approved`` is terminal.
* Approving moves the effective due date to ``requested_due_date``;
  the scheduled ``due_date`` is retained.
* Rejecting keeps ``requested_due_date`` for audit but it has no effect.
* Decisions never cascade to sibling installments or to the lease.

Failure modes
-------------
* ``InvalidExtensionError`` -- wrong extension state, installment already
  paid, requested date not after today, or rejection without notes.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import date
from typing import Iterable

from estate_engines.installment_status import InstallmentStatus
from estate_kernel.exceptions import InvalidExtensionError
from estate_kernel.logging_config import get_logger
from estate_modules.leasing.ledger import derive_status
from estate_modules.leasing.models import (
    ExtensionDecision,
    ExtensionStatus,
    Installment,
    Transaction,
)
from estate_modules.leasing.workflows import EXTENSION_WORKFLOW

logger = get_logger("modules.leasing.extensions")

_DECISION_ACTIONS = {
    ExtensionDecision.APPROVED: "approve",
    ExtensionDecision.REJECTED: "reject",
}


def _transition_or_raise(installment: Installment, action: str) -> ExtensionStatus:
    transition = EXTENSION_WORKFLOW.find_transition(
        installment.extension_status.value, action,
    )
    if transition is None:
        allowed = EXTENSION_WORKFLOW.allowed_actions(installment.extension_status.value)
        raise InvalidExtensionError(
            str(installment.id),
            f"cannot {action} while extension is {installment.extension_status.value} "
            f"(allowed: {', '.join(allowed) or 'none'})",
            extension_status=installment.extension_status.value,
            requested_due_date=installment.requested_due_date,
        )
    return ExtensionStatus(transition.to_state)


def request_extension(
    installment: Installment,
    transactions: Iterable[Transaction],
    requested_due_date: date,
    reason: str | None,
    today: date,
) -> Installment:
    """
    Submit (or resubmit after a rejection) a due-date extension request.

    Args:
        installment: Current installment state.
        transactions: Every transaction recorded against the installment.
        requested_due_date: New due date the tenant asks for.
        reason: Tenant's free-text reason.
        today: Clock date the request is evaluated against.

    Returns:
        The installment in ``Pending`` extension state.

    Raises:
        InvalidExtensionError: If the request is not allowed.
    """
    to_status = _transition_or_raise(installment, "request")

    view = derive_status(installment, transactions, today)
    if view.status is InstallmentStatus.PAID:
        raise InvalidExtensionError(
            str(installment.id),
            "installment is already paid",
            extension_status=installment.extension_status.value,
            requested_due_date=requested_due_date,
        )
    if requested_due_date <= today:
        raise InvalidExtensionError(
            str(installment.id),
            f"requested due date {requested_due_date.isoformat()} must be after "
            f"{today.isoformat()}",
            extension_status=installment.extension_status.value,
            requested_due_date=requested_due_date,
        )

    updated = replace(
        installment,
        extension_requested=True,
        requested_due_date=requested_due_date,
        extension_status=to_status,
        extension_reason=reason,
    )
    logger.info("extension_request_accepted", extra={
        "installment_id": str(installment.id),
        "from_status": installment.extension_status.value,
        "requested_due_date": requested_due_date.isoformat(),
        "scheduled_due_date": installment.due_date.isoformat(),
    })
    return updated


def decide_extension(
    installment: Installment,
    decision: ExtensionDecision,
    manager_notes: str | None = None,
) -> Installment:
    """
    Approve or reject a pending extension request.

    Raises:
        InvalidExtensionError: If the decision is neither Approved nor
            Rejected, no request is pending, or a rejection carries no
            manager notes.
    """
    try:
        decision = ExtensionDecision(decision)
    except ValueError as exc:
        raise InvalidExtensionError(
            str(installment.id),
            f"{decision!r} is not a decision; expected Approved or Rejected",
            extension_status=installment.extension_status.value,
            requested_due_date=installment.requested_due_date,
        ) from exc
    to_status = _transition_or_raise(installment, _DECISION_ACTIONS[decision])

    if decision is ExtensionDecision.REJECTED and not (manager_notes or "").strip():
        raise InvalidExtensionError(
            str(installment.id),
            "manager notes are required to reject an extension",
            extension_status=installment.extension_status.value,
            requested_due_date=installment.requested_due_date,
        )

    updated = replace(
        installment,
        extension_status=to_status,
        manager_notes=manager_notes,
    )
    logger.info("extension_decision_applied", extra={
        "installment_id": str(installment.id),
        "decision": decision.value,
        "effective_due_date": updated.effective_due_date.isoformat(),
    })
    return updated
