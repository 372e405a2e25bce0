"""Lease status transitions checked against ``LEASE_LIFECYCLE_WORKFLOW``."""

from dataclasses import replace

from estate_kernel.exceptions import InvalidLeaseTransitionError
from estate_kernel.logging_config import get_logger
from estate_modules.leasing.models import Lease, LeaseStatus
from estate_modules.leasing.workflows import LEASE_LIFECYCLE_WORKFLOW

logger = get_logger("modules.leasing.lifecycle")


def completion_status(has_outstanding: bool) -> LeaseStatus:
    """Closing status for a lease whose tenancy ends with or without dues."""
    return LeaseStatus.COMPLETED_WITH_DUES if has_outstanding else LeaseStatus.COMPLETED


def transition_lease(lease: Lease, to_status: LeaseStatus, **changes) -> Lease:
    """
    Move a lease to ``to_status``, applying any extra field ``changes``.

    Raises:
        InvalidLeaseTransitionError: If the workflow has no such transition.
    """
    if not LEASE_LIFECYCLE_WORKFLOW.can_transition(lease.status.value, to_status.value):
        raise InvalidLeaseTransitionError(
            str(lease.id), lease.status.value, to_status.value,
        )
    logger.debug("lease_transition_checked", extra={
        "lease_id": str(lease.id),
        "from_status": lease.status.value,
        "to_status": to_status.value,
    })
    return replace(lease, status=to_status, **changes)
