"""Leasing Workflows.

State machines for the lease lifecycle and installment due-date extensions.
"""

from estate_kernel.domain.workflow import Guard, Transition, Workflow
from estate_kernel.logging_config import get_logger
from estate_modules.leasing.models import ExtensionStatus, LeaseStatus

logger = get_logger("modules.leasing.workflows")


INSTALLMENT_NOT_PAID = Guard("installment_not_paid", "Installment is not fully paid")
REQUESTED_DATE_IN_FUTURE = Guard(
    "requested_date_in_future", "Requested due date is strictly after today"
)
REJECTION_HAS_NOTES = Guard("rejection_has_notes", "Manager notes explain the rejection")
NO_OUTSTANDING_DUES = Guard("no_outstanding_dues", "Every installment is paid")
HAS_OUTSTANDING_DUES = Guard("has_outstanding_dues", "At least one installment is unpaid")
END_DATE_PASSED = Guard("end_date_passed", "Lease end date is in the past")


EXTENSION_WORKFLOW = Workflow(
    name="installment_extension",
    description="Tenant-requested due-date extension with manager decision",
    initial_state=ExtensionStatus.NONE.value,
    states=tuple(s.value for s in ExtensionStatus),
    transitions=(
        Transition(
            ExtensionStatus.NONE.value, ExtensionStatus.PENDING.value,
            action="request", guard=REQUESTED_DATE_IN_FUTURE,
        ),
        Transition(
            ExtensionStatus.REJECTED.value, ExtensionStatus.PENDING.value,
            action="request", guard=REQUESTED_DATE_IN_FUTURE,
        ),
        Transition(ExtensionStatus.PENDING.value, ExtensionStatus.APPROVED.value, action="approve"),
        Transition(
            ExtensionStatus.PENDING.value, ExtensionStatus.REJECTED.value,
            action="reject", guard=REJECTION_HAS_NOTES,
        ),
    ),
    terminal_states=(ExtensionStatus.APPROVED.value,),
)


LEASE_LIFECYCLE_WORKFLOW = Workflow(
    name="lease_lifecycle",
    description="Lease lifecycle from assignment to closure or renewal",
    initial_state=LeaseStatus.ACTIVE.value,
    states=tuple(s.value for s in LeaseStatus),
    transitions=(
        Transition(LeaseStatus.ACTIVE.value, LeaseStatus.EXPIRED.value, action="expire", guard=END_DATE_PASSED),
        Transition(
            LeaseStatus.ACTIVE.value, LeaseStatus.COMPLETED.value,
            action="complete", guard=NO_OUTSTANDING_DUES,
        ),
        Transition(
            LeaseStatus.ACTIVE.value, LeaseStatus.COMPLETED_WITH_DUES.value,
            action="complete", guard=HAS_OUTSTANDING_DUES,
        ),
        Transition(LeaseStatus.ACTIVE.value, LeaseStatus.RENEWED.value, action="mark_renewed"),
    ),
    terminal_states=(
        LeaseStatus.EXPIRED.value,
        LeaseStatus.COMPLETED.value,
        LeaseStatus.COMPLETED_WITH_DUES.value,
        LeaseStatus.RENEWED.value,
    ),
)

logger.info(
    "leasing_workflows_registered",
    extra={
        "workflows": [EXTENSION_WORKFLOW.name, LEASE_LIFECYCLE_WORKFLOW.name],
        "transition_count": len(EXTENSION_WORKFLOW.transitions) + len(LEASE_LIFECYCLE_WORKFLOW.transitions),
    },
)
