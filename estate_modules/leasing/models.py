"""
Leasing Domain Models (``estate_modules.leasing.models``).

Responsibility
--------------
Frozen dataclass value objects representing the nouns of the lease and
payment lifecycle: leases, lease terms, installments, payment transactions,
and the read models returned to callers.

Architecture position
---------------------
**Modules layer** -- pure data definitions with ZERO I/O.  Consumed by the
ledger, extension and renewal components and by ``LeaseLifecycleService``.

Invariants enforced
-------------------
* All models are ``frozen=True``; state changes produce new instances.
* All monetary fields use ``Decimal`` -- NEVER ``float``.
* An installment's derived status, paid amount and balance are NOT fields:
  they are re-derived from transactions on every read.
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from uuid import UUID

from estate_engines.installment_status import InstallmentStatus, InstallmentView
from estate_kernel.logging_config import get_logger

logger = get_logger("modules.leasing.models")


class LeaseStatus(str, Enum):
    """Lease lifecycle states. Transitions only move forward out of ACTIVE."""
    ACTIVE = "Active"
    EXPIRED = "Expired"
    COMPLETED = "Completed"
    COMPLETED_WITH_DUES = "Completed with Dues"
    RENEWED = "Renewed"


class ExtensionStatus(str, Enum):
    """Due-date extension state of an installment."""
    NONE = "None"
    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"


class ExtensionDecision(str, Enum):
    """Manager decision on a pending extension."""
    APPROVED = "Approved"
    REJECTED = "Rejected"


@dataclass(frozen=True)
class LeaseTerms:
    """Commercial terms a schedule is generated from."""
    total_lease_amount: Decimal
    number_of_payments: int
    start_date: date
    end_date: date
    taxed_amount: Decimal = Decimal("0")
    tax_rate: Decimal | None = None  # None -> configured default
    renewal_increase_percentage: Decimal | None = None
    rent_payment_amount: Decimal | None = None


@dataclass(frozen=True)
class Lease:
    """A tenancy agreement between a tenant and a unit."""
    id: UUID
    unit_id: UUID
    tenant_id: UUID
    start_date: date
    end_date: date
    total_lease_amount: Decimal
    number_of_payments: int
    status: LeaseStatus = LeaseStatus.ACTIVE
    taxed_amount: Decimal = Decimal("0")
    tax_rate: Decimal = Decimal("0")
    renewal_increase_percentage: Decimal | None = None
    rent_payment_amount: Decimal | None = None
    predecessor_lease_id: UUID | None = None
    successor_lease_id: UUID | None = None
    tenant_since: date | None = None

    @property
    def is_active(self) -> bool:
        return self.status is LeaseStatus.ACTIVE


@dataclass(frozen=True)
class Installment:
    """One scheduled payment obligation within a lease's payment plan."""
    id: UUID
    lease_id: UUID
    due_date: date
    amount: Decimal  # pre-tax base
    tax_amount: Decimal
    total_amount: Decimal
    description: str = ""
    sequence: int = 0
    extension_requested: bool = False
    requested_due_date: date | None = None
    extension_status: ExtensionStatus = ExtensionStatus.NONE
    extension_reason: str | None = None
    manager_notes: str | None = None
    version: int = 0

    @property
    def effective_due_date(self) -> date:
        """Requested date once an extension is approved, else the scheduled date."""
        if self.extension_status is ExtensionStatus.APPROVED and self.requested_due_date is not None:
            return self.requested_due_date
        return self.due_date


@dataclass(frozen=True)
class Transaction:
    """A single recorded payment. Immutable once created."""
    id: UUID
    installment_id: UUID
    amount_paid: Decimal
    payment_date: date
    payment_method: str | None = None
    notes: str | None = None
    document_url: str | None = None


@dataclass(frozen=True)
class RenewalResult:
    """Outcome of a lease renewal."""
    closed_lease: Lease
    new_lease: Lease
    reassigned: tuple[Installment, ...] = ()
    new_installments: tuple[Installment, ...] = ()

    @property
    def carried_forward_total(self) -> Decimal:
        """Sum of total amounts of the installments moved to the new lease."""
        return sum((i.total_amount for i in self.reassigned), Decimal("0"))


@dataclass(frozen=True)
class LeaseSummary:
    """Lease-level roll-up of its installments as of a date."""
    lease_id: UUID
    status: LeaseStatus
    installment_count: int
    total_due: Decimal
    total_paid: Decimal
    outstanding: Decimal
    status_counts: dict[InstallmentStatus, int] = field(default_factory=dict)
    next_due_date: date | None = None
    pending_extension_count: int = 0


@dataclass(frozen=True)
class InstallmentWithView:
    """An installment paired with its derived view."""
    installment: Installment
    view: InstallmentView
