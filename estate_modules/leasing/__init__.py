"""
Leasing Module (``estate_modules.leasing``).

Responsibility
--------------
Lease and payment lifecycle: turns a signed lease into an installment
schedule, tracks partial payments against each installment, arbitrates
tenant-requested due-date extensions, and rolls unpaid balances into a
renewal lease while closing out the old one.

Architecture position
---------------------
**Modules layer** -- domain models, workflows, pure components (ledger,
extensions, renewal, calculations), config schema, ORM, repository and the
``LeaseLifecycleService`` facade.

Invariants enforced
-------------------
* Installment amounts sum exactly to the lease total; taxes sum exactly to
  the lease-level tax.
* Paid amount never exceeds an installment's total.
* Transactions are immutable and never deleted.
* Renewal preserves money: outstanding before == carried forward after.
* Transaction boundary owned by ``LeaseLifecycleService``.

Failure modes
-------------
* Typed ``estate_kernel.exceptions`` errors; every failed write is rolled
  back.
"""

from estate_modules.leasing.config import LeasingConfig
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
from estate_modules.leasing.service import LeaseLifecycleService
from estate_modules.leasing.workflows import EXTENSION_WORKFLOW, LEASE_LIFECYCLE_WORKFLOW

__all__ = [
    "ExtensionDecision",
    "ExtensionStatus",
    "Installment",
    "InstallmentWithView",
    "Lease",
    "LeaseStatus",
    "LeaseSummary",
    "LeaseTerms",
    "RenewalResult",
    "Transaction",
    "LeaseLifecycleService",
    "LeasingConfig",
    "EXTENSION_WORKFLOW",
    "LEASE_LIFECYCLE_WORKFLOW",
]
