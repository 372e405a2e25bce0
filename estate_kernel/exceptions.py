"""
Typed Exception Hierarchy for the Estate Kernel.

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

All exceptions inherit from EstateKernelError:

    EstateKernelError (base)
    |
    +-- NotFoundError
    |   +-- LeaseNotFoundError
    |   +-- InstallmentNotFoundError
    |
    +-- ScheduleError
    |   +-- InvalidScheduleError
    |
    +-- PaymentError
    |   +-- InvalidAmountError
    |   +-- OverpaymentError
    |
    +-- ExtensionError
    |   +-- InvalidExtensionError
    |
    +-- LeaseLifecycleError
    |   +-- RenewalError
    |   +-- InvalidLeaseTransitionError
    |
    +-- ConcurrencyError
        +-- ConcurrencyConflictError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category     | Code                       | When Raised
-------------|----------------------------|------------------------------------------
Not found    | LEASE_NOT_FOUND            | Lease ID doesn't exist
             | INSTALLMENT_NOT_FOUND      | Installment ID doesn't exist
-------------|----------------------------|------------------------------------------
Schedule     | INVALID_SCHEDULE           | Bad lease terms (payments < 1, taxed > total)
-------------|----------------------------|------------------------------------------
Payment      | INVALID_AMOUNT             | amount_paid <= 0
             | OVERPAYMENT                | amount_paid > remaining balance
-------------|----------------------------|------------------------------------------
Extension    | INVALID_EXTENSION          | Wrong extension state, paid, past date
-------------|----------------------------|------------------------------------------
Lifecycle    | RENEWAL_FAILED             | Lease not Active, bad renewal terms
             | INVALID_LEASE_TRANSITION   | Backward / re-opening status change
-------------|----------------------------|------------------------------------------
Concurrency  | CONCURRENCY_CONFLICT       | Lost optimistic-lock race (retryable)

===============================================================================
HANDLING PATTERNS
===============================================================================

    try:
        service.record_payment(installment_id, amount, ...)
    except OverpaymentError as e:
        return {"error": e.code, "balance": str(e.balance)}
    except ConcurrencyConflictError:
        # Stale view: re-read and re-attempt
        ...

Only ConcurrencyConflictError is retryable. Everything else is a domain-rule
violation; retrying without correcting the input is meaningless.
"""

from datetime import date
from decimal import Decimal


class EstateKernelError(Exception):
    """
    Base exception for all estate kernel errors.

    All subclasses carry a ``code`` class attribute for machine-readable
    identification.
    """

    code: str = "ESTATE_KERNEL_ERROR"
    retryable: bool = False


# Lookup failures


class NotFoundError(EstateKernelError):
    """Base exception for missing records."""

    code: str = "NOT_FOUND"


class LeaseNotFoundError(NotFoundError):
    """Lease with given ID was not found."""

    code: str = "LEASE_NOT_FOUND"

    def __init__(self, lease_id: str):
        self.lease_id = lease_id
        super().__init__(f"Lease not found: {lease_id}")


class InstallmentNotFoundError(NotFoundError):
    """Installment with given ID was not found."""

    code: str = "INSTALLMENT_NOT_FOUND"

    def __init__(self, installment_id: str):
        self.installment_id = installment_id
        super().__init__(f"Installment not found: {installment_id}")


# Schedule exceptions


class ScheduleError(EstateKernelError):
    """Base exception for schedule generation errors."""

    code: str = "SCHEDULE_ERROR"


class InvalidScheduleError(ScheduleError):
    """Lease terms cannot produce a valid installment schedule."""

    code: str = "INVALID_SCHEDULE"

    def __init__(self, reason: str, field: str | None = None):
        self.reason = reason
        self.field = field
        super().__init__(f"Invalid schedule terms: {reason}")


# Payment exceptions


class PaymentError(EstateKernelError):
    """Base exception for payment ledger errors."""

    code: str = "PAYMENT_ERROR"


class InvalidAmountError(PaymentError):
    """Payment amount is zero or negative."""

    code: str = "INVALID_AMOUNT"

    def __init__(self, installment_id: str, amount: Decimal):
        self.installment_id = installment_id
        self.amount = amount
        super().__init__(
            f"Payment amount must be positive for installment "
            f"{installment_id}: {amount}"
        )


class OverpaymentError(PaymentError):
    """Payment would push the paid amount over the installment total."""

    code: str = "OVERPAYMENT"

    def __init__(self, installment_id: str, amount: Decimal, balance: Decimal):
        self.installment_id = installment_id
        self.amount = amount
        self.balance = balance
        super().__init__(
            f"Payment of {amount} exceeds remaining balance {balance} "
            f"on installment {installment_id}"
        )


# Extension exceptions


class ExtensionError(EstateKernelError):
    """Base exception for due-date extension errors."""

    code: str = "EXTENSION_ERROR"


class InvalidExtensionError(ExtensionError):
    """Extension request or decision is not allowed in the current state."""

    code: str = "INVALID_EXTENSION"

    def __init__(
        self,
        installment_id: str,
        reason: str,
        extension_status: str | None = None,
        requested_due_date: date | None = None,
    ):
        self.installment_id = installment_id
        self.reason = reason
        self.extension_status = extension_status
        self.requested_due_date = requested_due_date
        super().__init__(
            f"Extension rejected for installment {installment_id}: {reason}"
        )


# Lease lifecycle exceptions


class LeaseLifecycleError(EstateKernelError):
    """Base exception for lease status errors."""

    code: str = "LEASE_LIFECYCLE_ERROR"


class RenewalError(LeaseLifecycleError):
    """Lease cannot be renewed."""

    code: str = "RENEWAL_FAILED"

    def __init__(self, lease_id: str, reason: str):
        self.lease_id = lease_id
        self.reason = reason
        super().__init__(f"Cannot renew lease {lease_id}: {reason}")


class InvalidLeaseTransitionError(LeaseLifecycleError):
    """Lease status change is not a forward transition."""

    code: str = "INVALID_LEASE_TRANSITION"

    def __init__(self, lease_id: str, from_status: str, to_status: str):
        self.lease_id = lease_id
        self.from_status = from_status
        self.to_status = to_status
        super().__init__(
            f"Lease {lease_id} cannot move from {from_status} to {to_status}"
        )


# Concurrency exceptions


class ConcurrencyError(EstateKernelError):
    """Base exception for concurrency errors."""

    code: str = "CONCURRENCY_ERROR"


class ConcurrencyConflictError(ConcurrencyError):
    """
    Optimistic locking conflict detected.

    Signals a stale view rather than an invalid request: the caller may
    re-read state and re-attempt.
    """

    code: str = "CONCURRENCY_CONFLICT"
    retryable: bool = True

    def __init__(
        self,
        entity_type: str,
        entity_id: str,
        expected_version: int | None = None,
    ):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.expected_version = expected_version
        super().__init__(
            f"Concurrency conflict on {entity_type} {entity_id}: "
            "entity was modified by another transaction"
        )
