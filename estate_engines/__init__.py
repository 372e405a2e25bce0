"""
Module: estate_engines
Responsibility:
    Package entrypoint that re-exports the pure calculation engines used by
    the leasing module: VAT splits, installment scheduling and derived
    installment status.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import estate_kernel (and sibling engine modules).
    MUST NOT import estate_modules.

Invariants enforced:
    - Purity: engines NEVER call ``datetime.now()`` or ``date.today()``.
      Reference dates are passed in by the caller.
    - Decimal-only arithmetic: floats are rejected.
    - Determinism: identical inputs always produce identical outputs.
"""

from estate_engines.installment_status import (
    InstallmentStatus,
    InstallmentView,
    compute_status,
    progress_percent,
)
from estate_engines.scheduler import (
    RemainderSlot,
    ScheduledInstallment,
    due_dates,
    schedule_installments,
    split_evenly,
)
from estate_engines.tax import (
    PaymentTaxBreakdown,
    TaxSplit,
    output_vat_for_payment,
    split_tax,
    tax_on,
)

__all__ = [
    "InstallmentStatus",
    "InstallmentView",
    "compute_status",
    "progress_percent",
    "RemainderSlot",
    "ScheduledInstallment",
    "due_dates",
    "schedule_installments",
    "split_evenly",
    "PaymentTaxBreakdown",
    "TaxSplit",
    "output_vat_for_payment",
    "split_tax",
    "tax_on",
]
