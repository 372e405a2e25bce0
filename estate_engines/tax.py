"""
Tax Engine - VAT splits for lease installments and collected payments.

Pure functions with no I/O - tax rates provided as parameters.

Usage:
    from decimal import Decimal
    from estate_engines.tax import split_tax

    result = split_tax(Decimal("833.33"), Decimal("0.05"))
    print(result.tax_amount)    # 41.67
    print(result.total_amount)  # 875.00
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from estate_kernel.domain.money import round_money, to_decimal
from estate_kernel.logging_config import get_logger

logger = get_logger("engines.tax")

ZERO = Decimal("0")


@dataclass(frozen=True)
class TaxSplit:
    """
    Decomposition of a base amount into tax and tax-inclusive total.

    Immutable value object.
    """

    base_amount: Decimal
    tax_amount: Decimal
    total_amount: Decimal
    rate_applied: Decimal

    @property
    def rate_percent(self) -> Decimal:
        """Rate as percentage (e.g., 5 for 5%)."""
        return self.rate_applied * Decimal("100")


@dataclass(frozen=True)
class PaymentTaxBreakdown:
    """
    Output VAT attributable to one collected payment.

    ``net_amount + vat_amount == amount_paid``.
    """

    amount_paid: Decimal
    net_amount: Decimal  # pre-tax share of the payment
    taxable_portion: Decimal  # part of net_amount subject to VAT
    vat_amount: Decimal


def _check_rate(tax_rate: Decimal) -> Decimal:
    rate = to_decimal(tax_rate)
    if rate < ZERO:
        raise ValueError("Tax rate cannot be negative")
    return rate


def tax_on(amount: Decimal, tax_rate: Decimal) -> Decimal:
    """Tax due on ``amount``, rounded half-up to the currency unit."""
    return round_money(to_decimal(amount) * _check_rate(tax_rate))


def split_tax(base_amount: Decimal, tax_rate: Decimal) -> TaxSplit:
    """
    Split a base amount into (tax, total).

    ``tax = round_half_up(base * rate, 2)`` and ``total = base + tax``.
    A zero rate yields a zero tax.

    Raises:
        ValueError: If base_amount or tax_rate is negative.
    """
    base = to_decimal(base_amount)
    if base < ZERO:
        raise ValueError("Base amount cannot be negative")
    rate = _check_rate(tax_rate)

    tax = round_money(base * rate) if rate else round_money(ZERO)
    return TaxSplit(
        base_amount=base,
        tax_amount=tax,
        total_amount=base + tax,
        rate_applied=rate,
    )


def _vat_included(cumulative_paid: Decimal, installment_total: Decimal, installment_tax: Decimal) -> Decimal:
    if installment_total <= ZERO:
        return round_money(ZERO)
    return round_money(cumulative_paid * installment_tax / installment_total)


def output_vat_for_payment(
    amount_paid: Decimal,
    installment_total: Decimal,
    installment_tax: Decimal,
    *,
    taxed_amount: Decimal = ZERO,
    total_lease_amount: Decimal = ZERO,
    previously_paid: Decimal = ZERO,
) -> PaymentTaxBreakdown:
    """
    Output VAT carried by a payment against a tax-inclusive installment.

    The VAT share is the installment's ``tax / total`` ratio applied to the
    running paid amount, so the payments that settle an installment carry
    exactly its ``tax_amount`` between them.  The taxable portion is the
    pre-tax share scaled by the lease's ``taxed_amount / total_lease_amount``.

    Args:
        amount_paid: Amount of this payment.
        installment_total: Installment total, tax included.
        installment_tax: Installment tax amount.
        taxed_amount: Lease amount subject to VAT.
        total_lease_amount: Lease pre-tax total.
        previously_paid: Sum of earlier payments on the same installment.
    """
    paid = to_decimal(amount_paid)
    total = to_decimal(installment_total)
    tax = to_decimal(installment_tax)
    before = to_decimal(previously_paid)

    vat = _vat_included(before + paid, total, tax) - _vat_included(before, total, tax)
    net = paid - vat

    lease_total = to_decimal(total_lease_amount)
    if lease_total > ZERO:
        taxable = round_money(net * to_decimal(taxed_amount) / lease_total)
    else:
        taxable = round_money(ZERO)

    logger.debug("payment_vat_computed", extra={
        "amount_paid": str(paid),
        "net_amount": str(net),
        "taxable_portion": str(taxable),
        "vat_amount": str(vat),
    })
    return PaymentTaxBreakdown(
        amount_paid=paid,
        net_amount=net,
        taxable_portion=taxable,
        vat_amount=vat,
    )
