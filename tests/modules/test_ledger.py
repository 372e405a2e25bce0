"""
Tests for the payment ledger (estate_modules.leasing.ledger).

Validates:
- record_payment: positive amounts only, never beyond the balance
- derive_status: uses the effective due date, re-derived from transactions
"""

from dataclasses import replace
from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from estate_engines.installment_status import InstallmentStatus
from estate_kernel.exceptions import InvalidAmountError, OverpaymentError
from estate_modules.leasing.ledger import derive_status, paid_amount, record_payment
from estate_modules.leasing.models import ExtensionStatus, Installment


@pytest.fixture
def installment() -> Installment:
    return Installment(
        id=uuid4(),
        lease_id=uuid4(),
        due_date=date(2024, 1, 1),
        amount=Decimal("1000"),
        tax_amount=Decimal("0"),
        total_amount=Decimal("1000"),
        description="Rent Installment 1 of 1",
        sequence=1,
    )


class TestRecordPayment:

    def test_400_then_600_then_cent(self, installment):
        """Partial payment, settlement, then any further cent is refused."""
        first = record_payment(installment, [], Decimal("400"), date(2024, 1, 1))
        view = derive_status(installment, [first], date(2024, 1, 1))
        assert view.status is InstallmentStatus.PARTIALLY_PAID
        assert view.progress_percent == Decimal("40.00")

        second = record_payment(installment, [first], Decimal("600"), date(2024, 1, 2))
        view = derive_status(installment, [first, second], date(2024, 1, 2))
        assert view.status is InstallmentStatus.PAID
        assert view.progress_percent == Decimal("100.00")

        with pytest.raises(OverpaymentError) as exc_info:
            record_payment(installment, [first, second], Decimal("0.01"), date(2024, 1, 3))
        assert exc_info.value.balance == Decimal("0")

    def test_transaction_fields(self, installment):
        tx = record_payment(
            installment, [], Decimal("250.50"), date(2024, 1, 5),
            payment_method="cheque", notes="cheque #104",
            document_url="https://files.example/receipt.pdf",
        )
        assert tx.installment_id == installment.id
        assert tx.amount_paid == Decimal("250.50")
        assert tx.payment_method == "cheque"
        assert tx.document_url.endswith("receipt.pdf")

    def test_installment_not_modified(self, installment):
        record_payment(installment, [], Decimal("100"), date(2024, 1, 1))
        assert installment.version == 0

    @pytest.mark.parametrize("amount", [Decimal("0"), Decimal("-5")])
    def test_non_positive_amount(self, installment, amount):
        with pytest.raises(InvalidAmountError):
            record_payment(installment, [], amount, date(2024, 1, 1))

    def test_invalid_amount_checked_before_balance(self, installment):
        paid = record_payment(installment, [], Decimal("1000"), date(2024, 1, 1))
        with pytest.raises(InvalidAmountError):
            record_payment(installment, [paid], Decimal("0"), date(2024, 1, 2))

    def test_overpayment_rejection_is_repeatable(self, installment):
        for _ in range(3):
            with pytest.raises(OverpaymentError):
                record_payment(installment, [], Decimal("1000.01"), date(2024, 1, 1))

    def test_float_refused(self, installment):
        with pytest.raises(TypeError):
            record_payment(installment, [], 10.0, date(2024, 1, 1))

    def test_foreign_transaction_rejected(self, installment):
        other = Installment(
            id=uuid4(), lease_id=installment.lease_id, due_date=date(2024, 2, 1),
            amount=Decimal("10"), tax_amount=Decimal("0"), total_amount=Decimal("10"),
        )
        tx = record_payment(other, [], Decimal("10"), date(2024, 1, 1))
        with pytest.raises(ValueError):
            record_payment(installment, [tx], Decimal("10"), date(2024, 1, 1))


class TestDeriveStatus:

    def test_overdue_uses_scheduled_date_without_extension(self, installment):
        assert derive_status(installment, [], date(2024, 1, 2)).status is InstallmentStatus.OVERDUE

    def test_approved_extension_moves_due_date(self, installment):
        extended = replace(
            installment,
            requested_due_date=date(2024, 2, 15),
            extension_status=ExtensionStatus.APPROVED,
        )
        view = derive_status(extended, [], date(2024, 2, 10))
        assert view.status is InstallmentStatus.PENDING
        assert view.effective_due_date == date(2024, 2, 15)

    def test_rejected_extension_has_no_effect(self, installment):
        rejected = replace(
            installment,
            requested_due_date=date(2024, 2, 15),
            extension_status=ExtensionStatus.REJECTED,
        )
        assert derive_status(rejected, [], date(2024, 1, 2)).status is InstallmentStatus.OVERDUE


def test_paid_amount_sums_transactions(installment):
    a = record_payment(installment, [], Decimal("1.10"), date(2024, 1, 1))
    b = record_payment(installment, [a], Decimal("2.20"), date(2024, 1, 1))
    assert paid_amount([a, b]) == Decimal("3.30")
