"""
Hypothesis-based property tests for the pure lease engines.

Properties checked:
- Schedule amounts and taxes reconcile to the cent for any valid terms
- No schedule slot is ever negative; due dates stay inside the lease term
- Derived status: PAID iff paid >= total, progress within [0, 100]
- Any sequence of payment attempts never drives a balance below zero
"""

from datetime import date, timedelta
from decimal import Decimal
from uuid import uuid4

import pytest
from hypothesis import HealthCheck, assume, given, settings
from hypothesis import strategies as st

from estate_engines.installment_status import InstallmentStatus, compute_status
from estate_engines.scheduler import RemainderSlot, schedule_installments, split_evenly
from estate_engines.tax import tax_on
from estate_kernel.exceptions import OverpaymentError
from estate_modules.leasing import ledger
from estate_modules.leasing.models import Installment

pytestmark = pytest.mark.slow

ZERO = Decimal("0")

# LogContext is cleared by an autouse function-scoped fixture; it holds no
# per-example state.
FUZZ_SETTINGS = {
    "deadline": None,
    "suppress_health_check": [HealthCheck.too_slow, HealthCheck.function_scoped_fixture],
}

money_amounts = st.decimals(
    min_value=Decimal("0.00"),
    max_value=Decimal("9999999.99"),
    places=2,
    allow_nan=False,
    allow_infinity=False,
)
positive_amounts = st.decimals(
    min_value=Decimal("0.01"),
    max_value=Decimal("5000.00"),
    places=2,
    allow_nan=False,
    allow_infinity=False,
)
tax_rates = st.decimals(
    min_value=Decimal("0"),
    max_value=Decimal("0.5"),
    places=4,
    allow_nan=False,
    allow_infinity=False,
)
payment_counts = st.integers(min_value=1, max_value=60)
remainder_slots = st.sampled_from(list(RemainderSlot))


@st.composite
def lease_terms(draw):
    total = draw(money_amounts)
    taxed = draw(st.decimals(
        min_value=Decimal("0.00"), max_value=total, places=2,
        allow_nan=False, allow_infinity=False,
    ))
    start = draw(st.dates(min_value=date(2000, 1, 1), max_value=date(2090, 1, 1)))
    end = start + timedelta(days=draw(st.integers(min_value=0, max_value=3650)))
    return {
        "total_lease_amount": total,
        "taxed_amount": taxed,
        "number_of_payments": draw(payment_counts),
        "start_date": start,
        "end_date": end,
        "tax_rate": draw(tax_rates),
    }


class TestScheduleProperties:

    @given(terms=lease_terms(), remainder=remainder_slots)
    @settings(max_examples=200, **FUZZ_SETTINGS)
    def test_schedule_reconciles_to_the_cent(self, terms, remainder):
        plan = schedule_installments(remainder=remainder, **terms)

        assert len(plan) == terms["number_of_payments"]
        assert sum((s.amount for s in plan), ZERO) == terms["total_lease_amount"]
        assert sum((s.tax_amount for s in plan), ZERO) == tax_on(
            terms["taxed_amount"], terms["tax_rate"],
        )
        assert sum((s.taxed_base for s in plan), ZERO) == terms["taxed_amount"]

    @given(terms=lease_terms(), remainder=remainder_slots)
    @settings(max_examples=200, **FUZZ_SETTINGS)
    def test_slots_are_never_negative(self, terms, remainder):
        for slot in schedule_installments(remainder=remainder, **terms):
            assert slot.amount >= ZERO
            assert slot.tax_amount >= ZERO
            assert slot.total_amount == slot.amount + slot.tax_amount

    @given(terms=lease_terms())
    @settings(max_examples=100, **FUZZ_SETTINGS)
    def test_due_dates_ordered_within_term(self, terms):
        plan = schedule_installments(**terms)
        dates = [s.due_date for s in plan]

        assert dates[0] == terms["start_date"]
        assert dates == sorted(dates)
        assert all(terms["start_date"] <= d <= terms["end_date"] for d in dates)

    @given(amount=money_amounts, parts=payment_counts, remainder=remainder_slots)
    @settings(**FUZZ_SETTINGS)
    def test_only_the_remainder_slot_differs(self, amount, parts, remainder):
        slices = split_evenly(amount, parts, remainder)
        others = slices[1:] if remainder is RemainderSlot.FIRST else slices[:-1]

        assert sum(slices, ZERO) == amount
        assert len(set(others)) <= 1


class TestStatusProperties:

    @given(
        total=money_amounts,
        payments=st.lists(positive_amounts, max_size=8),
        days_late=st.integers(min_value=-30, max_value=30),
    )
    @settings(**FUZZ_SETTINGS)
    def test_status_is_consistent_with_amounts(self, total, payments, days_late):
        due = date(2024, 6, 1)
        view = compute_status(total, due, payments, due + timedelta(days=days_late))
        paid = sum(payments, ZERO)

        assert view.paid_amount == paid
        assert view.balance == total - paid
        assert ZERO <= view.progress_percent <= Decimal("100")
        assert (view.status is InstallmentStatus.PAID) == (paid >= total)
        if view.status is InstallmentStatus.OVERDUE:
            assert paid == ZERO and days_late > 0


class TestPaymentProperties:

    @given(
        total=positive_amounts,
        attempts=st.lists(positive_amounts, min_size=1, max_size=15),
    )
    @settings(max_examples=150, **FUZZ_SETTINGS)
    def test_balance_never_negative(self, total, attempts):
        installment = Installment(
            id=uuid4(),
            lease_id=uuid4(),
            due_date=date(2024, 1, 1),
            amount=total,
            tax_amount=ZERO,
            total_amount=total,
        )
        accepted = []
        for amount in attempts:
            balance = total - ledger.paid_amount(accepted)
            try:
                accepted.append(
                    ledger.record_payment(installment, accepted, amount, date(2024, 1, 1))
                )
            except OverpaymentError:
                assert amount > balance
            else:
                assert amount <= balance

        view = ledger.derive_status(installment, accepted, date(2024, 1, 1))
        assert view.balance >= ZERO
        assert view.paid_amount <= total

    @given(total=positive_amounts)
    @settings(**FUZZ_SETTINGS)
    def test_exact_balance_settles(self, total):
        assume(total > Decimal("0.01"))
        installment = Installment(
            id=uuid4(),
            lease_id=uuid4(),
            due_date=date(2024, 1, 1),
            amount=total,
            tax_amount=ZERO,
            total_amount=total,
        )
        first = ledger.record_payment(installment, (), Decimal("0.01"), date(2024, 1, 1))
        second = ledger.record_payment(
            installment, (first,), total - Decimal("0.01"), date(2024, 1, 2),
        )

        view = ledger.derive_status(installment, (first, second), date(2024, 1, 2))
        assert view.status is InstallmentStatus.PAID
        assert view.balance == ZERO
        with pytest.raises(OverpaymentError):
            ledger.record_payment(installment, (first, second), Decimal("0.01"), date(2024, 1, 3))
