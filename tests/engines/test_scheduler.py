"""Tests for the installment scheduler (estate_engines.scheduler)."""

from datetime import date, timedelta
from decimal import Decimal

import pytest

from estate_engines.scheduler import (
    RemainderSlot,
    due_dates,
    schedule_installments,
    split_evenly,
)
from estate_engines.tax import tax_on
from estate_kernel.exceptions import InvalidScheduleError


def _annual(**overrides):
    params = dict(
        total_lease_amount=Decimal("12000"),
        taxed_amount=Decimal("10000"),
        number_of_payments=12,
        start_date=date(2024, 1, 1),
        end_date=date(2024, 12, 31),
        tax_rate=Decimal("0.05"),
    )
    params.update(overrides)
    return schedule_installments(**params)


class TestAnnualScenario:
    """12,000 over 12 payments, 10,000 taxed at 5%."""

    def test_every_base_is_1000(self):
        plan = _annual()
        assert len(plan) == 12
        assert all(slot.amount == Decimal("1000.00") for slot in plan)

    def test_tax_sums_exactly_to_lease_tax(self):
        plan = _annual()
        assert sum(slot.tax_amount for slot in plan) == Decimal("500.00")

    def test_residue_absorbed_by_remainder_slot(self):
        plan = _annual()
        assert [slot.tax_amount for slot in plan[:-1]] == [Decimal("41.67")] * 11
        assert plan[-1].tax_amount == Decimal("41.63")
        assert plan[0].total_amount == Decimal("1041.67")

    def test_due_dates_start_on_start_date_and_stay_before_end(self):
        plan = _annual()
        assert plan[0].due_date == date(2024, 1, 1)
        assert plan[-1].due_date == date(2024, 11, 30)
        assert [s.due_date for s in plan] == sorted(s.due_date for s in plan)

    def test_descriptions_and_sequence(self):
        plan = _annual()
        assert plan[0].description == "Rent Installment 1 of 12"
        assert plan[11].description == "Rent Installment 12 of 12"
        assert [s.sequence for s in plan] == list(range(1, 13))


class TestRemainderPlacement:

    def test_last_slot_for_fresh_leases(self):
        assert split_evenly(Decimal("100"), 3, RemainderSlot.LAST) == [
            Decimal("33.33"), Decimal("33.33"), Decimal("33.34"),
        ]

    def test_first_slot_for_renewals(self):
        assert split_evenly(Decimal("100"), 3, RemainderSlot.FIRST) == [
            Decimal("33.34"), Decimal("33.33"), Decimal("33.33"),
        ]

    def test_renewal_schedule_puts_remainder_first(self):
        plan = schedule_installments(
            total_lease_amount=Decimal("1000"),
            number_of_payments=3,
            start_date=date(2025, 1, 1),
            end_date=date(2025, 12, 31),
            remainder=RemainderSlot.FIRST,
        )
        assert [s.amount for s in plan] == [Decimal("333.34"), Decimal("333.33"), Decimal("333.33")]
        assert sum(s.amount for s in plan) == Decimal("1000")

    def test_amounts_reconcile_for_awkward_split(self):
        plan = schedule_installments(
            total_lease_amount=Decimal("10000.01"),
            taxed_amount=Decimal("3333.33"),
            number_of_payments=7,
            start_date=date(2024, 3, 1),
            end_date=date(2025, 2, 28),
            tax_rate=Decimal("0.05"),
        )
        assert sum(s.amount for s in plan) == Decimal("10000.01")
        assert sum(s.tax_amount for s in plan) == tax_on(Decimal("3333.33"), Decimal("0.05"))
        assert all(s.total_amount == s.amount + s.tax_amount for s in plan)


class TestDueDates:

    def test_single_payment_due_on_start(self):
        assert due_dates(date(2024, 1, 1), date(2024, 12, 31), 1) == [date(2024, 1, 1)]

    def test_same_day_lease(self):
        assert due_dates(date(2024, 5, 5), date(2024, 5, 5), 3) == [date(2024, 5, 5)] * 3

    def test_spacing_truncates_to_whole_days(self):
        start = date(2024, 1, 1)
        assert due_dates(start, start + timedelta(days=10), 3) == [
            start, start + timedelta(days=3), start + timedelta(days=6),
        ]


class TestValidation:

    @pytest.mark.parametrize("overrides, field", [
        ({"number_of_payments": 0}, "number_of_payments"),
        ({"number_of_payments": True}, "number_of_payments"),
        ({"taxed_amount": Decimal("12000.01")}, "taxed_amount"),
        ({"total_lease_amount": Decimal("-1"), "taxed_amount": Decimal("0")}, "total_lease_amount"),
        ({"tax_rate": Decimal("-0.01")}, "tax_rate"),
        ({"end_date": date(2023, 12, 31)}, "end_date"),
    ])
    def test_invalid_terms(self, overrides, field):
        with pytest.raises(InvalidScheduleError) as exc_info:
            _annual(**overrides)
        assert exc_info.value.field == field
        assert exc_info.value.code == "INVALID_SCHEDULE"

    def test_zero_total_is_allowed(self):
        plan = _annual(total_lease_amount=Decimal("0"), taxed_amount=Decimal("0"))
        assert all(s.total_amount == Decimal("0") for s in plan)
