"""Tests for derived installment status (estate_engines.installment_status)."""

from datetime import date
from decimal import Decimal

import pytest

from estate_engines.installment_status import (
    InstallmentStatus,
    compute_status,
    progress_percent,
)

DUE = date(2024, 3, 1)


def _status(paid, as_of, total=Decimal("1000")):
    return compute_status(total, DUE, paid, as_of)


class TestComputeStatus:

    def test_pending_before_due(self):
        view = _status([], date(2024, 2, 1))
        assert view.status is InstallmentStatus.PENDING
        assert view.balance == Decimal("1000")
        assert view.progress_percent == Decimal("0.00")

    def test_not_overdue_on_due_date(self):
        assert _status([], DUE).status is InstallmentStatus.PENDING

    def test_overdue_after_due_with_nothing_paid(self):
        assert _status([], date(2024, 3, 2)).status is InstallmentStatus.OVERDUE

    def test_partial_payment_after_due_is_partially_paid(self):
        view = _status([Decimal("400")], date(2024, 4, 1))
        assert view.status is InstallmentStatus.PARTIALLY_PAID
        assert view.paid_amount == Decimal("400")
        assert view.balance == Decimal("600")
        assert view.progress_percent == Decimal("40.00")

    def test_paid(self):
        view = _status([Decimal("400"), Decimal("600")], date(2024, 4, 1))
        assert view.status is InstallmentStatus.PAID
        assert view.is_settled
        assert view.balance == Decimal("0")
        assert view.progress_percent == Decimal("100.00")

    def test_zero_total_is_paid(self):
        view = _status([], date(2024, 4, 1), total=Decimal("0"))
        assert view.status is InstallmentStatus.PAID
        assert view.progress_percent == Decimal("0.00")

    def test_effective_due_date_echoed(self):
        assert _status([], date(2024, 1, 1)).effective_due_date == DUE


class TestProgressPercent:

    @pytest.mark.parametrize("paid, total, expected", [
        (Decimal("1"), Decimal("3"), Decimal("33.33")),
        (Decimal("2"), Decimal("3"), Decimal("66.67")),
        (Decimal("0"), Decimal("0"), Decimal("0.00")),
        (Decimal("1041.67"), Decimal("1041.67"), Decimal("100.00")),
    ])
    def test_rounded_and_clamped(self, paid, total, expected):
        assert progress_percent(paid, total) == expected

    def test_never_exceeds_100(self):
        assert progress_percent(Decimal("2"), Decimal("1")) == Decimal("100.00")
