"""
Pytest fixtures for the estate leasing test suite.

Provides:
- SQLite in-memory database sessions (one fresh schema per test)
- Deterministic clock, default config and a wired LeaseLifecycleService
- Structured-log capture
- Lease terms for the recurring scenarios
"""

import json
import logging
from datetime import date
from decimal import Decimal
from io import StringIO
from typing import Generator
from uuid import uuid4

import pytest
from sqlalchemy.orm import Session

from estate_kernel.db.engine import drop_tables, get_session, init_engine_from_url, reset_engine
from estate_kernel.domain.clock import DeterministicClock
from estate_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from estate_modules._orm_registry import create_all_tables
from estate_modules.leasing.config import LeasingConfig
from estate_modules.leasing.models import LeaseTerms
from estate_modules.leasing.service import LeaseLifecycleService

TEST_UNIT_ID = uuid4()
TEST_TENANT_ID = uuid4()


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture estate_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, service):
            service.record_payment(...)
            logs = captured_logs()
            assert any(r["message"] == "payment_recorded" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("estate_kernel")
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)


# =============================================================================
# Database fixtures
# =============================================================================


@pytest.fixture
def engine():
    """Fresh in-memory SQLite engine with every leasing table created."""
    eng = init_engine_from_url("sqlite://")
    create_all_tables()
    yield eng
    drop_tables()
    reset_engine()


@pytest.fixture
def session(engine) -> Generator[Session, None, None]:
    """Session bound to the in-memory engine."""
    s = get_session()
    yield s
    s.rollback()
    s.close()


# =============================================================================
# Domain fixtures
# =============================================================================


@pytest.fixture
def deterministic_clock() -> DeterministicClock:
    """Clock fixed at 2024-01-01 12:00 UTC."""
    return DeterministicClock()


@pytest.fixture
def config() -> LeasingConfig:
    return LeasingConfig.with_defaults()


@pytest.fixture
def service(session, deterministic_clock, config) -> LeaseLifecycleService:
    """LeaseLifecycleService over the SQLite session."""
    return LeaseLifecycleService(session=session, clock=deterministic_clock, config=config)


@pytest.fixture
def annual_terms() -> LeaseTerms:
    """12,000 over 12 payments for 2024, 10,000 of it taxed at 5%."""
    return LeaseTerms(
        total_lease_amount=Decimal("12000"),
        number_of_payments=12,
        start_date=date(2024, 1, 1),
        end_date=date(2024, 12, 31),
        taxed_amount=Decimal("10000"),
        tax_rate=Decimal("0.05"),
    )


@pytest.fixture
def untaxed_terms() -> LeaseTerms:
    """Single untaxed 1,000 installment due 2024-01-01."""
    return LeaseTerms(
        total_lease_amount=Decimal("1000"),
        number_of_payments=1,
        start_date=date(2024, 1, 1),
        end_date=date(2024, 1, 31),
        taxed_amount=Decimal("0"),
        tax_rate=Decimal("0"),
    )


@pytest.fixture
def create_lease(service):
    """Factory that persists a lease for the test unit and tenant."""

    def _create(terms: LeaseTerms):
        return service.create_lease(TEST_UNIT_ID, TEST_TENANT_ID, terms)

    return _create
