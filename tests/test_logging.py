"""Tests for the structured logging system (estate_kernel/logging_config.py)."""

import json
import logging
from datetime import date
from decimal import Decimal
from io import StringIO
from uuid import uuid4

import pytest

from estate_kernel.exceptions import OverpaymentError
from estate_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    get_logger,
    reset_logging,
)


@pytest.fixture(autouse=True)
def _clean_logging():
    """Reset logging state between tests, restoring the suite configuration after."""
    reset_logging()
    LogContext.clear()
    yield
    LogContext.clear()
    reset_logging()
    configure_logging(level=logging.DEBUG)


def _make_handler() -> tuple[logging.Handler, StringIO]:
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    return handler, stream


def _parse_log(stream: StringIO) -> dict:
    """Parse the first JSON log line from a stream."""
    line = stream.getvalue().strip().split("\n")[0]
    return json.loads(line)


def _parse_all_logs(stream: StringIO) -> list[dict]:
    """Parse all JSON log lines from a stream."""
    lines = stream.getvalue().strip().split("\n")
    return [json.loads(line) for line in lines if line]


# ---------------------------------------------------------------------------
# StructuredFormatter tests
# ---------------------------------------------------------------------------


class TestStructuredFormatter:
    """Tests for JSON log output format."""

    def test_basic_json_output(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        get_logger("test").info("hello")

        record = _parse_log(stream)
        assert record["message"] == "hello"
        assert record["level"] == "INFO"
        assert record["logger"] == "estate_kernel.test"
        assert "ts" in record

    def test_extra_fields_serialized(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        installment_id = uuid4()
        get_logger("test").info("payment_recorded", extra={
            "installment_id": installment_id,
            "amount_paid": Decimal("400.00"),
            "payment_date": date(2024, 1, 5),
        })

        record = _parse_log(stream)
        assert record["installment_id"] == str(installment_id)
        assert record["amount_paid"] == "400.00"
        assert record["payment_date"] == "2024-01-05"

    def test_exception_fields_included(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        try:
            raise OverpaymentError("inst-1", Decimal("0.01"), Decimal("0"))
        except OverpaymentError:
            get_logger("test").error("payment_failed", exc_info=True)

        record = _parse_log(stream)
        assert record["exc_type"] == "OverpaymentError"
        assert record["exc_code"] == "OVERPAYMENT"
        assert record["exc_installment_id"] == "inst-1"
        assert record["exc_balance"] == "0"
        assert "traceback" in record


# ---------------------------------------------------------------------------
# LogContext tests
# ---------------------------------------------------------------------------


class TestLogContext:
    """Tests for context-var propagation into log records."""

    def test_context_fields_added(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        lease_id = uuid4()
        LogContext.set(lease_id=lease_id, installment_id="inst-7")
        get_logger("test").info("with_context")

        record = _parse_log(stream)
        assert record["lease_id"] == str(lease_id)
        assert record["installment_id"] == "inst-7"

    def test_bind_restores_previous_values(self):
        LogContext.set(lease_id="outer")
        with LogContext.bind(lease_id=uuid4()):
            assert LogContext.get_all()["lease_id"] != "outer"
        assert LogContext.get_all()["lease_id"] == "outer"

    def test_bind_ignores_none(self):
        with LogContext.bind(installment_id=None, lease_id="lease-1"):
            ctx = LogContext.get_all()
        assert "installment_id" not in ctx
        assert ctx["lease_id"] == "lease-1"

    def test_bind_rejects_unknown_field(self):
        with pytest.raises(TypeError, match="trace_id"):
            LogContext.bind(trace_id="t-1")

    def test_clear(self):
        LogContext.set(installment_id="x")
        LogContext.clear()
        assert LogContext.get_all() == {}


# ---------------------------------------------------------------------------
# configure_logging tests
# ---------------------------------------------------------------------------


class TestConfigureLogging:

    def test_idempotent(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        configure_logging(handler=handler)
        get_logger("test").info("once")

        assert len(_parse_all_logs(stream)) == 1

    def test_level_filters_debug(self):
        handler, stream = _make_handler()
        configure_logging(level=logging.INFO, handler=handler)
        get_logger("test").debug("hidden")
        get_logger("test").info("shown")

        messages = [r["message"] for r in _parse_all_logs(stream)]
        assert messages == ["shown"]

    def test_does_not_propagate_to_root(self):
        configure_logging(handler=logging.NullHandler())
        assert logging.getLogger("estate_kernel").propagate is False
