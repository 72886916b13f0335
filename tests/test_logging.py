"""Tests for the structured logging system (shiftpay_kernel/logging_config.py)."""

import json
import logging
from decimal import Decimal
from io import StringIO
from uuid import uuid4

import pytest

from shiftpay_kernel.exceptions import PayrollLockedError
from shiftpay_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    get_logger,
    reset_logging,
)


@pytest.fixture(autouse=True)
def _clean_logging():
    """Start each test unconfigured; leave the suite's DEBUG setup behind."""
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


def _parse_all_logs(stream: StringIO) -> list[dict]:
    lines = stream.getvalue().strip().split("\n")
    return [json.loads(line) for line in lines if line]


class TestStructuredFormatter:

    def test_basic_json_output(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)

        get_logger("test").info("hello")

        record = _parse_all_logs(stream)[0]
        assert record["message"] == "hello"
        assert record["level"] == "INFO"
        assert record["logger"] == "shiftpay.test"
        assert "ts" in record

    def test_extra_fields_included(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)

        get_logger("test").info("calc", extra={"gross_pay": Decimal("84000"), "day_count": 1})

        record = _parse_all_logs(stream)[0]
        assert record["gross_pay"] == "84000"
        assert record["day_count"] == 1

    def test_context_fields_included(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        actor = uuid4()

        with LogContext.bind(actor_id=actor, employee_id="emp-1", month="2025-09"):
            get_logger("test").info("inside")
        get_logger("test").info("outside")

        inside, outside = _parse_all_logs(stream)
        assert inside["actor_id"] == str(actor)
        assert inside["employee_id"] == "emp-1"
        assert inside["month"] == "2025-09"
        assert "employee_id" not in outside

    def test_shiftpay_exception_fields(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)

        try:
            raise PayrollLockedError("emp-1", "branch-a", "2025-09")
        except PayrollLockedError:
            get_logger("test").warning("blocked", exc_info=True)

        record = _parse_all_logs(stream)[0]
        assert record["exc_type"] == "PayrollLockedError"
        assert record["exc_code"] == "PAYROLL_LOCKED"
        assert record["exc_branch_id"] == "branch-a"
        assert "traceback" in record

    def test_level_filtering(self):
        handler, stream = _make_handler()
        configure_logging(level=logging.INFO, handler=handler)

        get_logger("test").debug("hidden")
        get_logger("test").info("shown")

        assert [r["message"] for r in _parse_all_logs(stream)] == ["shown"]


class TestLogContext:

    def test_set_and_clear(self):
        LogContext.set(employee_id="emp-1")
        assert LogContext.get_all() == {"employee_id": "emp-1"}

        LogContext.clear()
        assert LogContext.get_all() == {}

    def test_bind_restores_previous(self):
        LogContext.set(branch_id="branch-a")

        with LogContext.bind(branch_id="branch-b"):
            assert LogContext.get_all()["branch_id"] == "branch-b"

        assert LogContext.get_all()["branch_id"] == "branch-a"

    def test_unknown_field_rejected(self):
        with pytest.raises(ValueError):
            LogContext.bind(store_id="x")


class TestConfigureLogging:

    def test_idempotent(self):
        handler, _ = _make_handler()
        configure_logging(handler=handler)
        configure_logging(handler=handler)

        attached = logging.getLogger("shiftpay").handlers
        assert sum(h is handler for h in attached) == 1

    def test_does_not_propagate_to_root(self):
        configure_logging(handler=_make_handler()[0])

        assert logging.getLogger("shiftpay").propagate is False
