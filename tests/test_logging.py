"""Tests for the structured logging system (marketplace_kernel/logging_config.py)."""

import json
import logging
from io import StringIO
from uuid import uuid4

import pytest

from marketplace_kernel.exceptions import InvalidDiscountError
from marketplace_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    get_logger,
    reset_logging,
)


@pytest.fixture(autouse=True)
def _clean_logging():
    """Reset logging state between tests, then restore the suite default."""
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
    line = stream.getvalue().strip().split("\n")[0]
    return json.loads(line)


def _parse_all_logs(stream: StringIO) -> list[dict]:
    lines = stream.getvalue().strip().split("\n")
    return [json.loads(line) for line in lines if line]


class TestStructuredFormatter:
    """JSON log output format."""

    def test_basic_json_output(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        get_logger("test").info("hello")

        record = _parse_log(stream)
        assert record["level"] == "INFO"
        assert record["message"] == "hello"
        assert record["logger"] == "marketplace_kernel.test"
        assert "ts" in record

    def test_extra_fields_included(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        get_logger("test").info("quoted", extra={"total": 10750, "currency": "NGN"})

        record = _parse_log(stream)
        assert record["total"] == 10750
        assert record["currency"] == "NGN"

    def test_context_fields_included(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        LogContext.set(correlation_id="abc-123", order_id="ord-9")
        get_logger("test").info("test_msg")

        record = _parse_log(stream)
        assert record["correlation_id"] == "abc-123"
        assert record["order_id"] == "ord-9"

    def test_kernel_exception_fields(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        try:
            raise InvalidDiscountError(10001, 10000)
        except InvalidDiscountError:
            get_logger("test").error("discount_error", exc_info=True)

        record = _parse_log(stream)
        assert record["exc_type"] == "InvalidDiscountError"
        assert record["exc_code"] == "INVALID_DISCOUNT"
        assert record["exc_discount"] == 10001
        assert record["exc_subtotal"] == 10000
        assert "traceback" in record

    def test_uuid_serialized(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        uid = uuid4()
        get_logger("test").info("with_uuid", extra={"actor": uid})

        assert _parse_log(stream)["actor"] == str(uid)

    def test_debug_filtered_at_info(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        logger = get_logger("test")
        logger.info("first")
        logger.warning("second", extra={"k": "v"})
        logger.debug("third")

        logs = _parse_all_logs(stream)
        assert [r["message"] for r in logs] == ["first", "second"]


class TestLogContext:
    """Context propagation."""

    def test_set_and_get(self):
        LogContext.set(correlation_id="x", seller_id="s-1")
        assert LogContext.get_all() == {"correlation_id": "x", "seller_id": "s-1"}

    def test_none_values_ignored(self):
        LogContext.set(order_id=None)
        assert LogContext.get_all() == {}

    def test_clear(self):
        LogContext.set(correlation_id="x")
        LogContext.clear()
        assert LogContext.get_all() == {}

    def test_bind_restores_previous(self):
        LogContext.set(seller_id="outer")
        with LogContext.bind(seller_id="inner"):
            assert LogContext.get_all()["seller_id"] == "inner"
        assert LogContext.get_all()["seller_id"] == "outer"

    def test_bind_restores_absent(self):
        with LogContext.bind(payment_id="pay-1"):
            assert LogContext.get_all()["payment_id"] == "pay-1"
        assert "payment_id" not in LogContext.get_all()

    def test_unknown_field_rejected(self):
        with pytest.raises(KeyError):
            LogContext.set(event_id="nope")


class TestConfigureLogging:

    def test_idempotent(self):
        h1, _ = _make_handler()
        configure_logging(handler=h1)
        h2, _ = _make_handler()
        configure_logging(handler=h2)
        assert len(logging.getLogger("marketplace_kernel").handlers) == 1

    def test_get_logger_returns_child(self):
        assert get_logger("engines.tax").name == "marketplace_kernel.engines.tax"

    def test_logger_hierarchy(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler, level=logging.DEBUG)
        get_logger("deep.nested.module").debug("hierarchy_test")

        record = _parse_log(stream)
        assert record["logger"] == "marketplace_kernel.deep.nested.module"
