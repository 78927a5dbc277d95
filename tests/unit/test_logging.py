"""Unit tests for structured logging."""

import json
import logging
import sys

import pytest

from src.station_booking.infrastructure.logging import (
    CorrelationIDFilter,
    JSONFormatter,
    configure_logging,
    correlation_scope,
    get_correlation_id
)


def make_record(message="Booking created", **extra):
    record = logging.LogRecord("src.station_booking.test", logging.INFO, __file__, 10, message, (), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestCorrelationScope:
    """Test cases for correlation ID binding."""

    def test_scope_sets_and_restores(self):
        assert get_correlation_id() is None

        with correlation_scope("req-1") as outer:
            assert outer == "req-1"
            with correlation_scope() as inner:
                assert inner != "req-1"
                assert get_correlation_id() == inner
            assert get_correlation_id() == "req-1"

        assert get_correlation_id() is None

    def test_filter_stamps_record(self):
        record = make_record()

        with correlation_scope("req-7"):
            CorrelationIDFilter().filter(record)

        assert record.correlation_id == "req-7"


class TestJSONFormatter:
    """Test cases for JSON output."""

    def test_extra_fields_are_nested(self):
        record = make_record(booking_code="BK-00000001", correlation_id="req-9")

        entry = json.loads(JSONFormatter("station-booking").format(record))

        assert entry["service"] == "station-booking"
        assert entry["message"] == "Booking created"
        assert entry["correlation_id"] == "req-9"
        assert entry["extra"] == {"booking_code": "BK-00000001"}

    def test_exception_is_serialized(self):
        try:
            raise RuntimeError("sheet quota")
        except RuntimeError:
            record = logging.LogRecord("x", logging.ERROR, __file__, 1, "failed", (), sys.exc_info())

        entry = json.loads(JSONFormatter().format(record))

        assert entry["exception"]["type"] == "RuntimeError"
        assert "sheet quota" in entry["exception"]["traceback"]


class TestConfigureLogging:
    """Test cases for handler setup."""

    @pytest.fixture(autouse=True)
    def restore_root(self):
        root = logging.getLogger()
        handlers, level = list(root.handlers), root.level
        yield
        for handler in list(root.handlers):
            handler.close()
            root.removeHandler(handler)
        for handler in handlers:
            root.addHandler(handler)
        root.setLevel(level)

    def test_file_logging_writes_error_file(self, tmp_path):
        handlers = configure_logging(level="DEBUG", log_dir=str(tmp_path), enable_console=False, enable_file=True)
        logger = logging.getLogger("src.station_booking.test")

        logger.info("booked")
        logger.error("store down")
        for handler in handlers:
            handler.flush()

        everything = (tmp_path / "station-booking.log").read_text().splitlines()
        errors = (tmp_path / "station-booking-errors.log").read_text().splitlines()
        assert [json.loads(line)["message"] for line in everything] == ["booked", "store down"]
        assert [json.loads(line)["message"] for line in errors] == ["store down"]
