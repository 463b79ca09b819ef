"""Tests for log formatting of reconciler context and API failures."""

import json
import logging
import sys

import pytest

from slb_reconciler.config import LoggingConfig
from slb_reconciler.exceptions import AliyunAPIError, ConfigError
from slb_reconciler.logging_config import (
    JSONFormatter,
    TextFormatter,
    api_error_fields,
    configure_logging,
    record_context,
)


def _record(msg="listener created", exc=None, **extra):
    exc_info = None
    if exc is not None:
        try:
            raise exc
        except type(exc):
            exc_info = sys.exc_info()
    record = logging.LogRecord(
        name="slb_reconciler.balancer.listeners", level=logging.INFO, pathname="", lineno=0,
        msg=msg, args=(), exc_info=exc_info,
    )
    for key, val in extra.items():
        setattr(record, key, val)
    return record


THROTTLED = AliyunAPIError("throttled", code="Throttling", request_id="req-1", status_code=400)


class TestApiErrorFields:
    def test_api_error(self):
        assert api_error_fields(THROTTLED) == {
            "request_id": "req-1", "error_code": "Throttling", "status_code": 400,
        }

    def test_transport_error_has_no_ids(self):
        assert api_error_fields(AliyunAPIError("Request failed: refused")) == {}

    def test_other_errors(self):
        assert api_error_fields(ConfigError("bad")) == {}


class TestRecordContext:
    def test_only_set_fields(self):
        record = _record(load_balancer="lb-1", listener_port=80, attempt=None, unrelated="x")
        assert record_context(record) == {"load_balancer": "lb-1", "listener_port": 80}

    def test_api_error_from_exc_info(self):
        record = _record(exc=THROTTLED, load_balancer="lb-1")
        context = record_context(record)
        assert context["request_id"] == "req-1"
        assert context["error_code"] == "Throttling"
        assert context["load_balancer"] == "lb-1"

    def test_explicit_extra_wins(self):
        record = _record(exc=THROTTLED, request_id="req-explicit")
        assert record_context(record)["request_id"] == "req-explicit"


class TestJSONFormatter:
    def test_base_fields(self):
        parsed = json.loads(JSONFormatter().format(_record()))
        assert parsed["message"] == "listener created"
        assert parsed["level"] == "INFO"
        assert parsed["logger"] == "slb_reconciler.balancer.listeners"
        assert "timestamp" in parsed
        assert "request_id" not in parsed

    def test_context_fields(self):
        record = _record(service="prod/web", load_balancer="lb-1", listener_port=80, protocol="TCP")
        parsed = json.loads(JSONFormatter().format(record))
        assert parsed["service"] == "prod/web"
        assert parsed["listener_port"] == 80
        assert parsed["protocol"] == "TCP"

    def test_failed_call_carries_request_id(self):
        parsed = json.loads(JSONFormatter().format(_record("delete failed", exc=THROTTLED)))
        assert parsed["request_id"] == "req-1"
        assert parsed["status_code"] == 400
        assert "AliyunAPIError" in parsed["exception"]


class TestTextFormatter:
    def test_plain_line(self):
        assert TextFormatter().format(_record()).endswith("listener created")

    def test_context_appended(self):
        line = TextFormatter().format(_record(load_balancer="lb-1", attempt=2))
        assert line.endswith("listener created load_balancer=lb-1 attempt=2")

    def test_api_error_context_before_traceback(self):
        first_line = TextFormatter().format(_record("delete failed", exc=THROTTLED)).splitlines()[0]
        assert "request_id=req-1" in first_line
        assert "error_code=Throttling" in first_line


class TestConfigureLogging:
    @pytest.mark.parametrize("fmt, formatter", [("json", JSONFormatter), ("text", TextFormatter)])
    def test_formatter_and_level(self, fmt, formatter):
        configure_logging(LoggingConfig(level="DEBUG", format=fmt))
        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert [type(h.formatter) for h in root.handlers] == [formatter]

    def test_http_libraries_quieted(self):
        configure_logging(LoggingConfig(level="DEBUG"))
        assert logging.getLogger("urllib3").level == logging.WARNING
        assert logging.getLogger("requests").level == logging.WARNING
