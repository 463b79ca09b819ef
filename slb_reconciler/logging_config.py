"""Logging setup: JSON or text records carrying load balancer and API-call context."""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

from .config import LoggingConfig
from .exceptions import AliyunAPIError

# Context keys passed through ``extra=`` by the reconcilers
CONTEXT_FIELDS = (
    "service", "load_balancer", "listener_port", "protocol", "attempt",
    "request_id", "error_code", "status_code",
)


def api_error_fields(exc: BaseException) -> dict[str, Any]:
    """``extra`` fields identifying a failed Aliyun call; empty for other errors."""
    if not isinstance(exc, AliyunAPIError):
        return {}
    fields = {
        "request_id": exc.request_id,
        "error_code": exc.code,
        "status_code": exc.status_code,
    }
    return {k: v for k, v in fields.items() if v is not None}


def record_context(record: logging.LogRecord) -> dict[str, Any]:
    """Context fields set on a record, plus API error details from its exception."""
    context = {}
    for key in CONTEXT_FIELDS:
        val = getattr(record, key, None)
        if val is not None:
            context[key] = val
    if record.exc_info and record.exc_info[1] is not None:
        for key, val in api_error_fields(record.exc_info[1]).items():
            context.setdefault(key, val)
    return context


class JSONFormatter(logging.Formatter):
    """One JSON object per line; context fields become top-level keys."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload.update(record_context(record))

        if record.exc_info and record.exc_info[1]:
            payload["exception"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=str)


class TextFormatter(logging.Formatter):
    """Human-readable lines with context appended as ``key=value`` pairs."""

    def __init__(self) -> None:
        super().__init__(
            fmt="%(asctime)s %(levelname)-8s [%(name)s] %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    def formatMessage(self, record: logging.LogRecord) -> str:
        line = super().formatMessage(record)
        context = record_context(record)
        if not context:
            return line
        return line + " " + " ".join(f"{k}={v}" for k, v in context.items())


def configure_logging(config: LoggingConfig) -> None:
    """Set up the root logger based on configuration."""
    root = logging.getLogger()
    root.setLevel(getattr(logging, config.level.upper(), logging.INFO))

    for handler in root.handlers[:]:
        root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    if config.format == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(TextFormatter())

    root.addHandler(handler)

    for noisy in ("urllib3", "requests"):
        logging.getLogger(noisy).setLevel(logging.WARNING)
