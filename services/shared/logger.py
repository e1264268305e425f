"""
Structured JSON Logging for LogRelay
====================================
One JSON line per record. The macro runs inside Lambda, so its own output
lands in CloudWatch Logs where Logs Insights can query the fields directly:

    fields @timestamp, function_name, logger, log_group, message
    | filter level = "WARNING"
    | sort @timestamp desc

Every advisory warning the subscription engine returns is also logged here,
with the log group or logical id attached as an extra field.

Usage:
  from shared.logger import get_logger
  logger = get_logger(__name__)
  logger.warning("Quota reached", extra={"log_group": "/aws/lambda/foo"})
"""
from __future__ import annotations

import json
import logging
import os
import time
from typing import Any

# LogRecord attributes that are plumbing, not payload
_STDLIB_FIELDS = {
    "name", "msg", "args", "levelname", "levelno", "pathname", "filename",
    "module", "exc_info", "exc_text", "stack_info", "lineno", "funcName",
    "created", "msecs", "relativeCreated", "thread", "threadName",
    "processName", "process", "message", "taskName",
}

SERVICE_NAME = "logrelay"

_configured = False


class _JsonFormatter(logging.Formatter):
    """
    Every line carries the fixed service name, the emitting module and, inside
    Lambda, the macro function's name so that lines from several deployed
    macros can be told apart in one Insights query.
    """

    def __init__(self, function_name: str | None = None):
        super().__init__()
        self.function_name = function_name or os.environ.get("AWS_LAMBDA_FUNCTION_NAME")

    def format(self, record: logging.LogRecord) -> str:
        log_obj: dict[str, Any] = {
            "timestamp": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime(record.created)),
            "level": record.levelname,
            "service": SERVICE_NAME,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if self.function_name:
            log_obj["function_name"] = self.function_name

        # Extra fields (log_group, logical_id, request_id, ...) go in as-is
        log_obj.update(
            (key, value) for key, value in record.__dict__.items() if key not in _STDLIB_FIELDS
        )

        if record.exc_info:
            log_obj["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_obj, default=str)


def get_logger(name: str) -> logging.Logger:
    """
    Return a logger that emits structured JSON.
    The root logger is configured on the first call only.
    """
    global _configured
    if not _configured:
        root = logging.getLogger()
        formatter = _JsonFormatter()
        if root.handlers:
            # Lambda installs its own handler; reuse it
            for h in root.handlers:
                h.setFormatter(formatter)
        else:
            handler = logging.StreamHandler()
            handler.setFormatter(formatter)
            root.addHandler(handler)
        log_level = os.environ.get("LOG_LEVEL", "INFO").upper()
        root.setLevel(getattr(logging, log_level, logging.INFO))
        _configured = True
    return logging.getLogger(name)
