"""
Unit tests for the structured JSON log format.
"""
import sys
sys.path.insert(0, "services")

import json
import logging

from shared.logger import SERVICE_NAME, _JsonFormatter


def _record(msg="Quota reached", **extra):
    record = logging.LogRecord(
        "subscription_service.engine", logging.WARNING, __file__, 10, msg, None, None,
    )
    record.__dict__.update(extra)
    return record


def test_line_carries_service_and_logger_name(monkeypatch):
    monkeypatch.delenv("AWS_LAMBDA_FUNCTION_NAME", raising=False)

    line = json.loads(_JsonFormatter().format(_record(log_group="/aws/lambda/foo")))

    assert line["service"] == SERVICE_NAME
    assert line["logger"] == "subscription_service.engine"
    assert line["level"] == "WARNING"
    assert line["message"] == "Quota reached"
    assert line["log_group"] == "/aws/lambda/foo"
    assert "function_name" not in line


def test_function_name_comes_from_lambda_environment(monkeypatch):
    monkeypatch.setenv("AWS_LAMBDA_FUNCTION_NAME", "LogRelayMacro-MacroFunction")

    line = json.loads(_JsonFormatter().format(_record()))

    assert line["function_name"] == "LogRelayMacro-MacroFunction"
