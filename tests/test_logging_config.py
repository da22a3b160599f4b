"""Tests — log formatters."""

import json
import logging

from bcp.middleware.logging_config import JSONFormatter, ReadableFormatter


def _record(msg="Risks saved", **extra):
    record = logging.LogRecord("bcp.services.wizard_service", logging.INFO, __file__, 10, msg, (), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_formatter_includes_context():
    line = JSONFormatter().format(_record(plan_id="p-1", duration_ms=12.5, request_id=""))
    entry = json.loads(line)
    assert entry["message"] == "Risks saved"
    assert entry["level"] == "INFO"
    assert entry["plan_id"] == "p-1"
    assert entry["duration_ms"] == 12.5
    assert "request_id" not in entry


def test_readable_formatter_appends_plan_and_duration():
    line = ReadableFormatter().format(_record(plan_id="p-1", request_id="abc", duration_ms=7.2))
    assert "Risks saved bcp=p-1 req=abc [7ms]" in line


def test_readable_formatter_does_not_repeat_plan_id():
    line = ReadableFormatter().format(_record(msg="Risks saved bcp=p-1 count=1", plan_id="p-1"))
    assert line.count("bcp=p-1") == 1
