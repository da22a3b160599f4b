"""
Structured logging configuration.

- Development / testing: one readable, coloured line per record
- Production: one JSON object per record
- Log level: LOG_LEVEL env variable

Records may carry request / plan context through ``extra=``; both
formatters pick up the keys in CONTEXT_FIELDS.
"""

import json
import logging
import os
import sys
from datetime import datetime, timezone

# Context attached by the timing middleware and the wizard / report services.
CONTEXT_FIELDS = ("request_id", "method", "path", "status", "duration_ms", "plan_id", "event_type")

_QUIET_LOGGERS = ("werkzeug", "sqlalchemy.engine", "alembic")


def _context(record: logging.LogRecord) -> dict:
    return {k: getattr(record, k) for k in CONTEXT_FIELDS if getattr(record, k, None) not in (None, "")}


class JSONFormatter(logging.Formatter):
    """One JSON object per line for log shipping."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "line": record.lineno,
            **_context(record),
        }
        if record.exc_info and record.exc_info[0] is not None:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False, default=str)


class ReadableFormatter(logging.Formatter):
    """``HH:MM:SS LEVEL logger: message bcp=… req=… [12ms]`` with level colours."""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        ctx = _context(record)
        msg = record.getMessage()
        ts = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        color = self.COLORS.get(record.levelname, "")

        suffix = []
        if "plan_id" in ctx and "bcp=" not in msg:
            suffix.append(f"bcp={ctx['plan_id']}")
        if "request_id" in ctx:
            suffix.append(f"req={ctx['request_id']}")
        if "duration_ms" in ctx:
            suffix.append(f"[{ctx['duration_ms']:.0f}ms]")

        line = f"{color}{ts} {record.levelname:<8}{self.RESET} {record.name}: {msg}"
        if suffix:
            line += " " + " ".join(suffix)
        if record.exc_info and record.exc_info[0] is not None:
            line += "\n" + self.formatException(record.exc_info)
        return line


def configure_logging(app):
    """
    Install a single stderr handler on the root logger.

    Production (not DEBUG, not TESTING) logs JSON at INFO by default;
    development and tests log readable lines at DEBUG. LOG_LEVEL overrides.
    """
    is_testing = app.config.get("TESTING", False)
    is_prod = not app.config.get("DEBUG", False) and not is_testing

    level_name = os.getenv("LOG_LEVEL", "INFO" if is_prod else "DEBUG").upper()
    level = getattr(logging, level_name, logging.INFO)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JSONFormatter() if is_prod else ReadableFormatter())
    handler.setLevel(level)

    # Cleared first: tests call create_app() more than once per process
    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    app.logger.setLevel(level)

    if not is_testing:
        app.logger.info("Logging configured: level=%s format=%s",
                        level_name, "JSON" if is_prod else "readable")
