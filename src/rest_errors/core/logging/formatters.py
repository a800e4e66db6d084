"""
Custom logging formatters.

  - JsonFormatter: one JSON object per record, for log collectors. Error mapper
    payloads passed via `extra` (request descriptor, exception info) become
    top-level keys, so they can be queried directly.
  - ColorFormatter: compact ANSI-colored lines for local development.

builder.py picks between them from Settings.LOG_FORMAT.
"""

import json
import logging
from logging import LogRecord
from typing import Any

from rest_errors.utils.logging import get_project_version

PROJECT_VERSION = get_project_version()

# Attributes every LogRecord has; anything else on a record came from `extra`.
_STANDARD_ATTRS = frozenset(logging.LogRecord("", 0, "", 0, "", (), None).__dict__) | {"message", "asctime"}


class JsonFormatter(logging.Formatter):
    """
    Structured JSON formatter.

    Emits timestamp, level, logger, message, pathname, lineno, correlation_id,
    service, env and version, then exception text when present, then every
    `extra` key. Values that json cannot encode are stringified so formatting
    never raises.
    """

    def __init__(self, *, env: str | None = None, service: str = "rest-errors", datefmt: str | None = None):
        super().__init__(datefmt=datefmt)
        self.env = env
        self.service = service

    def format(self, record: LogRecord) -> str:
        log_record: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "pathname": record.pathname,
            "lineno": record.lineno,
            "correlation_id": getattr(record, "correlation_id", "-"),
            "service": self.service,
            "env": self.env,
            "version": PROJECT_VERSION,
        }

        if record.exc_info:
            log_record["exc_info"] = self.formatException(record.exc_info)
        if record.stack_info:
            log_record["stack_info"] = self.formatStack(record.stack_info)

        for key, value in record.__dict__.items():
            if key in _STANDARD_ATTRS or key in log_record or key.startswith("_"):
                continue
            try:
                json.dumps(value)
                log_record[key] = value
            except (TypeError, ValueError):
                log_record[key] = str(value)

        return json.dumps(log_record, ensure_ascii=False, default=str)


class ColorFormatter(logging.Formatter):
    """
    Development-friendly colored formatter:

        TIMESTAMP | LEVEL | LOGGER | CORRELATION_ID | MESSAGE
    """

    COLOR_CODES = {
        "DEBUG": "\033[36m",      # cyan
        "INFO": "\033[32m",       # green
        "WARNING": "\033[33m",    # yellow
        "ERROR": "\033[31m",      # red
        "CRITICAL": "\033[1;41m",  # bold on red background
        "RESET": "\033[0m",
    }

    def __init__(self, fmt: str | None = None, datefmt: str | None = None) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)

    def format(self, record: LogRecord) -> str:
        color = self.COLOR_CODES.get(record.levelname, "")
        reset = self.COLOR_CODES["RESET"]
        timestamp = self.formatTime(record, self.datefmt)

        base = (
            f"{timestamp} | {color}{record.levelname:<8}{reset} | "
            f"{record.name:<30} | "
            f"{getattr(record, 'correlation_id', '-'):<36} | "
            f"{record.getMessage()}"
        )

        if record.exc_info:
            base = base + "\n" + self.formatException(record.exc_info)

        return base
