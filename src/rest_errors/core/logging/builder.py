"""
Logging builder: create and apply a dictConfig logging configuration.

This module:
 - builds a dictConfig-compatible mapping from Settings
 - wires the correlation-id and redaction filters on every handler
 - exposes setup_logging(settings) for app factories and the test session

Settings used: LOG_FORMAT, LOG_LEVEL, LOG_TO_STDOUT, LOG_DIR, LOG_MAX_BYTES,
LOG_BACKUP_COUNT, ENV.
"""

from __future__ import annotations

import logging
import logging.config
from pathlib import Path

from rest_errors.config.settings import Settings
from rest_errors.utils.logging import get_project_name

from .filters import CorrelationIdFilter, RedactFilter
from .formatters import ColorFormatter, JsonFormatter
from .handlers import (
    get_console_handler,
    get_error_console_handler,
    get_error_file_handler,
    get_file_handler,
)

STANDARD_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(correlation_id)s | %(message)s"


def _writes_files(settings: Settings) -> bool:
    return (not settings.LOG_TO_STDOUT) and bool(settings.LOG_DIR)


def make_dict_config(settings: Settings) -> dict:
    """
    Build the dictConfig mapping.

    - formatters: "standard" (colored when LOG_FORMAT=text) and "json"
    - filters: "correlation_id", "redact"
    - handlers: console + error_console, or console + file + error_file when
      logging to LOG_DIR
    - loggers: root, uvicorn.error, uvicorn.access
    """
    formatters = {
        "standard": {
            "()": ColorFormatter if settings.LOG_FORMAT == "text" else logging.Formatter,
            "fmt": STANDARD_FORMAT,
        },
        "json": {
            "()": JsonFormatter,
            "env": settings.ENV,
            "service": get_project_name(default="rest-errors"),
        },
    }

    filters = {
        "correlation_id": {"()": CorrelationIdFilter},
        "redact": {"()": RedactFilter},
    }

    handlers: dict[str, dict] = {"console": get_console_handler(settings)}
    if _writes_files(settings):
        handlers["file"] = get_file_handler(settings)
        handlers["error_file"] = get_error_file_handler(settings)
    else:
        handlers["error_console"] = get_error_console_handler(settings)

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": formatters,
        "filters": filters,
        "handlers": handlers,
        "loggers": {
            "": {
                "handlers": list(handlers.keys()),
                "level": settings.LOG_LEVEL,
                "propagate": True,
            },
            "uvicorn.error": {
                "level": settings.LOG_LEVEL,
                "handlers": list(handlers.keys()),
                "propagate": False,
            },
            "uvicorn.access": {
                "level": "INFO",
                "handlers": ["console"],
                "propagate": False,
            },
        },
    }


def setup_logging(settings: Settings) -> None:
    """
    Install the logging configuration.

    Creates LOG_DIR when logging to files, applies the dictConfig, and adds a
    CorrelationIdFilter to the root logger as a safety net for handlers added
    later by third parties.
    """
    if _writes_files(settings):
        Path(settings.LOG_DIR).mkdir(parents=True, exist_ok=True)

    logging.config.dictConfig(make_dict_config(settings))
    logging.getLogger().addFilter(CorrelationIdFilter())
