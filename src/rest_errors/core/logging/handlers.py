# src/rest_errors/core/logging/handlers.py
"""
Handler factories for logging.dictConfig.

Each function returns a handler configuration dict; builder.py registers them
under a name ("console", "file", ...). They are pure functions of Settings, so
they are easy to unit test.

Formatter names ("json", "standard") and filter names ("correlation_id",
"redact") must exist in the dictConfig built by builder.make_dict_config().
"""

from pathlib import Path

from rest_errors.config.settings import Settings

_FILTERS = ["correlation_id", "redact"]


def _formatter_name(settings: Settings) -> str:
    return "json" if settings.LOG_FORMAT == "json" else "standard"


def get_console_handler(settings: Settings) -> dict:
    """StreamHandler (stderr) honoring LOG_FORMAT and LOG_LEVEL."""
    return {
        "class": "logging.StreamHandler",
        "formatter": _formatter_name(settings),
        "level": settings.LOG_LEVEL,
        "filters": list(_FILTERS),
    }


def get_file_handler(settings: Settings) -> dict:
    return {
        "class": "logging.handlers.RotatingFileHandler",
        "formatter": _formatter_name(settings),
        "level": settings.LOG_LEVEL,
        "filename": str(Path(settings.LOG_DIR) / "app.log"),
        "maxBytes": settings.LOG_MAX_BYTES,
        "backupCount": settings.LOG_BACKUP_COUNT,
        "encoding": "utf-8",
        "filters": list(_FILTERS),
    }


# Unexpected (500) failures are logged at ERROR; keep them in a separate,
# always-structured stream for alerting.
def get_error_file_handler(settings: Settings) -> dict:
    return {
        "class": "logging.handlers.RotatingFileHandler",
        "formatter": "json",
        "level": "ERROR",
        "filename": str(Path(settings.LOG_DIR) / "errors.log"),
        "maxBytes": settings.LOG_MAX_BYTES,
        "backupCount": settings.LOG_BACKUP_COUNT,
        "encoding": "utf-8",
        "filters": list(_FILTERS),
    }


def get_error_console_handler(settings: Settings) -> dict:
    return {
        "class": "logging.StreamHandler",
        "formatter": "json",
        "level": "ERROR",
        "filters": list(_FILTERS),
    }
