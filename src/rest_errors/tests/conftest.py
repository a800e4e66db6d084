"""
Core pytest configuration for the entire test suite.

Only the pieces every test module needs live here: logging installation and
per-test isolation of the correlation id contextvar.

Domain-specific fixtures are located in:
- tests/test_fixtures/mapper_fixtures.py   (correlation id stubs, mapper instances)
- tests/test_fixtures/app_fixtures.py      (a FastAPI app wired with the error handlers)
- tests/test_fixtures/logging_fixtures.py  (session logging settings)
"""

from __future__ import annotations

import logging

# -------------------------------
# Early logging tuning
# -------------------------------
# Silence chatty third-party loggers before importing anything that may configure them.
NOISY_LOGGERS = ("asyncio", "httpx", "httpcore", "urllib3")
for _name in NOISY_LOGGERS:
    logging.getLogger(_name).setLevel(logging.WARNING)

import pytest
from pytest import FixtureRequest

from rest_errors.core.logging.builder import setup_logging
from rest_errors.core.logging.filters import reset_correlation_id, set_correlation_id

from .test_fixtures.logging_fixtures import TEST_SETTINGS, restore_logging


@pytest.fixture(scope="session", autouse=True)
def configure_logging(request: FixtureRequest):
    """
    Install the library logging configuration for the whole session.

    dictConfig replaces the root handlers; pytest re-adds its capture handler for
    each test phase, so caplog keeps working.
    """
    setup_logging(TEST_SETTINGS)
    yield


@pytest.fixture(autouse=True)
def isolated_correlation_id():
    """Every test starts without a correlation id and leaves none behind."""
    token = set_correlation_id(None)
    yield
    reset_correlation_id(token)


# -------------------------------
# Shared fixtures
# -------------------------------
from .test_fixtures.mapper_fixtures import (  # noqa: E402
    StaticCorrelationId,
    correlation,
    mapper,
)
from .test_fixtures.app_fixtures import (  # noqa: E402
    client,
    error_app,
)

__all__ = ["StaticCorrelationId", "client", "correlation", "error_app", "mapper", "restore_logging"]
