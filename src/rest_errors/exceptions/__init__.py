# src/rest_errors/exceptions/
# ├─ base.py        # ErrorCategory, Error, ErrorCode, CoreException, FieldViolationException
# ├─ metadata.py    # add_metadata / is_retryable for exceptions we don't own
# ├─ causes.py      # cause chain, bounded traceback lines, render_location
# ├─ shapes.py      # recognized failure shapes
# ├─ classifier.py  # raw exception -> shape
# └─ mapper.py      # shape -> CoreException -> CommonErrorResponse

from .base import (
    CATEGORY_TO_STATUS,
    CoreException,
    Error,
    ErrorCategory,
    ErrorCode,
    FieldViolationException,
    Violation,
)
from .causes import (
    DEFAULT_CAUSE_LINE_LIMIT,
    cause_chain,
    core_exception_info,
    exception_info,
    get_cause_lines,
    innermost_cause,
    render_location,
)
from .classifier import classify_exception
from .mapper import ErrorResponseMapper
from .metadata import add_metadata, add_suppressed, get_suppressed, is_retryable

__all__ = [
    "CATEGORY_TO_STATUS",
    "DEFAULT_CAUSE_LINE_LIMIT",
    "CoreException",
    "Error",
    "ErrorCategory",
    "ErrorCode",
    "ErrorResponseMapper",
    "FieldViolationException",
    "Violation",
    "add_metadata",
    "add_suppressed",
    "cause_chain",
    "classify_exception",
    "core_exception_info",
    "exception_info",
    "get_cause_lines",
    "get_suppressed",
    "innermost_cause",
    "is_retryable",
    "render_location",
]
