"""
Error normalization for FastAPI services.

Every failure, whatever its origin, leaves the service as one response shape:

    {"errors": [{"code": ..., "message": ..., "location": ...}],
     "correlationId": ..., "httpStatusCode": ...}

Quick start:

    from fastapi import FastAPI
    from rest_errors import register_exception_handlers

    app = FastAPI()
    register_exception_handlers(app)
"""

from .api.v1.error_handlers import register_exception_handlers
from .exceptions import (
    CoreException,
    Error,
    ErrorCategory,
    ErrorCode,
    ErrorResponseMapper,
    FieldViolationException,
    Violation,
    add_metadata,
    is_retryable,
)
from .models import CommonError, CommonErrorResponse, RequestInfo

__all__ = [
    "CommonError",
    "CommonErrorResponse",
    "CoreException",
    "Error",
    "ErrorCategory",
    "ErrorCode",
    "ErrorResponseMapper",
    "FieldViolationException",
    "RequestInfo",
    "Violation",
    "add_metadata",
    "is_retryable",
    "register_exception_handlers",
]
