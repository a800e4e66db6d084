"""
Map any exception to a CommonErrorResponse.

Pipeline
--------
    raw exception
      -> classify_exception()        (classifier.py: inspect once, produce a shape)
      -> to_core_exception(shape)    (one handler per shape: category, message, location)
      -> render(core_exception)      (log, then build the wire response)

Everything converges on render(), which is the only place that logs and the only
place that builds responses. render() never raises: if building the response
fails, the failure is logged and a minimal UNEXPECTED/500 response is returned.

Logging policy
--------------
- UNEXPECTED: ERROR, with the full diagnostic trail and exc_info (stack trace).
- anything else: a single WARNING summary; the trail is capped at
  `cause_line_limit` lines so expected client errors don't flood the logs.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any, Callable

from rest_errors.core.correlation import ContextCorrelationId, CorrelationIdProvider
from rest_errors.models.error_response import CommonError, CommonErrorResponse
from rest_errors.models.request_info import RequestInfo

from .base import CoreException, Error, ErrorCategory, FieldViolationException
from .causes import DEFAULT_CAUSE_LINE_LIMIT, core_exception_info, exception_info
from .classifier import classify_exception
from .metadata import get_suppressed
from .shapes import (
    AuthenticationFailure,
    Classified,
    ClientError,
    FailureShape,
    FieldValidation,
    MalformedPayload,
    MethodNotAllowed,
    NotAcceptable,
    ResourceNotFound,
    TypeMismatch,
    Unclassified,
    UnsupportedMediaType,
)

logger = logging.getLogger(__name__)

# Shapes with a fixed category and message and no location.
FIXED_CLASSIFICATIONS: dict[type, tuple[ErrorCategory, str]] = {
    ResourceNotFound: (ErrorCategory.NOT_FOUND, "Resource Not Found"),
    UnsupportedMediaType: (ErrorCategory.VALIDATION, "Media Type Not Supported"),
    MethodNotAllowed: (ErrorCategory.VALIDATION, "Method Not Allowed"),
    NotAcceptable: (ErrorCategory.VALIDATION, "Request Not Acceptable"),
    AuthenticationFailure: (ErrorCategory.AUTHENTICATION, "Authentication required"),
}

DEFAULT_VALIDATION_MESSAGE = "Validation failed"
DEFAULT_PARSE_MESSAGE = "JSON processing error"
DEFAULT_CLIENT_ERROR_MESSAGE = "Bad Request"
DEFAULT_UNEXPECTED_MESSAGE = "Unexpected"

Recognizer = Callable[[BaseException], "FailureShape | None"]
ShapeHandler = Callable[[Any], CoreException]


# -----------------------
# Message builders
# -----------------------


def type_mismatch_message(shape: TypeMismatch) -> str:
    field = shape.location or "value"
    if shape.accepted_values:
        return f"Invalid value for {field}: {shape.value}. Must be one of: {', '.join(shape.accepted_values)}"
    return f"Invalid value '{shape.value}' for field '{field}' of type {shape.target_type}"


def malformed_payload_message(shape: MalformedPayload) -> str:
    if shape.location:
        return f"JSON mapping error at field: {shape.location}"
    if shape.detail:
        return f"{DEFAULT_PARSE_MESSAGE}: {shape.detail}"
    return DEFAULT_PARSE_MESSAGE


def category_exception(category: ErrorCategory, failure: BaseException, message: str, location: str | None = None) -> CoreException:
    """CoreException with a single error whose code is the category name."""
    return CoreException(category, [Error(category.name, location)], message, failure)


def unexpected_exception(failure: BaseException) -> CoreException:
    return category_exception(ErrorCategory.UNEXPECTED, failure, str(failure) or DEFAULT_UNEXPECTED_MESSAGE)


# -----------------------
# Mapper
# -----------------------


class ErrorResponseMapper:
    """
    Classify exceptions and render them as CommonErrorResponse.

    Args:
        correlation: correlation id source, queried once per rendered response.
        cause_line_limit: traceback lines kept in WARNING summaries.

    Extension points:
        register_recognizer(fn): fn(exc) -> shape | None, consulted before the
            built-in classifier, in registration order.
        register_shape_handler(shape_type, fn): fn(shape) -> CoreException for a
            new (or overridden) shape type.
    """

    def __init__(
        self,
        correlation: CorrelationIdProvider | None = None,
        cause_line_limit: int = DEFAULT_CAUSE_LINE_LIMIT,
    ):
        self.correlation = correlation or ContextCorrelationId()
        self.cause_line_limit = cause_line_limit
        self._recognizers: list[Recognizer] = []
        self._handlers: dict[type, ShapeHandler] = {
            Classified: self._classified,
            FieldValidation: self._field_validation,
            TypeMismatch: self._type_mismatch,
            MalformedPayload: self._malformed_payload,
            ClientError: self._client_error,
            Unclassified: self._unclassified,
        }
        for shape_type in FIXED_CLASSIFICATIONS:
            self._handlers[shape_type] = self._fixed

    # --- extension points ---

    def register_recognizer(self, recognizer: Recognizer) -> None:
        self._recognizers.append(recognizer)

    def register_shape_handler(self, shape_type: type, handler: ShapeHandler) -> None:
        self._handlers[shape_type] = handler

    # --- classification ---

    def classify(self, exc: BaseException) -> FailureShape:
        for recognizer in self._recognizers:
            shape = recognizer(exc)
            if shape is not None:
                return shape
        return classify_exception(exc)

    def to_core_exception(self, shape: FailureShape) -> CoreException:
        handler = self._handlers.get(type(shape))
        if handler is None:
            logger.warning("mapper.unknown_shape", extra={"shape": type(shape).__name__})
            return self._unclassified(Unclassified(shape.failure))
        return handler(shape)

    def _classified(self, shape: Classified) -> CoreException:
        return shape.failure

    def _fixed(self, shape: Any) -> CoreException:
        category, message = FIXED_CLASSIFICATIONS[type(shape)]
        return category_exception(category, shape.failure, message)

    def _field_validation(self, shape: FieldValidation) -> CoreException:
        if not shape.violations:
            return category_exception(ErrorCategory.VALIDATION, shape.failure, DEFAULT_VALIDATION_MESSAGE)
        return FieldViolationException(shape.violations, DEFAULT_VALIDATION_MESSAGE, shape.failure)

    def _type_mismatch(self, shape: TypeMismatch) -> CoreException:
        return category_exception(ErrorCategory.VALIDATION, shape.failure, type_mismatch_message(shape), shape.location)

    def _malformed_payload(self, shape: MalformedPayload) -> CoreException:
        return category_exception(
            ErrorCategory.VALIDATION, shape.failure, malformed_payload_message(shape), shape.location
        )

    def _client_error(self, shape: ClientError) -> CoreException:
        return category_exception(ErrorCategory.VALIDATION, shape.failure, shape.message or DEFAULT_CLIENT_ERROR_MESSAGE)

    def _unclassified(self, shape: Unclassified) -> CoreException:
        """
        Use metadata attached to the failure, else UNEXPECTED.

        - the first CoreException among the auxiliary entries wins;
        - if none is a CoreException, the first auxiliary entry is resolved the same way;
        - UNEXPECTED is built from the last failure examined.
        """
        failure = shape.failure
        seen: set[int] = {id(failure)}
        while True:
            suppressed = get_suppressed(failure)
            if not suppressed:
                return unexpected_exception(failure)
            for entry in suppressed:
                if isinstance(entry, CoreException):
                    return entry
            first = suppressed[0]
            if id(first) in seen:
                return unexpected_exception(failure)
            seen.add(id(first))
            failure = first

    # --- rendering ---

    def render(self, exc: CoreException, request: RequestInfo | None = None) -> CommonErrorResponse:
        """Log `exc` and build its wire response. Never raises."""
        try:
            self._log(exc, request)
            return self._build_response(exc)
        except Exception as render_failure:
            logger.error(
                "Failed to generate error response",
                exc_info=render_failure,
                extra={"request": request.as_log_dict() if request else None},
            )
            return self._fallback_response(render_failure)

    def map_exception(self, exc: BaseException, request: RequestInfo | None = None) -> CommonErrorResponse:
        """Classify, convert and render `exc`. Never raises."""
        try:
            core = self.to_core_exception(self.classify(exc))
        except Exception as classify_failure:
            logger.error("Failed to classify exception", exc_info=classify_failure)
            core = unexpected_exception(exc)
        return self.render(core, request)

    def _log(self, exc: CoreException, request: RequestInfo | None) -> None:
        request_log = request.as_log_dict() if request else None
        if exc.category is ErrorCategory.UNEXPECTED:
            logger.error(
                "Unexpected exception encountered: %s",
                exc.message,
                extra={"request": request_log, "error": core_exception_info(exc, limit=None)},
                exc_info=exc.cause or exc,
            )
        else:
            logger.warning(
                "Application exception encountered: %s",
                exc.message,
                extra={"request": request_log, "error": core_exception_info(exc, limit=self.cause_line_limit)},
            )

    def _build_response(self, exc: CoreException) -> CommonErrorResponse:
        errors = [
            CommonError(code=error.code, message=message, location=error.location)
            for error, message in zip(exc.errors, exc.error_messages())
        ]
        return CommonErrorResponse(
            errors=errors,
            correlationId=self.correlation.get_id(),
            httpStatusCode=exc.category.http_status,
        )

    def _fallback_response(self, failure: BaseException) -> CommonErrorResponse:
        try:
            correlation_id = self.correlation.get_id()
        except Exception:
            logger.error("Correlation id source failed", extra={"error": exception_info(failure)})
            correlation_id = str(uuid.uuid4())
        return CommonErrorResponse(
            errors=[
                CommonError(
                    code=ErrorCategory.UNEXPECTED.name,
                    message=str(failure) or DEFAULT_UNEXPECTED_MESSAGE,
                    location=None,
                )
            ],
            correlationId=correlation_id,
            httpStatusCode=ErrorCategory.UNEXPECTED.http_status,
        )


__all__ = [
    "ErrorResponseMapper",
    "FIXED_CLASSIFICATIONS",
    "category_exception",
    "malformed_payload_message",
    "type_mismatch_message",
    "unexpected_exception",
]
