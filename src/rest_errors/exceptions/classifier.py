"""
Ingress classification: turn a raw exception into a recognized failure shape.

This is the only module that knows about FastAPI / Starlette / pydantic exception
types. Everything downstream (mapper.py) works on the shapes from shapes.py.

Recognition rules
-----------------
- CoreException                           -> Classified
- HTTPException 404 / 415 / 405 / 406 / 401 -> ResourceNotFound / UnsupportedMediaType /
                                             MethodNotAllowed / NotAcceptable / AuthenticationFailure
- HTTPException other 4xx                 -> payload shape found in its cause chain, else ClientError
- RequestValidationError / ValidationError:
    * a `json_invalid` error              -> MalformedPayload
    * a type/format mismatch              -> TypeMismatch (first mismatch only: binding fails fast)
    * anything else                       -> FieldValidation (one violation per error)
- json.JSONDecodeError                    -> MalformedPayload
- everything else                         -> Unclassified (metadata lookup happens in the mapper)
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Iterable, Mapping, Sequence

from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from .base import CoreException, Violation
from .causes import cause_chain, render_location
from .shapes import (
    PAYLOAD_SHAPE_PRIORITY,
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

# =================================================================================================================
# Lookup tables
# =================================================================================================================

STATUS_SHAPES: dict[int, type] = {
    401: AuthenticationFailure,
    404: ResourceNotFound,
    405: MethodNotAllowed,
    406: NotAcceptable,
    415: UnsupportedMediaType,
}

# First element of a FastAPI request-validation `loc`; not part of the payload path.
REQUEST_SOURCES = frozenset({"body", "query", "path", "header", "cookie"})

# pydantic error type -> name of the type the value should have been converted to.
TYPE_MISMATCH_TARGETS: dict[str, str] = {
    "int_parsing": "int",
    "int_type": "int",
    "int_from_float": "int",
    "float_parsing": "float",
    "float_type": "float",
    "bool_parsing": "bool",
    "bool_type": "bool",
    "string_type": "str",
    "decimal_parsing": "Decimal",
    "decimal_type": "Decimal",
    "date_parsing": "date",
    "date_from_datetime_parsing": "date",
    "date_type": "date",
    "datetime_parsing": "datetime",
    "datetime_from_date_parsing": "datetime",
    "datetime_type": "datetime",
    "time_parsing": "time",
    "time_type": "time",
    "uuid_parsing": "UUID",
    "uuid_type": "UUID",
    "url_parsing": "Url",
    "url_type": "Url",
    "url_scheme": "Url",
    "enum": "enum",
    "literal_error": "literal",
}

# Mismatches whose target is a closed set of values listed in ctx["expected"].
CLOSED_SET_TYPES = frozenset({"enum", "literal_error"})

JSON_INVALID = "json_invalid"

_EXPECTED_SPLIT = re.compile(r",\s*|\s+or\s+")
_QUOTED_VALUE = re.compile(r"'((?:[^'\\]|\\.)*)'|\"((?:[^\"\\]|\\.)*)\"")


# =================================================================================================================
# Helpers
# =================================================================================================================


def parse_expected_values(expected: str) -> tuple[str, ...]:
    """
    Split pydantic's human list of accepted values into the values themselves.

        "'USD', 'EUR' or 'GBP'" -> ("USD", "EUR", "GBP")
        "1, 2 or 3"             -> ("1", "2", "3")

    Quoted values are read whole, so commas inside them are kept.
    """
    quoted = _QUOTED_VALUE.findall(expected)
    if quoted:
        return tuple(single or double for single, double in quoted)

    values = []
    for part in _EXPECTED_SPLIT.split(expected.strip()):
        part = part.strip()
        if len(part) >= 2 and part[0] == part[-1] and part[0] in "'\"":
            part = part[1:-1]
        if part:
            values.append(part)
    return tuple(values)


def _location(loc: Sequence[Any] | None, strip_source: bool) -> str | None:
    segments = list(loc or ())
    if strip_source and segments and segments[0] in REQUEST_SOURCES:
        segments = segments[1:]
    return render_location(segments)


def _validation_errors(exc: BaseException) -> list[Mapping[str, Any]]:
    if isinstance(exc, (RequestValidationError, ValidationError)):
        return list(exc.errors())
    return []


def _type_mismatch(exc: BaseException, error: Mapping[str, Any], strip_source: bool) -> TypeMismatch:
    kind = error["type"]
    ctx = error.get("ctx") or {}
    accepted = None
    if kind in CLOSED_SET_TYPES and ctx.get("expected"):
        accepted = parse_expected_values(str(ctx["expected"]))
    return TypeMismatch(
        failure=exc,
        location=_location(error.get("loc"), strip_source),
        value=error.get("input"),
        target_type=TYPE_MISMATCH_TARGETS[kind],
        accepted_values=accepted,
    )


def _malformed_payload(exc: BaseException, error: Mapping[str, Any]) -> MalformedPayload:
    # The loc of a json_invalid error points at a character offset, not a field.
    ctx = error.get("ctx") or {}
    return MalformedPayload(failure=exc, location=None, detail=ctx.get("error") or error.get("msg"))


def _classify_validation_errors(
    exc: BaseException, errors: Iterable[Mapping[str, Any]], strip_source: bool
) -> FailureShape:
    errors = list(errors)
    if not errors:
        return ClientError(exc, str(exc) or None)

    for error in errors:
        if error.get("type") == JSON_INVALID:
            return _malformed_payload(exc, error)

    for error in errors:
        if error.get("type") in TYPE_MISMATCH_TARGETS:
            return _type_mismatch(exc, error, strip_source)

    violations = tuple(
        Violation(message=error.get("msg") or "Invalid value", location=_location(error.get("loc"), strip_source))
        for error in errors
    )
    return FieldValidation(exc, violations)


def _payload_shape(exc: BaseException) -> FailureShape | None:
    """Shape for exceptions that describe a broken request payload, else None."""
    if isinstance(exc, RequestValidationError):
        return _classify_validation_errors(exc, _validation_errors(exc), strip_source=True)
    if isinstance(exc, ValidationError):
        return _classify_validation_errors(exc, _validation_errors(exc), strip_source=False)
    if isinstance(exc, json.JSONDecodeError):
        return MalformedPayload(failure=exc, location=None, detail=str(exc))
    return None


def _classify_payload_cause(exc: BaseException) -> FailureShape | None:
    """
    Look through the wrapped causes of `exc` for a payload failure.

    The most specific kind wins (see PAYLOAD_SHAPE_PRIORITY), whatever its depth.
    """
    found = [shape for cause in cause_chain(exc)[1:] if (shape := _payload_shape(cause)) is not None]
    for kind in PAYLOAD_SHAPE_PRIORITY:
        for shape in found:
            if isinstance(shape, kind):
                return shape
    return None


def _classify_http_exception(exc: StarletteHTTPException) -> FailureShape:
    shape_cls = STATUS_SHAPES.get(exc.status_code)
    if shape_cls is not None:
        return shape_cls(exc)

    if 400 <= exc.status_code < 500:
        nested = _classify_payload_cause(exc)
        if nested is not None:
            logger.debug(
                "classifier.payload_cause_detected",
                extra={"wrapper": type(exc).__name__, "shape": type(nested).__name__},
            )
            return nested
        detail = exc.detail if isinstance(exc.detail, str) and exc.detail else None
        return ClientError(exc, detail)

    return Unclassified(exc)


# =================================================================================================================
# Entry point
# =================================================================================================================


def classify_exception(exc: BaseException) -> FailureShape:
    """Inspect `exc` once and return the recognized failure shape."""
    if isinstance(exc, CoreException):
        return Classified(exc)

    if isinstance(exc, StarletteHTTPException):
        return _classify_http_exception(exc)

    shape = _payload_shape(exc)
    if shape is not None:
        return shape

    return Unclassified(exc)


__all__ = [
    "CLOSED_SET_TYPES",
    "REQUEST_SOURCES",
    "STATUS_SHAPES",
    "TYPE_MISMATCH_TARGETS",
    "classify_exception",
    "parse_expected_values",
]
