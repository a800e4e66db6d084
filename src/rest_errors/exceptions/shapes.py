"""
Recognized failure shapes.

The classifier inspects a raw exception once and produces one of these values;
the response mapper only ever matches on the shape, never on framework types.
Every shape keeps the original exception in `failure` for diagnostics.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Union

from .base import CoreException, Violation


@dataclass(frozen=True)
class Classified:
    """Already carries its own classification."""

    failure: CoreException


@dataclass(frozen=True)
class ResourceNotFound:
    failure: BaseException


@dataclass(frozen=True)
class UnsupportedMediaType:
    failure: BaseException


@dataclass(frozen=True)
class MethodNotAllowed:
    failure: BaseException


@dataclass(frozen=True)
class NotAcceptable:
    failure: BaseException


@dataclass(frozen=True)
class AuthenticationFailure:
    failure: BaseException


@dataclass(frozen=True)
class FieldValidation:
    """One or more field-level violations, each with its own message and path."""

    failure: BaseException
    violations: tuple[Violation, ...]


@dataclass(frozen=True)
class TypeMismatch:
    """
    A payload value that could not be converted to the target type.

    accepted_values is set when the target is a closed enumeration.
    """

    failure: BaseException
    location: str | None
    value: Any
    target_type: str | None = None
    accepted_values: tuple[str, ...] | None = None


@dataclass(frozen=True)
class MalformedPayload:
    """The payload could not be parsed at all (or only a path is known)."""

    failure: BaseException
    location: str | None = None
    detail: str | None = None


@dataclass(frozen=True)
class ClientError:
    """Any other framework-level client error (4xx)."""

    failure: BaseException
    message: str | None = None


@dataclass(frozen=True)
class Unclassified:
    failure: BaseException


FailureShape = Union[
    Classified,
    ResourceNotFound,
    UnsupportedMediaType,
    MethodNotAllowed,
    NotAcceptable,
    AuthenticationFailure,
    FieldValidation,
    TypeMismatch,
    MalformedPayload,
    ClientError,
    Unclassified,
]

# Most specific first: when a wrapper carries several payload failures in its
# cause chain, the first kind listed here wins.
PAYLOAD_SHAPE_PRIORITY: tuple[type, ...] = (TypeMismatch, FieldValidation, MalformedPayload)


__all__ = [
    "AuthenticationFailure",
    "Classified",
    "ClientError",
    "FailureShape",
    "FieldValidation",
    "MalformedPayload",
    "MethodNotAllowed",
    "NotAcceptable",
    "PAYLOAD_SHAPE_PRIORITY",
    "ResourceNotFound",
    "TypeMismatch",
    "Unclassified",
    "UnsupportedMediaType",
]
