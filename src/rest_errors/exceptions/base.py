"""
Core error model shared by every layer of a service.

- ErrorCategory: loose classification of a failure; drives the HTTP status.
- Error: a single error condition (code, optional payload location, arguments).
- ErrorCode: mixin for Enums so call sites use constants instead of bare strings.
- CoreException: the canonical carrier of classified-failure state. It may be
  raised directly, subclassed, or attached to any other exception after the fact
  (see metadata.py).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Iterable, Mapping, Sequence


class ErrorCategory(str, Enum):
    """Closed set of error kinds that are visible to API clients."""

    AUTHENTICATION = "AUTHENTICATION"
    AUTHORIZATION = "AUTHORIZATION"
    VALIDATION = "VALIDATION"
    CONFLICT = "CONFLICT"
    NOT_FOUND = "NOT_FOUND"
    UNPROCESSABLE = "UNPROCESSABLE"
    UNEXPECTED = "UNEXPECTED"

    @property
    def http_status(self) -> int:
        return CATEGORY_TO_STATUS[self]


# Every category maps to exactly one status.
CATEGORY_TO_STATUS: dict[ErrorCategory, int] = {
    ErrorCategory.AUTHENTICATION: 401,
    ErrorCategory.AUTHORIZATION: 403,
    ErrorCategory.VALIDATION: 400,
    ErrorCategory.CONFLICT: 409,
    ErrorCategory.NOT_FOUND: 404,
    ErrorCategory.UNPROCESSABLE: 422,
    ErrorCategory.UNEXPECTED: 500,
}


@dataclass(frozen=True)
class Error:
    """
    A single error condition.

    - code: stable machine-readable identifier (e.g. "user.email.taken")
    - location: optional path into the request payload (e.g. "user.email", "items[0].name")
    - arguments: values used by callers to interpolate a human message; may be empty.
      Stored as a read-only copy; not part of the hash.
    """

    code: str
    location: str | None = None
    arguments: Mapping[str, Any] = field(default_factory=dict, hash=False)

    def __post_init__(self):
        object.__setattr__(self, "arguments", MappingProxyType(dict(self.arguments)))

    @classmethod
    def of(
        cls,
        code: "str | ErrorCode",
        location: str | None = None,
        arguments: Mapping[str, Any] | None = None,
    ) -> "Error":
        """Build an Error from a bare string code or an ErrorCode member."""
        if isinstance(code, ErrorCode):
            return code.to_error(location, arguments)
        return cls(code, location, arguments or {})


class ErrorCode:
    """
    Mixin for Enums whose members are error codes.

        class UserErrors(ErrorCode, Enum):
            EMAIL_TAKEN = "user.email.taken"

        raise CoreException(ErrorCategory.CONFLICT, [UserErrors.EMAIL_TAKEN.to_error("email")], "...")

    The member value is used as the code unless `code` is overridden.
    """

    @property
    def code(self) -> str:
        return str(self.value)  # type: ignore[attr-defined]

    def to_error(self, location: str | None = None, arguments: Mapping[str, Any] | None = None) -> Error:
        return Error(self.code, location, arguments or {})


@dataclass(frozen=True)
class Violation:
    """One field-level violation with its own message (e.g. "must not be blank" at "user.firstName")."""

    message: str
    location: str | None = None
    code: str = ErrorCategory.VALIDATION.value


class CoreException(Exception):
    """
    Main exception holding error state for the transport layer.

    Retryable exceptions signal that the failure is transient and the same operation
    may succeed if retried unchanged. The mapping layer only exposes the flag.
    """

    def __init__(
        self,
        category: ErrorCategory,
        errors: Iterable[Error],
        message: str,
        cause: BaseException | None = None,
        retryable: bool = False,
    ):
        errors = tuple(errors)
        if not errors:
            raise ValueError("At least one error must be supplied")
        super().__init__(message)
        self.category = category
        self.errors: tuple[Error, ...] = errors
        self.message = message
        self.retryable = retryable
        if cause is not None:
            self.__cause__ = cause

    @property
    def cause(self) -> BaseException | None:
        return self.__cause__

    def error_messages(self) -> list[str]:
        """Message rendered next to each error; every error shares the exception message."""
        return [self.message] * len(self.errors)

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(category={self.category.name}, errors={list(self.errors)!r}, "
            f"message={self.message!r}, retryable={self.retryable})"
        )


class FieldViolationException(CoreException):
    """VALIDATION failure where each error keeps the message of its own violation."""

    def __init__(
        self,
        violations: Sequence[Violation],
        message: str = "Validation failed",
        cause: BaseException | None = None,
    ):
        violations = tuple(violations)
        super().__init__(
            ErrorCategory.VALIDATION,
            [Error(v.code, v.location) for v in violations],
            message,
            cause,
        )
        self.violations = violations

    def error_messages(self) -> list[str]:
        return [v.message for v in self.violations]


__all__ = [
    "CATEGORY_TO_STATUS",
    "CoreException",
    "Error",
    "ErrorCategory",
    "ErrorCode",
    "FieldViolationException",
    "Violation",
]
