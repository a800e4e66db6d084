"""
Attach classification metadata to exceptions we don't own.

A library exception (KeyError, an HTTP client error, a driver error...) can be tagged
with a category and error codes without wrapping or subclassing it:

    try:
        account = accounts[account_id]
    except KeyError as exc:
        raise add_metadata(exc, ErrorCategory.NOT_FOUND, Error("account.not_found", "accountId"))

The exception keeps its type, message and identity. The metadata lives in a list of
auxiliary ("suppressed") exceptions stored on the exception object itself, and the
response mapper consults that list when the exception is not otherwise recognized.
"""

from __future__ import annotations

from typing import TypeVar

from .base import CoreException, Error, ErrorCategory

E = TypeVar("E", bound=BaseException)

# Attribute holding the auxiliary list in the exception's __dict__.
SUPPRESSED_ATTR = "_rest_errors_suppressed"


def get_suppressed(failure: BaseException) -> tuple[BaseException, ...]:
    """Return the auxiliary exceptions attached to `failure`, oldest first."""
    return tuple(getattr(failure, SUPPRESSED_ATTR, ()))


def add_suppressed(failure: E, other: BaseException) -> E:
    """Append `other` to the auxiliary list of `failure` and return `failure`."""
    if other is failure:
        raise ValueError("An exception cannot suppress itself")
    suppressed = getattr(failure, SUPPRESSED_ATTR, None)
    if suppressed is None:
        suppressed = []
        setattr(failure, SUPPRESSED_ATTR, suppressed)
    suppressed.append(other)
    return failure


def add_metadata(
    failure: E,
    category: ErrorCategory,
    *errors: Error,
    retryable: bool = False,
) -> E:
    """
    Tag `failure` with a category and error list.

    A CoreException wrapping `failure` as its cause is appended to the auxiliary list.
    The message defaults to the failure's own message, or its type name when empty.
    Returns `failure` unchanged so callers can attach and re-raise in one expression.
    """
    message = str(failure) or type(failure).__name__
    return add_suppressed(failure, CoreException(category, errors, message, failure, retryable))


def is_retryable(failure: BaseException) -> bool:
    """
    Whether the failed operation may succeed if retried.

    A CoreException answers with its own flag. Any other exception defers to its
    FIRST auxiliary entry; later attachments are never consulted.
    """
    seen: set[int] = set()
    current = failure
    while id(current) not in seen:
        seen.add(id(current))
        if isinstance(current, CoreException):
            return current.retryable
        suppressed = get_suppressed(current)
        if not suppressed:
            return False
        current = suppressed[0]
    return False


__all__ = [
    "SUPPRESSED_ATTR",
    "add_metadata",
    "add_suppressed",
    "get_suppressed",
    "is_retryable",
]
