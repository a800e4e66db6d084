"""
Diagnostic helpers: cause-chain walking, bounded traceback lines and field-location
rendering.

Cause chains follow the explicit wrapping relationship only (`raise X from exc`,
or CoreException's `cause` argument). Implicit `__context__` links are not treated
as wrapping.
"""

from __future__ import annotations

import traceback
from typing import Any, Sequence, Union

from .base import CoreException

DEFAULT_CAUSE_LINE_LIMIT = 10

# A payload path: either already rendered ("items[0].name") or a sequence of
# segments where str is a field name and int is an index.
LocationPath = Union[str, Sequence[Union[str, int]]]


def wrapped_cause(failure: BaseException) -> BaseException | None:
    """The failure explicitly wrapped by `failure`, if any."""
    return failure.__cause__


def cause_chain(failure: BaseException) -> list[BaseException]:
    """`failure` followed by each wrapped cause, outermost first. Stops on cycles."""
    chain: list[BaseException] = []
    seen: set[int] = set()
    current: BaseException | None = failure
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        chain.append(current)
        current = wrapped_cause(current)
    return chain


def innermost_cause(failure: BaseException) -> BaseException:
    return cause_chain(failure)[-1]


def get_cause_lines(failure: BaseException, limit: int | None = DEFAULT_CAUSE_LINE_LIMIT) -> list[str]:
    """
    Up to `limit` traceback lines from the innermost cause of `failure`.

    Lines are ordered most recent call first, so the first line is the place the
    original error was raised rather than the site of an intermediate wrapper.
    A failure that was never raised has no traceback and yields no lines.
    """
    root = innermost_cause(failure)
    frames = traceback.extract_tb(root.__traceback__)
    lines = [f"{frame.name} ({frame.filename}:{frame.lineno})" for frame in reversed(frames)]
    if limit is None:
        return lines
    return lines[:limit]


def render_location(path: LocationPath | None) -> str | None:
    """
    Render a payload path as a location string.

        ("user", "email")        -> "user.email"
        ("items", 2, "name")     -> "items.[2].name"
        "orders[0].items[2]"     -> "orders[0].items[2]"   (already rendered, returned as-is)

    Segment order is kept; nothing is deduplicated. An empty path renders to None.
    """
    if path is None:
        return None
    if isinstance(path, str):
        return path or None
    parts = []
    for segment in path:
        if isinstance(segment, int) and not isinstance(segment, bool):
            parts.append(f"[{segment}]")
        else:
            parts.append(str(segment))
    return ".".join(parts) or None


def exception_info(failure: BaseException, limit: int | None = DEFAULT_CAUSE_LINE_LIMIT) -> dict[str, Any]:
    """Bounded, JSON-friendly description of an exception for log payloads."""
    root = innermost_cause(failure)
    return {
        "message": str(failure) or "No message",
        "cls": type(failure).__name__,
        "root_cause_cls": type(root).__name__,
        "root_cause": get_cause_lines(failure, limit),
    }


def core_exception_info(exc: CoreException, limit: int | None = DEFAULT_CAUSE_LINE_LIMIT) -> dict[str, Any]:
    """exception_info() plus the classification carried by a CoreException."""
    info = exception_info(exc, limit)
    info.update(
        {
            "category": exc.category.name,
            "message": exc.message,
            "errors": [
                {"code": error.code, "location": error.location, "arguments": dict(error.arguments)}
                for error in exc.errors
            ],
            "retryable": exc.retryable,
        }
    )
    return info


__all__ = [
    "DEFAULT_CAUSE_LINE_LIMIT",
    "LocationPath",
    "cause_chain",
    "core_exception_info",
    "exception_info",
    "get_cause_lines",
    "innermost_cause",
    "render_location",
    "wrapped_cause",
]
