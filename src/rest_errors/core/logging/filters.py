# src/rest_errors/core/logging/filters.py
"""
Logging filters and the per-request correlation id.

The correlation id is the identifier echoed in every error response body
(`correlationId`) and stamped on every log record (`correlation_id`), so a client
report can be matched to the server-side log lines of the same request.

It lives in a `contextvars.ContextVar`:
  * each asyncio task / request gets its own value, so concurrent requests never
    see each other's id;
  * the value survives across `await` boundaries, unlike threading.local().

Usage
-----
- CorrelationIdMiddleware (middleware.py) calls `set_correlation_id()` at the start
  of each request and `reset_correlation_id()` at the end.
- CorrelationIdFilter is declared in the dictConfig (builder.py) and attached to
  every handler so formatters can reference `%(correlation_id)s`.
- The error response mapper reads the same value through
  `rest_errors.core.correlation.ContextCorrelationId`.
"""

import contextvars
import logging
from logging import LogRecord

# Default None means "no correlation id set for this context".
_correlation_id_ctx: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "correlation_id", default=None
)


def set_correlation_id(correlation_id: str | None):
    """
    Set the correlation id for the current context.

    Returns:
        token: pass it to reset_correlation_id() to restore the previous value.
    """
    return _correlation_id_ctx.set(correlation_id)


def reset_correlation_id(token) -> None:
    _correlation_id_ctx.reset(token)


def get_correlation_id() -> str | None:
    return _correlation_id_ctx.get()


class CorrelationIdFilter(logging.Filter):
    """
    Guarantee every LogRecord has a `correlation_id` attribute.

    Precedence:
      1. a value passed explicitly via `extra={"correlation_id": ...}`
      2. the contextvar set by the middleware
      3. the sentinel "-"
    Always returns True: the filter annotates, it never drops records.
    """

    def filter(self, record: LogRecord) -> bool:
        record.correlation_id = (
            getattr(record, "correlation_id", None) or get_correlation_id() or "-"
        )
        return True


class RedactFilter(logging.Filter):
    """Mask sensitive `extra` keys before any handler sees them."""

    SENSITIVE = {"password", "secret", "token", "access_token", "refresh_token", "authorization", "cookie"}
    MASK = "***REDACTED***"

    def filter(self, record: LogRecord) -> bool:
        for key in list(record.__dict__.keys()):
            if key.lower() in self.SENSITIVE:
                record.__dict__[key] = self.MASK
        return True


r"""
-------------------------------------------------
Which log lines carry a real correlation id?
-------------------------------------------------
| Where you're logging                     | correlation_id | Why                                              |
| ---------------------------------------- | -------------- | ------------------------------------------------ |
| route / service code inside a request    | yes            | the middleware set the contextvar                |
| exception handlers and the error mapper  | yes            | still the same request context                   |
| startup code / CLI scripts               | "-"            | no request, nothing set                          |
| background jobs                          | only if set    | call set_correlation_id("job-42") yourself       |

If the error mapper runs outside a request (no id set), ContextCorrelationId
generates one and stores it, so the response body and any later log lines in the
same context still agree.
"""
