"""Correlation id sources for error responses."""

import uuid
from typing import Protocol

from rest_errors.core.logging.filters import get_correlation_id, set_correlation_id


class CorrelationIdProvider(Protocol):
    """Anything that returns the correlation id of the current request."""

    def get_id(self) -> str: ...


class ContextCorrelationId:
    """
    Read the id set by CorrelationIdMiddleware for the current request.

    Outside a request (or without the middleware) a UUID4 is generated and stored in
    the current context, so repeated calls within the same request agree.
    """

    def get_id(self) -> str:
        cid = get_correlation_id()
        if cid is None:
            cid = str(uuid.uuid4())
            set_correlation_id(cid)
        return cid


__all__ = ["ContextCorrelationId", "CorrelationIdProvider"]
