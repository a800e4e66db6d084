# src/rest_errors/core/logging/middleware.py
"""
Correlation id middleware for FastAPI / Starlette.

For each request:
  1. take the incoming correlation header (default `X-Correlation-ID`) when it is
     a reasonable value, otherwise generate a UUID4;
  2. store it in the contextvar (filters.set_correlation_id) so log records and
     error response bodies carry it;
  3. echo it on the response header;
  4. reset the contextvar when the request is done.

Register it outermost, so error responses produced by inner layers are still in
scope (api.v1.error_handlers.register_exception_handlers does this).
"""

import re
import uuid

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from .filters import reset_correlation_id, set_correlation_id

DEFAULT_HEADER = "X-Correlation-ID"

# Incoming ids end up in log lines: no whitespace or control characters, bounded length.
_VALID_ID = re.compile(r"^[A-Za-z0-9._:\-]{1,128}$")


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Set a correlation id for each incoming request."""

    def __init__(self, app, header_name: str = DEFAULT_HEADER):
        super().__init__(app)
        self.header_name = header_name

    def _resolve(self, request: Request) -> str:
        incoming = request.headers.get(self.header_name)
        if incoming and _VALID_ID.match(incoming):
            return incoming
        return str(uuid.uuid4())

    async def dispatch(self, request: Request, call_next):
        cid = self._resolve(request)
        token = set_correlation_id(cid)
        try:
            response = await call_next(request)
            response.headers[self.header_name] = cid
            return response
        finally:
            reset_correlation_id(token)
