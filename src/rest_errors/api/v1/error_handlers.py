# src/rest_errors/api/v1/error_handlers.py
"""
FastAPI binding: route every failure through ErrorResponseMapper.

How to use:
    - Call register_exception_handlers(app) from your app factory.
    - Raise CoreException (or attach metadata with add_metadata) anywhere in your code.
    - Framework failures (404, 405, invalid JSON, body validation...) are mapped too.

Layers, outermost first:
    CorrelationIdMiddleware   sets the correlation id, echoes it on the response header
    ErrorBoundaryMiddleware   catches anything no exception handler claimed
    ExceptionMiddleware       CoreException / HTTPException / RequestValidationError handlers
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware

from rest_errors.config import get_settings
from rest_errors.core.logging.middleware import CorrelationIdMiddleware
from rest_errors.exceptions.base import CoreException
from rest_errors.exceptions.mapper import ErrorResponseMapper
from rest_errors.models.error_response import CommonErrorResponse
from rest_errors.models.request_info import RequestInfo

logger = logging.getLogger(__name__)


def get_error_mapper(request: Request) -> ErrorResponseMapper:
    mapper = getattr(request.app.state, "error_mapper", None)
    if mapper is None:
        mapper = ErrorResponseMapper()
        request.app.state.error_mapper = mapper
    return mapper


def to_json_response(response: CommonErrorResponse, headers: dict | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=response.http_status_code,
        content=response.to_payload(),
        headers=headers,
        media_type="application/json",
    )


async def error_response_handler(request: Request, exc: Exception) -> JSONResponse:
    """Single handler for every exception type: the mapper decides what it is."""
    mapper = get_error_mapper(request)
    response = mapper.map_exception(exc, RequestInfo.from_request(request))
    # Keep framework headers such as `Allow` on a 405.
    headers = getattr(exc, "headers", None) if isinstance(exc, StarletteHTTPException) else None
    return to_json_response(response, headers)


class ErrorBoundaryMiddleware(BaseHTTPMiddleware):
    """Turn any exception that escaped the exception handlers into an error response."""

    async def dispatch(self, request: Request, call_next):
        try:
            return await call_next(request)
        except Exception as exc:
            return await error_response_handler(request, exc)


# Helper to register everything on an app (call this from your app factory)
def register_exception_handlers(app: FastAPI, mapper: ErrorResponseMapper | None = None) -> ErrorResponseMapper:
    settings = get_settings()
    if mapper is None:
        mapper = ErrorResponseMapper(cause_line_limit=settings.ERROR_CAUSE_LINE_LIMIT)
    app.state.error_mapper = mapper

    app.add_exception_handler(CoreException, error_response_handler)
    app.add_exception_handler(StarletteHTTPException, error_response_handler)
    app.add_exception_handler(RequestValidationError, error_response_handler)

    # add_middleware wraps the current stack: the last one added runs first.
    app.add_middleware(ErrorBoundaryMiddleware)
    app.add_middleware(CorrelationIdMiddleware, header_name=settings.CORRELATION_ID_HEADER)

    logger.debug("error_handlers.registered", extra={"cause_line_limit": mapper.cause_line_limit})
    return mapper


"""
---------------------------------------------------------
Register handlers in your FastAPI app (example):
---------------------------------------------------------
```
from fastapi import FastAPI
from rest_errors import register_exception_handlers
from rest_errors.config import get_settings
from rest_errors.core.logging import setup_logging

def create_app() -> FastAPI:
    setup_logging(get_settings())
    app = FastAPI()
    # ... router includes, middleware, etc.
    register_exception_handlers(app)
    return app
```

---------------------------------------------------------
Quick example route
---------------------------------------------------------
```
from rest_errors import CoreException, Error, ErrorCategory

@router.post("/users")
async def create_user(payload: UserCreate):
    if await users.exists(payload.email):
        raise CoreException(ErrorCategory.CONFLICT, [Error("user.email.taken", "email")], "User already exists")
```

The client gets HTTP 409 and body:
```
{
  "errors": [{"code": "user.email.taken", "message": "User already exists", "location": "email"}],
  "correlationId": "5b1f0c6e-...",
  "httpStatusCode": 409
}
```
"""
