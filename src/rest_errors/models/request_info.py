from __future__ import annotations

from dataclasses import asdict, dataclass

from starlette.requests import Request


@dataclass(frozen=True)
class RequestInfo:
    """
    Read-only description of the inbound request, used to build log lines.

    Never echoed into a response body.
    """

    path: str
    method: str
    query: str | None = None
    remote_address: str | None = None

    @classmethod
    def from_request(cls, request: Request) -> "RequestInfo":
        client = request.client
        return cls(
            path=request.url.path,
            method=request.method,
            query=request.url.query or None,
            remote_address=client.host if client else None,
        )

    def as_log_dict(self) -> dict:
        return asdict(self)
