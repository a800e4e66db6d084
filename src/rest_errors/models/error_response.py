"""
Wire format of error responses.

    {
      "errors": [{"code": "VALIDATION", "message": "...", "location": "user.email"}],
      "correlationId": "3f0c...",
      "httpStatusCode": 400
    }

Field order is part of the contract (consumers snapshot-test responses), and
pydantic serializes fields in declaration order.
"""

from pydantic import BaseModel, ConfigDict, Field


class CommonError(BaseModel):
    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    location: str | None = None


class CommonErrorResponse(BaseModel):
    """Build with the wire names: CommonErrorResponse(errors=..., correlationId=..., httpStatusCode=...)."""

    model_config = ConfigDict(frozen=True)

    errors: list[CommonError]
    correlation_id: str = Field(alias="correlationId")
    http_status_code: int = Field(alias="httpStatusCode")

    def to_payload(self) -> dict:
        """JSON-serializable dict using the wire field names."""
        return self.model_dump(mode="json", by_alias=True)


__all__ = ["CommonError", "CommonErrorResponse"]
