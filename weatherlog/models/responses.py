"""Uniform success/error envelope wrapped around every outward response."""

from datetime import datetime, timezone
from typing import Any, Generic, Literal, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class SuccessResponse(BaseModel, Generic[T]):
    """Envelope for a completed operation; ``data`` may be empty or falsy"""

    success: Literal[True] = True
    message: str = Field(..., description="Human readable summary")
    data: T | None = Field(None, description="Operation payload")
    timestamp: str = Field(default_factory=_utc_now_iso)


class ErrorResponse(BaseModel):
    """Envelope for a failed operation"""

    success: Literal[False] = False
    message: str = Field(..., description="Human readable summary")
    error: str | None = Field(None, description="Error detail")
    timestamp: str = Field(default_factory=_utc_now_iso)


def success_response(
    data: Any = None, message: str = "Operation successful"
) -> dict[str, Any]:
    """Build a JSON-ready success envelope."""
    return SuccessResponse[Any](message=message, data=data).model_dump(mode="json")


def error_response(message: str, error: str | None = None) -> dict[str, Any]:
    """Build a JSON-ready error envelope."""
    return ErrorResponse(message=message, error=error).model_dump(mode="json")
