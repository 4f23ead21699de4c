"""Uniform response envelope shared by every API endpoint."""

from datetime import UTC, datetime
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    """success/message/data/timestamp/code wrapper; code mirrors the HTTP status."""

    success: bool
    message: str
    data: T | None = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
    code: int = 200

    @classmethod
    def ok(cls, data: Any = None, message: str = "OK", code: int = 200) -> "ApiResponse[T]":
        return cls(success=True, message=message, data=data, code=code)

    @classmethod
    def error(cls, message: str, code: int = 400, data: Any = None) -> "ApiResponse[T]":
        return cls(success=False, message=message, data=data, code=code)


class FieldError(BaseModel):
    """One failed request field."""

    field: str
    message: str
