"""Pydantic request/response schemas."""

from account_service.schemas.common import ApiResponse, FieldError
from account_service.schemas.health import HealthResponse
from account_service.schemas.user import (
    CurrentUser,
    LoginRequest,
    RegisterRequest,
    UserResponse,
    UserStatistics,
    UserUpdate,
)

__all__ = [
    "ApiResponse",
    "CurrentUser",
    "FieldError",
    "HealthResponse",
    "LoginRequest",
    "RegisterRequest",
    "UserResponse",
    "UserStatistics",
    "UserUpdate",
]
