"""Request/response schemas for user account endpoints."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from account_service.core.security import (
    PASSWORD_MAX_LEN,
    PASSWORD_MIN_LEN,
    USERNAME_MAX_LEN,
    USERNAME_MIN_LEN,
)
from account_service.models.user import UserRole


class LoginRequest(BaseModel):
    """Credentials for login."""

    username: str = Field(..., min_length=1, max_length=USERNAME_MAX_LEN, description="Username")
    password: str = Field(..., min_length=1, max_length=PASSWORD_MAX_LEN, description="Password")

    def __repr__(self) -> str:
        return f"LoginRequest(username={self.username!r}, password='[PROTECTED]')"


class RegisterRequest(BaseModel):
    """New account details; role defaults to USER."""

    username: str = Field(
        ...,
        min_length=USERNAME_MIN_LEN,
        max_length=USERNAME_MAX_LEN,
        description="Username (3-50 characters)",
    )
    password: str = Field(
        ...,
        min_length=PASSWORD_MIN_LEN,
        max_length=PASSWORD_MAX_LEN,
        description="Password (6-100 characters)",
    )
    role: UserRole = Field(default=UserRole.USER, description="USER or ADMIN")

    @field_validator("username")
    @classmethod
    def username_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Username must not be blank")
        return v

    @field_validator("role", mode="before")
    @classmethod
    def default_missing_role(cls, v: object) -> object:
        return UserRole.USER if v is None else v

    def __repr__(self) -> str:
        return (
            f"RegisterRequest(username={self.username!r}, password='[PROTECTED]', "
            f"role={self.role.value!r})"
        )


class UserUpdate(BaseModel):
    """
    Partial update. Omitted, null or blank fields are not changed.

    Non-blank username/password values are validated with the registration limits.
    """

    username: str | None = Field(default=None, description="New username")
    password: str | None = Field(default=None, description="New password")
    role: UserRole | None = Field(default=None, description="New role")

    @field_validator("username")
    @classmethod
    def validate_username(cls, v: str | None) -> str | None:
        if v is None or not v.strip():
            return None
        if not (USERNAME_MIN_LEN <= len(v) <= USERNAME_MAX_LEN):
            raise ValueError(
                f"Username must be {USERNAME_MIN_LEN}-{USERNAME_MAX_LEN} characters"
            )
        return v

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str | None) -> str | None:
        if not v:
            return None
        if not (PASSWORD_MIN_LEN <= len(v) <= PASSWORD_MAX_LEN):
            raise ValueError(
                f"Password must be {PASSWORD_MIN_LEN}-{PASSWORD_MAX_LEN} characters"
            )
        return v

    def __repr__(self) -> str:
        password = "'[PROTECTED]'" if self.password else "None"
        return f"UserUpdate(username={self.username!r}, password={password}, role={self.role!r})"


class UserResponse(BaseModel):
    """Outward user representation (no password hash)."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    role: UserRole
    created_at: datetime
    updated_at: datetime


class UserStatistics(BaseModel):
    """Account counts for the admin statistics endpoint."""

    total: int = Field(..., ge=0, description="All accounts")
    admins: int = Field(..., ge=0, description="Accounts with role ADMIN")
    users: int = Field(..., ge=0, description="Accounts with role USER")


class CurrentUser(BaseModel):
    """Authenticated caller (id, username, role) for dependency injection."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    role: UserRole
