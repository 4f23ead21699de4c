"""SQLAlchemy ORM models."""

from account_service.models.base import Base
from account_service.models.user import User, UserRole

__all__ = ["Base", "User", "UserRole"]
