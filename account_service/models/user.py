"""ORM model for user accounts (credentials and role)."""

from datetime import UTC, datetime
from enum import Enum

from sqlalchemy import Column, DateTime, Integer, String
from sqlalchemy import Enum as SAEnum

from account_service.models.base import Base


class UserRole(str, Enum):
    """Access tier of an account."""

    USER = "USER"
    ADMIN = "ADMIN"


def utcnow() -> datetime:
    return datetime.now(UTC)


class User(Base):
    """
    User account for authentication and role-based access control.

    username is unique (case-sensitive); the unique index is what guarantees it
    under concurrent writers. password_hash holds a bcrypt digest, never plaintext.
    """

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(50), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(
        SAEnum(
            UserRole,
            name="user_role",
            native_enum=False,
            create_constraint=True,
            length=16,
        ),
        nullable=False,
        default=UserRole.USER,
    )
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    def __repr__(self) -> str:
        return f"User(id={self.id!r}, username={self.username!r}, role={self.role!r})"
