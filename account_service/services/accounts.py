"""Account service: login, registration and administrative management of users."""

import logging
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from typing import Generic, TypeVar

from account_service.core.security import hash_password, verify_password
from account_service.models import User, UserRole
from account_service.models.user import utcnow
from account_service.schemas.user import UserStatistics, UserUpdate
from account_service.services.user_store import UserStore

logger = logging.getLogger(__name__)

T = TypeVar("T")


class AccountErrorKind(str, Enum):
    """Expected, caller-recoverable outcomes of account operations."""

    DUPLICATE_USERNAME = "duplicate_username"
    USERNAME_TAKEN = "username_taken"
    NOT_FOUND = "not_found"


@dataclass(frozen=True)
class AccountResult(Generic[T]):
    """Either a value or the reason the operation was rejected."""

    value: T | None = None
    error: AccountErrorKind | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T) -> "AccountResult[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: AccountErrorKind) -> "AccountResult[T]":
        return cls(error=error)


@lru_cache(maxsize=1)
def _dummy_hash() -> str:
    # Verified against when the username is unknown, so a miss costs the same as a bad password.
    return hash_password("account-service-timing-equalizer")


class AccountService:
    """Business rules over a UserStore. Plaintext passwords are never stored or logged."""

    def __init__(self, store: UserStore) -> None:
        self.store = store

    def login(self, username: str, password: str) -> User | None:
        """
        Return the user when username and password match, else None.

        Unknown usernames and wrong passwords are indistinguishable to the caller.
        """
        user = self.store.find_by_username(username)
        if user is None:
            verify_password(password, _dummy_hash())
            logger.warning("Login failed: unknown username=%s", username)
            return None
        if not verify_password(password, user.password_hash):
            logger.warning("Login failed: bad password for username=%s", username)
            return None
        logger.info("Login succeeded: user_id=%s", user.id)
        return user

    def register(
        self,
        username: str,
        password: str,
        role: UserRole | None = None,
    ) -> AccountResult[User]:
        """
        Create a user with a hashed password; role defaults to USER.

        The existence pre-check only avoids needless hashing; the store's unique
        constraint decides concurrent registrations of the same username.
        """
        if self.store.exists_by_username(username):
            logger.warning("Registration rejected: username=%s already exists", username)
            return AccountResult.failure(AccountErrorKind.DUPLICATE_USERNAME)

        user = self.store.create(
            username=username,
            password_hash=hash_password(password),
            role=role or UserRole.USER,
        )
        if user is None:
            logger.warning("Registration rejected: username=%s already exists", username)
            return AccountResult.failure(AccountErrorKind.DUPLICATE_USERNAME)

        logger.info(
            "Registered user_id=%s username=%s role=%s", user.id, user.username, user.role.value
        )
        return AccountResult.success(user)

    def update_user(self, user_id: int, patch: UserUpdate) -> AccountResult[User]:
        """
        Apply a partial update. Absent or blank fields are left untouched.

        Renaming checks uniqueness against other users only, so keeping one's own
        username is not a conflict.
        """
        user = self.store.find_by_id(user_id)
        if user is None:
            logger.warning("Update rejected: user_id=%s not found", user_id)
            return AccountResult.failure(AccountErrorKind.NOT_FOUND)

        if patch.username and patch.username != user.username:
            if self.store.exists_by_username(patch.username, exclude_id=user_id):
                logger.warning(
                    "Update rejected: username=%s taken by another user", patch.username
                )
                return AccountResult.failure(AccountErrorKind.USERNAME_TAKEN)
            user.username = patch.username
        if patch.password:
            user.password_hash = hash_password(patch.password)
        if patch.role is not None:
            user.role = patch.role
        user.updated_at = utcnow()

        if not self.store.update(user):
            return AccountResult.failure(AccountErrorKind.USERNAME_TAKEN)
        logger.info("Updated user_id=%s", user_id)
        return AccountResult.success(user)

    def delete_user(self, user_id: int) -> bool:
        """Remove the user; False when no such user exists."""
        deleted = self.store.delete(user_id)
        if deleted:
            logger.info("Deleted user_id=%s", user_id)
        else:
            logger.warning("Delete skipped: user_id=%s not found", user_id)
        return deleted

    def get_by_id(self, user_id: int) -> User | None:
        return self.store.find_by_id(user_id)

    def get_by_username(self, username: str) -> User | None:
        return self.store.find_by_username(username)

    def get_all(self) -> list[User]:
        """All users, newest first."""
        return self.store.list_all()

    def get_by_role(self, role: UserRole) -> list[User]:
        """Users holding role, newest first."""
        return self.store.list_by_role(role)

    def search(self, keyword: str | None) -> list[User]:
        """Case-sensitive substring match on username; blank keyword lists everyone."""
        if not keyword or not keyword.strip():
            return self.get_all()
        return self.store.search_username(keyword)

    def exists_by_username(self, username: str) -> bool:
        return self.store.exists_by_username(username)

    def count_by_role(self, role: UserRole) -> int:
        return self.store.count_by_role(role)

    def statistics(self) -> UserStatistics:
        return UserStatistics(
            total=self.store.count(),
            admins=self.count_by_role(UserRole.ADMIN),
            users=self.count_by_role(UserRole.USER),
        )
