"""Credential store: persistence of User records behind a small interface."""

import logging
from typing import Protocol

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from account_service.models import User, UserRole

logger = logging.getLogger(__name__)


class UserStore(Protocol):
    """Operations the account service needs from storage."""

    def create(self, username: str, password_hash: str, role: UserRole) -> User | None: ...

    def find_by_id(self, user_id: int) -> User | None: ...

    def find_by_username(self, username: str) -> User | None: ...

    def exists_by_username(self, username: str, exclude_id: int | None = None) -> bool: ...

    def update(self, user: User) -> bool: ...

    def delete(self, user_id: int) -> bool: ...

    def list_all(self) -> list[User]: ...

    def list_by_role(self, role: UserRole) -> list[User]: ...

    def search_username(self, keyword: str) -> list[User]: ...

    def count(self) -> int: ...

    def count_by_role(self, role: UserRole) -> int: ...


class SqlAlchemyUserStore:
    """
    UserStore backed by a SQLAlchemy session.

    Writes commit immediately. A unique-constraint violation on username is
    rolled back and reported as a None/False result instead of an exception;
    any other database error propagates.
    """

    def __init__(self, session: Session) -> None:
        self.session = session

    def _newest_first(self, query):
        return query.order_by(User.created_at.desc(), User.id.desc())

    def create(self, username: str, password_hash: str, role: UserRole) -> User | None:
        user = User(username=username, password_hash=password_hash, role=role)
        self.session.add(user)
        try:
            self.session.commit()
        except IntegrityError:
            self.session.rollback()
            logger.info("Insert rejected by unique constraint: username=%s", username)
            return None
        self.session.refresh(user)
        return user

    def find_by_id(self, user_id: int) -> User | None:
        return self.session.get(User, user_id)

    def find_by_username(self, username: str) -> User | None:
        return self.session.query(User).filter(User.username == username).first()

    def exists_by_username(self, username: str, exclude_id: int | None = None) -> bool:
        query = self.session.query(User.id).filter(User.username == username)
        if exclude_id is not None:
            query = query.filter(User.id != exclude_id)
        return self.session.query(query.exists()).scalar()

    def update(self, user: User) -> bool:
        try:
            self.session.commit()
        except IntegrityError:
            self.session.rollback()
            logger.info("Update rejected by unique constraint: user_id=%s", user.id)
            return False
        self.session.refresh(user)
        return True

    def delete(self, user_id: int) -> bool:
        user = self.find_by_id(user_id)
        if user is None:
            return False
        self.session.delete(user)
        self.session.commit()
        return True

    def list_all(self) -> list[User]:
        return self._newest_first(self.session.query(User)).all()

    def list_by_role(self, role: UserRole) -> list[User]:
        return self._newest_first(self.session.query(User).filter(User.role == role)).all()

    def search_username(self, keyword: str) -> list[User]:
        # LIKE is case-insensitive on some backends (SQLite); re-check in Python.
        candidates = self._newest_first(
            self.session.query(User).filter(User.username.contains(keyword, autoescape=True))
        ).all()
        return [u for u in candidates if keyword in u.username]

    def count(self) -> int:
        return self.session.query(func.count(User.id)).scalar() or 0

    def count_by_role(self, role: UserRole) -> int:
        return (
            self.session.query(func.count(User.id)).filter(User.role == role).scalar() or 0
        )
