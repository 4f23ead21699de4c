"""Shared helpers: fresh in-memory database per test and service/client builders."""

from collections.abc import Generator

from sqlalchemy.orm import Session, sessionmaker

from account_service.core.database import build_engine
from account_service.models import Base
from account_service.services.accounts import AccountService
from account_service.services.user_store import SqlAlchemyUserStore


def make_session_factory() -> sessionmaker:
    """Create an empty in-memory SQLite database with the schema and return a session factory."""
    engine = build_engine("sqlite://")
    Base.metadata.create_all(engine)
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def make_service(session: Session) -> AccountService:
    return AccountService(SqlAlchemyUserStore(session))


def override_get_db(factory: sessionmaker):
    """Build a get_db replacement bound to factory."""

    def _get_db() -> Generator[Session, None, None]:
        db = factory()
        try:
            yield db
        finally:
            db.close()

    return _get_db
