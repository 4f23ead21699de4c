"""
Create a user (e.g. the first admin). Run from project root:
  python -m account_service.scripts.create_user USERNAME PASSWORD [role]
Example:
  python -m account_service.scripts.create_user admin your-secure-password ADMIN
"""
import argparse
import logging
import sys

from account_service.core.config import get_settings
from account_service.core.database import SessionLocal
from account_service.core.log import configure_logging
from account_service.core.security import (
    PASSWORD_MAX_LEN,
    PASSWORD_MIN_LEN,
    USERNAME_MAX_LEN,
    USERNAME_MIN_LEN,
)
from account_service.models import UserRole
from account_service.services.accounts import AccountService
from account_service.services.user_store import SqlAlchemyUserStore

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Create an account without going through the API.")
    parser.add_argument("username", help=f"Username ({USERNAME_MIN_LEN}-{USERNAME_MAX_LEN} chars)")
    parser.add_argument("password", help=f"Password ({PASSWORD_MIN_LEN}-{PASSWORD_MAX_LEN} chars)")
    parser.add_argument(
        "role",
        nargs="?",
        default=UserRole.USER.value,
        type=str.upper,
        choices=[r.value for r in UserRole],
    )
    args = parser.parse_args(argv)

    configure_logging(get_settings().LOG_LEVEL)

    username = args.username.strip()
    if not (USERNAME_MIN_LEN <= len(username) <= USERNAME_MAX_LEN):
        print("Invalid username length.", file=sys.stderr)
        return 1
    if not (PASSWORD_MIN_LEN <= len(args.password) <= PASSWORD_MAX_LEN):
        print(
            f"Password must be {PASSWORD_MIN_LEN}-{PASSWORD_MAX_LEN} characters.",
            file=sys.stderr,
        )
        return 1

    db = SessionLocal()
    try:
        service = AccountService(SqlAlchemyUserStore(db))
        result = service.register(username, args.password, UserRole(args.role))
        if not result.ok:
            print(f"User '{username}' already exists.", file=sys.stderr)
            return 1
        print(f"Created user '{username}' with role '{args.role}' (id={result.value.id}).")
        return 0
    except Exception:
        logger.exception("Failed to create user '%s'", username)
        return 1
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
