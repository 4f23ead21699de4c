"""Request dependencies: account service wiring and access policy enforcement."""

import base64
import binascii
import logging
from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBasicCredentials
from fastapi.security.utils import get_authorization_scheme_param
from sqlalchemy.orm import Session

from account_service.core.access_policy import AccessDecision, check_access
from account_service.core.database import get_db
from account_service.models import UserRole
from account_service.schemas.user import CurrentUser
from account_service.services.accounts import AccountService
from account_service.services.user_store import SqlAlchemyUserStore

logger = logging.getLogger(__name__)


def basic_credentials(request: Request) -> HTTPBasicCredentials | None:
    """
    Dependency: HTTP Basic credentials from the Authorization header, decoded as UTF-8.

    Missing, non-Basic or undecodable headers yield None, so the caller is treated as
    anonymous and the access policy alone decides between 401 and allow.
    """
    scheme, param = get_authorization_scheme_param(request.headers.get("Authorization"))
    if scheme.lower() != "basic" or not param:
        return None
    try:
        decoded = base64.b64decode(param, validate=True).decode("utf-8")
    except (binascii.Error, ValueError):
        logger.info("Ignoring undecodable Basic credentials on %s", request.url.path)
        return None
    username, separator, password = decoded.partition(":")
    if not separator:
        return None
    return HTTPBasicCredentials(username=username, password=password)


def policy_path(request: Request) -> str:
    """Request path relative to the application mount (root_path removed when present)."""
    path = request.scope.get("path", "") or "/"
    root_path = request.scope.get("root_path", "").rstrip("/")
    if root_path and (path == root_path or path.startswith(root_path + "/")):
        path = path[len(root_path):] or "/"
    return path


def get_account_service(db: Annotated[Session, Depends(get_db)]) -> AccountService:
    """Dependency: AccountService bound to the request's DB session."""
    return AccountService(SqlAlchemyUserStore(db))


def enforce_access_policy(
    request: Request,
    credentials: Annotated[HTTPBasicCredentials | None, Depends(basic_credentials)],
    service: Annotated[AccountService, Depends(get_account_service)],
) -> CurrentUser | None:
    """
    App-wide dependency: evaluate the access policy before any route handler runs.

    Callers identify themselves per request with HTTP Basic credentials. Raises 401
    when a gated path is called without valid credentials and 403 when the caller's
    role is insufficient. Returns the caller, or None for anonymous public requests.
    """
    path = policy_path(request)
    current_user: CurrentUser | None = None
    if credentials is not None:
        user = service.login(credentials.username, credentials.password)
        if user is not None:
            current_user = CurrentUser.model_validate(user)

    decision = check_access(path, current_user.role if current_user else None)
    if decision is AccessDecision.UNAUTHENTICATED:
        logger.info("Unauthenticated request to %s %s", request.method, path)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
            headers={"WWW-Authenticate": "Basic"},
        )
    if decision is AccessDecision.FORBIDDEN:
        logger.warning(
            "Forbidden: user_id=%s role=%s -> %s %s",
            current_user.id,
            current_user.role.value,
            request.method,
            path,
        )
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return current_user


def get_current_user(
    current_user: Annotated[CurrentUser | None, Depends(enforce_access_policy)],
) -> CurrentUser:
    """Dependency: the caller resolved by enforce_access_policy. Raises 401 if anonymous."""
    if current_user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
            headers={"WWW-Authenticate": "Basic"},
        )
    return current_user


def require_admin(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
) -> CurrentUser:
    """Dependency: require an authenticated caller with role ADMIN. Raises 403 otherwise."""
    if current_user.role is not UserRole.ADMIN:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return current_user
