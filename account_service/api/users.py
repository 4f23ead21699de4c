"""User account endpoints: login, registration and admin management."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status

from account_service.api.deps import get_account_service, require_admin
from account_service.models import User, UserRole
from account_service.schemas.common import ApiResponse
from account_service.schemas.user import (
    CurrentUser,
    LoginRequest,
    RegisterRequest,
    UserResponse,
    UserStatistics,
    UserUpdate,
)
from account_service.services.accounts import AccountErrorKind, AccountService

logger = logging.getLogger(__name__)
router = APIRouter()

Service = Annotated[AccountService, Depends(get_account_service)]
Admin = Annotated[CurrentUser, Depends(require_admin)]

INVALID_CREDENTIALS = "Invalid username or password"
USER_NOT_FOUND = "User not found"

# Status and message for each rejected account operation.
ERROR_RESPONSES: dict[AccountErrorKind, tuple[int, str]] = {
    AccountErrorKind.DUPLICATE_USERNAME: (status.HTTP_409_CONFLICT, "Username already exists"),
    AccountErrorKind.USERNAME_TAKEN: (status.HTTP_409_CONFLICT, "Username is already taken"),
    AccountErrorKind.NOT_FOUND: (status.HTTP_404_NOT_FOUND, USER_NOT_FOUND),
}


def _reject(error: AccountErrorKind) -> HTTPException:
    status_code, detail = ERROR_RESPONSES[error]
    return HTTPException(status_code=status_code, detail=detail)


def _to_response(users: list[User]) -> list[UserResponse]:
    return [UserResponse.model_validate(u) for u in users]


@router.post("/login", response_model=ApiResponse[UserResponse])
def login(body: LoginRequest, service: Service) -> ApiResponse[UserResponse]:
    """
    Verify username and password and return the account (without password).

    The same 401 is returned for an unknown username and a wrong password.
    """
    user = service.login(body.username, body.password)
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=INVALID_CREDENTIALS)
    return ApiResponse[UserResponse].ok(UserResponse.model_validate(user), "Login successful")


@router.post("/register", response_model=ApiResponse[UserResponse])
def register(body: RegisterRequest, service: Service) -> ApiResponse[UserResponse]:
    """Create an account. Role defaults to USER."""
    result = service.register(body.username, body.password, body.role)
    if not result.ok:
        raise _reject(result.error)
    return ApiResponse[UserResponse].ok(
        UserResponse.model_validate(result.value), "Registration successful"
    )


@router.get("/check-username", response_model=ApiResponse[bool])
def check_username(
    service: Service,
    username: Annotated[str, Query(min_length=1)],
) -> ApiResponse[bool]:
    """True when the username is already registered."""
    return ApiResponse[bool].ok(service.exists_by_username(username))


@router.get("/statistics", response_model=ApiResponse[UserStatistics])
def get_statistics(service: Service, _admin: Admin) -> ApiResponse[UserStatistics]:
    """Total account count and counts per role (admin only)."""
    return ApiResponse[UserStatistics].ok(service.statistics())


@router.get("/search", response_model=ApiResponse[list[UserResponse]])
def search_users(
    service: Service,
    _admin: Admin,
    keyword: str | None = None,
) -> ApiResponse[list[UserResponse]]:
    """Case-sensitive username substring search; no keyword lists every user (admin only)."""
    users = service.search(keyword)
    logger.info("Search keyword=%r matched %s users", keyword, len(users))
    return ApiResponse[list[UserResponse]].ok(_to_response(users))


@router.get("/role/{role}", response_model=ApiResponse[list[UserResponse]])
def list_users_by_role(
    role: UserRole,
    service: Service,
    _admin: Admin,
) -> ApiResponse[list[UserResponse]]:
    """Users holding role, newest first (admin only)."""
    return ApiResponse[list[UserResponse]].ok(_to_response(service.get_by_role(role)))


@router.get("", response_model=ApiResponse[list[UserResponse]])
def list_users(service: Service, _admin: Admin) -> ApiResponse[list[UserResponse]]:
    """All users, newest first (admin only)."""
    return ApiResponse[list[UserResponse]].ok(_to_response(service.get_all()))


@router.get("/{user_id}", response_model=ApiResponse[UserResponse])
def get_user(user_id: int, service: Service, _admin: Admin) -> ApiResponse[UserResponse]:
    user = service.get_by_id(user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=USER_NOT_FOUND)
    return ApiResponse[UserResponse].ok(UserResponse.model_validate(user))


@router.put("/{user_id}", response_model=ApiResponse[UserResponse])
def update_user(
    user_id: int,
    body: UserUpdate,
    service: Service,
    admin: Admin,
) -> ApiResponse[UserResponse]:
    """Partial update of username, password and/or role (admin only)."""
    result = service.update_user(user_id, body)
    if not result.ok:
        raise _reject(result.error)
    logger.info("user_id=%s updated by admin user_id=%s", user_id, admin.id)
    return ApiResponse[UserResponse].ok(
        UserResponse.model_validate(result.value), "Update successful"
    )


@router.delete("/{user_id}", response_model=ApiResponse[None])
def delete_user(user_id: int, service: Service, admin: Admin) -> ApiResponse[None]:
    """Delete a user (admin only); 404 when the user does not exist."""
    if not service.delete_user(user_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=USER_NOT_FOUND)
    logger.info("user_id=%s deleted by admin user_id=%s", user_id, admin.id)
    return ApiResponse[None].ok(message="Delete successful")
