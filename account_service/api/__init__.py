"""API routes."""

from fastapi import APIRouter

from account_service.api import health, users
from account_service.core.config import settings

router = APIRouter()
router.include_router(health.router, prefix="/health", tags=["health"])
router.include_router(users.router, prefix=f"{settings.API_PREFIX}/users", tags=["users"])
