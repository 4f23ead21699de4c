"""Public health endpoint reporting user-store connectivity."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from account_service.core.config import settings
from account_service.core.database import check_db_connected, get_db
from account_service.schemas.common import ApiResponse
from account_service.schemas.health import HealthResponse

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("", response_model=ApiResponse[HealthResponse])
def get_health(
    request: Request, db: Annotated[Session, Depends(get_db)]
) -> ApiResponse[HealthResponse]:
    """Report "degraded" (still HTTP 200) when the database cannot be queried."""
    connected = check_db_connected(db)
    if not connected:
        logger.warning("Health check: database unreachable")
    health = HealthResponse(
        status="ok" if connected else "degraded",
        environment=settings.APP_ENV,
        version=request.app.version,
        database="connected" if connected else "disconnected",
    )
    return ApiResponse[HealthResponse].ok(health, "Service is up")
