"""Core app configuration, database, security and access policy."""

from account_service.core.config import get_settings, settings
from account_service.core.database import get_db

__all__ = ["get_settings", "settings", "get_db"]
