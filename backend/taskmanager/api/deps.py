"""Shared API dependencies."""

from taskmanager.core.database import get_db
from taskmanager.core.security import get_current_user, require_admin

__all__ = ["get_db", "get_current_user", "require_admin"]
