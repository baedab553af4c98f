"""Core app configuration, security, and errors."""

from app.core.config import Settings, get_settings
from app.core.errors import ServiceError

__all__ = ["Settings", "get_settings", "ServiceError"]
