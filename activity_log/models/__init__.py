"""SQLAlchemy ORM models for the DocuTranslate activity log service."""

from activity_log.models.base import Base
from activity_log.models.system_log import SystemLog
from activity_log.models.user import User

__all__ = [
    "Base",
    "User",
    "SystemLog",
]
