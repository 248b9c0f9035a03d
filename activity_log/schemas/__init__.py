"""Pydantic v2 request/response schemas for the activity log service."""

from activity_log.schemas.system_log import (
    CleanupResponse,
    HealthResponse,
    LogEntry,
    LogLevel,
    RequestContext,
    SystemLogDetailResponse,
    SystemLogListResponse,
    SystemLogPage,
    SystemLogRead,
)

__all__ = [
    "LogLevel",
    "LogEntry",
    "RequestContext",
    "SystemLogRead",
    "SystemLogPage",
    "SystemLogListResponse",
    "SystemLogDetailResponse",
    "CleanupResponse",
    "HealthResponse",
]
