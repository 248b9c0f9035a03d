"""Pydantic v2 schemas for activity log entries and the admin log API."""

from __future__ import annotations

import logging
from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class LogLevel(str, Enum):
    """Severity of an activity log entry."""

    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"

    @property
    def logging_level(self) -> int:
        """The matching stdlib ``logging`` level number."""
        return _STDLIB_LEVELS[self]


_STDLIB_LEVELS: dict[LogLevel, int] = {
    LogLevel.DEBUG: logging.DEBUG,
    LogLevel.INFO: logging.INFO,
    LogLevel.WARNING: logging.WARNING,
    LogLevel.ERROR: logging.ERROR,
}


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


class RequestContext(BaseModel):
    """Actor and network metadata captured from an inbound request.

    Built by the caller (see ``activity_log.api.dependencies.get_request_context``);
    the activity logger only ever sees these plain values.

    Attributes:
        user_id: Authenticated user, if any.
        ip: Client IP address.
        user_agent: Raw ``User-Agent`` header.
    """

    model_config = ConfigDict(frozen=True)

    user_id: int | None = None
    ip: str | None = None
    user_agent: str | None = None

    @field_validator("ip", "user_agent", mode="before")
    @classmethod
    def blank_strings_to_none(cls, value: Any) -> Any:
        return _blank_to_none(value)


class LogEntry(BaseModel):
    """One immutable activity event, as handed to a log store.

    ``created_at`` is not part of the entry: the store assigns it at write
    time.
    """

    model_config = ConfigDict(frozen=True)

    level: LogLevel
    category: str = Field(..., min_length=1, description="Classification tag")
    message: str = Field(..., min_length=1, description="Human-readable description")
    context: dict[str, Any] = Field(default_factory=dict)
    user_id: int | None = None
    ip_address: str | None = None
    user_agent: str | None = None

    @field_validator("ip_address", "user_agent", mode="before")
    @classmethod
    def blank_strings_to_none(cls, value: Any) -> Any:
        return _blank_to_none(value)

    @classmethod
    def build(
        cls,
        level: LogLevel | str,
        category: str,
        message: str,
        context: dict[str, Any] | None = None,
        request_context: RequestContext | None = None,
    ) -> LogEntry:
        """Create an entry, copying actor fields from *request_context*."""
        ctx = request_context or RequestContext()
        return cls(
            level=level,
            category=category,
            message=message,
            context=dict(context) if context else {},
            user_id=ctx.user_id,
            ip_address=ctx.ip,
            user_agent=ctx.user_agent,
        )


# ---------------------------------------------------------------------------
# Admin API responses
# ---------------------------------------------------------------------------


class SystemLogRead(BaseModel):
    """A persisted system log row as returned by the admin API."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    level: str
    category: str
    message: str
    context: dict[str, Any] = Field(default_factory=dict)
    user_id: int | None = None
    user_name: str | None = None
    ip_address: str | None = None
    user_agent: str | None = None
    created_at: datetime | None = None

    @field_validator("context", mode="before")
    @classmethod
    def null_context_as_empty(cls, value: Any) -> Any:
        return {} if value is None else value


class SystemLogPage(BaseModel):
    """One page of system logs, newest first."""

    data: list[SystemLogRead]
    total: int = Field(..., ge=0)
    page: int = Field(..., ge=1)
    per_page: int = Field(..., ge=1)
    last_page: int = Field(..., ge=1)


class SystemLogListResponse(BaseModel):
    """Response envelope for GET /admin/system-logs."""

    success: bool = True
    data: SystemLogPage


class SystemLogDetailResponse(BaseModel):
    """Response envelope for GET /admin/system-logs/{log_id}."""

    success: bool = True
    data: SystemLogRead


class CleanupResponse(BaseModel):
    """Response payload for POST /admin/system-logs/cleanup."""

    success: bool = True
    message: str
    cleanup_results: dict[str, int]


class HealthResponse(BaseModel):
    """Response payload for GET /health."""

    status: str = Field(..., pattern=r"^(ok|degraded)$")
    timestamp: str
    version: str
    database: dict[str, Any]
    log_store: str
