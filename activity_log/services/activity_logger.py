"""Activity logger: persists leveled, categorized events and mirrors them
to a stdlib logger.

Logging must never interrupt the caller.  Each call first tries to write a
:class:`~activity_log.schemas.system_log.LogEntry` to the durable store; a
failed write is reported on the sink and otherwise ignored.  The event is
then always written to the sink, whether or not the store accepted it.

Usage::

    activity = ActivityLogger(SqlAlchemyLogStore(AsyncSessionLocal))
    await activity.log_user_activity("Signed in", request_context=ctx)
    await activity.log_performance("latency_ms", 42.5, "ms")
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from activity_log.schemas.system_log import LogEntry, LogLevel, RequestContext
from activity_log.services.log_store import LogStore

DEFAULT_SINK_NAME = "activity_log.activity"

USER_CATEGORY = "user"
TRANSLATION_CATEGORY = "translation"
PERFORMANCE_CATEGORY = "performance"
SYSTEM_CATEGORY = "system"


def format_metric_value(value: float) -> str:
    """Render a metric value the way it appears in performance messages.

    Floats are rounded to 14 significant digits, so integral values drop the
    trailing ``.0`` (``5.0`` → ``"5"``) and binary noise is hidden
    (``0.1 + 0.2`` → ``"0.3"``).  Integers are rendered as-is.
    """
    if isinstance(value, float):
        return f"{value:.14g}"
    return str(value)


class ActivityLogger:
    """Best-effort activity log facade.

    One instance is created at application startup and passed to whoever
    needs it (see ``activity_log.api.dependencies.ActivityLoggerDep``).  It
    holds no per-call state, so concurrent calls are independent.

    Args:
        store: Durable store receiving one entry per call.
        sink: Secondary logger mirroring every event.  Defaults to the
            ``activity_log.activity`` logger.
    """

    def __init__(self, store: LogStore, sink: logging.Logger | None = None) -> None:
        self._store = store
        self._sink = sink if sink is not None else logging.getLogger(DEFAULT_SINK_NAME)

    # ------------------------------------------------------------------
    # Core operation
    # ------------------------------------------------------------------

    async def record(
        self,
        level: LogLevel | str,
        category: str,
        message: str,
        context: dict[str, Any] | None = None,
        request_context: RequestContext | None = None,
    ) -> None:
        """Persist one event, then mirror it to the sink.

        Args:
            level: Severity; a :class:`LogLevel` or its string value.
            category: Classification tag, e.g. ``"translation"``.
            message: Human-readable description.
            context: Extra JSON-serialisable data; stored as ``{}`` if omitted.
            request_context: Actor metadata of the triggering request.

        Raises:
            pydantic.ValidationError: If *level* is not a known level or
                *category*/*message* is empty.  Store failures never raise.
        """
        entry = LogEntry.build(level, category, message, context, request_context)
        try:
            async with self._persistence_guard(entry):
                await self._store.insert(entry)
        finally:
            self._emit(entry)

    @asynccontextmanager
    async def _persistence_guard(self, entry: LogEntry) -> AsyncIterator[None]:
        """Swallow a failed store write, reporting it on the sink."""
        try:
            yield
        except Exception as exc:  # noqa: BLE001
            self._sink.error(
                "Failed to log to database: %s",
                exc,
                extra={"context": {"category": entry.category, "level": entry.level.value}},
            )

    def _emit(self, entry: LogEntry) -> None:
        self._sink.log(
            entry.level.logging_level,
            "[%s] %s",
            entry.category,
            entry.message,
            extra={"context": dict(entry.context)},
        )

    # ------------------------------------------------------------------
    # Level wrappers
    # ------------------------------------------------------------------

    async def debug(
        self,
        category: str,
        message: str,
        context: dict[str, Any] | None = None,
        request_context: RequestContext | None = None,
    ) -> None:
        await self.record(LogLevel.DEBUG, category, message, context, request_context)

    async def info(
        self,
        category: str,
        message: str,
        context: dict[str, Any] | None = None,
        request_context: RequestContext | None = None,
    ) -> None:
        await self.record(LogLevel.INFO, category, message, context, request_context)

    async def warning(
        self,
        category: str,
        message: str,
        context: dict[str, Any] | None = None,
        request_context: RequestContext | None = None,
    ) -> None:
        await self.record(LogLevel.WARNING, category, message, context, request_context)

    async def error(
        self,
        category: str,
        message: str,
        context: dict[str, Any] | None = None,
        request_context: RequestContext | None = None,
    ) -> None:
        await self.record(LogLevel.ERROR, category, message, context, request_context)

    # ------------------------------------------------------------------
    # Domain helpers
    # ------------------------------------------------------------------

    async def log_user_activity(
        self,
        action: str,
        context: dict[str, Any] | None = None,
        request_context: RequestContext | None = None,
    ) -> None:
        """Record a user action (sign-in, upload, profile change...)."""
        await self.info(USER_CATEGORY, action, context, request_context)

    async def log_translation_activity(
        self,
        action: str,
        context: dict[str, Any] | None = None,
        request_context: RequestContext | None = None,
    ) -> None:
        """Record a translation pipeline step."""
        await self.info(TRANSLATION_CATEGORY, action, context, request_context)

    async def log_performance(
        self,
        metric: str,
        value: float,
        unit: str = "",
        context: dict[str, Any] | None = None,
        request_context: RequestContext | None = None,
    ) -> None:
        """Record a metric as ``Performance metric: {metric} = {value} {unit}``."""
        message = f"Performance metric: {metric} = {format_metric_value(value)} {unit}"
        await self.info(PERFORMANCE_CATEGORY, message, context, request_context)

    async def log_system_error(
        self,
        error: str,
        context: dict[str, Any] | None = None,
        request_context: RequestContext | None = None,
    ) -> None:
        await self.error(SYSTEM_CATEGORY, error, context, request_context)
