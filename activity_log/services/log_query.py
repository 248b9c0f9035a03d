"""Read side and retention for persisted system logs.

Used by the admin API.  None of this is reachable from the activity logger,
which only ever appends.
"""

from __future__ import annotations

import logging
import math
from datetime import timedelta

from sqlalchemy import Select, delete, func, select
from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from activity_log.exceptions import DatabaseConnectionError, LogNotFoundError
from activity_log.models.system_log import SystemLog
from activity_log.schemas.system_log import LogLevel, SystemLogPage, SystemLogRead

logger = logging.getLogger(__name__)

DEFAULT_PER_PAGE = 50
MAX_PER_PAGE = 200


def to_read_schema(row: SystemLog) -> SystemLogRead:
    """Convert an ORM row (with its eagerly loaded user) to the API schema."""
    user = row.user
    return SystemLogRead(
        id=row.id,
        level=row.level,
        category=row.category,
        message=row.message,
        context=row.context,
        user_id=row.user_id,
        user_name=user.name if user is not None else None,
        ip_address=row.ip_address,
        user_agent=row.user_agent,
        created_at=row.created_at,
    )


def _apply_filters(
    stmt: Select,
    level: LogLevel | None,
    category: str | None,
    user_id: int | None,
) -> Select:
    if level is not None:
        stmt = stmt.where(SystemLog.level == level.value)
    if category is not None:
        stmt = stmt.where(SystemLog.category == category)
    if user_id is not None:
        stmt = stmt.where(SystemLog.user_id == user_id)
    return stmt


async def list_logs(
    db: AsyncSession,
    level: LogLevel | None = None,
    category: str | None = None,
    user_id: int | None = None,
    page: int = 1,
    per_page: int = DEFAULT_PER_PAGE,
) -> SystemLogPage:
    """Return one page of logs matching the filters, newest first.

    Args:
        db: Async database session.
        level: Only logs of this level.
        category: Only logs with this exact category.
        user_id: Only logs attributed to this user.
        page: 1-based page number.
        per_page: Page size, clamped to ``1..MAX_PER_PAGE``.

    Returns:
        :class:`SystemLogPage`; ``last_page`` is at least 1 even when empty.

    Raises:
        DatabaseConnectionError: If the database cannot be reached.
    """
    page = max(page, 1)
    per_page = min(max(per_page, 1), MAX_PER_PAGE)

    count_stmt = _apply_filters(
        select(func.count()).select_from(SystemLog), level, category, user_id
    )
    rows_stmt = (
        _apply_filters(select(SystemLog), level, category, user_id)
        .order_by(SystemLog.created_at.desc(), SystemLog.id.desc())
        .offset((page - 1) * per_page)
        .limit(per_page)
    )

    try:
        total = await db.scalar(count_stmt) or 0
        result = await db.execute(rows_stmt)
        rows = result.scalars().all()
    except (OperationalError, InterfaceError) as exc:
        raise DatabaseConnectionError(str(exc)) from exc

    return SystemLogPage(
        data=[to_read_schema(row) for row in rows],
        total=total,
        page=page,
        per_page=per_page,
        last_page=max(math.ceil(total / per_page), 1),
    )


async def get_log(db: AsyncSession, log_id: int) -> SystemLog:
    """Fetch a single log row.

    Raises:
        LogNotFoundError: If no row has *log_id*.
        DatabaseConnectionError: If the database cannot be reached.
    """
    try:
        row = await db.get(SystemLog, log_id)
    except (OperationalError, InterfaceError) as exc:
        raise DatabaseConnectionError(str(exc)) from exc
    if row is None:
        raise LogNotFoundError(log_id)
    return row


async def purge_older_than(db: AsyncSession, days: int) -> int:
    """Delete logs created more than *days* days ago.

    The cutoff is taken from the database clock, the same clock that fills
    ``created_at``.  The caller's session owns the transaction; nothing is
    committed here.

    Returns:
        Number of rows deleted.
    """
    cutoff = func.now() - timedelta(days=days)
    try:
        result = await db.execute(delete(SystemLog).where(SystemLog.created_at < cutoff))
    except (OperationalError, InterfaceError) as exc:
        raise DatabaseConnectionError(str(exc)) from exc
    deleted = result.rowcount or 0
    logger.info("Purged %d system logs older than %d days", deleted, days)
    return deleted
