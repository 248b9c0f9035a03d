"""Durable stores for activity log entries.

A store exposes a single ``insert`` coroutine.  Stores raise
:class:`~activity_log.exceptions.StorePersistenceError` when a write fails;
the activity logger is responsible for recovering from it.

Usage::

    from activity_log.database import AsyncSessionLocal
    from activity_log.services.log_store import SqlAlchemyLogStore

    store = SqlAlchemyLogStore(AsyncSessionLocal)
    await store.insert(entry)
"""

from __future__ import annotations

import logging
from typing import Protocol, runtime_checkable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from activity_log.exceptions import StorePersistenceError
from activity_log.models.system_log import (
    CATEGORY_MAX_LENGTH,
    IP_ADDRESS_MAX_LENGTH,
    MESSAGE_MAX_LENGTH,
    USER_AGENT_MAX_LENGTH,
    SystemLog,
)
from activity_log.schemas.system_log import LogEntry

logger = logging.getLogger(__name__)


@runtime_checkable
class LogStore(Protocol):
    """Anything that can durably append a :class:`LogEntry`."""

    async def insert(self, entry: LogEntry) -> None:
        ...


def _fit(value: str | None, limit: int) -> str | None:
    """Cut *value* to *limit* characters, marking the cut with an ellipsis."""
    if value is None or len(value) <= limit:
        return value
    return value[: limit - 1] + "…"


def _to_row(entry: LogEntry) -> SystemLog:
    """Map an entry onto a new ``SystemLog`` row.

    String fields are cut to their column widths so an oversized header or
    tag never costs the whole row.
    """
    return SystemLog(
        level=entry.level.value,
        category=_fit(entry.category, CATEGORY_MAX_LENGTH),
        message=_fit(entry.message, MESSAGE_MAX_LENGTH),
        context=dict(entry.context),
        user_id=entry.user_id,
        ip_address=_fit(entry.ip_address, IP_ADDRESS_MAX_LENGTH),
        user_agent=_fit(entry.user_agent, USER_AGENT_MAX_LENGTH),
    )


class SqlAlchemyLogStore:
    """Writes entries to the ``system_logs`` table.

    Every insert runs in its own short-lived session so that a log row is
    committed independently of whatever transaction the caller has open.

    Args:
        session_factory: Factory producing ``AsyncSession`` objects.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def insert(self, entry: LogEntry) -> None:
        """Persist *entry* and commit.

        Raises:
            StorePersistenceError: If the session cannot add or commit the row.
        """
        try:
            async with self._session_factory() as session:
                session.add(_to_row(entry))
                await session.commit()
        except SQLAlchemyError as exc:
            raise StorePersistenceError(
                f"{type(exc).__name__}: {exc}", category=entry.category
            ) from exc


class InMemoryLogStore:
    """List-backed store for tests and database-less local runs.

    Entries are kept in insertion order on :attr:`entries`.
    """

    def __init__(self) -> None:
        self.entries: list[LogEntry] = []

    async def insert(self, entry: LogEntry) -> None:
        self.entries.append(entry)

    def __len__(self) -> int:
        return len(self.entries)
