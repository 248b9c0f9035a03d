"""FastAPI dependency injection helpers.

Provides reusable ``Depends``-compatible callables for:
- ``get_db()``                → async database session
- ``get_settings()``          → application settings
- ``get_activity_logger()``   → ActivityLogger instance (stored on app.state)
- ``get_request_context()``   → actor metadata of the current request
"""

import logging
from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from activity_log.config import Settings
from activity_log.config import get_settings as _get_settings_impl
from activity_log.database import get_async_db
from activity_log.schemas.system_log import RequestContext
from activity_log.services.activity_logger import ActivityLogger

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Database session
# ---------------------------------------------------------------------------


async def get_db(
    db: AsyncSession = Depends(get_async_db),
) -> AsyncSession:
    """Provide an async database session to route handlers."""
    return db


DBDep = Annotated[AsyncSession, Depends(get_db)]


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


def get_settings() -> Settings:
    """Return the cached application settings."""
    return _get_settings_impl()


SettingsDep = Annotated[Settings, Depends(get_settings)]


# ---------------------------------------------------------------------------
# Activity logger (stored on app.state during lifespan startup)
# ---------------------------------------------------------------------------


def get_activity_logger(request: Request) -> ActivityLogger:
    """Return the application-wide ActivityLogger from ``app.state``.

    Args:
        request: Injected by FastAPI; provides access to ``app.state``.

    Raises:
        HTTPException: 503 if startup did not create the logger.
    """
    activity: ActivityLogger | None = getattr(request.app.state, "activity_logger", None)
    if activity is None:
        logger.error("Activity logger not initialised — app.state.activity_logger is None")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Activity logger is not available. Check server logs for startup errors.",
        )
    return activity


ActivityLoggerDep = Annotated[ActivityLogger, Depends(get_activity_logger)]


# ---------------------------------------------------------------------------
# Request context
# ---------------------------------------------------------------------------


def get_request_context(request: Request) -> RequestContext:
    """Extract user id, client IP and User-Agent from *request*.

    ``request.state.user_id`` is expected to be set by upstream
    authentication; when it is missing the context is anonymous.
    """
    user_id = getattr(request.state, "user_id", None)
    return RequestContext(
        user_id=user_id if isinstance(user_id, int) else None,
        ip=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
    )


RequestContextDep = Annotated[RequestContext, Depends(get_request_context)]
