"""Admin system-log API routes.

Provides:
    GET  /admin/system-logs             — Filtered, paginated log listing.
    GET  /admin/system-logs/{log_id}    — A single log entry.
    POST /admin/system-logs/cleanup     — Delete logs older than N days.

Rows are written by the activity logger; these routes only read them, apart
from the retention cleanup.
"""

import logging

from fastapi import APIRouter, HTTPException, Query, status
from sqlalchemy.exc import SQLAlchemyError

from activity_log.api.dependencies import (
    ActivityLoggerDep,
    DBDep,
    RequestContextDep,
    SettingsDep,
)
from activity_log.schemas.system_log import (
    CleanupResponse,
    LogLevel,
    SystemLogDetailResponse,
    SystemLogListResponse,
)
from activity_log.services import log_query

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin/system-logs", tags=["system-logs"])


@router.get(
    "",
    response_model=SystemLogListResponse,
    summary="List system logs",
    description=(
        "Return persisted activity logs, newest first, optionally filtered by "
        "level, category and user."
    ),
    responses={
        200: {"description": "One page of logs (may be empty)"},
        422: {"description": "Unknown level or out-of-range paging parameters"},
        500: {"description": "Database error"},
    },
)
async def list_system_logs(
    db: DBDep,
    level: LogLevel | None = Query(default=None, description="Filter by level"),
    category: str | None = Query(default=None, min_length=1, description="Filter by category"),
    user_id: int | None = Query(default=None, ge=1, description="Filter by acting user"),
    page: int = Query(default=1, ge=1),
    per_page: int = Query(default=log_query.DEFAULT_PER_PAGE, ge=1, le=log_query.MAX_PER_PAGE),
) -> SystemLogListResponse:
    try:
        result = await log_query.list_logs(
            db,
            level=level,
            category=category,
            user_id=user_id,
            page=page,
            per_page=per_page,
        )
    except SQLAlchemyError as exc:
        logger.exception("Error fetching system logs: %s", exc)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error fetching system logs",
        )
    return SystemLogListResponse(data=result)


@router.get(
    "/{log_id}",
    response_model=SystemLogDetailResponse,
    summary="Get a system log",
    responses={
        200: {"description": "Log entry"},
        404: {"description": "Log entry not found"},
    },
)
async def get_system_log(log_id: int, db: DBDep) -> SystemLogDetailResponse:
    """Retrieve one log entry by primary key.

    Raises:
        LogNotFoundError: Rendered as 404 by the application handler.
    """
    row = await log_query.get_log(db, log_id)
    return SystemLogDetailResponse(data=log_query.to_read_schema(row))


@router.post(
    "/cleanup",
    response_model=CleanupResponse,
    summary="Delete old system logs",
    description="Delete logs older than ``days`` days (defaults to the configured retention).",
)
async def cleanup_system_logs(
    db: DBDep,
    settings: SettingsDep,
    activity: ActivityLoggerDep,
    request_context: RequestContextDep,
    days: int | None = Query(default=None, ge=1, description="Age threshold in days"),
) -> CleanupResponse:
    window = days if days is not None else settings.log_retention_days
    try:
        deleted = await log_query.purge_older_than(db, window)
    except SQLAlchemyError as exc:
        logger.exception("Error cleaning system logs: %s", exc)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to cleanup system logs",
        )

    results = {"old_system_logs": deleted}
    await activity.info(
        "system",
        "System log cleanup completed",
        {"days": window, **results},
        request_context,
    )
    return CleanupResponse(
        message="System log cleanup completed successfully",
        cleanup_results=results,
    )
