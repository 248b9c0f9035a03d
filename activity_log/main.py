"""DocuTranslate Activity Log API — FastAPI application entry point.

Features:
- Lifespan context manager: builds the ActivityLogger on startup, disposes DB on shutdown
- Structured exception handlers for all domain exceptions
- Request/response logging middleware with request-ID tracing; slow requests
  and unhandled errors are recorded through the activity logger
- /health endpoint: checks DB connectivity and reports the log store backend
"""

from __future__ import annotations

import datetime
import logging
import time
import uuid
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator

from fastapi import FastAPI, HTTPException, Request, Response, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from activity_log.config import Settings, get_settings
from activity_log.exceptions import DatabaseConnectionError, LogNotFoundError
from activity_log.schemas.system_log import HealthResponse

# ---------------------------------------------------------------------------
# Logging setup  (must happen before routers are imported)
# ---------------------------------------------------------------------------

_settings = get_settings()
logging.basicConfig(
    level=getattr(logging, _settings.log_level.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%S",
)
logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Router and service imports
# ---------------------------------------------------------------------------

from activity_log.api import system_logs as _system_logs_module  # noqa: E402
from activity_log.api.dependencies import get_request_context  # noqa: E402
from activity_log.database import (  # noqa: E402
    AsyncSessionLocal,
    check_db_connection,
    dispose_engine,
)
from activity_log.services.activity_logger import ActivityLogger  # noqa: E402
from activity_log.services.log_store import (  # noqa: E402
    InMemoryLogStore,
    LogStore,
    SqlAlchemyLogStore,
)

# Register all ORM models with the declarative base (required for metadata)
import activity_log.models  # noqa: F401, E402


def build_activity_logger(settings: Settings) -> ActivityLogger:
    """Create the ActivityLogger for the configured store backend."""
    store: LogStore
    if settings.log_store_backend == "memory":
        store = InMemoryLogStore()
    else:
        store = SqlAlchemyLogStore(AsyncSessionLocal)
    return ActivityLogger(store, sink=logging.getLogger(settings.sink_logger_name))


# ---------------------------------------------------------------------------
# Lifespan context manager
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Manage application startup and shutdown lifecycle.

    Startup sequence:
    1. Build the ActivityLogger and store it on ``app.state.activity_logger``.
    2. Check DB connectivity and log the result (non-fatal at startup).

    Shutdown:
    1. Dispose the SQLAlchemy connection pool gracefully.
    """
    logger.info(
        "DocuTranslate Activity Log API — starting up (v%s)", _settings.app_version
    )

    if getattr(app.state, "activity_logger", None) is None:
        app.state.activity_logger = build_activity_logger(_settings)
    logger.info("Activity log store: %s", _settings.log_store_backend)

    db_health = await check_db_connection()
    if db_health["status"] == "ok":
        logger.info("Database: OK")
    else:
        logger.warning("Database: DEGRADED — %s", db_health.get("detail", "unknown"))

    logger.info("Startup complete — serving requests")
    yield

    logger.info("Activity Log API — shutting down")
    try:
        await dispose_engine()
    except Exception as exc:
        logger.warning("Error during engine disposal: %s", exc)
    logger.info("Shutdown complete")


# ---------------------------------------------------------------------------
# FastAPI application
# ---------------------------------------------------------------------------

app = FastAPI(
    title="DocuTranslate Activity Log API",
    description=(
        "Persists leveled, categorized activity events for the DocuTranslate "
        "platform and exposes them to administrators."
    ),
    version=_settings.app_version,
    debug=_settings.debug,
    lifespan=lifespan,
    openapi_tags=[
        {
            "name": "health",
            "description": "System health and readiness checks.",
        },
        {
            "name": "system-logs",
            "description": "Browse persisted activity logs and run retention cleanup (admin).",
        },
    ],
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # restrict in production
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------------------------------------------------------------------------
# Request / response logging middleware
# ---------------------------------------------------------------------------


@app.middleware("http")
async def request_logging_middleware(request: Request, call_next: Any) -> Response:
    """Log every HTTP request with method, path, status, and duration.

    A short UUID-derived ``request_id`` is attached to each log line and
    returned as the ``X-Request-ID`` response header.  Requests slower than
    ``slow_request_threshold_ms`` become performance events; unhandled
    exceptions become system error events.
    """
    request_id = str(uuid.uuid4())[:8]
    t0 = time.monotonic()
    logger.info("[%s] → %s %s", request_id, request.method, request.url.path)
    activity: ActivityLogger | None = getattr(request.app.state, "activity_logger", None)

    try:
        response: Response = await call_next(request)
    except Exception as exc:
        elapsed = (time.monotonic() - t0) * 1000
        logger.error(
            "[%s] ✗ %s %s — unhandled after %.1f ms: %s",
            request_id,
            request.method,
            request.url.path,
            elapsed,
            exc,
        )
        if activity is not None:
            await activity.log_system_error(
                f"Unhandled {type(exc).__name__} on {request.method} {request.url.path}",
                {"request_id": request_id, "error": str(exc)},
                get_request_context(request),
            )
        raise

    elapsed = (time.monotonic() - t0) * 1000
    logger.info(
        "[%s] ← %s %s — %d (%.1f ms)",
        request_id,
        request.method,
        request.url.path,
        response.status_code,
        elapsed,
    )
    if activity is not None and elapsed > _settings.slow_request_threshold_ms:
        await activity.log_performance(
            "request_duration",
            round(elapsed, 1),
            "ms",
            {
                "request_id": request_id,
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
            },
            get_request_context(request),
        )
    response.headers["X-Request-ID"] = request_id
    return response


# ---------------------------------------------------------------------------
# Structured exception handlers
# ---------------------------------------------------------------------------


@app.exception_handler(LogNotFoundError)
async def log_not_found_handler(request: Request, exc: LogNotFoundError) -> JSONResponse:
    """404 for missing log rows."""
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content={
            "success": False,
            "error": "log_not_found",
            "message": str(exc),
            "log_id": exc.log_id,
        },
    )


@app.exception_handler(DatabaseConnectionError)
async def database_connection_error_handler(
    request: Request, exc: DatabaseConnectionError
) -> JSONResponse:
    """503 for database connectivity failures."""
    logger.error("DatabaseConnectionError: %s", exc)
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "success": False,
            "error": "database_unavailable",
            "message": str(exc),
        },
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Render FastAPI HTTPExceptions as structured JSON."""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "success": False,
            "error": "http_error",
            "status_code": exc.status_code,
            "message": exc.detail,
        },
    )


# ---------------------------------------------------------------------------
# Core routes
# ---------------------------------------------------------------------------


@app.get("/", tags=["health"], summary="API root / service info")
async def root() -> dict[str, str]:
    """Return basic service metadata and navigation links."""
    return {
        "service": "DocuTranslate Activity Log API",
        "version": _settings.app_version,
        "documentation": "/docs",
        "health": "/health",
        "openapi": "/openapi.json",
    }


@app.get(
    "/health",
    tags=["health"],
    response_model=HealthResponse,
    summary="System health check",
    description=(
        "Checks database connectivity. ``status: degraded`` means the API is "
        "responding but the database is unavailable; activity events are then "
        "only visible in the process log."
    ),
)
async def health_check() -> HealthResponse:
    """Return current system health including DB status and store backend."""
    db_health = await check_db_connection()
    return HealthResponse(
        status="ok" if db_health["status"] == "ok" else "degraded",
        timestamp=datetime.datetime.now(datetime.timezone.utc).isoformat(),
        version=_settings.app_version,
        database=db_health,
        log_store=_settings.log_store_backend,
    )


# ---------------------------------------------------------------------------
# Include routers
# ---------------------------------------------------------------------------

app.include_router(_system_logs_module.router)


# ---------------------------------------------------------------------------
# Development entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "activity_log.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level=_settings.log_level.lower(),
    )
