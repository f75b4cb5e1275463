"""
api/main.py -- FastAPI application entry point for the task tracker.

Run with:  python main.py
           uvicorn api.main:app --reload

Middleware stack (outermost to innermost):
  1. CORSMiddleware     -- adds CORS headers for browser clients
  2. SlowAPIMiddleware  -- enforces per-route rate limits from api.limiter

Lifespan builds the stores and the token service on startup and disposes
the store connections on shutdown.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.limiter import limiter
from api.models import ErrorResponse, HealthResponse
from api.routes.tasks import router as tasks_router
from api.routes.users import router as users_router
from auth.store import AccountStore
from auth.tokens import TokenService
from core.config import get_settings
from core.errors import AppError
from tasks.store import TaskStore

API_VERSION = "1.0.0"

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("tasktracker.api")


# ---------------------------------------------------------------------------
# Lifespan -- startup / shutdown
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application-level resources across the full server lifetime.

    The signing secret is read once here and handed to TokenService. Nothing
    else in the process reads it.
    """
    settings = get_settings()
    logger.info("Task tracker API starting up")
    app.state.account_store = AccountStore(settings.database_url)
    app.state.task_store = TaskStore(settings.database_url)
    app.state.tokens = TokenService(settings.secret_key)
    logger.info("Stores initialized")

    yield

    app.state.task_store.close()
    app.state.account_store.close()
    logger.info("Task tracker API shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="Task Tracker API",
    description="Multi-user task tracking with bearer-token authentication.",
    version=API_VERSION,
    lifespan=lifespan,
)

# ---------------------------------------------------------------------------
# Middleware stack
# ---------------------------------------------------------------------------

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["Content-Type", "Authorization"],
    max_age=3600,
)

app.add_middleware(SlowAPIMiddleware)

# SlowAPI looks for app.state.limiter by convention.
app.state.limiter = limiter


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    ms = (time.perf_counter() - start) * 1000
    logger.info(
        "%s %s %d %.1fms %s",
        request.method,
        request.url.path,
        response.status_code,
        ms,
        request.client.host if request.client else "unknown",
    )
    return response


# ---------------------------------------------------------------------------
# Router registration
# ---------------------------------------------------------------------------

app.include_router(users_router, prefix="/api", tags=["Users"])
app.include_router(tasks_router, prefix="/api", tags=["Tasks"])


# ---------------------------------------------------------------------------
# Exception handlers
#
# All handlers return the same {"code", "message"} body so API clients can
# parse errors uniformly.
# ---------------------------------------------------------------------------


def _error(status_code: int, code: str, message: str, headers: dict | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(code=code, message=message).model_dump(),
        headers=headers,
    )


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Render any AppError (400/401/403/404/500) as its status and message."""
    return _error(exc.status_code, exc.code, exc.message, exc.headers)


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Return 429 when a rate limit is exceeded.

    Retry-After tells clients how many seconds to wait before retrying.
    """
    retry_after = int(getattr(exc, "retry_after", 60))
    return _error(429, "rate_limited", "Too many requests.", {"Retry-After": str(retry_after)})


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Return 400 naming the first offending field.

    Only the location and pydantic's message are used -- never the submitted
    input, which may be a password.
    """
    errors = exc.errors()
    if not errors:
        return _error(400, "validation_error", "Request validation failed.")
    first = errors[0]
    loc = [str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path")]
    msg = str(first.get("msg", "invalid value")).removeprefix("Value error, ")
    message = f"{'.'.join(loc)}: {msg}" if loc else msg
    return _error(400, "validation_error", message)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Structured errors for framework-raised HTTP errors (unknown route, bad method)."""
    if exc.status_code == 404:
        return _error(404, "not_found", "Route not found.")
    return _error(exc.status_code, f"http_{exc.status_code}", str(exc.detail), getattr(exc, "headers", None))


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler for unexpected server errors.

    The raw exception goes to the log only, never to the response body.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return _error(500, "internal_error", "Internal server error.")


# ---------------------------------------------------------------------------
# Health endpoint
# ---------------------------------------------------------------------------


@app.get("/api/health", tags=["Health"])
async def health() -> HealthResponse:
    """Return API liveness and current version. No authentication required."""
    return HealthResponse(version=API_VERSION)
