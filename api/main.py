"""FastAPI application for the Series Tracker API.

Startup verifies the database and (optionally) applies migrations before
the app reports ready; ``/ready`` reflects the outcome through
``app.state.init_done`` / ``app.state.init_error``.
"""

import asyncio
import logging
import subprocess
import sys
from contextlib import asynccontextmanager
from pathlib import Path

import fastapi
from fastapi import Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded

from core.config import get_settings
from core.database import (
    create_engine,
    create_session_maker,
    dispose_engine,
    init_db,
)
from core.logger import configure_logging
from core.middleware import RequestLoggingMiddleware, SecurityHeadersMiddleware
from core.ratelimit import limiter, rate_limit_exceeded_handler
from core.wide_event import set_wide_event_fields
from routes import auth_router, health_router, series_router
from services.series_validation import (
    InvalidFieldError,
    InvariantViolationError,
    SeriesValidationError,
)

configure_logging()
logger = logging.getLogger(__name__)

_API_DIR = Path(__file__).parent
DB_INIT_TIMEOUT_SECONDS = 60
MIGRATION_TIMEOUT_SECONDS = 120


def _error(status_code: int, detail: object, **extra: object) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"detail": detail, **extra})


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Anything that escaped the routes, StorageError included, becomes a 500."""
    set_wide_event_fields(error_type=type(exc).__name__)
    logger.exception(
        "request.unhandled_exception",
        extra={"path": request.url.path, "method": request.method},
    )
    return _error(500, "Internal server error")


async def request_validation_handler(request: Request, exc: Exception) -> JSONResponse:
    if not isinstance(exc, RequestValidationError):
        return _error(500, "Internal server error")

    errors = jsonable_encoder(exc.errors())
    set_wide_event_fields(validation_error="RequestValidationError")
    logger.info(
        "request.invalid",
        extra={"path": request.url.path, "error_count": len(errors)},
    )
    return _error(422, errors)


async def series_validation_handler(request: Request, exc: Exception) -> JSONResponse:
    """Series payload problems are client errors: 422 naming the field."""
    if not isinstance(exc, SeriesValidationError):
        return _error(500, "Internal server error")

    set_wide_event_fields(validation_error=type(exc).__name__)
    if isinstance(exc, InvalidFieldError):
        return _error(422, str(exc), field=str(exc.field))
    if isinstance(exc, InvariantViolationError):
        return _error(422, str(exc), field="watched_episodes")
    return _error(422, str(exc))


def _migrate_to_head() -> None:
    """Apply migrations through the management CLI in a child process.

    Alembic runs the sync psycopg2 driver; keeping it out of the server
    process avoids mixing its pool with the running event loop.
    """
    result = subprocess.run(
        [sys.executable, "-m", "cli", "migrate", "head"],
        cwd=_API_DIR,
        capture_output=True,
        text=True,
        timeout=MIGRATION_TIMEOUT_SECONDS,
    )
    if result.returncode != 0:
        raise RuntimeError(f"Alembic migration failed:\n{result.stderr.strip()}")


async def _initialize(app: fastapi.FastAPI) -> None:
    async with asyncio.timeout(DB_INIT_TIMEOUT_SECONDS):
        await init_db(app.state.engine)

    if get_settings().run_migrations:
        await asyncio.to_thread(_migrate_to_head)
        logger.info("migrations.complete")


@asynccontextmanager
async def lifespan(app: fastapi.FastAPI):
    """Own the engine for the lifetime of the process."""
    app.state.engine = create_engine()
    app.state.session_maker = create_session_maker(app.state.engine)
    app.state.init_done = False
    app.state.init_error = None

    try:
        await _initialize(app)
    except Exception as e:
        app.state.init_error = str(e) or type(e).__name__
        logger.error("init.failed", extra={"error": app.state.init_error}, exc_info=True)
        await dispose_engine(app.state.engine)
        raise

    app.state.init_done = True
    logger.info("init.complete")
    try:
        yield
    finally:
        await dispose_engine(app.state.engine)


def _docs_kwargs() -> dict[str, str | None]:
    settings = get_settings()
    enabled = settings.enable_docs or settings.debug
    return {
        "docs_url": "/docs" if enabled else None,
        "redoc_url": "/redoc" if enabled else None,
        "openapi_url": "/openapi.json" if enabled else None,
    }


app = fastapi.FastAPI(
    title="Series Tracker API",
    description="Track the series you watch: ratings, episodes and status.",
    version="1.0.0",
    lifespan=lifespan,
    **_docs_kwargs(),
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
app.add_exception_handler(RequestValidationError, request_validation_handler)
app.add_exception_handler(SeriesValidationError, series_validation_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)

app.add_middleware(GZipMiddleware, minimum_size=500)
app.add_middleware(SecurityHeadersMiddleware)
# Added last, so it wraps everything else and times the whole request.
app.add_middleware(RequestLoggingMiddleware)

for router in (health_router, auth_router, series_router):
    app.include_router(router)
