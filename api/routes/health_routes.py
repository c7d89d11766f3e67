"""Liveness, readiness and database diagnostics.

``/health`` never touches the database, so an orchestrator can tell a hung
process from an unreachable database. ``/ready`` answers 503 until the
lifespan has verified the database (and applied migrations, if enabled).
"""

from fastapi import APIRouter, FastAPI, HTTPException, Request

from core.database import check_db_connection, comprehensive_health_check
from core.middleware import SERVICE_NAME
from core.ratelimit import limiter
from schemas import DetailedHealthResponse, HealthResponse, PoolStatusResponse

router = APIRouter(tags=["health"])

PROBE_LIMIT = "30/minute"


def _unavailable(detail: str) -> HTTPException:
    return HTTPException(status_code=503, detail=detail)


def _startup_problem(app: FastAPI) -> str | None:
    """Why the app is not ready yet, or None when it is."""
    init_error = getattr(app.state, "init_error", None)
    if init_error:
        return f"Initialization failed: {init_error}"
    if not getattr(app.state, "init_done", False):
        return "Starting"
    return None


@router.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    return HealthResponse(status="healthy", service=SERVICE_NAME)


@router.get(
    "/ready",
    response_model=HealthResponse,
    responses={503: {"description": "Still starting, init failed, or DB down"}},
)
@limiter.limit(PROBE_LIMIT)
async def ready(request: Request) -> HealthResponse:
    problem = _startup_problem(request.app)
    if problem is not None:
        raise _unavailable(problem)

    try:
        await check_db_connection(request.app.state.engine)
    except Exception as e:
        raise _unavailable("Database unavailable") from e

    return HealthResponse(status="ready", service=SERVICE_NAME)


@router.get("/health/detailed", response_model=DetailedHealthResponse)
@limiter.limit(PROBE_LIMIT)
async def health_detailed(request: Request) -> DetailedHealthResponse:
    """Always 200; inspect ``database`` and ``pool`` for the details."""
    result = await comprehensive_health_check(request.app.state.engine)
    pool = result["pool"]

    return DetailedHealthResponse(
        status="healthy" if result["database"] else "degraded",
        service=SERVICE_NAME,
        database=result["database"],
        pool=None if pool is None else PoolStatusResponse(**pool._asdict()),
    )
