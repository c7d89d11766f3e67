"""Series watch-progress endpoints.

All routes act on the authenticated user's own series. A series owned by
someone else answers 404, same as a missing one.
"""

from decimal import Decimal
from typing import Annotated, Any

from fastapi import APIRouter, Body, HTTPException, Query, Request

from core.auth import UserId
from core.database import DbSession
from core.ratelimit import READ_LIMIT, WRITE_LIMIT, limiter
from models import TITLE_MAX_LENGTH, SeriesStatus
from repositories.series_mapper import SeriesRecord
from schemas import SeriesListResponse, SeriesResponse, ValidationErrorResponse
from services.series_service import (
    SeriesFilters,
    SeriesNotFoundError,
    create_series,
    delete_series,
    get_series,
    list_series,
    replace_series,
    update_series,
)

router = APIRouter(prefix="/api/series", tags=["series"])

SeriesPayload = Annotated[dict[str, Any], Body()]

_VALIDATION_RESPONSES: dict[int | str, dict[str, Any]] = {
    422: {"model": ValidationErrorResponse, "description": "Invalid series data"},
}
_NOT_FOUND_RESPONSES: dict[int | str, dict[str, Any]] = {
    404: {"description": "Series not found"},
}


def _to_response(record: SeriesRecord) -> SeriesResponse:
    return SeriesResponse(
        id=record.id,
        title=record.title,
        rating=float(record.rating),
        total_seasons=record.total_seasons,
        total_episodes=record.total_episodes,
        watched_episodes=record.watched_episodes,
        status=record.status,
        created_at=record.created_at,
        updated_at=record.updated_at,
    )


def _not_found() -> HTTPException:
    return HTTPException(status_code=404, detail="Series not found")


@router.get("", response_model=SeriesListResponse)
@limiter.limit(READ_LIMIT)
async def list_series_endpoint(
    request: Request,
    user_id: UserId,
    db: DbSession,
    status: Annotated[SeriesStatus | None, Query()] = None,
    rating: Annotated[Decimal | None, Query()] = None,
    title: Annotated[str | None, Query(max_length=TITLE_MAX_LENGTH)] = None,
) -> SeriesListResponse:
    """List your series, newest first.

    ``status`` and ``rating`` match exactly; ``title`` matches any series
    whose title contains it, ignoring case.
    """
    records = await list_series(
        db, user_id, SeriesFilters(status=status, rating=rating, title=title)
    )
    return SeriesListResponse(
        count=len(records),
        series=[_to_response(record) for record in records],
    )


@router.post(
    "",
    response_model=SeriesResponse,
    status_code=201,
    responses=_VALIDATION_RESPONSES,
)
@limiter.limit(WRITE_LIMIT)
async def create_series_endpoint(
    request: Request, payload: SeriesPayload, user_id: UserId, db: DbSession
) -> SeriesResponse:
    """Start tracking a series. All fields are required."""
    record = await create_series(db, user_id, payload)
    return _to_response(record)


@router.get("/{series_id}", response_model=SeriesResponse, responses=_NOT_FOUND_RESPONSES)
@limiter.limit(READ_LIMIT)
async def get_series_endpoint(
    request: Request, series_id: int, user_id: UserId, db: DbSession
) -> SeriesResponse:
    try:
        record = await get_series(db, user_id, series_id)
    except SeriesNotFoundError:
        raise _not_found()
    return _to_response(record)


@router.put(
    "/{series_id}",
    response_model=SeriesResponse,
    responses=_NOT_FOUND_RESPONSES | _VALIDATION_RESPONSES,
)
@limiter.limit(WRITE_LIMIT)
async def replace_series_endpoint(
    request: Request,
    series_id: int,
    payload: SeriesPayload,
    user_id: UserId,
    db: DbSession,
) -> SeriesResponse:
    """Replace every field of a series."""
    try:
        record = await replace_series(db, user_id, series_id, payload)
    except SeriesNotFoundError:
        raise _not_found()
    return _to_response(record)


@router.patch(
    "/{series_id}",
    response_model=SeriesResponse,
    responses=_NOT_FOUND_RESPONSES | _VALIDATION_RESPONSES,
)
@limiter.limit(WRITE_LIMIT)
async def update_series_endpoint(
    request: Request,
    series_id: int,
    payload: SeriesPayload,
    user_id: UserId,
    db: DbSession,
) -> SeriesResponse:
    """Update some fields of a series.

    The result is validated as a whole: watched_episodes may not exceed
    total_episodes after the change, whichever of the two was sent.
    """
    try:
        record = await update_series(db, user_id, series_id, payload)
    except SeriesNotFoundError:
        raise _not_found()
    return _to_response(record)


@router.delete("/{series_id}", status_code=204, responses=_NOT_FOUND_RESPONSES)
@limiter.limit(WRITE_LIMIT)
async def delete_series_endpoint(
    request: Request, series_id: int, user_id: UserId, db: DbSession
) -> None:
    if not await delete_series(db, user_id, series_id):
        raise _not_found()
