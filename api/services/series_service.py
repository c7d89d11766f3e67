"""Series service: validation, persistence and ownership for watch progress.

Every operation is scoped to ``owner_id``. Callers cannot tell a series
owned by someone else from one that does not exist.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from models import INTEGER_MAX, SeriesStatus
from repositories.series_mapper import SeriesRecord
from repositories.series_repository import SeriesRepository
from services.series_validation import validate_create_or_replace, validate_partial

logger = logging.getLogger(__name__)


class SeriesNotFoundError(Exception):
    """Raised when no series matches id + owner."""

    def __init__(self, series_id: int):
        self.series_id = series_id
        super().__init__(f"Series {series_id} not found")


@dataclass(frozen=True)
class SeriesFilters:
    """Optional list filters. Unset filters do not constrain the result."""

    status: SeriesStatus | None = None
    rating: Decimal | None = None
    title: str | None = None


def _valid_id(value: int) -> bool:
    # Ids outside the column range cannot exist
    return 0 < value <= INTEGER_MAX


async def create_series(
    db: AsyncSession, owner_id: int, payload: Mapping[str, Any]
) -> SeriesRecord:
    """Validate a full payload and store it as a new series for ``owner_id``.

    Raises:
        InvalidFieldError: A field is missing or out of range.
        InvariantViolationError: watched_episodes > total_episodes.
    """
    fields = validate_create_or_replace(payload)
    record = await SeriesRepository(db).insert(owner_id, fields)

    logger.info(
        "series.created",
        extra={"user_id": owner_id, "series_id": record.id, "status": record.status},
    )
    return record


async def list_series(
    db: AsyncSession, owner_id: int, filters: SeriesFilters | None = None
) -> list[SeriesRecord]:
    """List the owner's series, newest first, narrowed by ``filters``."""
    if not _valid_id(owner_id):
        return []

    filters = filters or SeriesFilters()
    title = filters.title.strip() if filters.title else None
    return await SeriesRepository(db).list_by_owner(
        owner_id,
        status=filters.status,
        rating=filters.rating,
        title=title or None,
    )


async def get_series(db: AsyncSession, owner_id: int, series_id: int) -> SeriesRecord:
    """Get one series.

    Raises:
        SeriesNotFoundError: Missing, or owned by another user.
    """
    record = None
    if _valid_id(owner_id) and _valid_id(series_id):
        record = await SeriesRepository(db).get_by_id(owner_id, series_id)
    if record is None:
        raise SeriesNotFoundError(series_id)
    return record


async def replace_series(
    db: AsyncSession, owner_id: int, series_id: int, payload: Mapping[str, Any]
) -> SeriesRecord:
    """Overwrite every writable field of a series.

    The payload is validated before the lookup, so an invalid payload for a
    missing series reports the validation failure.

    Raises:
        InvalidFieldError, InvariantViolationError: Payload is invalid.
        SeriesNotFoundError: Missing, or owned by another user.
    """
    fields = validate_create_or_replace(payload)

    record = None
    if _valid_id(owner_id) and _valid_id(series_id):
        record = await SeriesRepository(db).update_all(owner_id, series_id, fields)
    if record is None:
        raise SeriesNotFoundError(series_id)

    logger.info("series.replaced", extra={"user_id": owner_id, "series_id": series_id})
    return record


async def update_series(
    db: AsyncSession, owner_id: int, series_id: int, payload: Mapping[str, Any]
) -> SeriesRecord:
    """Apply a partial update.

    The current row is read with a row lock in the request transaction, the
    supplied fields are merged over it and the merged state is validated.
    Only the supplied columns are written.

    Raises:
        SeriesNotFoundError: Missing, or owned by another user.
        EmptyUpdateError: No recognized field in ``payload``.
        InvalidFieldError, InvariantViolationError: Merged state is invalid.
    """
    if not (_valid_id(owner_id) and _valid_id(series_id)):
        raise SeriesNotFoundError(series_id)

    repo = SeriesRepository(db)
    current = await repo.get_by_id(owner_id, series_id, for_update=True)
    if current is None:
        raise SeriesNotFoundError(series_id)

    result = validate_partial(payload, current.fields())
    record = await repo.update_fields(owner_id, series_id, result.changes)
    if record is None:
        # Row vanished between the locked read and the write (non-locking backend)
        raise SeriesNotFoundError(series_id)

    logger.info(
        "series.updated",
        extra={
            "user_id": owner_id,
            "series_id": series_id,
            "fields": sorted(field.value for field in result.changes),
        },
    )
    return record


async def delete_series(db: AsyncSession, owner_id: int, series_id: int) -> bool:
    """Delete a series. Returns False if nothing matched id + owner."""
    if not (_valid_id(owner_id) and _valid_id(series_id)):
        return False

    deleted = await SeriesRepository(db).delete(owner_id, series_id)
    if deleted:
        logger.info("series.deleted", extra={"user_id": owner_id, "series_id": series_id})
    return deleted
