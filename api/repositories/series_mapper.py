"""Conversion between flat ``series`` rows and domain records."""

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any

from models import SeriesStatus
from repositories.gateway import StorageError
from services.series_validation import RATING_QUANTUM, SeriesField, SeriesFields


@dataclass(frozen=True)
class SeriesRecord:
    """A persisted series as seen by callers of the service layer."""

    id: int
    owner_id: int
    title: str
    rating: Decimal
    total_seasons: int
    total_episodes: int
    watched_episodes: int
    status: SeriesStatus
    created_at: datetime
    updated_at: datetime

    def fields(self) -> SeriesFields:
        """The client-writable part of the record."""
        return SeriesFields(
            title=self.title,
            rating=self.rating,
            total_seasons=self.total_seasons,
            total_episodes=self.total_episodes,
            watched_episodes=self.watched_episodes,
            status=self.status,
        )


def _rating_from_storage(value: Any) -> Decimal:
    # Drivers hand back Decimal (asyncpg), float (sqlite) or text
    try:
        return Decimal(str(value)).quantize(RATING_QUANTUM)
    except (InvalidOperation, TypeError) as e:
        raise StorageError(f"Unreadable rating in storage: {value!r}") from e


def _status_from_storage(value: Any) -> SeriesStatus:
    try:
        return SeriesStatus(value)
    except ValueError as e:
        raise StorageError(f"Unknown series status in storage: {value!r}") from e


def to_record(row: Mapping[str, Any]) -> SeriesRecord:
    """Build a record from a storage row.

    Raises:
        StorageError: The row holds a value the domain cannot represent.
    """
    return SeriesRecord(
        id=row["id"],
        owner_id=row["owner_id"],
        title=row["title"],
        rating=_rating_from_storage(row["rating"]),
        total_seasons=row["total_seasons"],
        total_episodes=row["total_episodes"],
        watched_episodes=row["watched_episodes"],
        status=_status_from_storage(row["status"]),
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def _column_value(field: SeriesField, value: Any) -> Any:
    if field is SeriesField.STATUS:
        return SeriesStatus(value)
    return value


def to_row(fields: SeriesFields) -> dict[str, Any]:
    """Column values for every writable field."""
    return {
        field.value: _column_value(field, getattr(fields, field.value))
        for field in SeriesField
    }


def changes_to_row(changes: Mapping[SeriesField, Any]) -> dict[str, Any]:
    """Column values for just the changed fields."""
    return {field.value: _column_value(field, value) for field, value in changes.items()}
