"""Series repository for database operations.

Every statement is scoped by owner: a row that exists but belongs to
someone else is indistinguishable from a row that does not exist.
"""

from decimal import Decimal
from typing import Any

from sqlalchemy import delete, insert, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from models import Series, SeriesStatus, utcnow
from repositories.gateway import PersistenceGateway
from repositories.series_mapper import (
    SeriesRecord,
    changes_to_row,
    to_record,
    to_row,
)
from repositories.utils import log_slow_query
from services.series_validation import SeriesField, SeriesFields

series_table = Series.__table__


class SeriesRepository:
    """Repository for series rows, built on SQLAlchemy Core."""

    def __init__(self, db: AsyncSession):
        self.gateway = PersistenceGateway(db)

    @staticmethod
    def _owned(series_id: int, owner_id: int):
        return (series_table.c.id == series_id) & (series_table.c.owner_id == owner_id)

    @log_slow_query("series.insert")
    async def insert(self, owner_id: int, fields: SeriesFields) -> SeriesRecord:
        now = utcnow()
        stmt = (
            insert(series_table)
            .values(owner_id=owner_id, created_at=now, updated_at=now, **to_row(fields))
            .returning(*series_table.c)
        )
        rows = await self.gateway.execute(stmt)
        return to_record(rows[0])

    @log_slow_query("series.list_by_owner")
    async def list_by_owner(
        self,
        owner_id: int,
        *,
        status: SeriesStatus | None = None,
        rating: Decimal | None = None,
        title: str | None = None,
    ) -> list[SeriesRecord]:
        """List an owner's series, newest first.

        Filters are optional and combine with AND. ``title`` is a
        case-insensitive substring match; ``%`` and ``_`` in it are literal.
        """
        stmt = select(series_table).where(series_table.c.owner_id == owner_id)
        if status is not None:
            stmt = stmt.where(series_table.c.status == status)
        if rating is not None:
            stmt = stmt.where(series_table.c.rating == rating)
        if title:
            stmt = stmt.where(series_table.c.title.icontains(title, autoescape=True))
        stmt = stmt.order_by(series_table.c.created_at.desc(), series_table.c.id.desc())

        rows = await self.gateway.execute(stmt)
        return [to_record(row) for row in rows]

    @log_slow_query("series.get_by_id")
    async def get_by_id(
        self, owner_id: int, series_id: int, *, for_update: bool = False
    ) -> SeriesRecord | None:
        """Get one series, optionally locking the row for the transaction.

        The lock is a no-op on backends without row locks (SQLite).
        """
        stmt = select(series_table).where(self._owned(series_id, owner_id))
        if for_update:
            stmt = stmt.with_for_update()
        rows = await self.gateway.execute(stmt)
        return to_record(rows[0]) if rows else None

    @log_slow_query("series.update_all")
    async def update_all(
        self, owner_id: int, series_id: int, fields: SeriesFields
    ) -> SeriesRecord | None:
        """Overwrite every writable column. Returns None if nothing matched."""
        return await self._update(owner_id, series_id, to_row(fields))

    @log_slow_query("series.update_fields")
    async def update_fields(
        self, owner_id: int, series_id: int, changes: dict[SeriesField, Any]
    ) -> SeriesRecord | None:
        """Write only the given columns. Returns None if nothing matched."""
        return await self._update(owner_id, series_id, changes_to_row(changes))

    async def _update(
        self, owner_id: int, series_id: int, values: dict[str, Any]
    ) -> SeriesRecord | None:
        stmt = (
            update(series_table)
            .where(self._owned(series_id, owner_id))
            .values(updated_at=utcnow(), **values)
            .returning(*series_table.c)
        )
        rows = await self.gateway.execute(stmt)
        return to_record(rows[0]) if rows else None

    @log_slow_query("series.delete")
    async def delete(self, owner_id: int, series_id: int) -> bool:
        """Delete a series. Returns True if a row was removed."""
        stmt = (
            delete(series_table)
            .where(self._owned(series_id, owner_id))
            .returning(series_table.c.id)
        )
        rows = await self.gateway.execute(stmt)
        return bool(rows)
