"""Persistence gateway: the single point where statements meet the database.

Repositories build statements with SQLAlchemy Core (or pass SQL text with
named parameters) and get plain ``dict`` rows back. Driver and SQLAlchemy
errors never leak past this module; they are re-raised as ``StorageError``
carrying the SQLSTATE code when the driver exposes one.
"""

from collections.abc import Mapping
from typing import Any

from sqlalchemy import text
from sqlalchemy.exc import DBAPIError, IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import Executable

from core import get_logger

logger = get_logger(__name__)

UNIQUE_VIOLATION = "23505"


class StorageError(Exception):
    """Raised when the backend rejects or fails a statement."""

    def __init__(self, message: str, code: str | None = None):
        self.message = message
        self.code = code
        super().__init__(message)

    @property
    def is_conflict(self) -> bool:
        return self.code == UNIQUE_VIOLATION


def _sqlstate(error: DBAPIError) -> str | None:
    """Best-effort SQLSTATE lookup across drivers.

    asyncpg exposes ``sqlstate``, psycopg2 ``pgcode``. SQLite has no SQLSTATE,
    so a uniqueness failure there is recognized from its message.
    """
    orig = error.orig
    for attr in ("sqlstate", "pgcode"):
        code = getattr(orig, attr, None)
        if isinstance(code, str) and code:
            return code
    if isinstance(error, IntegrityError) and "unique" in str(orig).lower():
        return UNIQUE_VIOLATION
    return None


class PersistenceGateway:
    """Executes parameterized statements inside the caller's session."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def execute(
        self,
        statement: Executable | str,
        params: Mapping[str, Any] | None = None,
    ) -> list[dict[str, Any]]:
        """Run ``statement`` and return its rows as dicts.

        Statements that produce no rows (e.g. UPDATE without RETURNING)
        return an empty list. Does NOT commit; the session owner does.

        Raises:
            StorageError: Any failure reported by SQLAlchemy or the driver.
        """
        if isinstance(statement, str):
            statement = text(statement)

        try:
            result = await self.db.execute(statement, dict(params or {}))
            if not result.returns_rows:
                return []
            return [dict(row) for row in result.mappings().all()]
        except DBAPIError as e:
            code = _sqlstate(e)
            logger.warning(
                "db.statement.failed",
                error_type=type(e.orig).__name__,
                code=code,
            )
            raise StorageError(str(e.orig), code=code) from e
        except SQLAlchemyError as e:
            logger.warning("db.statement.failed", error_type=type(e).__name__)
            raise StorageError(str(e)) from e
        except OverflowError as e:
            # sqlite3 rejects out-of-range ints while binding, outside DBAPIError
            logger.warning("db.statement.failed", error_type=type(e).__name__)
            raise StorageError(str(e)) from e
