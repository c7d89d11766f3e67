"""Repository layer for database operations.

Repositories encapsulate all database queries, keeping services free of SQL.
Every statement goes through ``PersistenceGateway``, which turns driver
failures into ``StorageError``.
"""

from repositories.gateway import UNIQUE_VIOLATION, PersistenceGateway, StorageError
from repositories.series_repository import SeriesRepository
from repositories.user_repository import UserRecord, UserRepository
from repositories.utils import log_slow_query

__all__ = [
    "PersistenceGateway",
    "SeriesRepository",
    "StorageError",
    "UNIQUE_VIOLATION",
    "UserRecord",
    "UserRepository",
    "log_slow_query",
]
