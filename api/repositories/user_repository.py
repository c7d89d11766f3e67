"""User repository for database operations."""

from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import insert, select
from sqlalchemy.ext.asyncio import AsyncSession

from models import User, utcnow
from repositories.gateway import PersistenceGateway
from repositories.utils import log_slow_query

users_table = User.__table__


@dataclass(frozen=True)
class UserRecord:
    id: int
    name: str
    email: str
    password_hash: str
    created_at: datetime


def _to_user(row: dict) -> UserRecord:
    return UserRecord(
        id=row["id"],
        name=row["name"],
        email=row["email"],
        password_hash=row["password_hash"],
        created_at=row["created_at"],
    )


class UserRepository:
    """Repository for User database operations."""

    def __init__(self, db: AsyncSession):
        self.gateway = PersistenceGateway(db)

    @log_slow_query("users.get_by_email")
    async def get_by_email(self, email: str) -> UserRecord | None:
        """Get a user by email.

        Expects email to be pre-normalized (trimmed, lowercase) by the
        service layer; the unique constraint ensures at most one match.
        """
        rows = await self.gateway.execute(
            select(users_table).where(users_table.c.email == email)
        )
        return _to_user(rows[0]) if rows else None

    @log_slow_query("users.create")
    async def create(self, *, name: str, email: str, password_hash: str) -> UserRecord:
        """Insert a user.

        Raises:
            StorageError: ``is_conflict`` is set when the email is taken.
        """
        now = utcnow()
        rows = await self.gateway.execute(
            insert(users_table)
            .values(
                name=name,
                email=email,
                password_hash=password_hash,
                created_at=now,
                updated_at=now,
            )
            .returning(*users_table.c)
        )
        return _to_user(rows[0])
