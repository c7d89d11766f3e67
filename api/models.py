"""SQLAlchemy models for series watch-progress tracking."""

from datetime import UTC, datetime
from decimal import Decimal
from enum import StrEnum

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
)
from sqlalchemy.orm import Mapped, declared_attr, mapped_column, relationship

from core.database import Base

TITLE_MAX_LENGTH = 200
# Upper bound of a 4-byte INTEGER column (PostgreSQL int4)
INTEGER_MAX = 2_147_483_647


def utcnow() -> datetime:
    """Return current UTC time (timezone-aware)."""
    return datetime.now(UTC)


class TimestampMixin:
    """Mixin that adds created_at and updated_at timestamp columns."""

    @declared_attr
    def created_at(cls) -> Mapped[datetime]:
        return mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)

    @declared_attr
    def updated_at(cls) -> Mapped[datetime]:
        return mapped_column(
            DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False
        )


class SeriesStatus(StrEnum):
    """Watch status of a series. Closed set."""

    PLANNED = "planned"
    WATCHING = "watching"
    COMPLETED = "completed"


class User(TimestampMixin, Base):
    """Registered account. Owns any number of series."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    series: Mapped[list["Series"]] = relationship(
        back_populates="owner",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class Series(TimestampMixin, Base):
    """A series tracked by one user.

    Field ranges are mirrored as CHECK constraints; the cross-field rule
    watched_episodes <= total_episodes is enforced by the service layer
    and by ck_series_watched_le_total.
    """

    __tablename__ = "series"
    __table_args__ = (
        CheckConstraint("rating >= 0 AND rating <= 10", name="ck_series_rating_range"),
        CheckConstraint("total_seasons >= 1", name="ck_series_total_seasons_min"),
        CheckConstraint("total_episodes >= 1", name="ck_series_total_episodes_min"),
        CheckConstraint("watched_episodes >= 0", name="ck_series_watched_min"),
        CheckConstraint(
            "watched_episodes <= total_episodes", name="ck_series_watched_le_total"
        ),
        Index("ix_series_owner_created", "owner_id", "created_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    owner_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    title: Mapped[str] = mapped_column(String(TITLE_MAX_LENGTH), nullable=False)
    rating: Mapped[Decimal] = mapped_column(Numeric(3, 1), nullable=False)
    total_seasons: Mapped[int] = mapped_column(Integer, nullable=False)
    total_episodes: Mapped[int] = mapped_column(Integer, nullable=False)
    watched_episodes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    status: Mapped[SeriesStatus] = mapped_column(
        Enum(
            SeriesStatus,
            name="series_status",
            native_enum=False,
            length=20,
            values_callable=lambda enum: [member.value for member in enum],
            validate_strings=True,
        ),
        nullable=False,
        default=SeriesStatus.PLANNED,
    )

    owner: Mapped["User"] = relationship(back_populates="series")
