"""Tests for SeriesRepository.

Uses in-memory SQLite; FOR UPDATE compiles away there, so the locking path
is exercised for correctness only.
"""

from decimal import Decimal

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession

from models import SeriesStatus, User
from repositories.series_repository import SeriesRepository
from services.series_validation import SeriesField, SeriesFields
from tests.factories import SeriesFactory, UserFactory, create_async

pytestmark = pytest.mark.integration


def _fields(**overrides) -> SeriesFields:
    values = {
        "title": "Foo",
        "rating": Decimal("8.5"),
        "total_seasons": 2,
        "total_episodes": 20,
        "watched_episodes": 10,
        "status": SeriesStatus.WATCHING,
    }
    values.update(overrides)
    return SeriesFields(**values)


@pytest_asyncio.fixture
async def owner(db_session: AsyncSession) -> User:
    return await create_async(UserFactory, db_session)


class TestSeriesRepositoryInsert:
    """Tests for SeriesRepository.insert()."""

    async def test_assigns_id_owner_and_timestamps(self, db_session, owner):
        repo = SeriesRepository(db_session)

        record = await repo.insert(owner.id, _fields())

        assert record.id > 0
        assert record.owner_id == owner.id
        assert record.created_at is not None
        assert record.updated_at == record.created_at
        assert record.fields() == _fields()


class TestSeriesRepositoryGetById:
    """Tests for SeriesRepository.get_by_id()."""

    async def test_returns_row_for_owner(self, db_session, owner):
        series = await create_async(SeriesFactory, db_session, owner_id=owner.id)
        repo = SeriesRepository(db_session)

        record = await repo.get_by_id(owner.id, series.id)

        assert record is not None
        assert record.title == series.title

    async def test_returns_none_for_other_owner(self, db_session, owner):
        other = await create_async(UserFactory, db_session)
        series = await create_async(SeriesFactory, db_session, owner_id=owner.id)
        repo = SeriesRepository(db_session)

        assert await repo.get_by_id(other.id, series.id) is None

    async def test_for_update_reads_same_row(self, db_session, owner):
        series = await create_async(SeriesFactory, db_session, owner_id=owner.id)
        repo = SeriesRepository(db_session)

        locked = await repo.get_by_id(owner.id, series.id, for_update=True)

        assert locked == await repo.get_by_id(owner.id, series.id)


class TestSeriesRepositoryListByOwner:
    """Tests for SeriesRepository.list_by_owner()."""

    async def test_without_filters_returns_all_owned(self, db_session, owner):
        other = await create_async(UserFactory, db_session)
        for _ in range(3):
            await create_async(SeriesFactory, db_session, owner_id=owner.id)
        await create_async(SeriesFactory, db_session, owner_id=other.id)
        repo = SeriesRepository(db_session)

        assert len(await repo.list_by_owner(owner.id)) == 3

    async def test_underscore_in_title_is_literal(self, db_session, owner):
        await create_async(SeriesFactory, db_session, owner_id=owner.id, title="a_b")
        await create_async(SeriesFactory, db_session, owner_id=owner.id, title="axb")
        repo = SeriesRepository(db_session)

        result = await repo.list_by_owner(owner.id, title="a_b")

        assert [r.title for r in result] == ["a_b"]

    async def test_rating_filter_is_exact(self, db_session, owner):
        await create_async(
            SeriesFactory, db_session, owner_id=owner.id, rating=Decimal("7.5")
        )
        await create_async(
            SeriesFactory, db_session, owner_id=owner.id, rating=Decimal("7.6")
        )
        repo = SeriesRepository(db_session)

        result = await repo.list_by_owner(owner.id, rating=Decimal("7.5"))

        assert [r.rating for r in result] == [Decimal("7.5")]


class TestSeriesRepositoryUpdate:
    """Tests for update_all() and update_fields()."""

    async def test_update_fields_touches_only_given_columns(self, db_session, owner):
        repo = SeriesRepository(db_session)
        record = await repo.insert(owner.id, _fields())

        updated = await repo.update_fields(
            owner.id, record.id, {SeriesField.WATCHED_EPISODES: 15}
        )

        assert updated is not None
        assert updated.watched_episodes == 15
        assert updated.title == record.title
        assert updated.owner_id == owner.id
        assert updated.updated_at >= record.updated_at

    async def test_update_all_replaces_fields(self, db_session, owner):
        repo = SeriesRepository(db_session)
        record = await repo.insert(owner.id, _fields())
        replacement = _fields(title="Bar", status=SeriesStatus.COMPLETED)

        updated = await repo.update_all(owner.id, record.id, replacement)

        assert updated is not None
        assert updated.fields() == replacement

    async def test_update_for_other_owner_returns_none(self, db_session, owner):
        other = await create_async(UserFactory, db_session)
        repo = SeriesRepository(db_session)
        record = await repo.insert(owner.id, _fields())

        assert await repo.update_all(other.id, record.id, _fields(title="Bar")) is None
        assert (await repo.get_by_id(owner.id, record.id)).title == "Foo"


class TestSeriesRepositoryDelete:
    """Tests for SeriesRepository.delete()."""

    async def test_delete_reports_whether_a_row_was_removed(self, db_session, owner):
        repo = SeriesRepository(db_session)
        record = await repo.insert(owner.id, _fields())

        assert await repo.delete(owner.id, record.id) is True
        assert await repo.delete(owner.id, record.id) is False
        assert await repo.get_by_id(owner.id, record.id) is None
