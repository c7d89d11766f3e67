"""Integration tests for the /api/series endpoints.

Requests go through the full stack: bearer auth, request validation,
service layer and in-memory SQLite.
"""

import pytest
from httpx import AsyncClient

from models import User
from tests.conftest import bearer_headers
from tests.factories import SeriesPayloadFactory

pytestmark = pytest.mark.integration

FOO = {
    "title": "Foo",
    "rating": 8.5,
    "total_seasons": 2,
    "total_episodes": 20,
    "watched_episodes": 20,
    "status": "watching",
}


async def _create(client: AsyncClient, **overrides) -> dict:
    response = await client.post("/api/series", json={**FOO, **overrides})
    assert response.status_code == 201, response.text
    return response.json()


class TestAuthentication:
    async def test_missing_token_returns_401(self, client: AsyncClient):
        response = await client.get("/api/series")

        assert response.status_code == 401
        assert response.headers["www-authenticate"] == "Bearer"

    async def test_invalid_token_returns_401(self, client: AsyncClient):
        response = await client.get(
            "/api/series", headers={"Authorization": "Bearer not-a-token"}
        )
        assert response.status_code == 401


class TestCreateSeries:
    async def test_creates_series(self, authenticated_client: AsyncClient):
        body = await _create(authenticated_client)

        assert body["id"] > 0
        assert body["title"] == "Foo"
        assert body["rating"] == 8.5
        assert body["status"] == "watching"
        assert "owner_id" not in body
        assert "created_at" in body and "updated_at" in body

    async def test_owner_in_body_is_ignored(
        self, authenticated_client: AsyncClient, other_user: User
    ):
        body = await _create(authenticated_client, owner_id=other_user.id)

        response = await authenticated_client.get(f"/api/series/{body['id']}")
        assert response.status_code == 200

    async def test_out_of_range_rating_returns_422_with_field(
        self, authenticated_client: AsyncClient
    ):
        response = await authenticated_client.post(
            "/api/series", json={**FOO, "rating": 11}
        )

        assert response.status_code == 422
        assert response.json()["field"] == "rating"

    async def test_count_beyond_integer_range_returns_422_with_field(
        self, authenticated_client: AsyncClient
    ):
        response = await authenticated_client.post(
            "/api/series", json={**FOO, "total_episodes": 2**63}
        )

        assert response.status_code == 422
        assert response.json()["field"] == "total_episodes"

    async def test_watched_above_total_returns_422(
        self, authenticated_client: AsyncClient
    ):
        response = await authenticated_client.post(
            "/api/series", json={**FOO, "watched_episodes": 21}
        )

        assert response.status_code == 422
        assert response.json()["field"] == "watched_episodes"
        assert "cannot exceed" in response.json()["detail"]

    async def test_non_object_body_returns_422(self, authenticated_client: AsyncClient):
        response = await authenticated_client.post("/api/series", json=[FOO])
        assert response.status_code == 422


class TestListSeries:
    async def test_lists_with_count(self, authenticated_client: AsyncClient):
        for _ in range(3):
            await authenticated_client.post("/api/series", json=SeriesPayloadFactory())

        response = await authenticated_client.get("/api/series")

        assert response.status_code == 200
        assert response.json()["count"] == 3
        assert len(response.json()["series"]) == 3

    async def test_filters_by_title_and_status(self, authenticated_client: AsyncClient):
        await _create(authenticated_client)
        await _create(authenticated_client, title="Bar", status="completed")

        by_title = await authenticated_client.get("/api/series", params={"title": "oo"})
        by_status = await authenticated_client.get(
            "/api/series", params={"status": "completed"}
        )
        by_rating = await authenticated_client.get(
            "/api/series", params={"rating": "8.5"}
        )

        assert [s["title"] for s in by_title.json()["series"]] == ["Foo"]
        assert [s["title"] for s in by_status.json()["series"]] == ["Bar"]
        assert by_rating.json()["count"] == 2

    async def test_invalid_status_filter_returns_422(
        self, authenticated_client: AsyncClient
    ):
        response = await authenticated_client.get(
            "/api/series", params={"status": "paused"}
        )
        assert response.status_code == 422

    async def test_other_users_series_are_not_listed(
        self, authenticated_client: AsyncClient, client: AsyncClient, other_user: User
    ):
        await _create(authenticated_client)

        response = await client.get("/api/series", headers=bearer_headers(other_user.id))

        assert response.json() == {"count": 0, "series": []}


class TestGetSeries:
    async def test_returns_series(self, authenticated_client: AsyncClient):
        created = await _create(authenticated_client)

        response = await authenticated_client.get(f"/api/series/{created['id']}")

        assert response.status_code == 200
        assert response.json() == created

    async def test_foreign_series_returns_404(
        self, authenticated_client: AsyncClient, client: AsyncClient, other_user: User
    ):
        created = await _create(authenticated_client)

        response = await client.get(
            f"/api/series/{created['id']}", headers=bearer_headers(other_user.id)
        )

        assert response.status_code == 404

    async def test_missing_series_returns_404(self, authenticated_client: AsyncClient):
        response = await authenticated_client.get("/api/series/9999")
        assert response.status_code == 404

    async def test_id_beyond_integer_range_returns_404(
        self, authenticated_client: AsyncClient
    ):
        response = await authenticated_client.get(f"/api/series/{2**63}")
        assert response.status_code == 404


class TestReplaceSeries:
    async def test_replaces_all_fields(self, authenticated_client: AsyncClient):
        created = await _create(authenticated_client)
        replacement = {
            "title": "Foo II",
            "rating": 6.0,
            "total_seasons": 1,
            "total_episodes": 8,
            "watched_episodes": 0,
            "status": "planned",
        }

        response = await authenticated_client.put(
            f"/api/series/{created['id']}", json=replacement
        )

        assert response.status_code == 200
        body = response.json()
        assert {key: body[key] for key in replacement} == replacement

    async def test_incomplete_payload_returns_422(
        self, authenticated_client: AsyncClient
    ):
        created = await _create(authenticated_client)

        response = await authenticated_client.put(
            f"/api/series/{created['id']}", json={"title": "Only title"}
        )

        assert response.status_code == 422

    async def test_missing_series_returns_404(self, authenticated_client: AsyncClient):
        response = await authenticated_client.put("/api/series/9999", json=FOO)
        assert response.status_code == 404


class TestUpdateSeries:
    async def test_updates_supplied_fields(self, authenticated_client: AsyncClient):
        created = await _create(authenticated_client)

        response = await authenticated_client.patch(
            f"/api/series/{created['id']}", json={"status": "completed"}
        )

        assert response.status_code == 200
        assert response.json()["status"] == "completed"
        assert response.json()["title"] == "Foo"

    async def test_merged_state_violation_returns_422(
        self, authenticated_client: AsyncClient
    ):
        created = await _create(authenticated_client)

        response = await authenticated_client.patch(
            f"/api/series/{created['id']}", json={"total_episodes": 15}
        )

        assert response.status_code == 422
        unchanged = await authenticated_client.get(f"/api/series/{created['id']}")
        assert unchanged.json()["total_episodes"] == 20

    async def test_empty_update_returns_422(self, authenticated_client: AsyncClient):
        created = await _create(authenticated_client)

        response = await authenticated_client.patch(
            f"/api/series/{created['id']}", json={}
        )

        assert response.status_code == 422
        assert response.json() == {"detail": "No fields provided for update"}

    async def test_foreign_series_returns_404(
        self, authenticated_client: AsyncClient, client: AsyncClient, other_user: User
    ):
        created = await _create(authenticated_client)

        response = await client.patch(
            f"/api/series/{created['id']}",
            json={"title": "Mine now"},
            headers=bearer_headers(other_user.id),
        )

        assert response.status_code == 404


class TestDeleteSeries:
    async def test_delete_then_404(self, authenticated_client: AsyncClient):
        created = await _create(authenticated_client)

        first = await authenticated_client.delete(f"/api/series/{created['id']}")
        second = await authenticated_client.delete(f"/api/series/{created['id']}")

        assert first.status_code == 204
        assert first.content == b""
        assert second.status_code == 404
