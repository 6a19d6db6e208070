"""Unit tests for routers/catalog.py."""

from unittest.mock import AsyncMock, patch

import pytest
from httpx import ASGITransport, AsyncClient

from core.exceptions import PersistenceError
from tests.factories import make_album, make_artist


@pytest.fixture
def app_client(mock_itunes_client, mock_catalog_db, mock_settings):
    from config.settings import get_settings
    from core.dependencies import get_catalog_db, get_itunes_client, get_posthog_client
    from main import app

    app.dependency_overrides[get_itunes_client] = lambda: mock_itunes_client
    app.dependency_overrides[get_catalog_db] = lambda: mock_catalog_db
    app.dependency_overrides[get_posthog_client] = lambda: None
    app.dependency_overrides[get_settings] = lambda: mock_settings
    yield app
    app.dependency_overrides.clear()


async def _get(app, url):
    with patch("main.capture_exception"):
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            return await client.get(url)


class TestGetStoredArtist:
    @pytest.mark.asyncio
    async def test_returns_stored_albums(self, app_client, mock_catalog_db, mock_itunes_client):
        mock_catalog_db.get_artist.return_value = make_artist(3249567, "A.R. Rahman")
        mock_catalog_db.get_albums_by_artist.return_value = [
            make_album(1440917539, collection_name="Slumdog Millionaire"),
            make_album(1537961309),
        ]

        resp = await _get(app_client, "/catalog/artists/3249567")

        assert resp.status_code == 200
        body = resp.json()
        assert body["artist"]["artistId"] == 3249567
        assert body["total"] == 2
        assert [a["collectionId"] for a in body["albums"]] == [1440917539, 1537961309]
        mock_itunes_client.lookup.assert_not_called()

    @pytest.mark.asyncio
    async def test_not_stored_is_404(self, app_client):
        resp = await _get(app_client, "/catalog/artists/909253")

        assert resp.status_code == 404
        assert "909253" in resp.json()["detail"]

    @pytest.mark.asyncio
    async def test_bad_id_is_400(self, app_client, mock_catalog_db):
        resp = await _get(app_client, "/catalog/artists/abc")

        assert resp.status_code == 400
        assert resp.json()["kind"] == "validation"
        mock_catalog_db.get_artist.assert_not_called()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("artist_id", ["99999999999999999999", "9" * 5000])
    async def test_oversized_id_is_400(self, app_client, mock_catalog_db, artist_id):
        resp = await _get(app_client, f"/catalog/artists/{artist_id}")

        assert resp.status_code == 400
        assert resp.json()["kind"] == "validation"
        mock_catalog_db.get_artist.assert_not_called()

    @pytest.mark.asyncio
    async def test_persistence_disabled_is_503(self, app_client):
        from core.dependencies import get_catalog_db

        app_client.dependency_overrides[get_catalog_db] = lambda: None

        resp = await _get(app_client, "/catalog/artists/909253")

        assert resp.status_code == 503
        assert "ENABLE_PERSISTENCE" in resp.json()["detail"]

    @pytest.mark.asyncio
    async def test_read_failure_is_500(self, app_client, mock_catalog_db):
        mock_catalog_db.get_artist = AsyncMock(side_effect=PersistenceError("database is locked"))

        resp = await _get(app_client, "/catalog/artists/909253")

        assert resp.status_code == 500
        assert resp.json() == {"detail": "database is locked", "kind": "persistence"}
