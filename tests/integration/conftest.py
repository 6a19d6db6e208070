"""Integration test fixtures.

Provides a real CatalogDB backed by a temporary SQLite file and a real
ITunesClient whose HTTP transport is a fake iTunes Search API serving
canned responses.
"""

import httpx
import pytest
import pytest_asyncio

from catalog.db import CatalogDB
from config.settings import Settings
from itunes.client import ITunesClient
from tests.factories import (
    DAFT_PUNK_SEARCH_BODY,
    EMPTY_BODY,
    RAHMAN_LOOKUP_BODY,
    make_album_record,
    make_artist_record,
    make_body,
)

# ---------------------------------------------------------------------------
# Fake iTunes Search API
# ---------------------------------------------------------------------------

JACK_JOHNSON_LOOKUP_BODY = make_body(
    [
        make_artist_record(909253, "Jack Johnson", primaryGenreName="Rock"),
        make_album_record(
            1440857781, 909253, artistName="Jack Johnson",
            collectionName="In Between Dreams", collectionPrice=9.99, primaryGenreName="Rock",
        ),
        make_album_record(
            1440752312, 909253, artistName="Jack Johnson",
            collectionName="Brushfire Fairytales", collectionPrice=7.99, primaryGenreName="Rock",
        ),
    ]
)

SEARCH_BODIES = {"Daft Punk": DAFT_PUNK_SEARCH_BODY, "test": EMPTY_BODY}

LOOKUP_BODIES = {"3249567": RAHMAN_LOOKUP_BODY, "909253": JACK_JOHNSON_LOOKUP_BODY}

# Lookup IDs the fake API answers with an error status.
LOOKUP_ERRORS = {"500500": 503, "400400": 400}

SEARCH_URL = "https://itunes.test/search?term=%s&entity=musicArtist&limit=5"
LOOKUP_URL = "https://itunes.test/lookup?id=%s&entity=album"


class FakeITunes:
    """Serves canned search and lookup bodies and records every request."""

    def __init__(self):
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.path == "/search":
            body = SEARCH_BODIES.get(request.url.params["term"], EMPTY_BODY)
            return httpx.Response(200, text=body)
        if request.url.path == "/lookup":
            artist_id = request.url.params["id"]
            if artist_id in LOOKUP_ERRORS:
                return httpx.Response(LOOKUP_ERRORS[artist_id], text="error")
            return httpx.Response(200, text=LOOKUP_BODIES.get(artist_id, EMPTY_BODY))
        return httpx.Response(404, text="not found")


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def fake_itunes():
    return FakeITunes()


@pytest_asyncio.fixture
async def itunes_client(fake_itunes):
    """Real ITunesClient talking to the fake iTunes API."""
    client = ITunesClient(search_url=SEARCH_URL, lookup_url=LOOKUP_URL, timeout=2.0)
    client._client = httpx.AsyncClient(transport=httpx.MockTransport(fake_itunes))
    yield client
    await client.close()


@pytest_asyncio.fixture
async def catalog_db(tmp_path):
    """Real CatalogDB backed by a temporary SQLite file."""
    db = CatalogDB(db_path=tmp_path / "catalog.db")
    await db.connect()
    yield db
    await db.close()


@pytest.fixture
def test_settings(tmp_path):
    """Settings with no real tokens, telemetry disabled."""
    return Settings(
        sentry_dsn=None,
        posthog_api_key=None,
        enable_telemetry=False,
        itunes_search_url=SEARCH_URL,
        itunes_lookup_url=LOOKUP_URL,
        catalog_db_path=tmp_path / "catalog.db",
    )


@pytest_asyncio.fixture
async def app_client(catalog_db, itunes_client, test_settings):
    """httpx AsyncClient with real CatalogDB and ITunesClient but no PostHog."""
    from httpx import ASGITransport, AsyncClient
    from main import app
    from core.dependencies import get_catalog_db, get_itunes_client, get_posthog_client
    from config.settings import get_settings

    app.dependency_overrides[get_catalog_db] = lambda: catalog_db
    app.dependency_overrides[get_itunes_client] = lambda: itunes_client
    app.dependency_overrides[get_posthog_client] = lambda: None
    app.dependency_overrides[get_settings] = lambda: test_settings

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as client:
        yield client

    app.dependency_overrides.clear()
