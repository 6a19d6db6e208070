"""Shared test fixtures for pytest."""

from unittest.mock import AsyncMock

import pytest

from catalog.db import CatalogDB
from itunes.client import ITunesClient
from tests.factories import make_album, make_artist


@pytest.fixture
def mock_itunes_client():
    """Create a mock iTunes client."""
    client = AsyncMock(spec=ITunesClient)
    client.search = AsyncMock()
    client.lookup = AsyncMock()
    client.check_api = AsyncMock(return_value=True)
    return client


@pytest.fixture
def mock_catalog_db():
    """Create a mock catalog database."""
    db = AsyncMock(spec=CatalogDB)
    db.save_artists = AsyncMock(return_value=0)
    db.save_albums = AsyncMock(return_value=0)
    db.get_artist = AsyncMock(return_value=None)
    db.get_albums_by_artist = AsyncMock(return_value=[])
    db.is_available = AsyncMock(return_value=True)
    return db


@pytest.fixture
def sample_artist():
    """Create a sample artist for testing."""
    return make_artist(artist_id=3249567, artist_name="A.R. Rahman", primary_genre_name="Bollywood")


@pytest.fixture
def sample_albums():
    """Create sample albums for testing."""
    return [
        make_album(collection_id=1537961309),
        make_album(collection_id=1440917539, collection_name="Slumdog Millionaire"),
    ]
