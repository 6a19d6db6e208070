import logging
from collections.abc import Iterable
from decimal import Decimal
from pathlib import Path

import aiosqlite

from core.exceptions import PersistenceError
from itunes.models import Album, Artist

logger = logging.getLogger(__name__)

# Default path to SQLite database (relative to project root)
DEFAULT_DB_PATH = Path(__file__).parent.parent / "catalog.db"

SCHEMA = """
CREATE TABLE IF NOT EXISTS artists (
    artist_id INTEGER PRIMARY KEY,
    artist_name TEXT NOT NULL,
    primary_genre_name TEXT,
    updated_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS albums (
    collection_id INTEGER PRIMARY KEY,
    artist_id INTEGER NOT NULL,
    collection_name TEXT NOT NULL,
    artist_name TEXT,
    collection_price TEXT,
    currency TEXT,
    primary_genre_name TEXT,
    copyright TEXT,
    updated_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
);

CREATE INDEX IF NOT EXISTS idx_albums_artist_id ON albums (artist_id);
"""

UPSERT_ARTIST = """
    INSERT INTO artists (artist_id, artist_name, primary_genre_name)
    VALUES (?, ?, ?)
    ON CONFLICT (artist_id) DO UPDATE SET
        artist_name = excluded.artist_name,
        primary_genre_name = excluded.primary_genre_name,
        updated_at = CURRENT_TIMESTAMP
"""

UPSERT_ALBUM = """
    INSERT INTO albums (
        collection_id, artist_id, collection_name, artist_name,
        collection_price, currency, primary_genre_name, copyright
    )
    VALUES (?, ?, ?, ?, ?, ?, ?, ?)
    ON CONFLICT (collection_id) DO UPDATE SET
        artist_id = excluded.artist_id,
        collection_name = excluded.collection_name,
        artist_name = excluded.artist_name,
        collection_price = excluded.collection_price,
        currency = excluded.currency,
        primary_genre_name = excluded.primary_genre_name,
        copyright = excluded.copyright,
        updated_at = CURRENT_TIMESTAMP
"""

ALBUM_COLUMNS = (
    "collection_id, artist_id, collection_name, artist_name, "
    "collection_price, currency, primary_genre_name, copyright"
)


def _album_params(album: Album) -> tuple:
    price = str(album.collection_price) if album.collection_price is not None else None
    return (
        album.collection_id,
        album.artist_id,
        album.collection_name,
        album.artist_name,
        price,
        album.currency,
        album.primary_genre_name,
        album.copyright,
    )


def _album_from_row(row: aiosqlite.Row) -> Album:
    data = dict(row)
    if data["collection_price"] is not None:
        data["collection_price"] = Decimal(data["collection_price"])
    return Album(**data)


class CatalogDB:
    """Async SQLite store for artists and albums fetched from iTunes.

    Artists are keyed by iTunes artist ID and albums by collection ID; albums
    are indexed by artist ID for bulk reads. Writes are upserts, nothing is
    ever deleted.
    """

    def __init__(self, db_path: Path | None = None):
        self.db_path = db_path or DEFAULT_DB_PATH
        self._conn: aiosqlite.Connection | None = None

    async def connect(self):
        """Open the database connection and create the schema if needed."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._conn = await aiosqlite.connect(self.db_path)
        self._conn.row_factory = aiosqlite.Row
        await self.create_schema()
        logger.info(f"Connected to SQLite catalog database: {self.db_path}")

    async def create_schema(self):
        """Create the artists and albums tables if they do not exist."""
        conn = self._require_conn()
        await conn.executescript(SCHEMA)
        await conn.commit()

    async def is_available(self) -> bool:
        """Check if the database connection is alive."""
        try:
            if self._conn is None:
                return False
            async with self._conn.execute("SELECT 1") as cursor:
                row = await cursor.fetchone()
                return row is not None
        except Exception:
            return False

    async def close(self):
        """Close database connection."""
        if self._conn:
            await self._conn.close()
            self._conn = None
            logger.info("Closed SQLite connection")

    def _require_conn(self) -> aiosqlite.Connection:
        if self._conn is None:
            raise PersistenceError("Catalog database not connected")
        return self._conn

    async def save_artists(self, artists: Iterable[Artist]) -> int:
        """Insert or update artists keyed by artist ID.

        Returns:
            Number of artists written

        Raises:
            PersistenceError: If the write fails
        """
        rows = [(a.artist_id, a.artist_name, a.primary_genre_name) for a in artists]
        if not rows:
            return 0

        conn = self._require_conn()
        try:
            await conn.executemany(UPSERT_ARTIST, rows)
            await conn.commit()
        except aiosqlite.Error as e:
            await conn.rollback()
            raise PersistenceError(f"Failed to save artists: {e}") from e

        logger.debug(f"Saved {len(rows)} artists")
        return len(rows)

    async def save_albums(self, albums: Iterable[Album]) -> int:
        """Insert or update albums keyed by collection ID.

        Returns:
            Number of albums written

        Raises:
            PersistenceError: If the write fails
        """
        rows = [_album_params(album) for album in albums]
        if not rows:
            return 0

        conn = self._require_conn()
        try:
            await conn.executemany(UPSERT_ALBUM, rows)
            await conn.commit()
        except aiosqlite.Error as e:
            await conn.rollback()
            raise PersistenceError(f"Failed to save albums: {e}") from e

        logger.debug(f"Saved {len(rows)} albums")
        return len(rows)

    async def get_artist(self, artist_id: int) -> Artist | None:
        """Get a stored artist by iTunes artist ID."""
        conn = self._require_conn()
        try:
            cursor = await conn.execute(
                "SELECT artist_id, artist_name, primary_genre_name FROM artists WHERE artist_id = ?",
                (artist_id,),
            )
            row = await cursor.fetchone()
        except aiosqlite.Error as e:
            raise PersistenceError(f"Failed to read artist {artist_id}: {e}") from e

        return Artist(**dict(row)) if row else None

    async def get_albums_by_artist(self, artist_id: int) -> list[Album]:
        """Get all stored albums of an artist, ordered by collection name."""
        conn = self._require_conn()
        try:
            cursor = await conn.execute(
                f"SELECT {ALBUM_COLUMNS} FROM albums WHERE artist_id = ? "
                "ORDER BY collection_name, collection_id",
                (artist_id,),
            )
            rows = await cursor.fetchall()
        except aiosqlite.Error as e:
            raise PersistenceError(f"Failed to read albums of artist {artist_id}: {e}") from e

        return [_album_from_row(row) for row in rows]
