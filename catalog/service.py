"""Catalog query service: validate, fetch, decode, split and store."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Generic, TypeVar

from catalog.models import PersistenceStatus, StoredCatalog
from core.exceptions import (
    CatalogServiceError,
    InputValidationError,
    PersistenceError,
    UnexpectedServiceError,
)
from core.sentry import capture_exception
from core.telemetry import RequestTelemetry
from itunes.client import ITunesClient
from itunes.decoder import decode_lookup_raw, decode_search
from itunes.models import LookupResult, SearchResult
from itunes.splitter import build_lookup_result

if TYPE_CHECKING:
    from catalog.db import CatalogDB

logger = logging.getLogger(__name__)

ResultT = TypeVar("ResultT", SearchResult, LookupResult)

# Largest ID SQLite can store in an INTEGER column
MAX_ARTIST_ID = 2**63 - 1


@dataclass(frozen=True)
class QueryOutcome(Generic[ResultT]):
    """A successful query result plus what happened when storing it.

    A persistence failure never replaces the result; it is only reported
    here.
    """

    result: ResultT
    persistence: PersistenceStatus = PersistenceStatus.SKIPPED
    persistence_error: PersistenceError | None = None


def require_term(term: str | None) -> str:
    """Return the stripped search term, or raise if it is blank."""
    if term is None or not term.strip():
        raise InputValidationError("Search term must not be empty", details={"term": term})
    return term.strip()


def parse_artist_id(artist_id: str | None) -> int:
    """Parse an artist ID path parameter into a positive integer."""
    if artist_id is None or not artist_id.strip():
        raise InputValidationError("Artist ID must not be empty", details={"artist_id": artist_id})
    value = artist_id.strip()
    if not (value.isascii() and value.isdecimal()) or not value.lstrip("0"):
        raise InputValidationError(
            f"Artist ID must be a positive integer, got '{value[:40]}'",
            details={"artist_id": artist_id[:40]},
        )
    digits = value.lstrip("0")
    if len(digits) > len(str(MAX_ARTIST_ID)) or int(digits) > MAX_ARTIST_ID:
        raise InputValidationError(
            f"Artist ID must not exceed {MAX_ARTIST_ID}",
            details={"artist_id": artist_id[:40]},
        )
    return int(digits)


class CatalogService:
    """Orchestrates artist searches and album lookups against iTunes.

    Stateless apart from its collaborators, so one instance serves every
    request. When a catalog database is given, fetched records are stored
    on a best-effort basis.
    """

    def __init__(self, client: ITunesClient, db: CatalogDB | None = None):
        """Initialize the service.

        Args:
            client: iTunes API client
            db: Optional catalog database for storing fetched records
        """
        self.client = client
        self.db = db

    async def find_artists(
        self, term: str | None, telemetry: RequestTelemetry | None = None
    ) -> QueryOutcome[SearchResult]:
        """Search iTunes for artists matching ``term``.

        Raises:
            InputValidationError: If the term is blank (no request is made)
            UpstreamTransportError: If the iTunes request fails
            ResponseDecodeError: If the response cannot be decoded
            UnexpectedServiceError: For any other failure
        """
        name = require_term(term)
        telemetry = telemetry or RequestTelemetry(operation="find_artists")
        logger.info(f"Searching iTunes for artists named '{name}'")

        try:
            with telemetry.track_step("fetch"):
                telemetry.record_api_call("itunes")
                body = await self.client.search(name)
            with telemetry.track_step("decode"):
                result = decode_search(body)
        except CatalogServiceError:
            raise
        except Exception as e:
            raise UnexpectedServiceError(
                f"Artist search failed: {type(e).__name__}: {e}", details={"term": name}
            ) from e

        logger.info(f"Found {len(result.results)} artists matching '{name}'")

        with telemetry.track_step("persist"):
            persistence, error = await self._store(result)
        return QueryOutcome(result=result, persistence=persistence, persistence_error=error)

    async def find_albums(
        self, artist_id: str | None, telemetry: RequestTelemetry | None = None
    ) -> QueryOutcome[LookupResult]:
        """Look up an artist and their albums by iTunes artist ID.

        Raises:
            InputValidationError: If the ID is blank or not a positive integer
            UpstreamTransportError: If the iTunes request fails
            ResponseDecodeError: If the response cannot be decoded or split
            UnexpectedServiceError: For any other failure
        """
        parsed_id = parse_artist_id(artist_id)
        telemetry = telemetry or RequestTelemetry(operation="find_albums")
        logger.info(f"Looking up albums for artist ID {parsed_id}")

        try:
            with telemetry.track_step("fetch"):
                telemetry.record_api_call("itunes")
                body = await self.client.lookup(str(parsed_id))
            with telemetry.track_step("decode"):
                raw = decode_lookup_raw(body)
            with telemetry.track_step("split"):
                result = build_lookup_result(raw)
        except CatalogServiceError:
            raise
        except Exception as e:
            raise UnexpectedServiceError(
                f"Album lookup failed: {type(e).__name__}: {e}",
                details={"artist_id": parsed_id},
            ) from e

        if result.artist is None:
            logger.warning(f"No results found for artist ID {parsed_id}")
        else:
            logger.info(
                f"Found artist '{result.artist.artist_name}' with "
                f"{len(result.results)} albums for artist ID {parsed_id}"
            )

        with telemetry.track_step("persist"):
            persistence, error = await self._store(result)
        return QueryOutcome(result=result, persistence=persistence, persistence_error=error)

    async def stored_albums(self, artist_id: str | None) -> StoredCatalog | None:
        """Read a previously stored artist and their albums.

        Returns:
            The stored catalog, or None if the artist was never stored

        Raises:
            InputValidationError: If the ID is blank or not a positive integer
            PersistenceError: If no database is configured or the read fails
        """
        parsed_id = parse_artist_id(artist_id)
        if self.db is None:
            raise PersistenceError("Catalog persistence is not enabled")

        try:
            artist = await self.db.get_artist(parsed_id)
            if artist is None:
                return None
            albums = await self.db.get_albums_by_artist(parsed_id)
        except CatalogServiceError:
            raise
        except Exception as e:
            raise PersistenceError(
                f"Stored catalog read failed: {type(e).__name__}: {e}",
                details={"artist_id": parsed_id},
            ) from e
        return StoredCatalog(artist=artist, albums=albums, total=len(albums))

    async def _store(
        self, result: SearchResult | LookupResult
    ) -> tuple[PersistenceStatus, PersistenceError | None]:
        """Store the records of a result, reporting rather than raising failures."""
        if self.db is None:
            return PersistenceStatus.SKIPPED, None

        if isinstance(result, LookupResult):
            artists = [result.artist] if result.artist else []
            albums = result.results
        else:
            artists = result.results
            albums = []

        if not artists and not albums:
            return PersistenceStatus.SKIPPED, None

        try:
            await self.db.save_artists(artists)
            await self.db.save_albums(albums)
        except Exception as e:
            error = e if isinstance(e, PersistenceError) else PersistenceError(str(e))
            logger.error(f"Failed to store {len(artists)} artists and {len(albums)} albums: {e}")
            capture_exception(
                e, context={"artists": len(artists), "albums": len(albums)}, context_name="persistence"
            )
            return PersistenceStatus.FAILED, error

        logger.debug(f"Stored {len(artists)} artists and {len(albums)} albums")
        return PersistenceStatus.STORED, None
