"""Artist search and album lookup router."""

import logging
import time

from fastapi import APIRouter, Depends, Path, Query, Response
from posthog import Posthog

from catalog.service import CatalogService, QueryOutcome
from core.dependencies import get_catalog_service, get_posthog_client
from core.exceptions import CatalogServiceError, UnexpectedServiceError, failure_kind
from core.telemetry import RequestTelemetry
from itunes.models import LookupResult, SearchResult

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/artist", tags=["artist"])

PERSISTENCE_HEADER = "X-Catalog-Persistence"

ERROR_RESPONSES = {
    400: {"description": "Invalid input, undecodable iTunes response, or iTunes rejected the request"},
    500: {"description": "iTunes unreachable, timed out, or an unexpected error"},
}


def _finish(
    telemetry: RequestTelemetry,
    posthog_client: Posthog | None,
    properties: dict,
) -> None:
    """Send request telemetry if PostHog is configured."""
    if posthog_client:
        telemetry.send_to_posthog(posthog_client, properties)


def _apply_outcome(response: Response, outcome: QueryOutcome) -> None:
    response.headers[PERSISTENCE_HEADER] = outcome.persistence.value
    if outcome.persistence_error is not None:
        logger.warning(f"Returning result without persisting it: {outcome.persistence_error}")


@router.get(
    "",
    response_model=SearchResult,
    summary="Search artists by name",
    description="""
    Searches the iTunes Store for music artists by name and returns the
    matches in iTunes relevance order.

    Example request:
    ```
    GET /artist?term=Daft+Punk
    ```
    """,
    responses={200: {"description": "Matching artists returned"}, **ERROR_RESPONSES},
)
async def search_artists(
    response: Response,
    term: str | None = Query(None, description="Artist name to search for", examples=["Daft Punk"]),
    service: CatalogService = Depends(get_catalog_service),
    posthog_client: Posthog | None = Depends(get_posthog_client),
) -> SearchResult:
    """Search iTunes for artists with a name similar to ``term``."""
    logger.info(f"Received request to search for artists named '{term}'")
    telemetry = RequestTelemetry(operation="find_artists")
    start = time.perf_counter()
    properties: dict = {"had_term": bool(term and term.strip())}

    try:
        outcome = await service.find_artists(term, telemetry=telemetry)
    except Exception as e:
        properties["failure_kind"] = failure_kind(e).value
        if isinstance(e, CatalogServiceError):
            raise
        raise UnexpectedServiceError(f"Artist search failed: {type(e).__name__}: {e}") from e
    else:
        properties["results_count"] = len(outcome.result.results)
        properties["persistence"] = outcome.persistence.value
    finally:
        _finish(telemetry, posthog_client, properties)

    _apply_outcome(response, outcome)
    logger.info(
        f"Found {len(outcome.result.results)} artists matching '{term}' "
        f"in {(time.perf_counter() - start) * 1000:.0f}ms"
    )
    return outcome.result


@router.get(
    "/{artist_id}/albums",
    response_model=LookupResult,
    summary="Get albums by artist ID",
    description="""
    Looks up an artist by iTunes artist ID and returns the artist together
    with their albums. The artist record iTunes returns first in its result
    list is moved to the `artist` field; `results` holds only albums.
    """,
    responses={200: {"description": "Artist and albums returned"}, **ERROR_RESPONSES},
)
async def get_artist_albums(
    response: Response,
    artist_id: str = Path(..., description="iTunes artist ID", examples=["909253"]),
    service: CatalogService = Depends(get_catalog_service),
    posthog_client: Posthog | None = Depends(get_posthog_client),
) -> LookupResult:
    """Fetch an artist and their albums from iTunes."""
    logger.info(f"Received request to fetch albums for artist ID {artist_id}")
    telemetry = RequestTelemetry(operation="find_albums")
    start = time.perf_counter()
    properties: dict = {}

    try:
        outcome = await service.find_albums(artist_id, telemetry=telemetry)
    except Exception as e:
        properties["failure_kind"] = failure_kind(e).value
        if isinstance(e, CatalogServiceError):
            raise
        raise UnexpectedServiceError(f"Album lookup failed: {type(e).__name__}: {e}") from e
    else:
        properties["results_count"] = len(outcome.result.results)
        properties["had_artist"] = outcome.result.artist is not None
        properties["persistence"] = outcome.persistence.value
    finally:
        _finish(telemetry, posthog_client, properties)

    _apply_outcome(response, outcome)
    logger.info(
        f"Fetched {len(outcome.result.results)} albums for artist ID {artist_id} "
        f"in {(time.perf_counter() - start) * 1000:.0f}ms"
    )
    return outcome.result
