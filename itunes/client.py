"""HTTP client for the iTunes Search API."""

import asyncio
import logging
from urllib.parse import quote_plus

import httpx

from core.exceptions import UpstreamTimeoutError, UpstreamTransportError
from core.sentry import add_itunes_breadcrumb

logger = logging.getLogger(__name__)

USER_AGENT = "ITunesCatalogProxy/1.0"
ERROR_BODY_PREVIEW = 200


def build_url(template: str, term: str) -> str:
    """Substitute a URL-encoded term into a ``%s`` URL template.

    Raises:
        UpstreamTransportError: If the template does not take exactly one substitution
    """
    try:
        return template % quote_plus(term)
    except (TypeError, ValueError) as e:
        raise UpstreamTransportError(
            f"Malformed iTunes URL template {template!r}: {e}",
            details={"template": template},
        ) from e


class ITunesClient:
    """Issues search and lookup requests against the iTunes Search API.

    Returns raw response bodies. Every failure is raised as an
    ``UpstreamTransportError`` (or ``UpstreamTimeoutError``); nothing is
    retried here.
    """

    def __init__(self, search_url: str, lookup_url: str, timeout: float = 10.0):
        """Initialize the client.

        Args:
            search_url: Artist search URL template with one ``%s`` placeholder
            lookup_url: Album lookup URL template with one ``%s`` placeholder
            timeout: Deadline in seconds for a whole request, body included
        """
        self.search_url = search_url
        self.lookup_url = lookup_url
        self.timeout = timeout
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                headers={"User-Agent": USER_AGENT, "Accept": "application/json"},
                timeout=self.timeout,
            )
        return self._client

    async def close(self):
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def check_api(self) -> bool:
        """Check iTunes API connectivity with a minimal search."""
        try:
            client = await self._get_client()
            resp = await client.get(build_url(self.search_url, "test"))
            return resp.is_success
        except Exception:
            return False

    async def search(self, term: str) -> str:
        """Search iTunes for artists whose name matches ``term``.

        Returns:
            The raw JSON response body
        """
        return await self._get(self.search_url, term, operation="search")

    async def lookup(self, artist_id: str) -> str:
        """Look up an artist and their albums by iTunes artist ID.

        Returns:
            The raw JSON response body
        """
        return await self._get(self.lookup_url, artist_id, operation="lookup")

    async def _get(self, template: str, term: str, operation: str) -> str:
        url = build_url(template, term)
        add_itunes_breadcrumb(operation, {"term": term})
        logger.debug(f"iTunes {operation} request: {url}")

        client = await self._get_client()
        try:
            async with asyncio.timeout(self.timeout):
                response = await client.get(url)
        except (httpx.TimeoutException, TimeoutError) as e:
            logger.error(f"iTunes {operation} for '{term}' timed out after {self.timeout}s")
            raise UpstreamTimeoutError(
                f"iTunes {operation} timed out after {self.timeout}s",
                details={"operation": operation, "term": term},
            ) from e
        except httpx.InvalidURL as e:
            logger.error(f"iTunes {operation} for '{term}' has a malformed URL: {e}")
            raise UpstreamTransportError(
                f"Malformed iTunes URL: {e}",
                details={"operation": operation, "term": term},
            ) from e
        except httpx.HTTPError as e:
            logger.error(f"iTunes {operation} for '{term}' failed: {type(e).__name__}: {e}")
            raise UpstreamTransportError(
                f"iTunes {operation} request failed: {e}",
                details={"operation": operation, "term": term},
            ) from e

        if not response.is_success:
            preview = response.text[:ERROR_BODY_PREVIEW]
            logger.error(
                f"iTunes {operation} for '{term}' returned HTTP {response.status_code}: {preview}"
            )
            raise UpstreamTransportError(
                f"iTunes returned HTTP {response.status_code} {response.reason_phrase}",
                status_code=response.status_code,
                details={"operation": operation, "term": term, "body": preview},
            )

        logger.debug(f"iTunes {operation} for '{term}' returned {len(response.content)} bytes")
        return response.text
