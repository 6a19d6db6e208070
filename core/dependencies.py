"""FastAPI dependency injection providers."""

import asyncio
import logging

from fastapi import Depends
from posthog import Posthog

from catalog.db import CatalogDB
from catalog.service import CatalogService
from config.settings import Settings, get_settings
from core.exceptions import ServiceInitializationError
from core.sentry import capture_exception
from itunes.client import ITunesClient

logger = logging.getLogger(__name__)

# Module-level instances for lifecycle management
_catalog_db: CatalogDB | None = None
_itunes_client: ITunesClient | None = None
_posthog_client: Posthog | None = None

# Held while the first request opens the catalog database
_catalog_db_lock = asyncio.Lock()


async def get_catalog_db(settings: Settings = Depends(get_settings)) -> CatalogDB | None:
    """Get catalog database instance.

    A database that cannot be opened is logged and reported to Sentry, and
    the request proceeds without storing anything. The next request tries
    to connect again.

    Args:
        settings: Application settings

    Returns:
        Optional[CatalogDB]: Connected catalog database, None if persistence is
        disabled or the database could not be opened
    """
    global _catalog_db

    if not settings.enable_persistence:
        logger.debug("ENABLE_PERSISTENCE is false - catalog database disabled")
        return None

    if _catalog_db is None:
        async with _catalog_db_lock:
            if _catalog_db is None:
                db_path = settings.resolved_catalog_db_path
                db = CatalogDB(db_path=db_path)
                try:
                    await db.connect()
                except Exception as e:
                    error = ServiceInitializationError(f"Database initialization failed: {e}")
                    logger.error(f"Failed to initialize catalog database at {db_path}: {e}")
                    capture_exception(
                        error, context={"db_path": str(db_path)}, context_name="persistence"
                    )
                    return None
                _catalog_db = db
                logger.info(f"Catalog database connected: {db_path}")

    return _catalog_db


async def close_catalog_db() -> None:
    """Close catalog database connection."""
    global _catalog_db
    if _catalog_db:
        await _catalog_db.close()
        _catalog_db = None


def get_itunes_client(settings: Settings = Depends(get_settings)) -> ITunesClient:
    """Get the shared iTunes API client.

    Args:
        settings: Application settings

    Returns:
        ITunesClient: Client configured with the search and lookup URL templates
    """
    global _itunes_client

    if _itunes_client is None:
        _itunes_client = ITunesClient(
            search_url=settings.itunes_search_url,
            lookup_url=settings.itunes_lookup_url,
            timeout=settings.itunes_timeout,
        )
        logger.info(f"iTunes client initialized (timeout: {settings.itunes_timeout}s)")

    return _itunes_client


async def close_itunes_client() -> None:
    """Close the iTunes client and its connection pool."""
    global _itunes_client
    if _itunes_client:
        await _itunes_client.close()
        _itunes_client = None


def get_catalog_service(
    client: ITunesClient = Depends(get_itunes_client),
    db: CatalogDB | None = Depends(get_catalog_db),
) -> CatalogService:
    """Get a catalog service wired to the shared client and database."""
    return CatalogService(client, db=db)


def get_posthog_client(settings: Settings = Depends(get_settings)) -> Posthog | None:
    """Get PostHog client instance.

    Args:
        settings: Application settings

    Returns:
        Optional[Posthog]: PostHog client if configured and enabled, None otherwise
    """
    global _posthog_client

    if not settings.enable_telemetry:
        logger.debug("Telemetry disabled")
        return None

    if not settings.posthog_api_key:
        logger.debug("POSTHOG_API_KEY not set - telemetry disabled")
        return None

    if _posthog_client is None:
        _posthog_client = Posthog(
            project_api_key=settings.posthog_api_key,
            host=settings.posthog_host,
        )
        logger.info(f"PostHog client initialized (host: {settings.posthog_host})")

    return _posthog_client


def flush_posthog() -> None:
    """Flush any buffered PostHog events."""
    if _posthog_client:
        _posthog_client.flush()


def shutdown_posthog() -> None:
    """Shutdown PostHog client gracefully."""
    global _posthog_client
    if _posthog_client:
        _posthog_client.shutdown()
        _posthog_client = None
        logger.info("PostHog client shutdown")
