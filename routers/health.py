"""Health check router with real dependency connectivity checks."""

import asyncio
import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from catalog.db import CatalogDB
from config.settings import Settings, get_settings
from core.dependencies import get_catalog_db, get_itunes_client
from itunes.client import ITunesClient

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])

CHECK_TIMEOUT = 3.0
CORE_SERVICES = {"itunes_api"}


async def _check_database(db: CatalogDB | None) -> str:
    """Ping the SQLite catalog database."""
    if db is None:
        return "unavailable"
    return "ok" if await db.is_available() else "error"


async def _check_itunes_api(client: ITunesClient) -> str:
    """Ping the iTunes Search API via the shared client."""
    return "ok" if await client.check_api() else "error"


async def _run_check(coro) -> str:
    """Run a single health check with a timeout."""
    try:
        return await asyncio.wait_for(coro, timeout=CHECK_TIMEOUT)
    except TimeoutError:
        return "timeout"


@router.get(
    "/health",
    summary="Health check",
    responses={
        200: {"description": "Service is healthy or degraded"},
        503: {"description": "Service is unhealthy (iTunes API unreachable)"},
    },
)
async def health_check(
    settings: Settings = Depends(get_settings),
    db: CatalogDB | None = Depends(get_catalog_db),
    client: ITunesClient = Depends(get_itunes_client),
):
    """Health check with real connectivity probes for every dependency."""
    results = await asyncio.gather(
        _run_check(_check_database(db)),
        _run_check(_check_itunes_api(client)),
    )

    services = {
        "database": results[0],
        "itunes_api": results[1],
    }

    core_ok = all(services[s] == "ok" for s in CORE_SERVICES)
    all_configured_ok = all(v in ("ok", "unavailable") for v in services.values())

    if core_ok and all_configured_ok:
        status = "healthy"
    elif core_ok:
        status = "degraded"
    else:
        status = "unhealthy"
        logger.warning(f"Health check unhealthy: {services}")

    body = {
        "status": status,
        "version": settings.app_version,
        "services": services,
    }

    status_code = 200 if status in ("healthy", "degraded") else 503
    return JSONResponse(content=body, status_code=status_code)
