"""Main application entry point for the iTunes Catalog Proxy service."""

import logging
from contextlib import asynccontextmanager
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from config.settings import get_settings
from core.dependencies import (
    close_catalog_db,
    close_itunes_client,
    flush_posthog,
    shutdown_posthog,
)
from core.exceptions import CatalogServiceError, failure_kind, status_for
from core.logging import setup_logging
from core.sentry import capture_exception, init_sentry
from routers.artist import router as artist_router
from routers.catalog import router as catalog_router
from routers.health import router as health_router

load_dotenv()

settings = get_settings()

init_sentry(
    dsn=settings.sentry_dsn,
    environment="production" if settings.log_level != "DEBUG" else "development",
    release=settings.app_version,
)

log_file = None
if settings.log_level != "DEBUG":
    log_dir = Path("/app/logs") if Path("/app/logs").exists() else Path("logs")
    log_file = log_dir / "itunes-catalog-proxy.log"
setup_logging(level=settings.log_level, log_file=log_file)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifespan with proper startup and shutdown."""
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")
    logger.info(f"Log level: {settings.log_level}")
    logger.info(
        f"Catalog persistence: "
        f"{settings.resolved_catalog_db_path if settings.enable_persistence else 'disabled'}"
    )

    yield

    logger.info("Shutting down application")
    shutdown_posthog()
    await close_itunes_client()
    await close_catalog_db()
    logger.info("All services shut down")


app = FastAPI(
    title=settings.app_name,
    description="Artist search and album lookup proxy for the iTunes Search API",
    version=settings.app_version,
    lifespan=lifespan,
)


@app.middleware("http")
async def posthog_flush_middleware(request: Request, call_next):
    """Flush PostHog events after each request to prevent data loss."""
    response = await call_next(request)
    flush_posthog()
    return response


@app.exception_handler(CatalogServiceError)
async def catalog_error_handler(request: Request, exc: CatalogServiceError) -> JSONResponse:
    """Translate a catalog failure into its HTTP status and a JSON error body."""
    status_code = status_for(exc)
    kind = failure_kind(exc)

    if status_code >= 500:
        logger.error(
            f"{request.method} {request.url.path} failed ({kind}): {exc.message}",
            exc_info=exc,
        )
        capture_exception(exc, context={"path": request.url.path, "kind": kind.value, **exc.details})
    else:
        logger.warning(f"{request.method} {request.url.path} rejected ({kind}): {exc.message}")

    return JSONResponse(
        status_code=status_code,
        content={"detail": exc.message, "kind": kind.value},
    )


app.include_router(health_router, prefix="", tags=["health"])
app.include_router(artist_router, tags=["artist"])
app.include_router(catalog_router, tags=["catalog"])

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )
