"""Router for artists and albums previously stored in the catalog database."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Path

from catalog.models import StoredCatalog
from catalog.service import CatalogService
from core.dependencies import get_catalog_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/catalog", tags=["catalog"])


def _require_persistence(service: CatalogService) -> CatalogService:
    """Raise 503 if the catalog database is not configured."""
    if service.db is None:
        raise HTTPException(
            status_code=503,
            detail="Catalog persistence is not enabled. Set ENABLE_PERSISTENCE=true.",
        )
    return service


@router.get(
    "/artists/{artist_id}",
    response_model=StoredCatalog,
    summary="Get a stored artist and their albums",
    responses={
        200: {"description": "Stored artist and albums returned"},
        400: {"description": "Malformed artist ID"},
        404: {"description": "Artist has not been stored yet"},
        503: {"description": "Catalog persistence not configured"},
    },
)
async def get_stored_artist(
    artist_id: str = Path(..., description="iTunes artist ID"),
    service: CatalogService = Depends(get_catalog_service),
) -> StoredCatalog:
    """Return the artist and albums stored by earlier album lookups."""
    svc = _require_persistence(service)
    stored = await svc.stored_albums(artist_id)

    if stored is None:
        raise HTTPException(
            status_code=404,
            detail=f"Artist {artist_id} has not been stored",
        )

    logger.info(f"Read {stored.total} stored albums for artist ID {artist_id}")
    return stored
