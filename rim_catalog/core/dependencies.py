"""FastAPI dependency injection for services."""

import time
from typing import Annotated, Any

from fastapi import Depends, Header, HTTPException, Request

from rim_catalog.core.config import Settings, get_settings
from rim_catalog.core.logging import log_db_query, log_external_call, logger
from rim_catalog.services.facets import FacetIndex
from rim_catalog.services.inventory import InventoryService
from rim_catalog.services.row_store import RowStore, SupabaseRowStore

# -----------------------------------------------------------------------------
# Row store
# -----------------------------------------------------------------------------

_row_store: SupabaseRowStore | None = None
_facet_index: FacetIndex | None = None


def get_row_store(
    settings: Annotated[Settings, Depends(get_settings)],
) -> RowStore:
    """Dependency for the Supabase-backed row store."""
    global _row_store
    if _row_store is None:
        _row_store = SupabaseRowStore(
            projection_batch_size=settings.projection_batch_size
        )
    return _row_store


# -----------------------------------------------------------------------------
# Catalog services
# -----------------------------------------------------------------------------


def get_facet_index(
    store: Annotated[RowStore, Depends(get_row_store)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> FacetIndex:
    """Process-wide facet index; refreshed on startup and after admin writes."""
    global _facet_index
    if _facet_index is None:
        _facet_index = FacetIndex(store, settings.wheels_table)
    return _facet_index


def get_inventory_service(
    store: Annotated[RowStore, Depends(get_row_store)],
    facet_index: Annotated[FacetIndex, Depends(get_facet_index)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> InventoryService:
    return InventoryService(store, settings.wheels_table, facet_index)


# -----------------------------------------------------------------------------
# Admin Authentication
# -----------------------------------------------------------------------------


async def verify_admin_key(
    request: Request,
    x_admin_key: Annotated[str | None, Header()] = None,
    settings: Settings = Depends(get_settings),
) -> bool:
    """Verify admin API key for protected endpoints."""
    if not settings.api_admin_key:
        logger.warning("API_ADMIN_KEY not set - admin endpoints unprotected")
        raise HTTPException(
            status_code=503,
            detail="Admin endpoints not configured. Set API_ADMIN_KEY environment variable.",
        )

    if not x_admin_key:
        raise HTTPException(
            status_code=401,
            detail="Missing X-Admin-Key header",
        )

    if x_admin_key != settings.api_admin_key:
        logger.warning(f"Invalid admin key attempt from {request.client}")
        raise HTTPException(
            status_code=403,
            detail="Invalid admin key",
        )

    return True


# -----------------------------------------------------------------------------
# Health Check Helpers
# -----------------------------------------------------------------------------


async def check_row_store_health(store: RowStore, table: str) -> dict[str, Any]:
    """Check Supabase connectivity with a one-row query."""
    start = time.time()
    try:
        await store.query(table, [], [], 0, 1)
        duration_ms = (time.time() - start) * 1000
        log_db_query("health_check", table, duration_ms)
        return {
            "status": "healthy",
            "latency_ms": round(duration_ms, 2),
        }
    except Exception as e:
        duration_ms = (time.time() - start) * 1000
        log_external_call("supabase", "health_check", False, duration_ms)
        return {
            "status": "unhealthy",
            "error": str(e),
            "latency_ms": round(duration_ms, 2),
        }
