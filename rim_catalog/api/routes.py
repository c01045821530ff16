"""FastAPI route definitions for the rim catalog API."""

from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from rim_catalog.core.config import Settings, get_settings
from rim_catalog.core.dependencies import (
    get_facet_index,
    get_inventory_service,
    get_row_store,
    verify_admin_key,
)
from rim_catalog.core.enums import DEFECT_TYPES, SIZES
from rim_catalog.core.errors import RowStoreError, WheelNotFoundError
from rim_catalog.core.logging import log_error
from rim_catalog.models.catalog import CatalogFilters
from rim_catalog.models.wheel import InventoryRow, WheelGroup
from rim_catalog.services.aggregator import aggregate
from rim_catalog.services.catalog_query import fetch_page
from rim_catalog.services.facets import FacetIndex
from rim_catalog.services.inventory import InventoryService, WheelInput
from rim_catalog.services.reference_catalog import (
    load_reference_specs,
    reference_models,
)
from rim_catalog.services.row_store import RowStore
from rim_catalog.utils.finish_resolver import resolve_finish_image

limiter = Limiter(key_func=get_remote_address)

router = APIRouter()
admin_router = APIRouter(prefix="/admin", dependencies=[Depends(verify_admin_key)])


def _group_payload(group: WheelGroup) -> dict[str, Any]:
    payload = group.model_dump(mode="json")
    payload["finish_image"] = resolve_finish_image(group.finish)
    return payload


def _store_unavailable(message: str, exc: Exception) -> HTTPException:
    log_error(message, exc)
    return HTTPException(status_code=502, detail=message)


# ---------------------------------------------------------------------------
# Public catalog
# ---------------------------------------------------------------------------


@router.get("/wheels")
@limiter.limit(lambda: get_settings().rate_limit)
async def list_wheels(
    request: Request,
    store: Annotated[RowStore, Depends(get_row_store)],
    settings: Annotated[Settings, Depends(get_settings)],
    search: str = "",
    model: str = "",
    size: str = "",
    bolt_pattern: str = "",
    finish: str = "",
    defect_type: str = "",
    page: int = Query(default=0, ge=0),
):
    """One page of the active catalog, grouped.

    Groups only cover the rows of this page; a client scrolling through
    pages re-aggregates its accumulated rows.
    """
    filters = CatalogFilters(
        search=search,
        model=model,
        size=size,
        bolt_pattern=bolt_pattern,
        finish=finish,
        defect_type=defect_type,
    )
    try:
        raw = await fetch_page(
            store,
            settings.wheels_table,
            filters,
            page * settings.page_size,
            settings.page_size,
        )
    except RowStoreError as e:
        raise _store_unavailable("Failed to load catalog", e)

    groups = aggregate(InventoryRow.from_row(row) for row in raw)
    return {
        "groups": [_group_payload(g) for g in groups],
        "page": page,
        "has_more": len(raw) == settings.page_size,
    }


@router.get("/wheels/{wheel_id}")
async def get_wheel_group(
    wheel_id: str,
    inventory: Annotated[InventoryService, Depends(get_inventory_service)],
):
    """Detail view: the group the wheel belongs to, with every active unit."""
    try:
        group = await inventory.get_group(wheel_id)
    except WheelNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except RowStoreError as e:
        raise _store_unavailable("Failed to load wheel", e)
    return _group_payload(group)


@router.get("/facets")
async def get_facets(
    facet_index: Annotated[FacetIndex, Depends(get_facet_index)],
):
    """Distinct models, bolt patterns and finishes for the filter dropdowns."""
    return facet_index.facets.model_dump()


@router.get("/defect-types")
async def get_defect_types():
    return {"defect_types": DEFECT_TYPES}


@router.get("/sizes")
async def get_sizes():
    return {"sizes": SIZES}


# ---------------------------------------------------------------------------
# Admin
# ---------------------------------------------------------------------------


@admin_router.get("/wheels")
async def admin_list_wheels(
    inventory: Annotated[InventoryService, Depends(get_inventory_service)],
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=500),
):
    try:
        wheels = await inventory.list_recent(offset, limit)
    except RowStoreError as e:
        raise _store_unavailable("Failed to list wheels", e)
    return {"wheels": [w.model_dump(mode="json") for w in wheels]}


@admin_router.get("/trash")
async def admin_list_trash(
    inventory: Annotated[InventoryService, Depends(get_inventory_service)],
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=500),
):
    try:
        wheels = await inventory.list_trash(offset, limit)
    except RowStoreError as e:
        raise _store_unavailable("Failed to list trash", e)
    return {"wheels": [w.model_dump(mode="json") for w in wheels]}


@admin_router.post("/wheels", status_code=201)
async def admin_create_wheel(
    data: WheelInput,
    inventory: Annotated[InventoryService, Depends(get_inventory_service)],
):
    try:
        wheel = await inventory.create(data)
    except RowStoreError as e:
        raise _store_unavailable("Failed to create wheel", e)
    return wheel.model_dump(mode="json")


@admin_router.put("/wheels/{wheel_id}")
async def admin_update_wheel(
    wheel_id: str,
    data: WheelInput,
    inventory: Annotated[InventoryService, Depends(get_inventory_service)],
):
    try:
        wheel = await inventory.update(wheel_id, data)
    except WheelNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except RowStoreError as e:
        raise _store_unavailable("Failed to update wheel", e)
    return wheel.model_dump(mode="json")


@admin_router.delete("/wheels/{wheel_id}")
async def admin_delete_wheel(
    wheel_id: str,
    inventory: Annotated[InventoryService, Depends(get_inventory_service)],
):
    """Soft delete: the row moves to the trash view."""
    try:
        wheel = await inventory.soft_delete(wheel_id)
    except WheelNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except RowStoreError as e:
        raise _store_unavailable("Failed to delete wheel", e)
    return wheel.model_dump(mode="json")


@admin_router.post("/wheels/{wheel_id}/restore")
async def admin_restore_wheel(
    wheel_id: str,
    inventory: Annotated[InventoryService, Depends(get_inventory_service)],
):
    try:
        wheel = await inventory.restore(wheel_id)
    except WheelNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except RowStoreError as e:
        raise _store_unavailable("Failed to restore wheel", e)
    return wheel.model_dump(mode="json")


@admin_router.get("/reference-specs")
async def admin_reference_specs(
    settings: Annotated[Settings, Depends(get_settings)],
):
    """Known model/size/bolt-pattern combinations for the add-wheel form."""
    try:
        specs = load_reference_specs(settings.reference_csv_path)
    except FileNotFoundError:
        raise HTTPException(status_code=404, detail="Reference sheet not found")
    return {
        "models": reference_models(specs),
        "specs": [spec.model_dump() for spec in specs],
    }


router.include_router(admin_router)
