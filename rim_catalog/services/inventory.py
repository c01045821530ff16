"""Inventory operations: the wheel detail lookup plus the admin side
(create, edit, soft delete, restore).

Every successful mutation refreshes the facet index, since it may add or
remove a distinct model, bolt pattern or finish.
"""

from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from rim_catalog.core.enums import GROUP_COLUMNS, MAX_PHOTOS, CatalogMode
from rim_catalog.core.errors import RowStoreError, WheelNotFoundError
from rim_catalog.core.logging import logger
from rim_catalog.models.catalog import CatalogFilters
from rim_catalog.models.wheel import InventoryRow, WheelGroup
from rim_catalog.services.aggregator import aggregate
from rim_catalog.services.catalog_query import (
    CATALOG_ORDER,
    RECENT_ORDER,
    build_predicates,
    soft_delete_predicate,
)
from rim_catalog.services.facets import FacetIndex
from rim_catalog.services.row_store import Predicate, RowStore
from rim_catalog.utils.converters import unique_in_order


class WheelInput(BaseModel):
    """Payload of the admin add/edit form."""

    model_config = ConfigDict(str_strip_whitespace=True)

    model: str = Field(..., min_length=1)
    brand: str = ""
    size: str = Field(..., min_length=1)
    bolt_pattern: str = Field(..., min_length=1)
    finish: str = ""
    wheel_offset: Optional[int] = None
    description: str = ""
    defects: list[str] = []
    photos: list[str] = []
    video_url: Optional[str] = None

    @field_validator("defects")
    @classmethod
    def _dedupe_defects(cls, v: list[str]) -> list[str]:
        return unique_in_order([d.strip() for d in v if d and d.strip()])

    @field_validator("photos")
    @classmethod
    def _drop_blank_photos(cls, v: list[str]) -> list[str]:
        photos = [p.strip() for p in v if p and p.strip()]
        if len(photos) > MAX_PHOTOS:
            raise ValueError(f"At most {MAX_PHOTOS} photos per wheel")
        return photos

    @field_validator("video_url")
    @classmethod
    def _blank_video(cls, v: Optional[str]) -> Optional[str]:
        return v or None

    def to_record(self) -> dict[str, Any]:
        return self.model_dump()


# Units of one group are read in windows of this size
GROUP_WINDOW = 100


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class InventoryService:
    def __init__(
        self,
        store: RowStore,
        table: str,
        facet_index: FacetIndex | None = None,
    ) -> None:
        self.store = store
        self.table = table
        self.facet_index = facet_index

    async def list_recent(self, offset: int = 0, limit: int = 100) -> list[InventoryRow]:
        """Active rows, newest first."""
        return await self._list(CatalogMode.ACTIVE, offset, limit)

    async def list_trash(self, offset: int = 0, limit: int = 100) -> list[InventoryRow]:
        """Soft-deleted rows, newest first."""
        return await self._list(CatalogMode.TRASH, offset, limit)

    async def get_group(self, wheel_id: str) -> WheelGroup:
        """The sellable group an active wheel belongs to, with every active unit.

        Raises ``WheelNotFoundError`` when the id is unknown or soft-deleted.
        """
        active = soft_delete_predicate(CatalogMode.ACTIVE)
        found = await self.store.query(
            self.table, [Predicate.eq("id", wheel_id), active], CATALOG_ORDER, 0, 1
        )
        if not found:
            raise WheelNotFoundError(wheel_id)

        # Match NULL key columns as NULL, not as the empty string
        predicates = [active]
        for column in GROUP_COLUMNS:
            value = found[0].get(column)
            if value is None:
                predicates.append(Predicate.is_null(column))
            else:
                predicates.append(Predicate.eq(column, value))

        rows: list[dict[str, Any]] = []
        while True:
            window = await self.store.query(
                self.table, predicates, CATALOG_ORDER, len(rows), GROUP_WINDOW
            )
            rows.extend(window)
            if len(window) < GROUP_WINDOW:
                break

        groups = aggregate(InventoryRow.from_row(row) for row in rows)
        if not groups:
            # Deleted between the two reads
            raise WheelNotFoundError(wheel_id)
        return groups[0]

    async def create(self, data: WheelInput) -> InventoryRow:
        rows = await self.store.insert(self.table, data.to_record())
        if not rows:
            raise RowStoreError("insert", self.table)
        wheel = InventoryRow.from_row(rows[0])
        logger.info(f"Created wheel id={wheel.id} model={wheel.model}")
        await self._after_mutation()
        return wheel

    async def update(self, wheel_id: str, data: WheelInput) -> InventoryRow:
        wheel = await self._update_one(
            wheel_id, data.to_record(), soft_delete_predicate(CatalogMode.ACTIVE)
        )
        logger.info(f"Updated wheel id={wheel_id}")
        return wheel

    async def soft_delete(self, wheel_id: str) -> InventoryRow:
        wheel = await self._update_one(
            wheel_id, {"deleted_at": _now()}, soft_delete_predicate(CatalogMode.ACTIVE)
        )
        logger.info(f"Soft-deleted wheel id={wheel_id}")
        return wheel

    async def restore(self, wheel_id: str) -> InventoryRow:
        wheel = await self._update_one(
            wheel_id, {"deleted_at": None}, soft_delete_predicate(CatalogMode.TRASH)
        )
        logger.info(f"Restored wheel id={wheel_id}")
        return wheel

    async def _list(self, mode: CatalogMode, offset: int, limit: int) -> list[InventoryRow]:
        rows = await self.store.query(
            self.table,
            build_predicates(CatalogFilters(), mode),
            RECENT_ORDER,
            offset,
            limit,
        )
        return [InventoryRow.from_row(row) for row in rows]

    async def _update_one(
        self, wheel_id: str, values: dict[str, Any], state_predicate: Predicate
    ) -> InventoryRow:
        rows = await self.store.update(
            self.table,
            values,
            [Predicate.eq("id", wheel_id), state_predicate],
        )
        if not rows:
            raise WheelNotFoundError(wheel_id)
        await self._after_mutation()
        return InventoryRow.from_row(rows[0])

    async def _after_mutation(self) -> None:
        if self.facet_index is not None:
            await self.facet_index.refresh()
