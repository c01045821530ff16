"""Async driver for one catalog view.

Holds a ``QueryState``, feeds events through ``transition`` and runs the
fetches it asks for on the current event loop. All methods must be called
from that loop; the store call is the only suspension point, so epoch
comparisons need no locking.
"""

import asyncio
from collections.abc import Coroutine
from typing import Any

from rim_catalog.core.config import Settings, get_settings
from rim_catalog.core.enums import CatalogStatus, FilterField
from rim_catalog.core.logging import log_error, logger
from rim_catalog.models.catalog import CatalogView
from rim_catalog.models.wheel import InventoryRow, WheelGroup
from rim_catalog.services.aggregator import aggregate
from rim_catalog.services.catalog_query import fetch_page
from rim_catalog.services.catalog_state import (
    DispatchFetch,
    Event,
    FetchFailed,
    FetchSucceeded,
    FilterChanged,
    FiltersReset,
    Mounted,
    NextPageRequested,
    QueryState,
    RetryRequested,
    is_current,
    transition,
)
from rim_catalog.services.facets import FacetIndex
from rim_catalog.services.row_store import RowStore, SupabaseRowStore


class CatalogController:
    """Filterable, infinitely scrolling view over the inventory table."""

    def __init__(
        self,
        store: RowStore,
        table: str,
        *,
        page_size: int = 12,
        search_debounce: float = 0.4,
        facet_index: FacetIndex | None = None,
    ) -> None:
        self.store = store
        self.table = table
        self.search_debounce = search_debounce
        self.facet_index = facet_index or FacetIndex(store, table)

        self._state = QueryState(page_size=page_size)
        self._tasks: set[asyncio.Task[Any]] = set()
        self._debounce: asyncio.TimerHandle | None = None
        self._pending_search: str = ""
        self._groups_for: tuple[InventoryRow, ...] | None = None
        self._groups: list[WheelGroup] = []

    @classmethod
    def from_settings(
        cls, store: RowStore | None = None, settings: Settings | None = None
    ) -> "CatalogController":
        settings = settings or get_settings()
        if store is None:
            store = SupabaseRowStore(projection_batch_size=settings.projection_batch_size)
        return cls(
            store,
            settings.wheels_table,
            page_size=settings.page_size,
            search_debounce=settings.search_debounce,
        )

    # -------------------------------------------------------------------------
    # Read side
    # -------------------------------------------------------------------------

    @property
    def state(self) -> QueryState:
        return self._state

    @property
    def groups(self) -> list[WheelGroup]:
        # Recompute only when the buffer itself was replaced
        if self._state.rows is not self._groups_for:
            self._groups = aggregate(self._state.rows)
            self._groups_for = self._state.rows
        return self._groups

    def view(self) -> CatalogView:
        status = self._state.status
        return CatalogView(
            groups=self.groups,
            loading=status is CatalogStatus.LOADING,
            loading_more=status is CatalogStatus.LOADING_MORE,
            has_more=self._state.has_more,
            error=self._state.error,
            facets=self.facet_index.facets,
        )

    # -------------------------------------------------------------------------
    # Commands
    # -------------------------------------------------------------------------

    def start(self) -> None:
        """Load the first page and the facets."""
        self._apply(Mounted())
        self.refresh_facets()

    def refresh_facets(self) -> None:
        self._spawn(self.facet_index.refresh())

    def set_filter(self, field: FilterField | str, value: str | None) -> None:
        if not isinstance(field, FilterField):
            parsed = FilterField.from_string(field)
            if parsed is None:
                raise ValueError(f"Unknown filter field: {field}")
            field = parsed
        if field is FilterField.SEARCH:
            self._schedule_search(value or "")
            return
        self._apply(FilterChanged(field, value or ""))

    def reset_filters(self) -> None:
        self._cancel_debounce()
        self._apply(FiltersReset())

    def request_next_page(self) -> bool:
        """Ask for the next page; returns False when the request was refused."""
        return bool(self._apply(NextPageRequested()))

    def retry(self) -> bool:
        return bool(self._apply(RetryRequested()))

    async def wait_idle(self) -> None:
        """Wait until no fetch or facet refresh is outstanding."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def close(self) -> None:
        self._cancel_debounce()
        for task in list(self._tasks):
            task.cancel()

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _apply(self, event: Event) -> list[DispatchFetch]:
        self._state, effects = transition(self._state, event)
        for effect in effects:
            logger.debug(
                f"Dispatch {effect.kind.value} fetch epoch={effect.epoch} "
                f"offset={effect.offset} limit={effect.limit}"
            )
            self._spawn(self._run_fetch(effect))
        return effects

    def _spawn(self, coro: Coroutine[Any, Any, Any]) -> None:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _run_fetch(self, effect: DispatchFetch) -> None:
        event: Event
        try:
            raw = await fetch_page(
                self.store, self.table, effect.filters, effect.offset, effect.limit
            )
            rows = tuple(InventoryRow.from_row(row) for row in raw)
        except Exception as e:
            if is_current(self._state, effect.epoch):
                log_error(
                    "Catalog fetch failed",
                    e,
                    kind=effect.kind.value,
                    offset=effect.offset,
                )
            event = FetchFailed(effect.epoch, effect.kind, str(e))
        else:
            event = FetchSucceeded(effect.epoch, effect.kind, rows)

        if not is_current(self._state, effect.epoch):
            logger.debug(
                f"Discarding stale {effect.kind.value} response "
                f"epoch={effect.epoch} current={self._state.request_epoch}"
            )
            return
        self._apply(event)

    def _schedule_search(self, value: str) -> None:
        self._cancel_debounce()
        self._pending_search = value
        if self.search_debounce <= 0:
            self._commit_search()
            return
        loop = asyncio.get_running_loop()
        self._debounce = loop.call_later(self.search_debounce, self._commit_search)

    def _commit_search(self) -> None:
        self._debounce = None
        self._apply(FilterChanged(FilterField.SEARCH, self._pending_search))

    def _cancel_debounce(self) -> None:
        if self._debounce is not None:
            self._debounce.cancel()
            self._debounce = None
