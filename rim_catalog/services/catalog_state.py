"""Catalog query state machine.

``transition(state, event)`` is pure: it returns the next state plus the
fetches to dispatch, and never performs I/O itself. ``CatalogController``
runs the effects and feeds the results back in as events.

Every dispatch advances ``request_epoch``. A fetch result is committed only
when it carries the current epoch, so a slow superseded response can never
overwrite newer data regardless of the order responses arrive in.
"""

from dataclasses import dataclass, field, replace
from typing import Union

from rim_catalog.core.enums import CatalogStatus, FetchKind, FilterField
from rim_catalog.models.catalog import CatalogFilters
from rim_catalog.models.wheel import InventoryRow


@dataclass(frozen=True)
class QueryState:
    filters: CatalogFilters = field(default_factory=CatalogFilters)
    page_size: int = 12
    page_cursor: int = 0
    has_more: bool = True
    request_epoch: int = 0
    status: CatalogStatus = CatalogStatus.IDLE
    rows: tuple[InventoryRow, ...] = ()
    error: str | None = None
    inflight: FetchKind | None = None
    failed_kind: FetchKind | None = None


# -----------------------------------------------------------------------------
# Events
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class Mounted:
    pass


@dataclass(frozen=True)
class FilterChanged:
    field: FilterField
    value: str


@dataclass(frozen=True)
class FiltersReset:
    pass


@dataclass(frozen=True)
class NextPageRequested:
    pass


@dataclass(frozen=True)
class RetryRequested:
    pass


@dataclass(frozen=True)
class FetchSucceeded:
    epoch: int
    kind: FetchKind
    rows: tuple[InventoryRow, ...]


@dataclass(frozen=True)
class FetchFailed:
    epoch: int
    kind: FetchKind
    message: str


Event = Union[
    Mounted,
    FilterChanged,
    FiltersReset,
    NextPageRequested,
    RetryRequested,
    FetchSucceeded,
    FetchFailed,
]


# -----------------------------------------------------------------------------
# Effects
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class DispatchFetch:
    epoch: int
    kind: FetchKind
    offset: int
    limit: int
    filters: CatalogFilters


Transition = tuple[QueryState, list[DispatchFetch]]


def is_current(state: QueryState, epoch: int) -> bool:
    return epoch == state.request_epoch


def merge_rows(
    existing: tuple[InventoryRow, ...], incoming: tuple[InventoryRow, ...]
) -> tuple[InventoryRow, ...]:
    """Append a page, skipping ids already in the buffer.

    Concurrent admin writes can shift the store's snapshot between pages, so
    a later page may repeat a row from an earlier one.
    """
    seen = {row.id for row in existing}
    merged = list(existing)
    for row in incoming:
        if row.id not in seen:
            seen.add(row.id)
            merged.append(row)
    return tuple(merged)


def _dispatch(state: QueryState, kind: FetchKind) -> Transition:
    epoch = state.request_epoch + 1
    if kind is FetchKind.INITIAL:
        state = replace(
            state,
            page_cursor=0,
            has_more=True,
            status=CatalogStatus.LOADING,
        )
    else:
        state = replace(state, status=CatalogStatus.LOADING_MORE)

    state = replace(
        state,
        request_epoch=epoch,
        inflight=kind,
        error=None,
        failed_kind=None,
    )
    effect = DispatchFetch(
        epoch=epoch,
        kind=kind,
        offset=state.page_cursor * state.page_size,
        limit=state.page_size,
        filters=state.filters,
    )
    return state, [effect]


def _change_filters(state: QueryState, filters: CatalogFilters) -> Transition:
    # Re-applying the same filters is a no-op, except as a retry after an error
    if filters == state.filters and state.status is not CatalogStatus.ERROR:
        return state, []
    return _dispatch(replace(state, filters=filters), FetchKind.INITIAL)


def transition(state: QueryState, event: Event) -> Transition:
    if isinstance(event, Mounted):
        if state.status is not CatalogStatus.IDLE:
            return state, []
        return _dispatch(state, FetchKind.INITIAL)

    if isinstance(event, FilterChanged):
        return _change_filters(state, state.filters.with_value(event.field, event.value))

    if isinstance(event, FiltersReset):
        return _change_filters(state, CatalogFilters())

    if isinstance(event, NextPageRequested):
        if (
            state.status is not CatalogStatus.READY
            or not state.has_more
            or state.inflight is not None
        ):
            return state, []
        return _dispatch(state, FetchKind.APPEND)

    if isinstance(event, RetryRequested):
        if state.status is not CatalogStatus.ERROR:
            return state, []
        return _dispatch(state, state.failed_kind or FetchKind.INITIAL)

    if isinstance(event, FetchSucceeded):
        if not is_current(state, event.epoch):
            return state, []
        if event.kind is FetchKind.INITIAL:
            rows = tuple(event.rows)
        else:
            rows = merge_rows(state.rows, event.rows)
        return (
            replace(
                state,
                rows=rows,
                has_more=len(event.rows) == state.page_size,
                page_cursor=state.page_cursor + (1 if event.rows else 0),
                status=CatalogStatus.READY,
                inflight=None,
                error=None,
            ),
            [],
        )

    if isinstance(event, FetchFailed):
        if not is_current(state, event.epoch):
            return state, []
        return (
            replace(
                state,
                status=CatalogStatus.ERROR,
                error=event.message,
                inflight=None,
                failed_kind=event.kind,
            ),
            [],
        )

    raise TypeError(f"Unknown catalog event: {event!r}")
