"""Translate storefront filters into row store queries."""

import re
from typing import Any

from rim_catalog.core.enums import SIZE_LABEL_PREFIX, CatalogMode
from rim_catalog.models.catalog import CatalogFilters
from rim_catalog.services.row_store import OrderBy, Predicate, RowStore

# model first for display, id as tiebreak so offset paging never skips or repeats
CATALOG_ORDER: tuple[OrderBy, ...] = (OrderBy("model"), OrderBy("id"))

# Admin listing: newest first
RECENT_ORDER: tuple[OrderBy, ...] = (
    OrderBy("created_at", ascending=False),
    OrderBy("id"),
)

SEARCH_COLUMNS: tuple[str, ...] = ("model", "description")

# Logic tree delimiters, plus `*` which PostgREST always reads as a wildcard
_RESERVED_SEARCH_CHARS = re.compile(r"[,()*]")


def normalize_size(size: str) -> str:
    """Strip the "Aro " chip label so "Aro 17" matches sizes like "17x7"."""
    size = size.strip()
    if size.lower().startswith(SIZE_LABEL_PREFIX.lower()):
        size = size[len(SIZE_LABEL_PREFIX) :]
    return size.strip()


def sanitize_search(text: str) -> str:
    return _RESERVED_SEARCH_CHARS.sub(" ", text).strip()


def soft_delete_predicate(mode: CatalogMode) -> Predicate:
    if mode is CatalogMode.TRASH:
        return Predicate.not_null("deleted_at")
    return Predicate.is_null("deleted_at")


def build_predicates(
    filters: CatalogFilters, mode: CatalogMode = CatalogMode.ACTIVE
) -> list[Predicate]:
    """One predicate per non-empty filter field, all ANDed together."""
    predicates = [soft_delete_predicate(mode)]

    if filters.model:
        predicates.append(Predicate.eq("model", filters.model))
    if filters.bolt_pattern:
        predicates.append(Predicate.eq("bolt_pattern", filters.bolt_pattern))
    if filters.finish:
        predicates.append(Predicate.eq("finish", filters.finish))

    size = normalize_size(filters.size)
    if size:
        predicates.append(Predicate.contains_text("size", size))

    if filters.defect_type:
        predicates.append(Predicate.has_tag("defects", filters.defect_type))

    search = sanitize_search(filters.search)
    if search:
        predicates.append(Predicate.any_contains_text(SEARCH_COLUMNS, search))

    return predicates


async def fetch_page(
    store: RowStore,
    table: str,
    filters: CatalogFilters,
    offset: int,
    limit: int,
    mode: CatalogMode = CatalogMode.ACTIVE,
) -> list[dict[str, Any]]:
    """Fetch one window of the catalog in its deterministic order."""
    return await store.query(
        table,
        build_predicates(filters, mode),
        CATALOG_ORDER,
        offset,
        limit,
    )
