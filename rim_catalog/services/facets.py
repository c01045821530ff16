"""Distinct filter values over the whole active catalog."""

from collections.abc import Iterable
from typing import Any

from rim_catalog.core.enums import FACET_COLUMNS, CatalogMode
from rim_catalog.core.logging import log_error, logger
from rim_catalog.models.catalog import Facets
from rim_catalog.services.catalog_query import soft_delete_predicate
from rim_catalog.services.row_store import RowStore


def _distinct(rows: Iterable[dict[str, Any]], column: str) -> list[str]:
    values = {str(row[column]) for row in rows if row.get(column)}
    return sorted(values)


def build_facets(rows: list[dict[str, Any]]) -> Facets:
    return Facets(
        models=_distinct(rows, "model"),
        bolt_patterns=_distinct(rows, "bolt_pattern"),
        finishes=_distinct(rows, "finish"),
    )


class FacetIndex:
    """Facet values for the filter dropdowns.

    Runs its own narrow projection, independent of the visible page, so the
    dropdowns list every value in the catalog. A failed refresh keeps the
    last good facets.

    Refreshes may overlap (startup and admin writes). Each one takes a
    generation number and commits only if it is still the latest, so an
    older projection resolving late never replaces newer facets.
    """

    def __init__(self, store: RowStore, table: str) -> None:
        self.store = store
        self.table = table
        self._facets = Facets()
        self._generation = 0

    @property
    def facets(self) -> Facets:
        return self._facets

    async def refresh(self) -> Facets:
        self._generation += 1
        generation = self._generation
        try:
            rows = await self.store.project(
                self.table,
                FACET_COLUMNS,
                [soft_delete_predicate(CatalogMode.ACTIVE)],
            )
        except Exception as e:
            log_error("Facet refresh failed, keeping previous facets", e)
            return self._facets

        if generation != self._generation:
            logger.debug(
                f"Discarding superseded facet refresh generation={generation} "
                f"current={self._generation}"
            )
            return self._facets

        self._facets = build_facets(rows)
        logger.debug(
            f"Facets refreshed models={len(self._facets.models)} "
            f"bolt_patterns={len(self._facets.bolt_patterns)} "
            f"finishes={len(self._facets.finishes)}"
        )
        return self._facets
