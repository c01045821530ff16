"""Tests for the facet index."""

import asyncio

from rim_catalog.core.enums import FACET_COLUMNS
from rim_catalog.core.errors import RowStoreError
from rim_catalog.services.facets import FacetIndex, build_facets

from conftest import FakeRowStore, make_row


def test_build_facets_sorts_and_drops_empty_values():
    facets = build_facets(
        [
            {"model": "Tanabe", "bolt_pattern": "4x100", "finish": ""},
            {"model": "R10", "bolt_pattern": "5x114.3", "finish": "Black"},
            {"model": "R10", "bolt_pattern": None, "finish": "Black"},
            {"model": "", "bolt_pattern": "4x100", "finish": "Hyper Silver"},
        ]
    )
    assert facets.models == ["R10", "Tanabe"]
    assert facets.bolt_patterns == ["4x100", "5x114.3"]
    assert facets.finishes == ["Black", "Hyper Silver"]


def test_refresh_projects_narrow_columns_of_active_rows():
    store = FakeRowStore(
        [
            make_row(1, model="R10"),
            make_row(2, model="RS6", finish="Silver"),
            make_row(3, model="Old", deleted_at="2026-01-02T00:00:00+00:00"),
        ]
    )
    index = FacetIndex(store, "individual_wheels")
    facets = asyncio.run(index.refresh())

    assert store.projections == [{"table": "individual_wheels", "columns": FACET_COLUMNS}]
    assert facets.models == ["R10", "RS6"]
    assert facets.finishes == ["Black", "Silver"]
    assert index.facets is facets


def test_failed_refresh_keeps_last_good_facets():
    store = FakeRowStore([make_row(1, model="R10")])
    index = FacetIndex(store, "individual_wheels")
    first = asyncio.run(index.refresh())

    store.fail_with = RowStoreError("project", "individual_wheels")
    second = asyncio.run(index.refresh())

    assert second is first
    assert index.facets.models == ["R10"]


def test_facets_start_empty():
    index = FacetIndex(FakeRowStore(), "individual_wheels")
    assert index.facets.models == []


class GatedProjectionStore(FakeRowStore):
    """Projections block until the test resolves them, in any order."""

    def __init__(self) -> None:
        super().__init__()
        self.gates: list[asyncio.Future] = []

    async def project(self, table, columns, predicates):
        gate = asyncio.get_running_loop().create_future()
        self.gates.append(gate)
        return await gate


def test_older_refresh_resolving_late_does_not_replace_newer_facets():
    async def _run():
        store = GatedProjectionStore()
        index = FacetIndex(store, "individual_wheels")
        older = asyncio.create_task(index.refresh())
        newer = asyncio.create_task(index.refresh())
        await asyncio.sleep(0)
        assert len(store.gates) == 2

        store.gates[1].set_result(
            [
                {"model": "R10", "bolt_pattern": "5x114.3", "finish": "Black"},
                {"model": "RS6", "bolt_pattern": "5x112", "finish": "Silver"},
            ]
        )
        await newer
        store.gates[0].set_result(
            [{"model": "R10", "bolt_pattern": "5x114.3", "finish": "Black"}]
        )
        stale = await older
        return index, stale

    index, stale = asyncio.run(_run())
    assert index.facets.models == ["R10", "RS6"]
    assert stale is index.facets


def test_sequential_refreshes_each_commit():
    store = FakeRowStore([make_row(1, model="R10")])
    index = FacetIndex(store, "individual_wheels")
    asyncio.run(index.refresh())
    store.rows.append(make_row(2, model="Tanabe"))
    asyncio.run(index.refresh())
    assert index.facets.models == ["R10", "Tanabe"]
