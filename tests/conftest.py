"""Shared fixtures: in-memory row stores standing in for Supabase."""

import asyncio
import itertools
import os
from collections.abc import Sequence
from datetime import datetime, timezone
from typing import Any

import pytest

# Settings are read on import of the FastAPI app
os.environ.setdefault("SUPABASE_URL", "http://localhost:54321")
os.environ.setdefault("SUPABASE_KEY", "test-key")
os.environ.setdefault("API_ADMIN_KEY", "admin-secret")

from rim_catalog.services.row_store import OrderBy, Predicate, PredicateOp  # noqa: E402


def _matches(row: dict[str, Any], pred: Predicate) -> bool:
    if pred.op is PredicateOp.EQ:
        return row.get(pred.column) == pred.value
    if pred.op is PredicateOp.CONTAINS_TEXT:
        return str(pred.value).lower() in str(row.get(pred.column) or "").lower()
    if pred.op is PredicateOp.HAS_TAG:
        return pred.value in (row.get(pred.column) or [])
    if pred.op is PredicateOp.ANY_CONTAINS_TEXT:
        needle = str(pred.value).lower()
        return any(needle in str(row.get(col) or "").lower() for col in pred.columns)
    if pred.op is PredicateOp.IS_NULL:
        return row.get(pred.column) is None
    if pred.op is PredicateOp.NOT_NULL:
        return row.get(pred.column) is not None
    raise ValueError(pred.op)


def _sorted(rows: list[dict[str, Any]], order_by: Sequence[OrderBy]) -> list[dict[str, Any]]:
    result = list(rows)
    # Stable sorts applied from the last key to the first
    for order in reversed(order_by):
        result.sort(
            key=lambda r: (r.get(order.column) is None, str(r.get(order.column) or "")),
            reverse=not order.ascending,
        )
    return result


class FakeRowStore:
    """In-memory ``RowStore`` with the same predicate semantics as PostgREST."""

    def __init__(self, rows: list[dict[str, Any]] | None = None) -> None:
        self.rows: list[dict[str, Any]] = [dict(r) for r in rows or []]
        self.queries: list[dict[str, Any]] = []
        self.projections: list[dict[str, Any]] = []
        self.fail_with: Exception | None = None
        self._ids = itertools.count(1000)

    def _filter(self, predicates: Sequence[Predicate]) -> list[dict[str, Any]]:
        return [r for r in self.rows if all(_matches(r, p) for p in predicates)]

    async def query(self, table, predicates, order_by, offset, limit):
        self.queries.append(
            {
                "table": table,
                "predicates": list(predicates),
                "order_by": list(order_by),
                "offset": offset,
                "limit": limit,
            }
        )
        if self.fail_with is not None:
            raise self.fail_with
        rows = _sorted(self._filter(predicates), order_by)
        return [dict(r) for r in rows[offset : offset + limit]]

    async def project(self, table, columns, predicates):
        self.projections.append({"table": table, "columns": list(columns)})
        if self.fail_with is not None:
            raise self.fail_with
        return [{c: r.get(c) for c in columns} for r in self._filter(predicates)]

    async def insert(self, table, values):
        row = dict(values)
        row.setdefault("id", str(next(self._ids)))
        row.setdefault("deleted_at", None)
        row.setdefault("created_at", datetime.now(timezone.utc).isoformat())
        self.rows.append(row)
        return [dict(row)]

    async def update(self, table, values, predicates):
        updated = []
        for row in self._filter(predicates):
            row.update(values)
            updated.append(dict(row))
        return updated


class GatedRowStore(FakeRowStore):
    """Queries block until the test releases them, in any order it likes."""

    def __init__(self, rows: list[dict[str, Any]] | None = None) -> None:
        super().__init__(rows)
        self.gates: list[asyncio.Future] = []

    async def query(self, table, predicates, order_by, offset, limit):
        gate = asyncio.get_running_loop().create_future()
        self.gates.append(gate)
        payload = await gate
        self.queries.append({"predicates": list(predicates), "offset": offset, "limit": limit})
        if isinstance(payload, Exception):
            raise payload
        return payload


def make_row(id: Any, **fields: Any) -> dict[str, Any]:
    row = {
        "id": id,
        "model": "R10",
        "brand": "Momo",
        "size": "17",
        "bolt_pattern": "5x114.3",
        "finish": "Black",
        "wheel_offset": 38,
        "description": "",
        "defects": [],
        "photos": [],
        "video_url": None,
        "deleted_at": None,
        "created_at": "2026-01-01T00:00:00+00:00",
    }
    row.update(fields)
    return row


@pytest.fixture
def fake_store() -> FakeRowStore:
    return FakeRowStore()
