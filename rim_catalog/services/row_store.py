"""Row store access for the inventory table.

The catalog engine only talks to the store through the ``RowStore``
protocol: predicate lists in, plain row dicts out. ``SupabaseRowStore`` is
the production implementation; it runs the synchronous Supabase client in a
worker thread so the event loop is never blocked.
"""

import asyncio
import re
import threading
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol

from supabase import Client, create_client

from rim_catalog.core.config import get_settings
from rim_catalog.core.errors import RowStoreError
from rim_catalog.core.logging import log_db_query, log_error

# One lazily created client per process, shared by every store instance
_supabase: Client | None = None
_client_lock = threading.Lock()


def get_supabase_client() -> Client:
    """Get or create the shared Supabase client (thread-safe)."""
    global _supabase
    if _supabase is None:
        with _client_lock:
            if _supabase is None:
                settings = get_settings()
                _supabase = create_client(settings.supabase_url, settings.supabase_key)
    return _supabase


class PredicateOp(str, Enum):
    EQ = "eq"
    CONTAINS_TEXT = "contains_text"  # case-insensitive substring
    HAS_TAG = "has_tag"  # array column contains the value
    ANY_CONTAINS_TEXT = "any_contains_text"  # substring over any of the columns
    IS_NULL = "is_null"
    NOT_NULL = "not_null"


@dataclass(frozen=True)
class Predicate:
    op: PredicateOp
    columns: tuple[str, ...]
    value: Any = None

    @property
    def column(self) -> str:
        return self.columns[0]

    @classmethod
    def eq(cls, column: str, value: Any) -> "Predicate":
        return cls(PredicateOp.EQ, (column,), value)

    @classmethod
    def contains_text(cls, column: str, text: str) -> "Predicate":
        return cls(PredicateOp.CONTAINS_TEXT, (column,), text)

    @classmethod
    def has_tag(cls, column: str, tag: str) -> "Predicate":
        return cls(PredicateOp.HAS_TAG, (column,), tag)

    @classmethod
    def any_contains_text(cls, columns: Sequence[str], text: str) -> "Predicate":
        return cls(PredicateOp.ANY_CONTAINS_TEXT, tuple(columns), text)

    @classmethod
    def is_null(cls, column: str) -> "Predicate":
        return cls(PredicateOp.IS_NULL, (column,))

    @classmethod
    def not_null(cls, column: str) -> "Predicate":
        return cls(PredicateOp.NOT_NULL, (column,))


@dataclass(frozen=True)
class OrderBy:
    column: str
    ascending: bool = True


class RowStore(Protocol):
    """Async tabular store. Each call is a consistent snapshot; calls are not."""

    async def query(
        self,
        table: str,
        predicates: Sequence[Predicate],
        order_by: Sequence[OrderBy],
        offset: int,
        limit: int,
    ) -> list[dict[str, Any]]: ...

    async def project(
        self,
        table: str,
        columns: Sequence[str],
        predicates: Sequence[Predicate],
    ) -> list[dict[str, Any]]: ...

    async def insert(self, table: str, values: dict[str, Any]) -> list[dict[str, Any]]: ...

    async def update(
        self,
        table: str,
        values: dict[str, Any],
        predicates: Sequence[Predicate],
    ) -> list[dict[str, Any]]: ...


_LIKE_METACHARS = re.compile(r"([\\%_])")


def escape_like(text: str) -> str:
    """Backslash-escape LIKE metacharacters so user text matches literally."""
    return _LIKE_METACHARS.sub(r"\\\1", str(text))


def apply_predicates(builder: Any, predicates: Sequence[Predicate]) -> Any:
    """Chain predicates onto a PostgREST filter builder (all ANDed)."""
    for pred in predicates:
        if pred.op is PredicateOp.EQ:
            builder = builder.eq(pred.column, pred.value)
        elif pred.op is PredicateOp.CONTAINS_TEXT:
            builder = builder.ilike(pred.column, f"%{escape_like(pred.value)}%")
        elif pred.op is PredicateOp.HAS_TAG:
            builder = builder.contains(pred.column, [pred.value])
        elif pred.op is PredicateOp.ANY_CONTAINS_TEXT:
            # `*` is PostgREST's URL-safe wildcard inside logic trees
            text = escape_like(pred.value)
            builder = builder.or_(
                ",".join(f"{col}.ilike.*{text}*" for col in pred.columns)
            )
        elif pred.op is PredicateOp.IS_NULL:
            builder = builder.is_(pred.column, "null")
        elif pred.op is PredicateOp.NOT_NULL:
            builder = builder.not_.is_(pred.column, "null")
        else:
            raise ValueError(f"Unsupported predicate: {pred.op}")
    return builder


def _rows(result: Any) -> list[dict[str, Any]]:
    if not result.data or not isinstance(result.data, list):
        return []
    return [row for row in result.data if isinstance(row, dict)]


class SupabaseRowStore:
    """``RowStore`` backed by the shared Supabase client."""

    def __init__(
        self, client: Client | None = None, projection_batch_size: int = 1000
    ) -> None:
        self._client = client
        self.projection_batch_size = projection_batch_size

    @property
    def client(self) -> Client:
        if self._client is None:
            self._client = get_supabase_client()
        return self._client

    async def _run(self, operation: str, table: str, fn: Callable[[], Any]) -> Any:
        start = time.time()
        try:
            result = await asyncio.to_thread(fn)
        except Exception as e:
            log_error(f"Row store {operation} failed", e, table=table)
            raise RowStoreError(operation, table, e) from e
        log_db_query(operation, table, (time.time() - start) * 1000)
        return result

    async def query(
        self,
        table: str,
        predicates: Sequence[Predicate],
        order_by: Sequence[OrderBy],
        offset: int,
        limit: int,
    ) -> list[dict[str, Any]]:
        def _do_query():
            builder = apply_predicates(self.client.table(table).select("*"), predicates)
            for order in order_by:
                builder = builder.order(order.column, desc=not order.ascending)
            return builder.range(offset, offset + limit - 1).execute()

        return _rows(await self._run("query", table, _do_query))

    async def project(
        self,
        table: str,
        columns: Sequence[str],
        predicates: Sequence[Predicate],
    ) -> list[dict[str, Any]]:
        """Read a few columns of every matching row.

        PostgREST truncates large selects, so the projection is read in
        windows ordered by id until a window comes back short.
        """
        rows: list[dict[str, Any]] = []
        batch = self.projection_batch_size
        offset = 0
        while True:

            def _do_project(start: int = offset):
                builder = self.client.table(table).select(",".join(columns))
                builder = apply_predicates(builder, predicates).order("id")
                return builder.range(start, start + batch - 1).execute()

            window = _rows(await self._run("project", table, _do_project))
            rows.extend(window)
            if len(window) < batch:
                return rows
            offset += batch

    async def insert(self, table: str, values: dict[str, Any]) -> list[dict[str, Any]]:
        def _do_insert():
            return self.client.table(table).insert(values).execute()

        return _rows(await self._run("insert", table, _do_insert))

    async def update(
        self,
        table: str,
        values: dict[str, Any],
        predicates: Sequence[Predicate],
    ) -> list[dict[str, Any]]:
        if not predicates:
            raise ValueError("Refusing to update without predicates")

        def _do_update():
            builder = self.client.table(table).update(values)
            return apply_predicates(builder, predicates).execute()

        return _rows(await self._run("update", table, _do_update))
