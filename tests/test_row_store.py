"""Tests for the Supabase row store against a recording query builder."""

import asyncio
from types import SimpleNamespace

import pytest

from rim_catalog.core.errors import RowStoreError
from rim_catalog.services.row_store import (
    OrderBy,
    Predicate,
    SupabaseRowStore,
    escape_like,
)


class RecordingBuilder:
    """Mimics the chained PostgREST builder and records every call."""

    def __init__(self, client, table):
        self.client = client
        self.calls = [("table", table)]
        client.builders.append(self)

    def __getattr__(self, name):
        def _method(*args, **kwargs):
            self.calls.append((name, args, kwargs) if kwargs else (name, args))
            return self

        return _method

    @property
    def not_(self):
        self.calls.append(("not_",))
        return self

    def execute(self):
        if self.client.error is not None:
            raise self.client.error
        data = self.client.responses.pop(0) if self.client.responses else []
        return SimpleNamespace(data=data)


class RecordingClient:
    def __init__(self, responses=None, error=None):
        self.responses = list(responses or [])
        self.error = error
        self.builders: list[RecordingBuilder] = []

    def table(self, name):
        return RecordingBuilder(self, name)


def run(coro):
    return asyncio.run(coro)


class TestQuery:
    def test_chains_predicates_order_and_range(self):
        client = RecordingClient(responses=[[{"id": 1}]])
        store = SupabaseRowStore(client)
        rows = run(
            store.query(
                "individual_wheels",
                [
                    Predicate.is_null("deleted_at"),
                    Predicate.eq("model", "R10"),
                    Predicate.contains_text("size", "17"),
                    Predicate.has_tag("defects", "Oxidação"),
                    Predicate.any_contains_text(("model", "description"), "polida"),
                ],
                [OrderBy("model"), OrderBy("id")],
                24,
                12,
            )
        )
        assert rows == [{"id": 1}]
        assert client.builders[0].calls == [
            ("table", "individual_wheels"),
            ("select", ("*",)),
            ("is_", ("deleted_at", "null")),
            ("eq", ("model", "R10")),
            ("ilike", ("size", "%17%")),
            ("contains", ("defects", ["Oxidação"])),
            ("or_", ("model.ilike.*polida*,description.ilike.*polida*",)),
            ("order", ("model",), {"desc": False}),
            ("order", ("id",), {"desc": False}),
            ("range", (24, 35)),
        ]

    def test_like_metacharacters_match_literally(self):
        client = RecordingClient()
        run(
            SupabaseRowStore(client).query(
                "t",
                [
                    Predicate.contains_text("size", "17_7%"),
                    Predicate.any_contains_text(("model", "description"), "r_10"),
                ],
                [],
                0,
                1,
            )
        )
        calls = client.builders[0].calls
        assert ("ilike", ("size", r"%17\_7\%%")) in calls
        assert ("or_", (r"model.ilike.*r\_10*,description.ilike.*r\_10*",)) in calls

    def test_not_null_uses_negation(self):
        client = RecordingClient()
        run(SupabaseRowStore(client).query("t", [Predicate.not_null("deleted_at")], [], 0, 1))
        assert ("not_",) in client.builders[0].calls
        assert ("is_", ("deleted_at", "null")) in client.builders[0].calls

    def test_non_dict_rows_are_dropped(self):
        client = RecordingClient(responses=[[{"id": 1}, "junk", None]])
        rows = run(SupabaseRowStore(client).query("t", [], [], 0, 10))
        assert rows == [{"id": 1}]

    def test_transport_errors_are_wrapped(self):
        client = RecordingClient(error=ConnectionError("refused"))
        with pytest.raises(RowStoreError) as excinfo:
            run(SupabaseRowStore(client).query("t", [], [], 0, 10))
        assert excinfo.value.operation == "query"
        assert isinstance(excinfo.value.cause, ConnectionError)


class TestProject:
    def test_reads_windows_until_short(self):
        client = RecordingClient(
            responses=[
                [{"model": "A"}, {"model": "B"}],
                [{"model": "C"}, {"model": "D"}],
                [{"model": "E"}],
            ]
        )
        store = SupabaseRowStore(client, projection_batch_size=2)
        rows = run(store.project("t", ["model", "finish"], [Predicate.is_null("deleted_at")]))
        assert [r["model"] for r in rows] == ["A", "B", "C", "D", "E"]
        assert len(client.builders) == 3
        assert ("select", ("model,finish",)) in client.builders[0].calls
        assert ("range", (0, 1)) in client.builders[0].calls
        assert ("range", (2, 3)) in client.builders[1].calls
        assert ("range", (4, 5)) in client.builders[2].calls


class TestWrites:
    def test_update_requires_predicates(self):
        store = SupabaseRowStore(RecordingClient())
        with pytest.raises(ValueError):
            run(store.update("t", {"deleted_at": None}, []))

    def test_update_applies_filters(self):
        client = RecordingClient(responses=[[{"id": "7"}]])
        rows = run(
            SupabaseRowStore(client).update(
                "t", {"finish": "Black"}, [Predicate.eq("id", "7")]
            )
        )
        assert rows == [{"id": "7"}]
        assert client.builders[0].calls[:3] == [
            ("table", "t"),
            ("update", ({"finish": "Black"},)),
            ("eq", ("id", "7")),
        ]

    def test_insert_returns_created_rows(self):
        client = RecordingClient(responses=[[{"id": "9", "model": "R10"}]])
        rows = run(SupabaseRowStore(client).insert("t", {"model": "R10"}))
        assert rows == [{"id": "9", "model": "R10"}]


def test_escape_like():
    assert escape_like("5x114.3") == "5x114.3"
    assert escape_like("50%") == r"50\%"
    assert escape_like("a_b") == r"a\_b"
    assert escape_like("c:\\d") == "c:\\\\d"
