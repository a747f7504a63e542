from __future__ import annotations

import pytest

from conftest import StaticProvider, make_fk, make_table
from joinpath_mcp.schema_tools.constants import JoinStrategy
from joinpath_mcp.schema_tools.exceptions import JoinSynthesisError
from joinpath_mcp.schema_tools.models import ResolverConfig, TableReference, TableSchema
from joinpath_mcp.schema_tools.resolver import JoinResolver


def _ref(table: str) -> TableReference:
    return TableReference("public", table)


def test_find_join_path(shop: list[TableSchema]) -> None:
    resolver = JoinResolver(StaticProvider(shop))

    path = resolver.find_join_path([_ref("orders"), _ref("products")])

    assert path is not None
    assert path.tables == (_ref("orders"), _ref("order_items"), _ref("products"))
    assert path.input_tables_count == 2
    assert path.total_tables_count == 3
    assert path.total_joins == 2


def test_find_join_path_none_when_disconnected(shop: list[TableSchema]) -> None:
    resolver = JoinResolver(StaticProvider(shop))

    assert resolver.find_join_path([_ref("orders"), _ref("audit_log")]) is None
    assert resolver.find_all_join_paths([_ref("orders"), _ref("audit_log")]) == []


def test_every_call_fetches_a_fresh_snapshot(shop: list[TableSchema]) -> None:
    provider = StaticProvider(shop)
    resolver = JoinResolver(provider)

    resolver.find_join_path([_ref("orders"), _ref("customers")])
    resolver.get_table_joins([_ref("orders"), _ref("customers")])

    assert provider.fetch_count == 2


def test_snapshot_changes_are_picked_up(shop: list[TableSchema]) -> None:
    provider = StaticProvider(shop)
    resolver = JoinResolver(provider)
    assert resolver.find_join_path([_ref("orders"), _ref("audit_log")]) is None

    provider.schemas = [
        *shop[:-2],
        make_table(
            "audit_log",
            ["id", "order_id", "message"],
            fks=[make_fk(("order_id",), "orders")],
        ),
    ]
    path = resolver.find_join_path([_ref("orders"), _ref("audit_log")])
    assert path is not None
    assert path.total_joins == 1


def test_get_table_joins_shortest(shop: list[TableSchema]) -> None:
    resolver = JoinResolver(StaticProvider(shop))

    queries = resolver.get_table_joins([_ref("customers"), _ref("orders")])

    assert len(queries) == 1
    assert queries[0].join_path.total_joins == 1
    assert 'JOIN "orders" ON "customers"."id" = "orders"."customer_id";' in queries[0].sql


def test_get_table_joins_exhaustive(shop: list[TableSchema]) -> None:
    config = ResolverConfig(strategy=JoinStrategy.EXHAUSTIVE)
    resolver = JoinResolver(StaticProvider(shop), config)

    queries = resolver.get_table_joins([_ref("customers"), _ref("products")])

    assert len(queries) == 1
    assert queries[0].sql.count("JOIN ") == 3


def test_max_depth_override(shop: list[TableSchema]) -> None:
    resolver = JoinResolver(StaticProvider(shop), ResolverConfig(max_depth=2))
    tables = [_ref("customers"), _ref("products")]

    assert resolver.find_join_path(tables) is None
    assert resolver.find_join_path(tables, max_depth=3) is not None
    with pytest.raises(ValueError, match="max_depth"):
        resolver.find_join_path(tables, max_depth=99)


def test_empty_tables(shop: list[TableSchema]) -> None:
    resolver = JoinResolver(StaticProvider(shop))

    with pytest.raises(ValueError, match="At least one table"):
        resolver.get_table_joins([])


def test_single_table_sql(shop: list[TableSchema]) -> None:
    resolver = JoinResolver(StaticProvider(shop))

    (query,) = resolver.get_table_joins([_ref("categories")])

    assert query.join_path.total_joins == 0
    assert query.sql == 'SELECT\n  "categories"."id",\n  "categories"."name"\nFROM "categories"'


def test_malformed_foreign_key_fails_at_synthesis() -> None:
    bad = make_table(
        "orders",
        ["id", "customer_id"],
        fks=[make_fk(("customer_id",), "customers", ("id", "region"))],
    )
    resolver = JoinResolver(StaticProvider([make_table("customers", ["id"]), bad]))
    tables = [_ref("orders"), _ref("customers")]

    # the path itself resolves; rendering it is what fails
    assert resolver.find_join_path(tables) is not None
    with pytest.raises(JoinSynthesisError, match="column count mismatch"):
        resolver.get_table_joins(tables)


def test_single_unknown_table_is_an_identity_path(shop: list[TableSchema]) -> None:
    resolver = JoinResolver(StaticProvider(shop))
    nowhere = _ref("nowhere")

    path = resolver.find_join_path([nowhere])

    assert path is not None
    assert path.tables == (nowhere,)
    assert path.total_joins == 0
    assert [p.tables for p in resolver.find_all_join_paths([nowhere])] == [(nowhere,)]
    with pytest.raises(JoinSynthesisError, match="public.nowhere"):
        resolver.get_table_joins([nowhere])


def _detour_schemas() -> list[TableSchema]:
    """a and b meet through ext.x and through c; only c is reflected."""
    return [
        make_table(
            "a",
            ["id", "x_id", "c_id"],
            fks=[make_fk(("x_id",), "x", schema="ext"), make_fk(("c_id",), "c")],
        ),
        make_table(
            "b",
            ["id", "x_id", "c_id"],
            fks=[make_fk(("x_id",), "x", schema="ext"), make_fk(("c_id",), "c")],
        ),
        make_table("c", ["id"]),
    ]


@pytest.mark.parametrize("strategy", [JoinStrategy.SHORTEST, JoinStrategy.EXHAUSTIVE])
def test_paths_avoid_tables_outside_the_snapshot(strategy: JoinStrategy) -> None:
    resolver = JoinResolver(StaticProvider(_detour_schemas()))
    tables = [_ref("a"), _ref("b")]

    path = resolver.find_join_path(tables)
    assert path is not None
    assert path.tables == (_ref("a"), _ref("c"), _ref("b"))

    queries = resolver.get_table_joins(tables, strategy)
    assert [[t.table for t in q.join_path.tables] for q in queries] == [["a", "c", "b"]]
    assert '"ext"' not in queries[0].sql
