from __future__ import annotations

import pytest

from conftest import make_fk, make_table
from joinpath_mcp.schema_tools.constants import Constants
from joinpath_mcp.schema_tools.graph import GraphBuilder, RelationshipGraph
from joinpath_mcp.schema_tools.path_search import PathSearchEngine, SearchResult


def _diamond() -> RelationshipGraph:
    """a - b - d and a - c - d: two equal-length routes from a to d."""
    return GraphBuilder().build(
        [
            make_table("a", ["id"]),
            make_table("b", ["id", "a_id", "d_id"], fks=[
                make_fk(("a_id",), "a"),
                make_fk(("d_id",), "d"),
            ]),
            make_table("c", ["id", "a_id", "d_id"], fks=[
                make_fk(("a_id",), "a"),
                make_fk(("d_id",), "d"),
            ]),
            make_table("d", ["id"]),
        ]
    )


def _assert_tree(result: SearchResult) -> None:
    assert len(result.relations) == len(result.table_keys) - 1
    assert len(set(result.table_keys)) == len(result.table_keys)


@pytest.mark.parametrize("table", ["public.orders", "public.audit_log", "public.nowhere"])
def test_single_table_identity(shop_graph: RelationshipGraph, table: str) -> None:
    engine = PathSearchEngine(shop_graph)

    shortest = engine.find_shortest([table])
    assert shortest == SearchResult(table_keys=(table,), relations=())
    assert shortest.total_joins == 0
    assert engine.find_all([table]) == [shortest]


def test_direct_relation(shop_graph: RelationshipGraph) -> None:
    result = PathSearchEngine(shop_graph).find_shortest(["public.orders", "public.customers"])

    assert result is not None
    assert result.table_keys == ("public.orders", "public.customers")
    assert [(r.source.key, r.target.key) for r in result.relations] == [
        ("public.orders", "public.customers")
    ]


def test_discovers_intermediate_table(shop_graph: RelationshipGraph) -> None:
    result = PathSearchEngine(shop_graph).find_shortest(["public.orders", "public.products"])

    assert result is not None
    assert result.table_keys == ("public.orders", "public.order_items", "public.products")
    assert result.total_joins == 2
    first, second = result.relations
    # reverse of order_items.order_id -> orders.id
    assert (first.source.columns, first.target.columns) == (("id",), ("order_id",))
    assert first.target.key == "public.order_items"
    assert second.source.columns == ("product_id",)
    assert second.target.key == "public.products"
    _assert_tree(result)


def test_three_tables_grow_one_tree(shop_graph: RelationshipGraph) -> None:
    result = PathSearchEngine(shop_graph).find_shortest(
        ["public.customers", "public.products", "public.categories"]
    )

    assert result is not None
    assert result.table_keys == (
        "public.customers",
        "public.orders",
        "public.order_items",
        "public.products",
        "public.categories",
    )
    assert result.total_joins == 4
    _assert_tree(result)


def test_disconnected_tables(shop_graph: RelationshipGraph) -> None:
    engine = PathSearchEngine(shop_graph)
    tables = ["public.orders", "public.audit_log"]

    assert engine.find_shortest(tables) is None
    assert engine.find_all(tables) == []


def test_unknown_table_means_no_path(shop_graph: RelationshipGraph) -> None:
    engine = PathSearchEngine(shop_graph)

    assert engine.find_shortest(["public.orders", "public.nowhere"]) is None
    assert engine.find_all(["public.orders", "public.nowhere"]) == []


@pytest.mark.parametrize(("max_depth", "found"), [(2, False), (3, True)])
def test_depth_bound(shop_graph: RelationshipGraph, max_depth: int, found: bool) -> None:
    engine = PathSearchEngine(shop_graph, max_depth=max_depth)
    tables = ["public.customers", "public.products"]

    shortest = engine.find_shortest(tables)
    assert (shortest is not None) is found
    results = engine.find_all(tables)
    assert bool(results) is found
    assert all(r.total_joins <= max_depth for r in results)


def test_depth_bound_covers_all_targets(shop_graph: RelationshipGraph) -> None:
    # customers -> products needs 3 relations, categories one more
    engine = PathSearchEngine(shop_graph, max_depth=3)
    tables = ["public.customers", "public.products", "public.categories"]

    assert engine.find_shortest(tables) is None
    assert engine.find_all(tables) == []


def test_duplicate_inputs_are_collapsed(shop_graph: RelationshipGraph) -> None:
    engine = PathSearchEngine(shop_graph)
    result = engine.find_shortest(["public.orders", "public.customers", "public.orders"])

    assert result is not None
    assert result.table_keys == ("public.orders", "public.customers")


def test_exhaustive_finds_both_routes() -> None:
    results = PathSearchEngine(_diamond()).find_all(["public.a", "public.d"])

    assert len(results) == 2
    assert {r.table_keys[1] for r in results} == {"public.b", "public.c"}
    assert all(r.total_joins == 2 for r in results)


def test_exhaustive_dedupes_and_sorts() -> None:
    results = PathSearchEngine(_diamond(), max_depth=3).find_all(
        ["public.a", "public.b", "public.d"]
    )

    # {a-b, b-d}, {a-b, a-c, c-d}, {a-c, c-d, d-b}
    assert [r.total_joins for r in results] == [2, 3, 3]
    assert len({r.signature() for r in results}) == len(results)
    for result in results:
        _assert_tree(result)
        assert {"public.a", "public.b", "public.d"} <= set(result.table_keys)


def test_exhaustive_respects_depth() -> None:
    results = PathSearchEngine(_diamond(), max_depth=2).find_all(
        ["public.a", "public.b", "public.d"]
    )

    assert len(results) == 1
    assert set(results[0].table_keys) == {"public.a", "public.b", "public.d"}


def test_exhaustive_candidate_cap() -> None:
    engine = PathSearchEngine(_diamond(), max_depth=3, max_candidates=1)

    assert len(engine.find_all(["public.a", "public.b", "public.d"])) == 1


def test_shortest_matches_cheapest_exhaustive(shop_graph: RelationshipGraph) -> None:
    engine = PathSearchEngine(shop_graph)
    tables = ["public.categories", "public.customers"]

    shortest = engine.find_shortest(tables)
    results = engine.find_all(tables)
    assert shortest is not None
    assert results[0].signature() == shortest.signature()


@pytest.mark.parametrize("max_depth", [0, -1, Constants.MAX_DEPTH_LIMIT + 1])
def test_invalid_max_depth(shop_graph: RelationshipGraph, max_depth: int) -> None:
    with pytest.raises(ValueError, match="max_depth"):
        PathSearchEngine(shop_graph, max_depth=max_depth)


def test_empty_input(shop_graph: RelationshipGraph) -> None:
    with pytest.raises(ValueError, match="At least one table"):
        PathSearchEngine(shop_graph).find_shortest([])
