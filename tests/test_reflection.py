from __future__ import annotations

import pytest
import sqlalchemy as sa

from joinpath_mcp.schema_tools.constants import DatabaseDialect
from joinpath_mcp.schema_tools.exceptions import ReflectionError
from joinpath_mcp.schema_tools.models import TableReference
from joinpath_mcp.schema_tools.reflection import ReflectionAdapter
from joinpath_mcp.schema_tools.resolver import JoinResolver


def test_dialect_from_engine(shop_engine: sa.Engine) -> None:
    adapter = ReflectionAdapter(shop_engine)

    assert adapter.dialect.dialect is DatabaseDialect.SQLITE
    assert adapter.dialect.default_schema == "main"


def test_list_tables(shop_engine: sa.Engine) -> None:
    adapter = ReflectionAdapter(shop_engine)

    assert adapter.list_schemas() == ["main"]
    assert [t.table for t in adapter.list_tables()] == [
        "audit_log",
        "customers",
        "order_items",
        "orders",
        "products",
    ]


def test_include_schemas_filter(shop_engine: sa.Engine) -> None:
    assert ReflectionAdapter(shop_engine, include_schemas=["other"]).list_tables() == []


def test_fetch_table_schema(shop_engine: sa.Engine) -> None:
    orders = ReflectionAdapter(shop_engine).fetch_table_schema("orders")

    assert orders.schema == "main"
    assert [c.name for c in orders.columns] == ["id", "customer_id", "created_at"]
    assert [c.ordinal_position for c in orders.columns] == [1, 2, 3]
    customer_id = orders.columns[1]
    assert customer_id.data_type == "integer"
    assert customer_id.nullable is False
    assert orders.primary_key is not None
    assert orders.primary_key.columns == ("id",)

    (fk,) = orders.foreign_keys
    assert fk.columns == ("customer_id",)
    assert fk.referenced == TableReference("main", "customers")
    assert fk.referenced_columns == ("id",)
    assert fk.name


def test_indexes(shop_engine: sa.Engine) -> None:
    customers = ReflectionAdapter(shop_engine).fetch_table_schema("customers", "main")

    primary, email = customers.indexes
    assert primary.is_primary
    assert primary.name == "customers_pkey"
    assert email.name == "ix_customers_email"
    assert email.is_unique
    assert not email.is_primary
    assert email.definition == (
        'CREATE UNIQUE INDEX "ix_customers_email" ON "customers" ("email")'
    )


def test_missing_table(shop_engine: sa.Engine) -> None:
    with pytest.raises(ReflectionError, match="main.nowhere"):
        ReflectionAdapter(shop_engine).fetch_table_schema("nowhere")


def test_unqualified_foreign_key_targets_default_schema(shop_engine: sa.Engine) -> None:
    reflected = {
        "name": None,
        "constrained_columns": ["customer_id"],
        "referred_schema": None,
        "referred_table": "customers",
        "referred_columns": ["id"],
    }

    fk = ReflectionAdapter(shop_engine)._foreign_key(reflected, "sales", "orders", 0)

    assert fk.name == "orders_fk_0"
    assert fk.referenced_schema == "main"
    assert fk.referenced_table == "customers"
    assert fk.columns == ("customer_id",)
    assert fk.referenced_columns == ("id",)


@pytest.mark.parametrize("workers", [1, 4])
def test_fetch_schemas(shop_engine: sa.Engine, workers: int) -> None:
    schemas = ReflectionAdapter(shop_engine, max_workers=workers).fetch_schemas()

    assert [s.key for s in schemas] == [
        "main.audit_log",
        "main.customers",
        "main.order_items",
        "main.orders",
        "main.products",
    ]


def test_resolved_sql_runs_against_the_database(shop_engine: sa.Engine) -> None:
    resolver = JoinResolver(ReflectionAdapter(shop_engine))

    (query,) = resolver.get_table_joins(
        [TableReference("main", "orders"), TableReference("main", "products")]
    )

    assert [t.table for t in query.join_path.tables] == ["orders", "order_items", "products"]
    with shop_engine.connect() as conn:
        rows = conn.execute(sa.text(query.sql)).mappings().all()
    assert len(rows) == 3
    assert {row["orders_id"] for row in rows} == {10, 11}
    assert {row["name"] for row in rows} == {"Widget", "Gadget"}
