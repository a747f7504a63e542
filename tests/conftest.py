from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path

import pytest
import sqlalchemy as sa
from sqlalchemy import text

from joinpath_mcp.schema_tools.constants import DatabaseDialect
from joinpath_mcp.schema_tools.dialects import DialectAdapter
from joinpath_mcp.schema_tools.graph import GraphBuilder, RelationshipGraph
from joinpath_mcp.schema_tools.models import ColumnSchema, ForeignKey, PrimaryKey, TableSchema


def make_table(
    name: str,
    columns: Iterable[str | tuple[str, bool]],
    *,
    fks: Iterable[ForeignKey] = (),
    pk: tuple[str, ...] | None = ("id",),
    schema: str = "public",
) -> TableSchema:
    """Build a TableSchema; columns are names or (name, nullable) pairs."""
    cols = []
    for position, col in enumerate(columns, start=1):
        col_name, nullable = (col, True) if isinstance(col, str) else col
        cols.append(
            ColumnSchema(
                schema=schema,
                table=name,
                name=col_name,
                ordinal_position=position,
                data_type="integer",
                nullable=nullable,
            )
        )
    return TableSchema(
        schema=schema,
        name=name,
        columns=tuple(cols),
        primary_key=PrimaryKey(name=f"{name}_pkey", columns=pk) if pk else None,
        foreign_keys=tuple(fks),
    )


def make_fk(
    columns: tuple[str, ...],
    table: str,
    referenced: tuple[str, ...] = ("id",),
    *,
    schema: str = "public",
    name: str | None = None,
) -> ForeignKey:
    return ForeignKey(
        name=name or f"fk_{table}_{'_'.join(columns)}",
        columns=columns,
        referenced_schema=schema,
        referenced_table=table,
        referenced_columns=referenced,
    )


def shop_schemas() -> list[TableSchema]:
    """Small e-commerce schema plus an isolated table and a self-reference.

    customers <- orders <- order_items -> products -> categories
    """
    return [
        make_table("customers", [("id", False), "name", "email"]),
        make_table(
            "orders",
            [("id", False), ("customer_id", False), "created_at"],
            fks=[make_fk(("customer_id",), "customers")],
        ),
        make_table(
            "products",
            [("id", False), "name", "category_id"],
            fks=[make_fk(("category_id",), "categories")],
        ),
        make_table(
            "order_items",
            [("id", False), ("order_id", False), "product_id", "quantity"],
            fks=[make_fk(("order_id",), "orders"), make_fk(("product_id",), "products")],
        ),
        make_table("categories", [("id", False), "name"]),
        make_table("audit_log", [("id", False), "message"]),
        make_table(
            "employees",
            [("id", False), "manager_id"],
            fks=[make_fk(("manager_id",), "employees")],
        ),
    ]


class StaticProvider:
    """SchemaProvider over a fixed list of schemas; counts snapshot fetches."""

    def __init__(
        self,
        schemas: list[TableSchema],
        dialect: DialectAdapter | None = None,
    ) -> None:
        self.schemas = schemas
        self.fetch_count = 0
        self._dialect = dialect or DialectAdapter(DatabaseDialect.POSTGRES, "public")

    @property
    def dialect(self) -> DialectAdapter:
        return self._dialect

    def fetch_schemas(self) -> list[TableSchema]:
        self.fetch_count += 1
        return list(self.schemas)

    def fetch_table_schema(self, table: str, schema: str | None = None) -> TableSchema:
        wanted = schema or self._dialect.default_schema
        for table_schema in self.schemas:
            if table_schema.name == table and table_schema.schema == wanted:
                return table_schema
        raise KeyError(f"{wanted}.{table}")


@pytest.fixture
def shop() -> list[TableSchema]:
    return shop_schemas()


@pytest.fixture
def shop_graph(shop: list[TableSchema]) -> RelationshipGraph:
    return GraphBuilder().build(shop)


@pytest.fixture
def postgres() -> DialectAdapter:
    return DialectAdapter(DatabaseDialect.POSTGRES, "public")


SHOP_DDL = [
    "CREATE TABLE customers (id INTEGER PRIMARY KEY, name TEXT NOT NULL, email TEXT)",
    "CREATE UNIQUE INDEX ix_customers_email ON customers (email)",
    (
        "CREATE TABLE orders (id INTEGER PRIMARY KEY, "
        "customer_id INTEGER NOT NULL REFERENCES customers (id), created_at TEXT)"
    ),
    "CREATE TABLE products (id INTEGER PRIMARY KEY, name TEXT, price NUMERIC)",
    (
        "CREATE TABLE order_items (id INTEGER PRIMARY KEY, "
        "order_id INTEGER NOT NULL REFERENCES orders (id), "
        "product_id INTEGER REFERENCES products (id), quantity INTEGER)"
    ),
    "CREATE TABLE audit_log (id INTEGER PRIMARY KEY, message TEXT)",
]

SHOP_ROWS = [
    "INSERT INTO customers (id, name, email) VALUES (1, 'Alice', 'alice@example.com')",
    "INSERT INTO customers (id, name, email) VALUES (2, 'Bob', NULL)",
    "INSERT INTO orders (id, customer_id, created_at) VALUES (10, 1, '2024-01-05')",
    "INSERT INTO orders (id, customer_id, created_at) VALUES (11, 2, '2024-02-11')",
    "INSERT INTO products (id, name, price) VALUES (100, 'Widget', 2.5)",
    "INSERT INTO products (id, name, price) VALUES (101, 'Gadget', 10)",
    "INSERT INTO order_items (id, order_id, product_id, quantity) VALUES (1, 10, 100, 3)",
    "INSERT INTO order_items (id, order_id, product_id, quantity) VALUES (2, 10, 101, 1)",
    "INSERT INTO order_items (id, order_id, product_id, quantity) VALUES (3, 11, 100, 7)",
    "INSERT INTO audit_log (id, message) VALUES (1, 'created')",
]


@pytest.fixture
def shop_db_url(tmp_path: Path) -> str:
    """File-backed SQLite database with the shop schema and a few rows."""
    url = f"sqlite:///{tmp_path / 'shop.db'}"
    engine = sa.create_engine(url)
    with engine.begin() as conn:
        for stmt in [*SHOP_DDL, *SHOP_ROWS]:
            conn.execute(text(stmt))
    engine.dispose()
    return url


@pytest.fixture
def shop_engine(shop_db_url: str) -> Iterable[sa.Engine]:
    engine = sa.create_engine(shop_db_url)
    yield engine
    engine.dispose()
