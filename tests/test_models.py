from __future__ import annotations

import pytest

from conftest import make_fk
from joinpath_mcp.schema_tools.constants import DatabaseDialect
from joinpath_mcp.schema_tools.dialects import DialectAdapter
from joinpath_mcp.schema_tools.exceptions import InvalidForeignKeyError, UnsupportedDialectError
from joinpath_mcp.schema_tools.models import (
    ForeignKey,
    JoinEndpoint,
    JoinPath,
    JoinRelation,
    TableReference,
)
from joinpath_mcp.schema_tools.utils import parse_table_list, parse_table_reference


def test_foreign_key_validate_accepts_composite() -> None:
    make_fk(("order_id", "line_no"), "order_lines", ("order_id", "line_no")).validate()


@pytest.mark.parametrize(
    ("columns", "referenced"),
    [
        ((), ()),
        (("a",), ()),
        (("a", "b"), ("id",)),
        (("a", ""), ("id", "x")),
    ],
)
def test_foreign_key_validate_rejects(
    columns: tuple[str, ...], referenced: tuple[str, ...]
) -> None:
    fk = ForeignKey(
        name="fk_bad",
        columns=columns,
        referenced_schema="public",
        referenced_table="t",
        referenced_columns=referenced,
    )
    with pytest.raises(InvalidForeignKeyError, match="fk_bad"):
        fk.validate()


def test_relation_signature_is_orientation_free() -> None:
    relation = JoinRelation(
        source=JoinEndpoint("public", "orders", ("customer_id",)),
        target=JoinEndpoint("public", "customers", ("id",)),
        is_nullable=True,
    )
    reverse = relation.reversed()

    assert reverse.source == relation.target
    assert reverse.is_nullable is False
    assert reverse.signature() == relation.signature()


def test_join_path_counts() -> None:
    path = JoinPath(
        tables=(TableReference("public", "a"), TableReference("public", "b")),
        relations=(
            JoinRelation(
                source=JoinEndpoint("public", "a", ("b_id",)),
                target=JoinEndpoint("public", "b", ("id",)),
            ),
        ),
        input_tables_count=2,
    )
    assert path.total_tables_count == 2
    assert path.total_joins == 1


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("orders", TableReference("public", "orders")),
        (" sales.orders ", TableReference("sales", "orders")),
        ("sales.orders.v2", TableReference("sales", "orders.v2")),
    ],
)
def test_parse_table_reference(text: str, expected: TableReference) -> None:
    assert parse_table_reference(text, "public") == expected


@pytest.mark.parametrize("text", ["", "  ", ".orders", "sales."])
def test_parse_table_reference_rejects(text: str) -> None:
    with pytest.raises(ValueError):
        parse_table_reference(text, "public")


def test_parse_table_list_skips_blanks() -> None:
    assert parse_table_list("orders, crm.customers,", "main") == [
        TableReference("main", "orders"),
        TableReference("crm", "customers"),
    ]


@pytest.mark.parametrize(
    ("dialect", "expected"),
    [
        (DatabaseDialect.POSTGRES, '"order items"'),
        (DatabaseDialect.SQLITE, '"order items"'),
        (DatabaseDialect.MYSQL, "`order items`"),
    ],
)
def test_quote_identifier(dialect: DatabaseDialect, expected: str) -> None:
    assert DialectAdapter(dialect).quote_identifier("order items") == expected


def test_quote_identifier_escapes_quotes() -> None:
    assert DialectAdapter(DatabaseDialect.POSTGRES).quote_identifier('we"ird') == '"we""ird"'


@pytest.mark.parametrize(
    ("name", "dialect", "default_schema"),
    [
        ("postgresql", DatabaseDialect.POSTGRES, "public"),
        ("mysql", DatabaseDialect.MYSQL, ""),
        ("mariadb", DatabaseDialect.MYSQL, ""),
        ("sqlite", DatabaseDialect.SQLITE, "main"),
    ],
)
def test_dialect_from_sqlalchemy_defaults(
    name: str, dialect: DatabaseDialect, default_schema: str
) -> None:
    adapter = DialectAdapter.from_sqlalchemy(name)
    assert adapter.dialect is dialect
    assert adapter.default_schema == default_schema


def test_dialect_qualify() -> None:
    adapter = DialectAdapter.from_sqlalchemy("postgresql", "app")

    assert adapter.qualify("app", "orders") == '"orders"'
    assert adapter.qualify("", "orders") == '"orders"'
    assert adapter.qualify("public", "orders") == '"public"."orders"'


def test_unsupported_dialect() -> None:
    with pytest.raises(UnsupportedDialectError, match="mssql"):
        DialectAdapter.from_sqlalchemy("mssql")
