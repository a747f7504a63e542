"""Utility functions for schema tools.

Functions:
- table_key(): Canonical ``"schema.table"`` graph node identifier
- relation_key(): Directed ``"from->to"`` relation index key
- parse_table_reference(): Parse ``[schema.]table`` user input
- parse_table_list(): Parse a comma-separated list of table references
- default_excluded_schemas(): System schemas to exclude by dialect
"""

from __future__ import annotations

import time

from .constants import Constants
from .models import TableReference


def now() -> float:
    """Return high-resolution timestamp for performance measurements."""
    return time.perf_counter()


def table_key(schema: str, table: str) -> str:
    """Build the canonical graph key for a table.

    Example:
        >>> table_key("public", "orders")
        'public.orders'
    """
    return f"{schema}{Constants.TABLE_KEY_SEPARATOR}{table}"


def relation_key(from_key: str, to_key: str) -> str:
    """Build the directed relation index key between two table keys."""
    return f"{from_key}{Constants.RELATION_KEY_SEPARATOR}{to_key}"


def parse_table_reference(text: str, default_schema: str) -> TableReference:
    """Parse ``table`` or ``schema.table`` into a TableReference.

    Only the first dot separates schema from table, so table names that
    contain dots survive when the schema is given explicitly.

    Args:
        text: User-supplied table reference
        default_schema: Schema used when none is given

    Returns:
        Parsed TableReference

    Raises:
        ValueError: If the reference is empty or has an empty part
    """
    cleaned = text.strip()
    if not cleaned:
        error_msg = "Table reference must not be empty"
        raise ValueError(error_msg)

    schema, sep, table = cleaned.partition(Constants.TABLE_KEY_SEPARATOR)
    if not sep:
        return TableReference(schema=default_schema, table=schema)
    if not schema or not table:
        error_msg = f"Invalid table reference: '{text}'"
        raise ValueError(error_msg)
    return TableReference(schema=schema, table=table)


def parse_table_list(text: str, default_schema: str) -> list[TableReference]:
    """Parse a comma-separated list of table references.

    Blank entries (e.g. from a trailing comma) are ignored.
    """
    return [
        parse_table_reference(part, default_schema) for part in text.split(",") if part.strip()
    ]


def default_excluded_schemas(dialect_name: str) -> list[str]:
    """Get default system schemas to exclude for a database dialect.

    Args:
        dialect_name: SQLAlchemy dialect name (e.g., 'postgresql', 'mysql')

    Returns:
        List of system schema names to exclude from reflection
    """
    dialect_lower = dialect_name.lower()

    if "postgresql" in dialect_lower or "postgres" in dialect_lower:
        return [
            "information_schema",
            "pg_catalog",
            "pg_toast",
            "pglogical",
            "pglogical_origin",
        ]
    if "mysql" in dialect_lower or "mariadb" in dialect_lower:
        return ["information_schema", "mysql", "performance_schema", "sys"]
    if "sqlite" in dialect_lower:
        return []
    return ["information_schema", "pg_catalog", "sys"]


def is_system_schema(schema: str, dialect_name: str) -> bool:
    """Check whether a schema is a temporary or toast schema for the dialect."""
    lowered = schema.lower()
    if "postgres" in dialect_name.lower():
        return lowered.startswith(("pg_toast", "pg_temp"))
    return False
