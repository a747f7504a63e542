"""Join SQL synthesis.

Renders a resolved JoinPath into a ``SELECT ... FROM ... JOIN ... ON ...``
statement for a dialect. Columns whose names appear in more than one joined
table are aliased ``{schema_}{table}_{column}`` so the result set has no
ambiguous names.

Classes:
- SqlSynthesizer: Dialect-parameterized SQL renderer for join paths
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable

from fastmcp.utilities.logging import get_logger

from .dialects import DialectAdapter
from .exceptions import JoinSynthesisError
from .models import JoinPath, JoinRelation, TableReference, TableSchema

# Logger
_logger = get_logger("schema_tools.sql_synthesis")


class SqlSynthesizer:
    """Render join paths as SQL for one dialect."""

    def __init__(self, dialect: DialectAdapter) -> None:
        self.dialect = dialect

    def generate(self, join_path: JoinPath, table_schemas: Iterable[TableSchema]) -> str:
        """Render a join path as a SELECT statement.

        The first path table anchors the FROM clause and each relation adds
        one JOIN on its target table, in path order. A single-table path
        renders without JOIN clauses or a trailing semicolon.

        Args:
            join_path: Resolved path to render
            table_schemas: Schemas for (at least) every table in the path

        Returns:
            SQL statement

        Raises:
            JoinSynthesisError: If a path table has no schema or a relation
                is structurally invalid
        """
        if not join_path.tables:
            error_msg = "Cannot generate SQL for an empty join path"
            raise JoinSynthesisError(error_msg)

        schemas_by_key = {schema.key: schema for schema in table_schemas}
        ordered: list[tuple[TableReference, TableSchema]] = []
        for table in join_path.tables:
            schema = schemas_by_key.get(table.key)
            if schema is None:
                error_msg = f"No schema supplied for join path table {table.key}"
                raise JoinSynthesisError(error_msg)
            ordered.append((table, schema))

        select_clause = "SELECT\n  " + ",\n  ".join(self.select_columns(ordered))
        from_clause = f"FROM {self.table_identifier(join_path.tables[0])}"

        joins = [
            f"JOIN {self.table_identifier(relation.target.reference)} "
            f"ON {self.join_condition(relation)}"
            for relation in join_path.relations
        ]
        if not joins:
            return f"{select_clause}\n{from_clause}"

        _logger.debug("Generated SQL with %d joins", len(joins))
        return f"{select_clause}\n{from_clause}\n" + "\n".join(joins) + ";"

    def table_identifier(self, table: TableReference) -> str:
        return self.dialect.qualify(table.schema, table.table)

    def select_columns(self, tables: list[tuple[TableReference, TableSchema]]) -> list[str]:
        """Select-list entries, aliasing names shared by several tables."""
        name_counts = Counter(
            column.name for _, schema in tables for column in schema.columns
        )

        entries: list[str] = []
        for table, schema in tables:
            identifier = self.table_identifier(table)
            for column in schema.ordered_columns():
                reference = f"{identifier}.{self.dialect.quote_identifier(column.name)}"
                if name_counts[column.name] > 1:
                    alias = self.dialect.quote_identifier(self.column_alias(table, column.name))
                    entries.append(f"{reference} AS {alias}")
                else:
                    entries.append(reference)
        return entries

    def column_alias(self, table: TableReference, column: str) -> str:
        """Alias for a colliding column; default schemas are not prefixed."""
        prefix = "" if self.dialect.is_default_schema(table.schema) else f"{table.schema}_"
        return f"{prefix}{table.table}_{column}"

    def join_condition(self, relation: JoinRelation) -> str:
        """AND-joined column equalities for a relation, in declared order."""
        self._validate_relation(relation)
        source = self.table_identifier(relation.source.reference)
        target = self.table_identifier(relation.target.reference)
        return " AND ".join(
            f"{source}.{self.dialect.quote_identifier(source_col)} = "
            f"{target}.{self.dialect.quote_identifier(target_col)}"
            for source_col, target_col in zip(
                relation.source.columns, relation.target.columns, strict=True
            )
        )

    @staticmethod
    def _validate_relation(relation: JoinRelation) -> None:
        pair = f"{relation.source.key} to {relation.target.key}"
        source_cols = relation.source.columns
        target_cols = relation.target.columns
        if not source_cols or not target_cols:
            error_msg = f"Invalid join relation: empty column list in relation from {pair}"
            raise JoinSynthesisError(error_msg)
        if len(source_cols) != len(target_cols):
            error_msg = (
                f"Invalid join relation: column count mismatch in relation from {pair} "
                f"({len(source_cols)} vs {len(target_cols)})"
            )
            raise JoinSynthesisError(error_msg)
        if not all(source_cols) or not all(target_cols):
            error_msg = f"Invalid join relation: blank column name in relation from {pair}"
            raise JoinSynthesisError(error_msg)
