"""Database schema reflection adapter.

This module provides the ReflectionAdapter class that fetches table metadata
using the SQLAlchemy inspector and converts it into immutable TableSchema
snapshots. It is the metadata provider consumed by the join resolver.

Reflection of a full snapshot fans out per table across a thread pool and
gathers the results; a failure for any table aborts the snapshot, since a
partial graph could report "no path" for tables that are in fact connected.

Classes:
- ReflectionAdapter: SQLAlchemy-backed SchemaProvider
"""

from __future__ import annotations

from concurrent.futures import Future, ThreadPoolExecutor
from functools import cached_property
from typing import Any

from fastmcp.utilities.logging import get_logger
import sqlalchemy as sa
from sqlalchemy.engine import Engine
from sqlalchemy.engine.reflection import Inspector
from sqlalchemy.exc import CompileError, NoSuchTableError, SQLAlchemyError

from .constants import Constants, DatabaseDialect
from .dialects import DialectAdapter
from .exceptions import ReflectionError
from .models import (
    ColumnSchema,
    ForeignKey,
    IndexSchema,
    PrimaryKey,
    TableReference,
    TableSchema,
)
from .utils import default_excluded_schemas, is_system_schema, now

# Logger
_logger = get_logger("schema_tools.reflection")


def _int_or_none(value: object) -> int | None:
    return value if isinstance(value, int) and not isinstance(value, bool) else None


class ReflectionAdapter:
    """SchemaProvider backed by SQLAlchemy reflection.

    Attributes:
        engine: SQLAlchemy engine for database connections
        include_schemas: Optional list of schemas to include (whitelist)
        exclude_schemas: Optional list of schemas to exclude (blacklist)
        max_workers: Thread pool size for per-table reflection
    """

    def __init__(
        self,
        engine: Engine,
        include_schemas: list[str] | None = None,
        exclude_schemas: list[str] | None = None,
        *,
        max_workers: int = Constants.DEFAULT_REFLECT_WORKERS,
    ) -> None:
        """Initialize the reflection adapter.

        Args:
            engine: SQLAlchemy engine connected to the database
            include_schemas: Optional whitelist of schema names to include
            exclude_schemas: Optional blacklist of schema names to exclude
            max_workers: Thread pool size for snapshot reflection
        """
        self.engine = engine
        self.include_schemas = include_schemas
        self.exclude_schemas = exclude_schemas
        self.max_workers = max(1, max_workers)

    @cached_property
    def dialect(self) -> DialectAdapter:
        """Dialect adapter resolved from the engine and its default schema."""
        try:
            default_schema = sa.inspect(self.engine).default_schema_name
        except SQLAlchemyError as e:
            error_msg = f"Failed to connect for reflection: {e}"
            raise ReflectionError(error_msg) from e
        return DialectAdapter.from_sqlalchemy(self.engine.dialect.name, default_schema)

    # ---- listing -------------------------------------------------------------
    def list_schemas(self) -> list[str]:
        """List database schemas with include/exclude filtering applied.

        Raises:
            ReflectionError: If schema listing fails
        """
        try:
            schemas = sa.inspect(self.engine).get_schema_names()
        except SQLAlchemyError as e:
            error_msg = f"Failed to list database schemas: {e}"
            raise ReflectionError(error_msg) from e

        dialect_name = self.engine.dialect.name
        excluded_set = {
            schema.lower()
            for schema in (self.exclude_schemas or default_excluded_schemas(dialect_name))
        }
        filtered = [
            schema
            for schema in schemas
            if schema.lower() not in excluded_set and not is_system_schema(schema, dialect_name)
        ]

        if self.include_schemas:
            allowed_set = {schema.lower() for schema in self.include_schemas}
            filtered = [schema for schema in filtered if schema.lower() in allowed_set]
        elif self.dialect.dialect is DatabaseDialect.MYSQL and self.dialect.default_schema:
            # MySQL schemas are databases; stay inside the connected one
            filtered = [schema for schema in filtered if schema == self.dialect.default_schema]

        return filtered

    def list_tables(self) -> list[TableReference]:
        """List every table in the included schemas, ordered by schema and name.

        Raises:
            ReflectionError: If listing fails for any schema
        """
        tables: list[TableReference] = []
        with self.engine.connect() as conn:
            insp: Inspector = sa.inspect(conn)
            for schema in self.list_schemas():
                try:
                    names = insp.get_table_names(schema=schema)
                except SQLAlchemyError as e:
                    error_msg = f"Cannot list tables for schema {schema}: {e}"
                    raise ReflectionError(error_msg) from e
                _logger.debug("%s: %d tables", schema, len(names))
                tables.extend(TableReference(schema=schema, table=name) for name in sorted(names))
        return tables

    # ---- SchemaProvider ----------------------------------------------------
    def fetch_schemas(self) -> list[TableSchema]:
        """Reflect every table concurrently into a complete snapshot.

        Raises:
            ReflectionError: If any table fails to reflect
        """
        start = now()
        tables = self.list_tables()
        _logger.info("Reflecting %d tables with %d workers", len(tables), self.max_workers)

        if self.max_workers == 1 or len(tables) <= 1:
            schemas = [self.fetch_table_schema(t.table, t.schema) for t in tables]
        else:
            with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
                futures = [
                    pool.submit(self.fetch_table_schema, t.table, t.schema) for t in tables
                ]
                schemas = self._gather(futures)

        _logger.info("Reflected %d tables in %.2fs", len(schemas), now() - start)
        return schemas

    def fetch_table_schema(self, table: str, schema: str | None = None) -> TableSchema:
        """Reflect one table.

        Args:
            table: Table name
            schema: Schema name; the connection default when omitted

        Raises:
            ReflectionError: If the table does not exist or reflection fails
        """
        schema_name = schema or self.dialect.default_schema
        _logger.debug("Reflecting table: %s.%s", schema_name, table)
        try:
            with self.engine.connect() as conn:
                insp: Inspector = sa.inspect(conn)
                # Empty schema name means the connection default
                sa_schema = schema_name or None
                columns = insp.get_columns(table, schema=sa_schema)
                pk = insp.get_pk_constraint(table, schema=sa_schema)
                fks = insp.get_foreign_keys(table, schema=sa_schema)
                indexes = insp.get_indexes(table, schema=sa_schema)
                comment = self._table_comment(insp, table, sa_schema)
        except NoSuchTableError as e:
            error_msg = f"Table not found: {schema_name}.{table}"
            raise ReflectionError(error_msg) from e
        except SQLAlchemyError as e:
            error_msg = f"Failed to reflect {schema_name}.{table}: {e}"
            raise ReflectionError(error_msg) from e

        primary_key = self._primary_key(pk, table)
        return TableSchema(
            schema=schema_name,
            name=table,
            comment=comment,
            columns=tuple(
                self._column(col, schema_name, table, position)
                for position, col in enumerate(columns, start=1)
            ),
            primary_key=primary_key,
            foreign_keys=tuple(
                self._foreign_key(fk, schema_name, table, idx) for idx, fk in enumerate(fks)
            ),
            indexes=self._indexes(indexes, primary_key, schema_name, table),
        )

    # ---- internals ---------------------------------------------------------
    @staticmethod
    def _gather(futures: list[Future[TableSchema]]) -> list[TableSchema]:
        results: list[TableSchema] = []
        for future in futures:
            try:
                results.append(future.result())
            except ReflectionError:
                for pending in futures:
                    pending.cancel()
                raise
        return results

    @staticmethod
    def _table_comment(insp: Inspector, table: str, schema: str | None) -> str | None:
        try:
            return insp.get_table_comment(table, schema=schema).get("text")
        except NotImplementedError:
            return None

    def _column(
        self, col: dict[str, Any], schema: str, table: str, position: int
    ) -> ColumnSchema:
        col_type = col["type"]
        default = col.get("default")
        return ColumnSchema(
            schema=schema,
            table=table,
            name=col["name"],
            ordinal_position=position,
            data_type=str(getattr(col_type, "__visit_name__", type(col_type).__name__)).lower(),
            type_name=self._type_name(col_type),
            nullable=bool(col.get("nullable", True)),
            default=None if default is None else str(default),
            max_length=_int_or_none(getattr(col_type, "length", None)),
            numeric_precision=_int_or_none(getattr(col_type, "precision", None)),
            numeric_scale=_int_or_none(getattr(col_type, "scale", None)),
            comment=col.get("comment"),
        )

    def _type_name(self, col_type: sa.types.TypeEngine[Any]) -> str:
        try:
            return col_type.compile(dialect=self.engine.dialect).lower()
        except CompileError:
            return type(col_type).__name__.lower()

    @staticmethod
    def _primary_key(pk: dict[str, Any], table: str) -> PrimaryKey | None:
        columns = pk.get("constrained_columns") or []
        if not columns:
            return None
        return PrimaryKey(name=pk.get("name") or f"{table}_pkey", columns=tuple(columns))

    def _foreign_key(self, fk: dict[str, Any], schema: str, table: str, idx: int) -> ForeignKey:
        options = fk.get("options") or {}
        # No referred_schema means the target resolves through the search path
        referenced_schema = fk.get("referred_schema") or self.dialect.default_schema or schema
        return ForeignKey(
            name=fk.get("name") or f"{table}_fk_{idx}",
            columns=tuple(fk.get("constrained_columns") or ()),
            referenced_schema=referenced_schema,
            referenced_table=fk["referred_table"],
            referenced_columns=tuple(fk.get("referred_columns") or ()),
            on_update=options.get("onupdate"),
            on_delete=options.get("ondelete"),
        )

    def _indexes(
        self,
        indexes: list[dict[str, Any]],
        primary_key: PrimaryKey | None,
        schema: str,
        table: str,
    ) -> tuple[IndexSchema, ...]:
        result: list[IndexSchema] = []
        if primary_key is not None:
            result.append(
                IndexSchema(
                    name=primary_key.name,
                    is_unique=True,
                    is_primary=True,
                    definition=self._index_definition(
                        primary_key.name, primary_key.columns, schema, table, unique=True
                    ),
                )
            )
        for index in sorted(indexes, key=lambda ix: str(ix.get("name") or "")):
            name = index.get("name") or ""
            columns = [
                str(col) for col in (index.get("column_names") or []) if col is not None
            ] or [str(expr) for expr in (index.get("expressions") or [])]
            unique = bool(index.get("unique", False))
            result.append(
                IndexSchema(
                    name=name,
                    is_unique=unique,
                    is_primary=False,
                    definition=self._index_definition(
                        name, columns, schema, table, unique=unique
                    ),
                )
            )
        return tuple(result)

    def _index_definition(
        self,
        name: str,
        columns: tuple[str, ...] | list[str],
        schema: str,
        table: str,
        *,
        unique: bool,
    ) -> str:
        quote = self.dialect.quote_identifier
        unique_kw = "UNIQUE " if unique else ""
        cols = ", ".join(quote(col) for col in columns)
        return (
            f"CREATE {unique_kw}INDEX {quote(name)} "
            f"ON {self.dialect.qualify(schema, table)} ({cols})"
        )
