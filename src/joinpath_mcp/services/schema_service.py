"""Schema service for joinpath-mcp.

This module provides the business logic orchestration behind the MCP tools
and CLI commands. It coordinates the reflection adapter, sampler and join
resolver from schema_tools with the response builders.
"""

from __future__ import annotations

from collections.abc import Sequence

import sqlalchemy as sa

from joinpath_mcp.builders.response_builders import (
    DatabaseInfoBuilder,
    JoinPlanResultBuilder,
    SampleResultBuilder,
    TableDetailBuilder,
    table_ref,
)
from joinpath_mcp.models import (
    DatabaseInfo,
    JoinPlanResult,
    SampleResult,
    TableContext,
    TableDetail,
    TableRef,
)
from joinpath_mcp.schema_tools.constants import JoinStrategy
from joinpath_mcp.schema_tools.dialects import DialectAdapter
from joinpath_mcp.schema_tools.models import ResolverConfig, TableReference
from joinpath_mcp.schema_tools.reflection import ReflectionAdapter
from joinpath_mcp.schema_tools.resolver import JoinQuery, JoinResolver
from joinpath_mcp.schema_tools.sampling import Sampler
from joinpath_mcp.schema_tools.utils import parse_table_list
from joinpath_mcp.sqlglot_tools import (
    SqlglotService,
    SqlValidationRequest,
    map_sqlalchemy_to_sqlglot,
)


class SchemaService:
    """Service for orchestrating schema introspection and join resolution."""

    def __init__(
        self,
        engine: sa.Engine,
        config: ResolverConfig | None = None,
        *,
        sample_rows: int | None = None,
    ) -> None:
        """Initialize schema service with a database engine.

        Args:
            engine: SQLAlchemy database engine
            config: Join resolution and reflection settings
            sample_rows: Default row count for sampling
        """
        self.engine = engine
        self.config = config or ResolverConfig()
        self.provider = ReflectionAdapter(
            engine,
            include_schemas=self.config.include_schemas,
            exclude_schemas=self.config.exclude_schemas,
            max_workers=self.config.reflect_workers,
        )
        self.resolver = JoinResolver(self.provider, self.config)
        self.sampler = Sampler(engine) if sample_rows is None else Sampler(engine, sample_rows)
        self.sqlglot = SqlglotService(default_dialect=map_sqlalchemy_to_sqlglot(engine.dialect.name))

    @property
    def dialect(self) -> DialectAdapter:
        return self.provider.dialect

    def parse_table_list(self, text: str) -> list[TableReference]:
        """Parse ``"a, schema.b"`` into references, defaulting the schema.

        Raises:
            ValueError: If an entry is malformed or the list is empty
        """
        tables = parse_table_list(text, self.dialect.default_schema)
        if not tables:
            error_msg = "At least one table is required"
            raise ValueError(error_msg)
        return tables

    # ---- introspection -----------------------------------------------------
    def list_tables(self) -> list[TableRef]:
        return [table_ref(ref) for ref in self.provider.list_tables()]

    def describe_table(self, table: str, schema: str | None = None) -> TableDetail:
        """Get the full structure of one table.

        Raises:
            ReflectionError: If the table does not exist or cannot be reflected
        """
        return TableDetailBuilder.build(self.provider.fetch_table_schema(table, schema))

    def database_info(self) -> DatabaseInfo:
        """Summarize the connection: dialect and tables per schema."""
        return DatabaseInfoBuilder.build(
            self.dialect.name, self.dialect.default_schema, self.provider.list_tables()
        )

    def sample_table(
        self, table: str, schema: str | None = None, limit: int | None = None
    ) -> SampleResult:
        """Fetch sample rows from a table.

        Raises:
            SamplingError: If the query fails
        """
        schema_name = schema or self.dialect.default_schema
        rows = self.sampler.sample(schema_name, table, limit)
        return SampleResultBuilder.build(schema_name, table, rows)

    def table_context(
        self, table: str, schema: str | None = None, limit: int | None = None
    ) -> TableContext:
        """Get a table's structure together with sample rows.

        Raises:
            ReflectionError: If the table cannot be reflected
            SamplingError: If sampling fails
        """
        detail = self.describe_table(table, schema)
        rows = self.sampler.sample(detail.schema_name, detail.table, limit)
        return TableContext(table=detail, sample_data=rows)

    # ---- joins -------------------------------------------------------------
    def join_tables(
        self,
        tables: Sequence[TableReference],
        strategy: JoinStrategy | None = None,
        max_depth: int | None = None,
    ) -> JoinPlanResult:
        """Resolve join paths between tables and render their SQL.

        Args:
            tables: Tables to connect; the first anchors the FROM clause
            strategy: Search strategy; the configured default when omitted
            max_depth: Total relation budget; the configured one when omitted

        Returns:
            JoinPlanResult with ``found=False`` when the tables cannot be
            connected

        Raises:
            ValueError: If no tables are given or max_depth is out of range
            ReflectionError: If the schema snapshot cannot be fetched
            JoinSynthesisError: If a resolved path cannot be rendered
        """
        chosen = strategy or self.config.strategy
        queries = self.resolver.get_table_joins(tables, chosen, max_depth)
        requested = list(dict.fromkeys(tables))
        return JoinPlanResultBuilder.build(requested, chosen, queries, self._sql_notes(queries))

    # ---- internals ---------------------------------------------------------
    def _sql_notes(self, queries: list[JoinQuery]) -> list[str]:
        """Cross-check generated SQL with sqlglot; one note per problem."""
        notes: list[str] = []
        for idx, query in enumerate(queries, start=1):
            result = self.sqlglot.validate(
                SqlValidationRequest(sql=query.sql, dialect=self.sqlglot.default_dialect)
            )
            if not result.is_valid:
                notes.append(f"Path {idx}: generated SQL did not parse: {result.error_message}")
                continue
            meta = self.sqlglot.join_metadata(query.sql)
            if meta is not None and meta.join_count != query.join_path.total_joins:
                notes.append(
                    f"Path {idx}: expected {query.join_path.total_joins} JOIN clauses, "
                    f"parsed {meta.join_count}"
                )
        return notes
