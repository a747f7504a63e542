"""Response builders for joinpath-mcp.

This module contains builder classes that construct response models from
schema snapshots and resolved join paths. Each builder turns internal
dataclasses into the pydantic models returned by MCP tools and the CLI.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable
from typing import TYPE_CHECKING, Any

from joinpath_mcp.models import (
    ColumnInfo,
    DatabaseInfo,
    ForeignKeyInfo,
    IndexInfo,
    JoinEndpointInfo,
    JoinPathInfo,
    JoinPlanResult,
    JoinQueryInfo,
    JoinRelationInfo,
    SampleResult,
    SchemaTables,
    TableDetail,
    TableRef,
)

if TYPE_CHECKING:
    from joinpath_mcp.schema_tools.constants import JoinStrategy
    from joinpath_mcp.schema_tools.models import (
        JoinEndpoint,
        JoinPath,
        JoinRelation,
        TableReference,
        TableSchema,
    )
    from joinpath_mcp.schema_tools.resolver import JoinQuery


def table_ref(reference: TableReference) -> TableRef:
    return TableRef(schema_name=reference.schema, table=reference.table)


class TableDetailBuilder:
    """Builder for TableDetail objects."""

    @staticmethod
    def build(table_schema: TableSchema) -> TableDetail:
        """Build the serializable view of a table snapshot.

        Args:
            table_schema: Reflected table structure

        Returns:
            TableDetail with columns in ordinal order
        """
        pk_columns = list(table_schema.primary_key.columns) if table_schema.primary_key else []
        pk_set = set(pk_columns)
        return TableDetail(
            schema_name=table_schema.schema,
            table=table_schema.name,
            comment=table_schema.comment,
            columns=[
                ColumnInfo(
                    name=col.name,
                    position=col.ordinal_position,
                    data_type=col.data_type,
                    type_name=col.type_name,
                    nullable=col.nullable,
                    default=col.default,
                    max_length=col.max_length,
                    numeric_precision=col.numeric_precision,
                    numeric_scale=col.numeric_scale,
                    comment=col.comment,
                    is_primary_key=col.name in pk_set,
                )
                for col in table_schema.ordered_columns()
            ],
            primary_key=pk_columns,
            foreign_keys=[
                ForeignKeyInfo(
                    name=fk.name,
                    columns=list(fk.columns),
                    referenced_schema=fk.referenced_schema,
                    referenced_table=fk.referenced_table,
                    referenced_columns=list(fk.referenced_columns),
                    on_update=fk.on_update,
                    on_delete=fk.on_delete,
                )
                for fk in table_schema.foreign_keys
            ],
            indexes=[
                IndexInfo(
                    name=ix.name,
                    is_unique=ix.is_unique,
                    is_primary=ix.is_primary,
                    definition=ix.definition,
                )
                for ix in table_schema.indexes
            ],
        )


class DatabaseInfoBuilder:
    """Builder for DatabaseInfo objects."""

    @staticmethod
    def build(
        provider: str, default_schema: str, tables: Iterable[TableReference]
    ) -> DatabaseInfo:
        """Group table names by schema.

        Schemas keep first-seen order; table names are sorted within each.
        """
        by_schema: dict[str, list[str]] = defaultdict(list)
        for ref in tables:
            by_schema[ref.schema].append(ref.table)

        return DatabaseInfo(
            provider=provider,
            default_schema=default_schema,
            table_count=sum(len(names) for names in by_schema.values()),
            schema_count=len(by_schema),
            schemas={
                schema: SchemaTables(table_count=len(names), tables=sorted(names))
                for schema, names in by_schema.items()
            },
        )


class SampleResultBuilder:
    """Builder for SampleResult objects."""

    @staticmethod
    def build(schema: str, table: str, rows: list[dict[str, Any]]) -> SampleResult:
        return SampleResult(schema_name=schema, table=table, row_count=len(rows), rows=rows)


class JoinPlanResultBuilder:
    """Builder for join path responses."""

    @staticmethod
    def build_path(join_path: JoinPath) -> JoinPathInfo:
        """Build the serializable view of a resolved join path."""
        return JoinPathInfo(
            tables=[table_ref(ref) for ref in join_path.tables],
            relations=[
                JoinPlanResultBuilder._relation(relation) for relation in join_path.relations
            ],
            input_tables_count=join_path.input_tables_count,
            total_tables_count=join_path.total_tables_count,
            total_joins=join_path.total_joins,
        )

    @staticmethod
    def build(
        requested: list[TableReference],
        strategy: JoinStrategy,
        queries: list[JoinQuery],
        notes: list[str] | None = None,
    ) -> JoinPlanResult:
        """Build a JoinPlanResult from resolver output.

        Args:
            requested: De-duplicated requested tables
            strategy: Strategy used for the search
            queries: Resolved paths with SQL, cheapest first
            notes: Validation warnings to attach

        Returns:
            JoinPlanResult; ``found`` is False when ``queries`` is empty
        """
        return JoinPlanResult(
            requested_tables=[table_ref(ref) for ref in requested],
            strategy=strategy.value,
            found=bool(queries),
            paths=[
                JoinQueryInfo(join_path=JoinPlanResultBuilder.build_path(q.join_path), sql=q.sql)
                for q in queries
            ],
            notes=notes or [],
        )

    # ---- internals ---------------------------------------------------------
    @staticmethod
    def _relation(relation: JoinRelation) -> JoinRelationInfo:
        return JoinRelationInfo(
            source=JoinPlanResultBuilder._endpoint(relation.source),
            target=JoinPlanResultBuilder._endpoint(relation.target),
            is_nullable=relation.is_nullable,
        )

    @staticmethod
    def _endpoint(endpoint: JoinEndpoint) -> JoinEndpointInfo:
        return JoinEndpointInfo(
            schema_name=endpoint.schema, table=endpoint.table, columns=list(endpoint.columns)
        )
