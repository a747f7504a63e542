"""Pydantic models for MCP tool and CLI I/O.

Minimal, task-focused models used by the MCP server tools, the CLI and the
response builders. Internal schema snapshots stay dataclasses in
``schema_tools.models``; these models are their serializable views.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field

# -----------------------
# Schema Models
# -----------------------


class TableRef(BaseModel):
    """Schema-qualified table name."""

    schema_name: str = Field(description="Schema containing the table")
    table: str = Field(description="Table name")


class ColumnInfo(BaseModel):
    """Column structure as reflected from the database."""

    name: str = Field(description="Column name")
    position: int = Field(description="1-based ordinal position")
    data_type: str = Field(description="Generic SQL data type")
    type_name: str | None = Field(default=None, description="Dialect-specific type")
    nullable: bool = Field(description="Whether NULL values are allowed")
    default: str | None = Field(default=None, description="Default expression")
    max_length: int | None = Field(default=None, description="Character maximum length")
    numeric_precision: int | None = Field(default=None, description="Numeric precision")
    numeric_scale: int | None = Field(default=None, description="Numeric scale")
    comment: str | None = Field(default=None, description="Column comment")
    is_primary_key: bool = Field(default=False, description="Part of the primary key")


class ForeignKeyInfo(BaseModel):
    """Outgoing foreign key constraint."""

    name: str = Field(description="Constraint name")
    columns: list[str] = Field(description="Referencing columns, in key order")
    referenced_schema: str = Field(description="Schema of the referenced table")
    referenced_table: str = Field(description="Referenced table")
    referenced_columns: list[str] = Field(description="Referenced columns, paired by position")
    on_update: str | None = Field(default=None, description="ON UPDATE rule")
    on_delete: str | None = Field(default=None, description="ON DELETE rule")


class IndexInfo(BaseModel):
    """Index definition."""

    name: str = Field(description="Index name")
    is_unique: bool = Field(description="Whether the index enforces uniqueness")
    is_primary: bool = Field(description="Whether this is the primary key index")
    definition: str = Field(description="CREATE INDEX statement")


class TableDetail(BaseModel):
    """Full structure of one table."""

    schema_name: str = Field(description="Schema containing the table")
    table: str = Field(description="Table name")
    comment: str | None = Field(default=None, description="Table comment")
    columns: list[ColumnInfo] = Field(default_factory=list, description="Columns in order")
    primary_key: list[str] = Field(default_factory=list, description="Primary key columns")
    foreign_keys: list[ForeignKeyInfo] = Field(
        default_factory=list, description="Outgoing foreign keys"
    )
    indexes: list[IndexInfo] = Field(default_factory=list, description="Indexes")


class SchemaTables(BaseModel):
    """Tables grouped under one schema."""

    table_count: int = Field(description="Number of tables in the schema")
    tables: list[str] = Field(default_factory=list, description="Sorted table names")


class DatabaseInfo(BaseModel):
    """Connection overview: dialect and tables per schema."""

    provider: str = Field(description="Database dialect (postgresql, mysql, sqlite)")
    default_schema: str = Field(description="Schema assumed for unqualified table names")
    table_count: int = Field(description="Total number of tables")
    schema_count: int = Field(description="Number of schemas with tables")
    schemas: dict[str, SchemaTables] = Field(
        default_factory=dict, description="Tables grouped by schema"
    )


class SampleResult(BaseModel):
    """Sampled rows from a table."""

    schema_name: str = Field(description="Schema containing the table")
    table: str = Field(description="Table name")
    row_count: int = Field(description="Number of rows returned")
    rows: list[dict[str, Any]] = Field(default_factory=list, description="Rows by column name")


class TableContext(BaseModel):
    """Table structure together with sample rows."""

    table: TableDetail = Field(description="Table structure")
    sample_data: list[dict[str, Any]] = Field(
        default_factory=list, description="Sample rows by column name"
    )


# -----------------------
# Join Models
# -----------------------


class JoinEndpointInfo(BaseModel):
    """One side of a join relation."""

    schema_name: str = Field(description="Schema of the table")
    table: str = Field(description="Table name")
    columns: list[str] = Field(description="Columns participating in the join")


class JoinRelationInfo(BaseModel):
    """Directed foreign key edge used to join ``target`` onto ``source``."""

    source: JoinEndpointInfo = Field(description="Side already present in the join")
    target: JoinEndpointInfo = Field(description="Side being joined in")
    is_nullable: bool = Field(description="Whether the referencing columns can be NULL")


class JoinPathInfo(BaseModel):
    """Tables and relations connecting the requested tables."""

    tables: list[TableRef] = Field(description="Tables in join order; the first is FROM")
    relations: list[JoinRelationInfo] = Field(description="One relation per JOIN clause")
    input_tables_count: int = Field(description="Number of distinct requested tables")
    total_tables_count: int = Field(description="Requested plus intermediate tables")
    total_joins: int = Field(description="Number of JOIN clauses")


class JoinQueryInfo(BaseModel):
    """A join path with its generated SQL."""

    join_path: JoinPathInfo = Field(description="Resolved join path")
    sql: str = Field(description="Generated SELECT statement")


class JoinPlanResult(BaseModel):
    """Outcome of a join resolution request."""

    requested_tables: list[TableRef] = Field(description="Tables requested, de-duplicated")
    strategy: Literal["shortest", "all"] = Field(description="Search strategy used")
    found: bool = Field(description="Whether at least one join path was found")
    paths: list[JoinQueryInfo] = Field(
        default_factory=list, description="Join paths, cheapest first"
    )
    notes: list[str] = Field(
        default_factory=list, description="Warnings from validating the generated SQL"
    )


# -----------------------
# Server Status
# -----------------------


class InitStatus(BaseModel):
    """Initialization status of the schema service."""

    phase: str = Field(description="IDLE, STARTING, RUNNING, READY, FAILED or STOPPED")
    attempts: int = Field(description="Number of completed initialization attempts")
    started_at: float | None = Field(default=None, description="Start timestamp (epoch)")
    completed_at: float | None = Field(default=None, description="Completion timestamp (epoch)")
    error_message: str | None = Field(default=None, description="Failure reason, if any")
    description: str = Field(description="Human-readable status")
