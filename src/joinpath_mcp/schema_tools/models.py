"""Data models for schema introspection and join resolution.

This module contains the data classes used to represent database schema
metadata and resolved join paths. Schema models are immutable snapshots
produced by a metadata provider for a single request; join models are the
resolver's output.

Models:
- ColumnSchema, PrimaryKey, ForeignKey, IndexSchema, TableSchema: schema snapshot
- TableReference: identifies a table within a database
- JoinEndpoint, JoinRelation: a directed, foreign-key-derived edge
- JoinPath: tables and relations connecting a requested set of tables
- ResolverConfig: tunables for path search
"""

from __future__ import annotations

from dataclasses import dataclass, field

from .constants import Constants, JoinStrategy
from .exceptions import InvalidForeignKeyError


@dataclass(frozen=True)
class TableReference:
    """Schema-qualified table identifier."""

    schema: str
    table: str

    @property
    def key(self) -> str:
        """Canonical ``"schema.table"`` key."""
        return f"{self.schema}{Constants.TABLE_KEY_SEPARATOR}{self.table}"


@dataclass(frozen=True)
class ColumnSchema:
    """Structural metadata for a single table column.

    Attributes:
        schema: Schema of the owning table
        table: Name of the owning table
        name: Column name as defined in the database
        ordinal_position: 1-based position within the table
        data_type: Generic SQL data type (e.g. ``integer``, ``varchar``)
        type_name: Dialect-specific type name (e.g. ``int4``, ``varchar(255)``)
        nullable: Whether the column accepts NULL values
        default: Default expression, if any
        max_length: Character maximum length, if applicable
        numeric_precision: Numeric precision, if applicable
        numeric_scale: Numeric scale, if applicable
        comment: Database comment, if available
    """

    schema: str
    table: str
    name: str
    ordinal_position: int
    data_type: str
    type_name: str | None = None
    nullable: bool = True
    default: str | None = None
    max_length: int | None = None
    numeric_precision: int | None = None
    numeric_scale: int | None = None
    comment: str | None = None


@dataclass(frozen=True)
class PrimaryKey:
    """Primary key constraint; column order matches the declared key order."""

    name: str
    columns: tuple[str, ...]


@dataclass(frozen=True)
class ForeignKey:
    """Foreign key constraint, composite-capable.

    ``columns`` and ``referenced_columns`` are paired by position.
    """

    name: str
    columns: tuple[str, ...]
    referenced_schema: str
    referenced_table: str
    referenced_columns: tuple[str, ...]
    on_update: str | None = None
    on_delete: str | None = None

    @property
    def referenced(self) -> TableReference:
        return TableReference(schema=self.referenced_schema, table=self.referenced_table)

    def validate(self) -> None:
        """Check that the column lists are non-empty, paired, and named.

        Raises:
            InvalidForeignKeyError: If the foreign key is structurally malformed
        """
        if not self.columns or not self.referenced_columns:
            error_msg = (
                f"Foreign key '{self.name}' to {self.referenced_table} has empty column lists"
            )
            raise InvalidForeignKeyError(error_msg)
        if len(self.columns) != len(self.referenced_columns):
            error_msg = (
                f"Foreign key '{self.name}' to {self.referenced_table} pairs "
                f"{len(self.columns)} columns with {len(self.referenced_columns)}"
            )
            raise InvalidForeignKeyError(error_msg)
        if not all(self.columns) or not all(self.referenced_columns):
            error_msg = f"Foreign key '{self.name}' to {self.referenced_table} has a blank column"
            raise InvalidForeignKeyError(error_msg)


@dataclass(frozen=True)
class IndexSchema:
    """Index metadata; used only for uniqueness annotations."""

    name: str
    is_unique: bool
    is_primary: bool
    definition: str


@dataclass(frozen=True)
class TableSchema:
    """Immutable snapshot of one table's structure.

    Attributes:
        schema: Database schema name containing this table
        name: Table name as defined in the database
        comment: Table comment, if available
        columns: Columns ordered by ordinal position
        primary_key: Primary key constraint, if the table has one
        foreign_keys: Outgoing foreign key constraints
        indexes: Index definitions
    """

    schema: str
    name: str
    comment: str | None = None
    columns: tuple[ColumnSchema, ...] = ()
    primary_key: PrimaryKey | None = None
    foreign_keys: tuple[ForeignKey, ...] = ()
    indexes: tuple[IndexSchema, ...] = ()

    @property
    def key(self) -> str:
        return self.reference.key

    @property
    def reference(self) -> TableReference:
        return TableReference(schema=self.schema, table=self.name)

    def column(self, name: str) -> ColumnSchema | None:
        """Return the column with the given name, if present."""
        for col in self.columns:
            if col.name == name:
                return col
        return None

    def ordered_columns(self) -> list[ColumnSchema]:
        """Columns sorted by ordinal position."""
        return sorted(self.columns, key=lambda col: col.ordinal_position)


@dataclass(frozen=True)
class JoinEndpoint:
    """One side of a join relation: a table and its participating columns."""

    schema: str
    table: str
    columns: tuple[str, ...]

    @property
    def reference(self) -> TableReference:
        return TableReference(schema=self.schema, table=self.table)

    @property
    def key(self) -> str:
        return self.reference.key


@dataclass(frozen=True)
class JoinRelation:
    """Directed foreign-key-derived edge with its exact column mapping.

    ``source`` is the side already present in a join; ``target`` is the side
    being joined in. For a relation built from a foreign key, ``source`` owns
    the foreign key and ``is_nullable`` is True when any of its columns is
    nullable. Reversed relations are always non-nullable because the
    referenced key cannot be NULL.
    """

    source: JoinEndpoint
    target: JoinEndpoint
    is_nullable: bool = False

    def reversed(self) -> JoinRelation:
        """Return the synthetic reverse relation."""
        return JoinRelation(source=self.target, target=self.source, is_nullable=False)

    def signature(self) -> str:
        """Orientation-free identity of the underlying foreign key edge."""
        sides = sorted(
            f"{side.key}({','.join(side.columns)})" for side in (self.source, self.target)
        )
        return "<>".join(sides)


@dataclass(frozen=True)
class JoinPath:
    """Resolved connection between a set of tables.

    Attributes:
        tables: Every table in the path (requested and intermediate), in
            discovery order; the first one anchors the FROM clause
        relations: Relations in the order they connect new tables
        input_tables_count: Number of distinct requested tables
    """

    tables: tuple[TableReference, ...]
    relations: tuple[JoinRelation, ...]
    input_tables_count: int

    @property
    def total_tables_count(self) -> int:
        return len(self.tables)

    @property
    def total_joins(self) -> int:
        return len(self.relations)


@dataclass
class ResolverConfig:
    """Configuration for join path resolution.

    Attributes:
        max_depth: Maximum total relations in any resolved path
        max_candidates: Cap on unique candidates for the exhaustive strategy
        strategy: Default search strategy
        reflect_workers: Thread pool size for per-table reflection
    """

    max_depth: int = Constants.DEFAULT_MAX_DEPTH
    max_candidates: int = Constants.DEFAULT_MAX_CANDIDATES
    strategy: JoinStrategy = JoinStrategy.SHORTEST
    reflect_workers: int = Constants.DEFAULT_REFLECT_WORKERS
    include_schemas: list[str] | None = field(default=None)
    exclude_schemas: list[str] | None = field(default=None)
