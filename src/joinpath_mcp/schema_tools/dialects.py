"""Dialect capabilities for join SQL synthesis.

The resolver and synthesizer never branch on which database they talk to;
they receive a ``DialectAdapter`` that knows how to quote identifiers and
which schema is the connection default, and a ``SchemaProvider`` that
supplies table metadata.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

from sqlglot import expressions as sgl_exp

from .constants import DatabaseDialect
from .exceptions import UnsupportedDialectError

if TYPE_CHECKING:
    from .models import TableSchema

# SQLAlchemy dialect names accepted for each supported dialect
_SQLALCHEMY_ALIASES: dict[str, DatabaseDialect] = {
    "postgresql": DatabaseDialect.POSTGRES,
    "postgres": DatabaseDialect.POSTGRES,
    "mysql": DatabaseDialect.MYSQL,
    "mariadb": DatabaseDialect.MYSQL,
    "sqlite": DatabaseDialect.SQLITE,
}

# sqlglot dialect used to render identifiers for each supported dialect
_SQLGLOT_DIALECTS: dict[DatabaseDialect, str] = {
    DatabaseDialect.POSTGRES: "postgres",
    DatabaseDialect.MYSQL: "mysql",
    DatabaseDialect.SQLITE: "sqlite",
}

_FALLBACK_DEFAULT_SCHEMAS: dict[DatabaseDialect, str] = {
    DatabaseDialect.POSTGRES: "public",
    DatabaseDialect.MYSQL: "",
    DatabaseDialect.SQLITE: "main",
}


@dataclass(frozen=True)
class DialectAdapter:
    """Identifier quoting rules and default schema for one dialect.

    Attributes:
        dialect: Explicit dialect tag
        default_schema: Schema that may be omitted from qualified names
    """

    dialect: DatabaseDialect
    default_schema: str = ""

    @classmethod
    def from_sqlalchemy(cls, name: str, default_schema: str | None = None) -> DialectAdapter:
        """Build an adapter from a SQLAlchemy dialect name.

        Args:
            name: SQLAlchemy dialect name (``engine.dialect.name``)
            default_schema: Connection default schema; falls back to the
                dialect's conventional default when not provided

        Raises:
            UnsupportedDialectError: If the dialect is not supported
        """
        dialect = _SQLALCHEMY_ALIASES.get(name.lower())
        if dialect is None:
            supported = ", ".join(sorted({d.value for d in DatabaseDialect}))
            error_msg = f"Unsupported database dialect '{name}'. Supported: {supported}"
            raise UnsupportedDialectError(error_msg)
        if default_schema is None:
            default_schema = _FALLBACK_DEFAULT_SCHEMAS[dialect]
        return cls(dialect=dialect, default_schema=default_schema)

    @property
    def name(self) -> str:
        return self.dialect.value

    @property
    def sqlglot_dialect(self) -> str:
        return _SQLGLOT_DIALECTS[self.dialect]

    def quote_identifier(self, name: str) -> str:
        """Quote a single identifier, escaping embedded quote characters."""
        return sgl_exp.to_identifier(name, quoted=True).sql(dialect=self.sqlglot_dialect)

    def is_default_schema(self, schema: str | None) -> bool:
        """True when the schema may be omitted from a qualified name."""
        return not schema or schema == self.default_schema

    def qualify(self, schema: str | None, table: str) -> str:
        """Render a table identifier, omitting a default or empty schema."""
        if self.is_default_schema(schema):
            return self.quote_identifier(table)
        return f"{self.quote_identifier(schema or '')}.{self.quote_identifier(table)}"


class SchemaProvider(Protocol):
    """Metadata collaborator consumed by the join resolver."""

    @property
    def dialect(self) -> DialectAdapter: ...

    def fetch_schemas(self) -> list[TableSchema]:
        """Return a complete, consistent snapshot of every table."""
        ...

    def fetch_table_schema(self, table: str, schema: str | None = None) -> TableSchema:
        """Return the snapshot of one table."""
        ...
