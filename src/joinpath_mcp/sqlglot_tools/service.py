"""Sqlglot service layer providing typed, pure operations.

Used to double-check generated join SQL: that it parses for the target
dialect, and that its shape (tables, JOIN count) matches the resolved path.
"""

from __future__ import annotations

from functools import lru_cache
import logging

import sqlglot
from sqlglot import expressions as sgl_exp
from sqlglot.errors import SqlglotError

from .models import Dialect, SqlJoinMetadata, SqlValidationRequest, SqlValidationResult

SQLALCHEMY_TO_SQLGLOT: dict[str, Dialect] = {
    "postgresql": "postgres",
    "postgres": "postgres",
    "mysql": "mysql",
    "mariadb": "mysql",
    "sqlite": "sqlite",
}


def map_sqlalchemy_to_sqlglot(sa_dialect_name: str) -> Dialect:
    """Map a SQLAlchemy dialect name to a sqlglot dialect literal.

    Falls back to generic "sql" when unknown.
    """
    return SQLALCHEMY_TO_SQLGLOT.get(sa_dialect_name.lower(), "sql")


@lru_cache(maxsize=256)
def _cached_parse(sql: str, dialect: Dialect) -> sqlglot.Expression | None:
    """Small cache for parse results to speed up repetitive calls."""
    return sqlglot.parse_one(sql, dialect=dialect)


class SqlglotService:
    """Typed wrapper around sqlglot functionality.

    Methods avoid raising on unparsable SQL and instead return structured
    results that can be attached to a response as notes.
    """

    def __init__(
        self, default_dialect: Dialect = "sql", logger: logging.Logger | None = None
    ) -> None:
        self.default_dialect = default_dialect
        self._logger = logger or logging.getLogger(__name__)

    # ---- validation -----------------------------------------------------
    def validate(self, req: SqlValidationRequest) -> SqlValidationResult:
        """Parse and validate SQL, returning pretty SQL on success."""
        try:
            parsed = _cached_parse(req.sql, req.dialect)
        except SqlglotError as e:
            return SqlValidationResult(
                is_valid=False,
                error_message=f"SQL parsing error: {e}",
                normalized_sql=None,
                target_dialect=req.dialect,
            )
        if parsed is None:
            return SqlValidationResult(
                is_valid=False,
                error_message="Failed to parse SQL query",
                normalized_sql=None,
                target_dialect=req.dialect,
            )
        return SqlValidationResult(
            is_valid=True,
            error_message=None,
            normalized_sql=parsed.sql(dialect=req.dialect, pretty=True),
            target_dialect=req.dialect,
        )

    # ---- metadata -------------------------------------------------------
    def join_metadata(self, sql: str, dialect: Dialect | None = None) -> SqlJoinMetadata | None:
        """Extract table names and JOIN count from a SELECT statement.

        Returns:
            Metadata, or None when the SQL does not parse to a SELECT
        """
        target = dialect or self.default_dialect
        try:
            parsed = _cached_parse(sql, target)
        except SqlglotError as e:
            self._logger.warning("Metadata extraction failed: %s", e)
            return None
        if not isinstance(parsed, sgl_exp.Select):
            return None

        return SqlJoinMetadata(
            tables=[t.name for t in parsed.find_all(sgl_exp.Table) if t.name],
            join_count=len(parsed.args.get("joins") or []),
            column_count=len(parsed.expressions),
            target_dialect=target,
        )
