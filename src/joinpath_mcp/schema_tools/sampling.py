"""Database table sampling functionality.

This module provides the Sampler class that fetches a handful of rows from a
table so callers can see what the data looks like next to its structure.

Classes:
- Sampler: Row sampler built on SQLAlchemy Core and pandas
"""

from __future__ import annotations

from typing import Any

from fastmcp.utilities.logging import get_logger
import pandas as pd
from pandas.errors import DatabaseError
import sqlalchemy as sa
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError

from .constants import Constants
from .exceptions import SamplingError

# Logger
_logger = get_logger("schema_tools.sampling")


class Sampler:
    """Database table sampler.

    Attributes:
        engine: SQLAlchemy engine for database connections
        default_limit: Row limit used when a call does not pass one
        timeout_sec: Query timeout in seconds (PostgreSQL only)
    """

    def __init__(
        self,
        engine: Engine,
        default_limit: int = Constants.DEFAULT_SAMPLE_ROWS,
        timeout_sec: int = 5,
    ) -> None:
        self.engine = engine
        self.default_limit = default_limit
        self.timeout_sec = timeout_sec

    def sample(
        self, schema: str | None, table: str, limit: int | None = None
    ) -> list[dict[str, Any]]:
        """Sample rows from a table.

        Args:
            schema: Schema containing the table; ``None`` or empty for the
                connection default
            table: Table name to sample from
            limit: Maximum rows to return (clamped to 1..MAX_SAMPLE_ROWS)

        Returns:
            Rows as dictionaries keyed by column name; SQL NULLs are ``None``

        Raises:
            SamplingError: If the query fails
        """
        row_limit = min(max(1, limit or self.default_limit), Constants.MAX_SAMPLE_ROWS)
        table_obj = sa.table(table, schema=schema or None)
        sql_query = sa.select(sa.literal_column("*")).select_from(table_obj).limit(row_limit)

        _logger.debug("Sampling %s.%s (limit %d)", schema, table, row_limit)
        try:
            with self.engine.connect() as conn:
                self._apply_statement_timeout(conn)
                frame = pd.read_sql(sql_query, conn)
        except (SQLAlchemyError, DatabaseError) as e:
            # pandas re-raises driver errors as its own DatabaseError
            error_msg = f"Failed to sample {schema}.{table}: {e}"
            raise SamplingError(error_msg) from e

        return self._records(frame)

    # ---- internals ---------------------------------------------------------
    @staticmethod
    def _records(frame: pd.DataFrame) -> list[dict[str, Any]]:
        """Convert a frame to records, mapping NaN/NaT back to None."""
        cleaned = frame.astype(object).where(frame.notna(), None)
        return cleaned.to_dict(orient="records")  # type: ignore[return-value]

    def _apply_statement_timeout(self, conn: Connection) -> None:
        """Apply a per-query timeout where the dialect supports it."""
        if self.engine.dialect.name != "postgresql":
            return
        try:
            ms = max(1, int(self.timeout_sec * 1000))
            conn.execute(sa.text(f"SET statement_timeout = {ms}"))
        except SQLAlchemyError as e:
            _logger.debug("Could not apply statement timeout: %s", e)
