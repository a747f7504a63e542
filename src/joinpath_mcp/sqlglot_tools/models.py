"""Typed Pydantic models for sqlglot checks on generated SQL."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

# sqlglot dialects for the supported databases, plus the generic fallback
Dialect = Literal["sql", "postgres", "mysql", "sqlite"]


class SqlValidationRequest(BaseModel):
    """Request to validate SQL syntax for a dialect."""

    sql: str = Field(description="SQL string to validate")
    dialect: Dialect = Field(description="Target SQL dialect for parsing")


class SqlValidationResult(BaseModel):
    """Validation result with optional normalized SQL for readability."""

    is_valid: bool = Field(description="True when the SQL parses successfully")
    error_message: str | None = Field(default=None, description="Parse error if invalid")
    normalized_sql: str | None = Field(
        default=None, description="Pretty-printed SQL when parsing succeeds"
    )
    target_dialect: Dialect = Field(description="Dialect used for parsing")


class SqlJoinMetadata(BaseModel):
    """Structural facts about a parsed join query."""

    tables: list[str] = Field(default_factory=list, description="Referenced table names")
    join_count: int = Field(description="Number of JOIN clauses")
    column_count: int = Field(description="Number of projected columns")
    target_dialect: Dialect = Field(description="Dialect used for parsing")
