"""Configuration service for joinpath-mcp.

This module provides configuration management and database connection
utilities. It centralizes environment variable handling, database URL
normalization and engine creation.
"""

from __future__ import annotations

import os

import sqlalchemy as sa

from joinpath_mcp.schema_tools.constants import Constants, JoinStrategy
from joinpath_mcp.schema_tools.dialects import DialectAdapter
from joinpath_mcp.schema_tools.models import ResolverConfig

# URL schemes accepted as shorthands, mapped to SQLAlchemy driver URLs
_URL_SCHEME_ALIASES: dict[str, str] = {
    "postgres://": "postgresql://",
    "mysql://": "mysql+pymysql://",
    "mysql2://": "mysql+pymysql://",
}


def _int_env(name: str, default: int, *, minimum: int, maximum: int | None = None) -> int:
    """Read an integer environment variable, tolerating bad values."""
    val = os.getenv(name, str(default))
    try:
        n = int(val)
    except ValueError:
        n = default
    n = max(minimum, n)
    return n if maximum is None else min(maximum, n)


def _list_env(name: str) -> list[str] | None:
    """Read a comma-separated environment variable; None when unset or blank."""
    items = [item.strip() for item in os.getenv(name, "").split(",") if item.strip()]
    return items or None


class ConfigService:
    """Service for managing configuration and database connections."""

    @staticmethod
    def get_database_url() -> str:
        """Get database URL from environment variable.

        Returns:
            Database URL string

        Raises:
            ValueError: If JOINPATH_MCP_DATABASE_URL environment variable is not set
        """
        database_url = os.getenv("JOINPATH_MCP_DATABASE_URL")
        if not database_url:
            error_msg = "JOINPATH_MCP_DATABASE_URL environment variable not set"
            raise ValueError(error_msg)
        return database_url

    @staticmethod
    def normalize_database_url(url: str) -> str:
        """Expand shorthand URL schemes into SQLAlchemy driver URLs.

        Example:
            >>> ConfigService.normalize_database_url("postgres://localhost/shop")
            'postgresql://localhost/shop'
        """
        for alias, scheme in _URL_SCHEME_ALIASES.items():
            if url.startswith(alias):
                return scheme + url[len(alias) :]
        return url

    @staticmethod
    def create_database_engine(url: str) -> sa.Engine:
        """Create SQLAlchemy database engine.

        Args:
            url: Database connection URL (shorthand schemes accepted)

        Returns:
            SQLAlchemy Engine instance

        Raises:
            UnsupportedDialectError: If the URL names an unsupported database
        """
        engine = sa.create_engine(ConfigService.normalize_database_url(url))
        # Fail on unsupported dialects before any connection is attempted
        DialectAdapter.from_sqlalchemy(engine.dialect.name)
        return engine

    # ---- Join resolution ---------------------------------------------------
    @staticmethod
    def max_depth() -> int:
        """Default total relation budget for join path search."""
        return _int_env(
            "JOINPATH_MCP_MAX_DEPTH",
            Constants.DEFAULT_MAX_DEPTH,
            minimum=1,
            maximum=Constants.MAX_DEPTH_LIMIT,
        )

    @staticmethod
    def max_candidates() -> int:
        """Cap on unique candidates collected by exhaustive search."""
        return _int_env("JOINPATH_MCP_MAX_CANDIDATES", Constants.DEFAULT_MAX_CANDIDATES, minimum=1)

    @staticmethod
    def reflect_workers() -> int:
        """Thread pool size for per-table reflection."""
        return _int_env("JOINPATH_MCP_REFLECT_WORKERS", Constants.DEFAULT_REFLECT_WORKERS, minimum=1)

    @staticmethod
    def get_resolver_config() -> ResolverConfig:
        """Build the resolver configuration from the environment.

        Returns:
            ResolverConfig using environment overrides where set
        """
        return ResolverConfig(
            max_depth=ConfigService.max_depth(),
            max_candidates=ConfigService.max_candidates(),
            strategy=JoinStrategy.SHORTEST,
            reflect_workers=ConfigService.reflect_workers(),
            include_schemas=_list_env("JOINPATH_MCP_INCLUDE_SCHEMAS"),
            exclude_schemas=_list_env("JOINPATH_MCP_EXCLUDE_SCHEMAS"),
        )

    # ---- Sampling ----------------------------------------------------------
    @staticmethod
    def sample_rows() -> int:
        """Default number of rows returned by table sampling."""
        return _int_env(
            "JOINPATH_MCP_SAMPLE_ROWS",
            Constants.DEFAULT_SAMPLE_ROWS,
            minimum=1,
            maximum=Constants.MAX_SAMPLE_ROWS,
        )
