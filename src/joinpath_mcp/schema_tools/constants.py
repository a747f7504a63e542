"""Constants and enums for schema tools.

This module contains the configuration defaults and enumeration definitions
used by reflection, path search, and SQL synthesis.
"""

from __future__ import annotations

from enum import Enum
from typing import Final


class Constants:
    """Configuration constants for schema tools."""

    # Path search
    DEFAULT_MAX_DEPTH: Final[int] = 6
    MAX_DEPTH_LIMIT: Final[int] = 8
    DEFAULT_MAX_CANDIDATES: Final[int] = 500

    # Reflection and sampling
    DEFAULT_SAMPLE_ROWS: Final[int] = 10
    MAX_SAMPLE_ROWS: Final[int] = 1000
    DEFAULT_REFLECT_WORKERS: Final[int] = 8

    # Key canonicalization
    TABLE_KEY_SEPARATOR: Final[str] = "."
    RELATION_KEY_SEPARATOR: Final[str] = "->"


class JoinStrategy(Enum):
    """Search strategy used to connect a set of tables."""

    SHORTEST = "shortest"
    EXHAUSTIVE = "all"


class DatabaseDialect(Enum):
    """Supported database dialects, keyed by their SQLAlchemy names."""

    POSTGRES = "postgresql"
    MYSQL = "mysql"
    SQLITE = "sqlite"
