"""SQLGlot-backed checks for generated SQL.

Provides a typed service wrapper around sqlglot. Implementation is pure and
dependency-injected for easy testing.
"""

from __future__ import annotations

from .models import Dialect, SqlJoinMetadata, SqlValidationRequest, SqlValidationResult
from .service import SqlglotService, map_sqlalchemy_to_sqlglot

__all__ = [
    "Dialect",
    "SqlJoinMetadata",
    "SqlValidationRequest",
    "SqlValidationResult",
    "SqlglotService",
    "map_sqlalchemy_to_sqlglot",
]
