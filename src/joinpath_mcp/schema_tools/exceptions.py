"""Custom exception hierarchy for schema introspection and join resolution.

This module defines all custom exceptions used throughout the schema tools.
The hierarchy separates transient metadata failures from structural defects
in the metadata itself, so callers can react to each appropriately.

Exception Categories:
- Base exception for general schema tool errors
- Reflection and sampling errors for database access failures
- Structural errors for malformed foreign keys and join relations
- Internal consistency errors for a broken relation index

A missing join path is not an error; resolvers return ``None`` or an
empty list for that case.
"""

from __future__ import annotations


class SchemaExplorerError(Exception):
    """Base exception for schema tool operations.

    All other custom exceptions in this module inherit from this class.
    """


class ReflectionError(SchemaExplorerError):
    """Raised when database schema reflection fails.

    This exception is raised when the system cannot successfully reflect
    database schema information, such as when:
    - Database connection fails
    - Schema or table access is denied
    - A table disappears between listing and reflection
    """


class SamplingError(SchemaExplorerError):
    """Raised when sampling rows from a table fails."""


class UnsupportedDialectError(SchemaExplorerError):
    """Raised when a database URL or engine uses an unsupported dialect."""


class InvalidForeignKeyError(SchemaExplorerError):
    """Raised when a foreign key has empty or mismatched column lists."""


class JoinSynthesisError(SchemaExplorerError):
    """Raised when a join path cannot be rendered into SQL.

    Typical causes are a relation with empty, mismatched, or blank column
    names, or a path table whose schema was not supplied.
    """


class RelationIndexError(SchemaExplorerError):
    """Raised when the graph has an edge the relation index cannot justify.

    This indicates an internal invariant violation in graph construction,
    never a property of the user's schema.
    """
