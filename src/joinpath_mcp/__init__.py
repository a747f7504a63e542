"""joinpath-mcp package for schema introspection and join path resolution.

Provides a Model Context Protocol (FastMCP) server and a CLI that describe
database tables and find how to connect a set of tables through foreign
keys, rendering the join as SQL.
"""

from joinpath_mcp.models import (
    DatabaseInfo,
    JoinPathInfo,
    JoinPlanResult,
    TableContext,
    TableDetail,
    TableRef,
)
from joinpath_mcp.services import ConfigService, SchemaService

__all__ = [  # noqa: RUF022
    # Core models
    "DatabaseInfo",
    "JoinPathInfo",
    "JoinPlanResult",
    "TableContext",
    "TableDetail",
    "TableRef",
    # Services
    "ConfigService",
    "SchemaService",
]
