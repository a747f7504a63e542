"""Services package for joinpath-mcp.

This package contains service classes that handle business logic and
orchestration. Services coordinate between the schema_tools modules and the
response builders.

Main Components:
- ConfigService: Configuration and database connection management
- SchemaService: Schema introspection and join resolution orchestration
- SchemaServiceManager: Process-wide SchemaService for the MCP server
"""

from .config_service import ConfigService
from .schema_service import SchemaService
from .schema_service_manager import SchemaServiceManager

__all__ = [
    "ConfigService",
    "SchemaService",
    "SchemaServiceManager",
]
