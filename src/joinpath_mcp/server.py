"""FastMCP server implementation for joinpath-mcp."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import dotenv
from fastmcp import FastMCP
from fastmcp.utilities.logging import get_logger
from starlette.requests import Request
from starlette.responses import JSONResponse

from joinpath_mcp.schema_tools.mcp_tools import register_schema_tools
from joinpath_mcp.services.schema_service_manager import SchemaServiceManager

# Load environment variables
dotenv.load_dotenv()

_logger = get_logger(__name__)


# -- Context Manager for SchemaService initialization -------------------
@asynccontextmanager
async def lifespan(_mcp_instance: FastMCP) -> AsyncGenerator[None]:
    """FastMCP lifespan context manager for schema service initialization."""
    manager = SchemaServiceManager.get_instance()
    try:
        _logger.info("Starting SchemaService initialization in background during lifespan startup")
        manager.start_background_initialization()
        yield
    finally:
        _logger.info("Shutting down SchemaService during lifespan shutdown")
        await manager.shutdown()


mcp = FastMCP(
    name="joinpath-mcp",
    instructions=(
        "Database schema introspection server. Use list_tables and describe_table to "
        "orient yourself, then find_join_path to learn how tables connect through "
        "foreign keys and get ready-to-run JOIN SQL."
    ),
    lifespan=lifespan,
)

# -- Tool Registration -------------------------------------------------------
register_schema_tools(mcp)


# -- Health Check ----------------------------------------------------------
@mcp.custom_route("/health", methods=["GET"])
async def health_check(_request: Request) -> JSONResponse:
    state = SchemaServiceManager.get_instance().status()
    return JSONResponse(
        {"status": "healthy", "service": "joinpath-mcp", "schema_phase": state.phase.name}
    )
