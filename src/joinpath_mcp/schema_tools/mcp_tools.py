"""MCP tool registration for schema introspection and join resolution.

Exposes a `register_schema_tools` function that attaches tools to a FastMCP
instance while delegating actual logic to the SchemaService obtained via
`SchemaServiceManager`.
"""

from __future__ import annotations

from typing import Annotated, Literal

from fastmcp import Context, FastMCP
from fastmcp.utilities.logging import get_logger
from pydantic import Field

from joinpath_mcp.models import (
    DatabaseInfo,
    InitStatus,
    JoinPlanResult,
    SampleResult,
    TableContext,
    TableDetail,
    TableRef,
)
from joinpath_mcp.schema_tools.constants import Constants, JoinStrategy
from joinpath_mcp.schema_tools.exceptions import SchemaExplorerError
from joinpath_mcp.schema_tools.utils import parse_table_reference
from joinpath_mcp.services.schema_service import SchemaService
from joinpath_mcp.services.schema_service_manager import SchemaServiceManager

_logger = get_logger(__name__)


def register_schema_tools(mcp: FastMCP, manager: SchemaServiceManager | None = None) -> None:
    """Register schema and join tools.

    Provides orientation tools (tables, structure, samples) and the join
    path tool that connects a set of tables through foreign keys.
    """

    mgr = manager or SchemaServiceManager.get_instance()

    async def _service(ctx: Context) -> SchemaService:
        try:
            return await mgr.get_schema_service()
        except RuntimeError as exc:
            await ctx.error(f"Schema service not ready: {exc}")
            raise

    @mcp.tool
    async def get_init_status(_ctx: Context) -> InitStatus:  # pyright: ignore[reportUnusedFunction]
        """Initialization status for first-step readiness checks.

        If phase != READY, relay the description to the user and retry later.
        """
        state = mgr.status()
        return InitStatus(
            phase=state.phase.name,
            attempts=state.attempts,
            started_at=state.started_at,
            completed_at=state.completed_at,
            error_message=state.error_message,
            description=state.description,
        )

    @mcp.tool
    async def list_tables(ctx: Context) -> list[TableRef]:  # pyright: ignore[reportUnusedFunction]
        """List every table as schema and table name."""
        schema_service = await _service(ctx)
        try:
            tables = schema_service.list_tables()
        except SchemaExplorerError as exc:
            await ctx.error(str(exc))
            raise
        _logger.info("Listed %d tables", len(tables))
        return tables

    @mcp.tool
    async def describe_table(  # pyright: ignore[reportUnusedFunction]
        ctx: Context,
        table: Annotated[str, Field(description="Table name")],
        schema: Annotated[
            str | None, Field(description="Schema name; the connection default when omitted")
        ] = None,
    ) -> TableDetail:
        """Describe a table's columns, primary key, foreign keys, and indexes."""
        _logger.info("Describing table: %s (schema=%s)", table, schema)
        schema_service = await _service(ctx)
        try:
            return schema_service.describe_table(table, schema)
        except SchemaExplorerError as exc:
            await ctx.error(str(exc))
            raise

    @mcp.tool
    async def get_database_info(ctx: Context) -> DatabaseInfo:  # pyright: ignore[reportUnusedFunction]
        """Database dialect, default schema, and tables grouped by schema."""
        schema_service = await _service(ctx)
        try:
            result = schema_service.database_info()
        except SchemaExplorerError as exc:
            await ctx.error(str(exc))
            raise
        _logger.info("Retrieved database info with %d tables", result.table_count)
        return result

    @mcp.tool
    async def sample_table(  # pyright: ignore[reportUnusedFunction]
        ctx: Context,
        table: Annotated[str, Field(description="Table name")],
        schema: Annotated[
            str | None, Field(description="Schema name; the connection default when omitted")
        ] = None,
        limit: Annotated[
            int,
            Field(ge=1, le=Constants.MAX_SAMPLE_ROWS, description="Maximum rows to return"),
        ] = Constants.DEFAULT_SAMPLE_ROWS,
    ) -> SampleResult:
        """Return sample rows from a table."""
        schema_service = await _service(ctx)
        try:
            result = schema_service.sample_table(table, schema, limit)
        except SchemaExplorerError as exc:
            await ctx.error(str(exc))
            raise
        _logger.info("Sampled %d rows from %s", result.row_count, table)
        return result

    @mcp.tool
    async def get_table_context(  # pyright: ignore[reportUnusedFunction]
        ctx: Context,
        table: Annotated[str, Field(description="Table name")],
        schema: Annotated[
            str | None, Field(description="Schema name; the connection default when omitted")
        ] = None,
        limit: Annotated[
            int,
            Field(ge=1, le=Constants.MAX_SAMPLE_ROWS, description="Maximum sample rows"),
        ] = Constants.DEFAULT_SAMPLE_ROWS,
    ) -> TableContext:
        """Describe a table and include sample rows in one call."""
        schema_service = await _service(ctx)
        try:
            return schema_service.table_context(table, schema, limit)
        except SchemaExplorerError as exc:
            await ctx.error(str(exc))
            raise

    @mcp.tool
    async def find_join_path(  # pyright: ignore[reportUnusedFunction]
        ctx: Context,
        tables: Annotated[
            list[str],
            Field(
                min_length=1,
                description=(
                    "Tables to connect, as 'table' or 'schema.table'. The first table anchors "
                    "the FROM clause; intermediate tables are added as needed."
                ),
            ),
        ],
        strategy: Annotated[
            Literal["shortest", "all"],
            Field(
                description=(
                    "'shortest' returns the single path with the fewest joins; 'all' returns "
                    "every path within max_depth, cheapest first."
                )
            ),
        ] = "shortest",
        max_depth: Annotated[
            int | None,
            Field(
                ge=1,
                le=Constants.MAX_DEPTH_LIMIT,
                description="Maximum total number of joins; server default when omitted",
            ),
        ] = None,
    ) -> JoinPlanResult:
        """Find how tables connect through foreign keys and generate the JOIN SQL.

        Returns found=false when the tables cannot be connected within max_depth.
        """
        _logger.info("Resolving join path for: %s (%s)", ", ".join(tables), strategy)
        schema_service = await _service(ctx)
        try:
            refs = [
                parse_table_reference(name, schema_service.dialect.default_schema)
                for name in tables
            ]
            result = schema_service.join_tables(refs, JoinStrategy(strategy), max_depth)
        except (SchemaExplorerError, ValueError) as exc:
            await ctx.error(str(exc))
            raise

        if not result.found:
            await ctx.warning("No join path found between the specified tables")
        _logger.info("Resolved %d join path(s)", len(result.paths))
        return result
