"""Command-line entrypoint for joinpath-mcp.

Without a subcommand the FastMCP server is started (equivalent to
``joinpath-mcp serve``). The remaining subcommands query a database directly
and print JSON (or SQL for ``join --output sql``) to stdout:

    joinpath-mcp list --db postgresql://localhost/shop
    joinpath-mcp table --table orders --with-sample
    joinpath-mcp join --tables orders,products --output sql

``--db`` defaults to ``JOINPATH_MCP_DATABASE_URL``. Errors are printed to
stderr as ``Error: <message>`` with exit status 1.
"""

from __future__ import annotations

import argparse
from collections.abc import Callable, Sequence
import sys
import traceback

import dotenv
from fastmcp.utilities.logging import get_logger
from pydantic import TypeAdapter
from sqlalchemy.exc import SQLAlchemyError

from joinpath_mcp.builders.response_builders import JoinPlanResultBuilder
from joinpath_mcp.models import JoinPathInfo, TableRef
from joinpath_mcp.schema_tools.constants import Constants, JoinStrategy
from joinpath_mcp.schema_tools.exceptions import SchemaExplorerError
from joinpath_mcp.services.config_service import ConfigService
from joinpath_mcp.services.schema_service import SchemaService

_logger = get_logger(__name__)

NO_JOIN_PATH_MESSAGE = "No join path found between the specified tables"


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for all subcommands."""
    parser = argparse.ArgumentParser(
        prog="joinpath-mcp",
        description="Database schema introspection and foreign-key join path resolution.",
    )
    sub = parser.add_subparsers(dest="command")

    sub.add_parser("serve", help="Run the MCP server (default)")

    def with_db(name: str, help_text: str) -> argparse.ArgumentParser:
        cmd = sub.add_parser(name, help=help_text)
        cmd.add_argument(
            "--db",
            default=None,
            help="Database URL (default: $JOINPATH_MCP_DATABASE_URL)",
        )
        return cmd

    def with_table(cmd: argparse.ArgumentParser) -> None:
        cmd.add_argument("--table", required=True, help="Table name")
        cmd.add_argument("--schema", default=None, help="Schema name (default: connection default)")

    list_cmd = with_db("list", "List all table names")
    list_cmd.add_argument("--output", choices=["simple", "json"], default="simple")

    table_cmd = with_db("table", "Describe a table")
    with_table(table_cmd)
    table_cmd.add_argument("--with-sample", action="store_true", help="Include sample rows")

    with_db("info", "Show database connection info")

    for name, help_text in (
        ("sample", "Show sample rows from a table"),
        ("context", "Show table structure and sample rows"),
    ):
        cmd = with_db(name, help_text)
        with_table(cmd)
        cmd.add_argument(
            "--limit",
            type=int,
            default=Constants.DEFAULT_SAMPLE_ROWS,
            help=f"Rows to sample (default: {Constants.DEFAULT_SAMPLE_ROWS})",
        )

    join_cmd = with_db("join", "Find the join path between tables")
    join_cmd.add_argument(
        "--tables", required=True, help="Comma-separated list of [schema.]table names"
    )
    join_cmd.add_argument("--output", choices=["json", "sql"], default="json")
    join_cmd.add_argument(
        "--strategy",
        choices=[s.value for s in JoinStrategy],
        default=JoinStrategy.SHORTEST.value,
        help="shortest: one path with the fewest joins; all: every path, cheapest first",
    )
    join_cmd.add_argument(
        "--max-depth",
        type=int,
        default=None,
        help=f"Maximum total joins, 1-{Constants.MAX_DEPTH_LIMIT}",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the CLI and return the process exit status."""
    dotenv.load_dotenv()
    args = build_parser().parse_args(argv)

    if args.command in (None, "serve"):
        return _serve()

    handler = _COMMANDS[args.command]
    try:
        service = _schema_service(args.db)
        try:
            return handler(service, args)
        finally:
            service.engine.dispose()
    except (SchemaExplorerError, SQLAlchemyError, ValueError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1


# ---- commands --------------------------------------------------------------
def _cmd_list(service: SchemaService, args: argparse.Namespace) -> int:
    tables = service.list_tables()
    if args.output == "json":
        print(TypeAdapter(list[TableRef]).dump_json(tables, indent=2).decode())
    else:
        for ref in tables:
            print(f"{ref.schema_name}.{ref.table}")
    return 0


def _cmd_table(service: SchemaService, args: argparse.Namespace) -> int:
    if args.with_sample:
        context = service.table_context(args.table, args.schema)
        print(context.model_dump_json(indent=2))
    else:
        print(service.describe_table(args.table, args.schema).model_dump_json(indent=2))
    return 0


def _cmd_info(service: SchemaService, _args: argparse.Namespace) -> int:
    print(service.database_info().model_dump_json(indent=2))
    return 0


def _cmd_sample(service: SchemaService, args: argparse.Namespace) -> int:
    result = service.sample_table(args.table, args.schema, args.limit)
    print(TypeAdapter(list[dict]).dump_json(result.rows, indent=2).decode())
    return 0


def _cmd_context(service: SchemaService, args: argparse.Namespace) -> int:
    context = service.table_context(args.table, args.schema, args.limit)
    print(context.model_dump_json(indent=2))
    return 0


def _cmd_join(service: SchemaService, args: argparse.Namespace) -> int:
    tables = service.parse_table_list(args.tables)
    queries = service.resolver.get_table_joins(
        tables, JoinStrategy(args.strategy), args.max_depth
    )
    if not queries:
        print(NO_JOIN_PATH_MESSAGE, file=sys.stderr)
        return 1

    if args.output == "sql":
        # Cheapest path first
        print(queries[0].sql)
    else:
        paths = [JoinPlanResultBuilder.build_path(q.join_path) for q in queries]
        print(TypeAdapter(list[JoinPathInfo]).dump_json(paths, indent=2).decode())
    return 0


_COMMANDS: dict[str, Callable[[SchemaService, argparse.Namespace], int]] = {
    "list": _cmd_list,
    "table": _cmd_table,
    "info": _cmd_info,
    "sample": _cmd_sample,
    "context": _cmd_context,
    "join": _cmd_join,
}


# ---- internals ---------------------------------------------------------------
def _schema_service(db_url: str | None) -> SchemaService:
    url = db_url or ConfigService.get_database_url()
    engine = ConfigService.create_database_engine(url)
    return SchemaService(
        engine, ConfigService.get_resolver_config(), sample_rows=ConfigService.sample_rows()
    )


def _serve() -> int:
    from joinpath_mcp.server import mcp  # noqa: PLC0415

    try:
        mcp.run()
    except KeyboardInterrupt:
        _logger.info("Interrupted by user. Exiting cleanly.")
    except Exception:  # noqa: BLE001
        traceback.print_exc(limit=1)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
