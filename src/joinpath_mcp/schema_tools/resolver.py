"""Join resolution facade.

This module ties together a metadata provider, the relationship graph
builder, the path search engine and the SQL synthesizer. Each call fetches a
fresh schema snapshot, so results always reflect the database as it is now,
and the SQL for a path is always rendered from the snapshot that produced it.

Classes:
- JoinQuery: A resolved join path together with its SQL
- JoinResolver: Entry point for join path discovery and SQL generation
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from fastmcp.utilities.logging import get_logger

from .constants import JoinStrategy
from .dialects import SchemaProvider
from .graph import GraphBuilder, RelationshipGraph
from .models import JoinPath, ResolverConfig, TableReference, TableSchema
from .path_search import PathSearchEngine, SearchResult
from .sql_synthesis import SqlSynthesizer
from .utils import now

# Logger
_logger = get_logger("schema_tools.resolver")


@dataclass(frozen=True)
class JoinQuery:
    """A join path and the SQL that realizes it."""

    join_path: JoinPath
    sql: str


@dataclass(frozen=True)
class _Snapshot:
    schemas: list[TableSchema]
    graph: RelationshipGraph


class JoinResolver:
    """Resolve how a set of tables connects and render the join SQL.

    Attributes:
        provider: Metadata collaborator supplying schema snapshots
        config: Search bounds and default strategy
    """

    def __init__(self, provider: SchemaProvider, config: ResolverConfig | None = None) -> None:
        self.provider = provider
        self.config = config or ResolverConfig()
        self._builder = GraphBuilder()

    def find_join_path(
        self, tables: Sequence[TableReference], max_depth: int | None = None
    ) -> JoinPath | None:
        """Find the shortest way to connect the given tables.

        Args:
            tables: Tables to connect; the first anchors the path
            max_depth: Total relation budget; the configured one when omitted

        Returns:
            JoinPath, or None when the tables cannot be connected

        Raises:
            ValueError: If no tables are given or max_depth is out of range
            ReflectionError: If the schema snapshot cannot be fetched
        """
        refs = self._input_refs(tables)
        snapshot = self._snapshot()
        result = self._engine(snapshot.graph, max_depth).find_shortest(list(refs))
        if result is None:
            return None
        return self._to_join_path(snapshot.graph, result, refs)

    def find_all_join_paths(
        self, tables: Sequence[TableReference], max_depth: int | None = None
    ) -> list[JoinPath]:
        """Enumerate every way to connect the given tables, cheapest first.

        Raises:
            ValueError: If no tables are given or max_depth is out of range
            ReflectionError: If the schema snapshot cannot be fetched
        """
        refs = self._input_refs(tables)
        snapshot = self._snapshot()
        results = self._engine(snapshot.graph, max_depth).find_all(list(refs))
        return [self._to_join_path(snapshot.graph, r, refs) for r in results]

    def generate_join_sql(
        self, join_path: JoinPath, table_schemas: Iterable[TableSchema]
    ) -> str:
        """Render a join path as SQL for the provider's dialect.

        Raises:
            JoinSynthesisError: If the path cannot be rendered
        """
        return SqlSynthesizer(self.provider.dialect).generate(join_path, table_schemas)

    def get_table_joins(
        self,
        tables: Sequence[TableReference],
        strategy: JoinStrategy | None = None,
        max_depth: int | None = None,
    ) -> list[JoinQuery]:
        """Resolve join paths and render each one as SQL.

        The shortest strategy yields at most one query; the exhaustive one
        yields every candidate, cheapest first. An empty list means the
        tables cannot be connected.

        Args:
            tables: Tables to connect
            strategy: Search strategy; the configured default when omitted
            max_depth: Total relation budget; the configured one when omitted

        Returns:
            List of JoinQuery objects

        Raises:
            ValueError: If no tables are given or max_depth is out of range
            ReflectionError: If the schema snapshot cannot be fetched
            JoinSynthesisError: If a resolved path cannot be rendered
        """
        refs = self._input_refs(tables)
        keys = list(refs)
        chosen = strategy or self.config.strategy
        start = now()

        snapshot = self._snapshot()
        engine = self._engine(snapshot.graph, max_depth)
        if chosen is JoinStrategy.EXHAUSTIVE:
            results = engine.find_all(keys)
        else:
            shortest = engine.find_shortest(keys)
            results = [] if shortest is None else [shortest]

        synthesizer = SqlSynthesizer(self.provider.dialect)
        queries = []
        for result in results:
            join_path = self._to_join_path(snapshot.graph, result, refs)
            sql = synthesizer.generate(join_path, snapshot.schemas)
            queries.append(JoinQuery(join_path=join_path, sql=sql))

        _logger.info(
            "Resolved %d join path(s) for %d tables (%s) in %.2fs",
            len(queries),
            len(keys),
            chosen.value,
            now() - start,
        )
        return queries

    # ---- internals ---------------------------------------------------------
    @staticmethod
    def _input_refs(tables: Sequence[TableReference]) -> dict[str, TableReference]:
        if not tables:
            error_msg = "At least one table is required"
            raise ValueError(error_msg)
        # Duplicates collapse, first occurrence order kept
        return {table.key: table for table in tables}

    def _snapshot(self) -> _Snapshot:
        schemas = self.provider.fetch_schemas()
        return _Snapshot(schemas=schemas, graph=self._builder.build(schemas))

    def _engine(self, graph: RelationshipGraph, max_depth: int | None) -> PathSearchEngine:
        return PathSearchEngine(
            graph,
            max_depth=self.config.max_depth if max_depth is None else max_depth,
            max_candidates=self.config.max_candidates,
        )

    @staticmethod
    def _to_join_path(
        graph: RelationshipGraph, result: SearchResult, inputs: dict[str, TableReference]
    ) -> JoinPath:
        # A lone input table need not exist in the graph
        return JoinPath(
            tables=tuple(
                inputs[key] if key in inputs else graph.reference(key) for key in result.table_keys
            ),
            relations=result.relations,
            input_tables_count=len(inputs),
        )
