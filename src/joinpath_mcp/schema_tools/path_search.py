"""Join path search over a relationship graph.

This module finds ways to connect a set of tables through foreign key
relationships. Two strategies are provided:

- Shortest: breadth-first search from every already-connected table to each
  remaining target, keeping the path with the fewest hops. Ties go to the
  first path discovered in graph insertion order.
- Exhaustive: depth-first enumeration of every simple path within the
  remaining depth budget, recording each complete way of connecting all
  targets. Candidates are de-duplicated by table set and relation set and
  returned cheapest first.

Both strategies grow a tree from the first requested table: every step adds
one path whose only connected node is its start, so a result with ``n``
tables always has ``n - 1`` relations. ``max_depth`` caps the total number
of relations in a result.

Classes:
- SearchResult: Table keys and relations connecting the requested tables
- PathSearchEngine: Shortest and exhaustive search strategies
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

from fastmcp.utilities.logging import get_logger
import networkx as nx

from .constants import Constants
from .graph import RelationshipGraph
from .models import JoinRelation

# Logger
_logger = get_logger("schema_tools.path_search")

_Signature = tuple[tuple[str, ...], tuple[str, ...]]


@dataclass(frozen=True)
class SearchResult:
    """Tables (in discovery order) and relations of one connected subtree."""

    table_keys: tuple[str, ...]
    relations: tuple[JoinRelation, ...]

    @property
    def total_joins(self) -> int:
        return len(self.relations)

    def signature(self) -> _Signature:
        """Order-independent identity used for de-duplication."""
        return (
            tuple(sorted(self.table_keys)),
            tuple(sorted(relation.signature() for relation in self.relations)),
        )


@dataclass
class _SearchContext:
    """Per-call state threaded through the exhaustive recursion."""

    graph: RelationshipGraph
    max_candidates: int
    candidates: dict[_Signature, SearchResult] = field(default_factory=dict)
    seen_states: set[_Signature] = field(default_factory=set)

    @property
    def exhausted(self) -> bool:
        return len(self.candidates) >= self.max_candidates

    def record(self, result: SearchResult) -> None:
        self.candidates.setdefault(result.signature(), result)


class PathSearchEngine:
    """Search strategies for connecting tables in a relationship graph.

    The engine keeps no per-call state, so one instance may serve
    concurrent searches over the same graph.

    Attributes:
        max_depth: Maximum number of relations in any returned result
        max_candidates: Maximum number of unique exhaustive candidates
    """

    def __init__(
        self,
        graph: RelationshipGraph,
        *,
        max_depth: int = Constants.DEFAULT_MAX_DEPTH,
        max_candidates: int = Constants.DEFAULT_MAX_CANDIDATES,
    ) -> None:
        """Initialize the search engine.

        Args:
            graph: Relationship graph to search
            max_depth: Total relation budget, between 1 and MAX_DEPTH_LIMIT
            max_candidates: Cap on unique candidates for exhaustive search

        Raises:
            ValueError: If a bound is out of range
        """
        if not 1 <= max_depth <= Constants.MAX_DEPTH_LIMIT:
            error_msg = (
                f"max_depth must be between 1 and {Constants.MAX_DEPTH_LIMIT}, got {max_depth}"
            )
            raise ValueError(error_msg)
        if max_candidates < 1:
            error_msg = f"max_candidates must be positive, got {max_candidates}"
            raise ValueError(error_msg)
        self._graph = graph
        self.max_depth = max_depth
        self.max_candidates = max_candidates

    # ---- public API --------------------------------------------------------
    def find_shortest(self, input_keys: Sequence[str]) -> SearchResult | None:
        """Connect the input tables using the fewest hops per target.

        Starting from the first input table, each subsequent table is
        connected by the shortest path from any already-connected table.

        Args:
            input_keys: Table keys to connect (at least one)

        Returns:
            SearchResult, or None when some table cannot be reached within
            the remaining depth budget
        """
        keys = self._prepare(input_keys)
        if len(keys) == 1:
            return SearchResult(table_keys=(keys[0],), relations=())
        if not self._all_known(keys):
            return None

        connected: dict[str, None] = {keys[0]: None}
        relations: list[JoinRelation] = []
        for target in keys[1:]:
            if target in connected:
                continue
            budget = self.max_depth - len(relations)
            path = self._shortest_from_connected(connected, target, budget)
            if path is None:
                _logger.debug("No path to %s within %d hops", target, budget)
                return None
            relations.extend(self._graph.relations_along(path))
            connected.update(dict.fromkeys(path[1:]))

        return SearchResult(table_keys=tuple(connected), relations=tuple(relations))

    def find_all(self, input_keys: Sequence[str]) -> list[SearchResult]:
        """Enumerate every way to connect the input tables within max_depth.

        Args:
            input_keys: Table keys to connect (at least one)

        Returns:
            Unique results sorted by ascending join count; empty when the
            tables cannot be connected
        """
        keys = self._prepare(input_keys)
        if len(keys) == 1:
            return [SearchResult(table_keys=(keys[0],), relations=())]
        if not self._all_known(keys):
            return []

        ctx = _SearchContext(graph=self._graph, max_candidates=self.max_candidates)
        self._explore(ctx, {keys[0]: None}, [], tuple(keys[1:]), self.max_depth)
        if ctx.exhausted:
            _logger.warning(
                "Exhaustive join search stopped at %d candidates", self.max_candidates
            )

        return sorted(ctx.candidates.values(), key=lambda result: result.total_joins)

    # ---- internals ---------------------------------------------------------
    @staticmethod
    def _prepare(input_keys: Sequence[str]) -> list[str]:
        keys = list(dict.fromkeys(input_keys))
        if not keys:
            error_msg = "At least one table is required"
            raise ValueError(error_msg)
        return keys

    def _all_known(self, keys: list[str]) -> bool:
        missing = [key for key in keys if not self._graph.has_table(key)]
        if missing:
            _logger.warning("Tables not found in schema: %s", ", ".join(missing))
            return False
        return True

    def _shortest_from_connected(
        self, connected: dict[str, None], target: str, budget: int
    ) -> list[str] | None:
        """Shortest path to target from any connected table, within budget."""
        if budget < 1:
            return None
        best: list[str] | None = None
        for source in connected:
            reachable = nx.single_source_shortest_path(self._graph.graph, source, cutoff=budget)
            path = reachable.get(target)
            if path is not None and (best is None or len(path) < len(best)):
                best = path
        return best

    def _explore(
        self,
        ctx: _SearchContext,
        connected: dict[str, None],
        relations: list[JoinRelation],
        remaining: tuple[str, ...],
        budget: int,
    ) -> None:
        """Depth-first extension of a partial tree towards remaining targets."""
        if ctx.exhausted:
            return

        state = SearchResult(table_keys=tuple(connected), relations=tuple(relations))
        state_sig = state.signature()
        pending = tuple(target for target in remaining if target not in connected)
        if not pending:
            ctx.record(state)
            return
        # Same partial tree reached through a different target order
        if state_sig in ctx.seen_states or budget < 1:
            return
        ctx.seen_states.add(state_sig)

        for target in pending:
            rest = tuple(other for other in pending if other != target)
            for source in list(connected):
                for path in nx.all_simple_paths(ctx.graph.graph, source, target, cutoff=budget):
                    if any(node in connected for node in path[1:]):
                        continue
                    extended = dict(connected)
                    extended.update(dict.fromkeys(path[1:]))
                    self._explore(
                        ctx,
                        extended,
                        [*relations, *ctx.graph.relations_along(path)],
                        rest,
                        budget - (len(path) - 1),
                    )
                    if ctx.exhausted:
                        return
