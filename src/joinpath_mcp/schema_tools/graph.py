"""Relationship graph building from foreign key metadata.

This module converts a snapshot of table schemas into an undirected NetworkX
graph of tables plus a directed relation index that records the exact
foreign key column mapping behind every edge.

Classes:
- RelationshipGraph: Graph and relation index for one resolution request
- GraphBuilder: Creates RelationshipGraph instances from table schemas
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from fastmcp.utilities.logging import get_logger
import networkx as nx

from .exceptions import RelationIndexError
from .models import ForeignKey, JoinEndpoint, JoinRelation, TableReference, TableSchema
from .utils import relation_key, table_key

# Logger
_logger = get_logger("schema_tools.graph")


@dataclass(frozen=True)
class RelationshipGraph:
    """Undirected table graph with its directed relation index.

    When several foreign keys link the same ordered pair of tables, the
    index keeps all of them in declaration order and ``relation`` returns
    the first. Schemas with two distinct relationships between the same
    tables (e.g. billing and shipping addresses) therefore always join on
    the first declared one.

    Attributes:
        graph: Undirected graph keyed by ``"schema.table"``; each node has a
            ``ref`` attribute holding its TableReference
        relation_details: ``"from->to"`` to the relations justifying the edge
    """

    graph: nx.Graph[str]
    relation_details: dict[str, list[JoinRelation]]

    def has_table(self, key: str) -> bool:
        return key in self.graph

    def neighbors(self, key: str) -> set[str]:
        """Neighbor keys of a table (empty for unknown tables)."""
        if key not in self.graph:
            return set()
        return set(self.graph.adj[key])

    def reference(self, key: str) -> TableReference:
        return self.graph.nodes[key]["ref"]

    def relation(self, from_key: str, to_key: str) -> JoinRelation:
        """Return the first relation for a directed edge.

        Raises:
            RelationIndexError: If the graph and relation index disagree
        """
        relations = self.relation_details.get(relation_key(from_key, to_key))
        if not relations:
            error_msg = f"No relation recorded for graph edge {from_key} -> {to_key}"
            raise RelationIndexError(error_msg)
        return relations[0]

    def relations_along(self, path: list[str]) -> list[JoinRelation]:
        """Relations for each consecutive pair of a table-key path."""
        return [self.relation(path[i - 1], path[i]) for i in range(1, len(path))]


class GraphBuilder:
    """Builder for relationship graphs from table schema snapshots."""

    def build(self, schemas: Iterable[TableSchema]) -> RelationshipGraph:
        """Build the graph and relation index for a schema snapshot.

        Every table becomes a node, even without foreign keys. Each foreign
        key adds an undirected edge (self-references become self-loops), a
        forward relation under ``"from->to"`` and its reverse under
        ``"to->from"``. Foreign keys to tables outside the snapshot are
        skipped, so no path is ever routed through a table without schema.

        Args:
            schemas: Table schemas for the whole database

        Returns:
            RelationshipGraph for this snapshot
        """
        graph: nx.Graph[str] = nx.Graph()
        relation_details: dict[str, list[JoinRelation]] = {}

        schema_list = list(schemas)
        for table_schema in schema_list:
            graph.add_node(table_schema.key, ref=table_schema.reference)

        n_fks = 0
        for table_schema in schema_list:
            from_key = table_schema.key
            for fk in table_schema.foreign_keys:
                to_key = table_key(fk.referenced_schema, fk.referenced_table)
                if to_key not in graph:
                    # No schema to render it with (excluded schema, other database)
                    _logger.debug("Skipping foreign key %s: %s is not reflected", fk.name, to_key)
                    continue
                graph.add_edge(from_key, to_key)

                relation = self._forward_relation(table_schema, fk)
                relation_details.setdefault(relation_key(from_key, to_key), []).append(relation)
                relation_details.setdefault(relation_key(to_key, from_key), []).append(
                    relation.reversed()
                )
                n_fks += 1

        _logger.debug(
            "Built relationship graph: %d tables, %d edges, %d foreign keys",
            graph.number_of_nodes(),
            graph.number_of_edges(),
            n_fks,
        )
        return RelationshipGraph(graph=graph, relation_details=relation_details)

    @staticmethod
    def _forward_relation(table_schema: TableSchema, fk: ForeignKey) -> JoinRelation:
        """Relation from the foreign key owner to the referenced table."""
        fk_columns = set(fk.columns)
        is_nullable = any(col.nullable for col in table_schema.columns if col.name in fk_columns)
        return JoinRelation(
            source=JoinEndpoint(
                schema=table_schema.schema, table=table_schema.name, columns=fk.columns
            ),
            target=JoinEndpoint(
                schema=fk.referenced_schema,
                table=fk.referenced_table,
                columns=fk.referenced_columns,
            ),
            is_nullable=is_nullable,
        )
