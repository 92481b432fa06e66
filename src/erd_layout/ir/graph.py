"""Layout graph IR — converts a Schema into a networkx DiGraph for layout.

This module owns the canonical graph data structure used by every layout
phase. It measures each table once, drops references and group members that
name unknown tables, and keeps group membership for the group composer.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import networkx as nx

from erd_layout.config import DEFAULT_CONFIG, LayoutConfig
from erd_layout.ir.schema import Schema, Table
from erd_layout.sizing import estimate_size
from erd_layout.types import Size

logger = logging.getLogger(__name__)


@dataclass
class TableData:
    id: str
    label: str
    size: Size


@dataclass
class GroupData:
    name: str
    member_ids: list[str]


class LayoutGraph:
    """The graph intermediate representation built from a Schema.

    Wraps a networkx DiGraph and exposes helpers for topology queries.
    Built fresh for every layout request.
    """

    def __init__(self, digraph: nx.DiGraph, groups: list[GroupData]) -> None:
        self.digraph = digraph
        self.groups = groups

    @classmethod
    def from_schema(
        cls,
        schema: Schema,
        collapsed: bool = False,
        config: LayoutConfig = DEFAULT_CONFIG,
    ) -> LayoutGraph:
        """Build a LayoutGraph from a Schema, sizing tables for the display mode."""
        digraph: nx.DiGraph = nx.DiGraph()

        for table in schema.tables:
            _add_table_if_absent(digraph, table, collapsed, config)

        for ref in schema.refs:
            if ref.from_table_id not in digraph or ref.to_table_id not in digraph:
                logger.debug("Dropping dangling ref %s -> %s", ref.from_table_id, ref.to_table_id)
                continue
            digraph.add_edge(ref.from_table_id, ref.to_table_id)

        claimed: set[str] = set()
        groups: list[GroupData] = []
        for group in schema.groups:
            members: list[str] = []
            for member_id in group.member_ids:
                if member_id not in digraph:
                    logger.debug("Dropping unknown member %s of group %s", member_id, group.name)
                    continue
                if member_id in claimed:
                    continue
                claimed.add(member_id)
                members.append(member_id)
            groups.append(GroupData(name=group.name, member_ids=members))

        return cls(digraph=digraph, groups=groups)

    def has_groups(self) -> bool:
        return bool(self.groups)

    def node_ids(self) -> list[str]:
        return list(self.digraph.nodes)

    def node_count(self) -> int:
        return self.digraph.number_of_nodes()

    def edge_count(self) -> int:
        return self.digraph.number_of_edges()

    def size_of(self, node_id: str) -> Size:
        return self.digraph.nodes[node_id]["data"].size

    def sizes(self) -> dict[str, Size]:
        return {nid: self.digraph.nodes[nid]["data"].size for nid in self.digraph.nodes}

    def neighbors(self, node_id: str) -> list[str]:
        """Tables directly connected to ``node_id`` in either direction, in node order."""
        if node_id not in self.digraph:
            return []
        adjacent = set(self.digraph.successors(node_id)) | set(self.digraph.predecessors(node_id))
        adjacent.discard(node_id)
        return [nid for nid in self.digraph.nodes if nid in adjacent]

    def induced(self, node_ids: list[str]) -> nx.DiGraph:
        """Subgraph on ``node_ids`` keeping their order and every edge between them."""
        wanted = set(node_ids)
        sub: nx.DiGraph = nx.DiGraph()
        for nid in node_ids:
            sub.add_node(nid, **self.digraph.nodes[nid])
        for src, tgt in self.digraph.edges():
            if src in wanted and tgt in wanted:
                sub.add_edge(src, tgt)
        return sub


def _add_table_if_absent(digraph: nx.DiGraph, table: Table, collapsed: bool, config: LayoutConfig) -> None:
    if table.id in digraph:
        return
    data = TableData(
        id=table.id,
        label=table.name,
        size=estimate_size(table.name, table.fields, collapsed, config),
    )
    digraph.add_node(table.id, data=data)
