"""Layout entry points: incremental, force-arrange, and focus modes.

Each call builds a fresh LayoutGraph from the schema and the collapsed flag,
so table sizes always match the requested display mode.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping

from erd_layout.config import DEFAULT_CONFIG, LayoutConfig
from erd_layout.ir.graph import LayoutGraph
from erd_layout.ir.schema import Schema
from erd_layout.layout.focus import focus_layout
from erd_layout.layout.groups import GroupComposer, flat_layout
from erd_layout.layout.types import FocusLayout, LayoutResult, TableNode
from erd_layout.types import Point, Size

logger = logging.getLogger(__name__)


def compute_layout(
    schema: Schema,
    existing: Mapping[str, TableNode] | None = None,
    *,
    collapsed: bool = False,
    config: LayoutConfig | None = None,
) -> LayoutResult:
    """Incremental layout that keeps pinned tables where the user left them.

    Without pinned tables, schemas with groups go through the group composer.
    Otherwise every unpinned table takes its place from the flat layout.
    """
    config = config or DEFAULT_CONFIG
    existing = existing or {}
    lg = LayoutGraph.from_schema(schema, collapsed, config)

    pinned = {nid: node for nid, node in existing.items() if node.pinned and nid in lg.digraph}
    if not pinned and lg.has_groups():
        return GroupComposer(config).compose(lg)

    result = flat_layout(lg, config)
    for nid, node in pinned.items():
        result[nid] = TableNode(table_id=nid, position=node.position, size=lg.size_of(nid), pinned=True)
    logger.debug("Incremental layout kept %d pinned table(s)", len(pinned))
    return result


def force_arrange_layout(
    schema: Schema,
    *,
    collapsed: bool = False,
    config: LayoutConfig | None = None,
) -> LayoutResult:
    """Recompute every position from scratch; the result has no pinned tables."""
    config = config or DEFAULT_CONFIG
    lg = LayoutGraph.from_schema(schema, collapsed, config)
    logger.debug("Force arranging %d table(s) in %d group(s)", lg.node_count(), len(lg.groups))
    if lg.has_groups():
        return GroupComposer(config).compose(lg)
    return flat_layout(lg, config)


def compute_focus_layout(
    schema: Schema,
    center_id: str,
    *,
    collapsed: bool = False,
    config: LayoutConfig | None = None,
) -> FocusLayout:
    config = config or DEFAULT_CONFIG
    lg = LayoutGraph.from_schema(schema, collapsed, config)
    return focus_layout(lg, center_id, config)


# ─── Position store helpers ──────────────────────────────────────────────────


def merge_layout(store: Mapping[str, TableNode], result: Mapping[str, TableNode]) -> dict[str, TableNode]:
    """Overlay ``result`` on a position store, returning a new mapping."""
    merged = dict(store)
    merged.update(result)
    return merged


def pin_node(store: Mapping[str, TableNode], table_id: str, position: Point | None = None) -> dict[str, TableNode]:
    """Pin one table, optionally moving it. Unknown ids leave the store unchanged."""
    updated = dict(store)
    node = updated.get(table_id)
    if node is None:
        return updated
    pos = node.position if position is None else position
    updated[table_id] = node.moved_to(pos.x, pos.y, pinned=True)
    return updated


def unpin_all(store: Mapping[str, TableNode]) -> dict[str, TableNode]:
    return {nid: node.moved_to(node.position.x, node.position.y, pinned=False) for nid, node in store.items()}


def content_bounds(result: Mapping[str, TableNode]) -> tuple[Point, Size] | None:
    """Bounding rectangle (top-left, size) of all tables; None when empty."""
    if not result:
        return None
    min_x = min(n.position.x for n in result.values())
    min_y = min(n.position.y for n in result.values())
    max_x = max(n.position.x + n.size.width for n in result.values())
    max_y = max(n.position.y + n.size.height for n in result.values())
    return Point(min_x, min_y), Size(max_x - min_x, max_y - min_y)
