"""Group-aware layout.

  1. Each group is laid out internally with the layered engine.
  2. Groups are ordered by a layered layout of the group meta-graph,
     falling back to largest-area-first when that cannot be used.
  3. Group blocks are shelf-packed left to right, wrapping into rows.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable
from dataclasses import dataclass

import networkx as nx

from erd_layout.config import DEFAULT_CONFIG, LayoutConfig, SpacingStep
from erd_layout.ir.graph import LayoutGraph
from erd_layout.layout.sugiyama import LayeredLayout, choose_orientation, layered_layout, ordered_subgraph
from erd_layout.layout.types import UNGROUPED, LayoutResult, TableNode, top_left_from_center
from erd_layout.types import Orientation, Point, Size

logger = logging.getLogger(__name__)

MetaLayoutFn = Callable[..., LayeredLayout]


@dataclass
class GroupBlock:
    """A group laid out in its own frame, top-left at the origin.

    ``key`` is the block's partition index and identifies it during ordering
    and packing; ``name`` is for display only and need not be unique.
    """

    name: str
    local: dict[str, Point]
    width: float
    height: float
    key: int = 0

    @property
    def area(self) -> float:
        return self.width * self.height


@dataclass(frozen=True)
class MetaOrderOk:
    order: list[int]


@dataclass(frozen=True)
class MetaOrderFallback:
    reason: str


MetaOrder = MetaOrderOk | MetaOrderFallback


# ─── Partitioning ────────────────────────────────────────────────────────────


def partition_groups(lg: LayoutGraph) -> list[tuple[str, list[str]]]:
    """Non-empty (group name, member ids) pairs; ungrouped tables last.

    Names may repeat; a part is identified by its index in the returned list.
    """
    parts: list[tuple[str, list[str]]] = []
    grouped: set[str] = set()
    for group in lg.groups:
        grouped.update(group.member_ids)
        if group.member_ids:
            parts.append((group.name, list(group.member_ids)))
    ungrouped = [nid for nid in lg.node_ids() if nid not in grouped]
    if ungrouped:
        parts.append((UNGROUPED, ungrouped))
    return parts


# ─── Block Layout ────────────────────────────────────────────────────────────


def layout_block(
    lg: LayoutGraph,
    name: str,
    member_ids: list[str],
    config: LayoutConfig = DEFAULT_CONFIG,
    key: int = 0,
) -> GroupBlock:
    """Lay out one group over its internal edges and normalize to the origin."""
    sub = ordered_subgraph(lg.digraph, member_ids)
    sizes = lg.sizes()
    laid = layered_layout(
        sub,
        sizes,
        orientation=choose_orientation(len(member_ids), config.group_vertical_threshold),
        spacing=SpacingStep(None, config.group_node_spacing, config.group_rank_spacing),
        config=config,
    )

    corners: dict[str, Point] = {}
    for nid in member_ids:
        size = sizes[nid]
        center = laid.centers[nid]
        corners[nid] = Point(center.x - size.width / 2, center.y - size.height / 2)

    if not corners:
        return GroupBlock(name=name, local={}, width=0.0, height=0.0, key=key)

    min_x = min(p.x for p in corners.values())
    min_y = min(p.y for p in corners.values())
    max_x = max(corners[nid].x + sizes[nid].width for nid in member_ids)
    max_y = max(corners[nid].y + sizes[nid].height for nid in member_ids)
    local = {nid: Point(p.x - min_x, p.y - min_y) for nid, p in corners.items()}
    return GroupBlock(name=name, local=local, width=max_x - min_x, height=max_y - min_y, key=key)


# ─── Group Ordering ──────────────────────────────────────────────────────────


def cross_group_edges(lg: LayoutGraph, parts: list[tuple[str, list[str]]]) -> list[tuple[int, int]]:
    """Distinct (from part, to part) index pairs joined by at least one reference."""
    group_of: dict[str, int] = {}
    for key, (_name, members) in enumerate(parts):
        for nid in members:
            group_of[nid] = key
    seen: set[tuple[int, int]] = set()
    result: list[tuple[int, int]] = []
    for src, tgt in lg.digraph.edges():
        g_from, g_to = group_of.get(src), group_of.get(tgt)
        if g_from is None or g_to is None or g_from == g_to:
            continue
        if (g_from, g_to) not in seen:
            seen.add((g_from, g_to))
            result.append((g_from, g_to))
    return result


def meta_order(
    blocks: list[GroupBlock],
    edges: list[tuple[int, int]],
    config: LayoutConfig = DEFAULT_CONFIG,
    layout_fn: MetaLayoutFn = layered_layout,
) -> MetaOrder:
    """Order block keys left to right from a layered layout of the meta-graph."""
    if len(blocks) <= 1:
        return MetaOrderOk([b.key for b in blocks])

    meta: nx.DiGraph = nx.DiGraph()
    for block in blocks:
        meta.add_node(block.key)
    for g_from, g_to in edges:
        if g_from in meta and g_to in meta:
            meta.add_edge(g_from, g_to)
    sizes = {b.key: Size(b.width, b.height) for b in blocks}

    try:
        laid = layout_fn(meta, sizes, orientation=Orientation.HORIZONTAL, config=config)
    except (ValueError, ArithmeticError, nx.NetworkXException) as e:
        return MetaOrderFallback(f"meta layout failed: {e}")

    declared = {b.key: i for i, b in enumerate(blocks)}
    for block in blocks:
        center = laid.centers.get(block.key)
        if center is None:
            return MetaOrderFallback(f"meta layout omitted group {block.name!r}")
        if not (math.isfinite(center.x) and math.isfinite(center.y)):
            return MetaOrderFallback(f"meta layout produced a non-finite position for {block.name!r}")

    order = sorted(declared, key=lambda k: (laid.centers[k].x, laid.centers[k].y, declared[k]))
    return MetaOrderOk(order)


def resolve_order(blocks: list[GroupBlock], result: MetaOrder) -> list[GroupBlock]:
    by_key = {b.key: b for b in blocks}
    if isinstance(result, MetaOrderOk):
        return [by_key[key] for key in result.order]
    logger.info("Group ordering fell back to area: %s", result.reason)
    return sorted(blocks, key=lambda b: -b.area)


# ─── Shelf Packing ───────────────────────────────────────────────────────────


def pack_blocks(blocks: list[GroupBlock], config: LayoutConfig = DEFAULT_CONFIG) -> dict[int, Point]:
    """Shelf-pack blocks in order; returns each block's top-left origin by key."""
    pad = config.group_padding
    total_area = sum((b.width + pad) * (b.height + pad) for b in blocks)
    target_width = max(config.pack_min_width, math.sqrt(total_area) * config.pack_factor)

    origins: dict[int, Point] = {}
    cur_x = 0.0
    cur_y = 0.0
    row_h = 0.0
    for block in blocks:
        if cur_x > 0 and cur_x + block.width > target_width:
            cur_x = 0.0
            cur_y += row_h + pad
            row_h = 0.0
        origins[block.key] = Point(cur_x, cur_y)
        row_h = max(row_h, block.height)
        cur_x += block.width + pad
    return origins


# ─── GroupComposer ───────────────────────────────────────────────────────────


class GroupComposer:
    def __init__(self, config: LayoutConfig = DEFAULT_CONFIG, meta_layout: MetaLayoutFn = layered_layout) -> None:
        self.config = config
        self.meta_layout = meta_layout

    def compose(self, lg: LayoutGraph) -> LayoutResult:
        if not lg.has_groups():
            return flat_layout(lg, self.config)

        parts = partition_groups(lg)
        blocks = [layout_block(lg, name, members, self.config, key=i) for i, (name, members) in enumerate(parts)]
        ordered = resolve_order(blocks, meta_order(blocks, cross_group_edges(lg, parts), self.config, self.meta_layout))
        origins = pack_blocks(ordered, self.config)

        placed: LayoutResult = {}
        for block in ordered:
            origin = origins[block.key]
            for nid, local in block.local.items():
                placed[nid] = TableNode(
                    table_id=nid,
                    position=Point(origin.x + local.x, origin.y + local.y),
                    size=lg.size_of(nid),
                )
        return {nid: placed[nid] for nid in lg.node_ids() if nid in placed}


def flat_layout(lg: LayoutGraph, config: LayoutConfig = DEFAULT_CONFIG) -> LayoutResult:
    """Layered layout over every table, converted to top-left positions."""
    sizes = lg.sizes()
    laid = layered_layout(lg.digraph, sizes, config=config)
    return {nid: top_left_from_center(nid, laid.centers[nid], sizes[nid]) for nid in lg.node_ids()}


def compose_groups(lg: LayoutGraph, config: LayoutConfig = DEFAULT_CONFIG) -> LayoutResult:
    return GroupComposer(config).compose(lg)
