"""Layout engines and public layout API."""

from __future__ import annotations

from erd_layout.layout.crossings import CrossingMinimizer, count_total_crossings, discover_ranks, minimize_crossings
from erd_layout.layout.engine import (
    compute_focus_layout,
    compute_layout,
    content_bounds,
    force_arrange_layout,
    merge_layout,
    pin_node,
    unpin_all,
)
from erd_layout.layout.focus import focus_layout, focus_members
from erd_layout.layout.groups import (
    GroupBlock,
    GroupComposer,
    MetaOrder,
    MetaOrderFallback,
    MetaOrderOk,
    compose_groups,
    cross_group_edges,
    flat_layout,
    layout_block,
    meta_order,
    pack_blocks,
    partition_groups,
    resolve_order,
)
from erd_layout.layout.sugiyama import (
    LayerAssignment,
    LayeredLayout,
    SugiyamaLayout,
    choose_orientation,
    count_crossings,
    find_back_edges,
    layered_layout,
    minimise_crossings,
    remove_cycles,
)
from erd_layout.layout.types import DUMMY_PREFIX, UNGROUPED, FocusLayout, LayoutResult, TableNode

__all__ = [
    "DUMMY_PREFIX",
    "UNGROUPED",
    "CrossingMinimizer",
    "FocusLayout",
    "GroupBlock",
    "GroupComposer",
    "LayerAssignment",
    "LayeredLayout",
    "LayoutResult",
    "MetaOrder",
    "MetaOrderFallback",
    "MetaOrderOk",
    "SugiyamaLayout",
    "TableNode",
    "choose_orientation",
    "compose_groups",
    "compute_focus_layout",
    "compute_layout",
    "content_bounds",
    "count_crossings",
    "count_total_crossings",
    "cross_group_edges",
    "discover_ranks",
    "find_back_edges",
    "flat_layout",
    "focus_layout",
    "focus_members",
    "force_arrange_layout",
    "layered_layout",
    "layout_block",
    "merge_layout",
    "meta_order",
    "minimise_crossings",
    "minimize_crossings",
    "pack_blocks",
    "partition_groups",
    "pin_node",
    "remove_cycles",
    "resolve_order",
    "unpin_all",
]
