"""Focus layout: one table and its direct neighbors."""

from __future__ import annotations

import logging

from erd_layout.config import DEFAULT_CONFIG, LayoutConfig
from erd_layout.ir.graph import LayoutGraph
from erd_layout.layout.crossings import CrossingMinimizer
from erd_layout.layout.sugiyama import choose_orientation, layered_layout
from erd_layout.layout.types import FocusLayout, top_left_from_center

logger = logging.getLogger(__name__)


def focus_members(lg: LayoutGraph, center_id: str) -> list[str]:
    """The center table followed by its 1-hop neighbors, in table order."""
    if center_id not in lg.digraph:
        return []
    neighbors = set(lg.neighbors(center_id))
    return [nid for nid in lg.digraph.nodes if nid == center_id or nid in neighbors]


def focus_layout(lg: LayoutGraph, center_id: str, config: LayoutConfig = DEFAULT_CONFIG) -> FocusLayout:
    """Lay out the focus subgraph around ``center_id`` and untangle it.

    An unknown center yields an empty FocusLayout.
    """
    members = focus_members(lg, center_id)
    if not members:
        logger.debug("Focus center %s is not a known table", center_id)
        return FocusLayout()

    sub = lg.induced(members)
    sizes = lg.sizes()
    orientation = choose_orientation(len(members), config.focus_vertical_threshold)
    laid = layered_layout(sub, sizes, orientation=orientation, config=config)

    centers = CrossingMinimizer(orientation, config).minimize(laid.centers, list(sub.edges()))
    nodes = {nid: top_left_from_center(nid, centers[nid], sizes[nid]) for nid in members}
    return FocusLayout(table_ids=frozenset(members), nodes=nodes)
