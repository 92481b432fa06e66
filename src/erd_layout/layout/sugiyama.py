"""Sugiyama-style layered graph layout engine.

Phases:
  1. Cycle breaking (depth-first back-edge marking)
  2. Rank assignment (longest path)
  3. Dummy node insertion
  4. Crossing reduction (barycenter / median sweeps)
  5. Coordinate assignment
  6. Component composition

All coordinates produced here are node centers in diagram units.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

import networkx as nx

from erd_layout.config import DEFAULT_CONFIG, LayoutConfig, SpacingStep
from erd_layout.layout.types import DUMMY_PREFIX
from erd_layout.types import Orientation, Point, Size

logger = logging.getLogger(__name__)

_ZERO = Size(0.0, 0.0)


# ─── Cycle Breaking ──────────────────────────────────────────────────────────


def find_back_edges(graph: nx.DiGraph) -> list[tuple[str, str]]:
    """Return the back-edges found by an iterative depth-first traversal.

    Roots are visited in node insertion order. An edge is a back-edge when
    its target is still on the traversal stack; self-loops always are.
    """
    on_stack = 1
    finished = 2
    state: dict[str, int] = {}
    back: list[tuple[str, str]] = []

    for root in graph.nodes:
        if root in state:
            continue
        state[root] = on_stack
        stack = [(root, iter(list(graph.successors(root))))]
        while stack:
            node, children = stack[-1]
            descended = False
            for child in children:
                child_state = state.get(child)
                if child_state is None:
                    state[child] = on_stack
                    stack.append((child, iter(list(graph.successors(child)))))
                    descended = True
                    break
                if child_state == on_stack:
                    back.append((node, child))
            if not descended:
                state[node] = finished
                stack.pop()

    return back


def remove_cycles(graph: nx.DiGraph) -> tuple[nx.DiGraph, set[tuple[str, str]]]:
    """Drop back-edges. Returns (dag, back_edges)."""
    back_edges = set(find_back_edges(graph))

    dag: nx.DiGraph = nx.DiGraph()
    for node_id in graph.nodes:
        dag.add_node(node_id, **graph.nodes[node_id])
    for src, tgt in graph.edges():
        if (src, tgt) not in back_edges:
            dag.add_edge(src, tgt)

    return dag, back_edges


# ─── Rank Assignment ─────────────────────────────────────────────────────────


class LayerAssignment:
    def __init__(
        self,
        layers: dict[str, int],
        layer_count: int,
        dag: nx.DiGraph,
        back_edges: set[tuple[str, str]],
    ) -> None:
        self.layers = layers
        self.layer_count = layer_count
        self.dag = dag
        self.back_edges = back_edges

    @classmethod
    def assign(cls, graph: nx.DiGraph) -> LayerAssignment:
        dag, back_edges = remove_cycles(graph)
        layers: dict[str, int] = {node_id: 0 for node_id in graph.nodes}
        edges = list(dag.edges())

        # A longest path in a DAG has fewer edges than nodes, so this many
        # relaxation rounds always reach the fixed point.
        for _round in range(len(layers)):
            changed = False
            for src, tgt in edges:
                if layers[tgt] < layers[src] + 1:
                    layers[tgt] = layers[src] + 1
                    changed = True
            if not changed:
                break

        layer_count = (max(layers.values()) + 1) if layers else 0
        return cls(layers=layers, layer_count=layer_count, dag=dag, back_edges=back_edges)


# ─── Dummy Node Insertion ────────────────────────────────────────────────────


@dataclass
class AugmentedGraph:
    graph: nx.DiGraph
    layers: dict[str, int]
    layer_count: int
    dummy_ids: set[str] = field(default_factory=set)


def dummy_prefix(graph: nx.DiGraph) -> str:
    """``DUMMY_PREFIX``, lengthened until no node id in ``graph`` starts with it."""
    prefix = DUMMY_PREFIX
    while any(str(nid).startswith(prefix) for nid in graph.nodes):
        prefix = "_" + prefix
    return prefix


def insert_dummy_nodes(la: LayerAssignment) -> AugmentedGraph:
    """Split every edge spanning more than one rank into a dummy chain.

    Back-edges take part reversed so the sweeps still see them.
    """
    g: nx.DiGraph = nx.DiGraph()
    for node_id in la.dag.nodes:
        g.add_node(node_id)

    layers: dict[str, int] = dict(la.layers)
    dummy_ids: set[str] = set()
    prefix = dummy_prefix(la.dag)

    spans: list[tuple[str, str]] = list(la.dag.edges())
    for src, tgt in sorted(la.back_edges, key=lambda e: (la.layers[e[1]], la.layers[e[0]], e)):
        if src != tgt:
            spans.append((tgt, src))

    for edge_index, (src_id, tgt_id) in enumerate(spans):
        layer_diff = layers[tgt_id] - layers[src_id]
        if layer_diff <= 0:
            continue
        if layer_diff == 1:
            g.add_edge(src_id, tgt_id)
            continue

        chain_prev = src_id
        for i in range(layer_diff - 1):
            dummy_id = f"{prefix}{edge_index}_{i}"
            g.add_node(dummy_id)
            layers[dummy_id] = layers[src_id] + i + 1
            dummy_ids.add(dummy_id)
            g.add_edge(chain_prev, dummy_id)
            chain_prev = dummy_id
        g.add_edge(chain_prev, tgt_id)

    return AugmentedGraph(graph=g, layers=layers, layer_count=la.layer_count, dummy_ids=dummy_ids)


# ─── Crossing Reduction ──────────────────────────────────────────────────────


def initial_ordering(aug: AugmentedGraph) -> list[list[str]]:
    ordering: list[list[str]] = [[] for _ in range(aug.layer_count)]
    for node_id in aug.graph.nodes:
        ordering[aug.layers[node_id]].append(node_id)
    return ordering


def minimise_crossings(aug: AugmentedGraph, max_passes: int = 24) -> list[list[str]]:
    """Reduce crossings with alternating barycenter and median sweeps.

    Even passes use the barycenter, odd passes the median. The best ordering
    seen is returned; the loop ends after two passes without improvement.
    """
    ordering = initial_ordering(aug)
    best = [list(layer) for layer in ordering]
    best_count = count_crossings(ordering, aug.graph)
    stale = 0

    for pass_idx in range(max_passes):
        if best_count == 0:
            break
        use_median = pass_idx % 2 == 1

        for layer_idx in range(1, aug.layer_count):
            _sort_layer(ordering, layer_idx, layer_idx - 1, aug.graph, "incoming", use_median)
        for layer_idx in range(aug.layer_count - 2, -1, -1):
            _sort_layer(ordering, layer_idx, layer_idx + 1, aug.graph, "outgoing", use_median)

        new = count_crossings(ordering, aug.graph)
        if new < best_count:
            best = [list(layer) for layer in ordering]
            best_count = new
            stale = 0
        else:
            stale += 1
            if stale >= 2:
                break

    return best


def _sort_layer(
    ordering: list[list[str]],
    layer_idx: int,
    ref_idx: int,
    graph: nx.DiGraph,
    direction: str,
    use_median: bool,
) -> None:
    ref_pos: dict[str, float] = {nid: float(i) for i, nid in enumerate(ordering[ref_idx])}
    current = ordering[layer_idx]
    keys: dict[str, float] = {}
    for i, node_id in enumerate(current):
        neighbors = graph.predecessors(node_id) if direction == "incoming" else graph.successors(node_id)
        positions = sorted(ref_pos[nb] for nb in neighbors if nb in ref_pos)
        if not positions:
            keys[node_id] = float(i)
        elif use_median:
            keys[node_id] = _median(positions)
        else:
            keys[node_id] = sum(positions) / len(positions)
    current.sort(key=lambda nid: keys[nid])


def _median(sorted_values: list[float]) -> float:
    mid = len(sorted_values) // 2
    if len(sorted_values) % 2 == 1:
        return sorted_values[mid]
    return (sorted_values[mid - 1] + sorted_values[mid]) / 2


def count_crossings(ordering: list[list[str]], graph: nx.DiGraph) -> int:
    """Count pairwise edge inversions between adjacent layers."""
    total = 0
    for l_idx in range(len(ordering) - 1):
        tgt_pos: dict[str, int] = {nid: i for i, nid in enumerate(ordering[l_idx + 1])}
        edges: list[tuple[int, int]] = []
        for sp, src_id in enumerate(ordering[l_idx]):
            if src_id in graph:
                for nb in graph.successors(src_id):
                    if nb in tgt_pos:
                        edges.append((sp, tgt_pos[nb]))
        for i in range(len(edges)):
            for j in range(i + 1, len(edges)):
                ei, ej = edges[i], edges[j]
                if (ei[0] < ej[0] and ei[1] > ej[1]) or (ei[0] > ej[0] and ei[1] < ej[1]):
                    total += 1
    return total


# ─── Coordinate Assignment ───────────────────────────────────────────────────


def _extents(size: Size, orientation: Orientation) -> tuple[float, float]:
    """(primary, secondary) extent of a box for the given orientation."""
    if orientation is Orientation.HORIZONTAL:
        return (size.width, size.height)
    return (size.height, size.width)


def assign_coordinates(
    ordering: list[list[str]],
    aug: AugmentedGraph,
    sizes: dict[str, Size],
    orientation: Orientation,
    spacing: SpacingStep,
    dummy_extent: float,
) -> dict[str, tuple[float, float]]:
    """Assign (primary, secondary) centers to every node, dummies included.

    The secondary axis starts at 0; the primary axis starts at 0 for rank 0.
    """

    def dims(node_id: str) -> tuple[float, float]:
        if node_id in aug.dummy_ids:
            return (0.0, dummy_extent)
        return _extents(sizes.get(node_id, _ZERO), orientation)

    rank_p: list[float] = []
    p = 0.0
    for layer_nodes in ordering:
        thickness = max((dims(nid)[0] for nid in layer_nodes), default=0.0)
        rank_p.append(p + thickness / 2)
        p += thickness + spacing.rank_spacing

    layer_spans: list[float] = []
    for layer_nodes in ordering:
        s_sum = sum(dims(nid)[1] for nid in layer_nodes)
        gaps = (len(layer_nodes) - 1) * spacing.node_spacing if len(layer_nodes) > 1 else 0.0
        layer_spans.append(s_sum + gaps)
    widest = max(layer_spans, default=0.0)

    coords: dict[str, tuple[float, float]] = {}
    for layer_idx, layer_nodes in enumerate(ordering):
        s = (widest - layer_spans[layer_idx]) / 2
        for node_id in layer_nodes:
            extent = dims(node_id)[1]
            coords[node_id] = (rank_p[layer_idx], s + extent / 2)
            s += extent + spacing.node_spacing

    # Barycenter refinement: slide each rank as a block toward its neighbors.
    for layer_idx in range(1, len(ordering)):
        _shift_layer(coords, ordering[layer_idx], aug.graph.predecessors)
    for layer_idx in range(len(ordering) - 2, -1, -1):
        _shift_layer(coords, ordering[layer_idx], aug.graph.successors)

    if coords:
        min_s = min(s - dims(nid)[1] / 2 for nid, (_, s) in coords.items())
        coords = {nid: (p_c, s_c - min_s) for nid, (p_c, s_c) in coords.items()}

    return coords


def _shift_layer(coords: dict[str, tuple[float, float]], layer_nodes: list[str], adjacent) -> None:
    total = 0.0
    count = 0
    for node_id in layer_nodes:
        own = coords[node_id][1]
        for nb in adjacent(node_id):
            total += coords[nb][1] - own
            count += 1
    if count == 0:
        return
    shift = total / count
    for node_id in layer_nodes:
        p_c, s_c = coords[node_id]
        coords[node_id] = (p_c, s_c + shift)


# ─── LayeredLayout Engine ────────────────────────────────────────────────────


@dataclass
class LayeredLayout:
    """Result of a layered layout: node centers plus rank bookkeeping."""

    centers: dict[str, Point]
    ranks: dict[str, int]
    orders: dict[str, int]
    orientation: Orientation
    size: Size

    def is_empty(self) -> bool:
        return not self.centers


def choose_orientation(node_count: int, threshold: int) -> Orientation:
    """Vertical rank stacking above ``threshold`` nodes, horizontal otherwise."""
    return Orientation.VERTICAL if node_count > threshold else Orientation.HORIZONTAL


def ordered_subgraph(graph: nx.DiGraph, node_ids: list[str]) -> nx.DiGraph:
    """Induced subgraph whose node order follows ``node_ids``."""
    wanted = set(node_ids)
    sub: nx.DiGraph = nx.DiGraph()
    for nid in node_ids:
        sub.add_node(nid)
    for src, tgt in graph.edges():
        if src in wanted and tgt in wanted:
            sub.add_edge(src, tgt)
    return sub


def connected_components(graph: nx.DiGraph) -> list[list[str]]:
    """Weakly connected components in order of first appearance."""
    index = {nid: i for i, nid in enumerate(graph.nodes)}
    comps = [sorted(c, key=index.__getitem__) for c in nx.weakly_connected_components(graph)]
    comps.sort(key=lambda c: index[c[0]])
    return comps


class SugiyamaLayout:
    """Sugiyama layered layout engine."""

    def __init__(self, config: LayoutConfig = DEFAULT_CONFIG) -> None:
        self.config = config

    def layout(
        self,
        graph: nx.DiGraph,
        sizes: dict[str, Size],
        orientation: Orientation | None = None,
        spacing: SpacingStep | None = None,
        margin: float | None = None,
    ) -> LayeredLayout:
        n = graph.number_of_nodes()
        if orientation is None:
            orientation = choose_orientation(n, self.config.flat_vertical_threshold)
        if n == 0:
            return LayeredLayout(centers={}, ranks={}, orders={}, orientation=orientation, size=_ZERO)
        if spacing is None:
            spacing = self.config.spacing_for(n)
        if margin is None:
            margin = self.config.margin

        centers: dict[str, Point] = {}
        ranks: dict[str, int] = {}
        orders: dict[str, int] = {}
        s_cursor = margin
        max_p = 0.0
        max_s = 0.0

        for comp in connected_components(graph):
            sub = ordered_subgraph(graph, comp)
            la = LayerAssignment.assign(sub)
            if la.back_edges:
                logger.debug("Broke %d back-edge(s) in component of %d node(s)", len(la.back_edges), len(comp))
            aug = insert_dummy_nodes(la)
            ordering = minimise_crossings(aug, self.config.max_ordering_passes)
            coords = assign_coordinates(ordering, aug, sizes, orientation, spacing, self.config.dummy_extent)

            comp_s_end = 0.0
            for layer_nodes in ordering:
                for order, node_id in enumerate(nid for nid in layer_nodes if nid not in aug.dummy_ids):
                    p_c, s_c = coords[node_id]
                    p_ext, s_ext = _extents(sizes.get(node_id, _ZERO), orientation)
                    p_c += margin
                    s_c += s_cursor
                    centers[node_id] = _to_point(p_c, s_c, orientation)
                    ranks[node_id] = la.layers[node_id]
                    orders[node_id] = order
                    comp_s_end = max(comp_s_end, s_c + s_ext / 2)
                    max_p = max(max_p, p_c + p_ext / 2)

            max_s = max(max_s, comp_s_end)
            s_cursor = comp_s_end + spacing.node_spacing

        bounds = _to_point(max_p + margin, max_s + margin, orientation)
        logger.debug("Laid out %d node(s) %s", n, orientation.name.lower())
        return LayeredLayout(
            centers={nid: centers[nid] for nid in graph.nodes},
            ranks={nid: ranks[nid] for nid in graph.nodes},
            orders={nid: orders[nid] for nid in graph.nodes},
            orientation=orientation,
            size=Size(bounds.x, bounds.y),
        )


def _to_point(p: float, s: float, orientation: Orientation) -> Point:
    if orientation is Orientation.HORIZONTAL:
        return Point(p, s)
    return Point(s, p)


def layered_layout(
    graph: nx.DiGraph,
    sizes: dict[str, Size],
    orientation: Orientation | None = None,
    spacing: SpacingStep | None = None,
    config: LayoutConfig = DEFAULT_CONFIG,
    margin: float | None = None,
) -> LayeredLayout:
    """Run the layered layout pipeline; see ``SugiyamaLayout``."""
    return SugiyamaLayout(config).layout(graph, sizes, orientation, spacing, margin)
