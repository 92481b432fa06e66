"""Local crossing minimization over an already laid-out subgraph.

Ranks are rediscovered from node centers rather than recomputed from the
graph. Each rank keeps its secondary-axis coordinates as fixed slots; only
the assignment of nodes to slots changes. Small ranks are solved exactly by
enumerating permutations, larger ones with the barycenter heuristic.
"""

from __future__ import annotations

import itertools
import logging
from collections.abc import Iterable, Mapping

from erd_layout.config import DEFAULT_CONFIG, LayoutConfig
from erd_layout.types import Orientation, Point

logger = logging.getLogger(__name__)


def _primary(point: Point, orientation: Orientation) -> float:
    return point.x if orientation is Orientation.HORIZONTAL else point.y


def _secondary(point: Point, orientation: Orientation) -> float:
    return point.y if orientation is Orientation.HORIZONTAL else point.x


def _with_secondary(point: Point, value: float, orientation: Orientation) -> Point:
    if orientation is Orientation.HORIZONTAL:
        return Point(point.x, value)
    return Point(value, point.y)


def discover_ranks(
    centers: Mapping[str, Point],
    orientation: Orientation,
    tolerance: float = DEFAULT_CONFIG.rank_tolerance,
) -> list[list[str]]:
    """Group nodes into ranks by primary-axis center.

    A node joins the current rank when its primary coordinate is within
    ``tolerance`` of the previous node's. Members are sorted by secondary
    coordinate.
    """
    items = sorted(
        centers,
        key=lambda nid: (_primary(centers[nid], orientation), _secondary(centers[nid], orientation), nid),
    )
    ranks: list[list[str]] = []
    prev: float | None = None
    for nid in items:
        p = _primary(centers[nid], orientation)
        if prev is not None and p - prev < tolerance:
            ranks[-1].append(nid)
        else:
            ranks.append([nid])
        prev = p
    return [sorted(rank, key=lambda nid: (_secondary(centers[nid], orientation), nid)) for rank in ranks]


def _count_inversions(pairs: list[tuple[int, int]]) -> int:
    total = 0
    for a in range(len(pairs)):
        i1, j1 = pairs[a]
        for b in range(a + 1, len(pairs)):
            i2, j2 = pairs[b]
            if (i1 - i2) * (j1 - j2) < 0:
                total += 1
    return total


class _RankState:
    """Mutable bookkeeping for one minimization run."""

    def __init__(
        self,
        centers: Mapping[str, Point],
        edges: Iterable[tuple[str, str]],
        orientation: Orientation,
        tolerance: float,
    ) -> None:
        self.orientation = orientation
        self.positions: dict[str, Point] = dict(centers)
        self.ranks = discover_ranks(centers, orientation, tolerance)
        self.slots = [[_secondary(centers[nid], orientation) for nid in rank] for rank in self.ranks]
        self.rank_of: dict[str, int] = {}
        self.index_of: dict[str, int] = {}
        for r, rank in enumerate(self.ranks):
            for i, nid in enumerate(rank):
                self.rank_of[nid] = r
                self.index_of[nid] = i

        # Edges between distinct ranks, keyed by (lower rank, higher rank).
        self.pair_edges: dict[tuple[int, int], list[tuple[str, str]]] = {}
        self.neighbors: dict[str, list[str]] = {nid: [] for nid in self.positions}
        seen: set[tuple[str, str]] = set()
        for src, tgt in edges:
            if src == tgt or src not in self.rank_of or tgt not in self.rank_of:
                continue
            key = (src, tgt) if src < tgt else (tgt, src)
            if key in seen:
                continue
            seen.add(key)
            rs, rt = self.rank_of[src], self.rank_of[tgt]
            if rs == rt:
                continue
            self.neighbors[src].append(tgt)
            self.neighbors[tgt].append(src)
            if rs < rt:
                self.pair_edges.setdefault((rs, rt), []).append((src, tgt))
            else:
                self.pair_edges.setdefault((rt, rs), []).append((tgt, src))

        self.pairs_of: dict[int, list[tuple[int, int]]] = {r: [] for r in range(len(self.ranks))}
        for key in sorted(self.pair_edges):
            self.pairs_of[key[0]].append(key)
            self.pairs_of[key[1]].append(key)

    def has_edges(self) -> bool:
        return bool(self.pair_edges)

    def pair_crossings(self, key: tuple[int, int], index_of: Mapping[str, int]) -> int:
        pairs = [(index_of[a], index_of[b]) for a, b in self.pair_edges[key]]
        return _count_inversions(pairs)

    def rank_crossings(self, r: int, index_of: Mapping[str, int]) -> int:
        return sum(self.pair_crossings(key, index_of) for key in self.pairs_of[r])

    def total_crossings(self) -> int:
        return sum(self.pair_crossings(key, self.index_of) for key in self.pair_edges)

    def trial_index(self, order: Iterable[str]) -> dict[str, int]:
        trial = dict(self.index_of)
        for i, nid in enumerate(order):
            trial[nid] = i
        return trial

    def commit(self, r: int, order: list[str]) -> None:
        self.ranks[r] = list(order)
        for i, nid in enumerate(order):
            self.index_of[nid] = i
            self.positions[nid] = _with_secondary(self.positions[nid], self.slots[r][i], self.orientation)


class CrossingMinimizer:
    """Reorders same-rank nodes to reduce edge crossings."""

    def __init__(self, orientation: Orientation, config: LayoutConfig = DEFAULT_CONFIG) -> None:
        self.orientation = orientation
        self.config = config

    def minimize(self, centers: Mapping[str, Point], edges: Iterable[tuple[str, str]]) -> dict[str, Point]:
        state = _RankState(centers, edges, self.orientation, self.config.rank_tolerance)
        if not state.has_edges():
            return dict(centers)

        before = state.total_crossings()
        for _pass in range(self.config.crossing_passes):
            for r, rank in enumerate(state.ranks):
                if len(rank) <= 1 or not state.pairs_of[r]:
                    continue
                if len(rank) <= self.config.exact_permutation_limit:
                    order = self._best_permutation(state, r)
                else:
                    order = self._barycenter_order(state, r)
                state.commit(r, order)

        logger.debug("Crossings %d -> %d over %d rank(s)", before, state.total_crossings(), len(state.ranks))
        return state.positions

    def _best_permutation(self, state: _RankState, r: int) -> list[str]:
        current = list(state.ranks[r])
        best = current
        best_count = state.rank_crossings(r, state.index_of)
        if best_count == 0:
            return best
        for perm in itertools.permutations(current):
            count = state.rank_crossings(r, state.trial_index(perm))
            if count < best_count:
                best, best_count = list(perm), count
                if count == 0:
                    break
        return best

    def _barycenter_order(self, state: _RankState, r: int) -> list[str]:
        current = list(state.ranks[r])
        keys: dict[str, float] = {}
        for nid in current:
            coords = [_secondary(state.positions[nb], self.orientation) for nb in state.neighbors[nid]]
            if coords:
                keys[nid] = sum(coords) / len(coords)
            else:
                keys[nid] = _secondary(state.positions[nid], self.orientation)
        candidate = sorted(current, key=lambda nid: (keys[nid], state.index_of[nid]))
        if state.rank_crossings(r, state.trial_index(candidate)) > state.rank_crossings(r, state.index_of):
            return current
        return candidate


def minimize_crossings(
    centers: Mapping[str, Point],
    edges: Iterable[tuple[str, str]],
    orientation: Orientation,
    config: LayoutConfig = DEFAULT_CONFIG,
) -> dict[str, Point]:
    """Return ``centers`` with secondary coordinates reassigned among rank slots."""
    return CrossingMinimizer(orientation, config).minimize(centers, edges)


def count_total_crossings(
    centers: Mapping[str, Point],
    edges: Iterable[tuple[str, str]],
    orientation: Orientation,
    tolerance: float = DEFAULT_CONFIG.rank_tolerance,
) -> int:
    """Crossings summed over every pair of discovered ranks."""
    return _RankState(centers, edges, orientation, tolerance).total_crossings()
