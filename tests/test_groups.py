"""Tests for layout/groups.py — partitioning, meta ordering, shelf packing, composition."""

from __future__ import annotations

from erd_layout.ir.graph import LayoutGraph
from erd_layout.ir.schema import Field, Ref, Schema, Table, TableGroup
from erd_layout.layout.groups import (
    GroupBlock,
    GroupComposer,
    MetaOrderFallback,
    MetaOrderOk,
    cross_group_edges,
    flat_layout,
    layout_block,
    meta_order,
    pack_blocks,
    partition_groups,
    resolve_order,
)
from erd_layout.layout.sugiyama import LayeredLayout
from erd_layout.layout.types import UNGROUPED
from erd_layout.types import Orientation, Point, Size

# ─── Helpers ──────────────────────────────────────────────────────────────────


def table(id: str, n_fields: int = 1) -> Table:
    return Table(id=id, name=id, fields=tuple(Field(f"c{i}", "int") for i in range(n_fields)))


def graph(tables, refs=(), groups=()) -> LayoutGraph:
    return LayoutGraph.from_schema(Schema(tables=list(tables), refs=list(refs), groups=list(groups)))


def block(name: str, width: float, height: float, key: int = 0) -> GroupBlock:
    return GroupBlock(name=name, local={}, width=width, height=height, key=key)


def assert_no_overlap(result) -> None:
    nodes = list(result.values())
    for i, a in enumerate(nodes):
        for b in nodes[i + 1 :]:
            separated = (
                a.position.x + a.size.width <= b.position.x
                or b.position.x + b.size.width <= a.position.x
                or a.position.y + a.size.height <= b.position.y
                or b.position.y + b.size.height <= a.position.y
            )
            assert separated, f"{a.table_id} overlaps {b.table_id}"


def sample_grouped() -> LayoutGraph:
    return graph(
        [table("users", 3), table("orders", 5), table("items", 2), table("audit", 1), table("misc", 4)],
        refs=[Ref("orders", "users"), Ref("items", "orders"), Ref("audit", "users")],
        groups=[TableGroup("sales", ("orders", "items")), TableGroup("core", ("users",))],
    )


# ─── Partitioning ─────────────────────────────────────────────────────────────


class TestPartitionGroups:
    def test_ungrouped_last(self):
        parts = partition_groups(sample_grouped())
        assert parts == [
            ("sales", ["orders", "items"]),
            ("core", ["users"]),
            (UNGROUPED, ["audit", "misc"]),
        ]

    def test_empty_group_skipped(self):
        lg = graph([table("a")], groups=[TableGroup("ghosts", ("x", "y")), TableGroup("g", ("a",))])
        assert partition_groups(lg) == [("g", ["a"])]

    def test_cross_group_edges_distinct(self):
        lg = graph(
            [table("a"), table("b"), table("c")],
            refs=[Ref("a", "c"), Ref("b", "c"), Ref("a", "b")],
            groups=[TableGroup("g1", ("a", "b")), TableGroup("g2", ("c",))],
        )
        assert cross_group_edges(lg, partition_groups(lg)) == [(0, 1)]


# ─── Block Layout ─────────────────────────────────────────────────────────────


class TestLayoutBlock:
    def test_local_coordinates_non_negative(self):
        lg = sample_grouped()
        for name, members in partition_groups(lg):
            blk = layout_block(lg, name, members)
            assert min(p.x for p in blk.local.values()) == 0.0
            assert min(p.y for p in blk.local.values()) == 0.0

    def test_block_extent_covers_members(self):
        lg = sample_grouped()
        blk = layout_block(lg, "sales", ["orders", "items"])
        for nid, p in blk.local.items():
            size = lg.size_of(nid)
            assert p.x + size.width <= blk.width + 1e-9
            assert p.y + size.height <= blk.height + 1e-9

    def test_large_group_stacks_vertically(self):
        ids = [f"t{i}" for i in range(7)]
        lg = graph([table(i) for i in ids], refs=[Ref("t0", "t1")], groups=[TableGroup("big", tuple(ids))])
        blk = layout_block(lg, "big", ids)
        # Seven tables exceed the group threshold: t0 -> t1 ranks go top to bottom.
        assert blk.local["t1"].y > blk.local["t0"].y


# ─── Group Ordering ───────────────────────────────────────────────────────────


class TestMetaOrder:
    def test_single_block_trivially_ok(self):
        assert meta_order([block("only", 10, 10)], []) == MetaOrderOk([0])

    def test_edges_order_left_to_right(self):
        blocks = [block("downstream", 300, 200, key=0), block("upstream", 300, 200, key=1)]
        result = meta_order(blocks, [(1, 0)])
        assert result == MetaOrderOk([1, 0])

    def test_duplicate_names_ordered_separately(self):
        blocks = [block("g", 300, 200, key=0), block("g", 300, 200, key=1)]
        assert meta_order(blocks, [(1, 0)]) == MetaOrderOk([1, 0])

    def test_raising_layout_falls_back(self):
        def broken(*args, **kwargs):
            raise ValueError("boom")

        result = meta_order([block("a", 1, 1, key=0), block("b", 2, 2, key=1)], [], layout_fn=broken)
        assert isinstance(result, MetaOrderFallback)
        assert "boom" in result.reason

    def test_missing_center_falls_back(self):
        def partial(graph, sizes, **kwargs):
            return LayeredLayout(
                centers={0: Point(0.0, 0.0)},
                ranks={0: 0},
                orders={0: 0},
                orientation=Orientation.HORIZONTAL,
                size=Size(0.0, 0.0),
            )

        result = meta_order([block("a", 1, 1, key=0), block("b", 2, 2, key=1)], [], layout_fn=partial)
        assert isinstance(result, MetaOrderFallback)
        assert "'b'" in result.reason

    def test_non_finite_center_falls_back(self):
        def nan_layout(graph, sizes, **kwargs):
            centers = {nid: Point(float("nan"), 0.0) for nid in graph.nodes}
            return LayeredLayout(centers, {}, {}, Orientation.HORIZONTAL, Size(0.0, 0.0))

        result = meta_order([block("a", 1, 1, key=0), block("b", 2, 2, key=1)], [], layout_fn=nan_layout)
        assert isinstance(result, MetaOrderFallback)

    def test_fallback_sorts_by_area(self):
        blocks = [block("small", 10, 10, key=0), block("large", 100, 100, key=1), block("mid", 50, 50, key=2)]
        ordered = resolve_order(blocks, MetaOrderFallback("test"))
        assert [b.name for b in ordered] == ["large", "mid", "small"]

    def test_ok_order_respected(self):
        blocks = [block("a", 1, 1, key=0), block("b", 1, 1, key=1)]
        assert [b.name for b in resolve_order(blocks, MetaOrderOk([1, 0]))] == ["b", "a"]


# ─── Shelf Packing ────────────────────────────────────────────────────────────


class TestPackBlocks:
    def test_wide_blocks_wrap_rows(self):
        blocks = [block(f"g{i}", 2000, 100, key=i) for i in range(3)]
        origins = pack_blocks(blocks)
        assert origins == {
            0: Point(0.0, 0.0),
            1: Point(0.0, 200.0),
            2: Point(0.0, 400.0),
        }

    def test_small_blocks_share_row(self):
        blocks = [block(f"g{i}", 100, 100, key=i) for i in range(3)]
        origins = pack_blocks(blocks)
        assert [origins[i] for i in range(3)] == [Point(0.0, 0.0), Point(200.0, 0.0), Point(400.0, 0.0)]

    def test_same_name_blocks_packed_apart(self):
        blocks = [block("g", 100, 100, key=0), block("g", 100, 100, key=1)]
        assert pack_blocks(blocks) == {0: Point(0.0, 0.0), 1: Point(200.0, 0.0)}

    def test_oversized_first_block_not_wrapped(self):
        origins = pack_blocks([block("huge", 5000, 100)])
        assert origins[0] == Point(0.0, 0.0)

    def test_row_height_is_tallest_block(self):
        blocks = [block("a", 1500, 300, key=0), block("b", 1000, 50, key=1), block("c", 2000, 10, key=2)]
        origins = pack_blocks(blocks)
        assert origins[1] == Point(1600.0, 0.0)
        assert origins[2] == Point(0.0, 400.0)


# ─── Composition ──────────────────────────────────────────────────────────────


class TestGroupComposer:
    def test_no_groups_matches_flat(self):
        lg = graph([table("a"), table("b")], refs=[Ref("a", "b")])
        assert GroupComposer().compose(lg) == flat_layout(lg)

    def test_every_table_placed_once(self):
        lg = sample_grouped()
        result = GroupComposer().compose(lg)
        assert list(result) == lg.node_ids()
        assert all(not node.pinned for node in result.values())

    def test_no_overlap(self):
        assert_no_overlap(GroupComposer().compose(sample_grouped()))

    def test_group_members_stay_together(self):
        lg = sample_grouped()
        result = GroupComposer().compose(lg)
        sales = [result["orders"], result["items"]]
        others = [result["users"], result["audit"], result["misc"]]
        s_right = max(n.position.x + n.size.width for n in sales)
        s_left = min(n.position.x for n in sales)
        s_bottom = max(n.position.y + n.size.height for n in sales)
        s_top = min(n.position.y for n in sales)
        for node in others:
            inside = s_left <= node.position.x < s_right and s_top <= node.position.y < s_bottom
            assert not inside

    def test_broken_meta_layout_still_composes(self):
        def broken(*args, **kwargs):
            raise ValueError("meta layout unavailable")

        lg = graph(
            [table("tiny"), table("big1", 8), table("big2", 8), table("big3", 8)],
            refs=[Ref("big1", "big2"), Ref("big2", "big3")],
            groups=[TableGroup("small", ("tiny",)), TableGroup("large", ("big1", "big2", "big3"))],
        )
        result = GroupComposer(meta_layout=broken).compose(lg)
        assert set(result) == {"tiny", "big1", "big2", "big3"}
        assert_no_overlap(result)
        # Largest group packs first, at the origin.
        assert min(result[n].position.x for n in ("big1", "big2", "big3")) == 0.0
        assert result["tiny"].position.x > 0.0

    def test_duplicate_group_names_keep_all_tables(self):
        lg = graph(
            [table("A"), table("B"), table("C"), table("D")],
            groups=[TableGroup("g", ("A", "B")), TableGroup("g", ("C", "D"))],
        )
        result = GroupComposer().compose(lg)
        assert list(result) == ["A", "B", "C", "D"]
        assert_no_overlap(result)

    def test_group_named_like_ungrouped_keeps_all_tables(self):
        lg = graph([table("A"), table("B"), table("C")], groups=[TableGroup(UNGROUPED, ("A", "B"))])
        parts = partition_groups(lg)
        assert parts == [(UNGROUPED, ["A", "B"]), (UNGROUPED, ["C"])]
        result = GroupComposer().compose(lg)
        assert list(result) == ["A", "B", "C"]
        assert_no_overlap(result)

    def test_deterministic(self):
        lg = sample_grouped()
        assert GroupComposer().compose(lg) == GroupComposer().compose(lg)
