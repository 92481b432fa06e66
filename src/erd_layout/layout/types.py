"""Layout types shared across layout engines and callers."""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from typing import Any

from erd_layout.types import Point, Size


@dataclass(frozen=True)
class TableNode:
    """A positioned table: top-left ``position`` plus box ``size``."""

    table_id: str
    position: Point
    size: Size
    pinned: bool = False

    @property
    def center(self) -> Point:
        return Point(self.position.x + self.size.width / 2, self.position.y + self.size.height / 2)

    def moved_to(self, x: float, y: float, pinned: bool | None = None) -> TableNode:
        return replace(self, position=Point(x, y), pinned=self.pinned if pinned is None else pinned)

    def to_dict(self) -> dict[str, Any]:
        return {
            "tableId": self.table_id,
            "position": {"x": self.position.x, "y": self.position.y},
            "size": {"width": self.size.width, "height": self.size.height},
            "pinned": self.pinned,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> TableNode:
        """Parse the camelCase JSON shape produced by ``to_dict``.

        Raises:
            ValueError: If a key is missing or a coordinate is not a finite number.
        """
        try:
            position = Point(float(data["position"]["x"]), float(data["position"]["y"]))
            size_data = data.get("size") or {"width": 0.0, "height": 0.0}
            size = Size(float(size_data["width"]), float(size_data["height"]))
            table_id = str(data["tableId"])
        except (KeyError, TypeError) as e:
            raise ValueError(f"malformed table node: {e}") from e
        if not all(math.isfinite(v) for v in (position.x, position.y, size.width, size.height)):
            raise ValueError(f"table node {table_id!r} has non-finite geometry")
        return cls(table_id=table_id, position=position, size=size, pinned=bool(data.get("pinned", False)))


LayoutResult = dict[str, TableNode]


@dataclass
class FocusLayout:
    """Focus-mode output: which tables stay visible and where they go."""

    table_ids: frozenset[str] = frozenset()
    nodes: LayoutResult = field(default_factory=dict)


def top_left_from_center(table_id: str, center: Point, size: Size, pinned: bool = False) -> TableNode:
    return TableNode(
        table_id=table_id,
        position=Point(center.x - size.width / 2, center.y - size.height / 2),
        size=size,
        pinned=pinned,
    )


# Prefix constants
DUMMY_PREFIX = "__dummy_"
UNGROUPED = "__ungrouped"
