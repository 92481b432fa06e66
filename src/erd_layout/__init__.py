"""erd-layout: automatic entity-relationship diagram layout."""

from erd_layout.config import DEFAULT_CONFIG, LayoutConfig, SizingConfig, SpacingStep
from erd_layout.ir.schema import Field, Ref, Schema, Table, TableGroup
from erd_layout.layout.engine import (
    compute_focus_layout,
    compute_layout,
    content_bounds,
    force_arrange_layout,
    merge_layout,
    pin_node,
    unpin_all,
)
from erd_layout.layout.types import FocusLayout, LayoutResult, TableNode
from erd_layout.sizing import estimate_size
from erd_layout.types import Orientation, Point, Size

__all__ = [
    "DEFAULT_CONFIG",
    "Field",
    "FocusLayout",
    "LayoutConfig",
    "LayoutResult",
    "Orientation",
    "Point",
    "Ref",
    "Schema",
    "Size",
    "SizingConfig",
    "SpacingStep",
    "Table",
    "TableGroup",
    "TableNode",
    "compute_focus_layout",
    "compute_layout",
    "content_bounds",
    "estimate_size",
    "force_arrange_layout",
    "layout_json",
    "merge_layout",
    "pin_node",
    "unpin_all",
]


def layout_json(data: dict, collapsed: bool = False) -> dict:
    """Force-arrange a schema given in its JSON shape; returns JSON-ready nodes.

    Raises:
        ValueError: If the schema payload is malformed.
    """
    schema = Schema.from_dict(data)
    result = force_arrange_layout(schema, collapsed=collapsed)
    return {nid: node.to_dict() for nid, node in result.items()}
