"""Table box size estimation.

Approximates rendered text widths with fixed per-character advances; exact
font metrics are owned by the canvas renderer.
"""

from __future__ import annotations

from collections.abc import Iterable

from erd_layout.config import DEFAULT_CONFIG, LayoutConfig
from erd_layout.ir.schema import Field
from erd_layout.types import Size


def header_width(label: str, config: LayoutConfig = DEFAULT_CONFIG) -> float:
    s = config.sizing
    return len(label) * s.header_char_width + s.header_extra


def field_width(f: Field, config: LayoutConfig = DEFAULT_CONFIG) -> float:
    """Approximate monospace width of a ``name : type`` row."""
    s = config.sizing
    return (len(f.name) + len(f.type) + 4) * s.column_char_width + s.column_extra


def estimate_size(
    label: str,
    fields: Iterable[Field],
    collapsed: bool = False,
    config: LayoutConfig = DEFAULT_CONFIG,
) -> Size:
    s = config.sizing
    fields = list(fields)
    widest_field = max((field_width(f, config) for f in fields), default=0.0)
    width = max(s.min_width, header_width(label, config), widest_field) + s.side_padding
    if collapsed:
        height = s.header_height + s.collapsed_extra
    else:
        height = s.header_height + len(fields) * s.row_height + s.bottom_padding
    return Size(width=width, height=height)
