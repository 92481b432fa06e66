"""Intermediate representation: schema model and LayoutGraph."""

from erd_layout.ir.graph import GroupData, LayoutGraph, TableData
from erd_layout.ir.schema import Field, Ref, Schema, Table, TableGroup

__all__ = [
    "Field",
    "GroupData",
    "LayoutGraph",
    "Ref",
    "Schema",
    "Table",
    "TableData",
    "TableGroup",
]
