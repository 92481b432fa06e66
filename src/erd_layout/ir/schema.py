"""Schema model consumed by the layout engine.

These dataclasses mirror the graph model handed over by the schema-parsing
collaborator. ``Schema.from_dict`` accepts its JSON shape (camelCase keys).
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class Field:
    name: str
    type: str = ""


@dataclass(frozen=True)
class Table:
    id: str
    name: str
    fields: tuple[Field, ...] = ()


@dataclass(frozen=True)
class Ref:
    """A reference (foreign key) from one table to another."""

    from_table_id: str
    to_table_id: str


@dataclass(frozen=True)
class TableGroup:
    name: str
    member_ids: tuple[str, ...] = ()
    color: str | None = None


@dataclass
class Schema:
    tables: list[Table] = field(default_factory=list)
    refs: list[Ref] = field(default_factory=list)
    groups: list[TableGroup] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Schema:
        """Build a Schema from the collaborator's JSON shape.

        Raises:
            ValueError: If the payload or one of its entries is malformed.
        """
        if not isinstance(data, Mapping):
            raise ValueError("schema must be a JSON object")
        tables = [_parse_table(i, entry) for i, entry in enumerate(data.get("tables") or [])]
        refs = [_parse_ref(i, entry) for i, entry in enumerate(data.get("refs") or [])]
        groups = [_parse_group(i, entry) for i, entry in enumerate(data.get("groups") or [])]
        return cls(tables=tables, refs=refs, groups=groups)


def _require_mapping(kind: str, index: int, entry: Any) -> Mapping[str, Any]:
    if not isinstance(entry, Mapping):
        raise ValueError(f"{kind}[{index}] must be an object, got {type(entry).__name__}")
    return entry


def _require_str(kind: str, index: int, entry: Mapping[str, Any], *keys: str) -> str:
    for key in keys:
        value = entry.get(key)
        if value is not None:
            return str(value)
    raise ValueError(f"{kind}[{index}] is missing '{keys[0]}'")


def _parse_table(index: int, entry: Any) -> Table:
    entry = _require_mapping("tables", index, entry)
    table_id = _require_str("tables", index, entry, "id", "name")
    name = str(entry.get("name") or table_id)
    raw_fields = entry.get("fields")
    if raw_fields is None:
        raw_fields = entry.get("columns") or []
    fields: list[Field] = []
    for j, raw in enumerate(raw_fields):
        raw = _require_mapping(f"tables[{index}].fields", j, raw)
        fields.append(Field(name=str(raw.get("name", "")), type=str(raw.get("type", ""))))
    return Table(id=table_id, name=name, fields=tuple(fields))


def _parse_ref(index: int, entry: Any) -> Ref:
    entry = _require_mapping("refs", index, entry)
    return Ref(
        from_table_id=_require_str("refs", index, entry, "fromTableId", "fromTable"),
        to_table_id=_require_str("refs", index, entry, "toTableId", "toTable"),
    )


def _parse_group(index: int, entry: Any) -> TableGroup:
    entry = _require_mapping("groups", index, entry)
    members = entry.get("memberIds")
    if members is None:
        members = entry.get("tables") or []
    color = entry.get("color")
    return TableGroup(
        name=_require_str("groups", index, entry, "name"),
        member_ids=tuple(str(m) for m in members),
        color=None if color is None else str(color),
    )
