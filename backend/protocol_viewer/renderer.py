"""
Read-only rendering of normalized protocol values.

render_value() turns a value of unknown shape into a DisplayTree, a small
tree of nodes that the dashboard draws without inspecting the raw data:

    TextNode          a stringified scalar
    PlaceholderNode   null / missing / empty / "?" values
    InlineListNode    an array of scalars (or an empty array)
    TableNode         an array of records, one row per record
    KeyValueNode      a record, one (key, node) entry per key
    BlockListNode     an irregular array, one node per item
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from .columns import columns_for
from .json_sniffer import try_parse_json_string
from .value_kinds import ValueKind, kind_of, stringify_scalar

PLACEHOLDER = "?"


@dataclass
class DisplayNode:
    """Base class for DisplayTree nodes."""

    kind = "node"

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind}


@dataclass
class TextNode(DisplayNode):
    text: str
    kind = "text"

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind, "text": self.text}


@dataclass
class PlaceholderNode(DisplayNode):
    token: str = PLACEHOLDER
    kind = "placeholder"

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind, "token": self.token}


@dataclass
class InlineListNode(DisplayNode):
    items: List[str] = field(default_factory=list)
    kind = "inline_list"

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind, "items": list(self.items)}


@dataclass
class TableNode(DisplayNode):
    columns: List[str] = field(default_factory=list)
    rows: List[List[DisplayNode]] = field(default_factory=list)
    kind = "table"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind,
            "columns": list(self.columns),
            "rows": [[cell.to_dict() for cell in row] for row in self.rows],
        }


@dataclass
class KeyValueNode(DisplayNode):
    entries: List[Tuple[str, DisplayNode]] = field(default_factory=list)
    kind = "key_value"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind,
            "entries": [{"key": key, "value": node.to_dict()} for key, node in self.entries],
        }


@dataclass
class BlockListNode(DisplayNode):
    items: List[DisplayNode] = field(default_factory=list)
    kind = "block_list"

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind, "items": [item.to_dict() for item in self.items]}


def is_placeholder_value(value: Any) -> bool:
    return value is None or value == "" or value == PLACEHOLDER


def render_scalar(value: Any) -> DisplayNode:
    if is_placeholder_value(value):
        return PlaceholderNode()
    return TextNode(stringify_scalar(value))


def render_table(rows: List[Dict[str, Any]], key_name: Optional[str] = None) -> TableNode:
    """One row per record; cells missing from a record render as placeholders."""
    columns = columns_for(key_name, rows)
    table_rows = []
    for row in rows:
        cells = []
        for column in columns:
            if column in row:
                cells.append(render_value(row[column], column))
            else:
                cells.append(PlaceholderNode())
        table_rows.append(cells)
    return TableNode(columns=columns, rows=table_rows)


def render_list(items: List[Any], key_name: Optional[str] = None) -> DisplayNode:
    kinds = [kind_of(item) for item in items]
    if all(k.is_scalar for k in kinds):
        return InlineListNode([
            PLACEHOLDER if is_placeholder_value(item) else stringify_scalar(item) for item in items
        ])
    return BlockListNode([render_value(item, key_name) for item in items])


def render_record(record: Dict[str, Any]) -> DisplayNode:
    if not record:
        return PlaceholderNode()
    return KeyValueNode([(str(key), render_value(value, str(key))) for key, value in record.items()])


def render_value(value: Any, key_name: Optional[str] = None) -> DisplayNode:
    """
    Build the DisplayTree for ``value``.

    Args:
        value: A JSON-compatible value of any shape.
        key_name: Section or field name; drives forced table columns.

    Returns:
        The root DisplayNode.
    """
    if isinstance(value, str):
        parsed = try_parse_json_string(value)
        if parsed is not None:
            return render_value(parsed, key_name)

    kind = kind_of(value)
    if kind == ValueKind.RECORD_LIST:
        return render_table(value, key_name)
    if kind == ValueKind.LIST:
        return render_list(value, key_name)
    if kind == ValueKind.RECORD:
        return render_record(value)
    return render_scalar(value)
