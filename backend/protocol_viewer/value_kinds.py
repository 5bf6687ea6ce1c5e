"""
Closed classification of JSON values.

Every renderer, editor and counter branch dispatches on ValueKind instead of
repeating isinstance() chains. The kind is decided once per value.
"""

from enum import Enum
from typing import Any


class ValueKind(Enum):
    """Shape of a normalized JSON value."""
    NULL = "null"
    BOOL = "bool"
    NUMBER = "number"
    TEXT = "text"
    RECORD = "record"            # dict
    RECORD_LIST = "record_list"  # non-empty list where every element is a dict
    LIST = "list"                # any other list, including empty

    @property
    def is_scalar(self) -> bool:
        return self in (ValueKind.NULL, ValueKind.BOOL, ValueKind.NUMBER, ValueKind.TEXT)

    @property
    def is_container(self) -> bool:
        return not self.is_scalar


def is_record(value: Any) -> bool:
    return isinstance(value, dict)


def is_record_list(value: Any) -> bool:
    return isinstance(value, list) and len(value) > 0 and all(isinstance(item, dict) for item in value)


def kind_of(value: Any) -> ValueKind:
    """
    Classify ``value``.

    Raises:
        TypeError: If ``value`` is not a JSON-compatible Python value.
    """
    if value is None:
        return ValueKind.NULL
    # bool before int: bool is an int subclass
    if isinstance(value, bool):
        return ValueKind.BOOL
    if isinstance(value, (int, float)):
        return ValueKind.NUMBER
    if isinstance(value, str):
        return ValueKind.TEXT
    if isinstance(value, dict):
        return ValueKind.RECORD
    if isinstance(value, list):
        return ValueKind.RECORD_LIST if is_record_list(value) else ValueKind.LIST
    raise TypeError(f"Not a JSON value: {type(value).__name__}")


def stringify_scalar(value: Any) -> str:
    """Text form of a scalar the way it appears in the source JSON."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)
