"""
Completion counting for protocol documents.

Every leaf counts toward the total. A leaf is filled unless it is null,
False, or blank text. Empty arrays and empty records count as one unfilled
leaf each, so an empty section still pulls the percentage down.
"""

from dataclasses import dataclass
from typing import Any

from .value_kinds import ValueKind, kind_of


@dataclass(frozen=True)
class FieldCount:
    total: int = 0
    filled: int = 0

    def __add__(self, other: "FieldCount") -> "FieldCount":
        return FieldCount(self.total + other.total, self.filled + other.filled)

    @property
    def percent(self) -> int:
        """Rounded completion percentage, 0 when there are no fields."""
        if self.total <= 0:
            return 0
        return int(round(100 * self.filled / self.total))

    def to_dict(self) -> dict:
        return {"total": self.total, "filled": self.filled, "percent": self.percent}


def _is_filled(value: Any) -> bool:
    if value is False:
        return False
    if isinstance(value, str) and not value.strip():
        return False
    return True


def count_fields(value: Any) -> FieldCount:
    """Count total vs. filled leaves of ``value``."""
    kind = kind_of(value)
    if kind == ValueKind.NULL:
        return FieldCount(1, 0)
    if kind.is_scalar:
        return FieldCount(1, 1 if _is_filled(value) else 0)
    items = list(value.values()) if kind == ValueKind.RECORD else value
    if not items:
        return FieldCount(1, 0)
    result = FieldCount()
    for item in items:
        result = result + count_fields(item)
    return result
