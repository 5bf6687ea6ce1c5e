"""
Shape-preserving editing of protocol sections.

An EditSession owns a private draft of one value (a whole section, or one
row of an array section) and exposes the operations the dashboard needs:

    records        set_text / toggle / raw JSON editor per field
    record arrays  add_row / delete_row / row_session / apply_row
    other arrays   raw JSON editor for the whole value
    scalars        set_value_text

Drafts are never mutated in place; every change rebuilds the affected path
with key_path.set_in(), so cancel() and a rejected raw-JSON commit always
leave the previous draft intact.

EditController is the per-page state machine: nothing is being edited, or
exactly one section is, with optional row sessions keyed "section::index".
"""

import copy
import json
import logging
import math
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Optional, Sequence, Tuple

from .columns import columns_for
from .json_sniffer import loads_strict, try_parse_json_string
from .key_path import format_path, set_in
from .value_kinds import ValueKind, kind_of, stringify_scalar

logger = logging.getLogger(__name__)

READ_ONLY_SECTIONS: FrozenSet[str] = frozenset({"Schema"})

ROOT: Tuple = ()

_YES_NO = re.compile(r"yes|no", re.IGNORECASE)


class JsonEditError(ValueError):
    """Raw JSON text could not be parsed; nothing was changed."""


class EditShapeError(ValueError):
    """The requested operation does not apply to the value's shape."""


class FieldControl(Enum):
    """Control used for one key of a record."""
    TOGGLE = "toggle"    # bool, or "Yes"/"No" text
    COMPLEX = "complex"  # nested record or array: preview + raw JSON editor
    TEXT = "text"        # any other scalar


@dataclass
class FieldView:
    key: str
    control: FieldControl
    display: str
    checked: Optional[bool] = None
    raw_open: bool = False


@dataclass
class EditableView:
    """Everything needed to draw an EditSession."""
    session_key: str
    kind: ValueKind
    fields: List[FieldView] = field(default_factory=list)
    columns: List[str] = field(default_factory=list)
    rows: List[Dict[str, str]] = field(default_factory=list)
    text: Optional[str] = None
    raw_target: Optional[Tuple] = None
    raw_text: str = ""
    error: Optional[str] = None

    @property
    def raw_open_for_root(self) -> bool:
        return self.raw_target == ROOT


def is_boolean_like(value: Any) -> bool:
    return isinstance(value, bool) or (isinstance(value, str) and bool(_YES_NO.fullmatch(value.strip())))


def parse_raw_json(text: str) -> Any:
    """
    Parse raw editor text: the tolerant sniffer first, strict JSON second.

    Raises:
        JsonEditError: If neither accepts the text.
    """
    parsed = try_parse_json_string(text)
    if parsed is not None:
        return parsed
    try:
        return loads_strict(text)
    except ValueError as e:
        raise JsonEditError(f"Invalid JSON: {e}") from e


def preview(value: Any) -> str:
    """Short read-only summary of a nested value."""
    if isinstance(value, list):
        return f"{len(value)} item(s)"
    if isinstance(value, dict):
        return "Object"
    return text_of(value)


def text_of(value: Any) -> str:
    return "" if value is None else stringify_scalar(value)


def _coerce_text(text: str, current: Any) -> Any:
    """Keep numbers numeric when the new text still reads as a number."""
    if not isinstance(current, (int, float)) or isinstance(current, bool):
        return text
    try:
        number = loads_strict(text.strip())
    except ValueError:
        return text
    if isinstance(number, bool) or not isinstance(number, (int, float)):
        return text
    if isinstance(number, float) and not math.isfinite(number):
        return text
    if isinstance(current, float) and isinstance(number, int):
        return float(number)
    return number


def _toggled(value: Any) -> Any:
    if isinstance(value, bool):
        return not value
    return "No" if value.strip().lower() == "yes" else "Yes"


class EditSession:
    """Draft of one value under edit."""

    def __init__(self, value: Any, session_key: str = ""):
        parsed = try_parse_json_string(value)
        initial = parsed if parsed is not None else value
        self.session_key = session_key
        self._original = copy.deepcopy(initial)
        self._draft = copy.deepcopy(initial)
        self._raw_target: Optional[Tuple] = None
        self._raw_text = ""
        self.error: Optional[str] = None

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def value(self) -> Any:
        return self._draft

    @property
    def kind(self) -> ValueKind:
        return kind_of(self._draft)

    @property
    def is_dirty(self) -> bool:
        return self._draft != self._original

    @property
    def raw_target(self) -> Optional[Tuple]:
        return self._raw_target

    @property
    def raw_text(self) -> str:
        return self._raw_text

    def _require(self, *kinds: ValueKind) -> ValueKind:
        kind = self.kind
        if kind not in kinds:
            expected = ", ".join(k.value for k in kinds)
            raise EditShapeError(f"{self.session_key or 'value'} is {kind.value}, expected {expected}")
        return kind

    def _require_record_key(self, key: str) -> Any:
        self._require(ValueKind.RECORD)
        if key not in self._draft:
            raise KeyError(key)
        return self._draft[key]

    # ------------------------------------------------------------------
    # Records
    # ------------------------------------------------------------------

    def set_text(self, key: str, text: str) -> None:
        """Bind free text to a scalar field. Unchanged text is a no-op."""
        current = self._require_record_key(key)
        if isinstance(current, (dict, list)):
            raise EditShapeError(f"{key} holds a nested value; use the raw JSON editor")
        if text == text_of(current):
            return
        self._draft = set_in(self._draft, [key], _coerce_text(text, current))

    def toggle(self, key: str) -> None:
        """Flip a bool or a Yes/No field, keeping its representation."""
        current = self._require_record_key(key)
        if not is_boolean_like(current):
            raise EditShapeError(f"{key} is not a boolean or Yes/No field")
        self._draft = set_in(self._draft, [key], _toggled(current))

    # ------------------------------------------------------------------
    # Raw JSON editor (one field, or the whole value)
    # ------------------------------------------------------------------

    def open_raw_editor(self, key: Optional[str] = None) -> str:
        """Open the raw editor on ``key`` (or the whole value) and return its text."""
        if key is None:
            target, current = ROOT, self._draft
        else:
            target, current = (key,), self._require_record_key(key)
        self._raw_target = target
        self._raw_text = json.dumps(current, indent=2, ensure_ascii=False)
        self.error = None
        return self._raw_text

    def set_raw_text(self, text: str) -> None:
        if self._raw_target is None:
            raise EditShapeError("Raw JSON editor is not open")
        self._raw_text = text

    def commit_raw(self) -> Any:
        """
        Replace the raw editor's target with the parsed text.

        Raises:
            JsonEditError: If the text is not JSON. The draft is unchanged
                and the editor stays open.
        """
        if self._raw_target is None:
            raise EditShapeError("Raw JSON editor is not open")
        try:
            parsed = parse_raw_json(self._raw_text)
        except JsonEditError as e:
            self.error = str(e)
            logger.info(f"Rejected raw JSON for {self.session_key}{format_path(self._raw_target)}: {e}")
            raise
        self._draft = set_in(self._draft, list(self._raw_target), parsed)
        self.cancel_raw()
        return parsed

    def cancel_raw(self) -> None:
        self._raw_target = None
        self._raw_text = ""
        self.error = None

    # ------------------------------------------------------------------
    # Arrays of records
    # ------------------------------------------------------------------

    def _require_row_array(self) -> List[Any]:
        kind = self.kind
        if kind == ValueKind.RECORD_LIST or (kind == ValueKind.LIST and not self._draft):
            return self._draft
        raise EditShapeError(f"{self.session_key or 'value'} is not an array of records")

    def add_row(self) -> int:
        """Append a row shaped like the first one, with empty values."""
        rows = self._require_row_array()
        first = next((row for row in rows if isinstance(row, dict)), None)
        new_row = {key: "" for key in first} if first else {}
        self._draft = rows + [new_row]
        return len(self._draft) - 1

    def delete_row(self, index: int) -> None:
        rows = self._require_row_array()
        if not 0 <= index < len(rows):
            raise IndexError(index)
        self._draft = rows[:index] + rows[index + 1:]

    def row_key(self, index: int) -> str:
        return f"{self.session_key}::{index}"

    def row_session(self, index: int) -> "EditSession":
        rows = self._require_row_array()
        return EditSession(rows[index], self.row_key(index))

    def apply_row(self, index: int, row: Any) -> None:
        self._require_row_array()
        self._draft = set_in(self._draft, [index], row)

    # ------------------------------------------------------------------
    # Scalars
    # ------------------------------------------------------------------

    def set_value_text(self, text: str) -> None:
        current = self._draft
        if not self.kind.is_scalar:
            raise EditShapeError(f"{self.session_key or 'value'} is not a scalar")
        if text == text_of(current):
            return
        self._draft = _coerce_text(text, current)

    # ------------------------------------------------------------------
    # Output
    # ------------------------------------------------------------------

    def render(self) -> EditableView:
        kind = self.kind
        view = EditableView(
            session_key=self.session_key,
            kind=kind,
            raw_target=self._raw_target,
            raw_text=self._raw_text,
            error=self.error,
        )
        if kind == ValueKind.RECORD:
            for key, value in self._draft.items():
                raw_open = self._raw_target == (key,)
                if is_boolean_like(value):
                    checked = value if isinstance(value, bool) else value.lower() == "yes"
                    view.fields.append(FieldView(key, FieldControl.TOGGLE, text_of(value), checked, raw_open))
                elif isinstance(value, (dict, list)):
                    view.fields.append(FieldView(key, FieldControl.COMPLEX, preview(value), None, raw_open))
                else:
                    view.fields.append(FieldView(key, FieldControl.TEXT, text_of(value), None, raw_open))
        elif kind == ValueKind.RECORD_LIST:
            view.columns = columns_for(self.session_key.split("::")[0], self._draft)
            view.rows = [
                {column: preview(row.get(column)) for column in view.columns}
                for row in self._draft
            ]
        elif kind.is_scalar:
            view.text = text_of(self._draft)
        return view

    def commit(self) -> Any:
        """Final value of the session. An unsaved raw editor is discarded."""
        return copy.deepcopy(self._draft)

    def reset(self) -> None:
        self._draft = copy.deepcopy(self._original)
        self.cancel_raw()


def apply_section_edit(document: Optional[Dict[str, Any]], section_key: str, value: Any) -> Dict[str, Any]:
    """
    Return a copy of ``document`` with only ``section_key`` replaced.

    Every other section is carried over as the same object, in the same order.
    """
    out = dict(document or {})
    out[section_key] = value
    return out


class EditController:
    """
    One-section-at-a-time editing for a document page.

    States: ``none`` -> ``editing(section)`` -> ``none`` on save or cancel.
    While editing, row sessions of an array section are tracked under
    ``"section::index"``.
    """

    def __init__(self, read_only_sections: Sequence[str] = READ_ONLY_SECTIONS):
        self.read_only_sections = frozenset(read_only_sections)
        self.active_key: Optional[str] = None
        self.session: Optional[EditSession] = None
        self.row_sessions: Dict[str, EditSession] = {}

    @property
    def state(self) -> str:
        return "none" if self.active_key is None else "editing"

    def is_editable(self, section_key: str) -> bool:
        return section_key not in self.read_only_sections

    def is_editing(self, section_key: str) -> bool:
        return self.active_key == section_key

    def begin(self, section_key: str, value: Any) -> EditSession:
        """Start editing ``section_key``, dropping any other open session."""
        if not self.is_editable(section_key):
            raise EditShapeError(f"Section {section_key} is read-only")
        if self.active_key is not None and self.active_key != section_key:
            logger.debug(f"Discarding unsaved edit of {self.active_key}")
        self.active_key = section_key
        self.session = EditSession(value, section_key)
        self.row_sessions = {}
        return self.session

    def _require_session(self) -> EditSession:
        if self.session is None:
            raise EditShapeError("No section is being edited")
        return self.session

    def open_row(self, index: int) -> EditSession:
        session = self._require_session()
        key = session.row_key(index)
        if key not in self.row_sessions:
            self.row_sessions[key] = session.row_session(index)
        return self.row_sessions[key]

    def save_row(self, index: int) -> None:
        session = self._require_session()
        row = self.row_sessions.pop(session.row_key(index))
        session.apply_row(index, row.commit())

    def cancel_row(self, index: int) -> None:
        session = self._require_session()
        self.row_sessions.pop(session.row_key(index), None)

    def delete_row(self, index: int) -> None:
        """Delete a row; open row sessions are closed since their indexes shift."""
        session = self._require_session()
        session.delete_row(index)
        self.row_sessions = {}

    def save(self, document: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        """Write the edited section into ``document`` and return to ``none``."""
        session = self._require_session()
        updated = apply_section_edit(document, self.active_key, session.commit())
        logger.info(f"Saved section {self.active_key}")
        self.cancel()
        return updated

    def cancel(self) -> None:
        self.active_key = None
        self.session = None
        self.row_sessions = {}
