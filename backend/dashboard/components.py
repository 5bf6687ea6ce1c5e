"""
Streamlit widgets shared by the dashboard pages.

draw_node() draws a read-only DisplayTree; draw_section_editor() draws the
controls for the section an EditController is editing. Widgets only call the
EditSession API, so every shape rule lives in protocol_viewer.
"""

import logging
import time
from typing import Optional

import pandas as pd
import streamlit as st

from app.document_registry import get_defaults
from dashboard.api_client import ProtocolApiClient
from dashboard.config import get_dashboard_settings
from dashboard.session_mirror import DocumentSync, SessionMirror
from protocol_viewer import EditController, EditSession, JsonEditError, count_fields
from protocol_viewer.editor import FieldControl
from protocol_viewer.key_path import format_path
from protocol_viewer.renderer import (
    PLACEHOLDER,
    BlockListNode,
    DisplayNode,
    InlineListNode,
    KeyValueNode,
    PlaceholderNode,
    TableNode,
    TextNode,
)
from protocol_viewer.value_kinds import ValueKind

logger = logging.getLogger(__name__)

FLASH_KEY = "_flash"
SYNC_KEY = "_document_sync"


# =============================================================================
# Session plumbing
# =============================================================================

def configure_logging():
    settings = get_dashboard_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


@st.cache_resource
def get_api_client() -> ProtocolApiClient:
    return ProtocolApiClient()


def get_sync() -> DocumentSync:
    """Per-session DocumentSync, created on first use."""
    if SYNC_KEY not in st.session_state:
        st.session_state[SYNC_KEY] = DocumentSync(
            get_api_client(), SessionMirror(st.session_state), local_defaults=get_defaults
        )
    return st.session_state[SYNC_KEY]


def flash(message: str, level: str = "success"):
    """Queue a message that survives the next st.rerun()."""
    st.session_state[FLASH_KEY] = (level, message, time.time())


def show_flash():
    entry = st.session_state.get(FLASH_KEY)
    if not entry:
        return
    level, message, created = entry
    if time.time() - created <= get_dashboard_settings().success_message_seconds:
        getattr(st, level)(message)
    else:
        st.session_state.pop(FLASH_KEY, None)


def report_load(result, label: str):
    """Tell the user when a page is not showing backend data."""
    if result.source == "mirror":
        st.warning(f"Backend unavailable, showing the {label} saved in this session. ({result.error})")
    elif result.source == "defaults":
        st.info(f"No saved {label} yet, showing defaults.")
    elif result.error:
        st.warning(f"Backend unavailable: {result.error}")


def report_save(result, label: str):
    if result.saved_remotely:
        flash(f"{label} saved (version {result.version}).")
    elif result.conflict:
        flash(f"{label} was changed elsewhere; your edit is kept in this session. Reload to see the latest.", "warning")
    else:
        flash(f"Saved in this session only, the backend save failed: {result.error}", "warning")


# =============================================================================
# Read-only rendering
# =============================================================================

def node_text(node: DisplayNode) -> str:
    """One-line text for a node, used in table cells."""
    if isinstance(node, TextNode):
        return node.text
    if isinstance(node, PlaceholderNode):
        return node.token
    if isinstance(node, InlineListNode):
        return ", ".join(node.items)
    if isinstance(node, TableNode):
        return f"{len(node.rows)} row(s)"
    if isinstance(node, KeyValueNode):
        return "; ".join(f"{key}: {node_text(value)}" for key, value in node.entries)
    if isinstance(node, BlockListNode):
        return " | ".join(node_text(item) for item in node.items)
    return ""


def table_frame(node: TableNode) -> pd.DataFrame:
    return pd.DataFrame(
        [[node_text(cell) for cell in row] for row in node.rows],
        columns=node.columns,
    )


def draw_node(node: DisplayNode):
    if isinstance(node, TextNode):
        st.text(node.text)
    elif isinstance(node, PlaceholderNode):
        st.caption(PLACEHOLDER)
    elif isinstance(node, InlineListNode):
        if node.items:
            st.text(", ".join(node.items))
        else:
            st.caption("No items")
    elif isinstance(node, TableNode):
        st.dataframe(table_frame(node), hide_index=True, use_container_width=True)
    elif isinstance(node, KeyValueNode):
        for key, value in node.entries:
            if isinstance(value, (TextNode, PlaceholderNode, InlineListNode)):
                left, right = st.columns([1, 3])
                left.markdown(f"**{key}**")
                right.text(node_text(value))
            else:
                st.markdown(f"**{key}**")
                with st.container(border=True):
                    draw_node(value)
    elif isinstance(node, BlockListNode):
        for i, item in enumerate(node.items):
            if i:
                st.divider()
            draw_node(item)


# =============================================================================
# Editing
# =============================================================================

def draw_raw_editor(session: EditSession, widget_key: str):
    """Text area for the open raw JSON editor; Apply commits atomically."""
    target_key = f"{widget_key}:raw:{format_path(session.raw_target)}"
    text = st.text_area("Raw JSON", value=session.raw_text, key=target_key, height=220)
    apply_col, cancel_col = st.columns(2)
    if apply_col.button("Apply JSON", key=f"{target_key}:apply"):
        session.set_raw_text(text)
        try:
            session.commit_raw()
        except JsonEditError as e:
            st.error(str(e))
        else:
            st.rerun()
    if cancel_col.button("Discard JSON", key=f"{target_key}:cancel"):
        session.cancel_raw()
        st.rerun()


def draw_record_editor(session: EditSession, widget_key: str):
    for field in session.render().fields:
        field_key = f"{widget_key}:{field.key}"
        if field.control == FieldControl.TOGGLE:
            checked = st.checkbox(field.key, value=field.checked, key=field_key)
            if checked != field.checked:
                session.toggle(field.key)
        elif field.control == FieldControl.TEXT:
            text = st.text_input(field.key, value=field.display, key=field_key)
            if text != field.display:
                session.set_text(field.key, text)
        else:
            label_col, action_col = st.columns([4, 1])
            label_col.markdown(f"**{field.key}**: {field.display}")
            if field.raw_open:
                draw_raw_editor(session, field_key)
            elif action_col.button("Edit JSON", key=f"{field_key}:open"):
                session.open_raw_editor(field.key)
                st.rerun()


def _row_label(view, index: int) -> str:
    first = view.rows[index].get(view.columns[0]) if view.columns else ""
    return f"Row {index + 1}" + (f": {first}" if first else "")


def draw_row_array_editor(controller: EditController, session: EditSession, widget_key: str):
    view = session.render()
    if view.rows:
        st.dataframe(pd.DataFrame(view.rows, columns=view.columns), hide_index=True, use_container_width=True)

    for index in range(len(session.value)):
        row_key = session.row_key(index)
        label_col, edit_col, delete_col = st.columns([4, 1, 1])
        label_col.caption(_row_label(view, index))
        if row_key not in controller.row_sessions and edit_col.button("Edit", key=f"{widget_key}:{index}:edit"):
            controller.open_row(index)
            st.rerun()
        if delete_col.button("Delete", key=f"{widget_key}:{index}:delete"):
            controller.delete_row(index)
            st.rerun()

        row_session = controller.row_sessions.get(row_key)
        if row_session is not None:
            with st.container(border=True):
                draw_record_editor(row_session, f"{widget_key}:{row_key}")
                save_col, cancel_col = st.columns(2)
                if save_col.button("Save row", key=f"{widget_key}:{index}:save"):
                    controller.save_row(index)
                    st.rerun()
                if cancel_col.button("Cancel row", key=f"{widget_key}:{index}:cancel"):
                    controller.cancel_row(index)
                    st.rerun()

    add_col, raw_col = st.columns(2)
    if add_col.button("Add row", key=f"{widget_key}:add"):
        session.add_row()
        st.rerun()
    if session.raw_target is None:
        if raw_col.button("Edit all as JSON", key=f"{widget_key}:raw-open"):
            session.open_raw_editor()
            st.rerun()
    else:
        draw_raw_editor(session, widget_key)


def draw_section_editor(controller: EditController, widget_key: str):
    """Controls for the section ``controller`` is editing."""
    session = controller.session
    kind = session.kind
    if kind == ValueKind.RECORD:
        if session.render().raw_open_for_root:
            draw_raw_editor(session, widget_key)
            return
        draw_record_editor(session, widget_key)
        if session.raw_target is None and st.button("Edit section as JSON", key=f"{widget_key}:raw-open"):
            session.open_raw_editor()
            st.rerun()
    elif kind == ValueKind.RECORD_LIST or (kind == ValueKind.LIST and not session.value):
        draw_row_array_editor(controller, session, widget_key)
    elif kind == ValueKind.LIST:
        if session.raw_target is None:
            session.open_raw_editor()
        st.caption("Lists of plain values are edited as JSON. Apply before saving.")
        draw_raw_editor(session, widget_key)
    else:
        text = st.text_area(controller.active_key, value=session.render().text, key=f"{widget_key}:value")
        if text != session.render().text:
            session.set_value_text(text)


def get_controller(state_key: str) -> EditController:
    """Per-page EditController kept in session_state."""
    if state_key not in st.session_state:
        st.session_state[state_key] = EditController()
    return st.session_state[state_key]


def edit_buttons(controller: EditController, widget_key: str) -> Optional[str]:
    """Save / Cancel row under an open editor. Returns "save", "cancel" or None."""
    save_col, cancel_col = st.columns(2)
    if save_col.button("Save", key=f"{widget_key}:save", type="primary"):
        return "save"
    if cancel_col.button("Cancel", key=f"{widget_key}:cancel"):
        controller.cancel()
        st.rerun()
    return None


# =============================================================================
# Page documents
# =============================================================================

def page_document(slug: str, label: str, use_defaults: bool = False, reload: bool = False):
    """
    The document a page is showing, loaded once per session.

    Kept in session_state under ``doc::{slug}`` so widget reruns do not hit
    the backend. ``reload`` forces a fresh load.
    """
    state_key = f"doc::{slug}"
    if reload or state_key not in st.session_state:
        result = get_sync().load(slug, use_defaults=use_defaults)
        st.session_state[state_key] = result.body
        st.session_state[f"{state_key}:load"] = result
    report_load(st.session_state[f"{state_key}:load"], label)
    return st.session_state[state_key]


def set_page_document(slug: str, body):
    st.session_state[f"doc::{slug}"] = body


def save_page_document(slug: str, label: str, body, check_version: bool = True):
    """Mirror and persist ``body``, then report the outcome on the next run."""
    set_page_document(slug, body)
    result = get_sync().save(slug, body, check_version=check_version)
    report_save(result, label)
    return result


def humanize(key: str) -> str:
    """``shipmentTypes`` -> ``Shipment types``."""
    words = []
    current = ""
    for ch in key:
        if ch.isupper() and current and not current[-1].isupper():
            words.append(current)
            current = ch
        else:
            current += ch
    if current:
        words.append(current)
    text = " ".join(words)
    return text[:1].upper() + text[1:].lower() if text else text


def frame_for(rows, columns) -> pd.DataFrame:
    """Editable frame for a list of records, one column per model field."""
    return pd.DataFrame([{col: row.get(col, "") for col in columns} for row in rows or []], columns=list(columns))


def _cell(value):
    if value is None or (isinstance(value, float) and pd.isna(value)):
        return ""
    return value


def rows_from_frame(frame: pd.DataFrame, key_column: Optional[str] = None) -> list:
    """
    Records back out of st.data_editor.

    Blank cells become "". Rows are dropped when they are entirely blank, or
    when ``key_column`` is given and that cell is blank.
    """
    rows = []
    for record in frame.to_dict(orient="records"):
        cleaned = {key: _cell(value) for key, value in record.items()}
        if key_column is not None and not str(cleaned.get(key_column, "")).strip():
            continue
        if any(str(value).strip() for value in cleaned.values()):
            rows.append(cleaned)
    return rows


def completion_frame(documents) -> pd.DataFrame:
    """One row per document: filled, total and percent. Missing documents count as 0 of 0."""
    rows = []
    for name, body in documents.items():
        counted = count_fields(body) if body is not None else None
        rows.append({
            "document": name,
            "filled": counted.filled if counted else 0,
            "total": counted.total if counted else 0,
            "percent": counted.percent if counted else 0,
        })
    return pd.DataFrame(rows, columns=["document", "filled", "total", "percent"])
