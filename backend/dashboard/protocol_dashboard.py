"""
Protocol dashboard: upload, review and edit the protocol document.

Run with ``streamlit run backend/dashboard/protocol_dashboard.py``.
"""

import logging

import streamlit as st

from dashboard.api_client import ProtocolApiError
from dashboard.components import (
    configure_logging,
    draw_node,
    draw_section_editor,
    edit_buttons,
    flash,
    get_api_client,
    get_controller,
    get_sync,
    page_document,
    report_save,
    save_page_document,
    set_page_document,
    show_flash,
)
from dashboard.prefill import BUILT_ON_CHOICES, derive_rtsm_prefill
from protocol_viewer import (
    ProtocolUploadError,
    count_fields,
    normalize_protocol_data,
    parse_protocol_bytes,
    render_value,
)

PROTOCOL = "protocol"
EXPANDED_KEY = "protocol_expanded"
PREFILL_KEY = "rtsm_prefill"

configure_logging()
logger = logging.getLogger(__name__)

st.set_page_config(page_title="Protocol Dashboard", layout="wide")
st.title("Protocol Dashboard")
show_flash()


# =============================================================================
# Upload
# =============================================================================

def upload(uploaded_file):
    """
    Validate locally, send to the backend, then show what the backend stored.

    A file that is not a JSON object never replaces the current document.
    """
    content = uploaded_file.getvalue()
    try:
        parsed = parse_protocol_bytes(content)
    except ProtocolUploadError as e:
        st.error(f"Upload failed: {e}")
        return

    try:
        get_api_client().upload_protocol(uploaded_file.name, content)
    except ProtocolApiError as e:
        document = normalize_protocol_data(parsed)
        set_page_document(PROTOCOL, document)
        get_sync().mirror.write(PROTOCOL, document)
        flash(f"Loaded {uploaded_file.name} in this session only, the backend upload failed: {e}", "warning")
        st.rerun()

    document = page_document(PROTOCOL, "protocol", reload=True)
    set_page_document(PROTOCOL, normalize_protocol_data(document or {}))
    get_controller(PROTOCOL).cancel()
    flash(f"Uploaded {uploaded_file.name}.")
    st.rerun()


with st.sidebar:
    st.subheader("Upload protocol")
    uploaded = st.file_uploader("Protocol JSON", type=["json"])
    if uploaded is not None and st.button("Upload", type="primary"):
        upload(uploaded)

    st.divider()
    if st.button("Reload from backend"):
        page_document(PROTOCOL, "protocol", reload=True)
        get_controller(PROTOCOL).cancel()
        st.rerun()


document = page_document(PROTOCOL, "protocol")
if document is None:
    st.info("No protocol uploaded yet. Upload a protocol JSON file from the sidebar.")
    st.stop()

document = normalize_protocol_data(document)
controller = get_controller(PROTOCOL)


# =============================================================================
# Toolbar
# =============================================================================

expand_col, collapse_col, clear_col = st.columns(3)
if expand_col.button("Expand all"):
    st.session_state[EXPANDED_KEY] = True
if collapse_col.button("Collapse all"):
    st.session_state[EXPANDED_KEY] = False
if clear_col.button("Clear JSON"):
    result = get_sync().clear_protocol()
    set_page_document(PROTOCOL, {})
    controller.cancel()
    report_save(result, "Protocol")
    st.rerun()

progress = count_fields(document)
st.progress(progress.percent / 100, text=f"{progress.filled} of {progress.total} fields filled ({progress.percent}%)")


# =============================================================================
# Sections
# =============================================================================

expanded = st.session_state.get(EXPANDED_KEY, False)
if not document:
    st.caption("The protocol document is empty.")

for section, value in document.items():
    editing = controller.is_editing(section)
    with st.expander(section, expanded=expanded or editing):
        if editing:
            draw_section_editor(controller, f"edit:{section}")
            if edit_buttons(controller, f"edit:{section}") == "save":
                updated = controller.save(document)
                save_page_document(PROTOCOL, "Protocol", updated)
                st.rerun()
        else:
            draw_node(render_value(value, section))
            if controller.is_editable(section) and st.button("Edit", key=f"begin:{section}"):
                controller.begin(section, value)
                st.rerun()


# =============================================================================
# RTSM handoff
# =============================================================================

st.divider()
built_on = st.radio("Is this study built on Pulse or Elosity?", BUILT_ON_CHOICES, index=None, horizontal=True)
if st.button("Required RTSM Info"):
    try:
        st.session_state[PREFILL_KEY] = derive_rtsm_prefill(document, built_on)
    except ValueError as e:
        st.error(str(e))
    else:
        logger.info(f"Opening RTSM info pre-filled for {built_on}")
        st.switch_page("pages/1_RTSM_Info.py")
