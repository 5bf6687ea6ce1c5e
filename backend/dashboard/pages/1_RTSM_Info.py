"""RTSM info: protocol identity, platform and free-form form data."""

import streamlit as st

from app.document_models import RtsmInfo
from dashboard.components import (
    configure_logging,
    draw_node,
    draw_section_editor,
    edit_buttons,
    get_controller,
    page_document,
    save_page_document,
    set_page_document,
    show_flash,
)
from dashboard.prefill import BUILT_ON_CHOICES, merge_prefill
from protocol_viewer import render_value

RTSM_INFO = "rtsm-info"
PREFILL_KEY = "rtsm_prefill"
FORM_DATA = "formData"

configure_logging()
st.set_page_config(page_title="RTSM Info", layout="wide")
st.title("RTSM Info")
show_flash()

info = page_document(RTSM_INFO, "RTSM info") or RtsmInfo().model_dump()

prefill = st.session_state.pop(PREFILL_KEY, None)
if prefill:
    info = merge_prefill(info, prefill)
    set_page_document(RTSM_INFO, info)
    st.info("Pre-filled from the uploaded protocol. Review and save.")

built_on_index = BUILT_ON_CHOICES.index(info["builtOn"]) if info.get("builtOn") in BUILT_ON_CHOICES else None

with st.form("rtsm-identity"):
    protocol_number = st.text_input("Protocol number", value=info.get("protocolNumber", ""))
    protocol_description = st.text_area("Protocol description", value=info.get("protocolDescription", ""))
    built_on = st.radio("Built on", BUILT_ON_CHOICES, index=built_on_index, horizontal=True)
    if st.form_submit_button("Save", type="primary"):
        updated = dict(info)
        updated.update(
            protocolNumber=protocol_number.strip(),
            protocolDescription=protocol_description.strip(),
            builtOn=built_on or "",
        )
        save_page_document(RTSM_INFO, "RTSM info", updated)
        st.rerun()

st.subheader("Form data")
controller = get_controller(RTSM_INFO)
form_data = info.get(FORM_DATA) or {}

if controller.is_editing(FORM_DATA):
    draw_section_editor(controller, "rtsm:formData")
    if edit_buttons(controller, "rtsm:formData") == "save":
        save_page_document(RTSM_INFO, "RTSM info", controller.save(info))
        st.rerun()
else:
    if form_data:
        draw_node(render_value(form_data, FORM_DATA))
    else:
        st.caption("No form data yet.")
    if st.button("Edit form data"):
        controller.begin(FORM_DATA, form_data)
        st.rerun()
