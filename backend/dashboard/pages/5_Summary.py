"""Completion summary across all document kinds."""

import streamlit as st

from app.document_registry import get_document_kind, get_document_slugs
from dashboard.components import completion_frame, configure_logging, get_sync, show_flash
from protocol_viewer import count_fields

configure_logging()
st.set_page_config(page_title="Summary", layout="wide")
st.title("Completion Summary")
show_flash()

sync = get_sync()
documents = {}
for slug in get_document_slugs():
    result = sync.load(slug)
    if result.source == "mirror":
        st.warning(f"{get_document_kind(slug).label}: backend unavailable, counting the copy saved in this session.")
    documents[get_document_kind(slug).label] = result.body

frame = completion_frame(documents)
overall = count_fields([body for body in documents.values() if body is not None])

st.metric("Overall", f"{overall.percent}%", help=f"{overall.filled} of {overall.total} fields filled")
metric_columns = st.columns(len(frame))
for column, row in zip(metric_columns, frame.itertuples()):
    column.metric(row.document, f"{row.percent}%", help=f"{row.filled} of {row.total} fields filled")

st.bar_chart(frame.set_index("document")["percent"])
st.dataframe(frame, hide_index=True, use_container_width=True)
