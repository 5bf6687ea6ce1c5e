"""Inventory defaults: study, site, inventory, supply depot and return depot tables."""

import pandas as pd
import streamlit as st

from app.document_models import InventoryRow, LimitRow, ReturnDepotRow, SupplyDepotRow
from dashboard.components import (
    configure_logging,
    frame_for,
    humanize,
    page_document,
    rows_from_frame,
    save_page_document,
    show_flash,
)

INVENTORY_DEFAULTS = "inventory-defaults"

TABLES = [
    ("studyRows", "Study-wide settings", LimitRow),
    ("siteRows", "Site-level settings", LimitRow),
    ("invRows", "Inventory settings", InventoryRow),
    ("supplyRows", "Supply depots", SupplyDepotRow),
    ("returnRows", "Return depots", ReturnDepotRow),
]

configure_logging()
st.set_page_config(page_title="Inventory Defaults", layout="wide")
st.title("Inventory Defaults")
show_flash()

document = page_document(INVENTORY_DEFAULTS, "inventory", use_defaults=True) or {}

edited = {}
for field, title, model in TABLES:
    st.subheader(title)
    columns = list(model.model_fields)
    edited[field] = st.data_editor(
        frame_for(document.get(field), columns),
        num_rows="dynamic",
        hide_index=True,
        use_container_width=True,
        key=f"inventory:{field}",
        column_config={col: st.column_config.TextColumn(humanize(col)) for col in columns},
    )

st.divider()
if st.button("Save inventory defaults", type="primary"):
    updated = dict(document)
    for field, _, _ in TABLES:
        updated[field] = rows_from_frame(pd.DataFrame(edited[field]))
    save_page_document(INVENTORY_DEFAULTS, "Inventory defaults", updated)
    st.rerun()
