"""Drug ordering & resupply: shipment settings, predictive rules, couriers and alerts."""

import pandas as pd
import streamlit as st
from pydantic import BaseModel

from app.document_models import Couriers, DrugOrderingResupply, PredictiveRule
from dashboard.components import (
    configure_logging,
    frame_for,
    humanize,
    page_document,
    rows_from_frame,
    save_page_document,
    show_flash,
)

DRUG_ORDERING_RESUPPLY = "drug-ordering-resupply"

configure_logging()
st.set_page_config(page_title="Drug Ordering & Resupply", layout="wide")
st.title("Drug Ordering & Resupply")
show_flash()

stored = page_document(DRUG_ORDERING_RESUPPLY, "drug ordering settings", use_defaults=True) or {}
document = DrugOrderingResupply.model_validate(stored).model_dump()
updated = dict(document)


def checkbox_group(field: str, title: str):
    """One checkbox per boolean flag of a nested settings group, text fields as inputs."""
    st.markdown(f"**{title}**")
    group = dict(document[field])
    columns = st.columns(4)
    flags = [name for name, value in group.items() if isinstance(value, bool)]
    for i, name in enumerate(flags):
        group[name] = columns[i % 4].checkbox(humanize(name), value=group[name], key=f"{field}:{name}")
    for name in (name for name in group if name not in flags):
        group[name] = st.text_input(humanize(name), value=group[name], key=f"{field}:{name}")
    updated[field] = group


def text_field(field: str, area: bool = False):
    widget = st.text_area if area else st.text_input
    updated[field] = widget(humanize(field), value=document[field], key=f"text:{field}")


GROUPS = {
    name: humanize(name)
    for name, info in DrugOrderingResupply.model_fields.items()
    if isinstance(info.annotation, type) and issubclass(info.annotation, BaseModel)
}

# -----------------------------------------------------------------------------
# Shipments
# -----------------------------------------------------------------------------

st.subheader("Shipments")
text_field("shipmentNumberText")
checkbox_group("shipmentTypes", GROUPS["shipmentTypes"])
left, right = st.columns(2)
with left:
    text_field("defaultInitialTrigger")
    text_field("thresholdResupply")
with right:
    text_field("predictiveTrigger")
    text_field("defaultSupplyStrategy")
checkbox_group("bundlingAllowed", GROUPS["bundlingAllowed"])
text_field("shipmentBundlingText", area=True)
checkbox_group("partialShipments", GROUPS["partialShipments"])
checkbox_group("specialConditions", GROUPS["specialConditions"])

# -----------------------------------------------------------------------------
# Predictive rules
# -----------------------------------------------------------------------------

st.subheader("Predictive rules")
rule_columns = list(PredictiveRule.model_fields)
edited_rules = st.data_editor(
    frame_for(document["predictiveRules"], rule_columns),
    num_rows="dynamic",
    hide_index=True,
    use_container_width=True,
    key="drug:predictiveRules",
    column_config={col: st.column_config.TextColumn(humanize(col)) for col in rule_columns},
)
text_field("manualLotsToDisplay")

# -----------------------------------------------------------------------------
# Couriers
# -----------------------------------------------------------------------------

st.subheader("Couriers")
for field in (name for name, info in DrugOrderingResupply.model_fields.items() if info.annotation is Couriers):
    checkbox_group(field, GROUPS[field])

# -----------------------------------------------------------------------------
# Alerts
# -----------------------------------------------------------------------------

st.subheader("Alerts")
left, right = st.columns(2)
with left:
    text_field("largeShipmentQty")
    text_field("unackShipmentAlert")
    text_field("expiryAlertSite")
    text_field("siteInventoryAlert")
with right:
    text_field("largeShipmentNote")
    text_field("unackReturnAlert")
    text_field("expiryAlertDepot")
    text_field("depotInventoryAlert")
checkbox_group("kitStatusInExpiry", GROUPS["kitStatusInExpiry"])
text_field("depotAlertFootnote", area=True)

st.divider()
if st.button("Save drug ordering & resupply", type="primary"):
    updated["predictiveRules"] = rows_from_frame(pd.DataFrame(edited_rules))
    save_page_document(DRUG_ORDERING_RESUPPLY, "Drug ordering & resupply", updated)
    st.rerun()
