"""Roles & access: system roles and which roles each user type may grant."""

import logging

import pandas as pd
import streamlit as st

from app.document_models import RoleMatrixEntry, SystemRole
from app.document_registry import get_known_roles
from dashboard.api_client import ProtocolApiError
from dashboard.components import (
    configure_logging,
    frame_for,
    get_api_client,
    page_document,
    rows_from_frame,
    save_page_document,
    set_page_document,
    show_flash,
)

ROLES_ACCESS = "roles-access"
BLINDED_STATUSES = ["Blinded", "Unblinded"]

configure_logging()
logger = logging.getLogger(__name__)

st.set_page_config(page_title="Roles & Access", layout="wide")
st.title("Roles & Access")
show_flash()


@st.cache_data(ttl=300)
def known_roles():
    try:
        return get_api_client().get_known_roles()
    except ProtocolApiError as e:
        logger.warning(f"Known roles unavailable from backend: {e}")
        return get_known_roles()


document = page_document(ROLES_ACCESS, "roles", use_defaults=True) or {}
roles = known_roles()

# -----------------------------------------------------------------------------
# System roles
# -----------------------------------------------------------------------------

st.subheader("System roles")
role_columns = list(SystemRole.model_fields)
edited_roles = st.data_editor(
    frame_for(document.get("systemRoles"), role_columns),
    num_rows="dynamic",
    hide_index=True,
    use_container_width=True,
    key="roles:system",
    column_config={
        "roleType": st.column_config.TextColumn("Role type"),
        "permissionLevel": st.column_config.TextColumn("Permission level"),
        "blindedStatus": st.column_config.SelectboxColumn(
            "Blinded status", options=BLINDED_STATUSES, default="Unblinded", required=True
        ),
        "prmRole": st.column_config.TextColumn("PRM role"),
    },
)

# -----------------------------------------------------------------------------
# Role matrix
# -----------------------------------------------------------------------------

st.subheader("Role matrix")
matrix = [RoleMatrixEntry.model_validate(entry).model_dump() for entry in document.get("roleMatrix") or []]
updated_matrix = []
for index, entry in enumerate(matrix):
    with st.container(border=True):
        user_col, roles_col, remove_col = st.columns([2, 5, 1])
        adding_user = user_col.text_input("Adding user", value=entry["addingUser"], key=f"matrix:{index}:user")
        allowed = roles_col.multiselect(
            "Allowed roles",
            options=sorted(set(roles) | set(entry["allowedRoles"])),
            default=entry["allowedRoles"],
            key=f"matrix:{index}:roles",
        )
        remove = remove_col.button("Remove", key=f"matrix:{index}:remove")
    if not remove:
        updated_matrix.append({"addingUser": adding_user, "allowedRoles": allowed})

if len(updated_matrix) != len(matrix):
    save_page_document(ROLES_ACCESS, "Roles", {**document, "roleMatrix": updated_matrix})
    st.rerun()

if st.button("Add role row"):
    updated_matrix.append(RoleMatrixEntry().model_dump())
    set_page_document(ROLES_ACCESS, {**document, "roleMatrix": updated_matrix})
    st.rerun()

st.divider()
if st.button("Save roles & access", type="primary"):
    updated = {
        **document,
        "systemRoles": rows_from_frame(pd.DataFrame(edited_roles), key_column="roleType"),
        "roleMatrix": updated_matrix,
    }
    save_page_document(ROLES_ACCESS, "Roles", updated)
    st.rerun()
