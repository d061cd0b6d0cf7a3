"""Tab 3: Workstation Data — lab allocations and their division records."""

import streamlit as st
import pandas as pd

from config.defaults import FLOORS
from data.session_store import get_services, add_activity
from components.metrics_cards import render_error, render_metric_row, render_steps
from components.tables import render_styled_table
from engine.errors import AllocationError
from engine.explainer import explain_cascade
from engine.occupancy import division_records


def _lab_allocation_form(services, floor_names):
    with st.form("add_lab_allocation", clear_on_submit=True):
        st.markdown("**New lab allocation**")
        floor_id = st.selectbox("Floor", list(floor_names), format_func=floor_names.get)
        name = st.text_input("Lab name")
        total = st.number_input("Total workstations", min_value=0, step=1, value=0)
        range_string = st.text_input("Asset ID range (optional)", placeholder="1-60")
        if st.form_submit_button("Create lab", type="primary"):
            try:
                services.workstation_data.create_lab_allocation(floor_id, name, int(total), range_string or None)
                st.success(f"{name} created.")
            except AllocationError as e:
                render_error(e)


def _division_records_section(services, lab):
    records = division_records(services.gateway, lab.floor_id, lab.name)
    render_metric_row([
        {"label": "Total", "value": lab.total_workstations},
        {"label": "In Use", "value": sum(r.in_use for r in records)},
        {"label": "Available", "value": services.workstation_data.available_workstations(lab.floor_id, lab.name),
         "help": "Total minus in-use minus pending bookings"},
    ])
    st.caption(f"Lab asset ID range: {lab.asset_id_range or 'not set'}")
    render_styled_table(pd.DataFrame([{
        "Division": r.division,
        "Asset ID Range": r.asset_id_range or "",
        "In Use": r.in_use,
    } for r in records]))

    divisions = [d.name for d in services.divisions.list_divisions()]
    staged = st.data_editor(
        pd.DataFrame({"Division": pd.Series(dtype="str"), "Asset ID Range": pd.Series(dtype="str")}),
        num_rows="dynamic",
        column_config={"Division": st.column_config.SelectboxColumn("Division", options=divisions)},
        key=f"staged_records_{lab.id}",
        hide_index=True,
    )
    if st.button("Add to lab", type="primary", key="btn_add_records"):
        entries = [
            (row["Division"], row["Asset ID Range"] or "", None)
            for _, row in staged.iterrows()
            if isinstance(row["Division"], str) and row["Division"]
        ]
        try:
            created = services.workstation_data.add_division_records(lab.floor_id, lab.name, entries)
            st.success(f"Added {len(created)} division allocation(s) to {lab.name}.")
        except AllocationError as e:
            render_error(e)

    if records:
        selected = st.selectbox("Division allocation", records, format_func=lambda r: r.division, key="edit_record")
        new_range = st.text_input("New asset ID range", value=selected.asset_id_range or "", key="edit_record_text")
        c1, c2 = st.columns(2)
        if c1.button("Update", key="btn_update_record"):
            try:
                services.workstation_data.update_division_record(selected.id, new_range)
                st.success("Allocation updated.")
            except AllocationError as e:
                render_error(e)
        if c2.button("Delete allocation", key="btn_delete_record"):
            impact = services.workstation_data.delete_division_record(selected.id)
            add_activity(explain_cascade(impact))
            render_steps(explain_cascade(impact), True)


def render(sidebar_state):
    """Render the Workstation Data tab."""
    st.header("Workstation Data")
    services = get_services()

    floors = services.gateway.list(FLOORS, office_id=sidebar_state.office_id) if sidebar_state.office_id \
        else services.gateway.list(FLOORS)
    if not floors:
        st.info("No floors defined. Load data in the Admin tab.")
        return
    floor_names = {f.id: f.name for f in floors}

    try:
        _lab_allocation_form(services, floor_names)
        st.divider()

        labs = [lab for lab in services.workstation_data.list_labs(sidebar_state.floor_id)
                if lab.floor_id in floor_names]
        if not labs:
            st.info("No lab allocations for this selection.")
            return
        lab = st.selectbox(
            "Lab", labs,
            format_func=lambda lab: f"{floor_names[lab.floor_id]} / {lab.name}",
            key="workstation_lab",
        )
        _division_records_section(services, lab)

        st.divider()
        if st.button(f"Delete lab allocation {lab.name}…", key="btn_preview_lab_delete"):
            st.session_state["pending_lab_delete"] = lab.id
        if st.session_state.get("pending_lab_delete") == lab.id:
            render_steps(explain_cascade(services.workstation_data.preview_lab_allocation_delete(lab.id)), False)
            if st.button("Confirm delete", type="primary", key="btn_confirm_lab_delete"):
                impact = services.workstation_data.delete_lab_allocation(lab.id)
                st.session_state["pending_lab_delete"] = None
                add_activity(explain_cascade(impact))
                render_steps(explain_cascade(impact), True)
    except AllocationError as e:
        render_error(e)
