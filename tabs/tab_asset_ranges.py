"""Tab 2: Asset Ranges — floor range -> lab range -> division assignment."""

import streamlit as st
import pandas as pd

from config.defaults import FLOORS, LABS
from data.session_store import get_services, add_activity
from components.metrics_cards import render_error, render_steps
from components.tables import render_styled_table
from engine.errors import AllocationError
from engine.explainer import explain_cascade
from engine.range_codec import to_compact_string


def _floor_ranges_section(services, sidebar_state, floor_names):
    st.subheader("Floor Ranges")
    floor_ranges = services.asset_ranges.list_floor_ranges(sidebar_state.office_id)
    render_styled_table(pd.DataFrame([{
        "Floor": floor_names.get(fr.floor_id, fr.floor_id),
        "Range": fr.range_string,
        "Asset IDs": fr.formatted_range,
        "Unallocated": to_compact_string(services.asset_ranges.unallocated_ids(fr.id)),
    } for fr in floor_ranges]))

    col_add, col_edit = st.columns(2)
    with col_add:
        with st.form("add_floor_range", clear_on_submit=True):
            covered = {fr.floor_id for fr in floor_ranges}
            choices = [fid for fid in floor_names if fid not in covered]
            floor_id = st.selectbox("Floor", choices, format_func=floor_names.get)
            range_string = st.text_input("Asset ID range", placeholder="1-150")
            if st.form_submit_button("Add floor range", type="primary"):
                try:
                    services.asset_ranges.create_floor_range(floor_id, range_string)
                    st.success("Floor range saved.")
                except AllocationError as e:
                    render_error(e)

    with col_edit:
        if floor_ranges:
            selected = st.selectbox(
                "Floor range", floor_ranges,
                format_func=lambda fr: floor_names.get(fr.floor_id, fr.floor_id),
                key="edit_floor_range",
            )
            new_range = st.text_input("New range", value=selected.range_string, key="edit_floor_range_text")
            c1, c2 = st.columns(2)
            if c1.button("Update", key="btn_update_floor_range"):
                try:
                    services.asset_ranges.update_floor_range(selected.id, new_range)
                    st.success("Floor range updated.")
                except AllocationError as e:
                    render_error(e)
            if c2.button("Delete…", key="btn_preview_floor_range"):
                st.session_state["pending_floor_range_delete"] = selected.id

    pending_id = st.session_state.get("pending_floor_range_delete")
    if pending_id:
        try:
            render_steps(explain_cascade(services.asset_ranges.preview_floor_range_delete(pending_id)), False)
            if st.button("Confirm delete", type="primary", key="btn_confirm_floor_range"):
                impact = services.asset_ranges.delete_floor_range(pending_id)
                add_activity(explain_cascade(impact))
                st.session_state["pending_floor_range_delete"] = None
                render_steps(explain_cascade(impact), True)
        except AllocationError as e:
            st.session_state["pending_floor_range_delete"] = None
            render_error(e)
    return floor_ranges


def _lab_ranges_section(services, floor_ranges, floor_names, lab_names):
    st.subheader("Lab Ranges")
    if not floor_ranges:
        st.info("Add a floor range first.")
        return None
    floor_range = st.selectbox(
        "Floor range", floor_ranges,
        format_func=lambda fr: f"{floor_names.get(fr.floor_id, fr.floor_id)} ({fr.range_string})",
        key="lab_range_parent",
    )
    lab_ranges = services.asset_ranges.lab_ranges_for(floor_range.id)
    render_styled_table(pd.DataFrame([{
        "Lab": lab_names.get(lr.lab_id, lr.lab_id),
        "Range": lr.range_string,
        "Asset IDs": lr.formatted_range,
    } for lr in lab_ranges]))
    st.caption(f"Unallocated on this floor: {to_compact_string(services.asset_ranges.unallocated_ids(floor_range.id)) or 'none'}")

    labs = services.gateway.list(LABS, floor_id=floor_range.floor_id)
    col_add, col_edit = st.columns(2)
    with col_add:
        with st.form("add_lab_range", clear_on_submit=True):
            lab = st.selectbox("Lab", labs, format_func=lambda lab: lab.name)
            range_string = st.text_input("Asset ID range", placeholder="1-60")
            if st.form_submit_button("Add lab range", type="primary"):
                try:
                    services.asset_ranges.create_lab_range(floor_range.id, lab.id if lab else "", range_string)
                    st.success("Lab range saved.")
                except AllocationError as e:
                    render_error(e)

    with col_edit:
        if lab_ranges:
            selected = st.selectbox(
                "Lab range", lab_ranges,
                format_func=lambda lr: lab_names.get(lr.lab_id, lr.lab_id),
                key="edit_lab_range",
            )
            new_range = st.text_input("New range", value=selected.range_string, key="edit_lab_range_text")
            c1, c2 = st.columns(2)
            if c1.button("Update", key="btn_update_lab_range"):
                try:
                    services.asset_ranges.update_lab_range(selected.id, new_range)
                    st.success("Lab range updated.")
                except AllocationError as e:
                    render_error(e)
            if c2.button("Delete", key="btn_delete_lab_range"):
                try:
                    impact = services.asset_ranges.delete_lab_range(selected.id)
                    add_activity(explain_cascade(impact))
                    render_steps(explain_cascade(impact), True)
                except AllocationError as e:
                    render_error(e)
    return lab_ranges


def _assignments_section(services, lab_ranges, lab_names):
    st.subheader("Division Assignments")
    if not lab_ranges:
        st.info("Add a lab range first.")
        return
    lab_range = st.selectbox(
        "Lab range", lab_ranges,
        format_func=lambda lr: f"{lab_names.get(lr.lab_id, lr.lab_id)} ({lr.range_string})",
        key="assignment_parent",
    )
    assignments = services.asset_ranges.assignments_for(lab_range.id)
    render_styled_table(pd.DataFrame([{
        "Division": a.division,
        "Asset IDs": a.asset_ids,
        "Seats": a.seat_count,
        "Display": a.formatted_range,
    } for a in assignments]))
    st.caption(f"Unassigned in this lab: {to_compact_string(services.asset_ranges.unassigned_ids(lab_range.id)) or 'none'}")

    divisions = [d.name for d in services.divisions.list_divisions()]
    st.caption("Stage one row per division; the batch is saved only if every row passes.")
    staged = st.data_editor(
        pd.DataFrame({"Division": pd.Series(dtype="str"), "Asset IDs": pd.Series(dtype="str"),
                      "Seat Count": pd.Series(dtype="Int64")}),
        num_rows="dynamic",
        column_config={"Division": st.column_config.SelectboxColumn("Division", options=divisions)},
        key=f"staged_assignments_{lab_range.id}",
        hide_index=True,
    )
    if st.button("Save assignments", type="primary", key="btn_save_assignments"):
        entries = [
            (row["Division"], row["Asset IDs"] or "", None if pd.isna(row["Seat Count"]) else int(row["Seat Count"]))
            for _, row in staged.iterrows()
            if isinstance(row["Division"], str) and row["Division"]
        ]
        try:
            created = services.asset_ranges.create_division_assignments(lab_range.id, entries)
            st.success(f"Saved {len(created)} division assignment(s).")
        except AllocationError as e:
            render_error(e)

    if assignments:
        selected = st.selectbox("Assignment", assignments, format_func=lambda a: a.division, key="edit_assignment")
        new_ids = st.text_input("New asset IDs", value=selected.asset_ids, key="edit_assignment_text")
        c1, c2 = st.columns(2)
        if c1.button("Update", key="btn_update_assignment"):
            try:
                services.asset_ranges.update_division_assignment(selected.id, new_ids)
                st.success("Assignment updated.")
            except AllocationError as e:
                render_error(e)
        if c2.button("Delete", key="btn_delete_assignment"):
            impact = services.asset_ranges.delete_division_assignment(selected.id)
            add_activity(explain_cascade(impact))
            render_steps(explain_cascade(impact), True)


def render(sidebar_state):
    """Render the Asset Ranges tab."""
    st.header("Asset Ranges")
    services = get_services()

    floors = services.gateway.list(FLOORS, office_id=sidebar_state.office_id) if sidebar_state.office_id \
        else services.gateway.list(FLOORS)
    if not floors:
        st.info("No floors defined. Load data in the Admin tab.")
        return
    floor_names = {f.id: f.name for f in floors}
    lab_names = {lab.id: lab.name for lab in services.gateway.list(LABS)}

    try:
        floor_ranges = _floor_ranges_section(services, sidebar_state, floor_names)
        st.divider()
        lab_ranges = _lab_ranges_section(services, floor_ranges, floor_names, lab_names)
        st.divider()
        _assignments_section(services, lab_ranges, lab_names)
    except AllocationError as e:
        render_error(e)
