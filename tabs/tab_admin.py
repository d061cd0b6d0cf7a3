"""Tab 5: Admin — data import, division registry, activity."""

import streamlit as st
import pandas as pd

from data.loader import import_frames, load_workbook
from data.validator import validate_workbook
from data.sample_data import generate_sample_frames
from data.session_store import get_services, set_data_loaded, reset_services, add_activity, get_activity_log
from components.metrics_cards import render_error, render_steps
from components.tables import render_styled_table
from engine.errors import AllocationError
from engine.explainer import explain_cascade


def _import(frames):
    """Validate and write a workbook into a fresh store."""
    result = validate_workbook(frames)
    for e in result.errors:
        st.error(e)
    if not result.is_valid:
        return False
    for w in result.warnings:
        st.warning(w)

    services = reset_services()
    summary = import_frames(services.gateway, frames)
    set_data_loaded(True)
    add_activity([f"Imported {n} row(s) into {table}" for table, n in summary.created.items()])
    st.success("Import finished: " + ", ".join(f"{n} {table}" for table, n in summary.created.items()))
    for e in summary.errors:
        st.warning(e)
    return True


def _divisions_section(services):
    st.subheader("Divisions")
    divisions = services.divisions.list_divisions()
    with st.form("add_division", clear_on_submit=True):
        name = st.text_input("Division name")
        if st.form_submit_button("Add division"):
            try:
                services.divisions.create_division(name)
                st.success(f"Division {name} added.")
            except AllocationError as e:
                render_error(e)

    if divisions:
        selected = st.selectbox("Division", divisions, format_func=lambda d: d.name, key="admin_division")
        if st.button(f"Delete {selected.name}…", key="btn_preview_division_delete"):
            st.session_state["pending_division_delete"] = selected.id
        if st.session_state.get("pending_division_delete") == selected.id:
            render_steps(explain_cascade(services.divisions.preview_division_delete(selected.id)), False)
            if st.button("Confirm delete", type="primary", key="btn_confirm_division_delete"):
                impact = services.divisions.delete_division(selected.id)
                st.session_state["pending_division_delete"] = None
                add_activity(explain_cascade(impact))
                render_steps(explain_cascade(impact), True)


def render(sidebar_state):
    """Render the Admin tab."""
    st.header("Admin")

    st.subheader("Data Import")
    st.caption(
        "Upload one `.xlsx` workbook with sheets **Floors**, **Labs**, **Divisions** and optionally "
        "**Floor Ranges**, **Lab Ranges**, **Employees**, **Division Allocations**."
    )
    workbook = st.file_uploader("Import workbook", type=["xlsx"], key="upload_workbook")
    col_upload, col_sample = st.columns(2)
    with col_upload:
        if st.button("Upload & Validate", type="primary", key="btn_upload"):
            if workbook:
                try:
                    _import(load_workbook(workbook))
                except ValueError as e:
                    st.error(f"Error loading file: {e}")
            else:
                st.warning("Please upload a workbook.")
    with col_sample:
        if st.button("Load Sample Data", key="btn_sample"):
            _import(generate_sample_frames())

    st.divider()
    services = get_services()
    try:
        _divisions_section(services)
    except AllocationError as e:
        render_error(e)

    st.divider()
    st.subheader("Schema")
    missing = sorted(services.gateway.missing_tables)
    if missing:
        st.warning(f"Not provisioned: {', '.join(missing)}")
        if st.button("Retry", key="btn_reset_schema"):
            services.gateway.reset_schema_cache()
    else:
        st.caption("All tables available.")

    st.divider()
    log = get_activity_log()
    render_styled_table(pd.DataFrame({"Activity": log}), title="Recent Activity")
