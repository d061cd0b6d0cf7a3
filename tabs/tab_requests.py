"""Tab 4: Requests — submit, reserve seats, approve or reject."""

import streamlit as st
import pandas as pd

from config.defaults import EMPLOYEES, STATUS_PENDING
from data.session_store import get_services
from components.metrics_cards import render_error
from components.tables import render_styled_table
from engine.errors import AllocationError
from engine.occupancy import committed_asset_ids, pending_asset_ids
from engine.range_codec import parse_asset_ids, to_compact_string


def _submit_form(services):
    employees = services.gateway.list(EMPLOYEES)
    if not employees:
        st.info("No employees loaded.")
        return
    with st.form("submit_request", clear_on_submit=True):
        st.markdown("**New request**")
        employee = st.selectbox("Requestor", employees, format_func=lambda e: e.name)
        options = employee.divisions or [d.name for d in services.divisions.list_divisions()]
        division = st.selectbox("Division", options)
        count = st.number_input("Workstations", min_value=1, step=1, value=1)
        if st.form_submit_button("Submit", type="primary"):
            try:
                request = services.requests.submit_request(employee.id, division, int(count))
                st.success(f"Request {request.request_number} submitted.")
            except AllocationError as e:
                render_error(e)


def _review_section(services):
    pending = services.requests.list_requests(STATUS_PENDING)
    if not pending:
        st.info("No pending requests.")
        return
    request = st.selectbox(
        "Pending request", pending,
        format_func=lambda r: f"{r.request_number}: {r.requestor_name}, {r.division} ({r.num_workstations})",
        key="review_request",
    )
    bookings = services.requests.bookings_for(request.id, STATUS_PENDING)
    st.caption(f"Reserved {len(bookings)} of {request.num_workstations}: "
               f"{to_compact_string([b.asset_id for b in bookings if b.asset_id is not None]) or 'none'}")

    labs = [lab for lab in services.workstation_data.list_labs() if lab.asset_id_range]
    if labs:
        lab = st.selectbox("Lab", labs, format_func=lambda lab: lab.name, key="reserve_lab")
        taken = set(committed_asset_ids(services.gateway, lab)) | set(pending_asset_ids(services.gateway, lab))
        free = [i for i in parse_asset_ids(lab.asset_id_range) if i not in taken]
        st.caption(f"Free asset IDs in {lab.name}: {to_compact_string(free) or 'none'}")
        ids = st.text_input("Asset IDs to reserve", key="reserve_ids")
        if st.button("Reserve", key="btn_reserve"):
            try:
                services.requests.reserve_seats(request.id, lab.id, ids)
                st.success("Seats reserved.")
            except AllocationError as e:
                render_error(e)

    col_approve, col_reject = st.columns(2)
    with col_approve:
        notes = st.text_input("Approval notes", key="approval_notes")
        if st.button("Approve", type="primary", key="btn_approve"):
            try:
                services.requests.approve_request(request.id, notes)
                st.success(f"{request.request_number} approved.")
            except AllocationError as e:
                render_error(e)
    with col_reject:
        reason = st.text_input("Rejection reason", key="rejection_reason")
        if st.button("Reject", key="btn_reject"):
            try:
                services.requests.reject_request(request.id, reason)
                st.success(f"{request.request_number} rejected.")
            except AllocationError as e:
                render_error(e)


def render(sidebar_state):
    """Render the Requests tab."""
    st.header("Workstation Requests")
    services = get_services()

    try:
        _submit_form(services)
        st.divider()
        st.subheader("Review")
        _review_section(services)
        st.divider()
        render_styled_table(pd.DataFrame([{
            "Request": r.request_number,
            "Requestor": r.requestor_name,
            "Division": r.division,
            "Workstations": r.num_workstations,
            "Status": r.status,
            "Notes": r.approval_notes or r.rejection_reason,
        } for r in services.requests.list_requests()]), title="All Requests")
    except AllocationError as e:
        render_error(e)
