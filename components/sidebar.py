"""Global sidebar controls for office and floor selection."""

import streamlit as st
from dataclasses import dataclass
from typing import Optional

from config.defaults import OFFICES, FLOORS
from data.session_store import get_services, is_data_loaded, set_sidebar_selection


@dataclass
class SidebarState:
    office_id: Optional[str]
    floor_id: Optional[str]


def render_sidebar() -> SidebarState:
    """Render the global sidebar controls and return current state."""
    services = get_services()
    with st.sidebar:
        st.title("Workstation Allocation")
        st.divider()

        offices = {o.id: o.name for o in services.gateway.list(OFFICES)}
        office_ids = [None] + sorted(offices, key=offices.get)
        office_id = st.selectbox(
            "Office",
            options=office_ids,
            format_func=lambda x: "All offices" if x is None else offices[x],
            key="sidebar_office",
        )

        floor_id = None
        if office_id:
            floors = {f.id: f.name for f in services.gateway.list(FLOORS, office_id=office_id)}
            floor_ids = [None] + sorted(floors, key=floors.get)
            floor_id = st.selectbox(
                "Floor",
                options=floor_ids,
                format_func=lambda x: "All floors" if x is None else floors[x],
                key="sidebar_floor",
            )
        set_sidebar_selection(office_id, floor_id)

        st.divider()
        if is_data_loaded():
            st.success("Data loaded")
        else:
            st.warning("No data loaded. Go to the Admin tab")

        missing = sorted(services.gateway.missing_tables)
        if missing:
            st.caption(f"Tables not provisioned: {', '.join(missing)}")

    return SidebarState(office_id=office_id, floor_id=floor_id)
