"""Workstation Asset-ID Allocation Tracker — Streamlit entry point."""

import streamlit as st
import sys
import os

# Add project root to path for imports
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from config.logging_config import setup_logging
from components.sidebar import render_sidebar
from data.session_store import initialize_session_state
from tabs import (
    tab_dashboard,
    tab_asset_ranges,
    tab_workstation_data,
    tab_requests,
    tab_admin,
)


def main():
    st.set_page_config(
        page_title="Workstation Allocation",
        page_icon="🏢",
        layout="wide",
        initial_sidebar_state="expanded",
    )

    setup_logging()
    initialize_session_state()
    sidebar_state = render_sidebar()

    tab1, tab2, tab3, tab4, tab5 = st.tabs([
        "📊 Dashboard",
        "🔢 Asset Ranges",
        "🖥️ Workstation Data",
        "📝 Requests",
        "⚙️ Admin",
    ])

    with tab1:
        tab_dashboard.render(sidebar_state)
    with tab2:
        tab_asset_ranges.render(sidebar_state)
    with tab3:
        tab_workstation_data.render(sidebar_state)
    with tab4:
        tab_requests.render(sidebar_state)
    with tab5:
        tab_admin.render(sidebar_state)


if __name__ == "__main__":
    main()
