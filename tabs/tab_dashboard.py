"""Tab 1: Dashboard — lab capacity, usage and asset ID coverage."""

import streamlit as st

from config.defaults import FLOORS, LAB_SATURATION_THRESHOLD
from data.session_store import get_services, is_data_loaded
from components.charts import lab_utilization_bar, utilization_donut, range_coverage_bar
from components.metrics_cards import render_metric_row
from components.tables import render_utilization_table
from engine.range_codec import parse_asset_ids


def render(sidebar_state):
    """Render the Dashboard tab."""
    st.header("Dashboard")

    if not is_data_loaded():
        st.info("No data loaded. Load sample data or upload a workbook in the Admin tab.")
        return

    services = get_services()
    summary = services.workstation_data.lab_summary(sidebar_state.floor_id)
    if sidebar_state.office_id and not sidebar_state.floor_id:
        office_floors = [f.name for f in services.gateway.list(FLOORS, office_id=sidebar_state.office_id)]
        summary = summary[summary["Floor"].isin(office_floors)]

    total = int(summary["Total Workstations"].sum())
    in_use = int(summary["In Use"].sum())
    pending = int(summary["Pending"].sum())
    render_metric_row([
        {"label": "Labs", "value": len(summary)},
        {"label": "Total Workstations", "value": f"{total:,}"},
        {"label": "In Use", "value": f"{in_use:,}"},
        {"label": "Pending", "value": f"{pending:,}", "help": "Seats held by requests awaiting approval"},
        {"label": "Available", "value": f"{total - in_use - pending:,}"},
    ])

    saturated = summary[summary["Saturated"]]
    if not saturated.empty:
        st.warning(
            f"{len(saturated)} lab(s) at or above {LAB_SATURATION_THRESHOLD:.0%} utilization: "
            + ", ".join(saturated["Floor"] + " / " + saturated["Lab"])
        )

    col1, col2 = st.columns([3, 2])
    with col1:
        if not summary.empty:
            st.plotly_chart(lab_utilization_bar(summary), use_container_width=True)
    with col2:
        st.plotly_chart(utilization_donut(in_use + pending, total), use_container_width=True)

    render_utilization_table(summary.drop(columns=["Saturated"]))

    st.divider()
    st.subheader("Asset ID Coverage")
    floor_names = {f.id: f.name for f in services.gateway.list(FLOORS)}
    coverage = []
    for floor_range in services.asset_ranges.list_floor_ranges(sidebar_state.office_id):
        if sidebar_state.floor_id and floor_range.floor_id != sidebar_state.floor_id:
            continue
        unallocated = len(services.asset_ranges.unallocated_ids(floor_range.id))
        coverage.append({
            "floor": floor_names.get(floor_range.floor_id, floor_range.floor_id),
            "allocated": len(parse_asset_ids(floor_range.range_string)) - unallocated,
            "unallocated": unallocated,
        })
    if coverage:
        st.plotly_chart(range_coverage_bar(coverage), use_container_width=True)
    else:
        st.info("No floor asset ranges defined for this selection.")
