"""Plotly chart builders for the workstation allocation tracker."""

import plotly.express as px
import plotly.graph_objects as go
import pandas as pd
from typing import List


def lab_utilization_bar(summary_df: pd.DataFrame, title: str = "Workstations by Lab") -> go.Figure:
    """Stacked bar of in-use, pending and available workstations per lab."""
    df = summary_df.copy()
    df["Lab Label"] = df["Floor"] + " / " + df["Lab"]
    df["Available"] = df["Available"].clip(lower=0)
    fig = px.bar(
        df, x="Lab Label", y=["In Use", "Pending", "Available"],
        barmode="stack",
        labels={"value": "Workstations", "Lab Label": "Lab", "variable": ""},
        title=title,
        color_discrete_map={"In Use": "#E8734A", "Pending": "#F5C542", "Available": "#4A90D9"},
    )
    fig.update_layout(legend_title_text="", height=400)
    return fig


def utilization_donut(used: int, total: int, title: str = "Overall Utilization") -> go.Figure:
    """Donut of allocated vs free workstations."""
    available = max(total - used, 0)
    fig = go.Figure(data=[go.Pie(
        labels=["Allocated", "Available"],
        values=[used, available],
        hole=0.6,
        marker_colors=["#E8734A", "#4A90D9"],
        textinfo="percent+label",
    )])
    fig.update_layout(
        title=title,
        height=350,
        showlegend=True,
        annotations=[dict(text=f"{used}/{total}", x=0.5, y=0.5, font_size=16, showarrow=False)],
    )
    return fig


def range_coverage_bar(coverage: List[dict], title: str = "Floor Asset ID Coverage") -> go.Figure:
    """Horizontal bar per floor range: IDs given to labs vs still unallocated.

    Each dict carries floor, allocated, unallocated.
    """
    df = pd.DataFrame(coverage, columns=["floor", "allocated", "unallocated"])
    fig = px.bar(
        df, y="floor", x=["allocated", "unallocated"],
        orientation="h",
        barmode="stack",
        title=title,
        labels={"value": "Asset IDs", "floor": "Floor", "variable": ""},
        color_discrete_map={"allocated": "#E8734A", "unallocated": "#4A90D9"},
    )
    fig.update_layout(height=max(300, len(df) * 40), yaxis_type="category", legend_title_text="")
    return fig
