"""Styled dataframe display helpers."""

import streamlit as st
import pandas as pd
from typing import Optional

from config.defaults import LAB_SATURATION_THRESHOLD


def render_styled_table(
    df: pd.DataFrame,
    title: Optional[str] = None,
    height: Optional[int] = None,
):
    """Render a non-editable dataframe."""
    if title:
        st.subheader(title)
    if df.empty:
        st.info("Nothing to show yet.")
        return
    st.dataframe(df, height=height, use_container_width=True, hide_index=True)


def render_utilization_table(df: pd.DataFrame, column: str = "Utilization %"):
    """Lab summary with saturated labs highlighted."""
    def color_utilization(val):
        try:
            v = float(val) / 100
        except (ValueError, TypeError):
            return ""
        if v > 1:
            return "background-color: #ffcccc; color: #cc0000; font-weight: bold"
        if v >= LAB_SATURATION_THRESHOLD:
            return "background-color: #fff3cd; color: #856404; font-weight: bold"
        return ""

    if df.empty:
        st.info("No lab allocations yet.")
    elif column in df.columns:
        st.dataframe(df.style.map(color_utilization, subset=[column]), use_container_width=True, hide_index=True)
    else:
        st.dataframe(df, use_container_width=True, hide_index=True)
