"""KPI cards and feedback widgets."""

from typing import List

import streamlit as st

from engine.errors import AllocationError, DuplicateError, SchemaMissingError, ValidationError


def render_metric_row(metrics: List[dict]):
    """Each metric dict has label and value, and optionally help."""
    cols = st.columns(len(metrics))
    for col, m in zip(cols, metrics):
        with col:
            st.metric(label=m["label"], value=m["value"], help=m.get("help"))


def render_error(exc: AllocationError):
    """Show a rejected operation the way the user can act on it."""
    if isinstance(exc, SchemaMissingError):
        st.warning(f"{exc} Ask an administrator to run the migration for '{exc.table}'.", icon="🟡")
    elif isinstance(exc, DuplicateError):
        st.warning(exc.message, icon="🟡")
    elif isinstance(exc, ValidationError):
        st.error(exc.message, icon="🔴")
        if exc.conflicts:
            st.caption("Conflicting IDs: " + ", ".join(f"{i} ({owner})" for i, owner in exc.conflicts[:20]))
    else:
        st.error(str(exc), icon="🔴")


def render_steps(steps: List[str], committed: bool):
    """Cascade preview (before) or outcome (after)."""
    text = "\n".join(f"- {s}" for s in steps)
    if committed:
        st.success(text)
    else:
        st.warning(text)
