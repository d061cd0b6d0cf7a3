"""Typed wrapper around st.session_state holding one service container per browser session."""

from dataclasses import dataclass
from typing import List, Optional

import streamlit as st

from data.gateway import InMemoryGateway, PersistenceGateway, SchemaGuardGateway
from engine.asset_ranges import AssetRangeService
from engine.division_registry import DivisionRegistry
from engine.notifications import LoggingNotifier, NotificationGateway
from engine.request_workflow import RequestWorkflow
from engine.workstation_data import WorkstationDataService


@dataclass
class Services:
    gateway: PersistenceGateway
    asset_ranges: AssetRangeService
    workstation_data: WorkstationDataService
    divisions: DivisionRegistry
    requests: RequestWorkflow


def build_services(
    gateway: Optional[PersistenceGateway] = None,
    notifier: Optional[NotificationGateway] = None,
    display_config: Optional[dict] = None,
) -> Services:
    """Wire every service to one gateway (a fresh in-memory store by default)."""
    gateway = SchemaGuardGateway(gateway or InMemoryGateway())
    workstation_data = WorkstationDataService(gateway)
    return Services(
        gateway=gateway,
        asset_ranges=AssetRangeService(gateway, display_config),
        workstation_data=workstation_data,
        divisions=DivisionRegistry(gateway),
        requests=RequestWorkflow(gateway, notifier or LoggingNotifier(), workstation_data),
    )


def initialize_session_state():
    """Initialize all session state keys with defaults."""
    defaults = {
        "services": None,
        "data_loaded": False,
        "display_config": {
            "asset_id_prefix": "Admin/WS",
        },
        "sidebar_state": {
            "office_id": None,
            "floor_id": None,
        },
        "activity_log": [],
    }
    for key, default in defaults.items():
        if key not in st.session_state:
            st.session_state[key] = default
    if st.session_state["services"] is None:
        st.session_state["services"] = build_services(display_config=st.session_state["display_config"])


# --- Getters ---

def get_services() -> Services:
    return st.session_state["services"]


def get_sidebar_state() -> dict:
    return st.session_state.get("sidebar_state", {})


def get_activity_log() -> List[str]:
    return st.session_state.get("activity_log", [])


def is_data_loaded() -> bool:
    return st.session_state.get("data_loaded", False)


# --- Setters ---

def set_data_loaded(loaded: bool):
    st.session_state["data_loaded"] = loaded


def set_sidebar_selection(office_id: Optional[str], floor_id: Optional[str]):
    st.session_state["sidebar_state"] = {"office_id": office_id, "floor_id": floor_id}


def reset_services(gateway: Optional[PersistenceGateway] = None) -> Services:
    """Start over with a fresh store (or the given gateway)."""
    services = build_services(gateway, display_config=st.session_state.get("display_config"))
    st.session_state["services"] = services
    st.session_state["data_loaded"] = False
    st.session_state["activity_log"] = []
    return services


def add_activity(lines: List[str]):
    """Keep the step list of the latest delete / import so it survives a rerun."""
    st.session_state["activity_log"] = list(lines) + st.session_state.get("activity_log", [])
