from __future__ import annotations
from datetime import datetime, timedelta
from typing import Optional

import streamlit as st

WINDOW_PRESETS = ["Today", "Last 24 hours", "Last 7 days", "Last 30 days", "All history"]


def window_start(label: str, now: Optional[datetime] = None) -> Optional[datetime]:
    """Lower time bound for a Pareto window preset (None means the whole history)."""
    now = now or datetime.now()
    if label == "Today":
        return datetime.combine(now.date(), datetime.min.time())
    if label == "Last 24 hours":
        return now - timedelta(hours=24)
    if label == "Last 7 days":
        return now - timedelta(days=7)
    if label == "Last 30 days":
        return now - timedelta(days=30)
    return None


def init_filters():
    if 'pareto_window' not in st.session_state:
        st.session_state.pareto_window = "All history"


def render_window_selector() -> str:
    init_filters()
    selected = st.sidebar.selectbox(
        "Pareto window",
        options=WINDOW_PRESETS,
        index=WINDOW_PRESETS.index(st.session_state.pareto_window)
        if st.session_state.pareto_window in WINDOW_PRESETS else len(WINDOW_PRESETS) - 1,
        key='filter_pareto_window'
    )
    st.session_state.pareto_window = selected
    return selected
