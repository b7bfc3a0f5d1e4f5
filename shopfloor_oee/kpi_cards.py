from __future__ import annotations
import streamlit as st
from typing import Dict, Optional


def render_kpi_card(
    label: str,
    current_value: float,
    format_str: str = ".1f",
    suffix: str = "",
    help_text: Optional[str] = None
) -> None:
    st.metric(
        label=label,
        value=f"{current_value:{format_str}}{suffix}",
        help=help_text
    )


def render_kpi_row(
    kpis: list[dict],
    num_columns: int = 5
) -> None:
    cols = st.columns(num_columns)

    for idx, kpi in enumerate(kpis):
        with cols[idx % num_columns]:
            render_kpi_card(
                label=kpi.get('label', ''),
                current_value=kpi.get('current', 0),
                format_str=kpi.get('format', '.1f'),
                suffix=kpi.get('suffix', ''),
                help_text=kpi.get('help')
            )


def build_fleet_kpis(averages: Dict[str, float]) -> list[dict]:
    return [
        {'label': 'Overall OEE', 'current': averages['oee'], 'suffix': '%',
         'help': 'Availability x Performance x Quality, today so far'},
        {'label': 'Availability', 'current': averages['availability'], 'suffix': '%'},
        {'label': 'Performance', 'current': averages['performance'], 'suffix': '%'},
        {'label': 'Quality', 'current': averages['quality'], 'suffix': '%'},
        {'label': 'MTBF', 'current': averages['mtbf_hours'], 'suffix': ' h',
         'help': 'Mean time between failures over the last 30 days'},
    ]
