import streamlit as st
import sys
from datetime import datetime
from pathlib import Path as PathLib

# Add project root to Python path for Streamlit Cloud
project_root = PathLib(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from shopfloor_oee.config import Config
from shopfloor_oee.db import (
    connect, has_tables, init_schema, load_events, load_last_reset_date,
    load_machines, load_work_hours, reset_daily_counters, seed_machines,
)
from shopfloor_oee.engine import analyze
from shopfloor_oee.filters import render_window_selector, window_start
from shopfloor_oee.intervals import downtime_totals, reconstruct_intervals
from shopfloor_oee.kpi_cards import build_fleet_kpis, render_kpi_row
from shopfloor_oee.kpis import fleet_averages, metrics_frame
from shopfloor_oee.pareto import pareto_frame
from shopfloor_oee.transitions import is_daily_reset_due
from shopfloor_oee.viz import pareto_chart

st.set_page_config(page_title="Shop-floor OEE", layout="wide", initial_sidebar_state="expanded")

st.title("🏭 Shop-floor OEE")
st.caption("Live downtime, OEE (Availability × Performance × Quality), MTBF/MTTR and stoppage Pareto for the current shift.")

_project_root = PathLib(__file__).resolve().parent.parent
db_path = Config.DB_PATH if Config.DB_PATH.is_absolute() else _project_root / Config.DB_PATH

try:
    con = connect(str(db_path))
    if not has_tables(con):
        init_schema(con)
        seed_machines(con)
    work_hours = load_work_hours(con)

    now = datetime.now()
    if is_daily_reset_due(work_hours, load_last_reset_date(con), now):
        reset_daily_counters(con, now)
        st.toast("New shift started. Daily counters were reset.")

    machines = load_machines(con)
    events = load_events(con)
    con.close()
except Exception as e:
    st.error(f"Database error: {e}")
    st.stop()

if not machines:
    st.error("No machines found. Run: python scripts/generate_data.py")
    st.stop()

window_label = render_window_selector()
st.sidebar.markdown(
    f"**Shift:** {work_hours.start:%H:%M}–{work_hours.end:%H:%M}"
    if work_hours.enabled else "**Shift:** whole day"
)
if st.sidebar.button("🔄 Refresh"):
    st.rerun()

report = analyze(machines, events, work_hours, now=now, pareto_since=window_start(window_label, now))

st.markdown("### 📊 Key Performance Indicators")
render_kpi_row(build_fleet_kpis(fleet_averages(report.metrics)), num_columns=5)

if report.insights:
    st.markdown("### 💡 Insights")
    for insight in report.insights:
        st.info(insight)

totals = downtime_totals(reconstruct_intervals(events, machines, work_hours, now=now), now)
c1, c2, c3 = st.columns(3)
c1.metric("Downtime today", f"{totals.daily_ms / 3_600_000:.1f} h")
c2.metric("Downtime this week", f"{totals.weekly_ms / 3_600_000:.1f} h")
c3.metric("Downtime this month", f"{totals.monthly_ms / 3_600_000:.1f} h")

st.divider()

left, right = st.columns([3, 2])
with left:
    st.markdown("### 🛠️ Machines")
    table = metrics_frame(report.metrics).drop(columns=["total_downtime_ms"])
    st.dataframe(table, use_container_width=True, hide_index=True)
with right:
    st.markdown(f"### 📉 Stoppage Pareto ({window_label.lower()})")
    st.pyplot(pareto_chart(report.pareto))
    st.dataframe(pareto_frame(report.pareto), use_container_width=True, hide_index=True)
