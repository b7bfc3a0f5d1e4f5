"""
One-call entry point: machine snapshots + status history -> metrics, Pareto, insights.

The engine keeps no state between calls. Pass ``now`` for reproducible output.
"""

from __future__ import annotations
from datetime import datetime
from typing import Iterable, Optional

from shopfloor_oee.insights import generate_insights
from shopfloor_oee.kpis import calculate_fleet_metrics
from shopfloor_oee.logger import get_logger
from shopfloor_oee.models import AnalyticsReport, Machine, StatusChangeEvent, WorkHoursConfig
from shopfloor_oee.pareto import pareto_for_window

log = get_logger("engine")


def analyze(
    machines: Optional[Iterable[Machine]],
    events: Optional[Iterable[StatusChangeEvent]],
    work_hours: WorkHoursConfig,
    now: Optional[datetime] = None,
    pareto_since: Optional[datetime] = None,
) -> AnalyticsReport:
    now = now or datetime.now()
    machines = list(machines or [])
    events = list(events or [])

    metrics = calculate_fleet_metrics(machines, events, work_hours, now=now)
    pareto = pareto_for_window(events, machines, work_hours, now=now, since=pareto_since)
    insights = generate_insights(metrics, pareto)

    log.debug("Analyzed %d machines and %d events at %s", len(machines), len(events), now.isoformat())
    return AnalyticsReport(metrics=metrics, pareto=pareto, insights=insights)
