from __future__ import annotations
import math
from collections import defaultdict
from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Optional

import numpy as np
import pandas as pd

from shopfloor_oee.config import Config
from shopfloor_oee.intervals import reconstruct_intervals
from shopfloor_oee.logger import get_logger
from shopfloor_oee.models import (
    DowntimeInterval,
    Machine,
    MachineId,
    MachineMetrics,
    StatusChangeEvent,
    WorkHoursConfig,
)
from shopfloor_oee.shift_clock import active_downtime, cycle_time_seconds, elapsed_shift_time_today

log = get_logger("kpis")

MS_PER_MINUTE = 60_000
MS_PER_HOUR = 3_600_000

METRIC_COLUMNS = [
    "machine_id", "machine_name", "total_downtime_ms", "failure_count",
    "mtbf_hours", "mttr_minutes", "availability", "performance", "quality", "oee",
]


def round_half_up(value: float, ndigits: int = 0) -> float:
    """Round halves towards +inf, the way dashboards display percentages."""
    factor = 10 ** ndigits
    return math.floor(value * factor + 0.5) / factor


def _percent(value: float) -> float:
    return float(np.clip(round_half_up(value, 1), 0.0, 100.0))


def _machine_metrics(
    machine: Machine,
    history: List[DowntimeInterval],
    window_ms: int,
    planned_ms: int,
    work_hours: WorkHoursConfig,
    now: datetime,
) -> MachineMetrics:
    # Reliability over the long window
    failure_count = len(history)
    total_downtime_historical = sum(i.duration_ms for i in history)
    uptime_historical = window_ms - total_downtime_historical
    if failure_count > 0:
        mttr_minutes = total_downtime_historical / failure_count / MS_PER_MINUTE
        mtbf_hours = uptime_historical / failure_count / MS_PER_HOUR
    else:
        mttr_minutes = 0.0
        mtbf_hours = uptime_historical / MS_PER_HOUR

    # Today's shift
    current_stop_ms = active_downtime(machine.last_updated, work_hours, now) if machine.is_stopped else 0
    downtime_today_ms = machine.accumulated_downtime_ms + current_stop_ms
    run_time_ms = max(0, planned_ms - downtime_today_ms)

    availability = run_time_ms / planned_ms * 100 if planned_ms > 0 else 0.0

    cycle_s = cycle_time_seconds(machine.cycle_time_value, machine.cycle_time_unit)
    theoretical_max = (run_time_ms / 1000) / cycle_s if cycle_s > 0 else 0.0
    total_produced = machine.production_count + machine.scrap_count
    # may exceed 100 when the real cycle beats the nominal one; clamped below
    performance = total_produced / theoretical_max * 100 if theoretical_max > 0 else 0.0

    quality = machine.production_count / total_produced * 100 if total_produced > 0 else 100.0

    oee = (availability / 100) * (performance / 100) * (quality / 100) * 100

    return MachineMetrics(
        machine_id=machine.machine_id,
        machine_name=machine.name,
        total_downtime_ms=downtime_today_ms,
        failure_count=failure_count,
        mtbf_hours=round_half_up(mtbf_hours, 1),
        mttr_minutes=int(round_half_up(mttr_minutes)),
        availability=_percent(availability),
        performance=_percent(performance),
        quality=_percent(quality),
        oee=_percent(oee),
    )


def calculate_fleet_metrics(
    machines: Optional[Iterable[Machine]],
    events: Optional[Iterable[StatusChangeEvent]],
    work_hours: WorkHoursConfig,
    now: Optional[datetime] = None,
) -> List[MachineMetrics]:
    """
    Per-machine OEE and reliability figures, in the order machines are given.

    Availability, Performance, Quality and OEE describe today's shift so far.
    MTBF and MTTR come from the stoppages of the last ``Config.MTBF_WINDOW_DAYS``.

    Args:
        machines: Current machine snapshots
        events: Status-change history in any order
        work_hours: Shift window
        now: Evaluation instant (defaults to the wall clock)

    Returns:
        One MachineMetrics per machine; empty when there are no machines
    """
    machines = list(machines or [])
    if not machines:
        log.info("No machine snapshots supplied; no metrics to compute")
        return []

    now = now or datetime.now()
    window = timedelta(days=Config.MTBF_WINDOW_DAYS)
    window_ms = window // timedelta(milliseconds=1)

    intervals = reconstruct_intervals(events, machines, work_hours, now=now, since=now - window)
    by_machine: Dict[MachineId, List[DowntimeInterval]] = defaultdict(list)
    for interval in intervals:
        by_machine[interval.machine_id].append(interval)

    planned_ms = elapsed_shift_time_today(work_hours, now)

    return [
        _machine_metrics(m, by_machine.get(m.machine_id, []), window_ms, planned_ms, work_hours, now)
        for m in machines
    ]


def fleet_averages(metrics: Iterable[MachineMetrics]) -> Dict[str, float]:
    """Simple mean of the headline figures across the fleet (zeros when empty)."""
    metrics = list(metrics)
    keys = ["oee", "availability", "performance", "quality", "mtbf_hours"]
    if not metrics:
        return {k: 0.0 for k in keys}
    return {k: float(np.mean([getattr(m, k) for m in metrics])) for k in keys}


def metrics_frame(metrics: Iterable[MachineMetrics]) -> pd.DataFrame:
    rows = [{c: getattr(m, c) for c in METRIC_COLUMNS} for m in metrics]
    if not rows:
        return pd.DataFrame(columns=METRIC_COLUMNS)
    out = pd.DataFrame(rows, columns=METRIC_COLUMNS)
    out["downtime_today_min"] = out["total_downtime_ms"] / MS_PER_MINUTE
    return out
