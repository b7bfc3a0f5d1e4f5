"""
Interval Reconstructor: replays the status history into downtime intervals.

Closed intervals keep their raw wall-clock duration (long-window reliability
statistics). Intervals still open at ``now`` are priced with the Shift Clock,
since they feed today's shift accounting.
"""

from __future__ import annotations
from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Optional, Tuple

from shopfloor_oee.config import Config
from shopfloor_oee.logger import get_logger
from shopfloor_oee.models import (
    DowntimeInterval,
    DowntimeTotals,
    Machine,
    MachineId,
    MachineStatus,
    StatusChangeEvent,
    WorkHoursConfig,
)
from shopfloor_oee.shift_clock import active_downtime, to_ms

log = get_logger("intervals")


def _reason_label(reason: Optional[str]) -> str:
    if reason is None or not str(reason).strip():
        return Config.UNKNOWN_REASON
    return str(reason)


def reconstruct_intervals(
    events: Optional[Iterable[StatusChangeEvent]],
    machines: Optional[Iterable[Machine]],
    work_hours: WorkHoursConfig,
    now: Optional[datetime] = None,
    since: Optional[datetime] = None,
) -> List[DowntimeInterval]:
    """
    Turn the status history into closed and still-open downtime intervals.

    Args:
        events: Status-change events in any order
        machines: Current machine snapshots
        work_hours: Shift window used to price open stoppages
        now: Provisional end of open stoppages (defaults to the wall clock)
        since: Events earlier than this instant are ignored

    Returns:
        Closed intervals followed by open ones
    """
    now = now or datetime.now()
    # at equal instants a run closes a stoppage before a new stop opens one
    ordered = sorted(events or [], key=lambda e: (e.timestamp, e.new_status is MachineStatus.STOPPED))

    open_stops: Dict[MachineId, Tuple[datetime, str]] = {}
    intervals: List[DowntimeInterval] = []

    for event in ordered:
        if since is not None and event.timestamp < since:
            continue

        if event.new_status is MachineStatus.STOPPED:
            if event.machine_id in open_stops:
                log.warning(
                    "Unexpected double stop for machine %s at %s; discarding stoppage opened at %s",
                    event.machine_id, event.timestamp.isoformat(),
                    open_stops[event.machine_id][0].isoformat(),
                )
            open_stops[event.machine_id] = (event.timestamp, _reason_label(event.reason))
        elif event.machine_id in open_stops:
            start, reason = open_stops.pop(event.machine_id)
            intervals.append(DowntimeInterval(
                machine_id=event.machine_id,
                reason=reason,
                start=start,
                end=event.timestamp,
                duration_ms=to_ms(event.timestamp - start),
            ))

    closed_count = len(intervals)
    for machine in machines or []:
        if machine.is_stopped and machine.machine_id in open_stops:
            start, reason = open_stops[machine.machine_id]
            intervals.append(DowntimeInterval(
                machine_id=machine.machine_id,
                reason=reason,
                start=start,
                end=now,
                duration_ms=active_downtime(start, work_hours, now),
                is_open=True,
            ))

    log.debug("Reconstructed %d closed and %d open intervals from %d events",
              closed_count, len(intervals) - closed_count, len(ordered))
    return intervals


def period_starts(now: datetime) -> Tuple[datetime, datetime, datetime]:
    """Start of today, of the current week (Sunday) and of the current month."""
    day = datetime.combine(now.date(), datetime.min.time())
    # Monday is weekday 0; weeks start on Sunday
    week = day - timedelta(days=(day.weekday() + 1) % 7)
    month = day.replace(day=1)
    return day, week, month


def downtime_totals(intervals: Iterable[DowntimeInterval], now: Optional[datetime] = None) -> DowntimeTotals:
    """Downtime of intervals ending today, this week and this month."""
    now = now or datetime.now()
    day, week, month = period_starts(now)
    intervals = list(intervals)

    def _sum_since(boundary: datetime) -> int:
        return sum(i.duration_ms for i in intervals if i.end >= boundary)

    return DowntimeTotals(
        daily_ms=_sum_since(day),
        weekly_ms=_sum_since(week),
        monthly_ms=_sum_since(month),
    )
