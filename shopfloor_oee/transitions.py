"""
Status-change bookkeeping used by the store when an operator changes a machine's status.

When a stopped machine resumes, the shift-clipped length of the stoppage is
folded into its accumulated-downtime counter. An open stoppage is never
counted there while it is still running.
"""

from __future__ import annotations
import dataclasses
import uuid
from datetime import date, datetime
from typing import Optional, Tuple

from shopfloor_oee.config import Config
from shopfloor_oee.models import Machine, MachineStatus, StatusChangeEvent, WorkHoursConfig
from shopfloor_oee.shift_clock import active_downtime


def apply_status_change(
    machine: Machine,
    new_status: MachineStatus,
    work_hours: WorkHoursConfig,
    now: datetime,
    reason: Optional[str] = None,
    notes: str = "",
    operator: Optional[str] = None,
    signature: Optional[str] = None,
) -> Tuple[Machine, StatusChangeEvent]:
    """
    Build the updated snapshot and the history entry for one status change.

    Returns:
        (updated machine, event to append to the history)
    """
    new_status = MachineStatus.parse(new_status)
    running = new_status is MachineStatus.RUNNING

    accumulated = machine.accumulated_downtime_ms
    if machine.is_stopped and running:
        accumulated += active_downtime(machine.last_updated, work_hours, now)

    updated = dataclasses.replace(
        machine,
        status=new_status,
        reason=None if running else reason,
        last_updated=now,
        accumulated_downtime_ms=accumulated,
        notes="" if running else notes,
        last_operator=operator or Config.DEFAULT_OPERATOR,
    )
    event = StatusChangeEvent(
        machine_id=machine.machine_id,
        previous_status=machine.status,
        new_status=new_status,
        timestamp=now,
        reason=reason,
        signature=signature,
        event_id=str(uuid.uuid4()),
    )
    return updated, event


def reset_daily(machine: Machine, now: datetime) -> Machine:
    """Zero the per-day counters at the start of a new shift."""
    return dataclasses.replace(
        machine,
        production_count=0,
        scrap_count=0,
        accumulated_downtime_ms=0,
        last_updated=now,
    )


def is_daily_reset_due(work_hours: WorkHoursConfig, last_reset: Optional[date], now: datetime) -> bool:
    """A reset is due once per day, after today's shift has started, when shift hours are enabled."""
    if not work_hours.enabled:
        return False
    if last_reset == now.date():
        return False
    shift_start, _ = work_hours.window_on(now.date())
    return now >= shift_start
