"""
Shift Clock: how much of a time span falls inside configured working hours.

All functions are pure; ``now`` is always passed in by the caller.
Durations are integer milliseconds.
"""

from __future__ import annotations
from datetime import datetime, timedelta
from typing import Optional, Union

from shopfloor_oee.config import Config
from shopfloor_oee.logger import get_logger
from shopfloor_oee.models import CycleUnit, WorkHoursConfig

log = get_logger("shift_clock")

_ONE_MS = timedelta(milliseconds=1)


def to_ms(delta: timedelta) -> int:
    return delta // _ONE_MS


def _counts_wall_clock(config: WorkHoursConfig) -> bool:
    if not config.enabled:
        return True
    if not config.is_valid:
        log.warning(
            "Invalid shift window %s-%s, counting wall-clock time instead",
            config.start.strftime("%H:%M"), config.end.strftime("%H:%M"),
        )
        return True
    return False


def working_ms_between(start: datetime, end: datetime, config: WorkHoursConfig) -> int:
    """
    Portion of ``[start, end)`` that falls inside the shift window.

    Each calendar day the span touches contributes its overlap with
    ``[day + shift start, day + shift end]``.

    Args:
        start: Span start
        end: Span end
        config: Work hours configuration

    Returns:
        Working milliseconds (0 when ``end <= start``)
    """
    if end <= start:
        return 0
    if _counts_wall_clock(config):
        return to_ms(end - start)

    total = timedelta(0)
    day = start.date()
    while day <= end.date():
        window_start, window_end = config.window_on(day)
        overlap = min(end, window_end) - max(start, window_start)
        if overlap > timedelta(0):
            total += overlap
        day += timedelta(days=1)
    return to_ms(total)


def elapsed_shift_time_today(config: WorkHoursConfig, now: Optional[datetime] = None) -> int:
    """Working time from today's shift start up to now (capped at shift end)."""
    now = now or datetime.now()
    midnight = datetime.combine(now.date(), datetime.min.time())
    return working_ms_between(midnight, now, config)


def active_downtime(opened_at: datetime, config: WorkHoursConfig, now: Optional[datetime] = None) -> int:
    """Shift-clipped duration of a stoppage opened at ``opened_at`` and still open at ``now``."""
    now = now or datetime.now()
    return working_ms_between(opened_at, now, config)


def cycle_time_seconds(value: Optional[float], unit: Union[CycleUnit, str, None]) -> float:
    """Normalize a configured cycle time to seconds; missing or non-positive values use the default."""
    if not value or value <= 0:
        return Config.DEFAULT_CYCLE_TIME_S
    return float(value) * CycleUnit.parse(unit).seconds
