from __future__ import annotations
from datetime import datetime
from typing import Iterable, List, Optional

import pandas as pd

from shopfloor_oee.config import Config
from shopfloor_oee.intervals import reconstruct_intervals
from shopfloor_oee.kpis import round_half_up
from shopfloor_oee.models import (
    DowntimeInterval,
    Machine,
    ParetoItem,
    StatusChangeEvent,
    WorkHoursConfig,
)

PARETO_COLUMNS = ["reason", "count", "duration_ms", "accumulated_percent"]


def calculate_pareto(intervals: Iterable[DowntimeInterval]) -> List[ParetoItem]:
    """
    Rank stoppage reasons by total downtime.

    Ties keep the order in which reasons first appear. The cumulative share is
    rounded after summing, so rounding drift does not pile up down the list.
    """
    ev = pd.DataFrame(
        [(i.reason, i.duration_ms) for i in intervals],
        columns=["reason", "duration_ms"],
    )
    if ev.empty:
        return []

    ev["reason"] = ev["reason"].fillna(Config.UNKNOWN_REASON).astype(str)
    ev.loc[ev["reason"].str.strip() == "", "reason"] = Config.UNKNOWN_REASON

    agg = ev.groupby("reason", sort=False, as_index=False).agg(
        occurrences=("duration_ms", "size"),
        duration_ms=("duration_ms", "sum"),
    )
    agg = agg.sort_values("duration_ms", ascending=False, kind="stable")
    total = agg["duration_ms"].sum()
    agg["pct"] = (agg["duration_ms"] / total * 100) if total > 0 else 0.0
    agg["cum_pct"] = agg["pct"].cumsum()

    return [
        ParetoItem(
            reason=row.reason,
            count=int(row.occurrences),
            duration_ms=int(row.duration_ms),
            accumulated_percent=int(round_half_up(row.cum_pct)),
        )
        for row in agg.itertuples(index=False)
    ]


def pareto_for_window(
    events: Optional[Iterable[StatusChangeEvent]],
    machines: Optional[Iterable[Machine]],
    work_hours: WorkHoursConfig,
    now: Optional[datetime] = None,
    since: Optional[datetime] = None,
) -> List[ParetoItem]:
    """Reconstruct intervals from the history (optionally from ``since``) and rank them."""
    return calculate_pareto(reconstruct_intervals(events, machines, work_hours, now=now, since=since))


def pareto_frame(items: Iterable[ParetoItem]) -> pd.DataFrame:
    rows = [(p.reason, p.count, p.duration_ms, p.accumulated_percent) for p in items]
    return pd.DataFrame(rows, columns=PARETO_COLUMNS)
