from __future__ import annotations
import argparse
import uuid
from datetime import datetime, timedelta
from typing import List, Optional, Tuple

import numpy as np

from shopfloor_oee.config import Config
from shopfloor_oee.db import append_events, connect, exec_sql, init_schema, mark_reset, save_machines
from shopfloor_oee.models import CycleUnit, Machine, MachineStatus, StatusChangeEvent, WorkHoursConfig
from shopfloor_oee.shift_clock import cycle_time_seconds, elapsed_shift_time_today, working_ms_between

RESET = """
DROP TABLE IF EXISTS history;
DROP TABLE IF EXISTS machines;
DROP TABLE IF EXISTS settings;
"""

STOP_REASONS = ["Setup", "Jam", "Material shortage", "Quality check", "Maintenance", "Breakdown"]
# relative frequency of each reason
STOP_WEIGHTS = [0.25, 0.30, 0.15, 0.15, 0.10, 0.05]


def simulate(
    days: int,
    seed: int,
    now: Optional[datetime] = None,
    machine_count: int = Config.DEFAULT_MACHINE_COUNT,
    work_hours: Optional[WorkHoursConfig] = None,
) -> Tuple[List[Machine], List[StatusChangeEvent]]:
    """
    Simulate an alternating run/stop history per machine and the matching snapshots.

    Snapshots are consistent with the log: status and last_updated come from the
    machine's last event and today's accumulated downtime holds only closed stoppages.
    """
    rng = np.random.default_rng(seed)
    work_hours = work_hours or Config.default_work_hours()
    now = (now or datetime.now()).replace(microsecond=0)
    start = now - timedelta(days=days)
    midnight = datetime.combine(now.date(), datetime.min.time())
    planned_ms = elapsed_shift_time_today(work_hours, now)

    machines: List[Machine] = []
    events: List[StatusChangeEvent] = []

    for machine_id in range(1, machine_count + 1):
        cycle_value = float(rng.choice([20, 30, 45, 60]))
        mean_run_h = float(rng.uniform(3.0, 9.0))

        status = MachineStatus.RUNNING
        reason = None
        last_updated = start
        downtime_today_ms = 0
        t = start

        while True:
            if status is MachineStatus.RUNNING:
                t = (t + timedelta(minutes=float(rng.exponential(mean_run_h * 60)))).replace(microsecond=0)
                if t >= now:
                    break
                reason = str(rng.choice(STOP_REASONS, p=STOP_WEIGHTS))
                new_status = MachineStatus.STOPPED
            else:
                stop_min = float(np.clip(rng.normal(25, 15), 2, 180))
                if reason == "Breakdown":
                    stop_min = float(np.clip(rng.normal(120, 45), 30, 480))
                end = (t + timedelta(minutes=stop_min)).replace(microsecond=0)
                if end >= now:
                    break
                downtime_today_ms += working_ms_between(max(t, midnight), end, work_hours)
                t = end
                new_status = MachineStatus.RUNNING

            events.append(StatusChangeEvent(
                machine_id=machine_id,
                previous_status=status,
                new_status=new_status,
                timestamp=t,
                reason=reason if new_status is MachineStatus.STOPPED else None,
                event_id=str(uuid.uuid4()),
            ))
            status = new_status
            last_updated = t
            if status is MachineStatus.RUNNING:
                reason = None

        run_ms = max(0, planned_ms - downtime_today_ms)
        cycle_s = cycle_time_seconds(cycle_value, CycleUnit.SECONDS)
        produced = int(run_ms / 1000 / cycle_s * rng.uniform(0.75, 1.02))
        scrap = int(rng.binomial(produced, p=float(np.clip(rng.normal(0.03, 0.015), 0.0, 0.12)))) if produced else 0

        machines.append(Machine(
            machine_id=machine_id,
            name=f"Machine {machine_id}",
            status=status,
            reason=reason,
            last_updated=last_updated,
            accumulated_downtime_ms=downtime_today_ms,
            production_count=produced - scrap,
            scrap_count=scrap,
            cycle_time_value=cycle_value,
            cycle_time_unit=CycleUnit.SECONDS,
            last_operator="Simulator",
        ))

    return machines, events


def write_sample(con, machines: List[Machine], events: List[StatusChangeEvent], now: datetime) -> None:
    """
    Store a simulated fleet.

    Snapshots already hold today's counters, so today's daily reset is
    recorded as done and the dashboard does not wipe them on first load.
    """
    save_machines(con, machines)
    append_events(con, events)
    with con:
        mark_reset(con, now.date())


def main():
    p = argparse.ArgumentParser()
    p.add_argument("--days", type=int, default=30)
    p.add_argument("--seed", type=int, default=42)
    p.add_argument("--machines", type=int, default=Config.DEFAULT_MACHINE_COUNT)
    p.add_argument("--db", type=str, default=str(Config.DB_PATH))
    args = p.parse_args()

    con = connect(args.db)
    exec_sql(con, RESET)
    init_schema(con)

    now = datetime.now().replace(microsecond=0)
    machines, events = simulate(args.days, args.seed, now=now, machine_count=args.machines)
    write_sample(con, machines, events, now)
    con.close()

    print(f"✅ Generated {args.days} days of status history for {len(machines)} machines into {args.db}")


if __name__ == "__main__":
    main()
