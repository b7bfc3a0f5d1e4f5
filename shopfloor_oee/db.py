"""
Local SQLite store: machine snapshots, status history and shift settings.

This is the persistence collaborator of the analytics engine. It supplies
snapshots and the event log, and records status changes using the
consolidation rules from ``transitions``.
"""

from __future__ import annotations
import json
import sqlite3
import uuid
from datetime import date, datetime
from pathlib import Path
from typing import Any, List, Optional

import pandas as pd

from shopfloor_oee.config import Config
from shopfloor_oee.logger import get_logger
from shopfloor_oee.models import (
    CycleUnit,
    Machine,
    MachineStatus,
    StatusChangeEvent,
    WorkHoursConfig,
)
from shopfloor_oee.transitions import apply_status_change, reset_daily

log = get_logger("db")

SCHEMA = """
CREATE TABLE IF NOT EXISTS machines (
  machine_id INTEGER PRIMARY KEY,
  name TEXT NOT NULL,
  status TEXT NOT NULL,
  reason TEXT,
  last_updated TEXT NOT NULL,
  accumulated_downtime_ms INTEGER NOT NULL DEFAULT 0,
  production_count INTEGER NOT NULL DEFAULT 0,
  scrap_count INTEGER NOT NULL DEFAULT 0,
  cycle_time_value REAL NOT NULL DEFAULT 30,
  cycle_time_unit TEXT NOT NULL DEFAULT 'seconds',
  notes TEXT NOT NULL DEFAULT '',
  last_operator TEXT NOT NULL DEFAULT ''
);

CREATE TABLE IF NOT EXISTS history (
  event_id TEXT PRIMARY KEY,
  machine_id INTEGER NOT NULL,
  previous_status TEXT NOT NULL,
  new_status TEXT NOT NULL,
  reason TEXT,
  timestamp TEXT NOT NULL,
  signature TEXT
);

CREATE TABLE IF NOT EXISTS settings (
  id INTEGER PRIMARY KEY CHECK (id = 1),
  work_hours_enabled INTEGER NOT NULL,
  shift_start TEXT NOT NULL,
  shift_end TEXT NOT NULL,
  last_reset_date TEXT
);
"""

MACHINE_COLUMNS = [
    "machine_id", "name", "status", "reason", "last_updated", "accumulated_downtime_ms",
    "production_count", "scrap_count", "cycle_time_value", "cycle_time_unit", "notes", "last_operator",
]
HISTORY_COLUMNS = ["event_id", "machine_id", "previous_status", "new_status", "reason", "timestamp", "signature"]


def connect(db_path: str | Path = Config.DB_PATH) -> sqlite3.Connection:
    db_path = Path(db_path)
    db_path.parent.mkdir(parents=True, exist_ok=True)
    con = sqlite3.connect(str(db_path))
    con.execute("PRAGMA foreign_keys = ON;")
    return con


def read_df(con: sqlite3.Connection, query: str, params: tuple = ()) -> pd.DataFrame:
    return pd.read_sql_query(query, con, params=params)


def exec_sql(con: sqlite3.Connection, sql: str) -> None:
    con.executescript(sql)
    con.commit()


def has_tables(con: sqlite3.Connection) -> bool:
    cursor = con.execute("SELECT name FROM sqlite_master WHERE type='table' AND name='machines'")
    return cursor.fetchone() is not None


def init_schema(con: sqlite3.Connection, work_hours: Optional[WorkHoursConfig] = None) -> None:
    exec_sql(con, SCHEMA)
    if con.execute("SELECT 1 FROM settings WHERE id = 1").fetchone() is None:
        save_work_hours(con, work_hours or Config.default_work_hours())


# ---------------------------------------------------------------------------
# Row <-> record mapping
# ---------------------------------------------------------------------------

def _clean(value: Any) -> Any:
    if value is None or (isinstance(value, float) and pd.isna(value)):
        return None
    return value


def _machine_from_row(row: dict) -> Machine:
    return Machine(
        machine_id=int(row["machine_id"]),
        name=row["name"],
        status=MachineStatus.parse(row["status"]),
        reason=_clean(row["reason"]),
        last_updated=datetime.fromisoformat(row["last_updated"]),
        accumulated_downtime_ms=int(row["accumulated_downtime_ms"]),
        production_count=int(row["production_count"]),
        scrap_count=int(row["scrap_count"]),
        cycle_time_value=float(row["cycle_time_value"]),
        cycle_time_unit=CycleUnit.parse(row["cycle_time_unit"]),
        notes=_clean(row["notes"]) or "",
        last_operator=_clean(row["last_operator"]) or "",
    )


def _machine_to_row(m: Machine) -> tuple:
    return (
        m.machine_id, m.name, m.status.value, m.reason, m.last_updated.isoformat(),
        int(m.accumulated_downtime_ms), int(m.production_count), int(m.scrap_count),
        float(m.cycle_time_value), m.cycle_time_unit.value, m.notes, m.last_operator,
    )


def _event_from_row(row: dict) -> StatusChangeEvent:
    return StatusChangeEvent(
        machine_id=int(row["machine_id"]),
        previous_status=MachineStatus.parse(row["previous_status"]),
        new_status=MachineStatus.parse(row["new_status"]),
        timestamp=datetime.fromisoformat(row["timestamp"]),
        reason=_clean(row["reason"]),
        signature=_clean(row["signature"]),
        event_id=row["event_id"],
    )


def _event_to_row(e: StatusChangeEvent) -> tuple:
    return (
        e.event_id or str(uuid.uuid4()), e.machine_id, e.previous_status.value, e.new_status.value,
        e.reason, e.timestamp.isoformat(), e.signature,
    )


def _upsert_machines(con: sqlite3.Connection, machines: List[Machine]) -> None:
    placeholders = ",".join("?" * len(MACHINE_COLUMNS))
    con.executemany(
        f"INSERT OR REPLACE INTO machines ({','.join(MACHINE_COLUMNS)}) VALUES ({placeholders})",
        [_machine_to_row(m) for m in machines],
    )


def _insert_events(con: sqlite3.Connection, events: List[StatusChangeEvent]) -> None:
    placeholders = ",".join("?" * len(HISTORY_COLUMNS))
    con.executemany(
        f"INSERT INTO history ({','.join(HISTORY_COLUMNS)}) VALUES ({placeholders})",
        [_event_to_row(e) for e in events],
    )


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------

def load_machines(con: sqlite3.Connection) -> List[Machine]:
    df = read_df(con, "SELECT * FROM machines ORDER BY machine_id")
    return [_machine_from_row(r) for r in df.to_dict("records")]


def get_machine(con: sqlite3.Connection, machine_id: int) -> Optional[Machine]:
    df = read_df(con, "SELECT * FROM machines WHERE machine_id = ?", (machine_id,))
    if df.empty:
        return None
    return _machine_from_row(df.to_dict("records")[0])


def load_events(con: sqlite3.Connection, since: Optional[datetime] = None) -> List[StatusChangeEvent]:
    if since is None:
        df = read_df(con, "SELECT * FROM history ORDER BY timestamp")
    else:
        df = read_df(con, "SELECT * FROM history WHERE timestamp >= ? ORDER BY timestamp", (since.isoformat(),))
    return [_event_from_row(r) for r in df.to_dict("records")]


def load_work_hours(con: sqlite3.Connection) -> WorkHoursConfig:
    row = con.execute("SELECT work_hours_enabled, shift_start, shift_end FROM settings WHERE id = 1").fetchone()
    if row is None:
        return Config.default_work_hours()
    return WorkHoursConfig.parse(bool(row[0]), row[1], row[2])


def load_last_reset_date(con: sqlite3.Connection) -> Optional[date]:
    row = con.execute("SELECT last_reset_date FROM settings WHERE id = 1").fetchone()
    if row is None or row[0] is None:
        return None
    return date.fromisoformat(row[0])


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------

def save_work_hours(con: sqlite3.Connection, work_hours: WorkHoursConfig) -> None:
    wh = work_hours.to_dict()
    con.execute(
        """
        INSERT INTO settings (id, work_hours_enabled, shift_start, shift_end)
        VALUES (1, ?, ?, ?)
        ON CONFLICT(id) DO UPDATE SET
          work_hours_enabled = excluded.work_hours_enabled,
          shift_start = excluded.shift_start,
          shift_end = excluded.shift_end
        """,
        (int(wh["enabled"]), wh["start"], wh["end"]),
    )
    con.commit()
    log.info("Work hours set to %s-%s (enabled=%s)", wh["start"], wh["end"], wh["enabled"])


def seed_machines(
    con: sqlite3.Connection,
    count: int = Config.DEFAULT_MACHINE_COUNT,
    now: Optional[datetime] = None,
) -> List[Machine]:
    """Create the default fleet: all running, 30 s cycles."""
    now = now or datetime.now()
    machines = [
        Machine(
            machine_id=i,
            name=f"Machine {i}",
            last_updated=now,
            cycle_time_value=Config.DEFAULT_CYCLE_TIME_S,
            last_operator="System",
        )
        for i in range(1, count + 1)
    ]
    _upsert_machines(con, machines)
    con.commit()
    return machines


def save_machines(con: sqlite3.Connection, machines: List[Machine]) -> None:
    _upsert_machines(con, machines)
    con.commit()


def append_events(con: sqlite3.Connection, events: List[StatusChangeEvent]) -> None:
    _insert_events(con, events)
    con.commit()


def record_status_change(
    con: sqlite3.Connection,
    machine_id: int,
    new_status: MachineStatus,
    work_hours: WorkHoursConfig,
    reason: Optional[str] = None,
    notes: str = "",
    operator: Optional[str] = None,
    signature: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Optional[tuple[Machine, StatusChangeEvent]]:
    """Update a machine's status and append the matching history entry (None if unknown)."""
    machine = get_machine(con, machine_id)
    if machine is None:
        log.warning("Status change for unknown machine %s ignored", machine_id)
        return None

    updated, event = apply_status_change(
        machine, new_status, work_hours, now or datetime.now(),
        reason=reason, notes=notes, operator=operator, signature=signature,
    )
    with con:
        _upsert_machines(con, [updated])
        _insert_events(con, [event])
    log.info("Machine %s: %s -> %s (%s)", machine_id, machine.status.value,
             updated.status.value, event.reason or "-")
    return updated, event


def update_production(con: sqlite3.Connection, machine_id: int, production: int, scrap: int) -> None:
    con.execute(
        "UPDATE machines SET production_count = ?, scrap_count = ? WHERE machine_id = ?",
        (int(production), int(scrap), machine_id),
    )
    con.commit()


def update_cycle_time(con: sqlite3.Connection, machine_id: int, value: float, unit: CycleUnit) -> None:
    con.execute(
        "UPDATE machines SET cycle_time_value = ?, cycle_time_unit = ? WHERE machine_id = ?",
        (float(value), CycleUnit.parse(unit).value, machine_id),
    )
    con.commit()


def set_accumulated_downtime(con: sqlite3.Connection, machine_id: int, downtime_ms: int) -> None:
    """Manual supervisor correction of today's accumulated downtime."""
    con.execute(
        "UPDATE machines SET accumulated_downtime_ms = ?, last_operator = ? WHERE machine_id = ?",
        (int(downtime_ms), "Supervisor (manual)", machine_id),
    )
    con.commit()
    log.info("Accumulated downtime of machine %s set to %d ms", machine_id, downtime_ms)


def mark_reset(con: sqlite3.Connection, day: date) -> None:
    """Record that the daily reset for `day` has happened. The caller commits."""
    con.execute("UPDATE settings SET last_reset_date = ? WHERE id = 1", (day.isoformat(),))


def reset_daily_counters(con: sqlite3.Connection, now: Optional[datetime] = None) -> List[Machine]:
    now = now or datetime.now()
    machines = [reset_daily(m, now) for m in load_machines(con)]
    with con:
        _upsert_machines(con, machines)
        mark_reset(con, now.date())
    log.info("Daily counters reset for %d machines", len(machines))
    return machines


# ---------------------------------------------------------------------------
# Backup
# ---------------------------------------------------------------------------

def export_backup(con: sqlite3.Connection, now: Optional[datetime] = None) -> str:
    machines = read_df(con, "SELECT * FROM machines ORDER BY machine_id")
    history = read_df(con, "SELECT * FROM history ORDER BY timestamp")
    payload = {
        "timestamp": (now or datetime.now()).isoformat(),
        "machines": [{k: _clean(v) for k, v in r.items()} for r in machines.to_dict("records")],
        "history": [{k: _clean(v) for k, v in r.items()} for r in history.to_dict("records")],
        "work_hours": load_work_hours(con).to_dict(),
    }
    return json.dumps(payload, indent=2, default=str)


def import_backup(con: sqlite3.Connection, payload: str) -> None:
    """Replace the store contents with a backup produced by ``export_backup``."""
    try:
        data = json.loads(payload)
        machines = [_machine_from_row(r) for r in data["machines"]]
        events = [_event_from_row(r) for r in data.get("history", [])]
        wh = data["work_hours"]
        work_hours = WorkHoursConfig.parse(wh["enabled"], wh["start"], wh["end"])
    except (ValueError, KeyError, TypeError) as e:
        raise ValueError(f"Invalid backup file: {e}") from e

    with con:
        con.execute("DELETE FROM history")
        con.execute("DELETE FROM machines")
        _upsert_machines(con, machines)
        _insert_events(con, events)
    save_work_hours(con, work_hours)
    log.info("Backup restored: %d machines, %d events", len(machines), len(events))
