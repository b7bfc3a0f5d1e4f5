"""
Value records shared by the analytics engine and its collaborators.

All records are frozen dataclasses; stages build new records instead of
mutating the ones they receive.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import date, datetime, time
from enum import Enum
from typing import List, Optional, Union

MachineId = Union[int, str]


class MachineStatus(str, Enum):
    RUNNING = "running"
    STOPPED = "stopped"

    @classmethod
    def parse(cls, value: Union["MachineStatus", str]) -> "MachineStatus":
        if isinstance(value, cls):
            return value
        return cls(str(value).strip().lower())


class CycleUnit(str, Enum):
    SECONDS = "seconds"
    MINUTES = "minutes"
    HOURS = "hours"

    @classmethod
    def parse(cls, value: Union["CycleUnit", str, None]) -> "CycleUnit":
        if isinstance(value, cls):
            return value
        if not value:
            return cls.SECONDS
        return cls(str(value).strip().lower())

    @property
    def seconds(self) -> int:
        return {"seconds": 1, "minutes": 60, "hours": 3600}[self.value]


def _parse_hhmm(value: Union[str, time]) -> time:
    if isinstance(value, time):
        return value
    hours, minutes = str(value).strip().split(":")[:2]
    return time(int(hours), int(minutes))


@dataclass(frozen=True)
class WorkHoursConfig:
    """Daily shift window. When disabled every instant counts as working time."""
    enabled: bool = True
    start: time = time(8, 0)
    end: time = time(18, 49)

    @classmethod
    def parse(cls, enabled: bool, start: Union[str, time], end: Union[str, time]) -> "WorkHoursConfig":
        return cls(enabled=bool(enabled), start=_parse_hhmm(start), end=_parse_hhmm(end))

    @property
    def is_valid(self) -> bool:
        return self.end > self.start

    def window_on(self, day: date) -> tuple[datetime, datetime]:
        return datetime.combine(day, self.start), datetime.combine(day, self.end)

    def to_dict(self) -> dict:
        return {
            "enabled": self.enabled,
            "start": self.start.strftime("%H:%M"),
            "end": self.end.strftime("%H:%M"),
        }


@dataclass(frozen=True)
class Machine:
    """Snapshot of a machine's current state, as supplied by the store."""
    machine_id: MachineId
    name: str
    status: MachineStatus = MachineStatus.RUNNING
    reason: Optional[str] = None
    last_updated: datetime = field(default_factory=datetime.now)
    accumulated_downtime_ms: int = 0
    production_count: int = 0
    scrap_count: int = 0
    cycle_time_value: float = 30.0
    cycle_time_unit: CycleUnit = CycleUnit.SECONDS
    notes: str = ""
    last_operator: str = ""

    def __post_init__(self):
        object.__setattr__(self, "status", MachineStatus.parse(self.status))
        object.__setattr__(self, "cycle_time_unit", CycleUnit.parse(self.cycle_time_unit))
        # a stoppage reason only exists while the machine is stopped
        if self.status is MachineStatus.RUNNING:
            object.__setattr__(self, "reason", None)

    @property
    def is_stopped(self) -> bool:
        return self.status is MachineStatus.STOPPED


@dataclass(frozen=True)
class StatusChangeEvent:
    """One entry of the append-only status history."""
    machine_id: MachineId
    previous_status: MachineStatus
    new_status: MachineStatus
    timestamp: datetime
    reason: Optional[str] = None
    signature: Optional[str] = None
    event_id: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "previous_status", MachineStatus.parse(self.previous_status))
        object.__setattr__(self, "new_status", MachineStatus.parse(self.new_status))
        if self.new_status is not MachineStatus.STOPPED:
            object.__setattr__(self, "reason", None)


@dataclass(frozen=True)
class DowntimeInterval:
    machine_id: MachineId
    reason: str
    start: datetime
    end: datetime
    duration_ms: int
    is_open: bool = False


@dataclass(frozen=True)
class MachineMetrics:
    machine_id: MachineId
    machine_name: str
    total_downtime_ms: int
    failure_count: int
    mtbf_hours: float
    mttr_minutes: int
    availability: float
    performance: float
    quality: float
    oee: float


@dataclass(frozen=True)
class ParetoItem:
    reason: str
    count: int
    duration_ms: int
    accumulated_percent: int


@dataclass(frozen=True)
class DowntimeTotals:
    daily_ms: int
    weekly_ms: int
    monthly_ms: int


@dataclass(frozen=True)
class AnalyticsReport:
    metrics: List[MachineMetrics]
    pareto: List[ParetoItem]
    insights: List[str]
