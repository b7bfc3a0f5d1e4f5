from datetime import datetime

import pytest

from shopfloor_oee.models import Machine, MachineStatus, StatusChangeEvent, WorkHoursConfig

# Monday
NOW = datetime(2026, 10, 19, 9, 0)


def at(hour, minute=0, day=19, month=10):
    return datetime(2026, month, day, hour, minute)


def stop(machine_id, ts, reason="Jam"):
    return StatusChangeEvent(
        machine_id=machine_id,
        previous_status=MachineStatus.RUNNING,
        new_status=MachineStatus.STOPPED,
        timestamp=ts,
        reason=reason,
    )


def run(machine_id, ts):
    return StatusChangeEvent(
        machine_id=machine_id,
        previous_status=MachineStatus.STOPPED,
        new_status=MachineStatus.RUNNING,
        timestamp=ts,
    )


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def work_hours():
    return WorkHoursConfig.parse(True, "08:00", "18:49")


@pytest.fixture
def make_machine():
    def _make(machine_id=1, **overrides):
        fields = dict(
            machine_id=machine_id,
            name=f"Machine {machine_id}",
            status=MachineStatus.RUNNING,
            last_updated=at(6),
            cycle_time_value=30,
        )
        fields.update(overrides)
        return Machine(**fields)
    return _make


@pytest.fixture
def con(tmp_path):
    from shopfloor_oee.db import connect, init_schema
    connection = connect(tmp_path / "shopfloor.db")
    init_schema(connection)
    try:
        yield connection
    finally:
        connection.close()
