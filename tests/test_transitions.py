"""
Unit tests for status-change consolidation and the daily reset rules.

Run: python -m pytest tests/test_transitions.py -v
"""

from datetime import date

from conftest import at
from shopfloor_oee.models import MachineStatus, WorkHoursConfig
from shopfloor_oee.transitions import apply_status_change, is_daily_reset_due, reset_daily

HOUR = 3_600_000


class TestApplyStatusChange:

    def test_resume_folds_shift_time_into_counter(self, make_machine, work_hours, now):
        machine = make_machine(1, status=MachineStatus.STOPPED, reason="Jam", notes="belt",
                               last_updated=at(7), accumulated_downtime_ms=HOUR)
        updated, event = apply_status_change(machine, MachineStatus.RUNNING, work_hours, now, operator="Ana")

        assert updated.accumulated_downtime_ms == 2 * HOUR
        assert updated.status is MachineStatus.RUNNING
        assert updated.reason is None
        assert updated.notes == ""
        assert updated.last_updated == now
        assert updated.last_operator == "Ana"

        assert event.previous_status is MachineStatus.STOPPED
        assert event.new_status is MachineStatus.RUNNING
        assert event.reason is None
        assert event.timestamp == now
        assert event.event_id

    def test_stop_keeps_counter_and_records_reason(self, make_machine, work_hours, now):
        machine = make_machine(1, accumulated_downtime_ms=HOUR)
        updated, event = apply_status_change(
            machine, "stopped", work_hours, now, reason="Setup", notes="new mould", signature="sig-1",
        )
        assert updated.accumulated_downtime_ms == HOUR
        assert updated.reason == "Setup"
        assert updated.notes == "new mould"
        assert event.reason == "Setup"
        assert event.signature == "sig-1"

    def test_original_snapshot_untouched(self, make_machine, work_hours, now):
        machine = make_machine(1, status=MachineStatus.STOPPED, last_updated=at(8))
        apply_status_change(machine, MachineStatus.RUNNING, work_hours, now)
        assert machine.status is MachineStatus.STOPPED
        assert machine.accumulated_downtime_ms == 0


class TestDailyReset:

    def test_reset_zeroes_counters(self, make_machine, now):
        machine = make_machine(1, production_count=50, scrap_count=2, accumulated_downtime_ms=HOUR)
        fresh = reset_daily(machine, now)
        assert (fresh.production_count, fresh.scrap_count, fresh.accumulated_downtime_ms) == (0, 0, 0)
        assert fresh.last_updated == now
        assert fresh.name == machine.name

    def test_due_after_shift_start(self, work_hours, now):
        assert is_daily_reset_due(work_hours, date(2026, 10, 18), now)
        assert is_daily_reset_due(work_hours, None, now)

    def test_not_due_twice_a_day(self, work_hours, now):
        assert not is_daily_reset_due(work_hours, now.date(), now)

    def test_not_due_before_shift(self, work_hours):
        assert not is_daily_reset_due(work_hours, date(2026, 10, 18), at(7, 59))

    def test_not_due_without_shift_hours(self, now):
        assert not is_daily_reset_due(WorkHoursConfig(enabled=False), None, now)
