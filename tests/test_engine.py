"""
End-to-end tests for the analytics entry point.

Run: python -m pytest tests/test_engine.py -v
"""

from conftest import at, run, stop
from shopfloor_oee.engine import analyze
from shopfloor_oee.models import AnalyticsReport, MachineStatus


def _inputs(make_machine):
    machines = [
        make_machine(1, production_count=100, scrap_count=5),
        make_machine(2, status=MachineStatus.STOPPED, reason="Breakdown", last_updated=at(8, 15)),
    ]
    events = [
        stop(2, at(8, 15), "Breakdown"),
        stop(1, at(10, day=14), "Jam"), run(1, at(10, 20, day=14)),
        stop(7, at(9, day=15), "Setup"), run(7, at(9, 10, day=15)),
    ]
    return machines, events


class TestAnalyze:

    def test_output_contract(self, make_machine, work_hours, now):
        machines, events = _inputs(make_machine)
        report = analyze(machines, events, work_hours, now=now)

        assert isinstance(report, AnalyticsReport)
        assert [m.machine_id for m in report.metrics] == [1, 2]
        # machine 7 has no snapshot but its stop still shows in the Pareto
        assert [p.reason for p in report.pareto] == ["Breakdown", "Jam", "Setup"]
        assert report.pareto[-1].accumulated_percent == 100
        assert 0 <= len(report.insights) <= 3

    def test_live_stop_drives_availability(self, make_machine, work_hours, now):
        machines, events = _inputs(make_machine)
        metrics = analyze(machines, events, work_hours, now=now).metrics
        # stopped since 08:15, one hour into the shift
        assert metrics[1].availability == 25.0
        assert metrics[1].total_downtime_ms == 45 * 60_000

    def test_idempotent(self, make_machine, work_hours, now):
        machines, events = _inputs(make_machine)
        first = analyze(machines, events, work_hours, now=now)
        second = analyze(machines, list(reversed(events)), work_hours, now=now)
        assert first == second
        assert repr(first) == repr(second)

    def test_inputs_not_modified(self, make_machine, work_hours, now):
        machines, events = _inputs(make_machine)
        before = (list(machines), list(events))
        analyze(machines, events, work_hours, now=now)
        assert (machines, events) == before

    def test_no_snapshots(self, work_hours, now):
        report = analyze(None, [stop(1, at(8)), run(1, at(8, 30))], work_hours, now=now)
        assert report.metrics == []
        assert [p.reason for p in report.pareto] == ["Jam"]

    def test_pareto_window(self, make_machine, work_hours, now):
        machines, events = _inputs(make_machine)
        report = analyze(machines, events, work_hours, now=now, pareto_since=at(0))
        assert [p.reason for p in report.pareto] == ["Breakdown"]
