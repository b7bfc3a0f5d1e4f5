"""
Unit tests for rule-based insights.

Run: python -m pytest tests/test_insights.py -v
"""

from shopfloor_oee.insights import generate_insights
from shopfloor_oee.models import MachineMetrics, ParetoItem


def _metrics(machine_id, oee, name=None):
    return MachineMetrics(
        machine_id=machine_id, machine_name=name or f"Machine {machine_id}",
        total_downtime_ms=0, failure_count=0, mtbf_hours=720.0, mttr_minutes=0,
        availability=100.0, performance=oee, quality=100.0, oee=oee,
    )


PARETO = [ParetoItem(reason="Jam", count=3, duration_ms=600_000, accumulated_percent=70),
          ParetoItem(reason="Setup", count=1, duration_ms=200_000, accumulated_percent=100)]


class TestGenerateInsights:

    def test_all_rules_in_fixed_order(self):
        insights = generate_insights([_metrics(1, 40.0), _metrics(2, 50.0)], PARETO)
        assert len(insights) == 3
        assert insights[0].startswith("Critical OEE: fleet average is 45.0%")
        assert insights[1] == "Bottleneck: Machine 1 has the lowest performance (OEE: 40.0%)."
        assert insights[2] == 'Top cause: "Jam" accounts for the largest loss of time.'

    def test_fleet_fine_but_one_machine_weak(self):
        insights = generate_insights([_metrics(1, 90.0), _metrics(2, 55.0)], [])
        assert insights == ["Bottleneck: Machine 2 has the lowest performance (OEE: 55.0%)."]

    def test_healthy_fleet_without_stops(self):
        assert generate_insights([_metrics(1, 85.0), _metrics(2, 75.0)], []) == []

    def test_worst_machine_tie_keeps_first(self):
        insights = generate_insights([_metrics(1, 90.0), _metrics(2, 60.0, "Press"), _metrics(3, 60.0, "Lathe")], [])
        assert insights == ["Bottleneck: Press has the lowest performance (OEE: 60.0%)."]

    def test_no_machines_only_reports_top_cause(self):
        assert generate_insights([], PARETO) == ['Top cause: "Jam" accounts for the largest loss of time.']
