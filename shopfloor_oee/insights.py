"""
Rule-based insights over fleet metrics and the downtime Pareto.

Rules are evaluated in a fixed order and emit at most one message each:
fleet OEE, worst machine, top stoppage cause.
"""

from __future__ import annotations
from typing import List, Sequence

from shopfloor_oee.config import Config
from shopfloor_oee.models import MachineMetrics, ParetoItem


def generate_insights(metrics: Sequence[MachineMetrics], pareto: Sequence[ParetoItem]) -> List[str]:
    insights: List[str] = []

    if metrics:
        avg_oee = sum(m.oee for m in metrics) / len(metrics)
        if avg_oee < Config.FLEET_OEE_ALERT:
            insights.append(
                f"Critical OEE: fleet average is {avg_oee:.1f}%. "
                f"World-class plants run above {Config.OEE_WORLD_CLASS:.0f}%."
            )

        # min() keeps the first machine among equal OEE values
        worst = min(metrics, key=lambda m: m.oee)
        if worst.oee < Config.MACHINE_OEE_ALERT:
            insights.append(
                f"Bottleneck: {worst.machine_name} has the lowest performance (OEE: {worst.oee}%)."
            )

    if pareto:
        insights.append(f'Top cause: "{pareto[0].reason}" accounts for the largest loss of time.')

    return insights
