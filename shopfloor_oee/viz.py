from __future__ import annotations
from typing import Iterable

import matplotlib
matplotlib.use('Agg', force=True)
import matplotlib.pyplot as plt

from shopfloor_oee.models import ParetoItem

plt.ioff()


def pareto_chart(items: Iterable[ParetoItem], title: str = "Downtime Pareto") -> plt.Figure:
    """Bars of downtime minutes per reason with the cumulative percentage on a second axis."""
    items = list(items)

    fig, ax = plt.subplots(figsize=(10, 6))

    if not items:
        ax.text(0.5, 0.5, 'No data available', ha='center', va='center', transform=ax.transAxes)
        ax.set_title(title, fontsize=14, fontweight='bold')
        plt.tight_layout()
        return fig

    reasons = [p.reason for p in items]
    minutes = [p.duration_ms / 60000 for p in items]
    cumulative = [p.accumulated_percent for p in items]

    ax.bar(reasons, minutes, color='steelblue', alpha=0.7)
    ax.set_title(title, fontsize=14, fontweight='bold')
    ax.set_xlabel("Reason", fontsize=12)
    ax.set_ylabel("Downtime (min)", fontsize=12)
    ax.grid(True, alpha=0.3, axis='y')
    for tick in ax.get_xticklabels():
        tick.set_rotation(45)
        tick.set_ha("right")

    ax2 = ax.twinx()
    ax2.plot(reasons, cumulative, color='firebrick', marker='o', linewidth=2)
    ax2.set_ylim(0, 105)
    ax2.set_ylabel("Cumulative %", fontsize=12)

    plt.tight_layout()
    return fig
