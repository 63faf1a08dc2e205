# koenawin/plots.py
from __future__ import annotations

from typing import Optional
import matplotlib.pyplot as plt
from matplotlib.patches import Rectangle

from .engine import GRID, GRID_SIZE, SPECIAL_COLUMN, DerivedSchedule


def plot_cycle_grid(
    schedule: Optional[DerivedSchedule] = None,
    title: str = "Koenawin: 81-day grid",
    ax: Optional[plt.Axes] = None,
):
    """
    Draw the 9x9 round grid, shade the vegetarian column and outline today's cell.
    Rest days sit outside the grid; they are noted in the title instead.
    Returns matplotlib Figure.
    """
    if ax is None:
        fig, ax = plt.subplots(figsize=(5, 5))
    else:
        fig = ax.figure

    ax.imshow([list(r) for r in GRID], cmap="YlOrBr", vmin=0, vmax=10)
    for r in range(GRID_SIZE):
        for c in range(GRID_SIZE):
            ax.text(c, r, str(GRID[r][c]), ha="center", va="center", fontsize=10)

    ax.add_patch(
        Rectangle((SPECIAL_COLUMN - 0.5, -0.5), 1, GRID_SIZE, fill=False, hatch="//", alpha=0.3, label="Vegetarian day")
    )

    if schedule is not None and schedule.row_index is not None and schedule.col_index is not None:
        ax.add_patch(
            Rectangle(
                (schedule.col_index - 0.5, schedule.row_index - 0.5),
                1,
                1,
                fill=False,
                linewidth=3,
                edgecolor="#FF6B35",
                label="Today",
            )
        )
    elif schedule is not None and schedule.is_rest_day:
        title = f"{title} (rest day)"

    ax.set_xticks(range(GRID_SIZE))
    ax.set_yticks(range(GRID_SIZE))
    ax.set_xticklabels([str(i + 1) for i in range(GRID_SIZE)])
    ax.set_yticklabels([f"wk {i + 1}" for i in range(GRID_SIZE)])
    ax.set_title(title)
    ax.legend(loc="upper right", bbox_to_anchor=(1.0, -0.05), ncol=2, fontsize=8)
    return fig
