"""Matplotlib styles for signalscope plots."""

from __future__ import annotations

import matplotlib.pyplot as plt

WINDOW_STYLE = {
    "figure.figsize": (12, 4),
    "axes.grid": True,
    "grid.linestyle": "--",
    "grid.alpha": 0.5,
    "lines.linewidth": 1.0,
    "xtick.labelsize": "small",
}

# Line and marker colours of the dashboard chart.
LINE_COLOR = "#8884d8"
POINTER_COLORS = {1: "red", 2: "green"}


def apply_style() -> None:
    plt.rcParams.update(WINDOW_STYLE)
