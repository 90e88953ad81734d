"""Render the visible window with both pointer markers."""

from __future__ import annotations

from pathlib import Path

import matplotlib.pyplot as plt
import numpy as np

from ..core.pointers import PointerTracker
from ..types import Dataset, Window
from .styles import LINE_COLOR, POINTER_COLORS, apply_style


def _tick_labels(times: tuple, count: int) -> tuple[np.ndarray, list[str]]:
    n = len(times)
    if n == 0:
        return np.array([], dtype=int), []
    step = max(1, n // count)
    idx = np.arange(0, n, step)
    return idx, [str(times[i]) for i in idx]


def plot_window(
    dataset: Dataset,
    window: Window,
    pointers: PointerTracker | None = None,
    *,
    title: str = "Signal",
    interval_ms: float = 2.0,
) -> plt.Figure:
    """Plot ``dataset[window]`` and mark pointers that fall inside it.

    Pointers outside the window are not drawn but still appear in the
    measurement shown in the title.
    """

    apply_style()
    fig, ax = plt.subplots()
    visible = dataset.slice(window)
    x = np.arange(len(visible))
    ax.plot(x, visible.values, color=LINE_COLOR)

    idx, labels = _tick_labels(visible.times, 10)
    ax.set_xticks(idx)
    ax.set_xticklabels(labels, rotation=30, ha="right")

    if pointers is not None:
        for which, index in ((1, pointers.p1), (2, pointers.p2)):
            if window.start <= index < window.end:
                local = index - window.start
                ax.plot(local, visible.values[local], "o", color=POINTER_COLORS[which], label=f"Pointer {which}")
        m = pointers.measure(interval_ms)
        title = f"{title} (pointers {pointers.p1}-{pointers.p2}: {m.time_delta_ms:.3f} ms)"
        if ax.get_legend_handles_labels()[0]:
            ax.legend()

    ax.set_title(title)
    ax.set_xlabel("Time")
    ax.set_ylabel("Value")
    fig.tight_layout()
    return fig


def save_or_show(fig: plt.Figure, save: str | Path | None = None) -> None:
    """Save ``fig`` to ``save`` or show it when no path is given."""
    if save:
        fig.savefig(save, bbox_inches="tight")
    else:
        plt.show()
    plt.close(fig)
