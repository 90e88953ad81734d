"""Core algorithms and state snapshots for signalscope."""

from .kalman import smooth, smooth_values
from .pointers import PointerTracker
from .window import WindowNavigator

__all__ = [
    "smooth",
    "smooth_values",
    "PointerTracker",
    "WindowNavigator",
]
