"""Plotting helpers for the visible window."""

from .plot_window import plot_window, save_or_show

__all__ = ["plot_window", "save_or_show"]
