"""Visible window over a dataset.

:class:`WindowNavigator` is an immutable snapshot of the window size and the
current ``[start, end)`` range.  Every operation takes the current dataset
length, re-derives ``start`` from scratch and returns a new navigator, so the
window can never drift outside the data after the dataset is replaced.

Invariants for dataset length ``n``::

    0 <= start <= end <= n
    end - start == min(window_size, n)
"""

from __future__ import annotations

from dataclasses import dataclass

from ..types import Window


def _clamp(value: int, low: int, high: int) -> int:
    return max(low, min(value, high))


@dataclass(frozen=True)
class WindowNavigator:
    window_size: int = 1000
    start: int = 0
    end: int = 0

    def __post_init__(self) -> None:
        if self.window_size < 1:
            raise ValueError("window_size must be at least 1")

    @classmethod
    def create(cls, window_size: int, dataset_len: int) -> "WindowNavigator":
        """Navigator showing the first ``window_size`` samples."""

        return cls(window_size).jump_to_start(dataset_len)

    @property
    def window(self) -> Window:
        return Window(self.start, self.end)

    def max_start(self, dataset_len: int) -> int:
        """Largest valid ``start``; the upper bound of a scrub control."""

        return max(0, dataset_len - self.window_size)

    def _at(self, start: int, dataset_len: int, window_size: int | None = None) -> "WindowNavigator":
        size = self.window_size if window_size is None else window_size
        n = max(0, dataset_len)
        start = _clamp(start, 0, max(0, n - size))
        return WindowNavigator(size, start, min(start + size, n))

    def set_window_size(self, new_size: int, dataset_len: int) -> "WindowNavigator":
        if new_size < 1:
            raise ValueError("window_size must be at least 1")
        return self._at(self.start, dataset_len, new_size)

    def pan_by(self, delta: int, dataset_len: int) -> "WindowNavigator":
        return self._at(self.start + delta, dataset_len)

    def next_page(self, dataset_len: int) -> "WindowNavigator":
        return self.pan_by(self.window_size, dataset_len)

    def prev_page(self, dataset_len: int) -> "WindowNavigator":
        return self.pan_by(-self.window_size, dataset_len)

    def scroll(self, direction: int, dataset_len: int, *, min_step: int = 100, divisor: int = 10) -> "WindowNavigator":
        """Pan by a fraction of the window, at least ``min_step`` samples.

        Positive ``direction`` moves towards newer samples.
        """

        if direction == 0:
            return self._at(self.start, dataset_len)
        step = max(min_step, self.window_size // divisor)
        return self.pan_by(step if direction > 0 else -step, dataset_len)

    def jump_to_start(self, dataset_len: int) -> "WindowNavigator":
        return self._at(0, dataset_len)

    def jump_to_end(self, dataset_len: int) -> "WindowNavigator":
        return self._at(self.max_start(dataset_len), dataset_len)

    def set_start(self, new_start: int, dataset_len: int) -> "WindowNavigator":
        return self._at(new_start, dataset_len)

    def on_dataset_length_changed(self, dataset_len: int) -> "WindowNavigator":
        """Re-clamp after the dataset was replaced; size and start are kept where possible."""

        return self._at(self.start, dataset_len)
