"""Two measurement pointers over the full dataset."""

from __future__ import annotations

from dataclasses import dataclass, replace

from ..types import Measurement, Window


def _clamp_index(index: int, dataset_len: int) -> int:
    if dataset_len <= 0:
        return 0
    return max(0, min(index, dataset_len - 1))


@dataclass(frozen=True)
class PointerTracker:
    """Snapshot of both pointers and which one the next click moves.

    Pointers index the whole dataset, not the visible window, so they stay
    put while the operator pans away from them.
    """

    p1: int = 0
    p2: int = 0
    active: int = 1

    def __post_init__(self) -> None:
        if self.active not in (1, 2):
            raise ValueError("active pointer must be 1 or 2")

    @classmethod
    def create(cls, p1: int, p2: int, dataset_len: int) -> "PointerTracker":
        return cls(_clamp_index(p1, dataset_len), _clamp_index(p2, dataset_len))

    def select_active(self, which: int) -> "PointerTracker":
        if which not in (1, 2):
            raise ValueError("active pointer must be 1 or 2")
        return replace(self, active=which)

    def move_active_to(self, index: int, dataset_len: int) -> "PointerTracker":
        index = _clamp_index(index, dataset_len)
        if self.active == 1:
            return replace(self, p1=index)
        return replace(self, p2=index)

    def reset_around_window(self, window: Window, offset: int = 250) -> "PointerTracker":
        """Bracket the middle of ``window`` with ``offset`` samples each side."""

        if window.end <= window.start:
            return replace(self, p1=window.start, p2=window.start)
        middle = (window.start + window.end) // 2
        return replace(
            self,
            p1=max(window.start, middle - offset),
            p2=min(window.end - 1, middle + offset),
        )

    def measure(self, interval_ms: float = 2.0) -> Measurement:
        delta = abs(self.p2 - self.p1)
        return Measurement(sample_delta=delta, time_delta_ms=delta * interval_ms)

    def on_dataset_changed(self, dataset_len: int) -> "PointerTracker":
        return replace(
            self,
            p1=_clamp_index(self.p1, dataset_len),
            p2=_clamp_index(self.p2, dataset_len),
        )
