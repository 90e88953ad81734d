"""Common type helpers for signalscope.

This module defines the immutable containers exchanged between the ingestion,
filtering and navigation layers.  Every state change produces a new object,
so a consumer never observes a half-updated dataset.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterator, Sequence, Union

import numpy as np

Timestamp = Union[int, float, str]


@dataclass(frozen=True)
class Sample:
    """Representation of a single observation."""

    time: Timestamp
    value: float


@dataclass(frozen=True)
class Window:
    """Index based window ``[start, end)`` over a dataset."""

    start: int
    end: int

    @property
    def width(self) -> int:
        """Return the number of samples covered by the window."""

        return self.end - self.start


@dataclass(frozen=True)
class Measurement:
    """Distance between the two pointers."""

    sample_delta: int
    time_delta_ms: float


class InvalidFilterParams(ValueError):
    """Raised when filter parameters would make the estimator ill-defined."""


@dataclass(frozen=True)
class FilterParams:
    """Tuning of the scalar Kalman smoother.

    Parameters
    ----------
    q:
        Process noise.  Larger values make the estimate follow new
        measurements more closely.
    r:
        Measurement noise.  Must be strictly positive.
    p0:
        Initial estimate variance.
    k0:
        Initial gain.  Informational only; the gain is recomputed from
        ``p0`` on the first sample.
    """

    q: float = 1.0
    r: float = 1.0
    p0: float = 1.0
    k0: float = 1.0

    def __post_init__(self) -> None:
        for name in ("q", "r", "p0", "k0"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise InvalidFilterParams(f"{name} must be a number, got {value!r}")
            if not math.isfinite(value):
                raise InvalidFilterParams(f"{name} must be finite, got {value!r}")
            object.__setattr__(self, name, float(value))
        if self.r <= 0:
            raise InvalidFilterParams("r must be strictly positive")
        if self.q < 0:
            raise InvalidFilterParams("q must not be negative")
        if self.p0 < 0:
            raise InvalidFilterParams("p0 must not be negative")


class Dataset:
    """Ordered, immutable sequence of samples.

    Times are kept in a tuple and values in a read-only ``float`` array so the
    smoothing code can work on the values without copying them into Python
    objects first.
    """

    __slots__ = ("_times", "_values")

    def __init__(self, times: Sequence[Timestamp] = (), values: Sequence[float] | np.ndarray = ()) -> None:
        times = tuple(times)
        arr = np.array(values, dtype=float).reshape(-1)
        if len(times) != arr.size:
            raise ValueError("times and values must have the same length")
        arr.setflags(write=False)
        self._times = times
        self._values = arr

    @classmethod
    def from_samples(cls, samples: Sequence[Sample]) -> "Dataset":
        return cls([s.time for s in samples], [s.value for s in samples])

    @property
    def times(self) -> tuple:
        return self._times

    @property
    def values(self) -> np.ndarray:
        return self._values

    def __len__(self) -> int:
        return len(self._times)

    def __bool__(self) -> bool:
        return len(self._times) > 0

    def __getitem__(self, index: int) -> Sample:
        return Sample(self._times[index], float(self._values[index]))

    def __iter__(self) -> Iterator[Sample]:
        for t, v in zip(self._times, self._values):
            yield Sample(t, float(v))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Dataset):
            return NotImplemented
        return self._times == other._times and np.array_equal(self._values, other._values)

    def __hash__(self) -> int:  # pragma: no cover - datasets are rarely hashed
        return hash((self._times, self._values.tobytes()))

    def __repr__(self) -> str:  # pragma: no cover
        if not self._times:
            return "Dataset(<empty>)"
        return f"Dataset(n={len(self)}, first={self._times[0]!r}, last={self._times[-1]!r})"

    def slice(self, window: Window) -> "Dataset":
        """Return the samples covered by ``window``."""

        return Dataset(self._times[window.start : window.end], self._values[window.start : window.end])

    def with_values(self, values: Sequence[float] | np.ndarray) -> "Dataset":
        """Return a dataset with the same times and new ``values``."""

        return Dataset(self._times, values)

    def index_of_time(self, time: Timestamp) -> int:
        """Return the index of the first sample stamped ``time`` or ``-1``."""

        try:
            return self._times.index(time)
        except ValueError:
            return -1


EMPTY = Dataset()
