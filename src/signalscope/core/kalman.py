"""Scalar Kalman-style smoothing of a sample series.

The estimator models the signal as a random walk: every step the estimate
variance grows by ``q``, and each measurement pulls the estimate towards it
with gain ``p / (p + r)``.  The state starts at the first measurement, so the
first output always equals the first input regardless of the gain.
"""

from __future__ import annotations

from typing import Sequence

import numpy as np

from ..config import Settings
from ..types import Dataset, FilterParams


def smooth_values(
    values: Sequence[float] | np.ndarray,
    params: FilterParams | None = None,
    *,
    settings: Settings | None = None,
) -> np.ndarray:
    """Return the filtered estimate for every entry of ``values``.

    Parameters
    ----------
    values:
        Raw measurements in time order.
    params:
        Filter tuning.  Defaults to ``settings.filter``.

    Returns
    -------
    numpy.ndarray
        Array of estimates matching the length of ``values``.
    """

    if params is None:
        params = (settings or Settings()).filter.to_params()

    arr = np.asarray(values, dtype=float).reshape(-1)
    out = np.empty(arr.size, dtype=float)
    if arr.size == 0:
        return out

    q, r = params.q, params.r
    x = float(arr[0])
    p = params.p0
    for i, z in enumerate(arr):
        p += q
        gain = p / (p + r)
        x += gain * (z - x)
        p *= 1.0 - gain
        out[i] = x
    return out


def smooth(dataset: Dataset, params: FilterParams | None = None, *, settings: Settings | None = None) -> Dataset:
    """Smooth ``dataset`` into a new dataset with the same timestamps.

    Pure: the same dataset and parameters always give the same output, and
    feeding the result back in (double filtering) is just another pass.
    """

    return dataset.with_values(smooth_values(dataset.values, params, settings=settings))
