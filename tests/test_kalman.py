import math

import numpy as np
import pytest

from signalscope.config import Settings
from signalscope.core import smooth, smooth_values
from signalscope.types import Dataset, FilterParams, InvalidFilterParams


def make_dataset(values, step=2):
    return Dataset([i * step for i in range(len(values))], values)


def test_constant_signal_is_fixed_point():
    ds = make_dataset([5, 5, 5, 5])
    out = smooth(ds, FilterParams(q=1, r=1, p0=1))
    assert out.values.tolist() == [5.0, 5.0, 5.0, 5.0]


def test_preserves_length_times_and_first_value():
    rng = np.random.default_rng(0)
    values = rng.normal(size=50)
    ds = make_dataset(values)
    for params in (FilterParams(), FilterParams(q=0.01, r=10, p0=3), FilterParams(q=0, r=1e-9, p0=0)):
        out = smooth(ds, params)
        assert len(out) == len(ds)
        assert out.times == ds.times
        assert out.values[0] == ds.values[0]


def test_matches_recursive_definition():
    values = [1.0, 3.0, 2.0]
    q, r, p = 0.5, 2.0, 1.0
    x, expected = values[0], []
    for z in values:
        p += q
        k = p / (p + r)
        x += k * (z - x)
        p *= 1 - k
        expected.append(x)
    out = smooth_values(values, FilterParams(q=q, r=r, p0=1.0))
    np.testing.assert_allclose(out, expected)


def test_deterministic():
    ds = make_dataset([0.3, 1.2, -0.4, 2.2, 0.9])
    params = FilterParams(q=0.2, r=0.7, p0=1.5)
    assert smooth(ds, params) == smooth(ds, params)


def test_huge_r_ignores_measurements():
    ds = make_dataset([1.0, 10.0, -10.0, 50.0])
    out = smooth(ds, FilterParams(q=0, r=1e12, p0=1))
    np.testing.assert_allclose(out.values, 1.0, atol=1e-9)


def test_tiny_r_tracks_input():
    values = [1.0, 10.0, -10.0, 50.0]
    out = smooth(make_dataset(values), FilterParams(q=1, r=1e-12, p0=1))
    np.testing.assert_allclose(out.values, values, rtol=1e-9)


def test_double_filtering_is_another_pass():
    ds = make_dataset([0.0, 4.0, 0.0, 4.0, 0.0])
    params = FilterParams(q=0.1, r=1.0, p0=1.0)
    once = smooth(ds, params)
    twice = smooth(once, params)
    np.testing.assert_allclose(twice.values, smooth_values(once.values, params))
    assert not np.allclose(once.values, twice.values)


def test_empty_dataset():
    out = smooth(Dataset(), FilterParams())
    assert len(out) == 0


def test_defaults_from_settings():
    settings = Settings()
    settings.filter.q = 0.25
    settings.filter.r = 4.0
    values = [1.0, 2.0, 3.0]
    expected = smooth_values(values, FilterParams(q=0.25, r=4.0, p0=1.0))
    np.testing.assert_allclose(smooth_values(values, settings=settings), expected)


@pytest.mark.parametrize(
    "kwargs",
    [
        {"r": 0},
        {"r": -1},
        {"q": -0.1},
        {"p0": -1},
        {"q": math.nan},
        {"r": math.inf},
        {"k0": "1"},
    ],
)
def test_invalid_params_rejected(kwargs):
    with pytest.raises(InvalidFilterParams):
        FilterParams(**kwargs)
