import logging
from datetime import datetime, timedelta, timezone

import numpy as np
import pytest

from signalscope.types import Dataset, Sample, Window
from signalscope.utils.logging import get_logger
from signalscope.utils.timeparse import check_date, format_clock, parse_anchor, today_utc


def test_types():
    w = Window(2, 5)
    assert w.width == 3
    with pytest.raises(ValueError):
        Dataset([0, 1], [1.0])
    ds = Dataset.from_samples([Sample(0, 1.0), Sample(2, 2.0), Sample(4, 3.0)])
    assert ds[1] == Sample(2, 2.0)
    assert list(ds)[-1] == Sample(4, 3.0)
    assert not Dataset()


def test_dataset_values_are_read_only():
    ds = Dataset([0, 2], [1.0, 2.0])
    with pytest.raises(ValueError):
        ds.values[0] = 5.0
    source = np.array([1.0, 2.0])
    copy = Dataset([0, 2], source)
    source[0] = 9.0
    assert copy.values[0] == 1.0


def test_dataset_slice_and_lookup():
    ds = Dataset([0, 2, 4, 6], [1.0, 2.0, 3.0, 4.0])
    part = ds.slice(Window(1, 3))
    assert part.times == (2, 4)
    assert part.values.tolist() == [2.0, 3.0]
    assert ds.index_of_time(4) == 2
    assert ds.index_of_time(5) == -1
    replaced = ds.with_values([0.0] * 4)
    assert replaced.times == ds.times
    with pytest.raises(ValueError):
        ds.with_values([1.0])


def test_parse_anchor():
    assert parse_anchor(1000) == 1000
    assert parse_anchor("1000") == 1000
    assert parse_anchor("1970-01-01T00:00:01Z") == 1000
    assert parse_anchor("1970-01-01T00:00:01.500") == 1500
    assert parse_anchor("1970-01-01T07:00:00+07:00") == 0
    for bad in (None, True, "", "yesterday", float("nan"), "inf", "-Infinity", "1e999"):
        with pytest.raises(ValueError):
            parse_anchor(bad)


def test_format_clock():
    assert format_clock(0) == "00:00:00.000"
    assert format_clock(0, 7) == "07:00:00.000"
    assert format_clock(-1, 7) == "06:59:59.999"
    assert format_clock(61_001) == "00:01:01.001"
    # wraps past midnight
    assert format_clock(23 * 3_600_000, 2) == "01:00:00.000"


def test_today_utc():
    late_evening = datetime(2024, 5, 1, 22, 0, tzinfo=timezone(timedelta(hours=-4)))
    assert today_utc(lambda: late_evening) == "2024-05-02"
    assert today_utc(lambda: datetime(2024, 1, 31, 12, 0)) == "2024-01-31"


def test_check_date():
    assert check_date("2024-02-29") == "2024-02-29"
    for bad in ("2024-2-29", "2023-02-29", "29/02/2024"):
        with pytest.raises(ValueError):
            check_date(bad)


def test_logging():
    logger = get_logger("test")
    logger2 = get_logger("test")
    assert logger is logger2
    assert len(logger.handlers) == 1
    assert get_logger("test", level=logging.DEBUG).level == logging.DEBUG
    logger.debug("debug message")
