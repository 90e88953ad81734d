import math

import pandas as pd
import pytest

from signalscope.export import export_filename, read_csv, to_frame, write_csv
from signalscope.types import Dataset


def test_write_csv_layout(tmp_path):
    ds = Dataset([1000, 1002], [1.5, -2.0])
    path = write_csv(ds, tmp_path / "nested" / export_filename("2024-05-01"))
    assert path.name == "data_2024-05-01.csv"
    assert path.read_text() == "Time,Value\n1000,1.5\n1002,-2.0\n"


def test_clock_labels_are_written_verbatim(tmp_path):
    ds = Dataset(["06:59:59.999", "07:00:00.001"], [0.0, 1.0])
    path = write_csv(ds, tmp_path / "out.csv")
    assert path.read_text().splitlines()[1] == "06:59:59.999,0.0"


def test_read_csv_round_trip(tmp_path):
    ds = Dataset([0, 2, 4], [3.0, 1.0, 4.0])
    loaded = read_csv(write_csv(ds, tmp_path / "d.csv"))
    assert loaded == ds


def test_read_csv_fills_missing_values(tmp_path):
    p = tmp_path / "gaps.csv"
    p.write_text("Time,Value\n0,1.0\n2,\n4,3.0\n")
    loaded = read_csv(p)
    assert loaded.values.tolist() == [1.0, 0.0, 3.0]
    assert not any(math.isnan(v) for v in loaded.values)


def test_read_csv_missing_column(tmp_path):
    p = tmp_path / "bad.csv"
    p.write_text("Time,Other\n0,1\n")
    with pytest.raises(ValueError, match="Value"):
        read_csv(p)


def test_read_csv_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        read_csv(tmp_path / "absent.csv")


def test_to_frame_columns():
    frame = to_frame(Dataset([0, 2], [1.0, 2.0]))
    assert list(frame.columns) == ["Time", "Value"]
    pd.testing.assert_series_equal(frame["Value"], pd.Series([1.0, 2.0], name="Value"))
