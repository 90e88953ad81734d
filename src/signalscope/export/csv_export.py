"""Read and write datasets as ``Time,Value`` CSV files.

The layout matches what the dashboard's export button produced: a header
row followed by one newline-terminated row per sample.
"""

from __future__ import annotations

from pathlib import Path

import pandas as pd

from ..types import Dataset

COLUMNS = ("Time", "Value")


class ExportUnavailable(RuntimeError):
    """Raised when there is nothing meaningful to export."""


def export_filename(date: str) -> str:
    return f"data_{date}.csv"


def to_frame(dataset: Dataset) -> pd.DataFrame:
    return pd.DataFrame({"Time": list(dataset.times), "Value": dataset.values})


def write_csv(dataset: Dataset, path: str | Path) -> Path:
    """Write ``dataset`` to ``path`` and return the path."""

    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    to_frame(dataset).to_csv(out, index=False, lineterminator="\n")
    return out


def read_csv(path: str | Path) -> Dataset:
    """Load a ``Time,Value`` CSV into a :class:`Dataset`.

    Missing values become ``0.0`` as they do for fetched payloads.
    """

    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(p)
    df = pd.read_csv(p)
    missing = set(COLUMNS) - set(df.columns)
    if missing:
        raise ValueError(f"Missing required column(s): {sorted(missing)}")
    values = pd.to_numeric(df["Value"], errors="raise").fillna(0.0)
    return Dataset(df["Time"].tolist(), values.to_numpy(dtype=float))
