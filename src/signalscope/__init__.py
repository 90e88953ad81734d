"""Ingest, smooth and navigate scalar sensor time series."""

from .config import Settings, load_settings
from .core import PointerTracker, WindowNavigator, smooth, smooth_values
from .ingest import IngestionController, LivePoller, Mode, RefreshOutcome, parse_payload
from .session import ScopeSession
from .types import Dataset, FilterParams, InvalidFilterParams, Measurement, Sample, Window

__version__ = "0.1.0"

__all__ = [
    "Settings",
    "load_settings",
    "PointerTracker",
    "WindowNavigator",
    "smooth",
    "smooth_values",
    "IngestionController",
    "LivePoller",
    "Mode",
    "RefreshOutcome",
    "parse_payload",
    "ScopeSession",
    "Dataset",
    "FilterParams",
    "InvalidFilterParams",
    "Measurement",
    "Sample",
    "Window",
]
