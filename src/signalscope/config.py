from __future__ import annotations

"""Configuration utilities for signalscope.

This module defines a hierarchical configuration schema using Pydantic models.
The :class:`Settings` container groups the data source credentials, sampling
constants, filter tuning, navigation defaults and live polling options.
Instances can be populated from environment variables or from YAML/JSON files
with matching nested keys.
"""

import json
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .types import FilterParams


class SectionModel(BaseModel):
    """Base model for configuration subsections that ignores unknown fields."""

    model_config = ConfigDict(extra="ignore")


# ---------------------------------------------------------------------------
# Settings schema
# ---------------------------------------------------------------------------


class SourceSettings(SectionModel):
    """Remote data source and the credentials sent with every request."""

    url: str = "https://database.tqduy.id.vn"
    api_key: str = ""
    uid: str = ""
    source_id: str | None = None
    timeout: float = 10.0


class SamplingSettings(SectionModel):
    """Per-sample spacing and how reconstructed timestamps are rendered."""

    interval_ms: float = 2.0
    time_format: Literal["auto", "epoch", "clock"] = "auto"
    tz_offset_hours: float = 7.0

    @field_validator("interval_ms")
    @classmethod
    def _positive_interval(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("interval_ms must be positive")
        return value


class FilterSettings(SectionModel):
    """Kalman smoother tuning (Q, R, P, K)."""

    q: float = 1.0
    r: float = 1.0
    p: float = 1.0
    k: float = 1.0

    @model_validator(mode="after")
    def _valid_params(self) -> "FilterSettings":
        # InvalidFilterParams is a ValueError, reported as a ValidationError.
        self.to_params()
        return self

    def to_params(self) -> FilterParams:
        return FilterParams(q=self.q, r=self.r, p0=self.p, k0=self.k)


class WindowSettings(SectionModel):
    """Defaults for the visible window."""

    size: int = 1000
    max_size: int = 20000
    scroll_min_step: int = 100
    scroll_divisor: int = 10

    @field_validator("size", "max_size", "scroll_divisor")
    @classmethod
    def _at_least_one(cls, value: int) -> int:
        if value < 1:
            raise ValueError("must be at least 1")
        return value


class PointerSettings(SectionModel):
    """Initial pointer positions and the reset bracket."""

    p1: int = 0
    p2: int = 200
    reset_offset: int = 250


class LiveSettings(SectionModel):
    """Live polling behaviour."""

    poll_interval: float = 20.0
    discard_stale: bool = False
    # Omit the date for sources that answer "most recent" without one.
    send_date: bool = True

    @field_validator("poll_interval")
    @classmethod
    def _positive_poll(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("poll_interval must be positive")
        return value


class ExportSettings(SectionModel):
    """Where CSV exports are written."""

    directory: str = "."


class VizSettings(SectionModel):
    """Configuration for the window plot."""

    title: str = "Signal"
    save: str | None = None


class Settings(BaseSettings):
    """Container for all runtime configuration sections."""

    source: SourceSettings = Field(default_factory=SourceSettings)
    sampling: SamplingSettings = Field(default_factory=SamplingSettings)
    filter: FilterSettings = Field(default_factory=FilterSettings)
    window: WindowSettings = Field(default_factory=WindowSettings)
    pointers: PointerSettings = Field(default_factory=PointerSettings)
    live: LiveSettings = Field(default_factory=LiveSettings)
    export: ExportSettings = Field(default_factory=ExportSettings)
    viz: VizSettings = Field(default_factory=VizSettings)

    model_config = SettingsConfigDict(
        env_prefix="SIGNALSCOPE_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from ``SIGNALSCOPE_*`` environment variables only."""

        return cls()


# ---------------------------------------------------------------------------
# Loading utilities
# ---------------------------------------------------------------------------


def load_settings(path: str | Path) -> Settings:
    """Load settings from a JSON or YAML file."""

    p = Path(path)
    text = p.read_text()
    if p.suffix.lower() in {".yaml", ".yml"}:
        data: Any = yaml.safe_load(text) or {}
    else:
        data = json.loads(text)
    if not isinstance(data, dict):
        raise TypeError("Configuration file must define a mapping")
    return Settings.model_validate(data)
