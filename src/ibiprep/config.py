from __future__ import annotations

"""Configuration utilities for ibiprep.

This module defines a hierarchical configuration schema using Pydantic models.
The :class:`Settings` container groups the sampling parameters, ingest
defaults, band-pass filter bounds and trimming buffer used by the
conditioning pipeline.  Instances can be populated from environment variables
(``IBIPREP_`` prefix, ``__`` for nesting) or from YAML/JSON files with
matching nested keys.
"""

import json
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic_settings.sources import EnvSettingsSource


class SectionModel(BaseModel):
    """Base model for configuration subsections that ignores unknown fields."""

    model_config = ConfigDict(extra="ignore", validate_assignment=True)


# ---------------------------------------------------------------------------
# Settings schema
# ---------------------------------------------------------------------------


class SamplingSettings(SectionModel):
    """Hardware and display sampling rates in Hz."""

    sampling_rate: int = Field(default=1000, gt=0)
    downsampled_rate: int = Field(default=100, gt=0)


class IngestSettings(SectionModel):
    """Layout of raw waveform files."""

    skip_lines: int = Field(default=0, ge=0)
    column: int = Field(default=1, ge=1)


class FilterSettings(SectionModel):
    """Trend removal, spline smoothing and band-pass parameters.

    The passband is given in beats per minute and converted to Hz by
    :attr:`low_hz` and :attr:`high_hz`.
    """

    low_bpm: float = Field(default=50.0, gt=0)
    high_bpm: float = Field(default=180.0, gt=0)
    knots_per_hz: float = Field(default=10.0, gt=0)
    order: int = Field(default=2, ge=1)

    @model_validator(mode="after")
    def _check_band(self) -> "FilterSettings":
        if self.low_bpm >= self.high_bpm:
            raise ValueError("low_bpm must be below high_bpm")
        return self

    @property
    def low_hz(self) -> float:
        return self.low_bpm / 60.0

    @property
    def high_hz(self) -> float:
        return self.high_bpm / 60.0


class WindowSettings(SectionModel):
    """Padding applied around the task windows when trimming."""

    buffer_s: float = Field(default=3.0, ge=0)


class LoggingSettings(SectionModel):
    """Log level for the ``ibiprep`` logger."""

    level: str = "INFO"

    @field_validator("level", mode="before")
    @classmethod
    def _upper(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().upper()
        return value


class Settings(BaseSettings):
    """Container for all runtime configuration sections."""

    sampling: SamplingSettings = Field(default_factory=SamplingSettings)
    ingest: IngestSettings = Field(default_factory=IngestSettings)
    filter: FilterSettings = Field(default_factory=FilterSettings)
    window: WindowSettings = Field(default_factory=WindowSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    model_config = SettingsConfigDict(
        env_prefix="IBIPREP_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        class LegacyEnvSettingsSource(EnvSettingsSource):
            def decode_complex_value(self, field_name, target_field, value):  # type: ignore[override]
                try:
                    return super().decode_complex_value(field_name, target_field, value)
                except json.JSONDecodeError:
                    return value

        env_settings.__class__ = LegacyEnvSettingsSource
        return init_settings, env_settings, dotenv_settings, file_secret_settings


# ---------------------------------------------------------------------------
# Loading utilities
# ---------------------------------------------------------------------------


def load_settings(path: str | Path) -> Settings:
    """Load settings from a JSON or YAML file."""

    p = Path(path)
    text = p.read_text()
    if p.suffix.lower() in {".yaml", ".yml"}:
        data = yaml.safe_load(text) or {}
    else:
        data = json.loads(text)
    if not isinstance(data, dict):
        raise TypeError("Configuration file must define a mapping")
    return Settings.model_validate(data)


__all__ = [
    "SamplingSettings",
    "IngestSettings",
    "FilterSettings",
    "WindowSettings",
    "LoggingSettings",
    "Settings",
    "load_settings",
]
