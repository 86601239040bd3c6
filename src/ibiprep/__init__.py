"""PPG signal conditioning for interbeat-interval editing."""

from .config import Settings, load_settings
from .core import center_time, condition_signal, downsample, trim_to_window
from .errors import (
    CaseNotFoundError,
    ConversionError,
    EmptyWindowError,
    FilterDesignError,
    FormatError,
    IbiPrepError,
    MalformedTimingError,
    NotFoundError,
)
from .ingest import display_frame, load_timing, load_waveform, reshape_for_display
from .pipeline import CaseResult, PreparedCase, StageResult, prepare_case, run_stage
from .types import DisplayRow, TaskWindow, TimingTable, WaveformTable

__version__ = "0.1.0"

__all__ = [
    "Settings",
    "load_settings",
    "load_waveform",
    "load_timing",
    "reshape_for_display",
    "display_frame",
    "condition_signal",
    "downsample",
    "trim_to_window",
    "center_time",
    "StageResult",
    "run_stage",
    "CaseResult",
    "PreparedCase",
    "prepare_case",
    "WaveformTable",
    "TimingTable",
    "TaskWindow",
    "DisplayRow",
    "IbiPrepError",
    "NotFoundError",
    "FormatError",
    "CaseNotFoundError",
    "ConversionError",
    "MalformedTimingError",
    "FilterDesignError",
    "EmptyWindowError",
]
