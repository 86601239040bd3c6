"""Readers for raw PPG recordings and task timing files."""

from .waveform import load_waveform
from .timing import display_frame, load_timing, pair_timing_columns, reshape_for_display

__all__ = [
    "load_waveform",
    "load_timing",
    "pair_timing_columns",
    "reshape_for_display",
    "display_frame",
]
