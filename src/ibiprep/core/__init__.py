"""Core signal conditioning algorithms for ibiprep."""

from .filtering import condition_signal, design_bandpass, remove_linear_trend, smooth_spline
from .resample import downsample, resampled_length
from .window import center_time, trim_to_window, window_bounds

__all__ = [
    "condition_signal",
    "design_bandpass",
    "remove_linear_trend",
    "smooth_spline",
    "downsample",
    "resampled_length",
    "trim_to_window",
    "window_bounds",
    "center_time",
]
