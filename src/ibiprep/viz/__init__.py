"""Matplotlib previews of conditioned recordings."""

from .plot_case import plot_case, plot_waveform, save_or_show, shade_tasks
from .styles import apply_style

__all__ = ["plot_case", "plot_waveform", "shade_tasks", "save_or_show", "apply_style"]
