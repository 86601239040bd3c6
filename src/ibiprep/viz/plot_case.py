"""Preview plot of a prepared case with its task windows."""

from __future__ import annotations

from pathlib import Path

import matplotlib.pyplot as plt

from ..pipeline import PreparedCase
from ..types import TimingTable, WaveformTable
from .styles import TASK_COLORS, apply_style


def plot_waveform(ax: plt.Axes, waveform: WaveformTable, label: str | None = None, **kwargs) -> None:
    """Plot ``waveform`` against its time column."""
    ax.plot(waveform.time, waveform.signal, label=label, **kwargs)


def shade_tasks(ax: plt.Axes, timing: TimingTable, alpha: float = 0.15) -> None:
    """Shade each task window of ``timing``, labelled for the legend."""
    for i, task in enumerate(timing.tasks):
        color = TASK_COLORS[i % len(TASK_COLORS)]
        ax.axvspan(task.start, task.stop, color=color, alpha=alpha, label=task.label)


def save_or_show(fig: plt.Figure, save: str | Path | None = None, show: bool = False) -> None:
    """Save ``fig`` to ``save`` and/or display it.

    With neither option set the figure is shown.  A saved figure that is
    not shown is closed.
    """
    if save:
        fig.savefig(save, bbox_inches="tight")
    if show or not save:
        plt.show()
    else:
        plt.close(fig)


def plot_case(case: PreparedCase, *, ax: plt.Axes | None = None, title: str | None = None) -> plt.Figure:
    """Draw the display signal of ``case`` with its tasks shaded.

    Returns the figure holding ``ax`` (a new one when ``ax`` is ``None``).
    """
    apply_style()
    if ax is None:
        fig, ax = plt.subplots()
    else:
        fig = ax.figure
    plot_waveform(ax, case.display, label="PPG")
    shade_tasks(ax, case.timing)
    ax.set_title(title or f"Case {case.case_id}")
    ax.set_xlabel("Time from first task (s)")
    ax.set_ylabel("Filtered PPG")
    ax.legend(loc="upper right", fontsize="small")
    return fig
