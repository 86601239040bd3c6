"""Restricting and re-centering signals against task timing."""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Iterable, TypeVar, Union

import numpy as np
import pandas as pd

from ..config import Settings
from ..errors import EmptyWindowError, MalformedTimingError
from ..types import TIME_COLUMN, TaskWindow, TimingTable, WaveformTable

logger = logging.getLogger(__name__)

Centerable = TypeVar("Centerable", WaveformTable, TimingTable, pd.DataFrame)


def window_bounds(timing: TimingTable, buffer: float) -> tuple[float, float]:
    """Return ``(min(starts) - buffer, max(stops) + buffer)``."""

    if not timing.tasks:
        raise MalformedTimingError(f"timing for case {timing.case_id!r} has no tasks")
    return min(timing.starts) - buffer, max(timing.stops) + buffer


def trim_to_window(
    waveform: WaveformTable,
    timing: TimingTable,
    buffer: float | None = None,
    *,
    settings: Settings | None = None,
) -> WaveformTable:
    """Keep the samples of ``waveform`` inside the timing window.

    The window runs from ``buffer`` seconds before the earliest task start
    to ``buffer`` seconds after the latest task stop, both ends inclusive.
    ``buffer`` defaults to ``settings.window.buffer_s`` (3 s).

    Raises
    ------
    EmptyWindowError
        If no sample falls inside the window.
    """

    if settings is None:
        settings = Settings()
    if buffer is None:
        buffer = settings.window.buffer_s

    low, high = window_bounds(timing, buffer)
    # Time is monotonic, so the selection is one contiguous slice.
    lo = int(np.searchsorted(waveform.time, low, side="left"))
    hi = int(np.searchsorted(waveform.time, high, side="right"))
    if hi <= lo:
        span = waveform.span if len(waveform) else None
        raise EmptyWindowError(low, high, span)

    logger.debug("trimmed %d samples to %d within [%g, %g] s", len(waveform), hi - lo, low, high)
    return WaveformTable(signal=waveform.signal[lo:hi], time=waveform.time[lo:hi])


def _shift_task(task: TaskWindow, offset: float, columns: set[str]) -> TaskWindow:
    start = task.start - offset if "Start" in columns else task.start
    stop = task.stop - offset if "Stop" in columns else task.stop
    if stop < start:
        raise MalformedTimingError(
            f"shifting only {', '.join(sorted(columns))} by {offset:g} s leaves task "
            f"{task.label!r} stopping at {stop:g} s before it starts at {start:g} s"
        )
    return TaskWindow(task.label, start, stop)


def center_time(
    table: Centerable,
    reference_times: Union[Iterable[float], None],
    time_col: str | None = None,
) -> Centerable:
    """Shift ``table`` so that ``min(reference_times)`` becomes ``t = 0``.

    ``reference_times`` is usually :attr:`TimingTable.reference_times` of the
    same case, so the earliest task start becomes zero.  The same reference
    must be applied to the waveform and the timing table for them to stay
    aligned.

    Parameters
    ----------
    table:
        A :class:`WaveformTable`, a :class:`TimingTable` or a
        :class:`pandas.DataFrame` such as an IBI series.
    reference_times:
        Timestamps defining the origin.  ``None`` leaves ``table`` unchanged.
    time_col:
        Column to shift.  Waveforms only have ``Time``.  Timing tables shift
        both ``Start`` and ``Stop`` unless one of them is named.  Data frames
        default to ``Time``.

    Returns
    -------
    A new table of the same type; the input is not modified.

    Raises
    ------
    MalformedTimingError
        If shifting a single timing column leaves a task stopping before it
        starts.
    """

    if reference_times is None:
        return table
    refs = np.asarray(list(reference_times), dtype=float)
    if refs.size == 0:
        raise ValueError("reference_times must not be empty")
    offset = float(refs.min())

    if isinstance(table, WaveformTable):
        if time_col not in (None, TIME_COLUMN):
            raise KeyError(f"waveform tables have no column {time_col!r}")
        return WaveformTable(signal=table.signal, time=table.time - offset)

    if isinstance(table, TimingTable):
        if time_col is None:
            columns = {"Start", "Stop"}
        elif time_col in ("Start", "Stop"):
            columns = {time_col}
        else:
            raise KeyError(f"timing tables have no column {time_col!r}")
        tasks = tuple(_shift_task(task, offset, columns) for task in table.tasks)
        return replace(table, tasks=tasks)

    if isinstance(table, pd.DataFrame):
        col = time_col or TIME_COLUMN
        if col not in table.columns:
            raise KeyError(f"data frame has no column {col!r}")
        out = table.copy()
        out[col] = out[col] - offset
        return out

    raise TypeError(f"cannot center objects of type {type(table).__name__}")


__all__ = ["window_bounds", "trim_to_window", "center_time"]
