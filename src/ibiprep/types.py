"""Table containers exchanged between pipeline stages.

The structures are small frozen dataclasses.  Each stage builds a new
instance instead of mutating its input, and waveform arrays are marked
read-only so a table cannot be changed after it is handed on.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import NamedTuple, Sequence

import numpy as np
import pandas as pd

SIGNAL_COLUMN = "PPG"
TIME_COLUMN = "Time"


def _frozen_array(values: Sequence[float] | np.ndarray) -> np.ndarray:
    arr = np.array(values, dtype=float).reshape(-1)
    arr.setflags(write=False)
    return arr


@dataclass(frozen=True, eq=False)
class WaveformTable:
    """Paired signal and time samples in temporal order.

    ``time`` must be finite and strictly increasing; window selection
    depends on it being sorted.
    """

    signal: np.ndarray
    time: np.ndarray

    def __post_init__(self) -> None:
        signal = _frozen_array(self.signal)
        time = _frozen_array(self.time)
        if signal.shape != time.shape:
            raise ValueError("signal and time must have the same length")
        if not np.all(np.isfinite(time)):
            raise ValueError("time values must be finite")
        if np.any(np.diff(time) <= 0):
            raise ValueError("time values must be strictly increasing")
        object.__setattr__(self, "signal", signal)
        object.__setattr__(self, "time", time)

    def __len__(self) -> int:
        return int(self.signal.size)

    @property
    def span(self) -> tuple[float, float]:
        """Return ``(first, last)`` time in seconds."""

        if not len(self):
            raise ValueError("empty waveform has no time span")
        return float(self.time[0]), float(self.time[-1])

    @property
    def duration(self) -> float:
        first, last = self.span
        return last - first

    def to_frame(self) -> pd.DataFrame:
        """Return the table as a ``DataFrame`` with ``PPG`` and ``Time`` columns."""

        return pd.DataFrame({SIGNAL_COLUMN: self.signal.copy(), TIME_COLUMN: self.time.copy()})


@dataclass(frozen=True)
class TaskWindow:
    """One task or condition with its start and stop time in seconds."""

    label: str
    start: float
    stop: float

    @property
    def duration(self) -> float:
        """Return the task length in seconds."""

        return self.stop - self.start


@dataclass(frozen=True)
class TimingTable:
    """Task windows for a single case identifier.

    ``tasks`` is the ordered schema of (label, start, stop) entries built at
    load time.  ``columns`` keeps the header of the source file, identifier
    column first, for reference.
    """

    case_id: str
    tasks: tuple[TaskWindow, ...]
    columns: tuple[str, ...] = field(default=())

    def __post_init__(self) -> None:
        object.__setattr__(self, "tasks", tuple(self.tasks))
        object.__setattr__(self, "columns", tuple(self.columns))

    def __len__(self) -> int:
        return len(self.tasks)

    @property
    def starts(self) -> list[float]:
        return [task.start for task in self.tasks]

    @property
    def stops(self) -> list[float]:
        return [task.stop for task in self.tasks]

    @property
    def reference_times(self) -> list[float]:
        """Flattened ``start1, stop1, start2, stop2, ...`` sequence."""

        out: list[float] = []
        for task in self.tasks:
            out.extend((task.start, task.stop))
        return out


class DisplayRow(NamedTuple):
    """Row of the display-oriented timing table."""

    task: str
    start: float
    stop: float


__all__ = [
    "SIGNAL_COLUMN",
    "TIME_COLUMN",
    "WaveformTable",
    "TaskWindow",
    "TimingTable",
    "DisplayRow",
]
