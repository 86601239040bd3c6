# src/ibiprep/ingest/timing.py
"""Loader for task timing files.

A timing file holds one row per case.  The first column is the case
identifier and the remaining columns are (Start, Stop) pairs, one pair per
task or condition, in task order::

    ID    TaskA_Start  TaskA_Stop  TaskB_Start  TaskB_Stop
    P01   5.0          15.0        20.0         30.0

Tab-delimited ``.txt``/``.tsv`` files and comma-separated ``.csv`` files are
understood; both carry a header row whose names label the tasks.
"""

from __future__ import annotations

import logging
import math
import pathlib
from typing import Sequence, Union

import pandas as pd

from ..errors import CaseNotFoundError, ConversionError, FormatError, MalformedTimingError, NotFoundError
from ..types import DisplayRow, TaskWindow, TimingTable

logger = logging.getLogger(__name__)

TIMING_SEPARATORS = {".txt": "\t", ".tsv": "\t", ".csv": ","}


def _coerce_field(name: str, raw: object, *, path: pathlib.Path | None) -> float:
    text = "" if pd.isna(raw) else str(raw).strip()
    try:
        value = float(text)
    except ValueError as exc:
        raise ConversionError(name, text, path=path) from exc
    if not math.isfinite(value):
        raise ConversionError(name, text, path=path)
    return value


def pair_timing_columns(
    header: Sequence[str],
    values: Sequence[object],
    *,
    path: Union[str, pathlib.Path, None] = None,
) -> tuple[TaskWindow, ...]:
    """Build the task schema for one timing row.

    ``header`` and ``values`` include the identifier column.  For every even
    1-based column index ``i`` the task label is ``header[i]``, the start is
    the value in column ``i`` and the stop is the value in column ``i + 1``.

    Raises
    ------
    ConversionError
        If a start or stop value is not numeric.
    MalformedTimingError
        If the columns after the identifier are not complete (Start, Stop)
        pairs, or a task stops before it starts.
    """

    p = pathlib.Path(path) if path is not None else None
    if len(header) != len(values):
        raise MalformedTimingError(
            f"header has {len(header)} columns but row has {len(values)}", path=p
        )
    n_fields = len(header) - 1
    if n_fields <= 0:
        raise MalformedTimingError("timing row has no Start/Stop columns after the case ID", path=p)
    if n_fields % 2:
        raise MalformedTimingError(
            f"expected Start/Stop column pairs after the case ID but found {n_fields} columns; "
            f"{header[-1]!r} has no matching Stop column",
            path=p,
        )

    numbers = [_coerce_field(str(name), raw, path=p) for name, raw in zip(header[1:], values[1:])]

    tasks: list[TaskWindow] = []
    for i in range(2, len(header) + 1, 2):
        label = str(header[i - 1])
        start = numbers[i - 2]
        stop = numbers[i - 1]
        if stop < start:
            raise MalformedTimingError(
                f"task {label!r} stops at {stop:g} s before it starts at {start:g} s", path=p
            )
        tasks.append(TaskWindow(label, start, stop))
    return tuple(tasks)


def _read_timing_frame(p: pathlib.Path, sep: str) -> pd.DataFrame:
    try:
        frame = pd.read_csv(
            p,
            sep=sep,
            header=0,
            dtype=str,
            keep_default_na=False,
            index_col=False,
        )
    except pd.errors.EmptyDataError as exc:
        raise FormatError("timing file is empty", path=p) from exc
    except pd.errors.ParserError as exc:
        raise FormatError(f"cannot parse timing file: {exc}", path=p) from exc
    frame.columns = [str(col).strip().lstrip("\ufeff") for col in frame.columns]
    return frame


def load_timing(path: Union[str, pathlib.Path], case_id: str) -> TimingTable:
    """Load the timing row for ``case_id`` from ``path``.

    The first row whose identifier equals ``case_id`` (compared as stripped
    text) is used.  Duplicate identifiers are reported with a warning.

    Repeated header names are made unique by pandas (``Task``, ``Task.1``,
    ...), so task labels then differ from the raw header text.

    Raises
    ------
    NotFoundError
        If ``path`` does not exist.
    FormatError
        For extensions other than ``.txt``, ``.tsv`` and ``.csv`` or an
        unreadable file.
    CaseNotFoundError
        If no row carries ``case_id``.
    ConversionError, MalformedTimingError
        See :func:`pair_timing_columns`.
    """

    if case_id is None:
        raise ValueError("case_id is required")

    p = pathlib.Path(path)
    if not p.exists():
        raise NotFoundError("timing file not found", path=p)

    sep = TIMING_SEPARATORS.get(p.suffix.lower())
    if sep is None:
        ext = p.suffix.lower().lstrip(".") or "<none>"
        logger.warning("%s timing file format is not supported", ext)
        raise FormatError(
            f"unsupported timing file format {ext!r}; use tab-delimited .txt or .csv",
            path=p,
            extension=ext,
        )

    frame = _read_timing_frame(p, sep)
    if frame.shape[1] == 0:
        raise FormatError("timing file has no columns", path=p)

    key = str(case_id).strip()
    ids = frame.iloc[:, 0].astype(str).str.strip()
    matches = frame.index[ids == key]
    if len(matches) == 0:
        logger.warning("case ID %r not found in timing file %s", key, p)
        raise CaseNotFoundError(key, path=p)
    if len(matches) > 1:
        logger.warning("case ID %r appears %d times in %s; using the first row", key, len(matches), p)

    row = frame.loc[matches[0]].tolist()
    header = list(frame.columns)
    tasks = pair_timing_columns(header, row, path=p)
    logger.debug("loaded %d tasks for case %r from %s", len(tasks), key, p)
    return TimingTable(case_id=key, tasks=tasks, columns=tuple(header))


def reshape_for_display(timing: TimingTable) -> list[DisplayRow]:
    """Return one ``(task, start, stop)`` row per task, in task order."""

    return [DisplayRow(task.label, task.start, task.stop) for task in timing.tasks]


def display_frame(timing: TimingTable) -> pd.DataFrame:
    """Return the display rows as a ``DataFrame`` with ``Task``, ``Start`` and ``Stop``."""

    rows = reshape_for_display(timing)
    return pd.DataFrame(
        {
            "Task": [row.task for row in rows],
            "Start": [row.start for row in rows],
            "Stop": [row.stop for row in rows],
        }
    )


__all__ = [
    "TIMING_SEPARATORS",
    "pair_timing_columns",
    "load_timing",
    "reshape_for_display",
    "display_frame",
]
