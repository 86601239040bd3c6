# src/ibiprep/ingest/waveform.py
"""Loader for raw PPG waveform files.

Raw recordings are tab-delimited ``.txt`` exports from the acquisition
hardware.  The loader skips a fixed number of preamble lines, takes one
1-based column as the PPG signal and synthesises the time column from the
sampling rate, so recordings sharing a rate are comparable from ``t = 0``.
"""

from __future__ import annotations

import logging
import pathlib
from typing import Union

import numpy as np
import pandas as pd

from ..config import Settings
from ..errors import ConversionError, FormatError, NotFoundError
from ..types import WaveformTable

logger = logging.getLogger(__name__)

WAVEFORM_EXTENSIONS = {".txt"}


def _extension(path: pathlib.Path) -> str:
    return path.suffix.lower().lstrip(".") or "<none>"


def _to_float(raw: object, *, path: pathlib.Path, line: int, column: int) -> float:
    # Short rows are padded with NaN by pandas; report them as empty fields.
    text = "" if pd.isna(raw) else str(raw).strip()
    try:
        value = float(text)
    except ValueError as exc:
        raise ConversionError(f"column {column}", text, path=path, line=line) from exc
    if not np.isfinite(value):
        raise ConversionError(f"column {column}", text, path=path, line=line)
    return value


def load_waveform(
    path: Union[str, pathlib.Path],
    skip_lines: int | None = None,
    column: int | None = None,
    sampling_rate: int | None = None,
    *,
    settings: Settings | None = None,
) -> WaveformTable:
    """Load a raw PPG recording into a :class:`WaveformTable`.

    Parameters
    ----------
    path:
        Tab-delimited ``.txt`` file holding the raw signal.
    skip_lines:
        Number of leading lines to ignore (device preamble, headers).
    column:
        1-based column holding the PPG signal.
    sampling_rate:
        Hardware sampling rate in Hz.  Sample ``i`` is stamped ``i / rate``.
    settings:
        Optional :class:`~ibiprep.config.Settings` supplying defaults for the
        arguments above.

    Raises
    ------
    NotFoundError
        If ``path`` does not exist.
    FormatError
        For any extension other than ``.txt``, for rows that cannot be split
        into columns, or when the requested column is missing.
    ConversionError
        If a value in the signal column is not numeric.
    """

    if settings is None:
        settings = Settings()
    if skip_lines is None:
        skip_lines = settings.ingest.skip_lines
    if column is None:
        column = settings.ingest.column
    if sampling_rate is None:
        sampling_rate = settings.sampling.sampling_rate

    if skip_lines < 0:
        raise ValueError("skip_lines must not be negative")
    if column < 1:
        raise ValueError("column is 1-based and must be at least 1")
    if sampling_rate <= 0:
        raise ValueError("sampling_rate must be positive")

    p = pathlib.Path(path)
    if not p.exists():
        raise NotFoundError("not found; check the working directory and selected PPG file", path=p)

    if p.suffix.lower() not in WAVEFORM_EXTENSIONS:
        ext = _extension(p)
        logger.warning("%s PPG file format is not supported; raw PPG data must be a tab-delimited .txt file", ext)
        raise FormatError(
            f"unsupported PPG file format {ext!r}; raw PPG data must be in a tab-delimited .txt file",
            path=p,
            extension=ext,
        )

    try:
        frame = pd.read_csv(
            p,
            sep="\t",
            header=None,
            skiprows=skip_lines,
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=False,
        )
    except pd.errors.EmptyDataError as exc:
        raise FormatError(f"no samples left after skipping {skip_lines} lines", path=p) from exc
    except pd.errors.ParserError as exc:
        raise FormatError(f"cannot parse tab-delimited rows: {exc}", path=p) from exc

    if column > frame.shape[1]:
        raise FormatError(f"requested column {column} but file has {frame.shape[1]} columns", path=p)

    # Blank rows are kept while parsing so the index maps back to file lines.
    blank = frame.fillna("").apply(lambda col: col.str.strip() == "").all(axis=1)
    frame = frame[~blank]
    if frame.empty:
        raise FormatError(f"no samples left after skipping {skip_lines} lines", path=p)

    raw_values = frame.iloc[:, column - 1]
    signal = np.empty(len(raw_values), dtype=float)
    for i, (row, raw) in enumerate(raw_values.items()):
        # Line numbers are 1-based and count the skipped preamble.
        signal[i] = _to_float(raw, path=p, line=skip_lines + int(row) + 1, column=column)

    time = np.arange(signal.size, dtype=float) / float(sampling_rate)
    logger.debug("loaded %d samples from %s at %d Hz", signal.size, p, sampling_rate)
    return WaveformTable(signal=signal, time=time)


__all__ = ["WAVEFORM_EXTENSIONS", "load_waveform"]
