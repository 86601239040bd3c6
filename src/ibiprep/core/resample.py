"""Reduced-rate copies of a conditioned signal for display."""

from __future__ import annotations

import logging
import math

import numpy as np
from scipy.signal import resample_poly

from ..config import Settings
from ..types import WaveformTable

logger = logging.getLogger(__name__)


def resampled_length(n_samples: int, sampling_rate: int, downsampled_rate: int) -> int:
    """Return ``round(n_samples * downsampled_rate / sampling_rate)``, halves rounded up."""

    return int(math.floor(n_samples * downsampled_rate / sampling_rate + 0.5))


def downsample(
    waveform: WaveformTable,
    sampling_rate: int | None = None,
    downsampled_rate: int | None = None,
    target_length: int | None = None,
    *,
    settings: Settings | None = None,
) -> WaveformTable:
    """Resample ``waveform`` from ``sampling_rate`` to ``downsampled_rate``.

    Polyphase resampling with an anti-aliasing FIR filter keeps content below
    the new Nyquist limit.  The output has
    :func:`resampled_length` samples, or ``target_length`` samples when given,
    and its time column is an even grid from the first to the last input
    time, so the resampled series spans the same interval as the input.

    Raises
    ------
    ValueError
        If a rate or ``target_length`` is not positive, ``waveform`` is
        empty, or a single sample would be spread over several points.
    """

    if settings is None:
        settings = Settings()
    if sampling_rate is None:
        sampling_rate = settings.sampling.sampling_rate
    if downsampled_rate is None:
        downsampled_rate = settings.sampling.downsampled_rate

    sampling_rate = int(sampling_rate)
    downsampled_rate = int(downsampled_rate)
    if sampling_rate <= 0 or downsampled_rate <= 0:
        raise ValueError("sampling rates must be positive integers")
    if target_length is not None and target_length <= 0:
        raise ValueError("target_length must be positive")

    n = len(waveform)
    if n == 0:
        raise ValueError("cannot resample an empty waveform")
    if downsampled_rate > sampling_rate:
        logger.warning(
            "downsampled rate %d Hz exceeds the sampling rate %d Hz; the signal will be upsampled",
            downsampled_rate,
            sampling_rate,
        )

    gcd = math.gcd(sampling_rate, downsampled_rate)
    up = downsampled_rate // gcd
    down = sampling_rate // gcd
    if up == down:
        values = np.array(waveform.signal, dtype=float)
    else:
        values = resample_poly(waveform.signal, up, down)

    n_out = resampled_length(n, sampling_rate, downsampled_rate)
    if target_length is not None:
        n_out = int(target_length)
    n_out = max(n_out, 1)
    if n == 1 and n_out > 1:
        raise ValueError(f"a single sample cannot be spread over {n_out} time points")

    if target_length is not None and values.size != n_out:
        # Stretch the polyphase output onto the requested number of points.
        src = np.linspace(0.0, 1.0, values.size) if values.size > 1 else np.zeros(1)
        dst = np.linspace(0.0, 1.0, n_out)
        values = np.interp(dst, src, values)
    elif values.size > n_out:
        values = values[:n_out]
    elif values.size < n_out:
        values = np.pad(values, (0, n_out - values.size), mode="edge")

    first, last = waveform.span
    time = np.linspace(first, last, n_out)
    logger.debug("resampled %d samples at %d Hz to %d samples at %d Hz", n, sampling_rate, n_out, downsampled_rate)
    return WaveformTable(signal=values, time=time)


__all__ = ["resampled_length", "downsample"]
