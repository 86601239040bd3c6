import numpy as np
import pytest

from ibiprep.config import Settings
from ibiprep.core import condition_signal, remove_linear_trend, smooth_spline
from ibiprep.core.filtering import design_bandpass, spline_knot_count, validate_passband
from ibiprep.errors import FilterDesignError
from ibiprep.types import WaveformTable


def synthetic_ppg(fs=100, seconds=60, seed=0):
    rng = np.random.default_rng(seed)
    t = np.arange(fs * seconds) / fs
    pulse = np.sin(2 * np.pi * 1.2 * t) + 0.3 * np.sin(2 * np.pi * 2.4 * t)
    drift = 0.05 * t + 2.0
    respiration = 0.8 * np.sin(2 * np.pi * 0.1 * t)
    noise = 0.3 * np.sin(2 * np.pi * 20.0 * t) + 0.05 * rng.standard_normal(t.size)
    return WaveformTable(signal=pulse + drift + respiration + noise, time=t)


def band_energy_fraction(values, fs, low, high):
    spectrum = np.abs(np.fft.rfft(values)) ** 2
    freqs = np.fft.rfftfreq(values.size, d=1.0 / fs)
    band = (freqs >= low) & (freqs <= high)
    return spectrum[band].sum() / spectrum.sum()


def test_condition_signal_preserves_length_and_time():
    raw = synthetic_ppg()
    out = condition_signal(raw, 100)
    assert len(out) == len(raw)
    np.testing.assert_array_equal(out.time, raw.time)


def test_condition_signal_concentrates_energy_in_heart_rate_band():
    raw = synthetic_ppg()
    out = condition_signal(raw, 100)
    assert band_energy_fraction(raw.signal - raw.signal.mean(), 100, 50 / 60, 3.0) < 0.7
    assert band_energy_fraction(out.signal, 100, 50 / 60, 3.0) > 0.95


def test_condition_signal_keeps_pulse_amplitude():
    fs = 100
    t = np.arange(fs * 40) / fs
    raw = WaveformTable(signal=np.sin(2 * np.pi * 1.5 * t), time=t)
    out = condition_signal(raw, fs)
    middle = out.signal[10 * fs : 30 * fs]
    assert np.max(np.abs(middle)) == pytest.approx(1.0, abs=0.1)


def test_condition_signal_uses_settings_band():
    raw = synthetic_ppg()
    settings = Settings()
    settings.sampling.sampling_rate = 100
    settings.filter.low_bpm = 100
    settings.filter.high_bpm = 180
    out = condition_signal(raw, settings=settings)
    # The 1.2 Hz fundamental (72 bpm) is now outside the band.
    assert band_energy_fraction(out.signal, 100, 1.0, 1.4) < 0.2


def test_condition_signal_nyquist_violation():
    t = np.arange(500) / 5
    raw = WaveformTable(signal=np.sin(t), time=t)
    with pytest.raises(FilterDesignError) as excinfo:
        condition_signal(raw, 5)
    assert "Nyquist" in str(excinfo.value)


def test_condition_signal_checks_band_before_length():
    t = np.arange(3) / 4
    raw = WaveformTable(signal=[1.0, 2.0, 3.0], time=t)
    with pytest.raises(FilterDesignError) as excinfo:
        condition_signal(raw, 4)
    assert "Nyquist" in str(excinfo.value)


def test_condition_signal_too_short():
    t = np.arange(10) / 100
    raw = WaveformTable(signal=np.sin(t), time=t)
    with pytest.raises(FilterDesignError) as excinfo:
        condition_signal(raw, 100)
    assert "samples" in str(excinfo.value)


@pytest.mark.parametrize(
    "fs, low, high",
    [(0, 0.8, 3.0), (100, 0.0, 3.0), (100, 3.0, 0.8), (100, 0.8, 50.0)],
)
def test_validate_passband_rejects(fs, low, high):
    with pytest.raises(FilterDesignError):
        validate_passband(fs, low, high)


def test_design_bandpass_returns_sections():
    sos = design_bandpass(100, 50 / 60, 3.0, order=2)
    assert sos.shape == (2, 6)


def test_remove_linear_trend():
    x = np.arange(50, dtype=float)
    line = 3.0 * x - 7.0
    np.testing.assert_allclose(remove_linear_trend(line), 0.0, atol=1e-9)
    wave = np.sin(x)
    detrended = remove_linear_trend(wave + line)
    np.testing.assert_allclose(detrended, remove_linear_trend(wave), atol=1e-9)


def test_smooth_spline_reproduces_cubic():
    x = np.arange(200, dtype=float)
    cubic = 1e-5 * x ** 3 - 2e-3 * x ** 2 + 0.5 * x + 4.0
    np.testing.assert_allclose(smooth_spline(cubic, 20), cubic, rtol=1e-6, atol=1e-6)


def test_smooth_spline_suppresses_fast_noise():
    x = np.arange(1000, dtype=float)
    slow = np.sin(2 * np.pi * x / 200)
    fast = 0.5 * np.sin(2 * np.pi * x / 3)
    smoothed = smooth_spline(slow + fast, 100)
    interior = slice(50, -50)
    assert np.max(np.abs(smoothed[interior] - slow[interior])) < 0.05


def test_spline_knot_count():
    assert spline_knot_count(6000, 100, 10) == 1000
    assert spline_knot_count(100, 1000, 10) == 50
    assert spline_knot_count(3, 100, 10) == 2
