import numpy as np
import pandas as pd
import pytest

from ibiprep.core import center_time, trim_to_window
from ibiprep.errors import EmptyWindowError, MalformedTimingError
from ibiprep.types import TaskWindow, TimingTable, WaveformTable


def ramp(fs=100, seconds=30):
    t = np.arange(fs * seconds + 1) / fs
    return WaveformTable(signal=np.cos(t), time=t)


def timing(*tasks):
    return TimingTable("P01", tuple(TaskWindow(f"Task{i}_Start", a, b) for i, (a, b) in enumerate(tasks)))


def test_trim_adds_three_second_buffer():
    out = trim_to_window(ramp(), timing((10.0, 20.0)))
    assert out.time[0] == 7.0
    assert out.time[-1] == 23.0
    assert len(out) == 1601
    assert out.signal[0] == pytest.approx(np.cos(7.0))


def test_trim_spans_all_tasks():
    out = trim_to_window(ramp(), timing((15.0, 18.0), (5.0, 8.0), (12.0, 21.5)))
    assert out.time[0] == 2.0
    assert out.time[-1] == pytest.approx(24.5)


def test_trim_clips_to_recording():
    out = trim_to_window(ramp(), timing((1.0, 29.0)))
    assert out.time[0] == 0.0
    assert out.time[-1] == 30.0


def test_trim_custom_buffer():
    out = trim_to_window(ramp(), timing((10.0, 20.0)), buffer=0.0)
    assert (out.time[0], out.time[-1]) == (10.0, 20.0)


def test_trim_outside_recording():
    with pytest.raises(EmptyWindowError) as excinfo:
        trim_to_window(ramp(), timing((100.0, 120.0)))
    assert excinfo.value.low == 97.0
    assert excinfo.value.high == 123.0
    assert excinfo.value.span == (0.0, 30.0)


def test_center_with_zero_reference_is_identity():
    wave = ramp()
    out = center_time(wave, [0])
    np.testing.assert_array_equal(out.time, wave.time)
    np.testing.assert_array_equal(out.signal, wave.signal)

    tt = timing((10.0, 20.0))
    assert center_time(tt, [0]) == tt


def test_center_waveform_and_timing_share_origin():
    wave = ramp()
    tt = timing((12.0, 20.0), (22.0, 25.0))
    refs = tt.reference_times

    centered_wave = center_time(wave, refs)
    centered_timing = center_time(tt, refs)

    assert centered_timing.tasks[0].start == 0.0
    assert centered_timing.stops == [8.0, 13.0]
    np.testing.assert_allclose(centered_wave.time, wave.time - 12.0)
    # The input tables are left untouched.
    assert tt.tasks[0].start == 12.0
    assert wave.time[0] == 0.0


def test_center_timing_single_column():
    tt = timing((10.0, 20.0))
    out = center_time(tt, [5.0], time_col="Start")
    assert out.starts == [5.0]
    assert out.stops == [20.0]


def test_center_dataframe():
    ibi = pd.DataFrame({"IBI": [0.8, 0.82, 0.79], "Time": [10.5, 11.3, 12.1]})
    out = center_time(ibi, [10.0, 20.0])
    np.testing.assert_allclose(out["Time"], [0.5, 1.3, 2.1])
    assert ibi["Time"].tolist() == [10.5, 11.3, 12.1]


def test_center_without_reference_returns_input():
    wave = ramp()
    assert center_time(wave, None) is wave


def test_center_rejects_empty_reference():
    with pytest.raises(ValueError):
        center_time(ramp(), [])


@pytest.mark.parametrize(
    "table, col",
    [
        (WaveformTable(signal=[1.0], time=[0.0]), "Start"),
        (TimingTable("P01", (TaskWindow("A", 0.0, 1.0),)), "Time"),
        (pd.DataFrame({"IBI": [1.0]}), None),
    ],
)
def test_center_unknown_column(table, col):
    with pytest.raises(KeyError):
        center_time(table, [1.0], time_col=col)


def test_center_timing_single_column_keeps_order():
    tt = timing((10.0, 20.0))
    with pytest.raises(MalformedTimingError):
        center_time(tt, [15.0], time_col="Stop")
    with pytest.raises(MalformedTimingError):
        center_time(tt, [-15.0], time_col="Start")
