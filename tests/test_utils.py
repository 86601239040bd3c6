import numpy as np
import pytest

from ibiprep.types import DisplayRow, TaskWindow, TimingTable, WaveformTable
from ibiprep.utils.logging import get_logger


def test_waveform_table():
    table = WaveformTable(signal=[1, 2, 3], time=[0.0, 0.5, 1.0])
    assert len(table) == 3
    assert table.span == (0.0, 1.0)
    assert table.duration == 1.0
    with pytest.raises(ValueError):
        table.signal[0] = 5.0
    with pytest.raises(ValueError):
        WaveformTable(signal=[1, 2], time=[0.0])

    frame = table.to_frame()
    assert list(frame.columns) == ["PPG", "Time"]
    frame.loc[0, "PPG"] = 9.0
    assert table.signal[0] == 1.0


def test_waveform_table_copies_input():
    values = np.array([1.0, 2.0])
    table = WaveformTable(signal=values, time=[0.0, 1.0])
    values[0] = 7.0
    assert table.signal[0] == 1.0


def test_timing_table():
    tt = TimingTable("P01", [TaskWindow("A", 1.0, 2.0), TaskWindow("B", 4.0, 8.0)])
    assert isinstance(tt.tasks, tuple)
    assert len(tt) == 2
    assert tt.reference_times == [1.0, 2.0, 4.0, 8.0]
    assert tt.tasks[1].duration == 4.0
    assert DisplayRow("A", 1.0, 2.0).task == "A"


def test_logging():
    logger = get_logger("test")
    logger2 = get_logger("test", level="debug")
    assert logger is logger2
    assert len(logger.handlers) == 1
    logger.debug("debug message")


@pytest.mark.parametrize(
    "time",
    [[20.0, 0.0, 10.0, 30.0], [0.0, 1.0, 1.0], [0.0, np.nan], [0.0, np.inf]],
)
def test_waveform_table_requires_increasing_finite_time(time):
    with pytest.raises(ValueError):
        WaveformTable(signal=np.zeros(len(time)), time=time)


def test_waveform_table_short_tables():
    assert len(WaveformTable(signal=[], time=[])) == 0
    assert WaveformTable(signal=[1.0], time=[3.0]).span == (3.0, 3.0)
