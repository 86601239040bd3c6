import logging

import numpy as np
import pytest

from ibiprep.config import Settings
from ibiprep.errors import CaseNotFoundError, FilterDesignError, FormatError
from ibiprep.pipeline import StageResult, prepare_case, run_stage


def make_case(tmp_path, fs=100, seconds=60):
    t = np.arange(fs * seconds) / fs
    ppg = np.sin(2 * np.pi * 1.1 * t) + 0.02 * t + 0.2 * np.sin(2 * np.pi * 15 * t)
    lines = ["Recording export", "Channel\tPPG"] + [f"{ti:.2f}\t{v:.6f}" for ti, v in zip(t, ppg)]
    waveform = tmp_path / "P01_ppg.txt"
    waveform.write_text("\n".join(lines) + "\n")

    timing = tmp_path / "timing.txt"
    timing.write_text(
        "ID\tBaseline_Start\tBaseline_Stop\tStress_Start\tStress_Stop\n"
        "P00\t1\t2\t3\t4\n"
        "P01\t10\t20\t30\t40\n"
    )

    settings = Settings()
    settings.sampling.sampling_rate = fs
    settings.sampling.downsampled_rate = 50
    settings.ingest.skip_lines = 2
    settings.ingest.column = 2
    return settings, waveform, timing


def test_prepare_case_runs_every_stage(tmp_path):
    settings, waveform, timing = make_case(tmp_path)

    result = prepare_case(waveform, timing, "P01", settings=settings)

    assert result.ok
    assert result.failure is None
    assert [stage.stage for stage in result.stages] == [
        "load_waveform",
        "load_timing",
        "condition_signal",
        "trim_to_window",
        "downsample",
        "center_time",
    ]
    case = result.unwrap()
    assert case.origin == 10.0
    assert len(case.raw) == 6000
    assert case.conditioned.time[0] == pytest.approx(-3.0)
    assert case.conditioned.time[-1] == pytest.approx(33.0)
    assert case.display.time[0] == pytest.approx(-10.0)
    assert case.display.time[-1] == pytest.approx(49.99)
    assert len(case.display) == 3000
    assert case.timing.starts == [0.0, 20.0]
    assert [row.task for row in case.display_rows] == ["Baseline_Start", "Stress_Start"]


def test_prepare_case_stops_at_missing_case(tmp_path, caplog):
    settings, waveform, timing = make_case(tmp_path)

    with caplog.at_level(logging.WARNING, logger="ibiprep"):
        result = prepare_case(waveform, timing, "P42", settings=settings)

    assert not result.ok
    assert result.case is None
    assert result.failure.stage == "load_timing"
    assert isinstance(result.failure.error, CaseNotFoundError)
    assert [stage.stage for stage in result.stages] == ["load_waveform", "load_timing"]
    with pytest.raises(CaseNotFoundError):
        result.unwrap()


def test_prepare_case_filter_failure_is_logged_as_error(tmp_path, caplog):
    settings, waveform, timing = make_case(tmp_path)
    settings.sampling.sampling_rate = 5

    with caplog.at_level(logging.WARNING, logger="ibiprep"):
        result = prepare_case(waveform, timing, "P01", settings=settings)

    assert result.failure.stage == "condition_signal"
    assert isinstance(result.failure.error, FilterDesignError)
    assert any(rec.levelno == logging.ERROR for rec in caplog.records)


def test_prepare_case_bad_waveform_format(tmp_path):
    settings, waveform, timing = make_case(tmp_path)
    csv_path = waveform.with_suffix(".csv")
    waveform.rename(csv_path)

    result = prepare_case(csv_path, timing, "P01", settings=settings)

    assert result.failure.stage == "load_waveform"
    assert isinstance(result.failure.error, FormatError)
    assert len(result.stages) == 1


def test_run_stage_wraps_pipeline_errors():
    def fails():
        raise CaseNotFoundError("P01")

    outcome = run_stage("lookup", fails)
    assert isinstance(outcome, StageResult)
    assert not outcome.ok
    assert outcome.stage == "lookup"
    assert outcome.value is None


def test_run_stage_success():
    outcome = run_stage("add", lambda a, b: a + b, 2, b=3)
    assert outcome.ok
    assert outcome.unwrap() == 5


def test_run_stage_propagates_other_errors():
    def broken():
        raise ZeroDivisionError

    with pytest.raises(ZeroDivisionError):
        run_stage("broken", broken)
