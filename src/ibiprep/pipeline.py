from __future__ import annotations

"""Stage runner and single-case conditioning pipeline.

Every stage is executed through :func:`run_stage`, which turns pipeline
exceptions into a :class:`StageResult` tagged as ok or failed.  The editing
layer can branch on ``result.ok`` instead of probing for missing data.
:func:`prepare_case` chains the stages for one recording::

    load_waveform -> condition_signal -> trim_to_window ---> center_time
                                      \\-> downsample ----/
    load_timing -------------------------------------------/

and stops at the first failed stage.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Generic, List, Optional, TypeVar

from .config import Settings
from .core import center_time, condition_signal, downsample, trim_to_window
from .errors import FilterDesignError, IbiPrepError
from .ingest import load_timing, load_waveform, reshape_for_display
from .types import DisplayRow, TimingTable, WaveformTable

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class StageResult(Generic[T]):
    """Outcome of one pipeline stage.

    Exactly one of ``value`` and ``error`` is meaningful: ``error`` is
    ``None`` for a successful stage.
    """

    stage: str
    value: Optional[T] = None
    error: Optional[IbiPrepError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> T:
        """Return ``value`` or re-raise the recorded error."""

        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]


def run_stage(stage: str, func: Callable[..., T], *args: Any, **kwargs: Any) -> StageResult[T]:
    """Call ``func`` and wrap its outcome in a :class:`StageResult`.

    Only :class:`~ibiprep.errors.IbiPrepError` is captured.  Filter design
    failures are logged as errors since no later stage can run; input and
    lookup failures are logged as warnings.  Anything else propagates.
    """

    try:
        value = func(*args, **kwargs)
    except FilterDesignError as exc:
        logger.error("%s failed: %s", stage, exc)
        return StageResult(stage, error=exc)
    except IbiPrepError as exc:
        logger.warning("%s failed: %s", stage, exc)
        return StageResult(stage, error=exc)
    return StageResult(stage, value=value)


@dataclass(frozen=True)
class PreparedCase:
    """Conditioned, trimmed and centered data for one case."""

    case_id: str
    origin: float
    raw: WaveformTable
    conditioned: WaveformTable
    display: WaveformTable
    timing: TimingTable
    display_rows: List[DisplayRow]


@dataclass
class CaseResult:
    """Stage-by-stage record of a :func:`prepare_case` run."""

    case_id: str
    stages: List[StageResult[Any]] = field(default_factory=list)
    case: Optional[PreparedCase] = None

    @property
    def ok(self) -> bool:
        return self.case is not None and all(stage.ok for stage in self.stages)

    @property
    def failure(self) -> Optional[StageResult[Any]]:
        """The first failed stage, if any."""

        return next((stage for stage in self.stages if not stage.ok), None)

    def unwrap(self) -> PreparedCase:
        failed = self.failure
        if failed is not None:
            failed.unwrap()
        if self.case is None:
            raise RuntimeError(f"case {self.case_id!r} was not prepared")
        return self.case


def _center_all(
    trimmed: WaveformTable, display: WaveformTable, timing: TimingTable
) -> tuple[WaveformTable, WaveformTable, TimingTable]:
    refs = timing.reference_times
    return center_time(trimmed, refs), center_time(display, refs), center_time(timing, refs)


def prepare_case(
    waveform_path: str | Path,
    timing_path: str | Path,
    case_id: str,
    *,
    settings: Settings | None = None,
) -> CaseResult:
    """Run the full conditioning pipeline for ``case_id``.

    The raw recording is filtered, trimmed to the task window and downsampled
    for display.  The trimmed signal, the display signal and the timing table
    are all centered on the earliest task time.
    """

    if settings is None:
        settings = Settings()
    result = CaseResult(case_id=str(case_id))

    def step(stage: str, func: Callable[..., T], *args: Any, **kwargs: Any) -> StageResult[T]:
        outcome = run_stage(stage, func, *args, **kwargs)
        result.stages.append(outcome)
        return outcome

    rate = settings.sampling.sampling_rate

    raw = step("load_waveform", load_waveform, waveform_path, settings=settings)
    if not raw.ok:
        return result
    timing = step("load_timing", load_timing, timing_path, case_id)
    if not timing.ok:
        return result
    conditioned = step("condition_signal", condition_signal, raw.unwrap(), rate, settings=settings)
    if not conditioned.ok:
        return result
    trimmed = step("trim_to_window", trim_to_window, conditioned.unwrap(), timing.unwrap(), settings=settings)
    if not trimmed.ok:
        return result
    display = step(
        "downsample",
        downsample,
        conditioned.unwrap(),
        rate,
        settings.sampling.downsampled_rate,
    )
    if not display.ok:
        return result
    centered = step("center_time", _center_all, trimmed.unwrap(), display.unwrap(), timing.unwrap())
    if not centered.ok:
        return result

    signal, preview, task_times = centered.unwrap()
    result.case = PreparedCase(
        case_id=task_times.case_id,
        origin=min(timing.unwrap().reference_times),
        raw=raw.unwrap(),
        conditioned=signal,
        display=preview,
        timing=task_times,
        display_rows=reshape_for_display(task_times),
    )
    logger.info(
        "prepared case %r: %d conditioned samples, %d display samples, %d tasks",
        result.case_id,
        len(signal),
        len(preview),
        len(task_times),
    )
    return result


__all__ = ["StageResult", "run_stage", "PreparedCase", "CaseResult", "prepare_case"]
