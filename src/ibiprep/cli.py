from __future__ import annotations

"""Command line interface for ibiprep using Typer."""

from pathlib import Path
from typing import Dict, List, Optional

import json
import logging

import typer
from pydantic import ValidationError

from .config import Settings, load_settings
from .errors import IbiPrepError
from .ingest import load_timing, reshape_for_display
from .pipeline import CaseResult, prepare_case
from .utils.logging import get_logger

app = typer.Typer(help="Condition raw PPG recordings for IBI editing")
logger = logging.getLogger(__name__)


def _parse_override_value(raw: str) -> object:
    lower = raw.lower()
    if lower in {"true", "false"}:
        return lower == "true"
    if lower in {"null", "none"}:
        return None
    try:
        return int(raw)
    except ValueError:
        pass
    try:
        return float(raw)
    except ValueError:
        pass
    if raw.startswith("[") or raw.startswith("{"):
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            raise typer.BadParameter(f"invalid JSON override value: {raw}") from None
    return raw


def _ensure_path(settings: Settings, keys: List[str]) -> None:
    current: object = settings
    for key in keys[:-1]:
        if not hasattr(current, key):
            raise typer.BadParameter(f"unknown configuration key: {'.'.join(keys)}")
        current = getattr(current, key)
    if not hasattr(current, keys[-1]):
        raise typer.BadParameter(f"unknown configuration key: {'.'.join(keys)}")


def _apply_override(data: Dict[str, object], keys: List[str], value: object) -> None:
    target = data
    for key in keys[:-1]:
        existing = target.get(key)
        if not isinstance(existing, dict):
            existing = {}
            target[key] = existing
        target = existing
    target[keys[-1]] = value


@app.callback()
def init(
    ctx: typer.Context,
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        dir_okay=False,
        file_okay=True,
        exists=False,
        help="Path to a YAML or JSON configuration file.",
    ),
    set_overrides: List[str] = typer.Option(
        [],
        "--set",
        help="Override configuration values using dotted paths, e.g. sampling.sampling_rate=2000",
    ),
) -> None:
    """Initialise the Typer context with validated settings."""

    if config is not None and not config.exists():
        raise typer.BadParameter(f"configuration file not found: {config}")

    if config is not None:
        try:
            settings = load_settings(config)
        except (RuntimeError, TypeError, ValidationError, json.JSONDecodeError) as exc:
            raise typer.BadParameter(f"failed to load configuration: {exc}") from exc
    elif isinstance(ctx.obj, Settings):
        settings = ctx.obj
    else:
        settings = Settings()

    if set_overrides:
        data = settings.model_dump()
        for override in set_overrides:
            if "=" not in override:
                raise typer.BadParameter(
                    "overrides must be of the form --set section.key=value"
                )
            key, raw_value = override.split("=", 1)
            if not key:
                raise typer.BadParameter("override key cannot be empty")
            keys = key.split(".")
            _ensure_path(settings, keys)
            value = _parse_override_value(raw_value)
            _apply_override(data, keys, value)
        try:
            settings = Settings.model_validate(data)
        except ValidationError as exc:
            raise typer.BadParameter(f"invalid configuration override: {exc}") from exc

    get_logger("ibiprep", settings.logging.level)
    ctx.obj = settings


def _run(ctx: typer.Context, waveform: Path, timing: Path, case_id: str, debug: bool) -> CaseResult:
    cfg: Settings = ctx.obj
    result = prepare_case(waveform, timing, case_id, settings=cfg)
    failed = result.failure
    if failed is not None:
        msg = f"Failed to prepare case {case_id} at stage {failed.stage}: {failed.error}"
        if debug:
            logger.error(msg)
            failed.unwrap()
        typer.secho(msg, err=True)
        raise typer.Exit(code=1)
    return result


@app.command()
def prepare(
    ctx: typer.Context,
    waveform: Path = typer.Argument(..., help="Raw tab-delimited PPG recording"),
    timing: Path = typer.Argument(..., help="Timing file with one row per case"),
    case_id: str = typer.Argument(..., help="Case identifier in the timing file"),
    debug: bool = typer.Option(False, "--debug", help="Show tracebacks on failure"),
) -> None:
    """Condition one recording and print a summary of every stage."""

    result = _run(ctx, waveform, timing, case_id, debug)
    case = result.unwrap()
    for stage in result.stages:
        typer.echo(f"{stage.stage}: ok")
    first, last = case.conditioned.span
    typer.echo(
        f"case {case.case_id}: raw samples={len(case.raw)} conditioned samples={len(case.conditioned)} "
        f"span={first:.3f}..{last:.3f} s display samples={len(case.display)}"
    )
    for row in case.display_rows:
        typer.echo(f"{row.task}\t{row.start:g}\t{row.stop:g}")


@app.command()
def timing(
    ctx: typer.Context,
    path: Path = typer.Argument(..., help="Timing file with one row per case"),
    case_id: str = typer.Argument(..., help="Case identifier in the timing file"),
) -> None:
    """Print the Task/Start/Stop table for ``case_id``."""

    try:
        table = load_timing(path, case_id)
    except IbiPrepError as exc:
        typer.secho(str(exc), err=True)
        raise typer.Exit(code=1)
    typer.echo("Task\tStart\tStop")
    for row in reshape_for_display(table):
        typer.echo(f"{row.task}\t{row.start:g}\t{row.stop:g}")


@app.command()
def plot(
    ctx: typer.Context,
    waveform: Path = typer.Argument(..., help="Raw tab-delimited PPG recording"),
    timing: Path = typer.Argument(..., help="Timing file with one row per case"),
    case_id: str = typer.Argument(..., help="Case identifier in the timing file"),
    save: Optional[Path] = typer.Option(None, "--save", help="Write the figure to this path"),
    show: bool = typer.Option(False, "--show", help="Display the figure interactively"),
) -> None:
    """Plot the downsampled signal of one case with its task windows."""

    from .viz import plot_case, save_or_show

    case = _run(ctx, waveform, timing, case_id, debug=False).unwrap()
    fig = plot_case(case)
    save_or_show(fig, save, show)
    if save:
        typer.echo(f"saved preview to {save}")


def main() -> None:
    """Execute the Typer application."""

    app()


if __name__ == "__main__":
    main()
