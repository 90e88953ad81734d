from __future__ import annotations

"""Command line interface for signalscope using Typer."""

from pathlib import Path
from typing import Dict, List, Optional

import json
import logging
import threading

import typer
from pydantic import ValidationError

from .config import Settings, load_settings
from .core.kalman import smooth
from .export.csv_export import ExportUnavailable, read_csv, write_csv
from .ingest import IngestionController, Mode, RefreshOutcome, TransportError
from .session import ScopeSession
from .types import Dataset, FilterParams, InvalidFilterParams
from .utils.logging import get_logger
from .utils.timeparse import check_date

app = typer.Typer(help="Fetch, smooth and inspect scalar sensor time series")
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
    for key in keys:
        if not hasattr(current, key):
            raise typer.BadParameter(f"unknown configuration key: {'.'.join(keys)}")
        current = getattr(current, key)


def _apply_override(data: Dict[str, object], keys: List[str], value: object) -> None:
    target = data
    for key in keys[:-1]:
        existing = target.get(key)
        if not isinstance(existing, dict):
            existing = {}
            target[key] = existing
        target = existing
    target[keys[-1]] = value


def _summary(dataset: Dataset) -> str:
    if not dataset:
        return "0 samples"
    return f"{len(dataset)} samples from {dataset.times[0]} to {dataset.times[-1]}"


def _load_dataset(path: Path) -> Dataset:
    try:
        return read_csv(path)
    except (FileNotFoundError, ValueError) as exc:
        raise typer.BadParameter(f"cannot read {path}: {exc}") from exc


def _no_source(date: Optional[str]) -> None:
    raise TransportError("view works on a local file and has no data source")


def _filter_params(cfg: Settings, q: Optional[float], r: Optional[float], p: Optional[float]) -> FilterParams:
    base = cfg.filter
    try:
        return FilterParams(
            q=base.q if q is None else q,
            r=base.r if r is None else r,
            p0=base.p if p is None else p,
            k0=base.k,
        )
    except InvalidFilterParams as exc:
        raise typer.BadParameter(str(exc)) from exc


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
        help="Override configuration values using dotted paths, e.g. filter.q=0.5",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log requests and state changes"),
) -> None:
    """Initialise the Typer context with validated settings."""

    if verbose:
        get_logger("signalscope", logging.DEBUG)

    if config is not None and not config.exists():
        raise typer.BadParameter(f"configuration file not found: {config}")

    try:
        if config:
            settings = load_settings(config)
        elif isinstance(ctx.obj, Settings):
            settings = ctx.obj
        else:
            settings = Settings()
    except (FileNotFoundError, TypeError, json.JSONDecodeError, ValidationError) as exc:
        raise typer.BadParameter(f"failed to load configuration: {exc}") from exc

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
            _apply_override(data, keys, _parse_override_value(raw_value))
        try:
            settings = Settings.model_validate(data)
        except ValidationError as exc:
            raise typer.BadParameter(f"invalid configuration override: {exc}") from exc

    ctx.obj = settings


@app.command()
def fetch(
    ctx: typer.Context,
    date: Optional[str] = typer.Option(None, "--date", "-d", help="Replay this YYYY-MM-DD date instead of today's live data"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", file_okay=False, help="Directory for data_<date>.csv"),
    raw: bool = typer.Option(False, "--raw", help="Summarise the unfiltered series"),
) -> None:
    """Fetch one dataset from the configured source.

    Without ``--date`` the current UTC day is requested the way live mode
    does.  ``--output`` exports the raw samples and needs ``--date``.
    """

    cfg: Settings = ctx.obj
    if date is not None:
        try:
            check_date(date)
        except ValueError as exc:
            raise typer.BadParameter(str(exc)) from exc
    if output is not None and date is None:
        raise typer.BadParameter("--output is only available with --date")

    controller = IngestionController.from_settings(cfg)
    with ScopeSession(controller, settings=cfg) as session:
        if date is not None:
            session.select_date(date)
        else:
            outcome = controller.refresh(Mode.LIVE)
            if outcome is not None and outcome.ok:
                session.load(outcome.dataset)
            elif outcome is not None:
                session.error = outcome.message

        if session.error:
            logger.debug("fetch failed: %s", session.error)
            typer.secho(f"Error: {session.error}", err=True)
            raise typer.Exit(code=1)

        dataset = session.raw if raw else session.smoothed
        typer.echo(_summary(dataset))
        if output is not None:
            try:
                path = session.export_csv(output)
            except ExportUnavailable as exc:
                typer.secho(f"Export skipped: {exc}", err=True)
                raise typer.Exit(code=1)
            typer.echo(f"Exported {len(session.raw)} samples to {path}")


@app.command()
def live(
    ctx: typer.Context,
    ticks: int = typer.Option(3, "--ticks", "-n", min=1, help="Number of polls before exiting"),
    interval: Optional[float] = typer.Option(None, "--interval", help="Seconds between polls"),
) -> None:
    """Poll today's data repeatedly and print a line per refresh."""

    cfg: Settings = ctx.obj
    if interval is not None:
        if interval <= 0:
            raise typer.BadParameter("interval must be positive")
        cfg = cfg.model_copy(update={"live": cfg.live.model_copy(update={"poll_interval": interval})})

    controller = IngestionController.from_settings(cfg)
    done = threading.Event()
    seen: List[RefreshOutcome] = []

    def report(outcome: RefreshOutcome) -> None:
        seen.append(outcome)
        if outcome.ok:
            typer.echo(f"[{outcome.seq}] {outcome.date}: {_summary(outcome.dataset)}")
        else:
            typer.echo(f"[{outcome.seq}] {outcome.date}: error: {outcome.message}")
        if len(seen) >= ticks:
            done.set()

    controller.subscribe(report)
    with ScopeSession(controller, settings=cfg) as session:
        session.set_mode(Mode.LIVE)
        done.wait()
        session.close()
        window = session.window
        typer.echo(f"window {window.start}-{window.end} of {session.dataset_len}")


@app.command("smooth")
def smooth_cmd(
    ctx: typer.Context,
    input: Path = typer.Argument(..., help="Time,Value CSV file"),
    output: Optional[Path] = typer.Option(None, "--output", "-o"),
    q: Optional[float] = typer.Option(None, "--q", help="Process noise"),
    r: Optional[float] = typer.Option(None, "--r", help="Measurement noise"),
    p: Optional[float] = typer.Option(None, "--p", help="Initial estimate variance"),
    passes: int = typer.Option(1, "--passes", min=1, help="Apply the filter this many times"),
) -> None:
    """Apply the Kalman smoother to a CSV series."""

    cfg: Settings = ctx.obj
    params = _filter_params(cfg, q, r, p)
    dataset = _load_dataset(input)
    for _ in range(passes):
        dataset = smooth(dataset, params)
    if output:
        write_csv(dataset, output)
        typer.echo(f"wrote {len(dataset)} smoothed samples to {output}")
    else:
        for sample in dataset:
            typer.echo(f"{sample.time},{sample.value}")


@app.command()
def view(
    ctx: typer.Context,
    input: Path = typer.Argument(..., help="Time,Value CSV file"),
    size: Optional[int] = typer.Option(None, "--size", min=1, help="Window size in samples"),
    start: Optional[int] = typer.Option(None, "--start", help="First visible sample"),
    end: bool = typer.Option(False, "--end", help="Show the last window instead"),
    p1: Optional[int] = typer.Option(None, "--p1", help="Pointer 1 index"),
    p2: Optional[int] = typer.Option(None, "--p2", help="Pointer 2 index"),
    reset: bool = typer.Option(False, "--reset-pointers", help="Bracket the middle of the window"),
    plot: Optional[Path] = typer.Option(None, "--plot", help="Save a plot of the window here"),
) -> None:
    """Navigate a window over a CSV series and measure between pointers."""

    cfg: Settings = ctx.obj
    dataset = _load_dataset(input)
    controller = IngestionController(_no_source, settings=cfg)
    with ScopeSession(controller, settings=cfg) as session:
        session.load(dataset)
        if size is not None:
            session.set_window_size(size)
        if end:
            session.jump_to_end()
        elif start is not None:
            session.scrub(start)
        if reset:
            session.reset_pointers()
        if p1 is not None:
            session.select_pointer(1)
            session.click(p1)
        if p2 is not None:
            session.select_pointer(2)
            session.click(p2)

        window = session.window
        pointers = session.pointers
        m = session.measure()
        typer.echo(f"window {window.start}-{window.end} of {session.dataset_len}")
        typer.echo(f"pointer 1: {pointers.p1}, pointer 2: {pointers.p2}")
        typer.echo(f"{m.sample_delta} samples, {m.time_delta_ms:.3f} ms between pointers")

        if plot is not None:
            from .viz import plot_window, save_or_show

            fig = plot_window(
                session.smoothed,
                window,
                pointers,
                title=cfg.viz.title,
                interval_ms=cfg.sampling.interval_ms,
            )
            save_or_show(fig, plot)
            typer.echo(f"saved plot to {plot}")


def main() -> None:
    """Execute the Typer application."""

    app()


if __name__ == "__main__":
    main()
