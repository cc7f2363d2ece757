from __future__ import annotations

from pathlib import Path
from typing import Literal

import typer

from caseload_trends.config import DEFAULT_CONFIG_PATH, AppConfig, DayType, Granularity, load_config
from caseload_trends.features.matching import build_match_strategy
from caseload_trends.features.reconciliation import IdentityMatcher
from caseload_trends.io.read import load_directory
from caseload_trends.logging import configure_logging
from caseload_trends.pipeline.period_report import run_period_report
from caseload_trends.pipeline.run_all import run_all
from caseload_trends.pipeline.trend_pass import run_trend_detectors

app = typer.Typer(no_args_is_help=True, add_completion=False)

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR"]


def _load_app_config(config_path: Path) -> AppConfig:
    return load_config(config_path)


def _apply_day_window(cfg: AppConfig, days: int | None, day_type: DayType | None) -> None:
    if days is not None:
        cfg.periods.days = days
    if day_type is not None:
        cfg.periods.day_type = day_type


@app.command()
def report(
    counts: Path = typer.Option(..., exists=True, readable=True, resolve_path=True),
    own_directory: Path = typer.Option(..., exists=True, readable=True, resolve_path=True),
    other_directory: Path | None = typer.Option(
        None,
        exists=True,
        readable=True,
        resolve_path=True,
        help="Directory of the other process, used to flag operators for review.",
    ),
    out: Path = typer.Option(Path("out"), resolve_path=True),
    config: Path = typer.Option(DEFAULT_CONFIG_PATH, exists=True, readable=True, resolve_path=True),
    granularity: Granularity | None = typer.Option(
        None,
        help="Override periods.granularity (year, quarter, month, week, date).",
    ),
    days: int | None = typer.Option(
        None, min=1, max=365, help="Override periods.days (trailing window for date granularity)."
    ),
    day_type: DayType | None = typer.Option(None, help="Override periods.day_type."),
    log_level: LogLevel = typer.Option("INFO"),
) -> None:
    """Build the per-operator period report with reconciliation buckets."""
    configure_logging(log_level)
    cfg = _load_app_config(config)
    _apply_day_window(cfg, days, day_type)
    artifacts = run_period_report(
        counts_csv=counts,
        own_directory_csv=own_directory,
        other_directory_csv=other_directory,
        out_dir=out,
        config=cfg,
        granularity=granularity,
    )
    summary = artifacts.summary
    typer.echo("Period report complete")
    typer.echo(f"- granularity: {summary['granularity']}")
    if summary["day_window"] is not None:
        window = summary["day_window"]
        typer.echo(f"- day_window: {window['start']} to {window['end']} ({window['day_type']})")
    typer.echo(f"- operators: {summary['n_operators']}")
    typer.echo(f"- grand_total: {summary['grand_total']}")
    typer.echo(f"- rows_rejected: {summary['rows_rejected']}")
    for bucket, count in summary["buckets"].items():
        typer.echo(f"- bucket_{bucket}: {count}")


@app.command()
def trends(
    snapshots: Path = typer.Option(..., exists=True, readable=True, resolve_path=True),
    out: Path = typer.Option(Path("out"), resolve_path=True),
    config: Path = typer.Option(DEFAULT_CONFIG_PATH, exists=True, readable=True, resolve_path=True),
    window: int | None = typer.Option(None, min=2, help="Override movers.window."),
    log_level: LogLevel = typer.Option("INFO"),
) -> None:
    """Compute trend badges and top movers from historical snapshots."""
    configure_logging(log_level)
    cfg = _load_app_config(config)
    if window is not None:
        cfg.movers.window = window
    artifacts = run_trend_detectors(snapshots_csv=snapshots, out_dir=out, config=cfg)
    movers = artifacts.results["movers"].summary
    typer.echo(f"Trend analysis complete. Operators: {len(artifacts.matrix.operators)}")
    typer.echo(f"- top_increasing: {', '.join(movers['top_increasing']) or '-'}")
    typer.echo(f"- top_decreasing: {', '.join(movers['top_decreasing']) or '-'}")


@app.command("run-all")
def run_all_command(
    counts: Path = typer.Option(..., exists=True, readable=True, resolve_path=True),
    own_directory: Path = typer.Option(..., exists=True, readable=True, resolve_path=True),
    other_directory: Path | None = typer.Option(
        None, exists=True, readable=True, resolve_path=True
    ),
    snapshots: Path | None = typer.Option(None, exists=True, readable=True, resolve_path=True),
    out: Path = typer.Option(Path("out"), resolve_path=True),
    config: Path = typer.Option(DEFAULT_CONFIG_PATH, exists=True, readable=True, resolve_path=True),
    granularity: Granularity | None = typer.Option(None),
    days: int | None = typer.Option(None, min=1, max=365),
    day_type: DayType | None = typer.Option(None),
    log_level: LogLevel = typer.Option("INFO"),
) -> None:
    """Execute the period report and, when snapshots are given, the trend pass."""
    configure_logging(log_level)
    cfg = _load_app_config(config)
    _apply_day_window(cfg, days, day_type)
    result = run_all(
        counts_csv=counts,
        own_directory_csv=own_directory,
        other_directory_csv=other_directory,
        snapshots_csv=snapshots,
        out_dir=out,
        config=cfg,
        granularity=granularity,
    )
    detectors = 0 if result.trends is None else len(result.trends.results)
    typer.echo(f"Run complete. Output: {out} (detectors: {detectors})")


@app.command()
def classify(
    name: str = typer.Argument(..., help="Raw operator name to reconcile."),
    own_directory: Path = typer.Option(..., exists=True, readable=True, resolve_path=True),
    other_directory: Path | None = typer.Option(
        None, exists=True, readable=True, resolve_path=True
    ),
    config: Path = typer.Option(DEFAULT_CONFIG_PATH, exists=True, readable=True, resolve_path=True),
) -> None:
    """Print the reconciliation bucket and team for one operator name."""
    cfg = _load_app_config(config)
    matcher = IdentityMatcher(
        load_directory(own_directory, cfg),
        load_directory(other_directory, cfg),
        strategy=build_match_strategy(cfg.names),
    )
    result = matcher.classify(name)
    typer.echo(f"bucket: {result.bucket.value}")
    typer.echo(f"team: {result.team.value}")
    if result.matched_name:
        typer.echo(f"matched_name: {result.matched_name}")
    if result.caveat:
        typer.echo(f"caveat: {result.caveat} ({result.n_candidates} candidates)")


if __name__ == "__main__":
    app()
