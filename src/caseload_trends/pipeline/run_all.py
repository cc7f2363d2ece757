from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from caseload_trends.config import AppConfig, Granularity
from caseload_trends.pipeline.period_report import PeriodReportArtifacts, run_period_report
from caseload_trends.pipeline.trend_pass import TrendArtifacts, run_trend_detectors


@dataclass(frozen=True)
class RunAllResult:
    period_report: PeriodReportArtifacts
    trends: TrendArtifacts | None


def run_all(
    counts_csv: Path,
    own_directory_csv: Path,
    other_directory_csv: Path | None,
    snapshots_csv: Path | None,
    out_dir: Path,
    config: AppConfig,
    *,
    granularity: Granularity | None = None,
) -> RunAllResult:
    period_report = run_period_report(
        counts_csv=counts_csv,
        own_directory_csv=own_directory_csv,
        other_directory_csv=other_directory_csv,
        out_dir=out_dir,
        config=config,
        granularity=granularity,
    )
    trends = None
    if snapshots_csv is not None:
        trends = run_trend_detectors(snapshots_csv=snapshots_csv, out_dir=out_dir, config=config)
    return RunAllResult(period_report=period_report, trends=trends)
