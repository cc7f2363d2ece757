from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import pandas as pd

from caseload_trends.config import AppConfig, Granularity
from caseload_trends.detectors.registry import trend_detector
from caseload_trends.features.aggregates import PeriodReport, aggregate_counts
from caseload_trends.features.directory import DirectoryEntry
from caseload_trends.features.matching import build_match_strategy
from caseload_trends.features.reconciliation import (
    IdentityMatcher,
    bucket_counts,
    classify_operators,
    team_counts,
)
from caseload_trends.features.series import build_series_matrix
from caseload_trends.io.read import load_count_rows, load_directory
from caseload_trends.io.write import write_summary, write_tables
from caseload_trends.paths import build_output_paths
from caseload_trends.preprocess.names import add_name_features
from caseload_trends.preprocess.periods import period_key, trailing_days
from caseload_trends.preprocess.rows import validate_count_rows

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class PeriodReportArtifacts:
    report: PeriodReport
    table: pd.DataFrame
    reconciliation: pd.DataFrame
    production_trends: pd.DataFrame
    rejected: pd.DataFrame
    summary: dict[str, Any]

    def tables(self) -> dict[str, pd.DataFrame]:
        return {
            "period_report": self.table,
            "period_cells": self.report.cells,
            "reconciliation": self.reconciliation,
            "production_trends": self.production_trends,
            "rejected_rows": self.rejected,
        }


def _annotate_report_table(
    report: PeriodReport,
    reconciliation: pd.DataFrame,
    production_trends: pd.DataFrame,
) -> pd.DataFrame:
    labels = reconciliation[["operator_key", "bucket", "team", "caveat"]]
    trend = production_trends[["operator_key", "classification"]].rename(
        columns={"classification": "trend"}
    )
    table = report.table.merge(labels, on="operator_key", how="left").merge(
        trend, on="operator_key", how="left"
    )
    leading = ["operator_key", "display_name", "bucket", "team", "trend"]
    trailing = ["total", "caveat"]
    return table[leading + list(report.periods) + trailing]


def build_period_report(
    count_rows: pd.DataFrame,
    own_directory: Sequence[DirectoryEntry],
    other_directory: Sequence[DirectoryEntry],
    config: AppConfig,
    granularity: Granularity | None = None,
) -> PeriodReportArtifacts:
    """Reconcile operators and bucket their counts for one report run.

    Malformed rows are set aside in ``rejected`` and the rest proceed. Every
    operator in the report carries a reconciliation bucket and a production
    trend badge computed over its per-day counts.

    At ``date`` granularity the report covers the trailing
    ``config.periods.days`` days of ``config.periods.day_type`` ending at the
    latest date in the data; every such day gets a column, even without counts.
    """
    resolved_granularity = granularity or config.periods.granularity
    validation = validate_count_rows(count_rows)
    rows = add_name_features(validation.rows, column="operator")

    window: list[pd.Timestamp] | None = None
    rows_outside_window = 0
    if resolved_granularity == "date":
        window = trailing_days(rows["date"], config.periods.days, config.periods.day_type)
        in_window = rows["date"].isin(window)
        rows_outside_window = int((~in_window).sum())
        rows = rows.loc[in_window].reset_index(drop=True)

    matcher = IdentityMatcher(
        own_directory,
        other_directory,
        strategy=build_match_strategy(config.names),
    )
    reconciliation = classify_operators(rows["operator"], matcher)
    window_periods = None if window is None else [period_key(day, "date") for day in window]
    report = aggregate_counts(rows, resolved_granularity, periods=window_periods)
    matrix = build_series_matrix(rows, dates=window)
    production_trends = trend_detector(config).run(matrix).tables["operator_trends"]
    table = _annotate_report_table(report, reconciliation, production_trends)

    day_window = None
    if window_periods is not None:
        day_window = {
            "days": config.periods.days,
            "day_type": config.periods.day_type,
            "start": window_periods[0] if window_periods else None,
            "end": window_periods[-1] if window_periods else None,
        }

    summary: dict[str, Any] = {
        "granularity": resolved_granularity,
        "rows_total": int(len(count_rows)),
        "rows_used": int(len(rows)),
        "rows_rejected": validation.n_rejected,
        "rejected_by_reason": validation.rejected_by_reason(),
        "rows_outside_window": rows_outside_window,
        "day_window": day_window,
        "n_operators": int(len(report.table)),
        "buckets": bucket_counts(reconciliation),
        "teams": team_counts(reconciliation),
        "n_ambiguous_matches": int(reconciliation["caveat"].notna().sum()),
        "periods": list(report.periods),
        "period_totals": dict(report.period_totals),
        "grand_total": report.grand_total,
    }
    LOGGER.info(
        "Period report: %d operators, %d periods, grand total %d (%d rows rejected)",
        summary["n_operators"],
        len(report.periods),
        report.grand_total,
        validation.n_rejected,
    )
    return PeriodReportArtifacts(
        report=report,
        table=table,
        reconciliation=reconciliation,
        production_trends=production_trends,
        rejected=validation.rejected,
        summary=summary,
    )


def run_period_report(
    counts_csv: Path,
    own_directory_csv: Path,
    other_directory_csv: Path | None,
    out_dir: Path,
    config: AppConfig,
    granularity: Granularity | None = None,
) -> PeriodReportArtifacts:
    paths = build_output_paths(out_dir)
    artifacts = build_period_report(
        count_rows=load_count_rows(counts_csv, config),
        own_directory=load_directory(own_directory_csv, config),
        other_directory=load_directory(other_directory_csv, config),
        config=config,
        granularity=granularity,
    )
    write_tables(artifacts.tables(), paths.tables, fmt=config.outputs.tables_format)
    write_summary(artifacts.summary, paths.summary / "period_report.json")
    return artifacts
