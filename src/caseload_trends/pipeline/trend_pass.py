from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

import pandas as pd

from caseload_trends.config import AppConfig
from caseload_trends.detectors.base import DetectorResult
from caseload_trends.detectors.registry import default_detectors
from caseload_trends.features.series import SeriesMatrix, build_series_matrix
from caseload_trends.io.read import load_snapshot_rows
from caseload_trends.io.write import table_path, write_summary, write_table, write_tables
from caseload_trends.paths import build_output_paths
from caseload_trends.preprocess.names import add_name_features
from caseload_trends.preprocess.rows import RowValidation, validate_count_rows

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class TrendArtifacts:
    matrix: SeriesMatrix
    validation: RowValidation
    results: dict[str, DetectorResult]


def snapshot_matrix_table(matrix: SeriesMatrix) -> pd.DataFrame:
    """Wide snapshot table (operator, one column per ISO date) for export."""
    table = matrix.values.copy()
    table.columns = [pd.Timestamp(column).strftime("%Y-%m-%d") for column in table.columns]
    table.insert(0, "display_name", [matrix.display_name(key) for key in matrix.operators])
    return table.reset_index()


def detect_trends(snapshot_rows: pd.DataFrame, config: AppConfig) -> TrendArtifacts:
    validation = validate_count_rows(snapshot_rows)
    matrix = build_series_matrix(add_name_features(validation.rows, column="operator"))

    results: dict[str, DetectorResult] = {}
    for detector in default_detectors(config):
        LOGGER.info("Running detector: %s", detector.name)
        results[detector.name] = detector.run(matrix)
    return TrendArtifacts(matrix=matrix, validation=validation, results=results)


def run_trend_detectors(snapshots_csv: Path, out_dir: Path, config: AppConfig) -> TrendArtifacts:
    paths = build_output_paths(out_dir)
    artifacts = detect_trends(load_snapshot_rows(snapshots_csv, config), config)
    fmt = config.outputs.tables_format

    if not artifacts.matrix.empty:
        write_table(
            snapshot_matrix_table(artifacts.matrix),
            table_path(paths.tables, "snapshot_matrix", fmt),
            fmt=fmt,
        )
    for name, result in artifacts.results.items():
        write_tables(result.tables, paths.tables, fmt=fmt, prefix=name)
        write_summary(
            {
                "detector": result.detector,
                "rows_rejected": artifacts.validation.n_rejected,
                "rejected_by_reason": artifacts.validation.rejected_by_reason(),
                **result.summary,
            },
            paths.summary / f"{name}.json",
        )
    return artifacts
