from __future__ import annotations

from pathlib import Path

import pandas as pd

from caseload_trends.config import AppConfig
from caseload_trends.features.directory import DirectoryEntry, build_directory
from caseload_trends.io.schema import (
    normalize_count_columns,
    normalize_directory_columns,
    normalize_snapshot_columns,
)


def _read_csv(path: Path) -> pd.DataFrame:
    # utf-8-sig strips BOM-prefixed headers commonly found in spreadsheet exports.
    return pd.read_csv(path, encoding="utf-8-sig", dtype=str, keep_default_na=False)


def load_count_rows(csv_path: Path, config: AppConfig) -> pd.DataFrame:
    """Report-query rows with canonical ``operator``/``date``/``count`` columns."""
    return normalize_count_columns(_read_csv(csv_path), config.columns.counts)


def load_directory_frame(csv_path: Path, config: AppConfig) -> pd.DataFrame:
    return normalize_directory_columns(_read_csv(csv_path), config.columns.directory)


def load_directory(csv_path: Path | None, config: AppConfig) -> list[DirectoryEntry]:
    if csv_path is None:
        return []
    return build_directory(load_directory_frame(csv_path, config))


def load_snapshot_rows(csv_path: Path, config: AppConfig) -> pd.DataFrame:
    """Snapshot-store rows with canonical ``operator``/``date``/``count`` columns."""
    return normalize_snapshot_columns(_read_csv(csv_path), config.columns.snapshots)


def load_table(path: Path) -> pd.DataFrame:
    if path.suffix == ".parquet":
        return pd.read_parquet(path)
    if path.suffix == ".csv":
        return pd.read_csv(path)
    raise ValueError(f"Unsupported table file type: {path.suffix}")
