from __future__ import annotations

import pandas as pd

from caseload_trends.config import (
    CountColumnsConfig,
    DirectoryColumnsConfig,
    SnapshotColumnsConfig,
)


def _rename_required(
    df: pd.DataFrame,
    rename_map: dict[str, str],
    source_label: str,
) -> pd.DataFrame:
    missing = [source for source in rename_map if source not in df.columns]
    if missing:
        missing_str = ", ".join(missing)
        raise ValueError(f"Missing required columns in {source_label}: {missing_str}")
    return df.rename(columns=rename_map)[list(rename_map.values())]


def normalize_count_columns(df: pd.DataFrame, columns: CountColumnsConfig) -> pd.DataFrame:
    """Rename report-query columns to ``operator``/``date``/``count``."""
    rename_map = {columns.operator: "operator", columns.date: "date"}
    if columns.count is not None:
        rename_map[columns.count] = "count"
    return _rename_required(df, rename_map, "count rows")


def normalize_directory_columns(
    df: pd.DataFrame,
    columns: DirectoryColumnsConfig,
) -> pd.DataFrame:
    """Rename directory columns to ``name``/``team``; a missing team column is allowed."""
    rename_map = {columns.name: "name"}
    if columns.team in df.columns:
        rename_map[columns.team] = "team"
    return _rename_required(df, rename_map, "directory")


def normalize_snapshot_columns(
    df: pd.DataFrame,
    columns: SnapshotColumnsConfig,
) -> pd.DataFrame:
    rename_map = {
        columns.operator: "operator",
        columns.date: "date",
        columns.count: "count",
    }
    return _rename_required(df, rename_map, "snapshot rows")
