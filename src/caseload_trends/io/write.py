from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pandas as pd

TABLE_FORMATS = ("parquet", "csv")


def table_path(directory: Path, name: str, fmt: str) -> Path:
    if fmt not in TABLE_FORMATS:
        raise ValueError(f"Unsupported table format: {fmt}")
    return directory / f"{name}.{fmt}"


def write_table(df: pd.DataFrame, path: Path, fmt: str = "parquet") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    if fmt == "parquet":
        df.to_parquet(path, index=False)
        return path
    if fmt == "csv":
        df.to_csv(path, index=False)
        return path
    raise ValueError(f"Unsupported table format: {fmt}")


def write_tables(
    tables: dict[str, pd.DataFrame],
    directory: Path,
    fmt: str = "parquet",
    prefix: str = "",
) -> dict[str, Path]:
    """Write each named table as ``<prefix>__<name>.<fmt>`` (or ``<name>.<fmt>``)."""
    written: dict[str, Path] = {}
    for name, table in tables.items():
        stem = f"{prefix}__{name}" if prefix else name
        written[name] = write_table(table, table_path(directory, stem, fmt), fmt=fmt)
    return written


def write_summary(data: dict[str, Any], path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    # default=str covers dates and enum values in summaries.
    path.write_text(json.dumps(data, indent=2, sort_keys=True, default=str), encoding="utf-8")
    return path
