from __future__ import annotations

from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, ConfigDict, Field

Granularity = Literal["year", "quarter", "month", "week", "date"]
DayType = Literal["all", "workdays", "weekends"]


class CountColumnsConfig(BaseModel):
    operator: str = "operador"
    date: str = "fecha"
    # None means one raw row per case: every row counts as 1.
    count: str | None = "cantidad"


class DirectoryColumnsConfig(BaseModel):
    name: str = "nombre_en_base"
    team: str = "sub_equipo"


class SnapshotColumnsConfig(BaseModel):
    operator: str = "operador"
    date: str = "fecha"
    count: str = "cantidad"


class ColumnsConfig(BaseModel):
    counts: CountColumnsConfig = Field(default_factory=CountColumnsConfig)
    directory: DirectoryColumnsConfig = Field(default_factory=DirectoryColumnsConfig)
    snapshots: SnapshotColumnsConfig = Field(default_factory=SnapshotColumnsConfig)


class NamesConfig(BaseModel):
    match_strategy: Literal["prefix", "fuzzy"] = "prefix"
    min_prefix_length: int = Field(default=5, ge=1)
    fuzzy_min_score: float = Field(default=90.0, ge=0.0, le=100.0)


class PeriodsConfig(BaseModel):
    granularity: Granularity = "year"
    # Trailing day window for the "date" granularity, counted back from the latest date.
    days: int = Field(default=20, ge=1, le=365)
    day_type: DayType = "all"


class TrendConfig(BaseModel):
    lower_percentile: float = Field(default=0.10, ge=0.0, lt=1.0)
    upper_percentile: float = Field(default=0.90, gt=0.0, lt=1.0)
    change_threshold: float = Field(default=0.15, ge=0.0)


class MoversConfig(BaseModel):
    window: int = Field(default=15, ge=2)
    min_activity_ratio: float = Field(default=0.5, ge=0.0, le=1.0)
    top_n: int = Field(default=5, ge=1)
    min_periods: int = Field(default=5, ge=2)


class OutputsConfig(BaseModel):
    tables_format: Literal["parquet", "csv"] = "parquet"


class AppConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    columns: ColumnsConfig = Field(default_factory=ColumnsConfig)
    names: NamesConfig = Field(default_factory=NamesConfig)
    periods: PeriodsConfig = Field(default_factory=PeriodsConfig)
    trend: TrendConfig = Field(default_factory=TrendConfig)
    movers: MoversConfig = Field(default_factory=MoversConfig)
    outputs: OutputsConfig = Field(default_factory=OutputsConfig)


DEFAULT_CONFIG_PATH = Path("configs/default.yaml")


def load_config(path: Path) -> AppConfig:
    with path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}

    config = AppConfig.model_validate(data)
    if config.trend.lower_percentile > config.trend.upper_percentile:
        raise ValueError("trend.lower_percentile must not exceed trend.upper_percentile")
    return config
