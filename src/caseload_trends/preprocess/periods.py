from __future__ import annotations

import math
from datetime import date, datetime

import pandas as pd

from caseload_trends.config import DayType, Granularity

GRANULARITIES: tuple[Granularity, ...] = ("year", "quarter", "month", "week", "date")
DAY_TYPES: tuple[DayType, ...] = ("all", "workdays", "weekends")
MAX_LOOKBACK_DAYS = 365


def _check_granularity(granularity: str) -> None:
    if granularity not in GRANULARITIES:
        raise ValueError(
            f"Unsupported period granularity: {granularity!r} "
            f"(expected one of {', '.join(GRANULARITIES)})"
        )


def period_key(value: date | datetime | str, granularity: Granularity) -> str:
    """Label a single date with its period key.

    Keys are ``YYYY``, ``YYYY-Qn``, ``YYYY-MM``, ``YYYY-Www`` (ISO week) and
    ``YYYY-MM-DD``; within one granularity they sort chronologically as plain
    strings.
    """
    _check_granularity(granularity)
    stamp = pd.Timestamp(value)
    if granularity == "year":
        return f"{stamp.year:04d}"
    if granularity == "quarter":
        return f"{stamp.year:04d}-Q{math.ceil(stamp.month / 3)}"
    if granularity == "month":
        return f"{stamp.year:04d}-{stamp.month:02d}"
    if granularity == "week":
        iso_year, iso_week, _ = stamp.isocalendar()
        return f"{iso_year:04d}-W{iso_week:02d}"
    return stamp.strftime("%Y-%m-%d")


def period_keys(dates: pd.Series, granularity: Granularity) -> pd.Series:
    """Vectorised ``period_key`` over a datetime64 series."""
    _check_granularity(granularity)
    stamps = pd.to_datetime(dates)
    if granularity == "year":
        return stamps.dt.year.map(lambda year: f"{year:04d}")
    if granularity == "quarter":
        return stamps.dt.year.map(lambda year: f"{year:04d}") + "-Q" + stamps.dt.quarter.astype(str)
    if granularity == "month":
        return stamps.dt.strftime("%Y-%m")
    if granularity == "week":
        iso = stamps.dt.isocalendar()
        return (
            iso["year"].map(lambda year: f"{int(year):04d}")
            + "-W"
            + iso["week"].map(lambda week: f"{int(week):02d}")
        )
    return stamps.dt.strftime("%Y-%m-%d")


def add_period_features(df: pd.DataFrame, granularity: Granularity) -> pd.DataFrame:
    working = df.copy()
    working["period"] = period_keys(working["date"], granularity)
    return working


def is_workday(value: date | datetime | str) -> bool:
    """Monday to Friday."""
    return pd.Timestamp(value).dayofweek < 5


def trailing_days(
    dates: pd.Series,
    days: int,
    day_type: DayType = "all",
    max_lookback: int = MAX_LOOKBACK_DAYS,
) -> list[pd.Timestamp]:
    """The last ``days`` calendar days of ``day_type``, ending at the latest date.

    Walks back from the most recent date in ``dates`` and keeps matching days
    until ``days`` are found or ``max_lookback`` days have been inspected.
    Days without data are included. Returned in ascending order.
    """
    if days < 1:
        raise ValueError("days must be >= 1")
    if day_type not in DAY_TYPES:
        raise ValueError(
            f"Unsupported day type: {day_type!r} (expected one of {', '.join(DAY_TYPES)})"
        )

    stamps = pd.to_datetime(dates).dropna()
    if stamps.empty:
        return []

    latest = stamps.max().normalize()
    selected: list[pd.Timestamp] = []
    for offset in range(max_lookback):
        day = latest - pd.Timedelta(days=offset)
        if day_type == "workdays" and not is_workday(day):
            continue
        if day_type == "weekends" and is_workday(day):
            continue
        selected.append(day)
        if len(selected) == days:
            break
    return sorted(selected)
