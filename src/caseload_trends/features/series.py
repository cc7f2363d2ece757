from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import date, datetime

import pandas as pd

from caseload_trends.preprocess.names import add_name_features
from caseload_trends.preprocess.rows import validate_count_rows


@dataclass(frozen=True)
class SeriesMatrix:
    """Operator x date counts; one zero-filled time series per operator.

    ``values`` is indexed by operator key with ascending date columns. Rows
    are ordered by the value on the latest date, highest first.
    """

    values: pd.DataFrame
    display_names: dict[str, str] = field(default_factory=dict)

    @property
    def dates(self) -> list[pd.Timestamp]:
        return list(self.values.columns)

    @property
    def operators(self) -> list[str]:
        return [str(key) for key in self.values.index]

    @property
    def empty(self) -> bool:
        return self.values.empty

    def series(self, operator_key: str) -> pd.Series:
        return self.values.loc[operator_key]

    def iter_series(self) -> Iterator[tuple[str, pd.Series]]:
        for operator_key, row in self.values.iterrows():
            yield str(operator_key), row

    def display_name(self, operator_key: str) -> str:
        return self.display_names.get(operator_key, operator_key)


def build_time_series(points: Iterable[tuple[date | datetime | str, float]]) -> pd.Series:
    """Ascending date-indexed series; values on duplicate dates are summed."""
    frame = pd.DataFrame(list(points), columns=["date", "value"])
    if frame.empty:
        return pd.Series(dtype="float64", index=pd.DatetimeIndex([], name="date"), name="value")
    frame["date"] = pd.to_datetime(frame["date"]).dt.normalize()
    return frame.groupby("date", sort=True)["value"].sum()


def build_series_matrix(
    rows: pd.DataFrame,
    dates: Sequence[date | datetime | str] | None = None,
) -> SeriesMatrix:
    """Pivot validated ``operator_key``/``date``/``count`` rows into a SeriesMatrix.

    ``dates`` fixes the date columns: missing days are zero-filled and rows on
    other days are ignored.
    """
    required = ["operator_key", "date", "count"]
    missing = [column for column in required if column not in rows.columns]
    if missing:
        raise ValueError(f"Missing required columns for series matrix: {', '.join(missing)}")
    if rows.empty or (dates is not None and len(dates) == 0):
        return SeriesMatrix(values=pd.DataFrame(dtype="int64"))

    display_source = rows["operator"] if "operator" in rows.columns else rows["operator_key"]
    display_names = (
        display_source.astype(str).str.strip().groupby(rows["operator_key"], sort=False).first()
    )

    values = rows.pivot_table(
        index="operator_key",
        columns="date",
        values="count",
        aggfunc="sum",
        fill_value=0,
    ).astype("int64")
    if dates is None:
        values = values.reindex(columns=sorted(values.columns))
    else:
        grid = sorted(pd.to_datetime(list(dates)).normalize())
        values = values.reindex(columns=grid, fill_value=0).astype("int64")
    values.columns.name = None
    values.index.name = "operator_key"

    latest = values.iloc[:, -1]
    order = (
        pd.DataFrame({"latest": latest.to_numpy(), "key": values.index.to_numpy()})
        .sort_values(["latest", "key"], ascending=[False, True], kind="mergesort")
        .index
    )
    values = values.iloc[order]
    return SeriesMatrix(values=values, display_names={str(k): v for k, v in display_names.items()})


def series_matrix_from_mapping(historical: Iterable[Mapping[str, object]]) -> SeriesMatrix:
    """Build a matrix from ``{"operator": ..., "date_to_count": {iso_date: n}}`` items.

    Entries are validated like any other count rows; malformed points are
    dropped and logged.
    """
    records: list[dict[str, object]] = []
    for item in historical:
        operator = item.get("operator")
        date_to_count = item.get("date_to_count") or {}
        if not isinstance(date_to_count, Mapping):
            raise ValueError("date_to_count must be a mapping of ISO date to count")
        for day, count in date_to_count.items():
            records.append({"operator": operator, "date": day, "count": count})

    frame = pd.DataFrame(records, columns=["operator", "date", "count"])
    validation = validate_count_rows(frame)
    return build_series_matrix(add_name_features(validation.rows, column="operator"))
