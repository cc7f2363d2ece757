from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

import pandas as pd

from caseload_trends.config import Granularity
from caseload_trends.preprocess.periods import add_period_features

CELL_COLUMNS = ["operator_key", "display_name", "period", "count"]


@dataclass(frozen=True)
class OperatorPeriodSummary:
    operator_key: str
    display_name: str
    totals_by_period: dict[str, int]
    grand_total: int


@dataclass(frozen=True)
class PeriodReport:
    """Per-operator counts bucketed by period, with column and grand totals.

    ``table`` is wide (one column per period plus ``total``) and ordered by
    total descending; ``cells`` is the same data in long form.
    """

    granularity: Granularity
    periods: list[str]
    cells: pd.DataFrame
    table: pd.DataFrame
    period_totals: dict[str, int]
    grand_total: int

    def summaries(self) -> list[OperatorPeriodSummary]:
        out: list[OperatorPeriodSummary] = []
        for row in self.table.to_dict("records"):
            totals = {period: int(row[period]) for period in self.periods}
            out.append(
                OperatorPeriodSummary(
                    operator_key=str(row["operator_key"]),
                    display_name=str(row["display_name"]),
                    totals_by_period=totals,
                    grand_total=int(row["total"]),
                )
            )
        return out


def _display_names(records: pd.DataFrame) -> pd.Series:
    if "operator" not in records.columns:
        return records.groupby("operator_key", sort=False)["operator_key"].first()
    names = records["operator"].astype(str).str.strip()
    return names.groupby(records["operator_key"], sort=False).first()


def aggregate_counts(
    records: pd.DataFrame,
    granularity: Granularity,
    periods: Sequence[str] | None = None,
) -> PeriodReport:
    """Sum counts per (operator, period) at the requested granularity.

    ``records`` must carry ``operator_key``, ``date`` and ``count`` columns, as
    produced by row validation plus ``add_name_features``. Rows sharing an
    operator and period are summed. Operators present only through zero-count
    rows are kept with a zero total.

    When ``periods`` is given, only those period keys are reported, in the
    given order: rows outside them are left out and periods without data
    get zero-filled columns.
    """
    required = ["operator_key", "date", "count"]
    missing = [column for column in required if column not in records.columns]
    if missing:
        raise ValueError(f"Missing required columns for aggregation: {', '.join(missing)}")

    target_periods = None if periods is None else list(periods)
    working = records
    if not records.empty:
        working = add_period_features(records, granularity)
        if target_periods is not None:
            working = working[working["period"].isin(target_periods)]

    if working.empty:
        report_periods = target_periods or []
        return PeriodReport(
            granularity=granularity,
            periods=report_periods,
            cells=pd.DataFrame(columns=CELL_COLUMNS),
            table=pd.DataFrame(columns=["operator_key", "display_name", *report_periods, "total"]),
            period_totals={period: 0 for period in report_periods},
            grand_total=0,
        )

    display_names = _display_names(working)

    cells = (
        working.groupby(["operator_key", "period"], sort=True)["count"]
        .sum()
        .astype("int64")
        .reset_index()
    )
    cells.insert(1, "display_name", cells["operator_key"].map(display_names))
    if target_periods is None:
        target_periods = sorted(cells["period"].unique().tolist())

    table = (
        cells.pivot(index="operator_key", columns="period", values="count")
        .reindex(columns=target_periods)
        .fillna(0)
        .astype("int64")
    )
    table.columns.name = None
    table["total"] = table[target_periods].sum(axis=1).astype("int64")
    table = table.reset_index()
    table.insert(1, "display_name", table["operator_key"].map(display_names))
    table = table.sort_values(
        ["total", "operator_key"], ascending=[False, True], kind="mergesort"
    ).reset_index(drop=True)

    period_totals = {period: int(table[period].sum()) for period in target_periods}
    return PeriodReport(
        granularity=granularity,
        periods=target_periods,
        cells=cells,
        table=table,
        period_totals=period_totals,
        grand_total=int(cells["count"].sum()),
    )
