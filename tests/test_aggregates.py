from __future__ import annotations

import pandas as pd
import pytest

from caseload_trends.features.aggregates import aggregate_counts
from caseload_trends.preprocess.names import add_name_features
from caseload_trends.preprocess.rows import validate_count_rows


def _records(rows: list[tuple[str, str, int]]) -> pd.DataFrame:
    frame = pd.DataFrame(rows, columns=["operator", "date", "count"])
    return add_name_features(validate_count_rows(frame).rows, column="operator")


def test_duplicate_dates_are_summed_not_overwritten() -> None:
    records = _records([("A", "2024-01-05", 3), ("A", "2024-01-05", 2)])
    report = aggregate_counts(records, "date")

    assert report.periods == ["2024-01-05"]
    assert report.table.loc[0, "2024-01-05"] == 5
    assert report.table.loc[0, "total"] == 5
    assert report.grand_total == 5


def test_spelling_variants_collapse_into_one_operator() -> None:
    records = _records([("Juan Pérez", "2024-02-01", 1), ("JUAN   PEREZ", "2024-02-03", 4)])
    report = aggregate_counts(records, "month")

    assert report.table["operator_key"].tolist() == ["JUAN PEREZ"]
    assert report.table.loc[0, "display_name"] == "Juan Pérez"
    assert report.table.loc[0, "2024-02"] == 5


def test_quarter_report_orders_periods_and_operators() -> None:
    records = _records(
        [
            ("Ana", "2023-11-20", 2),
            ("Ana", "2024-02-10", 1),
            ("Luis", "2024-05-01", 7),
            ("Luis", "2024-06-30", 1),
            ("Eva", "2024-01-01", 0),
        ]
    )
    report = aggregate_counts(records, "quarter")

    assert report.periods == ["2023-Q4", "2024-Q1", "2024-Q2"]
    assert report.table["operator_key"].tolist() == ["LUIS", "ANA", "EVA"]
    assert report.table.set_index("operator_key").loc["LUIS", "2024-Q2"] == 8
    assert report.period_totals == {"2023-Q4": 2, "2024-Q1": 1, "2024-Q2": 8}


def test_zero_count_operators_are_kept() -> None:
    records = _records([("Eva", "2024-01-01", 0), ("Ana", "2024-01-02", 3)])
    report = aggregate_counts(records, "year")

    summaries = {summary.operator_key: summary for summary in report.summaries()}
    assert set(summaries) == {"ANA", "EVA"}
    assert summaries["EVA"].grand_total == 0
    assert summaries["EVA"].totals_by_period == {"2024": 0}


@pytest.mark.parametrize("granularity", ["year", "quarter", "month", "week", "date"])
def test_totals_are_conserved_across_rows_and_columns(granularity: str) -> None:
    records = _records(
        [
            ("Ana", "2023-12-31", 4),
            ("Ana", "2024-01-01", 1),
            ("Luis", "2024-01-01", 6),
            ("Luis", "2024-03-15", 2),
            ("Eva", "2024-07-04", 9),
            ("Eva", "2024-07-04", 1),
            ("Rosa", "2024-09-30", 0),
        ]
    )
    report = aggregate_counts(records, granularity)

    cell_sum = int(report.cells["count"].sum())
    operator_sum = sum(summary.grand_total for summary in report.summaries())
    column_sum = sum(report.period_totals.values())
    assert cell_sum == operator_sum == column_sum == report.grand_total == 23
    for summary in report.summaries():
        assert summary.grand_total == sum(summary.totals_by_period.values())


def test_empty_records_produce_empty_report() -> None:
    report = aggregate_counts(_records([]), "month")

    assert report.periods == []
    assert report.table.empty
    assert report.grand_total == 0
    assert report.summaries() == []


def test_aggregate_counts_requires_operator_key() -> None:
    with pytest.raises(ValueError, match="Missing required columns"):
        aggregate_counts(pd.DataFrame({"date": [], "count": []}), "year")


def test_fixed_periods_are_zero_filled_and_restrict_rows() -> None:
    records = _records(
        [
            ("Ana", "2024-03-04", 1),
            ("Ana", "2024-03-08", 2),
            ("Luis", "2024-02-01", 7),
            ("Eva", "2024-03-06", 0),
        ]
    )
    window = ["2024-03-04", "2024-03-05", "2024-03-06"]
    report = aggregate_counts(records, "date", periods=window)

    assert report.periods == window
    assert report.table["operator_key"].tolist() == ["ANA", "EVA"]
    ana = report.table.set_index("operator_key").loc["ANA"]
    assert [int(ana[day]) for day in window] == [1, 0, 0]
    assert report.period_totals == {"2024-03-04": 1, "2024-03-05": 0, "2024-03-06": 0}

    operator_sum = sum(summary.grand_total for summary in report.summaries())
    assert operator_sum == sum(report.period_totals.values()) == report.grand_total == 1


def test_fixed_periods_without_matching_rows_keep_every_column() -> None:
    records = _records([("Ana", "2024-01-01", 3)])
    report = aggregate_counts(records, "date", periods=["2024-03-04", "2024-03-05"])

    assert report.periods == ["2024-03-04", "2024-03-05"]
    assert report.table.empty
    assert list(report.table.columns) == [
        "operator_key",
        "display_name",
        "2024-03-04",
        "2024-03-05",
        "total",
    ]
    assert report.period_totals == {"2024-03-04": 0, "2024-03-05": 0}
    assert report.grand_total == 0
