from __future__ import annotations

import pandas as pd
import pytest

from caseload_trends.preprocess.rows import validate_count_rows


def test_validate_count_rows_rejects_bad_rows_and_keeps_the_rest() -> None:
    df = pd.DataFrame(
        {
            "operator": ["Ana", "", "Luis", "Eva", "Juan", "Rosa"],
            "date": ["2024-01-05", "2024-01-05", "not-a-date", "2024-01-06", "2024-01-07", "2024-01-08"],
            "count": ["3", "1", "2", "-1", "1.5", "0"],
        }
    )
    result = validate_count_rows(df)

    assert result.rows["operator"].tolist() == ["Ana", "Rosa"]
    assert result.rows["count"].tolist() == [3, 0]
    assert str(result.rows["date"].dtype).startswith("datetime64")
    assert result.n_rejected == 4
    assert result.rejected["reason"].tolist() == [
        "missing_operator",
        "invalid_date",
        "negative_count",
        "invalid_count",
    ]
    assert result.rejected_by_reason() == {
        "missing_operator": 1,
        "invalid_date": 1,
        "invalid_count": 1,
        "negative_count": 1,
    }


def test_validate_count_rows_counts_each_row_once_without_count_column() -> None:
    df = pd.DataFrame({"operator": ["Ana", "Ana"], "date": ["2024-01-05", "2024-01-05"]})
    result = validate_count_rows(df)

    assert result.rows["count"].tolist() == [1, 1]
    assert result.n_rejected == 0


def test_validate_count_rows_drops_time_of_day() -> None:
    df = pd.DataFrame({"operator": ["Ana"], "date": ["2024-01-05T17:45:00"], "count": [2]})
    result = validate_count_rows(df)

    assert result.rows.loc[0, "date"] == pd.Timestamp("2024-01-05")


def test_validate_count_rows_accepts_naive_and_offset_dates_together() -> None:
    df = pd.DataFrame(
        {
            "operator": ["Ana", "Luis", "Eva"],
            "date": ["2024-01-05", "2024-01-05T10:00:00+02:00", "sin fecha"],
            "count": ["1", "2", "3"],
        }
    )
    result = validate_count_rows(df)

    assert result.rows["date"].tolist() == [pd.Timestamp("2024-01-05")] * 2
    assert result.rows["count"].tolist() == [1, 2]
    assert result.rejected["reason"].tolist() == ["invalid_date"]


def test_validate_count_rows_converts_mixed_offsets_to_utc_days() -> None:
    df = pd.DataFrame(
        {
            "operator": ["Ana", "Luis"],
            "date": ["2024-01-05T10:00:00+01:00", "2024-01-06T23:30:00-03:00"],
            "count": ["1", "1"],
        }
    )
    result = validate_count_rows(df)

    assert result.n_rejected == 0
    assert result.rows["date"].tolist() == [
        pd.Timestamp("2024-01-05"),
        pd.Timestamp("2024-01-07"),
    ]


def test_validate_count_rows_requires_operator_and_date() -> None:
    with pytest.raises(ValueError, match="missing column: date"):
        validate_count_rows(pd.DataFrame({"operator": ["Ana"]}))
