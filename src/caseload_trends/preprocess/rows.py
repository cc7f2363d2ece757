from __future__ import annotations

import logging
from dataclasses import dataclass

import pandas as pd

from caseload_trends.preprocess.names import normalize_name

LOGGER = logging.getLogger(__name__)

REJECTION_REASONS = ("missing_operator", "invalid_date", "invalid_count", "negative_count")


@dataclass(frozen=True)
class RowValidation:
    rows: pd.DataFrame
    rejected: pd.DataFrame

    @property
    def n_rejected(self) -> int:
        return int(len(self.rejected))

    def rejected_by_reason(self) -> dict[str, int]:
        counts = {reason: 0 for reason in REJECTION_REASONS}
        if not self.rejected.empty:
            for reason, value in self.rejected["reason"].value_counts().items():
                counts[str(reason)] = int(value)
        return counts


def _parse_dates(values: pd.Series) -> pd.Series:
    # Offsets may differ row to row; everything is compared as naive UTC.
    stamps = pd.to_datetime(values, errors="coerce", format="ISO8601", utc=True)
    return stamps.dt.tz_convert(None).dt.normalize()


def validate_count_rows(df: pd.DataFrame) -> RowValidation:
    """Split operator/date/count rows into usable rows and rejected rows.

    A row is rejected when its operator normalizes to an empty key, its date
    does not parse, or its count is missing, non-integral or negative. One bad
    row never fails the batch. When there is no ``count`` column each row
    counts as 1.
    """
    for column in ("operator", "date"):
        if column not in df.columns:
            raise ValueError(f"Count rows missing column: {column}")

    working = df.reset_index(drop=True).copy()
    if "count" not in working.columns:
        working["count"] = 1

    dates = _parse_dates(working["date"])
    counts = pd.to_numeric(working["count"], errors="coerce")
    operator_keys = working["operator"].map(normalize_name)

    reason = pd.Series(pd.NA, index=working.index, dtype="object")
    # Later masks win: the first failing check in REJECTION_REASONS is reported.
    reason = reason.mask(counts < 0, "negative_count")
    reason = reason.mask(counts.isna() | (counts % 1 != 0), "invalid_count")
    reason = reason.mask(dates.isna(), "invalid_date")
    reason = reason.mask(operator_keys == "", "missing_operator")

    bad = reason.notna()
    rejected = working.loc[bad].copy()
    rejected["reason"] = reason.loc[bad]

    rows = working.loc[~bad].copy()
    rows["date"] = dates.loc[~bad]
    rows["count"] = counts.loc[~bad].astype("int64")

    if len(rejected):
        LOGGER.warning(
            "Rejected %d of %d count rows: %s",
            len(rejected),
            len(working),
            ", ".join(
                f"{name}={value}" for name, value in rejected["reason"].value_counts().items()
            ),
        )
    return RowValidation(rows=rows.reset_index(drop=True), rejected=rejected.reset_index(drop=True))
