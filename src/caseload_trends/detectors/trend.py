from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Literal

import numpy as np
import pandas as pd

from caseload_trends.detectors.base import Detector, DetectorResult
from caseload_trends.detectors.stats import (
    fitted_trend_line,
    linear_regression,
    nearest_rank_percentile,
)
from caseload_trends.features.series import SeriesMatrix

TrendDirection = Literal["up", "down", "flat"]
TREND_DIRECTIONS: tuple[TrendDirection, ...] = ("up", "down", "flat")


@dataclass(frozen=True)
class TrendResult:
    slope: float | None
    intercept: float | None
    classification: TrendDirection


def classify_trend(
    values: Sequence[float] | np.ndarray,
    lower_percentile: float = 0.10,
    upper_percentile: float = 0.90,
    change_threshold: float = 0.15,
) -> TrendResult:
    """Qualitative trend badge for a short series.

    Values outside the nearest-rank [p10, p90] band are dropped, then the mean
    of the last third is compared with the mean of the first third. A relative
    change strictly beyond ``change_threshold`` is ``up``/``down``; anything
    else, including series of 0 or 1 points, is ``flat``. Slope and intercept
    come from OLS over the untrimmed series.
    """
    series = np.asarray(values, dtype=float)
    if series.size <= 1:
        return TrendResult(slope=None, intercept=None, classification="flat")

    fit = linear_regression(series)
    slope, intercept = fit if fit is not None else (None, None)

    ordered = np.sort(series)
    low = nearest_rank_percentile(ordered, lower_percentile)
    high = nearest_rank_percentile(ordered, upper_percentile)
    trimmed = series[(series >= low) & (series <= high)]

    n = trimmed.size
    third = n // 3
    divisor = max(1, third)
    first = trimmed[:third]
    last = trimmed[n - third :] if third else trimmed[:0]
    avg_first = float(first.sum()) / divisor
    avg_last = float(last.sum()) / divisor

    pct = (avg_last - avg_first) / max(1.0, avg_first)
    if pct > change_threshold:
        classification: TrendDirection = "up"
    elif pct < -change_threshold:
        classification = "down"
    else:
        classification = "flat"
    return TrendResult(slope=slope, intercept=intercept, classification=classification)


class TrendDetector(Detector):
    name = "trends"

    def __init__(
        self,
        lower_percentile: float = 0.10,
        upper_percentile: float = 0.90,
        change_threshold: float = 0.15,
    ) -> None:
        self.lower_percentile = float(lower_percentile)
        self.upper_percentile = float(upper_percentile)
        self.change_threshold = float(change_threshold)

    def run(self, matrix: SeriesMatrix) -> DetectorResult:
        trend_rows: list[dict[str, object]] = []
        line_rows: list[dict[str, object]] = []

        for operator_key, series in matrix.iter_series():
            values = series.to_numpy(dtype=float)
            result = classify_trend(
                values,
                lower_percentile=self.lower_percentile,
                upper_percentile=self.upper_percentile,
                change_threshold=self.change_threshold,
            )
            trend_rows.append(
                {
                    "operator_key": operator_key,
                    "display_name": matrix.display_name(operator_key),
                    "n_points": int(values.size),
                    "n_active": int((values > 0).sum()),
                    "latest": float(values[-1]) if values.size else float("nan"),
                    "slope": result.slope,
                    "intercept": result.intercept,
                    "classification": result.classification,
                }
            )
            fitted = fitted_trend_line(values)
            for day, value, predicted in zip(series.index, values, fitted):
                line_rows.append(
                    {
                        "operator_key": operator_key,
                        "date": day,
                        "value": value,
                        "trend": predicted,
                    }
                )

        trends = pd.DataFrame(
            trend_rows,
            columns=[
                "operator_key",
                "display_name",
                "n_points",
                "n_active",
                "latest",
                "slope",
                "intercept",
                "classification",
            ],
        )
        lines = pd.DataFrame(line_rows, columns=["operator_key", "date", "value", "trend"])

        summary: dict[str, object] = {
            "n_operators": int(len(trends)),
            "n_dates": int(len(matrix.dates)),
        }
        for direction in TREND_DIRECTIONS:
            summary[f"n_{direction}"] = int((trends["classification"] == direction).sum())
        return DetectorResult(
            detector=self.name,
            summary=summary,
            tables={"operator_trends": trends, "trend_lines": lines},
        )
