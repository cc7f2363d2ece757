from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field

import numpy as np
import pandas as pd

from caseload_trends.detectors.base import Detector, DetectorResult
from caseload_trends.detectors.stats import linear_regression
from caseload_trends.features.series import SeriesMatrix

LOGGER = logging.getLogger(__name__)

MOVER_COLUMNS = ["rank", "operator_key", "display_name", "slope", "start", "end", "series"]


@dataclass(frozen=True)
class Mover:
    operator_key: str
    display_name: str
    slope: float
    start: float
    end: float
    series: list[float]


@dataclass(frozen=True)
class MoversResult:
    """Workload momentum over the trailing window.

    ``top_increasing`` holds the steepest growing backlogs (operationally
    concerning), ``top_decreasing`` the steepest shrinking ones. ``scored``
    lists every operator that passed the activity filter in ascending slope
    order; ``excluded`` maps filtered-out operator keys to their active count.
    """

    window_dates: list[pd.Timestamp] = field(default_factory=list)
    top_increasing: list[Mover] = field(default_factory=list)
    top_decreasing: list[Mover] = field(default_factory=list)
    scored: list[Mover] = field(default_factory=list)
    excluded: dict[str, int] = field(default_factory=dict)

    @property
    def empty(self) -> bool:
        return not self.top_increasing and not self.top_decreasing


def _as_matrix(operators: SeriesMatrix | Mapping[str, Sequence[float]]) -> SeriesMatrix:
    if isinstance(operators, SeriesMatrix):
        return operators
    lengths = {len(values) for values in operators.values()}
    if len(lengths) > 1:
        raise ValueError("All operator series must share the same periods")
    values = pd.DataFrame.from_dict(
        {key: list(series) for key, series in operators.items()}, orient="index"
    )
    return SeriesMatrix(values=values)


def rank_movers(
    operators: SeriesMatrix | Mapping[str, Sequence[float]],
    window: int = 15,
    min_activity_ratio: float = 0.5,
    top_n: int = 5,
    min_periods: int = 5,
) -> MoversResult:
    """Rank operators by OLS slope over the most recent ``window`` periods.

    Operators whose count of non-zero periods in the window is below
    ``min_activity_ratio`` of the window length are excluded. Sorting is
    stable, so equal slopes keep input order in both lists. When the window
    holds fewer than ``min_periods`` periods or nobody is active enough the
    result is empty: "no conclusion" rather than an error.
    """
    if window < 1:
        raise ValueError("window must be >= 1")
    matrix = _as_matrix(operators)
    if matrix.empty:
        return MoversResult()

    windowed = matrix.values.iloc[:, -int(window) :]
    window_dates = list(windowed.columns)
    if len(window_dates) < min_periods:
        LOGGER.info(
            "Skipping movers ranking: %d periods available, %d required",
            len(window_dates),
            min_periods,
        )
        return MoversResult(window_dates=window_dates)

    threshold = float(min_activity_ratio) * len(window_dates)
    scored: list[Mover] = []
    excluded: dict[str, int] = {}
    for operator_key, row in windowed.iterrows():
        key = str(operator_key)
        series = row.to_numpy(dtype=float)
        active = int(np.count_nonzero(series))
        if active < threshold:
            excluded[key] = active
            continue
        fit = linear_regression(series)
        scored.append(
            Mover(
                operator_key=key,
                display_name=matrix.display_name(key),
                slope=fit[0] if fit is not None else 0.0,
                start=float(series[0]),
                end=float(series[-1]),
                series=series.tolist(),
            )
        )

    scored.sort(key=lambda mover: mover.slope)
    top_decreasing = scored[:top_n]
    top_increasing = sorted(scored, key=lambda mover: -mover.slope)[:top_n]
    if not scored:
        LOGGER.info("No operator met the activity threshold over %d periods", len(window_dates))
    return MoversResult(
        window_dates=window_dates,
        top_increasing=top_increasing,
        top_decreasing=top_decreasing,
        scored=scored,
        excluded=excluded,
    )


def _date_label(value: object) -> str:
    if isinstance(value, pd.Timestamp):
        return value.strftime("%Y-%m-%d")
    return str(value)


def movers_frame(movers: Sequence[Mover]) -> pd.DataFrame:
    rows = [
        {
            "rank": position,
            "operator_key": mover.operator_key,
            "display_name": mover.display_name,
            "slope": mover.slope,
            "start": mover.start,
            "end": mover.end,
            "series": ",".join(f"{value:g}" for value in mover.series),
        }
        for position, mover in enumerate(movers, start=1)
    ]
    return pd.DataFrame(rows, columns=MOVER_COLUMNS)


class MoversDetector(Detector):
    name = "movers"

    def __init__(
        self,
        window: int = 15,
        min_activity_ratio: float = 0.5,
        top_n: int = 5,
        min_periods: int = 5,
    ) -> None:
        self.window = max(2, int(window))
        self.min_activity_ratio = min(max(float(min_activity_ratio), 0.0), 1.0)
        self.top_n = max(1, int(top_n))
        self.min_periods = max(2, int(min_periods))

    def run(self, matrix: SeriesMatrix) -> DetectorResult:
        result = rank_movers(
            matrix,
            window=self.window,
            min_activity_ratio=self.min_activity_ratio,
            top_n=self.top_n,
            min_periods=self.min_periods,
        )
        excluded = pd.DataFrame(
            [
                {"operator_key": key, "display_name": matrix.display_name(key), "n_active": count}
                for key, count in result.excluded.items()
            ],
            columns=["operator_key", "display_name", "n_active"],
        )
        summary = {
            "window": self.window,
            "n_window_dates": len(result.window_dates),
            "window_start": _date_label(result.window_dates[0]) if result.window_dates else None,
            "window_end": _date_label(result.window_dates[-1]) if result.window_dates else None,
            "n_scored": len(result.scored),
            "n_excluded": len(result.excluded),
            "top_increasing": [mover.operator_key for mover in result.top_increasing],
            "top_decreasing": [mover.operator_key for mover in result.top_decreasing],
        }
        return DetectorResult(
            detector=self.name,
            summary=summary,
            tables={
                "top_increasing": movers_frame(result.top_increasing),
                "top_decreasing": movers_frame(result.top_decreasing),
                "scored": movers_frame(result.scored),
                "excluded": excluded,
            },
        )
