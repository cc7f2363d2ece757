from __future__ import annotations

import math
from collections.abc import Sequence

import numpy as np


def linear_regression(values: Sequence[float] | np.ndarray) -> tuple[float, float] | None:
    """Ordinary least squares of ``values`` against their index ``0..n-1``.

    Returns ``(slope, intercept)``, or ``None`` when there are fewer than two
    points or the denominator vanishes.
    """
    y = np.asarray(values, dtype=float)
    n = y.size
    if n <= 1:
        return None

    x = np.arange(n, dtype=float)
    sum_x = float(x.sum())
    sum_y = float(y.sum())
    sum_xy = float((x * y).sum())
    sum_xx = float((x * x).sum())

    denominator = n * sum_xx - sum_x * sum_x
    if denominator == 0:
        return None
    slope = (n * sum_xy - sum_x * sum_y) / denominator
    intercept = (sum_y - slope * sum_x) / n
    return slope, intercept


def fitted_trend_line(values: Sequence[float] | np.ndarray) -> np.ndarray:
    """Predicted OLS values over the index, floored at zero (counts)."""
    y = np.asarray(values, dtype=float)
    fit = linear_regression(y)
    if fit is None:
        return np.full(y.size, np.nan)
    slope, intercept = fit
    return np.maximum(0.0, slope * np.arange(y.size, dtype=float) + intercept)


def nearest_rank_percentile(sorted_values: Sequence[float] | np.ndarray, p: float) -> float:
    """Value at index ``floor(n * p)`` of an ascending sequence."""
    ordered = np.asarray(sorted_values, dtype=float)
    if ordered.size == 0:
        raise ValueError("percentile of empty sequence")
    index = min(max(int(math.floor(ordered.size * p)), 0), ordered.size - 1)
    return float(ordered[index])
