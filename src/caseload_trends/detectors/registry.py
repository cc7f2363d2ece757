from __future__ import annotations

from caseload_trends.config import AppConfig
from caseload_trends.detectors.base import Detector
from caseload_trends.detectors.movers import MoversDetector
from caseload_trends.detectors.trend import TrendDetector


def trend_detector(config: AppConfig) -> TrendDetector:
    return TrendDetector(
        lower_percentile=config.trend.lower_percentile,
        upper_percentile=config.trend.upper_percentile,
        change_threshold=config.trend.change_threshold,
    )


def default_detectors(config: AppConfig) -> list[Detector]:
    return [
        trend_detector(config),
        MoversDetector(
            window=config.movers.window,
            min_activity_ratio=config.movers.min_activity_ratio,
            top_n=config.movers.top_n,
            min_periods=config.movers.min_periods,
        ),
    ]
