from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import pandas as pd

from caseload_trends.features.series import SeriesMatrix


@dataclass(frozen=True)
class DetectorResult:
    detector: str
    summary: dict[str, Any]
    tables: dict[str, pd.DataFrame]


class Detector:
    name: str

    def run(self, matrix: SeriesMatrix) -> DetectorResult:
        raise NotImplementedError
