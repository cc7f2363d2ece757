from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from caseload_trends.config import AppConfig, load_config


def test_app_config_defaults() -> None:
    config = AppConfig()

    assert config.columns.counts.operator == "operador"
    assert config.columns.directory.team == "sub_equipo"
    assert config.names.match_strategy == "prefix"
    assert config.names.min_prefix_length == 5
    assert config.periods.granularity == "year"
    assert config.trend.change_threshold == 0.15
    assert config.movers.window == 15
    assert config.movers.min_activity_ratio == 0.5
    assert config.outputs.tables_format == "parquet"


def test_shipped_default_config_matches_model_defaults() -> None:
    path = Path(__file__).resolve().parents[1] / "configs" / "default.yaml"
    assert load_config(path) == AppConfig()


def test_load_config_applies_overrides(tmp_path: Path) -> None:
    config_path = tmp_path / "config.yaml"
    config_path.write_text(
        """
columns:
  counts:
    operator: usuario
    count: null
names:
  match_strategy: fuzzy
  fuzzy_min_score: 85
periods:
  granularity: month
movers:
  window: 30
outputs:
  tables_format: csv
""".strip(),
        encoding="utf-8",
    )

    config = load_config(config_path)

    assert config.columns.counts.operator == "usuario"
    assert config.columns.counts.count is None
    assert config.columns.counts.date == "fecha"
    assert config.names.match_strategy == "fuzzy"
    assert config.names.fuzzy_min_score == 85
    assert config.periods.granularity == "month"
    assert config.movers.window == 30
    assert config.movers.top_n == 5
    assert config.outputs.tables_format == "csv"


def test_empty_config_file_uses_defaults(tmp_path: Path) -> None:
    config_path = tmp_path / "config.yaml"
    config_path.write_text("", encoding="utf-8")

    assert load_config(config_path) == AppConfig()


def test_unknown_top_level_key_is_rejected(tmp_path: Path) -> None:
    config_path = tmp_path / "config.yaml"
    config_path.write_text("charts:\n  enabled: true\n", encoding="utf-8")

    with pytest.raises(ValidationError):
        load_config(config_path)


def test_invalid_granularity_is_rejected(tmp_path: Path) -> None:
    config_path = tmp_path / "config.yaml"
    config_path.write_text("periods:\n  granularity: decade\n", encoding="utf-8")

    with pytest.raises(ValidationError):
        load_config(config_path)


def test_percentile_band_must_be_ordered(tmp_path: Path) -> None:
    config_path = tmp_path / "config.yaml"
    config_path.write_text(
        "trend:\n  lower_percentile: 0.8\n  upper_percentile: 0.2\n", encoding="utf-8"
    )

    with pytest.raises(ValueError, match="lower_percentile"):
        load_config(config_path)


def test_day_window_defaults_and_bounds(tmp_path: Path) -> None:
    assert AppConfig().periods.days == 20
    assert AppConfig().periods.day_type == "all"

    config_path = tmp_path / "config.yaml"
    config_path.write_text("periods:\n  days: 366\n", encoding="utf-8")
    with pytest.raises(ValidationError):
        load_config(config_path)

    config_path.write_text("periods:\n  days: 10\n  day_type: workdays\n", encoding="utf-8")
    config = load_config(config_path)
    assert config.periods.days == 10
    assert config.periods.day_type == "workdays"
