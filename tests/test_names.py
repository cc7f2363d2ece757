from __future__ import annotations

import pandas as pd
import pytest

from caseload_trends.preprocess.names import add_name_features, normalize_name, simple_name_key


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("Juan   Pérez", "JUAN PEREZ"),
        ("  maría\tJOSÉ  núñez ", "MARIA JOSE NUNEZ"),
        ("JUAN PEREZ", "JUAN PEREZ"),
        ("", ""),
        ("   ", ""),
        (None, ""),
        (float("nan"), ""),
    ],
)
def test_normalize_name_strips_accents_case_and_spacing(raw: object, expected: str) -> None:
    assert normalize_name(raw) == expected


@pytest.mark.parametrize(
    "raw",
    ["", "Juan   Pérez", "ÁLVARO d'Ávila", "ΐ", "ǰosé", "straße", "Ñandú Ruiz", "Ｊｕａｎ"],
)
def test_normalize_name_is_idempotent(raw: str) -> None:
    once = normalize_name(raw)
    assert normalize_name(once) == once


def test_simple_name_key_drops_non_alphanumerics() -> None:
    assert simple_name_key("J. Pérez-García") == "JPEREZGARCIA"
    assert simple_name_key("Peña, Ana 2") == "PENAANA2"
    assert simple_name_key(None) == ""


def test_add_name_features_adds_strict_and_simple_keys() -> None:
    df = pd.DataFrame({"operator": ["Juan  Pérez", None]})
    out = add_name_features(df, column="operator")

    assert out.loc[0, "operator_key"] == "JUAN PEREZ"
    assert out.loc[0, "operator_simple_key"] == "JUANPEREZ"
    assert out.loc[1, "operator_key"] == ""
    assert "operator_key" not in df.columns
