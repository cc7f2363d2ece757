from __future__ import annotations

import re
import unicodedata

import pandas as pd

WHITESPACE_RE = re.compile(r"\s+")


def _strip_marks(text: str) -> str:
    decomposed = unicodedata.normalize("NFD", text)
    return "".join(char for char in decomposed if not unicodedata.combining(char))


def normalize_name(value: object) -> str:
    """Canonical comparison key: no accents, uppercase, single-spaced, trimmed."""
    if value is None:
        return ""
    if not isinstance(value, str):
        if pd.isna(value):
            return ""
        value = str(value)
    # Uppercasing can reintroduce combining marks (e.g. "ΐ"), so strip twice.
    text = _strip_marks(_strip_marks(value).upper())
    text = unicodedata.normalize("NFC", text)
    return WHITESPACE_RE.sub(" ", text).strip()


def simple_name_key(value: object) -> str:
    """Lossy alphanumeric-only key used for truncation/containment checks."""
    return "".join(char for char in normalize_name(value) if char.isalnum())


def add_name_features(df: pd.DataFrame, column: str = "operator") -> pd.DataFrame:
    working = df.copy()
    raw_name = working[column]
    working["operator_key"] = raw_name.map(normalize_name)
    working["operator_simple_key"] = working["operator_key"].map(simple_name_key)
    return working
