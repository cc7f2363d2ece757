from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

import pandas as pd

from caseload_trends.preprocess.names import normalize_name, simple_name_key


class Team(str, Enum):
    EVALUACION = "EVALUACION"
    REASIGNADOS = "REASIGNADOS"
    SUSPENDIDA = "SUSPENDIDA"
    RESPONSABLE = "RESPONSABLE"
    UNKNOWN = "UNKNOWN"

    @classmethod
    def parse(cls, value: object) -> Team:
        key = normalize_name(value)
        try:
            return cls(key)
        except ValueError:
            return cls.UNKNOWN


@dataclass(frozen=True)
class DirectoryEntry:
    display_name: str
    normalized_key: str
    simple_key: str
    team: Team = Team.UNKNOWN


def make_entry(name: object, team: object = None) -> DirectoryEntry:
    display = "" if name is None or (not isinstance(name, str) and pd.isna(name)) else str(name)
    return DirectoryEntry(
        display_name=display.strip(),
        normalized_key=normalize_name(display),
        simple_key=simple_name_key(display),
        team=Team.parse(team),
    )


def build_directory(df: pd.DataFrame) -> list[DirectoryEntry]:
    """Directory entries in row order from canonical ``name``/``team`` columns.

    Rows whose name normalizes to an empty key are dropped so that they can
    never act as a wildcard during matching.
    """
    if "name" not in df.columns:
        raise ValueError("Directory rows missing column: name")
    teams = df["team"] if "team" in df.columns else pd.Series(None, index=df.index)
    entries = [make_entry(name, team) for name, team in zip(df["name"], teams)]
    return [entry for entry in entries if entry.normalized_key]
