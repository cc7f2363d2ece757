from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from enum import Enum

import pandas as pd

from caseload_trends.features.directory import DirectoryEntry, Team
from caseload_trends.features.matching import MatchStrategy, PrefixMatchStrategy
from caseload_trends.preprocess.names import normalize_name, simple_name_key

LOGGER = logging.getLogger(__name__)

AMBIGUOUS_MATCH_CAVEAT = "ambiguous_match"


class Bucket(str, Enum):
    GENERAL = "general"
    OTROS = "otros"
    POR_REVISAR = "por_revisar"


@dataclass(frozen=True)
class Classification:
    bucket: Bucket
    team: Team
    matched_name: str | None = None
    n_candidates: int = 0
    caveat: str | None = None


class IdentityMatcher:
    """Reconcile raw operator names against the own and other process directories.

    Directories are fixed for the lifetime of a matcher; build a new one when
    the caller refreshes them. Classification order:

    1. exact normalized-key hit in the own directory -> ``general`` with the
       directory team;
    2. loose match (``strategy``) of simple keys against the other directory
       -> ``por_revisar``; the first matching entry in directory order wins;
    3. anything else, including empty names -> ``otros``.
    """

    def __init__(
        self,
        own_directory: Sequence[DirectoryEntry],
        other_directory: Sequence[DirectoryEntry],
        strategy: MatchStrategy | None = None,
    ) -> None:
        self.strategy = strategy or PrefixMatchStrategy()
        self._own: dict[str, DirectoryEntry] = {}
        for entry in own_directory:
            if entry.normalized_key and entry.normalized_key not in self._own:
                self._own[entry.normalized_key] = entry
        self._other = [entry for entry in other_directory if entry.simple_key]

    def classify(self, raw_name: object) -> Classification:
        key = normalize_name(raw_name)
        if not key:
            return Classification(bucket=Bucket.OTROS, team=Team.UNKNOWN)

        own_entry = self._own.get(key)
        if own_entry is not None:
            return Classification(
                bucket=Bucket.GENERAL,
                team=own_entry.team,
                matched_name=own_entry.display_name,
                n_candidates=1,
            )

        simple_key = simple_name_key(key)
        candidates = [
            entry for entry in self._other if self.strategy.matches(simple_key, entry.simple_key)
        ]
        if not candidates:
            return Classification(bucket=Bucket.OTROS, team=Team.UNKNOWN)

        caveat = None
        if len(candidates) > 1:
            caveat = AMBIGUOUS_MATCH_CAVEAT
            LOGGER.warning(
                "Ambiguous cross-process match for %r: %d candidates (%s); using %r",
                key,
                len(candidates),
                ", ".join(entry.display_name for entry in candidates),
                candidates[0].display_name,
            )
        return Classification(
            bucket=Bucket.POR_REVISAR,
            team=Team.UNKNOWN,
            matched_name=candidates[0].display_name,
            n_candidates=len(candidates),
            caveat=caveat,
        )


def classify(
    raw_name: object,
    own_directory: Sequence[DirectoryEntry],
    other_directory: Sequence[DirectoryEntry],
    strategy: MatchStrategy | None = None,
) -> Classification:
    return IdentityMatcher(own_directory, other_directory, strategy=strategy).classify(raw_name)


def classify_operators(names: Iterable[object], matcher: IdentityMatcher) -> pd.DataFrame:
    """One row per distinct operator key, in first-seen order."""
    rows: list[dict[str, object]] = []
    seen: set[str] = set()
    for raw_name in names:
        key = normalize_name(raw_name)
        if key in seen:
            continue
        seen.add(key)
        result = matcher.classify(raw_name)
        rows.append(
            {
                "operator_key": key,
                "operator": "" if not key else str(raw_name).strip(),
                "bucket": result.bucket.value,
                "team": result.team.value,
                "matched_name": result.matched_name,
                "n_candidates": result.n_candidates,
                "caveat": result.caveat,
            }
        )
    return pd.DataFrame(
        rows,
        columns=[
            "operator_key",
            "operator",
            "bucket",
            "team",
            "matched_name",
            "n_candidates",
            "caveat",
        ],
    )


def bucket_counts(classified: pd.DataFrame) -> dict[str, int]:
    counts = {bucket.value: 0 for bucket in Bucket}
    if not classified.empty:
        for bucket, value in classified["bucket"].value_counts().items():
            counts[str(bucket)] = int(value)
    return counts


def team_counts(classified: pd.DataFrame) -> dict[str, int]:
    """Operators per team among ``general`` rows (legend counts)."""
    counts = {team.value: 0 for team in Team}
    if not classified.empty:
        general = classified[classified["bucket"] == Bucket.GENERAL.value]
        for team, value in general["team"].value_counts().items():
            counts[str(team)] = int(value)
    return counts
