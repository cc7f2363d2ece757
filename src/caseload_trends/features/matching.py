from __future__ import annotations

from typing import Protocol

from rapidfuzz import fuzz

from caseload_trends.config import NamesConfig


class MatchStrategy(Protocol):
    """Loose comparison between two simple (alphanumeric-only) name keys."""

    def matches(self, left: str, right: str) -> bool: ...


class PrefixMatchStrategy:
    """Equal keys, or one key a prefix of the other.

    Handles truncation in either direction ("PEREZGARC" vs "PEREZGARCIA").
    Both keys must be at least ``min_length`` characters long before prefix
    containment is considered; short keys only match exactly.
    """

    def __init__(self, min_length: int = 5) -> None:
        self.min_length = max(1, int(min_length))

    def matches(self, left: str, right: str) -> bool:
        if not left or not right:
            return False
        if left == right:
            return True
        if len(left) < self.min_length or len(right) < self.min_length:
            return False
        return left.startswith(right) or right.startswith(left)


class FuzzyRatioStrategy:
    """Edit-distance similarity on simple keys, scored 0-100 by rapidfuzz."""

    def __init__(self, min_score: float = 90.0) -> None:
        self.min_score = min(max(float(min_score), 0.0), 100.0)

    def matches(self, left: str, right: str) -> bool:
        if not left or not right:
            return False
        return float(fuzz.ratio(left, right)) >= self.min_score


def build_match_strategy(config: NamesConfig) -> MatchStrategy:
    if config.match_strategy == "fuzzy":
        return FuzzyRatioStrategy(min_score=config.fuzzy_min_score)
    return PrefixMatchStrategy(min_length=config.min_prefix_length)
