# app/services/attribute_matcher.py
"""
Single requirement vs. single quality matching.

A requirement value from a profile's `requirements` document is parsed
into one of four shapes before it is evaluated:

    None                      -> NoPreference   (always satisfied)
    ["a", "b", ...]           -> AnyOf          ("any"/"all" = wildcard)
    {"min": 10, "max": 20}    -> Range          (inclusive, numeric)
    anything else             -> Exact          (strict equality)

Scores are binary (0.0 / 1.0); weighting happens in the compatibility
service.
"""
import json
from functools import lru_cache
from typing import Any

# Tokens that turn a list requirement into "no filter"
WILDCARD_TOKENS = {"any", "all"}


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _same(a: Any, b: Any) -> bool:
    """Equality that keeps booleans distinct from 0/1."""
    if isinstance(a, bool) or isinstance(b, bool):
        return isinstance(a, bool) and isinstance(b, bool) and a == b
    return a == b


def _is_wildcard(token: Any) -> bool:
    if not isinstance(token, str):
        return False
    normalized = token.replace("_", "").replace("-", "").replace(" ", "").lower()
    return normalized in WILDCARD_TOKENS


class NoPreference:
    """Requirement absent: every quality satisfies it."""

    def matches(self, quality: Any) -> float:
        return 1.0


class AnyOf:
    """List requirement: quality (or one of its items) must be listed."""

    def __init__(self, options: list[Any]):
        self.options = options
        self.wildcard = any(_is_wildcard(o) for o in options)

    def matches(self, quality: Any) -> float:
        if self.wildcard:
            return 1.0
        if quality is None:
            return 0.0
        if isinstance(quality, list):
            hit = any(_same(o, q) for o in self.options for q in quality)
        else:
            hit = any(_same(o, quality) for o in self.options)
        return 1.0 if hit else 0.0


class Range:
    """Inclusive numeric range requirement."""

    def __init__(self, low: float, high: float):
        self.low = low
        self.high = high

    def matches(self, quality: Any) -> float:
        if not _is_number(quality):
            return 0.0
        return 1.0 if self.low <= quality <= self.high else 0.0


class Exact:
    """Scalar requirement: quality must be identical (no normalization)."""

    def __init__(self, value: Any):
        self.value = value

    def matches(self, quality: Any) -> float:
        return 1.0 if _same(quality, self.value) else 0.0


Requirement = NoPreference | AnyOf | Range | Exact


def parse_requirement(raw: Any) -> Requirement:
    """
    Classify a raw requirement value.

    Precedence follows the matching rules: null, list, numeric range,
    then scalar equality. Objects without numeric min/max fall through
    to equality.
    """
    if raw is None:
        return NoPreference()
    if isinstance(raw, list):
        return AnyOf(raw)
    if isinstance(raw, dict) and _is_number(raw.get("min")) and _is_number(raw.get("max")):
        return Range(raw["min"], raw["max"])
    return Exact(raw)


def match_score(requirement: Any, quality: Any) -> float:
    """Return 1.0 if `quality` satisfies `requirement`, else 0.0."""
    return parse_requirement(requirement).matches(quality)


def _serialize(value: Any) -> str:
    return json.dumps(value, sort_keys=True, separators=(",", ":"), default=str)


class MatchScoreCache:
    """
    Bounded memo of match_score keyed by a stable JSON serialization of
    (requirement, quality).

    The same requirement/quality pairs recur across most candidate
    comparisons. Backed by functools.lru_cache, which is safe for
    concurrent readers and writers.
    """

    def __init__(self, maxsize: int = 4096):
        self._lookup = lru_cache(maxsize=maxsize)(self._evaluate)

    @staticmethod
    def _evaluate(requirement_key: str, quality_key: str) -> float:
        return match_score(json.loads(requirement_key), json.loads(quality_key))

    def score(self, requirement: Any, quality: Any) -> float:
        """Memoized match_score."""
        return self._lookup(_serialize(requirement), _serialize(quality))

    def info(self):
        """lru_cache statistics (hits, misses, maxsize, currsize)."""
        return self._lookup.cache_info()

    def clear(self) -> None:
        self._lookup.cache_clear()
