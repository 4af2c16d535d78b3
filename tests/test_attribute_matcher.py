# tests/test_attribute_matcher.py
"""
Tests for single requirement vs. quality matching.
"""
from __future__ import annotations

import pytest

from app.services.attribute_matcher import (
    AnyOf,
    Exact,
    MatchScoreCache,
    NoPreference,
    Range,
    match_score,
    parse_requirement,
)


def test_missing_requirement_always_matches():
    assert match_score(None, "tall") == 1.0
    assert match_score(None, None) == 1.0


@pytest.mark.parametrize("token", ["any", "Any", "ALL", "a_n-y", " all "])
def test_wildcard_tokens_match_everything(token):
    assert match_score(["slim", token], None) == 1.0
    assert match_score([token], "anything") == 1.0


def test_list_requirement_scalar_quality():
    assert match_score(["slim", "athletic"], "athletic") == 1.0
    assert match_score(["slim", "athletic"], "curvy") == 0.0


def test_list_requirement_list_quality_needs_overlap():
    assert match_score(["music", "art"], ["sports", "art"]) == 1.0
    assert match_score(["music", "art"], ["sports", "travel"]) == 0.0


def test_list_requirement_missing_quality():
    assert match_score(["slim"], None) == 0.0


def test_list_requirement_does_not_normalize_case():
    assert match_score(["Slim"], "slim") == 0.0


def test_range_is_inclusive():
    requirement = {"min": 160, "max": 180}
    assert match_score(requirement, 160) == 1.0
    assert match_score(requirement, 180) == 1.0
    assert match_score(requirement, 170.5) == 1.0
    assert match_score(requirement, 181) == 0.0


def test_range_rejects_non_numeric_quality():
    requirement = {"min": 0, "max": 1}
    assert match_score(requirement, "170") == 0.0
    assert match_score(requirement, True) == 0.0
    assert match_score(requirement, None) == 0.0


def test_partial_range_falls_back_to_equality():
    assert isinstance(parse_requirement({"min": 160}), Exact)
    assert match_score({"min": 160}, 170) == 0.0


def test_exact_match_is_strict():
    assert match_score("introvert", "introvert") == 1.0
    assert match_score("introvert", "Introvert") == 0.0
    assert match_score(1, True) == 0.0


def test_parse_requirement_shapes():
    assert isinstance(parse_requirement(None), NoPreference)
    assert isinstance(parse_requirement(["a"]), AnyOf)
    assert isinstance(parse_requirement({"min": 1, "max": 2}), Range)
    assert isinstance(parse_requirement("a"), Exact)


def test_cache_returns_same_scores_and_counts_hits():
    cache = MatchScoreCache(maxsize=8)
    assert cache.score(["slim"], "slim") == 1.0
    assert cache.score(["slim"], "slim") == 1.0
    assert cache.score({"max": 180, "min": 160}, 170) == 1.0
    # Key order does not matter
    assert cache.score({"min": 160, "max": 180}, 170) == 1.0

    info = cache.info()
    assert info.hits == 2
    assert info.misses == 2


def test_cache_is_bounded_and_clearable():
    cache = MatchScoreCache(maxsize=2)
    for value in ("a", "b", "c"):
        cache.score([value], value)
    assert cache.info().currsize == 2

    cache.clear()
    assert cache.info().currsize == 0
