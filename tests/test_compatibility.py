# tests/test_compatibility.py
"""
Tests for pairwise compatibility scoring and the per-pair cache.
"""
from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

import pytest
from fastapi import HTTPException

from app.models.compatibility import CompatibilityScore
from app.models.profile import Profile
from app.repositories.compatibility_repo import CompatibilityRepository, canonical_pair
from app.repositories.profile_repo import ProfileRepository
from app.services.attribute_matcher import MatchScoreCache
from app.services.compatibility_service import (
    MENTAL_WEIGHTS,
    PHYSICAL_WEIGHTS,
    CompatibilityService,
    compute_compatibility,
    weighted_score,
)

PICKY_REQUIREMENTS = {
    "physical": {
        "body_type": ["slim"],
        "height": {"min": 160, "max": 180},
        "skin_type": "fair",
        "face_type": "oval",
    },
    "mental": {
        "values": ["family"],
        "personality": "introvert",
        "interests": ["music"],
    },
}

CANDIDATE_QUALITIES = {
    "physical": {"body_type": "slim", "height": 190, "skin_type": "fair", "face_type": "round"},
    "mental": {"values": "family", "personality": "extrovert", "interests": ["music", "art"]},
}


@pytest.fixture
def cache():
    return MatchScoreCache(maxsize=128)


@pytest.fixture
def service(cache):
    return CompatibilityService(
        CompatibilityRepository(),
        ProfileRepository(),
        cache,
        cache_ttl_seconds=3600,
    )


def test_weight_tables_sum_to_one():
    assert sum(PHYSICAL_WEIGHTS.values()) == pytest.approx(1.0)
    assert sum(MENTAL_WEIGHTS.values()) == pytest.approx(1.0)


def test_no_requirements_is_full_match(cache):
    a = Profile(user_id="a")
    b = Profile(user_id="b", qualities=CANDIDATE_QUALITIES)
    score, breakdown = compute_compatibility(a, b, cache)
    assert score == 100.0
    assert breakdown.user_a_view.physical == 100
    assert breakdown.user_b_view.mental == 100


def test_weighted_partial_match(cache):
    a = Profile(user_id="a", requirements=PICKY_REQUIREMENTS)
    b = Profile(user_id="b", qualities=CANDIDATE_QUALITIES)
    score, breakdown = compute_compatibility(a, b, cache)

    # a sees b: physical 0.4 + 0.2, mental 0.4 + 0.3; b has no preferences
    assert breakdown.user_a_view.physical == 60
    assert breakdown.user_a_view.mental == 70
    assert breakdown.user_b_view.physical == 100
    assert score == pytest.approx(82.5)


def test_score_is_symmetric(cache):
    a = Profile(user_id="a", requirements=PICKY_REQUIREMENTS, qualities=CANDIDATE_QUALITIES)
    b = Profile(
        user_id="b",
        requirements={"physical": ["slim"], "mental": {"values": ["career"]}},
        qualities={"physical": {"body_type": "athletic"}, "mental": {"values": "career"}},
    )
    score_ab, _ = compute_compatibility(a, b, cache)
    score_ba, _ = compute_compatibility(b, a, cache)
    assert score_ab == score_ba
    assert 0 <= score_ab <= 100


def test_legacy_list_requirements(cache):
    a = Profile(user_id="a", requirements={"physical": ["slim", "tall"]})
    b = Profile(user_id="b", qualities={"physical": {"body_type": "slim", "height": 170}})
    score, breakdown = compute_compatibility(a, b, cache)
    assert breakdown.user_a_view.physical == 50
    assert score == pytest.approx(87.5)


def test_legacy_list_requirements_against_list_qualities(cache):
    assert weighted_score(["slim", "tall"], ["tall", "fair"], PHYSICAL_WEIGHTS, cache) == 0.5
    assert weighted_score(["music"], {"interests": ["music", "art"]}, MENTAL_WEIGHTS, cache) == 1.0
    assert weighted_score(["slim"], ["athletic", ["slim"]], PHYSICAL_WEIGHTS, cache) == 1.0
    assert weighted_score(["slim"], None, PHYSICAL_WEIGHTS, cache) == 0.0

    a = Profile(user_id="a", requirements={"mental": ["family", "growth"]})
    b = Profile(user_id="b", qualities={"mental": ["family", "growth"]})
    _, breakdown = compute_compatibility(a, b, cache)
    assert breakdown.user_a_view.mental == 100


def test_malformed_requirements_score_zero_and_warn(cache, caplog):
    a = Profile(user_id="a", requirements={"physical": "tall"})
    b = Profile(user_id="b")
    with caplog.at_level(logging.WARNING):
        score, breakdown = compute_compatibility(a, b, cache)
    assert breakdown.user_a_view.physical == 0
    assert score == pytest.approx(75.0)
    assert "Unrecognised requirement shape" in caplog.text


def test_score_pair_stores_canonical_row(session, make_profile, service):
    make_profile("zed", requirements=PICKY_REQUIREMENTS)
    make_profile("amy", qualities=CANDIDATE_QUALITIES)

    data = service.score_pair(session, "zed", "amy")
    assert data.cached is None
    assert data.breakdown is not None

    row = session.get(CompatibilityScore, canonical_pair("zed", "amy"))
    assert (row.user1_id, row.user2_id) == ("amy", "zed")
    assert row.compatibility_score == data.score
    # amy has no preferences, so her view of zed is a full match
    assert row.physical_score == 100


def test_score_pair_uses_fresh_cache(session, make_profile, service):
    make_profile("a")
    make_profile("b")
    now = datetime.now(timezone.utc)

    first = service.score_pair(session, "a", "b", now=now)
    second = service.score_pair(session, "b", "a", now=now + timedelta(minutes=30))

    assert second.cached is True
    assert second.breakdown is None
    assert second.score == first.score


def test_score_pair_recomputes_after_ttl(session, make_profile, service):
    make_profile("a")
    make_profile("b")
    now = datetime.now(timezone.utc)

    service.score_pair(session, "a", "b", now=now)
    later = service.score_pair(session, "a", "b", now=now + timedelta(hours=2))

    assert later.cached is None
    assert later.breakdown is not None


def test_score_pair_same_user_is_rejected(session, service):
    with pytest.raises(HTTPException) as exc:
        service.score_pair(session, "a", "a")
    assert exc.value.status_code == 400


def test_score_pair_missing_profile(session, make_profile, service):
    make_profile("a")
    with pytest.raises(HTTPException) as exc:
        service.score_pair(session, "a", "ghost")
    assert exc.value.status_code == 404
    assert "ghost" in exc.value.detail


# -------- HTTP --------


def test_compatibility_endpoint_fresh_then_cached(client, make_profile):
    make_profile("user-a", requirements=PICKY_REQUIREMENTS)
    make_profile("user-b", qualities=CANDIDATE_QUALITIES)
    payload = {"user1_id": "user-a", "user2_id": "user-b"}

    response = client.post("/api/v1/compatibility-scoring", json=payload)
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["data"]["score"] == pytest.approx(82.5)
    assert "cached" not in body["data"]
    assert body["data"]["breakdown"]["user_a_view"] == {"physical": 60, "mental": 70}

    response = client.post("/api/v1/compatibility-scoring", json=payload)
    assert response.json()["data"] == {"score": pytest.approx(82.5), "cached": True}


def test_compatibility_endpoint_errors(client, make_profile):
    make_profile("user-a")

    response = client.post(
        "/api/v1/compatibility-scoring",
        json={"user1_id": "user-a", "user2_id": "user-a"},
    )
    assert response.status_code == 400
    assert response.json()["success"] is False

    response = client.post(
        "/api/v1/compatibility-scoring",
        json={"user1_id": "user-a", "user2_id": "nobody"},
    )
    assert response.status_code == 404
    assert "nobody" in response.json()["error"]

    response = client.post("/api/v1/compatibility-scoring", json={"user1_id": " "})
    assert response.status_code == 400
    assert response.json()["success"] is False
    assert "user2_id" in response.json()["error"]
