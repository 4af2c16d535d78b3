# app/services/compatibility_service.py
import logging
from datetime import datetime, timedelta, timezone
from typing import Any

from fastapi import HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from app.models.compatibility import CompatibilityScore
from app.models.profile import Profile
from app.repositories.compatibility_repo import CompatibilityRepository, canonical_pair
from app.repositories.profile_repo import ProfileRepository
from app.schemas.compatibility import (
    CompatibilityBreakdown,
    CompatibilityData,
    DirectionView,
)
from app.core.rounding import round_half_up, round_int
from app.services.attribute_matcher import MatchScoreCache

logger = logging.getLogger(__name__)

# Trait weights per category; each table sums to 1.0
PHYSICAL_WEIGHTS: dict[str, float] = {
    "skin_type": 0.2,
    "body_type": 0.4,
    "height": 0.3,
    "face_type": 0.1,
}

MENTAL_WEIGHTS: dict[str, float] = {
    "values": 0.4,
    "personality": 0.3,
    "interests": 0.3,
}

# Share of each category in one direction's score
PHYSICAL_SHARE = 0.5
MENTAL_SHARE = 0.5


def _group(document: Any, name: str) -> Any:
    """Pull `physical` / `mental` out of a qualities/requirements document."""
    if not isinstance(document, dict):
        return {}
    value = document.get(name)
    return {} if value is None else value


def weighted_score(
    reqs: Any,
    quals: Any,
    weights: dict[str, float],
    cache: MatchScoreCache,
) -> float:
    """
    Score how well `quals` satisfies `reqs` for one trait category (0..1).

    Formats:
      - list (legacy): fraction of required values present anywhere in
        quals, a dict or a list (list values are flattened); empty list = 1.0
      - dict (weighted): sum of weight * match_score over the weight table
      - anything else: 0.0
    """
    if isinstance(reqs, list):
        if not reqs:
            return 1.0
        have: list[Any] = []
        if isinstance(quals, dict):
            values = list(quals.values())
        elif isinstance(quals, list):
            values = quals
        else:
            values = []
        for value in values:
            if isinstance(value, list):
                have.extend(value)
            else:
                have.append(value)
        matched = sum(1 for r in reqs if r in have)
        return matched / len(reqs)

    if isinstance(reqs, dict):
        quals = quals if isinstance(quals, dict) else {}
        score = 0.0
        for trait, weight in weights.items():
            score += weight * cache.score(reqs.get(trait), quals.get(trait))
        return score

    logger.warning("Unrecognised requirement shape %s; scoring 0.0", type(reqs).__name__)
    return 0.0


def direction_scores(
    requester: Profile,
    candidate: Profile,
    cache: MatchScoreCache,
) -> tuple[float, float]:
    """(physical, mental) for requester's requirements vs candidate's qualities."""
    physical = weighted_score(
        _group(requester.requirements, "physical"),
        _group(candidate.qualities, "physical"),
        PHYSICAL_WEIGHTS,
        cache,
    )
    mental = weighted_score(
        _group(requester.requirements, "mental"),
        _group(candidate.qualities, "mental"),
        MENTAL_WEIGHTS,
        cache,
    )
    return physical, mental


def compute_compatibility(
    user_a: Profile,
    user_b: Profile,
    cache: MatchScoreCache,
) -> tuple[float, CompatibilityBreakdown]:
    """
    Symmetric compatibility score (0-100, 2 decimals).

    Each direction is 0.5 * physical + 0.5 * mental; the final score is the
    mean of both directions, so score(A, B) == score(B, A).
    """
    physical_a, mental_a = direction_scores(user_a, user_b, cache)
    physical_b, mental_b = direction_scores(user_b, user_a, cache)

    score_a = PHYSICAL_SHARE * physical_a + MENTAL_SHARE * mental_a
    score_b = PHYSICAL_SHARE * physical_b + MENTAL_SHARE * mental_b

    final_score = round_half_up(((score_a + score_b) / 2) * 100, 2)

    breakdown = CompatibilityBreakdown(
        user_a_view=DirectionView(
            physical=round_int(physical_a * 100),
            mental=round_int(mental_a * 100),
        ),
        user_b_view=DirectionView(
            physical=round_int(physical_b * 100),
            mental=round_int(mental_b * 100),
        ),
    )
    return final_score, breakdown


class CompatibilityService:
    """
    Pairwise compatibility with a persisted per-pair cache.

    Responsibilities:
      - load both profiles (404 if either is missing)
      - serve a stored score if it is younger than the cache TTL
      - otherwise compute, overwrite the pair row and return the breakdown
    """

    def __init__(
        self,
        compatibility_repo: CompatibilityRepository,
        profile_repo: ProfileRepository,
        match_cache: MatchScoreCache,
        cache_ttl_seconds: int = 24 * 60 * 60,
    ):
        self.compatibility_repo = compatibility_repo
        self.profile_repo = profile_repo
        self.match_cache = match_cache
        self.cache_ttl = timedelta(seconds=cache_ttl_seconds)

    def score_pair(
        self,
        session: Session,
        user1_id: str,
        user2_id: str,
        now: datetime | None = None,
    ) -> CompatibilityData:
        """
        Return the compatibility of two users, cached for the TTL.

        Raises:
            HTTPException(400): same user on both sides.
            HTTPException(404): a profile is missing.
            HTTPException(500): database failure.
        """
        if user1_id == user2_id:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="user1_id and user2_id must be different users",
            )

        now = now or datetime.now(timezone.utc)

        try:
            cached = self.compatibility_repo.get_pair(session, user1_id, user2_id)
            if cached is not None and self._is_fresh(cached, now):
                return CompatibilityData(score=cached.compatibility_score, cached=True)

            profiles = self.profile_repo.get_many(session, [user1_id, user2_id])
        except SQLAlchemyError as e:
            logger.error("Compatibility lookup failed for %s/%s: %s", user1_id, user2_id, e)
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to load compatibility data",
            )

        missing = [uid for uid in (user1_id, user2_id) if uid not in profiles]
        if missing:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"Profile not found: {', '.join(missing)}",
            )

        return self._compute_and_store(session, profiles[user1_id], profiles[user2_id], now)

    def score_profiles(
        self,
        session: Session,
        user_a: Profile,
        user_b: Profile,
        now: datetime | None = None,
    ) -> float:
        """
        Cached score for two already-loaded profiles (used by pairing).

        Lookup and storage failures propagate to the caller.
        """
        now = now or datetime.now(timezone.utc)
        cached = self.compatibility_repo.get_pair(session, user_a.user_id, user_b.user_id)
        if cached is not None and self._is_fresh(cached, now):
            return cached.compatibility_score
        return self._compute_and_store(session, user_a, user_b, now).score

    # -------- Helpers --------

    def _is_fresh(self, row: CompatibilityScore, now: datetime) -> bool:
        calculated_at = row.calculated_at
        # sqlite hands back naive datetimes; rows are always written in UTC
        if calculated_at.tzinfo is None:
            calculated_at = calculated_at.replace(tzinfo=timezone.utc)
        return now - calculated_at < self.cache_ttl

    def _compute_and_store(
        self,
        session: Session,
        user_a: Profile,
        user_b: Profile,
        now: datetime,
    ) -> CompatibilityData:
        score, breakdown = compute_compatibility(user_a, user_b, self.match_cache)
        logger.info(
            "Compatibility score | userA=%s userB=%s score=%s",
            user_a.user_id,
            user_b.user_id,
            score,
        )

        # Stored physical/mental are from the canonical first user's view
        first_id, second_id = canonical_pair(user_a.user_id, user_b.user_id)
        view = breakdown.user_a_view if first_id == user_a.user_id else breakdown.user_b_view

        row = CompatibilityScore(
            user1_id=first_id,
            user2_id=second_id,
            compatibility_score=score,
            physical_score=view.physical,
            mental_score=view.mental,
            calculated_at=now,
        )
        try:
            self.compatibility_repo.upsert(session, row)
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            logger.error("Storing compatibility for %s/%s failed: %s", first_id, second_id, e)
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to store compatibility score",
            )

        return CompatibilityData(score=score, breakdown=breakdown)
