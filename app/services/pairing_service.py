# app/services/pairing_service.py
import logging
import math
from collections.abc import Sequence
from datetime import date, datetime, timezone

from fastapi import HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from app.core.plans import get_plan
from app.core.rounding import round_int
from app.models.interaction import Interaction
from app.models.profile import Profile
from app.repositories.interaction_repo import InteractionRepository
from app.repositories.match_repo import MatchRepository
from app.repositories.profile_repo import ProfileRepository
from app.schemas.pairing import (
    ExtraPairingData,
    FeedCandidate,
    FeedData,
    LikerCard,
    LikesPlanInfo,
    Pagination,
    PairingMatch,
    PairingMatchesData,
    PlanInfo,
    SwipeData,
    WhoLikedMeData,
)
from app.schemas.usage import PlanLimits
from app.services.compatibility_service import CompatibilityService
from app.services.qcs_service import calculate_age
from app.services.usage_service import DailyUsageLimiter

logger = logging.getLogger(__name__)

# QCS bands, best first: (label, exclusive lower bound, share of the target)
UPPER_BANDS: list[tuple[str, int, float]] = [
    ("80-100", 80, 0.2),
    ("60-80", 60, 0.3),
    ("40-60", 40, 0.2),
]
LOWEST_BAND = "0-40"

# How many eligible profiles to pull before distributing
CANDIDATE_POOL_SIZE = 200

EARTH_RADIUS_KM = 6371.0

MAX_EXTRA_PAIRINGS_PER_REQUEST = 10


def qcs_band(qcs: int | None) -> str:
    """Band label for a candidate QCS; a missing score counts as 0."""
    value = qcs or 0
    for label, lower, _ in UPPER_BANDS:
        if value > lower:
            return label
    return LOWEST_BAND


def quotas_for(target_size: int) -> dict[str, int]:
    """
    Per-band quotas derived from the target size (20/30/20/30 %).

    The lowest band receives whatever the upper bands leave; size 10
    gives 2/3/2/3.
    """
    quotas = {label: round_int(target_size * share) for label, _, share in UPPER_BANDS}
    quotas[LOWEST_BAND] = max(0, target_size - sum(quotas.values()))
    return quotas


def distribute(
    user_id: str,
    candidate_pool: Sequence[Profile],
    user_qcs: int | None,
    target_size: int = 10,
) -> list[Profile]:
    """
    Pick a QCS-diversified set of at most `target_size` candidates.

    Each upper band contributes up to its quota, in pool order. A short
    upper band is not topped up from the other upper bands; the lowest
    band fills every slot still open, and the result is truncated to the
    target.
    """
    quotas = quotas_for(target_size)
    buckets: dict[str, list[Profile]] = {label: [] for label in quotas}
    for candidate in candidate_pool:
        if candidate.user_id == user_id:
            continue
        buckets[qcs_band(candidate.total_qcs)].append(candidate)

    selected: list[Profile] = []
    for label, _, _ in UPPER_BANDS:
        selected.extend(buckets[label][: quotas[label]])

    remaining = target_size - len(selected)
    if remaining > 0:
        selected.extend(buckets[LOWEST_BAND][:remaining])

    logger.debug(
        "Distributed %d of %d candidates for %s (qcs=%s)",
        len(selected),
        len(candidate_pool),
        user_id,
        user_qcs,
    )
    return selected[:target_size]


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance between two coordinates."""
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lon / 2) ** 2
    )
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


class PairingService:
    """
    Candidate feeds and QCS-distributed pairings.

    Responsibilities:
      - build the eligible pool (exclusions, gender, state or radius)
      - paginated feed with plan-based unlocked/locked split
      - daily-limited pairing requests scored for compatibility
      - extra pairing credits, limited swipes and mutual matches
      - who-liked-me for plans that include it
    """

    def __init__(
        self,
        profile_repo: ProfileRepository,
        interaction_repo: InteractionRepository,
        match_repo: MatchRepository,
        compatibility_service: CompatibilityService,
        limiter: DailyUsageLimiter,
        target_size: int = 10,
        default_radius_km: float = 50.0,
    ):
        self.profile_repo = profile_repo
        self.interaction_repo = interaction_repo
        self.match_repo = match_repo
        self.compatibility_service = compatibility_service
        self.limiter = limiter
        self.target_size = target_size
        self.default_radius_km = default_radius_km

    # -------- Feed --------

    def feed(self, session: Session, user_id: str, page: int, limit: int) -> FeedData:
        """
        One page of candidates.

        Unlocking is positional over the whole ordered pool: only the first
        `profiles_shown_count + extra_pairings_left` candidates overall are
        unlocked, whichever page they land on. The rest of the page is only
        counted.
        """
        profile = self._get_profile(session, user_id)
        plan = get_plan(profile.plan_id)

        # Radius filtering happens after the query, so page over the filtered pool
        pool = self._candidate_pool(session, profile, limit=CANDIDATE_POOL_SIZE)

        extra = profile.extra_pairings_left or 0
        total_unlocked = plan.profiles_shown_count + extra

        start = (page - 1) * limit
        window = pool[start : start + limit]
        unlocked_end = max(0, min(len(window), total_unlocked - start))

        today = date.today()
        unlocked = [self._to_card(c, distance, today) for c, distance in window[:unlocked_end]]

        logger.info(
            "Feed for %s: page %d, %d candidates, %d unlocked (plan=%s, extra=%d)",
            user_id,
            page,
            len(window),
            len(unlocked),
            plan.id,
            extra,
        )

        return FeedData(
            unlocked=unlocked,
            locked_count=len(window) - unlocked_end,
            plan_info=PlanInfo(
                id=plan.id,
                base_profiles_shown=plan.profiles_shown_count,
                extra_pairings_left=extra,
                total_unlocked=total_unlocked,
            ),
            pagination=Pagination(page=page, limit=limit, total=len(pool)),
        )

    # -------- Pairing --------

    def pairing_matches(self, session: Session, user_id: str) -> PairingMatchesData:
        """
        Spend one daily pairing request on a QCS-distributed set of matches.

        Candidates whose compatibility cannot be computed are dropped.

        Raises:
            HTTPException(404): caller has no profile.
            HTTPException(429): daily pairing limit reached.
            HTTPException(500): database failure or usage not recorded.
        """
        profile = self._get_profile(session, user_id)

        usage = self.limiter.can_consume(session, user_id, profile.plan_id, "pairing")
        if not usage.can_request:
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail={"message": "Daily pairing limit reached", "usage": usage.model_dump()},
            )

        pool = [c for c, _ in self._candidate_pool(session, profile, limit=CANDIDATE_POOL_SIZE)]
        picked = distribute(user_id, pool, profile.total_qcs, self.target_size)

        today = date.today()
        matches: list[PairingMatch] = []
        for candidate in picked:
            # Read identity before any rollback expires the instance
            candidate_id = candidate.user_id
            try:
                score = self.compatibility_service.score_profiles(session, profile, candidate)
            except (HTTPException, SQLAlchemyError) as e:
                session.rollback()
                logger.warning("Skipping candidate %s for %s: %s", candidate_id, user_id, e)
                continue

            matches.append(
                PairingMatch(
                    candidate=self._to_card(candidate, None, today),
                    qcs_band=qcs_band(candidate.total_qcs),
                    compatibility_score=score,
                )
            )

        if not self.limiter.consume(session, user_id, "pairing"):
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to record pairing request",
            )

        usage = self.limiter.can_consume(session, user_id, profile.plan_id, "pairing")
        return PairingMatchesData(matches=matches, usage=usage)

    def request_extra_pairings(self, session: Session, user_id: str, count: int) -> ExtraPairingData:
        """
        Spend purchased extra pairing credits.

        Raises:
            HTTPException(400): count out of range or not enough credits.
            HTTPException(403): plan does not support extra pairings.
        """
        if not 1 <= count <= MAX_EXTRA_PAIRINGS_PER_REQUEST:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Count must be between 1 and {MAX_EXTRA_PAIRINGS_PER_REQUEST}",
            )

        profile = self._get_profile(session, user_id)
        plan = get_plan(profile.plan_id)

        if not plan.can_request_extra_pairings:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Plan does not support extra pairing requests",
            )

        available = profile.extra_pairings_left or 0
        if available < count:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Not enough extra pairings available ({available} left, {count} requested)",
            )

        try:
            profile.extra_pairings_left = Profile.extra_pairings_left - count
            profile.updated_at = datetime.now(timezone.utc)
            self.profile_repo.update(session, profile)
            session.commit()
            session.refresh(profile)
        except SQLAlchemyError as e:
            session.rollback()
            logger.error("Deducting extra pairings for %s failed: %s", user_id, e)
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to update extra pairings",
            )

        logger.info("Extra pairings consumed for %s: %d, %d left", user_id, count, profile.extra_pairings_left)
        plural = "s" if count > 1 else ""
        return ExtraPairingData(
            consumed=count,
            extra_pairings_left=profile.extra_pairings_left,
            message=f"{count} extra pairing{plural} activated",
        )

    # -------- Swipes --------

    def swipe(self, session: Session, user_id: str, target_user_id: str, direction: str) -> SwipeData:
        """
        Record a like/pass, limited by the plan's daily swipe quota.

        Raises:
            HTTPException(400): swiping on yourself.
            HTTPException(404): either profile missing.
            HTTPException(429): daily swipe limit reached.
        """
        if target_user_id == user_id:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Cannot swipe on your own profile",
            )

        profile = self._get_profile(session, user_id)
        self._get_profile(session, target_user_id)

        usage = self.limiter.can_consume(session, user_id, profile.plan_id, "swipe")
        if not usage.can_request:
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail={"message": "Daily swipe limit reached", "usage": usage.model_dump()},
            )

        if not self.limiter.consume(session, user_id, "swipe"):
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to record swipe usage",
            )

        interaction_type = "like" if direction == "right" else "pass"
        match = None
        try:
            self.interaction_repo.create(
                session,
                Interaction(
                    user_id=user_id,
                    target_user_id=target_user_id,
                    interaction_type=interaction_type,
                ),
            )
            if direction == "right" and self.interaction_repo.has_liked(session, target_user_id, user_id):
                match = self.match_repo.get_pair(session, user_id, target_user_id)
                if match is None:
                    match = self.match_repo.create(session, user_id, target_user_id)
                    logger.info("Match created between %s and %s", user_id, target_user_id)
            match_id = match.id if match is not None else None
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            logger.error("Recording swipe %s -> %s failed: %s", user_id, target_user_id, e)
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to record swipe",
            )

        usage = self.limiter.can_consume(session, user_id, profile.plan_id, "swipe")
        return SwipeData(
            target_user_id=target_user_id,
            interaction_type=interaction_type,
            match=match_id is not None,
            match_id=match_id,
            usage=usage,
        )

    # -------- Likes --------

    def who_liked_me(self, session: Session, user_id: str) -> WhoLikedMeData:
        """
        Users who swiped right on `user_id`, most recent like first.

        Raises:
            HTTPException(403): plan cannot see likes.
        """
        profile = self._get_profile(session, user_id)
        plan = get_plan(profile.plan_id)

        if not plan.can_see_who_liked_you:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail={
                    "message": "Upgrade to see who liked you",
                    "plan_info": {
                        "id": plan.id,
                        "can_see_who_liked_you": False,
                        "upgrade_required": True,
                    },
                },
            )

        try:
            liked_at: dict[str, datetime] = {}
            for like in self.interaction_repo.likes_received(session, user_id):
                liked_at.setdefault(like.user_id, like.created_at)
            likers = self.profile_repo.get_many(session, list(liked_at))
            matched = self.match_repo.matched_ids(session, user_id, list(likers))
        except SQLAlchemyError as e:
            logger.error("Loading likes for %s failed: %s", user_id, e)
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to load likes",
            )

        today = date.today()
        users: list[LikerCard] = []
        for liker_id, when in liked_at.items():
            liker = likers.get(liker_id)
            if liker is None:
                continue
            card = self._to_card(liker, None, today)
            users.append(
                LikerCard(
                    **card.model_dump(),
                    liked_at=when,
                    is_mutual_match=liker_id in matched,
                )
            )

        logger.info("Likes for %s: %d users, %d mutual", user_id, len(users), len(matched))
        return WhoLikedMeData(
            count=len(users),
            mutual_matches_count=len(matched),
            users=users,
            plan_info=LikesPlanInfo(id=plan.id, can_see_who_liked_you=True),
        )

    # -------- Limits --------

    def limits(self, session: Session, user_id: str) -> PlanLimits:
        """Today's usage for every limited action under the user's plan."""
        profile = self._get_profile(session, user_id)
        return self.limiter.snapshot(session, user_id, profile.plan_id)

    # -------- Helpers --------

    def _get_profile(self, session: Session, user_id: str) -> Profile:
        try:
            profile = self.profile_repo.get_by_id(session, user_id)
        except SQLAlchemyError as e:
            logger.error("Loading profile %s failed: %s", user_id, e)
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to load profile",
            )
        if profile is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"Profile not found for user {user_id}",
            )
        return profile

    def _candidate_pool(
        self,
        session: Session,
        profile: Profile,
        limit: int = CANDIDATE_POOL_SIZE,
    ) -> list[tuple[Profile, int | None]]:
        """
        Eligible candidates for `profile` with their rounded distance (km).

        Filters:
          - swiped / blocked / ghosted users (and the user themself)
          - preferred genders (male/female only)
          - same state when match_by_state, else within the match radius
            when the user has coordinates
        """
        now = datetime.now(timezone.utc)
        genders = [
            g.strip().lower()
            for g in (profile.preferred_genders or [])
            if isinstance(g, str) and g.strip().lower() in ("male", "female")
        ]
        by_state = bool(profile.match_by_state and profile.state)

        try:
            excluded = self.interaction_repo.excluded_target_ids(session, profile.user_id, now)
            excluded.add(profile.user_id)
            candidates = self.profile_repo.list_candidates(
                session,
                exclude_ids=excluded,
                genders=genders or None,
                state=profile.state if by_state else None,
                limit=limit,
            )
        except SQLAlchemyError as e:
            logger.error("Candidate query for %s failed: %s", profile.user_id, e)
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to load candidates",
            )

        has_location = profile.latitude is not None and profile.longitude is not None
        radius = profile.match_radius_km or self.default_radius_km

        results: list[tuple[Profile, int | None]] = []
        for candidate in candidates:
            distance = None
            if has_location and candidate.latitude is not None and candidate.longitude is not None:
                distance = haversine_km(
                    profile.latitude, profile.longitude, candidate.latitude, candidate.longitude
                )

            if not by_state and has_location and (distance is None or distance > radius):
                continue

            results.append((candidate, round_int(distance) if distance is not None else None))

        return results

    def _to_card(self, candidate: Profile, distance: int | None, today: date) -> FeedCandidate:
        return FeedCandidate(
            user_id=candidate.user_id,
            first_name=candidate.first_name,
            last_name=candidate.last_name,
            age=calculate_age(candidate.date_of_birth, today) if candidate.date_of_birth else None,
            university=candidate.university,
            bio=candidate.bio,
            interests=candidate.interests or [],
            profile_images=candidate.profile_images or [],
            total_qcs=candidate.total_qcs,
            gender=candidate.gender,
            distance=distance,
        )
