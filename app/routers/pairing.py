# app/routers/pairing.py
from fastapi import APIRouter, Depends
from sqlmodel import Session

from app.core.auth import require_user_id
from app.core.config import get_settings
from app.database import get_session
from app.repositories.interaction_repo import InteractionRepository
from app.repositories.match_repo import MatchRepository
from app.repositories.profile_repo import ProfileRepository
from app.repositories.usage_repo import UsageRepository
from app.schemas.pairing import (
    ExtraPairingRequest,
    ExtraPairingResponse,
    FeedRequest,
    FeedResponse,
    PairingMatchesResponse,
    SwipeRequest,
    SwipeResponse,
    WhoLikedMeResponse,
)
from app.schemas.usage import PlanLimitsResponse
from app.services.pairing_service import PairingService
from app.services.usage_service import DailyUsageLimiter

# Pairing reuses the compatibility service (and its match cache)
from app.routers.compatibility import service as compatibility_service

settings = get_settings()

router = APIRouter(tags=["Pairing"])

profile_repo = ProfileRepository()
interaction_repo = InteractionRepository()
match_repo = MatchRepository()
usage_repo = UsageRepository()
limiter = DailyUsageLimiter(usage_repo)
service = PairingService(
    profile_repo,
    interaction_repo,
    match_repo,
    compatibility_service,
    limiter,
    target_size=settings.PAIRING_TARGET_SIZE,
    default_radius_km=settings.DEFAULT_MATCH_RADIUS_KM,
)


@router.post(
    "/pairing-feed-enhanced",
    response_model=FeedResponse,
)
def pairing_feed_enhanced(
    payload: FeedRequest,
    session: Session = Depends(get_session),
    user_id: str = Depends(require_user_id),
):
    """
    Paginated candidate feed.

    Only the first `profiles_shown_count + extra_pairings_left` candidates
    are returned unlocked; the rest are counted in `locked_count`.
    """
    data = service.feed(session, user_id, payload.page, payload.limit)
    return FeedResponse(data=data)


@router.post(
    "/pairing-matches",
    response_model=PairingMatchesResponse,
)
def pairing_matches(
    session: Session = Depends(get_session),
    user_id: str = Depends(require_user_id),
):
    """
    QCS-distributed matches with compatibility scores.

    Costs one daily pairing request; 429 once the plan's limit is reached.
    """
    data = service.pairing_matches(session, user_id)
    return PairingMatchesResponse(data=data)


@router.post(
    "/request-extra-pairings",
    response_model=ExtraPairingResponse,
)
def request_extra_pairings(
    payload: ExtraPairingRequest,
    session: Session = Depends(get_session),
    user_id: str = Depends(require_user_id),
):
    """Spend extra pairing credits (paid plans only)."""
    data = service.request_extra_pairings(session, user_id, payload.count)
    return ExtraPairingResponse(data=data)


@router.post(
    "/swipe-action",
    response_model=SwipeResponse,
)
def swipe_action(
    payload: SwipeRequest,
    session: Session = Depends(get_session),
    user_id: str = Depends(require_user_id),
):
    """
    Like (right) or pass (left) on a candidate.

    Counts against the plan's daily swipe limit. A right swipe on someone
    who already liked the caller creates a match.
    """
    data = service.swipe(session, user_id, payload.target_user_id, payload.direction)
    return SwipeResponse(data=data)


@router.get(
    "/pairing-limits",
    response_model=PlanLimitsResponse,
)
def pairing_limits(
    session: Session = Depends(get_session),
    user_id: str = Depends(require_user_id),
):
    """Today's usage and limits for pairing, swipe and blind-date requests."""
    return PlanLimitsResponse(data=service.limits(session, user_id))


@router.get(
    "/who-liked-me",
    response_model=WhoLikedMeResponse,
)
def who_liked_me(
    session: Session = Depends(get_session),
    user_id: str = Depends(require_user_id),
):
    """
    Users who liked the caller, with mutual-match flags.

    Auth:
      - plans with can_see_who_liked_you only (403 otherwise).
    """
    return WhoLikedMeResponse(data=service.who_liked_me(session, user_id))
