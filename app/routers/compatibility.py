# app/routers/compatibility.py
from fastapi import APIRouter, Depends
from sqlmodel import Session

from app.core.auth import require_user_id
from app.core.config import get_settings
from app.database import get_session
from app.repositories.compatibility_repo import CompatibilityRepository
from app.repositories.profile_repo import ProfileRepository
from app.schemas.compatibility import CompatibilityRequest, CompatibilityResponse
from app.services.attribute_matcher import MatchScoreCache
from app.services.compatibility_service import CompatibilityService

settings = get_settings()

router = APIRouter(tags=["Compatibility"])

compatibility_repo = CompatibilityRepository()
profile_repo = ProfileRepository()
match_cache = MatchScoreCache(maxsize=settings.MATCH_SCORE_CACHE_SIZE)
service = CompatibilityService(
    compatibility_repo,
    profile_repo,
    match_cache,
    cache_ttl_seconds=settings.COMPATIBILITY_CACHE_TTL_SECONDS,
)


@router.post(
    "/compatibility-scoring",
    response_model=CompatibilityResponse,
    response_model_exclude_none=True,
    dependencies=[Depends(require_user_id)],
)
def compatibility_scoring(
    payload: CompatibilityRequest,
    session: Session = Depends(get_session),
):
    """
    Score two users against each other (0-100).

    A stored score younger than the cache TTL is returned as
    {score, cached: true}; otherwise the score is recomputed and returned
    with its per-direction breakdown.
    """
    data = service.score_pair(session, payload.user1_id, payload.user2_id)
    return CompatibilityResponse(data=data)
