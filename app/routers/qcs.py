# app/routers/qcs.py
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, status
from sqlmodel import Session

from app.core.auth import get_token_claims, require_service_role
from app.core.config import get_settings
from app.database import get_session
from app.repositories.profile_repo import ProfileRepository
from app.repositories.qcs_repo import QCSRepository
from app.schemas.qcs import (
    QCSBulkSyncRequest,
    QCSBulkSyncResponse,
    QCSDiagnosis,
    QCSRead,
    QCSScoreRequest,
    QCSScoreResponse,
)
from app.services.ai_scorer import AIQualityScorer
from app.services.qcs_service import QCSService

settings = get_settings()

router = APIRouter(tags=["QCS"])

qcs_repo = QCSRepository()
profile_repo = ProfileRepository()
ai_scorer = AIQualityScorer(settings.QCS_AI_FUNCTION)
service = QCSService(qcs_repo, profile_repo, ai_scorer)


@router.post(
    "/qcs-scoring",
    response_model=QCSScoreResponse,
)
def qcs_scoring(
    payload: QCSScoreRequest,
    session: Session = Depends(get_session),
    claims: dict[str, Any] = Depends(get_token_claims),
):
    """
    (Re)compute the quality score of a profile.

    Scores the caller's own profile unless `user_id` is given.

    Auth:
      - scoring another user requires the service role.
    """
    caller_id = str(claims["sub"]) if claims.get("sub") else None
    target_id = payload.user_id or caller_id
    if not target_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="user_id is required",
        )
    if target_id != caller_id and claims.get("role") != "service_role":
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Service role required to score another user",
        )
    record = service.score_user(session, target_id)
    return QCSScoreResponse(data=QCSRead.model_validate(record))


@router.post(
    "/qcs-bulk-sync",
    response_model=QCSBulkSyncResponse | QCSDiagnosis,
    dependencies=[Depends(require_service_role)],
)
def qcs_bulk_sync(
    payload: QCSBulkSyncRequest,
    session: Session = Depends(get_session),
):
    """
    Maintenance entry point for scheduled jobs.

    Actions:
      - sync_all: rescore the least recently synced profiles
      - diagnose: report missing qcs rows and total_qcs drift

    Auth:
      - service role only.
    """
    if payload.action == "sync_all":
        return service.sync_all(session, batch_size=settings.QCS_SYNC_BATCH_SIZE)
    if payload.action == "diagnose":
        return service.diagnose(session, batch_size=settings.QCS_SYNC_BATCH_SIZE)

    raise HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail="Invalid action. Use 'sync_all' or 'diagnose'",
    )
