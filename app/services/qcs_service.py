# app/services/qcs_service.py
import logging
from datetime import date, datetime, timezone

from fastapi import HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from app.core.rounding import round_int
from app.models.profile import Profile
from app.models.qcs import QCSRecord
from app.repositories.profile_repo import ProfileRepository
from app.repositories.qcs_repo import QCSRepository
from app.schemas.qcs import (
    QCSBulkSyncResponse,
    QCSDiagnosis,
    QCSDrift,
    QCSSyncDetail,
)
from app.services.ai_scorer import AIQualityScorer

logger = logging.getLogger(__name__)

# Maximum points per category
CATEGORY_MAX: dict[str, float] = {
    "bio": 20,
    "interests": 15,
    "education": 25,
    "age": 20,
    "physical": 10,
    "personality": 10,
}

# Most desirable age; each year away costs one age point
OPTIMAL_AGE = 22

TOP_TIER_MARKERS = ("iit", "nit", "iiit")
INSTITUTION_MARKERS = ("university", "college")


def calculate_age(date_of_birth: date, today: date) -> int:
    """Whole years between birth and today (birthday not yet reached = one less)."""
    age = today.year - date_of_birth.year
    if (today.month, today.day) < (date_of_birth.month, date_of_birth.day):
        age -= 1
    return age


def _education_score(university: str | None) -> float:
    uni = (university or "").strip().lower()
    if not uni:
        return 5
    if any(marker in uni for marker in TOP_TIER_MARKERS):
        return 25
    if any(marker in uni for marker in INSTITUTION_MARKERS):
        return 18
    return 12


def category_scores(profile: Profile, today: date) -> dict[str, float]:
    """Raw points per QCS category, each capped at CATEGORY_MAX."""
    bio_score = min(20, len(profile.bio or "") / 5)
    interests_score = min(15, len(profile.interests or []) * 2.5)

    age_score = 0.0
    if profile.date_of_birth:
        age = calculate_age(profile.date_of_birth, today)
        age_score = max(0, 20 - abs(age - OPTIMAL_AGE))

    physical_score = 4
    if profile.height and profile.height > 0:
        physical_score += 2
    if profile.body_type:
        physical_score += 2
    if profile.skin_tone:
        physical_score += 2

    personality_score = 0
    if profile.personality_type:
        personality_score += 3
    if profile.values:
        personality_score += 3
    if profile.mindset:
        personality_score += 2
    if profile.lifestyle:
        personality_score += 2

    return {
        "bio": bio_score,
        "interests": interests_score,
        "education": _education_score(profile.university),
        "age": age_score,
        "physical": physical_score,
        "personality": personality_score,
    }


def compute_qcs(profile: Profile, today: date | None = None) -> tuple[int, dict[str, float]]:
    """
    Deterministic profile quality score.

    Returns:
        (total 0-100, per-category fraction of each category's max)
    """
    today = today or date.today()
    scores = category_scores(profile, today)

    total = max(0, min(100, round_int(sum(scores.values()))))
    per_category = {
        name: round(points / CATEGORY_MAX[name], 4) for name, points in scores.items()
    }
    return total, per_category


class QCSService:
    """
    Business logic for profile quality scores.

    Responsibilities:
      - compute the deterministic score (+ optional AI score, informational)
      - upsert the qcs row and mirror total_qcs onto the profile in one
        transaction so the two never diverge
      - bulk sync and drift diagnostics for maintenance jobs
    """

    def __init__(
        self,
        qcs_repo: QCSRepository,
        profile_repo: ProfileRepository,
        ai_scorer: AIQualityScorer,
    ):
        self.qcs_repo = qcs_repo
        self.profile_repo = profile_repo
        self.ai_scorer = ai_scorer

    # -------- Single profile --------

    def score_user(self, session: Session, user_id: str) -> QCSRecord:
        """
        Rescore one profile and persist the result.

        Raises:
            HTTPException(404): profile not found.
            HTTPException(500): database failure.
        """
        try:
            profile = self.profile_repo.get_by_id(session, user_id)
        except SQLAlchemyError as e:
            logger.error("Loading profile %s for QCS failed: %s", user_id, e)
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to load profile",
            )

        if profile is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"Profile not found for user {user_id}",
            )

        try:
            record = self._rescore(session, profile)
            session.commit()
            session.refresh(record)
        except SQLAlchemyError as e:
            session.rollback()
            logger.error("QCS update failed for %s: %s", user_id, e)
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to store QCS",
            )

        logger.info("QCS updated for %s: %s", user_id, record.total_score)
        return record

    # -------- Maintenance --------

    def sync_all(self, session: Session, batch_size: int = 100) -> QCSBulkSyncResponse:
        """
        Rescore a batch of profiles (least recently synced first).

        A failure on one profile is recorded in `details` and the batch
        continues.
        """
        try:
            profiles = self.profile_repo.list_for_sync(session, limit=batch_size)
        except SQLAlchemyError as e:
            logger.error("Failed to fetch profiles for QCS sync: %s", e)
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to fetch profiles",
            )

        logger.info("Starting QCS bulk sync for %d profiles", len(profiles))

        # Snapshot before any rollback expires the loaded rows
        snapshots = [(p.user_id, p.display_name, p.total_qcs or 0) for p in profiles]

        details: list[QCSSyncDetail] = []
        success_count = 0

        for user_id, name, old_score in snapshots:
            try:
                profile = self.profile_repo.get_by_id(session, user_id)
                if profile is None:
                    raise LookupError("profile disappeared during sync")
                record = self._rescore(session, profile)
                session.commit()
            except (SQLAlchemyError, LookupError) as e:
                session.rollback()
                logger.error("QCS sync failed for %s: %s", user_id, e)
                details.append(
                    QCSSyncDetail(
                        user_id=user_id,
                        name=name,
                        old_score=old_score,
                        new_score=old_score,
                        status="failed",
                        error=str(e),
                    )
                )
                continue

            success_count += 1
            logger.info("Updated QCS for %s: %s -> %s", name, old_score, record.total_score)
            details.append(
                QCSSyncDetail(
                    user_id=user_id,
                    name=name,
                    old_score=old_score,
                    new_score=record.total_score,
                    status="success",
                    logic_score=record.logic_score,
                    ai_score=record.ai_score,
                )
            )

        failed_count = len(snapshots) - success_count
        logger.info(
            "QCS bulk sync complete: %d success, %d failed out of %d",
            success_count,
            failed_count,
            len(snapshots),
        )

        return QCSBulkSyncResponse(
            total_profiles=len(snapshots),
            successfully_synced=success_count,
            failed=failed_count,
            details=details,
            timestamp=datetime.now(timezone.utc),
        )

    def diagnose(self, session: Session, batch_size: int = 100) -> QCSDiagnosis:
        """
        Report profiles with no qcs row, or whose total_qcs disagrees with it.
        """
        try:
            profiles = self.profile_repo.list_for_sync(session, limit=batch_size)
            records = self.qcs_repo.list_by_users(session, [p.user_id for p in profiles])
        except SQLAlchemyError as e:
            logger.error("QCS diagnostics query failed: %s", e)
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to run diagnostics",
            )

        missing: list[str] = []
        drift: list[QCSDrift] = []
        for profile in profiles:
            record = records.get(profile.user_id)
            if record is None:
                missing.append(profile.user_id)
            elif profile.total_qcs != record.total_score:
                drift.append(
                    QCSDrift(
                        user_id=profile.user_id,
                        profile_score=profile.total_qcs,
                        qcs_score=record.total_score,
                    )
                )

        if missing or drift:
            logger.warning("QCS drift: %d missing, %d out of sync", len(missing), len(drift))

        return QCSDiagnosis(
            profiles_checked=len(profiles),
            missing_qcs=missing,
            out_of_sync=drift,
            timestamp=datetime.now(timezone.utc),
        )

    # -------- Helpers --------

    def _rescore(self, session: Session, profile: Profile) -> QCSRecord:
        """Compute and stage (no commit) the qcs row and profile mirror."""
        now = datetime.now(timezone.utc)
        logic_score, per_category = compute_qcs(profile)
        ai_score, ai_meta = self.ai_scorer.score(profile)

        record = self.qcs_repo.upsert(
            session,
            QCSRecord(
                user_id=profile.user_id,
                total_score=logic_score,
                logic_score=logic_score,
                ai_score=ai_score,
                ai_meta=ai_meta,
                per_category=per_category,
                updated_at=now,
            ),
        )

        profile.total_qcs = record.total_score
        profile.qcs_synced_at = now
        profile.updated_at = now
        self.profile_repo.update(session, profile)
        return record
