# app/services/usage_service.py
import logging
from collections.abc import Callable
from datetime import date

from fastapi import HTTPException, status
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session

from app.core.plans import UNLIMITED, get_plan
from app.models.usage import USAGE_COUNTERS
from app.repositories.usage_repo import UsageRepository
from app.schemas.usage import PlanLimits, UsageSnapshot

logger = logging.getLogger(__name__)


class DailyUsageLimiter:
    """
    Per-user daily quotas for pairing, swipe and blind-date requests.

    Days are local calendar days of this process (`today` is injectable).
    There is no reset job: a new day simply has no counter row yet, so
    it reads as zero.
    """

    def __init__(
        self,
        repo: UsageRepository,
        today: Callable[[], date] = date.today,
    ):
        self.repo = repo
        self.today = today

    def can_consume(
        self,
        session: Session,
        user_id: str,
        plan_id: str | None,
        action: str = "pairing",
    ) -> UsageSnapshot:
        """
        Check today's usage against the plan's limit for `action`.

        Unlimited plans report daily_limit = remaining = -1.

        Raises:
            HTTPException(500): database failure.
        """
        counter = USAGE_COUNTERS[action]
        daily_limit = get_plan(plan_id).limit_for(action)

        try:
            usage = self.repo.get(session, user_id, self.today())
        except SQLAlchemyError as e:
            logger.error("Reading %s usage for %s failed: %s", action, user_id, e)
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to read daily usage",
            )

        used_today = getattr(usage, counter) if usage is not None else 0

        if daily_limit == UNLIMITED:
            return UsageSnapshot(
                can_request=True,
                used_today=used_today,
                daily_limit=UNLIMITED,
                remaining=UNLIMITED,
            )

        return UsageSnapshot(
            can_request=used_today < daily_limit,
            used_today=used_today,
            daily_limit=daily_limit,
            remaining=max(0, daily_limit - used_today),
        )

    def consume(self, session: Session, user_id: str, action: str = "pairing") -> bool:
        """
        Count one `action` for today.

        Returns:
            True once the increment is committed, False if it could not be
            persisted (the caller must not proceed).
        """
        counter = USAGE_COUNTERS[action]
        usage_date = self.today()

        try:
            try:
                self.repo.increment(session, user_id, usage_date, counter)
                session.commit()
            except IntegrityError:
                # Another request inserted today's row first; bump it instead
                session.rollback()
                self.repo.increment(session, user_id, usage_date, counter)
                session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            logger.error("Recording %s usage for %s failed: %s", action, user_id, e)
            return False

        return True

    def snapshot(self, session: Session, user_id: str, plan_id: str | None) -> PlanLimits:
        """Usage for every tracked action."""
        plan = get_plan(plan_id)
        return PlanLimits(
            plan_id=plan.id,
            pairing=self.can_consume(session, user_id, plan.id, "pairing"),
            swipe=self.can_consume(session, user_id, plan.id, "swipe"),
            blind_date=self.can_consume(session, user_id, plan.id, "blind_date"),
        )
