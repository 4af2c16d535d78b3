# app/repositories/usage_repo.py
from datetime import date, datetime, timezone

from sqlmodel import Session

from app.models.usage import DailyUsage


class UsageRepository:
    """
    Data access layer for daily_usage counters.

    NOTE:
      - No commits here; the limiter commits and handles failures.
    """

    def get(self, session: Session, user_id: str, usage_date: date) -> DailyUsage | None:
        return session.get(DailyUsage, (user_id, usage_date))

    def increment(
        self,
        session: Session,
        user_id: str,
        usage_date: date,
        counter: str,
    ) -> DailyUsage:
        """
        Add one to `counter` for (user_id, usage_date).

        Existing rows are bumped with a SQL-side `counter = counter + 1`
        so concurrent requests cannot overwrite each other's increments.
        The first action of the day inserts the row; a concurrent insert
        surfaces as IntegrityError for the caller to retry.
        """
        row = self.get(session, user_id, usage_date)
        now = datetime.now(timezone.utc)

        if row is None:
            row = DailyUsage(user_id=user_id, usage_date=usage_date, **{counter: 1})
            session.add(row)
            session.flush()
            return row

        setattr(row, counter, getattr(DailyUsage, counter) + 1)
        row.updated_at = now
        session.flush()
        session.refresh(row)
        return row
