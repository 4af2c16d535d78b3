# app/models/usage.py
from datetime import date, datetime, timezone

from sqlmodel import SQLModel, Field


class DailyUsage(SQLModel, table=True):
    """
    Per-user, per-local-day action counters.

    Rows from earlier days are simply ignored; a new day starts at zero
    because no row exists for it yet.
    """

    __tablename__ = "daily_usage"

    user_id: str = Field(primary_key=True, index=True)
    usage_date: date = Field(primary_key=True, description="Local calendar day")

    pairing_requests_used: int = Field(default=0, ge=0)
    swipes_used: int = Field(default=0, ge=0)
    blind_date_requests_used: int = Field(default=0, ge=0)

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )


# usage action -> counter column
USAGE_COUNTERS: dict[str, str] = {
    "pairing": "pairing_requests_used",
    "swipe": "swipes_used",
    "blind_date": "blind_date_requests_used",
}
