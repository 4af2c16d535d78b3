# app/schemas/usage.py
from sqlmodel import SQLModel


class UsageSnapshot(SQLModel):
    """
    Today's usage for one action.

    daily_limit / remaining are -1 for unlimited plans.
    """

    can_request: bool
    used_today: int
    daily_limit: int
    remaining: int


class PlanLimits(SQLModel):
    plan_id: str
    pairing: UsageSnapshot
    swipe: UsageSnapshot
    blind_date: UsageSnapshot


class PlanLimitsResponse(SQLModel):
    success: bool = True
    data: PlanLimits
