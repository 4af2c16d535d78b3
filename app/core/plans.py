# app/core/plans.py
import logging
from pydantic import BaseModel, ConfigDict

logger = logging.getLogger(__name__)

# Sentinel for "no daily cap"
UNLIMITED = -1


class Plan(BaseModel):
    """
    Static subscription tier limits.

    Daily limits use UNLIMITED (-1) for "no cap".
    """

    model_config = ConfigDict(frozen=True)

    id: str
    daily_pairing_limit: int
    daily_swipe_limit: int
    daily_blind_date_limit: int
    profiles_shown_count: int
    can_see_who_liked_you: bool
    can_request_extra_pairings: bool

    def limit_for(self, action: str) -> int:
        """Daily limit for a usage action ("pairing" | "swipe" | "blind_date")."""
        return {
            "pairing": self.daily_pairing_limit,
            "swipe": self.daily_swipe_limit,
            "blind_date": self.daily_blind_date_limit,
        }[action]


FREE_PLAN = Plan(
    id="free",
    daily_pairing_limit=1,
    daily_swipe_limit=20,
    daily_blind_date_limit=0,
    profiles_shown_count=1,
    can_see_who_liked_you=False,
    can_request_extra_pairings=False,
)

PLANS: dict[str, Plan] = {
    "free": FREE_PLAN,
    "basic_69": Plan(
        id="basic_69",
        daily_pairing_limit=5,
        daily_swipe_limit=100,
        daily_blind_date_limit=2,
        profiles_shown_count=10,
        can_see_who_liked_you=True,
        can_request_extra_pairings=True,
    ),
    "standard_129": Plan(
        id="standard_129",
        daily_pairing_limit=10,
        daily_swipe_limit=UNLIMITED,
        daily_blind_date_limit=4,
        profiles_shown_count=10,
        can_see_who_liked_you=True,
        can_request_extra_pairings=True,
    ),
    "premium_243": Plan(
        id="premium_243",
        daily_pairing_limit=20,
        daily_swipe_limit=UNLIMITED,
        daily_blind_date_limit=UNLIMITED,
        profiles_shown_count=10,
        can_see_who_liked_you=True,
        can_request_extra_pairings=True,
    ),
}

# Legacy plan identifiers still stored on older profiles
PLAN_ALIASES: dict[str, str] = {
    "69_basic": "basic_69",
    "basic_69_pro": "basic_69",
    "69_pro": "basic_69",
    "129_pro": "standard_129",
    "standard_129_pro": "standard_129",
    "129_standard": "standard_129",
    "243_premium": "premium_243",
    "premium_243_pro": "premium_243",
    "243_pro": "premium_243",
}


def get_plan(plan_id: str | None) -> Plan:
    """
    Resolve a plan id (canonical or legacy alias) to its limits.

    Missing ids mean free. Unknown ids fall back to free with a warning,
    never to an unlimited tier.
    """
    if not plan_id:
        return FREE_PLAN

    canonical = PLAN_ALIASES.get(plan_id, plan_id)
    plan = PLANS.get(canonical)
    if plan is None:
        logger.warning("Unknown plan ID: %s, defaulting to free plan limits", plan_id)
        return FREE_PLAN
    return plan
