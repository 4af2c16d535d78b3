# tests/test_usage.py
"""
Tests for plan-based daily usage limits.
"""
from __future__ import annotations

from datetime import date, timedelta
from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import SQLAlchemyError

from app.core.plans import UNLIMITED
from app.models.usage import DailyUsage
from app.repositories.usage_repo import UsageRepository
from app.services.usage_service import DailyUsageLimiter


class Clock:
    def __init__(self, today: date):
        self.today = today

    def __call__(self) -> date:
        return self.today


@pytest.fixture
def clock():
    return Clock(date(2025, 3, 1))


@pytest.fixture
def limiter(clock):
    return DailyUsageLimiter(UsageRepository(), today=clock)


def test_fresh_day_reads_zero(session, limiter):
    usage = limiter.can_consume(session, "u1", "free")
    assert usage.can_request is True
    assert usage.used_today == 0
    assert usage.daily_limit == 1
    assert usage.remaining == 1


def test_free_plan_allows_one_pairing(session, limiter):
    assert limiter.consume(session, "u1") is True

    usage = limiter.can_consume(session, "u1", "free")
    assert usage.can_request is False
    assert usage.used_today == 1
    assert usage.remaining == 0


def test_counters_are_per_action(session, limiter):
    limiter.consume(session, "u1", "swipe")
    limiter.consume(session, "u1", "swipe")

    row = session.get(DailyUsage, ("u1", date(2025, 3, 1)))
    assert row.swipes_used == 2
    assert row.pairing_requests_used == 0
    assert limiter.can_consume(session, "u1", "free", "swipe").remaining == 18


def test_new_day_resets_usage(session, limiter, clock):
    limiter.consume(session, "u1")
    assert limiter.can_consume(session, "u1", "free").can_request is False

    clock.today = clock.today + timedelta(days=1)

    usage = limiter.can_consume(session, "u1", "free")
    assert usage.can_request is True
    assert usage.used_today == 0


def test_unknown_plan_gets_free_limits(session, limiter):
    usage = limiter.can_consume(session, "u1", "mystery_plan")
    assert usage.daily_limit == 1


def test_unlimited_plan(session, limiter):
    for _ in range(3):
        limiter.consume(session, "u1", "swipe")

    usage = limiter.can_consume(session, "u1", "premium_243", "swipe")
    assert usage.can_request is True
    assert usage.used_today == 3
    assert usage.daily_limit == UNLIMITED
    assert usage.remaining == UNLIMITED


def test_zero_limit_blocks_immediately(session, limiter):
    usage = limiter.can_consume(session, "u1", "free", "blind_date")
    assert usage.can_request is False
    assert usage.remaining == 0


def test_consume_reports_persistence_failure():
    repo = MagicMock(spec=UsageRepository)
    repo.increment.side_effect = SQLAlchemyError("db down")
    session = MagicMock()

    limiter = DailyUsageLimiter(repo, today=lambda: date(2025, 3, 1))

    assert limiter.consume(session, "u1") is False
    session.rollback.assert_called_once()
    session.commit.assert_not_called()


def test_snapshot_covers_all_actions(session, limiter):
    limiter.consume(session, "u1")
    snapshot = limiter.snapshot(session, "u1", "69_basic")

    assert snapshot.plan_id == "basic_69"
    assert snapshot.pairing.used_today == 1
    assert snapshot.pairing.remaining == 4
    assert snapshot.swipe.daily_limit == 100
    assert snapshot.blind_date.daily_limit == 2


# -------- HTTP --------


def test_pairing_limits_endpoint(client, make_profile):
    make_profile("user-a", plan_id="standard_129")

    response = client.get("/api/v1/pairing-limits")

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["plan_id"] == "standard_129"
    assert data["pairing"] == {"can_request": True, "used_today": 0, "daily_limit": 10, "remaining": 10}
    assert data["swipe"]["daily_limit"] == -1


def test_pairing_limits_requires_profile(client):
    response = client.get("/api/v1/pairing-limits")
    assert response.status_code == 404
