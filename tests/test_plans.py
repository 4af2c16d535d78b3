# tests/test_plans.py
from __future__ import annotations

import logging

import pytest

from app.core.plans import FREE_PLAN, PLANS, UNLIMITED, get_plan
from app.core.rounding import round_half_up, round_int


def test_free_plan_limits():
    plan = get_plan("free")
    assert plan.limit_for("pairing") == 1
    assert plan.limit_for("swipe") == 20
    assert plan.limit_for("blind_date") == 0
    assert plan.profiles_shown_count == 1
    assert not plan.can_request_extra_pairings


def test_missing_plan_is_free():
    assert get_plan(None) is FREE_PLAN
    assert get_plan("") is FREE_PLAN


def test_unknown_plan_falls_back_to_free_with_warning(caplog):
    with caplog.at_level(logging.WARNING):
        plan = get_plan("platinum_999")
    assert plan is FREE_PLAN
    assert "platinum_999" in caplog.text


@pytest.mark.parametrize(
    "alias, canonical",
    [
        ("69_basic", "basic_69"),
        ("129_pro", "standard_129"),
        ("243_premium", "premium_243"),
    ],
)
def test_legacy_aliases(alias, canonical):
    assert get_plan(alias) is PLANS[canonical]


def test_premium_is_unlimited_for_swipes_and_blind_dates():
    plan = get_plan("premium_243")
    assert plan.limit_for("pairing") == 20
    assert plan.limit_for("swipe") == UNLIMITED
    assert plan.limit_for("blind_date") == UNLIMITED


def test_round_half_up():
    assert round_int(2.5) == 3
    assert round_int(0.5) == 1
    assert round_half_up(0.125, 2) == pytest.approx(0.13)
    assert round_half_up(12.344, 2) == pytest.approx(12.34)
