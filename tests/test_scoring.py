from __future__ import annotations

import pytest

from models.establishment import SubscriptionTier
from services.exceptions import ConfigurationError
from services.scoring import (
    combine,
    distance_factor,
    quality_factor,
    score,
    static_rank,
    subscription_factor,
)
from services.weights import DEFAULT_WEIGHTS


# ── Distance ─────────────────────────────────────────────────────────────


@pytest.mark.parametrize("radius", [1.0, 500.0, 5000.0, 250000.0])
def test_distance_factor_bounds(radius):
    assert distance_factor(0, radius) == 100.0
    assert distance_factor(radius, radius) == 0.0
    assert distance_factor(2 * radius, radius) == 0.0


def test_distance_factor_is_linear():
    assert distance_factor(2500, 5000) == pytest.approx(50.0)
    assert distance_factor(500, 5000) == pytest.approx(90.0)


def test_distance_factor_rejects_non_positive_radius():
    with pytest.raises(ConfigurationError):
        distance_factor(10, 0)


# ── Quality ──────────────────────────────────────────────────────────────


def test_quality_factor_maximum():
    assert quality_factor(5.0, 200) == pytest.approx(100.0)
    assert quality_factor(5.0, 5000) == pytest.approx(100.0)


def test_quality_factor_halves():
    # rating and review volume each carry half of the score
    assert quality_factor(5.0, 0) == pytest.approx(50.0)
    assert quality_factor(0.0, 200) == pytest.approx(50.0)
    assert quality_factor(4.2, 15) == pytest.approx(42.0 + 3.75)


def test_quality_factor_handles_missing_values():
    assert quality_factor(None, None) == 0.0


# ── Subscription ─────────────────────────────────────────────────────────


@pytest.mark.parametrize(
    "tier,points",
    [("free", 0.0), ("basic", 15.0), ("standard", 35.0), ("premium", 50.0)],
)
def test_subscription_factor_lookup(tier, points):
    assert subscription_factor(tier) == points


def test_subscription_factor_accepts_enum():
    assert subscription_factor(SubscriptionTier.PREMIUM) == 50.0


@pytest.mark.parametrize("tier", ["gold", "", None, "PREMIUM"])
def test_subscription_factor_unknown_tier(tier):
    with pytest.raises(ConfigurationError):
        subscription_factor(tier)


# ── Composite ────────────────────────────────────────────────────────────


@pytest.mark.parametrize(
    "distance,rating,reviews,tier",
    [
        (0, 5.0, 1000, "premium"),
        (5000, 0.0, 0, "free"),
        (12000, 3.3, 17, "basic"),
        (1200, 4.9, 199, "standard"),
    ],
)
def test_composite_within_bounds(distance, rating, reviews, tier):
    breakdown = score(distance, 5000, rating, reviews, tier)
    assert 0.0 <= breakdown.composite <= 100.0


def test_quality_beats_subscription_at_default_weights():
    a = score(500, 5000, 4.8, 200, "premium")
    b = score(3000, 5000, 4.2, 15, "free")
    assert a.composite > b.composite


def test_premium_cannot_buy_past_a_much_better_place():
    paid = score(1000, 5000, 2.0, 5, "premium")
    good = score(1000, 5000, 4.9, 180, "free")
    assert good.composite > paid.composite


def test_static_rank_is_composite_without_distance():
    breakdown = score(100000, 5000, 4.0, 50, "standard")
    assert breakdown.distance_score == 0.0
    assert breakdown.composite == pytest.approx(
        static_rank(breakdown.quality_score, breakdown.subscription_score)
    )


def test_combine_uses_weights():
    assert combine(100, 0, 0, DEFAULT_WEIGHTS) == pytest.approx(35.0)
    assert combine(0, 100, 0, DEFAULT_WEIGHTS) == pytest.approx(40.0)
    assert combine(0, 0, 100, DEFAULT_WEIGHTS) == pytest.approx(25.0)


def test_breakdown_as_dict_rounds():
    out = score(1234, 5000, 4.37, 33, "basic").as_dict()
    assert set(out) == {"distance_score", "quality_score", "subscription_score", "composite"}
    assert out["subscription_score"] == 15.0
