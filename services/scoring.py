"""
Score calculator.

Pure functions, no I/O. Every sub-score is on a 0-100 scale before weighting:
- distance_factor     = 100 * (1 - distance_m / max_radius_m), clamped to [0, 100]
- quality_factor      = rating / 5 * 50 + min(review_count, 200) / 200 * 50
- subscription_factor = flat points per tier (free 0, basic 15, standard 35, premium 50)
- composite           = weighted sum with a WeightSet

static_rank is the location-independent part cached by the rank updater.
"""
from __future__ import annotations

from dataclasses import dataclass

from services.exceptions import ConfigurationError
from services.weights import WeightSet, DEFAULT_WEIGHTS

MAX_RATING = 5.0
REVIEW_SATURATION = 200

TIER_POINTS = {
    "free": 0.0,
    "basic": 15.0,
    "standard": 35.0,
    "premium": 50.0,
}


@dataclass(frozen=True)
class ScoreBreakdown:
    distance_score: float
    quality_score: float
    subscription_score: float
    composite: float

    def as_dict(self) -> dict:
        return {
            "distance_score": round(self.distance_score, 4),
            "quality_score": round(self.quality_score, 4),
            "subscription_score": round(self.subscription_score, 4),
            "composite": round(self.composite, 4),
        }


def distance_factor(distance_m: float, max_radius_m: float) -> float:
    if max_radius_m <= 0:
        raise ConfigurationError("max_radius_m must be positive")
    raw = 100.0 * (1.0 - distance_m / max_radius_m)
    return max(0.0, min(100.0, raw))


def quality_factor(average_rating: float, review_count: int) -> float:
    rating = max(0.0, min(MAX_RATING, float(average_rating or 0.0)))
    reviews = max(0, min(int(review_count or 0), REVIEW_SATURATION))
    return rating / MAX_RATING * 50.0 + reviews / REVIEW_SATURATION * 50.0


def subscription_factor(tier) -> float:
    """Flat point lookup; unknown tiers are a configuration error, never defaulted."""
    key = getattr(tier, "value", tier)
    try:
        return TIER_POINTS[key]
    except (KeyError, TypeError):
        raise ConfigurationError(f"Unknown subscription tier: {tier!r}")


def combine(distance_score: float, quality_score: float, subscription_score: float,
            weights: WeightSet) -> float:
    return (
        distance_score * weights.distance
        + quality_score * weights.quality
        + subscription_score * weights.subscription
    )


def static_rank(quality_score: float, subscription_score: float,
                weights: WeightSet = DEFAULT_WEIGHTS) -> float:
    """Precomputable share of the composite: no caller location involved."""
    return quality_score * weights.quality + subscription_score * weights.subscription


def score(distance_m: float, max_radius_m: float, average_rating: float, review_count: int,
          tier, weights: WeightSet = DEFAULT_WEIGHTS) -> ScoreBreakdown:
    """Full breakdown for one establishment and one caller position."""
    d = distance_factor(distance_m, max_radius_m)
    q = quality_factor(average_rating, review_count)
    s = subscription_factor(tier)
    return ScoreBreakdown(d, q, s, combine(d, q, s, weights))
