"""
Factor weights for the composite score and their selection per search context.

A WeightSet is validated at construction: non-negative components summing to 1.0
within WEIGHT_TOLERANCE, otherwise ConfigurationError.

Adaptation rules (mutually exclusive, first match wins):
1. sort == by_rating: quality 0.60 / distance 0.25 are the stated targets. Subscription
   is held at its base value and distance/quality are scaled proportionally so the
   three weights sum to 1.0 (0.2206 / 0.5294 / 0.25 with the defaults).
2. velocity above the threshold: distance pinned at 0.50, the remaining 0.50 split
   between quality and subscription in their base ratio (0.3077 / 0.1923).
3. otherwise the base weights.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from services.exceptions import ConfigurationError

WEIGHT_TOLERANCE = 1e-6

# 30 km/h
DEFAULT_HIGH_VELOCITY_MPS = 8.33

BY_RATING_DISTANCE = 0.25
BY_RATING_QUALITY = 0.60
HIGH_VELOCITY_DISTANCE = 0.50


class SortPreference(str, Enum):
    DEFAULT = "default"
    BY_RATING = "by_rating"
    BY_DISTANCE = "by_distance"


@dataclass(frozen=True)
class WeightSet:
    distance: float
    quality: float
    subscription: float

    def __post_init__(self):
        parts = (self.distance, self.quality, self.subscription)
        if any(w < 0 for w in parts):
            raise ConfigurationError(f"Negative factor weight in {parts}")
        total = sum(parts)
        if abs(total - 1.0) > WEIGHT_TOLERANCE:
            raise ConfigurationError(f"Factor weights must sum to 1.0, got {total:.6f}")

    def as_dict(self) -> dict:
        return {"distance": self.distance, "quality": self.quality, "subscription": self.subscription}


DEFAULT_WEIGHTS = WeightSet(distance=0.35, quality=0.40, subscription=0.25)


@dataclass(frozen=True)
class SearchContext:
    """Per-request search parameters; only used to pick weights and the candidate area."""
    latitude: float
    longitude: float
    radius_m: float
    sort: SortPreference = SortPreference.DEFAULT
    velocity_mps: Optional[float] = None

    def __post_init__(self):
        if self.radius_m <= 0:
            raise ValueError("radius_m must be positive")


def hold_subscription(distance: float, quality: float, base: WeightSet = DEFAULT_WEIGHTS) -> WeightSet:
    """Keep base.subscription, scale the stated distance/quality targets to fill the remainder."""
    remainder = 1.0 - base.subscription
    stated = distance + quality
    if stated <= 0:
        raise ConfigurationError("Stated distance/quality weights must be positive")
    scale = remainder / stated
    d = distance * scale
    return WeightSet(distance=d, quality=remainder - d, subscription=base.subscription)


def pin_distance(distance: float, base: WeightSet = DEFAULT_WEIGHTS) -> WeightSet:
    """Fix the distance weight, split the remainder between quality and subscription in base ratio."""
    if not 0 <= distance <= 1:
        raise ConfigurationError(f"Distance weight out of range: {distance}")
    remainder = 1.0 - distance
    other = base.quality + base.subscription
    if other <= 0:
        raise ConfigurationError("Base quality/subscription weights must be positive")
    q = remainder * base.quality / other
    return WeightSet(distance=distance, quality=q, subscription=remainder - q)


def select_weights(
    context: SearchContext,
    velocity_threshold: float = DEFAULT_HIGH_VELOCITY_MPS,
    base: WeightSet = DEFAULT_WEIGHTS,
) -> WeightSet:
    """Pure mapping from a search context to a validated, normalized WeightSet."""
    if context.sort == SortPreference.BY_RATING:
        return hold_subscription(BY_RATING_DISTANCE, BY_RATING_QUALITY, base)
    if context.velocity_mps is not None and context.velocity_mps > velocity_threshold:
        return pin_distance(HIGH_VELOCITY_DISTANCE, base)
    return base
