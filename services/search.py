"""
Search query path.

Candidates come from the establishment store (bounding box prefilter, then exact
haversine distance against the radius). For each one the distance factor is computed
for the caller's position and combined with the cached quality/subscription scores
using the weights selected for the context. Live rating/tier values are never scored
here, so results reflect the last committed rank cache.

Ordering:
- default / by_rating: composite desc, cached static rank desc, distance asc, id
- by_distance: distance asc, composite desc, id

The map view (search_bounds) takes a viewport instead of a radius and orders by
the cached static rank.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from models.establishment import Establishment
from models.establishment_store import EstablishmentStore
from services.geo import bounding_box, haversine_m
from services.scoring import ScoreBreakdown, combine, distance_factor
from services.weights import (
    DEFAULT_HIGH_VELOCITY_MPS,
    SearchContext,
    SortPreference,
    WeightSet,
    select_weights,
)


@dataclass(frozen=True)
class RankedEstablishment:
    establishment: Establishment
    distance_m: float
    breakdown: ScoreBreakdown


@dataclass(frozen=True)
class SearchPage:
    items: List[RankedEstablishment]
    total: int
    page: int
    limit: int
    weights: WeightSet


def rank_candidate(establishment: Establishment, context: SearchContext,
                   weights: WeightSet) -> RankedEstablishment:
    """Per-request score from the caller's distance plus the cached static components."""
    distance_m = haversine_m(context.latitude, context.longitude,
                             establishment.latitude, establishment.longitude)
    d = distance_factor(distance_m, context.radius_m)
    q = float(establishment.quality_score or 0.0)
    s = float(establishment.subscription_score or 0.0)
    return RankedEstablishment(
        establishment=establishment,
        distance_m=distance_m,
        breakdown=ScoreBreakdown(d, q, s, combine(d, q, s, weights)),
    )


def _matches_cuisines(establishment: Establishment, cuisines: Optional[Iterable[str]]) -> bool:
    if not cuisines:
        return True
    wanted = {c.strip().lower() for c in cuisines if c and c.strip()}
    have = {str(c).strip().lower() for c in (establishment.cuisines or [])}
    return bool(wanted & have)


def _sort_key(context: SearchContext):
    if context.sort == SortPreference.BY_DISTANCE:
        return lambda r: (r.distance_m, -r.breakdown.composite, r.establishment.id)
    return lambda r: (
        -r.breakdown.composite,
        -float(r.establishment.computed_rank or 0.0),
        r.distance_m,
        r.establishment.id,
    )


def search(
    store: EstablishmentStore,
    context: SearchContext,
    page: int = 1,
    limit: int = 20,
    min_rating: Optional[float] = None,
    price_ranges: Optional[Iterable[str]] = None,
    cuisines: Optional[Iterable[str]] = None,
    velocity_threshold: float = DEFAULT_HIGH_VELOCITY_MPS,
) -> SearchPage:
    weights = select_weights(context, velocity_threshold)
    bbox = bounding_box(context.latitude, context.longitude, context.radius_m)

    ranked = []
    for est in store.candidates(bbox, min_rating=min_rating, price_ranges=price_ranges):
        if not _matches_cuisines(est, cuisines):
            continue
        item = rank_candidate(est, context, weights)
        if item.distance_m > context.radius_m:
            continue
        ranked.append(item)

    ranked.sort(key=_sort_key(context))
    start = (page - 1) * limit
    return SearchPage(
        items=ranked[start:start + limit],
        total=len(ranked),
        page=page,
        limit=limit,
        weights=weights,
    )


def explain(establishment: Establishment, context: SearchContext,
            velocity_threshold: float = DEFAULT_HIGH_VELOCITY_MPS) -> dict:
    """Transparency query: the per-factor breakdown a search from `context` would use."""
    weights = select_weights(context, velocity_threshold)
    item = rank_candidate(establishment, context, weights)
    out = item.breakdown.as_dict()
    out.update({
        "establishment_id": establishment.id,
        "distance_m": round(item.distance_m, 1),
        "static_rank": round(float(establishment.computed_rank or 0.0), 4),
        "rank_updated_at": establishment.rank_updated_at.isoformat() if establishment.rank_updated_at else None,
        "weights": weights.as_dict(),
    })
    return out


@dataclass(frozen=True)
class MapPage:
    items: List[Establishment]
    total: int
    limit: int


def search_bounds(
    store: EstablishmentStore,
    bbox: Tuple[float, float, float, float],
    limit: int = 100,
    min_rating: Optional[float] = None,
    price_ranges: Optional[Iterable[str]] = None,
    cuisines: Optional[Iterable[str]] = None,
) -> MapPage:
    """
    Map view: every active establishment inside a viewport, best cached static rank
    first. There is no caller position, so no distance factor is applied.
    """
    hits = [
        est
        for est in store.candidates(bbox, min_rating=min_rating, price_ranges=price_ranges)
        if _matches_cuisines(est, cuisines)
    ]
    hits.sort(key=lambda e: (-float(e.computed_rank or 0.0), e.id))
    return MapPage(items=hits[:limit], total=len(hits), limit=limit)
