from __future__ import annotations

import pytest

from conftest import make_establishment
from models.establishment_store import EstablishmentStore
from services.rank_updater import RankCacheUpdater
from services.search import explain, search, search_bounds
from services.weights import SearchContext, SortPreference

CENTER = (52.5200, 13.4050)
# ~111 m of latitude per 0.001 degree
NEAR = (52.5245, 13.4050)       # ~500 m
MID = (52.5470, 13.4050)        # ~3 km
FAR = (52.6100, 13.4050)        # ~10 km


def _ctx(radius_m=5000, **kwargs):
    return SearchContext(latitude=CENTER[0], longitude=CENTER[1], radius_m=radius_m, **kwargs)


def _refresh(session):
    RankCacheUpdater(EstablishmentStore(session)).run()


def _names(page):
    return [item.establishment.name for item in page.items]


@pytest.fixture
def places(session, partner):
    a = make_establishment(session, partner, *NEAR, name="A", average_rating=4.8, review_count=200,
                           subscription_tier="premium", cuisines=["sushi"], price_range="$$$")
    b = make_establishment(session, partner, *MID, name="B", average_rating=4.2, review_count=15,
                           subscription_tier="free", cuisines=["pizza", "italian"], price_range="$")
    make_establishment(session, partner, *FAR, name="C", average_rating=5.0, review_count=500)
    make_establishment(session, partner, *NEAR, name="Draft", status="draft")
    _refresh(session)
    return a, b


def test_default_ordering_and_radius(session, places):
    page = search(EstablishmentStore(session), _ctx())
    assert _names(page) == ["A", "B"]
    assert page.total == 2
    assert page.items[0].breakdown.composite > page.items[1].breakdown.composite
    assert all(item.distance_m <= 5000 for item in page.items)


def test_by_distance_orders_nearest_first(session, partner):
    make_establishment(session, partner, *NEAR, name="close-but-plain", average_rating=1.0, review_count=1)
    make_establishment(session, partner, *MID, name="far-but-great", average_rating=5.0, review_count=300,
                       subscription_tier="premium")
    _refresh(session)

    store = EstablishmentStore(session)
    assert _names(search(store, _ctx())) == ["far-but-great", "close-but-plain"]
    assert _names(search(store, _ctx(sort=SortPreference.BY_DISTANCE))) == ["close-but-plain", "far-but-great"]


def test_pagination(session, places):
    store = EstablishmentStore(session)
    first = search(store, _ctx(), page=1, limit=1)
    second = search(store, _ctx(), page=2, limit=1)
    third = search(store, _ctx(), page=3, limit=1)
    assert _names(first) == ["A"]
    assert _names(second) == ["B"]
    assert third.items == []
    assert third.total == 2


def test_filters(session, places):
    store = EstablishmentStore(session)
    assert _names(search(store, _ctx(), min_rating=4.5)) == ["A"]
    assert _names(search(store, _ctx(), price_ranges=["$"])) == ["B"]
    assert _names(search(store, _ctx(), cuisines=["Italian"])) == ["B"]
    assert _names(search(store, _ctx(), cuisines=["thai"])) == []


def test_search_reads_cached_scores(session, places):
    a, b = places
    # live signals change but the cache has not been refreshed yet
    b.average_rating = 5.0
    b.review_count = 1000
    b.subscription_tier = "premium"
    session.commit()

    page = search(EstablishmentStore(session), _ctx())
    hit_b = next(item for item in page.items if item.establishment.id == b.id)
    assert hit_b.breakdown.subscription_score == 0.0
    assert hit_b.breakdown.quality_score == pytest.approx(42.0 + 3.75)


def test_high_velocity_changes_weights(session, places):
    page = search(EstablishmentStore(session), _ctx(velocity_mps=20.0))
    assert page.weights.distance == pytest.approx(0.5)


def test_explain_breakdown(session, places):
    a, _ = places
    out = explain(a, _ctx())
    assert out["establishment_id"] == a.id
    assert out["subscription_score"] == 50.0
    assert out["quality_score"] == pytest.approx(98.0)
    assert out["distance_score"] == pytest.approx(90.0, abs=0.5)
    assert out["static_rank"] == pytest.approx(98.0 * 0.40 + 50.0 * 0.25)
    assert out["weights"] == {"distance": 0.35, "quality": 0.40, "subscription": 0.25}
    assert 0 <= out["composite"] <= 100


# ── Antimeridian and viewport ────────────────────────────────────────────


def test_search_across_antimeridian(session, partner):
    # Fiji sits on both sides of 180°
    make_establishment(session, partner, -17.0, 179.99, name="East")
    make_establishment(session, partner, -17.0, -179.99, name="West")
    make_establishment(session, partner, -17.0, -179.0, name="Far")
    _refresh(session)

    ctx = SearchContext(latitude=-17.0, longitude=179.995, radius_m=5000)
    page = search(EstablishmentStore(session), ctx)
    assert sorted(_names(page)) == ["East", "West"]
    assert all(item.distance_m < 5000 for item in page.items)


def test_search_bounds_orders_by_static_rank(session, places):
    page = search_bounds(EstablishmentStore(session), (52.50, 52.56, 13.30, 13.50))
    assert [e.name for e in page.items] == ["A", "B"]
    assert page.total == 2


def test_search_bounds_filters_and_limit(session, places):
    store = EstablishmentStore(session)
    assert [e.name for e in search_bounds(store, (52.0, 53.0, 13.0, 14.0), cuisines=["pizza"]).items] == ["B"]

    page = search_bounds(store, (52.0, 53.0, 13.0, 14.0), limit=1)
    assert len(page.items) == 1
    assert page.total == 3


def test_search_bounds_wrapping_viewport(session, partner):
    make_establishment(session, partner, -17.0, 179.5, name="East")
    make_establishment(session, partner, -17.0, -179.5, name="West")
    make_establishment(session, partner, -17.0, 0.0, name="Greenwich")

    page = search_bounds(EstablishmentStore(session), (-18.0, -16.0, 179.0, -179.0))
    assert sorted(e.name for e in page.items) == ["East", "West"]
