import pytest

from services.geo import bounding_box, haversine_m, velocity_mps


def test_haversine_zero_and_symmetry():
    assert haversine_m(52.52, 13.405, 52.52, 13.405) == 0.0
    a = haversine_m(52.52, 13.405, 48.8566, 2.3522)
    b = haversine_m(48.8566, 2.3522, 52.52, 13.405)
    assert a == pytest.approx(b)


def test_haversine_berlin_paris():
    assert haversine_m(52.52, 13.405, 48.8566, 2.3522) == pytest.approx(877_000, rel=0.01)


def test_one_degree_of_latitude():
    assert haversine_m(0, 0, 1, 0) == pytest.approx(111_195, rel=0.001)


def test_bounding_box_contains_circle():
    lat, lon, radius = 52.52, 13.405, 5000
    min_lat, max_lat, min_lon, max_lon = bounding_box(lat, lon, radius)
    assert min_lat < lat < max_lat
    assert min_lon < lon < max_lon
    # edge points of the circle fall inside the box
    assert haversine_m(lat, lon, max_lat, lon) >= radius * 0.99
    assert haversine_m(lat, lon, lat, max_lon) >= radius * 0.99


def test_bounding_box_covering_pole_spans_all_longitudes():
    min_lat, max_lat, min_lon, max_lon = bounding_box(89.99, 0, 50_000)
    assert max_lat == 90.0
    assert (min_lon, max_lon) == (-180.0, 180.0)


def test_bounding_box_wide_at_high_latitude():
    # near but not at the pole the box widens with 1/cos(lat)
    lat, lon, radius = 80.0, 20.0, 10_000
    min_lat, max_lat, min_lon, max_lon = bounding_box(lat, lon, radius)
    assert min_lon < lon < max_lon
    assert haversine_m(lat, lon, lat, max_lon) >= radius
    assert max_lon - min_lon > 2 * (max_lat - lat)


def test_bounding_box_wraps_across_antimeridian():
    min_lat, max_lat, min_lon, max_lon = bounding_box(-17.0, 179.99, 5000)
    assert min_lon > max_lon
    assert 179.9 < min_lon < 180.0
    assert -180.0 < max_lon < -179.9

    _, _, min_lon, max_lon = bounding_box(-17.0, -179.99, 5000)
    assert min_lon > max_lon
    assert 179.9 < min_lon < 180.0


def test_bounding_box_longitudes_stay_in_range():
    for lon in (-180.0, -179.999, 0.0, 179.999, 180.0):
        _, _, min_lon, max_lon = bounding_box(10.0, lon, 20_000)
        assert -180.0 <= min_lon <= 180.0
        assert -180.0 <= max_lon <= 180.0


def test_velocity():
    # ~1113 m north in 100 s
    assert velocity_mps(0, 0, 0.01, 0, 100) == pytest.approx(11.12, rel=0.01)


def test_velocity_requires_positive_elapsed():
    with pytest.raises(ValueError):
        velocity_mps(0, 0, 0.01, 0, 0)
