from __future__ import annotations

import math
from typing import Tuple

EARTH_RADIUS_M = 6371008.8


def haversine_m(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance in meters."""
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    dphi = math.radians(lat2 - lat1)
    dlmb = math.radians(lon2 - lon1)
    a = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlmb / 2) ** 2
    return 2 * EARTH_RADIUS_M * math.asin(min(1.0, math.sqrt(a)))


def bounding_box(lat: float, lon: float, radius_m: float) -> Tuple[float, float, float, float]:
    """
    (min_lat, max_lat, min_lon, max_lon) enclosing the circle; a coarse SQL prefilter,
    exact distance is checked afterwards.

    Longitudes stay within [-180, 180]. When the circle crosses the antimeridian the
    box wraps and min_lon > max_lon. A circle covering a pole gets every longitude.
    """
    angular = radius_m / EARTH_RADIUS_M
    dlat = math.degrees(angular)
    min_lat, max_lat = lat - dlat, lat + dlat
    if min_lat <= -90.0 or max_lat >= 90.0 or angular >= math.pi / 2:
        return (max(-90.0, min_lat), min(90.0, max_lat), -180.0, 180.0)

    dlon = math.degrees(math.asin(min(1.0, math.sin(angular) / math.cos(math.radians(lat)))))
    if dlon >= 180.0:
        return (min_lat, max_lat, -180.0, 180.0)

    min_lon, max_lon = lon - dlon, lon + dlon
    if min_lon < -180.0:
        min_lon += 360.0
    if max_lon > 180.0:
        max_lon -= 360.0
    return (min_lat, max_lat, min_lon, max_lon)


def velocity_mps(prev_lat: float, prev_lon: float, lat: float, lon: float, elapsed_seconds: float) -> float:
    """Speed between two consecutive GPS samples."""
    if elapsed_seconds <= 0:
        raise ValueError("elapsed_seconds must be positive")
    return haversine_m(prev_lat, prev_lon, lat, lon) / elapsed_seconds
