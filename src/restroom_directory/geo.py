"""
Great-circle distance helpers.

Coordinates are decimal degrees on a spherical Earth. A restroom without a
usable position is reported at MAX_DISTANCE_KM so it sorts after every
located restroom.
"""

import math
import sys
from typing import Optional

EARTH_RADIUS_KM = 6371.0

# Largest finite float: still JSON-serialisable, sorts last
MAX_DISTANCE_KM = sys.float_info.max

KM_PER_DEGREE_LAT = math.pi * EARTH_RADIUS_KM / 180.0


def _is_unset(value: Optional[float]) -> bool:
    return value is None or value == 0


def distance_km(
    lat1: Optional[float],
    lon1: Optional[float],
    lat2: Optional[float],
    lon2: Optional[float],
) -> float:
    """
    Haversine distance between two points in kilometres.

    Returns MAX_DISTANCE_KM when any coordinate is missing or zero.
    """
    if any(_is_unset(v) for v in (lat1, lon1, lat2, lon2)):
        return MAX_DISTANCE_KM

    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    return 2 * EARTH_RADIUS_KM * math.asin(min(1.0, math.sqrt(a)))


def bounding_box(latitude: float, longitude: float, radius_km: float) -> tuple[float, float, Optional[float], Optional[float]]:
    """
    Coarse window that contains every point within ``radius_km``.

    Returns (min_lat, max_lat, min_lon, max_lon). The longitude bounds are
    None when the window touches a pole or crosses the antimeridian; callers
    then filter on latitude only and rely on the exact distance check.
    """
    d_lat = radius_km / KM_PER_DEGREE_LAT
    min_lat = max(-90.0, latitude - d_lat)
    max_lat = min(90.0, latitude + d_lat)

    if max_lat >= 90.0 or min_lat <= -90.0:
        return min_lat, max_lat, None, None

    # Widest longitude span is at the latitude edge nearest a pole
    widest = max(abs(min_lat), abs(max_lat))
    d_lon = radius_km / (KM_PER_DEGREE_LAT * math.cos(math.radians(widest)))
    min_lon = longitude - d_lon
    max_lon = longitude + d_lon
    if min_lon < -180.0 or max_lon > 180.0:
        return min_lat, max_lat, None, None
    return min_lat, max_lat, min_lon, max_lon
