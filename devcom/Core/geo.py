# devcom/Core/geo.py
"""
Geo helpers
===========
Great-circle distance and geopoint validity shared by the decoders, the
odometer policy and the Device model.

A geopoint is valid when |lat| < 90, |lon| < 180 and it is not the 0/0
"no fix" point. The coordinate decoder's invalid markers (90.0, 180.0) are
therefore never valid.
"""

from math import radians, sin, cos, sqrt, atan2, isfinite
from typing import Optional

EARTH_RADIUS_KM = 6371.0088
"""Mean Earth radius in kilometers."""

KILOMETERS_PER_KNOT = 1.852
KILOMETERS_PER_MILE = 1.609344

_ZERO_EPSILON = 0.0001


def is_valid_geopoint(lat: Optional[float], lon: Optional[float]) -> bool:
    if lat is None or lon is None:
        return False
    if not (isfinite(lat) and isfinite(lon)):
        return False
    if abs(lat) >= 90.0 or abs(lon) >= 180.0:
        return False
    # 0/0 is what devices report without a fix
    if abs(lat) <= _ZERO_EPSILON and abs(lon) <= _ZERO_EPSILON:
        return False
    return True


def calculate_haversine_km(
    lat1: float,
    lon1: float,
    lat2: float,
    lon2: float
) -> float:
    """Great-circle distance between two points in kilometers (Haversine)."""
    lat1_rad = radians(lat1)
    lat2_rad = radians(lat2)
    delta_lat = radians(lat2 - lat1)
    delta_lon = radians(lon2 - lon1)

    a = sin(delta_lat / 2) ** 2 + cos(lat1_rad) * cos(lat2_rad) * sin(delta_lon / 2) ** 2
    c = 2 * atan2(sqrt(a), sqrt(1 - a))

    return EARTH_RADIUS_KM * c
