"""
PASAR - Logistics Utilities
============================
Great-circle distance and coordinate helpers.
"""

import math
from typing import Tuple


# Earth radius in km
EARTH_RADIUS_KM = 6371.0


def haversine_distance(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """
    Great-circle distance between two GPS points, in kilometers.

    Haversine formula. The intermediate term is clamped to [0, 1] so
    floating-point drift on identical or antipodal points never reaches
    sqrt() with a negative argument.
    """
    lat1_rad = math.radians(lat1)
    lat2_rad = math.radians(lat2)
    delta_lat = math.radians(lat2 - lat1)
    delta_lng = math.radians(lng2 - lng1)

    a = (
        math.sin(delta_lat / 2) ** 2 +
        math.cos(lat1_rad) * math.cos(lat2_rad) * math.sin(delta_lng / 2) ** 2
    )
    a = min(1.0, max(0.0, a))
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return EARTH_RADIUS_KM * c


def is_valid_coordinate(lat, lng) -> bool:
    """Range sanity check: lat in [-90, 90], lng in [-180, 180]."""
    if lat is None or lng is None:
        return False
    try:
        lat = float(lat)
        lng = float(lng)
    except (TypeError, ValueError):
        return False
    if math.isnan(lat) or math.isnan(lng):
        return False
    return -90 <= lat <= 90 and -180 <= lng <= 180


def bounding_box(lat: float, lng: float, radius_km: float) -> Tuple[float, float, float, float]:
    """
    Lat/lng box enclosing a circle of radius_km around a point.

    Returns (min_lat, max_lat, min_lng, max_lng). Near the poles and
    across the antimeridian the longitude span widens to the full range;
    callers still apply the exact Haversine check.
    """
    angular = radius_km / EARTH_RADIUS_KM
    delta_lat = math.degrees(angular)
    min_lat = max(-90.0, lat - delta_lat)
    max_lat = min(90.0, lat + delta_lat)

    cos_lat = math.cos(math.radians(lat))
    if max_lat >= 90.0 or min_lat <= -90.0 or math.sin(angular) >= cos_lat:
        return min_lat, max_lat, -180.0, 180.0

    delta_lng = math.degrees(math.asin(math.sin(angular) / cos_lat))
    if lng - delta_lng < -180.0 or lng + delta_lng > 180.0:
        return min_lat, max_lat, -180.0, 180.0

    return min_lat, max_lat, lng - delta_lng, lng + delta_lng
