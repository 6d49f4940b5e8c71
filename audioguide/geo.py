"""Geographic utility functions."""

from __future__ import annotations

import math
from numbers import Real

from .errors import InvalidInput

EARTH_RADIUS = 6371000  # meters


def haversine_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Calculate distance between two points in meters using Haversine formula"""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    delta_phi = math.radians(lat2 - lat1)
    delta_lambda = math.radians(lon2 - lon1)

    a = (math.sin(delta_phi / 2) ** 2 +
         math.cos(phi1) * math.cos(phi2) * math.sin(delta_lambda / 2) ** 2)
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return EARTH_RADIUS * c


def distance_meters(a, b) -> float:
    """Great-circle distance between two objects carrying lat/lon"""
    if a.lat == b.lat and a.lon == b.lon:
        return 0.0
    return haversine_distance(a.lat, a.lon, b.lat, b.lon)


def is_valid_coordinate(lat, lon) -> bool:
    """True if lat/lon are finite numbers within ±90/±180"""
    for value in (lat, lon):
        if isinstance(value, bool) or not isinstance(value, Real):
            return False
        if not math.isfinite(value):
            return False
    return -90 <= lat <= 90 and -180 <= lon <= 180


def validate_location(location) -> None:
    """Raise InvalidInput unless location has in-range lat/lon"""
    if location is None:
        raise InvalidInput("location is required")
    lat = getattr(location, "lat", None)
    lon = getattr(location, "lon", None)
    if lat is None or lon is None:
        raise InvalidInput("location must have lat and lon")
    if not is_valid_coordinate(lat, lon):
        raise InvalidInput(f"location out of range: ({lat}, {lon})")


def format_distance(meters: float) -> str:
    """Short human-readable distance ("350 m", "1.2 km")"""
    if meters < 1000:
        return f"{meters:.0f} m"
    return f"{meters / 1000:.1f} km"
