"""
Geospatial helpers for the match query.

Distances are computed with the haversine formula on a spherical earth. No
coordinate validation happens here: out-of-range values give meaningless
distances and NaN inputs give NaN.
"""

import math
from dataclasses import dataclass

EARTH_RADIUS_KM = 6371.0


@dataclass(frozen=True)
class GeoPoint:
    """A latitude/longitude pair in decimal degrees."""

    lat: float
    lon: float


def distance_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance in kilometres between two coordinates."""
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)

    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1))
        * math.cos(math.radians(lat2))
        * math.sin(d_lon / 2) ** 2
    )
    return 2 * EARTH_RADIUS_KM * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def _parse_coordinate(value: str | float | None) -> float | None:
    if value is None or value == "":
        return None
    try:
        parsed = float(value)
    except (TypeError, ValueError):
        return None
    return parsed if math.isfinite(parsed) else None


def parse_search_point(
    search_lat: str | float | None, search_lon: str | float | None
) -> GeoPoint | None:
    """
    Build a search point from raw query values.

    Returns None unless both values are present and parse as finite numbers.
    """
    lat = _parse_coordinate(search_lat)
    lon = _parse_coordinate(search_lon)
    if lat is None or lon is None:
        return None
    return GeoPoint(lat=lat, lon=lon)
