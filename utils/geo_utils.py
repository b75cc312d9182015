# utils/geo_utils.py
from math import radians, sin, cos, sqrt, atan2
from typing import NamedTuple

EARTH_RADIUS_M = 6371000.0  # mean radius, meters


class Coordinate(NamedTuple):
    latitude: float
    longitude: float

    @classmethod
    def parse(cls, latitude, longitude):
        """
        Build a Coordinate from untrusted request values.
        Raises ValueError when a value is missing, not numeric or out of range.
        """
        if latitude is None or longitude is None or isinstance(latitude, bool) or isinstance(longitude, bool):
            raise ValueError("latitude and longitude are required")
        try:
            lat, lon = float(latitude), float(longitude)
        except (TypeError, ValueError):
            raise ValueError("latitude and longitude must be numbers") from None
        if not -90.0 <= lat <= 90.0:
            raise ValueError("latitude must be between -90 and 90")
        if not -180.0 <= lon <= 180.0:
            raise ValueError("longitude must be between -180 and 180")
        return cls(lat, lon)


class ProximityResult(NamedTuple):
    is_valid: bool
    distance_meters: float


def distance_meters(a: Coordinate, b: Coordinate) -> float:
    """Great-circle distance between two coordinates (Haversine)."""
    if a == b:
        return 0.0
    lat1, lon1, lat2, lon2 = map(radians, [a.latitude, a.longitude, b.latitude, b.longitude])
    dlat = lat2 - lat1
    dlon = lon2 - lon1
    h = sin(dlat / 2) ** 2 + cos(lat1) * cos(lat2) * sin(dlon / 2) ** 2
    # rounding can push h just past 1 for antipodal points
    h = min(1.0, max(0.0, h))
    c = 2 * atan2(sqrt(h), sqrt(1 - h))
    return EARTH_RADIUS_M * c


def check_proximity(claimant: Coordinate, anchor: Coordinate, max_distance_meters: float) -> ProximityResult:
    distance = round(distance_meters(claimant, anchor), 2)
    return ProximityResult(distance <= float(max_distance_meters), distance)
