"""
Straight-line distance and drive estimates.

Turn-by-turn routing belongs to an external directions service; these
helpers only approximate road distance from great-circle distance.
"""

import math

from pathway.models.routing import GeoPoint

EARTH_RADIUS_MILES = 3958.8


def haversine_miles(a: GeoPoint, b: GeoPoint) -> float:
    """Great-circle distance between two points in miles."""
    lat1, lon1 = math.radians(a.lat), math.radians(a.lon)
    lat2, lon2 = math.radians(b.lat), math.radians(b.lon)
    dlat = lat2 - lat1
    dlon = lon2 - lon1
    h = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2) ** 2
    return 2 * EARTH_RADIUS_MILES * math.asin(math.sqrt(h))


def drive_minutes(miles: float, average_speed_mph: float) -> float:
    if average_speed_mph <= 0:
        raise ValueError("average_speed_mph must be positive")
    return miles / average_speed_mph * 60.0
