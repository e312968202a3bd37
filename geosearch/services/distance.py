"""
Great-circle distance between two coordinates.
"""

import math

from ..data.base import Coordinate

# Earth's radius in kilometers
EARTH_RADIUS_KM = 6371.0


def haversine_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Calculate the great-circle distance between two points on Earth.

    Args:
        lat1, lon1: Latitude and longitude of first point (in degrees)
        lat2, lon2: Latitude and longitude of second point (in degrees)

    Returns:
        Distance in kilometers, unrounded
    """
    delta_lat = math.radians(lat2 - lat1)
    delta_lon = math.radians(lon2 - lon1)

    h = (
        math.sin(delta_lat / 2) ** 2 +
        math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(delta_lon / 2) ** 2
    )
    # Floating-point drift can push h a hair outside [0, 1] near antipodes
    h = min(1.0, max(0.0, h))

    return 2 * EARTH_RADIUS_KM * math.atan2(math.sqrt(h), math.sqrt(1 - h))


def distance_km(a: Coordinate, b: Coordinate) -> float:
    return haversine_distance(a.latitude, a.longitude, b.latitude, b.longitude)
