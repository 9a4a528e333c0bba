# qr_attendance/tools/geo_math.py

import math

from ..config.config import settings
from ..models.attendance_models import Coordinate

# Mean Earth radius in meters
EARTH_RADIUS_M = 6371000

KIGALI_CENTER = Coordinate(
    latitude=settings.GEOFENCE_CENTER_LATITUDE,
    longitude=settings.GEOFENCE_CENTER_LONGITUDE
)
KIGALI_RADIUS_M = settings.GEOFENCE_RADIUS_METERS


def distance_meters(a: Coordinate, b: Coordinate) -> float:
    """
    Great-circle distance between two coordinates using the haversine formula.

    Args:
        a (Coordinate): First point, in degrees.
        b (Coordinate): Second point, in degrees.

    Returns:
        float: Distance in meters. NaN components yield NaN.
    """
    lat1 = math.radians(a.latitude)
    lat2 = math.radians(b.latitude)
    dlat = math.radians(b.latitude - a.latitude)
    dlon = math.radians(b.longitude - a.longitude)

    h = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2) ** 2
    c = 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))
    return EARTH_RADIUS_M * c


def is_within_radius(point: Coordinate, center: Coordinate, radius_m: float) -> bool:
    """
    Checks whether `point` lies inside the circle around `center`.
    A NaN distance compares False, so an unknown position is never inside.
    """
    return distance_meters(point, center) <= radius_m
