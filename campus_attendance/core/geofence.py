"""
Campus geofence evaluation
Haversine distance to a fixed campus center and inside/outside/unknown classification
"""

import math
from typing import Optional, NamedTuple

from ..schemas.attendance import GeofencingStatus

EARTH_RADIUS_METERS = 6371000.0


class GeoPoint(NamedTuple):
    latitude: float
    longitude: float


class GeofenceResult(NamedTuple):
    status: GeofencingStatus
    is_inside: bool
    distance_meters: Optional[float] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None


UNKNOWN_RESULT = GeofenceResult(status=GeofencingStatus.UNKNOWN, is_inside=False)


def calculate_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Calculate distance in meters between two points using Haversine formula"""
    lat1_rad = math.radians(lat1)
    lat2_rad = math.radians(lat2)
    delta_lat = math.radians(lat2 - lat1)
    delta_lon = math.radians(lon2 - lon1)

    a = (math.sin(delta_lat / 2) ** 2 +
         math.cos(lat1_rad) * math.cos(lat2_rad) * math.sin(delta_lon / 2) ** 2)
    # float rounding can leave a slightly outside [0, 1] near antipodes
    a = min(1.0, max(0.0, a))
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return EARTH_RADIUS_METERS * c


class CampusGeofence:
    """Circular boundary around the campus reference point.

    The boundary is inclusive: a point exactly ``radius_meters`` away is inside.
    Whether a session uses geofencing at all is decided by the caller.
    """

    def __init__(self, center_lat: float, center_lng: float, radius_meters: float = 1000.0):
        self.center = GeoPoint(center_lat, center_lng)
        self.radius_meters = radius_meters

    @classmethod
    def from_settings(cls, settings) -> 'CampusGeofence':
        return cls(
            settings.CAMPUS_CENTER_LAT,
            settings.CAMPUS_CENTER_LNG,
            settings.GEOFENCE_RADIUS_METERS,
        )

    def distance_to_center(self, lat: float, lng: float) -> float:
        return calculate_distance(self.center.latitude, self.center.longitude, lat, lng)

    def classify(self, lat: Optional[float], lng: Optional[float]) -> GeofenceResult:
        if lat is None or lng is None:
            return UNKNOWN_RESULT

        distance = self.distance_to_center(lat, lng)
        is_inside = distance <= self.radius_meters
        return GeofenceResult(
            status=GeofencingStatus.INSIDE if is_inside else GeofencingStatus.OUTSIDE,
            is_inside=is_inside,
            distance_meters=distance,
            latitude=lat,
            longitude=lng,
        )
