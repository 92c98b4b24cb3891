"""
Geofence distance and classification tests
"""

import math

import pytest

from campus_attendance.core.geofence import (
    CampusGeofence, EARTH_RADIUS_METERS, UNKNOWN_RESULT, calculate_distance
)
from campus_attendance.schemas.attendance import GeofencingStatus

CENTER = (12.9716, 77.5946)
METERS_PER_DEGREE_LAT = EARTH_RADIUS_METERS * math.pi / 180


@pytest.fixture
def geofence():
    return CampusGeofence(*CENTER, radius_meters=1000)


def test_distance_to_self_is_zero():
    assert calculate_distance(*CENTER, *CENTER) == 0


def test_distance_is_symmetric():
    p1 = (12.9716, 77.5946)
    p2 = (13.0827, 80.2707)
    assert calculate_distance(*p1, *p2) == pytest.approx(calculate_distance(*p2, *p1), abs=1e-6)


def test_distance_along_meridian_matches_arc_length():
    distance = calculate_distance(0.0, 10.0, 1.0, 10.0)
    assert distance == pytest.approx(METERS_PER_DEGREE_LAT, rel=1e-9)


def test_antipodal_points_are_half_the_circumference():
    distance = calculate_distance(0.0, 0.0, 0.0, 180.0)
    assert distance == pytest.approx(math.pi * EARTH_RADIUS_METERS, rel=1e-9)


@pytest.mark.parametrize("p1,p2", [
    ((12.9716, 77.5946), (-33.8688, 151.2093)),
    ((89.9, -179.9), (-89.9, 179.9)),
    ((0.0, 0.0), (0.0, 0.0001)),
])
def test_distance_is_never_negative(p1, p2):
    assert calculate_distance(*p1, *p2) >= 0


def test_campus_center_is_inside(geofence):
    result = geofence.classify(*CENTER)
    assert result.status == GeofencingStatus.INSIDE
    assert result.is_inside is True
    assert result.distance_meters == 0


def test_point_about_1500m_away_is_outside(geofence):
    lat = CENTER[0] + 1500 / METERS_PER_DEGREE_LAT
    result = geofence.classify(lat, CENTER[1])
    assert result.distance_meters == pytest.approx(1500, abs=1)
    assert result.status == GeofencingStatus.OUTSIDE
    assert result.is_inside is False
    assert (result.latitude, result.longitude) == (lat, CENTER[1])


def test_point_within_radius_is_inside(geofence):
    lat = CENTER[0] + 990 / METERS_PER_DEGREE_LAT
    assert geofence.classify(lat, CENTER[1]).status == GeofencingStatus.INSIDE


def test_boundary_is_inclusive():
    point = (12.98, 77.60)
    exact = calculate_distance(*CENTER, *point)

    on_boundary = CampusGeofence(*CENTER, radius_meters=exact)
    assert on_boundary.classify(*point).status == GeofencingStatus.INSIDE

    just_short = CampusGeofence(*CENTER, radius_meters=exact - 1e-6)
    assert just_short.classify(*point).status == GeofencingStatus.OUTSIDE


@pytest.mark.parametrize("lat,lng", [(None, None), (12.9716, None), (None, 77.5946)])
def test_missing_coordinates_are_unknown(geofence, lat, lng):
    result = geofence.classify(lat, lng)
    assert result == UNKNOWN_RESULT
    assert result.status == GeofencingStatus.UNKNOWN
    assert result.is_inside is False
    assert result.distance_meters is None


def test_from_settings_uses_configured_center(settings):
    settings.CAMPUS_CENTER_LAT = 6.8918
    settings.CAMPUS_CENTER_LNG = 3.7181
    settings.GEOFENCE_RADIUS_METERS = 250
    geofence = CampusGeofence.from_settings(settings)
    assert geofence.center == (6.8918, 3.7181)
    assert geofence.classify(*CENTER).status == GeofencingStatus.OUTSIDE
