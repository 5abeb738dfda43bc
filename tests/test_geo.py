import math

import numpy as np
import pytest

from safe_route.geo import (Coordinate, as_points, distance_matrix, format_distance,
                            haversine_m, offset_by_meters)

POINTS = [
    Coordinate(4.60971, -74.08175),
    Coordinate(37.4979, 127.0276),
    Coordinate(-33.8688, 151.2093),
    Coordinate(0.0, 0.0),
    Coordinate(89.9, 179.9),
]


@pytest.mark.parametrize("a", POINTS)
def test_distance_to_self_is_zero(a):
    assert haversine_m(a, a) == 0


@pytest.mark.parametrize("a", POINTS)
@pytest.mark.parametrize("b", POINTS)
def test_distance_is_symmetric(a, b):
    assert haversine_m(a, b) == pytest.approx(haversine_m(b, a))


def test_small_latitude_step_is_about_1111_meters():
    d = haversine_m((4.60971, -74.08175), (4.61971, -74.08175))
    assert d == pytest.approx(1111, rel=0.05)


def test_distance_matrix_matches_scalar_haversine():
    pts = as_points(POINTS[:3])
    targets = as_points(POINTS[2:])
    dm = distance_matrix(pts, targets)

    assert dm.shape == (3, 3)
    for i, a in enumerate(POINTS[:3]):
        for j, b in enumerate(POINTS[2:]):
            assert dm[i, j] == pytest.approx(haversine_m(a, b), rel=1e-9, abs=1e-6)


def test_as_points_empty_path():
    assert as_points([]).shape == (0, 2)


def test_offset_by_meters_round_trips_through_haversine():
    origin = Coordinate(4.61, -74.08)
    north = offset_by_meters(origin, 0, 500)
    east = offset_by_meters(origin, 500, 0)

    assert north.lon == origin.lon
    assert east.lat == origin.lat
    assert haversine_m(origin, north) == pytest.approx(500, rel=0.01)
    assert haversine_m(origin, east) == pytest.approx(500, rel=0.01)


def test_format_distance():
    assert format_distance(42.4) == "42 m"
    assert format_distance(999) == "999 m"
    assert format_distance(2600) == "3 km"
    assert format_distance(math.nan) == "—"
    assert format_distance(None) == "—"
    assert format_distance(np.inf) == "—"
