"""
공용 fixture
- 보고타 시내 직선 경로와 테스트용 사건
"""

import os

import pytest

# main.py reads settings at import time; keep tests away from real data files
os.environ.setdefault("SAFE_ROUTE_INCIDENTS_CSV", "does-not-exist.csv")

from safe_route.detour import interpolate_leg
from safe_route.geo import Coordinate
from safe_route.incidents import Incident

ORIGIN = Coordinate(4.60, -74.09)
DESTINATION = Coordinate(4.62, -74.07)
MIDPOINT = Coordinate(4.61, -74.08)


def make_incident(lat, lon, id=1, category="hurto a personas", area="Teusaquillo"):
    return Incident(id=id, lat=lat, lon=lon, category=category, area=area)


@pytest.fixture()
def straight_path():
    # 161 points; index 80 is the midpoint (4.61, -74.08)
    return interpolate_leg(ORIGIN, DESTINATION, 160)


@pytest.fixture()
def midpoint_incident():
    return make_incident(MIDPOINT.lat, MIDPOINT.lon, id="mid")


@pytest.fixture()
def far_incident():
    # ~4.5 km from the route, past the destination
    return make_incident(4.66, -74.08, id="far", area="Chapinero")
