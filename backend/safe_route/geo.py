"""
구면 거리 유틸리티 / spherical distance helpers
- haversine great-circle distance (sphere radius 6,371,000 m)
- local planar meter offset -> degrees (candidate seeding only)
- vectorised distance matrix for the scanners
"""

import math
from typing import NamedTuple, Sequence, Tuple, Union

import numpy as np

EARTH_RADIUS_M = 6371000.0
METERS_PER_DEG_LAT = 111320.0


class Coordinate(NamedTuple):
    lat: float
    lon: float


LatLon = Union[Coordinate, Tuple[float, float]]


def haversine_m(a: LatLon, b: LatLon) -> float:
    """
    두 좌표 사이의 대원 거리 (미터)

    Args:
        a: (lat, lon)
        b: (lat, lon)

    Returns:
        distance in meters
    """
    lat1, lon1 = math.radians(a[0]), math.radians(a[1])
    lat2, lon2 = math.radians(b[0]), math.radians(b[1])
    d_lat = lat2 - lat1
    d_lon = lon2 - lon1
    h = math.sin(d_lat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(d_lon / 2) ** 2
    # float error can push h a hair above 1 on antipodal points
    h = min(max(h, 0.0), 1.0)
    return EARTH_RADIUS_M * 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))


def as_points(path: Sequence[LatLon]) -> np.ndarray:
    """좌표 시퀀스 -> (N, 2) float 배열"""
    if len(path) == 0:
        return np.empty((0, 2), dtype=float)
    return np.asarray(path, dtype=float).reshape(-1, 2)


def distance_matrix(points: np.ndarray, targets: np.ndarray) -> np.ndarray:
    """
    N개 지점 x M개 대상의 haversine 거리 행렬

    Args:
        points: (N, 2) lat/lon degrees
        targets: (M, 2) lat/lon degrees

    Returns:
        (N, M) distances in meters
    """
    p = np.radians(points)[:, None, :]
    t = np.radians(targets)[None, :, :]
    d_lat = t[..., 0] - p[..., 0]
    d_lon = t[..., 1] - p[..., 1]
    h = np.sin(d_lat / 2) ** 2 + np.cos(p[..., 0]) * np.cos(t[..., 0]) * np.sin(d_lon / 2) ** 2
    h = np.clip(h, 0.0, 1.0)
    return EARTH_RADIUS_M * 2 * np.arctan2(np.sqrt(h), np.sqrt(1 - h))


def offset_by_meters(origin: LatLon, dx: float, dy: float) -> Coordinate:
    """
    평면 근사로 (dx 동쪽, dy 북쪽) 미터만큼 이동한 좌표

    Flat-earth approximation, valid for offsets of a few kilometres.
    Only used to seed detour candidates; never for scoring.
    """
    m_per_deg_lon = METERS_PER_DEG_LAT * math.cos(math.radians(origin[0]))
    return Coordinate(origin[0] + dy / METERS_PER_DEG_LAT, origin[1] + dx / m_per_deg_lon)


def format_distance(meters: float) -> str:
    """거리 표시 문자열 (1 km 미만은 m 단위)"""
    if meters is None or not math.isfinite(meters):
        return "—"
    if meters < 1000:
        return f"{round(meters)} m"
    return f"{round(meters / 1000)} km"
