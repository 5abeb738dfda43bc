"""
위험도 분류 / 경로 위험 점수
- 최근접 사건 거리 -> LOW / MEDIUM / HIGH
- 반경 내 사건들의 역거리 가중 합 (후보 경로 상대 비교용)
- 경로 위 근접 지점 마커 (등급 포함)
"""

import logging
from dataclasses import dataclass
from enum import IntEnum
from typing import List, Optional, Sequence

import numpy as np

from .geo import LatLon, distance_matrix, format_distance
from .incidents import Incident
from .proximity import (SCAN_MAX_SAMPLES, ProximityResult, find_nearest_within,
                        incident_points, sample_path)

logger = logging.getLogger(__name__)

HIGH_RISK_DISTANCE_M = 100.0
DEFAULT_PROXIMITY_RADIUS_M = 300.0
SCORE_MAX_SAMPLES = 500
MARKER_LIMIT = 60


class RiskLevel(IntEnum):
    LOW = 0
    MEDIUM = 1
    HIGH = 2

    @property
    def label(self) -> str:
        return self.name.lower()

    @property
    def badge(self) -> str:
        return {RiskLevel.LOW: "🟢", RiskLevel.MEDIUM: "🟡", RiskLevel.HIGH: "🔴"}[self]


def classify(distance_m: Optional[float],
             proximity_radius: float = DEFAULT_PROXIMITY_RADIUS_M) -> RiskLevel:
    """
    최근접 사건 거리 -> 위험 등급

    Args:
        distance_m: 경로와 가장 가까운 사건까지 거리 (None이면 사건 없음)
        proximity_radius: 사용자 설정 반경

    Returns:
        < 100 m HIGH, 100 m ~ radius MEDIUM, 그 외 LOW
    """
    if distance_m is None:
        return RiskLevel.LOW
    if distance_m < HIGH_RISK_DISTANCE_M:
        return RiskLevel.HIGH
    if distance_m <= proximity_radius:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


@dataclass(frozen=True)
class NearbyPoint:
    lat: float
    lon: float
    distance_m: float
    incident: Incident
    level: RiskLevel


def nearby_points(path: Sequence[LatLon], incidents: Sequence[Incident],
                  radius_m: float,
                  max_samples: int = SCAN_MAX_SAMPLES,
                  limit: int = MARKER_LIMIT) -> List[NearbyPoint]:
    """
    반경 안에 사건이 있는 경로 지점 마커

    Each sampled path point yields at most one marker, for the first
    incident (in snapshot order) inside the radius.
    """
    if len(path) < 2 or not incidents:
        return []
    samples = sample_path(path, max_samples)
    dist = distance_matrix(samples, incident_points(incidents))
    inside = dist <= radius_m

    markers = []
    for i in np.flatnonzero(inside.any(axis=1)):
        j = int(np.argmax(inside[i]))
        d = float(dist[i, j])
        markers.append(NearbyPoint(
            lat=float(samples[i, 0]),
            lon=float(samples[i, 1]),
            distance_m=d,
            incident=incidents[j],
            level=classify(d, radius_m),
        ))
        if len(markers) >= limit:
            break
    return markers


def score_path(path: Sequence[LatLon], incidents: Sequence[Incident],
               buffer_m: float, max_samples: int = SCORE_MAX_SAMPLES) -> float:
    """
    경로 위험 점수

    샘플 지점 x 반경(buffer_m) 내 사건마다 1 / (d + 1) 누적.
    값 자체에는 단위가 없고 같은 사건 집합/반경에서의 상대 비교에만 의미가 있다.
    """
    if len(path) < 2 or not incidents:
        return 0.0
    dist = distance_matrix(sample_path(path, max_samples), incident_points(incidents))
    dist = np.maximum(dist, 0.0)
    return float(np.sum(np.where(dist <= buffer_m, 1.0 / (dist + 1.0), 0.0)))


@dataclass(frozen=True)
class RiskAssessment:
    level: RiskLevel
    nearest: Optional[ProximityResult]
    score: float
    message: str


def risk_message(nearest: Optional[ProximityResult], level: RiskLevel) -> str:
    """경로 위험 코멘트"""
    if nearest is None:
        return f"{RiskLevel.LOW.badge} No incidents nearby (low risk)"
    ev = nearest.incident
    return (f"{level.badge} {ev.category} {format_distance(nearest.distance_m)} from the route "
            f"({level.label} risk) - {ev.area or 'unknown area'}")


def assess_path(path: Sequence[LatLon], incidents: Sequence[Incident],
                proximity_radius: float = DEFAULT_PROXIMITY_RADIUS_M,
                scan_max_samples: int = SCAN_MAX_SAMPLES,
                score_max_samples: int = SCORE_MAX_SAMPLES) -> RiskAssessment:
    """근접 탐색 + 분류 + 점수를 한 번에"""
    nearest = find_nearest_within(path, incidents, proximity_radius, scan_max_samples)
    level = classify(nearest.distance_m if nearest else None, proximity_radius)
    score = score_path(path, incidents, proximity_radius, score_max_samples)

    logger.debug(f"assess_path: points={len(path)}, incidents={len(incidents)}, "
                 f"level={level.name}, score={score:.4f}")
    return RiskAssessment(level=level, nearest=nearest, score=score,
                          message=risk_message(nearest, level))
