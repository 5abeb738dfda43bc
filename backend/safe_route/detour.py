"""
우회 경유지 생성 모듈
- 가장 위험한 사건 주위 원(ring) 위에 후보 경유지 생성
- 출발 -> 후보 -> 도착 직선 보간 경로로 위험 점수 평가
- (위험 점수 + 거리 페널티) 최소 후보 선택

직선 보간 경로는 실제 도로 경로가 아니라 후보 순위를 매기기 위한 근사치다.
"""

import logging
import math
from dataclasses import dataclass
from typing import List, Optional, Sequence

from .geo import Coordinate, LatLon, haversine_m, offset_by_meters
from .incidents import Incident
from .proximity import SCAN_MAX_SAMPLES, find_nearest, sample_path
from .risk import SCORE_MAX_SAMPLES, score_path

logger = logging.getLogger(__name__)

RING_POINTS = 12
LEG_STEPS = 80
MIN_RING_RADIUS_M = 300.0
RING_MARGIN_M = 200.0
MIN_SCORE_BUFFER_M = 250.0
LENGTH_PENALTY_PER_M = 0.0005


@dataclass(frozen=True)
class DetourCandidate:
    waypoint: Coordinate
    risk_score: float
    length_m: float
    length_penalty: float

    @property
    def total_cost(self) -> float:
        return self.risk_score + self.length_penalty


def detour_radius(proximity_radius: float) -> float:
    return max(proximity_radius + RING_MARGIN_M, MIN_RING_RADIUS_M)


def ring_candidates(center: LatLon, radius_m: float, ring_points: int = RING_POINTS) -> List[Coordinate]:
    """중심 주위 radius_m 원 위에 균등 간격 후보 (평면 근사 오프셋)"""
    candidates = []
    for k in range(ring_points):
        ang = 2 * math.pi * k / ring_points
        candidates.append(offset_by_meters(center, radius_m * math.cos(ang), radius_m * math.sin(ang)))
    return candidates


def interpolate_leg(a: LatLon, b: LatLon, segments: int = LEG_STEPS) -> List[Coordinate]:
    """a -> b 직선 보간 (segments + 1 점)"""
    segments = max(1, segments)
    out = []
    for i in range(segments + 1):
        t = i / segments
        out.append(Coordinate(a[0] + (b[0] - a[0]) * t, a[1] + (b[1] - a[1]) * t))
    return out


def two_leg_path(origin: LatLon, via: LatLon, destination: LatLon,
                 leg_steps: int = LEG_STEPS) -> List[Coordinate]:
    return interpolate_leg(origin, via, leg_steps) + interpolate_leg(via, destination, leg_steps)


def evaluate_candidate(origin: LatLon, candidate: Coordinate, destination: LatLon,
                       incidents: Sequence[Incident], buffer_m: float,
                       leg_steps: int = LEG_STEPS,
                       max_samples: int = SCORE_MAX_SAMPLES) -> DetourCandidate:
    approx = two_leg_path(origin, candidate, destination, leg_steps)
    risk = score_path(approx, incidents, buffer_m, max_samples)
    length = haversine_m(origin, candidate) + haversine_m(candidate, destination)
    return DetourCandidate(
        waypoint=candidate,
        risk_score=risk,
        length_m=length,
        length_penalty=LENGTH_PENALTY_PER_M * length,
    )


def suggest_detour(origin: Optional[LatLon], destination: Optional[LatLon],
                   offending: Optional[Incident], incidents: Sequence[Incident],
                   proximity_radius: float,
                   ring_points: int = RING_POINTS,
                   leg_steps: int = LEG_STEPS) -> Optional[DetourCandidate]:
    """
    위험 사건을 피하는 우회 경유지

    Args:
        origin: 출발지 (lat, lon)
        destination: 도착지 (lat, lon)
        offending: 피해야 할 사건 (보통 경로 최근접 사건)
        incidents: 점수 계산에 쓰는 전체 사건 스냅샷
        proximity_radius: 사용자 설정 반경 (m)
        ring_points: 후보 개수
        leg_steps: 구간별 보간 분할 수

    Returns:
        비용 최소 후보, 후보가 없으면 None
    """
    if origin is None or destination is None or offending is None:
        return None
    if not incidents or ring_points < 1:
        return None

    radius = detour_radius(proximity_radius)
    buffer_m = max(MIN_SCORE_BUFFER_M, proximity_radius)

    best = None
    for candidate in ring_candidates(offending.coordinate, radius, ring_points):
        scored = evaluate_candidate(origin, candidate, destination, incidents, buffer_m, leg_steps)
        logger.debug(f"detour candidate {candidate}: risk={scored.risk_score:.4f}, "
                     f"penalty={scored.length_penalty:.4f}")
        if best is None or scored.total_cost < best.total_cost:
            best = scored

    logger.info(f"Detour around incident {offending.id}: via {best.waypoint} "
                f"(cost {best.total_cost:.4f}, {best.length_m:.0f} m)")
    return best


def suggest_alternate_waypoint(path: Sequence[LatLon],
                               origin: Optional[LatLon], destination: Optional[LatLon],
                               incidents: Sequence[Incident], proximity_radius: float,
                               ring_points: int = RING_POINTS,
                               leg_steps: int = LEG_STEPS,
                               scan_max_samples: int = SCAN_MAX_SAMPLES) -> Optional[Coordinate]:
    """
    현재 경로의 최근접 사건을 우회하는 경유지

    None은 '더 안전한 대안 없음'을 뜻하며, 호출 측은 기존 경로를 조용히 유지하지 말고
    이를 사용자에게 알려야 한다.
    """
    if len(sample_path(path, scan_max_samples)) == 0:
        return None
    nearest = find_nearest(path, incidents, scan_max_samples)
    if nearest is None:
        logger.info("No incident found near the current path; no detour")
        return None

    best = suggest_detour(origin, destination, nearest.incident, incidents,
                          proximity_radius, ring_points, leg_steps)
    return best.waypoint if best else None
