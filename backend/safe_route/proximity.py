"""
경로-사건 근접도 탐색 모듈
- 경로 서브샘플링 (stride = max(1, len // max_samples))
- 경로에 가장 가까운 사건 찾기 (반경 제한 / 무제한)
- 현재 위치 기반 안내 진행도
"""

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np

from .geo import LatLon, as_points, distance_matrix
from .incidents import Incident

logger = logging.getLogger(__name__)

SCAN_MAX_SAMPLES = 800


@dataclass(frozen=True)
class ProximityResult:
    incident: Incident
    distance_m: float


def sample_stride(length: int, max_samples: int) -> int:
    return max(1, length // max(1, max_samples))


def sample_path(path: Sequence[LatLon], max_samples: int) -> np.ndarray:
    """경로를 stride 간격으로 샘플링한 (K, 2) 배열"""
    points = as_points(path)
    return points[::sample_stride(len(points), max_samples)]


def incident_points(incidents: Sequence[Incident]) -> np.ndarray:
    return np.array([(ev.lat, ev.lon) for ev in incidents], dtype=float).reshape(-1, 2)


def _min_distance_per_incident(path, incidents, max_samples) -> Optional[np.ndarray]:
    if len(path) < 2 or not incidents:
        return None
    samples = sample_path(path, max_samples)
    return distance_matrix(samples, incident_points(incidents)).min(axis=0)


def find_nearest(path: Sequence[LatLon], incidents: Sequence[Incident],
                 max_samples: int = SCAN_MAX_SAMPLES) -> Optional[ProximityResult]:
    """
    경로에 가장 가까운 사건

    Args:
        path: 경로 좌표 (lat, lon) 시퀀스
        incidents: 사건 스냅샷
        max_samples: 샘플링 상한

    Returns:
        ProximityResult, 사건이 없거나 경로가 2점 미만이면 None
    """
    mins = _min_distance_per_incident(path, incidents, max_samples)
    if mins is None:
        return None
    idx = int(np.argmin(mins))
    return ProximityResult(incident=incidents[idx], distance_m=float(mins[idx]))


def find_nearest_within(path: Sequence[LatLon], incidents: Sequence[Incident],
                        radius_m: float,
                        max_samples: int = SCAN_MAX_SAMPLES) -> Optional[ProximityResult]:
    """반경(radius_m) 이내에서 경로에 가장 가까운 사건 하나"""
    mins = _min_distance_per_incident(path, incidents, max_samples)
    if mins is None:
        return None
    within = np.where(mins <= radius_m, mins, np.inf)
    idx = int(np.argmin(within))
    if not np.isfinite(within[idx]):
        return None
    return ProximityResult(incident=incidents[idx], distance_m=float(mins[idx]))


def instruction_index_for_position(path: Sequence[LatLon], position: LatLon,
                                   instruction_count: int,
                                   max_samples: int = 1000) -> Optional[int]:
    """
    현재 위치에 해당하는 안내 단계 인덱스

    경로상 가장 가까운 (샘플) 지점의 진행 비율을 안내 목록 길이에 비례해 매핑.
    """
    if len(path) == 0 or instruction_count <= 0:
        return None
    points = as_points(path)
    stride = sample_stride(len(points), max_samples)
    dist = distance_matrix(points[::stride], as_points([position]))[:, 0]
    nearest_idx = int(np.argmin(dist)) * stride

    frac = nearest_idx / max(1, len(points) - 1)
    return min(instruction_count - 1, max(0, round(frac * (instruction_count - 1))))
