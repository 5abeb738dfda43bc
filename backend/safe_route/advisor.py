"""
경로 위험 안내 (미리보기 / 주행 스트림)
- 경로, 사건 스냅샷, 반경이 바뀔 때 호출 측이 명시적으로 update() 호출
- 스트림마다 독립된 AlertLevelTracker
- 우회 경유지 수명 관리 (경로 초기화, 출발/도착/이동수단 변경 시 폐기)
"""

import logging
import threading
from dataclasses import dataclass
from typing import List, Optional, Sequence

from .alerts import AlertEvent, AlertLevelTracker
from .config import RiskSettings
from .detour import suggest_alternate_waypoint
from .geo import Coordinate, LatLon
from .incidents import Incident
from .risk import RiskAssessment, RiskLevel, assess_path
from .speed_model import TravelMode

logger = logging.getLogger(__name__)

PREVIEW = "preview"
ACTIVE = "active"


@dataclass(frozen=True)
class StreamUpdate:
    assessment: Optional[RiskAssessment]
    alert: Optional[AlertEvent]

    @property
    def level(self) -> RiskLevel:
        return self.assessment.level if self.assessment else RiskLevel.LOW


class RiskStream:
    """위험 스트림 하나 (경로 하나를 관찰)"""

    def __init__(self, name: str, settings: RiskSettings, tracker: Optional[AlertLevelTracker] = None):
        self.name = name
        self.settings = settings
        self.tracker = tracker or AlertLevelTracker(
            stream=name,
            cooldown_ms=settings.alert_cooldown_ms,
            enabled=settings.alert_enabled,
        )
        self.assessment: Optional[RiskAssessment] = None

    def update(self, path: Sequence[LatLon], incidents: Sequence[Incident],
               proximity_radius: Optional[float] = None,
               now_ms: Optional[float] = None) -> StreamUpdate:
        if len(path) == 0:
            return self.clear(now_ms)

        radius = proximity_radius if proximity_radius is not None else self.settings.proximity_radius_m
        self.assessment = assess_path(
            path, incidents, radius,
            scan_max_samples=self.settings.scan_max_samples,
            score_max_samples=self.settings.score_max_samples,
        )
        alert = self.tracker.observe(self.assessment.level, now_ms)
        logger.debug(f"[{self.name}] {self.assessment.message}")
        return StreamUpdate(assessment=self.assessment, alert=alert)

    def clear(self, now_ms: Optional[float] = None) -> StreamUpdate:
        # 경로가 없으면 LOW로 관측 (알림 없이 마지막 등급만 갱신)
        self.assessment = None
        self.tracker.observe(RiskLevel.LOW, now_ms)
        return StreamUpdate(assessment=None, alert=None)


class RouteAdvisor:
    """출발/도착 상태와 두 위험 스트림, 우회 경유지를 묶는 호스트"""

    def __init__(self, settings: RiskSettings):
        self.settings = settings
        self.preview = RiskStream(PREVIEW, settings)
        self.active = RiskStream(ACTIVE, settings)
        self.origin: Optional[Coordinate] = None
        self.destination: Optional[Coordinate] = None
        self.mode: TravelMode = settings.mode
        self.waypoint: Optional[Coordinate] = None
        # 출발/도착 변경과 우회 계산을 한 단위로 묶을 때 호출 측도 사용
        self.lock = threading.RLock()

    def stream(self, name: str) -> RiskStream:
        if name == PREVIEW:
            return self.preview
        if name == ACTIVE:
            return self.active
        raise KeyError(name)

    def set_endpoints(self, origin: Optional[LatLon], destination: Optional[LatLon],
                      mode: Optional[TravelMode] = None):
        origin = Coordinate(*origin) if origin is not None else None
        destination = Coordinate(*destination) if destination is not None else None
        mode = TravelMode(mode) if mode is not None else self.mode

        with self.lock:
            if (origin, destination, mode) != (self.origin, self.destination, self.mode):
                if self.waypoint is not None:
                    logger.info("Route endpoints changed; discarding detour waypoint")
                self.waypoint = None
            self.origin, self.destination, self.mode = origin, destination, mode

    def clear_route(self):
        with self.lock:
            self.waypoint = None
        self.preview.clear()
        self.active.clear()

    def request_detour(self, path: Sequence[LatLon], incidents: Sequence[Incident],
                       proximity_radius: Optional[float] = None) -> Optional[Coordinate]:
        radius = proximity_radius if proximity_radius is not None else self.settings.proximity_radius_m
        with self.lock:
            self.waypoint = suggest_alternate_waypoint(
                path, self.origin, self.destination, incidents, radius,
                ring_points=self.settings.ring_points,
                leg_steps=self.settings.leg_steps,
                scan_max_samples=self.settings.scan_max_samples,
            )
            if self.waypoint is None:
                logger.info("No safer alternative found")
            return self.waypoint

    @property
    def via_points(self) -> List[Coordinate]:
        return [self.waypoint] if self.waypoint is not None else []
