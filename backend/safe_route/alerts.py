"""
위험 등급 변화 알림 (edge-triggered)
- 등급이 MEDIUM/HIGH로 '바뀔 때'만 알림, LOW 진입은 알리지 않음
- 마지막 알림 이후 cooldown 동안은 억제
- 스트림(미리보기/주행)마다 별도 인스턴스
"""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional

from .risk import RiskLevel

logger = logging.getLogger(__name__)

DEFAULT_COOLDOWN_MS = 15000


def monotonic_ms() -> float:
    return time.monotonic() * 1000


@dataclass(frozen=True)
class AlertEvent:
    level: RiskLevel
    stream: str
    at_ms: float


class AlertLevelTracker:
    """위험 등급 스트림 하나의 알림 상태"""

    def __init__(self, stream: str = "preview",
                 cooldown_ms: float = DEFAULT_COOLDOWN_MS,
                 enabled: bool = True,
                 clock: Callable[[], float] = monotonic_ms):
        self.stream = stream
        self.cooldown_ms = cooldown_ms
        self.enabled = enabled
        self._clock = clock
        self.last_level = RiskLevel.LOW
        self.last_alert_at: Optional[float] = None
        self._lock = threading.Lock()

    def in_cooldown(self, now_ms: float) -> bool:
        if self.last_alert_at is None:
            return False
        return now_ms - self.last_alert_at < self.cooldown_ms

    def observe(self, level: RiskLevel, now_ms: Optional[float] = None) -> Optional[AlertEvent]:
        """
        새 등급 관측

        Returns:
            AlertEvent, 알림 조건이 아니면 None
        """
        if now_ms is None:
            now_ms = self._clock()
        level = RiskLevel(level)
        event = None

        # 비교와 갱신 사이에 다른 요청이 끼어들지 않도록
        with self._lock:
            if (self.enabled and level != self.last_level
                    and level in (RiskLevel.MEDIUM, RiskLevel.HIGH)
                    and not self.in_cooldown(now_ms)):
                event = AlertEvent(level=level, stream=self.stream, at_ms=now_ms)
                self.last_alert_at = now_ms
                logger.info(f"[{self.stream}] risk alert: {self.last_level.name} -> {level.name}")

            self.last_level = level
        return event

    def reset(self):
        with self._lock:
            self.last_level = RiskLevel.LOW
            self.last_alert_at = None
