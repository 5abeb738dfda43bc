"""
이동 시간 추정 모듈
- 시간대/요일별 평균 속도 테이블 (기본: 보고타 교통 패턴)
- 거리 -> 예상 소요 시간
"""

import math
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Dict, Optional


class TravelMode(str, Enum):
    DRIVE = "drive"
    WALK = "walk"


@dataclass(frozen=True)
class SpeedProfile:
    """지역별 평균 속도 테이블 (km/h)"""
    name: str
    walk_kmh: float = 4.8
    weekday_peak_kmh: float = 22.0       # 06-09, 16-20
    weekday_midday_kmh: float = 28.0     # 09-16
    weekday_offpeak_kmh: float = 34.0    # 야간/새벽
    weekend_leisure_kmh: float = 26.0    # 11-20
    weekend_offpeak_kmh: float = 32.0

    def drive_speed(self, now: datetime) -> float:
        hour = now.hour
        weekend = now.weekday() >= 5

        if weekend:
            if 11 <= hour < 20:
                return self.weekend_leisure_kmh
            return self.weekend_offpeak_kmh

        if 6 <= hour < 9 or 16 <= hour < 20:
            return self.weekday_peak_kmh
        elif 9 <= hour < 16:
            return self.weekday_midday_kmh
        else:
            return self.weekday_offpeak_kmh


BOGOTA = SpeedProfile(name="bogota")

PROFILES: Dict[str, SpeedProfile] = {
    BOGOTA.name: BOGOTA,
}

MIN_DURATION_SECONDS = 60


def get_profile(name: str) -> SpeedProfile:
    try:
        return PROFILES[name.lower()]
    except KeyError:
        raise ValueError(f"Unknown speed profile: {name!r} (available: {', '.join(sorted(PROFILES))})")


def average_speed_kmh(mode: TravelMode, now: Optional[datetime] = None,
                      profile: SpeedProfile = BOGOTA) -> float:
    """
    이동 수단/시각별 평균 속도

    Args:
        mode: DRIVE 또는 WALK
        now: 기준 시각 (None이면 현재 시각)
        profile: 지역 속도 테이블

    Returns:
        km/h
    """
    mode = TravelMode(mode)
    if mode is TravelMode.WALK:
        return profile.walk_kmh
    if now is None:
        now = datetime.now()
    return profile.drive_speed(now)


def estimate_duration_seconds(distance_m: float, mode: TravelMode,
                              now: Optional[datetime] = None,
                              profile: SpeedProfile = BOGOTA) -> float:
    """예상 소요 시간 (초), 최소 60초"""
    kmh = average_speed_kmh(mode, now, profile)
    meters_per_sec = kmh * 1000 / 3600
    secs = distance_m / max(1e-6, meters_per_sec)
    return float(max(MIN_DURATION_SECONDS, round(secs)))


def format_duration(seconds: float) -> str:
    """소요 시간 표시 문자열"""
    if seconds is None or not math.isfinite(seconds):
        return "—"
    total_min = max(0, round(seconds / 60))
    if total_min < 60:
        return f"{max(1, total_min)} min"
    h, m = divmod(total_min, 60)
    return f"{h} h {m} min" if m else f"{h} h"
