"""
사건(범죄) 데이터 적재 모듈
- 원시 레코드 정규화 (position 배열형 / lat·lng 필드형 두 가지 형식)
- CSV 로드 (pandas)
- 지역명(localidad) 부분 문자열 필터

엔진은 여기서 만든 불변 스냅샷(tuple)만 받으며 다시 검증하지 않는다.
"""

import logging
import math
import re
from pathlib import Path
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple, Union

import pandas as pd
from pydantic import BaseModel, ConfigDict, Field

from .geo import Coordinate

logger = logging.getLogger(__name__)

YEAR_KEY = re.compile(r"^(?:anio|year)_(\d{4})$")

# keys consumed by normalisation; everything else goes to metadata
_KNOWN_KEYS = {
    "id", "codigo_localidad", "position", "lat", "latitude", "lng", "lon", "longitude",
    "tipo", "type", "nombre_localidad", "barrio", "mes",
    "variacion_porcentaje", "total_bogota",
}


class Incident(BaseModel):
    """지점 단위로 기록된 사건 (read-only)"""
    model_config = ConfigDict(frozen=True)

    id: Union[int, str]
    lat: float
    lon: float
    category: str = "unknown"
    area: str = ""
    period: str = ""
    yearly_counts: Dict[int, Optional[float]] = Field(default_factory=dict)
    variation_percent: Optional[float] = None
    city_total: Optional[float] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)

    @property
    def coordinate(self) -> Coordinate:
        return Coordinate(self.lat, self.lon)


IncidentSnapshot = Tuple[Incident, ...]


def _missing(value) -> bool:
    return value is None or (isinstance(value, float) and math.isnan(value))


def _first(raw: Mapping[str, Any], *keys, default=None):
    for key in keys:
        value = raw.get(key)
        if not _missing(value):
            return value
    return default


def _to_float(value) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return math.nan


def _to_optional_float(value) -> Optional[float]:
    if _missing(value):
        return None
    number = _to_float(value)
    return None if math.isnan(number) else number


def normalize_incident(raw: Mapping[str, Any], index: int = 0) -> Optional[Incident]:
    """
    원시 레코드 -> Incident

    Args:
        raw: API/CSV 레코드 (position=[lat, lon] 또는 lat/lng 필드)
        index: id가 없을 때 사용할 순번

    Returns:
        Incident, 좌표가 유효하지 않으면 None
    """
    position = raw.get("position")
    if isinstance(position, (list, tuple)) and len(position) >= 2:
        lat, lon = _to_float(position[0]), _to_float(position[1])
        incident_id = _first(raw, "id", default=index)
    else:
        # 지역 통계 피드 (lat/lng 평면 레코드): 지역 코드를 id로 사용
        lat = _to_float(_first(raw, "lat", "latitude"))
        lon = _to_float(_first(raw, "lng", "lon", "longitude"))
        incident_id = _first(raw, "id", "codigo_localidad", default=index)

    if not (math.isfinite(lat) and math.isfinite(lon)):
        return None

    yearly_counts = {}
    metadata = {}
    for key, value in raw.items():
        match = YEAR_KEY.match(str(key))
        if match:
            yearly_counts[int(match.group(1))] = _to_optional_float(value)
        elif key not in _KNOWN_KEYS and not _missing(value):
            metadata[str(key)] = value

    return Incident(
        id=incident_id,
        lat=lat,
        lon=lon,
        category=str(_first(raw, "tipo", "type", default="unknown")),
        area=str(_first(raw, "nombre_localidad", "barrio", default="")),
        period=str(_first(raw, "mes", default="")),
        yearly_counts=yearly_counts,
        variation_percent=_to_optional_float(raw.get("variacion_porcentaje")),
        city_total=_to_optional_float(raw.get("total_bogota")),
        metadata=metadata,
    )


def incidents_from_records(records: Iterable[Mapping[str, Any]]) -> IncidentSnapshot:
    """레코드 목록 -> 불변 스냅샷 (좌표 없는 레코드 제외)"""
    incidents = []
    dropped = 0
    for idx, raw in enumerate(records):
        incident = normalize_incident(raw, idx)
        if incident is None:
            dropped += 1
            continue
        incidents.append(incident)

    if dropped:
        logger.warning(f"Dropped {dropped} incident records without valid coordinates")
    return tuple(incidents)


def load_incidents_csv(filepath: Union[str, Path]) -> IncidentSnapshot:
    """
    CSV 파일에서 사건 스냅샷 로드

    파일이 없으면 경고 후 빈 스냅샷을 반환한다.
    """
    filepath = Path(filepath)
    if not filepath.exists():
        logger.warning(f"File not found: {filepath}")
        return ()

    df = pd.read_csv(filepath)
    logger.info(f"{filepath.name}: columns={df.columns.tolist()}")

    # NaN -> None so optional fields stay empty
    df = df.astype(object).where(pd.notna(df), None)
    snapshot = incidents_from_records(df.to_dict("records"))

    logger.info(f"{filepath.name}: loaded {len(snapshot)} incidents")
    return snapshot


def filter_by_area(incidents: Iterable[Incident], text: Optional[str]) -> IncidentSnapshot:
    """지역명 부분 문자열 필터 (대소문자 무시)"""
    needle = (text or "").strip().lower()
    if not needle:
        return tuple(incidents)
    return tuple(ev for ev in incidents if needle in (ev.area or "").lower())
