"""
설정 모듈
- 환경 변수(SAFE_ROUTE_*) / .env 파일에서 엔진 설정 로드 (pydantic-settings)
"""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .speed_model import TravelMode

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
DATA_DIR = PROJECT_ROOT / "data"

ENV_PREFIX = "SAFE_ROUTE_"


class RiskSettings(BaseSettings):
    proximity_radius_m: float = Field(300.0, ge=50, le=2500)
    alert_cooldown_ms: float = Field(15000.0, ge=0)
    alert_enabled: bool = True
    mode: TravelMode = TravelMode.DRIVE
    speed_profile: str = "bogota"

    scan_max_samples: int = Field(800, ge=1)
    score_max_samples: int = Field(500, ge=1)
    ring_points: int = Field(12, ge=1)
    leg_steps: int = Field(80, ge=1)

    incidents_csv: Path = DATA_DIR / "incidents.csv"
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


def load_settings() -> RiskSettings:
    """환경 변수 -> RiskSettings (설정 안 된 값은 기본값, 범위 밖이면 ValidationError)"""
    return RiskSettings()
