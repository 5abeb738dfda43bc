import logging
import threading
from datetime import datetime
from typing import Dict, List, Optional, Union

from fastapi import FastAPI, Header, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from .advisor import ACTIVE, PREVIEW, RouteAdvisor
from .config import load_settings
from .geo import format_distance
from .incidents import IncidentSnapshot, filter_by_area, load_incidents_csv
from .proximity import instruction_index_for_position
from .risk import assess_path, nearby_points
from .speed_model import TravelMode, estimate_duration_seconds, format_duration, get_profile

settings = load_settings()

# --- Logging Setup ---
logging.basicConfig(level=getattr(logging, settings.log_level.upper(), logging.INFO))
logger = logging.getLogger(__name__)


# --- Pydantic Models ---
class LatLng(BaseModel):
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)

    def as_tuple(self):
        return (self.lat, self.lng)


class IncidentOut(BaseModel):
    id: Union[int, str]
    lat: float
    lng: float
    category: str
    area: str
    period: str = ""


class AssessRequest(BaseModel):
    path: List[LatLng]
    proximity_radius: Optional[float] = Field(None, ge=50, le=2500)
    stream: Optional[str] = None  # 'preview' or 'active'
    area: Optional[str] = None


class NearbyMarker(BaseModel):
    lat: float
    lng: float
    distance_m: float
    level: str
    category: str


class AlertOut(BaseModel):
    level: str
    stream: str


class AssessResponse(BaseModel):
    level: str
    nearest: Optional[IncidentOut] = None
    distance_m: Optional[float] = None
    distance_text: str = "—"
    score: float
    message: str
    nearby: List[NearbyMarker] = []
    alert: Optional[AlertOut] = None


class DetourRequest(BaseModel):
    path: List[LatLng]
    origin: LatLng
    destination: LatLng
    mode: Optional[TravelMode] = None
    proximity_radius: Optional[float] = Field(None, ge=50, le=2500)
    area: Optional[str] = None


class DetourResponse(BaseModel):
    waypoint: LatLng
    via_points: List[LatLng]


class ProgressRequest(BaseModel):
    path: List[LatLng]
    position: LatLng
    instruction_count: int = Field(..., ge=0)


class ProgressResponse(BaseModel):
    instruction_index: Optional[int] = None


class EstimateRequest(BaseModel):
    distance_m: float = Field(..., ge=0)
    mode: TravelMode = TravelMode.DRIVE
    at: Optional[datetime] = None


class EstimateResponse(BaseModel):
    duration_seconds: float
    duration_text: str
    distance_text: str


# --- Global State ---
INCIDENTS: IncidentSnapshot = ()
DEFAULT_CLIENT = "default"
ADVISORS: Dict[str, RouteAdvisor] = {}  # X-Client-Id -> 클라이언트별 스트림/경유지 상태
_advisors_lock = threading.Lock()
SPEED_PROFILE = get_profile(settings.speed_profile)

# --- FastAPI App ---
app = FastAPI(title="Safe Route Risk Advisory Service")

origins = [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def set_incidents(snapshot: IncidentSnapshot):
    """사건 스냅샷 교체 (진행 중인 계산은 이전 tuple을 계속 사용)"""
    global INCIDENTS
    INCIDENTS = tuple(snapshot)
    logger.info(f"Incident snapshot replaced: {len(INCIDENTS)} incidents")


def get_advisor(client_id: Optional[str]) -> RouteAdvisor:
    """클라이언트별 RouteAdvisor (없으면 생성)"""
    key = client_id or DEFAULT_CLIENT
    with _advisors_lock:
        advisor = ADVISORS.get(key)
        if advisor is None:
            advisor = ADVISORS[key] = RouteAdvisor(settings)
            logger.info(f"New route advisor for client {key!r} ({len(ADVISORS)} total)")
        return advisor


def _incidents_for(area: Optional[str]) -> IncidentSnapshot:
    return filter_by_area(INCIDENTS, area)


def _incident_out(ev) -> IncidentOut:
    return IncidentOut(id=ev.id, lat=ev.lat, lng=ev.lon, category=ev.category,
                       area=ev.area, period=ev.period)


@app.on_event("startup")
async def startup_event():
    logger.info(f"Loading incidents from {settings.incidents_csv} ...")
    set_incidents(load_incidents_csv(settings.incidents_csv))


@app.get("/")
def read_root():
    return {"message": "Welcome to Safe Route Risk Advisory API"}


@app.get("/api/health")
def health():
    return {"status": "ok", "incidents": len(INCIDENTS)}


@app.get("/api/incidents", response_model=List[IncidentOut])
def get_incidents(area: Optional[str] = Query(None)):
    snapshot = _incidents_for(area)
    logger.info(f"Returning {len(snapshot)} incidents (area={area!r})")
    return [_incident_out(ev) for ev in snapshot]


# --- Risk Endpoint ---
@app.post("/api/risk/assess", response_model=AssessResponse)
def assess_route(req: AssessRequest, x_client_id: Optional[str] = Header(None)):
    if req.stream is not None and req.stream not in (PREVIEW, ACTIVE):
        raise HTTPException(status_code=400, detail=f"Unknown stream: {req.stream}")
    if len(req.path) < 2:
        raise HTTPException(status_code=400, detail="path must contain at least 2 points")

    radius = req.proximity_radius or settings.proximity_radius_m
    incidents = _incidents_for(req.area)
    path = [p.as_tuple() for p in req.path]

    try:
        if req.stream is None:
            # 스트림 없이 요청한 평가는 알림 상태에 반영하지 않는다
            assessment = assess_path(path, incidents, radius,
                                     scan_max_samples=settings.scan_max_samples,
                                     score_max_samples=settings.score_max_samples)
            alert = None
        else:
            update = get_advisor(x_client_id).stream(req.stream).update(path, incidents, radius)
            assessment, alert = update.assessment, update.alert
        markers = nearby_points(path, incidents, radius, settings.scan_max_samples)
    except Exception as e:
        logger.error(f"Risk assessment error: {e}")
        raise HTTPException(status_code=500, detail=str(e))

    nearest = assessment.nearest
    return AssessResponse(
        level=assessment.level.name,
        nearest=_incident_out(nearest.incident) if nearest else None,
        distance_m=nearest.distance_m if nearest else None,
        distance_text=format_distance(nearest.distance_m) if nearest else "—",
        score=assessment.score,
        message=assessment.message,
        nearby=[
            NearbyMarker(lat=m.lat, lng=m.lon, distance_m=m.distance_m,
                         level=m.level.name,
                         category=m.incident.category)
            for m in markers
        ],
        alert=AlertOut(level=alert.level.name, stream=alert.stream) if alert else None,
    )


# --- Detour Endpoint ---
@app.post("/api/route/detour", response_model=DetourResponse)
def detour_route(req: DetourRequest, x_client_id: Optional[str] = Header(None)):
    advisor = get_advisor(x_client_id)
    try:
        with advisor.lock:
            advisor.set_endpoints(req.origin.as_tuple(), req.destination.as_tuple(), req.mode)
            waypoint = advisor.request_detour(
                [p.as_tuple() for p in req.path],
                _incidents_for(req.area),
                req.proximity_radius,
            )
            via = [LatLng(lat=w.lat, lng=w.lon) for w in advisor.via_points]
    except Exception as e:
        logger.error(f"Detour error: {e}")
        raise HTTPException(status_code=500, detail=str(e))

    if waypoint is None:
        raise HTTPException(status_code=404, detail="No safer alternative found")

    return DetourResponse(waypoint=via[0], via_points=via)


@app.post("/api/route/clear")
def clear_route(x_client_id: Optional[str] = Header(None)):
    get_advisor(x_client_id).clear_route()
    return {"message": "Route cleared"}


@app.post("/api/route/progress", response_model=ProgressResponse)
def route_progress(req: ProgressRequest):
    """주행 중 현재 위치 -> 안내 단계 인덱스 (경로나 안내가 없으면 null)"""
    index = instruction_index_for_position(
        [p.as_tuple() for p in req.path],
        req.position.as_tuple(),
        req.instruction_count,
    )
    return ProgressResponse(instruction_index=index)


@app.post("/api/route/estimate", response_model=EstimateResponse)
def estimate_route(req: EstimateRequest):
    seconds = estimate_duration_seconds(req.distance_m, req.mode, req.at, SPEED_PROFILE)
    return EstimateResponse(
        duration_seconds=seconds,
        duration_text=format_duration(seconds),
        distance_text=format_distance(req.distance_m),
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("safe_route.main:app", host="0.0.0.0", port=8000, reload=True)
