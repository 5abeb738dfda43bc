from .geo import Coordinate, haversine_m, offset_by_meters
from .speed_model import TravelMode, average_speed_kmh, estimate_duration_seconds
from .incidents import Incident, filter_by_area, incidents_from_records, load_incidents_csv
from .proximity import ProximityResult, find_nearest, find_nearest_within, instruction_index_for_position
from .risk import NearbyPoint, RiskLevel, assess_path, classify, nearby_points, score_path
from .detour import suggest_alternate_waypoint, suggest_detour
from .alerts import AlertEvent, AlertLevelTracker
from .advisor import RiskStream, RouteAdvisor

__all__ = [
    "Coordinate",
    "haversine_m",
    "offset_by_meters",
    "TravelMode",
    "average_speed_kmh",
    "estimate_duration_seconds",
    "Incident",
    "filter_by_area",
    "incidents_from_records",
    "load_incidents_csv",
    "ProximityResult",
    "find_nearest",
    "find_nearest_within",
    "instruction_index_for_position",
    "NearbyPoint",
    "RiskLevel",
    "assess_path",
    "classify",
    "nearby_points",
    "score_path",
    "suggest_alternate_waypoint",
    "suggest_detour",
    "AlertEvent",
    "AlertLevelTracker",
    "RiskStream",
    "RouteAdvisor",
]
