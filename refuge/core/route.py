"""
Route summary adapter for refuge.

Normalizes the routing provider's alternatives into the shape the
client consumes (meters, seconds, stringified GeoJSON, flat steps) and
prefers the alternative that passes fewest hazards.
"""

from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional, Sequence, Tuple
from .errors import RouteUnavailable, ValidationError
from .models import HazardRecord, Location, RouteStep, RouteSummary, RouteWarning
from .normalize import to_hazard
from refuge.common.geo import calculate_bounding_box, haversine_distance
from refuge.observability import metrics
from refuge.observability.logging_setup import get_logger

if TYPE_CHECKING:
    from refuge.ports.route_provider import RouteProviderPort
    from refuge.ports.sources import HazardSourcePort

log = get_logger("refuge.route")

# 위험도별 회피 반경 (km)
HAZARD_RADIUS_KM = {
    "critical": 8.0,
    "high": 5.0,
    "moderate": 3.0,
    "low": 2.0,
}
DEFAULT_HAZARD_RADIUS_KM = 5.0

# 위험도별 경로 위험 점수
DANGER_WEIGHTS = {
    "critical": 10,
    "high": 5,
    "moderate": 2,
    "low": 1,
}

# 이동 수단별 평균 속도 (km/h), None이면 제공자 추정치 사용
MODE_SPEEDS_KMH = {
    "driving": None,
    "walking": 5.0,
    "cycling": 15.0,
}

SAMPLE_EVERY = 5
CORRIDOR_BUFFER_DEG = 0.5

def occurred_at(hazard: HazardRecord) -> Optional[datetime]:
    """attributes.time(ISO 8601)을 UTC datetime으로 읽습니다. 없거나 형식이 틀리면 None."""
    value = hazard.attributes.get("time")
    if not isinstance(value, str) or not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed

def step_instruction(step: Dict[str, Any]) -> str:
    """OSRM step에서 사람이 읽을 안내 문구를 만듭니다."""
    maneuver = step.get("maneuver") or {}
    if maneuver.get("instruction"):
        return str(maneuver["instruction"])

    kind = maneuver.get("type", "continue")
    modifier = maneuver.get("modifier")
    road = step.get("name") or ""

    if kind == "depart":
        text = "Head out"
    elif kind == "arrive":
        return "Arrive at destination"
    elif kind in ("turn", "end of road", "fork", "merge", "on ramp", "off ramp") and modifier:
        text = f"Turn {modifier}" if kind == "turn" else f"{kind.capitalize()} {modifier}"
    elif kind == "roundabout" or kind == "rotary":
        text = "Enter the roundabout"
    else:
        text = f"Continue {modifier}" if modifier else "Continue"

    return f"{text} onto {road}" if road else text

def route_coordinates(route: Dict[str, Any]) -> List[Tuple[float, float]]:
    """GeoJSON 좌표([lon, lat])를 (lat, lon) 목록으로 변환합니다."""
    geometry = route.get("geometry") or {}
    return [(float(c[1]), float(c[0])) for c in geometry.get("coordinates", [])]

def score_route(coords: Sequence[Tuple[float, float]],
                hazards: Sequence[HazardRecord]) -> Tuple[int, List[RouteWarning]]:
    """
    경로가 지나는 위험을 평가합니다.

    Args:
        coords: 경로 좌표 (lat, lon)
        hazards: 후보 위험

    Returns:
        (위험 점수, 경고 목록)
    """
    warnings: List[RouteWarning] = []
    score = 0

    for hazard in hazards:
        danger_radius = HAZARD_RADIUS_KM.get(hazard.severity, DEFAULT_HAZARD_RADIUS_KM)
        closest = float("inf")
        dangerous = False

        # 성능을 위해 5번째 점마다 샘플링
        for lat, lon in coords[::SAMPLE_EVERY]:
            d = haversine_distance(hazard.location.lat, hazard.location.lon, lat, lon)
            closest = min(closest, d)
            if d < danger_radius:
                dangerous = True
                break

        if dangerous:
            warnings.append(RouteWarning(
                hazard_id=hazard.id,
                message=f"Route passes near a {hazard.severity} {hazard.hazard_type}",
                closest_distance_km=round(closest, 1),
            ))
            score += DANGER_WEIGHTS.get(hazard.severity, 1)

    return score, warnings

def summarize(route: Dict[str, Any], mode: str = "driving",
              warnings: Optional[List[RouteWarning]] = None,
              alternatives: int = 1) -> RouteSummary:
    """
    단일 OSRM route를 클라이언트 형식으로 변환합니다.

    도보/자전거 모드는 평균 속도로 소요 시간을 다시 계산합니다.
    """
    if mode not in MODE_SPEEDS_KMH:
        raise ValidationError(f"unsupported travel mode: {mode}")

    distance_m = float(route.get("distance", 0.0))
    duration_s = float(route.get("duration", 0.0))
    speed = MODE_SPEEDS_KMH[mode]
    if speed:
        duration_s = distance_m / 1000.0 / speed * 3600.0

    steps = []
    for leg in route.get("legs") or []:
        for step in leg.get("steps") or []:
            steps.append(RouteStep(
                instruction=step_instruction(step),
                distance_m=float(step.get("distance", 0.0)),
            ))

    geometry = route.get("geometry") or {"type": "LineString", "coordinates": []}
    warnings = warnings or []

    return RouteSummary(
        distance_m=distance_m,
        duration_s=duration_s,
        geometry=json.dumps(geometry),
        steps=steps,
        travel_mode=mode,
        warnings=warnings,
        is_safe=not warnings,
        alternatives_considered=alternatives,
    )

class RouteSummaryAdapter:
    """경로 제공자 결과를 위험 회피 기준으로 선택/정규화"""

    def __init__(self, provider: RouteProviderPort,
                 hazard_source: Optional[HazardSourcePort] = None,
                 *, alternatives: int = 3,
                 max_hazard_age_hours: Optional[float] = 72.0,
                 clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc)):
        self.provider = provider
        self.hazard_source = hazard_source
        self.alternatives = alternatives
        self.max_hazard_age_hours = max_hazard_age_hours
        self.clock = clock

    async def get_route(self, origin: Location, destination: Location,
                        mode: str = "driving") -> RouteSummary:
        """
        가장 안전한 대안 경로의 요약을 반환합니다.

        Raises:
            ValidationError: 지원하지 않는 이동 수단
            RouteUnavailable: 제공자가 경로를 주지 못함
        """
        if mode not in MODE_SPEEDS_KMH:
            raise ValidationError(f"unsupported travel mode: {mode}")

        try:
            routes = await self.provider.fetch_routes(origin, destination, self.alternatives)
        except RouteUnavailable:
            metrics.route_requests.labels(result="error").inc()
            raise
        if not routes:
            metrics.route_requests.labels(result="error").inc()
            raise RouteUnavailable("routing provider returned no routes")

        hazards = await self._corridor_hazards(routes)

        scored = []
        for idx, route in enumerate(routes):
            score, warnings = score_route(route_coordinates(route), hazards)
            scored.append((score, float(route.get("distance", 0.0)), idx, warnings))

        # 위험 점수 오름차순, 동률이면 짧은 거리
        scored.sort(key=lambda s: (s[0], s[1], s[2]))
        score, _, idx, warnings = scored[0]

        log.info(f"경로 선택 alternatives:{len(routes)} chosen:{idx + 1} "
                 f"danger:{score} warnings:{len(warnings)}")
        metrics.route_requests.labels(result="ok").inc()

        return summarize(routes[idx], mode, warnings, alternatives=len(routes))

    async def _corridor_hazards(self, routes: List[Dict[str, Any]]) -> List[HazardRecord]:
        """경로들을 감싸는 영역(여유 0.5도)의 위험을 조회합니다."""
        if self.hazard_source is None:
            return []

        points = [p for r in routes for p in route_coordinates(r)]
        if not points:
            return []

        min_lat, min_lon, max_lat, max_lon = calculate_bounding_box(points, CORRIDOR_BUFFER_DEG)
        center = Location(lat=(min_lat + max_lat) / 2, lon=(min_lon + max_lon) / 2)
        radius = haversine_distance(center.lat, center.lon, max_lat, max_lon)

        try:
            raws = await self.hazard_source.fetch_hazards(center, radius)
        except Exception as e:
            # 위험 정보 없이도 경로는 제공
            log.warning(f"경로 주변 위험 조회 실패 error:{e}")
            return []

        # 발생 시각을 아는 위험은 최근 것만 (시각 없는 위험은 유지)
        cutoff = None
        if self.max_hazard_age_hours is not None:
            cutoff = self.clock() - timedelta(hours=self.max_hazard_age_hours)

        hazards = []
        for raw in raws:
            h = to_hazard(raw, center)
            if h is None:
                continue
            when = occurred_at(h)
            if cutoff is not None and when is not None and when < cutoff:
                continue
            if min_lat <= h.location.lat <= max_lat and min_lon <= h.location.lon <= max_lon:
                hazards.append(h)
        return hazards
