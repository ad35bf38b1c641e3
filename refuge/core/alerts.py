"""
Hazard-derived alert feed for refuge.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, List, Optional
from .models import AlertEntry, Location
from .severity import classify_magnitude
from .validation import validate_radius
from refuge.common.geo import haversine_distance, validate_coordinates
from refuge.observability.logging_setup import get_logger

if TYPE_CHECKING:
    from refuge.ports.sources import AlertSourcePort

log = get_logger("refuge.alerts")

def _coerce_float(value: Any) -> Optional[float]:
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None

def to_alert(row: Dict[str, Any]) -> AlertEntry:
    return AlertEntry(
        id=str(row["id"]),
        message=str(row.get("message") or ""),
        created_at=str(row.get("created_at") or ""),
        hazard_id=str(row.get("hazard_id") or ""),
        hazard_severity=row.get("hazard_severity") or classify_magnitude(row.get("hazard_mag")),
        hazard_type=row.get("hazard_type"),
        hazard_lat=_coerce_float(row.get("hazard_lat")),
        hazard_lon=_coerce_float(row.get("hazard_lon")),
        hazard_title=row.get("hazard_title"),
    )

class AlertFeed:
    """관찰자 반경 내 경보 목록"""

    def __init__(self, source: AlertSourcePort, *, max_radius_km: float = 500.0, limit: int = 200):
        self.source = source
        self.max_radius_km = max_radius_km
        self.limit = limit

    async def list_alerts(self, observer: Optional[Location] = None,
                          radius_km: Optional[float] = None) -> List[AlertEntry]:
        """
        경보를 최신순으로 반환합니다.

        observer가 주어지면 위험 좌표가 반경 밖인 경보를 제외합니다.
        좌표가 없는 위험의 경보는 항상 포함합니다.
        """
        if observer is None:
            rows = await self.source.fetch_alerts(self.limit)
            alerts = [to_alert(r) for r in rows]
        else:
            radius = validate_radius(radius_km if radius_km is not None else self.max_radius_km,
                                     self.max_radius_km)
            # 반경 필터 후에 개수 제한
            rows = await self.source.fetch_alerts(None, observer, radius)
            alerts = [a for a in map(to_alert, rows) if self._within(a, observer, radius)]

        alerts.sort(key=lambda a: a.created_at, reverse=True)
        log.debug(f"경보 조회 완료 count:{len(alerts)}")
        return alerts[:self.limit]

    @staticmethod
    def _within(alert: AlertEntry, observer: Location, radius_km: float) -> bool:
        if alert.hazard_lat is None or alert.hazard_lon is None:
            return True
        if not validate_coordinates(alert.hazard_lat, alert.hazard_lon):
            return True
        d = haversine_distance(observer.lat, observer.lon, alert.hazard_lat, alert.hazard_lon)
        return d <= radius_km
