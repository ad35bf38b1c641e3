"""
Safety status evaluation for refuge.

Reduces a hazard snapshot to a single status-bar level for one
observer: find the nearest hazard, then classify personal risk.
Pure and request scoped; nothing is cached between calls.
"""

from typing import Optional, Sequence, Tuple
from .models import HazardRecord, Location, SafetyStatus
from .severity import (
    CAUTION_SCORE, DANGER_DISTANCE_KM, DANGER_SCORE, classify_personal_risk
)
from refuge.common.geo import distance_km
from refuge.observability import metrics

class SafetyStatusEngine:
    """가장 가까운 위험 기준 안전 상태 평가기"""

    def __init__(self, *,
                 danger_distance_km: float = DANGER_DISTANCE_KM,
                 danger_score: float = DANGER_SCORE,
                 caution_score: float = CAUTION_SCORE):
        self.danger_distance_km = danger_distance_km
        self.danger_score = danger_score
        self.caution_score = caution_score

    def nearest(self, hazards: Sequence[HazardRecord],
                observer: Location) -> Optional[Tuple[HazardRecord, float]]:
        """가장 가까운 위험과 거리. 동률이면 입력 순서상 먼저인 것."""
        best: Optional[Tuple[HazardRecord, float]] = None
        for h in hazards:
            d = distance_km(observer, h.location)
            if best is None or d < best[1]:
                best = (h, d)
        return best

    def evaluate(self, hazards: Sequence[HazardRecord], observer: Location) -> SafetyStatus:
        """
        위험 목록과 관찰자 위치로 안전 상태를 계산합니다.

        Args:
            hazards: 위험 스냅샷
            observer: 관찰자 위치

        Returns:
            SafetyStatus (위험이 없으면 level=safe)
        """
        found = self.nearest(hazards, observer)
        if found is None:
            metrics.safety_levels.labels(level="safe").inc()
            return SafetyStatus(level="safe")

        hazard, dist = found
        level = classify_personal_risk(
            hazard.severity,
            dist,
            danger_distance_km=self.danger_distance_km,
            danger_score=self.danger_score,
            caution_score=self.caution_score,
        )
        metrics.safety_levels.labels(level=level).inc()

        return SafetyStatus(
            level=level,
            nearest_hazard_id=hazard.id,
            nearest_distance_km=dist,
        )

def describe_status(status: SafetyStatus, hazard: Optional[HazardRecord] = None,
                    radius_km: float = DANGER_DISTANCE_KM) -> Tuple[str, str]:
    """
    상태 표시줄용 (제목, 부제) 문자열을 만듭니다.

    Args:
        status: 평가된 안전 상태
        hazard: 가장 가까운 위험 (유형 표시용)
        radius_km: safe 부제에 표시할 반경

    Returns:
        (label, detail)
    """
    if status.level == "safe":
        return "Safe Zone", f"No active hazards within {radius_km:g}km"

    kind = hazard.hazard_type if hazard and hazard.hazard_type != "other" else "hazard"
    kind = kind.capitalize()

    if status.level == "danger":
        label = f"DANGER: {kind.upper()}"
    elif status.level == "caution":
        label = f"High {kind} Caution"
    else:
        label = f"Moderate {kind} Risk"

    detail = f"{status.nearest_distance_km:.1f}km from nearest hazard"
    return label, detail
