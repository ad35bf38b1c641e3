"""
Severity classification for refuge.

Two questions are kept apart here: how intense a hazard is
(``classify_magnitude``, stored on every HazardRecord) and how
worried a particular observer should be (``classify_personal_risk``,
used by the safety status engine).
"""

import math
from typing import Any, Optional, Union
from .models import SafetyLevel, Severity

# 위험도 순서 정의 (낮음 -> 높음)
SEVERITY_ORDER = {
    "low": 0,
    "moderate": 1,
    "high": 2,
    "critical": 3
}

CRITICAL_MAGNITUDE = 6.0
HIGH_MAGNITUDE = 4.5

DANGER_DISTANCE_KM = 10.0
DANGER_SCORE = 0.7
CAUTION_SCORE = 0.4

def magnitude_of(value: Any) -> float:
    """규모 값을 float으로 변환합니다. 없거나 숫자가 아니면 0."""
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        mag = float(value)
    except (TypeError, ValueError):
        return 0.0
    return 0.0 if math.isnan(mag) else mag

def classify_magnitude(magnitude: Any) -> Severity:
    """
    규모 기반 절대 위험도를 계산합니다.

    Args:
        magnitude: 규모 (없으면 0으로 간주)

    Returns:
        6 이상 critical, 4.5 이상 high, 그 외 moderate
    """
    mag = magnitude_of(magnitude)
    if mag >= CRITICAL_MAGNITUDE:
        return "critical"
    if mag >= HIGH_MAGNITUDE:
        return "high"
    return "moderate"

def _as_score(severity: Union[str, float, int, None]) -> Optional[float]:
    if severity is None or isinstance(severity, bool):
        return None
    if isinstance(severity, (int, float)):
        return float(severity)
    try:
        return float(severity)
    except (TypeError, ValueError):
        return None

def classify_personal_risk(
    severity: Union[str, float, int, None],
    distance_km: float,
    *,
    danger_distance_km: float = DANGER_DISTANCE_KM,
    danger_score: float = DANGER_SCORE,
    caution_score: float = CAUTION_SCORE
) -> SafetyLevel:
    """
    관찰자 기준 안전 등급을 계산합니다.

    Args:
        severity: 위험도 등급 문자열 또는 0~1 점수
        distance_km: 관찰자와 위험 사이 거리
        danger_distance_km: 이 거리를 넘으면 항상 safe
        danger_score: danger 판정 점수 하한
        caution_score: caution 판정 점수 하한

    Returns:
        safe | moderate | caution | danger
    """
    if distance_km > danger_distance_km:
        return "safe"

    tier = severity.lower() if isinstance(severity, str) else None
    score = _as_score(severity)

    if tier in ("critical", "high") or (score is not None and score >= danger_score):
        return "danger"
    if tier == "moderate" or (score is not None and score >= caution_score):
        return "caution"
    return "moderate"
