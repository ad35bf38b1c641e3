"""
Geographic utilities for refuge.

This module provides geographic calculations including
great-circle distance, initial bearing, bounding boxes and
coordinate range checks.
"""

import math
from typing import Iterable, Protocol, Tuple

class LatLon(Protocol):
    lat: float
    lon: float

# 지구 반지름 (킬로미터)
EARTH_RADIUS_KM = 6371.0

def haversine_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    두 지점 간의 Haversine 거리를 계산합니다 (킬로미터).

    Args:
        lat1: 첫 번째 지점의 위도
        lon1: 첫 번째 지점의 경도
        lat2: 두 번째 지점의 위도
        lon2: 두 번째 지점의 경도

    Returns:
        두 지점 간의 거리 (킬로미터)
    """
    # 도를 라디안으로 변환
    lat1_rad = math.radians(lat1)
    lat2_rad = math.radians(lat2)

    # 위도와 경도의 차이
    dlat = lat2_rad - lat1_rad
    dlon = math.radians(lon2) - math.radians(lon1)

    # Haversine 공식
    a = (math.sin(dlat / 2) ** 2 +
         math.cos(lat1_rad) * math.cos(lat2_rad) * math.sin(dlon / 2) ** 2)
    # 부동소수 오차로 1을 넘지 않도록 제한
    c = 2 * math.asin(min(1.0, math.sqrt(a)))

    return c * EARTH_RADIUS_KM

def distance_km(a: LatLon, b: LatLon) -> float:
    """두 Location 간 대원 거리 (km). distance_km(a, b) == distance_km(b, a)."""
    return haversine_distance(a.lat, a.lon, b.lat, b.lon)

def initial_bearing(a: LatLon, b: LatLon) -> float:
    """
    a에서 b로 향하는 초기 방위각을 계산합니다.

    Returns:
        진북 기준 시계방향 각도 [0, 360)
    """
    lat1 = math.radians(a.lat)
    lat2 = math.radians(b.lat)
    dlon = math.radians(b.lon - a.lon)

    x = math.sin(dlon) * math.cos(lat2)
    y = math.cos(lat1) * math.sin(lat2) - math.sin(lat1) * math.cos(lat2) * math.cos(dlon)

    return (math.degrees(math.atan2(x, y)) + 360.0) % 360.0

def calculate_bounding_box(points: Iterable[Tuple[float, float]],
                           buffer_deg: float = 0.0) -> Tuple[float, float, float, float]:
    """
    (위도, 경도) 점들의 경계 상자를 계산합니다.

    Args:
        points: [(위도, 경도), ...]
        buffer_deg: 각 변에 더할 여유 (도)

    Returns:
        (min_lat, min_lon, max_lat, max_lon)
    """
    pts = list(points)
    if not pts:
        return (0.0, 0.0, 0.0, 0.0)

    lats = [p[0] for p in pts]
    lons = [p[1] for p in pts]

    return (max(-90.0, min(lats) - buffer_deg),
            max(-180.0, min(lons) - buffer_deg),
            min(90.0, max(lats) + buffer_deg),
            min(180.0, max(lons) + buffer_deg))

def validate_coordinates(lat: float, lon: float) -> bool:
    """
    좌표가 유효한지 확인합니다.

    Args:
        lat: 위도
        lon: 경도

    Returns:
        좌표가 유효하면 True
    """
    if lat is None or lon is None:
        return False
    if math.isnan(lat) or math.isnan(lon):
        return False
    return -90 <= lat <= 90 and -180 <= lon <= 180

