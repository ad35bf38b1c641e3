"""
Normalization functions for refuge.

This module contains pure functions for converting raw source records
into internal domain models. Raw type and status strings are parsed
into closed literals here, so downstream code never sees free text.
"""

from typing import Any, Optional
from .models import (
    HazardRecord, HazardType, Location, RawRecord, ResourceRecord, ResourceStatus
)
from .categorize import categorize
from .severity import classify_magnitude, magnitude_of
from refuge.common.geo import distance_km, validate_coordinates
from refuge.observability.logging_setup import get_logger

log = get_logger("refuge.normalize")

HAZARD_TYPES = ("earthquake", "flood", "wildfire", "tsunami", "storm")

# 위험 유형 별칭
HAZARD_ALIASES = {
    "quake": "earthquake",
    "seismic": "earthquake",
    "fire": "wildfire",
    "bushfire": "wildfire",
    "hurricane": "storm",
    "cyclone": "storm",
    "typhoon": "storm",
}

RESOURCE_STATUSES = ("open", "limited", "closed")

def parse_hazard_type(raw: Optional[str]) -> HazardType:
    """원시 위험 유형 문자열을 닫힌 HazardType으로 변환합니다."""
    if not raw:
        return "other"
    key = str(raw).strip().lower()
    key = HAZARD_ALIASES.get(key, key)
    return key if key in HAZARD_TYPES else "other"

def normalize_status(raw: Optional[str]) -> ResourceStatus:
    """
    자원 운영 상태를 정규화합니다.

    없으면 unknown, open/limited/closed는 그대로, 그 외 값은 limited.
    """
    if raw is None or str(raw).strip() == "":
        return "unknown"
    key = str(raw).strip().lower()
    if key in RESOURCE_STATUSES:
        return key
    if key == "unknown":
        return "unknown"
    return "limited"

def _optional_int(value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return None

def _optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None

def _location_of(raw: RawRecord) -> Optional[Location]:
    if raw.lat is None or raw.lon is None:
        return None
    if not validate_coordinates(raw.lat, raw.lon):
        return None
    return Location(lat=raw.lat, lon=raw.lon)

def to_hazard(raw: RawRecord, observer: Location) -> Optional[HazardRecord]:
    """
    원시 위험 레코드를 HazardRecord로 변환합니다.

    Args:
        raw: 소스 레코드
        observer: 거리 기준 위치

    Returns:
        거리/위험도가 채워진 HazardRecord, 좌표가 없거나 잘못되면 None
    """
    location = _location_of(raw)
    if location is None:
        log.warning(f"좌표가 없는 위험 레코드 건너뜀 id:{raw.id} source:{raw.source}")
        return None

    attributes = dict(raw.attributes)
    # magnitude 별칭을 mag로 통일
    if "mag" not in attributes and "magnitude" in attributes:
        attributes["mag"] = attributes.pop("magnitude")
    if attributes.get("mag") is not None:
        attributes["mag"] = magnitude_of(attributes["mag"])

    return HazardRecord(
        id=raw.id,
        source_id=raw.source_id or raw.id,
        location=location,
        source_tag=raw.source or "unknown",
        hazard_type=parse_hazard_type(raw.type),
        attributes=attributes,
        distance_km=distance_km(observer, location),
        severity=classify_magnitude(attributes.get("mag")),
    )

def to_resource(raw: RawRecord, observer: Location) -> Optional[ResourceRecord]:
    """
    원시 자원 레코드를 ResourceRecord로 변환합니다.

    Args:
        raw: 소스 레코드 (name/status/capacity/phone/address는 attributes)
        observer: 거리 기준 위치

    Returns:
        분류/거리가 채워진 ResourceRecord, 좌표가 없거나 잘못되면 None
    """
    location = _location_of(raw)
    if location is None:
        log.warning(f"좌표가 없는 자원 레코드 건너뜀 id:{raw.id} source:{raw.source}")
        return None

    attrs = raw.attributes
    category, label = categorize(raw.type)

    return ResourceRecord(
        id=raw.id,
        name=_optional_str(attrs.get("name")) or label,
        location=location,
        raw_type=(raw.type or "").strip().lower(),
        category=category,
        label=label,
        distance_km=distance_km(observer, location),
        status=normalize_status(attrs.get("status")),
        capacity=_optional_int(attrs.get("capacity")),
        phone=_optional_str(attrs.get("phone")),
        address=_optional_str(attrs.get("address")),
    )
