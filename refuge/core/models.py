"""
Core domain models for refuge.

This module defines the core domain models using Pydantic v2
for type safety and validation.
"""

from typing import Any, Dict, List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field

# 위험도 등급 (위험 자체의 강도)
Severity = Literal["low", "moderate", "high", "critical"]

# 개인 안전 등급 (관찰자 기준 위험)
SafetyLevel = Literal["safe", "moderate", "caution", "danger"]

HazardType = Literal["earthquake", "flood", "wildfire", "tsunami", "storm", "other"]

ResourceCategory = Literal["shelter", "medical", "emergency", "supplies"]

ResourceStatus = Literal["open", "limited", "closed", "unknown"]

CommunityResourceType = Literal["offering", "requesting"]

CommunityResourceStatus = Literal["active", "claimed", "completed"]


class Location(BaseModel):
    """위경도 좌표 (불변)"""
    model_config = ConfigDict(frozen=True)

    lat: float = Field(ge=-90, le=90)
    lon: float = Field(ge=-180, le=180)


class RawRecord(BaseModel):
    """외부 소스가 공급하는 원시 레코드"""
    id: str
    lat: Optional[float] = None
    lon: Optional[float] = None
    source: str = ""
    source_id: Optional[str] = None
    type: Optional[str] = None
    attributes: Dict[str, Any] = Field(default_factory=dict)


class HazardRecord(BaseModel):
    """거리와 위험도가 계산된 위험 레코드"""
    id: str
    source_id: str
    location: Location
    source_tag: str
    hazard_type: HazardType = "other"
    attributes: Dict[str, Any] = Field(default_factory=dict)
    distance_km: float
    severity: Severity

    @property
    def magnitude(self) -> Optional[float]:
        value = self.attributes.get("mag")
        return float(value) if value is not None else None

    def to_wire(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "source_event_id": self.source_id,
            "type": self.hazard_type,
            "severity": self.severity,
            "lat": self.location.lat,
            "lon": self.location.lon,
            "dist_km": self.distance_km,
            "source": self.source_tag,
            "attributes": self.attributes,
        }


class ResourceRecord(BaseModel):
    """분류가 끝난 구호 자원 (대피소/의료/응급/물자)"""
    id: str
    name: str
    location: Location
    raw_type: str = ""
    category: ResourceCategory
    label: str
    distance_km: float
    status: ResourceStatus = "unknown"
    capacity: Optional[int] = None
    phone: Optional[str] = None
    address: Optional[str] = None

    def to_wire(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "type": self.raw_type,
            "category": self.category,
            "label": self.label,
            "lat": self.location.lat,
            "lon": self.location.lon,
            "dist_km": self.distance_km,
            "status": self.status,
            "capacity": self.capacity,
            "phone": self.phone,
            "address": self.address,
        }


class ResourceSection(BaseModel):
    items: List[ResourceRecord] = Field(default_factory=list)


class OverviewResult(BaseModel):
    """주변 위험/자원 종합 결과"""
    hazards: List[HazardRecord] = Field(default_factory=list)
    resources: ResourceSection = Field(default_factory=ResourceSection)
    unavailable: List[str] = Field(default_factory=list)

    def to_wire(self) -> Dict[str, Any]:
        return {
            "hazards": [h.to_wire() for h in self.hazards],
            "resources": {"items": [r.to_wire() for r in self.resources.items]},
            "unavailable": list(self.unavailable),
        }


class SafetyStatus(BaseModel):
    """관찰자 기준 안전 상태 (요청 범위, 저장하지 않음)"""
    level: SafetyLevel
    nearest_hazard_id: Optional[str] = None
    nearest_distance_km: Optional[float] = None


class AlertEntry(BaseModel):
    """위험에서 파생된 경보 항목"""
    id: str
    message: str
    created_at: str
    hazard_id: str
    hazard_severity: Optional[str] = None
    hazard_type: Optional[str] = None
    hazard_lat: Optional[float] = None
    hazard_lon: Optional[float] = None
    hazard_title: Optional[str] = None


class CommunityUser(BaseModel):
    id: str
    name: str = ""
    public_tag: Optional[str] = None


class NeighborEdge(BaseModel):
    user_id: str
    neighbor_id: str
    created_at: str


class CommunityResource(BaseModel):
    """커뮤니티 공유 자원 (삭제 없이 상태로만 관리)"""
    id: str
    user_id: str
    type: CommunityResourceType
    title: str
    description: str = ""
    status: CommunityResourceStatus = "active"
    location: Location
    created_at: Optional[str] = None
    distance_km: Optional[float] = None


class RouteStep(BaseModel):
    instruction: str
    distance_m: float


class RouteWarning(BaseModel):
    hazard_id: str
    message: str
    closest_distance_km: float


class RouteSummary(BaseModel):
    """클라이언트가 소비하는 경로 요약"""
    distance_m: float
    duration_s: float
    geometry: str
    steps: List[RouteStep] = Field(default_factory=list)
    travel_mode: str = "driving"
    warnings: List[RouteWarning] = Field(default_factory=list)
    is_safe: bool = True
    alternatives_considered: int = 1
