"""
HTTP routes for refuge.

This module exposes the overview, safety, alerts, route and community
operations. Authentication is handled upstream; user ids arrive in the
path or body.
"""

from dataclasses import dataclass
from typing import List, Optional
from fastapi import APIRouter, Query
from pydantic import BaseModel, Field
from refuge.core.alerts import AlertFeed
from refuge.core.community import CommunityGraph
from refuge.core.errors import ValidationError
from refuge.core.overview import OverviewAggregator
from refuge.core.route import RouteSummaryAdapter
from refuge.core.safety import SafetyStatusEngine, describe_status
from refuge.core.validation import validate_location
from refuge.settings import Settings
from refuge.observability.logging_setup import get_logger

log = get_logger("refuge.api")

@dataclass
class Services:
    """요청 처리에 필요한 서비스 묶음"""
    overview: OverviewAggregator
    safety: SafetyStatusEngine
    alerts: AlertFeed
    community: CommunityGraph
    route: Optional[RouteSummaryAdapter] = None

class RouteRequest(BaseModel):
    origin: List[float] = Field(min_length=2, max_length=2)
    destination: List[float] = Field(min_length=2, max_length=2)
    mode: str = "driving"

class EdgeRequest(BaseModel):
    user_id: str
    neighbor_id: str
    mutual: bool = False

class TagNeighborRequest(BaseModel):
    user_id: str
    tag: str

class ResourceRequest(BaseModel):
    user_id: str
    type: str
    title: str
    description: str = ""
    lat: float
    lon: float

def build_router(services: Services, settings: Settings) -> APIRouter:
    """서비스를 사용하는 API 라우터를 생성합니다."""
    router = APIRouter()

    @router.get("/overview")
    async def overview(lat: float, lon: float,
                       radius_km: Optional[float] = Query(default=None)):
        """주변 위험과 구호 자원"""
        observer = validate_location(lat, lon)
        radius = radius_km if radius_km is not None else settings.overview.default_radius_km
        result = await services.overview.get_overview(observer, radius)
        payload = result.to_wire()
        payload["location"] = {"lat": observer.lat, "lon": observer.lon, "radius_km": radius}
        return payload

    @router.get("/safety")
    async def safety(lat: float, lon: float,
                     radius_km: Optional[float] = Query(default=None)):
        """가장 가까운 위험 기준 안전 상태"""
        observer = validate_location(lat, lon)
        radius = radius_km if radius_km is not None else settings.overview.default_radius_km
        result = await services.overview.get_overview(observer, radius)
        status = services.safety.evaluate(result.hazards, observer)

        nearest = next((h for h in result.hazards if h.id == status.nearest_hazard_id), None)
        label, detail = describe_status(status, nearest, settings.safety.danger_distance_km)
        payload = status.model_dump()
        payload.update({"label": label, "detail": detail, "unavailable": result.unavailable})
        return payload

    @router.get("/alerts")
    async def alerts(lat: Optional[float] = None, lon: Optional[float] = None,
                     radius_km: Optional[float] = Query(default=None)):
        """위험 기반 경보 목록"""
        observer = None
        if lat is not None or lon is not None:
            observer = validate_location(lat, lon)
        radius = radius_km if radius_km is not None else settings.alerts.default_radius_km
        entries = await services.alerts.list_alerts(observer, radius)
        return [e.model_dump() for e in entries]

    @router.post("/route")
    async def route(body: RouteRequest):
        """위험 회피 경로 요약"""
        if services.route is None:
            raise ValidationError("routing is not configured")
        origin = validate_location(*body.origin)
        destination = validate_location(*body.destination)
        summary = await services.route.get_route(origin, destination, body.mode)
        return summary.model_dump()

    # ---- 커뮤니티 ----

    @router.post("/community/users/{user_id}/tag")
    async def assign_tag(user_id: str):
        tag = await services.community.assign_tag(user_id)
        return {"user_id": user_id, "public_tag": tag}

    @router.post("/community/neighbors")
    async def add_neighbor(body: EdgeRequest):
        if body.mutual:
            await services.community.link_mutual(body.user_id, body.neighbor_id)
            return {"success": True}
        created = await services.community.add_edge(body.user_id, body.neighbor_id)
        return {"success": True, "created": created}

    @router.post("/community/neighbors/by-tag")
    async def add_neighbor_by_tag(body: TagNeighborRequest):
        neighbor = await services.community.add_neighbor_by_tag(body.user_id, body.tag)
        return {"success": True, "neighbor": neighbor.model_dump()}

    @router.delete("/community/neighbors")
    async def remove_neighbor(user_id: str, neighbor_id: str):
        await services.community.remove_neighbor(user_id, neighbor_id)
        return {"success": True}

    @router.get("/community/users/{user_id}/neighbors")
    async def list_neighbors(user_id: str):
        edges = await services.community.list_neighbors(user_id)
        return [e.model_dump() for e in edges]

    @router.post("/community/resources", status_code=201)
    async def post_resource(body: ResourceRequest):
        location = validate_location(body.lat, body.lon)
        resource = await services.community.post_resource(
            body.user_id, body.type, body.title, body.description, location
        )
        return resource.model_dump()

    @router.get("/community/resources")
    async def list_resources(lat: Optional[float] = None, lon: Optional[float] = None,
                             radius_km: Optional[float] = Query(default=None)):
        observer = None
        if lat is not None or lon is not None:
            observer = validate_location(lat, lon)
        radius = radius_km if radius_km is not None else settings.community.resource_radius_km
        resources = await services.community.list_resources(observer, radius)
        return [r.model_dump() for r in resources]

    @router.post("/community/resources/{resource_id}/claim")
    async def claim(resource_id: str):
        resource = await services.community.claim(resource_id)
        return resource.model_dump()

    @router.post("/community/resources/{resource_id}/complete")
    async def complete(resource_id: str):
        resource = await services.community.complete(resource_id)
        return resource.model_dump()

    return router
