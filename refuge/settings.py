# refuge/settings.py
from __future__ import annotations
from pydantic import BaseModel, Field

class Database(BaseModel):
    path: str = "/data/refuge.db"

class Feeds(BaseModel):
    usgs_enabled: bool = True
    usgs_url: str = "https://earthquake.usgs.gov/earthquakes/feed/v1.0/summary/all_day.geojson"
    shelter_file: str | None = None        # csv | xlsx 초기 적재 파일
    timeout_sec: int = 10
    refresh_sec: int = 300
    alert_min_severity: str = "high"     # 이 위험도 이상 신규 위험에 경보 생성

class Overview(BaseModel):
    default_radius_km: float = 100.0
    max_radius_km: float = 500.0
    hazard_limit: int = 50
    resource_limit: int = 100

class Safety(BaseModel):
    danger_distance_km: float = 10.0
    danger_score: float = 0.7
    caution_score: float = 0.4

class Community(BaseModel):
    tag_max_attempts: int = 5
    resource_radius_km: float = 50.0

class Router(BaseModel):
    base_url: str = "https://router.project-osrm.org"
    profile: str = "driving"
    alternatives: int = 3
    timeout_sec: int = 15
    hazard_max_age_hours: float = 72.0

class Alerts(BaseModel):
    default_radius_km: float = 500.0
    limit: int = 200

class Observability(BaseModel):
    http_port: int = 8000
    metrics_enabled: bool = True
    service_name: str = "refuge"
    build_version: str = "0.1.0"
    build_date: str = "2026-10-01"
    log_level: str = "INFO"

class Settings(BaseModel):
    # 하위 섹션 (기본값/팩토리로 누락 방지)
    database: Database = Field(default_factory=Database)
    feeds: Feeds = Field(default_factory=Feeds)
    overview: Overview = Field(default_factory=Overview)
    safety: Safety = Field(default_factory=Safety)
    community: Community = Field(default_factory=Community)
    router: Router = Field(default_factory=Router)
    alerts: Alerts = Field(default_factory=Alerts)
    observability: Observability = Field(default_factory=Observability)
