# refuge/main.py
import os, asyncio, signal
from typing import Optional
import uvicorn
from refuge.settings import Settings
from refuge.api import Services
from refuge.observability.health import create_app
from refuge.observability.logging_setup import setup_logging_dev, get_logger
from refuge.adapters.storage import (
    SQLiteCommunityStore, SQLiteFeedStore, SQLiteHazardSource,
    SQLiteShelterSource, SQLiteAlertSource
)
from refuge.adapters.feeds import USGSHazardSource, load_shelters
from refuge.adapters.routing import OSRMRouteProvider
from refuge.core import (
    OverviewAggregator, SafetyStatusEngine, AlertFeed, CommunityGraph, RouteSummaryAdapter
)
from refuge.orchestrators import FeedIngestor

def _b(name, default=False): return os.getenv(name, str(default)).lower() in ("1","true","yes","on")

def build_settings() -> Settings:
    s = Settings()

    # DB
    s.database.path = os.getenv("DB_PATH", s.database.path)

    # 피드
    s.feeds.usgs_enabled = _b("USGS_ENABLED", s.feeds.usgs_enabled)
    s.feeds.usgs_url = os.getenv("USGS_URL", s.feeds.usgs_url)
    s.feeds.shelter_file = os.getenv("SHELTER_FILE", s.feeds.shelter_file)
    s.feeds.refresh_sec = int(os.getenv("FEED_REFRESH_SEC", s.feeds.refresh_sec))
    s.feeds.alert_min_severity = os.getenv("ALERT_MIN_SEVERITY", s.feeds.alert_min_severity)

    # 조회
    s.overview.default_radius_km = float(os.getenv("DEFAULT_RADIUS_KM", s.overview.default_radius_km))
    s.overview.max_radius_km = float(os.getenv("MAX_RADIUS_KM", s.overview.max_radius_km))

    # 안전 판정
    s.safety.danger_distance_km = float(os.getenv("DANGER_DISTANCE_KM", s.safety.danger_distance_km))

    # 커뮤니티
    s.community.tag_max_attempts = int(os.getenv("TAG_MAX_ATTEMPTS", s.community.tag_max_attempts))

    # 경로
    s.router.base_url = os.getenv("ROUTER_BASE_URL", s.router.base_url)
    s.router.profile = os.getenv("ROUTER_PROFILE", s.router.profile)
    s.router.hazard_max_age_hours = float(os.getenv("ROUTE_HAZARD_MAX_AGE_HOURS", s.router.hazard_max_age_hours))

    # 관측성
    s.observability.metrics_enabled = _b("METRICS_ENABLED", s.observability.metrics_enabled)
    s.observability.http_port = int(os.getenv("HTTP_PORT", s.observability.http_port))
    s.observability.log_level = os.getenv("LOG_LEVEL", s.observability.log_level)

    return s

def build_services(s: Settings, feeds: SQLiteFeedStore, community: SQLiteCommunityStore) -> Services:
    hazards = SQLiteHazardSource(feeds)
    return Services(
        overview=OverviewAggregator(
            hazards, SQLiteShelterSource(feeds),
            max_radius_km=s.overview.max_radius_km,
            hazard_limit=s.overview.hazard_limit,
            resource_limit=s.overview.resource_limit,
        ),
        safety=SafetyStatusEngine(
            danger_distance_km=s.safety.danger_distance_km,
            danger_score=s.safety.danger_score,
            caution_score=s.safety.caution_score,
        ),
        alerts=AlertFeed(SQLiteAlertSource(feeds), max_radius_km=s.overview.max_radius_km,
                         limit=s.alerts.limit),
        community=CommunityGraph(community, max_tag_attempts=s.community.tag_max_attempts,
                                 max_radius_km=s.overview.max_radius_km),
        route=RouteSummaryAdapter(
            OSRMRouteProvider(s.router.base_url, s.router.profile, s.router.timeout_sec),
            hazards, alternatives=s.router.alternatives,
            max_hazard_age_hours=s.router.hazard_max_age_hours,
        ),
    )

async def start_http(settings: Settings, services: Services) -> asyncio.Task:
    app = create_app(settings, services)
    return asyncio.create_task(uvicorn.Server(
        uvicorn.Config(app, host="0.0.0.0", port=settings.observability.http_port,
                       log_level=settings.observability.log_level.lower())
    ).serve())

async def main():
    s = build_settings()
    setup_logging_dev(s.observability.log_level)
    log = get_logger()
    log.info("설정 로드 완료")

    feeds = SQLiteFeedStore(s.database.path); await feeds.init()
    community = SQLiteCommunityStore(s.database.path); await community.init()

    # 초기 대피소 적재 (파일 오류는 서비스 시작을 막지 않음)
    if s.feeds.shelter_file:
        try:
            await feeds.insert_shelters(load_shelters(s.feeds.shelter_file))
        except (OSError, ValueError) as e:
            log.warning(f"대피소 파일 적재 실패 path:{s.feeds.shelter_file} error:{e}")

    services = build_services(s, feeds, community)
    backfilled = await services.community.backfill_tags()
    if backfilled:
        log.info(f"공개 태그 보충 완료 count:{backfilled}")

    stop_event = asyncio.Event()
    ingest_task: Optional[asyncio.Task] = None
    if s.feeds.usgs_enabled:
        ingestor = FeedIngestor(
            USGSHazardSource(s.feeds.usgs_url, timeout=s.feeds.timeout_sec),
            feeds,
            alert_min_severity=s.feeds.alert_min_severity,
            interval_sec=s.feeds.refresh_sec,
        )
        ingest_task = asyncio.create_task(ingestor.start(stop_event))
        log.info("위험 피드 적재 시작")

    http_task = await start_http(s, services)
    log.info(f"HTTP 서버 시작됨 port:{s.observability.http_port}")

    stop = asyncio.Future()
    try:
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGTERM, signal.SIGINT):
            try: loop.add_signal_handler(sig, lambda: (not stop.done()) and stop.set_result(True))
            except NotImplementedError: pass
    except RuntimeError: pass

    await stop
    stop_event.set()
    if ingest_task: ingest_task.cancel()
    http_task.cancel()
    log.info("종료")

def run():
    asyncio.run(main())

if __name__ == "__main__":
    run()
