"""
HTTP application for refuge.

This module implements health, readiness, metrics, and info endpoints
for monitoring and operational visibility, and mounts the domain API.
"""

from typing import Optional
from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import Response, JSONResponse
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
import time
import aiosqlite
from refuge.settings import Settings
from refuge.api import Services, build_router
from refuge.adapters.storage.connection import connect
from refuge.core.errors import (
    RefugeError, ValidationError, NotFoundError, SourceUnavailable,
    TagAssignmentExhausted, SelfReferenceError, InvalidStateTransition, RouteUnavailable,
)
from refuge.observability import metrics as m
from refuge.observability.logging_setup import get_logger

log = get_logger("refuge.http")

# 도메인 오류 -> HTTP 상태 코드
ERROR_STATUS = (
    (ValidationError, 400),
    (SelfReferenceError, 400),
    (NotFoundError, 404),
    (InvalidStateTransition, 409),
    (TagAssignmentExhausted, 409),
    (RouteUnavailable, 502),
    (SourceUnavailable, 503),
)

def status_for(exc: RefugeError) -> int:
    """도메인 오류에 대응하는 HTTP 상태 코드"""
    for error_type, status in ERROR_STATUS:
        if isinstance(exc, error_type):
            return status
    return 500

def create_app(settings: Settings, services: Optional[Services] = None) -> FastAPI:
    """FastAPI 애플리케이션을 생성합니다."""
    app = FastAPI(
        title=settings.observability.service_name,
        version=settings.observability.build_version,
        description="Refuge hazard awareness and community aid service"
    )

    start_time = time.time()

    @app.exception_handler(RefugeError)
    async def refuge_error(request: Request, exc: RefugeError):
        status = status_for(exc)
        if status >= 500:
            log.error(f"요청 처리 실패 path:{request.url.path} error:{exc}")
        else:
            log.info(f"요청 거부 path:{request.url.path} status:{status} error:{exc}")
        return JSONResponse({"error": type(exc).__name__, "detail": str(exc)}, status_code=status)

    @app.get("/health")
    async def health():
        """헬스 체크 엔드포인트"""
        return JSONResponse({
            "status": "ok",
            "service": settings.observability.service_name,
            "timestamp": time.time()
        })

    @app.get("/ready")
    async def ready():
        """레디니스 체크 엔드포인트 (DB 접근 가능 여부)"""
        try:
            async with connect(settings.database.path) as db:
                await db.execute("SELECT 1")
        except aiosqlite.Error as e:
            log.warning(f"레디니스 체크 실패 error:{e}")
            raise HTTPException(status_code=503, detail="Database unavailable")

        return JSONResponse({
            "status": "ready",
            "service": settings.observability.service_name,
            "timestamp": time.time()
        })

    @app.get("/metrics")
    async def metrics():
        """Prometheus 메트릭 엔드포인트"""
        if not settings.observability.metrics_enabled:
            raise HTTPException(status_code=503, detail="Metrics disabled")

        m.uptime_seconds.set(time.time() - start_time)
        return Response(
            generate_latest(),
            media_type=CONTENT_TYPE_LATEST
        )

    @app.get("/info")
    async def info():
        """서비스 정보 엔드포인트"""
        uptime = time.time() - start_time
        return JSONResponse({
            "service": settings.observability.service_name,
            "version": settings.observability.build_version,
            "build_date": settings.observability.build_date,
            "uptime_seconds": int(uptime),
            "metrics_enabled": settings.observability.metrics_enabled,
            "log_level": settings.observability.log_level
        })

    endpoints = {
        "health": "/health",
        "ready": "/ready",
        "metrics": "/metrics",
        "info": "/info",
    }

    if services is not None:
        app.include_router(build_router(services, settings))
        endpoints.update({
            "overview": "/overview",
            "safety": "/safety",
            "alerts": "/alerts",
            "route": "/route",
            "community": "/community",
        })

    @app.get("/")
    async def root():
        """루트 엔드포인트"""
        return JSONResponse({
            "service": settings.observability.service_name,
            "version": settings.observability.build_version,
            "endpoints": endpoints
        })

    return app
